"""Errors raised by symbolic shape inference.

Every rule either succeeds and writes its results, or raises one of the
`ShapeInferenceError` subclasses below and writes nothing. `infer_one` is the
only place that turns these into a boolean.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from symshape.ir.op import Op
    from symshape.symbolic.context import AnalysisContext


class ShapeInferenceError(Exception):
    """Base class for local, non-retryable inference failures."""

    def __init__(self, message: str, *, op_name: str | None = None) -> None:
        self.message = message
        self.op_name = op_name
        super().__init__(message)

    def __str__(self) -> str:
        if self.op_name is None:
            return self.message
        return f"[{self.op_name}] {self.message}"


class MissingAttribute(ShapeInferenceError):
    """A required attribute is absent from the op's attribute map."""


class WrongAttributeType(ShapeInferenceError):
    """An attribute is present but has the wrong kind or shape."""


class ValueNotYetInferred(ShapeInferenceError):
    """An operand was queried before its producer was visited."""


class UnsupportedDynamicOperand(ShapeInferenceError):
    """A position that requires a compile-time literal holds a symbol."""


class UnimplementedOperator(ShapeInferenceError):
    """The operator kind has no derivation rule."""


class InvariantViolation(ShapeInferenceError):
    """Cooperating operands or records disagree (rank mismatch, double -1, ...)."""


class ShapeInferenceAborted(RuntimeError):
    """Raised by the pass when an operator fails and `fail_fast` is set.

    The partially populated context is kept on the exception so a caller that
    tolerates partial results can still read records of earlier ops.
    """

    def __init__(self, op: "Op", cause: ShapeInferenceError, context: "AnalysisContext") -> None:
        self.op = op
        self.cause = cause
        self.context = context
        super().__init__(f"Symbolic shape inference aborted at {op.kind.value}({op.name}): {cause}")
