"""Symbolic shape inference pass.

Walks `graph.ops` in order (the graph guarantees definition-before-use),
dispatches each op to its rule and records results in an `AnalysisContext`.
The pass is a single synchronous fold: it stops at the first failing op and
never retries or rolls back earlier records.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from symshape.config import InferenceConfig
from symshape.errors import InvariantViolation, ShapeInferenceAborted, ShapeInferenceError
from symshape.ir.graph import Graph
from symshape.ir.op import IRValidationError, Op
from symshape.passes.rules import lookup
from symshape.symbolic.context import AnalysisContext

logger = logging.getLogger(__name__)


def infer_one(op: Op, ctx: AnalysisContext) -> bool:
    """Infer the results of one op; False if its rule failed.

    On failure nothing is written for `op` (symbols and constraints it
    emitted are rolled back) and the error is kept on `ctx.last_error`.
    """
    checkpoint = ctx.checkpoint()
    try:
        rule = lookup(op)
        rule(op, ctx)
    except ShapeInferenceError as e:
        _fail(op, ctx, checkpoint, e)
        return False
    except IRValidationError as e:
        # A malformed op (missing operand, ...) fails like a rule error.
        error = InvariantViolation(str(e), op_name=op.name)
        error.__cause__ = e
        _fail(op, ctx, checkpoint, error)
        return False

    if logger.isEnabledFor(logging.DEBUG):
        for value in op.outputs:
            logger.debug("%s(%s) -> %s: %s", op.display_kind, op.name, value.name, ctx.get_shape_or_data(value))
    return True


def _fail(op: Op, ctx: AnalysisContext, checkpoint: tuple[int, tuple[int, int]], error: ShapeInferenceError) -> None:
    ctx.rollback(checkpoint)
    if error.op_name is None:
        error.op_name = op.name
    ctx.last_error = error
    logger.warning("symbolic shape inference failed for %s(%s): %s", op.display_kind, op.name, error.message)


@dataclass(slots=True)
class ShapeInferencePass:
    """Infers symbolic shapes for every op of a graph.

    Writes the context to `graph.attrs["symbolic_shape"]` and returns it.

    Raises:
        ShapeInferenceAborted: On the first failing op when
            `config.fail_fast` is set; the partial context is attached.
    """

    config: InferenceConfig = field(default_factory=InferenceConfig)

    def run(self, graph: Graph) -> AnalysisContext:
        ctx = AnalysisContext(config=self.config)
        ctx.reset()
        graph.attrs["symbolic_shape"] = ctx

        visited = 0
        for op in graph.ops:
            if not infer_one(op, ctx):
                error = ctx.last_error
                assert error is not None
                if self.config.fail_fast:
                    raise ShapeInferenceAborted(op, error, ctx) from error
                logger.warning(
                    "stopping symbolic shape inference of %r at %s; %d of %d ops inferred",
                    graph.name,
                    op.name,
                    visited,
                    len(graph.ops),
                )
                return ctx
            visited += 1

        logger.info(
            "inferred %d ops of %r: %d equality and %d broadcast constraints",
            visited,
            graph.name,
            len(ctx.constraints.equalities),
            len(ctx.constraints.broadcasts),
        )
        return ctx
