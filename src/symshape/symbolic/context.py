"""Per-run state of symbolic shape inference.

An `AnalysisContext` lives for exactly one run over one graph: it owns the
value -> record map, the fresh-symbol counter and the constraint store. It
is passed explicitly to every rule; there is no global instance.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from symshape.config import InferenceConfig
from symshape.errors import InvariantViolation, ShapeInferenceError, ValueNotYetInferred
from symshape.symbolic.constraints import ConstraintStore, DimExprBuilder
from symshape.symbolic.dim_expr import DimExpr, Symbol

if TYPE_CHECKING:
    from symshape.ir.op import Op
    from symshape.ir.value import Value
    from symshape.symbolic.shape_or_data import ShapeOrData


@dataclass
class AnalysisContext:
    """Value records, symbol counter and constraints for one run.

    Write policy:
        - the first write of a value wins;
        - a later write is accepted only from an in-place op and only if it
          is identical to the stored record (consumers elsewhere in the graph
          may already have read it).
    """

    config: InferenceConfig = field(default_factory=InferenceConfig)
    constraints: ConstraintStore = field(default_factory=ConstraintStore)
    _records: dict[Value, ShapeOrData] = field(default_factory=dict, repr=False)
    _next_symbol_id: int = 0
    last_error: ShapeInferenceError | None = None

    def __post_init__(self) -> None:
        self.builder = DimExprBuilder(self)

    def reset(self) -> None:
        """Forget everything; called at the start of each run."""
        self._records.clear()
        self.constraints.clear()
        self._next_symbol_id = 0
        self.last_error = None

    # -- records ----------------------------------------------------------

    def has_shape_or_data(self, value: Value) -> bool:
        return value in self._records

    def get_shape_or_data(self, value: Value) -> ShapeOrData:
        try:
            return self._records[value]
        except KeyError:
            producer = value.producer
            origin = f"{producer.kind.value}({producer.name})" if producer is not None else "no producer"
            raise ValueNotYetInferred(f"{value.name} was not inferred yet ({origin})") from None

    def set_shape_or_data(self, value: Value, record: ShapeOrData, *, inplace: bool = False) -> None:
        self._check_write(value, record, inplace=inplace)
        self._records.setdefault(value, record)

    def set_results(self, op: Op, records: Sequence[ShapeOrData]) -> None:
        """Write every result of `op`, or none of them if any write is refused."""
        if len(records) != len(op.outputs):
            raise InvariantViolation(
                f"{op.display_kind} produced {len(records)} records for {len(op.outputs)} results",
                op_name=op.name,
            )
        for value, record in zip(op.outputs, records):
            self._check_write(value, record, inplace=op.inplace)
        for value, record in zip(op.outputs, records):
            self._records.setdefault(value, record)

    def _check_write(self, value: Value, record: ShapeOrData, *, inplace: bool) -> None:
        existing = self._records.get(value)
        if existing is None:
            return
        if not inplace:
            raise InvariantViolation(f"{value.name} already has a record ({existing}); refusing {record}")
        if existing != record:
            raise InvariantViolation(f"in-place update would change {value.name} from {existing} to {record}")

    def items(self) -> Iterable[tuple[Value, ShapeOrData]]:
        return self._records.items()

    def __len__(self) -> int:
        return len(self._records)

    def checkpoint(self) -> tuple[int, tuple[int, int]]:
        return self._next_symbol_id, self.constraints.mark()

    def rollback(self, checkpoint: tuple[int, tuple[int, int]]) -> None:
        """Undo symbols and constraints emitted by a rule that then failed."""
        self._next_symbol_id, mark = checkpoint
        self.constraints.truncate(mark)

    # -- symbols and constraints ------------------------------------------

    def next_symbol(self) -> Symbol:
        symbol = Symbol(f"{self.config.symbol_prefix}{self._next_symbol_id}")
        self._next_symbol_id += 1
        return symbol

    def emit_equality_constraint(self, lhs: DimExpr, rhs: DimExpr) -> None:
        self.constraints.add_equality(lhs, rhs)

    def emit_broadcast_constraint(self, lhs: DimExpr, rhs: DimExpr, result: Symbol) -> None:
        self.constraints.add_broadcast(lhs, rhs, result)


def format_context(ctx: AnalysisContext, values: Iterable[Value] | None = None) -> str:
    """One line per inferred value, then the constraints."""
    lines: list[str] = [f"AnalysisContext(records={len(ctx)}, constraints={len(ctx.constraints)})"]
    wanted = list(values) if values is not None else [v for v, _ in ctx.items()]
    for value in wanted:
        if ctx.has_shape_or_data(value):
            lines.append(f"- {value.name}: {ctx.get_shape_or_data(value)}")
        else:
            lines.append(f"- {value.name}: <not inferred>")
    for cstr in ctx.constraints:
        lines.append(f"  cstr {cstr}")
    return "\n".join(lines)
