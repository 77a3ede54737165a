from __future__ import annotations

from collections.abc import Sequence

from symshape.errors import InvariantViolation, UnsupportedDynamicOperand
from symshape.ir.op import Op, OpKind
from symshape.symbolic.context import AnalysisContext
from symshape.symbolic.dim_expr import DimExpr
from symshape.symbolic.shape_or_data import TensorShapeOrData


def operand_record(op: Op, ctx: AnalysisContext, index: int) -> TensorShapeOrData:
    record = ctx.get_shape_or_data(op.operand(index))
    if not isinstance(record, TensorShapeOrData):
        raise InvariantViolation(f"operand #{index} of {op.display_kind} must be a tensor, got a tensor list", op_name=op.name)
    return record


def dim_basis(op: Op, ctx: AnalysisContext, index: int) -> list[DimExpr]:
    """Effective dimensions of operand `index`.

    A shape-like tensor (one with non-empty `data`) contributes its data
    instead of its shape, unless it comes from `full`: a fill value is a
    scalar payload, not a shape vector.
    """
    record = operand_record(op, ctx, index)
    if record.data and not op.defined_by(index, OpKind.FULL):
        return list(record.data)
    return list(record.shape)


def operand_vector(op: Op, ctx: AnalysisContext, index: int) -> list[DimExpr]:
    """Contents of an axes/repeat-times style operand (its data, else its shape)."""
    record = operand_record(op, ctx, index)
    return list(record.data) if record.data is not None else list(record.shape)


def literal_ints(op: Op, exprs: Sequence[DimExpr], what: str) -> list[int]:
    values: list[int] = []
    for expr in exprs:
        if not expr.is_const():
            raise UnsupportedDynamicOperand(f"{what} must be literal, got {expr}", op_name=op.name)
        values.append(expr.as_int())
    return values


def normalize_axis(op: Op, axis: int, rank: int) -> int:
    normalized = axis + rank if axis < 0 else axis
    if not 0 <= normalized < max(rank, 1):
        raise InvariantViolation(f"axis {axis} is out of range for rank {rank}", op_name=op.name)
    return normalized
