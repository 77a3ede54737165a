"""Ops that create values: graph inputs, fills, shape reads, ranges, lists."""

from __future__ import annotations

from symshape.errors import InvariantViolation
from symshape.ir.op import Op, OpKind
from symshape.passes.rules.attributes import get_int_list, get_scalar_as_int
from symshape.passes.rules.common import dim_basis, operand_record
from symshape.passes.rules.registry import register
from symshape.symbolic.context import AnalysisContext
from symshape.symbolic.dim_expr import Const, DimExpr
from symshape.symbolic.shape_or_data import TensorListShapeOrData, TensorShapeOrData


@register(OpKind.DATA)
def infer_data(op: Op, ctx: AnalysisContext) -> None:
    dims: list[DimExpr] = []
    for dim in get_int_list(op, "shape"):
        if dim == ctx.config.dynamic_dim:
            dims.append(ctx.next_symbol())
        else:
            dims.append(Const(dim))
    ctx.set_results(op, [TensorShapeOrData(dims)])


@register(OpKind.FULL)
def infer_full(op: Op, ctx: AnalysisContext) -> None:
    shape = get_int_list(op, "shape")
    # Shape values are kept as int64, whatever the fill dtype.
    value = get_scalar_as_int(op, "value")
    # Only scalar fills materialize their value; larger fills are shape-only.
    data = [value] if shape in ([], [1]) else None
    ctx.set_results(op, [TensorShapeOrData(shape, data)])


@register(OpKind.FULL_INT_ARRAY)
def infer_full_int_array(op: Op, ctx: AnalysisContext) -> None:
    values = get_int_list(op, "value")
    ctx.set_results(op, [TensorShapeOrData([len(values)], values)])


@register(OpKind.SHAPE, OpKind.SHAPE_SR)
def infer_shape(op: Op, ctx: AnalysisContext) -> None:
    shape = operand_record(op, ctx, 0).shape
    ctx.set_results(op, [TensorShapeOrData([len(shape)], shape)])


def _scalar_operand(op: Op, ctx: AnalysisContext, index: int) -> DimExpr:
    record = operand_record(op, ctx, index)
    if record.data:
        return record.data[0]
    if record.shape:
        return record.shape[0]
    raise InvariantViolation(f"operand #{index} of {op.display_kind} carries no value", op_name=op.name)


@register(OpKind.ARANGE)
def infer_arange(op: Op, ctx: AnalysisContext) -> None:
    start = _scalar_operand(op, ctx, 0)
    end = _scalar_operand(op, ctx, 1)
    step = _scalar_operand(op, ctx, 2)
    # TODO: should be ceil((end - start) / step) once DimExpr grows a ceil node.
    ctx.set_results(op, [TensorShapeOrData([(end - start) // step])])


@register(OpKind.EMBEDDING)
def infer_embedding(op: Op, ctx: AnalysisContext) -> None:
    x_dims = dim_basis(op, ctx, 0)
    weight_dims = dim_basis(op, ctx, 1)
    if len(weight_dims) < 2:
        raise InvariantViolation(f"embedding weight must be rank 2, got rank {len(weight_dims)}", op_name=op.name)
    ctx.set_results(op, [TensorShapeOrData([*x_dims, weight_dims[1]])])


@register(OpKind.COMBINE)
def infer_combine(op: Op, ctx: AnalysisContext) -> None:
    items = [operand_record(op, ctx, i) for i in range(len(op.inputs))]
    ctx.set_results(op, [TensorListShapeOrData(items)])
