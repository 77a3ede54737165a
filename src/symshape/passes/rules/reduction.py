"""Reductions: sum/prod/max/min/mean and the attribute-only reduce_* forms."""

from __future__ import annotations

from collections.abc import Sequence

from symshape.errors import UnsupportedDynamicOperand
from symshape.ir.op import Op, OpKind
from symshape.passes.rules.attributes import get_bool, get_int_list
from symshape.passes.rules.common import dim_basis, normalize_axis
from symshape.passes.rules.registry import register
from symshape.symbolic.context import AnalysisContext
from symshape.symbolic.dim_expr import Const, DimExpr
from symshape.symbolic.shape_or_data import TensorShapeOrData

_KEEP_DIM = "keep_dim"
_KEEPDIM = "keepdim"


def reduce_infer_dim(
    op: Op,
    ctx: AnalysisContext,
    axis: Sequence[int],
    keepdim: bool,
    reduce_all: bool,
) -> None:
    """Drop (or keep as 1) every reduced axis of operand 0.

    `reduce_all` is forced when `axis` is empty or covers every dimension.
    Kept axes carry the input expression unchanged, in input order. Axes
    index the effective basis, so a shape tensor is reduced over its data.
    """
    dims: list[DimExpr] = dim_basis(op, ctx, 0)
    rank = len(dims)

    reduced = {normalize_axis(op, a, rank) for a in axis}
    full_dim = all(i in reduced for i in range(rank))
    reduce_all = reduce_all or full_dim or len(axis) == 0

    shape: list[DimExpr] = []
    for i in range(rank):
        if reduce_all or i in reduced:
            if keepdim:
                shape.append(Const(1))
            continue
        shape.append(dims[i])

    ctx.set_results(op, [TensorShapeOrData(shape)])


def _axis_operand(op: Op) -> list[int]:
    """Axes given by a `full_int_array` operand; anything else is dynamic."""
    axis_op = op.operand(1).producer
    if axis_op is None or axis_op.kind is not OpKind.FULL_INT_ARRAY:
        origin = axis_op.kind.value if axis_op is not None else "a graph input"
        raise UnsupportedDynamicOperand(
            f"{op.display_kind}: 'axis' only supports full_int_array's result now, got {origin}",
            op_name=op.name,
        )
    return get_int_list(axis_op, "value")


@register(OpKind.SUM, OpKind.MAX, OpKind.MIN, OpKind.MEAN)
def infer_reduce(op: Op, ctx: AnalysisContext) -> None:
    keepdim = get_bool(op, _KEEPDIM)
    axis = _axis_operand(op) if len(op.inputs) > 1 else get_int_list(op, "axis", [])
    reduce_all = get_bool(op, "reduce_all", False)
    reduce_infer_dim(op, ctx, axis, keepdim, reduce_all)


@register(OpKind.PROD)
def infer_prod(op: Op, ctx: AnalysisContext) -> None:
    keepdim = get_bool(op, _KEEP_DIM)
    reduce_all = get_bool(op, "reduce_all")
    axis = _axis_operand(op) if len(op.inputs) > 1 else get_int_list(op, "axis", [])
    reduce_infer_dim(op, ctx, axis, keepdim, reduce_all)


@register(OpKind.REDUCE_SUM, OpKind.REDUCE_PROD, OpKind.REDUCE_MAX, OpKind.REDUCE_MIN)
def infer_reduce_attr(op: Op, ctx: AnalysisContext) -> None:
    keepdim = get_bool(op, _KEEP_DIM)
    axis = get_int_list(op, "dim")
    reduce_infer_dim(op, ctx, axis, keepdim, False)
