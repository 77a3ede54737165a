"""Same-shape unary ops and broadcasting binary ops."""

from __future__ import annotations

from symshape.ir.op import Op, OpKind
from symshape.passes.rules.common import dim_basis
from symshape.passes.rules.registry import register
from symshape.symbolic.context import AnalysisContext
from symshape.symbolic.dim_expr import Const
from symshape.symbolic.shape_or_data import TensorShapeOrData


@register(
    OpKind.ABS,
    OpKind.CAST,
    OpKind.EXP,
    OpKind.RELU,
    OpKind.RSQRT,
    OpKind.SCALE,
    OpKind.SCALE_SR,
    OpKind.POW,
    OpKind.FULL_WITH_TENSOR,
)
def infer_same_operands_and_result(op: Op, ctx: AnalysisContext) -> None:
    ctx.set_results(op, [ctx.get_shape_or_data(op.operand(0))])


@register(
    OpKind.ADD,
    OpKind.SUBTRACT,
    OpKind.MULTIPLY,
    OpKind.MULTIPLY_SR,
    OpKind.DIVIDE,
    OpKind.ELEMENTWISE_POW,
    OpKind.MAXIMUM,
    OpKind.MINIMUM,
)
def infer_elementwise_binary(op: Op, ctx: AnalysisContext) -> None:
    x_dims = dim_basis(op, ctx, 0)
    y_dims = dim_basis(op, ctx, 1)

    diff = len(x_dims) - len(y_dims)
    if diff > 0:
        y_dims = [Const(1)] * diff + y_dims
    elif diff < 0:
        x_dims = [Const(1)] * -diff + x_dims

    shape = [ctx.builder.broadcast(x, y) for x, y in zip(x_dims, y_dims)]
    # Shape only: data-level folding of shape arithmetic is not done.
    ctx.set_results(op, [TensorShapeOrData(shape)])
