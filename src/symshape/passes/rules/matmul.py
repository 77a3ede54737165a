from __future__ import annotations

from symshape.errors import InvariantViolation
from symshape.ir.op import Op, OpKind
from symshape.passes.rules.attributes import get_bool
from symshape.passes.rules.common import dim_basis
from symshape.passes.rules.registry import register
from symshape.symbolic.context import AnalysisContext
from symshape.symbolic.dim_expr import Const, DimExpr
from symshape.symbolic.shape_or_data import TensorShapeOrData


@register(OpKind.MATMUL)
def infer_matmul(op: Op, ctx: AnalysisContext) -> None:
    """Batched matmul with optional transposes.

    A rank-1 operand is promoted to rank 2 (leading 1 for x, trailing 1 for
    y) and the promoted axis is dropped again from the result. Batch dims
    come from the higher-rank operand, or are broadcast pairwise when both
    operands have the same rank.
    """
    transpose_x = get_bool(op, "transpose_x")
    transpose_y = get_bool(op, "transpose_y")
    x_dims = dim_basis(op, ctx, 0)
    y_dims = dim_basis(op, ctx, 1)
    if not x_dims or not y_dims:
        raise InvariantViolation("matmul operands must have rank >= 1", op_name=op.name)

    x_promoted = len(x_dims) == 1
    if x_promoted:
        x_dims = [Const(1), *x_dims]
    y_promoted = len(y_dims) == 1
    if y_promoted:
        y_dims = [*y_dims, Const(1)]

    out: list[DimExpr]
    if len(x_dims) > len(y_dims):
        out = x_dims[:-2]
    elif len(x_dims) < len(y_dims):
        out = y_dims[:-2]
    else:
        out = [ctx.builder.broadcast(x, y) for x, y in zip(x_dims[:-2], y_dims[:-2])]

    out_m = x_dims[-1] if transpose_x else x_dims[-2]
    out_n = y_dims[-2] if transpose_y else y_dims[-1]
    if not x_promoted:
        out.append(out_m)
    if not y_promoted:
        out.append(out_n)

    ctx.set_results(op, [TensorShapeOrData(out)])
