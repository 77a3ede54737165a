"""Shape manipulation: reshape, squeeze/unsqueeze, tile, concat/stack, slice, gather_nd."""

from __future__ import annotations

from symshape.errors import InvariantViolation, UnsupportedDynamicOperand
from symshape.ir.op import Op, OpKind
from symshape.passes.rules.attributes import get_int, get_int_list, get_scalar_as_int
from symshape.passes.rules.common import dim_basis, literal_ints, normalize_axis, operand_record, operand_vector
from symshape.passes.rules.registry import register
from symshape.symbolic.context import AnalysisContext
from symshape.symbolic.dim_expr import Const, DimExpr, product
from symshape.symbolic.shape_or_data import ShapeOrData, TensorListShapeOrData, TensorShapeOrData

_WILDCARD = -1


@register(OpKind.RESHAPE)
def infer_reshape(op: Op, ctx: AnalysisContext) -> None:
    """Target extents come from the shape operand's data (or a `shape` attr).

    A single `-1` is resolved as numel(x) / product(other entries). The
    optional second result (xshape) passes the shape operand's record on.
    """
    shape_record: TensorShapeOrData | None = None
    if len(op.inputs) > 1:
        shape_record = operand_record(op, ctx, 1)
        if shape_record.data is None:
            raise UnsupportedDynamicOperand("reshape target shape is not materialized", op_name=op.name)
        out_dims: list[DimExpr] = list(shape_record.data)
    else:
        out_dims = [Const(d) for d in get_int_list(op, "shape")]

    wildcards = [i for i, d in enumerate(out_dims) if d.is_const(_WILDCARD)]
    if len(wildcards) > 1:
        raise InvariantViolation(f"reshape target has {len(wildcards)} entries of -1, at most one allowed", op_name=op.name)
    if wildcards:
        numel = product(operand_record(op, ctx, 0).shape)
        known = product(d for i, d in enumerate(out_dims) if i != wildcards[0])
        out_dims[wildcards[0]] = numel // known

    records: list[ShapeOrData] = [TensorShapeOrData(out_dims)]
    if len(op.outputs) > 1:
        records.append(shape_record if shape_record is not None else TensorShapeOrData([len(out_dims)]))
    ctx.set_results(op, records)


def _axes_operand(op: Op, ctx: AnalysisContext, what: str) -> list[int]:
    if len(op.inputs) > 1:
        return literal_ints(op, operand_vector(op, ctx, 1), what)
    return get_int_list(op, "axes", [])


@register(OpKind.SQUEEZE)
def infer_squeeze(op: Op, ctx: AnalysisContext) -> None:
    in_dims = dim_basis(op, ctx, 0)
    axes = _axes_operand(op, ctx, "squeeze axes")

    should_squeeze = [False] * len(in_dims)
    if not axes:
        # TODO: a symbol that simplifies to 1 is kept; needs solver results.
        should_squeeze = [d.is_const(1) for d in in_dims]
    elif in_dims:
        for axis in axes:
            current = normalize_axis(op, axis, len(in_dims))
            if should_squeeze[current]:
                continue
            dim = in_dims[current]
            if dim.is_const(1):
                should_squeeze[current] = True
            elif not dim.is_const():
                raise UnsupportedDynamicOperand(f"cannot squeeze symbolic axis {axis} ({dim})", op_name=op.name)
            else:
                raise InvariantViolation(f"cannot squeeze axis {axis} of extent {dim}", op_name=op.name)

    out = [d for d, squeeze in zip(in_dims, should_squeeze) if not squeeze]
    ctx.set_results(op, [TensorShapeOrData(out)])


@register(OpKind.UNSQUEEZE)
def infer_unsqueeze(op: Op, ctx: AnalysisContext) -> None:
    x_dims = dim_basis(op, ctx, 0)
    axes = _axes_operand(op, ctx, "unsqueeze axes")

    out_rank = len(x_dims) + len(axes)
    inserted = [False] * out_rank
    cur_rank = len(x_dims)
    for axis in axes:
        cur = axis + cur_rank + 1 if axis < 0 else axis
        if not 0 <= cur <= cur_rank:
            raise InvariantViolation(f"unsqueeze axis {axis} is out of range for rank {cur_rank}", op_name=op.name)
        # Shift already inserted axes at or after `cur` one to the right.
        for i in range(cur_rank, cur - 1, -1):
            if inserted[i]:
                inserted[i + 1] = True
                inserted[i] = False
        inserted[cur] = True
        cur_rank += 1

    it = iter(x_dims)
    out = [Const(1) if is_new else next(it) for is_new in inserted]
    ctx.set_results(op, [TensorShapeOrData(out)])


@register(OpKind.TILE)
def infer_tile(op: Op, ctx: AnalysisContext) -> None:
    x_dims = dim_basis(op, ctx, 0)
    if len(op.inputs) > 1:
        repeat_times = operand_vector(op, ctx, 1)
    else:
        repeat_times = [Const(r) for r in get_int_list(op, "repeat_times", [])]
    if not repeat_times:
        repeat_times = [Const(1)] * len(x_dims)

    diff = len(x_dims) - len(repeat_times)
    if diff > 0:
        repeat_times = [Const(1)] * diff + repeat_times
    elif diff < 0:
        x_dims = [Const(1)] * -diff + x_dims

    out = [x * r for x, r in zip(x_dims, repeat_times)]
    ctx.set_results(op, [TensorShapeOrData(out)])


def _list_operand(op: Op, ctx: AnalysisContext) -> list[TensorShapeOrData]:
    record = ctx.get_shape_or_data(op.operand(0))
    if not isinstance(record, TensorListShapeOrData):
        raise InvariantViolation(f"{op.display_kind} expects a tensor list operand", op_name=op.name)
    items = list(record)
    if not items:
        raise InvariantViolation(f"{op.display_kind} of an empty tensor list", op_name=op.name)
    ranks = {item.rank for item in items}
    if len(ranks) != 1:
        raise InvariantViolation(f"{op.display_kind} inputs disagree on rank: {sorted(ranks)}", op_name=op.name)
    return items


def _concat_axis(op: Op) -> int:
    if len(op.inputs) < 2:
        return get_int(op, "axis")
    axis_op = op.operand(1).producer
    if axis_op is None or axis_op.kind is not OpKind.FULL:
        raise UnsupportedDynamicOperand("concat axis must come from a full op", op_name=op.name)
    return get_scalar_as_int(axis_op, "value")


@register(OpKind.CONCAT)
def infer_concat(op: Op, ctx: AnalysisContext) -> None:
    """Concatenate a tensor list.

    Accepts `concat(combine(xs), full(axis))` and the flat form
    `concat(x0, x1, ...)` with an `axis` attribute.
    """
    if isinstance(ctx.get_shape_or_data(op.operand(0)), TensorListShapeOrData):
        items = _list_operand(op, ctx)
        axis = _concat_axis(op)
    else:
        items = [operand_record(op, ctx, i) for i in range(len(op.inputs))]
        if len({item.rank for item in items}) != 1:
            raise InvariantViolation("concat inputs disagree on rank", op_name=op.name)
        axis = get_int(op, "axis")

    rank = items[0].rank
    axis = normalize_axis(op, axis, rank)

    for j in range(rank):
        if j != axis:
            ctx.builder.cstr_eq_along_axis(items, j)

    out = list(items[0].shape)
    for item in items[1:]:
        out[axis] = out[axis] + item.shape[axis]
    ctx.set_results(op, [TensorShapeOrData(out)])


@register(OpKind.STACK)
def infer_stack(op: Op, ctx: AnalysisContext) -> None:
    items = _list_operand(op, ctx)
    rank = items[0].rank
    axis = get_int(op, "axis")
    axis = axis + rank + 1 if axis < 0 else axis
    if not 0 <= axis <= rank:
        raise InvariantViolation(f"stack axis is out of range for output rank {rank + 1}", op_name=op.name)

    if axis == 0 and all(item.data is not None and len(item.data) == 1 for item in items):
        # A list of materialized scalars stacks into a shape-like vector.
        data = [item.data[0] for item in items]
        ctx.set_results(op, [TensorShapeOrData([len(items)], data)])
        return

    for j in range(rank):
        ctx.builder.cstr_eq_along_axis(items, j)
    out = list(items[0].shape)
    out.insert(axis, Const(len(items)))
    ctx.set_results(op, [TensorShapeOrData(out)])


def _bounds_operand(op: Op, ctx: AnalysisContext, index: int, name: str) -> list[DimExpr]:
    if len(op.inputs) > index:
        record = operand_record(op, ctx, index)
        if record.data is None:
            raise UnsupportedDynamicOperand(f"slice {name} are not materialized", op_name=op.name)
        return list(record.data)
    return [Const(v) for v in get_int_list(op, name)]


@register(OpKind.SLICE)
def infer_slice(op: Op, ctx: AnalysisContext) -> None:
    """Slice along `axes` with literal starts/ends.

    On a shape-like tensor (with data) the data itself is sliced. Otherwise
    each sliced extent is derived from the signs of start/end; the
    `max_int_sentinel` end means "to the end of the axis".
    """
    x = operand_record(op, ctx, 0)
    start_exprs = _bounds_operand(op, ctx, 1, "starts")
    end_exprs = _bounds_operand(op, ctx, 2, "ends")
    starts = literal_ints(op, start_exprs, "slice starts")
    ends = literal_ints(op, end_exprs, "slice ends")
    axes = [normalize_axis(op, a, x.rank) for a in get_int_list(op, "axes")]
    if not (len(axes) == len(starts) == len(ends)):
        raise InvariantViolation(
            f"slice got {len(axes)} axes, {len(starts)} starts and {len(ends)} ends", op_name=op.name
        )

    if x.data is not None:
        if len(axes) != 1:
            raise InvariantViolation("slicing a shape tensor supports a single axis", op_name=op.name)
        out_data = x.data[starts[0]:ends[0]]
        ctx.set_results(op, [TensorShapeOrData([len(out_data)], out_data)])
        return

    out = list(x.shape)
    for axis, start, end, start_expr, end_expr in zip(axes, starts, ends, start_exprs, end_exprs):
        dim = out[axis]
        if end == ctx.config.max_int_sentinel:
            end_expr = dim
        if (start >= 0 and end >= 0) or (start <= 0 and end <= 0):
            out[axis] = end_expr - start_expr
        elif start <= 0 and end >= 0:
            out[axis] = end_expr - start_expr - dim
        elif start >= 0 and end <= 0:
            out[axis] = dim - start_expr + end_expr
    ctx.set_results(op, [TensorShapeOrData(out)])


@register(OpKind.GATHER_ND)
def infer_gather_nd(op: Op, ctx: AnalysisContext) -> None:
    """Result dims are index.shape[:-1] + x.shape[index.shape[-1]:]."""
    x_dims = dim_basis(op, ctx, 0)
    index_dims = dim_basis(op, ctx, 1)
    if not index_dims:
        raise InvariantViolation("gather_nd index must have rank >= 1", op_name=op.name)
    last = index_dims[-1]
    if not last.is_const():
        raise UnsupportedDynamicOperand(f"gather_nd index depth must be literal, got {last}", op_name=op.name)
    ctx.set_results(op, [TensorShapeOrData([*index_dims[:-1], *x_dims[last.as_int():]])])
