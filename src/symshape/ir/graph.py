from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from .dtypes import DType, float32, int64
from .op import IRValidationError, Op, OpKind
from .value import Value


@dataclass
class Graph:
	"""A simple, explicit graph IR.

	Design choices (on purpose):
	- Ops are appended in creation order, which is a valid
	  definition-before-use order for every pass that walks `graph.ops`.
	- Values know their producer and users.
	- Graph is purely structural; passes attach their results via `attrs`.
	- Attribute payloads that the engine reads as tensors (reduction axes,
	  reshape targets, slice bounds, ...) are materialized as `full_int_array`
	  / `full` ops, like a frontend would emit them.
	"""

	name: str = "graph"
	ops: list[Op] = field(default_factory=list)
	values: list[Value] = field(default_factory=list)
	attrs: dict[str, object] = field(default_factory=dict)
	_name_counters: dict[str, int] = field(default_factory=dict)

	def _fresh_name(self, prefix: str) -> str:
		n = self._name_counters.get(prefix, 0) + 1
		self._name_counters[prefix] = n
		return f"{prefix}{n}"

	def _new_value(self, *, name: str | None, rank: int | None, dtype: DType) -> Value:
		v = Value(graph=self, name=name or self._fresh_name("v"), rank=rank, dtype=dtype)
		self.values.append(v)
		return v

	def append(
		self,
		kind: OpKind,
		inputs: Sequence[Value],
		attrs: dict[str, object] | None = None,
		*,
		name: str | None = None,
		ranks: Sequence[int | None] = (None,),
		dtype: DType | None = None,
		inplace: bool = False,
	) -> Op:
		"""Append an op of any kind and create its result values.

		`ranks` gives one entry per result. An in-place op gets fresh result
		values like any other op; `inplace` only marks it as the `_` variant.
		"""
		for v in inputs:
			if v.graph is not self:
				raise IRValidationError(f"{v.name} belongs to graph {v.graph.name!r}, not {self.name!r}")

		if inplace and not inputs:
			raise IRValidationError(f"in-place {kind.value} needs an operand to write to")

		op = Op(
			name=name or self._fresh_name(kind.value),
			kind=kind,
			inputs=list(inputs),
			attrs=dict(attrs or {}),
			inplace=inplace,
		)
		for v in op.inputs:
			v.add_user(op)

		out_dtype = dtype or (inputs[0].dtype if inputs else float32)
		for rank in ranks:
			out = self._new_value(name=None, rank=rank, dtype=out_dtype)
			out.producer = op
			op.outputs.append(out)

		self.ops.append(op)
		return op

	def _one(self, kind: OpKind, inputs: Sequence[Value], attrs=None, *, rank=None, dtype=None, name=None, inplace=False) -> Value:
		op = self.append(kind, inputs, attrs, name=name, ranks=(rank,), dtype=dtype, inplace=inplace)
		return op.outputs[0]

	def _int_array(self, values: Sequence[int] | Value) -> Value:
		if isinstance(values, Value):
			return values
		return self.full_int_array(values)

	# -- data producing ---------------------------------------------------

	def data(self, name: str, shape: Sequence[int], dtype: DType = float32) -> Value:
		"""Graph input; `-1` entries become fresh symbols during inference."""
		op = self.append(OpKind.DATA, [], {"shape": list(shape), "name": name}, name=name, ranks=(len(shape),), dtype=dtype)
		out = op.outputs[0]
		out.name = name
		return out

	def full(self, shape: Sequence[int], value: float | int, dtype: DType = float32, *, name: str | None = None) -> Value:
		return self._one(OpKind.FULL, [], {"shape": list(shape), "value": value}, rank=len(shape), dtype=dtype, name=name)

	def full_int_array(self, values: Sequence[int], *, name: str | None = None) -> Value:
		return self._one(OpKind.FULL_INT_ARRAY, [], {"value": list(values)}, rank=1, dtype=int64, name=name)

	def full_with_tensor(self, x: Value, value: float | int, *, name: str | None = None) -> Value:
		return self._one(OpKind.FULL_WITH_TENSOR, [x], {"value": value}, rank=x.rank, name=name)

	def shape(self, x: Value, *, name: str | None = None) -> Value:
		return self._one(OpKind.SHAPE, [x], rank=1, dtype=int64, name=name)

	def arange(self, start: Value, end: Value, step: Value, *, name: str | None = None) -> Value:
		return self._one(OpKind.ARANGE, [start, end, step], rank=1, dtype=start.dtype, name=name)

	def embedding(self, x: Value, weight: Value, *, name: str | None = None) -> Value:
		rank = None if x.rank is None else x.rank + 1
		return self._one(OpKind.EMBEDDING, [x, weight], rank=rank, dtype=weight.dtype, name=name)

	def combine(self, values: Sequence[Value], *, name: str | None = None) -> Value:
		return self._one(OpKind.COMBINE, values, rank=None, name=name)

	# -- elementwise ------------------------------------------------------

	def unary(self, kind: OpKind, x: Value, attrs: dict[str, object] | None = None, *, name: str | None = None, inplace: bool = False) -> Value:
		return self._one(kind, [x], attrs, rank=x.rank, name=name, inplace=inplace)

	def relu(self, x: Value, *, name: str | None = None) -> Value:
		return self.unary(OpKind.RELU, x, name=name)

	def relu_(self, x: Value, *, name: str | None = None) -> Value:
		return self.unary(OpKind.RELU, x, name=name, inplace=True)

	def cast(self, x: Value, dtype: DType, *, name: str | None = None) -> Value:
		return self._one(OpKind.CAST, [x], {"dtype": dtype.name}, rank=x.rank, dtype=dtype, name=name)

	def scale(self, x: Value, scale: float = 1.0, bias: float = 0.0, *, name: str | None = None) -> Value:
		return self.unary(OpKind.SCALE, x, {"scale": scale, "bias": bias}, name=name)

	def binary(self, kind: OpKind, x: Value, y: Value, *, name: str | None = None, inplace: bool = False) -> Value:
		rank = None if x.rank is None or y.rank is None else max(x.rank, y.rank)
		return self._one(kind, [x, y], rank=rank, name=name, inplace=inplace)

	def add(self, x: Value, y: Value, *, name: str | None = None) -> Value:
		return self.binary(OpKind.ADD, x, y, name=name)

	def add_(self, x: Value, y: Value, *, name: str | None = None) -> Value:
		return self.binary(OpKind.ADD, x, y, name=name, inplace=True)

	def subtract(self, x: Value, y: Value, *, name: str | None = None) -> Value:
		return self.binary(OpKind.SUBTRACT, x, y, name=name)

	def multiply(self, x: Value, y: Value, *, name: str | None = None) -> Value:
		return self.binary(OpKind.MULTIPLY, x, y, name=name)

	def divide(self, x: Value, y: Value, *, name: str | None = None) -> Value:
		return self.binary(OpKind.DIVIDE, x, y, name=name)

	# -- reductions -------------------------------------------------------

	def reduce(
		self,
		kind: OpKind,
		x: Value,
		axis: Sequence[int] = (),
		*,
		keepdim: bool = False,
		reduce_all: bool = False,
		name: str | None = None,
	) -> Value:
		attrs: dict[str, object]
		if kind is OpKind.PROD:
			attrs = {"keep_dim": keepdim, "reduce_all": reduce_all}
		else:
			attrs = {"keepdim": keepdim}
		axis_value = self.full_int_array(axis)
		return self._one(kind, [x, axis_value], attrs, rank=_reduced_rank(x.rank, axis, keepdim), name=name)

	def sum(self, x: Value, axis: Sequence[int] = (), *, keepdim: bool = False, name: str | None = None) -> Value:
		return self.reduce(OpKind.SUM, x, axis, keepdim=keepdim, name=name)

	def max(self, x: Value, axis: Sequence[int] = (), *, keepdim: bool = False, name: str | None = None) -> Value:
		return self.reduce(OpKind.MAX, x, axis, keepdim=keepdim, name=name)

	# -- shape manipulation -----------------------------------------------

	def reshape(
		self,
		x: Value,
		shape: Sequence[int] | Value,
		*,
		rank: int | None = None,
		name: str | None = None,
		inplace: bool = False,
	) -> tuple[Value, Value]:
		"""Reshape `x`; returns `(out, xshape)`."""
		if rank is None and not isinstance(shape, Value):
			rank = len(shape)
		shape_value = self._int_array(shape)
		op = self.append(OpKind.RESHAPE, [x, shape_value], name=name, ranks=(rank, 1), inplace=inplace)
		return op.outputs[0], op.outputs[1]

	def squeeze(self, x: Value, axes: Sequence[int] = (), *, name: str | None = None, inplace: bool = False) -> Value:
		rank = None if (x.rank is None or not axes) else x.rank - len(set(axes))
		return self._one(OpKind.SQUEEZE, [x, self.full_int_array(axes)], rank=rank, name=name, inplace=inplace)

	def unsqueeze(self, x: Value, axes: Sequence[int], *, name: str | None = None, inplace: bool = False) -> Value:
		rank = None if x.rank is None else x.rank + len(axes)
		return self._one(OpKind.UNSQUEEZE, [x, self.full_int_array(axes)], rank=rank, name=name, inplace=inplace)

	def tile(self, x: Value, repeat_times: Sequence[int] | Value, *, name: str | None = None) -> Value:
		rank = None
		if x.rank is not None and not isinstance(repeat_times, Value):
			rank = max(x.rank, len(repeat_times))
		return self._one(OpKind.TILE, [x, self._int_array(repeat_times)], rank=rank, name=name)

	def concat(self, xs: Sequence[Value], axis: int = 0, *, name: str | None = None) -> Value:
		if not xs:
			raise IRValidationError("concat needs at least one input")
		axis_value = self.full([1], axis, dtype=int64)
		return self._one(OpKind.CONCAT, [self.combine(xs), axis_value], rank=xs[0].rank, dtype=xs[0].dtype, name=name)

	def stack(self, xs: Sequence[Value], axis: int = 0, *, name: str | None = None) -> Value:
		if not xs:
			raise IRValidationError("stack needs at least one input")
		rank = None if xs[0].rank is None else xs[0].rank + 1
		return self._one(OpKind.STACK, [self.combine(xs)], {"axis": axis}, rank=rank, dtype=xs[0].dtype, name=name)

	def slice(
		self,
		x: Value,
		axes: Sequence[int],
		starts: Sequence[int] | Value,
		ends: Sequence[int] | Value,
		*,
		name: str | None = None,
	) -> Value:
		inputs = [x, self._int_array(starts), self._int_array(ends)]
		return self._one(OpKind.SLICE, inputs, {"axes": list(axes)}, rank=x.rank, name=name)

	def gather_nd(self, x: Value, index: Value, *, name: str | None = None) -> Value:
		return self._one(OpKind.GATHER_ND, [x, index], rank=None, dtype=x.dtype, name=name)

	def matmul(
		self,
		x: Value,
		y: Value,
		*,
		transpose_x: bool = False,
		transpose_y: bool = False,
		name: str | None = None,
	) -> Value:
		attrs = {"transpose_x": transpose_x, "transpose_y": transpose_y}
		return self._one(OpKind.MATMUL, [x, y], attrs, rank=_matmul_rank(x.rank, y.rank), name=name)

	def summary(self) -> str:
		lines: list[str] = [f"Graph(name={self.name!r}, ops={len(self.ops)}, values={len(self.values)})"]
		for op in self.ops:
			ins = ", ".join(v.name for v in op.inputs)
			outs = ", ".join(v.name for v in op.outputs)
			lines.append(f"- {op.name}: {op.display_kind}({ins}) -> {outs}")
		return "\n".join(lines)


def _reduced_rank(rank: int | None, axis: Sequence[int], keepdim: bool) -> int | None:
	if rank is None or keepdim:
		return rank
	normalized = {a + rank if a < 0 else a for a in axis}
	if not axis or len(normalized) >= rank:
		return 0
	return rank - len(normalized)


def _matmul_rank(x_rank: int | None, y_rank: int | None) -> int | None:
	if x_rank is None or y_rank is None:
		return None
	rank = max(x_rank, y_rank, 2)
	return rank - (x_rank == 1) - (y_rank == 1)
