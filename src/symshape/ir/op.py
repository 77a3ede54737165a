from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
	from .value import Value


class IRValidationError(ValueError):
	pass


class OpKind(str, Enum):
	"""Every operator kind the host graph can carry.

	In-place variants (`add_`, `relu_`, ...) are not separate kinds: they are
	the same kind with `Op.inplace` set.
	"""

	# data producing
	DATA = "data"
	FEED = "feed"
	FULL = "full"
	FULL_INT_ARRAY = "full_int_array"
	FULL_WITH_TENSOR = "full_with_tensor"
	SHAPE = "shape"
	SHAPE_SR = "shape_sr"
	ARANGE = "arange"
	EMBEDDING = "embedding"
	SPARSE_WEIGHT_EMBEDDING = "sparse_weight_embedding"
	COMBINE = "combine"

	# same shape unary
	ABS = "abs"
	CAST = "cast"
	EXP = "exp"
	RELU = "relu"
	RSQRT = "rsqrt"
	SCALE = "scale"
	SCALE_SR = "scale_sr"
	POW = "pow"
	LOG = "log"

	# elementwise binary
	ADD = "add"
	SUBTRACT = "subtract"
	MULTIPLY = "multiply"
	MULTIPLY_SR = "multiply_sr"
	DIVIDE = "divide"
	ELEMENTWISE_POW = "elementwise_pow"
	MAXIMUM = "maximum"
	MINIMUM = "minimum"

	# reductions
	SUM = "sum"
	PROD = "prod"
	MAX = "max"
	MIN = "min"
	MEAN = "mean"
	REDUCE_SUM = "reduce_sum"
	REDUCE_PROD = "reduce_prod"
	REDUCE_MAX = "reduce_max"
	REDUCE_MIN = "reduce_min"

	# shape manipulation
	RESHAPE = "reshape"
	SQUEEZE = "squeeze"
	UNSQUEEZE = "unsqueeze"
	TILE = "tile"
	CONCAT = "concat"
	STACK = "stack"
	SLICE = "slice"
	GATHER_ND = "gather_nd"
	TRANSPOSE = "transpose"
	EXPAND = "expand"
	EXPAND_AS = "expand_as"
	SPLIT = "split"
	TRIL = "tril"

	MATMUL = "matmul"

	# comparisons, logic and misc
	WHERE = "where"
	ASSIGN = "assign"
	GREATER_THAN = "greater_than"
	LESS_THAN = "less_than"
	NOT_EQUAL = "not_equal"
	LOGICAL_AND = "logical_and"
	LOGICAL_NOT = "logical_not"
	BITWISE_AND = "bitwise_and"
	INCREMENT = "increment"
	TOP_P_SAMPLING = "top_p_sampling"


@dataclass(slots=True, eq=False)
class Op:
	"""An operator in the graph.

	`outputs` is filled by `Graph` when the op is appended. An in-place op
	(`add_`, `unsqueeze_`, ...) still gets its own result values, so its
	result may have a different shape than the operand it overwrites.
	"""

	name: str
	kind: OpKind
	inputs: list[Value]
	attrs: dict[str, object] = field(default_factory=dict)
	outputs: list[Value] = field(default_factory=list)
	inplace: bool = False

	@property
	def output(self) -> Value | None:
		return self.outputs[0] if self.outputs else None

	def operand(self, index: int) -> Value:
		if index >= len(self.inputs):
			raise IRValidationError(
				f"{self.kind.value}({self.name}) has {len(self.inputs)} operands, wanted #{index}"
			)
		return self.inputs[index]

	def defined_by(self, index: int, kind: OpKind) -> bool:
		"""Whether operand `index` is produced by an op of `kind`."""
		producer = self.operand(index).producer
		return producer is not None and producer.kind is kind

	@property
	def display_kind(self) -> str:
		return f"{self.kind.value}_" if self.inplace else self.kind.value
