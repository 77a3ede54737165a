from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class DType:
	"""Element dtype of IR values.

	Shape inference never looks at it, except that shape-carrying tensors
	(`shape`, `full_int_array`, ...) are produced as integers.
	"""

	name: str
	itemsize: int

	def __str__(self) -> str:  # pragma: no cover
		return self.name


float32 = DType("float32", 4)
float16 = DType("float16", 2)
int32 = DType("int32", 4)
int64 = DType("int64", 8)
bool_ = DType("bool", 1)
