from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Union

from symshape.errors import InvariantViolation
from symshape.symbolic.dim_expr import DimExpr, as_dim_exprs


@dataclass(frozen=True, slots=True)
class TensorShapeOrData:
    """Inferred shape of one tensor plus, optionally, its symbolic contents.

    `data` is only present when the tensor materializes a short vector of
    integers that is itself shape-like (the output of `shape`, a
    `full_int_array`, a scalar `full`, ...).

    Invariants:
        - with `data`, the shape has rank 0 (one scalar entry) or rank 1;
        - a rank-1 literal extent equals `len(data)`.
    """

    shape: tuple[DimExpr, ...]
    data: tuple[DimExpr, ...] | None = None

    def __init__(self, shape: Iterable[DimExpr | int], data: Iterable[DimExpr | int] | None = None) -> None:
        object.__setattr__(self, "shape", as_dim_exprs(shape))
        object.__setattr__(self, "data", None if data is None else as_dim_exprs(data))
        self._check()

    def _check(self) -> None:
        if self.data is None:
            return
        if len(self.shape) > 1:
            raise InvariantViolation(f"data-carrying record must have rank <= 1, got shape {format_dims(self.shape)}")
        if not self.shape:
            if len(self.data) != 1:
                raise InvariantViolation(f"rank-0 record must carry one data entry, got {len(self.data)}")
            return
        extent = self.shape[0]
        if extent.is_const() and extent.as_int() != len(self.data):
            raise InvariantViolation(
                f"shape {format_dims(self.shape)} disagrees with {len(self.data)} data entries"
            )

    @property
    def rank(self) -> int:
        return len(self.shape)

    @property
    def has_data(self) -> bool:
        return self.data is not None

    def as_tensor(self) -> TensorShapeOrData:
        return self

    def as_list(self) -> TensorListShapeOrData:
        raise InvariantViolation(f"expected a tensor list record, got tensor {self}")

    def __str__(self) -> str:
        if self.data is None:
            return f"shape={format_dims(self.shape)}"
        return f"shape={format_dims(self.shape)}, data={format_dims(self.data)}"


@dataclass(frozen=True, slots=True)
class TensorListShapeOrData:
    """Records of a variadic tensor list, one per element, in order."""

    items: tuple[TensorShapeOrData, ...]

    def __init__(self, items: Iterable[TensorShapeOrData]) -> None:
        object.__setattr__(self, "items", tuple(items))

    def __len__(self) -> int:
        return len(self.items)

    def __getitem__(self, index: int) -> TensorShapeOrData:
        return self.items[index]

    def __iter__(self):
        return iter(self.items)

    def as_tensor(self) -> TensorShapeOrData:
        raise InvariantViolation(f"expected a tensor record, got a list of {len(self.items)}")

    def as_list(self) -> TensorListShapeOrData:
        return self

    def __str__(self) -> str:
        return "[" + "; ".join(str(item) for item in self.items) + "]"


ShapeOrData = Union[TensorShapeOrData, TensorListShapeOrData]


def format_dims(dims: Sequence[DimExpr]) -> str:
    return "[" + ", ".join(str(d) for d in dims) + "]"
