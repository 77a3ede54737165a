"""Symbolic integer expressions for tensor extents.

A `DimExpr` is immutable and compared structurally, so it can be shared
between records and used as a dict/set key. Construction goes through the
operators (`+ - * //`, with `/` as an alias of `//`) or `make_add`/... which
fold the cheap cases:

- constant op constant folds numerically (division truncates toward zero),
- `x + 0`, `x - 0`, `x * 1`, `x // 1` fold to `x`, `x * 0` folds to `0`,
- `x - x` folds to `0` when both sides are structurally equal,
- `x - (-c)` becomes `x + c` and `(a + b) - a` folds to `b`.

Nothing else is simplified: `(S0 * 2) // 2` stays as written. There is no
floor/ceil; a strided range keeps the truncating `(end - start) // step`.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from numbers import Integral


class DimExpr:
    """Base class of all dimension expressions."""

    __slots__ = ()

    @staticmethod
    def coerce(value: "DimExpr | int") -> "DimExpr":
        if isinstance(value, DimExpr):
            return value
        if isinstance(value, Integral) and not isinstance(value, bool):
            return Const(int(value))
        raise TypeError(f"cannot use {value!r} ({type(value).__name__}) as a dimension expression")

    def is_const(self, value: int | None = None) -> bool:
        return False

    def as_int(self) -> int:
        raise TypeError(f"{self} is not a literal dimension")

    def free_symbols(self) -> frozenset[str]:
        return frozenset()

    def evaluate(self, bindings: Mapping[str, int]) -> int | None:
        """Substitute concrete extents; `None` if a symbol is unbound."""
        raise NotImplementedError

    def equals(self, other: "DimExpr | int") -> bool:
        return self == DimExpr.coerce(other)

    def __add__(self, other: "DimExpr | int") -> "DimExpr":
        return make_add(self, DimExpr.coerce(other))

    def __radd__(self, other: "DimExpr | int") -> "DimExpr":
        return make_add(DimExpr.coerce(other), self)

    def __sub__(self, other: "DimExpr | int") -> "DimExpr":
        return make_sub(self, DimExpr.coerce(other))

    def __rsub__(self, other: "DimExpr | int") -> "DimExpr":
        return make_sub(DimExpr.coerce(other), self)

    def __mul__(self, other: "DimExpr | int") -> "DimExpr":
        return make_mul(self, DimExpr.coerce(other))

    def __rmul__(self, other: "DimExpr | int") -> "DimExpr":
        return make_mul(DimExpr.coerce(other), self)

    def __floordiv__(self, other: "DimExpr | int") -> "DimExpr":
        return make_div(self, DimExpr.coerce(other))

    def __rfloordiv__(self, other: "DimExpr | int") -> "DimExpr":
        return make_div(DimExpr.coerce(other), self)

    # Extents only divide as integers, so `/` is the same truncating division.
    __truediv__ = __floordiv__
    __rtruediv__ = __rfloordiv__


@dataclass(frozen=True, slots=True, eq=False)
class Const(DimExpr):
    """Literal extent. Compares equal to the plain int of the same value."""

    value: int

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, Integral):
            raise TypeError(f"dimension literal must be an int, got {self.value!r}")
        object.__setattr__(self, "value", int(self.value))

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Const):
            return self.value == other.value
        if isinstance(other, Integral) and not isinstance(other, bool):
            return self.value == other
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.value)

    def is_const(self, value: int | None = None) -> bool:
        return value is None or self.value == value

    def as_int(self) -> int:
        return self.value

    def evaluate(self, bindings: Mapping[str, int]) -> int | None:
        return self.value

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True, slots=True)
class Symbol(DimExpr):
    """Extent unknown until runtime; identity is the name."""

    name: str

    def free_symbols(self) -> frozenset[str]:
        return frozenset({self.name})

    def evaluate(self, bindings: Mapping[str, int]) -> int | None:
        return bindings.get(self.name)

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True, slots=True)
class _Binary(DimExpr):
    lhs: DimExpr
    rhs: DimExpr

    operator = "?"

    def free_symbols(self) -> frozenset[str]:
        return self.lhs.free_symbols() | self.rhs.free_symbols()

    def evaluate(self, bindings: Mapping[str, int]) -> int | None:
        lhs = self.lhs.evaluate(bindings)
        rhs = self.rhs.evaluate(bindings)
        if lhs is None or rhs is None:
            return None
        return self._apply(lhs, rhs)

    def _apply(self, lhs: int, rhs: int) -> int:
        raise NotImplementedError

    def __str__(self) -> str:
        return f"({self.lhs} {self.operator} {self.rhs})"


@dataclass(frozen=True, slots=True)
class Add(_Binary):
    operator = "+"

    def _apply(self, lhs: int, rhs: int) -> int:
        return lhs + rhs


@dataclass(frozen=True, slots=True)
class Sub(_Binary):
    operator = "-"

    def _apply(self, lhs: int, rhs: int) -> int:
        return lhs - rhs


@dataclass(frozen=True, slots=True)
class Mul(_Binary):
    operator = "*"

    def _apply(self, lhs: int, rhs: int) -> int:
        return lhs * rhs


@dataclass(frozen=True, slots=True)
class Div(_Binary):
    operator = "/"

    def _apply(self, lhs: int, rhs: int) -> int:
        return trunc_div(lhs, rhs)


@dataclass(frozen=True, slots=True)
class Broadcast(_Binary):
    """Unresolved obligation: at runtime lhs == 1, rhs == 1 or lhs == rhs."""

    def evaluate(self, bindings: Mapping[str, int]) -> int | None:
        lhs = self.lhs.evaluate(bindings)
        rhs = self.rhs.evaluate(bindings)
        if lhs is None or rhs is None:
            return None
        if lhs != rhs and lhs != 1 and rhs != 1:
            raise ValueError(f"{self} does not broadcast with lhs={lhs}, rhs={rhs}")
        return max(lhs, rhs)

    def __str__(self) -> str:
        return f"Broadcast({self.lhs}, {self.rhs})"


def trunc_div(lhs: int, rhs: int) -> int:
    q = abs(lhs) // abs(rhs)
    return q if (lhs >= 0) == (rhs >= 0) else -q


def make_add(lhs: DimExpr, rhs: DimExpr) -> DimExpr:
    if isinstance(lhs, Const) and isinstance(rhs, Const):
        return Const(lhs.value + rhs.value)
    if lhs.is_const(0):
        return rhs
    if rhs.is_const(0):
        return lhs
    return Add(lhs, rhs)


def make_sub(lhs: DimExpr, rhs: DimExpr) -> DimExpr:
    if isinstance(lhs, Const) and isinstance(rhs, Const):
        return Const(lhs.value - rhs.value)
    if rhs.is_const(0):
        return lhs
    if lhs == rhs:
        return Const(0)
    if isinstance(rhs, Const) and rhs.value < 0:
        return make_add(lhs, Const(-rhs.value))
    if isinstance(lhs, Add):
        # (a + b) - a -> b, (a + b) - b -> a
        if lhs.lhs == rhs:
            return lhs.rhs
        if lhs.rhs == rhs:
            return lhs.lhs
    return Sub(lhs, rhs)


def make_mul(lhs: DimExpr, rhs: DimExpr) -> DimExpr:
    if isinstance(lhs, Const) and isinstance(rhs, Const):
        return Const(lhs.value * rhs.value)
    if lhs.is_const(1):
        return rhs
    if rhs.is_const(1):
        return lhs
    if lhs.is_const(0) or rhs.is_const(0):
        return Const(0)
    return Mul(lhs, rhs)


def make_div(lhs: DimExpr, rhs: DimExpr) -> DimExpr:
    if isinstance(lhs, Const) and isinstance(rhs, Const) and rhs.value != 0:
        return Const(trunc_div(lhs.value, rhs.value))
    if rhs.is_const(1):
        return lhs
    return Div(lhs, rhs)


def product(exprs, start: DimExpr | int = 1) -> DimExpr:
    """Fold `*` over `exprs`."""
    result = DimExpr.coerce(start)
    for expr in exprs:
        result = result * expr
    return result


def as_dim_exprs(values) -> tuple[DimExpr, ...]:
    return tuple(DimExpr.coerce(v) for v in values)
