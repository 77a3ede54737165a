"""Constraint store and the builder rules use to emit constraints.

The engine only *records* obligations; a downstream solver decides whether
they hold. Two kinds are recorded:

- `EqualConstraint(lhs, rhs)`: at runtime lhs == rhs.
- `BroadcastConstraint(lhs, rhs, result)`: at runtime lhs == 1, rhs == 1 or
  lhs == rhs, and `result` names the broadcast extent.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from symshape.symbolic.dim_expr import Broadcast, DimExpr, Symbol

if TYPE_CHECKING:
    from symshape.symbolic.context import AnalysisContext
    from symshape.symbolic.shape_or_data import TensorShapeOrData

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class EqualConstraint:
    lhs: DimExpr
    rhs: DimExpr

    def __str__(self) -> str:
        return f"{self.lhs} == {self.rhs}"


@dataclass(frozen=True, slots=True)
class BroadcastConstraint:
    lhs: DimExpr
    rhs: DimExpr
    result: Symbol

    @property
    def expr(self) -> Broadcast:
        return Broadcast(self.lhs, self.rhs)

    def __str__(self) -> str:
        return f"{self.result} := {self.expr}"


@dataclass
class ConstraintStore:
    """Growing, idempotent set of constraints in insertion order."""

    equalities: list[EqualConstraint] = field(default_factory=list)
    broadcasts: dict[Symbol, BroadcastConstraint] = field(default_factory=dict)
    _seen_equalities: set[EqualConstraint] = field(default_factory=set, repr=False)

    def add_equality(self, lhs: DimExpr, rhs: DimExpr) -> bool:
        """Record lhs == rhs; returns False if (lhs, rhs) or (rhs, lhs) is known."""
        cstr = EqualConstraint(lhs, rhs)
        if cstr in self._seen_equalities or EqualConstraint(rhs, lhs) in self._seen_equalities:
            return False
        self._seen_equalities.add(cstr)
        self.equalities.append(cstr)
        return True

    def add_broadcast(self, lhs: DimExpr, rhs: DimExpr, result: Symbol) -> bool:
        if result in self.broadcasts:
            return False
        self.broadcasts[result] = BroadcastConstraint(lhs, rhs, result)
        return True

    def broadcast_for(self, symbol: Symbol) -> BroadcastConstraint | None:
        return self.broadcasts.get(symbol)

    def mark(self) -> tuple[int, int]:
        return len(self.equalities), len(self.broadcasts)

    def truncate(self, mark: tuple[int, int]) -> None:
        """Drop constraints added after `mark`."""
        n_eq, n_bc = mark
        for cstr in self.equalities[n_eq:]:
            self._seen_equalities.discard(cstr)
        del self.equalities[n_eq:]
        for symbol in list(self.broadcasts)[n_bc:]:
            del self.broadcasts[symbol]

    def clear(self) -> None:
        self.equalities.clear()
        self.broadcasts.clear()
        self._seen_equalities.clear()

    def __len__(self) -> int:
        return len(self.equalities) + len(self.broadcasts)

    def __iter__(self) -> Iterator[EqualConstraint | BroadcastConstraint]:
        yield from self.equalities
        yield from self.broadcasts.values()


@dataclass
class DimExprBuilder:
    """Resolves broadcasts and emits constraints into the owning context."""

    context: "AnalysisContext"

    def broadcast(self, lhs: DimExpr, rhs: DimExpr) -> DimExpr:
        """Broadcast two extents, folding the trivial cases.

        Equal extents give that extent, a literal 1 gives the other side;
        otherwise a fresh symbol stands for the result and the obligation is
        registered against it. Never fails.
        """
        if lhs == rhs:
            return lhs
        if lhs.is_const(1):
            return rhs
        if rhs.is_const(1):
            return lhs
        result = self.context.next_symbol()
        self.context.emit_broadcast_constraint(lhs, rhs, result)
        logger.debug("broadcast %s, %s -> %s", lhs, rhs, result)
        return result

    def cstr_eq(self, lhs: DimExpr, rhs: DimExpr) -> None:
        self.context.emit_equality_constraint(lhs, rhs)

    def cstr_eq_along_axis(self, records: Sequence["TensorShapeOrData"], axis: int) -> None:
        """Element 0 and every other element must agree at `axis`."""
        for record in records[1:]:
            self.cstr_eq(records[0].shape[axis], record.shape[axis])
