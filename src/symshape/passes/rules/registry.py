"""OpKind -> inference rule table.

The table is closed: rule modules register themselves on import (see
`symshape.passes.rules.__init__`), and kinds in `UNIMPLEMENTED` have no rule
on purpose. Looking up either an unimplemented or an unknown kind raises
`UnimplementedOperator`; nothing falls back to a default shape.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

from symshape.errors import UnimplementedOperator
from symshape.ir.op import Op, OpKind

if TYPE_CHECKING:
    from symshape.symbolic.context import AnalysisContext

Rule = Callable[[Op, "AnalysisContext"], None]

_RULES: dict[OpKind, Rule] = {}

UNIMPLEMENTED: frozenset[OpKind] = frozenset(
    {
        OpKind.TRANSPOSE,
        OpKind.EXPAND,
        OpKind.EXPAND_AS,
        OpKind.WHERE,
        OpKind.ASSIGN,
        OpKind.GREATER_THAN,
        OpKind.LESS_THAN,
        OpKind.NOT_EQUAL,
        OpKind.LOGICAL_AND,
        OpKind.LOGICAL_NOT,
        OpKind.BITWISE_AND,
        OpKind.INCREMENT,
        OpKind.LOG,
        OpKind.SPLIT,
        OpKind.TOP_P_SAMPLING,
        OpKind.TRIL,
        OpKind.FEED,
        OpKind.SPARSE_WEIGHT_EMBEDDING,
    }
)


def register(*kinds: OpKind) -> Callable[[Rule], Rule]:
    """Register `rule` for every kind in `kinds`."""

    def decorator(rule: Rule) -> Rule:
        for kind in kinds:
            if kind in UNIMPLEMENTED:
                raise ValueError(f"{kind.value} is tagged unimplemented and cannot get a rule")
            if kind in _RULES:
                raise ValueError(f"{kind.value} already has rule {_RULES[kind].__name__}")
            _RULES[kind] = rule
        return rule

    return decorator


def lookup(op: Op) -> Rule:
    rule = _RULES.get(op.kind)
    if rule is not None:
        return rule
    if op.kind in UNIMPLEMENTED:
        raise UnimplementedOperator(
            f"{op.display_kind}'s symbolic shape inference is NOT implemented now", op_name=op.name
        )
    raise UnimplementedOperator(f"no symbolic shape rule registered for {op.display_kind}", op_name=op.name)


def registered_kinds() -> frozenset[OpKind]:
    return frozenset(_RULES)
