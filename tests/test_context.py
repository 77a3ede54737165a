"""AnalysisContext, ShapeOrData records and the constraint builder.

Tests cover:
1. Record invariants (data vs shape)
2. Context write policy (first write wins, in-place rewrites)
3. Fresh symbols and reset
4. Constraint store idempotence and rollback
5. Broadcast builder folding and obligations
"""

import pytest

from symshape.config import InferenceConfig
from symshape.errors import InvariantViolation, ValueNotYetInferred
from symshape.ir import Graph
from symshape.symbolic import (
    AnalysisContext,
    Broadcast,
    Const,
    Symbol,
    TensorListShapeOrData,
    TensorShapeOrData,
    format_context,
)


# =============================================================================
# 1. Records
# =============================================================================


class TestShapeOrData:
    def test_ints_are_coerced(self):
        record = TensorShapeOrData([2, Symbol("S0")])
        assert record.shape == (Const(2), Symbol("S0"))
        assert record.data is None
        assert record.rank == 2

    def test_data_requires_matching_extent(self):
        record = TensorShapeOrData([3], [Symbol("S0"), 4, 5])
        assert record.has_data
        with pytest.raises(InvariantViolation):
            TensorShapeOrData([2], [1, 2, 3])

    def test_data_requires_rank_at_most_one(self):
        with pytest.raises(InvariantViolation):
            TensorShapeOrData([1, 1], [7])

    def test_rank_zero_scalar(self):
        assert TensorShapeOrData([], [7]).data == (7,)
        with pytest.raises(InvariantViolation):
            TensorShapeOrData([], [7, 8])

    def test_symbolic_extent_is_not_checked(self):
        record = TensorShapeOrData([Symbol("S0")], [1, 2])
        assert len(record.data) == 2

    def test_records_compare_structurally(self):
        assert TensorShapeOrData([2, 3]) == TensorShapeOrData([Const(2), 3])
        assert TensorShapeOrData([2, 3]) != TensorShapeOrData([3, 2])

    def test_list_record(self):
        items = TensorListShapeOrData([TensorShapeOrData([2]), TensorShapeOrData([3])])
        assert len(items) == 2
        assert items[1].shape == (3,)
        assert items.as_list() is items
        with pytest.raises(InvariantViolation):
            items.as_tensor()


# =============================================================================
# 2. Write policy
# =============================================================================


class TestWritePolicy:
    def _value(self):
        g = Graph(name="ctx")
        return g, g.data("x", (2, 3))

    def test_get_before_set_raises(self):
        _, x = self._value()
        ctx = AnalysisContext()
        with pytest.raises(ValueNotYetInferred):
            ctx.get_shape_or_data(x)

    def test_first_write_wins(self):
        _, x = self._value()
        ctx = AnalysisContext()
        ctx.set_shape_or_data(x, TensorShapeOrData([2, 3]))
        with pytest.raises(InvariantViolation):
            ctx.set_shape_or_data(x, TensorShapeOrData([2, 3]))
        assert ctx.get_shape_or_data(x) == TensorShapeOrData([2, 3])

    def test_inplace_rewrite_must_be_identical(self):
        _, x = self._value()
        ctx = AnalysisContext()
        ctx.set_shape_or_data(x, TensorShapeOrData([2, 3]))
        ctx.set_shape_or_data(x, TensorShapeOrData([2, 3]), inplace=True)
        with pytest.raises(InvariantViolation):
            ctx.set_shape_or_data(x, TensorShapeOrData([4, 3]), inplace=True)

    def test_set_results_is_all_or_nothing(self):
        g = Graph(name="ctx")
        x = g.data("x", (6,))
        out, xshape = g.reshape(x, [2, 3])
        op = g.ops[-1]
        ctx = AnalysisContext()
        ctx.set_shape_or_data(xshape, TensorShapeOrData([2]))

        with pytest.raises(InvariantViolation):
            ctx.set_results(op, [TensorShapeOrData([2, 3]), TensorShapeOrData([2])])
        assert not ctx.has_shape_or_data(out)

    def test_set_results_checks_arity(self):
        g = Graph(name="ctx")
        x = g.data("x", (6,))
        g.relu(x)
        with pytest.raises(InvariantViolation):
            AnalysisContext().set_results(g.ops[-1], [])


# =============================================================================
# 3. Symbols
# =============================================================================


class TestSymbols:
    def test_symbols_are_fresh_and_prefixed(self):
        ctx = AnalysisContext(config=InferenceConfig(symbol_prefix="D"))
        assert [ctx.next_symbol() for _ in range(3)] == [Symbol("D0"), Symbol("D1"), Symbol("D2")]

    def test_reset_restarts_counter(self):
        g = Graph(name="ctx")
        x = g.data("x", (1,))
        ctx = AnalysisContext()
        ctx.next_symbol()
        ctx.set_shape_or_data(x, TensorShapeOrData([1]))
        ctx.emit_equality_constraint(Symbol("a"), Symbol("b"))

        ctx.reset()

        assert ctx.next_symbol() == Symbol("S0")
        assert len(ctx) == 0
        assert len(ctx.constraints) == 0

    def test_contexts_do_not_share_counters(self):
        a = AnalysisContext()
        b = AnalysisContext()
        a.next_symbol()
        assert b.next_symbol() == Symbol("S0")


# =============================================================================
# 4. Constraint store
# =============================================================================


class TestConstraintStore:
    def test_equality_is_idempotent_and_symmetric(self):
        ctx = AnalysisContext()
        a, b = Symbol("a"), Symbol("b")
        ctx.emit_equality_constraint(a, b)
        ctx.emit_equality_constraint(a, b)
        ctx.emit_equality_constraint(b, a)
        assert len(ctx.constraints.equalities) == 1
        assert str(ctx.constraints.equalities[0]) == "a == b"

    def test_rollback_drops_symbols_and_constraints(self):
        ctx = AnalysisContext()
        ctx.emit_equality_constraint(Symbol("a"), Symbol("b"))
        checkpoint = ctx.checkpoint()

        ctx.builder.broadcast(Symbol("x"), Symbol("y"))
        ctx.emit_equality_constraint(Symbol("c"), Symbol("d"))
        ctx.rollback(checkpoint)

        assert len(ctx.constraints.equalities) == 1
        assert not ctx.constraints.broadcasts
        assert ctx.next_symbol() == Symbol("S0")
        # The dropped equality can be added again.
        ctx.emit_equality_constraint(Symbol("c"), Symbol("d"))
        assert len(ctx.constraints.equalities) == 2


# =============================================================================
# 5. Broadcast builder
# =============================================================================


class TestBroadcastBuilder:
    def test_equal_operands_fold(self):
        ctx = AnalysisContext()
        s = Symbol("x")
        assert ctx.builder.broadcast(s, s) is s
        assert len(ctx.constraints) == 0

    @pytest.mark.parametrize("other", [Symbol("x"), Const(5), Symbol("x") * 2])
    def test_literal_one_folds_both_ways(self, other):
        ctx = AnalysisContext()
        assert ctx.builder.broadcast(other, Const(1)) == other
        assert ctx.builder.broadcast(Const(1), other) == other
        assert len(ctx.constraints) == 0

    def test_unresolved_broadcast_registers_obligation(self):
        ctx = AnalysisContext()
        a, b = Symbol("a"), Symbol("b")
        result = ctx.builder.broadcast(a, b)

        assert isinstance(result, Symbol)
        cstr = ctx.constraints.broadcast_for(result)
        assert cstr is not None
        assert cstr.expr == Broadcast(a, b)
        assert str(cstr) == f"{result} := Broadcast(a, b)"

    def test_broadcast_is_commutative_in_meaning(self):
        ctx = AnalysisContext()
        a, b = Symbol("a"), Symbol("b")
        ab = ctx.constraints.broadcast_for(ctx.builder.broadcast(a, b))
        ba = ctx.constraints.broadcast_for(ctx.builder.broadcast(b, a))
        for bindings in ({"a": 1, "b": 4}, {"a": 4, "b": 1}, {"a": 4, "b": 4}):
            assert ab.expr.evaluate(bindings) == ba.expr.evaluate(bindings)

    def test_format_context_lists_records_and_constraints(self):
        g = Graph(name="ctx")
        x = g.data("x", (2,))
        y = g.data("y", (3,))
        ctx = AnalysisContext()
        ctx.set_shape_or_data(x, TensorShapeOrData([2]))
        ctx.emit_equality_constraint(Const(2), Symbol("S9"))

        text = format_context(ctx, [x, y])
        assert "- x: shape=[2]" in text
        assert "- y: <not inferred>" in text
        assert "cstr 2 == S9" in text
