"""Tests for the condition tree."""

import dataclasses
import logging

import pytest

from condbuilder.condition import Condition
from condbuilder.exceptions import ContractViolationError, SlotIndexError, ValidationError
from condbuilder.expression import Expression
from condbuilder.operators import JoinOperator, Operator
from condbuilder.pipeline.context import ExpressionContext
from condbuilder.pipeline.hook import HookSet

E2E_TEXT = "a=b or c!=d or (e<f and g=h or (i~j and k!~l))"


def build_e2e() -> Condition:
    c = Condition()
    c.and_("a", Operator.EQ, "b")
    c.or_("c", Operator.NEQ, "d")
    c.or_(
        Condition()
        .and_("e", Operator.LT, "f")
        .and_("g", Operator.EQ, "h")
        .or_(Condition().and_("i", Operator.MATCH, "j").and_("k", Operator.NMATCH, "l"))
    )
    return c


def joins(condition: Condition) -> list[str]:
    return [record["joinOperator"] for record in condition.to_record()]


class TestRetroactiveOperator:
    """Test that appending rewrites the previous slot's join operator."""

    def test_first_append_uses_own_operator(self) -> None:
        assert joins(Condition().and_("a", "eq", 1)) == ["and"]
        assert joins(Condition().or_("a", "eq", 1)) == ["or"]

    def test_append_overwrites_previous(self) -> None:
        c = Condition().and_("a", "eq", 1)
        c.or_("b", "eq", 2)
        assert joins(c) == ["or", "or"]

        c.and_("c", "eq", 3)
        assert joins(c) == ["or", "and", "and"]

    def test_nested_append_overwrites_previous(self) -> None:
        c = Condition().and_("a", "eq", 1).or_(Condition().and_("b", "eq", 2))
        assert joins(c) == ["or", "or"]
        # Nested slots are untouched by the parent
        assert joins(c.slots[1].payload) == ["and"]

    def test_slot_view(self) -> None:
        c = Condition().and_("a", "eq", 1).or_("b", "eq", 2)
        slots = c.slots
        assert [slot.join_operator for slot in slots] == [JoinOperator.OR, JoinOperator.OR]
        assert isinstance(slots[0].payload, Expression)
        assert not slots[0].is_condition
        assert len(c) == 2
        assert list(c) == list(slots)


class TestRender:
    """Test textual rendering of trees."""

    def test_empty(self) -> None:
        c = Condition()
        assert c.render() == ""
        assert str(c) == ""
        assert c.is_empty

    def test_flat_chain(self) -> None:
        c = Condition().and_("a", "eq", "b")
        assert str(c) == "a=b"

        c.or_("c", "neq", "d")
        assert str(c) == "a=b or c!=d"

    def test_no_precedence_grouping(self) -> None:
        """Test a and b or c stays a flat chain."""
        c = Condition().and_("a", "eq", 1).and_("b", "eq", 2).or_("c", "eq", 3)
        assert str(c) == "a=1 and b=2 or c=3"

    def test_single_leaf_subtree_parenthesized(self) -> None:
        c = Condition().and_(Condition().and_("a", "eq", "b"))
        assert str(c) == "(a=b)"

    def test_empty_subtree_parenthesized(self) -> None:
        c = Condition().and_("a", "eq", "b").and_(Condition())
        assert str(c) == "a=b and ()"

    def test_end_to_end(self) -> None:
        assert build_e2e().render() == E2E_TEXT

    def test_render_is_repeatable(self) -> None:
        c = build_e2e()
        assert c.render() == c.render()

    def test_join_tokens_not_rendered_by_operator_hook(self) -> None:
        c = Condition().and_("a", "eq", 1).or_("b", "eq", 2)
        rendered = c.render(HookSet(render_operator=lambda ctx: f" {ctx.operator} "))
        assert rendered == "a eq 1 or b eq 2"

    def test_overrides_forwarded_to_nested(self) -> None:
        c = Condition().and_("a", "eq", 1).or_(Condition().and_("b", "eq", 2))
        rendered = c.render({"render_key": lambda ctx: ctx.key.upper()})
        assert rendered == "A=1 or (B=2)"

    def test_repr(self) -> None:
        assert repr(Condition().and_("a", "eq", 1)) == "Condition('a=1')"


class TestRecord:
    """Test the record form."""

    def test_empty(self) -> None:
        assert Condition().to_record() == []

    def test_flat(self) -> None:
        c = Condition().and_("a", "eq", "b").or_("c", "neq", "d")
        assert c.to_record() == [
            {"joinOperator": "or", "expression": {"key": "a", "operator": "eq", "value": "b"}},
            {"joinOperator": "or", "expression": {"key": "c", "operator": "neq", "value": "d"}},
        ]

    def test_nested(self) -> None:
        c = Condition().and_("a", "eq", 1).and_(Condition().and_("b", "lt", 2).or_("c", "gt", 3))
        assert c.to_record() == [
            {"joinOperator": "and", "expression": {"key": "a", "operator": "eq", "value": 1}},
            {
                "joinOperator": "and",
                "condition": [
                    {"joinOperator": "or", "expression": {"key": "b", "operator": "lt", "value": 2}},
                    {"joinOperator": "or", "expression": {"key": "c", "operator": "gt", "value": 3}},
                ],
            },
        ]

    def test_stable_and_detached(self) -> None:
        c = build_e2e()
        first = c.to_record()
        second = c.to_record()
        assert first == second
        assert first is not second

        first[0]["expression"]["key"] = "changed"
        first.append({"joinOperator": "and"})
        assert c.to_record() == second

    def test_equality(self) -> None:
        assert build_e2e() == build_e2e()
        assert Condition().and_("a", "eq", 1) != Condition().or_("a", "eq", 1)


class TestContract:
    """Test rejection of unusable builder calls."""

    def test_missing_operator(self) -> None:
        with pytest.raises(ContractViolationError):
            Condition().and_("a")

    def test_missing_value(self) -> None:
        with pytest.raises(ContractViolationError):
            Condition().or_("a", "eq")

    def test_none_value_allowed(self) -> None:
        c = Condition().and_("a", Operator.IS, None)
        assert c.to_record()[0]["expression"]["value"] is None

    def test_subtree_with_extra_args(self) -> None:
        with pytest.raises(ContractViolationError):
            Condition().and_(Condition(), "eq", 1)

    def test_bad_first_argument(self) -> None:
        with pytest.raises(ContractViolationError):
            Condition().and_(42, "eq", 1)  # type: ignore[arg-type]

    def test_bad_operator_type(self) -> None:
        with pytest.raises(ContractViolationError):
            Condition().and_("a", 42, 1)  # type: ignore[arg-type]

    def test_contract_violation_is_type_error(self) -> None:
        with pytest.raises(TypeError):
            Condition().and_("a")

    def test_self_nesting(self) -> None:
        c = Condition().and_("a", "eq", 1)
        with pytest.raises(ContractViolationError):
            c.and_(c)

    def test_cycle_nesting(self) -> None:
        outer = Condition()
        inner = Condition()
        outer.and_(inner)
        with pytest.raises(ContractViolationError):
            inner.and_(outer)

    def test_failed_append_leaves_tree_untouched(self) -> None:
        c = Condition().and_("a", "eq", 1)
        with pytest.raises(ContractViolationError):
            c.or_("b")
        assert joins(c) == ["and"]
        assert len(c) == 1


class TestSetOperator:
    """Test direct slot operator assignment."""

    def test_set_operator(self) -> None:
        c = Condition().and_("a", "eq", 1).and_("b", "eq", 2)
        assert c.set_operator(0, "or") is c
        assert str(c) == "a=1 or b=2"

        c.set_operator(1, JoinOperator.OR)
        assert joins(c) == ["or", "or"]
        # Trailing operator is never rendered
        assert str(c) == "a=1 or b=2"

    @pytest.mark.parametrize("index", [2, -1, 10])
    def test_missing_index(self, index: int) -> None:
        c = Condition().and_("a", "eq", 1).and_("b", "eq", 2)
        with pytest.raises(SlotIndexError, match=f"Index '{index}' not found"):
            c.set_operator(index, "or")

    def test_missing_index_is_index_error(self) -> None:
        with pytest.raises(IndexError):
            Condition().set_operator(0, "and")

    def test_unknown_join_operator(self) -> None:
        c = Condition().and_("a", "eq", 1)
        with pytest.raises(ContractViolationError):
            c.set_operator(0, "xor")

    def test_slots_are_frozen(self) -> None:
        c = Condition().and_("a", "eq", 1).and_("b", "eq", 2)
        with pytest.raises(dataclasses.FrozenInstanceError):
            c.slots[0].join_operator = "xor"  # type: ignore[misc]
        assert joins(c) == ["and", "and"]

    def test_slots_snapshot(self) -> None:
        c = Condition().and_("a", "eq", 1)
        before = c.slots
        c.or_("b", "eq", 2)
        assert before[0].join_operator is JoinOperator.AND
        assert c.slots[0].join_operator is JoinOperator.OR
        assert c.slots[0].payload is before[0].payload


class TestHooks:
    """Test hooks on trees and their rebinding on attach."""

    @pytest.fixture
    def whitelist_hooks(self) -> HookSet:
        def validate(ctx: ExpressionContext) -> None:
            if ctx.key.lower() != "foo":
                raise ValidationError(f"Key '{ctx.key}' not allowed")

        return HookSet(
            validate=validate,
            render_key=lambda ctx: ctx.key.lower(),
            render_value=lambda ctx: f"{ctx.value}".upper(),
            render_operator=lambda ctx: f":{ctx.operator}:",
        )

    def test_validation_and_rendering(self, whitelist_hooks: HookSet) -> None:
        c = Condition(whitelist_hooks)
        c.and_("fOo", "eq", "bar")
        assert str(c) == "foo:eq:BAR"

        with pytest.raises(ValidationError):
            c.and_("baz", "neq", "bat")

        assert str(c) == "foo:eq:BAR"
        assert joins(c) == ["and"]

    def test_mapping_hooks(self) -> None:
        c = Condition({"renderValue": lambda ctx: f"'{ctx.value}'"}).and_("a", "eq", "b")
        assert str(c) == "a='b'"

    def test_attach_rebinds_subtree(self) -> None:
        parent_hooks = HookSet(render_key=lambda ctx: ctx.key.upper())
        sub = Condition(HookSet(render_value=lambda ctx: "SUB")).and_("x", "eq", "y")
        nested = Condition(HookSet(render_value=lambda ctx: "NESTED")).and_("z", "eq", "w")
        sub.or_(nested)

        parent = Condition(parent_hooks).and_(sub)

        assert sub.hooks is parent_hooks
        assert nested.hooks is parent_hooks
        assert all(slot.payload.hooks is parent_hooks for slot in sub.slots)
        assert str(parent) == "(X=y or (Z=w))"

    def test_last_attacher_wins(self) -> None:
        first = HookSet(render_key=lambda ctx: "first")
        second = HookSet(render_key=lambda ctx: "second")
        sub = Condition().and_("a", "eq", 1)

        Condition(first).and_(sub)
        Condition(second).and_(sub)

        assert sub.hooks is second
        assert str(sub) == "second=1"

    def test_attach_does_not_revalidate(self) -> None:
        calls: list[str] = []
        sub = Condition().and_("a", "eq", 1)
        Condition(HookSet(validate=lambda ctx: calls.append(ctx.key))).and_(sub)
        assert calls == []

    def test_parent_hook_change_only_affects_later_children(self) -> None:
        old = HookSet(render_key=lambda ctx: "old")
        new = HookSet(render_key=lambda ctx: "new")
        parent = Condition(old)
        early = Condition().and_("a", "eq", 1)
        parent.and_(early)

        parent.hooks = new
        late = Condition().and_("b", "eq", 2)
        parent.and_(late)

        assert early.hooks is old
        assert late.hooks is new
        assert str(parent) == "(old=1) and (new=2)"


class TestLogging:
    """Test debug logging of appends."""

    def test_append_logged(self, caplog) -> None:
        with caplog.at_level(logging.DEBUG, logger="condbuilder.condition"):
            Condition().and_("a", "eq", 1).or_("b", "eq", 2)

        assert "Appended and slot #0" in caplog.text
        assert "Appended or slot #1" in caplog.text
