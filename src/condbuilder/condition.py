"""Condition tree: ordered slots of expressions and nested conditions.

Each slot carries the join operator rendered *after* it, i.e. between it and
the next slot. Appending with ``and``/``or`` therefore rewrites the previous
slot's operator; the last slot's operator is never rendered but is kept in
the record form.

Example:
    >>> c = Condition().and_("a", "eq", "b").or_("c", "neq", "d")
    >>> str(c)
    'a=b or c!=d'
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Union

from condbuilder.exceptions import ContractViolationError, SlotIndexError
from condbuilder.expression import Expression
from condbuilder.operators import JoinOperator, Operator
from condbuilder.pipeline.hook import HookSet, as_hook_set

if TYPE_CHECKING:
    from condbuilder.serializer import Encoded

logger = logging.getLogger(__name__)

# Marks an argument that was not passed at all (None is a valid value)
_MISSING: Any = object()

Payload = Union[Expression, "Condition"]


@dataclass(frozen=True)
class Slot:
    """One child of a condition plus the operator joining it to the next child.

    Slots are immutable; the owning condition swaps in a new slot when the
    operator changes.
    """

    join_operator: JoinOperator
    payload: Payload

    @property
    def is_condition(self) -> bool:
        return isinstance(self.payload, Condition)

    def to_record(self) -> dict[str, Any]:
        if isinstance(self.payload, Condition):
            return {"joinOperator": self.join_operator.value, "condition": self.payload.to_record()}
        return {"joinOperator": self.join_operator.value, "expression": self.payload.to_record()}


class Condition:
    """High level class to represent ``Expression``s as a logical structure.

    Attributes:
        hooks: HookSet applied to every expression created by this tree
    """

    def __init__(self, hooks: HookSet | dict[str, Any] | None = None) -> None:
        self.hooks = as_hook_set(hooks)
        self._slots: list[Slot] = []

    # --- Building ------------------------------------------------------------
    def and_(
        self,
        key_or_condition: str | Condition,
        operator: Operator | str = _MISSING,
        value: Any = _MISSING,
    ) -> Condition:
        """Add an expression (``key, operator, value``) or a nested condition as an *and* block."""
        return self._add(key_or_condition, operator, value, JoinOperator.AND)

    def or_(
        self,
        key_or_condition: str | Condition,
        operator: Operator | str = _MISSING,
        value: Any = _MISSING,
    ) -> Condition:
        """Add an expression (``key, operator, value``) or a nested condition as an *or* block."""
        return self._add(key_or_condition, operator, value, JoinOperator.OR)

    def _add(
        self,
        key_or_condition: str | Condition,
        operator: Operator | str,
        value: Any,
        join_operator: JoinOperator,
    ) -> Condition:
        if isinstance(key_or_condition, Condition):
            if operator is not _MISSING or value is not _MISSING:
                raise ContractViolationError("A nested condition takes no operator or value")
            return self._add_condition(key_or_condition, join_operator)

        if not isinstance(key_or_condition, str):
            raise ContractViolationError(
                f"Expected key string or Condition, got {type(key_or_condition).__name__}"
            )
        if operator is _MISSING or value is _MISSING:
            raise ContractViolationError(f"Expression '{key_or_condition}' needs both operator and value")
        if not isinstance(operator, str):
            raise ContractViolationError(f"Operator must be a string, got {type(operator).__name__}")
        return self._add_expression(key_or_condition, operator, value, join_operator)

    def _add_expression(
        self,
        key: str,
        operator: Operator | str,
        value: Any,
        join_operator: JoinOperator,
    ) -> Condition:
        # Validation runs here; a failure leaves the tree untouched
        expression = Expression(key, operator, value, self.hooks)
        self._append(expression, join_operator)
        return self

    def _add_condition(self, condition: Condition, join_operator: JoinOperator) -> Condition:
        if condition is self or condition._contains(self):
            raise ContractViolationError("A condition cannot be nested inside itself")
        # Last attacher wins: the subtree now renders with our hooks
        condition._rebind(self.hooks)
        self._append(condition, join_operator)
        return self

    def _append(self, payload: Payload, join_operator: JoinOperator) -> None:
        """Fix up the previous slot's trailing operator, then push the new slot."""
        self._set_previous_as(join_operator)
        self._slots.append(Slot(join_operator=join_operator, payload=payload))
        logger.debug("Appended %s slot #%d (%s)", join_operator.value, len(self._slots) - 1, type(payload).__name__)

    def _set_previous_as(self, join_operator: JoinOperator) -> None:
        if self._slots:
            self._slots[-1] = dataclasses.replace(self._slots[-1], join_operator=join_operator)

    def _rebind(self, hooks: HookSet) -> None:
        self.hooks = hooks
        for slot in self._slots:
            if isinstance(slot.payload, Condition):
                slot.payload._rebind(hooks)
            else:
                slot.payload.hooks = hooks

    def _contains(self, other: Condition) -> bool:
        for slot in self._slots:
            if isinstance(slot.payload, Condition):
                if slot.payload is other or slot.payload._contains(other):
                    return True
        return False

    def set_operator(self, index: int, join_operator: JoinOperator | str) -> Condition:
        """Sets the join operator stored on the slot at ``index``.

        Used by ``restore`` to keep the trailing operator of the last slot.

        Raises:
            SlotIndexError: If there is no slot at ``index``
        """
        join = JoinOperator.coerce(join_operator)
        if not 0 <= index < len(self._slots):
            raise SlotIndexError(f"Index '{index}' not found")
        self._slots[index] = dataclasses.replace(self._slots[index], join_operator=join)
        return self

    # --- Inspection ----------------------------------------------------------
    @property
    def slots(self) -> tuple[Slot, ...]:
        """Snapshot of the slots; change operators through ``set_operator``."""
        return tuple(self._slots)

    @property
    def is_empty(self) -> bool:
        return not self._slots

    def __len__(self) -> int:
        return len(self._slots)

    def __iter__(self) -> Iterator[Slot]:
        return iter(tuple(self._slots))

    def to_record(self) -> list[dict[str, Any]]:
        """Returns the ordered slot records, including the trailing operator."""
        return [slot.to_record() for slot in self._slots]

    def render(self, overrides: HookSet | dict[str, Any] | None = None) -> str:
        """Return the final textual outcome.

        Args:
            overrides: Call-site hooks forwarded to every expression

        Returns:
            Rendered condition, ``""`` when empty
        """
        if not self._slots:
            return ""
        call_site = as_hook_set(overrides) if overrides is not None else None

        parts: list[str] = []
        last = len(self._slots) - 1
        for i, slot in enumerate(self._slots):
            if isinstance(slot.payload, Condition):
                parts.append(f"({slot.payload.render(call_site)})")
            else:
                parts.append(slot.payload.render(call_site))
            # strip last block operator
            if i < last:
                parts.append(slot.join_operator.value)
        return " ".join(parts)

    def __str__(self) -> str:
        return self.render()

    def __repr__(self) -> str:
        return f"Condition({self.render()!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Condition):
            return NotImplemented
        return self.to_record() == other.to_record()

    __hash__ = None  # type: ignore[assignment]

    # --- Serialization -------------------------------------------------------
    def dump(self, fmt: str = "json") -> str:
        """Returns the record form encoded as text."""
        from condbuilder.serializer import dump

        return dump(self, fmt=fmt)

    @classmethod
    def restore(
        cls,
        encoded: Encoded,
        hooks: HookSet | dict[str, Any] | None = None,
        fmt: str | None = None,
    ) -> Condition:
        """Creates a new instance from a dump. Opposite of ``dump``."""
        from condbuilder.serializer import restore

        return restore(encoded, hooks=hooks, fmt=fmt)
