"""Leaf predicate: a single ``key operator value`` comparison.

Example:
    >>> e = Expression("foo", Operator.EQ, "bar")
    >>> str(e)
    'foo=bar'
"""

from __future__ import annotations

import copy
import logging
from typing import Any

from condbuilder.exceptions import ValidationError
from condbuilder.operators import Operator
from condbuilder.pipeline.context import ExpressionContext
from condbuilder.pipeline.hook import HookSet, as_hook_set
from condbuilder.pipeline.overrides import render_expression

logger = logging.getLogger(__name__)


def normalize_value(value: Any) -> Any:
    """Convert tuples and sets to lists, recursively, so the value survives JSON and YAML unchanged.

    Sets are ordered by ``repr`` to keep the result stable.
    """
    if isinstance(value, (set, frozenset)):
        return [normalize_value(item) for item in sorted(value, key=repr)]
    if isinstance(value, (list, tuple)):
        return [normalize_value(item) for item in value]
    if isinstance(value, dict):
        return {key: normalize_value(item) for key, item in value.items()}
    return value


class Expression:
    """Base condition building block. Consists of ``key``, ``operator`` and ``value``.

    The node's ``validate`` hook runs once, here in the constructor.

    Attributes:
        key: Left-hand side
        operator: ``Operator`` member, or the raw string for unknown operators
        value: Opaque right-hand side, rendered by the active ``render_value``.
            Tuples and sets are stored as lists
        hooks: HookSet used for rendering
    """

    __slots__ = ("key", "operator", "value", "hooks")

    def __init__(
        self,
        key: str,
        operator: Operator | str,
        value: Any,
        hooks: HookSet | dict[str, Any] | None = None,
    ) -> None:
        self.key = key
        self.operator = Operator.coerce(operator)
        self.value = normalize_value(value)
        self.hooks = as_hook_set(hooks)
        self._validate()

    def _validate(self) -> None:
        validate = self.hooks.validate
        if validate is None:
            return
        try:
            validate(self.context)
        except ValidationError:
            raise
        except Exception as e:
            raise ValidationError(f"Expression '{self.key}' failed validation: {e}") from e

    @property
    def context(self) -> ExpressionContext:
        """Context passed to hooks."""
        return ExpressionContext(key=self.key, operator=self.operator, value=self.value)

    def to_record(self) -> dict[str, Any]:
        """Returns the canonical ``{key, operator, value}`` snapshot."""
        record = self.context.to_dict()
        record["value"] = copy.deepcopy(self.value)
        return record

    def render(self, overrides: HookSet | dict[str, Any] | None = None) -> str:
        """Render to text.

        Args:
            overrides: Call-site hooks, taking priority over the node's hooks

        Returns:
            Rendered expression
        """
        call_site = as_hook_set(overrides) if overrides is not None else None
        return render_expression(self.context, call_site, self.hooks)

    def __str__(self) -> str:
        return self.render()

    def __repr__(self) -> str:
        return f"Expression({self.key!r}, {self.context.operator_name!r}, {self.value!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Expression):
            return NotImplemented
        return self.to_record() == other.to_record()

    __hash__ = None  # type: ignore[assignment]
