"""Hook set, hook specification and decorator.

A ``HookSet`` is the immutable bundle of optional callables attached to a
condition tree. Reusable hooks are declared with ``@hook`` and registered by
name so configuration files can refer to them.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from condbuilder.exceptions import ContractViolationError

if TYPE_CHECKING:
    from condbuilder.pipeline.context import ExpressionContext


# Type aliases
Validator = Callable[["ExpressionContext"], None]
Renderer = Callable[["ExpressionContext"], str]
RendererMaybe = Callable[["ExpressionContext"], Any]
HandlerFn = Callable[["ExpressionContext", dict[str, Any]], Any]

HOOK_NAMES = (
    "validate",
    "render_key",
    "render_value",
    "render_operator",
    "render_expression",
)

# Names used by the record/JSON world
CAMEL_CASE_NAMES = {
    "validate": "validate",
    "renderKey": "render_key",
    "renderValue": "render_value",
    "renderOperator": "render_operator",
    "renderExpression": "render_expression",
}


@dataclass(frozen=True)
class HookSet:
    """Optional validation and render hooks.

    Every hook receives an ``ExpressionContext``.

    Attributes:
        validate: Raises to reject an expression; return value is ignored
        render_key: Renders the key
        render_value: Renders the value (quoting is dialect specific)
        render_operator: Renders the comparison operator
        render_expression: Renders the whole expression; a falsy result falls
            back to key + operator + value
    """

    validate: Validator | None = None
    render_key: Renderer | None = None
    render_value: Renderer | None = None
    render_operator: Renderer | None = None
    render_expression: RendererMaybe | None = None

    @classmethod
    def from_mapping(cls, hooks: Mapping[str, Any]) -> HookSet:
        """Build a hook set from a mapping of hook name to callable.

        Both snake_case (``render_key``) and camelCase (``renderKey``) names
        are accepted.

        Raises:
            ContractViolationError: On unknown names or non-callable values
        """
        resolved: dict[str, Any] = {}
        for name, fn in hooks.items():
            field_name = CAMEL_CASE_NAMES.get(name, name)
            if field_name not in HOOK_NAMES:
                raise ContractViolationError(f"Unknown hook name: {name!r}")
            if fn is not None and not callable(fn):
                raise ContractViolationError(f"Hook {name!r} is not callable")
            resolved[field_name] = fn
        return cls(**resolved)

    def replace(self, **changes: Any) -> HookSet:
        """Return a copy with some hooks swapped."""
        return dataclasses.replace(self, **changes)

    def get(self, name: str) -> Callable[..., Any] | None:
        """Get a hook by field name."""
        return getattr(self, name)

    def defined(self) -> list[str]:
        """Names of the hooks that are set."""
        return [name for name in HOOK_NAMES if getattr(self, name) is not None]


EMPTY_HOOKS = HookSet()


def as_hook_set(hooks: HookSet | Mapping[str, Any] | None) -> HookSet:
    """Normalize ``None``, a mapping or a ``HookSet`` to a ``HookSet``."""
    if hooks is None:
        return EMPTY_HOOKS
    if isinstance(hooks, HookSet):
        return hooks
    if isinstance(hooks, Mapping):
        return HookSet.from_mapping(hooks)
    raise ContractViolationError(f"Expected HookSet or mapping, got {type(hooks).__name__}")


@dataclass
class HookSpec:
    """Specification for a reusable, named hook.

    Attributes:
        name: Unique hook identifier
        handler: Function called with the context and the bound params
        slot: HookSet field the hook is meant for
        params: Static parameters passed to handler
    """

    name: str
    handler: HandlerFn
    slot: str
    params: dict[str, Any] = field(default_factory=dict)

    def __hash__(self) -> int:
        return hash(self.name)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, HookSpec):
            return NotImplemented
        return self.name == other.name

    def bind(self, extra_params: dict[str, Any] | None = None) -> Callable[[ExpressionContext], Any]:
        """Create a context-only callable suitable for a ``HookSet``.

        Args:
            extra_params: Additional parameters to merge with static params

        Returns:
            Callable taking an ``ExpressionContext``
        """
        params = dict(self.params)
        if extra_params:
            params.update(extra_params)
        handler = self.handler

        def bound(ctx: ExpressionContext) -> Any:
            return handler(ctx, params)

        bound.__name__ = self.name
        bound.__qualname__ = self.name
        return bound


class _HookRegistry:
    """Global registry for hooks decorated with @hook."""

    def __init__(self) -> None:
        self._hooks: dict[str, HookSpec] = {}

    def register_spec(self, spec: HookSpec) -> None:
        """Register a hook specification."""
        self._hooks[spec.name] = spec

    def get_spec(self, name: str) -> HookSpec | None:
        """Get a hook specification by name."""
        return self._hooks.get(name)

    def get_all_specs(self) -> dict[str, HookSpec]:
        """Get all registered hook specifications."""
        return dict(self._hooks)

    def unregister(self, name: str) -> None:
        """Remove a hook specification if present."""
        self._hooks.pop(name, None)

    def clear(self) -> None:
        """Clear all registered hooks (for testing)."""
        self._hooks.clear()


# Global registry
_registry = _HookRegistry()


def get_registry() -> _HookRegistry:
    """Get the global hook registry."""
    return _registry


def hook(*, slot: str, name: str | None = None) -> Callable[[HandlerFn], HandlerFn]:
    """Decorator to register a function as a named hook.

    Args:
        slot: HookSet field the hook fills (e.g. ``"render_key"``)
        name: Registry name, defaults to the function name

    Returns:
        Decorator function

    Example:
        @hook(slot="render_key")
        def quote_identifier(ctx: ExpressionContext, params: dict) -> str:
            ...

        HookSet(render_key=get_registry().get_spec("quote_identifier").bind())
    """
    if slot not in HOOK_NAMES:
        raise ContractViolationError(f"Unknown hook slot: {slot!r}")

    def decorator(fn: HandlerFn) -> HandlerFn:
        spec = HookSpec(name=name or fn.__name__, handler=fn, slot=slot)
        _registry.register_spec(spec)

        # Attach spec to function for introspection
        fn._hook_spec = spec  # type: ignore[attr-defined]
        return fn

    return decorator


def create_hook_spec(
    name: str,
    handler: HandlerFn,
    *,
    slot: str,
    params: dict[str, Any] | None = None,
) -> HookSpec:
    """Create a HookSpec programmatically (without decorator or registration)."""
    if slot not in HOOK_NAMES:
        raise ContractViolationError(f"Unknown hook slot: {slot!r}")
    return HookSpec(name=name, handler=handler, slot=slot, params=params or {})
