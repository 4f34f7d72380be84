"""Layered hook resolution.

Each hook name resolves through three tiers, first non-``None`` wins:

- call-site overrides passed to ``render()``
- the node's own ``HookSet``
- built-in defaults

Built-in defaults are read-only; there is no process-wide mutable default.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from condbuilder.operators import operator_symbol

if TYPE_CHECKING:
    from condbuilder.pipeline.context import ExpressionContext
    from condbuilder.pipeline.hook import HookSet

logger = logging.getLogger(__name__)


class HookLayer(Enum):
    """Tier a resolved hook came from."""

    CALL_SITE = "call_site"
    NODE = "node"
    BUILTIN = "builtin"
    NONE = "none"  # No hook anywhere


def default_render_key(ctx: ExpressionContext) -> str:
    return f"{ctx.key}"


def default_render_value(ctx: ExpressionContext) -> str:
    return f"{ctx.value}"


def default_render_operator(ctx: ExpressionContext) -> str:
    return operator_symbol(ctx.operator)


BUILTIN_HOOKS: MappingProxyType[str, Callable[..., Any]] = MappingProxyType(
    {
        "render_key": default_render_key,
        "render_value": default_render_value,
        "render_operator": default_render_operator,
    }
)


def resolve_hook(
    name: str,
    overrides: HookSet | None,
    node: HookSet | None,
) -> tuple[Callable[..., Any] | None, HookLayer]:
    """Find the hook to use for ``name``.

    Args:
        name: HookSet field name
        overrides: Call-site hooks, may be None
        node: The node's own hooks, may be None

    Returns:
        Tuple of (hook or None, layer it was found in)
    """
    if overrides is not None:
        fn = overrides.get(name)
        if fn is not None:
            return fn, HookLayer.CALL_SITE
    if node is not None:
        fn = node.get(name)
        if fn is not None:
            return fn, HookLayer.NODE
    fn = BUILTIN_HOOKS.get(name)
    if fn is not None:
        return fn, HookLayer.BUILTIN
    return None, HookLayer.NONE


def render_expression(
    ctx: ExpressionContext,
    overrides: HookSet | None,
    node: HookSet | None,
) -> str:
    """Render an expression context through the resolved hooks.

    A truthy ``render_expression`` result short-circuits; otherwise the result
    is key + operator + value with no separators.
    """
    full, layer = resolve_hook("render_expression", overrides, node)
    if full is not None:
        rendered = full(ctx)
        if rendered:
            logger.debug("Expression %r rendered by %s render_expression", ctx.key, layer.value)
            return rendered

    render_key, _ = resolve_hook("render_key", overrides, node)
    render_operator, _ = resolve_hook("render_operator", overrides, node)
    render_value, _ = resolve_hook("render_value", overrides, node)
    return "".join([render_key(ctx), render_operator(ctx), render_value(ctx)])  # type: ignore[misc]
