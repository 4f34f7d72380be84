"""Render pipeline for condbuilder expressions.

Hooks resolve in layers:
    call-site overrides → node HookSet → built-in defaults

Reusable hooks are registered by name with ``@hook`` and bound into a
``HookSet`` with ``HookSpec.bind(params)``.
"""

from condbuilder.pipeline.context import ExpressionContext
from condbuilder.pipeline.hook import EMPTY_HOOKS, HookSet, HookSpec, as_hook_set, get_registry, hook
from condbuilder.pipeline.overrides import BUILTIN_HOOKS, HookLayer, render_expression, resolve_hook

__all__ = [
    "ExpressionContext",
    "HookSet",
    "HookSpec",
    "EMPTY_HOOKS",
    "as_hook_set",
    "get_registry",
    "hook",
    "BUILTIN_HOOKS",
    "HookLayer",
    "render_expression",
    "resolve_hook",
]
