"""PostgreSQL-style quoting hooks.

Identifiers are wrapped in double quotes, literals in single quotes, with the
quote character doubled inside.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from condbuilder.pipeline.hook import hook

if TYPE_CHECKING:
    from condbuilder.pipeline.context import ExpressionContext


def quote_identifier_text(name: Any) -> str:
    text = f"{name}".replace('"', '""')
    return f'"{text}"'


def quote_literal_text(value: Any) -> str:
    """Quote a single value as an SQL literal."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return f"{value}"
    if isinstance(value, (list, tuple, set, frozenset)):
        items = sorted(value, key=repr) if isinstance(value, (set, frozenset)) else value
        return "(" + ",".join(quote_literal_text(item) for item in items) + ")"
    text = f"{value}".replace("'", "''")
    return f"'{text}'"


@hook(slot="render_key")
def quote_identifier(ctx: ExpressionContext, params: dict[str, Any]) -> str:
    """Render the key as a double-quoted identifier."""
    return quote_identifier_text(ctx.key)


@hook(slot="render_value")
def quote_literal(ctx: ExpressionContext, params: dict[str, Any]) -> str:
    """Render the value as a literal.

    ``None`` becomes ``null``, booleans ``true``/``false``, numbers stay bare
    and collections render as a parenthesized list for ``in``/``nin``.
    """
    return quote_literal_text(ctx.value)


@hook(slot="render_key")
def lowercase_key(ctx: ExpressionContext, params: dict[str, Any]) -> str:
    return f"{ctx.key}".lower()
