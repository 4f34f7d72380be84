"""Validation hook restricting expression keys to a known list."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from condbuilder.exceptions import ValidationError
from condbuilder.pipeline.hook import hook

if TYPE_CHECKING:
    from condbuilder.pipeline.context import ExpressionContext

logger = logging.getLogger(__name__)


@hook(slot="validate")
def key_whitelist(ctx: ExpressionContext, params: dict[str, Any]) -> None:
    """Reject expressions whose key is not whitelisted.

    Args:
        ctx: Expression context
        params: ``keys`` (iterable of allowed keys) and optional
            ``case_sensitive`` (default False)

    Raises:
        ValidationError: If the key is not allowed
    """
    keys = params.get("keys") or []
    case_sensitive = bool(params.get("case_sensitive", False))

    key = f"{ctx.key}"
    if case_sensitive:
        allowed = {f"{k}" for k in keys}
    else:
        allowed = {f"{k}".lower() for k in keys}
        key = key.lower()

    if key not in allowed:
        logger.debug("Key %r rejected, allowed: %s", ctx.key, sorted(allowed))
        raise ValidationError(f"Key '{ctx.key}' not allowed")
