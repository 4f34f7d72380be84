"""Named hooks shipped with condbuilder.

Importing this package registers every hook with the global registry so it
can be referenced by name from configuration.
"""

from __future__ import annotations

from condbuilder.pipeline.hook import HookSet
from condbuilder.pipeline.hooks.key_whitelist import key_whitelist
from condbuilder.pipeline.hooks.quoting import lowercase_key, quote_identifier, quote_literal


def postgres_hooks() -> HookSet:
    """HookSet quoting keys as identifiers and values as literals."""
    return HookSet(
        render_key=quote_identifier._hook_spec.bind(),  # type: ignore[attr-defined]
        render_value=quote_literal._hook_spec.bind(),  # type: ignore[attr-defined]
    )


__all__ = [
    "key_whitelist",
    "lowercase_key",
    "quote_identifier",
    "quote_literal",
    "postgres_hooks",
]
