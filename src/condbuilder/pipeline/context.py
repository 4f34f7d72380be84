"""Context handed to validation and render hooks."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from condbuilder.operators import Operator


@dataclass(frozen=True)
class ExpressionContext:
    """Read-only view of an expression's data.

    Attributes:
        key: Left-hand side of the comparison
        operator: Known ``Operator`` member or a raw passthrough string
        value: Opaque right-hand side
    """

    key: str
    operator: Operator | str
    value: Any

    @property
    def operator_name(self) -> str:
        """Operator as a plain string (enum value or raw string)."""
        return f"{self.operator}"

    def to_dict(self) -> dict[str, Any]:
        """Return the canonical ``{key, operator, value}`` mapping."""
        return {
            "key": self.key,
            "operator": self.operator_name,
            "value": self.value,
        }
