"""Comparison and join operators.

Comparison operators belong to expressions (``key=value``); join operators
combine sibling slots of a condition. The two vocabularies never overlap.
"""

from __future__ import annotations

from enum import Enum
from types import MappingProxyType

from condbuilder.exceptions import ContractViolationError


class Operator(str, Enum):
    """Well-known comparison operators.

    Inspired by https://docs.postgrest.org/en/v12/references/api/tables_views.html
    """

    EQ = "eq"
    NEQ = "neq"  # not equal
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    LIKE = "like"
    NLIKE = "nlike"
    MATCH = "match"
    NMATCH = "nmatch"  # not match
    IS = "is"
    NIS = "nis"
    IN = "in"
    NIN = "nin"  # not in
    LTREE = "ltree"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def coerce(cls, operator: Operator | str) -> Operator | str:
        """Return the enum member for a known name, the raw string otherwise."""
        if isinstance(operator, cls):
            return operator
        try:
            return cls(operator)
        except ValueError:
            return operator


# Built-in operator symbols (targeting the pg dialect)
OPERATOR_SYMBOL: MappingProxyType[str, str] = MappingProxyType(
    {
        Operator.EQ.value: "=",
        Operator.NEQ.value: "!=",
        Operator.GT.value: ">",
        Operator.GTE.value: ">=",
        Operator.LT.value: "<",
        Operator.LTE.value: "<=",
        Operator.LIKE.value: " ilike ",
        Operator.NLIKE.value: " not ilike ",
        Operator.MATCH.value: "~",
        Operator.NMATCH.value: "!~",
        Operator.IS.value: " is ",
        Operator.NIS.value: " is not ",
        Operator.IN.value: " in ",
        Operator.NIN.value: " not in ",
        Operator.LTREE.value: "~",  # https://www.postgresql.org/docs/17/ltree.html
    }
)


def operator_symbol(operator: Operator | str) -> str:
    """Look up the symbol for an operator, passing unknown operators through."""
    name = operator.value if isinstance(operator, Operator) else f"{operator}"
    return OPERATOR_SYMBOL.get(name, name)


class JoinOperator(str, Enum):
    """Combinator rendered between sibling slots of a condition."""

    AND = "and"
    OR = "or"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def coerce(cls, value: JoinOperator | str) -> JoinOperator:
        """Convert ``"and"``/``"or"`` to a member.

        Raises:
            ContractViolationError: For anything else
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise ContractViolationError(f"Unknown join operator: {value!r}") from None
