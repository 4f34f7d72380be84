"""condbuilder - build nested and/or filter conditions, render and restore them.

Example:
    >>> from condbuilder import Condition, Operator
    >>> c = Condition().and_("a", Operator.EQ, "b").or_("c", "neq", "d")
    >>> str(c)
    'a=b or c!=d'
    >>> Condition.restore(c.dump()) == c
    True
"""

from condbuilder.condition import Condition, Slot
from condbuilder.exceptions import (
    ConditionError,
    ConfigurationError,
    ContractViolationError,
    MalformedEncodingError,
    SlotIndexError,
    ValidationError,
)
from condbuilder.expression import Expression
from condbuilder.operators import OPERATOR_SYMBOL, JoinOperator, Operator
from condbuilder.pipeline import ExpressionContext, HookSet
from condbuilder.serializer import dump, restore

__all__ = [
    "Condition",
    "Slot",
    "Expression",
    "ExpressionContext",
    "HookSet",
    "Operator",
    "JoinOperator",
    "OPERATOR_SYMBOL",
    "dump",
    "restore",
    "ConditionError",
    "ValidationError",
    "MalformedEncodingError",
    "ContractViolationError",
    "SlotIndexError",
    "ConfigurationError",
]
