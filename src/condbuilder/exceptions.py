"""Exception hierarchy for condbuilder."""

from __future__ import annotations


class ConditionError(Exception):
    """Base exception type for all condbuilder errors."""


class ValidationError(ConditionError):
    """Raised when a validate hook rejects an expression."""


class MalformedEncodingError(ConditionError):
    """Raised when restore input does not follow the record format."""


class ContractViolationError(ConditionError, TypeError):
    """Raised when the builder API is called with unusable arguments."""


class SlotIndexError(ConditionError, IndexError):
    """Raised when addressing a slot that does not exist."""


class ConfigurationError(ConditionError):
    """Raised when configuration is missing or invalid."""
