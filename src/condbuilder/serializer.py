"""Dump and restore of condition trees.

Wire format: an ordered list of records, each exactly one of::

    {"joinOperator": "and"|"or", "expression": {"key": ..., "operator": ..., "value": ...}}
    {"joinOperator": "and"|"or", "condition": [<records>]}

A record's ``joinOperator`` is the operator *after* that slot. Restoring slot
``i`` therefore appends with the operator of record ``i - 1`` (``and`` for the
first slot); the last record's operator is written back with
``set_operator`` afterwards so the record form round-trips exactly.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping, Sequence
from typing import Any, Literal, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, model_validator
from pydantic import ValidationError as PydanticValidationError

from condbuilder.condition import Condition
from condbuilder.exceptions import ContractViolationError, MalformedEncodingError
from condbuilder.operators import JoinOperator
from condbuilder.pipeline.hook import HookSet, as_hook_set

logger = logging.getLogger(__name__)

Format = Literal["json", "yaml"]
Encoded = Union[str, bytes, Sequence[Mapping[str, Any]]]

FORMATS: tuple[str, ...] = ("json", "yaml")


class ExpressionRecord(BaseModel):
    """Record form of an expression."""

    key: str
    operator: str
    value: Any


class SlotRecord(BaseModel):
    """Record form of one slot; exactly one of ``expression``/``condition``."""

    model_config = ConfigDict(populate_by_name=True)

    join_operator: JoinOperator = Field(alias="joinOperator")
    expression: ExpressionRecord | None = None
    condition: list[SlotRecord] | None = None

    @model_validator(mode="after")
    def _check_payload(self) -> SlotRecord:
        if self.expression is None and self.condition is None:
            raise ValueError("Neither 'condition' nor 'expression' found")
        if self.expression is not None and self.condition is not None:
            raise ValueError("Both 'condition' and 'expression' found")
        return self


SlotRecord.model_rebuild()
_records_adapter = TypeAdapter(list[SlotRecord])


def dump(condition: Condition, fmt: Format | str = "json") -> str:
    """Encode ``condition.to_record()`` as text.

    Args:
        condition: Tree to encode
        fmt: ``"json"`` (compact) or ``"yaml"``

    Returns:
        Encoded records
    """
    record = condition.to_record()
    if fmt == "json":
        return json.dumps(record, ensure_ascii=False, separators=(",", ":"))
    if fmt == "yaml":
        return yaml.safe_dump(record, sort_keys=False, allow_unicode=True)
    raise ContractViolationError(f"Unknown format: {fmt!r}")


def decode(encoded: Encoded, fmt: Format | str | None = None) -> list[SlotRecord]:
    """Parse and validate encoded records without building a tree.

    Args:
        encoded: Text (JSON or YAML) or an already-decoded sequence of records
        fmt: Force a text format; ``None`` tries JSON, then YAML

    Raises:
        MalformedEncodingError: If the input is not a valid record list
    """
    if isinstance(encoded, bytes):
        encoded = encoded.decode("utf-8")
    data = _load_text(encoded, fmt) if isinstance(encoded, str) else encoded
    if isinstance(data, Sequence) and not isinstance(data, (str, bytes)):
        data = list(data)

    if not isinstance(data, list):
        raise MalformedEncodingError(f"Expected a list of records, got {type(data).__name__}")
    try:
        return _records_adapter.validate_python(data)
    except PydanticValidationError as e:
        raise MalformedEncodingError(f"Malformed condition records: {e}") from e


def _load_text(text: str, fmt: Format | str | None) -> Any:
    if fmt not in (None, *FORMATS):
        raise ContractViolationError(f"Unknown format: {fmt!r}")

    if fmt in (None, "json"):
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            if fmt == "json":
                raise MalformedEncodingError(f"Invalid JSON: {e}") from e
            logger.debug("Input is not JSON, trying YAML")

    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise MalformedEncodingError(f"Invalid YAML: {e}") from e


def restore(
    encoded: Encoded,
    hooks: HookSet | dict[str, Any] | None = None,
    fmt: Format | str | None = None,
) -> Condition:
    """Rebuild a condition from ``dump`` output (or its decoded records).

    Args:
        encoded: Text or list of records
        hooks: HookSet applied to every node created, nested ones included
        fmt: Force a text format

    Returns:
        New, independent Condition

    Raises:
        MalformedEncodingError: If the records are malformed
        ValidationError: If a ``validate`` hook rejects an expression
    """
    records = decode(encoded, fmt)
    condition = _replay(records, as_hook_set(hooks))
    logger.debug("Restored condition with %d top-level slot(s)", len(condition))
    return condition


def _replay(records: list[SlotRecord], hooks: HookSet) -> Condition:
    condition = Condition(hooks)
    previous = JoinOperator.AND

    for record in records:
        add = condition.and_ if previous is JoinOperator.AND else condition.or_
        if record.condition is not None:
            add(_replay(record.condition, hooks))
        elif record.expression is not None:
            add(record.expression.key, record.expression.operator, record.expression.value)
        previous = record.join_operator

    # The trailing operator is never rendered, keep it anyway
    if records:
        condition.set_operator(len(records) - 1, records[-1].join_operator)
    return condition
