from __future__ import annotations

import json
import math
import re
from collections.abc import Mapping
from datetime import date, datetime
from functools import lru_cache
from typing import Any

from jsonschema import Draft202012Validator

from formflow.application.exceptions import FieldNotFoundError, SlotValidationError
from formflow.domain.entities.blueprint import FieldDefinition, FieldType, ServiceBlueprint

_TRUE_WORDS = {"true", "yes", "y", "1"}
_FALSE_WORDS = {"false", "no", "n", "0"}
_INT_RE = re.compile(r"^[+-]?\d+$")
_DECIMAL_RE = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")
# Commas are only thousands separators in strict groups of three ("1,200.50").
_GROUPED_RE = re.compile(r"^[+-]?\d{1,3}(,\d{3})+(\.\d+)?$")


def coerce_value(value: Any, field_type: FieldType) -> Any:
    """
    Convert a raw extracted value into the scalar variant of `field_type`.
    Values without a safe conversion are returned unchanged so that
    validation rejects them.
    """
    if value is None:
        return None

    if field_type == FieldType.NUMBER:
        if isinstance(value, bool):
            return value
        if isinstance(value, (int, float)):
            return value
        if isinstance(value, str):
            text = value.strip()
            if _GROUPED_RE.match(text):
                text = text.replace(",", "")
            if _INT_RE.match(text):
                return int(text)
            if _DECIMAL_RE.match(text):
                return float(text)
            return value
        return value

    if field_type == FieldType.BOOLEAN:
        if isinstance(value, bool):
            return value
        if isinstance(value, int) and value in (0, 1):
            return bool(value)
        if isinstance(value, str):
            text = value.strip().lower()
            if text in _TRUE_WORDS:
                return True
            if text in _FALSE_WORDS:
                return False
        return value

    if field_type == FieldType.DATE:
        if isinstance(value, datetime):
            return value.date().isoformat()
        if isinstance(value, date):
            return value.isoformat()
        if isinstance(value, str):
            parsed = _parse_iso_date(value)
            return parsed.isoformat() if parsed else value
        return value

    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


def validate_value(value: Any, field: FieldDefinition) -> bool:
    if value is None or value == "":
        return False

    if not _matches_type(value, field.type):
        return False

    if field.validation:
        instance = value.isoformat() if isinstance(value, date) else value
        return _validator_for(_schema_key(field.validation)).is_valid(instance)

    return True


def apply_slot_updates(
    data: Mapping[str, Any],
    updates: Mapping[str, Any],
    blueprint: ServiceBlueprint,
) -> dict[str, Any]:
    """
    Merge plugin slot updates into a copy of `data` and validate the result.

    Every value is converted to its field's type first. Nothing is returned
    (and so nothing is applied) unless every merged slot passes validation.
    """
    merged = dict(data)
    for key, raw in updates.items():
        field = blueprint.get_field(key)
        if field is None:
            raise FieldNotFoundError(key, blueprint.id)
        merged[key] = coerce_value(raw, field.type)

    validate_slot_updates(merged, blueprint)
    return merged


def validate_slot_updates(data: Mapping[str, Any], blueprint: ServiceBlueprint) -> None:
    for key, value in data.items():
        if value is None:
            continue
        field = blueprint.get_field(key)
        if field is None:
            raise FieldNotFoundError(key, blueprint.id)
        if not validate_value(value, field):
            raise SlotValidationError(key, value)


def _matches_type(value: Any, field_type: FieldType) -> bool:
    if field_type == FieldType.NUMBER:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return False
        return math.isfinite(value)
    if field_type == FieldType.BOOLEAN:
        return isinstance(value, bool)
    if field_type == FieldType.STRING:
        return isinstance(value, str)
    if field_type == FieldType.DATE:
        if isinstance(value, date):
            return True
        return isinstance(value, str) and _parse_iso_date(value) is not None
    return True


def _parse_iso_date(text: str) -> date | None:
    """A bare ISO date or a full ISO datetime; ranges and trailing prose give None."""
    text = text.strip()
    if len(text) < 10:
        return None
    try:
        if len(text) == 10:
            return date.fromisoformat(text)
        return datetime.fromisoformat(text).date()
    except ValueError:
        return None


def _schema_key(schema: Mapping[str, Any]) -> str:
    return json.dumps(schema, sort_keys=True, default=str)


@lru_cache(maxsize=512)
def _validator_for(schema_key: str) -> Draft202012Validator:
    schema = json.loads(schema_key)
    Draft202012Validator.check_schema(schema)
    return Draft202012Validator(schema, format_checker=Draft202012Validator.FORMAT_CHECKER)
