from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from formflow.application.utils.conditions import NO_CONDITION, is_visible
from formflow.domain.entities.blueprint import FieldDefinition


@dataclass(frozen=True)
class NextStep:
    next_field_id: str | None
    is_complete: bool


def is_answered(value: Any) -> bool:
    """0, False and "" count as answers; only a missing or None value does not."""
    return value is not None


def is_field_visible(field: FieldDefinition, data: Mapping[str, Any]) -> bool:
    return is_visible(field.condition if field.has_condition else NO_CONDITION, data)


def determine_next_step(fields: Sequence[FieldDefinition], data: Mapping[str, Any]) -> NextStep:
    """
    Find the first field that still has to be asked.

    Fields are scanned in declaration order. Answered fields are skipped, even
    if their condition has since turned false, and so are hidden fields, even
    if they hold a value from an earlier visible state. Neither argument is
    mutated and nothing is cached between calls.
    """
    for field in fields:
        if is_answered(data.get(field.id)):
            continue
        if not is_field_visible(field, data):
            continue
        return NextStep(next_field_id=field.id, is_complete=False)

    return NextStep(next_field_id=None, is_complete=True)
