import copy

import pytest

from formflow.application.utils.next_step import NextStep, determine_next_step
from formflow.domain.entities.blueprint import FieldDefinition


def _field(field_id, **extra):
    return FieldDefinition.model_validate({"id": field_id, "type": "string", **extra})


@pytest.fixture
def two_fields():
    return [_field("A"), _field("B")]


def test_walks_fields_in_order(two_fields):
    assert determine_next_step(two_fields, {}) == NextStep("A", False)
    assert determine_next_step(two_fields, {"A": "x"}) == NextStep("B", False)
    assert determine_next_step(two_fields, {"A": "x", "B": "y"}) == NextStep(None, True)


@pytest.mark.parametrize("value", [0, False, ""])
def test_falsy_values_count_as_answered(two_fields, value):
    assert determine_next_step(two_fields, {"A": value}).next_field_id == "B"


def test_none_is_unanswered(two_fields):
    assert determine_next_step(two_fields, {"A": None}).next_field_id == "A"


def test_conditional_field():
    fields = [
        FieldDefinition.model_validate({"id": "age", "type": "number"}),
        _field("license", condition={">": [{"var": "age"}, 10]}),
    ]
    assert determine_next_step(fields, {"age": 5}) == NextStep(None, True)
    assert determine_next_step(fields, {"age": 15}) == NextStep("license", False)
    assert determine_next_step(fields, {"age": 15, "license": "X"}) == NextStep(None, True)


def test_hidden_field_with_stale_value_is_skipped():
    fields = [
        FieldDefinition.model_validate({"id": "toggle", "type": "boolean"}),
        _field("detail", condition={"var": "toggle"}),
        _field("last"),
    ]
    data = {"toggle": False, "detail": "from earlier"}
    assert determine_next_step(fields, data).next_field_id == "last"


def test_null_condition_always_hidden_absent_always_visible():
    fields = [_field("never", condition=None), _field("always")]
    assert fields[0].has_condition is True
    assert fields[1].has_condition is False
    assert determine_next_step(fields, {}).next_field_id == "always"


def test_pure_and_repeatable():
    fields = [_field("A"), _field("B", condition={"==": [{"var": "A"}, "go"]}), _field("C")]
    data = {"A": "go"}
    fields_before = copy.deepcopy(fields)
    data_before = dict(data)

    first = determine_next_step(fields, data)
    second = determine_next_step(fields, data)

    assert first == second == NextStep("B", False)
    assert data == data_before
    assert fields == fields_before


def test_many_fields():
    fields = [_field(f"f{i}", condition={"<": [{"var": "n"}, i]}) for i in range(200)]
    assert determine_next_step(fields, {"n": 150}).next_field_id == "f151"
