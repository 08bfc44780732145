import json

import pytest

from formflow.application.exceptions import BlueprintNotFoundError
from formflow.domain.entities.blueprint import LanguageMode
from formflow.infrastructure.blueprints.file_catalog import FileBlueprintCatalog


def test_packaged_blueprints_load():
    catalog = FileBlueprintCatalog()

    assert set(catalog.blueprint_ids()) == {"travel_expense", "vehicle_registration"}
    vehicle = catalog.get_blueprint("vehicle_registration")
    assert vehicle.language_config.mode == LanguageMode.STRICT
    assert vehicle.get_field("license_number").verbatim is True
    assert vehicle.get_plugin("postcode-lookup").trigger_on_field == "postcode"


def test_unknown_blueprint_lists_available(tmp_path):
    (tmp_path / "a.json").write_text(
        json.dumps({"id": "a", "name": "A", "fields": []}), encoding="utf-8"
    )
    catalog = FileBlueprintCatalog(tmp_path)

    with pytest.raises(BlueprintNotFoundError) as exc_info:
        catalog.get_blueprint("b")
    assert "Available blueprints: a" in str(exc_info.value)
    assert catalog.has_blueprint("a")
    assert not catalog.has_blueprint("b")


def test_invalid_and_duplicate_files_are_skipped(tmp_path):
    (tmp_path / "1_good.json").write_text(
        json.dumps({"id": "good", "name": "First", "fields": []}), encoding="utf-8"
    )
    (tmp_path / "2_dupe.json").write_text(
        json.dumps({"id": "good", "name": "Second", "fields": []}), encoding="utf-8"
    )
    (tmp_path / "3_broken.json").write_text("{", encoding="utf-8")
    (tmp_path / "4_invalid.json").write_text(json.dumps({"id": "x"}), encoding="utf-8")

    catalog = FileBlueprintCatalog(tmp_path)

    assert catalog.blueprint_ids() == ["good"]
    assert catalog.get_blueprint("good").name == "First"


def test_explicit_null_condition_is_kept(tmp_path):
    (tmp_path / "hidden.json").write_text(
        json.dumps(
            {
                "id": "hidden",
                "name": "Hidden",
                "fields": [
                    {"id": "shown", "type": "string"},
                    {"id": "never", "type": "string", "condition": None},
                ],
            }
        ),
        encoding="utf-8",
    )
    blueprint = FileBlueprintCatalog(tmp_path).get_blueprint("hidden")

    assert blueprint.get_field("shown").has_condition is False
    assert blueprint.get_field("never").has_condition is True


def test_missing_directory_is_empty(tmp_path):
    assert FileBlueprintCatalog(tmp_path / "nope").get_all_blueprints() == []
