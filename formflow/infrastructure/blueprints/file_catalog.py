from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from formflow.application.exceptions import BlueprintNotFoundError
from formflow.application.ports.blueprint_catalog import BlueprintCatalogPort
from formflow.domain.entities.blueprint import ServiceBlueprint

DEFAULT_BLUEPRINTS_DIRECTORY = Path(__file__).parent / "data"


class FileBlueprintCatalog(BlueprintCatalogPort):
    """Loads every *.json blueprint in a directory once, at construction."""

    def __init__(self, directory: str | Path | None = None) -> None:
        self._directory = Path(directory) if directory else DEFAULT_BLUEPRINTS_DIRECTORY
        self._logger = logging.getLogger(__name__)
        self._blueprints: dict[str, ServiceBlueprint] = {}
        self._load()

    def get_blueprint(self, blueprint_id: str) -> ServiceBlueprint:
        blueprint = self._blueprints.get(blueprint_id)
        if blueprint is None:
            raise BlueprintNotFoundError(blueprint_id, available=self.blueprint_ids())
        return blueprint

    def get_all_blueprints(self) -> list[ServiceBlueprint]:
        return list(self._blueprints.values())

    def has_blueprint(self, blueprint_id: str) -> bool:
        return blueprint_id in self._blueprints

    def blueprint_ids(self) -> list[str]:
        return list(self._blueprints)

    def _load(self) -> None:
        if not self._directory.is_dir():
            self._logger.warning(
                "Blueprint directory not found", extra={"path": str(self._directory)}
            )
            return

        for file_path in sorted(self._directory.glob("*.json")):
            try:
                with open(file_path, "r", encoding="utf-8") as f:
                    blueprint = ServiceBlueprint.model_validate(json.load(f))
            except (OSError, json.JSONDecodeError, ValidationError) as e:
                self._logger.error(
                    "Skipping invalid blueprint",
                    extra={"path": str(file_path), "error": str(e)},
                )
                continue

            if blueprint.id in self._blueprints:
                self._logger.warning(
                    "Duplicate blueprint id, keeping the first",
                    extra={"blueprint_id": blueprint.id, "path": str(file_path)},
                )
                continue
            self._blueprints[blueprint.id] = blueprint

        self._logger.info(
            "Blueprints loaded",
            extra={"count": len(self._blueprints), "path": str(self._directory)},
        )
