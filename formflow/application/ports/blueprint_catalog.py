from __future__ import annotations

from abc import ABC, abstractmethod

from formflow.domain.entities.blueprint import ServiceBlueprint


class BlueprintCatalogPort(ABC):
    @abstractmethod
    def get_blueprint(self, blueprint_id: str) -> ServiceBlueprint:
        """Get blueprint by id. Raises BlueprintNotFoundError if unknown."""
        raise NotImplementedError

    @abstractmethod
    def get_all_blueprints(self) -> list[ServiceBlueprint]:
        raise NotImplementedError

    def has_blueprint(self, blueprint_id: str) -> bool:
        return any(bp.id == blueprint_id for bp in self.get_all_blueprints())
