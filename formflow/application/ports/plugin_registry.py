from abc import ABC, abstractmethod

from formflow.domain.entities.plugin import LoadedPlugin


class PluginRegistryPort(ABC):
    @abstractmethod
    def get(self, plugin_id: str) -> LoadedPlugin | None:
        """Resolve a plugin type id to its loaded implementation."""
        raise NotImplementedError

    @abstractmethod
    def loaded_ids(self) -> list[str]:
        raise NotImplementedError
