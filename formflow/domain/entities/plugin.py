from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from formflow.domain.entities.blueprint import HookName


@dataclass(frozen=True)
class PluginContext:
    """Everything a plugin hook sees about the running conversation.

    `data` is a snapshot of the slot map; plugins change slots by returning
    `slot_updates`, which the caller validates before merging.
    """

    service_id: str
    conversation_id: str
    data: dict[str, Any]
    config: dict[str, Any] = field(default_factory=dict)
    field_id: str | None = None
    field_value: Any = None


@dataclass
class PluginResult:
    slot_updates: dict[str, Any] = field(default_factory=dict)
    metadata: dict[str, Any] = field(default_factory=dict)

    @staticmethod
    def from_raw(raw: Any) -> "PluginResult":
        """Normalize what a hook returned: a PluginResult, a mapping, or None."""
        if raw is None:
            return PluginResult()
        if isinstance(raw, PluginResult):
            return raw
        if isinstance(raw, Mapping):
            updates = raw.get("slot_updates", raw.get("slotUpdates")) or {}
            metadata = raw.get("metadata") or {}
            return PluginResult(slot_updates=dict(updates), metadata=dict(metadata))
        raise TypeError(f"Unsupported plugin result type: {type(raw).__name__}")


@dataclass(frozen=True)
class PluginManifest:
    id: str
    name: str
    version: str
    entry: str = ""


@dataclass(frozen=True)
class LoadedPlugin:
    manifest: PluginManifest
    instance: Any

    def implements(self, hook: HookName) -> bool:
        return callable(getattr(self.instance, hook.method_name, None))

    def hook(self, hook: HookName):
        return getattr(self.instance, hook.method_name)
