"""
Plugin registry.

Plugins are declared in a manifest list and resolved at process start:

    [{"id": "http-caller", "name": "HTTP Caller", "version": "1.0.0",
      "entry": "formflow.infrastructure.plugins.http_caller:HttpCallerPlugin"}]

`entry` is "module:attribute". A class is instantiated with no arguments;
any other object is used as is. Manifests that fail validation or whose
entry cannot be imported are logged and skipped.
"""

from __future__ import annotations

import importlib
import json
import logging
from pathlib import Path
from typing import Any

import jsonschema

from formflow.application.ports.plugin_registry import PluginRegistryPort
from formflow.domain.entities.blueprint import HookName
from formflow.domain.entities.plugin import LoadedPlugin, PluginManifest

MANIFEST_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "id": {"type": "string", "minLength": 1},
        "name": {"type": "string", "minLength": 1},
        "version": {"type": "string", "minLength": 1},
        "entry": {"type": "string", "pattern": r"^[A-Za-z_][\w.]*:[A-Za-z_]\w*$"},
    },
    "required": ["id", "name", "version", "entry"],
}

BUILTIN_MANIFESTS: list[dict[str, Any]] = [
    {
        "id": "http-caller",
        "name": "HTTP Caller",
        "version": "1.0.0",
        "entry": "formflow.infrastructure.plugins.http_caller:HttpCallerPlugin",
    },
]


class PluginRegistry(PluginRegistryPort):
    def __init__(self, manifests: list[dict[str, Any]] | None = None) -> None:
        self._plugins: dict[str, LoadedPlugin] = {}
        self._logger = logging.getLogger(__name__)
        for raw in manifests or []:
            self.load_manifest(raw)

    @classmethod
    def from_manifest_file(cls, path: str | None) -> "PluginRegistry":
        """Built-in plugins plus whatever the manifest file at `path` lists."""
        manifests = list(BUILTIN_MANIFESTS)
        if path:
            manifests.extend(read_manifest_file(path))
        return cls(manifests)

    def get(self, plugin_id: str) -> LoadedPlugin | None:
        return self._plugins.get(plugin_id)

    def loaded_ids(self) -> list[str]:
        return list(self._plugins)

    def register(
        self,
        plugin_id: str,
        plugin: Any,
        name: str | None = None,
        version: str = "0.0.0",
    ) -> LoadedPlugin:
        manifest = PluginManifest(id=plugin_id, name=name or plugin_id, version=version)
        return self._add(manifest, plugin)

    def load_manifest(self, raw: dict[str, Any]) -> LoadedPlugin | None:
        try:
            jsonschema.validate(instance=raw, schema=MANIFEST_SCHEMA)
        except jsonschema.ValidationError as e:
            self._logger.warning(
                "Skipping invalid plugin manifest",
                extra={"plugin": raw.get("id") if isinstance(raw, dict) else None, "error": e.message},
            )
            return None

        manifest = PluginManifest(
            id=raw["id"], name=raw["name"], version=raw["version"], entry=raw["entry"]
        )
        try:
            instance = _import_entry(manifest.entry)
        except (ImportError, AttributeError, TypeError) as e:
            self._logger.warning(
                "Skipping plugin that failed to load",
                extra={"plugin": manifest.id, "entry": manifest.entry, "error": str(e)},
            )
            return None

        return self._add(manifest, instance)

    def _add(self, manifest: PluginManifest, instance: Any) -> LoadedPlugin:
        loaded = LoadedPlugin(manifest=manifest, instance=instance)
        hooks = [hook.value for hook in HookName if loaded.implements(hook)]
        if not hooks:
            self._logger.warning("Plugin implements no hooks", extra={"plugin": manifest.id})

        if manifest.id in self._plugins:
            self._logger.warning("Replacing already loaded plugin", extra={"plugin": manifest.id})
        self._plugins[manifest.id] = loaded
        self._logger.info(
            "Plugin loaded",
            extra={"plugin": manifest.id, "version": manifest.version, "hooks": hooks},
        )
        return loaded


def read_manifest_file(path: str) -> list[dict[str, Any]]:
    manifest_path = Path(path)
    if not manifest_path.exists():
        raise FileNotFoundError(f"Plugin manifest not found: {path}")

    doc = json.loads(manifest_path.read_text(encoding="utf-8"))
    if not isinstance(doc, list):
        raise ValueError(f"Plugin manifest must contain a JSON list: {path}")
    return doc


def _import_entry(entry: str) -> Any:
    module_name, _, attribute = entry.partition(":")
    target = getattr(importlib.import_module(module_name), attribute)
    return target() if isinstance(target, type) else target
