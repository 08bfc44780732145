import json

from formflow.domain.entities.blueprint import HookName
from formflow.infrastructure.plugins.http_caller import HttpCallerPlugin
from formflow.infrastructure.plugins.registry import BUILTIN_MANIFESTS, PluginRegistry


class EchoPlugin:
    async def on_start(self, context):
        return {"slotUpdates": {}}


def test_builtin_http_caller_loads():
    registry = PluginRegistry(BUILTIN_MANIFESTS)

    loaded = registry.get("http-caller")
    assert isinstance(loaded.instance, HttpCallerPlugin)
    assert loaded.implements(HookName.ON_FIELD_VALIDATED)
    assert not loaded.implements(HookName.ON_START)


def test_invalid_manifests_are_skipped():
    registry = PluginRegistry(
        [
            {"id": "no-entry", "name": "No Entry", "version": "1.0.0"},
            {"id": "bad-entry", "name": "Bad", "version": "1.0.0", "entry": "not a path"},
            {"id": "missing", "name": "Missing", "version": "1.0.0", "entry": "formflow.nowhere:Plugin"},
            {"id": "no-attr", "name": "No Attr", "version": "1.0.0",
             "entry": "formflow.infrastructure.plugins.http_caller:Nope"},
        ]
    )
    assert registry.loaded_ids() == []


def test_register_instance():
    registry = PluginRegistry()
    plugin = EchoPlugin()

    loaded = registry.register("echo", plugin, version="2.0.0")

    assert registry.get("echo") is loaded
    assert loaded.instance is plugin
    assert loaded.manifest.name == "echo"
    assert loaded.implements(HookName.ON_START)
    assert registry.get("unknown") is None


def test_from_manifest_file(tmp_path):
    manifest = tmp_path / "plugins.json"
    manifest.write_text(
        json.dumps([{"id": "echo", "name": "Echo", "version": "1.0.0", "entry": "test_plugin_registry:EchoPlugin"}]),
        encoding="utf-8",
    )

    registry = PluginRegistry.from_manifest_file(str(manifest))

    assert registry.loaded_ids() == ["http-caller", "echo"]
    assert isinstance(registry.get("echo").instance, EchoPlugin)


def test_from_manifest_file_without_path():
    assert PluginRegistry.from_manifest_file(None).loaded_ids() == ["http-caller"]
