"""Shared fixtures: in-memory collaborators and sample blueprints."""

from __future__ import annotations

import pytest

from formflow.application.exceptions import BlueprintNotFoundError
from formflow.application.ports.blueprint_catalog import BlueprintCatalogPort
from formflow.application.ports.interpreter import InterpreterPort
from formflow.application.use_cases.handle_message import HandleMessageUseCase
from formflow.application.use_cases.plugin_orchestrator import PluginOrchestrator
from formflow.domain.entities.blueprint import LanguageConfig, ServiceBlueprint
from formflow.domain.entities.intent import UNCLEAR, ExtractionResult, IntentClassification, UserIntent
from formflow.infrastructure.llm.mock_llm import MockPresenter
from formflow.infrastructure.plugins.registry import PluginRegistry
from formflow.infrastructure.store.memory_store import MemoryConversationStore


class InMemoryCatalog(BlueprintCatalogPort):
    def __init__(self, blueprints: list[ServiceBlueprint]) -> None:
        self._blueprints = {bp.id: bp for bp in blueprints}

    def get_blueprint(self, blueprint_id: str) -> ServiceBlueprint:
        if blueprint_id not in self._blueprints:
            raise BlueprintNotFoundError(blueprint_id, available=list(self._blueprints))
        return self._blueprints[blueprint_id]

    def get_all_blueprints(self) -> list[ServiceBlueprint]:
        return list(self._blueprints.values())


class ScriptedInterpreter(InterpreterPort):
    """Returns queued answers in order; a queued exception is raised instead."""

    def __init__(self) -> None:
        self.selections: list = []
        self.intents: list = []
        self.extractions: list = []
        self.calls: list[str] = []

    async def classify_service_selection(self, blueprints, history):
        self.calls.append("classify_service_selection")
        return _next(self.selections, UNCLEAR)

    async def classify_intent(self, field, language, history):
        self.calls.append("classify_intent")
        return _next(self.intents, IntentClassification(intent=UserIntent.ANSWER))

    async def extract_data(self, fields, language, history):
        self.calls.append("extract_data")
        return _next(self.extractions, ExtractionResult())

    def answer(self, **data) -> None:
        self.intents.append(IntentClassification(intent=UserIntent.ANSWER, reason="test"))
        self.extractions.append(ExtractionResult(data=data))


def _next(queue: list, default):
    if not queue:
        return default
    item = queue.pop(0)
    if isinstance(item, Exception):
        raise item
    return item


class RecordingPlugin:
    """Plugin double whose hooks return fixed slot updates and record their contexts."""

    def __init__(self, on_start=None, on_field_validated=None, on_complete=None, fail_with=None) -> None:
        self.contexts: list = []
        self._fail_with = fail_with
        if on_start is not None:
            self.on_start = self._hook(on_start)
        if on_field_validated is not None:
            self.on_field_validated = self._hook(on_field_validated)
        if on_complete is not None:
            self.on_conversation_complete = self._hook(on_complete)

    def _hook(self, updates):
        async def run(context):
            self.contexts.append(context)
            if self._fail_with is not None:
                raise self._fail_with
            return {"slotUpdates": dict(updates), "metadata": {"calls": len(self.contexts)}}

        return run


TRAVEL = {
    "id": "travel",
    "name": "Travel Claim",
    "fields": [
        {"id": "name", "type": "string", "questionTemplate": "What is your name?",
         "validation": {"type": "string", "minLength": 2}},
        {"id": "amount", "type": "number", "questionTemplate": "How much?",
         "validation": {"type": "number", "minimum": 1}},
        {"id": "has_receipt", "type": "boolean", "questionTemplate": "Receipt?"},
        {"id": "reason", "type": "string", "questionTemplate": "Why no receipt?",
         "condition": {"==": [{"var": "has_receipt"}, False]}},
    ],
}

STRICT = {
    "id": "strict",
    "name": "Strict Form",
    "languageConfig": {"mode": "strict", "defaultLanguage": "nl"},
    "fields": [
        {"id": "city", "type": "string", "questionTemplate": "Welke stad?"},
    ],
}


@pytest.fixture
def travel_blueprint() -> ServiceBlueprint:
    return ServiceBlueprint.model_validate(TRAVEL)


@pytest.fixture
def strict_blueprint() -> ServiceBlueprint:
    return ServiceBlueprint.model_validate(STRICT)


@pytest.fixture
def store() -> MemoryConversationStore:
    return MemoryConversationStore()


@pytest.fixture
def interpreter() -> ScriptedInterpreter:
    return ScriptedInterpreter()


@pytest.fixture
def presenter() -> MockPresenter:
    return MockPresenter()


@pytest.fixture
def registry() -> PluginRegistry:
    return PluginRegistry()


@pytest.fixture
def make_use_case(store, interpreter, presenter, registry):
    def build(*blueprints: ServiceBlueprint) -> HandleMessageUseCase:
        return HandleMessageUseCase(
            store=store,
            blueprints=InMemoryCatalog(list(blueprints)),
            interpreter=interpreter,
            presenter=presenter,
            plugin_orchestrator=PluginOrchestrator(registry),
            default_language=LanguageConfig(),
            history_limit=20,
        )

    return build
