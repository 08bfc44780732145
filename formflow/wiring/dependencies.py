from functools import lru_cache
import logging

from formflow.application.ports.conversation_store import ConversationStorePort
from formflow.application.ports.interpreter import InterpreterPort
from formflow.application.ports.presenter import PresenterPort
from formflow.application.use_cases.conversation_admin import ConversationAdminUseCase
from formflow.application.use_cases.handle_message import HandleMessageUseCase
from formflow.application.use_cases.plugin_orchestrator import PluginOrchestrator
from formflow.core.config import settings
from formflow.domain.entities.blueprint import LanguageConfig
from formflow.infrastructure.blueprints.file_catalog import FileBlueprintCatalog
from formflow.infrastructure.llm.interpreter import LLMInterpreter
from formflow.infrastructure.llm.mock_llm import MockInterpreter, MockPresenter
from formflow.infrastructure.llm.openai_llm import OpenAILLM
from formflow.infrastructure.llm.presenter import LLMPresenter
from formflow.infrastructure.plugins.registry import PluginRegistry
from formflow.infrastructure.store.json_store import JsonConversationStore
from formflow.infrastructure.store.memory_store import MemoryConversationStore


_conversation_store: ConversationStorePort | None = None


def _use_openai() -> bool:
    return bool(settings.OPENAI_API_KEY and settings.OPENAI_API_KEY.strip())


@lru_cache
def get_llm() -> OpenAILLM:
    return OpenAILLM(
        api_key=settings.OPENAI_API_KEY,
        model=settings.OPENAI_MODEL,
        temperature=settings.OPENAI_TEMPERATURE,
        base_url=settings.OPENAI_BASE_URL,
    )


@lru_cache
def get_interpreter() -> InterpreterPort:
    if _use_openai():
        return LLMInterpreter(get_llm())
    logging.getLogger(__name__).info("OPENAI_API_KEY not set, using MockInterpreter")
    return MockInterpreter()


@lru_cache
def get_presenter() -> PresenterPort:
    if _use_openai():
        return LLMPresenter(get_llm())
    return MockPresenter()


def get_conversation_store() -> ConversationStorePort:
    global _conversation_store
    if _conversation_store is None:
        provider = settings.STORE_PROVIDER.lower()
        if provider == "json":
            _conversation_store = JsonConversationStore(data_dir=settings.DATA_DIR)
        elif provider == "memory":
            _conversation_store = MemoryConversationStore()
        else:
            raise ValueError(f"Unknown STORE_PROVIDER: {settings.STORE_PROVIDER}")
    return _conversation_store


@lru_cache
def get_blueprint_catalog() -> FileBlueprintCatalog:
    return FileBlueprintCatalog(settings.BLUEPRINTS_DIRECTORY)


@lru_cache
def get_plugin_registry() -> PluginRegistry:
    return PluginRegistry.from_manifest_file(settings.PLUGIN_MANIFEST)


def get_default_language() -> LanguageConfig:
    return LanguageConfig(mode=settings.LANG_DEFAULT_MODE, default_language=settings.LANG_DEFAULT_LANGUAGE)


@lru_cache
def get_handle_message_use_case() -> HandleMessageUseCase:
    # Cached so the per-conversation locks are shared by every request.
    return HandleMessageUseCase(
        store=get_conversation_store(),
        blueprints=get_blueprint_catalog(),
        interpreter=get_interpreter(),
        presenter=get_presenter(),
        plugin_orchestrator=PluginOrchestrator(get_plugin_registry()),
        default_language=get_default_language(),
        history_limit=settings.HISTORY_LIMIT,
    )


def get_conversation_admin_use_case() -> ConversationAdminUseCase:
    return ConversationAdminUseCase(
        store=get_conversation_store(),
        blueprints=get_blueprint_catalog(),
        presenter=get_presenter(),
    )
