from abc import ABC, abstractmethod

from formflow.domain.entities.blueprint import FieldDefinition, LanguageConfig, ServiceBlueprint
from formflow.domain.entities.conversation import ChatMessage


class PresenterPort(ABC):
    """Produces user-facing text. Purely textual: never reads or changes conversation state."""

    @abstractmethod
    async def generate_question(
        self, field: FieldDefinition, language: LanguageConfig, history: list[ChatMessage]
    ) -> str:
        raise NotImplementedError

    @abstractmethod
    async def generate_error(
        self,
        field: FieldDefinition,
        invalid_input: str | None,
        language: LanguageConfig,
        history: list[ChatMessage],
    ) -> str:
        raise NotImplementedError

    @abstractmethod
    async def generate_contextual_response(
        self, field: FieldDefinition, language: LanguageConfig, history: list[ChatMessage]
    ) -> str:
        raise NotImplementedError

    @abstractmethod
    async def generate_welcome(self, blueprints: list[ServiceBlueprint]) -> str:
        raise NotImplementedError

    @abstractmethod
    async def generate_service_list(
        self, blueprints: list[ServiceBlueprint], history: list[ChatMessage]
    ) -> str:
        raise NotImplementedError

    @abstractmethod
    async def generate_unclear_selection(self, history: list[ChatMessage]) -> str:
        raise NotImplementedError

    @abstractmethod
    async def generate_completion(
        self, service_name: str, language: LanguageConfig, history: list[ChatMessage]
    ) -> str:
        raise NotImplementedError

    @abstractmethod
    async def generate_language_announcement(self, language_code: str) -> str:
        raise NotImplementedError
