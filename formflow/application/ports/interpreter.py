from abc import ABC, abstractmethod

from formflow.domain.entities.blueprint import FieldDefinition, LanguageConfig, ServiceBlueprint
from formflow.domain.entities.conversation import ChatMessage
from formflow.domain.entities.intent import ExtractionResult, IntentClassification


class InterpreterPort(ABC):
    @abstractmethod
    async def classify_service_selection(
        self,
        blueprints: list[ServiceBlueprint],
        history: list[ChatMessage],
    ) -> str:
        """
        Decide which service the user wants.

        Returns:
            A blueprint id from `blueprints`, "LIST_SERVICES" or "UNCLEAR".

        Raises:
            LanguageViolationError: the user left the mandated language.
        """
        raise NotImplementedError

    @abstractmethod
    async def classify_intent(
        self,
        field: FieldDefinition,
        language: LanguageConfig,
        history: list[ChatMessage],
    ) -> IntentClassification:
        """
        Decide whether the latest user turn answers `field` or asks about it.
        Ambiguous classifier output must come back as ANSWER.

        Raises:
            LanguageViolationError: strict mode and the user left the mandated language.
        """
        raise NotImplementedError

    @abstractmethod
    async def extract_data(
        self,
        fields: list[FieldDefinition],
        language: LanguageConfig,
        history: list[ChatMessage],
    ) -> ExtractionResult:
        """
        Extract raw values for `fields` from the latest user turn.
        Fields the user did not mention are left out of `data`.

        Raises:
            LanguageViolationError: strict mode and the user left the mandated language.
        """
        raise NotImplementedError
