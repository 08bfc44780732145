from __future__ import annotations

import re

from formflow.application.ports.interpreter import InterpreterPort
from formflow.application.ports.presenter import PresenterPort
from formflow.domain.entities.blueprint import FieldDefinition, FieldType, LanguageConfig, ServiceBlueprint
from formflow.domain.entities.conversation import USER, ChatMessage
from formflow.domain.entities.intent import (
    LIST_SERVICES,
    UNCLEAR,
    ExtractionResult,
    IntentClassification,
    UserIntent,
)
from formflow.infrastructure.llm.prompts import format_service_list

_NUMBER_RE = re.compile(r"[-+]?\d+(?:[.,]\d+)?")
_DATE_RE = re.compile(r"\d{4}-\d{2}-\d{2}")
_QUESTION_WORDS = ("why", "what", "how", "who", "which", "can you", "do i")


def _last_user_text(history: list[ChatMessage]) -> str:
    for message in reversed(history):
        if message.role == USER:
            return message.content.strip()
    return ""


class MockInterpreter(InterpreterPort):
    """Keyword-based stand-in used when no LLM is configured."""

    async def classify_service_selection(
        self,
        blueprints: list[ServiceBlueprint],
        history: list[ChatMessage],
    ) -> str:
        normalized = _last_user_text(history).lower()

        for bp in blueprints:
            if bp.id.lower() in normalized or bp.name.lower() in normalized:
                return bp.id
        if any(word in normalized for word in ("list", "services", "options", "what can")):
            return LIST_SERVICES
        return UNCLEAR

    async def classify_intent(
        self,
        field: FieldDefinition,
        language: LanguageConfig,
        history: list[ChatMessage],
    ) -> IntentClassification:
        normalized = _last_user_text(history).lower()
        if normalized.endswith("?") or normalized.startswith(_QUESTION_WORDS):
            return IntentClassification(intent=UserIntent.QUESTION, reason="Message reads as a question")
        return IntentClassification(intent=UserIntent.ANSWER, reason="Message reads as an answer")

    async def extract_data(
        self,
        fields: list[FieldDefinition],
        language: LanguageConfig,
        history: list[ChatMessage],
    ) -> ExtractionResult:
        text = _last_user_text(history)
        data = {}
        for field in fields:
            value = _extract(text, field.type)
            if value is not None:
                data[field.id] = value
        return ExtractionResult(data=data)


def _extract(text: str, field_type: FieldType):
    if not text:
        return None
    if field_type == FieldType.NUMBER:
        match = _NUMBER_RE.search(text)
        return match.group(0).replace(",", ".") if match else None
    if field_type == FieldType.DATE:
        match = _DATE_RE.search(text)
        return match.group(0) if match else None
    if field_type == FieldType.BOOLEAN:
        words = set(re.findall(r"[a-z]+", text.lower()))
        if words & {"yes", "yep", "true", "sure"}:
            return True
        if words & {"no", "nope", "false"}:
            return False
        return None
    return text


class MockPresenter(PresenterPort):
    async def generate_question(
        self, field: FieldDefinition, language: LanguageConfig, history: list[ChatMessage]
    ) -> str:
        return field.question_template or f"Please provide {field.id}."

    async def generate_error(
        self,
        field: FieldDefinition,
        invalid_input: str | None,
        language: LanguageConfig,
        history: list[ChatMessage],
    ) -> str:
        question = field.question_template or f"Please provide {field.id}."
        return f"Sorry, '{invalid_input or ''}' is not a valid {field.type.value}. {question}"

    async def generate_contextual_response(
        self, field: FieldDefinition, language: LanguageConfig, history: list[ChatMessage]
    ) -> str:
        context = field.ai_context or "This information is needed to complete the form."
        return f"{context} {field.question_template}".strip()

    async def generate_welcome(self, blueprints: list[ServiceBlueprint]) -> str:
        return f"Welcome! Available services:\n{format_service_list(blueprints)}\nWhich one would you like to use?"

    async def generate_service_list(
        self, blueprints: list[ServiceBlueprint], history: list[ChatMessage]
    ) -> str:
        return f"Here are the available services:\n{format_service_list(blueprints)}"

    async def generate_unclear_selection(self, history: list[ChatMessage]) -> str:
        return "I'm not sure which service you mean. Ask \"What services are available?\" to see all options."

    async def generate_completion(
        self, service_name: str, language: LanguageConfig, history: list[ChatMessage]
    ) -> str:
        return f"Thank you! All information for {service_name} has been collected."

    async def generate_language_announcement(self, language_code: str) -> str:
        return f"Please note: this service must be completed in {language_code} only."
