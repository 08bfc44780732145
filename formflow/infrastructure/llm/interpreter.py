from __future__ import annotations

import logging
from typing import Any

from formflow.application.exceptions import LanguageViolationError, LLMContractError
from formflow.application.ports.interpreter import InterpreterPort
from formflow.application.ports.llm import LLMPort
from formflow.domain.entities.blueprint import FieldDefinition, FieldType, LanguageConfig, ServiceBlueprint
from formflow.domain.entities.conversation import ChatMessage
from formflow.domain.entities.intent import (
    LIST_SERVICES,
    UNCLEAR,
    ExtractionResult,
    IntentClassification,
    UserIntent,
)
from formflow.infrastructure.llm.prompts import (
    build_extraction_prompt,
    build_intent_prompt,
    build_service_selection_prompt,
    format_service_list,
)
from formflow.infrastructure.llm.system_message import (
    IS_LANGUAGE_VIOLATION,
    LANGUAGE_VIOLATION_MESSAGE,
    USER_MESSAGE_LANGUAGE,
    SystemMessageBuilder,
)

_BASE_TYPES = {
    FieldType.STRING: {"type": "string"},
    FieldType.NUMBER: {"type": "number"},
    FieldType.BOOLEAN: {"type": "boolean"},
    FieldType.DATE: {"type": "string", "format": "date"},
}

_INTENT_SCHEMA = {
    "intent": {
        "type": "string",
        "enum": [UserIntent.ANSWER.value, UserIntent.QUESTION.value],
        "description": "Whether the user is providing an answer or asking a clarifying question",
    },
    "reason": {
        "type": "string",
        "description": "Brief explanation of why the message was classified as such",
    },
}


def to_llm_messages(history: list[ChatMessage]) -> list[dict[str, str]]:
    return [{"role": m.role, "content": m.content} for m in history]


class LLMInterpreter(InterpreterPort):
    """Intent classification and data extraction on top of an LLMPort."""

    def __init__(self, llm: LLMPort) -> None:
        self._llm = llm
        self._logger = logging.getLogger(__name__)

    async def classify_service_selection(
        self,
        blueprints: list[ServiceBlueprint],
        history: list[ChatMessage],
    ) -> str:
        prompt = build_service_selection_prompt(format_service_list(blueprints))
        response = (await self._llm.complete_text(prompt, to_llm_messages(history))).strip()

        if response in (LIST_SERVICES, UNCLEAR):
            return response
        if any(bp.id == response for bp in blueprints):
            return response

        self._logger.info("Unmatched service selection", extra={"response": response[:80]})
        return UNCLEAR

    async def classify_intent(
        self,
        field: FieldDefinition,
        language: LanguageConfig,
        history: list[ChatMessage],
    ) -> IntentClassification:
        builder = (
            SystemMessageBuilder(build_intent_prompt(field.question_template, field.ai_context))
            .with_language_config(language)
            .with_schema_properties(_INTENT_SCHEMA, required=["intent", "reason"])
        )
        result = await self._llm.complete_json(
            builder.build_system_message(), to_llm_messages(history), builder.get_schema()
        )

        self._check_language(result, language)

        return IntentClassification(
            intent=_normalize_intent(result.get("intent")),
            reason=str(result.get("reason") or "No reason provided"),
        )

    async def extract_data(
        self,
        fields: list[FieldDefinition],
        language: LanguageConfig,
        history: list[ChatMessage],
    ) -> ExtractionResult:
        builder = (
            SystemMessageBuilder(build_extraction_prompt())
            .with_language_config(language)
            .with_schema_properties(build_field_properties(fields))
        )

        try:
            result = await self._llm.complete_json(
                builder.build_system_message(), to_llm_messages(history), builder.get_schema()
            )
        except LLMContractError as e:
            self._logger.warning("Extraction returned unusable output", extra={"error": str(e)})
            return ExtractionResult()

        self._check_language(result, language)

        field_ids = {f.id for f in fields}
        data = {key: value for key, value in result.items() if key in field_ids and value is not None}
        detected = result.get(USER_MESSAGE_LANGUAGE)

        self._logger.debug("Extraction result", extra={"fields": sorted(data)})
        return ExtractionResult(
            data=data,
            user_message_language=detected if isinstance(detected, str) and detected else None,
        )

    def _check_language(self, result: dict[str, Any], language: LanguageConfig) -> None:
        if not language.is_strict or result.get(IS_LANGUAGE_VIOLATION) is not True:
            return

        message = result.get(LANGUAGE_VIOLATION_MESSAGE) or (
            f"Please communicate in {language.default_language} only."
        )
        raise LanguageViolationError(
            str(message),
            detected_language=result.get(USER_MESSAGE_LANGUAGE),
            expected_language=language.default_language,
        )


def build_field_properties(fields: list[FieldDefinition]) -> dict[str, dict[str, Any]]:
    properties: dict[str, dict[str, Any]] = {}
    for field in fields:
        schema: dict[str, Any] = {**_BASE_TYPES[field.type], **field.validation}

        context_parts = []
        if field.question_template:
            context_parts.append(f"Question: {field.question_template}")
        if field.ai_context:
            context_parts.append(f"Context: {field.ai_context}")
        if context_parts:
            existing = schema.get("description")
            schema["description"] = " | ".join(context_parts) + (f" | {existing}" if existing else "")

        properties[field.id] = schema
    return properties


def _normalize_intent(raw: Any) -> UserIntent:
    normalized = str(raw or "").strip().upper()
    if normalized == UserIntent.QUESTION.value:
        return UserIntent.QUESTION
    # Ambiguous output counts as an answer so extraction is still attempted.
    return UserIntent.ANSWER
