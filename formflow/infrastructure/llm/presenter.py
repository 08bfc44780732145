from __future__ import annotations

import logging

from formflow.application.ports.llm import LLMPort
from formflow.application.ports.presenter import PresenterPort
from formflow.domain.entities.blueprint import FieldDefinition, LanguageConfig, ServiceBlueprint
from formflow.domain.entities.conversation import ChatMessage
from formflow.infrastructure.llm.interpreter import to_llm_messages
from formflow.infrastructure.llm.prompts import (
    build_completion_prompt,
    build_contextual_prompt,
    build_error_prompt,
    build_language_announcement_prompt,
    build_question_prompt,
    build_service_list_prompt,
    build_unclear_selection_prompt,
    build_verbatim_question_prompt,
    build_welcome_prompt,
    format_service_list,
)
from formflow.infrastructure.llm.system_message import SystemMessageBuilder


def ensure_verbatim_ending(text: str, question_template: str) -> str:
    """Make sure `text` ends with the exact question wording."""
    text = text.strip()
    if text.endswith(question_template):
        return text
    if not text:
        return question_template
    return f"{text}\n\n{question_template}"


class LLMPresenter(PresenterPort):
    def __init__(self, llm: LLMPort) -> None:
        self._llm = llm
        self._logger = logging.getLogger(__name__)

    async def generate_question(
        self, field: FieldDefinition, language: LanguageConfig, history: list[ChatMessage]
    ) -> str:
        if field.verbatim:
            text = await self._complete(
                build_verbatim_question_prompt(field.question_template), language, history
            )
            return ensure_verbatim_ending(text, field.question_template)

        return await self._complete(
            build_question_prompt(field.question_template, field.ai_context), language, history
        )

    async def generate_error(
        self,
        field: FieldDefinition,
        invalid_input: str | None,
        language: LanguageConfig,
        history: list[ChatMessage],
    ) -> str:
        prompt = build_error_prompt(field.question_template, invalid_input, _describe_rule(field))
        text = await self._complete(prompt, language, history)
        if field.verbatim:
            return ensure_verbatim_ending(text, field.question_template)
        return text

    async def generate_contextual_response(
        self, field: FieldDefinition, language: LanguageConfig, history: list[ChatMessage]
    ) -> str:
        text = await self._complete(
            build_contextual_prompt(field.question_template, field.ai_context), language, history
        )
        if field.verbatim:
            return ensure_verbatim_ending(text, field.question_template)
        return text

    async def generate_welcome(self, blueprints: list[ServiceBlueprint]) -> str:
        return await self._complete(build_welcome_prompt(format_service_list(blueprints)), None, [])

    async def generate_service_list(
        self, blueprints: list[ServiceBlueprint], history: list[ChatMessage]
    ) -> str:
        return await self._complete(
            build_service_list_prompt(format_service_list(blueprints)), None, history
        )

    async def generate_unclear_selection(self, history: list[ChatMessage]) -> str:
        return await self._complete(build_unclear_selection_prompt(), None, history)

    async def generate_completion(
        self, service_name: str, language: LanguageConfig, history: list[ChatMessage]
    ) -> str:
        return await self._complete(build_completion_prompt(service_name), language, history)

    async def generate_language_announcement(self, language_code: str) -> str:
        return await self._complete(build_language_announcement_prompt(language_code), None, [])

    async def _complete(
        self,
        prompt: str,
        language: LanguageConfig | None,
        history: list[ChatMessage],
    ) -> str:
        system_message = SystemMessageBuilder(prompt).with_language_config(language).build_system_message()
        return await self._llm.complete_text(system_message, to_llm_messages(history))


def _describe_rule(field: FieldDefinition) -> str:
    if field.validation:
        parts = [f"{key}={value}" for key, value in sorted(field.validation.items())]
        return f"the value must be a valid {field.type.value} ({', '.join(parts)})"
    return f"the value must be a valid {field.type.value}"
