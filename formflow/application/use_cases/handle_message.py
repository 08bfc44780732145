from __future__ import annotations

import logging
from typing import Any

from formflow.application.exceptions import ConversationNotFoundError, FieldNotFoundError
from formflow.application.ports.blueprint_catalog import BlueprintCatalogPort
from formflow.application.ports.conversation_store import ConversationStorePort
from formflow.application.ports.interpreter import InterpreterPort
from formflow.application.ports.presenter import PresenterPort
from formflow.application.use_cases.language_violation import LanguageViolationHandler
from formflow.application.use_cases.plugin_orchestrator import HookOutcome, PluginOrchestrator
from formflow.application.use_cases.state_machine import ConversationStateMachine
from formflow.application.utils.field_validation import (
    apply_slot_updates,
    coerce_value,
    validate_slot_updates,
    validate_value,
)
from formflow.application.utils.locks import KeyedLocks
from formflow.application.utils.next_step import determine_next_step
from formflow.domain.entities.blueprint import FieldDefinition, LanguageConfig, ServiceBlueprint
from formflow.domain.entities.conversation import ASSISTANT, USER, ChatMessage, Conversation
from formflow.domain.entities.conversation_state import ConversationState
from formflow.domain.entities.intent import LIST_SERVICES, UNCLEAR, UserIntent
from formflow.domain.entities.reply import ConversationResponse

COMPLETION_NOTE = (
    "This conversation is now complete. "
    "To use another service or restart, please start a new conversation."
)


class HandleMessageUseCase:
    """
    Drives one user turn through the conversation lifecycle.

    Every turn is: load (or create) the conversation, record the user text,
    dispatch on the derived state, save, and answer with
    {conversation_id, text, is_complete, data}. Turns for the same
    conversation are serialized; different conversations run concurrently.
    """

    def __init__(
        self,
        store: ConversationStorePort,
        blueprints: BlueprintCatalogPort,
        interpreter: InterpreterPort,
        presenter: PresenterPort,
        plugin_orchestrator: PluginOrchestrator,
        default_language: LanguageConfig,
        history_limit: int = 20,
    ) -> None:
        self._store = store
        self._blueprints = blueprints
        self._interpreter = interpreter
        self._presenter = presenter
        self._plugins = plugin_orchestrator
        self._default_language = default_language
        self._history_limit = history_limit
        self._state_machine = ConversationStateMachine()
        self._language_violations = LanguageViolationHandler(store)
        self._locks = KeyedLocks()
        self._logger = logging.getLogger(__name__)

    async def execute(self, conversation_id: str | None, text: str) -> ConversationResponse:
        if not text or not text.strip():
            raise ValueError("Message text must not be empty")

        if conversation_id is None:
            conversation = await self._store.create()
            async with self._locks.hold(conversation.id):
                await self._send_welcome(conversation)
                return await self._handle(conversation, text)

        async with self._locks.hold(conversation_id):
            conversation = await self._store.get(conversation_id)
            if conversation is None:
                raise ConversationNotFoundError(conversation_id)
            return await self._handle(conversation, text)

    async def _handle(self, conversation: Conversation, text: str) -> ConversationResponse:
        conversation.append_message(USER, text)

        state = self._state_machine.get_current_state(conversation)
        self._logger.info(
            "Handling message",
            extra={"conversation_id": conversation.id, "state": state.value},
        )

        if state == ConversationState.SERVICE_SELECTION:
            return await self._language_violations.wrap(
                conversation, lambda: self._handle_service_selection(conversation)
            )
        if state == ConversationState.DATA_COLLECTION:
            return await self._language_violations.wrap(
                conversation, lambda: self._handle_data_collection(conversation)
            )
        return await self._handle_completion(conversation)

    # Service selection

    async def _handle_service_selection(self, conversation: Conversation) -> ConversationResponse:
        blueprints = self._blueprints.get_all_blueprints()
        history = self._history(conversation)

        selection = await self._interpreter.classify_service_selection(blueprints, history)

        if selection == LIST_SERVICES:
            text = await self._presenter.generate_service_list(blueprints, history)
            return await self._respond_and_persist(conversation, text, is_complete=False)

        if selection == UNCLEAR:
            text = await self._presenter.generate_unclear_selection(history)
            return await self._respond_and_persist(conversation, text, is_complete=False)

        return await self._start_service(conversation, self._blueprints.get_blueprint(selection))

    async def _start_service(
        self, conversation: Conversation, blueprint: ServiceBlueprint
    ) -> ConversationResponse:
        language = self._language_for(blueprint)

        if language.is_strict:
            announcement = await self._presenter.generate_language_announcement(
                language.default_language
            )
            conversation.append_message(ASSISTANT, announcement)

        outcome = await self._plugins.run_on_start(conversation, blueprint)
        conversation.data = self._merge_hook_updates(conversation.data, outcome, blueprint)

        next_step = determine_next_step(blueprint.fields, conversation.data)
        self._state_machine.transition_to_data_collection(
            conversation, blueprint.id, next_step.next_field_id
        )

        if next_step.is_complete:
            self._logger.info(
                "No field left to ask after onStart",
                extra={"conversation_id": conversation.id, "blueprint_id": blueprint.id},
            )
            self._state_machine.transition_to_completion(conversation)
            await self._store.save(conversation)
            return await self._finish(conversation, blueprint)

        return await self._ask(conversation, blueprint, next_step.next_field_id)

    # Data collection

    async def _handle_data_collection(self, conversation: Conversation) -> ConversationResponse:
        blueprint = self._blueprints.get_blueprint(conversation.blueprint_id)
        field = self._current_field(conversation, blueprint)
        language = self._language_for(blueprint)
        history = self._history(conversation)

        classification = await self._interpreter.classify_intent(field, language, history)

        if classification.intent != UserIntent.ANSWER:
            self._logger.info(
                "Non-answer intent",
                extra={
                    "conversation_id": conversation.id,
                    "field_id": field.id,
                    "intent": classification.intent.value,
                    "reason": classification.reason,
                    "user_message": conversation.last_user_message(),
                },
            )

        if classification.intent == UserIntent.QUESTION:
            text = await self._presenter.generate_contextual_response(field, language, history)
            return await self._respond_and_persist(conversation, text, is_complete=False)

        return await self._handle_answer(conversation, blueprint, field, language, history)

    async def _handle_answer(
        self,
        conversation: Conversation,
        blueprint: ServiceBlueprint,
        field: FieldDefinition,
        language: LanguageConfig,
        history: list[ChatMessage],
    ) -> ConversationResponse:
        extraction = await self._interpreter.extract_data([field], language, history)

        if extraction.user_message_language and not conversation.current_language:
            conversation.current_language = extraction.user_message_language
            self._logger.info(
                "Detected user language",
                extra={"conversation_id": conversation.id, "language": extraction.user_message_language},
            )

        value = coerce_value(extraction.data.get(field.id), field.type)
        if not validate_value(value, field):
            self._logger.info(
                "Validation failed",
                extra={
                    "conversation_id": conversation.id,
                    "field_id": field.id,
                    "value": value,
                    "validation": field.validation,
                },
            )
            text = await self._presenter.generate_error(
                field, conversation.last_user_message(), language, history
            )
            return await self._respond_and_persist(conversation, text, is_complete=False)

        self._logger.info(
            "Validation passed",
            extra={"conversation_id": conversation.id, "field_id": field.id},
        )

        candidate = {**conversation.data, field.id: value}
        outcome = await self._plugins.run_on_field_validated(
            conversation, blueprint, candidate, field.id, value
        )
        conversation.data = self._merge_hook_updates(candidate, outcome, blueprint)

        next_step = determine_next_step(blueprint.fields, conversation.data)
        self._state_machine.progress_to_next_field(conversation, next_step)
        await self._store.save(conversation)

        if next_step.is_complete:
            return await self._finish(conversation, blueprint)
        return await self._ask(conversation, blueprint, next_step.next_field_id)

    # Completion

    async def _handle_completion(self, conversation: Conversation) -> ConversationResponse:
        blueprint = (
            self._blueprints.get_blueprint(conversation.blueprint_id)
            if conversation.blueprint_id
            else None
        )
        service_name = blueprint.name if blueprint else "Service"
        language = self._language_for(blueprint)

        text = await self._presenter.generate_completion(
            service_name, language, self._history(conversation)
        )
        return await self._respond_and_persist(
            conversation, f"{text}\n\n{COMPLETION_NOTE}", is_complete=True
        )

    async def _finish(self, conversation: Conversation, blueprint: ServiceBlueprint) -> ConversationResponse:
        outcome = await self._plugins.run_on_conversation_complete(conversation, blueprint)
        if outcome.slot_updates:
            self._logger.warning(
                "Ignoring slot updates returned after completion",
                extra={"conversation_id": conversation.id, "slot_updates": sorted(outcome.slot_updates)},
            )

        text = await self._presenter.generate_completion(
            blueprint.name, self._language_for(blueprint), self._history(conversation)
        )
        return await self._respond_and_persist(conversation, text, is_complete=True)

    # Helpers

    async def _send_welcome(self, conversation: Conversation) -> None:
        welcome = await self._presenter.generate_welcome(self._blueprints.get_all_blueprints())
        conversation.append_message(ASSISTANT, welcome)

    async def _ask(
        self, conversation: Conversation, blueprint: ServiceBlueprint, field_id: str
    ) -> ConversationResponse:
        field = blueprint.get_field(field_id)
        if field is None:
            raise FieldNotFoundError(field_id, blueprint.id)
        text = await self._presenter.generate_question(
            field, self._language_for(blueprint), self._history(conversation)
        )
        return await self._respond_and_persist(conversation, text, is_complete=False)

    async def _respond_and_persist(
        self, conversation: Conversation, text: str, is_complete: bool
    ) -> ConversationResponse:
        conversation.append_message(ASSISTANT, text)
        await self._store.save(conversation)
        return ConversationResponse(
            conversation_id=conversation.id,
            text=text,
            is_complete=is_complete,
            data=dict(conversation.data),
        )

    def _merge_hook_updates(
        self,
        data: dict[str, Any],
        outcome: HookOutcome,
        blueprint: ServiceBlueprint,
    ) -> dict[str, Any]:
        if outcome.slot_updates:
            return apply_slot_updates(data, outcome.slot_updates, blueprint)
        validate_slot_updates(data, blueprint)
        return dict(data)

    def _current_field(self, conversation: Conversation, blueprint: ServiceBlueprint) -> FieldDefinition:
        field = blueprint.get_field(conversation.current_field_id or "")
        if field is None:
            raise FieldNotFoundError(conversation.current_field_id or "", blueprint.id)
        return field

    def _language_for(self, blueprint: ServiceBlueprint | None) -> LanguageConfig:
        if blueprint is not None and blueprint.language_config is not None:
            return blueprint.language_config
        return self._default_language

    def _history(self, conversation: Conversation) -> list[ChatMessage]:
        return conversation.recent_messages(self._history_limit)
