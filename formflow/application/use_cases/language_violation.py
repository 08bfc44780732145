from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

from formflow.application.exceptions import LanguageViolationError
from formflow.application.ports.conversation_store import ConversationStorePort
from formflow.domain.entities.conversation import ASSISTANT, Conversation
from formflow.domain.entities.reply import ConversationResponse


class LanguageViolationHandler:
    """
    Runs one step of a turn and turns a language violation into the reply.

    On LanguageViolationError the violation message becomes the assistant
    turn, the conversation is saved and a non-final response is returned.
    The violating text is never merged into the slot data. Any other
    exception propagates unchanged.
    """

    def __init__(self, store: ConversationStorePort) -> None:
        self._store = store
        self._logger = logging.getLogger(__name__)

    async def wrap(
        self,
        conversation: Conversation,
        operation: Callable[[], Awaitable[ConversationResponse]],
    ) -> ConversationResponse:
        try:
            return await operation()
        except LanguageViolationError as e:
            self._logger.info(
                "Language violation",
                extra={
                    "conversation_id": conversation.id,
                    "detected_language": e.detected_language,
                    "expected_language": e.expected_language,
                },
            )
            conversation.append_message(ASSISTANT, e.message)
            await self._store.save(conversation)
            return ConversationResponse(
                conversation_id=conversation.id,
                text=e.message,
                is_complete=False,
                data=dict(conversation.data),
            )
