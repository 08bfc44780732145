from __future__ import annotations

import logging

from formflow.application.exceptions import IllegalStateTransitionError
from formflow.application.utils.next_step import NextStep
from formflow.domain.entities.conversation import Conversation, ConversationStatus
from formflow.domain.entities.conversation_state import ConversationState

_ALLOWED_TRANSITIONS: dict[ConversationState, frozenset[ConversationState]] = {
    ConversationState.SERVICE_SELECTION: frozenset({ConversationState.DATA_COLLECTION}),
    ConversationState.DATA_COLLECTION: frozenset({ConversationState.COMPLETION}),
    ConversationState.COMPLETION: frozenset(),
}

_DESCRIPTIONS = {
    ConversationState.SERVICE_SELECTION: "Waiting for the user to choose a service",
    ConversationState.DATA_COLLECTION: "Collecting field values for the selected service",
    ConversationState.COMPLETION: "All required fields collected",
}


class ConversationStateMachine:
    """
    Forward-only lifecycle of a conversation:

        SERVICE_SELECTION -> DATA_COLLECTION -> COMPLETION

    The state is never stored; it is derived from `blueprint_id` and `status`.
    Transition methods check the predecessor state before touching the
    conversation, so a rejected transition leaves it exactly as it was.
    """

    def __init__(self) -> None:
        self._logger = logging.getLogger(__name__)

    @staticmethod
    def get_current_state(conversation: Conversation) -> ConversationState:
        if conversation.status == ConversationStatus.COMPLETED:
            return ConversationState.COMPLETION
        if conversation.blueprint_id is None:
            return ConversationState.SERVICE_SELECTION
        return ConversationState.DATA_COLLECTION

    def can_transition(self, conversation: Conversation, target: ConversationState) -> bool:
        return target in _ALLOWED_TRANSITIONS[self.get_current_state(conversation)]

    def transition_to_data_collection(
        self,
        conversation: Conversation,
        blueprint_id: str,
        first_field_id: str | None,
    ) -> None:
        self._require(conversation, ConversationState.SERVICE_SELECTION, ConversationState.DATA_COLLECTION)

        conversation.blueprint_id = blueprint_id
        conversation.status = ConversationStatus.COLLECTING
        conversation.current_field_id = first_field_id
        self._logger.info(
            "Transitioned to data collection",
            extra={"conversation_id": conversation.id, "blueprint_id": blueprint_id, "field_id": first_field_id},
        )

    def transition_to_completion(self, conversation: Conversation) -> None:
        self._require(conversation, ConversationState.DATA_COLLECTION, ConversationState.COMPLETION)

        conversation.status = ConversationStatus.COMPLETED
        conversation.current_field_id = None
        self._logger.info(
            "Transitioned to completion",
            extra={"conversation_id": conversation.id, "blueprint_id": conversation.blueprint_id},
        )

    def progress_to_next_field(self, conversation: Conversation, next_step: NextStep) -> None:
        """Advance to the resolved field, or complete when nothing is left to ask."""
        if next_step.is_complete or next_step.next_field_id is None:
            self.transition_to_completion(conversation)
            return

        self._require(conversation, ConversationState.DATA_COLLECTION, ConversationState.DATA_COLLECTION)
        conversation.current_field_id = next_step.next_field_id

    def describe_state(self, conversation: Conversation) -> str:
        return _DESCRIPTIONS[self.get_current_state(conversation)]

    def _require(
        self,
        conversation: Conversation,
        expected: ConversationState,
        target: ConversationState,
    ) -> None:
        current = self.get_current_state(conversation)
        if current != expected:
            raise IllegalStateTransitionError(
                f"Cannot move conversation {conversation.id} to {target.value}: "
                f"expected state {expected.value}, found {current.value}"
            )
