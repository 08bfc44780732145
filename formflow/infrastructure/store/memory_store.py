from __future__ import annotations

import copy
import uuid
from datetime import datetime, timezone

from formflow.application.ports.conversation_store import ConversationStorePort
from formflow.domain.entities.conversation import Conversation


class MemoryConversationStore(ConversationStorePort):
    def __init__(self) -> None:
        self._conversations: dict[str, Conversation] = {}

    async def get(self, conversation_id: str) -> Conversation | None:
        conversation = self._conversations.get(conversation_id)
        return copy.deepcopy(conversation) if conversation else None

    async def create(self) -> Conversation:
        conversation = Conversation(id=str(uuid.uuid4()))
        self._conversations[conversation.id] = copy.deepcopy(conversation)
        return conversation

    async def save(self, conversation: Conversation) -> None:
        conversation.updated_at = datetime.now(timezone.utc)
        self._conversations[conversation.id] = copy.deepcopy(conversation)

    async def list_all(self) -> list[Conversation]:
        return [copy.deepcopy(c) for c in self._conversations.values()]

    async def delete(self, conversation_id: str) -> bool:
        return self._conversations.pop(conversation_id, None) is not None
