from abc import ABC, abstractmethod

from formflow.domain.entities.conversation import Conversation


class ConversationStorePort(ABC):
    @abstractmethod
    async def get(self, conversation_id: str) -> Conversation | None:
        raise NotImplementedError

    @abstractmethod
    async def create(self) -> Conversation:
        """Create, persist and return a fresh conversation with a new id."""
        raise NotImplementedError

    @abstractmethod
    async def save(self, conversation: Conversation) -> None:
        """
        Durably persist every change made to the conversation.
        Must complete before the caller returns a response.
        """
        raise NotImplementedError

    @abstractmethod
    async def list_all(self) -> list[Conversation]:
        raise NotImplementedError

    @abstractmethod
    async def delete(self, conversation_id: str) -> bool:
        """Delete a conversation. Returns True if it existed."""
        raise NotImplementedError
