from __future__ import annotations

import logging

from formflow.application.exceptions import ConversationNotFoundError
from formflow.application.ports.blueprint_catalog import BlueprintCatalogPort
from formflow.application.ports.conversation_store import ConversationStorePort
from formflow.application.ports.presenter import PresenterPort
from formflow.domain.entities.conversation import Conversation


class ConversationAdminUseCase:
    """Read-side and housekeeping operations around stored conversations."""

    def __init__(
        self,
        store: ConversationStorePort,
        blueprints: BlueprintCatalogPort,
        presenter: PresenterPort,
    ) -> None:
        self._store = store
        self._blueprints = blueprints
        self._presenter = presenter
        self._logger = logging.getLogger(__name__)

    async def get_config(self) -> dict[str, str]:
        welcome = await self._presenter.generate_welcome(self._blueprints.get_all_blueprints())
        return {"welcomeMessage": welcome}

    async def list_conversations(self) -> list[Conversation]:
        conversations = await self._store.list_all()
        return sorted(conversations, key=lambda c: c.updated_at, reverse=True)

    async def get_conversation(self, conversation_id: str) -> Conversation:
        conversation = await self._store.get(conversation_id)
        if conversation is None:
            raise ConversationNotFoundError(conversation_id)
        return conversation

    async def delete_conversation(self, conversation_id: str) -> None:
        if not await self._store.delete(conversation_id):
            raise ConversationNotFoundError(conversation_id)
        self._logger.info("Conversation deleted", extra={"conversation_id": conversation_id})
