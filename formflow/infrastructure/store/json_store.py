from __future__ import annotations

import asyncio
import json
import logging
import threading
import uuid
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any

from formflow.application.ports.conversation_store import ConversationStorePort
from formflow.domain.entities.conversation import ChatMessage, Conversation, ConversationStatus

_FORMAT_VERSION = 1


class JsonConversationStore(ConversationStorePort):
    """One JSON file per conversation, written atomically via temp file and rename."""

    def __init__(self, data_dir: str = "./data/conversations") -> None:
        self._data_dir = Path(data_dir)
        self._data_dir.mkdir(parents=True, exist_ok=True)
        self._locks: dict[str, threading.Lock] = {}
        self._lock_lock = threading.Lock()  # Lock for managing locks dict
        self._logger = logging.getLogger(__name__)

    def _get_lock(self, conversation_id: str) -> threading.Lock:
        with self._lock_lock:
            if conversation_id not in self._locks:
                self._locks[conversation_id] = threading.Lock()
            return self._locks[conversation_id]

    def _get_file_path(self, conversation_id: str) -> Path:
        return self._data_dir / f"{conversation_id}.json"

    async def get(self, conversation_id: str) -> Conversation | None:
        data = await asyncio.to_thread(self._locked_load, conversation_id)
        return _deserialize(data) if data is not None else None

    async def create(self) -> Conversation:
        conversation = Conversation(id=str(uuid.uuid4()))
        await asyncio.to_thread(self._locked_write, conversation)
        return conversation

    async def save(self, conversation: Conversation) -> None:
        conversation.updated_at = datetime.now(timezone.utc)
        await asyncio.to_thread(self._locked_write, conversation)

    async def list_all(self) -> list[Conversation]:
        documents = await asyncio.to_thread(self._load_all)
        return [_deserialize(data) for data in documents]

    async def delete(self, conversation_id: str) -> bool:
        return await asyncio.to_thread(self._locked_delete, conversation_id)

    # File operations run in a worker thread, never on the event loop.

    def _locked_load(self, conversation_id: str) -> dict[str, Any] | None:
        with self._get_lock(conversation_id):
            return self._load(self._get_file_path(conversation_id))

    def _locked_write(self, conversation: Conversation) -> None:
        with self._get_lock(conversation.id):
            self._write(conversation)

    def _load_all(self) -> list[dict[str, Any]]:
        documents = []
        for file_path in sorted(self._data_dir.glob("*.json")):
            data = self._load(file_path)
            if data is not None:
                documents.append(data)
        return documents

    def _locked_delete(self, conversation_id: str) -> bool:
        with self._get_lock(conversation_id):
            file_path = self._get_file_path(conversation_id)
            if not file_path.exists():
                return False
            file_path.unlink()
        with self._lock_lock:
            self._locks.pop(conversation_id, None)
        return True

    def _load(self, file_path: Path) -> dict[str, Any] | None:
        if not file_path.exists():
            return None
        try:
            with open(file_path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            self._logger.error(
                "Unreadable conversation file",
                extra={"path": str(file_path), "error": str(e)},
            )
            return None

    def _write(self, conversation: Conversation) -> None:
        file_path = self._get_file_path(conversation.id)
        temp_path = file_path.with_suffix(".json.tmp")

        try:
            with open(temp_path, "w", encoding="utf-8") as f:
                json.dump(_serialize(conversation), f, indent=2, ensure_ascii=False)
            # Atomic rename
            temp_path.replace(file_path)
        except Exception:
            temp_path.unlink(missing_ok=True)
            raise


def _serialize(conversation: Conversation) -> dict[str, Any]:
    return {
        "version": _FORMAT_VERSION,
        "id": conversation.id,
        "status": conversation.status.value,
        "blueprint_id": conversation.blueprint_id,
        "current_field_id": conversation.current_field_id,
        "current_language": conversation.current_language,
        "data": {key: _serialize_value(value) for key, value in conversation.data.items()},
        "messages": [
            {"role": m.role, "content": m.content, "timestamp": m.timestamp.isoformat()}
            for m in conversation.messages
        ],
        "created_at": conversation.created_at.isoformat(),
        "updated_at": conversation.updated_at.isoformat(),
    }


def _serialize_value(value: Any) -> Any:
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value


def _deserialize(data: dict[str, Any]) -> Conversation:
    return Conversation(
        id=data["id"],
        status=ConversationStatus(data.get("status", ConversationStatus.COLLECTING.value)),
        blueprint_id=data.get("blueprint_id"),
        current_field_id=data.get("current_field_id"),
        current_language=data.get("current_language"),
        data=dict(data.get("data") or {}),
        messages=[
            ChatMessage(
                role=m["role"],
                content=m["content"],
                timestamp=datetime.fromisoformat(m["timestamp"]),
            )
            for m in data.get("messages", [])
        ],
        created_at=datetime.fromisoformat(data["created_at"]),
        updated_at=datetime.fromisoformat(data["updated_at"]),
    )
