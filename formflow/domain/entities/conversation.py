from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Union

# Slot values are one of these scalars; dates are held as ISO-8601 strings.
SlotValue = Union[str, int, float, bool, date]

USER = "user"
ASSISTANT = "assistant"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ConversationStatus(str, Enum):
    COLLECTING = "COLLECTING"
    COMPLETED = "COMPLETED"


@dataclass(frozen=True)
class ChatMessage:
    role: str  # "user" | "assistant"
    content: str
    timestamp: datetime = field(default_factory=_utcnow)


@dataclass
class Conversation:
    id: str
    status: ConversationStatus = ConversationStatus.COLLECTING
    blueprint_id: str | None = None
    current_field_id: str | None = None
    current_language: str | None = None
    data: dict[str, Any] = field(default_factory=dict)
    messages: list[ChatMessage] = field(default_factory=list)
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    def append_message(self, role: str, content: str) -> None:
        self.messages.append(ChatMessage(role=role, content=content))

    def last_user_message(self) -> str | None:
        for message in reversed(self.messages):
            if message.role == USER:
                return message.content
        return None

    def recent_messages(self, limit: int) -> list[ChatMessage]:
        if limit <= 0:
            return list(self.messages)
        return list(self.messages[-limit:])
