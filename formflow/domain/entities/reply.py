from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ConversationResponse:
    conversation_id: str
    text: str
    is_complete: bool
    data: dict[str, Any]
