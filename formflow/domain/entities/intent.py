from dataclasses import dataclass, field
from enum import Enum
from typing import Any

LIST_SERVICES = "LIST_SERVICES"
UNCLEAR = "UNCLEAR"


class UserIntent(str, Enum):
    ANSWER = "ANSWER"
    QUESTION = "QUESTION"


@dataclass(frozen=True)
class IntentClassification:
    intent: UserIntent
    reason: str = "No reason provided"


@dataclass(frozen=True)
class ExtractionResult:
    data: dict[str, Any] = field(default_factory=dict)
    user_message_language: str | None = None
