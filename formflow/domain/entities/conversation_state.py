from enum import Enum


class ConversationState(str, Enum):
    SERVICE_SELECTION = "SERVICE_SELECTION"
    DATA_COLLECTION = "DATA_COLLECTION"
    COMPLETION = "COMPLETION"
