from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class _CamelSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class MessageRequestSchema(_CamelSchema):
    conversation_id: str | None = Field(default=None, alias="conversationId")
    text: str


class MessageResponseSchema(_CamelSchema):
    conversation_id: str = Field(alias="conversationId")
    text: str
    is_complete: bool = Field(alias="isComplete")
    data: dict[str, Any] = Field(default_factory=dict)


class ConfigResponseSchema(_CamelSchema):
    welcome_message: str = Field(alias="welcomeMessage")


class ChatMessageSchema(_CamelSchema):
    role: str
    content: str
    timestamp: datetime


class ConversationSummarySchema(_CamelSchema):
    id: str
    status: str
    blueprint_id: str | None = Field(default=None, alias="blueprintId")
    current_field_id: str | None = Field(default=None, alias="currentFieldId")
    state: str
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")


class ConversationDetailSchema(ConversationSummarySchema):
    current_language: str | None = Field(default=None, alias="currentLanguage")
    data: dict[str, Any] = Field(default_factory=dict)
    messages: list[ChatMessageSchema] = Field(default_factory=list)
