from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class FieldType(str, Enum):
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"


class LanguageMode(str, Enum):
    ADAPTIVE = "adaptive"
    STRICT = "strict"


class HookName(str, Enum):
    ON_START = "onStart"
    ON_FIELD_VALIDATED = "onFieldValidated"
    ON_CONVERSATION_COMPLETE = "onConversationComplete"

    @property
    def method_name(self) -> str:
        return {
            HookName.ON_START: "on_start",
            HookName.ON_FIELD_VALIDATED: "on_field_validated",
            HookName.ON_CONVERSATION_COMPLETE: "on_conversation_complete",
        }[self]


class _BlueprintModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")


class LanguageConfig(_BlueprintModel):
    mode: LanguageMode = LanguageMode.ADAPTIVE
    default_language: str = Field(default="en-GB", alias="defaultLanguage")

    @property
    def is_strict(self) -> bool:
        return self.mode == LanguageMode.STRICT


class FieldDefinition(_BlueprintModel):
    id: str
    type: FieldType
    question_template: str = Field(default="", alias="questionTemplate")
    ai_context: str = Field(default="", alias="aiContext")
    validation: dict[str, Any] = Field(default_factory=dict)
    condition: Any = None
    verbatim: bool = False

    @property
    def has_condition(self) -> bool:
        # An explicit JSON null is a condition (always hidden); an omitted key is not.
        return "condition" in self.model_fields_set


class PluginConfig(_BlueprintModel):
    id: str
    instance_id: str | None = Field(default=None, alias="instanceId")
    trigger_on_field: str | None = Field(default=None, alias="triggerOnField")
    config: dict[str, Any] = Field(default_factory=dict)

    @property
    def resolved_instance_id(self) -> str:
        return self.instance_id or self.id


class ServiceHooks(_BlueprintModel):
    on_start: list[str] = Field(default_factory=list, alias="onStart")
    on_field_validated: list[str] = Field(default_factory=list, alias="onFieldValidated")
    on_conversation_complete: list[str] = Field(default_factory=list, alias="onConversationComplete")

    def instances_for(self, hook: HookName) -> list[str]:
        return {
            HookName.ON_START: self.on_start,
            HookName.ON_FIELD_VALIDATED: self.on_field_validated,
            HookName.ON_CONVERSATION_COMPLETE: self.on_conversation_complete,
        }[hook]


class ServiceBlueprint(_BlueprintModel):
    """Declarative description of one conversational service."""

    id: str
    name: str
    language_config: LanguageConfig | None = Field(default=None, alias="languageConfig")
    fields: list[FieldDefinition]
    plugins: list[PluginConfig] = Field(default_factory=list)
    hooks: ServiceHooks = Field(default_factory=ServiceHooks)

    def get_field(self, field_id: str) -> FieldDefinition | None:
        for field in self.fields:
            if field.id == field_id:
                return field
        return None

    def get_plugin(self, instance_id: str) -> PluginConfig | None:
        for plugin in self.plugins:
            if plugin.resolved_instance_id == instance_id:
                return plugin
        return None
