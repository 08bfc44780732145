from __future__ import annotations

import copy
from typing import Any

from formflow.domain.entities.blueprint import LanguageConfig
from formflow.infrastructure.llm.prompts import (
    build_adaptive_language_augmentation,
    build_strict_language_augmentation,
)

USER_MESSAGE_LANGUAGE = "userMessageLanguage"
IS_LANGUAGE_VIOLATION = "isLanguageViolation"
LANGUAGE_VIOLATION_MESSAGE = "languageViolationMessage"


class SystemMessageBuilder:
    """
    Assembles a system prompt and its JSON response schema.

    A language config adds the language augmentation to the prompt and the
    language detection properties to the schema; strict mode also adds the
    violation flag and message.
    """

    def __init__(self, base_message: str) -> None:
        self._base_message = base_message
        self._augmentations: list[str] = []
        self._schema: dict[str, Any] = {
            "type": "object",
            "properties": {},
            "required": [],
            "additionalProperties": False,
        }

    def with_language_config(self, language: LanguageConfig | None) -> "SystemMessageBuilder":
        if language is None:
            return self

        if language.is_strict:
            self._augmentations.append(build_strict_language_augmentation(language.default_language))
        else:
            self._augmentations.append(build_adaptive_language_augmentation(language.default_language))

        properties = self._schema["properties"]
        properties[USER_MESSAGE_LANGUAGE] = {
            "type": "string",
            "description": "The ISO language code of the language the user is speaking (e.g., 'en', 'nl', 'de', 'fr')",
        }
        if language.is_strict:
            properties[IS_LANGUAGE_VIOLATION] = {
                "type": "boolean",
                "description": (
                    f"True if the user is NOT speaking {language.default_language}. "
                    "Ignore short responses like 'yes', 'no', 'ok'."
                ),
            }
            properties[LANGUAGE_VIOLATION_MESSAGE] = {
                "type": "string",
                "description": (
                    f"If isLanguageViolation is true, provide a polite message in {language.default_language} "
                    f"asking the user to communicate in {language.default_language} only."
                ),
            }
        return self

    def with_schema_properties(
        self,
        properties: dict[str, dict[str, Any]],
        required: list[str] | None = None,
    ) -> "SystemMessageBuilder":
        self._schema["properties"].update(properties)
        if required:
            self._schema["required"] = [*self._schema["required"], *required]
        return self

    def build_system_message(self) -> str:
        if not self._augmentations:
            return self._base_message
        return "\n\n".join([self._base_message, *self._augmentations])

    def get_schema(self) -> dict[str, Any]:
        return copy.deepcopy(self._schema)

    def has_augmentation(self) -> bool:
        return bool(self._augmentations)
