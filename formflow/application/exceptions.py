class FormflowError(Exception):
    """Base class for errors raised by the conversation engine."""


class NotFoundError(FormflowError):
    pass


class ConversationNotFoundError(NotFoundError):
    def __init__(self, conversation_id: str) -> None:
        super().__init__(f"Conversation not found: {conversation_id}")
        self.conversation_id = conversation_id


class BlueprintNotFoundError(NotFoundError):
    def __init__(self, blueprint_id: str, available: list[str] | None = None) -> None:
        message = f"Blueprint with id '{blueprint_id}' not found."
        if available is not None:
            message += f" Available blueprints: {', '.join(available) or '(none)'}"
        super().__init__(message)
        self.blueprint_id = blueprint_id


class FieldNotFoundError(NotFoundError):
    def __init__(self, field_id: str, blueprint_id: str) -> None:
        super().__init__(f"Field '{field_id}' not found in blueprint '{blueprint_id}'")
        self.field_id = field_id
        self.blueprint_id = blueprint_id


class LanguageViolationError(FormflowError):
    """Raised by a collaborator when the user left the mandated language (strict mode)."""

    def __init__(
        self,
        message: str,
        detected_language: str | None = None,
        expected_language: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.detected_language = detected_language
        self.expected_language = expected_language


class PluginExecutionError(FormflowError):
    """A hook batch failed; none of its slot updates may be applied."""


class PluginNotFoundError(PluginExecutionError):
    """A hook references a plugin instance or type that is not configured or loaded."""


class SlotValidationError(FormflowError):
    def __init__(self, field_id: str, value: object) -> None:
        super().__init__(f"Slot value for field '{field_id}' failed validation: {value!r}")
        self.field_id = field_id
        self.value = value


class InvalidConditionError(FormflowError):
    """A field visibility condition uses an unsupported shape or operator."""


class IllegalStateTransitionError(FormflowError):
    pass


class LLMUpstreamError(RuntimeError):
    """Raised when LLM provider fails (timeouts, network errors, service unavailable)."""
    pass


class LLMContractError(RuntimeError):
    """Raised when LLM adapter violates contract (bad format or missing data)."""
    pass
