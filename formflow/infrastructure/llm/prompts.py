from __future__ import annotations

from formflow.domain.entities.blueprint import ServiceBlueprint


def format_service_list(blueprints: list[ServiceBlueprint]) -> str:
    return "\n".join(f"- {bp.id}: {bp.name}" for bp in blueprints)


def build_extraction_prompt() -> str:
    return (
        "You are a data extraction engine. Extract data from the user's latest message "
        "into the provided JSON format.\n"
        "Rules:\n"
        "  - Do not invent values.\n"
        "  - If a field is not mentioned, leave it out.\n"
        "  - Dates must be ISO-8601 (YYYY-MM-DD).\n"
        "  - Return only valid JSON matching the schema.\n"
    )


def build_intent_prompt(question_template: str, ai_context: str) -> str:
    return (
        "You are an intent classifier for a conversational form system. "
        "Your task is to determine if the user is:\n"
        "  - ANSWER: providing data/information to answer the current question\n"
        "  - QUESTION: asking a clarifying question about the form, the field, "
        "or why information is needed\n"
        "\n"
        f"Current field being collected: \"{question_template}\"\n"
        f"Context: {ai_context or '(none)'}\n"
        "\n"
        "Output schema:\n"
        "  {\"intent\": \"ANSWER\" | \"QUESTION\", \"reason\": \"...\"}\n"
    )


def build_service_selection_prompt(service_list: str) -> str:
    return (
        "You are a service matcher for a conversational form system. Your task is to determine "
        "which service the user wants to use based on their latest message.\n"
        "\n"
        "Available services:\n"
        f"{service_list}\n"
        "\n"
        "If the user is asking what services are available, respond with: LIST_SERVICES\n"
        "If the user clearly indicates a service, respond with ONLY the service ID (e.g., \"travel_expense\").\n"
        "If unclear, respond with: UNCLEAR\n"
        "\n"
        "Respond with ONLY one of: the service ID, \"LIST_SERVICES\", or \"UNCLEAR\" - nothing else."
    )


def build_question_prompt(question_template: str, ai_context: str) -> str:
    return (
        "You are a helpful assistant collecting data for a form. Your goal is to ask the user for "
        "the specific information required. Be polite and concise.\n"
        "\n"
        f"Ask the user for the following field: '{question_template}'. "
        f"Context/Reason: '{ai_context}'."
    )


def build_verbatim_question_prompt(question_template: str) -> str:
    return (
        "You are a helpful assistant collecting data for a form. Write at most one short sentence "
        "that transitions to the next question. Do NOT ask the question yourself; it will be "
        "appended verbatim after your sentence.\n"
        "\n"
        f"The question that follows is: '{question_template}'."
    )


def build_error_prompt(question_template: str, invalid_input: str | None, error_reason: str) -> str:
    return (
        "You are a helpful assistant. The user tried to answer a question but provided invalid data. "
        "Explain the error gently and re-ask the question.\n"
        "\n"
        f"We asked for '{question_template}'. The user replied: '{invalid_input or ''}'. "
        f"This is invalid because: '{error_reason}'. Please ask them to correct it."
    )


def build_contextual_prompt(question_template: str, ai_context: str) -> str:
    return (
        "You are a helpful assistant. The user has a question about the form. Answer their question "
        "based ONLY on the provided context, then politely re-ask the original form question. "
        "Do NOT repeat the user's question - instead, re-ask the field question from the form.\n"
        "\n"
        f"The current field is '{question_template}'. The Context is: '{ai_context}'. "
        f"After answering their question, re-ask: '{question_template}'."
    )


def build_language_announcement_prompt(language_code: str) -> str:
    return (
        "You are a helpful assistant. Generate a brief, polite announcement message in the specified language.\n"
        "\n"
        f"Please write a brief message (1-2 sentences) in the language with ISO code \"{language_code}\" "
        "that informs the user that this entire service/form must be completed in that language only, "
        "and all communication must be in that language. Be polite and professional."
    )


def build_welcome_prompt(service_list: str) -> str:
    return (
        "You are a helpful assistant. Generate a friendly welcome message for a new user.\n"
        "\n"
        "Welcome the user and present them with the available services using this EXACT list format:\n"
        f"{service_list}\n"
        "\n"
        "Be warm and professional. Ask which service they would like to use. Keep it brief (2-3 sentences). "
        "IMPORTANT: Preserve the list format with dashes (-) exactly as shown above."
    )


def build_service_list_prompt(service_list: str) -> str:
    return (
        "You are a helpful assistant. The user has asked what services are available.\n"
        "\n"
        "Here are the available services (use this EXACT format):\n"
        f"{service_list}\n"
        "\n"
        "Present this list to the user in a natural, helpful way and ask which service they would like "
        "to use. Be conversational and friendly. "
        "IMPORTANT: Preserve the list format with dashes (-) exactly as shown above."
    )


def build_unclear_selection_prompt() -> str:
    return (
        "You are a helpful assistant. The user tried to select a service, but their choice was unclear.\n"
        "\n"
        "Politely let them know you're not sure which service they're looking for. Suggest they can ask "
        "\"What services are available?\" to see all options, or ask them to clarify. "
        "Be helpful and friendly."
    )


def build_completion_prompt(service_name: str) -> str:
    return (
        "You are a helpful assistant. The user has successfully completed providing all required "
        f"information for the service: \"{service_name}\".\n"
        "\n"
        "Generate a completion message that:\n"
        "  1. Thanks the user\n"
        "  2. Confirms that all information has been collected\n"
        "  3. Mentions the service by name\n"
        "\n"
        "Be warm, professional, and reassuring. Keep it brief (2-3 sentences)."
    )


def build_strict_language_augmentation(default_language: str) -> str:
    return (
        f"CRITICAL LANGUAGE REQUIREMENT: This conversation MUST be conducted in {default_language} only. "
        f"The user is required to communicate in {default_language}. "
        "If they speak another language, you must detect this violation."
    )


def build_adaptive_language_augmentation(default_language: str) -> str:
    return (
        f"LANGUAGE PREFERENCE: Please respond in {default_language} unless the user is clearly "
        "communicating in a different language. Adapt to the user's language naturally while "
        f"defaulting to {default_language} for system messages and questions."
    )
