from types import SimpleNamespace

import pytest

from formflow.application.exceptions import LanguageViolationError, LLMContractError, LLMUpstreamError
from formflow.application.ports.llm import LLMPort
from formflow.domain.entities.blueprint import FieldDefinition, LanguageConfig
from formflow.domain.entities.conversation import USER, ChatMessage
from formflow.domain.entities.intent import LIST_SERVICES, UNCLEAR, UserIntent
from formflow.infrastructure.llm.interpreter import LLMInterpreter, build_field_properties
from formflow.infrastructure.llm.openai_llm import OpenAILLM
from formflow.infrastructure.llm.presenter import LLMPresenter, ensure_verbatim_ending
from formflow.infrastructure.llm.system_message import SystemMessageBuilder

STRICT_NL = LanguageConfig(mode="strict", defaultLanguage="nl")
ADAPTIVE = LanguageConfig()
HISTORY = [ChatMessage(role=USER, content="hello")]


class FakeLLM(LLMPort):
    def __init__(self, text="", json_result=None):
        self.text = text
        self.json_result = json_result
        self.prompts: list[str] = []
        self.schemas: list[dict] = []

    async def complete_text(self, system_prompt, messages):
        self.prompts.append(system_prompt)
        return self.text

    async def complete_json(self, system_prompt, messages, schema):
        self.prompts.append(system_prompt)
        self.schemas.append(schema)
        if isinstance(self.json_result, Exception):
            raise self.json_result
        return self.json_result


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response, expected",
    [("travel", "travel"), (" LIST_SERVICES\n", LIST_SERVICES), ("pizza", UNCLEAR), ("UNCLEAR", UNCLEAR)],
)
async def test_service_selection_mapping(travel_blueprint, response, expected):
    interpreter = LLMInterpreter(FakeLLM(text=response))
    assert await interpreter.classify_service_selection([travel_blueprint], HISTORY) == expected


@pytest.mark.asyncio
async def test_intent_normalization(travel_blueprint):
    field = travel_blueprint.get_field("name")

    question = await LLMInterpreter(FakeLLM(json_result={"intent": "question", "reason": "asks"})).classify_intent(
        field, ADAPTIVE, HISTORY
    )
    fallback = await LLMInterpreter(FakeLLM(json_result={"intent": "maybe"})).classify_intent(
        field, ADAPTIVE, HISTORY
    )

    assert question.intent == UserIntent.QUESTION
    assert fallback.intent == UserIntent.ANSWER
    assert fallback.reason == "No reason provided"


@pytest.mark.asyncio
async def test_extraction_keeps_known_fields(travel_blueprint):
    llm = FakeLLM(json_result={"name": "Ann", "amount": None, "extra": 1, "userMessageLanguage": "en"})

    result = await LLMInterpreter(llm).extract_data(travel_blueprint.fields, ADAPTIVE, HISTORY)

    assert result.data == {"name": "Ann"}
    assert result.user_message_language == "en"
    assert "userMessageLanguage" in llm.schemas[0]["properties"]
    assert "isLanguageViolation" not in llm.schemas[0]["properties"]


@pytest.mark.asyncio
async def test_extraction_contract_error_yields_nothing(travel_blueprint):
    llm = FakeLLM(json_result=LLMContractError("bad json"))
    result = await LLMInterpreter(llm).extract_data(travel_blueprint.fields, ADAPTIVE, HISTORY)
    assert result.data == {}


@pytest.mark.asyncio
async def test_strict_violation_raises(strict_blueprint):
    llm = FakeLLM(
        json_result={
            "city": "Utrecht",
            "userMessageLanguage": "en",
            "isLanguageViolation": True,
            "languageViolationMessage": "Graag in het Nederlands.",
        }
    )

    with pytest.raises(LanguageViolationError) as exc_info:
        await LLMInterpreter(llm).extract_data(strict_blueprint.fields, STRICT_NL, HISTORY)

    assert exc_info.value.message == "Graag in het Nederlands."
    assert exc_info.value.detected_language == "en"
    assert exc_info.value.expected_language == "nl"


@pytest.mark.asyncio
async def test_violation_flag_ignored_in_adaptive_mode(travel_blueprint):
    llm = FakeLLM(json_result={"name": "Ann", "isLanguageViolation": True})
    result = await LLMInterpreter(llm).extract_data(travel_blueprint.fields, ADAPTIVE, HISTORY)
    assert result.data == {"name": "Ann"}


def test_field_properties_merge_validation():
    field = FieldDefinition(
        id="amount",
        type="number",
        questionTemplate="How much?",
        aiContext="Total in GBP",
        validation={"minimum": 1},
    )
    assert build_field_properties([field]) == {
        "amount": {"type": "number", "minimum": 1, "description": "Question: How much? | Context: Total in GBP"}
    }


def test_schema_copy_is_independent():
    builder = SystemMessageBuilder("base").with_language_config(STRICT_NL)
    schema = builder.get_schema()
    schema["properties"].clear()

    assert "isLanguageViolation" in builder.get_schema()["properties"]
    assert builder.has_augmentation()
    assert builder.build_system_message().startswith("base\n\n")


def test_ensure_verbatim_ending():
    assert ensure_verbatim_ending("Hi there.", "Licence number?") == "Hi there.\n\nLicence number?"
    assert ensure_verbatim_ending("Now: Licence number?", "Licence number?") == "Now: Licence number?"
    assert ensure_verbatim_ending("  ", "Licence number?") == "Licence number?"


@pytest.mark.asyncio
async def test_presenter_appends_verbatim_question():
    field = FieldDefinition(id="licence", type="string", questionTemplate="What is your licence number?", verbatim=True)
    llm = FakeLLM(text="Thanks, next up.")

    text = await LLMPresenter(llm).generate_question(field, STRICT_NL, HISTORY)

    assert text.endswith("What is your licence number?")
    assert "nl" in llm.prompts[0]


class _FakeCompletions:
    def __init__(self, content=None, error=None):
        self._content = content
        self._error = error
        self.kwargs = None

    async def create(self, **kwargs):
        self.kwargs = kwargs
        if self._error:
            raise self._error
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=self._content))])


def _openai(completions):
    client = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    return OpenAILLM(api_key="test", model="gpt-test", client=client)


@pytest.mark.asyncio
async def test_openai_json_mode():
    completions = _FakeCompletions(content='{"intent": "ANSWER"}')

    result = await _openai(completions).complete_json("sys", [], {"type": "object"})

    assert result == {"intent": "ANSWER"}
    assert completions.kwargs["response_format"] == {"type": "json_object"}
    assert completions.kwargs["messages"][0]["role"] == "system"


@pytest.mark.asyncio
async def test_openai_error_mapping():
    with pytest.raises(LLMUpstreamError):
        await _openai(_FakeCompletions(error=ConnectionError("down"))).complete_text("sys", [])
    with pytest.raises(LLMContractError):
        await _openai(_FakeCompletions(content="   ")).complete_text("sys", [])
    with pytest.raises(LLMContractError):
        await _openai(_FakeCompletions(content="[1, 2]")).complete_json("sys", [], {})
