import pytest

from formflow.application.exceptions import LanguageViolationError
from formflow.application.use_cases.language_violation import LanguageViolationHandler
from formflow.domain.entities.conversation import ASSISTANT, Conversation
from formflow.domain.entities.reply import ConversationResponse


@pytest.mark.asyncio
async def test_passes_through_normal_result(store):
    conversation = await store.create()
    expected = ConversationResponse(conversation.id, "hi", False, {})

    async def operation():
        return expected

    assert await LanguageViolationHandler(store).wrap(conversation, operation) is expected


@pytest.mark.asyncio
async def test_violation_becomes_persisted_turn(store):
    conversation = await store.create()
    conversation.data["city"] = "Utrecht"

    async def operation():
        raise LanguageViolationError("Spreek Nederlands a.u.b.", detected_language="en", expected_language="nl")

    response = await LanguageViolationHandler(store).wrap(conversation, operation)

    assert response.text == "Spreek Nederlands a.u.b."
    assert response.is_complete is False
    assert response.data == {"city": "Utrecht"}

    saved = await store.get(conversation.id)
    assert saved.messages[-1].role == ASSISTANT
    assert saved.messages[-1].content == "Spreek Nederlands a.u.b."


@pytest.mark.asyncio
async def test_other_errors_propagate(store):
    conversation = Conversation(id="c1")

    async def operation():
        raise KeyError("boom")

    with pytest.raises(KeyError):
        await LanguageViolationHandler(store).wrap(conversation, operation)
    assert await store.get("c1") is None
