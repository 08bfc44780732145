import pytest
from fastapi.testclient import TestClient

from conftest import InMemoryCatalog
from formflow.application.exceptions import LLMUpstreamError
from formflow.application.use_cases.conversation_admin import ConversationAdminUseCase
from formflow.main import app
from formflow.wiring.dependencies import get_conversation_admin_use_case, get_handle_message_use_case


@pytest.fixture
def client(make_use_case, travel_blueprint, store, presenter):
    use_case = make_use_case(travel_blueprint)
    admin = ConversationAdminUseCase(store=store, blueprints=InMemoryCatalog([travel_blueprint]), presenter=presenter)
    app.dependency_overrides[get_handle_message_use_case] = lambda: use_case
    app.dependency_overrides[get_conversation_admin_use_case] = lambda: admin
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_post_message_flow(client, interpreter):
    interpreter.selections.append("travel")
    first = client.post("/conversation", json={"text": "travel claim please"})

    assert first.status_code == 200
    body = first.json()
    assert body["text"] == "What is your name?"
    assert body["isComplete"] is False
    assert body["data"] == {}

    interpreter.answer(name="Ann")
    second = client.post("/conversation", json={"conversationId": body["conversationId"], "text": "Ann"})

    assert second.json()["data"] == {"name": "Ann"}
    assert second.json()["text"] == "How much?"


def test_post_message_errors(client, interpreter):
    assert client.post("/conversation", json={"text": "  "}).status_code == 400
    assert client.post("/conversation", json={"conversationId": "nope", "text": "hi"}).status_code == 404
    assert client.post("/conversation", json={}).status_code == 422

    interpreter.selections.append(LLMUpstreamError("timeout"))
    assert client.post("/conversation", json={"text": "hello"}).status_code == 502


def test_config_returns_welcome(client):
    response = client.get("/conversation/config")

    assert response.status_code == 200
    assert "- travel: Travel Claim" in response.json()["welcomeMessage"]


def test_list_get_and_delete(client, interpreter):
    interpreter.selections.append("travel")
    conversation_id = client.post("/conversation", json={"text": "travel"}).json()["conversationId"]

    listed = client.get("/conversation").json()
    assert [c["id"] for c in listed] == [conversation_id]
    assert listed[0]["blueprintId"] == "travel"
    assert listed[0]["state"] == "DATA_COLLECTION"

    detail = client.get(f"/conversation/{conversation_id}").json()
    assert detail["currentFieldId"] == "name"
    assert [m["role"] for m in detail["messages"]] == ["assistant", "user", "assistant"]

    assert client.delete(f"/conversation/{conversation_id}").status_code == 204
    assert client.get(f"/conversation/{conversation_id}").status_code == 404
    assert client.delete(f"/conversation/{conversation_id}").status_code == 404
