import copy

import pytest

from formflow.application.exceptions import IllegalStateTransitionError
from formflow.application.use_cases.state_machine import ConversationStateMachine
from formflow.application.utils.next_step import NextStep
from formflow.domain.entities.conversation import Conversation, ConversationStatus
from formflow.domain.entities.conversation_state import ConversationState


@pytest.fixture
def machine():
    return ConversationStateMachine()


def test_state_is_derived(machine):
    conversation = Conversation(id="c1")
    assert machine.get_current_state(conversation) == ConversationState.SERVICE_SELECTION

    conversation.blueprint_id = "travel"
    assert machine.get_current_state(conversation) == ConversationState.DATA_COLLECTION

    conversation.status = ConversationStatus.COMPLETED
    assert machine.get_current_state(conversation) == ConversationState.COMPLETION


def test_forward_transitions(machine):
    conversation = Conversation(id="c1")
    machine.transition_to_data_collection(conversation, "travel", "name")
    assert conversation.blueprint_id == "travel"
    assert conversation.current_field_id == "name"

    machine.progress_to_next_field(conversation, NextStep("amount", False))
    assert conversation.current_field_id == "amount"

    machine.progress_to_next_field(conversation, NextStep(None, True))
    assert conversation.status == ConversationStatus.COMPLETED
    assert conversation.current_field_id is None


@pytest.mark.parametrize("completed", [False, True])
def test_data_collection_cannot_be_entered_twice(machine, completed):
    conversation = Conversation(id="c1", blueprint_id="travel", current_field_id="name")
    if completed:
        conversation.status = ConversationStatus.COMPLETED
        conversation.current_field_id = None
    before = copy.deepcopy(conversation)

    with pytest.raises(IllegalStateTransitionError):
        machine.transition_to_data_collection(conversation, "other", "x")
    assert conversation == before


def test_completion_requires_data_collection(machine):
    conversation = Conversation(id="c1")
    with pytest.raises(IllegalStateTransitionError):
        machine.transition_to_completion(conversation)
    assert conversation.status == ConversationStatus.COLLECTING


def test_can_transition_and_describe(machine):
    conversation = Conversation(id="c1")
    assert machine.can_transition(conversation, ConversationState.DATA_COLLECTION)
    assert not machine.can_transition(conversation, ConversationState.COMPLETION)
    assert "choose a service" in machine.describe_state(conversation)
