import pytest

from mockinterview.config import OPENING_INSTRUCTION
from mockinterview.interview.conversation import (
    ConversationAdapter, turns_to_history,
)
from mockinterview.interview.errors import CommunicationFailure
from mockinterview.interview.models import Tier
from mockinterview.interview.testing import (
    MockConversationalService, create_test_conversation_data, create_sample_parameters,
)


def test_turns_map_to_user_and_model_roles():
    history = turns_to_history(create_test_conversation_data())
    assert [h["role"] for h in history] == ["model", "user", "model"]
    assert history[1]["parts"] == [{"text": "I've been a product analyst for four years."}]



def test_create_session_seeds_history_without_sending():
    service = MockConversationalService()
    adapter = ConversationAdapter(service)
    turns = create_test_conversation_data()

    handle = adapter.create_session("system", turns)

    assert handle.system_instruction == "system"
    assert len(handle.history) == 3
    assert service.request_history == []


def test_opening_message_sends_control_instruction():
    service = MockConversationalService(send_replies=["Hello, I'm Alex."])
    adapter = ConversationAdapter(service)
    handle = adapter.create_session("system")

    assert adapter.opening_message(handle) == "Hello, I'm Alex."
    assert service.sent_texts("send") == [OPENING_INSTRUCTION]


def test_send_streaming_yields_chunks_in_order():
    service = MockConversationalService(stream_replies=[["a", "b", "c"]])
    adapter = ConversationAdapter(service)
    handle = adapter.create_session("system")

    assert list(adapter.send_streaming(handle, "hi")) == ["a", "b", "c"]
    assert handle.history[-1]["parts"][0]["text"] == "abc"


def test_stream_failure_is_wrapped_after_partial_output():
    service = MockConversationalService(stream_replies=[["a", "b", "c"]], fail_after_chunks=2)
    adapter = ConversationAdapter(service)
    handle = adapter.create_session("system")

    received = []
    with pytest.raises(CommunicationFailure) as excinfo:
        for chunk in adapter.send_streaming(handle, "hi"):
            received.append(chunk)

    assert received == ["a", "b"]
    assert excinfo.value.operation == "send_streaming"


@pytest.mark.parametrize("fail_on,call,operation", [
    ("create_chat", lambda a, h: a.create_session("system"), "create_session"),
    ("send", lambda a, h: a.opening_message(h), "opening_message"),
    ("send", lambda a, h: a.send_for_feedback(h), "send_for_feedback"),
])
def test_service_errors_carry_operation_name(fail_on, call, operation):
    service = MockConversationalService()
    adapter = ConversationAdapter(service)
    handle = adapter.create_session("system")
    service.fail_on = {fail_on}

    with pytest.raises(CommunicationFailure) as excinfo:
        call(adapter, handle)
    assert excinfo.value.operation == operation


def test_build_system_prompt_uses_inputs():
    adapter = ConversationAdapter(MockConversationalService())
    prompt = adapter.build_system_prompt(create_sample_parameters(), "es", Tier.ADVANCED)
    assert "Spanish" in prompt
    assert "Advanced" in prompt


def test_feedback_uses_default_prompt():
    service = MockConversationalService()
    adapter = ConversationAdapter(service)
    handle = adapter.create_session("system")

    feedback = adapter.send_for_feedback(handle)

    assert feedback  # scripted default
    assert "### Overall Assessment" in service.sent_texts("send")[0]
