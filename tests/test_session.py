import json

import pytest

from mockinterview.config import SKIP_MESSAGE
from mockinterview.interview import (
    ConversationAdapter, EventType, InterviewSession, InvariantViolation,
    PausedSnapshot, SendStatus, SessionPhase, Speaker, Tier,
)
from mockinterview.interview.testing import (
    DEFAULT_OPENING, DEFAULT_FEEDBACK, MockConversationalService, create_test_conversation_data,
)


def test_start_appends_greeting(started_session, recorder):
    assert started_session.phase == SessionPhase.ACTIVE
    assert started_session.has_live_handle
    assert len(started_session.turns) == 1
    assert started_session.turns[0].speaker == Speaker.INTERVIEWER
    assert started_session.turns[0].text == DEFAULT_OPENING

    started = recorder.of_type(EventType.SESSION_STARTED)
    assert len(started) == 1
    assert started[0].data == {"resumed": False, "turn_count": 1}


def test_start_failure_leaves_session_failed(params, event_bus, recorder):
    service = MockConversationalService(fail_on={"send"})
    session = InterviewSession(ConversationAdapter(service), event_bus)

    assert session.start(params, "en", Tier.BEGINNER) is False
    assert session.phase == SessionPhase.FAILED
    assert session.turns == []
    assert not session.has_live_handle
    assert session.error.operation == "opening_message"
    assert "check your API key" in session.error_message
    assert len(recorder.of_type(EventType.SESSION_FAILED)) == 1

    # Retry from the failed state
    service.fail_on.clear()
    assert session.start(params, "en", Tier.BEGINNER) is True
    assert session.phase == SessionPhase.ACTIVE
    assert session.error is None


def test_start_twice_is_an_invariant_violation(started_session, params):
    with pytest.raises(InvariantViolation):
        started_session.start(params, "en", Tier.BEGINNER)


def test_send_streams_reply_into_log(started_session, service, recorder):
    service.stream_replies = [["Good. ", "Tell me ", "more."]]

    status = started_session.send_candidate_text("  I led a launch.  ")

    assert status == SendStatus.REPLIED
    assert started_session.phase == SessionPhase.ACTIVE
    assert [t.text for t in started_session.turns[1:]] == ["I led a launch.", "Good. Tell me more."]
    assert service.sent_texts("send_streaming") == ["I led a launch."]

    chunks = recorder.of_type(EventType.REPLY_CHUNK)
    assert [e.data["chunk"] for e in chunks] == ["Good. ", "Tell me ", "more."]
    assert [e.data["text"] for e in chunks] == ["Good. ", "Good. Tell me ", "Good. Tell me more."]
    assert all(e.data["turn_index"] == 2 for e in chunks)
    assert recorder.of_type(EventType.REPLY_COMPLETED)[0].data["text"] == "Good. Tell me more."


@pytest.mark.parametrize("text", ["", "   ", "\n\t"])
def test_blank_message_is_rejected(started_session, service, text):
    before = len(started_session.turns)
    assert started_session.send_candidate_text(text) == SendStatus.REJECTED
    assert len(started_session.turns) == before
    assert service.sent_texts("send_streaming") == []


def test_stream_failure_discards_partial_reply(params, event_bus, recorder):
    service = MockConversationalService(stream_replies=[["Partial ", "reply"]], fail_after_chunks=1)
    session = InterviewSession(ConversationAdapter(service), event_bus)
    session.start(params, "en", Tier.BEGINNER)
    before = len(session.turns)

    status = session.send_candidate_text("My answer")

    assert status == SendStatus.FAILED
    assert len(session.turns) == before + 1
    assert session.turns[-1].speaker == Speaker.CANDIDATE
    assert session.turns[-1].text == "My answer"
    assert session.phase == SessionPhase.ACTIVE
    assert session.error.operation == "send_streaming"
    assert session.error_message == "There was an error communicating with the AI. Please try again."

    discarded = recorder.of_type(EventType.TURN_DISCARDED)
    assert len(discarded) == 1
    assert discarded[0].data["partial_text"] == "Partial "

    # The session can keep going afterwards
    service.fail_after_chunks = None
    assert session.send_candidate_text("Trying again") == SendStatus.REPLIED


@pytest.mark.parametrize("phrase", ["End Interview", "end interview", "END INTERVIEW", "  End interview "])
def test_termination_phrase_requests_feedback(started_session, service, recorder, phrase):
    status = started_session.send_candidate_text(phrase)

    assert status == SendStatus.ENDED
    assert started_session.phase == SessionPhase.ENDED
    assert not started_session.has_live_handle
    assert service.sent_texts("send_streaming") == []
    assert "### Overall Assessment" in service.sent_texts("send")[-1]

    outcome = started_session.outcome
    assert outcome.feedback == DEFAULT_FEEDBACK
    assert outcome.turns[-1].text == phrase.strip()
    assert len(recorder.of_type(EventType.FEEDBACK_GENERATED)) == 1


def test_ending_twice_generates_feedback_once(started_session, service):
    assert started_session.send_candidate_text("End Interview") == SendStatus.ENDED
    requests_before = len(service.request_history)

    assert started_session.send_candidate_text("End Interview") == SendStatus.REJECTED
    assert started_session.end_and_generate_feedback() == SendStatus.REJECTED
    assert len(service.request_history) == requests_before


def test_feedback_failure_keeps_session_active(started_session, service, recorder):
    service.fail_on = {"send"}

    assert started_session.send_candidate_text("End Interview") == SendStatus.FAILED
    assert started_session.phase == SessionPhase.ACTIVE
    assert started_session.has_live_handle
    assert started_session.outcome is None
    assert started_session.error.operation == "send_for_feedback"
    assert len(recorder.of_type(EventType.ERROR_OCCURRED)) == 1

    service.fail_on.clear()
    assert started_session.end_and_generate_feedback() == SendStatus.ENDED
    assert started_session.outcome.feedback == DEFAULT_FEEDBACK


def test_skip_sends_skip_message(started_session, service):
    assert started_session.skip() == SendStatus.REPLIED
    assert started_session.turns[1].text == SKIP_MESSAGE
    assert service.sent_texts("send_streaming") == [SKIP_MESSAGE]


def test_send_while_reviewing_is_rejected_and_leaves_review(started_session, service):
    started_session.review.step_back()
    assert started_session.review.is_reviewing
    assert not started_session.can_send

    assert started_session.send_candidate_text("An answer") == SendStatus.REJECTED
    assert not started_session.review.is_reviewing
    assert len(started_session.turns) == 1
    assert service.sent_texts("send_streaming") == []


def test_new_turn_returns_to_live_mode(started_session):
    started_session.send_candidate_text("First answer")
    started_session.review.step_back()
    started_session.focus_input()
    assert not started_session.review.is_reviewing

    started_session.send_candidate_text("Second answer")
    assert started_session.review.position is None


def test_sends_are_rejected_while_awaiting_reply(started_session, event_bus):
    statuses = []
    pausable = []

    def reenter(event):
        statuses.append(started_session.send_candidate_text("interrupting"))
        pausable.append(started_session.can_pause)

    event_bus.subscribe(EventType.REPLY_CHUNK, reenter)
    assert started_session.send_candidate_text("Hello") == SendStatus.REPLIED

    assert statuses and all(s == SendStatus.REJECTED for s in statuses)
    assert pausable and not any(pausable)
    assert [t.text for t in started_session.turns].count("interrupting") == 0


def test_pause_captures_snapshot(started_session, params, recorder):
    started_session.send_candidate_text("My answer")

    snapshot = started_session.pause()

    assert started_session.phase == SessionPhase.PAUSED
    assert not started_session.has_live_handle
    assert snapshot.parameters == params
    assert snapshot.language_code == "en"
    assert [t.text for t in snapshot.turns] == [t.text for t in started_session.turns]
    assert recorder.of_type(EventType.SESSION_PAUSED)[0].data["snapshot"] is snapshot

    assert started_session.send_candidate_text("More") == SendStatus.REJECTED
    with pytest.raises(InvariantViolation):
        started_session.pause()


def test_pause_requires_active_session(session):
    with pytest.raises(InvariantViolation):
        session.pause()


def test_pause_and_resume_round_trip(started_session, event_bus, recorder):
    started_session.send_candidate_text("My answer")
    snapshot = started_session.pause()
    stored = json.loads(json.dumps(snapshot.to_dict()))

    service = MockConversationalService()
    resumed = InterviewSession(ConversationAdapter(service), event_bus)
    assert resumed.resume(PausedSnapshot.from_dict(stored), Tier.BEGINNER)

    assert resumed.phase == SessionPhase.ACTIVE
    assert resumed.parameters == snapshot.parameters
    assert resumed.language_code == snapshot.language_code
    assert [t.to_dict() for t in resumed.turns] == [t.to_dict() for t in snapshot.turns]

    # History is replayed, the greeting is not requested again
    assert service.request_history == []
    history = service.chats[-1].history
    assert [h["role"] for h in history] == ["model", "user", "model"]
    assert recorder.of_type(EventType.SESSION_STARTED)[-1].data == {"resumed": True, "turn_count": 3}


def test_resume_does_not_alias_snapshot_turns(params):
    snapshot = PausedSnapshot(parameters=params, turns=create_test_conversation_data(), language_code="de")
    session = InterviewSession(ConversationAdapter(MockConversationalService()))
    session.resume(snapshot, Tier.INTERMEDIATE)

    session.send_candidate_text("Neue Antwort")

    assert len(snapshot.turns) == 3
    assert len(session.turns) == 5


def test_abandon_releases_handle(started_session):
    started_session.abandon()
    assert not started_session.has_live_handle
    assert started_session.phase == SessionPhase.ENDED


def test_retrying_termination_does_not_duplicate_the_turn(started_session, service):
    service.fail_on = {"send"}
    assert started_session.send_candidate_text("End Interview") == SendStatus.FAILED
    assert started_session.send_candidate_text("end interview") == SendStatus.FAILED
    assert len(started_session.turns) == 2

    service.fail_on.clear()
    assert started_session.send_candidate_text("End Interview") == SendStatus.ENDED
    assert [t.text for t in started_session.outcome.turns] == [DEFAULT_OPENING, "End Interview"]
