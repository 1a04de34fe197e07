"""
Interview session state machine.

One session drives one interview: it owns the turn log and the phase,
calls the conversation adapter for every exchange, and reports progress
through the event bus. A session is a single actor; callers must not
drive the same session from more than one thread or task.
"""
import dataclasses
import logging
import time
import uuid
from enum import Enum
from typing import Any, List, Optional, Sequence

from .conversation import ConversationAdapter
from .errors import EngineError, CommunicationFailure, InvariantViolation
from .events import (
    InterviewEventBus, SessionStartedEvent, TurnAppendedEvent, ReplyChunkEvent,
    ReplyCompletedEvent, TurnDiscardedEvent, FeedbackGeneratedEvent,
    SessionPausedEvent, SessionFailedEvent, ErrorOccurredEvent,
)
from .models import (
    Turn, Speaker, Tier, InterviewParameters, PausedSnapshot, InterviewOutcome,
)
from .review import ReviewCursor
from ..config import TERMINATION_PHRASE, SKIP_MESSAGE

logger = logging.getLogger("session")


class SessionPhase(str, Enum):
    INITIALIZING = "initializing"
    ACTIVE = "active"
    AWAITING_REPLY = "awaiting_reply"
    PAUSED = "paused"
    ENDED = "ended"
    FAILED = "failed"


class SendStatus(str, Enum):
    """What happened to a candidate message."""
    REJECTED = "rejected"
    REPLIED = "replied"
    FAILED = "failed"
    ENDED = "ended"


ERROR_MESSAGES = {
    "create_session": "Failed to start the interview. Please check your API key and try again.",
    "opening_message": "Failed to start the interview. Please check your API key and try again.",
    "send_streaming": "There was an error communicating with the AI. Please try again.",
    "send_for_feedback": "Could not generate feedback. Please try ending the interview again.",
}


def is_termination_phrase(text: str) -> bool:
    return text.strip().lower() == TERMINATION_PHRASE.lower()


class InterviewSession:
    """
    Turn-based interview against a streaming conversational service.

    Phases: initializing -> active <-> awaiting_reply -> ended, with
    active -> paused and any -> failed on an initialization error.
    """

    def __init__(self,
                 adapter: ConversationAdapter,
                 event_bus: Optional[InterviewEventBus] = None,
                 session_id: Optional[str] = None):
        self.adapter = adapter
        self.event_bus = event_bus or InterviewEventBus()
        self.session_id = session_id or uuid.uuid4().hex[:12]

        self.phase = SessionPhase.INITIALIZING
        self.parameters: Optional[InterviewParameters] = None
        self.language_code: Optional[str] = None
        self.tier: Optional[Tier] = None
        self.error: Optional[EngineError] = None
        self.outcome: Optional[InterviewOutcome] = None

        # The cursor holds a reference to this list; mutate it, never rebind it
        self.turns: List[Turn] = []
        self.review = ReviewCursor(self.turns)
        self._handle: Any = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self, parameters: InterviewParameters, language_code: str, tier: Tier) -> bool:
        """
        Start a fresh interview and fetch the interviewer's greeting.

        Returns:
            True if the session is now active
        """
        return self._initialize(parameters, language_code, tier, prior_turns=())

    def resume(self, snapshot: PausedSnapshot, tier: Tier) -> bool:
        """Resume a paused interview by replaying its turn log as history."""
        return self._initialize(snapshot.parameters, snapshot.language_code, tier,
                                prior_turns=snapshot.turns)

    def _initialize(self, parameters: InterviewParameters, language_code: str, tier: Tier,
                    prior_turns: Sequence[Turn]) -> bool:
        if self.phase not in (SessionPhase.INITIALIZING, SessionPhase.FAILED):
            raise InvariantViolation(f"cannot start a session that is {self.phase.value}")

        self.phase = SessionPhase.INITIALIZING
        self.parameters = parameters
        self.language_code = language_code
        self.tier = tier
        self.error = None
        self.turns[:] = [dataclasses.replace(t) for t in prior_turns]
        self.review.return_to_live()

        resumed = bool(prior_turns)
        logger.info("%s interview for %s at %s (%s, %s tier, %d prior turns)",
                    "Resuming" if resumed else "Starting", parameters.job_role,
                    parameters.company_name, language_code, tier.value, len(prior_turns))

        system_prompt = self.adapter.build_system_prompt(parameters, language_code, tier)
        try:
            handle = self.adapter.create_session(system_prompt, self.turns)
            opening = None if resumed else self.adapter.opening_message(handle)
        except CommunicationFailure as e:
            self._fail(e)
            return False

        self._handle = handle
        self.phase = SessionPhase.ACTIVE
        if opening is not None:
            self._append(Turn.interviewer(opening))

        self.event_bus.emit(SessionStartedEvent(self.session_id, time.time(), resumed, len(self.turns)))
        return True

    def pause(self) -> PausedSnapshot:
        """
        Capture a snapshot for the caller to store and release the live chat.

        Raises:
            InvariantViolation: If the session is not active
        """
        if self.phase != SessionPhase.ACTIVE:
            raise InvariantViolation(f"cannot pause a session that is {self.phase.value}")

        snapshot = PausedSnapshot(
            parameters=self.parameters,
            turns=[dataclasses.replace(t) for t in self.turns],
            language_code=self.language_code,
        )
        self._handle = None
        self.review.return_to_live()
        self.phase = SessionPhase.PAUSED

        logger.info("Session paused with %d turns", len(snapshot.turns))
        self.event_bus.emit(SessionPausedEvent(self.session_id, time.time(), snapshot))
        return snapshot

    def abandon(self) -> None:
        """Drop the live chat without producing feedback or a snapshot."""
        self._handle = None
        if self.phase not in (SessionPhase.ENDED, SessionPhase.PAUSED):
            logger.info("Session abandoned in phase %s", self.phase.value)
            self.phase = SessionPhase.ENDED

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def has_live_handle(self) -> bool:
        return self._handle is not None

    @property
    def can_send(self) -> bool:
        return self.phase == SessionPhase.ACTIVE and not self.review.is_reviewing

    @property
    def can_pause(self) -> bool:
        return self.phase == SessionPhase.ACTIVE

    @property
    def error_message(self) -> Optional[str]:
        """User-facing text for the last reported error."""
        if self.error is None:
            return None
        operation = getattr(self.error, "operation", None)
        return ERROR_MESSAGES.get(operation, str(self.error))

    # ------------------------------------------------------------------
    # Exchanges
    # ------------------------------------------------------------------

    def send_candidate_text(self, text: str) -> SendStatus:
        """
        Send a candidate message and stream the interviewer's reply.

        The termination phrase ends the interview and requests feedback
        instead of a normal exchange.
        """
        text = (text or "").strip()
        if self.review.is_reviewing:
            # A send attempt dismisses the review overlay but is not sent
            self.review.return_to_live()
            logger.debug("Send rejected: session was in review mode")
            return SendStatus.REJECTED
        if not text or self.phase != SessionPhase.ACTIVE:
            logger.debug("Send rejected in phase %s", self.phase.value)
            return SendStatus.REJECTED

        self.error = None
        if is_termination_phrase(text):
            # A retry after a failed feedback request reuses the existing turn
            if not self._ends_with_termination():
                self._append(Turn.candidate(text))
            return self.end_and_generate_feedback()

        self._append(Turn.candidate(text))
        placeholder = Turn.interviewer("")
        turn_index = self._append(placeholder)
        self.phase = SessionPhase.AWAITING_REPLY

        try:
            for chunk in self.adapter.send_streaming(self._handle, text):
                placeholder.text += chunk
                self.event_bus.emit(ReplyChunkEvent(
                    self.session_id, time.time(), turn_index, chunk, placeholder.text
                ))
        except CommunicationFailure as e:
            del self.turns[turn_index]
            self.event_bus.emit(TurnDiscardedEvent(
                self.session_id, time.time(), turn_index, placeholder.text
            ))
            self.phase = SessionPhase.ACTIVE
            self._report(e)
            return SendStatus.FAILED

        self.phase = SessionPhase.ACTIVE
        self.event_bus.emit(ReplyCompletedEvent(self.session_id, time.time(), turn_index, placeholder.text))
        return SendStatus.REPLIED

    def skip(self) -> SendStatus:
        """Ask the interviewer to move past the current question."""
        return self.send_candidate_text(SKIP_MESSAGE)

    def end_and_generate_feedback(self) -> SendStatus:
        """
        Request the feedback report and end the session.

        On failure the session stays active so ending can be retried.
        Calling this on an ended session does nothing.
        """
        if self.phase != SessionPhase.ACTIVE:
            logger.debug("Feedback request ignored in phase %s", self.phase.value)
            return SendStatus.REJECTED

        self.phase = SessionPhase.AWAITING_REPLY
        try:
            feedback = self.adapter.send_for_feedback(self._handle)
        except CommunicationFailure as e:
            self.phase = SessionPhase.ACTIVE
            self._report(e)
            return SendStatus.FAILED

        turns = [dataclasses.replace(t) for t in self.turns]
        self.outcome = InterviewOutcome(feedback=feedback, turns=turns)
        self._handle = None
        self.phase = SessionPhase.ENDED

        logger.info("Interview ended after %d turns", len(turns))
        self.event_bus.emit(FeedbackGeneratedEvent(self.session_id, time.time(), feedback, turns))
        return SendStatus.ENDED

    def focus_input(self) -> None:
        """The candidate returned to the input box; leave review mode."""
        self.review.return_to_live()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _ends_with_termination(self) -> bool:
        if not self.turns:
            return False
        last = self.turns[-1]
        return last.speaker == Speaker.CANDIDATE and is_termination_phrase(last.text)

    def _append(self, turn: Turn) -> int:
        self.turns.append(turn)
        self.review.return_to_live()
        index = len(self.turns) - 1
        self.event_bus.emit(TurnAppendedEvent(
            self.session_id, time.time(), index, turn.speaker.value, turn.text
        ))
        return index

    def _report(self, error: EngineError) -> None:
        self.error = error
        logger.error("Session error: %s", error)
        self.event_bus.emit(ErrorOccurredEvent(
            self.session_id, time.time(), type(error).__name__, str(error),
            "session", getattr(error, "operation", None)
        ))

    def _fail(self, error: EngineError) -> None:
        self.phase = SessionPhase.FAILED
        self._handle = None
        self._report(error)
        self.event_bus.emit(SessionFailedEvent(self.session_id, time.time(), self.error_message))
