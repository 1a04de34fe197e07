"""
Event-driven architecture for the interview system.

The engine never renders anything; presentation code subscribes to these
events to draw the transcript, stream replies and show results.
"""
import logging
from abc import ABC
from typing import Dict, Any, List, Callable, Optional
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger("events")


class EventType(str, Enum):
    """Types of interview events."""
    SESSION_STARTED = "session_started"
    TURN_APPENDED = "turn_appended"
    REPLY_CHUNK = "reply_chunk"
    REPLY_COMPLETED = "reply_completed"
    TURN_DISCARDED = "turn_discarded"
    FEEDBACK_GENERATED = "feedback_generated"
    SESSION_PAUSED = "session_paused"
    SESSION_FAILED = "session_failed"
    TEST_GENERATED = "test_generated"
    TEST_GRADED = "test_graded"
    TIER_ADVANCED = "tier_advanced"
    ERROR_OCCURRED = "error_occurred"


@dataclass
class InterviewEvent(ABC):
    """Base class for all interview events."""
    event_type: EventType
    session_id: str
    timestamp: float
    data: Dict[str, Any]


@dataclass
class SessionStartedEvent(InterviewEvent):
    """Event fired when a session becomes active, fresh or resumed."""
    def __init__(self, session_id: str, timestamp: float, resumed: bool, turn_count: int):
        super().__init__(
            event_type=EventType.SESSION_STARTED,
            session_id=session_id,
            timestamp=timestamp,
            data={"resumed": resumed, "turn_count": turn_count}
        )


@dataclass
class TurnAppendedEvent(InterviewEvent):
    """Event fired when a turn is added to the log."""
    def __init__(self, session_id: str, timestamp: float, turn_index: int, speaker: str, text: str):
        super().__init__(
            event_type=EventType.TURN_APPENDED,
            session_id=session_id,
            timestamp=timestamp,
            data={"turn_index": turn_index, "speaker": speaker, "text": text}
        )


@dataclass
class ReplyChunkEvent(InterviewEvent):
    """Event fired for every streamed fragment of an interviewer reply."""
    def __init__(self, session_id: str, timestamp: float, turn_index: int, chunk: str, text: str):
        super().__init__(
            event_type=EventType.REPLY_CHUNK,
            session_id=session_id,
            timestamp=timestamp,
            data={"turn_index": turn_index, "chunk": chunk, "text": text}
        )


@dataclass
class ReplyCompletedEvent(InterviewEvent):
    """Event fired when a streamed reply has been fully received."""
    def __init__(self, session_id: str, timestamp: float, turn_index: int, text: str):
        super().__init__(
            event_type=EventType.REPLY_COMPLETED,
            session_id=session_id,
            timestamp=timestamp,
            data={"turn_index": turn_index, "text": text}
        )


@dataclass
class TurnDiscardedEvent(InterviewEvent):
    """Event fired when a broken in-flight turn is removed from the log."""
    def __init__(self, session_id: str, timestamp: float, turn_index: int, partial_text: str):
        super().__init__(
            event_type=EventType.TURN_DISCARDED,
            session_id=session_id,
            timestamp=timestamp,
            data={"turn_index": turn_index, "partial_text": partial_text}
        )


@dataclass
class FeedbackGeneratedEvent(InterviewEvent):
    """Event fired when the interview ends with a feedback report."""
    def __init__(self, session_id: str, timestamp: float, feedback: str, turns: List[Any]):
        super().__init__(
            event_type=EventType.FEEDBACK_GENERATED,
            session_id=session_id,
            timestamp=timestamp,
            data={"feedback": feedback, "turns": turns}
        )


@dataclass
class SessionPausedEvent(InterviewEvent):
    """Event fired when a session is paused; carries the snapshot to store."""
    def __init__(self, session_id: str, timestamp: float, snapshot: Any):
        super().__init__(
            event_type=EventType.SESSION_PAUSED,
            session_id=session_id,
            timestamp=timestamp,
            data={"snapshot": snapshot}
        )


@dataclass
class SessionFailedEvent(InterviewEvent):
    """Event fired when a session cannot be initialized."""
    def __init__(self, session_id: str, timestamp: float, reason: str):
        super().__init__(
            event_type=EventType.SESSION_FAILED,
            session_id=session_id,
            timestamp=timestamp,
            data={"reason": reason}
        )


@dataclass
class TestGeneratedEvent(InterviewEvent):
    """Event fired when promotion test questions are ready."""
    __test__ = False

    def __init__(self, session_id: str, timestamp: float, tier: str, questions: List[Any]):
        super().__init__(
            event_type=EventType.TEST_GENERATED,
            session_id=session_id,
            timestamp=timestamp,
            data={"tier": tier, "questions": questions}
        )


@dataclass
class TestGradedEvent(InterviewEvent):
    """Event fired when a promotion test has been graded."""
    __test__ = False

    def __init__(self, session_id: str, timestamp: float, result: Any):
        super().__init__(
            event_type=EventType.TEST_GRADED,
            session_id=session_id,
            timestamp=timestamp,
            data={"result": result, "score": result.score, "passed": result.passed}
        )


@dataclass
class TierAdvancedEvent(InterviewEvent):
    """Event fired when a passed test moves the candidate up a tier."""
    def __init__(self, session_id: str, timestamp: float, previous_tier: str, new_tier: str):
        super().__init__(
            event_type=EventType.TIER_ADVANCED,
            session_id=session_id,
            timestamp=timestamp,
            data={"previous_tier": previous_tier, "new_tier": new_tier}
        )


@dataclass
class ErrorOccurredEvent(InterviewEvent):
    """Event fired when an error is reported to the caller."""
    def __init__(self, session_id: str, timestamp: float, error_type: str,
                 error_message: str, component: str, operation: Optional[str] = None):
        super().__init__(
            event_type=EventType.ERROR_OCCURRED,
            session_id=session_id,
            timestamp=timestamp,
            data={
                "error_type": error_type,
                "error_message": error_message,
                "component": component,
                "operation": operation
            }
        )


EventHandler = Callable[[InterviewEvent], None]


class InterviewEventBus:
    """Event bus for interview system communication."""

    def __init__(self):
        self._handlers: Dict[EventType, List[EventHandler]] = {}
        self._global_handlers: List[EventHandler] = []

    def subscribe(self, event_type: EventType, handler: EventHandler) -> None:
        """
        Subscribe to specific event type.

        Args:
            event_type: Type of event to listen for
            handler: Function to call when event occurs
        """
        self._handlers.setdefault(event_type, []).append(handler)
        logger.debug("Subscribed handler to %s", event_type)

    def subscribe_all(self, handler: EventHandler) -> None:
        """Subscribe to all events."""
        self._global_handlers.append(handler)
        logger.debug("Subscribed global handler")

    def unsubscribe(self, event_type: EventType, handler: EventHandler) -> None:
        """Unsubscribe from specific event type."""
        if event_type in self._handlers:
            try:
                self._handlers[event_type].remove(handler)
                logger.debug("Unsubscribed handler from %s", event_type)
            except ValueError:
                logger.warning("Handler not found for %s", event_type)

    def emit(self, event: InterviewEvent) -> None:
        """
        Emit an event to all subscribers.

        Handler failures are logged; they never interrupt the engine.
        """
        if event.event_type != EventType.REPLY_CHUNK:
            logger.debug("Emitting event: %s for session %s", event.event_type, event.session_id)

        for handler in self._handlers.get(event.event_type, []):
            try:
                handler(event)
            except Exception as e:
                logger.error("Error in event handler for %s: %s", event.event_type, e)

        for handler in self._global_handlers:
            try:
                handler(event)
            except Exception as e:
                logger.error("Error in global event handler: %s", e)

    def clear_handlers(self) -> None:
        """Clear all event handlers."""
        self._handlers.clear()
        self._global_handlers.clear()
        logger.debug("Cleared all event handlers")


class EventLogger:
    """Logs all events for debugging and analysis."""

    def __init__(self, log_level: int = logging.INFO):
        self.logger = logging.getLogger("event_logger")
        self.log_level = log_level

    def handle_event(self, event: InterviewEvent) -> None:
        """Log event details. Streamed chunks are logged at DEBUG only."""
        level = logging.DEBUG if event.event_type == EventType.REPLY_CHUNK else self.log_level
        self.logger.log(level, "Event: %s | Session: %s | Data: %s",
                        event.event_type.value, event.session_id, event.data)


class InterviewMetrics:
    """Collects metrics from interview events."""

    _COUNTED = {
        EventType.SESSION_STARTED: "sessions_started",
        EventType.FEEDBACK_GENERATED: "interviews_completed",
        EventType.SESSION_PAUSED: "sessions_paused",
        EventType.SESSION_FAILED: "sessions_failed",
        EventType.TURN_APPENDED: "turns_appended",
        EventType.TURN_DISCARDED: "turns_discarded",
        EventType.REPLY_CHUNK: "chunks_received",
        EventType.TEST_GRADED: "tests_graded",
        EventType.TIER_ADVANCED: "promotions",
        EventType.ERROR_OCCURRED: "errors_occurred",
    }

    def __init__(self):
        self.reset()

    def handle_event(self, event: InterviewEvent) -> None:
        """Update metrics based on event."""
        name = self._COUNTED.get(event.event_type)
        if name:
            self._counts[name] += 1

    def get_metrics(self) -> Dict[str, int]:
        """Get current metrics snapshot."""
        return dict(self._counts)

    def reset(self) -> None:
        """Reset all metrics to zero."""
        self._counts: Dict[str, int] = {name: 0 for name in self._COUNTED.values()}
