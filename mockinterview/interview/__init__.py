"""Interview engine components.

This module contains the business logic for conducting AI-powered mock interviews,
including the session state machine, review navigation, protocol adapters and the
promotion test.
"""

# Session state machine
from .session import InterviewSession, SessionPhase, SendStatus

# Data models
from .models import (
    Turn, Speaker, TurnKind, Tier, InterviewParameters, PausedSnapshot,
    InterviewOutcome, TestQuestion, UserAnswer, QuestionFeedback, TestResult,
    CandidateProgress
)

# Errors
from .errors import EngineError, CommunicationFailure, SchemaViolation, InvariantViolation

# Protocol adapters
from .conversation import ConversationAdapter
from .assessment import AssessmentAdapter

# Review navigation
from .review import ReviewCursor, question_indices

# Promotion test
from .promotion import PromotionTestController, TestPhase, is_test_eligible

# Event system
from .events import (
    InterviewEventBus, EventLogger, InterviewMetrics,
    EventType, InterviewEvent
)

__all__ = [
    # Session
    "InterviewSession", "SessionPhase", "SendStatus",

    # Data models
    "Turn", "Speaker", "TurnKind", "Tier", "InterviewParameters", "PausedSnapshot",
    "InterviewOutcome", "TestQuestion", "UserAnswer", "QuestionFeedback", "TestResult",
    "CandidateProgress",

    # Errors
    "EngineError", "CommunicationFailure", "SchemaViolation", "InvariantViolation",

    # Adapters
    "ConversationAdapter", "AssessmentAdapter",

    # Review
    "ReviewCursor", "question_indices",

    # Promotion
    "PromotionTestController", "TestPhase", "is_test_eligible",

    # Events
    "InterviewEventBus", "EventLogger", "InterviewMetrics",
    "EventType", "InterviewEvent",
]
