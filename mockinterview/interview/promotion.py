"""
Promotion test controller and the eligibility policy around it.

The pipeline is linear: generate questions for a tier, collect one answer
per question from the caller, grade, then apply the outcome to the
candidate's progress.
"""
import logging
import time
import uuid
from collections import Counter
from enum import Enum
from typing import List, Optional, Sequence

from .assessment import AssessmentAdapter
from .errors import EngineError, InvariantViolation
from .events import (
    InterviewEventBus, TestGeneratedEvent, TestGradedEvent,
    TierAdvancedEvent, ErrorOccurredEvent,
)
from .models import Tier, TestQuestion, UserAnswer, TestResult, CandidateProgress
from ..config import INTERVIEWS_FOR_PROMOTION

logger = logging.getLogger("promotion")


def is_test_eligible(progress: CandidateProgress, threshold: int = INTERVIEWS_FOR_PROMOTION) -> bool:
    """A test is offered after enough interviews, unless the tier is already the highest."""
    return progress.tier != Tier.ADVANCED and progress.interviews_completed >= threshold


class TestPhase(str, Enum):
    __test__ = False

    IDLE = "idle"
    GENERATING = "generating"
    AWAITING_ANSWERS = "awaiting_answers"
    GRADING = "grading"
    GRADED = "graded"


ERROR_MESSAGES = {
    "generate_test": "Could not generate the promotion test. Please try again later.",
    "grade_test": "Could not grade the test. Please try again later.",
}


class PromotionTestController:
    """Sequences test generation, answer submission and grading."""

    def __init__(self, adapter: AssessmentAdapter, event_bus: Optional[InterviewEventBus] = None,
                 session_id: Optional[str] = None):
        self.adapter = adapter
        self.event_bus = event_bus or InterviewEventBus()
        self.session_id = session_id or f"test-{uuid.uuid4().hex[:8]}"

        self.phase = TestPhase.IDLE
        self.tier: Optional[Tier] = None
        self.questions: List[TestQuestion] = []
        self.result: Optional[TestResult] = None
        self.error: Optional[EngineError] = None

    @property
    def error_message(self) -> Optional[str]:
        if self.error is None:
            return None
        return ERROR_MESSAGES.get(getattr(self.error, "operation", None), str(self.error))

    def start(self, tier: Tier) -> Optional[List[TestQuestion]]:
        """
        Generate a test for the given tier.

        Returns:
            The questions, or None if generation failed (see ``error``)
        """
        if self.phase in (TestPhase.GENERATING, TestPhase.GRADING):
            raise InvariantViolation(f"cannot start a test while {self.phase.value}")

        self.phase = TestPhase.GENERATING
        self.tier = tier
        self.questions = []
        self.result = None
        self.error = None

        try:
            questions = self.adapter.generate_test(tier)
        except EngineError as e:
            self.phase = TestPhase.IDLE
            self._report(e)
            return None

        self.questions = questions
        self.phase = TestPhase.AWAITING_ANSWERS
        self.event_bus.emit(TestGeneratedEvent(self.session_id, time.time(), tier.value, questions))
        return questions

    def missing_answers(self, answers: Sequence[UserAnswer]) -> List[str]:
        """Ids of questions that have no answer yet."""
        answered = {a.question_id for a in answers}
        return [q.id for q in self.questions if q.id not in answered]

    def _answer_problems(self, answers: Sequence[UserAnswer]) -> List[str]:
        problems = []
        by_id = {q.id: q for q in self.questions}

        missing = self.missing_answers(answers)
        if missing:
            problems.append(f"unanswered questions: {missing}")

        counts = Counter(a.question_id for a in answers)
        duplicated = sorted(qid for qid, n in counts.items() if n > 1)
        if duplicated:
            problems.append(f"more than one answer for: {duplicated}")

        for answer in answers:
            question = by_id.get(answer.question_id)
            if question is None:
                problems.append(f"answer for unknown question {answer.question_id!r}")
            elif answer.answer not in question.options:
                problems.append(f"{answer.answer!r} is not an option of {answer.question_id}")
        return problems

    def can_submit(self, answers: Sequence[UserAnswer]) -> bool:
        return self.phase == TestPhase.AWAITING_ANSWERS and not self._answer_problems(answers)

    def submit(self, answers: Sequence[UserAnswer]) -> Optional[TestResult]:
        """
        Grade the answers, exactly one per question.

        Returns:
            The result, or None if grading failed; answers may then be resubmitted

        Raises:
            InvariantViolation: If no test is awaiting answers or the answers are incomplete
        """
        if self.phase != TestPhase.AWAITING_ANSWERS:
            raise InvariantViolation(f"cannot submit answers while {self.phase.value}")
        problems = self._answer_problems(answers)
        if problems:
            raise InvariantViolation("; ".join(problems))

        position = {q.id: i for i, q in enumerate(self.questions)}
        ordered = sorted(answers, key=lambda a: position[a.question_id])

        self.phase = TestPhase.GRADING
        self.error = None
        try:
            result = self.adapter.grade_test(self.questions, ordered)
        except EngineError as e:
            self.phase = TestPhase.AWAITING_ANSWERS
            self._report(e)
            return None

        self.result = result
        self.phase = TestPhase.GRADED
        logger.info("Test graded: score=%s passed=%s", result.score, result.passed)
        self.event_bus.emit(TestGradedEvent(self.session_id, time.time(), result))
        return result

    def apply_outcome(self, progress: CandidateProgress, result: Optional[TestResult] = None) -> bool:
        """
        Promote the candidate if the test was passed.

        Returns:
            True if the result was a pass
        """
        result = result or self.result
        if result is None:
            raise InvariantViolation("no graded result to apply")
        if not result.passed:
            return False

        previous = progress.tier
        progress.promote()
        logger.info("Candidate promoted from %s to %s", previous.value, progress.tier.value)
        self.event_bus.emit(TierAdvancedEvent(
            self.session_id, time.time(), previous.value, progress.tier.value
        ))
        return True

    def _report(self, error: EngineError) -> None:
        self.error = error
        logger.error("Promotion test error: %s", error)
        self.event_bus.emit(ErrorOccurredEvent(
            self.session_id, time.time(), type(error).__name__, str(error),
            "promotion", getattr(error, "operation", None)
        ))
