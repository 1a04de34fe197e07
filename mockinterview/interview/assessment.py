"""
Assessment protocol adapter for the promotion test.
"""
import logging
from typing import Any, Dict, List, Protocol, Sequence

from pydantic import ValidationError

from .errors import CommunicationFailure, SchemaViolation
from .models import Tier, TestQuestion, UserAnswer, TestResult
from .prompts import InterviewPrompts
from .schemas import TEST_SCHEMA, GRADING_SCHEMA, TestPayload, GradingPayload
from ..infrastructure.llm import StructuredOutputError

logger = logging.getLogger("assessment")


class StructuredGenerationService(Protocol):
    """What the adapter needs from a structured generation backend."""

    def generate_structured(self, prompt: str, schema: Dict[str, Any]) -> Any: ...


class AssessmentAdapter:
    """Generates and grades promotion tests with schema-validated exchanges."""

    def __init__(self, service: StructuredGenerationService):
        self.service = service

    def _generate(self, operation: str, prompt: str, schema: Dict[str, Any]) -> Any:
        try:
            return self.service.generate_structured(prompt, schema)
        except StructuredOutputError as e:
            raise SchemaViolation(operation, str(e)) from e
        except Exception as e:
            logger.error("%s request failed: %s", operation, e)
            raise CommunicationFailure(operation, e) from e

    def generate_test(self, tier: Tier) -> List[TestQuestion]:
        """
        Generate the promotion test for a tier.

        Raises:
            CommunicationFailure: If the service could not be reached
            SchemaViolation: If the payload is not exactly the declared shape
        """
        raw = self._generate("generate_test", InterviewPrompts.test_generation(tier), TEST_SCHEMA)
        try:
            payload = TestPayload.model_validate(raw)
        except ValidationError as e:
            logger.warning("Test payload failed validation: %s", e)
            raise SchemaViolation("generate_test", str(e)) from e

        questions = [q.to_question() for q in payload.questions]
        logger.info("Generated %d test questions for %s tier", len(questions), tier.value)
        return questions

    def grade_test(self, questions: Sequence[TestQuestion], answers: Sequence[UserAnswer]) -> TestResult:
        """
        Grade a submitted test.

        The returned result's ``passed`` flag is always derived from its score.
        """
        prompt = InterviewPrompts.grading(list(questions), list(answers))
        raw = self._generate("grade_test", prompt, GRADING_SCHEMA)
        try:
            payload = GradingPayload.model_validate(raw)
        except ValidationError as e:
            logger.warning("Grading payload failed validation: %s", e)
            raise SchemaViolation("grade_test", str(e)) from e

        self._check_coverage(questions, payload)
        result = payload.to_result()
        if result.passed != payload.passed:
            logger.warning("Grader reported passed=%s for score %s; using %s",
                           payload.passed, payload.score, result.passed)
        return result

    def _check_coverage(self, questions: Sequence[TestQuestion], payload: GradingPayload) -> None:
        """Detailed feedback must cover exactly the submitted questions, using their own options."""
        by_id = {q.id: q for q in questions}
        seen = [d.question_id for d in payload.detailed_feedback]

        if sorted(seen) != sorted(by_id):
            raise SchemaViolation(
                "grade_test",
                f"detailed feedback covers {sorted(seen)}, expected {sorted(by_id)}",
            )
        for detail in payload.detailed_feedback:
            if detail.correct_answer not in by_id[detail.question_id].options:
                raise SchemaViolation(
                    "grade_test",
                    f"correct answer {detail.correct_answer!r} is not an option of {detail.question_id}",
                )
