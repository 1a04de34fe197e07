"""
Structured data models and schemas for the promotion test exchanges.

Two things live here for each exchange: the declarative response schema
sent to the model, and the pydantic model used to validate what comes back.
"""
from typing import List

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .models import TestQuestion, QuestionFeedback, TestResult
from ..config import TEST_QUESTION_COUNT, TEST_OPTION_COUNT


TEST_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "questions": {
            "type": "ARRAY",
            "description": f"An array of {TEST_QUESTION_COUNT} multiple-choice questions.",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "id": {"type": "STRING", "description": 'A unique ID for the question (e.g., "q1").'},
                    "question": {"type": "STRING", "description": "The question text."},
                    "options": {
                        "type": "ARRAY",
                        "description": f"An array of {TEST_OPTION_COUNT} string options.",
                        "items": {"type": "STRING"},
                    },
                },
                "required": ["id", "question", "options"],
            },
        }
    },
    "required": ["questions"],
}

GRADING_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "score": {"type": "NUMBER", "description": "A score from 0 to 100 based on the correctness of the answers."},
        "passed": {"type": "BOOLEAN", "description": "True if score is 70 or above."},
        "feedback": {
            "type": "STRING",
            "description": "A concise, constructive feedback summary on the answers. Address the user directly.",
        },
        "detailedFeedback": {
            "type": "ARRAY",
            "description": "One entry per question.",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "questionId": {"type": "STRING"},
                    "userAnswer": {"type": "STRING"},
                    "isCorrect": {"type": "BOOLEAN"},
                    "explanation": {"type": "STRING"},
                    "correctAnswer": {"type": "STRING", "description": "Copied exactly from the question's options."},
                },
                "required": ["questionId", "userAnswer", "isCorrect", "explanation", "correctAnswer"],
            },
        },
    },
    "required": ["score", "passed", "feedback", "detailedFeedback"],
}


class _Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", strict=True)


class QuestionPayload(_Payload):
    id: str = Field(min_length=1)
    question: str = Field(min_length=1)
    options: List[str] = Field(min_length=TEST_OPTION_COUNT, max_length=TEST_OPTION_COUNT)

    @field_validator("options")
    @classmethod
    def options_distinct(cls, v: List[str]) -> List[str]:
        if len({o.strip() for o in v}) != len(v):
            raise ValueError("options must be distinct")
        if any(not o.strip() for o in v):
            raise ValueError("options must not be blank")
        return v

    def to_question(self) -> TestQuestion:
        return TestQuestion(id=self.id, question=self.question, options=list(self.options))


class TestPayload(_Payload):
    __test__ = False

    questions: List[QuestionPayload] = Field(min_length=TEST_QUESTION_COUNT, max_length=TEST_QUESTION_COUNT)

    @field_validator("questions")
    @classmethod
    def ids_unique(cls, v: List[QuestionPayload]) -> List[QuestionPayload]:
        if len({q.id for q in v}) != len(v):
            raise ValueError("question ids must be unique")
        return v


class QuestionFeedbackPayload(_Payload):
    question_id: str = Field(alias="questionId")
    user_answer: str = Field(alias="userAnswer")
    is_correct: bool = Field(alias="isCorrect")
    explanation: str
    correct_answer: str = Field(alias="correctAnswer")

    def to_feedback(self) -> QuestionFeedback:
        return QuestionFeedback(
            question_id=self.question_id,
            user_answer=self.user_answer,
            is_correct=self.is_correct,
            explanation=self.explanation,
            correct_answer=self.correct_answer,
        )


class GradingPayload(_Payload):
    score: float = Field(ge=0, le=100)
    passed: bool
    feedback: str
    detailed_feedback: List[QuestionFeedbackPayload] = Field(alias="detailedFeedback")

    def to_result(self) -> TestResult:
        # passed is recomputed from score by TestResult
        return TestResult(
            score=self.score,
            feedback=self.feedback,
            detailed_feedback=[d.to_feedback() for d in self.detailed_feedback],
        )
