"""
Data models for the interview system.
"""
import itertools
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Dict, List, Any

from ..config import FEEDBACK_MARKER, PASSING_SCORE


def _expect(value: Any, kind: type, what: str) -> Any:
    """Stored records come from disk; reject anything of the wrong shape."""
    if not isinstance(value, kind):
        raise ValueError(f"{what} must be a {kind.__name__}, got {type(value).__name__}")
    return value


class Speaker(str, Enum):
    """Who said a turn."""
    CANDIDATE = "candidate"
    INTERVIEWER = "interviewer"


class TurnKind(str, Enum):
    """What an interviewer turn is for. Candidate turns are always answers."""
    QUESTION = "question"
    FEEDBACK = "feedback"
    ANSWER = "answer"


class Tier(str, Enum):
    """Candidate skill tier, ordered from lowest to highest."""
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"

    @property
    def display_name(self) -> str:
        return self.value.title()

    def next(self) -> "Tier":
        """Next tier up; advanced is the ceiling."""
        order = list(Tier)
        idx = order.index(self)
        return order[min(idx + 1, len(order) - 1)]

    @classmethod
    def parse(cls, value: str) -> "Tier":
        """Accept either the value or the display name, any case."""
        try:
            return cls(_expect(value, str, "tier").strip().lower())
        except ValueError:
            raise ValueError(f"Unknown tier: {value!r} (expected one of {[t.value for t in cls]})") from None


_turn_counter = itertools.count(1)


def new_turn_id() -> str:
    """Unique, monotonically increasing turn identifier."""
    return f"{int(time.time() * 1000)}-{next(_turn_counter)}"


@dataclass
class Turn:
    """Represents a single message in the interview conversation."""
    speaker: Speaker
    text: str
    kind: TurnKind = TurnKind.QUESTION
    id: str = field(default_factory=new_turn_id)

    def __post_init__(self):
        if self.speaker == Speaker.CANDIDATE:
            self.kind = TurnKind.ANSWER
        elif self.text.startswith(FEEDBACK_MARKER):
            self.kind = TurnKind.FEEDBACK

    @classmethod
    def candidate(cls, text: str) -> "Turn":
        return cls(Speaker.CANDIDATE, text)

    @classmethod
    def interviewer(cls, text: str) -> "Turn":
        return cls(Speaker.INTERVIEWER, text)

    @property
    def is_question(self) -> bool:
        """Interviewer turns that can be navigated to in review mode."""
        return (self.speaker == Speaker.INTERVIEWER
                and self.kind == TurnKind.QUESTION
                and not self.text.startswith(FEEDBACK_MARKER))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "sender": "user" if self.speaker == Speaker.CANDIDATE else "ai",
            "text": self.text,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Turn":
        sender = _expect(data, dict, "message").get("sender")
        if sender == "user":
            speaker = Speaker.CANDIDATE
        elif sender == "ai":
            speaker = Speaker.INTERVIEWER
        else:
            raise ValueError(f"Unknown sender in stored turn: {sender!r}")
        return cls(speaker=speaker, text=str(data.get("text", "")), id=str(data.get("id") or new_turn_id()))


@dataclass(frozen=True)
class InterviewParameters:
    """What the candidate is interviewing for. All fields are required."""
    company_name: str
    job_role: str
    company_url: str

    def __post_init__(self):
        for name in ("company_name", "job_role", "company_url"):
            if not _expect(getattr(self, name), str, name).strip():
                raise ValueError(f"{name} is required")

    def to_dict(self) -> Dict[str, str]:
        return {
            "companyName": self.company_name,
            "jobRole": self.job_role,
            "companyUrl": self.company_url,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "InterviewParameters":
        _expect(data, dict, "interviewData")
        return cls(
            company_name=data["companyName"],
            job_role=data["jobRole"],
            company_url=data["companyUrl"],
        )


@dataclass
class PausedSnapshot:
    """Serializable projection of a session, sufficient to resume it."""
    parameters: InterviewParameters
    turns: List[Turn]
    language_code: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "interviewData": self.parameters.to_dict(),
            "messages": [turn.to_dict() for turn in self.turns],
            "language": self.language_code,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PausedSnapshot":
        _expect(data, dict, "snapshot")
        return cls(
            parameters=InterviewParameters.from_dict(data["interviewData"]),
            turns=[Turn.from_dict(m) for m in _expect(data.get("messages", []), list, "messages")],
            language_code=_expect(data["language"], str, "language"),
        )


@dataclass
class InterviewOutcome:
    """Delivered to the caller when an interview ends with feedback."""
    feedback: str
    turns: List[Turn]


@dataclass(frozen=True)
class TestQuestion:
    """A multiple-choice question. The correct answer is never included."""
    __test__ = False

    id: str
    question: str
    options: List[str]

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "question": self.question, "options": list(self.options)}


@dataclass(frozen=True)
class UserAnswer:
    """The option a candidate picked for one question."""
    question_id: str
    answer: str

    def to_dict(self) -> Dict[str, str]:
        return {"questionId": self.question_id, "answer": self.answer}


@dataclass(frozen=True)
class QuestionFeedback:
    """Grading detail for one question."""
    question_id: str
    user_answer: str
    is_correct: bool
    explanation: str
    correct_answer: str


@dataclass
class TestResult:
    """Graded promotion test."""
    __test__ = False

    score: float
    feedback: str
    detailed_feedback: List[QuestionFeedback] = field(default_factory=list)
    passed: bool = False

    def __post_init__(self):
        # Never trust a pass flag that disagrees with the score
        self.passed = self.score >= PASSING_SCORE


@dataclass
class CandidateProgress:
    """Tier and the number of interviews completed since the last promotion."""
    tier: Tier = Tier.BEGINNER
    interviews_completed: int = 0

    def record_completed_interview(self):
        self.interviews_completed += 1

    def promote(self):
        self.tier = self.tier.next()
        self.interviews_completed = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"progress": self.tier.value, "interviewsCompleted": self.interviews_completed}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CandidateProgress":
        _expect(data, dict, "progress record")
        return cls(
            tier=Tier.parse(data.get("progress", Tier.BEGINNER.value)),
            interviews_completed=int(data.get("interviewsCompleted", 0)),
        )
