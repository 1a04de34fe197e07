"""
Testing infrastructure with scripted services for the interview system.

These stand in for ``GeminiRestClient`` in tests and offline demos. They
record every request and can be told to fail at a chosen point.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Sequence, Set

from .models import InterviewParameters, Turn, TestQuestion, UserAnswer
from ..infrastructure.llm import USER_ROLE, MODEL_ROLE, text_content


class MockServiceError(ConnectionError):
    """Raised by the scripted services when told to fail."""


DEFAULT_OPENING = "Hi, I'm Alex, the hiring manager. Could you start by telling me about yourself?"
DEFAULT_REPLY = ["Thanks for sharing. ", "What drew you ", "to this role?"]
DEFAULT_FEEDBACK = (
    "### Overall Assessment\nYou communicated clearly.\n\n"
    "### Key Strengths\n- Concise answers\n\n"
    "### Areas for Improvement\n- Use more concrete examples"
)


@dataclass
class MockChat:
    """Chat handle returned by ``MockConversationalService``."""
    system_instruction: str
    history: List[Dict[str, Any]] = field(default_factory=list)


class MockConversationalService:
    """Scripted conversational service."""

    def __init__(self,
                 send_replies: Optional[List[str]] = None,
                 stream_replies: Optional[List[List[str]]] = None,
                 fail_on: Optional[Set[str]] = None,
                 fail_after_chunks: Optional[int] = None):
        self.send_replies = list(send_replies or [])
        self.stream_replies = list(stream_replies or [])
        self.fail_on = set(fail_on or ())
        self.fail_after_chunks = fail_after_chunks
        self.chats: List[MockChat] = []
        self.request_history: List[Dict[str, Any]] = []

    def _maybe_fail(self, operation: str):
        if operation in self.fail_on:
            raise MockServiceError(f"mock {operation} failure")

    def create_chat(self, system_instruction: str,
                    history: Optional[List[Dict[str, Any]]] = None) -> MockChat:
        self._maybe_fail("create_chat")
        chat = MockChat(system_instruction=system_instruction, history=list(history or []))
        self.chats.append(chat)
        return chat

    def send(self, chat: MockChat, text: str) -> str:
        self.request_history.append({"method": "send", "text": text})
        self._maybe_fail("send")

        if self.send_replies:
            reply = self.send_replies.pop(0)
        elif not chat.history:
            reply = DEFAULT_OPENING
        else:
            reply = DEFAULT_FEEDBACK
        chat.history.append(text_content(USER_ROLE, text))
        chat.history.append(text_content(MODEL_ROLE, reply))
        return reply

    def send_streaming(self, chat: MockChat, text: str) -> Iterator[str]:
        self.request_history.append({"method": "send_streaming", "text": text})
        self._maybe_fail("send_streaming")

        chunks = self.stream_replies.pop(0) if self.stream_replies else list(DEFAULT_REPLY)
        for i, chunk in enumerate(chunks):
            if self.fail_after_chunks is not None and i >= self.fail_after_chunks:
                raise MockServiceError("mock stream interrupted")
            yield chunk
        chat.history.append(text_content(USER_ROLE, text))
        chat.history.append(text_content(MODEL_ROLE, "".join(chunks)))

    def sent_texts(self, method: Optional[str] = None) -> List[str]:
        return [r["text"] for r in self.request_history if method is None or r["method"] == method]


class MockStructuredService:
    """Scripted structured generation service. Exceptions in the script are raised."""

    def __init__(self, responses: Optional[List[Any]] = None):
        self.responses = list(responses or [])
        self.request_history: List[Dict[str, Any]] = []

    def generate_structured(self, prompt: str, schema: Dict[str, Any]) -> Any:
        self.request_history.append({"prompt": prompt, "schema": schema})
        if not self.responses:
            raise MockServiceError("no scripted structured response left")
        response = self.responses.pop(0)
        if isinstance(response, BaseException):
            raise response
        return response


def create_sample_parameters() -> InterviewParameters:
    return InterviewParameters(
        company_name="Acme Corp",
        job_role="Product Manager",
        company_url="https://acme.example.com",
    )


def create_test_conversation_data() -> List[Turn]:
    """A short paused conversation: greeting, answer, follow-up."""
    return [
        Turn.interviewer("Hi, I'm Alex. Tell me about your background."),
        Turn.candidate("I've been a product analyst for four years."),
        Turn.interviewer("What product decision are you most proud of?"),
    ]


def create_test_payload(count: int = 3, options: int = 4) -> Dict[str, Any]:
    """A structured response for test generation."""
    return {
        "questions": [
            {
                "id": f"q{n}",
                "question": f"Workplace scenario question {n}?",
                "options": [f"Option {n}{letter}" for letter in "ABCDEFGH"[:options]],
            }
            for n in range(1, count + 1)
        ]
    }


def create_grading_payload(questions: Sequence[TestQuestion],
                           answers: Sequence[UserAnswer],
                           score: float,
                           passed: Optional[bool] = None) -> Dict[str, Any]:
    """A structured grading response; ``passed`` may disagree with ``score`` on purpose."""
    by_id = {a.question_id: a.answer for a in answers}
    return {
        "score": score,
        "passed": score >= 70 if passed is None else passed,
        "feedback": "You did well on most questions.",
        "detailedFeedback": [
            {
                "questionId": q.id,
                "userAnswer": by_id.get(q.id, ""),
                "isCorrect": by_id.get(q.id) == q.options[0],
                "explanation": "The first option reflects best practice.",
                "correctAnswer": q.options[0],
            }
            for q in questions
        ],
    }
