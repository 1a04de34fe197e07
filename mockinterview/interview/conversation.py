"""
Conversation protocol adapter.

Wraps the conversational service (normally ``GeminiRestClient``) with the
interview protocol: system prompt construction, turn/history translation,
and the create, open, stream and feedback exchanges.
"""
import logging
from typing import Any, Dict, Iterator, List, Optional, Protocol, Sequence

from .errors import CommunicationFailure
from .models import InterviewParameters, Speaker, Tier, Turn
from .prompts import InterviewPrompts
from ..config import OPENING_INSTRUCTION
from ..infrastructure.llm import USER_ROLE, MODEL_ROLE, text_content

logger = logging.getLogger("conversation")


class ConversationalService(Protocol):
    """What the adapter needs from a chat backend."""

    def create_chat(self, system_instruction: str,
                    history: Optional[List[Dict[str, Any]]] = None) -> Any: ...

    def send(self, chat: Any, text: str) -> str: ...

    def send_streaming(self, chat: Any, text: str) -> Iterator[str]: ...


def turns_to_history(turns: Sequence[Turn]) -> List[Dict[str, Any]]:
    """Translate the turn log into the service's role vocabulary."""
    return [
        text_content(USER_ROLE if turn.speaker == Speaker.CANDIDATE else MODEL_ROLE, turn.text)
        for turn in turns
    ]


class ConversationAdapter:
    """Interview protocol on top of a conversational service. Performs no retries."""

    def __init__(self, service: ConversationalService):
        self.service = service

    def build_system_prompt(self, params: InterviewParameters, language_code: str, tier: Tier) -> str:
        """Deterministic system prompt for the given interview, language and tier."""
        return InterviewPrompts.system_instruction(params, language_code, tier)

    def create_session(self, system_prompt: str, prior_turns: Sequence[Turn] = ()) -> Any:
        """Create a live chat seeded with the prior turns. Sends nothing."""
        try:
            handle = self.service.create_chat(system_prompt, turns_to_history(prior_turns))
        except Exception as e:
            logger.error("Failed to create chat session: %s", e)
            raise CommunicationFailure("create_session", e) from e

        logger.info("Chat session created with %d prior turns", len(prior_turns))
        return handle

    def opening_message(self, handle: Any) -> str:
        """Ask the interviewer to begin and return the greeting in one piece."""
        try:
            reply = self.service.send(handle, OPENING_INSTRUCTION)
        except Exception as e:
            logger.error("Failed to get opening message: %s", e)
            raise CommunicationFailure("opening_message", e) from e

        logger.debug("Opening message: %s", reply)
        return reply

    def send_streaming(self, handle: Any, text: str) -> Iterator[str]:
        """
        Send a candidate message and yield the reply in order.

        The sequence must be drained; stopping early leaves the service's
        history out of step with the turn log.
        """
        try:
            for chunk in self.service.send_streaming(handle, text):
                yield chunk
        except Exception as e:
            logger.error("Streaming exchange failed: %s", e)
            raise CommunicationFailure("send_streaming", e) from e

    def send_for_feedback(self, handle: Any, prompt_text: Optional[str] = None) -> str:
        """Request the closing feedback report."""
        try:
            feedback = self.service.send(handle, prompt_text or InterviewPrompts.feedback_request())
        except Exception as e:
            logger.error("Failed to generate feedback: %s", e)
            raise CommunicationFailure("send_for_feedback", e) from e

        logger.info("Feedback report received (%d chars)", len(feedback))
        return feedback
