"""
Review navigation over past interviewer questions.
"""
import logging
from typing import List, Optional, Sequence

from .errors import InvariantViolation
from .models import Turn

logger = logging.getLogger("review")


def question_indices(turns: Sequence[Turn]) -> List[int]:
    """Indices of the interviewer question turns in a turn log."""
    return [idx for idx, turn in enumerate(turns) if turn.is_question]


class ReviewCursor:
    """
    Read-only paging over the question turns of a live turn log.

    ``position`` is None in live mode, otherwise an index into
    ``question_indices``. The turn log itself is never modified.
    """

    def __init__(self, turns: Sequence[Turn]):
        self._turns = turns
        self.position: Optional[int] = None

    @property
    def question_indices(self) -> List[int]:
        # Recomputed on every access so it always tracks the live log
        return question_indices(self._turns)

    @property
    def is_reviewing(self) -> bool:
        return self.position is not None

    @property
    def current_turn_index(self) -> Optional[int]:
        """Turn log index of the question under review, or None in live mode."""
        if self.position is None:
            return None
        return self.question_indices[self.position]

    def can_step_back(self) -> bool:
        return len(self.question_indices) > 0

    def can_step_forward(self) -> bool:
        return self.position is not None

    def step_back(self) -> int:
        """
        Move to the previous question (or the last one, from live mode).

        Returns:
            Turn index to bring into view
        """
        indices = self.question_indices
        if not indices:
            raise InvariantViolation("step_back with no question turns")

        if self.position is None:
            self.position = len(indices) - 1
        else:
            self.position = max(0, min(self.position, len(indices) - 1) - 1)

        logger.debug("Review position %d/%d", self.position + 1, len(indices))
        return indices[self.position]

    def step_forward(self) -> Optional[int]:
        """
        Move to the next question, or back to live mode after the last one.

        Returns:
            Turn index to bring into view, or None when back in live mode
        """
        if self.position is None:
            raise InvariantViolation("step_forward while in live mode")

        indices = self.question_indices
        if self.position >= len(indices) - 1:
            self.return_to_live()
            return None

        self.position += 1
        logger.debug("Review position %d/%d", self.position + 1, len(indices))
        return indices[self.position]

    def return_to_live(self) -> None:
        if self.position is not None:
            logger.debug("Leaving review mode")
        self.position = None
