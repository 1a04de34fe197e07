"""
mockinterview: AI-powered mock job interviews with promotion tests.

Runs a turn-based interview against a streaming Gemini chat, supports pausing,
resuming and reviewing past questions, and grades a short multiple-choice test
that moves the candidate up a skill tier.
"""

__version__ = "1.0.0"

# Main entry points
from .interview.session import InterviewSession
from .interview.promotion import PromotionTestController
from .interview.models import Turn, Tier, InterviewParameters, PausedSnapshot, TestResult

__all__ = [
    "InterviewSession", "PromotionTestController",
    "Turn", "Tier", "InterviewParameters", "PausedSnapshot", "TestResult",
]
