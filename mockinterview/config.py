"""
Mock Interview Configuration System
===================================

This file contains ALL configuration for the mock interview system.
- User settings at the top (things users might want to change)
- Protocol constants in the middle (fixed by the interview/test protocol)
- Internal constants at the bottom (technical defaults)
"""
import os
from dataclasses import dataclass
from typing import Optional


# =============================================================================
# USER SETTINGS - Edit these to customize the interview coach
# =============================================================================

# REQUIRED: either an API key for the Gemini API, or a Google Cloud project for Vertex AI
GEMINI_API_KEY = None
GOOGLE_CLOUD_PROJECT = "your-project-id"  # Change this when using Vertex AI!
GOOGLE_APPLICATION_CREDENTIALS = None  # Optional: path to credentials JSON

# Interview settings
LANGUAGE_CODE = "en"
WORKDIR = "./_interviews"

# Logging
LOG_FILE = "./_interviews/interview.log"
LOG_LEVEL = "INFO"


# =============================================================================
# PROTOCOL CONSTANTS - Shared with the interviewer and grader prompts
# =============================================================================

TERMINATION_PHRASE = "End Interview"
SKIP_MESSAGE = "Please skip this question."
OPENING_INSTRUCTION = "Please begin the interview now by introducing yourself and asking your first question."
FEEDBACK_MARKER = "###"
INTERVIEWER_NAME = "Alex"
MIN_INTERVIEW_QUESTIONS = 3
MAX_INTERVIEW_QUESTIONS = 5

# Promotion test
TEST_QUESTION_COUNT = 3
TEST_OPTION_COUNT = 4
PASSING_SCORE = 70
INTERVIEWS_FOR_PROMOTION = 3


# =============================================================================
# INTERNAL CONSTANTS - Don't change these unless you know what you're doing
# =============================================================================

# LLM
GEMINI_API_BASE = "https://generativelanguage.googleapis.com/v1beta"
VERTEX_LOCATION = "us-central1"
MODEL_NAME = "gemini-2.5-flash"
LLM_TIMEOUT = 60
MAX_OUTPUT_TOKENS = 2048
CHAT_TEMPERATURE = 0.7
STRUCTURED_TEMPERATURE = 0.2

# Persistence
SNAPSHOT_FILENAME = "paused_interview.json"
PROGRESS_FILENAME = "progress.json"


# =============================================================================
# MAIN CONFIG OBJECT
# =============================================================================

@dataclass
class Config:
    """Main configuration object."""
    gemini_api_key: Optional[str] = None
    google_cloud_project: Optional[str] = None
    google_application_credentials: Optional[str] = None
    vertex_location: str = VERTEX_LOCATION
    model_name: str = MODEL_NAME
    llm_timeout: int = LLM_TIMEOUT
    max_output_tokens: int = MAX_OUTPUT_TOKENS
    language_code: str = LANGUAGE_CODE
    workdir: str = WORKDIR
    log_file: str = LOG_FILE
    log_level: str = LOG_LEVEL

    @property
    def snapshot_path(self) -> str:
        return os.path.join(self.workdir, SNAPSHOT_FILENAME)

    @property
    def progress_path(self) -> str:
        return os.path.join(self.workdir, PROGRESS_FILENAME)

    @property
    def uses_vertex(self) -> bool:
        """Vertex AI is used only when no API key is configured."""
        return not self.gemini_api_key


def get_config() -> Config:
    """Load configuration from the settings above, overridden by environment variables."""
    api_key = os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY") or GEMINI_API_KEY
    project = os.getenv("GOOGLE_CLOUD_PROJECT") or GOOGLE_CLOUD_PROJECT
    credentials = os.getenv("GOOGLE_APPLICATION_CREDENTIALS") or GOOGLE_APPLICATION_CREDENTIALS

    if project == "your-project-id":
        project = None

    if not api_key and not project:
        raise ValueError(
            "Please set GEMINI_API_KEY (Gemini API) or GOOGLE_CLOUD_PROJECT (Vertex AI) "
            "in config.py or as an environment variable"
        )

    return Config(
        gemini_api_key=api_key,
        google_cloud_project=project,
        google_application_credentials=credentials,
        vertex_location=os.getenv("VERTEX_LOCATION") or VERTEX_LOCATION,
        model_name=os.getenv("MODEL_NAME") or MODEL_NAME,
        llm_timeout=int(os.getenv("LLM_TIMEOUT") or LLM_TIMEOUT),
        max_output_tokens=int(os.getenv("MAX_OUTPUT_TOKENS") or MAX_OUTPUT_TOKENS),
        language_code=os.getenv("LANGUAGE_CODE") or LANGUAGE_CODE,
        workdir=os.getenv("WORKDIR") or WORKDIR,
        log_file=os.getenv("LOG_FILE") or LOG_FILE,
        log_level=os.getenv("LOG_LEVEL") or LOG_LEVEL,
    )
