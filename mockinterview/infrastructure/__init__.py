"""Infrastructure components for the mock interview system.

This module contains low-level technical components that provide
foundational capabilities for the interview engine.
"""

# LLM infrastructure
from .llm import GeminiRestClient, LLMServiceError, StructuredOutputError

__all__ = [
    # LLM client
    "GeminiRestClient", "LLMServiceError", "StructuredOutputError",
]
