"""
LLM infrastructure: REST access to Gemini models.
"""

from .client import (
    GeminiRestClient, GeminiChat, LLMServiceError, StructuredOutputError,
    text_content, USER_ROLE, MODEL_ROLE,
)

__all__ = [
    "GeminiRestClient", "GeminiChat", "LLMServiceError", "StructuredOutputError",
    "text_content", "USER_ROLE", "MODEL_ROLE",
]
