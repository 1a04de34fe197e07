"""
Error taxonomy for the interview engine.
"""
from typing import Optional


class EngineError(Exception):
    """Base class for all interview engine errors."""


class CommunicationFailure(EngineError):
    """A backing service could not be reached or returned an error."""

    def __init__(self, operation: str, cause: Optional[BaseException] = None):
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"{operation} failed{detail}")
        self.operation = operation
        self.cause = cause


class SchemaViolation(EngineError):
    """A structured response did not match its declared shape."""

    def __init__(self, operation: str, detail: str):
        super().__init__(f"{operation} returned an invalid payload: {detail}")
        self.operation = operation
        self.detail = detail


class InvariantViolation(EngineError):
    """The engine was driven in a way its guards forbid."""
