"""
Error kinds returned by the engine.

Every operation either returns its result or raises one of the classes below.
The HTTP layer maps them to a JSON body using ``kind``, ``status_code`` and
``details``, so callers can tell which constraint was violated.
"""
from typing import Any, Optional


class EngineError(Exception):
    kind = "internal"
    status_code = 500

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        return {"error": self.kind, "detail": self.message, **self.details}


class NotFound(EngineError):
    """Unknown id, or an id outside the caller's scope."""
    kind = "not_found"
    status_code = 404


class ValidationError(EngineError):
    kind = "validation_error"
    status_code = 422


class NotAvailable(EngineError):
    """The event exists but is not open for this action at this time."""
    kind = "not_available"
    status_code = 409


class AlreadyExists(EngineError):
    """
    Soft condition: the record the caller asked for already exists.
    ``record`` holds the existing row so callers can treat it as success.
    """
    kind = "already_exists"
    status_code = 409

    def __init__(self, message: str, record: Optional[Any] = None, **details: Any):
        super().__init__(message, **details)
        self.record = record


class AlreadyStarted(AlreadyExists):
    kind = "already_started"


class AlreadyRegistered(AlreadyExists):
    kind = "already_registered"


class AlreadySubmitted(AlreadyExists):
    kind = "already_submitted"


class UnsupportedType(EngineError):
    kind = "unsupported_type"
    status_code = 415


class TooLarge(EngineError):
    kind = "too_large"
    status_code = 413


class InvalidScore(EngineError):
    kind = "invalid_score"
    status_code = 422


class InvalidQuestion(EngineError):
    kind = "invalid_question"
    status_code = 422


class AlreadyGraded(EngineError):
    kind = "already_graded"
    status_code = 409
