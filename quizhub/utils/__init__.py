"""Utility modules for QuizHub."""

from .errors import (
    AuthenticationError,
    DuplicateCategoryError,
    ForbiddenError,
    HistoryAlreadyExistsError,
    NoQuestionsAvailableError,
    NotFoundError,
    QuizHubError,
    SessionAlreadyActiveError,
    SessionExpiredError,
    StateConflictError,
    ValidationError,
)
from .ids import generate_session_id, new_id
from .timeutil import parse_datetime, to_iso, utc_now

__all__ = [
    "AuthenticationError",
    "DuplicateCategoryError",
    "ForbiddenError",
    "HistoryAlreadyExistsError",
    "NoQuestionsAvailableError",
    "NotFoundError",
    "QuizHubError",
    "SessionAlreadyActiveError",
    "SessionExpiredError",
    "StateConflictError",
    "ValidationError",
    "generate_session_id",
    "new_id",
    "parse_datetime",
    "to_iso",
    "utc_now",
]
