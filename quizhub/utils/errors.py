"""Exception hierarchy for QuizHub.

Every error carries the HTTP status the API layer responds with, so services
can raise them without knowing anything about the transport.
"""

from typing import Any, Dict, List, Optional


class QuizHubError(Exception):
    """Base exception for QuizHub errors."""

    status_code = 500

    def __init__(
        self,
        message: str,
        data: Optional[Dict[str, Any]] = None,
        errors: Optional[List[Dict[str, str]]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.data = data
        self.errors = errors


class ValidationError(QuizHubError):
    """Raised when input is malformed or violates a document invariant."""

    status_code = 400

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationError":
        """Build a validation error that points at a single field."""
        return cls(message, errors=[{"field": field, "message": message}])


class AuthenticationError(QuizHubError):
    """Raised when a request carries no principal."""

    status_code = 401


class ForbiddenError(QuizHubError):
    """Raised on a role or ownership mismatch."""

    status_code = 403


class NotFoundError(QuizHubError):
    """Raised when a category, question, session or submission does not exist."""

    status_code = 404


class NoQuestionsAvailableError(NotFoundError):
    """Raised when a quiz cannot be started because no questions match."""

    pass


class StateConflictError(QuizHubError):
    """Raised when a request conflicts with the current state of a document."""

    status_code = 400


class SessionAlreadyActiveError(StateConflictError):
    """Raised when trying to start a quiz while an unexpired one is in progress."""

    pass


class HistoryAlreadyExistsError(StateConflictError):
    """Raised when an attempt history record already exists for a session."""

    pass


class DuplicateCategoryError(StateConflictError):
    """Raised when a category name is already taken."""

    pass


class SessionExpiredError(QuizHubError):
    """Raised when a quiz session is observed past its time limit."""

    status_code = 410
