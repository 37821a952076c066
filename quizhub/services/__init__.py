"""Business logic services."""

from .attempt_history_service import AttemptHistoryService, ExportResult
from .base import FieldErrors, Page, Principal, require_admin
from .category_service import CategoryService
from .challenge_service import ChallengeService
from .coding_submission_service import CodingSubmissionService
from .question_service import QuestionService, validate_question
from .quiz_session_service import AnswerResult, QuizSessionService
from .submission_service import SubmissionService
from .user_service import UserService

__all__ = [
    "AnswerResult",
    "AttemptHistoryService",
    "CategoryService",
    "ChallengeService",
    "CodingSubmissionService",
    "ExportResult",
    "FieldErrors",
    "Page",
    "Principal",
    "QuestionService",
    "QuizSessionService",
    "SubmissionService",
    "UserService",
    "require_admin",
    "validate_question",
]
