"""Database repositories for domain-specific operations."""

from .attempt_history_repository import AttemptHistoryRepository
from .base import BaseRepository
from .category_repository import CategoryRepository
from .challenge_repository import ChallengeRepository
from .challenge_submission_repository import ChallengeSubmissionRepository
from .coding_submission_repository import CodingSubmissionRepository
from .question_repository import QuestionRepository
from .session_repository import QuizSessionRepository
from .user_repository import UserRepository

__all__ = [
    "AttemptHistoryRepository",
    "BaseRepository",
    "CategoryRepository",
    "ChallengeRepository",
    "ChallengeSubmissionRepository",
    "CodingSubmissionRepository",
    "QuestionRepository",
    "QuizSessionRepository",
    "UserRepository",
]
