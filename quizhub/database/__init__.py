"""Database layer for QuizHub."""

from .connection import Database
from .repositories import (
    AttemptHistoryRepository,
    CategoryRepository,
    ChallengeRepository,
    ChallengeSubmissionRepository,
    CodingSubmissionRepository,
    QuestionRepository,
    QuizSessionRepository,
    UserRepository,
)

__all__ = [
    "AttemptHistoryRepository",
    "CategoryRepository",
    "ChallengeRepository",
    "ChallengeSubmissionRepository",
    "CodingSubmissionRepository",
    "Database",
    "QuestionRepository",
    "QuizSessionRepository",
    "UserRepository",
]
