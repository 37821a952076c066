"""Mock utilities for testing."""

from .clock_mocks import FrozenClock, IdentityShuffle
from .principal_mocks import admin, auth_headers, student
from .question_factories import make_mcq, make_program_question

__all__ = [
    "FrozenClock",
    "IdentityShuffle",
    "admin",
    "auth_headers",
    "make_mcq",
    "make_program_question",
    "student",
]
