"""Pytest configuration and shared fixtures for QuizHub tests."""

import sys
from pathlib import Path

import pytest
import pytest_asyncio

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from quizhub.config import Config
from quizhub.database.models import Category
from quizhub.utils.ids import new_id
from tests.mocks import FrozenClock, IdentityShuffle, admin, make_mcq, student


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def config():
    """Default configuration with an in-memory database."""
    config = Config()
    config.database.path = ":memory:"
    return config


@pytest.fixture
def clock():
    """A frozen clock starting at 2024-03-01 09:00 UTC."""
    return FrozenClock()


@pytest.fixture
def rng():
    """A shuffle that keeps candidate order."""
    return IdentityShuffle()


# ============================================================================
# Principal Fixtures
# ============================================================================


@pytest.fixture
def student_principal():
    return student("student-1")


@pytest.fixture
def other_student():
    return student("student-2")


@pytest.fixture
def admin_principal():
    return admin("admin-1")


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest_asyncio.fixture
async def test_database():
    """Create an in-memory database for testing."""
    from quizhub.database.connection import Database

    db = Database(":memory:")
    await db.connect()
    yield db
    await db.close()


@pytest_asyncio.fixture
async def category_repository(test_database):
    from quizhub.database.repositories import CategoryRepository

    return CategoryRepository(test_database)


@pytest_asyncio.fixture
async def question_repository(test_database):
    from quizhub.database.repositories import QuestionRepository

    return QuestionRepository(test_database)


@pytest_asyncio.fixture
async def session_repository(test_database):
    from quizhub.database.repositories import QuizSessionRepository

    return QuizSessionRepository(test_database)


@pytest_asyncio.fixture
async def history_repository(test_database):
    from quizhub.database.repositories import AttemptHistoryRepository

    return AttemptHistoryRepository(test_database)


# ============================================================================
# Integration Fixtures
# ============================================================================


@pytest_asyncio.fixture
async def server(config, test_database, clock, rng):
    """A fully wired server container over the in-memory database.

    Every service shares the frozen clock and the identity shuffle.
    """
    from quizhub.server import QuizHubServer

    server = QuizHubServer(config, database=test_database, clock=clock, rng=rng)
    await server.setup()
    return server


# ============================================================================
# Test Data Fixtures
# ============================================================================


@pytest_asyncio.fixture
async def sample_category(category_repository):
    """An active category."""
    category = Category(
        id=new_id(),
        name="JavaScript Basics",
        description="Variables, types and control flow",
        difficulty="beginner",
    )
    return await category_repository.create(category)


@pytest_asyncio.fixture
async def inactive_category(category_repository):
    category = Category(
        id=new_id(),
        name="Retired Topic",
        description="No longer offered",
        is_active=False,
    )
    return await category_repository.create(category)


@pytest_asyncio.fixture
async def sample_questions(question_repository, category_repository, sample_category):
    """Three active MCQs of differing difficulty in the sample category."""
    questions = [
        make_mcq(sample_category.id, "2 + 2 = ?", ["3", "4", "5"], "4", difficulty="easy"),
        make_mcq(
            sample_category.id,
            "typeof null?",
            ["object", "null", "undefined"],
            "object",
            difficulty="medium",
            points=2,
        ),
        make_mcq(
            sample_category.id,
            "[] == ![] ?",
            ["true", "false"],
            "true",
            difficulty="hard",
            points=3,
        ),
    ]
    for question in questions:
        await question_repository.create(question)
    await category_repository.refresh_question_count(sample_category.id)
    return questions
