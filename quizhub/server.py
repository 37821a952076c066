"""Application container wiring the database, repositories and services."""

import logging
import random
import time
from typing import Optional

from .config import Config, load_config
from .database.connection import Database
from .database.repositories import (
    AttemptHistoryRepository,
    CategoryRepository,
    ChallengeRepository,
    ChallengeSubmissionRepository,
    CodingSubmissionRepository,
    QuestionRepository,
    QuizSessionRepository,
    UserRepository,
)
from .services import (
    AttemptHistoryService,
    CategoryService,
    ChallengeService,
    CodingSubmissionService,
    QuestionService,
    QuizSessionService,
    SubmissionService,
    UserService,
)
from .services.base import Clock

logger = logging.getLogger(__name__)


class QuizHubServer:
    """Owns the database connection and every repository and service.

    Args:
        config: Application configuration
        database: Pre-built database, mainly for tests; one is created from
            the configured path otherwise
        clock: Time source shared by every service
        rng: Random source used to shuffle questions
    """

    def __init__(
        self,
        config: Config,
        database: Optional[Database] = None,
        clock: Optional[Clock] = None,
        rng: Optional[random.Random] = None,
    ):
        self.config = config
        self.database = database
        self.clock = clock
        self.rng = rng
        self.started_at: Optional[float] = None

        # Repositories
        self.user_repo: Optional[UserRepository] = None
        self.category_repo: Optional[CategoryRepository] = None
        self.question_repo: Optional[QuestionRepository] = None
        self.session_repo: Optional[QuizSessionRepository] = None
        self.history_repo: Optional[AttemptHistoryRepository] = None
        self.challenge_repo: Optional[ChallengeRepository] = None
        self.challenge_submission_repo: Optional[ChallengeSubmissionRepository] = None
        self.coding_submission_repo: Optional[CodingSubmissionRepository] = None

        # Services
        self.user_service: Optional[UserService] = None
        self.category_service: Optional[CategoryService] = None
        self.question_service: Optional[QuestionService] = None
        self.history_service: Optional[AttemptHistoryService] = None
        self.quiz_service: Optional[QuizSessionService] = None
        self.challenge_service: Optional[ChallengeService] = None
        self.submission_service: Optional[SubmissionService] = None
        self.coding_submission_service: Optional[CodingSubmissionService] = None

    async def setup(self) -> None:
        """Connect the database and build repositories and services."""
        logger.info("Setting up QuizHub...")

        if self.database is None:
            self.database = Database(self.config.database.path)
        if not self.database.is_connected:
            await self.database.connect()

        self.user_repo = UserRepository(self.database)
        self.category_repo = CategoryRepository(self.database)
        self.question_repo = QuestionRepository(self.database)
        self.session_repo = QuizSessionRepository(self.database)
        self.history_repo = AttemptHistoryRepository(self.database)
        self.challenge_repo = ChallengeRepository(self.database)
        self.challenge_submission_repo = ChallengeSubmissionRepository(self.database)
        self.coding_submission_repo = CodingSubmissionRepository(self.database)
        logger.info("Database connected")

        config, clock = self.config, self.clock
        self.user_service = UserService(self.user_repo, config, clock)
        self.category_service = CategoryService(self.category_repo, config)
        self.question_service = QuestionService(
            self.question_repo, self.category_repo, config, clock, self.rng
        )
        self.history_service = AttemptHistoryService(
            self.history_repo, self.session_repo, self.category_repo, config, clock
        )
        self.quiz_service = QuizSessionService(
            self.session_repo,
            self.question_repo,
            self.category_repo,
            self.history_service,
            config,
            clock,
            self.rng,
        )
        self.challenge_service = ChallengeService(
            self.challenge_repo, self.challenge_submission_repo, config, clock
        )
        self.submission_service = SubmissionService(
            self.challenge_submission_repo, self.challenge_service, config, clock
        )
        self.coding_submission_service = CodingSubmissionService(
            self.coding_submission_repo, self.challenge_service, config, clock
        )
        logger.info("Services initialized")

        self.started_at = time.monotonic()

    @property
    def uptime(self) -> float:
        """Seconds since setup() finished."""
        if self.started_at is None:
            return 0.0
        return round(time.monotonic() - self.started_at, 2)

    async def close(self) -> None:
        """Close the database connection."""
        if self.database:
            await self.database.close()
        logger.info("QuizHub shut down")


def create_server(config: Optional[Config] = None) -> QuizHubServer:
    """Create a server container from the given or loaded configuration."""
    if config is None:
        config = load_config()
    return QuizHubServer(config)
