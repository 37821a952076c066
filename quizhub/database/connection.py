"""SQLite database connection manager for QuizHub."""

import logging
from pathlib import Path
from typing import Optional

import aiosqlite

logger = logging.getLogger(__name__)


class Database:
    """Async SQLite database connection manager.

    Documents keep their nested parts (options, snapshots, answers, reviews)
    in JSON text columns. Fields that are filtered, sorted or aggregated on
    get their own columns.
    """

    def __init__(self, db_path: str):
        self.db_path = db_path
        self._connection: Optional[aiosqlite.Connection] = None

    async def connect(self) -> None:
        """Establish database connection and initialize schema."""
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        self._connection = await aiosqlite.connect(self.db_path)
        self._connection.row_factory = aiosqlite.Row
        await self._init_schema()
        logger.info(f"Connected to database at {self.db_path}")

    async def close(self) -> None:
        """Close database connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None

    @property
    def is_connected(self) -> bool:
        """Whether connect() has been called and close() has not."""
        return self._connection is not None

    @property
    def connection(self) -> aiosqlite.Connection:
        """Get the database connection."""
        if not self._connection:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._connection

    async def _init_schema(self) -> None:
        """Initialize database schema."""
        schema = """
        -- User directory (authentication happens upstream)
        CREATE TABLE IF NOT EXISTS users (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            email TEXT UNIQUE NOT NULL,
            role TEXT NOT NULL DEFAULT 'student',
            is_active BOOLEAN NOT NULL DEFAULT 1,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        );

        -- Categories (name is unique and case-sensitive)
        CREATE TABLE IF NOT EXISTS categories (
            id TEXT PRIMARY KEY,
            name TEXT UNIQUE NOT NULL,
            description TEXT NOT NULL,
            icon TEXT NOT NULL DEFAULT 'BookOpen',
            color TEXT NOT NULL DEFAULT '#667eea',
            is_active BOOLEAN NOT NULL DEFAULT 1,
            question_count INTEGER NOT NULL DEFAULT 0,
            difficulty TEXT NOT NULL DEFAULT 'beginner',
            estimated_time INTEGER NOT NULL DEFAULT 30,
            created_by TEXT,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        );

        -- Question bank; content holds the kind-specific JSON document
        CREATE TABLE IF NOT EXISTS questions (
            id TEXT PRIMARY KEY,
            text TEXT NOT NULL,
            kind TEXT NOT NULL,
            category_id TEXT NOT NULL,
            difficulty TEXT NOT NULL DEFAULT 'medium',
            points INTEGER NOT NULL DEFAULT 1,
            content TEXT NOT NULL,
            correct_answer TEXT NOT NULL,
            explanation TEXT NOT NULL DEFAULT '',
            tags TEXT NOT NULL DEFAULT '[]',
            status TEXT NOT NULL DEFAULT 'draft',
            created_by TEXT,
            total_attempts INTEGER NOT NULL DEFAULT 0,
            correct_attempts INTEGER NOT NULL DEFAULT 0,
            average_time REAL NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL,
            FOREIGN KEY (category_id) REFERENCES categories(id)
        );

        -- Quiz sessions; questions is the snapshot taken at start
        CREATE TABLE IF NOT EXISTS quiz_sessions (
            id TEXT PRIMARY KEY,
            session_id TEXT UNIQUE NOT NULL,
            user_id TEXT NOT NULL,
            category_id TEXT NOT NULL,
            questions TEXT NOT NULL,
            answers TEXT NOT NULL DEFAULT '[]',
            status TEXT NOT NULL DEFAULT 'in_progress',
            started_at TEXT NOT NULL,
            completed_at TEXT,
            time_limit INTEGER NOT NULL,
            time_remaining INTEGER NOT NULL,
            score TEXT NOT NULL,
            score_percentage INTEGER NOT NULL DEFAULT 0,
            difficulty TEXT NOT NULL DEFAULT 'mixed',
            settings TEXT NOT NULL,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        );

        -- Attempt history, one row per finished session
        CREATE TABLE IF NOT EXISTS attempt_history (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL,
            session_ref TEXT NOT NULL,
            session_id TEXT UNIQUE NOT NULL,
            category_id TEXT NOT NULL,
            completed_at TEXT NOT NULL,
            duration INTEGER NOT NULL DEFAULT 0,
            status TEXT NOT NULL,
            score TEXT NOT NULL,
            score_percentage INTEGER NOT NULL DEFAULT 0,
            performance TEXT NOT NULL,
            question_analysis TEXT NOT NULL DEFAULT '[]',
            improvement TEXT NOT NULL,
            created_at TEXT NOT NULL
        );

        -- Coding challenges
        CREATE TABLE IF NOT EXISTS coding_challenges (
            id TEXT PRIMARY KEY,
            title TEXT NOT NULL,
            description TEXT NOT NULL,
            problem_statement TEXT NOT NULL,
            difficulty TEXT NOT NULL DEFAULT 'beginner',
            points INTEGER NOT NULL DEFAULT 10,
            time_limit INTEGER NOT NULL DEFAULT 0,
            examples TEXT NOT NULL DEFAULT '[]',
            constraints TEXT NOT NULL DEFAULT '[]',
            hints TEXT NOT NULL DEFAULT '[]',
            tags TEXT NOT NULL DEFAULT '[]',
            sample_input TEXT NOT NULL DEFAULT '',
            sample_output TEXT NOT NULL DEFAULT '',
            reference_solution TEXT NOT NULL DEFAULT '',
            language TEXT NOT NULL DEFAULT 'javascript',
            category_id TEXT,
            status TEXT NOT NULL DEFAULT 'active',
            is_active BOOLEAN NOT NULL DEFAULT 1,
            created_by TEXT,
            last_modified_by TEXT,
            stats TEXT NOT NULL,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        );

        -- Versioned challenge submissions (one is_latest row per student)
        CREATE TABLE IF NOT EXISTS challenge_submissions (
            id TEXT PRIMARY KEY,
            challenge_id TEXT NOT NULL,
            student_id TEXT NOT NULL,
            code TEXT NOT NULL,
            language TEXT NOT NULL,
            status TEXT NOT NULL DEFAULT 'draft',
            review TEXT,
            time_spent INTEGER NOT NULL DEFAULT 0,
            started_at TEXT,
            submitted_at TEXT,
            version INTEGER NOT NULL DEFAULT 1,
            is_latest BOOLEAN NOT NULL DEFAULT 1,
            self_assessment TEXT NOT NULL,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL,
            FOREIGN KEY (challenge_id) REFERENCES coding_challenges(id)
        );

        -- Score-graded coding submissions (one per student and challenge)
        CREATE TABLE IF NOT EXISTS coding_submissions (
            id TEXT PRIMARY KEY,
            challenge_id TEXT NOT NULL,
            student_id TEXT NOT NULL,
            code TEXT NOT NULL,
            language TEXT NOT NULL,
            status TEXT NOT NULL DEFAULT 'submitted',
            review TEXT,
            submitted_at TEXT NOT NULL,
            time_spent INTEGER NOT NULL DEFAULT 0,
            attempt_number INTEGER NOT NULL DEFAULT 1,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL,
            UNIQUE(challenge_id, student_id),
            FOREIGN KEY (challenge_id) REFERENCES coding_challenges(id)
        );

        -- Indexes for common queries
        CREATE INDEX IF NOT EXISTS idx_questions_category ON questions(category_id, status);
        CREATE INDEX IF NOT EXISTS idx_questions_created ON questions(created_at);
        CREATE INDEX IF NOT EXISTS idx_sessions_user_category ON quiz_sessions(user_id, category_id, status);
        CREATE INDEX IF NOT EXISTS idx_sessions_completed ON quiz_sessions(user_id, completed_at);
        CREATE INDEX IF NOT EXISTS idx_history_user ON attempt_history(user_id, completed_at);
        CREATE INDEX IF NOT EXISTS idx_history_category ON attempt_history(category_id, completed_at);
        CREATE INDEX IF NOT EXISTS idx_challenge_submissions_lookup ON challenge_submissions(challenge_id, student_id, is_latest);
        CREATE INDEX IF NOT EXISTS idx_coding_submissions_student ON coding_submissions(student_id, submitted_at);
        """
        await self.connection.executescript(schema)
        await self.connection.commit()
