"""Quiz session repository for database operations."""

from typing import Any, List, Optional, Tuple

from ...utils.timeutil import to_iso, utc_now
from ..mappers import dump_json, row_to_quiz_session
from ..models import QuizSession, SessionStatus
from .base import BaseRepository, build_where


class QuizSessionRepository(BaseRepository):
    """Repository for quiz session documents."""

    async def create(self, session: QuizSession) -> QuizSession:
        """Insert a new session."""
        now = utc_now()
        session.created_at = session.created_at or now
        session.updated_at = now
        conn = self.connection
        await conn.execute(
            """INSERT INTO quiz_sessions
               (id, session_id, user_id, category_id, questions, answers, status,
                started_at, completed_at, time_limit, time_remaining, score,
                score_percentage, difficulty, settings, created_at, updated_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                session.id,
                session.session_id,
                session.user_id,
                session.category_id,
                dump_json(session.questions),
                dump_json(session.answers),
                session.status,
                to_iso(session.started_at),
                to_iso(session.completed_at),
                session.time_limit,
                session.time_remaining,
                dump_json(session.score),
                session.score.percentage,
                session.difficulty,
                dump_json(session.settings),
                to_iso(session.created_at),
                to_iso(session.updated_at),
            ),
        )
        await conn.commit()
        return session

    async def save(self, session: QuizSession) -> QuizSession:
        """Persist the mutable parts of a session (answers, status, score)."""
        session.updated_at = utc_now()
        conn = self.connection
        await conn.execute(
            """UPDATE quiz_sessions
               SET answers = ?, status = ?, completed_at = ?, time_remaining = ?,
                   score = ?, score_percentage = ?, updated_at = ?
               WHERE id = ?""",
            (
                dump_json(session.answers),
                session.status,
                to_iso(session.completed_at),
                session.time_remaining,
                dump_json(session.score),
                session.score.percentage,
                to_iso(session.updated_at),
                session.id,
            ),
        )
        await conn.commit()
        return session

    async def get_by_session_id(self, session_id: str) -> Optional[QuizSession]:
        """Get a session by its generated session identifier."""
        conn = self.connection
        cursor = await conn.execute(
            "SELECT * FROM quiz_sessions WHERE session_id = ?", (session_id,)
        )
        row = await cursor.fetchone()
        if row:
            return row_to_quiz_session(row)
        return None

    async def get_for_user(self, session_id: str, user_id: str) -> Optional[QuizSession]:
        """Get a session owned by a user."""
        conn = self.connection
        cursor = await conn.execute(
            "SELECT * FROM quiz_sessions WHERE session_id = ? AND user_id = ?",
            (session_id, user_id),
        )
        row = await cursor.fetchone()
        if row:
            return row_to_quiz_session(row)
        return None

    async def get_in_progress(self, user_id: str, category_id: str) -> Optional[QuizSession]:
        """Get the user's in-progress session for a category, if any."""
        conn = self.connection
        cursor = await conn.execute(
            """SELECT * FROM quiz_sessions
               WHERE user_id = ? AND category_id = ? AND status = ?
               ORDER BY started_at DESC LIMIT 1""",
            (user_id, category_id, SessionStatus.IN_PROGRESS),
        )
        row = await cursor.fetchone()
        if row:
            return row_to_quiz_session(row)
        return None

    async def find_in_progress_for_user(self, user_id: str) -> List[QuizSession]:
        """Every running session of a user, across categories."""
        conn = self.connection
        cursor = await conn.execute(
            "SELECT * FROM quiz_sessions WHERE user_id = ? AND status = ?",
            (user_id, SessionStatus.IN_PROGRESS),
        )
        rows = await cursor.fetchall()
        return [row_to_quiz_session(row) for row in rows]

    async def find_terminal_for_user(
        self,
        user_id: str,
        category_id: Optional[str] = None,
        status: Optional[str] = None,
        skip: int = 0,
        limit: int = 10,
    ) -> Tuple[List[QuizSession], int]:
        """Finished sessions of a user, most recently completed first."""
        placeholders = ",".join("?" * len(SessionStatus.TERMINAL))
        conditions = ["user_id = ?", f"status IN ({placeholders})"]
        params: List[Any] = [user_id, *SessionStatus.TERMINAL]
        if category_id:
            conditions.append("category_id = ?")
            params.append(category_id)
        if status:
            conditions.append("status = ?")
            params.append(status)
        where, params = build_where(conditions, params)

        conn = self.connection
        # Expired sessions have no completion time; order them by start
        cursor = await conn.execute(
            f"""SELECT * FROM quiz_sessions WHERE {where}
                ORDER BY COALESCE(completed_at, started_at) DESC LIMIT ? OFFSET ?""",
            (*params, limit, skip),
        )
        rows = await cursor.fetchall()
        total = await self._count("quiz_sessions", where, params)
        return [row_to_quiz_session(row) for row in rows], total
