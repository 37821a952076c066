"""Attempt history repository for database operations."""

from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from ...utils.timeutil import to_iso, utc_now
from ..mappers import dump_json, row_to_attempt_history
from ..models import AttemptHistory
from .base import BaseRepository

_SORT_COLUMNS = {
    "completedAt": "h.completed_at",
    "score.percentage": "h.score_percentage",
    "duration": "h.duration",
}


def _filters(
    user_id: Optional[str] = None,
    category_id: Optional[str] = None,
    status: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
) -> Tuple[str, List[Any]]:
    """Build a WHERE clause over the history table aliased as ``h``."""
    conditions: List[str] = []
    params: List[Any] = []
    if user_id:
        conditions.append("h.user_id = ?")
        params.append(user_id)
    if category_id:
        conditions.append("h.category_id = ?")
        params.append(category_id)
    if status:
        conditions.append("h.status = ?")
        params.append(status)
    if start_date:
        conditions.append("h.completed_at >= ?")
        params.append(to_iso(start_date))
    if end_date:
        conditions.append("h.completed_at <= ?")
        params.append(to_iso(end_date))
    where = " AND ".join(conditions) if conditions else "1 = 1"
    return where, params


class AttemptHistoryRepository(BaseRepository):
    """Repository for attempt history records and their aggregates."""

    async def create(self, history: AttemptHistory) -> AttemptHistory:
        """Insert a history record. The session_id column is unique."""
        history.created_at = history.created_at or utc_now()
        conn = self.connection
        await conn.execute(
            """INSERT INTO attempt_history
               (id, user_id, session_ref, session_id, category_id, completed_at,
                duration, status, score, score_percentage, performance,
                question_analysis, improvement, created_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                history.id,
                history.user_id,
                history.session_ref,
                history.session_id,
                history.category_id,
                to_iso(history.completed_at),
                history.duration,
                history.status,
                dump_json(history.score),
                history.score.percentage,
                dump_json(history.performance),
                dump_json(history.question_analysis),
                dump_json(history.improvement),
                to_iso(history.created_at),
            ),
        )
        await conn.commit()
        return history

    async def get_by_id(self, attempt_id: str) -> Optional[AttemptHistory]:
        """Get a history record by ID."""
        conn = self.connection
        cursor = await conn.execute(
            "SELECT * FROM attempt_history WHERE id = ?", (attempt_id,)
        )
        row = await cursor.fetchone()
        if row:
            return row_to_attempt_history(row)
        return None

    async def exists_for_session(self, session_id: str) -> bool:
        """Whether a history record already exists for a session."""
        conn = self.connection
        cursor = await conn.execute(
            "SELECT 1 FROM attempt_history WHERE session_id = ?", (session_id,)
        )
        return await cursor.fetchone() is not None

    async def get_previous(
        self, user_id: str, category_id: str, before: datetime
    ) -> Optional[AttemptHistory]:
        """Most recent attempt in a category completed before a given time."""
        conn = self.connection
        cursor = await conn.execute(
            """SELECT * FROM attempt_history
               WHERE user_id = ? AND category_id = ? AND completed_at < ?
               ORDER BY completed_at DESC LIMIT 1""",
            (user_id, category_id, to_iso(before)),
        )
        row = await cursor.fetchone()
        if row:
            return row_to_attempt_history(row)
        return None

    async def get_best_percentage(
        self, user_id: str, category_id: str, before: datetime
    ) -> Optional[int]:
        """Best score percentage in a category before a given time."""
        conn = self.connection
        cursor = await conn.execute(
            """SELECT MAX(score_percentage) AS best FROM attempt_history
               WHERE user_id = ? AND category_id = ? AND completed_at < ?""",
            (user_id, category_id, to_iso(before)),
        )
        row = await cursor.fetchone()
        return row["best"] if row else None

    async def find(
        self,
        user_id: Optional[str] = None,
        category_id: Optional[str] = None,
        status: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        sort_by: str = "completedAt",
        descending: bool = True,
        skip: int = 0,
        limit: Optional[int] = 10,
    ) -> Tuple[List[AttemptHistory], int]:
        """List history records with filters and sorting.

        Args:
            limit: Page size, or None for every matching record

        Returns:
            Tuple of (records, total matching count)
        """
        where, params = _filters(user_id, category_id, status, start_date, end_date)
        order = _SORT_COLUMNS.get(sort_by, _SORT_COLUMNS["completedAt"])
        direction = "DESC" if descending else "ASC"

        sql = f"""SELECT h.* FROM attempt_history AS h WHERE {where}
                  ORDER BY {order} {direction}, h.created_at {direction}"""
        query_params: List[Any] = list(params)
        if limit is not None:
            sql += " LIMIT ? OFFSET ?"
            query_params.extend([limit, skip])

        conn = self.connection
        cursor = await conn.execute(sql, tuple(query_params))
        rows = await cursor.fetchall()
        total = await self._count("attempt_history AS h", where, params)
        return [row_to_attempt_history(row) for row in rows], total

    async def get_user_aggregate(
        self, user_id: str, category_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """Score and time aggregates across a user's attempts."""
        where, params = _filters(user_id=user_id, category_id=category_id)
        conn = self.connection
        cursor = await conn.execute(
            f"""SELECT
                  COUNT(*) AS total_attempts,
                  AVG(h.score_percentage) AS average_score,
                  MAX(h.score_percentage) AS best_score,
                  MIN(h.score_percentage) AS worst_score,
                  COALESCE(SUM(h.duration), 0) AS total_time_spent,
                  AVG(h.duration) AS average_time_per_attempt,
                  COALESCE(SUM(CASE WHEN h.status = 'completed' THEN 1 ELSE 0 END), 0) AS completed_attempts,
                  COALESCE(SUM(CASE WHEN h.status = 'abandoned' THEN 1 ELSE 0 END), 0) AS abandoned_attempts,
                  COALESCE(SUM(CASE WHEN h.status = 'expired' THEN 1 ELSE 0 END), 0) AS expired_attempts
                FROM attempt_history AS h WHERE {where}""",
            tuple(params),
        )
        row = await cursor.fetchone()
        return dict(row)

    async def get_daily_trends(
        self,
        user_id: str,
        since: datetime,
        category_id: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """Attempts grouped by calendar day (UTC), oldest day first."""
        where, params = _filters(user_id=user_id, category_id=category_id, start_date=since)
        conn = self.connection
        cursor = await conn.execute(
            f"""SELECT
                  substr(h.completed_at, 1, 10) AS day,
                  COUNT(*) AS attempts,
                  AVG(h.score_percentage) AS average_score,
                  COALESCE(SUM(h.duration), 0) AS total_time
                FROM attempt_history AS h WHERE {where}
                GROUP BY day ORDER BY day ASC""",
            tuple(params),
        )
        rows = await cursor.fetchall()
        return [dict(row) for row in rows]

    async def get_difficulty_analysis(
        self,
        user_id: str,
        since: datetime,
        category_id: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """Per-difficulty totals over every analysed question."""
        where, params = _filters(user_id=user_id, category_id=category_id, start_date=since)
        conn = self.connection
        cursor = await conn.execute(
            f"""SELECT
                  json_extract(qa.value, '$.difficulty') AS difficulty,
                  COUNT(*) AS total_questions,
                  COALESCE(SUM(CASE WHEN json_extract(qa.value, '$.is_correct') THEN 1 ELSE 0 END), 0)
                    AS correct_answers,
                  AVG(json_extract(qa.value, '$.time_spent')) AS average_time
                FROM attempt_history AS h, json_each(h.question_analysis) AS qa
                WHERE {where}
                GROUP BY difficulty ORDER BY difficulty""",
            tuple(params),
        )
        rows = await cursor.fetchall()
        return [dict(row) for row in rows]

    async def get_time_analysis(
        self,
        user_id: str,
        since: datetime,
        category_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Duration aggregates over a period."""
        where, params = _filters(user_id=user_id, category_id=category_id, start_date=since)
        conn = self.connection
        cursor = await conn.execute(
            f"""SELECT
                  AVG(h.duration) AS average_time,
                  MIN(h.duration) AS fastest_time,
                  MAX(h.duration) AS slowest_time,
                  AVG(json_extract(h.performance, '$.average_time_per_question'))
                    AS average_time_per_question
                FROM attempt_history AS h WHERE {where}""",
            tuple(params),
        )
        row = await cursor.fetchone()
        return dict(row)

    async def get_category_aggregate(self, category_id: str) -> Dict[str, Any]:
        """Attempt aggregates across every user of a category."""
        conn = self.connection
        cursor = await conn.execute(
            """SELECT
                 COUNT(*) AS total_attempts,
                 COUNT(DISTINCT user_id) AS unique_users,
                 AVG(score_percentage) AS average_score,
                 MAX(score_percentage) AS best_score,
                 AVG(duration) AS average_time
               FROM attempt_history WHERE category_id = ?""",
            (category_id,),
        )
        row = await cursor.fetchone()
        return dict(row)

    async def get_top_performers(
        self, category_id: str, limit: int = 10
    ) -> List[Dict[str, Any]]:
        """Users of a category ranked by average score."""
        conn = self.connection
        cursor = await conn.execute(
            """SELECT
                 user_id,
                 AVG(score_percentage) AS average_score,
                 MAX(score_percentage) AS best_score,
                 COUNT(*) AS total_attempts
               FROM attempt_history WHERE category_id = ?
               GROUP BY user_id
               ORDER BY average_score DESC, best_score DESC
               LIMIT ?""",
            (category_id, limit),
        )
        rows = await cursor.fetchall()
        return [dict(row) for row in rows]
