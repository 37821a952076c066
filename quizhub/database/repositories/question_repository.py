"""Question bank repository for database operations."""

from typing import Any, Dict, List, Optional, Tuple

from ...utils.timeutil import to_iso, utc_now
from ..mappers import dump_json, row_to_question
from ..models import Question, QuestionKind, QuestionStatus
from .base import BaseRepository, build_where


class QuestionRepository(BaseRepository):
    """Repository for question bank operations."""

    async def create(self, question: Question) -> Question:
        """Insert a new question."""
        now = utc_now()
        question.created_at = question.created_at or now
        question.updated_at = now
        conn = self.connection
        await conn.execute(
            """INSERT INTO questions
               (id, text, kind, category_id, difficulty, points, content,
                correct_answer, explanation, tags, status, created_by,
                total_attempts, correct_attempts, average_time, created_at, updated_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                question.id,
                question.text,
                question.kind,
                question.category_id,
                question.difficulty,
                question.points,
                dump_json(question.content),
                question.correct_answer,
                question.explanation,
                dump_json(question.tags),
                question.status,
                question.created_by,
                question.stats.total_attempts,
                question.stats.correct_attempts,
                question.stats.average_time,
                to_iso(question.created_at),
                to_iso(question.updated_at),
            ),
        )
        await conn.commit()
        return question

    async def get_by_id(self, question_id: str) -> Optional[Question]:
        """Get a question by ID."""
        conn = self.connection
        cursor = await conn.execute(
            "SELECT * FROM questions WHERE id = ?", (question_id,)
        )
        row = await cursor.fetchone()
        if row:
            return row_to_question(row)
        return None

    async def update(self, question: Question) -> Question:
        """Persist the editable fields of a question. Stats are left alone."""
        question.updated_at = utc_now()
        conn = self.connection
        await conn.execute(
            """UPDATE questions
               SET text = ?, kind = ?, category_id = ?, difficulty = ?, points = ?,
                   content = ?, correct_answer = ?, explanation = ?, tags = ?,
                   status = ?, updated_at = ?
               WHERE id = ?""",
            (
                question.text,
                question.kind,
                question.category_id,
                question.difficulty,
                question.points,
                dump_json(question.content),
                question.correct_answer,
                question.explanation,
                dump_json(question.tags),
                question.status,
                to_iso(question.updated_at),
                question.id,
            ),
        )
        await conn.commit()
        return question

    async def delete(self, question_id: str) -> bool:
        """Hard-delete a question. Returns True if a row was removed."""
        conn = self.connection
        cursor = await conn.execute("DELETE FROM questions WHERE id = ?", (question_id,))
        await conn.commit()
        return cursor.rowcount > 0

    async def is_referenced(self, question_id: str) -> bool:
        """Whether any session snapshot or attempt history mentions the question."""
        conn = self.connection
        cursor = await conn.execute(
            """SELECT
                 EXISTS (
                   SELECT 1 FROM quiz_sessions, json_each(quiz_sessions.questions) AS q
                   WHERE json_extract(q.value, '$.question_id') = ?
                 ) AS in_sessions,
                 EXISTS (
                   SELECT 1 FROM attempt_history, json_each(attempt_history.question_analysis) AS qa
                   WHERE json_extract(qa.value, '$.question_id') = ?
                 ) AS in_history""",
            (question_id, question_id),
        )
        row = await cursor.fetchone()
        return bool(row["in_sessions"] or row["in_history"])

    async def find_candidates(
        self,
        category_id: str,
        kind: str = QuestionKind.MCQ,
        difficulty: Optional[str] = None,
        limit: int = 20,
    ) -> List[Question]:
        """Get active questions for quiz selection, newest first."""
        conditions = ["category_id = ?", "status = ?", "kind = ?"]
        params: List[Any] = [category_id, QuestionStatus.ACTIVE, kind]
        if difficulty:
            conditions.append("difficulty = ?")
            params.append(difficulty)
        where, params = build_where(conditions, params)

        conn = self.connection
        cursor = await conn.execute(
            f"""SELECT * FROM questions WHERE {where}
                ORDER BY created_at DESC LIMIT ?""",
            (*params, limit),
        )
        rows = await cursor.fetchall()
        return [row_to_question(row) for row in rows]

    async def find_for_category(
        self,
        category_id: str,
        kind: Optional[str] = None,
        difficulty: Optional[str] = None,
        language: Optional[str] = None,
        skip: int = 0,
        limit: int = 10,
    ) -> Tuple[List[Question], int]:
        """Get active questions of a category, optionally for one program language."""
        conditions = ["category_id = ?", "status = ?"]
        params: List[Any] = [category_id, QuestionStatus.ACTIVE]
        if kind:
            conditions.append("kind = ?")
            params.append(kind)
        if difficulty:
            conditions.append("difficulty = ?")
            params.append(difficulty)
        if language:
            conditions.append("json_extract(content, '$.language') = ?")
            params.append(language)
        where, params = build_where(conditions, params)

        conn = self.connection
        cursor = await conn.execute(
            f"""SELECT * FROM questions WHERE {where}
                ORDER BY created_at DESC LIMIT ? OFFSET ?""",
            (*params, limit, skip),
        )
        rows = await cursor.fetchall()
        total = await self._count("questions", where, params)
        return [row_to_question(row) for row in rows], total

    async def search(
        self,
        category_id: Optional[str] = None,
        difficulty: Optional[str] = None,
        kind: Optional[str] = None,
        status: Optional[str] = None,
        search: Optional[str] = None,
        skip: int = 0,
        limit: int = 10,
    ) -> Tuple[List[Question], int]:
        """Admin listing with filters and free-text search over text and tags."""
        conditions: List[str] = []
        params: List[Any] = []
        if category_id:
            conditions.append("category_id = ?")
            params.append(category_id)
        if difficulty:
            conditions.append("difficulty = ?")
            params.append(difficulty)
        if kind:
            conditions.append("kind = ?")
            params.append(kind)
        if status:
            conditions.append("status = ?")
            params.append(status)
        if search:
            conditions.append("(text LIKE ? OR tags LIKE ?)")
            params.extend([f"%{search}%", f"%{search}%"])
        where, params = build_where(conditions, params)

        conn = self.connection
        cursor = await conn.execute(
            f"""SELECT * FROM questions WHERE {where}
                ORDER BY created_at DESC LIMIT ? OFFSET ?""",
            (*params, limit, skip),
        )
        rows = await cursor.fetchall()
        total = await self._count("questions", where, params)
        return [row_to_question(row) for row in rows], total

    async def record_attempt(
        self, question_id: str, is_correct: bool, time_spent: int = 0
    ) -> None:
        """Increment attempt counters and fold time into the running average."""
        conn = self.connection
        await conn.execute(
            """UPDATE questions
               SET average_time = ROUND((average_time * total_attempts + ?) / (total_attempts + 1)),
                   total_attempts = total_attempts + 1,
                   correct_attempts = correct_attempts + ?
               WHERE id = ?""",
            (time_spent, 1 if is_correct else 0, question_id),
        )
        await conn.commit()

    async def get_overall_stats(self) -> Dict[str, int]:
        """Counts by status plus attempt totals across the bank."""
        conn = self.connection
        cursor = await conn.execute(
            """SELECT
                 COUNT(*) AS total_questions,
                 COALESCE(SUM(CASE WHEN status = 'active' THEN 1 ELSE 0 END), 0) AS active_questions,
                 COALESCE(SUM(CASE WHEN status = 'draft' THEN 1 ELSE 0 END), 0) AS draft_questions,
                 COALESCE(SUM(CASE WHEN status = 'inactive' THEN 1 ELSE 0 END), 0) AS inactive_questions,
                 COALESCE(SUM(total_attempts), 0) AS total_attempts,
                 COALESCE(SUM(correct_attempts), 0) AS total_correct_attempts
               FROM questions"""
        )
        row = await cursor.fetchone()
        return dict(row)

    async def count_by(self, column: str) -> Dict[str, int]:
        """Count questions grouped by difficulty or kind."""
        if column not in ("difficulty", "kind"):
            raise ValueError(f"Cannot group questions by {column}")
        conn = self.connection
        cursor = await conn.execute(
            f"SELECT {column} AS grp, COUNT(*) AS count FROM questions GROUP BY {column}"
        )
        rows = await cursor.fetchall()
        return {row["grp"]: row["count"] for row in rows}
