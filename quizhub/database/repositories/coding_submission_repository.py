"""Coding submission repository for database operations."""

from typing import Any, List, Optional, Tuple

from ...utils.timeutil import to_iso, utc_now
from ..mappers import dump_json, row_to_coding_submission
from ..models import CodingSubmission
from .base import BaseRepository, build_where

_SORT_COLUMNS = {
    "submittedAt": "submitted_at",
    "status": "status",
    "attemptNumber": "attempt_number",
}


class CodingSubmissionRepository(BaseRepository):
    """Repository for score-graded coding submissions."""

    async def upsert(self, submission: CodingSubmission) -> CodingSubmission:
        """Insert or fully replace the student's submission for a challenge."""
        now = utc_now()
        submission.created_at = submission.created_at or now
        submission.updated_at = now
        conn = self.connection
        await conn.execute(
            """INSERT INTO coding_submissions
               (id, challenge_id, student_id, code, language, status, review,
                submitted_at, time_spent, attempt_number, created_at, updated_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
               ON CONFLICT(id) DO UPDATE SET
                 code = excluded.code,
                 language = excluded.language,
                 status = excluded.status,
                 review = excluded.review,
                 submitted_at = excluded.submitted_at,
                 time_spent = excluded.time_spent,
                 attempt_number = excluded.attempt_number,
                 updated_at = excluded.updated_at""",
            (
                submission.id,
                submission.challenge_id,
                submission.student_id,
                submission.code,
                submission.language,
                submission.status,
                dump_json(submission.review),
                to_iso(submission.submitted_at),
                submission.time_spent,
                submission.attempt_number,
                to_iso(submission.created_at),
                to_iso(submission.updated_at),
            ),
        )
        await conn.commit()
        return submission

    async def get_by_id(self, submission_id: str) -> Optional[CodingSubmission]:
        """Get a submission by ID."""
        conn = self.connection
        cursor = await conn.execute(
            "SELECT * FROM coding_submissions WHERE id = ?", (submission_id,)
        )
        row = await cursor.fetchone()
        if row:
            return row_to_coding_submission(row)
        return None

    async def get_for_student(
        self, challenge_id: str, student_id: str
    ) -> Optional[CodingSubmission]:
        """Get the student's submission for a challenge."""
        conn = self.connection
        cursor = await conn.execute(
            "SELECT * FROM coding_submissions WHERE challenge_id = ? AND student_id = ?",
            (challenge_id, student_id),
        )
        row = await cursor.fetchone()
        if row:
            return row_to_coding_submission(row)
        return None

    async def find(
        self,
        student_id: Optional[str] = None,
        challenge_id: Optional[str] = None,
        status: Optional[str] = None,
        sort_by: str = "submittedAt",
        descending: bool = True,
        skip: int = 0,
        limit: int = 10,
    ) -> Tuple[List[CodingSubmission], int]:
        """List submissions with filters."""
        conditions: List[str] = []
        params: List[Any] = []
        if student_id:
            conditions.append("student_id = ?")
            params.append(student_id)
        if challenge_id:
            conditions.append("challenge_id = ?")
            params.append(challenge_id)
        if status:
            conditions.append("status = ?")
            params.append(status)
        where, params = build_where(conditions, params)
        order = _SORT_COLUMNS.get(sort_by, "submitted_at")
        direction = "DESC" if descending else "ASC"

        conn = self.connection
        cursor = await conn.execute(
            f"""SELECT * FROM coding_submissions WHERE {where}
                ORDER BY {order} {direction} LIMIT ? OFFSET ?""",
            (*params, limit, skip),
        )
        rows = await cursor.fetchall()
        total = await self._count("coding_submissions", where, params)
        return [row_to_coding_submission(row) for row in rows], total
