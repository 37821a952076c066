"""Challenge submission repository for database operations."""

from typing import Any, Dict, List, Optional, Tuple

from ...utils.timeutil import to_iso, utc_now
from ..mappers import dump_json, row_to_challenge_submission
from ..models import ChallengeSubmission, SubmissionStatus
from .base import BaseRepository, build_where


class ChallengeSubmissionRepository(BaseRepository):
    """Repository for versioned challenge submissions."""

    async def create(self, submission: ChallengeSubmission) -> ChallengeSubmission:
        """Insert a new submission row."""
        now = utc_now()
        submission.created_at = submission.created_at or now
        submission.updated_at = now
        conn = self.connection
        await conn.execute(
            """INSERT INTO challenge_submissions
               (id, challenge_id, student_id, code, language, status, review,
                time_spent, started_at, submitted_at, version, is_latest,
                self_assessment, created_at, updated_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                submission.id,
                submission.challenge_id,
                submission.student_id,
                submission.code,
                submission.language,
                submission.status,
                dump_json(submission.review),
                submission.time_spent,
                to_iso(submission.started_at),
                to_iso(submission.submitted_at),
                submission.version,
                submission.is_latest,
                dump_json(submission.self_assessment),
                to_iso(submission.created_at),
                to_iso(submission.updated_at),
            ),
        )
        await conn.commit()
        return submission

    async def save(self, submission: ChallengeSubmission) -> ChallengeSubmission:
        """Persist every mutable field of a submission."""
        submission.updated_at = utc_now()
        conn = self.connection
        await conn.execute(
            """UPDATE challenge_submissions
               SET code = ?, language = ?, status = ?, review = ?, time_spent = ?,
                   started_at = ?, submitted_at = ?, version = ?, is_latest = ?,
                   self_assessment = ?, updated_at = ?
               WHERE id = ?""",
            (
                submission.code,
                submission.language,
                submission.status,
                dump_json(submission.review),
                submission.time_spent,
                to_iso(submission.started_at),
                to_iso(submission.submitted_at),
                submission.version,
                submission.is_latest,
                dump_json(submission.self_assessment),
                to_iso(submission.updated_at),
                submission.id,
            ),
        )
        await conn.commit()
        return submission

    async def get_by_id(self, submission_id: str) -> Optional[ChallengeSubmission]:
        """Get a submission by ID."""
        conn = self.connection
        cursor = await conn.execute(
            "SELECT * FROM challenge_submissions WHERE id = ?", (submission_id,)
        )
        row = await cursor.fetchone()
        if row:
            return row_to_challenge_submission(row)
        return None

    async def get_latest(
        self, challenge_id: str, student_id: str
    ) -> Optional[ChallengeSubmission]:
        """Get the student's current submission for a challenge."""
        conn = self.connection
        cursor = await conn.execute(
            """SELECT * FROM challenge_submissions
               WHERE challenge_id = ? AND student_id = ? AND is_latest = 1
               ORDER BY version DESC LIMIT 1""",
            (challenge_id, student_id),
        )
        row = await cursor.fetchone()
        if row:
            return row_to_challenge_submission(row)
        return None

    async def find_for_student_challenge(
        self, challenge_id: str, student_id: str
    ) -> List[ChallengeSubmission]:
        """Every submission row of a student for one challenge, newest first."""
        conn = self.connection
        cursor = await conn.execute(
            """SELECT * FROM challenge_submissions
               WHERE challenge_id = ? AND student_id = ?
               ORDER BY created_at DESC""",
            (challenge_id, student_id),
        )
        rows = await cursor.fetchall()
        return [row_to_challenge_submission(row) for row in rows]

    async def find_for_student(
        self,
        student_id: str,
        status: Optional[str] = None,
        challenge_id: Optional[str] = None,
        skip: int = 0,
        limit: int = 10,
    ) -> Tuple[List[ChallengeSubmission], int]:
        """A student's submission history, most recently submitted first."""
        conditions = ["student_id = ?"]
        params: List[Any] = [student_id]
        if status:
            conditions.append("status = ?")
            params.append(status)
        if challenge_id:
            conditions.append("challenge_id = ?")
            params.append(challenge_id)
        where, params = build_where(conditions, params)
        return await self._page(where, params, skip, limit)

    async def find_for_challenge(
        self,
        challenge_id: str,
        status: Optional[str] = None,
        reviewed: Optional[bool] = None,
        skip: int = 0,
        limit: int = 10,
    ) -> Tuple[List[ChallengeSubmission], int]:
        """All submissions for a challenge, for reviewers."""
        conditions = ["challenge_id = ?"]
        params: List[Any] = [challenge_id]
        if status:
            conditions.append("status = ?")
            params.append(status)
        if reviewed is True:
            conditions.append("review IS NOT NULL")
        elif reviewed is False:
            conditions.append("review IS NULL")
        where, params = build_where(conditions, params)
        return await self._page(where, params, skip, limit)

    async def _page(
        self, where: str, params: List[Any], skip: int, limit: int
    ) -> Tuple[List[ChallengeSubmission], int]:
        conn = self.connection
        cursor = await conn.execute(
            f"""SELECT * FROM challenge_submissions WHERE {where}
                ORDER BY COALESCE(submitted_at, updated_at) DESC LIMIT ? OFFSET ?""",
            (*params, limit, skip),
        )
        rows = await cursor.fetchall()
        total = await self._count("challenge_submissions", where, params)
        return [row_to_challenge_submission(row) for row in rows], total

    async def get_breakdown(self, challenge_id: str) -> Dict[str, Any]:
        """Counts by status and by review score band for a challenge."""
        conn = self.connection
        cursor = await conn.execute(
            """SELECT status, COUNT(*) AS count FROM challenge_submissions
               WHERE challenge_id = ? GROUP BY status""",
            (challenge_id,),
        )
        by_status = {status: 0 for status in SubmissionStatus.ALL}
        for row in await cursor.fetchall():
            by_status[row["status"]] = row["count"]

        cursor = await conn.execute(
            """SELECT
                 COALESCE(SUM(CASE WHEN score >= 90 THEN 1 ELSE 0 END), 0) AS excellent,
                 COALESCE(SUM(CASE WHEN score >= 70 AND score < 90 THEN 1 ELSE 0 END), 0) AS good,
                 COALESCE(SUM(CASE WHEN score >= 50 AND score < 70 THEN 1 ELSE 0 END), 0) AS fair,
                 COALESCE(SUM(CASE WHEN score < 50 THEN 1 ELSE 0 END), 0) AS poor
               FROM (
                 SELECT json_extract(review, '$.score') AS score FROM challenge_submissions
                 WHERE challenge_id = ? AND review IS NOT NULL
               )""",
            (challenge_id,),
        )
        by_score = dict(await cursor.fetchone())
        return {
            "total": sum(by_status.values()),
            "by_status": by_status,
            "by_score": by_score,
        }
