"""Coding challenge repository for database operations."""

from typing import Any, List, Optional, Tuple

from ...constants import APPROVED_SCORE_THRESHOLD
from ...utils.timeutil import to_iso, utc_now
from ..mappers import dump_json, row_to_coding_challenge
from ..models import ChallengeStats, CodingChallenge
from .base import BaseRepository, build_where


class ChallengeRepository(BaseRepository):
    """Repository for coding challenge definitions."""

    async def create(self, challenge: CodingChallenge) -> CodingChallenge:
        """Insert a new challenge."""
        now = utc_now()
        challenge.created_at = challenge.created_at or now
        challenge.updated_at = now
        conn = self.connection
        await conn.execute(
            """INSERT INTO coding_challenges
               (id, title, description, problem_statement, difficulty, points,
                time_limit, examples, constraints, hints, tags, sample_input,
                sample_output, reference_solution, language, category_id, status,
                is_active, created_by, last_modified_by, stats, created_at, updated_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                challenge.id,
                challenge.title,
                challenge.description,
                challenge.problem_statement,
                challenge.difficulty,
                challenge.points,
                challenge.time_limit,
                dump_json(challenge.examples),
                dump_json(challenge.constraints),
                dump_json(challenge.hints),
                dump_json(challenge.tags),
                challenge.sample_input,
                challenge.sample_output,
                challenge.reference_solution,
                challenge.language,
                challenge.category_id,
                challenge.status,
                challenge.is_active,
                challenge.created_by,
                challenge.last_modified_by,
                dump_json(challenge.stats),
                to_iso(challenge.created_at),
                to_iso(challenge.updated_at),
            ),
        )
        await conn.commit()
        return challenge

    async def get_by_id(self, challenge_id: str) -> Optional[CodingChallenge]:
        """Get a challenge by ID."""
        conn = self.connection
        cursor = await conn.execute(
            "SELECT * FROM coding_challenges WHERE id = ?", (challenge_id,)
        )
        row = await cursor.fetchone()
        if row:
            return row_to_coding_challenge(row)
        return None

    async def update(self, challenge: CodingChallenge) -> CodingChallenge:
        """Persist the editable fields of a challenge."""
        challenge.updated_at = utc_now()
        conn = self.connection
        await conn.execute(
            """UPDATE coding_challenges
               SET title = ?, description = ?, problem_statement = ?, difficulty = ?,
                   points = ?, time_limit = ?, examples = ?, constraints = ?, hints = ?,
                   tags = ?, sample_input = ?, sample_output = ?, reference_solution = ?,
                   language = ?, category_id = ?, status = ?, is_active = ?,
                   last_modified_by = ?, updated_at = ?
               WHERE id = ?""",
            (
                challenge.title,
                challenge.description,
                challenge.problem_statement,
                challenge.difficulty,
                challenge.points,
                challenge.time_limit,
                dump_json(challenge.examples),
                dump_json(challenge.constraints),
                dump_json(challenge.hints),
                dump_json(challenge.tags),
                challenge.sample_input,
                challenge.sample_output,
                challenge.reference_solution,
                challenge.language,
                challenge.category_id,
                challenge.status,
                challenge.is_active,
                challenge.last_modified_by,
                to_iso(challenge.updated_at),
                challenge.id,
            ),
        )
        await conn.commit()
        return challenge

    async def delete(self, challenge_id: str) -> bool:
        """Delete a challenge together with every submission made for it."""
        conn = self.connection
        await conn.execute(
            "DELETE FROM challenge_submissions WHERE challenge_id = ?", (challenge_id,)
        )
        await conn.execute(
            "DELETE FROM coding_submissions WHERE challenge_id = ?", (challenge_id,)
        )
        cursor = await conn.execute(
            "DELETE FROM coding_challenges WHERE id = ?", (challenge_id,)
        )
        await conn.commit()
        return cursor.rowcount > 0

    async def find(
        self,
        difficulty: Optional[str] = None,
        language: Optional[str] = None,
        category_id: Optional[str] = None,
        status: Optional[str] = None,
        active_only: bool = True,
        search: Optional[str] = None,
        skip: int = 0,
        limit: int = 10,
    ) -> Tuple[List[CodingChallenge], int]:
        """List challenges with filters, newest first."""
        conditions: List[str] = []
        params: List[Any] = []
        if active_only:
            conditions.append("is_active = 1")
        if status:
            conditions.append("status = ?")
            params.append(status)
        if difficulty:
            conditions.append("difficulty = ?")
            params.append(difficulty)
        if language:
            conditions.append("language = ?")
            params.append(language)
        if category_id:
            conditions.append("category_id = ?")
            params.append(category_id)
        if search:
            conditions.append("(title LIKE ? OR description LIKE ? OR tags LIKE ?)")
            params.extend([f"%{search}%"] * 3)
        where, params = build_where(conditions, params)

        conn = self.connection
        cursor = await conn.execute(
            f"""SELECT * FROM coding_challenges WHERE {where}
                ORDER BY created_at DESC LIMIT ? OFFSET ?""",
            (*params, limit, skip),
        )
        rows = await cursor.fetchall()
        total = await self._count("coding_challenges", where, params)
        return [row_to_coding_challenge(row) for row in rows], total

    async def refresh_stats(self, challenge_id: str) -> ChallengeStats:
        """Recompute submission statistics across both submission workflows."""
        conn = self.connection
        cursor = await conn.execute(
            """SELECT
                 COUNT(*) AS total_submissions,
                 COALESCE(SUM(CASE WHEN score >= ? THEN 1 ELSE 0 END), 0) AS approved_submissions,
                 COALESCE(AVG(score), 0) AS average_score,
                 COALESCE(AVG(time_spent), 0) AS average_time_spent
               FROM (
                 SELECT json_extract(review, '$.score') AS score, time_spent
                 FROM challenge_submissions s
                 WHERE challenge_id = ? AND status != 'draft'
                   -- a newer draft does not hide the last submitted version
                   AND version = (
                     SELECT MAX(version) FROM challenge_submissions s2
                     WHERE s2.challenge_id = s.challenge_id
                       AND s2.student_id = s.student_id
                       AND s2.status != 'draft'
                   )
                 UNION ALL
                 SELECT json_extract(review, '$.score') AS score, time_spent
                 FROM coding_submissions
                 WHERE challenge_id = ?
               )""",
            (APPROVED_SCORE_THRESHOLD, challenge_id, challenge_id),
        )
        row = await cursor.fetchone()
        stats = ChallengeStats(
            total_submissions=row["total_submissions"],
            approved_submissions=row["approved_submissions"],
            average_score=round(row["average_score"], 2),
            average_time_spent=round(row["average_time_spent"], 2),
        )
        await conn.execute(
            "UPDATE coding_challenges SET stats = ? WHERE id = ?",
            (dump_json(stats), challenge_id),
        )
        await conn.commit()
        return stats
