"""Coding challenge definitions and their statistics."""

import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from ..constants import (
    CHALLENGE_DIFFICULTIES,
    ERROR_CHALLENGE_NOT_FOUND,
    MAX_POINTS,
    MIN_POINTS,
)
from ..database.models import ChallengeExample, CodingChallenge, QuestionStatus
from ..utils.errors import NotFoundError, ValidationError
from ..utils.ids import new_id
from .base import BaseService, Clock, FieldErrors, Page, Principal, require_admin

if TYPE_CHECKING:
    from ..config import Config
    from ..database.repositories import ChallengeRepository, ChallengeSubmissionRepository

logger = logging.getLogger(__name__)

_EDITABLE_FIELDS = {
    "title",
    "description",
    "problem_statement",
    "difficulty",
    "points",
    "time_limit",
    "examples",
    "constraints",
    "hints",
    "tags",
    "sample_input",
    "sample_output",
    "reference_solution",
    "language",
    "category_id",
    "status",
    "is_active",
}


def validate_challenge(challenge: CodingChallenge) -> None:
    errors = FieldErrors()
    errors.text("title", challenge.title, 200, label="Title")
    errors.text("description", challenge.description, 2000, label="Description")
    errors.text("problemStatement", challenge.problem_statement, 10000, label="Problem statement")
    errors.choice("difficulty", challenge.difficulty, CHALLENGE_DIFFICULTIES)
    errors.number("points", challenge.points, MIN_POINTS, MAX_POINTS)
    errors.number("timeLimit", challenge.time_limit, 0, 600)
    errors.choice("status", challenge.status, QuestionStatus.ALL)
    for example in challenge.examples:
        errors.check(
            isinstance(example, ChallengeExample) and bool(example.input) and bool(example.output),
            "examples",
            "Each example needs an input and an output",
        )
    errors.raise_if_any()


class ChallengeService(BaseService):
    """Service for coding challenge CRUD."""

    def __init__(
        self,
        challenge_repo: "ChallengeRepository",
        submission_repo: "ChallengeSubmissionRepository",
        config: "Config",
        clock: Optional[Clock] = None,
    ):
        super().__init__(config, clock)
        self.challenge_repo = challenge_repo
        self.submission_repo = submission_repo

    async def list_challenges(
        self,
        principal: Principal,
        difficulty: Optional[str] = None,
        language: Optional[str] = None,
        category_id: Optional[str] = None,
        status: Optional[str] = QuestionStatus.ACTIVE,
        search: Optional[str] = None,
        page: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> Page[CodingChallenge]:
        """Challenges matching the filters. Status "all" disables the status filter.

        Students only ever see challenges flagged active.
        """
        page, limit, skip = self.page_params(page, limit)
        challenges, total = await self.challenge_repo.find(
            difficulty=difficulty,
            language=language,
            category_id=category_id,
            status=None if status in (None, "all") else status,
            active_only=not principal.is_admin,
            search=search,
            skip=skip,
            limit=limit,
        )
        return Page(items=challenges, total=total, page=page, limit=limit)

    async def get(self, challenge_id: str, principal: Optional[Principal] = None) -> CodingChallenge:
        """Get a challenge. Students cannot see inactive ones."""
        challenge = await self.challenge_repo.get_by_id(challenge_id)
        if challenge is None:
            raise NotFoundError(ERROR_CHALLENGE_NOT_FOUND)
        if principal is not None and not principal.is_admin and not challenge.is_active:
            raise NotFoundError(ERROR_CHALLENGE_NOT_FOUND)
        return challenge

    async def get_with_submission(self, principal: Principal, challenge_id: str) -> Dict[str, Any]:
        """A challenge plus, for students, their latest submission to it."""
        challenge = await self.get(challenge_id, principal)
        user_submission = None
        if not principal.is_admin:
            user_submission = await self.submission_repo.get_latest(challenge_id, principal.user_id)
        return {"challenge": challenge, "user_submission": user_submission}

    async def create(self, principal: Principal, fields: Dict[str, Any]) -> CodingChallenge:
        """Create a challenge from validated fields."""
        require_admin(principal)
        unknown = set(fields) - _EDITABLE_FIELDS
        if unknown:
            raise ValidationError(f"Unknown challenge fields: {', '.join(sorted(unknown))}")

        challenge = CodingChallenge(
            id=new_id(),
            created_by=principal.user_id,
            last_modified_by=principal.user_id,
            **fields,
        )
        validate_challenge(challenge)
        await self.challenge_repo.create(challenge)
        logger.info(f"Coding challenge '{challenge.title}' created by {principal.user_id}")
        return challenge

    async def update(
        self, principal: Principal, challenge_id: str, changes: Dict[str, Any]
    ) -> CodingChallenge:
        """Apply a partial update."""
        require_admin(principal)
        challenge = await self.get(challenge_id)
        for key, value in changes.items():
            if key in _EDITABLE_FIELDS:
                setattr(challenge, key, value)
        challenge.last_modified_by = principal.user_id
        validate_challenge(challenge)
        return await self.challenge_repo.update(challenge)

    async def delete(self, principal: Principal, challenge_id: str) -> None:
        """Delete a challenge and its submissions."""
        require_admin(principal)
        await self.get(challenge_id)
        await self.challenge_repo.delete(challenge_id)
        logger.info(f"Coding challenge {challenge_id} deleted by {principal.user_id}")

    async def toggle_status(self, principal: Principal, challenge_id: str) -> CodingChallenge:
        """Flip a challenge's active flag."""
        require_admin(principal)
        challenge = await self.get(challenge_id)
        challenge.is_active = not challenge.is_active
        challenge.last_modified_by = principal.user_id
        return await self.challenge_repo.update(challenge)

    async def get_stats(self, principal: Principal, challenge_id: str) -> Dict[str, Any]:
        """Recomputed statistics and the submission breakdown (admin only)."""
        require_admin(principal)
        challenge = await self.get(challenge_id)
        challenge.stats = await self.challenge_repo.refresh_stats(challenge_id)
        breakdown = await self.submission_repo.get_breakdown(challenge_id)
        return {"challenge": challenge, "submission_stats": breakdown}

    async def refresh_stats_quietly(self, challenge_id: str) -> None:
        """Best-effort statistics refresh after a submission changes."""
        try:
            await self.challenge_repo.refresh_stats(challenge_id)
        except Exception as e:
            logger.error(f"Failed to refresh stats for challenge {challenge_id}: {e}")

    @staticmethod
    def build_examples(examples: List[Dict[str, str]]) -> List[ChallengeExample]:
        """Turn example payloads into models."""
        return [
            ChallengeExample(
                input=e.get("input", ""),
                output=e.get("output", ""),
                explanation=e.get("explanation", ""),
            )
            for e in examples
        ]
