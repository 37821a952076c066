"""Challenge submission workflow: drafts, versioned submissions and reviews."""

import logging
from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from ..constants import (
    CODE_MAX_LENGTH,
    CODE_MIN_LENGTH,
    COMMENT_TYPES,
    ERROR_CHALLENGE_INACTIVE,
    ERROR_SUBMISSION_FORBIDDEN,
    ERROR_SUBMISSION_NOT_FOUND,
    FEEDBACK_MAX_LENGTH,
    SUBMISSION_LANGUAGES,
)
from ..database.models import (
    ChallengeSubmission,
    QuestionStatus,
    ReviewComment,
    ReviewCriterion,
    SelfAssessment,
    SubmissionReview,
    SubmissionStatus,
)
from ..utils.errors import ForbiddenError, NotFoundError
from ..utils.ids import new_id
from .base import BaseService, Clock, FieldErrors, Page, Principal, require_admin

if TYPE_CHECKING:
    from ..config import Config
    from ..database.repositories import ChallengeSubmissionRepository
    from .challenge_service import ChallengeService

logger = logging.getLogger(__name__)


def validate_code(code: str, language: str, errors: FieldErrors) -> None:
    """Shared code/language checks for both submission workflows."""
    errors.check(
        isinstance(code, str) and CODE_MIN_LENGTH <= len(code.strip()) <= CODE_MAX_LENGTH,
        "code",
        f"Code must be between {CODE_MIN_LENGTH} and {CODE_MAX_LENGTH} characters",
    )
    errors.choice("language", language, SUBMISSION_LANGUAGES)


def validate_review(
    score: int,
    feedback: Optional[str],
    comments: List[ReviewComment],
    errors: FieldErrors,
) -> None:
    """Shared review checks for both submission workflows."""
    errors.number("score", score, 0, 100)
    errors.check(
        len(feedback or "") <= FEEDBACK_MAX_LENGTH,
        "feedback",
        f"Feedback cannot exceed {FEEDBACK_MAX_LENGTH} characters",
    )
    for comment in comments:
        errors.choice("comments.type", comment.type, COMMENT_TYPES)


def minutes_between(start: Optional[datetime], end: Optional[datetime]) -> int:
    """Whole minutes between two instants, 0 when either is missing."""
    if start is None or end is None:
        return 0
    return max(0, round((end - start).total_seconds() / 60))


class SubmissionService(BaseService):
    """Service for versioned challenge submissions.

    A student has one current submission per challenge (the one flagged
    latest). Resubmitting mutates it in place and bumps its version.
    """

    def __init__(
        self,
        submission_repo: "ChallengeSubmissionRepository",
        challenge_service: "ChallengeService",
        config: "Config",
        clock: Optional[Clock] = None,
    ):
        super().__init__(config, clock)
        self.submission_repo = submission_repo
        self.challenge_service = challenge_service

    def _validate(self, code: str, language: str, assessment: Optional[SelfAssessment]) -> None:
        errors = FieldErrors()
        validate_code(code, language, errors)
        if assessment is not None:
            if assessment.confidence is not None:
                errors.number("selfAssessment.confidence", assessment.confidence, 1, 5)
            if assessment.difficulty is not None:
                errors.number("selfAssessment.difficulty", assessment.difficulty, 1, 5)
        errors.raise_if_any()

    async def submit(
        self,
        principal: Principal,
        challenge_id: str,
        code: str,
        language: str,
        self_assessment: Optional[SelfAssessment] = None,
    ) -> ChallengeSubmission:
        """Submit code for an active challenge."""
        self._validate(code, language, self_assessment)
        challenge = await self.challenge_service.challenge_repo.get_by_id(challenge_id)
        if challenge is None or not challenge.is_active or challenge.status != QuestionStatus.ACTIVE:
            raise NotFoundError(ERROR_CHALLENGE_INACTIVE)

        now = self.clock()
        submission = await self.submission_repo.get_latest(challenge_id, principal.user_id)

        if submission is None:
            submission = ChallengeSubmission(
                id=new_id(),
                challenge_id=challenge_id,
                student_id=principal.user_id,
                code=code,
                language=language,
                status=SubmissionStatus.SUBMITTED,
                started_at=now,
                submitted_at=now,
                self_assessment=self_assessment or SelfAssessment(),
            )
            await self.submission_repo.create(submission)
        else:
            if submission.status != SubmissionStatus.DRAFT:
                # Resubmission replaces the reviewed code, so the old review goes too
                submission.version += 1
                submission.review = None
            submission.code = code
            submission.language = language
            submission.status = SubmissionStatus.SUBMITTED
            submission.submitted_at = now
            submission.self_assessment = self_assessment or submission.self_assessment
            submission.time_spent = minutes_between(submission.started_at, now)
            await self.submission_repo.save(submission)

        logger.info(
            f"Challenge {challenge_id} submitted by {principal.user_id} (v{submission.version})"
        )
        await self.challenge_service.refresh_stats_quietly(challenge_id)
        return submission

    async def save_draft(
        self,
        principal: Principal,
        challenge_id: str,
        code: str,
        language: str,
        self_assessment: Optional[SelfAssessment] = None,
    ) -> ChallengeSubmission:
        """Save work in progress without submitting it."""
        self._validate(code, language, self_assessment)
        await self.challenge_service.get(challenge_id)

        now = self.clock()
        latest = await self.submission_repo.get_latest(challenge_id, principal.user_id)
        if latest is not None and latest.status == SubmissionStatus.DRAFT:
            latest.code = code
            latest.language = language
            latest.self_assessment = self_assessment or latest.self_assessment
            return await self.submission_repo.save(latest)

        version = 1
        if latest is not None:
            # Keep the submitted version intact and start a new one on top
            latest.is_latest = False
            await self.submission_repo.save(latest)
            version = latest.version + 1

        draft = ChallengeSubmission(
            id=new_id(),
            challenge_id=challenge_id,
            student_id=principal.user_id,
            code=code,
            language=language,
            status=SubmissionStatus.DRAFT,
            started_at=now,
            version=version,
            self_assessment=self_assessment or SelfAssessment(),
        )
        return await self.submission_repo.create(draft)

    async def list_own_for_challenge(
        self, principal: Principal, challenge_id: str
    ) -> List[ChallengeSubmission]:
        """Every version the caller has for one challenge."""
        return await self.submission_repo.find_for_student_challenge(challenge_id, principal.user_id)

    async def history(
        self,
        principal: Principal,
        status: Optional[str] = None,
        challenge_id: Optional[str] = None,
        page: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> Page[ChallengeSubmission]:
        """The caller's submissions across challenges."""
        page, limit, skip = self.page_params(page, limit)
        items, total = await self.submission_repo.find_for_student(
            principal.user_id, status, challenge_id, skip, limit
        )
        return Page(items=items, total=total, page=page, limit=limit)

    async def get_details(self, principal: Principal, submission_id: str) -> ChallengeSubmission:
        """A submission; students may only read their own."""
        submission = await self.submission_repo.get_by_id(submission_id)
        if submission is None:
            raise NotFoundError(ERROR_SUBMISSION_NOT_FOUND)
        if not principal.is_admin and submission.student_id != principal.user_id:
            raise ForbiddenError(ERROR_SUBMISSION_FORBIDDEN)
        return submission

    async def list_for_challenge(
        self,
        principal: Principal,
        challenge_id: str,
        status: Optional[str] = None,
        reviewed: Optional[bool] = None,
        page: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> Page[ChallengeSubmission]:
        """All submissions to a challenge (admin only)."""
        require_admin(principal)
        page, limit, skip = self.page_params(page, limit)
        items, total = await self.submission_repo.find_for_challenge(
            challenge_id, status, reviewed, skip, limit
        )
        return Page(items=items, total=total, page=page, limit=limit)

    async def review(
        self,
        principal: Principal,
        submission_id: str,
        score: int,
        feedback: str = "",
        comments: Optional[List[ReviewComment]] = None,
        criteria: Optional[List[ReviewCriterion]] = None,
    ) -> ChallengeSubmission:
        """Write the review of a submission (admin only)."""
        require_admin(principal)
        comments = comments or []
        errors = FieldErrors()
        validate_review(score, feedback, comments, errors)
        errors.raise_if_any()

        submission = await self.submission_repo.get_by_id(submission_id)
        if submission is None:
            raise NotFoundError(ERROR_SUBMISSION_NOT_FOUND)

        submission.review = SubmissionReview(
            reviewed_by=principal.user_id,
            reviewed_at=self.clock(),
            score=score,
            feedback=feedback or "",
            comments=comments,
            criteria=criteria or [],
        )
        submission.status = SubmissionStatus.REVIEWED
        await self.submission_repo.save(submission)
        logger.info(f"Submission {submission_id} reviewed by {principal.user_id}: {score}")

        await self.challenge_service.refresh_stats_quietly(submission.challenge_id)
        return submission
