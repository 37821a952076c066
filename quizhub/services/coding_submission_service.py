"""Score-graded coding submissions."""

import logging
from typing import TYPE_CHECKING, List, Optional

from ..constants import (
    APPROVED_SCORE_THRESHOLD,
    CODE_MAX_LENGTH,
    ERROR_CHALLENGE_INACTIVE,
    ERROR_SUBMISSION_FORBIDDEN,
    ERROR_SUBMISSION_NOT_FOUND,
    NEEDS_REVISION_SCORE_THRESHOLD,
    PROGRAM_LANGUAGES,
)
from ..database.models import (
    CodingSubmission,
    CodingSubmissionStatus,
    QuestionStatus,
    ReviewComment,
    SubmissionReview,
)
from ..utils.errors import ForbiddenError, NotFoundError
from ..utils.ids import new_id
from .base import BaseService, Clock, FieldErrors, Page, Principal, require_admin
from .submission_service import validate_review

if TYPE_CHECKING:
    from ..config import Config
    from ..database.repositories import CodingSubmissionRepository
    from .challenge_service import ChallengeService

logger = logging.getLogger(__name__)


def status_for_score(score: int) -> str:
    """Review outcome implied by a score."""
    if score >= APPROVED_SCORE_THRESHOLD:
        return CodingSubmissionStatus.APPROVED
    if score >= NEEDS_REVISION_SCORE_THRESHOLD:
        return CodingSubmissionStatus.NEEDS_REVISION
    return CodingSubmissionStatus.REJECTED


class CodingSubmissionService(BaseService):
    """Service for single-step coding submissions.

    Each student holds one submission per challenge; submitting again
    replaces the code, clears the review and increments the attempt number.
    """

    def __init__(
        self,
        submission_repo: "CodingSubmissionRepository",
        challenge_service: "ChallengeService",
        config: "Config",
        clock: Optional[Clock] = None,
    ):
        super().__init__(config, clock)
        self.submission_repo = submission_repo
        self.challenge_service = challenge_service

    async def submit(
        self,
        principal: Principal,
        challenge_id: str,
        code: str,
        language: str,
        time_spent: int = 0,
    ) -> CodingSubmission:
        """Submit or resubmit code for an active challenge."""
        errors = FieldErrors()
        errors.check(
            isinstance(code, str) and 1 <= len(code.strip()) <= CODE_MAX_LENGTH,
            "code",
            f"Code must be between 1 and {CODE_MAX_LENGTH} characters",
        )
        errors.choice("language", language, PROGRAM_LANGUAGES)
        errors.check(
            isinstance(time_spent, int) and time_spent >= 0,
            "timeSpent",
            "Time spent must be a non-negative integer",
        )
        errors.raise_if_any()

        challenge = await self.challenge_service.challenge_repo.get_by_id(challenge_id)
        if challenge is None or challenge.status != QuestionStatus.ACTIVE:
            raise NotFoundError(ERROR_CHALLENGE_INACTIVE)

        now = self.clock()
        submission = await self.submission_repo.get_for_student(challenge_id, principal.user_id)
        if submission is None:
            submission = CodingSubmission(
                id=new_id(),
                challenge_id=challenge_id,
                student_id=principal.user_id,
                code=code,
                language=language,
                time_spent=time_spent,
                submitted_at=now,
            )
        else:
            submission.code = code
            submission.language = language
            submission.time_spent = time_spent
            submission.status = CodingSubmissionStatus.SUBMITTED
            submission.attempt_number += 1
            submission.submitted_at = now
            submission.review = None

        await self.submission_repo.upsert(submission)
        logger.info(
            f"Coding submission for {challenge_id} by {principal.user_id} "
            f"(attempt {submission.attempt_number})"
        )
        await self.challenge_service.refresh_stats_quietly(challenge_id)
        return submission

    async def my_submissions(
        self,
        principal: Principal,
        status: Optional[str] = None,
        sort_by: str = "submittedAt",
        sort_order: str = "desc",
        page: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> Page[CodingSubmission]:
        """The caller's submissions."""
        if status is not None and status not in CodingSubmissionStatus.ALL:
            status = None
        page, limit, skip = self.page_params(page, limit)
        items, total = await self.submission_repo.find(
            student_id=principal.user_id,
            status=status,
            sort_by=sort_by,
            descending=sort_order != "asc",
            skip=skip,
            limit=limit,
        )
        return Page(items=items, total=total, page=page, limit=limit)

    async def get(self, principal: Principal, submission_id: str) -> CodingSubmission:
        """A submission, readable by its owner or an admin."""
        submission = await self.submission_repo.get_by_id(submission_id)
        if submission is None:
            raise NotFoundError(ERROR_SUBMISSION_NOT_FOUND)
        if not principal.is_admin and submission.student_id != principal.user_id:
            raise ForbiddenError(ERROR_SUBMISSION_FORBIDDEN)
        return submission

    async def list_all(
        self,
        principal: Principal,
        status: Optional[str] = None,
        challenge_id: Optional[str] = None,
        student_id: Optional[str] = None,
        page: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> Page[CodingSubmission]:
        """Every submission matching the filters (admin only)."""
        require_admin(principal)
        page, limit, skip = self.page_params(page, limit)
        items, total = await self.submission_repo.find(
            student_id=student_id,
            challenge_id=challenge_id,
            status=status,
            skip=skip,
            limit=limit,
        )
        return Page(items=items, total=total, page=page, limit=limit)

    async def review(
        self,
        principal: Principal,
        submission_id: str,
        score: int,
        feedback: str,
        comments: Optional[List[ReviewComment]] = None,
    ) -> CodingSubmission:
        """Grade a submission; its status follows from the score."""
        require_admin(principal)
        comments = comments or []
        errors = FieldErrors()
        validate_review(score, feedback, comments, errors)
        errors.check(bool(feedback and feedback.strip()), "feedback", "Feedback is required")
        errors.raise_if_any()

        submission = await self.submission_repo.get_by_id(submission_id)
        if submission is None:
            raise NotFoundError(ERROR_SUBMISSION_NOT_FOUND)

        submission.review = SubmissionReview(
            reviewed_by=principal.user_id,
            reviewed_at=self.clock(),
            score=score,
            feedback=feedback,
            comments=comments,
        )
        submission.status = status_for_score(score)
        await self.submission_repo.upsert(submission)
        logger.info(f"Coding submission {submission_id} reviewed: {score} -> {submission.status}")

        await self.challenge_service.refresh_stats_quietly(submission.challenge_id)
        return submission
