"""Challenge submission endpoints: drafts, submissions and reviews."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from ...database.models import ReviewComment, ReviewCriterion, SelfAssessment
from ...server import QuizHubServer
from ...services.base import Principal
from ..dependencies import get_principal, get_server
from ..responses import created, ok
from ..schemas import ReviewRequest, SubmitCodeRequest
from ..serializers import paged, submission_view

router = APIRouter(prefix="/challenge-submissions", tags=["challenge-submissions"])


def _assessment(payload: SubmitCodeRequest) -> Optional[SelfAssessment]:
    if payload.self_assessment is None:
        return None
    return SelfAssessment(**payload.self_assessment.model_dump())


@router.post("/challenge/{challenge_id}/submit")
async def submit_solution(
    challenge_id: str,
    payload: SubmitCodeRequest,
    principal: Principal = Depends(get_principal),
    server: QuizHubServer = Depends(get_server),
):
    submission = await server.submission_service.submit(
        principal, challenge_id, payload.code, payload.language, _assessment(payload)
    )
    return created(submission_view(submission, principal), "Solution submitted successfully")


@router.post("/challenge/{challenge_id}/draft")
async def save_draft(
    challenge_id: str,
    payload: SubmitCodeRequest,
    principal: Principal = Depends(get_principal),
    server: QuizHubServer = Depends(get_server),
):
    submission = await server.submission_service.save_draft(
        principal, challenge_id, payload.code, payload.language, _assessment(payload)
    )
    return ok(submission_view(submission, principal), "Draft saved successfully")


@router.get("/challenge/{challenge_id}/my-submissions")
async def my_challenge_submissions(
    challenge_id: str,
    principal: Principal = Depends(get_principal),
    server: QuizHubServer = Depends(get_server),
):
    submissions = await server.submission_service.list_own_for_challenge(principal, challenge_id)
    return ok({"submissions": [submission_view(s, principal) for s in submissions]})


@router.get("/my-submissions")
async def my_submissions(
    status: Optional[str] = None,
    challenge_id: Optional[str] = Query(default=None, alias="challengeId"),
    page: int = 1,
    limit: Optional[int] = None,
    principal: Principal = Depends(get_principal),
    server: QuizHubServer = Depends(get_server),
):
    result = await server.submission_service.history(principal, status, challenge_id, page, limit)
    return ok(paged(result, "submissions", lambda s: submission_view(s, principal)))


@router.get("/challenge/{challenge_id}/all")
async def challenge_submissions(
    challenge_id: str,
    status: Optional[str] = None,
    reviewed: Optional[bool] = None,
    page: int = 1,
    limit: Optional[int] = None,
    principal: Principal = Depends(get_principal),
    server: QuizHubServer = Depends(get_server),
):
    result = await server.submission_service.list_for_challenge(
        principal, challenge_id, status, reviewed, page, limit
    )
    return ok(paged(result, "submissions", lambda s: submission_view(s, principal)))


@router.get("/{submission_id}")
async def get_submission(
    submission_id: str,
    principal: Principal = Depends(get_principal),
    server: QuizHubServer = Depends(get_server),
):
    submission = await server.submission_service.get_details(principal, submission_id)
    return ok(submission_view(submission, principal))


@router.post("/{submission_id}/review")
async def review_submission(
    submission_id: str,
    payload: ReviewRequest,
    principal: Principal = Depends(get_principal),
    server: QuizHubServer = Depends(get_server),
):
    submission = await server.submission_service.review(
        principal,
        submission_id,
        payload.score,
        payload.feedback,
        comments=[ReviewComment(**c.model_dump()) for c in payload.comments],
        criteria=[ReviewCriterion(**c.model_dump()) for c in payload.criteria],
    )
    return ok(submission_view(submission, principal), "Review submitted successfully")
