"""Single-step coding submission endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from ...database.models import ReviewComment
from ...server import QuizHubServer
from ...services.base import Principal
from ..dependencies import get_principal, get_server
from ..responses import created, ok
from ..schemas import CodingSubmissionRequest, ReviewRequest
from ..serializers import coding_submission_view, paged

router = APIRouter(prefix="/coding-submissions", tags=["coding-submissions"])


@router.post("")
async def submit_code(
    payload: CodingSubmissionRequest,
    principal: Principal = Depends(get_principal),
    server: QuizHubServer = Depends(get_server),
):
    submission = await server.coding_submission_service.submit(
        principal, payload.challenge_id, payload.code, payload.language, payload.time_spent
    )
    return created(coding_submission_view(submission, principal), "Code submitted successfully")


@router.get("/my-submissions")
async def my_submissions(
    status: Optional[str] = None,
    sort_by: str = Query(default="submittedAt", alias="sortBy"),
    sort_order: str = Query(default="desc", alias="sortOrder"),
    page: int = 1,
    limit: Optional[int] = None,
    principal: Principal = Depends(get_principal),
    server: QuizHubServer = Depends(get_server),
):
    result = await server.coding_submission_service.my_submissions(
        principal, status, sort_by, sort_order, page, limit
    )
    return ok(paged(result, "submissions", lambda s: coding_submission_view(s, principal)))


@router.get("")
async def all_submissions(
    status: Optional[str] = None,
    challenge_id: Optional[str] = Query(default=None, alias="challengeId"),
    student_id: Optional[str] = Query(default=None, alias="studentId"),
    page: int = 1,
    limit: Optional[int] = None,
    principal: Principal = Depends(get_principal),
    server: QuizHubServer = Depends(get_server),
):
    result = await server.coding_submission_service.list_all(
        principal, status, challenge_id, student_id, page, limit
    )
    return ok(paged(result, "submissions", lambda s: coding_submission_view(s, principal)))


@router.get("/{submission_id}")
async def get_submission(
    submission_id: str,
    principal: Principal = Depends(get_principal),
    server: QuizHubServer = Depends(get_server),
):
    submission = await server.coding_submission_service.get(principal, submission_id)
    return ok(coding_submission_view(submission, principal))


@router.put("/{submission_id}/review")
async def review_submission(
    submission_id: str,
    payload: ReviewRequest,
    principal: Principal = Depends(get_principal),
    server: QuizHubServer = Depends(get_server),
):
    submission = await server.coding_submission_service.review(
        principal,
        submission_id,
        payload.score,
        payload.feedback,
        comments=[ReviewComment(**c.model_dump()) for c in payload.comments],
    )
    return ok(coding_submission_view(submission, principal), "Review added successfully")
