"""Coding challenge endpoints."""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query

from ...server import QuizHubServer
from ...services.base import Principal
from ...services.challenge_service import ChallengeService
from ..dependencies import get_principal, get_server
from ..responses import created, ok
from ..schemas import ChallengeCreate, ChallengeUpdate
from ..serializers import ValueMap, challenge_view, paged, submission_view

router = APIRouter(prefix="/coding-challenges", tags=["coding-challenges"])


def _fields(values: Dict[str, Any]) -> Dict[str, Any]:
    if values.get("examples") is not None:
        values["examples"] = ChallengeService.build_examples(values["examples"])
    return values


@router.get("")
async def list_challenges(
    difficulty: Optional[str] = None,
    language: Optional[str] = None,
    category_id: Optional[str] = Query(default=None, alias="categoryId"),
    status: Optional[str] = "active",
    search: Optional[str] = None,
    page: int = 1,
    limit: Optional[int] = None,
    principal: Principal = Depends(get_principal),
    server: QuizHubServer = Depends(get_server),
):
    result = await server.challenge_service.list_challenges(
        principal, difficulty, language, category_id, status, search, page, limit
    )
    return ok(paged(result, "challenges", lambda c: challenge_view(c, principal)))


@router.get("/{challenge_id}")
async def get_challenge(
    challenge_id: str,
    principal: Principal = Depends(get_principal),
    server: QuizHubServer = Depends(get_server),
):
    result = await server.challenge_service.get_with_submission(principal, challenge_id)
    submission = result["user_submission"]
    return ok(
        {
            "challenge": challenge_view(result["challenge"], principal),
            "user_submission": submission_view(submission, principal) if submission else None,
        }
    )


@router.post("")
async def create_challenge(
    payload: ChallengeCreate,
    principal: Principal = Depends(get_principal),
    server: QuizHubServer = Depends(get_server),
):
    challenge = await server.challenge_service.create(principal, _fields(payload.model_dump()))
    return created(challenge_view(challenge, principal), "Coding challenge created successfully")


@router.put("/{challenge_id}")
async def update_challenge(
    challenge_id: str,
    payload: ChallengeUpdate,
    principal: Principal = Depends(get_principal),
    server: QuizHubServer = Depends(get_server),
):
    challenge = await server.challenge_service.update(
        principal, challenge_id, _fields(payload.changes())
    )
    return ok(challenge_view(challenge, principal), "Coding challenge updated successfully")


@router.delete("/{challenge_id}")
async def delete_challenge(
    challenge_id: str,
    principal: Principal = Depends(get_principal),
    server: QuizHubServer = Depends(get_server),
):
    await server.challenge_service.delete(principal, challenge_id)
    return ok(message="Coding challenge deleted successfully")


@router.patch("/{challenge_id}/toggle-status")
async def toggle_challenge(
    challenge_id: str,
    principal: Principal = Depends(get_principal),
    server: QuizHubServer = Depends(get_server),
):
    challenge = await server.challenge_service.toggle_status(principal, challenge_id)
    state = "activated" if challenge.is_active else "deactivated"
    return ok(challenge_view(challenge, principal), f"Coding challenge {state} successfully")


@router.get("/{challenge_id}/stats")
async def challenge_stats(
    challenge_id: str,
    principal: Principal = Depends(get_principal),
    server: QuizHubServer = Depends(get_server),
):
    result = await server.challenge_service.get_stats(principal, challenge_id)
    breakdown = result["submission_stats"]
    return ok(
        {
            "challenge": challenge_view(result["challenge"], principal),
            "submission_stats": {
                "total": breakdown["total"],
                "by_status": ValueMap(breakdown["by_status"]),
                "by_score": breakdown["by_score"],
            },
        }
    )
