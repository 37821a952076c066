"""Quiz session endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from ...database.models import SessionSettings
from ...server import QuizHubServer
from ...services.base import Principal
from ..dependencies import get_principal, get_server
from ..responses import created, ok
from ..schemas import AnswerRequest, StartSessionRequest
from ..serializers import answer_view, paged, results_view, session_view

router = APIRouter(prefix="/quiz-sessions", tags=["quiz-sessions"])


@router.post("/start")
async def start_session(
    payload: StartSessionRequest,
    principal: Principal = Depends(get_principal),
    server: QuizHubServer = Depends(get_server),
):
    settings = SessionSettings(**payload.settings.model_dump()) if payload.settings else None
    session = await server.quiz_service.start_session(
        principal,
        payload.category_id,
        difficulty=payload.difficulty,
        time_limit=payload.time_limit,
        question_count=payload.question_count,
        question_type=payload.question_type,
        settings=settings,
    )
    return created(session_view(session), "Quiz session started successfully")


@router.get("/history")
async def session_history(
    page: int = 1,
    limit: Optional[int] = None,
    category_id: Optional[str] = Query(default=None, alias="categoryId"),
    status: Optional[str] = None,
    principal: Principal = Depends(get_principal),
    server: QuizHubServer = Depends(get_server),
):
    result = await server.quiz_service.get_history(principal, page, limit, category_id, status)
    return ok(paged(result, "sessions", lambda s: session_view(s, reveal=True)))


@router.get("/active/{category_id}")
async def active_session(
    category_id: str,
    principal: Principal = Depends(get_principal),
    server: QuizHubServer = Depends(get_server),
):
    session = await server.quiz_service.get_active_session(principal, category_id)
    return ok(session_view(session))


@router.post("/{session_id}/answer")
async def submit_answer(
    session_id: str,
    payload: AnswerRequest,
    principal: Principal = Depends(get_principal),
    server: QuizHubServer = Depends(get_server),
):
    result = await server.quiz_service.submit_answer(
        principal,
        session_id,
        payload.question_id,
        payload.selected_answer,
        payload.time_spent,
    )
    return ok(
        answer_view(result.question, result.answer, result.session),
        "Answer submitted successfully",
    )


@router.post("/{session_id}/submit")
async def complete_session(
    session_id: str,
    principal: Principal = Depends(get_principal),
    server: QuizHubServer = Depends(get_server),
):
    session = await server.quiz_service.complete_session(principal, session_id)
    return ok(results_view(session), "Quiz completed successfully")


@router.post("/{session_id}/abandon")
async def abandon_session(
    session_id: str,
    principal: Principal = Depends(get_principal),
    server: QuizHubServer = Depends(get_server),
):
    session = await server.quiz_service.abandon_session(principal, session_id)
    return ok(
        {"session_id": session.session_id, "score": session.score, "duration": session.duration},
        "Quiz session abandoned",
    )


@router.get("/{session_id}/results")
async def session_results(
    session_id: str,
    principal: Principal = Depends(get_principal),
    server: QuizHubServer = Depends(get_server),
):
    session = await server.quiz_service.get_results(principal, session_id)
    return ok(results_view(session))
