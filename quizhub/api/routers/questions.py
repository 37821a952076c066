"""Question bank endpoints."""

from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ...database.mappers import content_from_dict
from ...database.models import QuestionKind
from ...server import QuizHubServer
from ...services.base import Principal
from ...utils.errors import ValidationError
from ..dependencies import get_principal, get_server
from ..responses import created, ok
from ..schemas import QuestionContentPayload, QuestionCreate, QuestionUpdate
from ..serializers import paged, question_view

router = APIRouter(prefix="/questions", tags=["questions"])

_CONTENT_FIELDS = set(QuestionContentPayload.model_fields)


def _check_kind(kind: str) -> None:
    if kind not in QuestionKind.ALL:
        raise ValidationError.for_field("type", f"type must be one of: {', '.join(QuestionKind.ALL)}")


@router.get("/category/{category_id}")
async def questions_for_category(
    category_id: str,
    type: Optional[str] = None,
    difficulty: Optional[str] = None,
    language: Optional[str] = None,
    page: int = 1,
    limit: Optional[int] = None,
    principal: Principal = Depends(get_principal),
    server: QuizHubServer = Depends(get_server),
):
    result = await server.question_service.list_for_category(
        category_id, type, difficulty, language, page, limit
    )
    return ok(paged(result, "questions", lambda q: question_view(q, principal)))


@router.get("")
async def search_questions(
    category_id: Optional[str] = Query(default=None, alias="categoryId"),
    difficulty: Optional[str] = None,
    type: Optional[str] = None,
    status: Optional[str] = None,
    search: Optional[str] = None,
    page: int = 1,
    limit: Optional[int] = None,
    principal: Principal = Depends(get_principal),
    server: QuizHubServer = Depends(get_server),
):
    result = await server.question_service.search(
        principal, category_id, difficulty, type, status, search, page, limit
    )
    return ok(paged(result, "questions", lambda q: question_view(q, principal)))


@router.get("/stats")
async def question_stats(
    principal: Principal = Depends(get_principal),
    server: QuizHubServer = Depends(get_server),
):
    return ok(await server.question_service.get_stats(principal))


@router.get("/{question_id}")
async def get_question(
    question_id: str,
    principal: Principal = Depends(get_principal),
    server: QuizHubServer = Depends(get_server),
):
    question = await server.question_service.get(question_id, principal)
    return ok(question_view(question, principal))


@router.post("")
async def create_question(
    payload: QuestionCreate,
    principal: Principal = Depends(get_principal),
    server: QuizHubServer = Depends(get_server),
):
    _check_kind(payload.type)
    question = await server.question_service.create(
        principal,
        text=payload.text,
        category_id=payload.category_id,
        content=content_from_dict(payload.type, payload.model_dump(include=_CONTENT_FIELDS)),
        correct_answer=payload.correct_answer,
        difficulty=payload.difficulty,
        points=payload.points,
        explanation=payload.explanation,
        tags=payload.tags,
        status=payload.status,
    )
    return created(question_view(question, principal), "Question created successfully")


@router.put("/{question_id}")
async def update_question(
    question_id: str,
    payload: QuestionUpdate,
    principal: Principal = Depends(get_principal),
    server: QuizHubServer = Depends(get_server),
):
    changes = payload.changes()
    content_changes = {k: changes.pop(k) for k in list(changes) if k in _CONTENT_FIELDS}
    if content_changes:
        # Kind-specific fields are merged over the stored content
        current = await server.question_service.get(question_id)
        stored = {k: v for k, v in asdict(current.content).items() if k in _CONTENT_FIELDS}
        changes["content"] = content_from_dict(current.kind, {**stored, **content_changes})
    question = await server.question_service.update(principal, question_id, changes)
    return ok(question_view(question, principal), "Question updated successfully")


@router.delete("/{question_id}")
async def delete_question(
    question_id: str,
    principal: Principal = Depends(get_principal),
    server: QuizHubServer = Depends(get_server),
):
    hard_deleted = await server.question_service.delete(principal, question_id)
    message = (
        "Question deleted successfully"
        if hard_deleted
        else "Question is used in quiz history and was deactivated instead"
    )
    return ok({"deleted": hard_deleted}, message)


@router.patch("/{question_id}/toggle-status")
async def toggle_question(
    question_id: str,
    principal: Principal = Depends(get_principal),
    server: QuizHubServer = Depends(get_server),
):
    question = await server.question_service.toggle_status(principal, question_id)
    return ok(question_view(question, principal), f"Question is now {question.status}")
