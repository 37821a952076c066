"""Attempt history, statistics and export endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from ...server import QuizHubServer
from ...services.base import Principal
from ...utils.errors import ValidationError
from ...utils.timeutil import parse_datetime
from ..dependencies import get_principal, get_server
from ..responses import created, ok
from ..schemas import CreateHistoryRequest
from ..serializers import attempt_view, paged

router = APIRouter(prefix="/attempt-history", tags=["attempt-history"])


def _date(name: str, value: Optional[str]):
    if value is None:
        return None
    parsed = parse_datetime(value)
    if parsed is None:
        raise ValidationError.for_field(name, f"{name} must be an ISO 8601 date")
    return parsed


@router.post("/create")
async def create_history(
    payload: CreateHistoryRequest,
    principal: Principal = Depends(get_principal),
    server: QuizHubServer = Depends(get_server),
):
    history = await server.history_service.create_from_session(principal, payload.session_id)
    return created(attempt_view(history), "Attempt history created successfully")


@router.get("")
async def list_attempts(
    page: int = 1,
    limit: Optional[int] = None,
    category_id: Optional[str] = Query(default=None, alias="categoryId"),
    status: Optional[str] = None,
    sort_by: str = Query(default="completedAt", alias="sortBy"),
    sort_order: str = Query(default="desc", alias="sortOrder"),
    start_date: Optional[str] = Query(default=None, alias="startDate"),
    end_date: Optional[str] = Query(default=None, alias="endDate"),
    principal: Principal = Depends(get_principal),
    server: QuizHubServer = Depends(get_server),
):
    result = await server.history_service.list_attempts(
        principal,
        page=page,
        limit=limit,
        category_id=category_id,
        status=status,
        sort_by=sort_by,
        sort_order=sort_order,
        start_date=_date("startDate", start_date),
        end_date=_date("endDate", end_date),
    )
    return ok(paged(result, "attempts", attempt_view))


@router.get("/stats")
async def user_stats(
    category_id: Optional[str] = Query(default=None, alias="categoryId"),
    principal: Principal = Depends(get_principal),
    server: QuizHubServer = Depends(get_server),
):
    stats = await server.history_service.get_user_stats(principal, category_id)
    stats["recent_attempts"] = [attempt_view(a) for a in stats["recent_attempts"]]
    return ok(stats)


@router.get("/analytics")
async def performance_analytics(
    category_id: Optional[str] = Query(default=None, alias="categoryId"),
    period: int = 30,
    principal: Principal = Depends(get_principal),
    server: QuizHubServer = Depends(get_server),
):
    analytics = await server.history_service.get_performance_analytics(
        principal, category_id, period
    )
    return ok(analytics)


@router.get("/export")
async def export_attempts(
    format: str = "json",
    category_id: Optional[str] = Query(default=None, alias="categoryId"),
    start_date: Optional[str] = Query(default=None, alias="startDate"),
    end_date: Optional[str] = Query(default=None, alias="endDate"),
    principal: Principal = Depends(get_principal),
    server: QuizHubServer = Depends(get_server),
):
    result = await server.history_service.export(
        principal,
        format,
        category_id=category_id,
        start_date=_date("startDate", start_date),
        end_date=_date("endDate", end_date),
    )
    if result.format == "csv":
        return Response(
            content=result.content,
            media_type="text/csv",
            headers={"Content-Disposition": f'attachment; filename="{result.filename}"'},
        )

    content = dict(result.content)
    content["attempts"] = [attempt_view(a) for a in content["attempts"]]
    return ok(content)


@router.get("/category-stats/{category_id}")
async def category_stats(
    category_id: str,
    principal: Principal = Depends(get_principal),
    server: QuizHubServer = Depends(get_server),
):
    return ok(await server.history_service.get_category_stats(principal, category_id))


@router.get("/{attempt_id}")
async def get_attempt(
    attempt_id: str,
    principal: Principal = Depends(get_principal),
    server: QuizHubServer = Depends(get_server),
):
    attempt = await server.history_service.get_attempt(principal, attempt_id)
    return ok(attempt_view(attempt))
