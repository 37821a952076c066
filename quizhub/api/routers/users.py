"""User directory endpoints (admin only)."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from ...server import QuizHubServer
from ...services.base import Principal
from ..dependencies import get_principal, get_server
from ..responses import created, ok
from ..schemas import UserCreate, UserUpdate
from ..serializers import paged

router = APIRouter(prefix="/users", tags=["users"])


@router.get("")
async def list_users(
    role: Optional[str] = None,
    is_active: Optional[bool] = Query(default=None, alias="isActive"),
    search: Optional[str] = None,
    page: int = 1,
    limit: Optional[int] = None,
    principal: Principal = Depends(get_principal),
    server: QuizHubServer = Depends(get_server),
):
    result = await server.user_service.list_users(principal, role, is_active, search, page, limit)
    return ok(paged(result, "users"))


@router.post("")
async def create_user(
    payload: UserCreate,
    principal: Principal = Depends(get_principal),
    server: QuizHubServer = Depends(get_server),
):
    user = await server.user_service.create(principal, payload.name, payload.email, payload.role)
    return created(user, "User created successfully")


@router.get("/{user_id}")
async def get_user(
    user_id: str,
    principal: Principal = Depends(get_principal),
    server: QuizHubServer = Depends(get_server),
):
    return ok(await server.user_service.get(principal, user_id))


@router.put("/{user_id}")
async def update_user(
    user_id: str,
    payload: UserUpdate,
    principal: Principal = Depends(get_principal),
    server: QuizHubServer = Depends(get_server),
):
    user = await server.user_service.update(principal, user_id, **payload.changes())
    return ok(user, "User updated successfully")


@router.delete("/{user_id}")
async def delete_user(
    user_id: str,
    principal: Principal = Depends(get_principal),
    server: QuizHubServer = Depends(get_server),
):
    await server.user_service.delete(principal, user_id)
    return ok(message="User deleted successfully")


@router.patch("/{user_id}/toggle-status")
async def toggle_user(
    user_id: str,
    principal: Principal = Depends(get_principal),
    server: QuizHubServer = Depends(get_server),
):
    user = await server.user_service.toggle_status(principal, user_id)
    return ok(user, f"User {'activated' if user.is_active else 'deactivated'} successfully")
