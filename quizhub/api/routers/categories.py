"""Category endpoints. Reads are public; writes are admin-only."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from ...server import QuizHubServer
from ...services.base import Principal
from ..dependencies import get_principal, get_server
from ..responses import created, ok
from ..schemas import CategoryCreate, CategoryUpdate

router = APIRouter(prefix="/categories", tags=["categories"])


@router.get("")
async def list_categories(
    difficulty: Optional[str] = None,
    sort_by: str = Query(default="name", alias="sortBy"),
    server: QuizHubServer = Depends(get_server),
):
    categories = await server.category_service.list_active(difficulty, sort_by)
    return ok({"categories": categories, "count": len(categories)})


@router.get("/all")
async def list_all_categories(
    principal: Principal = Depends(get_principal),
    server: QuizHubServer = Depends(get_server),
):
    categories = await server.category_service.list_all(principal)
    return ok({"categories": categories, "count": len(categories)})


@router.get("/lookup")
async def lookup_category(name: str, server: QuizHubServer = Depends(get_server)):
    return ok(await server.category_service.lookup(name))


@router.get("/{category_id}")
async def get_category(category_id: str, server: QuizHubServer = Depends(get_server)):
    return ok(await server.category_service.get(category_id))


@router.post("")
async def create_category(
    payload: CategoryCreate,
    principal: Principal = Depends(get_principal),
    server: QuizHubServer = Depends(get_server),
):
    category = await server.category_service.create(
        principal,
        name=payload.name,
        description=payload.description,
        icon=payload.icon,
        color=payload.color,
        difficulty=payload.difficulty,
        estimated_time=payload.estimated_time,
        is_active=payload.is_active,
    )
    return created(category, "Category created successfully")


@router.put("/{category_id}")
async def update_category(
    category_id: str,
    payload: CategoryUpdate,
    principal: Principal = Depends(get_principal),
    server: QuizHubServer = Depends(get_server),
):
    category = await server.category_service.update(principal, category_id, **payload.changes())
    return ok(category, "Category updated successfully")


@router.delete("/{category_id}")
async def delete_category(
    category_id: str,
    principal: Principal = Depends(get_principal),
    server: QuizHubServer = Depends(get_server),
):
    await server.category_service.delete(principal, category_id)
    return ok(message="Category deleted successfully")


@router.patch("/{category_id}/toggle-status")
async def toggle_category(
    category_id: str,
    principal: Principal = Depends(get_principal),
    server: QuizHubServer = Depends(get_server),
):
    category = await server.category_service.toggle_status(principal, category_id)
    state = "activated" if category.is_active else "deactivated"
    return ok(category, f"Category {state} successfully")
