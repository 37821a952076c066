"""Category management service."""

import logging
import re
from typing import TYPE_CHECKING, List, Optional

import aiosqlite

from ..constants import (
    CATEGORY_DESCRIPTION_MAX_LENGTH,
    CATEGORY_DIFFICULTIES,
    CATEGORY_NAME_MAX_LENGTH,
    DEFAULT_CATEGORY_COLOR,
    DEFAULT_CATEGORY_ICON,
    DEFAULT_ESTIMATED_TIME,
    ERROR_CATEGORY_EXISTS,
    ERROR_CATEGORY_NOT_FOUND,
    MAX_ESTIMATED_TIME,
    MIN_ESTIMATED_TIME,
)
from ..database.models import Category
from ..utils.errors import DuplicateCategoryError, NotFoundError
from ..utils.ids import new_id
from .base import FieldErrors, Principal, require_admin

if TYPE_CHECKING:
    from ..config import Config
    from ..database.repositories import CategoryRepository

logger = logging.getLogger(__name__)

HEX_COLOR = re.compile(r"^#[0-9A-Fa-f]{6}$")


class CategoryService:
    """Service for category CRUD and lookups."""

    def __init__(self, category_repo: "CategoryRepository", config: "Config"):
        self.category_repo = category_repo
        self.config = config

    async def list_active(
        self, difficulty: Optional[str] = None, sort_by: str = "name"
    ) -> List[Category]:
        """Active categories visible to everyone."""
        return await self.category_repo.list_categories(
            active_only=True, difficulty=difficulty, sort_by=sort_by
        )

    async def list_all(self, principal: Principal) -> List[Category]:
        """Every category, including inactive ones (admin only)."""
        require_admin(principal)
        return await self.category_repo.list_categories(active_only=False, sort_by="createdAt")

    async def get(self, category_id: str) -> Category:
        """Get a category or raise NotFoundError."""
        category = await self.category_repo.get_by_id(category_id)
        if category is None:
            raise NotFoundError(ERROR_CATEGORY_NOT_FOUND)
        return category

    async def lookup(self, name: str) -> Category:
        """Find a category by name, ignoring case."""
        category = await self.category_repo.find_by_name(name.strip())
        if category is None:
            raise NotFoundError(ERROR_CATEGORY_NOT_FOUND)
        return category

    def _validate(self, category: Category) -> None:
        errors = FieldErrors()
        errors.text("name", category.name, CATEGORY_NAME_MAX_LENGTH, label="Category name")
        errors.text(
            "description", category.description, CATEGORY_DESCRIPTION_MAX_LENGTH, label="Description"
        )
        errors.check(
            bool(HEX_COLOR.match(category.color or "")),
            "color",
            "Color must be a valid hex color",
        )
        errors.choice("difficulty", category.difficulty, CATEGORY_DIFFICULTIES)
        errors.number("estimatedTime", category.estimated_time, MIN_ESTIMATED_TIME, MAX_ESTIMATED_TIME)
        errors.raise_if_any()

    async def create(
        self,
        principal: Principal,
        name: str,
        description: str,
        icon: Optional[str] = None,
        color: Optional[str] = None,
        difficulty: str = "beginner",
        estimated_time: int = DEFAULT_ESTIMATED_TIME,
        is_active: bool = True,
    ) -> Category:
        """Create a category with a unique name."""
        require_admin(principal)
        category = Category(
            id=new_id(),
            name=(name or "").strip(),
            description=(description or "").strip(),
            icon=icon or DEFAULT_CATEGORY_ICON,
            color=color or DEFAULT_CATEGORY_COLOR,
            is_active=is_active,
            difficulty=difficulty,
            estimated_time=estimated_time,
            created_by=principal.user_id,
        )
        self._validate(category)

        if await self.category_repo.get_by_name(category.name):
            raise DuplicateCategoryError(ERROR_CATEGORY_EXISTS)

        try:
            await self.category_repo.create(category)
        except aiosqlite.IntegrityError as e:
            raise DuplicateCategoryError(ERROR_CATEGORY_EXISTS) from e
        logger.info(f"Category '{category.name}' created by {principal.user_id}")
        return category

    async def update(
        self,
        principal: Principal,
        category_id: str,
        name: Optional[str] = None,
        description: Optional[str] = None,
        icon: Optional[str] = None,
        color: Optional[str] = None,
        difficulty: Optional[str] = None,
        estimated_time: Optional[int] = None,
        is_active: Optional[bool] = None,
    ) -> Category:
        """Update the provided fields of a category."""
        require_admin(principal)
        category = await self.get(category_id)

        if name is not None and name.strip() != category.name:
            existing = await self.category_repo.get_by_name(name.strip())
            if existing and existing.id != category.id:
                raise DuplicateCategoryError(ERROR_CATEGORY_EXISTS)
            category.name = name.strip()
        if description is not None:
            category.description = description.strip()
        if icon is not None:
            category.icon = icon
        if color is not None:
            category.color = color
        if difficulty is not None:
            category.difficulty = difficulty
        if estimated_time is not None:
            category.estimated_time = estimated_time
        if is_active is not None:
            category.is_active = is_active

        self._validate(category)
        return await self.category_repo.update(category)

    async def delete(self, principal: Principal, category_id: str) -> None:
        """Delete a category."""
        require_admin(principal)
        await self.get(category_id)
        await self.category_repo.delete(category_id)
        logger.info(f"Category {category_id} deleted by {principal.user_id}")

    async def toggle_status(self, principal: Principal, category_id: str) -> Category:
        """Flip a category's active flag."""
        require_admin(principal)
        category = await self.get(category_id)
        category.is_active = not category.is_active
        return await self.category_repo.update(category)
