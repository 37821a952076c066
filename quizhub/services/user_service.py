"""Admin-managed user directory."""

import logging
import re
from typing import TYPE_CHECKING, Optional

from ..constants import ERROR_USER_EXISTS, ERROR_USER_NOT_FOUND, ROLES
from ..database.models import User
from ..utils.errors import NotFoundError, StateConflictError
from .base import BaseService, Clock, FieldErrors, Page, Principal, require_admin

if TYPE_CHECKING:
    from ..config import Config
    from ..database.repositories import UserRepository

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _validate(name: str, email: str, role: str) -> None:
    errors = FieldErrors()
    errors.text("name", name, 100, label="Name")
    errors.check(bool(EMAIL_PATTERN.match(email or "")), "email", "Valid email is required")
    errors.choice("role", role, ROLES)
    errors.raise_if_any()


class UserService(BaseService):
    """Service for the user directory. Every operation is admin-only."""

    def __init__(self, user_repo: "UserRepository", config: "Config", clock: Optional[Clock] = None):
        super().__init__(config, clock)
        self.user_repo = user_repo

    async def list_users(
        self,
        principal: Principal,
        role: Optional[str] = None,
        is_active: Optional[bool] = None,
        search: Optional[str] = None,
        page: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> Page[User]:
        require_admin(principal)
        page, limit, skip = self.page_params(page, limit)
        users, total = await self.user_repo.list_users(role, is_active, search, skip, limit)
        return Page(items=users, total=total, page=page, limit=limit)

    async def get(self, principal: Principal, user_id: str) -> User:
        require_admin(principal)
        user = await self.user_repo.get_by_id(user_id)
        if user is None:
            raise NotFoundError(ERROR_USER_NOT_FOUND)
        return user

    async def create(self, principal: Principal, name: str, email: str, role: str = "student") -> User:
        require_admin(principal)
        _validate(name, email, role)
        if await self.user_repo.get_by_email(email):
            raise StateConflictError(ERROR_USER_EXISTS)
        user = await self.user_repo.create(name.strip(), email.strip().lower(), role)
        logger.info(f"User {user.id} ({role}) created by {principal.user_id}")
        return user

    async def update(
        self,
        principal: Principal,
        user_id: str,
        name: Optional[str] = None,
        email: Optional[str] = None,
        role: Optional[str] = None,
    ) -> User:
        user = await self.get(principal, user_id)
        if email is not None and email.strip().lower() != user.email:
            existing = await self.user_repo.get_by_email(email)
            if existing and existing.id != user.id:
                raise StateConflictError(ERROR_USER_EXISTS)
            user.email = email.strip().lower()
        if name is not None:
            user.name = name.strip()
        if role is not None:
            user.role = role
        _validate(user.name, user.email, user.role)
        return await self.user_repo.update(user)

    async def delete(self, principal: Principal, user_id: str) -> None:
        await self.get(principal, user_id)
        await self.user_repo.delete(user_id)
        logger.info(f"User {user_id} deleted by {principal.user_id}")

    async def toggle_status(self, principal: Principal, user_id: str) -> User:
        user = await self.get(principal, user_id)
        user.is_active = not user.is_active
        return await self.user_repo.update(user)
