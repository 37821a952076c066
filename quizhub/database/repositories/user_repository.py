"""User directory repository for database operations."""

from typing import List, Optional, Tuple

from ...utils.ids import new_id
from ...utils.timeutil import to_iso, utc_now
from ..mappers import row_to_user
from ..models import User
from .base import BaseRepository, build_where


class UserRepository(BaseRepository):
    """Repository for the user directory."""

    async def create(self, name: str, email: str, role: str = "student") -> User:
        """Create a new user."""
        now = utc_now()
        user = User(
            id=new_id(),
            name=name,
            email=email,
            role=role,
            is_active=True,
            created_at=now,
            updated_at=now,
        )
        conn = self.connection
        await conn.execute(
            """INSERT INTO users (id, name, email, role, is_active, created_at, updated_at)
               VALUES (?, ?, ?, ?, ?, ?, ?)""",
            (user.id, name, email, role, True, to_iso(now), to_iso(now)),
        )
        await conn.commit()
        return user

    async def get_by_id(self, user_id: str) -> Optional[User]:
        """Get user by ID."""
        conn = self.connection
        cursor = await conn.execute("SELECT * FROM users WHERE id = ?", (user_id,))
        row = await cursor.fetchone()
        if row:
            return row_to_user(row)
        return None

    async def get_by_email(self, email: str) -> Optional[User]:
        """Get user by email (case-insensitive)."""
        conn = self.connection
        cursor = await conn.execute(
            "SELECT * FROM users WHERE LOWER(email) = LOWER(?)", (email,)
        )
        row = await cursor.fetchone()
        if row:
            return row_to_user(row)
        return None

    async def list_users(
        self,
        role: Optional[str] = None,
        is_active: Optional[bool] = None,
        search: Optional[str] = None,
        skip: int = 0,
        limit: int = 10,
    ) -> Tuple[List[User], int]:
        """List users matching the filters, newest first.

        Returns:
            Tuple of (page of users, total matching count)
        """
        conditions: List[str] = []
        params: list = []
        if role:
            conditions.append("role = ?")
            params.append(role)
        if is_active is not None:
            conditions.append("is_active = ?")
            params.append(is_active)
        if search:
            conditions.append("(name LIKE ? OR email LIKE ?)")
            params.extend([f"%{search}%", f"%{search}%"])
        where, params = build_where(conditions, params)

        conn = self.connection
        cursor = await conn.execute(
            f"""SELECT * FROM users WHERE {where}
                ORDER BY created_at DESC LIMIT ? OFFSET ?""",
            (*params, limit, skip),
        )
        rows = await cursor.fetchall()
        total = await self._count("users", where, params)
        return [row_to_user(row) for row in rows], total

    async def update(self, user: User) -> User:
        """Persist all mutable fields of a user."""
        user.updated_at = utc_now()
        conn = self.connection
        await conn.execute(
            """UPDATE users SET name = ?, email = ?, role = ?, is_active = ?, updated_at = ?
               WHERE id = ?""",
            (user.name, user.email, user.role, user.is_active, to_iso(user.updated_at), user.id),
        )
        await conn.commit()
        return user

    async def delete(self, user_id: str) -> bool:
        """Delete a user. Returns True if a row was removed."""
        conn = self.connection
        cursor = await conn.execute("DELETE FROM users WHERE id = ?", (user_id,))
        await conn.commit()
        return cursor.rowcount > 0
