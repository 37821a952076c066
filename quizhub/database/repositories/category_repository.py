"""Category repository for database operations."""

from typing import List, Optional

from ...utils.timeutil import to_iso, utc_now
from ..mappers import row_to_category
from ..models import Category, QuestionStatus
from .base import BaseRepository

# Sort keys accepted by list(); values are ORDER BY clauses
_SORT_COLUMNS = {
    "name": "name ASC",
    "difficulty": (
        "CASE difficulty WHEN 'beginner' THEN 0 WHEN 'intermediate' THEN 1 "
        "WHEN 'advanced' THEN 2 ELSE 3 END ASC, name ASC"
    ),
    "createdAt": "created_at DESC",
}


class CategoryRepository(BaseRepository):
    """Repository for category operations."""

    async def create(self, category: Category) -> Category:
        """Insert a new category."""
        now = utc_now()
        category.created_at = category.created_at or now
        category.updated_at = now
        conn = self.connection
        await conn.execute(
            """INSERT INTO categories
               (id, name, description, icon, color, is_active, question_count,
                difficulty, estimated_time, created_by, created_at, updated_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                category.id,
                category.name,
                category.description,
                category.icon,
                category.color,
                category.is_active,
                category.question_count,
                category.difficulty,
                category.estimated_time,
                category.created_by,
                to_iso(category.created_at),
                to_iso(category.updated_at),
            ),
        )
        await conn.commit()
        return category

    async def get_by_id(self, category_id: str) -> Optional[Category]:
        """Get category by ID."""
        conn = self.connection
        cursor = await conn.execute(
            "SELECT * FROM categories WHERE id = ?", (category_id,)
        )
        row = await cursor.fetchone()
        if row:
            return row_to_category(row)
        return None

    async def get_by_name(self, name: str) -> Optional[Category]:
        """Get category by exact name."""
        conn = self.connection
        cursor = await conn.execute(
            "SELECT * FROM categories WHERE name = ?", (name,)
        )
        row = await cursor.fetchone()
        if row:
            return row_to_category(row)
        return None

    async def find_by_name(self, name: str) -> Optional[Category]:
        """Get category by name, ignoring case."""
        conn = self.connection
        cursor = await conn.execute(
            "SELECT * FROM categories WHERE LOWER(name) = LOWER(?) ORDER BY created_at LIMIT 1",
            (name,),
        )
        row = await cursor.fetchone()
        if row:
            return row_to_category(row)
        return None

    async def list_categories(
        self,
        active_only: bool = True,
        difficulty: Optional[str] = None,
        sort_by: str = "name",
    ) -> List[Category]:
        """List categories, optionally only the active ones."""
        conditions = []
        params: list = []
        if active_only:
            conditions.append("is_active = 1")
        if difficulty:
            conditions.append("difficulty = ?")
            params.append(difficulty)
        where = " AND ".join(conditions) if conditions else "1 = 1"
        order = _SORT_COLUMNS.get(sort_by, _SORT_COLUMNS["name"])

        conn = self.connection
        cursor = await conn.execute(
            f"SELECT * FROM categories WHERE {where} ORDER BY {order}",
            tuple(params),
        )
        rows = await cursor.fetchall()
        return [row_to_category(row) for row in rows]

    async def get_names(self, category_ids: List[str]) -> dict:
        """Map category IDs to names."""
        if not category_ids:
            return {}
        placeholders = ",".join("?" * len(category_ids))
        conn = self.connection
        cursor = await conn.execute(
            f"SELECT id, name FROM categories WHERE id IN ({placeholders})",
            tuple(category_ids),
        )
        rows = await cursor.fetchall()
        return {row["id"]: row["name"] for row in rows}

    async def update(self, category: Category) -> Category:
        """Persist all mutable fields of a category."""
        category.updated_at = utc_now()
        conn = self.connection
        await conn.execute(
            """UPDATE categories
               SET name = ?, description = ?, icon = ?, color = ?, is_active = ?,
                   difficulty = ?, estimated_time = ?, updated_at = ?
               WHERE id = ?""",
            (
                category.name,
                category.description,
                category.icon,
                category.color,
                category.is_active,
                category.difficulty,
                category.estimated_time,
                to_iso(category.updated_at),
                category.id,
            ),
        )
        await conn.commit()
        return category

    async def refresh_question_count(self, category_id: str) -> int:
        """Recount active questions and cache the total on the category."""
        conn = self.connection
        cursor = await conn.execute(
            "SELECT COUNT(*) AS total FROM questions WHERE category_id = ? AND status = ?",
            (category_id, QuestionStatus.ACTIVE),
        )
        row = await cursor.fetchone()
        count = row["total"] if row else 0
        await conn.execute(
            "UPDATE categories SET question_count = ? WHERE id = ?",
            (count, category_id),
        )
        await conn.commit()
        return count

    async def delete(self, category_id: str) -> bool:
        """Delete a category. Returns True if a row was removed."""
        conn = self.connection
        cursor = await conn.execute("DELETE FROM categories WHERE id = ?", (category_id,))
        await conn.commit()
        return cursor.rowcount > 0
