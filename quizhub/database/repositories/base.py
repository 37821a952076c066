"""Base repository with common database operations."""

from typing import Any, List, Sequence, Tuple

from ..connection import Database


class BaseRepository:
    """Base class for all repositories."""

    def __init__(self, database: Database):
        self.db = database

    @property
    def connection(self):
        """Get the database connection."""
        return self.db.connection

    async def _count(self, table: str, where: str, params: Sequence[Any]) -> int:
        """Count rows of a table matching a WHERE clause."""
        cursor = await self.connection.execute(
            f"SELECT COUNT(*) AS total FROM {table} WHERE {where}",
            tuple(params),
        )
        row = await cursor.fetchone()
        return row["total"] if row else 0


def build_where(conditions: List[str], params: List[Any]) -> Tuple[str, List[Any]]:
    """Join filter conditions into a WHERE clause body."""
    if not conditions:
        return "1 = 1", params
    return " AND ".join(conditions), params
