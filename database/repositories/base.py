"""
Shared helpers for repositories.
"""

from typing import Any, Sequence

from sqlalchemy import Select, func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession


def upsert_insert(db: AsyncSession, model):
    """
    ``INSERT`` construct supporting ``ON CONFLICT`` for the session's dialect.

    PostgreSQL in production, SQLite in tests; both speak the same
    ``on_conflict_do_update`` / ``on_conflict_do_nothing`` API.
    """
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert(model)
    if dialect == "sqlite":
        return sqlite.insert(model)
    raise NotImplementedError(f"Upsert not supported for dialect {dialect!r}")


async def paginate(
    db: AsyncSession,
    query: Select,
    page: int,
    limit: int,
) -> tuple[Sequence[Any], int]:
    """Run ``query`` for one page and return (rows, total)."""
    total = await db.scalar(select(func.count()).select_from(query.order_by(None).subquery()))
    result = await db.execute(query.offset((page - 1) * limit).limit(limit))
    return result.scalars().all(), total or 0


def last_page(total: int, limit: int) -> int:
    return max(1, -(-total // limit))
