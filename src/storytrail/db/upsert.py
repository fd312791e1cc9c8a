"""Dialect-aware ``INSERT ... ON CONFLICT DO NOTHING``."""

from __future__ import annotations

from typing import Any

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from storytrail.db.base import Base


async def insert_ignore(
    db: AsyncSession,
    model: type[Base],
    values: dict[str, Any],
    index_elements: list[str],
) -> bool:
    """Insert one row unless it collides on ``index_elements``.

    Returns True when the row was written, False when an existing row won.
    The uniqueness constraint arbitrates concurrent writers; callers never
    read before writing.
    """
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        stmt = pg_insert(model).values(**values)
    elif dialect == "sqlite":
        stmt = sqlite_insert(model).values(**values)
    else:
        msg = f"insert_ignore does not support the {dialect!r} dialect"
        raise NotImplementedError(msg)

    stmt = stmt.on_conflict_do_nothing(index_elements=index_elements)
    result = await db.execute(stmt)
    return (result.rowcount or 0) > 0
