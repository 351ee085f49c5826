"""
Query helpers shared by the album and photo services.
"""

from typing import Dict, List, Optional, Type

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

_LIKE_ESCAPE = "\\"


def escape_like(term: str) -> str:
    """Escape LIKE wildcards so `search` matches literally."""
    return (
        term.replace(_LIKE_ESCAPE, _LIKE_ESCAPE * 2)
        .replace("%", _LIKE_ESCAPE + "%")
        .replace("_", _LIKE_ESCAPE + "_")
    )


def title_contains(column, term: str):
    """Case-insensitive substring match on `column`."""
    return column.ilike(f"%{escape_like(term)}%", escape=_LIKE_ESCAPE)


def sort_columns(model: Type, sort: Optional[str], order: str) -> List:
    """
    ORDER BY clause for a whitelisted sort key.

    Without a sort key results come back in id order; with one, id breaks
    ties so pages never overlap.
    """
    mapping: Dict[str, object] = {
        "title": model.title,
        "createdAt": model.created_at,
        "updatedAt": model.updated_at,
    }
    if sort is None:
        return [model.id.asc()]
    column = mapping[sort]
    primary = column.desc() if order == "desc" else column.asc()
    return [primary, model.id.asc()]


async def next_id(db: AsyncSession, model: Type) -> int:
    """
    max(id) + 1, or 1 for an empty table.

    Not atomic with the following insert: concurrent creators can read the
    same value, and the primary key rejects the loser (409).
    """
    result = await db.execute(select(func.coalesce(func.max(model.id), 0)))
    return int(result.scalar_one()) + 1
