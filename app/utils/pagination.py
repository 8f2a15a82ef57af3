"""Offset pagination for the list endpoints."""

from math import ceil
from typing import Callable, Optional

from sqlalchemy import func
from sqlmodel import Session, select

DEFAULT_LIMIT = 20
MAX_LIMIT = 100


def page_window(page: Optional[int], limit: Optional[int]) -> tuple:
    """Normalise ``page``/``limit`` to page >= 1 and 1 <= limit <= MAX_LIMIT."""
    page = max(page or 1, 1)
    if not limit or limit < 1:
        limit = DEFAULT_LIMIT
    return page, min(limit, MAX_LIMIT)


def empty_page(page: int = 1, limit: int = DEFAULT_LIMIT) -> dict:
    page, limit = page_window(page, limit)
    return {
        "total_items": 0,
        "total_pages": 0,
        "current_page": page,
        "limit": limit,
        "results": [],
    }


def paginate(
    *,
    session: Session,
    query,
    page: int = 1,
    limit: int = DEFAULT_LIMIT,
    serialize: Optional[Callable] = None,
) -> dict:
    """
    Run ``query`` for one page and count the whole result set.

    ``serialize`` is applied to each row of the page, so routes can turn
    ORM rows into response dicts in one pass.
    """
    page, limit = page_window(page, limit)

    # ordering does not change the count
    total = session.exec(
        select(func.count()).select_from(query.order_by(None).subquery())
    ).one()

    if not total:
        return empty_page(page, limit)

    rows = session.exec(query.offset((page - 1) * limit).limit(limit)).all()

    return {
        "total_items": total,
        "total_pages": ceil(total / limit),
        "current_page": page,
        "limit": limit,
        "results": [serialize(row) for row in rows] if serialize else list(rows),
    }
