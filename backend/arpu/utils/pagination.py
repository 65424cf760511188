"""
Pagination helpers shared by every list endpoint.
"""
from typing import List, Optional, Any
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select

MAX_PAGE_SIZE = 100


def clamp_page(page: int, page_size: int) -> tuple:
    """Page is 1-indexed; page_size is capped at MAX_PAGE_SIZE"""
    return max(1, page), max(1, min(MAX_PAGE_SIZE, page_size))


async def paginate(
    db: AsyncSession,
    query: Select,
    page: int = 1,
    page_size: int = 20,
    count_query: Optional[Select] = None
) -> dict:
    """
    Apply pagination to a SQLAlchemy query.

    Args:
        db: Database session
        query: Base query (already filtered and ordered)
        page: Page number (1-indexed)
        page_size: Items per page
        count_query: Optional custom count query

    Returns:
        Dictionary with items, total, page, page_size, total_pages, has_next, has_previous
    """
    page, page_size = clamp_page(page, page_size)
    offset = (page - 1) * page_size

    if count_query is None:
        count_query = select(func.count()).select_from(query.order_by(None).subquery())
    total = (await db.execute(count_query)).scalar() or 0

    result = await db.execute(query.offset(offset).limit(page_size))
    items = list(result.scalars().all())

    return create_paginated_response(items, total, page, page_size)


def create_paginated_response(
    items: List[Any],
    total: int,
    page: int,
    page_size: int
) -> dict:
    """Paginated response dictionary for an already sliced list"""
    total_pages = (total + page_size - 1) // page_size if total > 0 else 1

    return {
        "items": items,
        "total": total,
        "page": page,
        "page_size": page_size,
        "total_pages": total_pages,
        "has_next": page < total_pages,
        "has_previous": page > 1
    }
