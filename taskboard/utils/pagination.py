"""
Pagination Utilities

Offset pagination for tenant-scoped listings. Page size is clamped so a
client can never request an unbounded result set.
"""

import math
from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

MAX_PAGE_SIZE = 100


@dataclass(frozen=True)
class PageRequest:
    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class PaginationMeta(BaseModel):
    """Pagination block returned alongside every listing"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    current_page: int
    total_pages: int
    total: int
    limit: int


def page_request(page: int | None, limit: int | None, default_limit: int = 20) -> PageRequest:
    """Normalize page/limit: page >= 1, 1 <= limit <= MAX_PAGE_SIZE."""
    page = max(page or 1, 1)
    limit = limit or default_limit
    limit = min(max(limit, 1), MAX_PAGE_SIZE)
    return PageRequest(page=page, limit=limit)


def pagination_meta(request: PageRequest, total: int) -> PaginationMeta:
    return PaginationMeta(
        current_page=request.page,
        total_pages=math.ceil(total / request.limit) if total else 0,
        total=total,
        limit=request.limit,
    )


async def get_total_count(db: AsyncSession, model, filters: list | None = None) -> int:
    """
    Get total count of rows matching filters.

    Args:
        db: Database session
        model: SQLAlchemy model class
        filters: Optional list of filter conditions

    Returns:
        Total count
    """
    query = select(func.count(model.id))

    if filters:
        for f in filters:
            query = query.where(f)

    result = await db.execute(query)
    return result.scalar() or 0
