from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, TypeVar

from jm_engine.config import DEFAULT_MAX_PAGE_LIMIT
from jm_engine.errors import InvalidPaginationError

T = TypeVar("T")


@dataclass(frozen=True)
class Pagination:
    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def validate_pagination(page: int, limit: int, max_limit: Optional[int] = DEFAULT_MAX_PAGE_LIMIT) -> Pagination:
    """Reject page < 1 or limit < 1; clamp limit to max_limit."""
    if page < 1 or limit < 1:
        raise InvalidPaginationError(page, limit)
    if max_limit is not None:
        limit = min(limit, max_limit)
    return Pagination(page=page, limit=limit)


def paginate(items: Sequence[T], pagination: Pagination) -> List[T]:
    start = pagination.offset
    return list(items[start : start + pagination.limit])


def page_count(total: int, limit: int) -> int:
    return (total + max(limit, 1) - 1) // max(limit, 1)
