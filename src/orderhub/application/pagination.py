"""Page/limit handling for order listings.

Unparseable or out-of-range values fall back to the defaults instead of
failing the request.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100


def _to_int(raw: str | int | None) -> int | None:
    if raw is None or isinstance(raw, bool):
        return None
    try:
        return int(raw)
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class PageRequest:

    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    @staticmethod
    def from_raw(page: str | int | None, limit: str | int | None) -> PageRequest:
        parsed_page = _to_int(page)
        parsed_limit = _to_int(limit)
        if parsed_page is None or parsed_page <= 0:
            parsed_page = DEFAULT_PAGE
        if parsed_limit is None or not 0 < parsed_limit <= MAX_LIMIT:
            parsed_limit = DEFAULT_LIMIT
        return PageRequest(page=parsed_page, limit=parsed_limit)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass(frozen=True)
class Page(Generic[T]):

    items: list[T]
    page: int
    limit: int
    total: int  # across all pages


def paginate(items: list[T], request: PageRequest) -> Page[T]:
    start = request.offset
    return Page(
        items=items[start:start + request.limit],
        page=request.page,
        limit=request.limit,
        total=len(items),
    )
