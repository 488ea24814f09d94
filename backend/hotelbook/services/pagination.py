# Overview: Shared page/pageSize handling for list endpoints.

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from hotelbook.validation import ValidationError, coerce_int

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100
# Keeps OFFSET well inside a 64-bit integer
MAX_PAGE = 1_000_000


@dataclass(frozen=True)
class PageRequest:
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


@dataclass
class Page:
    items: list
    total: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        # An empty result still has one (empty) page
        return (self.total + self.page_size - 1) // self.page_size if self.total > 0 else 1

    def to_dict(self, serialize: Callable[[Any], dict] | None = None) -> dict:
        serialize = serialize or (lambda item: item.to_dict())
        return {
            "success": True,
            "data": [serialize(item) for item in self.items],
            "pagination": {
                "total": self.total,
                "page": self.page,
                "pageSize": self.page_size,
                "totalPages": self.total_pages,
            },
        }


def page_request(
    page: Any = None,
    page_size: Any = None,
    *,
    default_size: int = DEFAULT_PAGE_SIZE,
    max_size: int = MAX_PAGE_SIZE,
) -> PageRequest:
    """
    Normalize raw page/pageSize values.

    Missing values take defaults; page is clamped to >= 1 and page_size to
    [1, max_size]. Non-integers and pages past MAX_PAGE are a
    ValidationError.
    """
    page_num = 1 if page in (None, "") else coerce_int(page, "page")
    size = default_size if page_size in (None, "") else coerce_int(page_size, "pageSize")
    if size < 1:
        raise ValidationError("pageSize must be >= 1", field="pageSize")
    if page_num > MAX_PAGE:
        raise ValidationError(f"page must be <= {MAX_PAGE}", field="page")
    return PageRequest(page=max(page_num, 1), page_size=min(size, max_size))


def paginate(query, request: PageRequest) -> Page:
    """Count, then fetch one window of an already-ordered query."""
    total = query.order_by(None).count()
    items = query.offset(request.offset).limit(request.page_size).all()
    return Page(items=items, total=total, page=request.page, page_size=request.page_size)
