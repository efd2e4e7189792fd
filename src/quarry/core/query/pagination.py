"""Pagination result returned by :meth:`QueryBuilder.paginate`."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any

from quarry.core.errors import ValidationError


@dataclass(frozen=True)
class Page:
    """One page of rows plus the totals needed to render navigation.

    ``last_page`` is at least 1, so an empty result still has a first page.

    Attributes:
        items: Rows on this page.
        total: Total matching rows (before limit/offset).
        per_page: Page size.
        current_page: 1-based page number.
    """

    items: list[Any] = field(default_factory=list)
    total: int = 0
    per_page: int = 15
    current_page: int = 1

    @property
    def last_page(self) -> int:
        return max(1, math.ceil(self.total / self.per_page))

    @property
    def offset(self) -> int:
        return offset_for(self.current_page, self.per_page)

    @property
    def has_more(self) -> bool:
        return self.current_page < self.last_page

    @property
    def has_previous(self) -> bool:
        return self.current_page > 1

    @property
    def next_page(self) -> int | None:
        return self.current_page + 1 if self.has_more else None

    @property
    def previous_page(self) -> int | None:
        return self.current_page - 1 if self.has_previous else None

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self):
        return iter(self.items)

    def to_dict(self) -> dict[str, Any]:
        return {
            "items": self.items,
            "total": self.total,
            "per_page": self.per_page,
            "current_page": self.current_page,
            "last_page": self.last_page,
            "has_more": self.has_more,
        }


def offset_for(page: int, per_page: int) -> int:
    """Row offset of ``page`` (1-based)."""
    return (page - 1) * per_page


def check_page(total: int, per_page: int, page: int) -> None:
    """Validate a page request against ``total`` rows.

    Raises:
        ValidationError: ``per_page`` < 1, ``page`` < 1, or ``page`` beyond
            the last page of a non-empty result.
    """
    if per_page < 1:
        raise ValidationError(f"per_page must be at least 1, got {per_page}")
    last_page = max(1, math.ceil(total / per_page))
    if page < 1 or (page > last_page and total > 0):
        raise ValidationError(f"Page {page} is out of bounds; must be between 1 and {last_page}")


__all__ = [
    "Page",
    "check_page",
    "offset_for",
]
