"""Paging, sorting and status-filter parameters shared by list endpoints."""
from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

from .validation import validation_error

PAGE_MIN = 1
PAGE_DEFAULT = 1
LIMIT_MIN = 1
LIMIT_MAX = 100
LIMIT_DEFAULT = 10

T = TypeVar("T")


class SortOrder(str, Enum):
    ASCENDING = "asc"
    DESCENDING = "desc"


class ActiveFilter(str, Enum):
    ALL = "all"
    ACTIVE = "active"
    INACTIVE = "inactive"


class UserSortOption(str, Enum):
    NAME = "name"
    CREATED_AT = "created_at"


class RoleSortOption(str, Enum):
    USER_COUNT = "user_count"
    CREATED_AT = "created_at"


def _options(enum_cls: type[Enum]) -> str:
    return ", ".join(member.value for member in enum_cls)


@dataclass(frozen=True)
class PageRequest:
    page: int = PAGE_DEFAULT
    limit: int = LIMIT_DEFAULT

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass(frozen=True)
class Page(Generic[T]):
    items: Sequence[T]
    total: int
    page: int
    limit: int


def validate_page_request(page: int | None, limit: int | None) -> PageRequest:
    page = PAGE_DEFAULT if page is None else page
    limit = LIMIT_DEFAULT if limit is None else limit
    if page < PAGE_MIN:
        raise validation_error("page", "min", minimum=PAGE_MIN)
    if not LIMIT_MIN <= limit <= LIMIT_MAX:
        raise validation_error("limit", "range", minimum=LIMIT_MIN, maximum=LIMIT_MAX)
    return PageRequest(page=page, limit=limit)


def validate_sort(value: str | None, options: type[Enum]) -> str | None:
    if value is None or not value.strip():
        return None
    candidate = value.strip().lower()
    if candidate not in {member.value for member in options}:
        raise validation_error("sort_by", "invalid", options=_options(options))
    return candidate


def validate_order(value: str | None) -> bool:
    """Return ``True`` for descending order, the default."""
    if value is None or not value.strip():
        return True
    candidate = value.strip().lower()
    if candidate == SortOrder.ASCENDING.value:
        return False
    if candidate == SortOrder.DESCENDING.value:
        return True
    raise validation_error("order", "invalid", options=_options(SortOrder))


def validate_active_filter(value: str | None) -> bool | None:
    if value is None or not value.strip():
        return None
    candidate = value.strip().lower()
    if candidate == ActiveFilter.ALL.value:
        return None
    if candidate == ActiveFilter.ACTIVE.value:
        return True
    if candidate == ActiveFilter.INACTIVE.value:
        return False
    raise validation_error("active", "invalid", options=_options(ActiveFilter))
