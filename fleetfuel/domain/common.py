# ============================================================
# Shared domain value objects
# ============================================================
import uuid
from dataclasses import dataclass
from typing import Generic, Literal, TypeVar

SortOrderLiteral = Literal["asc", "desc"]

T = TypeVar("T")


def new_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class Pagination:
    limit: int = 50
    offset: int = 0


@dataclass(frozen=True)
class Sorting:
    sort_by: str = "created_at"
    sort_order: SortOrderLiteral = "desc"


@dataclass(frozen=True)
class PageMeta:
    total: int
    limit: int
    offset: int
    has_next: bool
    has_previous: bool


@dataclass(frozen=True)
class PageResult(Generic[T]):
    data: list[T]
    meta: PageMeta


def page_meta(total: int, paging: Pagination) -> PageMeta:
    return PageMeta(
        total=total,
        limit=paging.limit,
        offset=paging.offset,
        has_next=(paging.offset + paging.limit) < total,
        has_previous=paging.offset > 0,
    )


LIKE_ESCAPE = "\\"


def contains_pattern(text: str) -> str:
    """Case-folded LIKE pattern matching `text` anywhere, wildcards taken literally."""
    escaped = (
        text.strip().lower()
        .replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )
    return f"%{escaped}%"
