"""DTOs describing read options for list, search and relationship reads."""

from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from ltnso.domain.enums import SortOrder


@dataclass(frozen=True)
class Sort:
    """Order by one column."""

    field: str
    order: SortOrder = SortOrder.ASC


@dataclass(frozen=True)
class Range:
    """Offset/limit window over a read (limit=None means unbounded)."""

    offset: int = 0
    limit: int | None = None


@dataclass(frozen=True)
class QueryOptions:
    """Options accepted by BaseService reads.

    Reads with any filter, pagination, sort or column projection, with
    include_deleted, or with bypass_cache set never touch the list/query caches.
    """

    filters: dict[str, Any] = field(default_factory=dict)
    page: int | None = None
    page_size: int | None = None
    sort_by: str | None = None
    sort_order: SortOrder = SortOrder.ASC
    columns: tuple[str, ...] | None = None
    include_deleted: bool = False
    bypass_cache: bool = False

    @property
    def is_cacheable(self) -> bool:
        return not (
            self.filters
            or self.page is not None
            or self.page_size is not None
            or self.sort_by
            or self.columns is not None
            or self.include_deleted
            or self.bypass_cache
        )

    def to_range(self) -> Range | None:
        """Translate 1-based page/page_size into an offset window."""
        if self.page_size is None:
            return None
        page = max(self.page or 1, 1)
        return Range(offset=(page - 1) * self.page_size, limit=self.page_size)

    def to_sort(self, default: Sort | None = None) -> Sort | None:
        if self.sort_by:
            return Sort(self.sort_by, self.sort_order)
        return default

T = TypeVar("T")


@dataclass(frozen=True)
class Page(Generic[T]):
    """One page of results plus totals."""

    items: list[T]
    total: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        if self.page_size <= 0:
            return 0
        return -(-self.total // self.page_size)
