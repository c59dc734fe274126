"""Application DTOs (no ORM dependency)."""

from ltnso.application.dtos.cache import CacheEntry, CacheHealthStatus, CacheStats
from ltnso.application.dtos.query import Page, QueryOptions, Range, Sort
from ltnso.application.dtos.result import ServiceResult

__all__ = [
    "CacheEntry",
    "CacheHealthStatus",
    "CacheStats",
    "Page",
    "QueryOptions",
    "Range",
    "ServiceResult",
    "Sort",
]
