"""DTOs for cache diagnostics (entries, counters, health)."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any


@dataclass(frozen=True)
class CacheEntry:
    """One stored cache value with the TTL it was written with."""

    key: str
    value: Any
    ttl: int
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))


@dataclass(frozen=True)
class CacheStats:
    """Snapshot of cache counters.

    hits/misses are process-local and reset only by CacheService.clear().
    keys is approximate (SCAN count under the prefix); memory_usage is what
    the cache server reports (bytes), 0 when unavailable.
    """

    hits: int
    misses: int
    keys: int
    memory_usage: int
    errors: int = 0
    last_error: str | None = None

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total else 0.0


@dataclass(frozen=True)
class CacheHealthStatus:
    """Result of a cache health check."""

    is_healthy: bool
    latency_ms: float | None
    memory_used: int | None
    memory_peak: int | None
    checked_at: datetime
    last_error: str | None = None
