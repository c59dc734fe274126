"""Health check API schemas."""

from datetime import datetime

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Response for GET /health (liveness)."""

    status: str = Field(default="ok", description="Service status")


class CacheHealthResponse(BaseModel):
    """Response for GET /health/cache."""

    status: str = Field(..., description="ok or unavailable")
    is_healthy: bool
    latency_ms: float | None = Field(default=None, description="PING round-trip in ms")
    memory_used: int | None = Field(default=None, description="Redis used_memory in bytes")
    memory_peak: int | None = Field(default=None, description="Redis used_memory_peak in bytes")
    checked_at: datetime
    last_error: str | None = None


class CacheStatsResponse(BaseModel):
    """Response for GET /health/cache/stats."""

    hits: int
    misses: int
    hit_rate: float
    keys: int = Field(..., description="Approximate key count under the namespace prefix")
    memory_usage: int = Field(..., description="Redis used_memory in bytes")
    errors: int
    last_error: str | None = None
