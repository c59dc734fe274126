"""API request/response schemas (pydantic)."""

from ltnso.schemas.health import CacheHealthResponse, CacheStatsResponse, HealthResponse

__all__ = ["CacheHealthResponse", "CacheStatsResponse", "HealthResponse"]
