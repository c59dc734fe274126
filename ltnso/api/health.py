"""Health check endpoints: liveness, cache health and cache statistics."""

from dataclasses import asdict
from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ltnso.api.dependencies import get_cache_health, get_cache_service
from ltnso.infrastructure.cache.health import CacheHealthCheck
from ltnso.infrastructure.cache.redis_cache import CacheService
from ltnso.schemas.health import (
    CacheHealthResponse,
    CacheStatsResponse,
    HealthResponse,
)

router = APIRouter()


@router.get("", response_model=HealthResponse)
def health_check() -> HealthResponse:
    """Return simple ok status for liveness."""
    return HealthResponse()


@router.get(
    "/cache",
    response_model=CacheHealthResponse,
    responses={503: {"description": "Cache unavailable", "model": CacheHealthResponse}},
)
async def cache_health(
    health: Annotated[CacheHealthCheck, Depends(get_cache_health)],
) -> CacheHealthResponse | JSONResponse:
    """Return cache health (checked against Redis at most once per interval).

    An unhealthy cache answers 503; the rest of the service keeps working
    without it.
    """
    result = await health.check_health()
    body = CacheHealthResponse(
        status="ok" if result.is_healthy else "unavailable",
        **asdict(result),
    )
    if result.is_healthy:
        return body
    return JSONResponse(status_code=503, content=body.model_dump(mode="json"))


@router.get("/cache/stats", response_model=CacheStatsResponse)
async def cache_stats(
    cache: Annotated[CacheService, Depends(get_cache_service)],
) -> CacheStatsResponse:
    """Return cache hit/miss counters, key count and memory usage."""
    stats = await cache.get_stats()
    return CacheStatsResponse(hit_rate=stats.hit_rate, **asdict(stats))
