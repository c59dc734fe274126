"""FastAPI dependencies: services built in lifespan, read from app.state."""

from fastapi import HTTPException, Request, status

from ltnso.application.services.entities import EntityServices
from ltnso.infrastructure.cache.health import CacheHealthCheck
from ltnso.infrastructure.cache.redis_cache import CacheService


def _state(request: Request, name: str):
    value = getattr(request.app.state, name, None)
    if value is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"{name} not initialized",
        )
    return value


def get_cache_service(request: Request) -> CacheService:
    """Cache service created in lifespan (app.state.cache)."""
    return _state(request, "cache")


def get_cache_health(request: Request) -> CacheHealthCheck:
    """Cache health check created in lifespan (app.state.cache_health)."""
    return _state(request, "cache_health")


def get_entity_services(request: Request) -> EntityServices:
    """Entity service registry created in lifespan (app.state.services)."""
    return _state(request, "services")
