"""Application lifespan: startup and shutdown.

Single place for all startup/shutdown logic (SRP). Used by main.py;
no business logic here, only wiring of infrastructure (cache client,
cache service, invalidation subscriber, health monitor, backing store,
entity services). Everything lives on app.state; nothing is a module-level
singleton.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from ltnso.application.services.entities import build_entity_services
from ltnso.core.config import get_settings
from ltnso.infrastructure.cache.client import CacheClient
from ltnso.infrastructure.cache.health import CacheHealthCheck
from ltnso.infrastructure.cache.redis_cache import CacheService
from ltnso.infrastructure.messaging.redis_pubsub import InvalidationSubscriber
from ltnso.infrastructure.persistence import database
from ltnso.infrastructure.persistence.store import SqlAlchemyStore

logger = logging.getLogger(__name__)


async def _cancel(task: asyncio.Task[None] | None, name: str) -> None:
    if task is None:
        return
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass
    logger.info("%s stopped", name)


@asynccontextmanager
async def create_lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run startup then yield; on exit run shutdown.

    Startup order: cache client connect, cache service, health check,
    background tasks (invalidation subscriber, health monitor) when Redis is
    enabled, backing store, entity services. Shutdown runs in reverse.
    """
    settings = get_settings()

    # ---- Startup ----
    cache_client = CacheClient(settings)
    await cache_client.connect()
    cache = CacheService(cache_client, settings)
    cache_health = CacheHealthCheck(cache_client, settings)
    app.state.cache_client = cache_client
    app.state.cache = cache
    app.state.cache_health = cache_health

    if settings.redis_enabled:
        subscriber = InvalidationSubscriber(cache_client, cache)
        app.state.invalidation_task = asyncio.create_task(subscriber.run())
        app.state.cache_health_task = asyncio.create_task(cache_health.run_periodic())
    else:
        app.state.invalidation_task = None
        app.state.cache_health_task = None

    store = SqlAlchemyStore(text_search_config=settings.text_search_config)
    app.state.store = store
    app.state.services = build_entity_services(store, cache, settings)
    logger.info("Entity services ready")

    yield

    # ---- Shutdown ----
    app.state.services = None
    await _cancel(getattr(app.state, "cache_health_task", None), "Cache health monitor")
    await _cancel(getattr(app.state, "invalidation_task", None), "Cache invalidation subscriber")

    if getattr(app.state, "cache", None) is not None:
        await app.state.cache.aclose()
    if getattr(app.state, "cache_client", None) is not None:
        await app.state.cache_client.disconnect()
        logger.info("Cache disconnected")

    await database.dispose_engine()
