"""Redis Pub/Sub for lazy cache invalidation.

CacheService.invalidate(..., strategy=LAZY) publishes the prefixed pattern
on the invalidation channel; every process runs one InvalidationSubscriber
that sweeps the published pattern from the shared cache.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

import redis.asyncio as redis

from ltnso.infrastructure.cache.client import CacheClient
from ltnso.infrastructure.cache.redis_cache import CacheService

logger = logging.getLogger(__name__)


class InvalidationSubscriber:
    """Listens on the invalidation channel and sweeps published patterns.

    Only patterns inside the cache service's namespace prefix are honoured.
    Run run() as a background task; cancelling the task stops the loop.
    """

    def __init__(
        self,
        client: CacheClient,
        cache_service: CacheService,
        channel: str | None = None,
        *,
        retry_interval: float | None = None,
    ) -> None:
        settings = cache_service.settings
        self.client = client
        self.cache_service = cache_service
        self.channel = channel or settings.cache_invalidation_channel
        self.retry_interval = (
            retry_interval
            if retry_interval is not None
            else settings.cache_subscriber_retry_interval
        )
        self.processed = 0

    def parse_pattern(self, data: Any) -> str | None:
        """Return the pattern carried by a message payload, or None if malformed."""
        try:
            payload = json.loads(data)
        except (json.JSONDecodeError, TypeError):
            return None
        if not isinstance(payload, dict):
            return None
        pattern = payload.get("pattern")
        if not isinstance(pattern, str) or not pattern:
            return None
        if not pattern.startswith(self.cache_service.prefix):
            return None
        return pattern

    async def handle_message(self, message: dict[str, Any]) -> int:
        """Sweep the pattern of one pub/sub message. Returns keys deleted."""
        if message.get("type") != "message":
            return 0
        pattern = self.parse_pattern(message.get("data"))
        if pattern is None:
            logger.warning("Ignoring malformed cache invalidation message on %s", self.channel)
            return 0
        deleted = await self.cache_service.delete_pattern(pattern)
        self.processed += 1
        return deleted

    async def run(self) -> None:
        """Subscribe and process messages until cancelled.

        While Redis is unavailable, or after the subscription drops, waits
        retry_interval seconds and subscribes again.
        """
        if self.client.get_subscriber_connection() is None:
            logger.info("Redis disabled, cache invalidation subscriber not started")
            return
        try:
            while True:
                await self.listen_once()
                await asyncio.sleep(self.retry_interval)
        except asyncio.CancelledError:
            logger.info("Cache invalidation subscriber cancelled")
            raise

    async def listen_once(self) -> None:
        """One subscription: process messages until the stream ends or fails."""
        conn = self.client.get_subscriber_connection()
        if conn is None or not self.client.is_ready():
            logger.debug("Redis not ready, cache invalidation subscription deferred")
            return
        pubsub = conn.pubsub()
        try:
            await pubsub.subscribe(self.channel)
            logger.info("Subscribed to %s for cache invalidation", self.channel)
            async for message in pubsub.listen():
                await self.handle_message(message)
        except (redis.RedisError, OSError) as e:
            logger.warning(
                "Cache invalidation subscription lost: %s. Retrying in %ss", e, self.retry_interval
            )
        finally:
            try:
                await pubsub.unsubscribe(self.channel)
                await pubsub.aclose()
            except (redis.RedisError, OSError):
                logger.warning("Error closing invalidation subscription", exc_info=True)
