"""Redis-backed cache service with stats and pattern invalidation.

Provides namespaced get/set/delete/exists, three invalidation strategies
(immediate, lazy via pub/sub, scheduled) and hit/miss diagnostics. Every
public method fails open: Redis or serialization errors are logged,
recorded as the last cache error and never raised to the caller.
Key format lives in ltnso.infrastructure.cache.keys (DRY).
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

import redis.asyncio as redis
from pydantic_core import to_jsonable_python

from ltnso.application.dtos.cache import CacheEntry, CacheStats
from ltnso.core.config import Settings, get_settings
from ltnso.core.constants import CACHE_PATTERN_ANY, CACHE_SWEEP_CHUNK_SIZE
from ltnso.domain.enums import InvalidationStrategy
from ltnso.domain.exceptions import CacheException
from ltnso.infrastructure.cache.client import CacheClient
from ltnso.infrastructure.cache.keys import with_prefix

logger = logging.getLogger(__name__)

_CONNECTION_ERRORS = (redis.ConnectionError, redis.TimeoutError)


class CacheService:
    """Async Redis cache service with TTL support.

    All keys and patterns are namespaced with settings.cache_key_prefix.
    Uses the CacheClient's shared command connection; does nothing (and
    returns misses) while the client is not ready.
    """

    def __init__(
        self,
        client: CacheClient,
        settings: Settings | None = None,
        *,
        prefix: str | None = None,
        default_ttl: int | None = None,
    ) -> None:
        """Initialize cache service.

        Args:
            client: Connection holder shared by the process.
            settings: Optional settings; defaults to get_settings().
            prefix: Optional namespace override (defaults to settings.cache_key_prefix).
            default_ttl: Optional TTL override in seconds (defaults to settings.cache_ttl_default).
        """
        self.client = client
        self.settings = settings or get_settings()
        self.prefix = prefix if prefix is not None else self.settings.cache_key_prefix
        self.default_ttl = default_ttl or self.settings.cache_ttl_default
        self._hits = 0
        self._misses = 0
        self._errors = 0
        self._last_error: CacheException | None = None
        self._scheduled: set[asyncio.Task[None]] = set()

    @property
    def last_error(self) -> CacheException | None:
        """Most recent absorbed cache failure, if any."""
        return self._last_error

    def _key(self, key: str) -> str:
        return with_prefix(key, self.prefix)

    def _redis(self) -> redis.Redis | None:
        if not self.client.is_ready():
            return None
        return self.client.get_command_connection()

    def _record_error(self, operation: str, key: str | None, error: Exception) -> None:
        self._errors += 1
        self._last_error = CacheException(f"Cache {operation} failed: {error}", operation, key)
        if isinstance(error, _CONNECTION_ERRORS):
            self.client.mark_unavailable(error)
        logger.warning("Cache %s error for %s: %s", operation, key, error)

    async def get(self, key: str) -> Any | None:
        """Return cached value (JSON-deserialized) or None on miss/unavailable.

        Args:
            key: Unprefixed cache key (use ltnso.infrastructure.cache.keys builders).

        Returns:
            Cached value or None.
        """
        conn = self._redis()
        if conn is None:
            return None
        full_key = self._key(key)
        try:
            raw = await conn.get(full_key)
            if raw is None:
                self._misses += 1
                logger.debug("Cache MISS: %s", full_key)
                return None
            value = json.loads(raw)
        except (redis.RedisError, ValueError) as e:
            self._record_error("get", full_key, e)
            return None
        self._hits += 1
        logger.debug("Cache HIT: %s", full_key)
        return value

    async def set(self, key: str, value: Any, ttl: int | None = None) -> bool:
        """Store value with TTL. Returns True on success.

        Args:
            key: Unprefixed cache key.
            value: Value to cache (JSON-serializable; pydantic models, datetimes
                and UUIDs are converted).
            ttl: Time-to-live in seconds (default settings.cache_ttl_default).

        Returns:
            True if stored, False otherwise.
        """
        conn = self._redis()
        if conn is None:
            return False
        entry = CacheEntry(key=self._key(key), value=value, ttl=ttl or self.default_ttl)
        try:
            serialized = json.dumps(entry.value, default=to_jsonable_python)
            await conn.setex(entry.key, entry.ttl, serialized)
        except (redis.RedisError, TypeError, ValueError) as e:
            self._record_error("set", entry.key, e)
            return False
        logger.debug("Cache SET: %s (TTL: %ss, at %s)", entry.key, entry.ttl, entry.created_at)
        return True

    async def delete(self, *keys: str) -> bool:
        """Remove keys from cache. Returns True if the command succeeded."""
        conn = self._redis()
        if conn is None or not keys:
            return False
        full_keys = [self._key(k) for k in keys]
        try:
            await conn.delete(*full_keys)
        except redis.RedisError as e:
            self._record_error("delete", ",".join(full_keys), e)
            return False
        logger.debug("Cache DELETE: %s", ", ".join(full_keys))
        return True

    async def exists(self, key: str) -> bool:
        """Return True if key is present."""
        conn = self._redis()
        if conn is None:
            return False
        full_key = self._key(key)
        try:
            return bool(await conn.exists(full_key))
        except redis.RedisError as e:
            self._record_error("exists", full_key, e)
            return False

    async def delete_pattern(self, pattern: str) -> int:
        """Delete all keys matching pattern using SCAN + batched UNLINK (non-blocking).

        Uses scan_iter to avoid KEYS blocking; collects keys in chunks and
        UNLINKs each chunk so deletion happens asynchronously on the server.

        Args:
            pattern: Glob pattern (e.g. tema:query:*); prefixed unless it
                already carries the namespace prefix.

        Returns:
            Number of keys deleted.
        """
        conn = self._redis()
        if conn is None:
            return 0
        full_pattern = self._key(pattern)
        deleted = 0
        try:
            chunk: list[str] = []
            async for key in conn.scan_iter(match=full_pattern):
                chunk.append(key)
                if len(chunk) >= CACHE_SWEEP_CHUNK_SIZE:
                    deleted += int(await conn.unlink(*chunk) or 0)
                    chunk = []
            if chunk:
                deleted += int(await conn.unlink(*chunk) or 0)
        except redis.RedisError as e:
            self._record_error("delete_pattern", full_pattern, e)
            return deleted
        if deleted > 0:
            logger.info("Cache INVALIDATE: %s (%s keys)", full_pattern, deleted)
        return deleted

    async def invalidate(
        self,
        pattern: str,
        strategy: InvalidationStrategy = InvalidationStrategy.IMMEDIATE,
        delay: float | None = None,
    ) -> bool:
        """Invalidate every key matching pattern.

        Args:
            pattern: Unprefixed glob pattern (e.g. persona:*).
            strategy: IMMEDIATE sweeps now; LAZY publishes the pattern on the
                invalidation channel for InvalidationSubscriber to sweep;
                SCHEDULED sweeps after delay seconds on a background task.
            delay: Seconds to wait for SCHEDULED (default 0).

        Returns:
            True if the sweep ran, was published or was scheduled.
        """
        if strategy is InvalidationStrategy.IMMEDIATE:
            await self.delete_pattern(pattern)
            return self._redis() is not None
        if strategy is InvalidationStrategy.LAZY:
            return await self._publish_invalidation(pattern)
        task = asyncio.create_task(self._sweep_later(pattern, max(delay or 0.0, 0.0)))
        self._scheduled.add(task)
        task.add_done_callback(self._scheduled.discard)
        logger.debug("Cache invalidation of %s scheduled in %ss", pattern, delay or 0)
        return True

    async def _publish_invalidation(self, pattern: str) -> bool:
        conn = self._redis()
        if conn is None:
            return False
        full_pattern = self._key(pattern)
        channel = self.settings.cache_invalidation_channel
        try:
            await conn.publish(channel, json.dumps({"pattern": full_pattern}))
        except redis.RedisError as e:
            self._record_error("publish", full_pattern, e)
            return False
        logger.debug("Published cache invalidation %s on %s", full_pattern, channel)
        return True

    async def _sweep_later(self, pattern: str, delay: float) -> None:
        await asyncio.sleep(delay)
        await self.delete_pattern(pattern)

    @property
    def pending_invalidations(self) -> int:
        """Number of scheduled sweeps not yet run."""
        return len(self._scheduled)

    async def get_stats(self) -> CacheStats:
        """Return counters plus key count and memory usage reported by Redis."""
        keys = 0
        memory = 0
        conn = self._redis()
        if conn is not None:
            try:
                async for _ in conn.scan_iter(match=self._key(CACHE_PATTERN_ANY)):
                    keys += 1
                info = await conn.info("memory")
                memory = int(info.get("used_memory", 0))
            except (redis.RedisError, ValueError) as e:
                self._record_error("stats", None, e)
        return CacheStats(
            hits=self._hits,
            misses=self._misses,
            keys=keys,
            memory_usage=memory,
            errors=self._errors,
            last_error=self._last_error.message if self._last_error else None,
        )

    async def clear(self) -> bool:
        """Delete every key under the namespace prefix and reset counters.

        Returns:
            True if Redis was reachable and the sweep ran.
        """
        conn = self._redis()
        removed = await self.delete_pattern(CACHE_PATTERN_ANY)
        self._hits = 0
        self._misses = 0
        self._errors = 0
        self._last_error = None
        if conn is None:
            return False
        logger.warning("Cache CLEARED: %s keys under %s", removed, self.prefix)
        return True

    async def aclose(self) -> None:
        """Cancel scheduled sweeps. Call on shutdown."""
        tasks = list(self._scheduled)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._scheduled.clear()
