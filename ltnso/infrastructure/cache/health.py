"""Cache health check: ping latency and memory usage, throttled.

A real check (PING + INFO memory) runs at most once per interval; calls in
between return the last status. Each real check updates CacheClient
readiness, so a recovered Redis is picked up again by CacheService.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from collections.abc import Callable
from dataclasses import asdict
from datetime import UTC, datetime

import redis.asyncio as redis
from pydantic_core import to_jsonable_python

from ltnso.application.dtos.cache import CacheHealthStatus
from ltnso.core.config import Settings, get_settings
from ltnso.infrastructure.cache.client import CacheClient

logger = logging.getLogger(__name__)


class CacheHealthCheck:
    """Throttled Redis health check.

    Publishes each fresh healthy status on settings.cache_health_channel
    (best effort).
    """

    def __init__(
        self,
        client: CacheClient,
        settings: Settings | None = None,
        *,
        interval: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the health check.

        Args:
            client: Connection holder to check.
            settings: Optional settings; defaults to get_settings().
            interval: Seconds between real checks (default settings.cache_health_check_interval).
            clock: Monotonic clock, injectable for tests.
        """
        self.client = client
        self.settings = settings or get_settings()
        self.interval = (
            interval if interval is not None else self.settings.cache_health_check_interval
        )
        self._clock = clock
        self._last_checked: float | None = None
        self._last_status: CacheHealthStatus | None = None
        self._last_error: str | None = None

    @property
    def last_error(self) -> str | None:
        return self._last_error

    async def check_health(self, *, force: bool = False) -> CacheHealthStatus:
        """Return cache health, probing Redis at most once per interval.

        Args:
            force: Check even if the last check is recent.

        Returns:
            Fresh status, or the last one when throttled.
        """
        now = self._clock()
        if (
            not force
            and self._last_status is not None
            and self._last_checked is not None
            and now - self._last_checked < self.interval
        ):
            return self._last_status
        self._last_checked = now
        status = await self._run_check()
        self._last_status = status
        if status.is_healthy:
            await self._publish(status)
        return status

    async def _run_check(self) -> CacheHealthStatus:
        conn = self.client.get_command_connection()
        if conn is None:
            self._last_error = "Redis client not initialized"
            return self._unhealthy()
        try:
            started = time.perf_counter()
            await conn.ping()
            latency_ms = (time.perf_counter() - started) * 1000
            info = await conn.info("memory")
        except (redis.RedisError, OSError) as e:
            self._last_error = str(e) or e.__class__.__name__
            self.client.mark_unavailable(e)
            logger.warning("Cache health check failed: %s", self._last_error)
            return self._unhealthy()
        self._last_error = None
        self.client.mark_ready()
        return CacheHealthStatus(
            is_healthy=True,
            latency_ms=round(latency_ms, 3),
            memory_used=int(info.get("used_memory", 0)),
            memory_peak=int(info.get("used_memory_peak", 0)),
            checked_at=datetime.now(UTC),
        )

    def _unhealthy(self) -> CacheHealthStatus:
        return CacheHealthStatus(
            is_healthy=False,
            latency_ms=None,
            memory_used=None,
            memory_peak=None,
            checked_at=datetime.now(UTC),
            last_error=self._last_error,
        )

    async def _publish(self, status: CacheHealthStatus) -> None:
        conn = self.client.get_command_connection()
        if conn is None:
            return
        try:
            await conn.publish(
                self.settings.cache_health_channel,
                json.dumps(asdict(status), default=to_jsonable_python),
            )
        except redis.RedisError as e:
            logger.debug("Could not publish cache health status: %s", e)

    async def run_periodic(self) -> None:
        """Check every interval until cancelled. Run as a lifespan background task."""
        try:
            while True:
                await self.check_health(force=True)
                await asyncio.sleep(self.interval)
        except asyncio.CancelledError:
            logger.info("Cache health monitor cancelled")
            raise
