"""Redis connection holder: one command connection and one subscriber connection.

All cache traffic in the process shares these two async connections; callers
never build their own. Readiness is tracked from connect/ping outcomes and
from command failures reported by CacheService and CacheHealthCheck.
"""

from __future__ import annotations

import logging

import redis.asyncio as redis
from redis.asyncio.retry import Retry
from redis.backoff import AbstractBackoff

from ltnso.core.config import Settings, get_settings

logger = logging.getLogger(__name__)


class LinearBackoff(AbstractBackoff):
    """Capped linear backoff: delay = min(failures * step, cap) seconds."""

    def __init__(self, step: float, cap: float) -> None:
        self._step = step
        self._cap = cap

    def compute(self, failures: int) -> float:
        return min(failures * self._step, self._cap)


class CacheClient:
    """Owns the command and subscriber Redis connections.

    Call connect() on startup and disconnect() on shutdown. connect() never
    raises on an unreachable server: the client simply stays not ready and
    the cache layer fails open.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        command: redis.Redis | None = None,
        subscriber: redis.Redis | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            settings: Optional settings; defaults to get_settings().
            command: Optional pre-built command connection (DI/testing).
            subscriber: Optional pre-built subscriber connection (DI/testing).
        """
        self.settings = settings or get_settings()
        self._command = command
        self._subscriber = subscriber
        self._ready = False

    def _build_connection(self) -> redis.Redis:
        s = self.settings
        retry = Retry(
            LinearBackoff(s.redis_retry_step_ms / 1000, s.redis_retry_cap_ms / 1000),
            s.redis_max_retries,
        )
        return redis.Redis(
            host=s.redis_host,
            port=s.redis_port,
            db=s.redis_db,
            password=s.redis_password.get_secret_value() if s.redis_password else None,
            decode_responses=True,
            socket_connect_timeout=s.redis_socket_connect_timeout,
            socket_timeout=s.redis_socket_timeout,
            socket_keepalive=True,
            retry=retry,
            retry_on_error=[redis.ConnectionError, redis.TimeoutError],
        )

    def get_command_connection(self) -> redis.Redis | None:
        """Return the shared command connection (None when Redis is disabled)."""
        if self._command is None and self.settings.redis_enabled:
            self._command = self._build_connection()
        return self._command

    def get_subscriber_connection(self) -> redis.Redis | None:
        """Return the shared subscriber connection (None when Redis is disabled)."""
        if self._subscriber is None and self.settings.redis_enabled:
            self._subscriber = self._build_connection()
        return self._subscriber

    async def connect(self) -> None:
        """Ping both connections. No-op when already ready or Redis is disabled."""
        if self._ready:
            return
        command = self.get_command_connection()
        subscriber = self.get_subscriber_connection()
        if command is None or subscriber is None:
            logger.info("Redis disabled; cache layer runs without a cache")
            return
        try:
            await command.ping()
            await subscriber.ping()
        except (redis.RedisError, OSError) as e:
            logger.warning("Redis connection failed: %s. Cache disabled.", e)
            self._on_error(e)
            return
        self._on_connect()

    async def disconnect(self) -> None:
        """Close both connections. Safe to call more than once."""
        for conn in (self._command, self._subscriber):
            if conn is None:
                continue
            try:
                await conn.aclose()
            except (redis.RedisError, OSError):
                logger.warning("Error closing Redis connection", exc_info=True)
        self._command = None
        self._subscriber = None
        self._on_close()

    def is_ready(self) -> bool:
        """Return last-known connectivity state."""
        return self._ready

    def mark_ready(self) -> None:
        """Record a successful round-trip (e.g. a health ping)."""
        self._on_connect()

    def mark_unavailable(self, error: BaseException) -> None:
        """Record a connection-level command failure."""
        self._on_error(error)

    def _on_connect(self) -> None:
        if not self._ready:
            logger.info(
                "Redis connected: %s:%s",
                self.settings.redis_host,
                self.settings.redis_port,
            )
        self._ready = True

    def _on_error(self, error: BaseException) -> None:
        if self._ready:
            logger.warning("Redis connection lost: %s. Cache disabled until reconnect.", error)
        else:
            logger.debug("Redis still unavailable: %s", error)
        self._ready = False

    def _on_close(self) -> None:
        if self._ready:
            logger.info("Redis connections closed")
        self._ready = False
