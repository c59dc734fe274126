"""Application configuration (settings and environment).

Single source of truth for all configuration. Uses pydantic-settings
with .env support. Cache namespace, TTL presets and pub/sub channel names
live here so call sites never hard-code them.
"""

from functools import lru_cache
from typing import Literal

from pydantic import SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment and .env.

    All settings have defaults; validate_cache_settings rejects TTL presets
    and retry bounds that would make the cache layer misbehave.
    """

    # App
    app_name: str = "ltnso"
    app_version: str = "1.0.0"
    debug: bool = False
    # Level of the cache loggers (DEBUG logs every cache hit and miss)
    cache_log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Backing store (async SQLAlchemy URL, e.g. postgresql+asyncpg://...)
    database_url: str = ""
    database_echo: bool = False
    db_pool_size: int | None = None
    db_max_overflow: int | None = None
    # PostgreSQL text search configuration used by search()
    text_search_config: str = "spanish"

    # Redis connection
    redis_enabled: bool = True
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_db: int = 0
    redis_password: SecretStr | None = None
    redis_socket_connect_timeout: float = 10.0
    redis_socket_timeout: float | None = 5.0
    # Per-command retries on transient connection loss: delay = min(attempt * step, cap)
    redis_max_retries: int = 3
    redis_retry_step_ms: int = 50
    redis_retry_cap_ms: int = 2000

    # Cache namespace and TTL presets (seconds)
    cache_key_prefix: str = "ltnso:"
    cache_ttl_default: int = 3600  # 1 hour
    cache_ttl_short: int = 300  # 5 minutes
    cache_ttl_long: int = 86400  # 24 hours

    # Pub/sub channels
    cache_invalidation_channel: str = "cache:invalidation"
    cache_health_channel: str = "health:check"
    cache_health_check_interval: float = 30.0
    # Seconds the invalidation subscriber waits before resubscribing after a failure
    cache_subscriber_retry_interval: float = 5.0

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    @model_validator(mode="after")
    def validate_cache_settings(self) -> "Settings":
        """Validate cache namespace, TTL presets and retry bounds."""
        if not self.cache_key_prefix:
            raise ValueError("CACHE_KEY_PREFIX must not be empty.")
        for name in ("cache_ttl_default", "cache_ttl_short", "cache_ttl_long"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name.upper()} must be a positive number of seconds.")
        if self.redis_max_retries < 0:
            raise ValueError("REDIS_MAX_RETRIES must be >= 0.")
        if self.redis_retry_cap_ms < self.redis_retry_step_ms:
            raise ValueError(
                "REDIS_RETRY_CAP_MS must be greater than or equal to REDIS_RETRY_STEP_MS."
            )
        return self


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings (single instance per process).

    Validation runs on first call, not at import time. In tests, call
    get_settings.cache_clear() before overriding env vars so the next
    get_settings() uses the new values.

    Returns:
        Loaded and validated Settings instance.
    """
    return Settings()
