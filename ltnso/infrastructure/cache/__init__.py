"""Cache: Redis client, key builders, cache service and health check.

Used by the application services for read-through/write-through caching.
CacheService uses ltnso.core.config; key format is in keys.py (DRY).
"""

from ltnso.infrastructure.cache import keys
from ltnso.infrastructure.cache.client import CacheClient, LinearBackoff
from ltnso.infrastructure.cache.health import CacheHealthCheck
from ltnso.infrastructure.cache.redis_cache import CacheService

__all__ = [
    "CacheClient",
    "CacheHealthCheck",
    "CacheService",
    "LinearBackoff",
    "keys",
]
