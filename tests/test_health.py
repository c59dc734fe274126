"""Smoke tests for health endpoints and app wiring."""

from httpx import AsyncClient

from ltnso.infrastructure.cache.redis_cache import CacheService
from tests.fakes import FakeRedis


async def test_health_returns_ok(client: AsyncClient) -> None:
    """GET /health returns 200 and status ok."""
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json().get("status") == "ok"


async def test_cache_health_reports_latency_and_memory(client: AsyncClient) -> None:
    """GET /health/cache returns ping latency and INFO memory figures."""
    response = await client.get("/health/cache")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["is_healthy"] is True
    assert data["latency_ms"] >= 0
    assert data["memory_used"] == 1024
    assert data["memory_peak"] == 2048


async def test_cache_health_unavailable_returns_503(
    client: AsyncClient, fake_redis: FakeRedis
) -> None:
    """GET /health/cache answers 503 with the error when Redis is down."""
    fake_redis.fail = True
    response = await client.get("/health/cache")
    assert response.status_code == 503
    data = response.json()
    assert data["status"] == "unavailable"
    assert data["is_healthy"] is False
    assert "Connection refused" in data["last_error"]


async def test_cache_stats_reports_counters(
    client: AsyncClient, cache_service: CacheService
) -> None:
    """GET /health/cache/stats exposes hits, misses and key count."""
    await cache_service.set("tema:1", {"id": "1"})
    await cache_service.get("tema:1")
    await cache_service.get("tema:2")
    response = await client.get("/health/cache/stats")
    assert response.status_code == 200
    data = response.json()
    assert data["hits"] == 1
    assert data["misses"] == 1
    assert data["hit_rate"] == 0.5
    assert data["keys"] == 1
    assert data["memory_usage"] == 1024
