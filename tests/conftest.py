"""Pytest configuration and fixtures for ltnso.

Cache tests run against tests.fakes.FakeRedis and service tests against
tests.fakes.FakeStore, so no Redis or PostgreSQL server is needed. HTTP
tests use ltnso.main:create_app with app.state populated by fixtures.
"""

import pytest
from httpx import ASGITransport, AsyncClient

from ltnso.core.config import Settings, get_settings
from ltnso.infrastructure.cache.client import CacheClient
from ltnso.infrastructure.cache.health import CacheHealthCheck
from ltnso.infrastructure.cache.redis_cache import CacheService
from ltnso.main import create_app
from tests.fakes import FakeRedis, FakeStore

TEST_PREFIX = "test:"


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    """Each test starts with settings re-read from the environment."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings() -> Settings:
    """Settings independent of any local .env file."""
    return Settings(
        _env_file=None,
        cache_key_prefix=TEST_PREFIX,
        cache_ttl_default=3600,
        cache_ttl_short=300,
        cache_ttl_long=86400,
        cache_health_check_interval=30.0,
    )


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
async def cache_client(settings: Settings, fake_redis: FakeRedis) -> CacheClient:
    """Connected CacheClient whose both connections are the same FakeRedis."""
    client = CacheClient(settings, command=fake_redis, subscriber=fake_redis)
    await client.connect()
    return client


@pytest.fixture
async def cache_service(cache_client: CacheClient, settings: Settings):
    service = CacheService(cache_client, settings)
    yield service
    await service.aclose()


@pytest.fixture
def store() -> FakeStore:
    return FakeStore(
        unique={
            "persona_tema": ("persona_id", "tema_id"),
            "proyecto_organizacion_rol": ("proyecto_id", "organizacion_id"),
        }
    )


@pytest.fixture
async def client(
    cache_client: CacheClient, cache_service: CacheService, settings: Settings
) -> AsyncClient:
    """Async HTTP client against the FastAPI app (ASGI), cache wired on app.state."""
    app = create_app()
    app.state.cache_client = cache_client
    app.state.cache = cache_service
    app.state.cache_health = CacheHealthCheck(cache_client, settings)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
