"""Tests for InvalidationSubscriber (lazy invalidation sweeps)."""

import asyncio
import json

import pytest

from ltnso.core.config import Settings
from ltnso.domain.enums import InvalidationStrategy
from ltnso.infrastructure.cache.client import CacheClient
from ltnso.infrastructure.cache.redis_cache import CacheService
from ltnso.infrastructure.messaging.redis_pubsub import InvalidationSubscriber
from tests.fakes import FakeRedis


def _message(pattern: str) -> dict:
    return {"type": "message", "channel": "cache:invalidation", "data": json.dumps({"pattern": pattern})}


async def test_published_pattern_is_swept(
    cache_client: CacheClient, cache_service: CacheService, fake_redis: FakeRedis
) -> None:
    """A LAZY invalidation becomes a sweep once the subscriber handles the message."""
    await cache_service.set("persona:1", {})
    await cache_service.set("tema:1", {})
    await cache_service.invalidate("persona:*", InvalidationStrategy.LAZY)
    _, payload = fake_redis.published[-1]
    subscriber = InvalidationSubscriber(cache_client, cache_service)
    deleted = await subscriber.handle_message({"type": "message", "data": payload})
    assert deleted == 1
    assert list(fake_redis.data) == ["test:tema:1"]


async def test_pattern_outside_prefix_is_ignored(
    cache_client: CacheClient, cache_service: CacheService, fake_redis: FakeRedis
) -> None:
    fake_redis.data["other:persona:1"] = "{}"
    subscriber = InvalidationSubscriber(cache_client, cache_service)
    assert await subscriber.handle_message(_message("other:persona:*")) == 0
    assert "other:persona:1" in fake_redis.data
    assert subscriber.processed == 0


async def test_malformed_messages_are_skipped(
    cache_client: CacheClient, cache_service: CacheService
) -> None:
    subscriber = InvalidationSubscriber(cache_client, cache_service)
    assert await subscriber.handle_message({"type": "message", "data": "not json"}) == 0
    assert await subscriber.handle_message({"type": "message", "data": "[1, 2]"}) == 0
    assert await subscriber.handle_message({"type": "message", "data": "{}"}) == 0
    assert await subscriber.handle_message({"type": "subscribe", "data": 1}) == 0
    assert subscriber.processed == 0


async def test_listen_once_processes_queued_messages_then_unsubscribes(
    cache_client: CacheClient,
    cache_service: CacheService,
    fake_redis: FakeRedis,
) -> None:
    await cache_service.set("noticia:1", {})
    fake_redis.pubsub_messages.extend(
        [{"type": "message", "data": "garbage"}, _message("test:noticia:*")]
    )
    subscriber = InvalidationSubscriber(cache_client, cache_service)
    await subscriber.listen_once()
    assert subscriber.processed == 1
    assert "test:noticia:1" not in fake_redis.data


async def test_listen_once_waits_while_redis_is_down(settings: Settings) -> None:
    fake = FakeRedis()
    fake.fail = True
    client = CacheClient(settings, command=fake, subscriber=fake)
    await client.connect()
    subscriber = InvalidationSubscriber(client, CacheService(client, settings))
    await subscriber.listen_once()
    assert fake.subscriptions == 0


async def test_run_returns_when_redis_disabled() -> None:
    settings = Settings(_env_file=None, redis_enabled=False)
    client = CacheClient(settings)
    subscriber = InvalidationSubscriber(client, CacheService(client, settings))
    await asyncio.wait_for(subscriber.run(), timeout=1)
    assert subscriber.processed == 0


async def _wait_for(condition, attempts: int = 200) -> None:
    for _ in range(attempts):
        if condition():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition not reached")


async def test_run_resubscribes_after_subscription_failure(
    cache_client: CacheClient,
    cache_service: CacheService,
    fake_redis: FakeRedis,
) -> None:
    """A dropped subscription is retried and later invalidations are still swept."""
    await cache_service.set("curso:1", {})
    fake_redis.subscribe_failures = 1
    fake_redis.pubsub_messages.append(_message("test:curso:*"))
    subscriber = InvalidationSubscriber(cache_client, cache_service, retry_interval=0)
    task = asyncio.create_task(subscriber.run())
    try:
        await _wait_for(lambda: subscriber.processed == 1)
    finally:
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
    assert fake_redis.subscriptions >= 2
    assert "test:curso:1" not in fake_redis.data


async def test_run_picks_up_redis_that_recovers_after_startup(settings: Settings) -> None:
    fake = FakeRedis()
    fake.fail = True
    client = CacheClient(settings, command=fake, subscriber=fake)
    await client.connect()
    cache = CacheService(client, settings)
    fake.pubsub_messages.append(_message("test:curso:*"))
    subscriber = InvalidationSubscriber(client, cache, retry_interval=0)
    task = asyncio.create_task(subscriber.run())
    try:
        await asyncio.sleep(0)
        assert subscriber.processed == 0
        fake.fail = False
        client.mark_ready()
        await _wait_for(lambda: subscriber.processed == 1)
    finally:
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
