"""Per-entity-type cache facade: typed get/set over the shared CacheService.

Each entity service owns one CacheableService bound to its entity type,
TTL and record model. Values are JSON in Redis and pydantic records here;
a cached value that no longer validates is treated as a miss and dropped.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from pydantic import TypeAdapter, ValidationError

from ltnso.domain.entities import EntityRecord
from ltnso.domain.enums import EntityType, InvalidationStrategy
from ltnso.infrastructure.cache import keys
from ltnso.infrastructure.cache.redis_cache import CacheService

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=EntityRecord)

_STATS_ADAPTER: TypeAdapter[dict[str, Any]] = TypeAdapter(dict[str, Any])


@dataclass(frozen=True)
class CacheableConfig:
    """Cache settings of one entity service."""

    entity_type: EntityType
    ttl: int
    enable_cache: bool = True


class CacheableService(Generic[RecordT]):
    """Typed cache-aside helpers for one entity type.

    With enable_cache=False every read is a miss and every write a no-op.
    """

    def __init__(
        self,
        cache: CacheService,
        config: CacheableConfig,
        record_type: type[RecordT],
    ) -> None:
        self.cache = cache
        self.config = config
        self.record_type = record_type
        self._list_adapter: TypeAdapter[list[RecordT]] = TypeAdapter(list[record_type])

    @property
    def entity_type(self) -> EntityType:
        return self.config.entity_type

    @property
    def enabled(self) -> bool:
        return self.config.enable_cache

    def _key(
        self,
        build: Callable[..., str],
        *parts: Any,
        entity_type: EntityType | None = None,
    ) -> str | None:
        """Build a key, or None when caching is off or the id cannot be keyed."""
        if not self.enabled:
            return None
        try:
            return build(entity_type or self.entity_type, *parts)
        except ValueError as e:
            logger.debug("Skipping cache for %s: %s", (entity_type or self.entity_type).value, e)
            return None

    async def _read(self, key: str | None, adapter: Any) -> Any | None:
        if key is None:
            return None
        raw = await self.cache.get(key)
        if raw is None:
            return None
        try:
            return adapter(raw)
        except ValidationError:
            logger.warning("Discarding cached value that failed validation: %s", key)
            await self.cache.delete(key)
            return None

    async def _write(self, key: str | None, value: Any) -> bool:
        if key is None:
            return False
        return await self.cache.set(key, value, ttl=self.config.ttl)

    async def get_from_cache(self, id: Any) -> RecordT | None:
        """Return the cached record for id, or None on miss."""
        return await self._read(self._key(keys.by_id, id), self.record_type.model_validate)

    async def set_in_cache(self, id: Any, record: RecordT) -> bool:
        return await self._write(self._key(keys.by_id, id), record)

    async def get_list_from_cache(self) -> list[RecordT] | None:
        """Return the cached unfiltered list, or None on miss."""
        return await self._read(self._key(keys.list_key), self._list_adapter.validate_python)

    async def set_list_in_cache(self, records: Sequence[RecordT]) -> bool:
        return await self._write(self._key(keys.list_key), list(records))

    async def get_query_from_cache(self, query: str) -> list[RecordT] | None:
        """Return cached search results for an already-canonical query."""
        return await self._read(
            self._key(keys.by_query, query), self._list_adapter.validate_python
        )

    async def set_query_in_cache(self, query: str, records: Sequence[RecordT]) -> bool:
        return await self._write(self._key(keys.by_query, query), list(records))

    async def get_stats_from_cache(self) -> dict[str, Any] | None:
        """Return cached aggregate statistics for the type."""
        return await self._read(self._key(keys.stats), _STATS_ADAPTER.validate_python)

    async def set_stats_in_cache(self, stats: Mapping[str, Any]) -> bool:
        return await self._write(self._key(keys.stats), dict(stats))

    async def get_relation_from_cache(
        self,
        id: Any,
        relation: str,
        record_type: type[EntityRecord] = EntityRecord,
    ) -> list[EntityRecord] | None:
        """Return cached records related to id through relation, or None on miss."""
        adapter = TypeAdapter(list[record_type])
        return await self._read(
            self._key(keys.relationship, id, relation), adapter.validate_python
        )

    async def set_relation_in_cache(
        self, id: Any, relation: str, records: Sequence[EntityRecord]
    ) -> bool:
        return await self._write(self._key(keys.relationship, id, relation), list(records))

    async def invalidate_cache(self, id: Any | None = None) -> None:
        """Drop the item key (when id is given), the list key and every query key."""
        if not self.enabled:
            return
        stale = [keys.list_key(self.entity_type)]
        if id is not None:
            item = self._key(keys.by_id, id)
            if item is not None:
                stale.insert(0, item)
        await self.cache.delete(*stale)
        await self.cache.invalidate(
            keys.query_pattern(self.entity_type), InvalidationStrategy.IMMEDIATE
        )

    async def invalidate_related_caches(
        self,
        id: Any,
        relation_names: Iterable[str],
        *,
        entity_type: EntityType | None = None,
    ) -> None:
        """Drop only the named relation keys of id.

        entity_type addresses the other side of a relation (e.g. the
        tema:<id>:personas key after a persona_tema change).
        """
        stale = [
            key
            for name in relation_names
            if (key := self._key(keys.relationship, id, name, entity_type=entity_type))
        ]
        if stale:
            await self.cache.delete(*stale)

    async def invalidate_all(
        self, strategy: InvalidationStrategy = InvalidationStrategy.IMMEDIATE
    ) -> None:
        """Drop every key of this entity type."""
        if not self.enabled:
            return
        await self.cache.invalidate(keys.entity_pattern(self.entity_type), strategy)
