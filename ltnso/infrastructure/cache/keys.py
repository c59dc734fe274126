"""Cache key builders. Single place for key format (DRY).

Keys are <entity-type>:<discriminator>, where the discriminator is an id,
"list", "query:<query>", "<id>:<relation>" or "stats". The namespace prefix
is applied by CacheService (or with_prefix), never by the builders.

Id and relation components must not contain CACHE_KEY_SEP to avoid
ambiguous or colliding keys. Queries are used verbatim; callers
canonicalize them first.
"""

from collections.abc import Mapping
from enum import Enum
from typing import Any

from ltnso.core.config import get_settings
from ltnso.core.constants import (
    CACHE_KEY_SEP,
    CACHE_PATTERN_ANY,
    CACHE_SEGMENT_FILTER,
    CACHE_SEGMENT_LIMIT,
    CACHE_SEGMENT_LIST,
    CACHE_SEGMENT_PAGE,
    CACHE_SEGMENT_QUERY,
    CACHE_SEGMENT_SORT,
    CACHE_SEGMENT_STATS,
)


def _validate_key_component(value: str, name: str) -> None:
    """Raise ValueError if value contains the cache key separator.

    Args:
        value: String component used in a cache key.
        name: Name of the component (for error message).

    Raises:
        ValueError: If value is empty or contains CACHE_KEY_SEP.
    """
    if not value:
        raise ValueError(f"Cache key component {name!r} must not be empty")
    if CACHE_KEY_SEP in value:
        raise ValueError(
            f"Cache key component {name!r} must not contain separator {CACHE_KEY_SEP!r}"
        )


def _type_segment(entity_type: Enum | str) -> str:
    value = entity_type.value if isinstance(entity_type, Enum) else entity_type
    _validate_key_component(value, "entity_type")
    return value


def _join(*parts: object) -> str:
    return CACHE_KEY_SEP.join(str(p) for p in parts)


def by_id(entity_type: Enum | str, id: Any) -> str:
    """Cache key for one record (e.g. persona:42)."""
    id_str = str(id)
    _validate_key_component(id_str, "id")
    return _join(_type_segment(entity_type), id_str)


def list_key(entity_type: Enum | str) -> str:
    """Cache key for the unfiltered, default-ordered list of a type."""
    return _join(_type_segment(entity_type), CACHE_SEGMENT_LIST)


def by_query(entity_type: Enum | str, query: str) -> str:
    """Cache key for search results of query (used verbatim)."""
    return _join(_type_segment(entity_type), CACHE_SEGMENT_QUERY, query)


def relationship(entity_type: Enum | str, id: Any, relation: str) -> str:
    """Cache key for records related to id through relation (e.g. tema:7:personas)."""
    id_str = str(id)
    _validate_key_component(id_str, "id")
    _validate_key_component(relation, "relation")
    return _join(_type_segment(entity_type), id_str, relation)


def stats(entity_type: Enum | str) -> str:
    """Cache key for aggregate statistics of a type."""
    return _join(_type_segment(entity_type), CACHE_SEGMENT_STATS)


def entity_pattern(entity_type: Enum | str) -> str:
    """Glob matching every key of a type."""
    return _join(_type_segment(entity_type), CACHE_PATTERN_ANY)


def query_pattern(entity_type: Enum | str) -> str:
    """Glob matching every search-result key of a type."""
    return _join(_type_segment(entity_type), CACHE_SEGMENT_QUERY, CACHE_PATTERN_ANY)


def with_prefix(key: str, prefix: str | None = None) -> str:
    """Prepend the namespace prefix (settings.cache_key_prefix when prefix is None)."""
    if prefix is None:
        prefix = get_settings().cache_key_prefix
    if key.startswith(prefix):
        return key
    return f"{prefix}{key}"


def with_pagination(key: str, page: int, page_size: int) -> str:
    """Append a page/limit suffix (key:page:2:limit:20)."""
    return _join(key, CACHE_SEGMENT_PAGE, page, CACHE_SEGMENT_LIMIT, page_size)


def with_sort(key: str, field: str, order: Enum | str) -> str:
    """Append a sort suffix (key:sort:nombre:asc)."""
    order_str = order.value if isinstance(order, Enum) else order
    return _join(key, CACHE_SEGMENT_SORT, field, order_str)


def with_filter(key: str, filters: Mapping[str, Any]) -> str:
    """Append a filter fingerprint (key:filter:a:1:b:2).

    Entries are serialized in sorted key order so equal maps always produce
    the same key regardless of insertion order. Empty maps leave key as is.
    """
    if not filters:
        return key
    parts: list[object] = []
    for name in sorted(filters):
        value = filters[name]
        if isinstance(value, (list, tuple, set, frozenset)):
            value = ",".join(sorted(str(v) for v in value))
        elif isinstance(value, Enum):
            value = value.value
        parts.extend((name, value))
    return _join(key, CACHE_SEGMENT_FILTER, *parts)
