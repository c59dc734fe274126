"""Tests for cache key builders (format, determinism, component validation)."""

import pytest

from ltnso.domain.enums import EntityType, SortOrder
from ltnso.infrastructure.cache import keys


def test_by_id_is_deterministic() -> None:
    """by_id returns the same string for the same inputs."""
    assert keys.by_id("persona", "42") == "persona:42"
    assert keys.by_id("persona", "42") == keys.by_id(EntityType.PERSONA, "42")


def test_entity_key_shapes() -> None:
    """Every discriminator follows <entity>:<discriminator>."""
    assert keys.list_key(EntityType.TEMA) == "tema:list"
    assert keys.by_query(EntityType.TEMA, "agro") == "tema:query:agro"
    assert keys.relationship(EntityType.TEMA, 7, "personas") == "tema:7:personas"
    assert keys.stats(EntityType.HISTORIA_ORAL) == "historia_oral:stats"


def test_patterns() -> None:
    """Invalidation globs cover the entity namespace and its query keys."""
    assert keys.entity_pattern(EntityType.NOTICIA) == "noticia:*"
    assert keys.query_pattern(EntityType.NOTICIA) == "noticia:query:*"


def test_query_used_verbatim() -> None:
    """by_query does not canonicalize; callers do."""
    assert keys.by_query("tema", "Agro") != keys.by_query("tema", "agro")


def test_id_with_separator_rejected() -> None:
    """Ids containing ':' would collide with other key shapes."""
    with pytest.raises(ValueError, match="must not contain separator"):
        keys.by_id("persona", "a:b")


def test_relation_with_separator_rejected() -> None:
    with pytest.raises(ValueError):
        keys.relationship("persona", "1", "temas:extra")


def test_empty_id_rejected() -> None:
    with pytest.raises(ValueError, match="must not be empty"):
        keys.by_id("persona", "")


def test_with_prefix_uses_explicit_prefix_once() -> None:
    """with_prefix prepends the namespace and does not double it."""
    key = keys.with_prefix("persona:1", "ltnso:")
    assert key == "ltnso:persona:1"
    assert keys.with_prefix(key, "ltnso:") == key


def test_with_prefix_defaults_to_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    """Without an explicit prefix, CACHE_KEY_PREFIX from settings is used."""
    monkeypatch.setenv("CACHE_KEY_PREFIX", "env:")
    assert keys.with_prefix("persona:1") == "env:persona:1"


def test_with_pagination_and_sort() -> None:
    base = keys.list_key("noticia")
    assert keys.with_pagination(base, 2, 20) == "noticia:list:page:2:limit:20"
    assert keys.with_sort(base, "titulo", SortOrder.DESC) == "noticia:list:sort:titulo:desc"
    assert keys.with_sort(base, "titulo", "asc") == "noticia:list:sort:titulo:asc"


def test_with_filter_is_order_independent() -> None:
    """Two maps with the same entries in different insertion order give one key."""
    first = {"categoria": "agro", "estado": "activo", "anio": 2024}
    second = {"anio": 2024, "estado": "activo", "categoria": "agro"}
    key_a = keys.with_filter("proyecto:list", first)
    key_b = keys.with_filter("proyecto:list", second)
    assert key_a == key_b
    assert key_a == "proyecto:list:filter:anio:2024:categoria:agro:estado:activo"


def test_with_filter_sorts_collection_values() -> None:
    assert keys.with_filter("tema:list", {"id": ["3", "1", "2"]}) == "tema:list:filter:id:1,2,3"


def test_with_filter_empty_map_leaves_key() -> None:
    assert keys.with_filter("tema:list", {}) == "tema:list"


def test_helpers_compose() -> None:
    key = keys.with_sort(
        keys.with_pagination(keys.with_filter("persona:list", {"b": 1, "a": 2}), 1, 10),
        "nombre",
        "asc",
    )
    assert key == "persona:list:filter:a:2:b:1:page:1:limit:10:sort:nombre:asc"
