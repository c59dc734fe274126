"""Tests for domain records, enums and query DTOs."""

from datetime import date
from uuid import uuid4

import pytest

from ltnso.application.dtos.cache import CacheEntry, CacheStats
from ltnso.application.dtos.query import Page, QueryOptions, Range, Sort
from ltnso.application.dtos.result import ServiceResult
from ltnso.domain.entities import RECORD_TYPES, EntityRecord, Proyecto, Tema
from ltnso.domain.enums import CacheTtl, EntityType, InvalidationStrategy, SortOrder
from ltnso.domain.exceptions import ValidationException


def test_entity_type_values() -> None:
    assert "historia_oral" in EntityType.values()
    assert EntityType.TEMA == "tema"
    assert len(EntityType.values()) == 9


def test_other_enum_values() -> None:
    assert SortOrder.values() == ["asc", "desc"]
    assert InvalidationStrategy.values() == ["immediate", "lazy", "scheduled"]
    assert CacheTtl.values() == ["short", "default", "long"]


def test_every_entity_type_has_a_record_type() -> None:
    assert set(RECORD_TYPES) == set(EntityType)
    assert RECORD_TYPES[EntityType.TEMA] is Tema


def test_record_keeps_unknown_columns() -> None:
    tema = Tema.model_validate({"id": 3, "nombre": "Agua", "orden": 2})
    assert tema.nombre == "Agua"
    assert tema.model_extra == {"orden": 2}
    assert tema.to_row() == {"id": 3, "nombre": "Agua", "orden": 2}


def test_record_parses_dates() -> None:
    proyecto = Proyecto.model_validate({"nombre": "Huertas", "fecha_inicio": "2024-03-01"})
    assert proyecto.fecha_inicio == date(2024, 3, 1)
    assert proyecto.to_row()["fecha_inicio"] == "2024-03-01"


def test_uuid_columns_are_carried_as_strings() -> None:
    record_id, user_id = uuid4(), uuid4()
    record = EntityRecord.model_validate({"id": record_id, "deleted_by": user_id})
    assert record.id == str(record_id)
    assert record.deleted_by == str(user_id)


def test_base_record_defaults() -> None:
    record = EntityRecord()
    assert record.id is None
    assert record.is_deleted is None


def test_plain_query_options_are_cacheable() -> None:
    assert QueryOptions().is_cacheable


@pytest.mark.parametrize(
    "options",
    [
        QueryOptions(filters={"categoria": "agro"}),
        QueryOptions(page=1),
        QueryOptions(page_size=10),
        QueryOptions(sort_by="nombre"),
        QueryOptions(columns=("id",)),
        QueryOptions(include_deleted=True),
        QueryOptions(bypass_cache=True),
    ],
)
def test_non_plain_query_options_are_not_cacheable(options: QueryOptions) -> None:
    assert not options.is_cacheable


def test_query_options_range_and_sort() -> None:
    options = QueryOptions(page=3, page_size=10, sort_by="nombre", sort_order=SortOrder.DESC)
    assert options.to_range() == Range(offset=20, limit=10)
    assert options.to_sort() == Sort("nombre", SortOrder.DESC)
    assert QueryOptions().to_range() is None
    assert QueryOptions().to_sort(Sort("fecha")) == Sort("fecha")


def test_page_total_pages() -> None:
    assert Page(items=[], total=41, page=1, page_size=20).total_pages == 3
    assert Page(items=[], total=0, page=1, page_size=20).total_pages == 0


def test_service_result() -> None:
    assert ServiceResult.ok(5).unwrap() == 5
    failed = ServiceResult.fail(ValidationException("bad"))
    assert not failed.success
    with pytest.raises(ValidationException):
        failed.unwrap()


def test_cache_stats_hit_rate() -> None:
    assert CacheStats(hits=3, misses=1, keys=4, memory_usage=0).hit_rate == 0.75
    assert CacheStats(hits=0, misses=0, keys=0, memory_usage=0).hit_rate == 0.0


def test_cache_entry_records_creation_time() -> None:
    entry = CacheEntry(key="ltnso:tema:1", value={"nombre": "Agua"}, ttl=300)
    assert entry.created_at.tzinfo is not None
    assert entry.ttl == 300
