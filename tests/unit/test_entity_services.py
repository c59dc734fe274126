"""Tests for the entity services registry and relation caching."""

import pytest

from ltnso.application.services.entities import (
    EntityServices,
    HistoriasOralesService,
    PersonasService,
    build_entity_services,
)
from ltnso.core.config import Settings
from ltnso.domain.entities import Organizacion, Tema
from ltnso.domain.enums import EntityType
from ltnso.infrastructure.cache.redis_cache import CacheService
from tests.fakes import FakeRedis, FakeStore


@pytest.fixture
def services(store: FakeStore, cache_service: CacheService, settings: Settings) -> EntityServices:
    return build_entity_services(store, cache_service, settings)


def test_registry_covers_every_entity_type(services: EntityServices) -> None:
    for entity_type in EntityType:
        assert services.by_type(entity_type).ENTITY_TYPE is entity_type


def test_ttl_presets(services: EntityServices, settings: Settings) -> None:
    assert services.temas.cache.config.ttl == settings.cache_ttl_short
    assert services.historias_orales.cache.config.ttl == 300
    assert services.personas.cache.config.ttl == settings.cache_ttl_default


def test_tables_and_search_fields(services: EntityServices) -> None:
    assert services.historias_orales.table_name == "historias_orales"
    assert services.noticias.search_field == "titulo"
    assert services.personas.search_field == "nombre"
    assert services.personas.list_columns[0] == "id"


async def test_temas_ttl_is_applied(services: EntityServices, fake_redis: FakeRedis) -> None:
    created = await services.temas.create({"nombre": "Riego"})
    assert fake_redis.ttls[f"test:tema:{created.data.id}"] == 300


async def test_personas_validate_email(services: EntityServices, store: FakeStore) -> None:
    result = await services.personas.create({"nombre": "Ana", "email": "no-es-un-email"})
    assert result.error.error_code == "VALIDATION_ERROR"
    assert result.error.details["field"] == "email"
    assert store.calls == []
    ok = await services.personas.create({"nombre": "Ana", "email": "ana@ltnso.org"})
    assert ok.success


async def test_ofertas_require_empresa(services: EntityServices) -> None:
    result = await services.ofertas_laborales.create({"titulo": "Técnico de campo"})
    assert result.error.details["field"] == "empresa"


def test_cache_can_be_disabled(store: FakeStore, cache_service: CacheService, settings: Settings) -> None:
    service = HistoriasOralesService(store, cache_service, settings, enable_cache=False)
    assert service.cache.enabled is False


async def test_persona_temas_are_cached_and_invalidated_on_both_sides(
    services: EntityServices, store: FakeStore, fake_redis: FakeRedis
) -> None:
    persona = (await services.personas.create({"nombre": "Ana"})).data
    riego = (await services.temas.create({"nombre": "Riego"})).data
    suelos = (await services.temas.create({"nombre": "Suelos"})).data
    await services.personas.add_tema(persona.id, riego.id)

    first = await services.personas.get_temas(persona.id)
    assert [t.nombre for t in first.data] == ["Riego"]
    assert isinstance(first.data[0], Tema)
    assert f"test:persona:{persona.id}:temas" in fake_redis.data
    selects = store.count_calls("select", "persona_tema")
    await services.personas.get_temas(persona.id)
    assert store.count_calls("select", "persona_tema") == selects

    assert [p.id for p in (await services.temas.get_personas(riego.id)).data] == [persona.id]
    assert f"test:tema:{riego.id}:personas" in fake_redis.data

    await services.personas.add_tema(persona.id, suelos.id)
    assert f"test:persona:{persona.id}:temas" not in fake_redis.data
    names = sorted(t.nombre for t in (await services.personas.get_temas(persona.id)).data)
    assert names == ["Riego", "Suelos"]

    await services.personas.remove_tema(persona.id, riego.id)
    assert f"test:tema:{riego.id}:personas" not in fake_redis.data
    assert (await services.temas.get_personas(riego.id)).data == []


async def test_duplicate_persona_tema_keeps_cache(
    services: EntityServices, fake_redis: FakeRedis
) -> None:
    await services.personas.add_tema("p1", "t1")
    await services.personas.get_temas("p1")
    result = await services.personas.add_tema("p1", "t1")
    assert result.error.error_code == "RELATIONSHIP_ALREADY_EXISTS"
    assert "test:persona:p1:temas" in fake_redis.data


async def test_proyecto_organizaciones_with_role(services: EntityServices) -> None:
    proyecto = (await services.proyectos.create({"nombre": "Huertas"})).data
    org = (await services.organizaciones.create({"nombre": "Cooperativa"})).data
    added = await services.proyectos.add_organizacion(proyecto.id, org.id, rol="ejecutor")
    assert added.data["rol"] == "ejecutor"

    related = await services.proyectos.get_organizaciones(proyecto.id)
    assert isinstance(related.data[0], Organizacion)
    roles = await services.proyectos.get_organizacion_roles(proyecto.id)
    assert roles.data[0]["rol"] == "ejecutor"

    await services.proyectos.remove_organizacion(proyecto.id, org.id)
    assert (await services.proyectos.get_organizaciones(proyecto.id)).data == []


async def test_tema_entrevistas(services: EntityServices, store: FakeStore) -> None:
    tema = (await services.temas.create({"nombre": "Agua"})).data
    entrevista = (await services.entrevistas.create({"titulo": "Pozos"})).data
    store.seed("entrevista_tema", {"tema_id": tema.id, "entrevista_id": entrevista.id})
    result = await services.temas.get_entrevistas(tema.id)
    assert [e.titulo for e in result.data] == ["Pozos"]


def test_personas_service_has_relationship(services: EntityServices) -> None:
    assert isinstance(services.personas, PersonasService)
    assert services.personas.temas.table == "persona_tema"
