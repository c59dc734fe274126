"""Entity services: one BaseService per entity type, plus relation helpers.

Each service only declares its table, entity type, record model, TTL preset,
search field, default order, list projection and required fields. Relation
reads (e.g. the temas of a persona) are cached under <entity>:<id>:<relation>
and both sides are invalidated when a junction row is added or removed.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, fields
from typing import TYPE_CHECKING, Any, ClassVar, TypeVar

from ltnso.application.dtos.query import QueryOptions, Sort
from ltnso.application.dtos.result import ServiceResult
from ltnso.application.services.base_service import BaseService, SoftDeleteColumns
from ltnso.application.services.cacheable_service import CacheableConfig, CacheableService
from ltnso.application.services.relationship_service import RelationshipService
from ltnso.application.services.validators import RequiredFieldsValidator
from ltnso.core.config import Settings, get_settings
from ltnso.domain.entities import (
    Curso,
    EntityRecord,
    Entrevista,
    HistoriaOral,
    Noticia,
    OfertaLaboral,
    Organizacion,
    Persona,
    Proyecto,
    Tema,
)
from ltnso.domain.enums import CacheTtl, EntityType, SortOrder

if TYPE_CHECKING:
    from ltnso.application.interfaces.store import BackingStore, Row
    from ltnso.infrastructure.cache.redis_cache import CacheService

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=EntityRecord)


class EntityService(BaseService[RecordT]):
    """BaseService configured from class-level declarations."""

    TABLE: ClassVar[str]
    ENTITY_TYPE: ClassVar[EntityType]
    RECORD_TYPE: ClassVar[type[EntityRecord]]
    TTL: ClassVar[CacheTtl] = CacheTtl.DEFAULT
    SEARCH_FIELD: ClassVar[str] = "nombre"
    DEFAULT_SORT: ClassVar[Sort | None] = None
    LIST_COLUMNS: ClassVar[tuple[str, ...] | None] = None
    REQUIRED_FIELDS: ClassVar[tuple[str, ...]] = ()
    EMAIL_FIELDS: ClassVar[tuple[str, ...]] = ()

    def __init__(
        self,
        store: BackingStore,
        cache_service: CacheService,
        settings: Settings | None = None,
        *,
        enable_cache: bool = True,
    ) -> None:
        settings = settings or get_settings()
        ttl = getattr(settings, f"cache_ttl_{self.TTL.value}")
        cache: CacheableService[Any] = CacheableService(
            cache_service,
            CacheableConfig(self.ENTITY_TYPE, ttl, enable_cache),
            self.RECORD_TYPE,
        )
        super().__init__(
            store,
            cache,
            table_name=self.TABLE,
            validator=RequiredFieldsValidator(
                self.REQUIRED_FIELDS, email_fields=self.EMAIL_FIELDS
            ),
            search_field=self.SEARCH_FIELD,
            default_sort=self.DEFAULT_SORT,
            list_columns=self.LIST_COLUMNS,
            soft_delete=SoftDeleteColumns(),
        )

    async def _get_related_cached(
        self,
        id: Any,
        relation: str,
        target: type[EntityService[Any]],
        junction_table: str,
    ) -> ServiceResult[list[EntityRecord]]:
        """Relation read through the relation cache (plain reads only)."""
        cached = await self.cache.get_relation_from_cache(id, relation, target.RECORD_TYPE)
        if cached is not None:
            return ServiceResult.ok(cached)
        result = await self.get_related_entities(
            id,
            self.TABLE,
            target.TABLE,
            junction_table,
            QueryOptions(filters={"is_deleted": False}),
            record_type=target.RECORD_TYPE,
        )
        if result.success and result.data is not None:
            await self.cache.set_relation_in_cache(id, relation, result.data)
        return result

    async def _invalidate_relation_pair(
        self,
        id: Any,
        relation: str,
        other_type: EntityType,
        other_id: Any,
        other_relation: str,
    ) -> None:
        await self.cache.invalidate_related_caches(id, [relation])
        await self.cache.invalidate_related_caches(
            other_id, [other_relation], entity_type=other_type
        )


class PersonasService(EntityService[Persona]):
    TABLE = "personas"
    ENTITY_TYPE = EntityType.PERSONA
    RECORD_TYPE = Persona
    DEFAULT_SORT = Sort("nombre")
    LIST_COLUMNS = ("id", "nombre", "email", "foto_url", "biografia", "categoria_principal")
    REQUIRED_FIELDS = ("nombre",)
    EMAIL_FIELDS = ("email",)

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.temas = RelationshipService(self.store, "persona_tema", "persona_id", "tema_id")

    async def get_temas(self, persona_id: Any) -> ServiceResult[list[EntityRecord]]:
        return await self._get_related_cached(persona_id, "temas", TemasService, "persona_tema")

    async def add_tema(self, persona_id: Any, tema_id: Any) -> ServiceResult[Row]:
        result = await self.temas.add_relationship(persona_id, tema_id)
        if result.success:
            await self._invalidate_relation_pair(
                persona_id, "temas", EntityType.TEMA, tema_id, "personas"
            )
        return result

    async def remove_tema(self, persona_id: Any, tema_id: Any) -> ServiceResult[bool]:
        result = await self.temas.remove_relationship(persona_id, tema_id)
        if result.success:
            await self._invalidate_relation_pair(
                persona_id, "temas", EntityType.TEMA, tema_id, "personas"
            )
        return result


class OrganizacionesService(EntityService[Organizacion]):
    TABLE = "organizaciones"
    ENTITY_TYPE = EntityType.ORGANIZACION
    RECORD_TYPE = Organizacion
    DEFAULT_SORT = Sort("nombre")
    REQUIRED_FIELDS = ("nombre",)
    EMAIL_FIELDS = ("email",)


class TemasService(EntityService[Tema]):
    TABLE = "temas"
    ENTITY_TYPE = EntityType.TEMA
    RECORD_TYPE = Tema
    TTL = CacheTtl.SHORT
    DEFAULT_SORT = Sort("nombre")
    REQUIRED_FIELDS = ("nombre",)

    async def get_personas(self, tema_id: Any) -> ServiceResult[list[EntityRecord]]:
        return await self._get_related_cached(tema_id, "personas", PersonasService, "persona_tema")

    async def get_entrevistas(self, tema_id: Any) -> ServiceResult[list[EntityRecord]]:
        return await self._get_related_cached(
            tema_id, "entrevistas", EntrevistasService, "entrevista_tema"
        )


class ProyectosService(EntityService[Proyecto]):
    TABLE = "proyectos"
    ENTITY_TYPE = EntityType.PROYECTO
    RECORD_TYPE = Proyecto
    DEFAULT_SORT = Sort("fecha_inicio", SortOrder.DESC)
    REQUIRED_FIELDS = ("nombre",)

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.organizaciones = RelationshipService(
            self.store, "proyecto_organizacion_rol", "proyecto_id", "organizacion_id"
        )

    async def get_organizaciones(self, proyecto_id: Any) -> ServiceResult[list[EntityRecord]]:
        return await self._get_related_cached(
            proyecto_id, "organizaciones", OrganizacionesService, "proyecto_organizacion_rol"
        )

    async def get_organizacion_roles(self, proyecto_id: Any) -> ServiceResult[list[Row]]:
        """Junction rows (organizacion_id, rol) of a project; not cached."""
        return await self.organizaciones.get_relationship_rows(proyecto_id)

    async def add_organizacion(
        self,
        proyecto_id: Any,
        organizacion_id: Any,
        rol: str | None = None,
        attributes: Mapping[str, Any] | None = None,
    ) -> ServiceResult[Row]:
        extra = dict(attributes or {})
        if rol is not None:
            extra["rol"] = rol
        result = await self.organizaciones.add_relationship(proyecto_id, organizacion_id, extra)
        if result.success:
            await self._invalidate_relation_pair(
                proyecto_id, "organizaciones", EntityType.ORGANIZACION, organizacion_id, "proyectos"
            )
        return result

    async def remove_organizacion(
        self, proyecto_id: Any, organizacion_id: Any
    ) -> ServiceResult[bool]:
        result = await self.organizaciones.remove_relationship(proyecto_id, organizacion_id)
        if result.success:
            await self._invalidate_relation_pair(
                proyecto_id, "organizaciones", EntityType.ORGANIZACION, organizacion_id, "proyectos"
            )
        return result


class EntrevistasService(EntityService[Entrevista]):
    TABLE = "entrevistas"
    ENTITY_TYPE = EntityType.ENTREVISTA
    RECORD_TYPE = Entrevista
    SEARCH_FIELD = "titulo"
    DEFAULT_SORT = Sort("fecha", SortOrder.DESC)
    REQUIRED_FIELDS = ("titulo",)


class NoticiasService(EntityService[Noticia]):
    TABLE = "noticias"
    ENTITY_TYPE = EntityType.NOTICIA
    RECORD_TYPE = Noticia
    TTL = CacheTtl.SHORT
    SEARCH_FIELD = "titulo"
    DEFAULT_SORT = Sort("fecha_publicacion", SortOrder.DESC)
    REQUIRED_FIELDS = ("titulo",)


class CursosService(EntityService[Curso]):
    TABLE = "cursos"
    ENTITY_TYPE = EntityType.CURSO
    RECORD_TYPE = Curso
    SEARCH_FIELD = "titulo"
    DEFAULT_SORT = Sort("fecha_inicio", SortOrder.DESC)
    REQUIRED_FIELDS = ("titulo",)


class HistoriasOralesService(EntityService[HistoriaOral]):
    TABLE = "historias_orales"
    ENTITY_TYPE = EntityType.HISTORIA_ORAL
    RECORD_TYPE = HistoriaOral
    TTL = CacheTtl.SHORT
    SEARCH_FIELD = "titulo"
    DEFAULT_SORT = Sort("fecha_registro", SortOrder.DESC)
    REQUIRED_FIELDS = ("titulo",)


class OfertasLaboralesService(EntityService[OfertaLaboral]):
    TABLE = "ofertas_laborales"
    ENTITY_TYPE = EntityType.OFERTA_LABORAL
    RECORD_TYPE = OfertaLaboral
    TTL = CacheTtl.SHORT
    SEARCH_FIELD = "titulo"
    DEFAULT_SORT = Sort("fecha_cierre", SortOrder.ASC)
    REQUIRED_FIELDS = ("titulo", "empresa")


@dataclass(frozen=True)
class EntityServices:
    """Registry of all entity services."""

    personas: PersonasService
    organizaciones: OrganizacionesService
    temas: TemasService
    proyectos: ProyectosService
    entrevistas: EntrevistasService
    noticias: NoticiasService
    cursos: CursosService
    historias_orales: HistoriasOralesService
    ofertas_laborales: OfertasLaboralesService

    def by_type(self, entity_type: EntityType) -> EntityService[Any]:
        for f in fields(self):
            service: EntityService[Any] = getattr(self, f.name)
            if service.ENTITY_TYPE is entity_type:
                return service
        raise KeyError(entity_type)


S = TypeVar("S", bound="EntityService[Any]")


def build_entity_services(
    store: BackingStore,
    cache_service: CacheService,
    settings: Settings | None = None,
    *,
    enable_cache: bool = True,
) -> EntityServices:
    """Build every entity service over one store and one cache service."""
    settings = settings or get_settings()

    def build(cls: type[S]) -> S:
        return cls(store, cache_service, settings, enable_cache=enable_cache)

    return EntityServices(
        personas=build(PersonasService),
        organizaciones=build(OrganizacionesService),
        temas=build(TemasService),
        proyectos=build(ProyectosService),
        entrevistas=build(EntrevistasService),
        noticias=build(NoticiasService),
        cursos=build(CursosService),
        historias_orales=build(HistoriasOralesService),
        ofertas_laborales=build(OfertasLaboralesService),
    )
