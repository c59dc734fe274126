"""Domain entities: typed records for every managed entity type.

Records are pydantic models so they validate at the service boundary and
round-trip through the JSON cache. Unknown columns are kept (extra="allow")
because each table carries more columns than the common set modelled here.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Annotated, Any
from uuid import UUID

from pydantic import BaseModel, BeforeValidator, ConfigDict

from ltnso.domain.enums import EntityType


def _uuid_to_str(value: Any) -> Any:
    return str(value) if isinstance(value, UUID) else value


# PostgreSQL uuid columns come back from asyncpg as uuid.UUID; records carry them as str
# so cache keys and cached JSON see the same id.
RecordId = Annotated[str | int, BeforeValidator(_uuid_to_str)]
UserId = Annotated[str, BeforeValidator(_uuid_to_str)]


class EntityRecord(BaseModel):
    """Common shape of every row: id, soft-delete markers, audit timestamps."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: RecordId | None = None
    is_deleted: bool | None = None
    deleted_by: UserId | None = None
    deleted_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def to_row(self) -> dict[str, Any]:
        """Return the record as a store row (unset fields omitted)."""
        return self.model_dump(mode="json", exclude_unset=True)


class Persona(EntityRecord):
    nombre: str | None = None
    apellido: str | None = None
    email: str | None = None
    telefono: str | None = None
    foto_url: str | None = None
    biografia: str | None = None
    categoria_principal: str | None = None


class Organizacion(EntityRecord):
    nombre: str | None = None
    descripcion: str | None = None
    tipo: str | None = None
    sitio_web: str | None = None
    email: str | None = None
    logo_url: str | None = None


class Tema(EntityRecord):
    nombre: str | None = None
    descripcion: str | None = None
    categoria: str | None = None


class Proyecto(EntityRecord):
    nombre: str | None = None
    descripcion: str | None = None
    estado: str | None = None
    fecha_inicio: date | None = None
    fecha_fin: date | None = None


class Entrevista(EntityRecord):
    titulo: str | None = None
    descripcion: str | None = None
    fecha: date | None = None
    entrevistado_id: RecordId | None = None
    url_audio: str | None = None
    url_video: str | None = None


class Noticia(EntityRecord):
    titulo: str | None = None
    contenido: str | None = None
    resumen: str | None = None
    fecha_publicacion: datetime | None = None
    url_imagen: str | None = None
    es_destacada: bool | None = None


class Curso(EntityRecord):
    titulo: str | None = None
    descripcion: str | None = None
    modalidad: str | None = None
    fecha_inicio: date | None = None
    fecha_fin: date | None = None


class HistoriaOral(EntityRecord):
    titulo: str | None = None
    descripcion: str | None = None
    narrador: str | None = None
    fecha_registro: date | None = None
    url_audio: str | None = None
    transcripcion: str | None = None


class OfertaLaboral(EntityRecord):
    titulo: str | None = None
    descripcion: str | None = None
    empresa: str | None = None
    ubicacion: str | None = None
    fecha_cierre: date | None = None
    esta_activa: bool | None = None


RECORD_TYPES: dict[EntityType, type[EntityRecord]] = {
    EntityType.PERSONA: Persona,
    EntityType.ORGANIZACION: Organizacion,
    EntityType.TEMA: Tema,
    EntityType.PROYECTO: Proyecto,
    EntityType.ENTREVISTA: Entrevista,
    EntityType.NOTICIA: Noticia,
    EntityType.CURSO: Curso,
    EntityType.HISTORIA_ORAL: HistoriaOral,
    EntityType.OFERTA_LABORAL: OfertaLaboral,
}
