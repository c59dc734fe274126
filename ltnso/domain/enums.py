"""Domain enumerations for the ltnso record layer.

Enums represent fixed sets of domain values (entity types, sort order,
invalidation strategies).
"""

from enum import Enum


class _ValuesMixin:
    """Shared values() for str enums."""

    @classmethod
    def values(cls) -> list[str]:
        """Return all enum values as strings."""
        return [m.value for m in cls]  # type: ignore[attr-defined]


class EntityType(_ValuesMixin, str, Enum):
    """Entity kinds managed by the platform.

    The value namespaces every cache key of that entity (e.g. tema:42).
    """

    PERSONA = "persona"
    ORGANIZACION = "organizacion"
    TEMA = "tema"
    PROYECTO = "proyecto"
    ENTREVISTA = "entrevista"
    NOTICIA = "noticia"
    CURSO = "curso"
    HISTORIA_ORAL = "historia_oral"
    OFERTA_LABORAL = "oferta_laboral"


class SortOrder(_ValuesMixin, str, Enum):
    """Sort direction for list and search reads."""

    ASC = "asc"
    DESC = "desc"


class InvalidationStrategy(_ValuesMixin, str, Enum):
    """How CacheService.invalidate removes keys matching a pattern.

    IMMEDIATE sweeps now, LAZY publishes the pattern for subscribers to
    sweep, SCHEDULED sweeps after a delay on a background task.
    """

    IMMEDIATE = "immediate"
    LAZY = "lazy"
    SCHEDULED = "scheduled"


class CacheTtl(_ValuesMixin, str, Enum):
    """TTL preset names; seconds come from settings.cache_ttl_<value>."""

    SHORT = "short"
    DEFAULT = "default"
    LONG = "long"
