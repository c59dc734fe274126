"""Domain layer: entity records, enums and exceptions. No I/O."""

from ltnso.domain.entities import RECORD_TYPES, EntityRecord
from ltnso.domain.enums import CacheTtl, EntityType, InvalidationStrategy, SortOrder
from ltnso.domain.exceptions import (
    CacheException,
    DbException,
    LtnsoException,
    RelationshipAlreadyExistsException,
    RelationshipException,
    ValidationException,
)

__all__ = [
    "RECORD_TYPES",
    "CacheException",
    "CacheTtl",
    "DbException",
    "EntityRecord",
    "EntityType",
    "InvalidationStrategy",
    "LtnsoException",
    "RelationshipAlreadyExistsException",
    "RelationshipException",
    "SortOrder",
    "ValidationException",
]
