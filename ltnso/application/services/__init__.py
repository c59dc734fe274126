"""Application services: cache facade, base CRUD service, relationships, entity services."""

from ltnso.application.services.base_service import BaseService, SoftDeleteColumns
from ltnso.application.services.cacheable_service import CacheableConfig, CacheableService
from ltnso.application.services.entities import (
    EntityService,
    EntityServices,
    build_entity_services,
)
from ltnso.application.services.relationship_service import (
    RelationshipService,
    foreign_key_column,
)
from ltnso.application.services.validators import (
    AcceptAllValidator,
    EntityValidator,
    RequiredFieldsValidator,
)

__all__ = [
    "AcceptAllValidator",
    "BaseService",
    "CacheableConfig",
    "CacheableService",
    "EntityService",
    "EntityServices",
    "EntityValidator",
    "RelationshipService",
    "RequiredFieldsValidator",
    "SoftDeleteColumns",
    "build_entity_services",
    "foreign_key_column",
]
