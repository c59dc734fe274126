"""Many-to-many relationships over a junction table.

A junction row holds two foreign keys (source_column, target_column) plus
optional attributes such as a role. Pair uniqueness is enforced by the
store's unique constraint; a duplicate insert comes back as
RelationshipAlreadyExistsException. Junction rows are never cached here:
entity services that cache relations invalidate them after mutations.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from ltnso.application.dtos.query import Range
from ltnso.application.dtos.result import ServiceResult
from ltnso.domain.exceptions import (
    RelationshipAlreadyExistsException,
    RelationshipException,
)
from ltnso.infrastructure.exceptions import (
    BackingStoreException,
    DuplicateRecordException,
)

if TYPE_CHECKING:
    from ltnso.application.interfaces.store import BackingStore, Row

logger = logging.getLogger(__name__)

_PLURAL_ES_SUFFIXES = ("ones", "ales", "res")


def singular(word: str) -> str:
    """Singular of a Spanish plural table-name part (organizaciones -> organizacion)."""
    if word.endswith(_PLURAL_ES_SUFFIXES):
        return word[:-2]
    if word.endswith("s"):
        return word[:-1]
    return word


def foreign_key_column(table: str) -> str:
    """Default foreign-key column for a table (historias_orales -> historia_oral_id)."""
    return "_".join(singular(part) for part in table.split("_")) + "_id"


class RelationshipService:
    """Add, remove and list pairs in one junction table."""

    def __init__(
        self,
        store: BackingStore,
        table: str,
        source_column: str,
        target_column: str,
    ) -> None:
        self.store = store
        self.table = table
        self.source_column = source_column
        self.target_column = target_column

    def reversed(self) -> RelationshipService:
        """Same junction table seen from the target side."""
        return RelationshipService(
            self.store, self.table, self.target_column, self.source_column
        )

    def _fail(self, operation: str, error: BackingStoreException) -> ServiceResult[Any]:
        logger.warning("Relationship %s failed on %s: %s", operation, self.table, error.message)
        return ServiceResult.fail(
            RelationshipException(
                f"Failed to {operation} relationship in {self.table}: {error.message}",
                table=self.table,
            )
        )

    async def add_relationship(
        self,
        source_id: Any,
        target_id: Any,
        attributes: Mapping[str, Any] | None = None,
    ) -> ServiceResult[Row]:
        """Insert the (source, target) pair with optional extra attributes.

        Returns:
            The stored junction row, or RelationshipAlreadyExistsException when
            the pair already exists.
        """
        row = {
            **(attributes or {}),
            self.source_column: source_id,
            self.target_column: target_id,
        }
        try:
            stored = await self.store.insert(self.table, row)
        except DuplicateRecordException:
            return ServiceResult.fail(
                RelationshipAlreadyExistsException(self.table, source_id, target_id)
            )
        except BackingStoreException as e:
            return self._fail("add", e)
        return ServiceResult.ok(stored)

    async def remove_relationship(self, source_id: Any, target_id: Any) -> ServiceResult[bool]:
        """Delete the pair. Idempotent: removing a missing pair succeeds with False."""
        try:
            removed = await self.store.delete_where(
                self.table,
                {self.source_column: source_id, self.target_column: target_id},
            )
        except BackingStoreException as e:
            return self._fail("remove", e)
        return ServiceResult.ok(removed > 0)

    async def get_relationships(self, source_id: Any) -> ServiceResult[list[Any]]:
        """Return the target ids paired with source_id."""
        try:
            rows = await self.store.select(
                self.table,
                columns=(self.target_column,),
                filters={self.source_column: source_id},
            )
        except BackingStoreException as e:
            return self._fail("list", e)
        return ServiceResult.ok([row[self.target_column] for row in rows])

    async def get_relationship_rows(self, source_id: Any) -> ServiceResult[list[Row]]:
        """Return full junction rows (with attributes) for source_id."""
        try:
            rows = await self.store.select(
                self.table, filters={self.source_column: source_id}
            )
        except BackingStoreException as e:
            return self._fail("list", e)
        return ServiceResult.ok(rows)

    async def has_relationship(self, source_id: Any, target_id: Any) -> ServiceResult[bool]:
        try:
            rows = await self.store.select(
                self.table,
                columns=(self.target_column,),
                filters={self.source_column: source_id, self.target_column: target_id},
                range_=Range(limit=1),
            )
        except BackingStoreException as e:
            return self._fail("check", e)
        return ServiceResult.ok(bool(rows))

    async def count_relationships(self, source_id: Any) -> ServiceResult[int]:
        try:
            total = await self.store.count(
                self.table, filters={self.source_column: source_id}
            )
        except BackingStoreException as e:
            return self._fail("count", e)
        return ServiceResult.ok(total)
