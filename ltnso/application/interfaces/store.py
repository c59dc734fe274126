"""Backing store interface (port) for the application layer.

The store is a generic table gateway: rows are plain dicts keyed by column
name. Filter values follow one rule set everywhere:
  - scalar  -> column = value
  - None    -> column IS NULL
  - list, tuple or set -> column IN (...)
Implementations raise BackingStoreException (or DuplicateRecordException on
unique-constraint violations); services turn those into ServiceResult errors.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from ltnso.application.dtos.query import Range, Sort

Row = dict[str, Any]


class BackingStore(Protocol):
    """Protocol for the relational backing store (DIP)."""

    async def select(
        self,
        table: str,
        *,
        columns: Sequence[str] | None = None,
        filters: Mapping[str, Any] | None = None,
        sort: Sort | None = None,
        range_: Range | None = None,
    ) -> list[Row]:
        """Return rows of table matching filters (all columns when columns is None)."""

    async def insert(self, table: str, row: Mapping[str, Any]) -> Row:
        """Insert row and return it as stored (defaults and generated id included)."""

    async def update(self, table: str, id: Any, patch: Mapping[str, Any]) -> Row | None:
        """Apply patch to the row with id; None when no such row."""

    async def delete(self, table: str, id: Any) -> bool:
        """Delete the row with id; True when a row was removed."""

    async def delete_where(self, table: str, filters: Mapping[str, Any]) -> int:
        """Delete every row matching filters; return how many were removed."""

    async def count(self, table: str, *, filters: Mapping[str, Any] | None = None) -> int:
        """Return number of rows matching filters."""

    async def text_search(
        self,
        table: str,
        field: str,
        query: str,
        *,
        filters: Mapping[str, Any] | None = None,
        range_: Range | None = None,
    ) -> list[Row]:
        """Return rows whose field matches the full-text query."""
