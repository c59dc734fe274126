"""Base entity service: CRUD over the backing store with cache-aside reads.

Every entity service is a BaseService bound to one table, one entity type
and one record model. Reads consult the entity's CacheableService first;
writes go to the store, then invalidate the item, list and query keys and
write the fresh record back into the item cache, so a read right after a
write is a cache hit.

Failures are returned, not raised: validation errors short-circuit before
any store I/O; store errors come back as DbException. Not found is a
successful result with data None.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from pydantic import ValidationError

from ltnso.application.dtos.query import Page, QueryOptions, Range, Sort
from ltnso.application.dtos.result import ServiceResult
from ltnso.application.services.relationship_service import foreign_key_column
from ltnso.application.services.validators import AcceptAllValidator
from ltnso.domain.entities import EntityRecord
from ltnso.domain.exceptions import DbException
from ltnso.infrastructure.exceptions import BackingStoreException

if TYPE_CHECKING:
    from ltnso.application.interfaces.store import BackingStore, Row
    from ltnso.application.services.cacheable_service import CacheableService
    from ltnso.application.services.validators import EntityValidator

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20

RecordT = TypeVar("RecordT", bound=EntityRecord)


@dataclass(frozen=True)
class SoftDeleteColumns:
    """Column names of the soft-delete markers."""

    flag: str = "is_deleted"
    deleted_by: str = "deleted_by"
    deleted_at: str = "deleted_at"


class BaseService(Generic[RecordT]):
    """CRUD, search and relationship reads for one entity table.

    Subclasses usually only pass configuration to __init__ (table, cache
    settings, validator, search field, default sort, list projection).
    """

    def __init__(
        self,
        store: BackingStore,
        cache: CacheableService[RecordT],
        *,
        table_name: str,
        validator: EntityValidator | None = None,
        search_field: str = "nombre",
        default_sort: Sort | None = None,
        list_columns: Sequence[str] | None = None,
        soft_delete: SoftDeleteColumns | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            store: Backing store gateway.
            cache: Cache facade for this entity type (carries the record model).
            table_name: Table holding the entity rows.
            validator: Create/update input validator (accept-all when None).
            search_field: Column used by full-text search.
            default_sort: Order applied to list reads without an explicit sort.
            list_columns: Default projection for list reads (all columns when None).
            soft_delete: Soft-delete marker columns; None disables soft delete
                and the implicit exclusion of deleted rows.
        """
        self.store = store
        self.cache = cache
        self.table_name = table_name
        self.validator: EntityValidator = validator or AcceptAllValidator()
        self.search_field = search_field
        self.default_sort = default_sort
        self.list_columns = tuple(list_columns) if list_columns else None
        self.soft_delete_columns = soft_delete

    @property
    def record_type(self) -> type[RecordT]:
        return self.cache.record_type

    def _db_error(self, operation: str, error: Exception) -> ServiceResult[Any]:
        logger.warning("%s on %s failed: %s", operation, self.table_name, error)
        return ServiceResult.fail(
            DbException(
                f"Failed to {operation} {self.table_name}: {error}",
                operation=operation,
                table=self.table_name,
                cause=error,
            )
        )

    def _to_record(self, row: Mapping[str, Any]) -> RecordT:
        return self.record_type.model_validate(dict(row))

    @staticmethod
    def _to_row(data: Mapping[str, Any] | EntityRecord) -> dict[str, Any]:
        if isinstance(data, EntityRecord):
            return data.to_row()
        return dict(data)

    def _read_filters(self, options: QueryOptions) -> dict[str, Any]:
        filters = dict(options.filters)
        if self.soft_delete_columns is not None and not options.include_deleted:
            filters.setdefault(self.soft_delete_columns.flag, False)
        return filters

    async def _after_write(self, id: Any, record: RecordT | None) -> None:
        await self.cache.invalidate_cache(id)
        if record is not None:
            await self.cache.set_in_cache(id, record)

    async def create(self, data: Mapping[str, Any] | EntityRecord) -> ServiceResult[RecordT]:
        """Validate, insert, then invalidate and cache the new record."""
        row = self._to_row(data)
        error = self.validator.validate_create(row)
        if error is not None:
            return ServiceResult.fail(error)
        if self.soft_delete_columns is not None:
            row.setdefault(self.soft_delete_columns.flag, False)
        try:
            record = self._to_record(await self.store.insert(self.table_name, row))
        except (BackingStoreException, ValidationError) as e:
            return self._db_error("create", e)
        if record.id is not None:
            await self._after_write(record.id, record)
        else:
            await self.cache.invalidate_cache()
        return ServiceResult.ok(record)

    async def update(
        self, id: Any, data: Mapping[str, Any] | EntityRecord
    ) -> ServiceResult[RecordT]:
        """Validate and apply a patch. A missing row is ok(None)."""
        patch = self._to_row(data)
        error = self.validator.validate_update(patch)
        if error is not None:
            return ServiceResult.fail(error)
        return await self._patch("update", id, patch)

    async def _patch(self, operation: str, id: Any, patch: dict[str, Any]) -> ServiceResult[RecordT]:
        try:
            row = await self.store.update(self.table_name, id, patch)
            record = self._to_record(row) if row is not None else None
        except (BackingStoreException, ValidationError) as e:
            return self._db_error(operation, e)
        await self._after_write(id, record)
        return ServiceResult.ok(record)

    async def delete(self, id: Any) -> ServiceResult[bool]:
        """Hard delete. data is False when no row had that id."""
        try:
            deleted = await self.store.delete(self.table_name, id)
        except BackingStoreException as e:
            return self._db_error("delete", e)
        await self.cache.invalidate_cache(id)
        return ServiceResult.ok(deleted)

    async def soft_delete(self, id: Any, deleted_by: str | None = None) -> ServiceResult[RecordT]:
        """Mark the row deleted (flag, who, when). Requires soft-delete columns."""
        columns = self.soft_delete_columns
        if columns is None:
            return self._db_error("soft delete", ValueError("soft delete not enabled"))
        return await self._patch(
            "soft delete",
            id,
            {
                columns.flag: True,
                columns.deleted_by: deleted_by,
                columns.deleted_at: datetime.now(UTC),
            },
        )

    async def restore(self, id: Any) -> ServiceResult[RecordT]:
        """Clear the soft-delete markers."""
        columns = self.soft_delete_columns
        if columns is None:
            return self._db_error("restore", ValueError("soft delete not enabled"))
        return await self._patch(
            "restore",
            id,
            {columns.flag: False, columns.deleted_by: None, columns.deleted_at: None},
        )

    async def get_by_id(self, id: Any) -> ServiceResult[RecordT]:
        """Cache-aside read of one record. Not found is ok(None)."""
        cached = await self.cache.get_from_cache(id)
        if cached is not None:
            return ServiceResult.ok(cached)
        try:
            rows = await self.store.select(
                self.table_name, filters={"id": id}, range_=Range(limit=1)
            )
            record = self._to_record(rows[0]) if rows else None
        except (BackingStoreException, ValidationError) as e:
            return self._db_error("read", e)
        if record is not None:
            await self.cache.set_in_cache(id, record)
        return ServiceResult.ok(record)

    async def get_all(self, options: QueryOptions | None = None) -> ServiceResult[list[RecordT]]:
        """List records. Only plain reads (no filter/page/sort/projection/bypass) use the list cache."""
        options = options or QueryOptions()
        cacheable = options.is_cacheable
        if cacheable:
            cached = await self.cache.get_list_from_cache()
            if cached is not None:
                return ServiceResult.ok(cached)
        try:
            rows = await self.store.select(
                self.table_name,
                columns=options.columns or self.list_columns,
                filters=self._read_filters(options),
                sort=options.to_sort(self.default_sort),
                range_=options.to_range(),
            )
            records = [self._to_record(row) for row in rows]
        except (BackingStoreException, ValidationError) as e:
            return self._db_error("list", e)
        if cacheable:
            await self.cache.set_list_in_cache(records)
        return ServiceResult.ok(records)

    async def paginate(self, options: QueryOptions | None = None) -> ServiceResult[Page[RecordT]]:
        """One page plus totals. Always reads the store."""
        options = options or QueryOptions()
        page = max(options.page or 1, 1)
        page_size = options.page_size or DEFAULT_PAGE_SIZE
        filters = self._read_filters(options)
        try:
            total = await self.store.count(self.table_name, filters=filters)
            rows = await self.store.select(
                self.table_name,
                columns=options.columns or self.list_columns,
                filters=filters,
                sort=options.to_sort(self.default_sort),
                range_=Range(offset=(page - 1) * page_size, limit=page_size),
            )
            items = [self._to_record(row) for row in rows]
        except (BackingStoreException, ValidationError) as e:
            return self._db_error("paginate", e)
        return ServiceResult.ok(Page(items=items, total=total, page=page, page_size=page_size))

    async def count(self, options: QueryOptions | None = None) -> ServiceResult[int]:
        options = options or QueryOptions()
        try:
            total = await self.store.count(self.table_name, filters=self._read_filters(options))
        except BackingStoreException as e:
            return self._db_error("count", e)
        return ServiceResult.ok(total)

    async def search(
        self, query: str, options: QueryOptions | None = None
    ) -> ServiceResult[list[RecordT]]:
        """Full-text search on search_field, cached per canonical query.

        The query is trimmed and lower-cased before keying and searching, so
        "Agro" and " agro " share one cache entry. An empty query is ok([])
        without any I/O.
        """
        canonical = query.strip().lower()
        if not canonical:
            return ServiceResult.ok([])
        options = options or QueryOptions()
        cacheable = options.is_cacheable
        if cacheable:
            cached = await self.cache.get_query_from_cache(canonical)
            if cached is not None:
                return ServiceResult.ok(cached)
        try:
            rows = await self.store.text_search(
                self.table_name,
                self.search_field,
                canonical,
                filters=self._read_filters(options),
                range_=options.to_range(),
            )
            records = [self._to_record(row) for row in rows]
        except (BackingStoreException, ValidationError) as e:
            return self._db_error("search", e)
        if cacheable:
            await self.cache.set_query_in_cache(canonical, records)
        return ServiceResult.ok(records)

    async def exists(self, id: Any) -> ServiceResult[bool]:
        """True on item-cache hit, else a one-column one-row store lookup."""
        if await self.cache.get_from_cache(id) is not None:
            return ServiceResult.ok(True)
        try:
            rows = await self.store.select(
                self.table_name, columns=("id",), filters={"id": id}, range_=Range(limit=1)
            )
        except BackingStoreException as e:
            return self._db_error("exists", e)
        return ServiceResult.ok(bool(rows))

    async def get_related_entities(
        self,
        source_id: Any,
        source_table: str,
        target_table: str,
        junction_table: str,
        options: QueryOptions | None = None,
        *,
        source_column: str | None = None,
        target_column: str | None = None,
        record_type: type[EntityRecord] = EntityRecord,
    ) -> ServiceResult[list[EntityRecord]]:
        """Records of target_table linked to source_id through junction_table.

        Column names default to the singular of each table plus _id
        (temas -> tema_id). Options filter, sort and paginate the target rows.

        Example:
            await temas.get_related_entities(tema_id, "temas", "entrevistas", "entrevista_tema")
        """
        options = options or QueryOptions()
        source_column = source_column or foreign_key_column(source_table)
        target_column = target_column or foreign_key_column(target_table)
        try:
            links = await self.store.select(
                junction_table,
                columns=(target_column,),
                filters={source_column: source_id},
            )
            target_ids = list(dict.fromkeys(row[target_column] for row in links))
            if not target_ids:
                return ServiceResult.ok([])
            rows: list[Row] = await self.store.select(
                target_table,
                columns=options.columns,
                filters={**options.filters, "id": target_ids},
                sort=options.to_sort(),
                range_=options.to_range(),
            )
            records = [record_type.model_validate(row) for row in rows]
        except (BackingStoreException, ValidationError) as e:
            return self._db_error("read related", e)
        return ServiceResult.ok(records)
