"""SQLAlchemy Core implementation of the BackingStore port.

Tables are addressed by name through lightweight table()/column() clauses,
so no ORM models are needed: every entity table and junction table is
reached the same way. Writes use RETURNING to hand back the stored row.

Text search uses PostgreSQL full-text search
(to_tsvector(cfg, field) @@ websearch_to_tsquery(cfg, query)) and falls
back to case-insensitive ILIKE on other dialects.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator, Mapping, Sequence
from contextlib import contextmanager
from typing import Any

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import REGCONFIG
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.sql.expression import ColumnElement, TableClause

from ltnso.application.dtos.query import Range, Sort
from ltnso.application.interfaces.store import Row
from ltnso.domain.enums import SortOrder
from ltnso.infrastructure.exceptions import (
    BackingStoreException,
    DuplicateRecordException,
)
from ltnso.infrastructure.persistence.database import get_session_factory

logger = logging.getLogger(__name__)

ID_COLUMN = "id"
_UNIQUE_VIOLATION = "23505"
_SEQUENCE_TYPES = (list, tuple, set, frozenset)
LIKE_ESCAPE = "\\"


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so the query matches literally."""
    return (
        value.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


def _table(name: str, *column_groups: Iterable[str]) -> TableClause:
    names: dict[str, None] = {ID_COLUMN: None}
    for group in column_groups:
        for column in group:
            names[column] = None
    return sa.table(name, *(sa.column(c) for c in names))


def _conditions(t: TableClause, filters: Mapping[str, Any] | None) -> list[ColumnElement[bool]]:
    """Translate a filter map: scalar -> =, None -> IS NULL, collection -> IN."""
    conditions: list[ColumnElement[bool]] = []
    for name, value in (filters or {}).items():
        column = t.c[name]
        if value is None:
            conditions.append(column.is_(None))
        elif isinstance(value, _SEQUENCE_TYPES):
            conditions.append(column.in_(list(value)))
        else:
            conditions.append(column == value)
    return conditions


def _apply_range(stmt: sa.Select[Any], range_: Range | None) -> sa.Select[Any]:
    if range_ is None:
        return stmt
    if range_.offset:
        stmt = stmt.offset(range_.offset)
    if range_.limit is not None:
        stmt = stmt.limit(range_.limit)
    return stmt


def select_statement(
    table: str,
    *,
    columns: Sequence[str] | None = None,
    filters: Mapping[str, Any] | None = None,
    sort: Sort | None = None,
    range_: Range | None = None,
) -> sa.Select[Any]:
    """Build SELECT for BackingStore.select."""
    t = _table(table, columns or (), filters or {}, [sort.field] if sort else ())
    selected = [t.c[c] for c in columns] if columns else [sa.literal_column("*")]
    stmt = sa.select(*selected).select_from(t).where(*_conditions(t, filters))
    if sort is not None:
        column = t.c[sort.field]
        stmt = stmt.order_by(column.desc() if sort.order is SortOrder.DESC else column.asc())
    return _apply_range(stmt, range_)


def text_search_statement(
    table: str,
    field: str,
    query: str,
    *,
    dialect_name: str,
    text_search_config: str = "spanish",
    filters: Mapping[str, Any] | None = None,
    range_: Range | None = None,
) -> sa.Select[Any]:
    """Build SELECT for BackingStore.text_search on the given dialect."""
    t = _table(table, [field], filters or {})
    column = t.c[field]
    if dialect_name == "postgresql":
        config = sa.cast(sa.literal(text_search_config), REGCONFIG)
        match = sa.func.to_tsvector(config, column).bool_op("@@")(
            sa.func.websearch_to_tsquery(config, query)
        )
    else:
        match = column.ilike(f"%{escape_like(query)}%", escape=LIKE_ESCAPE)
    stmt = (
        sa.select(sa.literal_column("*"))
        .select_from(t)
        .where(match, *_conditions(t, filters))
    )
    return _apply_range(stmt, range_)


def _is_unique_violation(error: IntegrityError) -> bool:
    orig = error.orig
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if code is not None:
        return code == _UNIQUE_VIOLATION
    return "unique" in str(orig).lower()


@contextmanager
def _translate_errors(operation: str, table: str) -> Iterator[None]:
    """Map SQLAlchemy and driver connection errors to BackingStoreException / DuplicateRecordException."""
    try:
        yield
    except IntegrityError as e:
        if _is_unique_violation(e):
            raise DuplicateRecordException(table, str(e.orig)) from e
        logger.warning("Integrity error on %s %s: %s", operation, table, e.orig)
        raise BackingStoreException(str(e.orig), operation, table) from e
    except SQLAlchemyError as e:
        logger.exception("Backing store %s failed on %s", operation, table)
        raise BackingStoreException(str(e), operation, table) from e
    except OSError as e:
        # Driver connect failures (refused, unreachable, TimeoutError) are not wrapped by SQLAlchemy.
        logger.warning("Backing store unreachable during %s on %s: %s", operation, table, e)
        raise BackingStoreException(f"Backing store unreachable: {e}", operation, table) from e


class SqlAlchemyStore:
    """BackingStore over an async SQLAlchemy session factory.

    Each call runs in its own session; writes run in their own transaction.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession]
        | Callable[[], async_sessionmaker[AsyncSession]]
        | None = None,
        *,
        text_search_config: str = "spanish",
    ) -> None:
        """Initialize the store.

        Args:
            session_factory: Session factory, or a callable returning one
                (resolved on first use). Defaults to the lazily created
                process-wide factory from ltnso.infrastructure.persistence.database.
            text_search_config: PostgreSQL text search configuration name.
        """
        self._factory_source = session_factory or get_session_factory
        self._factory: async_sessionmaker[AsyncSession] | None = None
        self.text_search_config = text_search_config

    def _session(self) -> AsyncSession:
        if self._factory is None:
            source = self._factory_source
            if isinstance(source, async_sessionmaker):
                self._factory = source
            else:
                self._factory = source()
        return self._factory()

    async def _fetch_all(self, stmt: sa.Executable, operation: str, table: str) -> list[Row]:
        with _translate_errors(operation, table):
            async with self._session() as session:
                result = await session.execute(stmt)
                return [dict(row) for row in result.mappings().all()]

    async def select(
        self,
        table: str,
        *,
        columns: Sequence[str] | None = None,
        filters: Mapping[str, Any] | None = None,
        sort: Sort | None = None,
        range_: Range | None = None,
    ) -> list[Row]:
        stmt = select_statement(
            table, columns=columns, filters=filters, sort=sort, range_=range_
        )
        return await self._fetch_all(stmt, "select", table)

    async def insert(self, table: str, row: Mapping[str, Any]) -> Row:
        t = _table(table, row)
        stmt = sa.insert(t).values(dict(row)).returning(sa.literal_column("*"))
        with _translate_errors("insert", table):
            async with self._session() as session, session.begin():
                result = await session.execute(stmt)
                return dict(result.mappings().one())

    async def update(self, table: str, id: Any, patch: Mapping[str, Any]) -> Row | None:
        t = _table(table, patch)
        stmt = (
            sa.update(t)
            .where(t.c[ID_COLUMN] == id)
            .values(dict(patch))
            .returning(sa.literal_column("*"))
        )
        with _translate_errors("update", table):
            async with self._session() as session, session.begin():
                result = await session.execute(stmt)
                row = result.mappings().first()
                return dict(row) if row is not None else None

    async def delete(self, table: str, id: Any) -> bool:
        t = _table(table)
        stmt = sa.delete(t).where(t.c[ID_COLUMN] == id)
        with _translate_errors("delete", table):
            async with self._session() as session, session.begin():
                result = await session.execute(stmt)
                return bool(result.rowcount)

    async def delete_where(self, table: str, filters: Mapping[str, Any]) -> int:
        if not filters:
            raise BackingStoreException("delete_where requires at least one filter", "delete", table)
        t = _table(table, filters)
        stmt = sa.delete(t).where(*_conditions(t, filters))
        with _translate_errors("delete", table):
            async with self._session() as session, session.begin():
                result = await session.execute(stmt)
                return int(result.rowcount or 0)

    async def count(self, table: str, *, filters: Mapping[str, Any] | None = None) -> int:
        t = _table(table, filters or {})
        stmt = sa.select(sa.func.count()).select_from(t).where(*_conditions(t, filters))
        with _translate_errors("count", table):
            async with self._session() as session:
                result = await session.execute(stmt)
                return int(result.scalar_one())

    async def text_search(
        self,
        table: str,
        field: str,
        query: str,
        *,
        filters: Mapping[str, Any] | None = None,
        range_: Range | None = None,
    ) -> list[Row]:
        with _translate_errors("search", table):
            async with self._session() as session:
                stmt = text_search_statement(
                    table,
                    field,
                    query,
                    dialect_name=session.get_bind().dialect.name,
                    text_search_config=self.text_search_config,
                    filters=filters,
                    range_=range_,
                )
                result = await session.execute(stmt)
                return [dict(row) for row in result.mappings().all()]
