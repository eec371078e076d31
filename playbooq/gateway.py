"""
Remote data gateway.

A thin query wrapper over the connection pool: filtered/sorted reads and
insert/update/delete/upsert writes against named tables. Owns no state.
Repositories describe queries with the Filter/Order helpers below; the
gateway turns them into SQLAlchemy Core statements, compiles those for
Postgres with $n placeholders and runs them on asyncpg.

Writes have no optimistic-concurrency checks. Last write wins.
"""

from __future__ import annotations

import logging
import operator
from collections.abc import Sequence
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass
from typing import Any

import asyncpg
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.sql.expression import ClauseElement

from playbooq import db
from playbooq.errors import DownstreamError

logger = logging.getLogger(__name__)

# Compiles statements the way asyncpg expects its parameters: $1, $2, ...
_DIALECT = postgresql.dialect(paramstyle="numeric_dollar")

_COMPARISONS = {
    "eq": operator.eq,
    "neq": operator.ne,
    "gt": operator.gt,
    "gte": operator.ge,
    "lt": operator.lt,
    "lte": operator.le,
}

_ALL = sa.literal_column("*")


@dataclass(frozen=True)
class Filter:
    """A single predicate. `value` is a tuple of Filters for op == "or"."""

    column: str
    op: str
    value: Any = None


@dataclass(frozen=True)
class Order:
    column: str
    ascending: bool = True


def eq(column: str, value: Any) -> Filter:
    return Filter(column, "eq", value)


def neq(column: str, value: Any) -> Filter:
    return Filter(column, "neq", value)


def gt(column: str, value: Any) -> Filter:
    return Filter(column, "gt", value)


def gte(column: str, value: Any) -> Filter:
    return Filter(column, "gte", value)


def lt(column: str, value: Any) -> Filter:
    return Filter(column, "lt", value)


def lte(column: str, value: Any) -> Filter:
    return Filter(column, "lte", value)


def ilike(column: str, text: str) -> Filter:
    """Case-insensitive substring match."""
    return Filter(column, "ilike", text)


def overlaps(column: str, values: Sequence[Any]) -> Filter:
    """Array column shares at least one element with `values`."""
    return Filter(column, "overlaps", list(values))


def in_(column: str, values: Sequence[Any]) -> Filter:
    return Filter(column, "in", list(values))


def is_null(column: str) -> Filter:
    return Filter(column, "is_null")


def not_null(column: str) -> Filter:
    return Filter(column, "not_null")


def any_of(*filters: Filter) -> Filter:
    """OR of the given filters."""
    return Filter("", "or", tuple(filters))


def desc(column: str) -> Order:
    return Order(column, ascending=False)


def asc(column: str) -> Order:
    return Order(column, ascending=True)


# ── Statement building ──────────────────────────────────────────────────────


def _escape_like(text: str) -> str:
    # Backslash is Postgres' default LIKE escape character
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _table(name: str, columns: Sequence[str] = ()) -> sa.TableClause:
    return sa.table(name, *(sa.column(c) for c in columns))


def _clause(f: Filter) -> sa.ColumnElement[bool]:
    if f.op == "or":
        if not f.value:
            raise ValueError("any_of() needs at least one filter")
        return sa.or_(*(_clause(sub) for sub in f.value))

    column = sa.column(f.column)
    if f.op in _COMPARISONS:
        return _COMPARISONS[f.op](column, f.value)
    if f.op == "ilike":
        return column.ilike(f"%{_escape_like(f.value)}%")
    if f.op == "overlaps":
        return sa.column(f.column, ARRAY(sa.Text)).overlap(f.value)
    if f.op == "in":
        return column == sa.any_(sa.literal(f.value, type_=ARRAY(sa.Text)))
    if f.op == "is_null":
        return column.is_(None)
    if f.op == "not_null":
        return column.is_not(None)
    raise ValueError(f"Unknown filter operator: {f.op!r}")


def build_select(
    table: str,
    filters: Sequence[Filter] = (),
    order: Sequence[Order] = (),
    limit: int | None = None,
    offset: int | None = None,
    columns: Sequence[str] | None = None,
) -> sa.Select:
    selected = [sa.column(c) for c in columns] if columns else [_ALL]
    stmt = sa.select(*selected).select_from(_table(table)).where(*(_clause(f) for f in filters))
    for o in order:
        column = sa.column(o.column)
        stmt = stmt.order_by(column.asc() if o.ascending else column.desc())
    if limit is not None:
        stmt = stmt.limit(int(limit))
    if offset:
        stmt = stmt.offset(int(offset))
    return stmt


def build_count(table: str, filters: Sequence[Filter] = ()) -> sa.Select:
    return (
        sa.select(sa.func.count().label("count"))
        .select_from(_table(table))
        .where(*(_clause(f) for f in filters))
    )


def build_insert(table: str, rows: Sequence[dict[str, Any]]) -> sa.Insert:
    if not rows:
        raise ValueError("insert needs at least one row")
    columns = list(rows[0].keys())
    if any(list(r.keys()) != columns for r in rows[1:]):
        raise ValueError("All inserted rows must have the same columns")
    return pg_insert(_table(table, columns)).values(list(rows)).returning(_ALL)


def build_update(table: str, values: dict[str, Any], filters: Sequence[Filter]) -> sa.Update:
    if not values:
        raise ValueError("update needs at least one column")
    if not filters:
        raise ValueError("update without filters is not allowed")
    return (
        sa.update(_table(table, list(values)))
        .where(*(_clause(f) for f in filters))
        .values(**values)
        .returning(_ALL)
    )


def build_delete(table: str, filters: Sequence[Filter]) -> sa.Delete:
    if not filters:
        raise ValueError("delete without filters is not allowed")
    return sa.delete(_table(table)).where(*(_clause(f) for f in filters))


def build_upsert(table: str, row: dict[str, Any], on_conflict: Sequence[str]) -> sa.Insert:
    """INSERT ... ON CONFLICT (on_conflict) DO UPDATE SET <other columns> = excluded.<column>."""
    if not on_conflict:
        raise ValueError("upsert needs conflict columns")
    stmt = pg_insert(_table(table, list(row))).values(**row)
    updates = [c for c in row if c not in on_conflict] or [on_conflict[0]]
    return stmt.on_conflict_do_update(
        index_elements=list(on_conflict),
        set_={c: stmt.excluded[c] for c in updates},
    ).returning(_ALL)


def to_asyncpg(stmt: ClauseElement) -> tuple[str, list[Any]]:
    """Compile a statement to SQL text plus its positional parameters."""
    compiled = stmt.compile(dialect=_DIALECT)
    params = compiled.params
    return str(compiled), [params[name] for name in compiled.positiontup or ()]


def _rows_affected(status: str) -> int:
    """Parse asyncpg's command status ('DELETE 3') into a count."""
    try:
        return int(status.rsplit(" ", 1)[-1])
    except (ValueError, AttributeError):
        return 0


# ── Execution ───────────────────────────────────────────────────────────────


class Gateway:
    """
    Executes built statements.

    Every call runs as system unless `user_id` is given, in which case the
    connection is RLS-scoped to that user. Database failures surface as
    DownstreamError carrying the driver message.
    """

    def _connect(self, user_id: str | None) -> AbstractAsyncContextManager[asyncpg.Connection]:
        if db.pool is None:
            raise DownstreamError("Database not configured")
        return db.user_conn(user_id) if user_id else db.system_conn()

    async def _fetch(self, stmt: ClauseElement, user_id: str | None) -> list[dict[str, Any]]:
        sql, params = to_asyncpg(stmt)
        try:
            async with self._connect(user_id) as conn:
                rows = await conn.fetch(sql, *params)
        except (asyncpg.PostgresError, OSError) as e:
            logger.error("Query failed: %s", e)
            raise DownstreamError(str(e)) from e
        return [dict(r) for r in rows]

    async def _execute(self, stmt: ClauseElement, user_id: str | None) -> str:
        sql, params = to_asyncpg(stmt)
        try:
            async with self._connect(user_id) as conn:
                return await conn.execute(sql, *params)
        except (asyncpg.PostgresError, OSError) as e:
            logger.error("Statement failed: %s", e)
            raise DownstreamError(str(e)) from e

    async def select(
        self,
        table: str,
        *filters: Filter,
        order: Sequence[Order] = (),
        limit: int | None = None,
        offset: int | None = None,
        columns: Sequence[str] | None = None,
        user_id: str | None = None,
    ) -> list[dict[str, Any]]:
        return await self._fetch(build_select(table, filters, order, limit, offset, columns), user_id)

    async def select_one(
        self,
        table: str,
        *filters: Filter,
        columns: Sequence[str] | None = None,
        user_id: str | None = None,
    ) -> dict[str, Any] | None:
        rows = await self.select(table, *filters, limit=1, columns=columns, user_id=user_id)
        return rows[0] if rows else None

    async def count(self, table: str, *filters: Filter, user_id: str | None = None) -> int:
        rows = await self._fetch(build_count(table, filters), user_id)
        return rows[0]["count"] if rows else 0

    async def insert(
        self,
        table: str,
        rows: dict[str, Any] | Sequence[dict[str, Any]],
        user_id: str | None = None,
    ) -> list[dict[str, Any]]:
        if isinstance(rows, dict):
            rows = [rows]
        return await self._fetch(build_insert(table, rows), user_id)

    async def update(
        self,
        table: str,
        values: dict[str, Any],
        *filters: Filter,
        user_id: str | None = None,
    ) -> list[dict[str, Any]]:
        return await self._fetch(build_update(table, values, filters), user_id)

    async def delete(self, table: str, *filters: Filter, user_id: str | None = None) -> int:
        return _rows_affected(await self._execute(build_delete(table, filters), user_id))

    async def upsert(
        self,
        table: str,
        row: dict[str, Any],
        on_conflict: Sequence[str],
        user_id: str | None = None,
    ) -> dict[str, Any]:
        rows = await self._fetch(build_upsert(table, row, on_conflict), user_id)
        return rows[0]
