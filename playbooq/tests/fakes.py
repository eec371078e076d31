"""
In-memory stand-in for the Gateway.

Interprets the same Filter/Order values the repos build, so services run
unchanged against plain dicts. Inserts fill id and timestamps the way the
column defaults do. Every call is recorded in `calls` as
(method, table, user_id) so tests can check RLS scoping.
"""

from __future__ import annotations

import copy
from collections.abc import Sequence
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID, uuid4

from playbooq.errors import DownstreamError
from playbooq.gateway import Filter, Order

# Column defaults applied on insert, per table.
_DEFAULTS: dict[str, dict[str, Any]] = {
    "playbooks": {
        "title": "Untitled Playbook",
        "content": {},
        "tags": [],
        "category": "general",
        "is_public": False,
        "is_marketplace": False,
        "price": 0,
        "total_purchases": 0,
        "average_rating": 0,
    },
    "collaborators": {"status": "pending", "user_email": ""},
    "chat_messages": {"deleted": False},
    "assignments": {"status": "pending", "assignment_color": "#fef3c7"},
    "assignment_notifications": {"is_read": False},
    "internal_pages": {"content": ""},
}

# Timestamp columns filled with "now" on insert, per table.
_STAMPS: dict[str, tuple[str, ...]] = {
    "collaborators": ("invited_at",),
    "internal_page_permissions": ("granted_at",),
    "marketplace_ratings": ("created_at",),
    "playbook_favorites": ("created_at",),
    "playbook_purchases": ("created_at",),
    "chat_messages": ("created_at",),
    "assignment_assignees": ("created_at",),
    "assignment_comments": ("created_at",),
    "assignment_notifications": ("created_at",),
}
_DEFAULT_STAMPS = ("created_at", "updated_at")


def _norm(value: Any) -> Any:
    return str(value) if isinstance(value, UUID) else value


def _matches(row: dict[str, Any], f: Filter) -> bool:
    if f.op == "or":
        return any(_matches(row, sub) for sub in f.value)
    value = _norm(row.get(f.column))
    target = _norm(f.value)
    if f.op == "eq":
        return value == target
    if f.op == "neq":
        return value != target
    if f.op == "is_null":
        return value is None
    if f.op == "not_null":
        return value is not None
    if value is None:
        return False
    if f.op == "gt":
        return value > target
    if f.op == "gte":
        return value >= target
    if f.op == "lt":
        return value < target
    if f.op == "lte":
        return value <= target
    if f.op == "ilike":
        return str(target).lower() in str(value).lower()
    if f.op == "overlaps":
        return bool(set(value) & set(target))
    if f.op == "in":
        return value in [_norm(v) for v in target]
    raise ValueError(f"Unknown filter operator: {f.op!r}")


class MemoryGateway:
    def __init__(self, tables: dict[str, list[dict[str, Any]]] | None = None):
        self.tables: dict[str, list[dict[str, Any]]] = {k: list(v) for k, v in (tables or {}).items()}
        self.calls: list[tuple[str, str, str | None]] = []
        self._failures: dict[tuple[str, str], str] = {}
        self._clock = datetime(2020, 1, 1, tzinfo=UTC)

    # ── test helpers ────────────────────────────────────────────────────────

    def fail(self, method: str, table: str, message: str = "connection refused") -> None:
        """Make every later `method` call on `table` raise DownstreamError."""
        self._failures[(method, table)] = message

    def rows(self, table: str) -> list[dict[str, Any]]:
        return self.tables.setdefault(table, [])

    def seed(self, table: str, **values: Any) -> dict[str, Any]:
        """Insert a row directly, with the same defaults as insert()."""
        row = self._fill(table, values)
        self.rows(table).append(row)
        return row

    def _tick(self) -> datetime:
        # Strictly increasing timestamps keep created_at orderings deterministic.
        self._clock += timedelta(milliseconds=1)
        return self._clock

    def _fill(self, table: str, values: dict[str, Any]) -> dict[str, Any]:
        row = {**_DEFAULTS.get(table, {}), **copy.deepcopy(values)}
        row.setdefault("id", str(uuid4()))
        now = self._tick()
        for column in _STAMPS.get(table, _DEFAULT_STAMPS):
            row.setdefault(column, now)
        return {k: _norm(v) for k, v in row.items()}

    def _record(self, method: str, table: str, user_id: str | None) -> None:
        self.calls.append((method, table, user_id))
        message = self._failures.get((method, table))
        if message:
            raise DownstreamError(message)

    def _select_rows(self, table: str, filters: Sequence[Filter]) -> list[dict[str, Any]]:
        return [r for r in self.rows(table) if all(_matches(r, f) for f in filters)]

    # ── Gateway interface ───────────────────────────────────────────────────

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
        self._record("select", table, user_id)
        rows = self._select_rows(table, filters)
        for o in reversed(order):
            present = [r for r in rows if r.get(o.column) is not None]
            missing = [r for r in rows if r.get(o.column) is None]
            present.sort(key=lambda r: r[o.column], reverse=not o.ascending)
            # Postgres puts NULLs last ascending, first descending.
            rows = present + missing if o.ascending else missing + present
        rows = rows[offset or 0 :]
        if limit is not None:
            rows = rows[:limit]
        if columns:
            return [{c: copy.deepcopy(r.get(c)) for c in columns} for r in rows]
        return [copy.deepcopy(r) for r in rows]

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
        self._record("count", table, user_id)
        return len(self._select_rows(table, filters))

    async def insert(
        self,
        table: str,
        rows: dict[str, Any] | Sequence[dict[str, Any]],
        user_id: str | None = None,
    ) -> list[dict[str, Any]]:
        self._record("insert", table, user_id)
        if isinstance(rows, dict):
            rows = [rows]
        inserted = [self._fill(table, r) for r in rows]
        self.rows(table).extend(inserted)
        return [copy.deepcopy(r) for r in inserted]

    async def update(
        self,
        table: str,
        values: dict[str, Any],
        *filters: Filter,
        user_id: str | None = None,
    ) -> list[dict[str, Any]]:
        self._record("update", table, user_id)
        updated = []
        for row in self._select_rows(table, filters):
            row.update({k: _norm(copy.deepcopy(v)) for k, v in values.items()})
            updated.append(copy.deepcopy(row))
        return updated

    async def delete(self, table: str, *filters: Filter, user_id: str | None = None) -> int:
        self._record("delete", table, user_id)
        doomed = self._select_rows(table, filters)
        self.tables[table] = [r for r in self.rows(table) if r not in doomed]
        return len(doomed)

    async def upsert(
        self,
        table: str,
        row: dict[str, Any],
        on_conflict: Sequence[str],
        user_id: str | None = None,
    ) -> dict[str, Any]:
        self._record("upsert", table, user_id)
        for existing in self.rows(table):
            if all(_norm(existing.get(c)) == _norm(row.get(c)) for c in on_conflict):
                existing.update({k: _norm(v) for k, v in row.items()})
                return copy.deepcopy(existing)
        inserted = self._fill(table, row)
        self.rows(table).append(inserted)
        return copy.deepcopy(inserted)
