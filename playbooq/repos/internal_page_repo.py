"""Repository for internal pages and their per-user permissions."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from playbooq.gateway import Gateway, asc, eq
from playbooq.models.internal_page import InternalPage, InternalPagePermission

PAGES = "internal_pages"
PERMISSIONS = "internal_page_permissions"


def _row_to_page(row: dict[str, Any]) -> InternalPage:
    return InternalPage(
        id=row["id"],
        playbook_id=row["playbook_id"],
        page_name=row["page_name"],
        page_title=row["page_title"],
        content=row.get("content") or "",
        created_at=row["created_at"],
        updated_at=row["updated_at"],
        created_by=row["created_by"],
    )


def _row_to_permission(row: dict[str, Any]) -> InternalPagePermission:
    return InternalPagePermission(
        id=row["id"],
        internal_page_id=row["internal_page_id"],
        user_id=row["user_id"],
        permission_level=row["permission_level"],
        granted_by=row["granted_by"],
        granted_at=row["granted_at"],
    )


class InternalPageRepo:
    def __init__(self, gateway: Gateway):
        self.gateway = gateway

    async def list_for_playbook(self, playbook_id: str) -> list[InternalPage]:
        rows = await self.gateway.select(PAGES, eq("playbook_id", playbook_id), order=[asc("created_at")])
        return [_row_to_page(r) for r in rows]

    async def get(self, page_id: str) -> InternalPage | None:
        row = await self.gateway.select_one(PAGES, eq("id", page_id))
        return _row_to_page(row) if row else None

    async def create(self, values: dict[str, Any]) -> InternalPage:
        rows = await self.gateway.insert(PAGES, values)
        return _row_to_page(rows[0])

    async def update(self, page_id: str, values: dict[str, Any]) -> InternalPage | None:
        values = {**values, "updated_at": datetime.now(UTC)}
        rows = await self.gateway.update(PAGES, values, eq("id", page_id))
        return _row_to_page(rows[0]) if rows else None

    async def delete(self, page_id: str) -> bool:
        """Delete a page. Its permission rows go with it (ON DELETE CASCADE)."""
        return await self.gateway.delete(PAGES, eq("id", page_id)) == 1

    async def list_permissions(self, page_id: str) -> list[InternalPagePermission]:
        rows = await self.gateway.select(PERMISSIONS, eq("internal_page_id", page_id), order=[asc("granted_at")])
        return [_row_to_permission(r) for r in rows]

    async def add_permissions(self, rows: list[dict[str, Any]]) -> list[InternalPagePermission]:
        if not rows:
            return []
        inserted = await self.gateway.insert(PERMISSIONS, rows)
        return [_row_to_permission(r) for r in inserted]

    async def clear_permissions(self, page_id: str) -> int:
        return await self.gateway.delete(PERMISSIONS, eq("internal_page_id", page_id))

    async def get_permission(self, page_id: str, user_id: str) -> InternalPagePermission | None:
        row = await self.gateway.select_one(PERMISSIONS, eq("internal_page_id", page_id), eq("user_id", user_id))
        return _row_to_permission(row) if row else None
