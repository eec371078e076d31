"""Repository for playbook operations."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from playbooq.gateway import Gateway, any_of, desc, eq, ilike
from playbooq.models.playbook import LIST_COLUMNS, Playbook, PlaybookListItem

TABLE = "playbooks"


def _row_to_playbook(row: dict[str, Any]) -> Playbook:
    """Convert a database row to a Playbook model."""
    return Playbook(
        id=row["id"],
        title=row.get("title") or "Untitled Playbook",
        content=row.get("content") if row.get("content") is not None else {},
        description=row.get("description"),
        tags=row.get("tags") or [],
        category=row.get("category") or "general",
        is_public=bool(row.get("is_public")),
        owner_id=row.get("owner_id"),
        is_marketplace=bool(row.get("is_marketplace")),
        price=row.get("price") or 0,
        preview_content=row.get("preview_content"),
        total_purchases=row.get("total_purchases") or 0,
        average_rating=row.get("average_rating") or 0,
        short_id=row.get("short_id"),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _row_to_list_item(row: dict[str, Any]) -> PlaybookListItem:
    return PlaybookListItem(
        id=row["id"],
        title=row.get("title") or "Untitled Playbook",
        description=row.get("description"),
        tags=row.get("tags") or [],
        is_public=bool(row.get("is_public")),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
        owner_id=row.get("owner_id"),
        is_marketplace=bool(row.get("is_marketplace")),
        price=row.get("price") or 0,
        total_purchases=row.get("total_purchases") or 0,
        average_rating=row.get("average_rating") or 0,
    )


class PlaybookRepo:
    """All playbook-table reads and writes."""

    def __init__(self, gateway: Gateway):
        self.gateway = gateway

    async def create(self, values: dict[str, Any]) -> Playbook:
        """
        Insert a playbook row.

        Args:
            values: Column values; id and timestamps default in the database

        Returns:
            Newly created Playbook
        """
        rows = await self.gateway.insert(TABLE, values)
        return _row_to_playbook(rows[0])

    async def get(self, playbook_id: str) -> Playbook | None:
        row = await self.gateway.select_one(TABLE, eq("id", playbook_id))
        return _row_to_playbook(row) if row else None

    async def get_by_short_id(self, short_id: str) -> Playbook | None:
        row = await self.gateway.select_one(TABLE, eq("short_id", short_id))
        return _row_to_playbook(row) if row else None

    async def list_for_owner(self, owner_id: str) -> list[PlaybookListItem]:
        """List an owner's playbooks, most recently updated first."""
        rows = await self.gateway.select(
            TABLE,
            eq("owner_id", owner_id),
            order=[desc("updated_at")],
            columns=LIST_COLUMNS,
        )
        return [_row_to_list_item(r) for r in rows]

    async def search_for_owner(self, owner_id: str, query: str) -> list[PlaybookListItem]:
        """Owner's playbooks whose title or description contains `query`."""
        rows = await self.gateway.select(
            TABLE,
            eq("owner_id", owner_id),
            any_of(ilike("title", query), ilike("description", query)),
            order=[desc("updated_at")],
            columns=LIST_COLUMNS,
        )
        return [_row_to_list_item(r) for r in rows]

    async def list_public(self, limit: int = 20, offset: int = 0) -> list[PlaybookListItem]:
        rows = await self.gateway.select(
            TABLE,
            eq("is_public", True),
            order=[desc("created_at")],
            limit=limit,
            offset=offset,
            columns=LIST_COLUMNS,
        )
        return [_row_to_list_item(r) for r in rows]

    async def update(self, playbook_id: str, values: dict[str, Any]) -> Playbook | None:
        """
        Update the given columns and bump updated_at.

        Returns:
            Updated Playbook, or None when no row has this id
        """
        values = {**values, "updated_at": datetime.now(UTC)}
        rows = await self.gateway.update(TABLE, values, eq("id", playbook_id))
        return _row_to_playbook(rows[0]) if rows else None

    async def delete(self, playbook_id: str) -> bool:
        return await self.gateway.delete(TABLE, eq("id", playbook_id)) == 1
