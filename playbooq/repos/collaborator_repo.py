"""Repository for collaborator (playbook membership) operations."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from playbooq.gateway import Gateway, asc, eq
from playbooq.models.collaborator import Collaborator

TABLE = "collaborators"


def _row_to_collaborator(row: dict[str, Any]) -> Collaborator:
    return Collaborator(
        id=row["id"],
        playbook_id=row["playbook_id"],
        user_id=row["user_id"],
        user_email=row.get("user_email") or "",
        user_name=row.get("user_name"),
        permission_level=row["permission_level"],
        invited_by=row["invited_by"],
        invited_at=row.get("invited_at"),
        accepted_at=row.get("accepted_at"),
        status=row.get("status") or "pending",
    )


class CollaboratorRepo:
    """All collaborator-table reads and writes."""

    def __init__(self, gateway: Gateway):
        self.gateway = gateway

    async def add(self, values: dict[str, Any]) -> Collaborator:
        rows = await self.gateway.insert(TABLE, values)
        return _row_to_collaborator(rows[0])

    async def get(self, collaborator_id: str) -> Collaborator | None:
        row = await self.gateway.select_one(TABLE, eq("id", collaborator_id))
        return _row_to_collaborator(row) if row else None

    async def get_for_user(self, playbook_id: str, user_id: str) -> Collaborator | None:
        row = await self.gateway.select_one(TABLE, eq("playbook_id", playbook_id), eq("user_id", user_id))
        return _row_to_collaborator(row) if row else None

    async def get_by_email(self, playbook_id: str, email: str) -> Collaborator | None:
        row = await self.gateway.select_one(TABLE, eq("playbook_id", playbook_id), eq("user_email", email))
        return _row_to_collaborator(row) if row else None

    async def list_for_playbook(self, playbook_id: str, status: str | None = None) -> list[Collaborator]:
        """List collaborators of a playbook ordered by name, optionally by status."""
        filters = [eq("playbook_id", playbook_id)]
        if status:
            filters.append(eq("status", status))
        rows = await self.gateway.select(TABLE, *filters, order=[asc("user_name")])
        return [_row_to_collaborator(r) for r in rows]

    async def accept(self, collaborator_id: str, user_id: str, user_name: str | None) -> Collaborator | None:
        """Bind a pending invitation to the accepting user."""
        values: dict[str, Any] = {
            "user_id": user_id,
            "status": "accepted",
            "accepted_at": datetime.now(UTC),
        }
        if user_name:
            values["user_name"] = user_name
        rows = await self.gateway.update(TABLE, values, eq("id", collaborator_id))
        return _row_to_collaborator(rows[0]) if rows else None

    async def update_permission(self, collaborator_id: str, permission_level: str) -> Collaborator | None:
        rows = await self.gateway.update(TABLE, {"permission_level": permission_level}, eq("id", collaborator_id))
        return _row_to_collaborator(rows[0]) if rows else None

    async def delete(self, collaborator_id: str) -> bool:
        return await self.gateway.delete(TABLE, eq("id", collaborator_id)) == 1
