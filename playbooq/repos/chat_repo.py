"""Repository for playbook chat messages."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from playbooq.gateway import Gateway, asc, eq
from playbooq.models.chat import ChatMessage

TABLE = "chat_messages"


def _row_to_message(row: dict[str, Any]) -> ChatMessage:
    return ChatMessage(
        id=row["id"],
        playbook_id=row["playbook_id"],
        user_id=row["user_id"],
        user_name=row["user_name"],
        user_avatar=row.get("user_avatar"),
        message=row["message"],
        created_at=row["created_at"],
        edited_at=row.get("edited_at"),
        deleted=bool(row.get("deleted")),
    )


class ChatRepo:
    """Chat message reads and writes. Deleted messages never come back from reads."""

    def __init__(self, gateway: Gateway):
        self.gateway = gateway

    async def list_for_playbook(self, playbook_id: str, limit: int = 50) -> list[ChatMessage]:
        """Visible messages for a playbook, oldest first."""
        rows = await self.gateway.select(
            TABLE,
            eq("playbook_id", playbook_id),
            eq("deleted", False),
            order=[asc("created_at")],
            limit=limit,
        )
        return [_row_to_message(r) for r in rows]

    async def create(
        self,
        playbook_id: str,
        user_id: str,
        user_name: str,
        user_avatar: str | None,
        message: str,
    ) -> ChatMessage:
        rows = await self.gateway.insert(
            TABLE,
            {
                "playbook_id": playbook_id,
                "user_id": user_id,
                "user_name": user_name,
                "user_avatar": user_avatar,
                "message": message,
                "deleted": False,
            },
            user_id=user_id,
        )
        return _row_to_message(rows[0])

    async def update_text(self, message_id: str, user_id: str, message: str) -> ChatMessage | None:
        """Edit a message. Only the author's own, not-deleted messages match."""
        rows = await self.gateway.update(
            TABLE,
            {"message": message, "edited_at": datetime.now(UTC)},
            eq("id", message_id),
            eq("user_id", user_id),
            eq("deleted", False),
            user_id=user_id,
        )
        return _row_to_message(rows[0]) if rows else None

    async def soft_delete(self, message_id: str, user_id: str) -> bool:
        """Flag a message deleted. The row stays in storage."""
        rows = await self.gateway.update(
            TABLE,
            {"deleted": True},
            eq("id", message_id),
            eq("user_id", user_id),
            user_id=user_id,
        )
        return bool(rows)
