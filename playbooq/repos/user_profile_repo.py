"""Repository for user profiles (creator display info)."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from playbooq.gateway import Gateway, eq, in_
from playbooq.models.user import UserProfile

TABLE = "user_profiles"


def _row_to_profile(row: dict[str, Any]) -> UserProfile:
    return UserProfile(
        id=row["id"],
        display_name=row.get("display_name"),
        avatar_url=row.get("avatar_url"),
        short_id=row.get("short_id"),
        created_at=row.get("created_at"),
    )


class UserProfileRepo:
    """Profile reads. Profiles are written by the identity provider sync."""

    def __init__(self, gateway: Gateway):
        self.gateway = gateway

    async def get(self, user_id: str) -> UserProfile | None:
        row = await self.gateway.select_one(TABLE, eq("id", user_id))
        return _row_to_profile(row) if row else None

    async def get_by_short_id(self, short_id: str) -> UserProfile | None:
        row = await self.gateway.select_one(TABLE, eq("short_id", short_id))
        return _row_to_profile(row) if row else None

    async def get_many(self, user_ids: Iterable[str]) -> dict[str, UserProfile]:
        """
        Fetch profiles for a set of user ids in one query.

        Returns:
            Mapping of user id to profile; ids without a profile are absent
        """
        ids = sorted({uid for uid in user_ids if uid})
        if not ids:
            return {}
        rows = await self.gateway.select(TABLE, in_("id", ids))
        return {row["id"]: _row_to_profile(row) for row in rows}
