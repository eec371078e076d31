"""
Playbook service: persistence rules on top of the playbook and collaborator repos.

Every saved playbook gets an accepted `owner` collaborator row so sharing
queries see the owner like any other member. Failing to create that row is
logged and does not fail the save.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from playbooq.errors import AppError, ForbiddenError, NotFoundError
from playbooq.gateway import Gateway
from playbooq.models.collaborator import Collaborator
from playbooq.models.playbook import CreatePlaybookRequest, Playbook, PlaybookListItem
from playbooq.repos.collaborator_repo import CollaboratorRepo
from playbooq.repos.playbook_repo import PlaybookRepo
from playbooq.utils.short_id import ensure_uuid, to_short_id

logger = logging.getLogger(__name__)

# Ranks for "at least this permission" checks.
_PERMISSION_RANK = {"view": 1, "edit": 2, "owner": 3}


class PlaybookService:
    def __init__(self, gateway: Gateway):
        self.playbooks = PlaybookRepo(gateway)
        self.collaborators = CollaboratorRepo(gateway)

    async def save_playbook(self, data: CreatePlaybookRequest, owner_id: str) -> Playbook:
        """
        Insert a new playbook and register its owner as a collaborator.

        Args:
            data: Playbook fields from the client
            owner_id: Authenticated user who owns the new playbook

        Returns:
            The stored Playbook
        """
        playbook_id = uuid4()
        values = data.model_dump(exclude_none=True)
        values.update(
            id=str(playbook_id),
            owner_id=owner_id,
            short_id=to_short_id(playbook_id),
            category=(data.category or "general").lower(),
        )
        playbook = await self.playbooks.create(values)
        logger.info("Playbook saved: %s", playbook.id)

        try:
            await self.collaborators.add(
                {
                    "playbook_id": str(playbook.id),
                    "user_id": owner_id,
                    "user_email": "",
                    "permission_level": "owner",
                    "invited_by": owner_id,
                    "status": "accepted",
                    "accepted_at": datetime.now(UTC),
                }
            )
        except AppError as e:
            logger.warning("Failed to add owner as collaborator for %s: %s", playbook.id, e)

        return playbook

    async def update_playbook(self, playbook_id: str, updates: dict[str, Any]) -> Playbook:
        """Apply a partial update. Raises NotFoundError when the playbook is gone."""
        playbook_id = ensure_uuid(playbook_id)
        if "category" in updates and updates["category"]:
            updates = {**updates, "category": updates["category"].lower()}
        playbook = await self.playbooks.update(playbook_id, updates)
        if not playbook:
            raise NotFoundError("Playbook not found")
        logger.info("Playbook updated: %s", playbook_id)
        return playbook

    async def get_playbooks(self, owner_id: str) -> list[PlaybookListItem]:
        return await self.playbooks.list_for_owner(owner_id)

    async def get_playbook(self, playbook_id: str) -> Playbook:
        playbook = await self.playbooks.get(ensure_uuid(playbook_id))
        if not playbook:
            raise NotFoundError("Playbook not found")
        return playbook

    async def delete_playbook(self, playbook_id: str) -> None:
        playbook_id = ensure_uuid(playbook_id)
        if not await self.playbooks.delete(playbook_id):
            raise NotFoundError("Playbook not found")
        logger.info("Playbook deleted: %s", playbook_id)

    async def duplicate_playbook(self, playbook_id: str, owner_id: str, new_title: str | None = None) -> Playbook:
        """
        Copy a playbook's content under a new id. Copies are always private.

        Args:
            playbook_id: Source playbook (UUID or short id)
            owner_id: Owner of the copy
            new_title: Title for the copy, defaults to "<title> (Copy)"
        """
        original = await self.get_playbook(playbook_id)
        copy = CreatePlaybookRequest(
            title=new_title or f"{original.title} (Copy)",
            content=original.content,
            description=original.description,
            tags=original.tags,
            category=original.category,
            is_public=False,
        )
        playbook = await self.save_playbook(copy, owner_id)
        logger.info("Playbook %s duplicated as %s", original.id, playbook.id)
        return playbook

    async def search_playbooks(self, owner_id: str, query: str) -> list[PlaybookListItem]:
        if not query.strip():
            return await self.get_playbooks(owner_id)
        return await self.playbooks.search_for_owner(owner_id, query.strip())

    async def get_public_playbooks(self, limit: int = 20, offset: int = 0) -> list[PlaybookListItem]:
        return await self.playbooks.list_public(limit=limit, offset=offset)

    async def get_collaborators(self, playbook_id: str) -> list[Collaborator]:
        """Accepted collaborators, ordered by name."""
        return await self.collaborators.list_for_playbook(ensure_uuid(playbook_id), status="accepted")

    async def permission_for(self, playbook: Playbook, user_id: str | None) -> str | None:
        """
        Effective permission of a user on a playbook.

        The owner is always "owner"; otherwise the accepted collaborator row
        decides. Public and marketplace playbooks are viewable by anyone.
        """
        if user_id and playbook.owner_id == user_id:
            return "owner"
        if user_id:
            collaborator = await self.collaborators.get_for_user(str(playbook.id), user_id)
            if collaborator and collaborator.status == "accepted":
                return collaborator.permission_level
        if playbook.is_public or playbook.is_marketplace:
            return "view"
        return None

    async def require_permission(self, playbook_id: str, user_id: str | None, level: str) -> Playbook:
        """
        Fetch a playbook and check the user holds at least `level` on it.

        Raises:
            NotFoundError: If the playbook doesn't exist
            ForbiddenError: If the user's permission is below `level`
        """
        playbook = await self.get_playbook(playbook_id)
        held = await self.permission_for(playbook, user_id)
        if _PERMISSION_RANK.get(held or "", 0) < _PERMISSION_RANK[level]:
            raise ForbiddenError("You don't have permission to access this playbook")
        return playbook
