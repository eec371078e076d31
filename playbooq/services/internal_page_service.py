"""
Internal page service.

Internal pages are playbook-scoped sub-documents with their own per-user
permission list. Unsaved (temp-) playbooks have no internal pages.
"""

from __future__ import annotations

import logging

from playbooq.errors import AppError, DownstreamError, NotFoundError, ValidationError
from playbooq.gateway import Gateway
from playbooq.models.internal_page import (
    CreateInternalPageRequest,
    InternalPage,
    InternalPagePermission,
    PermissionGrant,
    UpdateInternalPageRequest,
)
from playbooq.repos.internal_page_repo import InternalPageRepo
from playbooq.services.temp_playbooks import is_temp_playbook
from playbooq.utils.short_id import ensure_uuid

logger = logging.getLogger(__name__)


def _permission_rows(page_id: str, grants: list[PermissionGrant], granted_by: str) -> list[dict]:
    return [
        {
            "internal_page_id": page_id,
            "user_id": g.userId,
            "permission_level": g.permission,
            "granted_by": granted_by,
        }
        for g in grants
    ]


class InternalPageService:
    def __init__(self, gateway: Gateway):
        self.pages = InternalPageRepo(gateway)

    async def list_pages(self, playbook_id: str) -> list[InternalPage]:
        """Pages of a playbook in creation order. Temp playbooks short-circuit to []."""
        if not playbook_id:
            raise ValidationError("Playbook ID is required")
        if is_temp_playbook(playbook_id):
            return []
        return await self.pages.list_for_playbook(ensure_uuid(playbook_id))

    async def get_page(self, page_id: str) -> InternalPage:
        page = await self.pages.get(ensure_uuid(page_id))
        if not page:
            raise NotFoundError("Internal page not found")
        return page

    async def create_page(self, data: CreateInternalPageRequest, user_id: str) -> InternalPage:
        """
        Create a page and then its permissions.

        If the permission insert fails the page is deleted again so no page
        exists without its intended permissions.

        Raises:
            ValidationError: If required fields are missing or the playbook is unsaved
            DownstreamError: If either insert fails
        """
        if not data.playbook_id or not data.page_name or not data.page_title:
            raise ValidationError("playbook_id, page_name, and page_title are required")
        if is_temp_playbook(data.playbook_id):
            raise ValidationError(
                "Cannot create internal pages for temporary playbooks. Please save the playbook first."
            )

        page = await self.pages.create(
            {
                "playbook_id": ensure_uuid(data.playbook_id),
                "page_name": data.page_name,
                "page_title": data.page_title,
                "content": data.content or "",
                "created_by": user_id,
            }
        )

        if data.permissions:
            try:
                await self.pages.add_permissions(_permission_rows(str(page.id), data.permissions, user_id))
            except AppError as e:
                logger.error("Error creating internal page permissions for %s: %s", page.id, e)
                try:
                    await self.pages.delete(str(page.id))
                except AppError as rollback_error:
                    logger.error("Rollback of internal page %s failed: %s", page.id, rollback_error)
                raise DownstreamError(str(e)) from e

        logger.info("Internal page %s created on playbook %s", page.id, data.playbook_id)
        return page

    async def update_page(self, data: UpdateInternalPageRequest, user_id: str) -> InternalPage:
        """
        Update page fields. A given `permissions` list replaces the existing one.

        Raises:
            ValidationError: If the page id is missing
            NotFoundError: If the page doesn't exist
        """
        if not data.id:
            raise ValidationError("Page ID is required")
        page_id = ensure_uuid(data.id)

        values = data.model_dump(include={"page_name", "page_title", "content"}, exclude_none=True)
        page = await self.pages.update(page_id, values) if values else await self.pages.get(page_id)
        if not page:
            raise NotFoundError("Internal page not found")

        if data.permissions is not None:
            await self.pages.clear_permissions(page_id)
            await self.pages.add_permissions(_permission_rows(page_id, data.permissions, user_id))
        return page

    async def delete_page(self, page_id: str) -> None:
        if not page_id:
            raise ValidationError("Page ID is required")
        await self.pages.delete(ensure_uuid(page_id))
        logger.info("Internal page %s deleted", page_id)

    async def get_permissions(self, page_id: str) -> list[InternalPagePermission]:
        if not page_id:
            raise ValidationError("Page ID is required")
        return await self.pages.list_permissions(ensure_uuid(page_id))

    async def check_user_permission(self, page_id: str, user_id: str) -> str | None:
        """
        Permission level a user holds on a page, or None.

        The page's creator is always owner.
        """
        if not page_id or not user_id:
            raise ValidationError("pageId and userId are required")
        page_id = ensure_uuid(page_id)
        page = await self.pages.get(page_id)
        if not page:
            return None
        if page.created_by == user_id:
            return "owner"
        permission = await self.pages.get_permission(page_id, user_id)
        return permission.permission_level if permission else None
