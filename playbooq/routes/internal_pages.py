"""
Internal page routes.

Responses are {"data": ...} on success; errors render as {"error": ...}.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query

from playbooq.auth import get_current_user
from playbooq.deps import get_internal_page_service, get_playbook_service
from playbooq.errors import ValidationError
from playbooq.models.internal_page import CreateInternalPageRequest, UpdateInternalPageRequest
from playbooq.models.user import SessionUser
from playbooq.services.internal_page_service import InternalPageService
from playbooq.services.playbook_service import PlaybookService
from playbooq.services.temp_playbooks import is_temp_playbook

router = APIRouter(prefix="/api/internal-pages", tags=["internal-pages"])


@router.get("", status_code=200)
async def get_internal_pages(
    playbookId: str | None = Query(default=None),
    id: str | None = Query(default=None),
    user: SessionUser = Depends(get_current_user),
    pages: InternalPageService = Depends(get_internal_page_service),
    playbooks: PlaybookService = Depends(get_playbook_service),
) -> dict[str, Any]:
    """One page by `id`, or every page of `playbookId` in creation order."""
    if id:
        page = await pages.get_page(id)
        await playbooks.require_permission(str(page.playbook_id), user.id, "view")
        return {"data": page.model_dump(mode="json")}

    if not playbookId:
        raise ValidationError("Playbook ID is required")
    if is_temp_playbook(playbookId):
        return {"data": []}
    playbook = await playbooks.require_permission(playbookId, user.id, "view")
    rows = await pages.list_pages(str(playbook.id))
    return {"data": [p.model_dump(mode="json") for p in rows]}


@router.post("", status_code=200)
async def create_internal_page(
    req: CreateInternalPageRequest,
    user: SessionUser = Depends(get_current_user),
    pages: InternalPageService = Depends(get_internal_page_service),
    playbooks: PlaybookService = Depends(get_playbook_service),
) -> dict[str, Any]:
    if req.playbook_id and req.page_name and req.page_title and not is_temp_playbook(req.playbook_id):
        playbook = await playbooks.require_permission(req.playbook_id, user.id, "edit")
        req = req.model_copy(update={"playbook_id": str(playbook.id)})
    page = await pages.create_page(req, user.id)
    return {"data": page.model_dump(mode="json")}


@router.put("", status_code=200)
async def update_internal_page(
    req: UpdateInternalPageRequest,
    user: SessionUser = Depends(get_current_user),
    pages: InternalPageService = Depends(get_internal_page_service),
    playbooks: PlaybookService = Depends(get_playbook_service),
) -> dict[str, Any]:
    if not req.id:
        raise ValidationError("Page ID is required")
    existing = await pages.get_page(req.id)
    await playbooks.require_permission(str(existing.playbook_id), user.id, "edit")
    page = await pages.update_page(req, user.id)
    return {"data": page.model_dump(mode="json")}


@router.delete("", status_code=200)
async def delete_internal_page(
    id: str | None = Query(default=None),
    user: SessionUser = Depends(get_current_user),
    pages: InternalPageService = Depends(get_internal_page_service),
    playbooks: PlaybookService = Depends(get_playbook_service),
) -> dict[str, Any]:
    if not id:
        raise ValidationError("Page ID is required")
    existing = await pages.get_page(id)
    await playbooks.require_permission(str(existing.playbook_id), user.id, "edit")
    await pages.delete_page(id)
    return {"success": True}


@router.get("/permissions", status_code=200)
async def get_page_permissions(
    pageId: str | None = Query(default=None),
    user: SessionUser = Depends(get_current_user),
    pages: InternalPageService = Depends(get_internal_page_service),
    playbooks: PlaybookService = Depends(get_playbook_service),
) -> dict[str, Any]:
    if not pageId:
        raise ValidationError("Page ID is required")
    page = await pages.get_page(pageId)
    await playbooks.require_permission(str(page.playbook_id), user.id, "view")
    rows = await pages.get_permissions(pageId)
    return {"data": [p.model_dump(mode="json") for p in rows]}


@router.get("/check-permission", status_code=200)
async def check_page_permission(
    pageId: str | None = Query(default=None),
    userId: str | None = Query(default=None),
    user: SessionUser = Depends(get_current_user),
    pages: InternalPageService = Depends(get_internal_page_service),
    playbooks: PlaybookService = Depends(get_playbook_service),
) -> dict[str, Any]:
    """Permission level `userId` holds on `pageId`, or null. Caller needs view on the page's playbook."""
    if not pageId or not userId:
        raise ValidationError("pageId and userId are required")
    page = await pages.get_page(pageId)
    await playbooks.require_permission(str(page.playbook_id), user.id, "view")
    permission = await pages.check_user_permission(pageId, userId)
    return {"permission": permission}
