"""Playbook CRUD routes: list, create, search, get, update, delete, duplicate."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from playbooq.auth import get_current_user, get_optional_user
from playbooq.deps import get_playbook_service
from playbooq.models.collaborator import Collaborator
from playbooq.models.playbook import (
    CreatePlaybookRequest,
    DuplicatePlaybookRequest,
    Playbook,
    PlaybookListItem,
    UpdatePlaybookRequest,
)
from playbooq.models.user import SessionUser
from playbooq.services.playbook_service import PlaybookService

router = APIRouter(prefix="/api/playbooks", tags=["playbooks"])


@router.get("", status_code=200)
async def list_playbooks(
    user: SessionUser = Depends(get_current_user),
    service: PlaybookService = Depends(get_playbook_service),
) -> list[PlaybookListItem]:
    """List the current user's playbooks, most recently updated first."""
    return await service.get_playbooks(user.id)


@router.post("", status_code=201)
async def create_playbook(
    req: CreatePlaybookRequest,
    user: SessionUser = Depends(get_current_user),
    service: PlaybookService = Depends(get_playbook_service),
) -> Playbook:
    """Save a new playbook owned by the current user."""
    return await service.save_playbook(req, user.id)


@router.get("/search", status_code=200)
async def search_playbooks(
    q: str = Query(default=""),
    user: SessionUser = Depends(get_current_user),
    service: PlaybookService = Depends(get_playbook_service),
) -> list[PlaybookListItem]:
    """Search the current user's playbooks by title or description."""
    return await service.search_playbooks(user.id, q)


@router.get("/public", status_code=200)
async def list_public_playbooks(
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    service: PlaybookService = Depends(get_playbook_service),
) -> list[PlaybookListItem]:
    return await service.get_public_playbooks(limit=limit, offset=offset)


@router.get("/{playbook_id}", status_code=200)
async def get_playbook(
    playbook_id: str,
    user: SessionUser | None = Depends(get_optional_user),
    service: PlaybookService = Depends(get_playbook_service),
) -> Playbook:
    """Get a playbook by UUID or short id. Private playbooks need a collaborator."""
    return await service.require_permission(playbook_id, user.id if user else None, "view")


@router.patch("/{playbook_id}", status_code=200)
async def update_playbook(
    playbook_id: str,
    req: UpdatePlaybookRequest,
    user: SessionUser = Depends(get_current_user),
    service: PlaybookService = Depends(get_playbook_service),
) -> Playbook:
    """Partially update a playbook. Needs edit permission."""
    playbook = await service.require_permission(playbook_id, user.id, "edit")
    return await service.update_playbook(str(playbook.id), req.model_dump(exclude_unset=True))


@router.delete("/{playbook_id}", status_code=200)
async def delete_playbook(
    playbook_id: str,
    user: SessionUser = Depends(get_current_user),
    service: PlaybookService = Depends(get_playbook_service),
) -> dict[str, str]:
    """Permanently delete a playbook. Owner only."""
    playbook = await service.require_permission(playbook_id, user.id, "owner")
    await service.delete_playbook(str(playbook.id))
    return {"message": "Playbook deleted."}


@router.post("/{playbook_id}/duplicate", status_code=201)
async def duplicate_playbook(
    playbook_id: str,
    req: DuplicatePlaybookRequest | None = None,
    user: SessionUser = Depends(get_current_user),
    service: PlaybookService = Depends(get_playbook_service),
) -> Playbook:
    """Copy a playbook the user can view into a new private playbook they own."""
    playbook = await service.require_permission(playbook_id, user.id, "view")
    return await service.duplicate_playbook(str(playbook.id), user.id, req.title if req else None)


@router.get("/{playbook_id}/collaborators", status_code=200)
async def list_collaborators(
    playbook_id: str,
    user: SessionUser = Depends(get_current_user),
    service: PlaybookService = Depends(get_playbook_service),
) -> list[Collaborator]:
    """Accepted collaborators of a playbook, ordered by name."""
    playbook = await service.require_permission(playbook_id, user.id, "view")
    return await service.get_collaborators(str(playbook.id))
