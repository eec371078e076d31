"""
Collaboration invitation routes.

Responses are {"data": ...} on success; errors render as {"error": ...}.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from playbooq.auth import get_current_user
from playbooq.deps import get_collaborator_service, get_playbook_service
from playbooq.models.collaborator import (
    InviteCollaboratorRequest,
    SendInvitationRequest,
    UpdateCollaboratorRequest,
)
from playbooq.models.user import SessionUser
from playbooq.services import email
from playbooq.services.collaborator_service import CollaboratorService
from playbooq.services.playbook_service import PlaybookService

router = APIRouter(tags=["invitations"])


@router.post("/api/send-invitation", status_code=200)
async def send_invitation(
    req: SendInvitationRequest,
    user: SessionUser = Depends(get_current_user),
) -> dict[str, Any]:
    """Email an invitation for an existing pending collaborator row."""
    message_id = await email.send_invitation(
        collaborator_id=req.collaboratorId or "",
        inviter_name=req.inviterName or "",
        inviter_email=req.inviterEmail or "",
        playbook_title=req.playbookTitle or "",
        permission_level=req.permissionLevel or "",
        invited_email=req.invitedEmail or "",
    )
    return {"success": True, "messageId": message_id, "message": "Invitation sent successfully"}


@router.post("/api/playbooks/{playbook_id}/invitations", status_code=201)
async def invite_collaborator(
    playbook_id: str,
    req: InviteCollaboratorRequest,
    user: SessionUser = Depends(get_current_user),
    playbooks: PlaybookService = Depends(get_playbook_service),
    collaborators: CollaboratorService = Depends(get_collaborator_service),
) -> dict[str, Any]:
    """Invite someone by email. Owner only."""
    playbook = await playbooks.require_permission(playbook_id, user.id, "owner")
    collaborator = await collaborators.invite(
        str(playbook.id), user, req.email, req.permission_level, user_name=req.user_name
    )
    return {"data": collaborator.model_dump(mode="json")}


@router.get("/api/playbooks/{playbook_id}/invitations", status_code=200)
async def list_invitations(
    playbook_id: str,
    user: SessionUser = Depends(get_current_user),
    playbooks: PlaybookService = Depends(get_playbook_service),
    collaborators: CollaboratorService = Depends(get_collaborator_service),
) -> dict[str, Any]:
    """All collaborator rows of a playbook, pending ones included. Owner only."""
    playbook = await playbooks.require_permission(playbook_id, user.id, "owner")
    rows = await collaborators.list_all(str(playbook.id))
    return {"data": [c.model_dump(mode="json") for c in rows]}


@router.get("/api/invitations/{collaborator_id}", status_code=200)
async def get_invitation(
    collaborator_id: str,
    collaborators: CollaboratorService = Depends(get_collaborator_service),
) -> dict[str, Any]:
    """Invitation details for the accept page. No session needed."""
    details = await collaborators.get_invitation(collaborator_id)
    return {"data": details.model_dump(mode="json")}


@router.post("/api/invitations/{collaborator_id}/accept", status_code=200)
async def accept_invitation(
    collaborator_id: str,
    user: SessionUser = Depends(get_current_user),
    collaborators: CollaboratorService = Depends(get_collaborator_service),
) -> dict[str, Any]:
    collaborator = await collaborators.accept(collaborator_id, user)
    return {"data": collaborator.model_dump(mode="json")}


@router.patch("/api/playbooks/{playbook_id}/collaborators/{collaborator_id}", status_code=200)
async def update_collaborator(
    playbook_id: str,
    collaborator_id: str,
    req: UpdateCollaboratorRequest,
    user: SessionUser = Depends(get_current_user),
    playbooks: PlaybookService = Depends(get_playbook_service),
    collaborators: CollaboratorService = Depends(get_collaborator_service),
) -> dict[str, Any]:
    """Change a collaborator's permission level. Owner only."""
    playbook = await playbooks.require_permission(playbook_id, user.id, "owner")
    collaborator = await collaborators.update_permission(str(playbook.id), collaborator_id, req.permission_level)
    return {"data": collaborator.model_dump(mode="json")}


@router.delete("/api/playbooks/{playbook_id}/collaborators/{collaborator_id}", status_code=200)
async def remove_collaborator(
    playbook_id: str,
    collaborator_id: str,
    user: SessionUser = Depends(get_current_user),
    playbooks: PlaybookService = Depends(get_playbook_service),
    collaborators: CollaboratorService = Depends(get_collaborator_service),
) -> dict[str, Any]:
    playbook = await playbooks.require_permission(playbook_id, user.id, "owner")
    await collaborators.remove(str(playbook.id), collaborator_id)
    return {"success": True}
