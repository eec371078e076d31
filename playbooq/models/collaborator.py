"""Collaborator and invitation models."""

from __future__ import annotations

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field

PermissionLevel = Literal["owner", "edit", "view"]
InvitationStatus = Literal["pending", "accepted", "declined"]

PERMISSION_LEVELS: tuple[str, ...] = ("owner", "edit", "view")


class Collaborator(BaseModel):
    """Represents a row in the collaborators table."""

    id: UUID
    playbook_id: UUID
    user_id: str
    user_email: str = ""
    user_name: str | None = None
    permission_level: PermissionLevel
    invited_by: str
    invited_at: datetime | None = None
    accepted_at: datetime | None = None
    status: InvitationStatus = "pending"


class InviteCollaboratorRequest(BaseModel):
    """What the client sends to invite someone to a playbook."""

    model_config = {"extra": "forbid"}

    email: str = Field(min_length=3, max_length=320)
    permission_level: PermissionLevel = "view"
    user_name: str | None = None


class SendInvitationRequest(BaseModel):
    """
    Body of POST /api/send-invitation.

    Fields are loose on purpose: presence and the permission level are
    checked by the email service so the error text matches the endpoint's
    contract rather than pydantic's.
    """

    collaboratorId: str | None = None
    inviterName: str | None = None
    inviterEmail: str | None = None
    playbookTitle: str | None = None
    permissionLevel: str | None = None
    invitedEmail: str | None = None


class UpdateCollaboratorRequest(BaseModel):
    model_config = {"extra": "forbid"}

    permission_level: PermissionLevel


class InvitationDetails(BaseModel):
    """What the accept page shows before the invitee accepts."""

    collaborator: Collaborator
    playbook_title: str
    inviter_name: str
