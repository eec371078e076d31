"""Internal page models."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from playbooq.models.collaborator import PermissionLevel


class InternalPage(BaseModel):
    """Represents a row in the internal_pages table."""

    id: UUID
    playbook_id: UUID
    page_name: str
    page_title: str
    content: str = ""
    created_at: datetime
    updated_at: datetime
    created_by: str


class InternalPagePermission(BaseModel):
    id: UUID
    internal_page_id: UUID
    user_id: str
    permission_level: PermissionLevel
    granted_by: str
    granted_at: datetime


class PermissionGrant(BaseModel):
    """One entry of the permissions list in create/update bodies."""

    userId: str = Field(min_length=1)
    permission: PermissionLevel


class CreateInternalPageRequest(BaseModel):
    """
    Body of POST /api/internal-pages.

    Required fields are checked by the service so a missing one yields the
    endpoint's own 400 message.
    """

    playbook_id: str | None = None
    page_name: str | None = None
    page_title: str | None = None
    content: str | None = None
    permissions: list[PermissionGrant] = Field(default_factory=list)


class UpdateInternalPageRequest(BaseModel):
    """Body of PUT /api/internal-pages. `permissions`, when present, replaces the list."""

    id: str | None = None
    page_name: str | None = None
    page_title: str | None = None
    content: str | None = None
    permissions: list[PermissionGrant] | None = None
