"""Collaborator invitations: invite, look up, accept, change permission, remove."""

from __future__ import annotations

import logging

from playbooq.errors import NotFoundError, ValidationError
from playbooq.gateway import Gateway
from playbooq.models.collaborator import PERMISSION_LEVELS, Collaborator, InvitationDetails
from playbooq.models.user import SessionUser
from playbooq.repos.collaborator_repo import CollaboratorRepo
from playbooq.repos.playbook_repo import PlaybookRepo
from playbooq.repos.user_profile_repo import UserProfileRepo
from playbooq.services import email
from playbooq.utils.short_id import ensure_uuid

logger = logging.getLogger(__name__)

# Pending invitations are keyed by email until accepted.
PENDING_USER_PREFIX = "pending:"


class CollaboratorService:
    def __init__(self, gateway: Gateway):
        self.collaborators = CollaboratorRepo(gateway)
        self.playbooks = PlaybookRepo(gateway)
        self.profiles = UserProfileRepo(gateway)

    async def invite(
        self,
        playbook_id: str,
        inviter: SessionUser,
        invited_email: str,
        permission_level: str = "view",
        user_name: str | None = None,
    ) -> Collaborator:
        """
        Create a pending collaborator row and email the invitee.

        The row is created first so the email can link to it. If the email
        fails the row stays pending and the error propagates.

        Raises:
            NotFoundError: If the playbook doesn't exist
            ValidationError: If the permission is unknown or the email is already invited
            DownstreamError: If the email provider fails
        """
        if permission_level not in PERMISSION_LEVELS:
            raise ValidationError("Invalid permission level")
        invited_email = invited_email.strip().lower()
        if not invited_email or "@" not in invited_email:
            raise ValidationError("A valid email address is required")

        playbook = await self.playbooks.get(ensure_uuid(playbook_id))
        if not playbook:
            raise NotFoundError("Playbook not found")

        if await self.collaborators.get_by_email(str(playbook.id), invited_email):
            raise ValidationError("This user has already been invited to this playbook")

        collaborator = await self.collaborators.add(
            {
                "playbook_id": str(playbook.id),
                "user_id": f"{PENDING_USER_PREFIX}{invited_email}",
                "user_email": invited_email,
                "user_name": user_name,
                "permission_level": permission_level,
                "invited_by": inviter.id,
                "status": "pending",
            }
        )
        logger.info("Invitation %s created for playbook %s", collaborator.id, playbook.id)

        await email.send_invitation(
            collaborator_id=str(collaborator.id),
            inviter_name=inviter.display_name,
            inviter_email=inviter.email or "",
            playbook_title=playbook.title,
            permission_level=permission_level,
            invited_email=invited_email,
        )
        return collaborator

    async def get_invitation(self, collaborator_id: str) -> InvitationDetails:
        """
        Look up an invitation for the accept page.

        Raises:
            NotFoundError: If the invitation or its playbook is gone
        """
        collaborator = await self.collaborators.get(ensure_uuid(collaborator_id))
        if not collaborator:
            raise NotFoundError("Invitation not found or has expired")
        playbook = await self.playbooks.get(str(collaborator.playbook_id))
        if not playbook:
            raise NotFoundError("Invitation not found or has expired")

        inviter = await self.profiles.get(collaborator.invited_by)
        return InvitationDetails(
            collaborator=collaborator,
            playbook_title=playbook.title,
            inviter_name=(inviter.display_name if inviter else None) or "Someone",
        )

    async def accept(self, collaborator_id: str, user: SessionUser) -> Collaborator:
        """
        Bind a pending invitation to the accepting user.

        Raises:
            NotFoundError: If the invitation doesn't exist
            ValidationError: If it was already accepted or the user already collaborates
        """
        details = await self.get_invitation(collaborator_id)
        collaborator = details.collaborator
        if collaborator.status == "accepted":
            raise ValidationError("This invitation has already been accepted")

        existing = await self.collaborators.get_for_user(str(collaborator.playbook_id), user.id)
        if existing and existing.id != collaborator.id:
            raise ValidationError("You are already a collaborator on this playbook")

        accepted = await self.collaborators.accept(str(collaborator.id), user.id, user.name or collaborator.user_name)
        if not accepted:
            raise NotFoundError("Invitation not found or has expired")
        logger.info("Invitation %s accepted by %s", collaborator.id, user.id)
        return accepted

    async def update_permission(self, playbook_id: str, collaborator_id: str, permission_level: str) -> Collaborator:
        if permission_level not in PERMISSION_LEVELS:
            raise ValidationError("Invalid permission level")
        await self._get_on_playbook(playbook_id, collaborator_id)
        updated = await self.collaborators.update_permission(ensure_uuid(collaborator_id), permission_level)
        if not updated:
            raise NotFoundError("Collaborator not found")
        return updated

    async def remove(self, playbook_id: str, collaborator_id: str) -> None:
        collaborator = await self._get_on_playbook(playbook_id, collaborator_id)
        await self.collaborators.delete(str(collaborator.id))
        logger.info("Collaborator %s removed from playbook %s", collaborator.id, collaborator.playbook_id)

    async def list_all(self, playbook_id: str) -> list[Collaborator]:
        """Every collaborator row of a playbook, pending invitations included."""
        return await self.collaborators.list_for_playbook(ensure_uuid(playbook_id))

    async def _get_on_playbook(self, playbook_id: str, collaborator_id: str) -> Collaborator:
        collaborator = await self.collaborators.get(ensure_uuid(collaborator_id))
        if not collaborator or str(collaborator.playbook_id) != ensure_uuid(playbook_id):
            raise NotFoundError("Collaborator not found")
        return collaborator
