"""Chat service: message rules shared by the HTTP routes and the chat session."""

from __future__ import annotations

import logging

from playbooq import config
from playbooq.errors import NotFoundError, ValidationError
from playbooq.gateway import Gateway
from playbooq.models.chat import ChatMessage
from playbooq.models.user import SessionUser
from playbooq.repos.chat_repo import ChatRepo
from playbooq.services.temp_playbooks import is_temp_playbook
from playbooq.utils.short_id import ensure_uuid

logger = logging.getLogger(__name__)

TEMP_PLAYBOOK_MESSAGE = "Cannot send messages for temporary playbooks. Please save the playbook first."


class ChatService:
    def __init__(self, gateway: Gateway):
        self.messages = ChatRepo(gateway)

    async def list_messages(self, playbook_id: str, limit: int | None = None) -> list[ChatMessage]:
        """Visible messages in ascending creation order. Temp playbooks have none."""
        if is_temp_playbook(playbook_id):
            return []
        return await self.messages.list_for_playbook(
            ensure_uuid(playbook_id), limit=limit or config.settings.CHAT_PAGE_SIZE
        )

    async def send_message(self, playbook_id: str, user: SessionUser, text: str) -> ChatMessage:
        """
        Store a message. The body is trimmed.

        Raises:
            ValidationError: If the body is blank or the playbook is unsaved
        """
        if is_temp_playbook(playbook_id):
            raise ValidationError(TEMP_PLAYBOOK_MESSAGE)
        body = text.strip()
        if not body:
            raise ValidationError("Message cannot be empty")
        return await self.messages.create(
            playbook_id=ensure_uuid(playbook_id),
            user_id=user.id,
            user_name=user.display_name,
            user_avatar=user.avatar_url,
            message=body,
        )

    async def edit_message(self, message_id: str, user_id: str, text: str) -> ChatMessage:
        """
        Edit one of the user's own messages.

        Raises:
            ValidationError: If the new body is blank
            NotFoundError: If the message is missing, deleted, or someone else's
        """
        body = text.strip()
        if not body:
            raise ValidationError("Message cannot be empty")
        edited = await self.messages.update_text(ensure_uuid(message_id), user_id, body)
        if not edited:
            raise NotFoundError("Message not found")
        return edited

    async def delete_message(self, message_id: str, user_id: str) -> None:
        """Soft-delete one of the user's own messages."""
        if not await self.messages.soft_delete(ensure_uuid(message_id), user_id):
            raise NotFoundError("Message not found")
        logger.info("Chat message %s deleted by %s", message_id, user_id)
