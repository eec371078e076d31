"""
Chat session for one playbook.

Sends are optimistic: the message shows up at once under a temporary id
(pending), then either takes the server's id (confirmed) or is removed
again (rolled back). Edits apply locally first and are undone by a full
reload when the server rejects them.

There is no push delivery; messages are read when the session loads and on
explicit reload.
"""

from __future__ import annotations

import itertools
import logging
from datetime import UTC, datetime

from playbooq import config
from playbooq.models.chat import ChatMessage, MessageState
from playbooq.models.user import SessionUser
from playbooq.services.chat_service import TEMP_PLAYBOOK_MESSAGE, ChatService
from playbooq.services.temp_playbooks import is_temp_playbook
from playbooq.utils.debounce import Debouncer

logger = logging.getLogger(__name__)

TEMP_MESSAGE_PREFIX = "temp-"


class ChatSession:
    def __init__(
        self,
        service: ChatService,
        playbook_id: str | None,
        user: SessionUser | None,
        typing_delay: float | None = None,
    ):
        self.service = service
        self.playbook_id = playbook_id
        self.user = user
        self.messages: list[ChatMessage] = []
        self.loading = False
        self.sending = False
        self.is_typing = False
        self.error: str | None = None
        self._temp_ids = itertools.count(1)
        delay = config.settings.TYPING_INDICATOR_SECONDS if typing_delay is None else typing_delay
        self._typing = Debouncer(delay, self._stop_typing, name="chat-typing")

    def _state(self, message_id: str) -> MessageState | None:
        for m in self.messages:
            if str(m.id) == message_id:
                return m.state
        return None

    async def load_messages(self, limit: int | None = None) -> None:
        """Replace the list with the server's current messages, oldest first."""
        if not self.playbook_id:
            return
        self.loading = True
        self.error = None
        try:
            self.messages = await self.service.list_messages(self.playbook_id, limit or config.settings.CHAT_PAGE_SIZE)
        except Exception as e:
            logger.error("Error loading messages for %s: %s", self.playbook_id, e)
            self.error = str(e) or "Failed to load messages"
        finally:
            self.loading = False

    async def send_message(self, text: str) -> ChatMessage | None:
        """
        Optimistically append a message and write it.

        Blank bodies are ignored without any state change. Unsaved playbooks
        and signed-out users are rejected before any network call.

        Returns:
            The confirmed message, or None if nothing was sent
        """
        body = text.strip()
        if not body:
            return None
        if not self.playbook_id:
            self.error = "No playbook selected"
            return None
        if is_temp_playbook(self.playbook_id):
            self.error = TEMP_PLAYBOOK_MESSAGE
            return None
        if not self.user:
            self.error = "User not authenticated"
            return None

        temp_id = f"{TEMP_MESSAGE_PREFIX}{next(self._temp_ids)}"
        self.messages.append(
            ChatMessage(
                id=temp_id,
                playbook_id=self.playbook_id,
                user_id=self.user.id,
                user_name=self.user.display_name,
                user_avatar=self.user.avatar_url,
                message=body,
                created_at=datetime.now(UTC),
                state=MessageState.PENDING,
            )
        )
        self.sending = True
        try:
            saved = await self.service.send_message(self.playbook_id, self.user, body)
        except Exception as e:
            logger.error("Error sending message: %s", e)
            self.messages = [m for m in self.messages if m.id != temp_id]
            self.error = str(e) or "Failed to send message"
            return None
        finally:
            self.sending = False

        confirmed = saved.model_copy(update={"state": MessageState.CONFIRMED})
        self.messages = [confirmed if m.id == temp_id else m for m in self.messages]
        self.error = None
        return confirmed

    async def edit_message(self, message_id: str, text: str) -> bool:
        """
        Apply an edit locally, then write it. A failed write reloads the list.

        Returns:
            True if the server accepted the edit
        """
        body = text.strip()
        if not body or not self.user:
            return False
        message_id = str(message_id)
        if self._state(message_id) is not MessageState.CONFIRMED:
            return False

        now = datetime.now(UTC)
        self.messages = [
            m.model_copy(update={"message": body, "edited_at": now}) if str(m.id) == message_id else m
            for m in self.messages
        ]
        try:
            await self.service.edit_message(message_id, self.user.id, body)
        except Exception as e:
            logger.error("Error editing message %s: %s", message_id, e)
            await self.load_messages()
            self.error = str(e) or "Failed to edit message"
            return False
        return True

    async def delete_message(self, message_id: str) -> bool:
        """Soft-delete remotely, then drop the message from the list."""
        if not self.user:
            return False
        message_id = str(message_id)
        try:
            await self.service.delete_message(message_id, self.user.id)
        except Exception as e:
            logger.error("Error deleting message %s: %s", message_id, e)
            self.error = str(e) or "Failed to delete message"
            return False
        self.messages = [m for m in self.messages if str(m.id) != message_id]
        return True

    def notify_typing(self) -> None:
        """Raise the typing flag. It drops after the typing delay; repeat calls while set do nothing."""
        if self.is_typing:
            return
        self.is_typing = True
        self._typing.trigger()

    def _stop_typing(self) -> None:
        self.is_typing = False

    def close(self) -> None:
        """Cancel timers. Requests already in flight are not aborted."""
        self._typing.cancel()
        self.is_typing = False
