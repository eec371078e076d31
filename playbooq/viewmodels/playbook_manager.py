"""
Playbook manager: the signed-in user's current playbook and playbook list.

Content edits are auto-saved once the editor has been quiet for
AUTOSAVE_DELAY_SECONDS; every edit restarts the wait. Auto-save failures are
logged and otherwise ignored. Explicit operations store the error message
and re-raise.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

from playbooq import config
from playbooq.errors import AuthError, ForbiddenError
from playbooq.models.playbook import CreatePlaybookRequest, Playbook, PlaybookListItem
from playbooq.models.user import SessionUser
from playbooq.services.playbook_service import PlaybookService
from playbooq.utils.debounce import Debouncer

logger = logging.getLogger(__name__)


class PlaybookManager:
    def __init__(
        self,
        service: PlaybookService,
        user: SessionUser | None,
        autosave_delay: float | None = None,
    ):
        self.service = service
        self.user = user
        self.current_playbook: Playbook | None = None
        self.playbook_list: list[PlaybookListItem] = []
        self.is_loading = False
        self.is_saving = False
        self.last_saved: datetime | None = None
        self.error: str | None = None
        self.has_unsaved_changes = False
        delay = config.settings.AUTOSAVE_DELAY_SECONDS if autosave_delay is None else autosave_delay
        self._autosave = Debouncer(delay, self._run_autosave, name="playbook-autosave")

    def _require_user(self) -> SessionUser:
        if not self.user:
            raise AuthError("User not authenticated")
        return self.user

    def clear_error(self) -> None:
        self.error = None

    def _apply_saved(self, playbook: Playbook) -> None:
        """Make `playbook` current and patch its list entry."""
        self.current_playbook = playbook
        self.last_saved = datetime.now(UTC)
        self.has_unsaved_changes = False
        self.playbook_list = [
            item.model_copy(
                update={
                    "title": playbook.title,
                    "description": playbook.description,
                    "updated_at": playbook.updated_at,
                }
            )
            if item.id == playbook.id
            else item
            for item in self.playbook_list
        ]

    async def load_playbook(self, playbook_id: str) -> None:
        """Load a playbook the user owns. Errors are stored, not raised."""
        if not self.user:
            self.error = "User not authenticated"
            return

        self.is_loading = True
        self.error = None
        try:
            playbook = await self.service.get_playbook(playbook_id)
            if playbook.owner_id != self.user.id:
                raise ForbiddenError("You do not have permission to access this playbook")
            self._autosave.cancel()
            self.current_playbook = playbook
            self.last_saved = datetime.now(UTC)
            self.has_unsaved_changes = False
            logger.info("Playbook loaded: %s", playbook.id)
        except Exception as e:
            logger.error("Error loading playbook %s: %s", playbook_id, e)
            self.error = str(e) or "Failed to load playbook"
        finally:
            self.is_loading = False

    async def save_playbook(self, data: CreatePlaybookRequest) -> Playbook:
        """Save a new playbook as the current user, make it current and refresh the list."""
        user = self._require_user()
        self.is_saving = True
        self.error = None
        try:
            playbook = await self.service.save_playbook(data, user.id)
        except Exception as e:
            logger.error("Error saving playbook: %s", e)
            self.error = str(e) or "Failed to save playbook"
            raise
        finally:
            self.is_saving = False

        self.current_playbook = playbook
        self.last_saved = datetime.now(UTC)
        self.has_unsaved_changes = False
        await self.refresh_playbook_list()
        return playbook

    async def update_playbook(self, playbook_id: str, updates: dict[str, Any]) -> Playbook:
        self._require_user()
        self.is_saving = True
        self.error = None
        try:
            playbook = await self.service.update_playbook(playbook_id, updates)
        except Exception as e:
            logger.error("Error updating playbook %s: %s", playbook_id, e)
            self.error = str(e) or "Failed to update playbook"
            raise
        finally:
            self.is_saving = False
        self._apply_saved(playbook)
        return playbook

    async def delete_playbook(self, playbook_id: str) -> None:
        """Delete a playbook. Clears the current playbook if it was this one."""
        self._require_user()
        self.is_loading = True
        self.error = None
        try:
            await self.service.delete_playbook(playbook_id)
        except Exception as e:
            logger.error("Error deleting playbook %s: %s", playbook_id, e)
            self.error = str(e) or "Failed to delete playbook"
            raise
        finally:
            self.is_loading = False

        if self.current_playbook and str(self.current_playbook.id) == str(playbook_id):
            self._autosave.cancel()
            self.current_playbook = None
            self.last_saved = None
        self.playbook_list = [p for p in self.playbook_list if str(p.id) != str(playbook_id)]

    async def duplicate_playbook(self, playbook_id: str, new_title: str | None = None) -> Playbook:
        user = self._require_user()
        self.is_saving = True
        self.error = None
        try:
            playbook = await self.service.duplicate_playbook(playbook_id, user.id, new_title)
        except Exception as e:
            logger.error("Error duplicating playbook %s: %s", playbook_id, e)
            self.error = str(e) or "Failed to duplicate playbook"
            raise
        finally:
            self.is_saving = False
        await self.refresh_playbook_list()
        return playbook

    def create_new_playbook(self) -> None:
        """Start from a blank editor. A pending auto-save for the old playbook is dropped."""
        self._autosave.cancel()
        self.current_playbook = None
        self.last_saved = None
        self.has_unsaved_changes = False
        self.clear_error()

    def update_content(self, content: Any, title: str | None = None) -> None:
        """Record an edit and (re)start the auto-save timer."""
        if not self.current_playbook:
            logger.debug("No current playbook to update")
            return
        self.has_unsaved_changes = True
        updates: dict[str, Any] = {"content": content}
        if title:
            updates["title"] = title
        self._autosave.trigger(str(self.current_playbook.id), updates)

    async def _run_autosave(self, playbook_id: str, updates: dict[str, Any]) -> None:
        self.is_saving = True
        try:
            playbook = await self.service.update_playbook(playbook_id, updates)
        except Exception as e:
            logger.error("Auto-save failed for %s: %s", playbook_id, e)
            return
        finally:
            self.is_saving = False
        if self.current_playbook and self.current_playbook.id == playbook.id:
            self._apply_saved(playbook)

    async def update_title(self, title: str) -> None:
        if not self.current_playbook:
            return
        try:
            await self.update_playbook(str(self.current_playbook.id), {"title": title})
        except Exception as e:
            logger.error("Error updating title: %s", e)

    async def refresh_playbook_list(self) -> None:
        if not self.user:
            self.playbook_list = []
            return
        self.is_loading = True
        self.error = None
        try:
            self.playbook_list = await self.service.get_playbooks(self.user.id)
        except Exception as e:
            logger.error("Error refreshing playbook list: %s", e)
            self.error = str(e) or "Failed to fetch playbooks"
        finally:
            self.is_loading = False

    async def search_playbooks(self, query: str) -> None:
        """Filter the list by title/description. A blank query reloads the full list."""
        if not self.user:
            self.playbook_list = []
            return
        if not query.strip():
            await self.refresh_playbook_list()
            return
        self.is_loading = True
        self.error = None
        try:
            self.playbook_list = await self.service.search_playbooks(self.user.id, query)
        except Exception as e:
            logger.error("Error searching playbooks: %s", e)
            self.error = str(e) or "Failed to search playbooks"
        finally:
            self.is_loading = False

    async def flush(self) -> None:
        """Run a pending auto-save now."""
        await self._autosave.flush()

    def close(self) -> None:
        self._autosave.cancel()
