"""
Temporary playbooks for signed-out users.

At most MAX_TEMP_PLAYBOOKS unsaved playbooks are kept in a local store, a
JSON array serialized through a small storage backend. Anything unreadable
in the store is treated as an empty list.
"""

from __future__ import annotations

import json
import logging
import secrets
import string
import time
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Protocol

from pydantic import ValidationError as PydanticValidationError

from playbooq import config
from playbooq.errors import DownstreamError, LimitExceededError, NotFoundError
from playbooq.models.playbook import LocalPlaybook

logger = logging.getLogger(__name__)

TEMP_ID_PREFIX = "temp-"
_ID_ALPHABET = string.digits + string.ascii_lowercase


def is_temp_playbook(playbook_id: Any) -> bool:
    return isinstance(playbook_id, str) and playbook_id.startswith(TEMP_ID_PREFIX)


def generate_temp_id() -> str:
    """temp-<epoch millis>-<9 random base36 chars>"""
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"{TEMP_ID_PREFIX}{int(time.time() * 1000)}-{suffix}"


class Storage(Protocol):
    def read(self) -> str | None: ...

    def write(self, data: str) -> None: ...

    def remove(self) -> None: ...


class JsonFileStorage:
    """Stores the serialized list in a single file."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def read(self) -> str | None:
        try:
            return self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def write(self, data: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(data, encoding="utf-8")
        tmp.replace(self.path)

    def remove(self) -> None:
        self.path.unlink(missing_ok=True)


class MemoryStorage:
    def __init__(self, data: str | None = None):
        self.data = data

    def read(self) -> str | None:
        return self.data

    def write(self, data: str) -> None:
        self.data = data

    def remove(self) -> None:
        self.data = None


class TempPlaybookStore:
    """CRUD over the locally stored temporary playbooks."""

    def __init__(self, storage: Storage | None = None, limit: int | None = None):
        self.storage = storage or JsonFileStorage(config.settings.TEMP_PLAYBOOK_STORE)
        self.limit = limit if limit is not None else config.settings.MAX_TEMP_PLAYBOOKS

    def _read_raw(self) -> list[Any]:
        try:
            stored = self.storage.read()
        except OSError as e:
            logger.error("Error reading temp playbooks: %s", e)
            return []
        if not stored:
            return []
        try:
            data = json.loads(stored)
        except json.JSONDecodeError as e:
            logger.error("Temp playbook store is corrupt: %s", e)
            return []
        return data if isinstance(data, list) else []

    def _write(self, playbooks: list[LocalPlaybook]) -> None:
        payload = json.dumps([p.model_dump(mode="json") for p in playbooks])
        try:
            self.storage.write(payload)
        except OSError as e:
            logger.error("Error writing temp playbooks: %s", e)
            raise DownstreamError("Failed to save playbook locally") from e

    def list(self) -> list[LocalPlaybook]:
        try:
            return [LocalPlaybook.model_validate(item) for item in self._read_raw()]
        except PydanticValidationError as e:
            logger.error("Temp playbook store holds invalid entries: %s", e)
            return []

    def get(self, playbook_id: str) -> LocalPlaybook | None:
        return next((p for p in self.list() if p.id == playbook_id), None)

    def count(self) -> int:
        return len(self.list())

    def can_create(self) -> bool:
        return self.count() < self.limit

    def save(self, data: dict[str, Any]) -> LocalPlaybook:
        """
        Store a new temporary playbook.

        Args:
            data: Playbook fields; id, timestamps and is_temp are assigned here

        Raises:
            LimitExceededError: If the store already holds `limit` playbooks
        """
        existing = self.list()
        if len(existing) >= self.limit:
            raise LimitExceededError(
                f"You can only create {self.limit} playbooks without signing in. Please sign in to create more."
            )

        now = datetime.now(UTC)
        fields = {k: v for k, v in data.items() if k not in {"id", "created_at", "updated_at", "is_temp"}}
        playbook = LocalPlaybook(id=generate_temp_id(), created_at=now, updated_at=now, is_temp=True, **fields)
        self._write([*existing, playbook])
        logger.info("Temp playbook saved: %s", playbook.id)
        return playbook

    def update(self, playbook_id: str, updates: dict[str, Any]) -> LocalPlaybook:
        """
        Merge updates into a stored playbook and bump updated_at.

        Raises:
            NotFoundError: If no stored playbook has this id
        """
        playbooks = self.list()
        for i, playbook in enumerate(playbooks):
            if playbook.id == playbook_id:
                fields = {k: v for k, v in updates.items() if k not in {"id", "created_at", "is_temp"}}
                merged = playbook.model_dump() | fields | {"updated_at": datetime.now(UTC)}
                playbooks[i] = LocalPlaybook.model_validate(merged)
                self._write(playbooks)
                return playbooks[i]
        raise NotFoundError("Playbook not found")

    def delete(self, playbook_id: str) -> None:
        self._write([p for p in self.list() if p.id != playbook_id])
        logger.info("Temp playbook deleted: %s", playbook_id)

    def clear(self) -> None:
        """Drop every temporary playbook, e.g. after sign-in."""
        try:
            self.storage.remove()
        except OSError as e:
            logger.error("Error clearing temp playbooks: %s", e)

    def cleanup_non_temp(self) -> int:
        """
        Remove entries whose id is not a temporary id.

        Returns:
            Number of entries removed
        """
        raw = self._read_raw()
        kept = [item for item in raw if isinstance(item, dict) and is_temp_playbook(item.get("id"))]
        removed = len(raw) - len(kept)
        if removed:
            try:
                self.storage.write(json.dumps(kept))
            except OSError as e:
                logger.error("Error cleaning up non-temp playbooks: %s", e)
                return 0
            logger.info("Cleaned up %d non-temp playbooks", removed)
        return removed
