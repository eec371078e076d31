"""
Tests for playbooq/services/temp_playbooks.py
"""

from __future__ import annotations

import json
import re

import pytest

from playbooq.errors import LimitExceededError, NotFoundError
from playbooq.services.temp_playbooks import (
    JsonFileStorage,
    MemoryStorage,
    TempPlaybookStore,
    generate_temp_id,
    is_temp_playbook,
)


@pytest.fixture
def store():
    return TempPlaybookStore(MemoryStorage(), limit=2)


class TestIds:
    def test_format(self):
        assert re.fullmatch(r"temp-\d{13}-[0-9a-z]{9}", generate_temp_id())

    def test_unique(self):
        assert len({generate_temp_id() for _ in range(50)}) == 50

    def test_is_temp(self):
        assert is_temp_playbook("temp-123-abc")
        assert not is_temp_playbook("3f2b5c1e-0000-4000-8000-000000000000")
        assert not is_temp_playbook(None)


class TestStore:
    def test_save_and_list(self, store):
        saved = store.save({"title": "Draft", "content": {"blocks": []}})
        assert is_temp_playbook(saved.id)
        assert saved.is_temp is True
        assert [p.id for p in store.list()] == [saved.id]
        assert store.get(saved.id).title == "Draft"

    def test_caller_cannot_pick_id(self, store):
        saved = store.save({"id": "mine", "title": "x"})
        assert saved.id != "mine"

    def test_limit(self, store):
        store.save({"title": "one"})
        store.save({"title": "two"})
        assert store.can_create() is False
        with pytest.raises(LimitExceededError) as exc_info:
            store.save({"title": "three"})
        assert exc_info.value.message == (
            "You can only create 2 playbooks without signing in. Please sign in to create more."
        )
        assert store.count() == 2

    def test_update(self, store):
        saved = store.save({"title": "Draft"})
        updated = store.update(saved.id, {"title": "Better", "id": "ignored"})
        assert updated.id == saved.id
        assert updated.title == "Better"
        assert updated.updated_at >= saved.updated_at
        assert store.get(saved.id).title == "Better"

    def test_update_missing(self, store):
        with pytest.raises(NotFoundError):
            store.update("temp-0-missing", {"title": "x"})

    def test_delete_and_clear(self, store):
        a = store.save({"title": "a"})
        store.save({"title": "b"})
        store.delete(a.id)
        assert [p.title for p in store.list()] == ["b"]
        store.clear()
        assert store.list() == []

    def test_corrupt_store_reads_empty(self):
        store = TempPlaybookStore(MemoryStorage("{not json"), limit=2)
        assert store.list() == []
        assert store.can_create() is True

    def test_non_list_reads_empty(self):
        store = TempPlaybookStore(MemoryStorage(json.dumps({"a": 1})), limit=2)
        assert store.list() == []

    def test_cleanup_non_temp(self):
        raw = [
            {"id": "temp-1-aaaaaaaaa", "title": "keep", "created_at": "2025-01-01T00:00:00Z", "updated_at": "2025-01-01T00:00:00Z"},
            {"id": "3f2b5c1e-0000-4000-8000-000000000000", "title": "drop"},
            "junk",
        ]
        storage = MemoryStorage(json.dumps(raw))
        store = TempPlaybookStore(storage, limit=2)

        assert store.cleanup_non_temp() == 2
        assert [p.title for p in store.list()] == ["keep"]
        assert store.cleanup_non_temp() == 0


class TestJsonFileStorage:
    def test_persists_across_instances(self, tmp_path):
        path = tmp_path / "nested" / "temp.json"
        saved = TempPlaybookStore(JsonFileStorage(path), limit=2).save({"title": "On disk"})

        reopened = TempPlaybookStore(JsonFileStorage(path), limit=2)
        assert [p.id for p in reopened.list()] == [saved.id]
        assert not (tmp_path / "nested" / "temp.json.tmp").exists()

    def test_missing_file_is_empty(self, tmp_path):
        assert TempPlaybookStore(JsonFileStorage(tmp_path / "none.json")).list() == []

    def test_remove(self, tmp_path):
        storage = JsonFileStorage(tmp_path / "t.json")
        storage.write("[]")
        storage.remove()
        storage.remove()
        assert storage.read() is None
