"""
Tests for playbooq/services/playbook_service.py
"""

from __future__ import annotations

from uuid import uuid4

import pytest

from playbooq.errors import ForbiddenError, NotFoundError, ValidationError
from playbooq.models.playbook import CreatePlaybookRequest
from playbooq.utils.short_id import to_short_id

pytestmark = pytest.mark.asyncio(loop_scope="session")


class TestSavePlaybook:
    async def test_save_assigns_id_short_id_and_owner(self, playbook_service, gateway, owner):
        playbook = await playbook_service.save_playbook(
            CreatePlaybookRequest(title="Onboarding", category="Sales"), owner.id
        )

        assert playbook.title == "Onboarding"
        assert playbook.owner_id == owner.id
        assert playbook.category == "sales"
        assert playbook.short_id == to_short_id(playbook.id)

    async def test_save_registers_owner_collaborator(self, playbook_service, gateway, owner):
        playbook = await playbook_service.save_playbook(CreatePlaybookRequest(title="A"), owner.id)

        rows = gateway.rows("collaborators")
        assert len(rows) == 1
        assert rows[0]["playbook_id"] == str(playbook.id)
        assert rows[0]["user_id"] == owner.id
        assert rows[0]["permission_level"] == "owner"
        assert rows[0]["status"] == "accepted"
        assert rows[0]["accepted_at"] is not None

    async def test_owner_row_failure_does_not_fail_save(self, playbook_service, gateway, owner):
        gateway.fail("insert", "collaborators")
        playbook = await playbook_service.save_playbook(CreatePlaybookRequest(title="Still saved"), owner.id)

        assert playbook.title == "Still saved"
        assert len(gateway.rows("playbooks")) == 1
        assert gateway.rows("collaborators") == []


class TestReadsAndWrites:
    async def test_list_most_recent_first(self, playbook_service, owner):
        first = await playbook_service.save_playbook(CreatePlaybookRequest(title="First"), owner.id)
        second = await playbook_service.save_playbook(CreatePlaybookRequest(title="Second"), owner.id)
        await playbook_service.update_playbook(str(first.id), {"title": "First, edited"})

        listed = await playbook_service.get_playbooks(owner.id)
        assert [p.id for p in listed] == [first.id, second.id]
        assert listed[0].title == "First, edited"

    async def test_list_only_own(self, playbook_service, owner, other_user):
        await playbook_service.save_playbook(CreatePlaybookRequest(title="Mine"), owner.id)
        await playbook_service.save_playbook(CreatePlaybookRequest(title="Theirs"), other_user.id)

        assert [p.title for p in await playbook_service.get_playbooks(owner.id)] == ["Mine"]

    async def test_get_by_short_id(self, playbook_service, owner):
        saved = await playbook_service.save_playbook(CreatePlaybookRequest(title="Short"), owner.id)
        fetched = await playbook_service.get_playbook(saved.short_id)
        assert fetched.id == saved.id

    async def test_get_missing(self, playbook_service):
        with pytest.raises(NotFoundError):
            await playbook_service.get_playbook(str(uuid4()))

    async def test_get_malformed_id(self, playbook_service):
        with pytest.raises(ValidationError):
            await playbook_service.get_playbook("nope")

    async def test_update_lowercases_category_and_bumps_updated_at(self, playbook_service, owner):
        saved = await playbook_service.save_playbook(CreatePlaybookRequest(title="T"), owner.id)
        updated = await playbook_service.update_playbook(str(saved.id), {"category": "Marketing"})
        assert updated.category == "marketing"
        assert updated.updated_at > saved.updated_at

    async def test_update_missing(self, playbook_service):
        with pytest.raises(NotFoundError):
            await playbook_service.update_playbook(str(uuid4()), {"title": "x"})

    async def test_delete(self, playbook_service, owner):
        saved = await playbook_service.save_playbook(CreatePlaybookRequest(title="Gone"), owner.id)
        await playbook_service.delete_playbook(str(saved.id))
        with pytest.raises(NotFoundError):
            await playbook_service.get_playbook(str(saved.id))
        with pytest.raises(NotFoundError):
            await playbook_service.delete_playbook(str(saved.id))

    async def test_duplicate_is_private_copy(self, playbook_service, owner, other_user):
        original = await playbook_service.save_playbook(
            CreatePlaybookRequest(title="Source", content={"blocks": [1]}, tags=["a"], is_public=True),
            owner.id,
        )
        copy = await playbook_service.duplicate_playbook(str(original.id), other_user.id)

        assert copy.id != original.id
        assert copy.title == "Source (Copy)"
        assert copy.content == {"blocks": [1]}
        assert copy.tags == ["a"]
        assert copy.is_public is False
        assert copy.owner_id == other_user.id

    async def test_duplicate_with_title(self, playbook_service, owner):
        original = await playbook_service.save_playbook(CreatePlaybookRequest(title="Source"), owner.id)
        copy = await playbook_service.duplicate_playbook(str(original.id), owner.id, "Renamed")
        assert copy.title == "Renamed"

    async def test_search_title_or_description(self, playbook_service, owner):
        await playbook_service.save_playbook(CreatePlaybookRequest(title="Sales Playbook"), owner.id)
        await playbook_service.save_playbook(
            CreatePlaybookRequest(title="Other", description="for SALES teams"), owner.id
        )
        await playbook_service.save_playbook(CreatePlaybookRequest(title="Hiring"), owner.id)

        found = await playbook_service.search_playbooks(owner.id, "sales")
        assert sorted(p.title for p in found) == ["Other", "Sales Playbook"]

    async def test_blank_search_returns_everything(self, playbook_service, owner):
        await playbook_service.save_playbook(CreatePlaybookRequest(title="One"), owner.id)
        await playbook_service.save_playbook(CreatePlaybookRequest(title="Two"), owner.id)
        assert len(await playbook_service.search_playbooks(owner.id, "   ")) == 2

    async def test_public_playbooks(self, playbook_service, owner):
        await playbook_service.save_playbook(CreatePlaybookRequest(title="Open", is_public=True), owner.id)
        await playbook_service.save_playbook(CreatePlaybookRequest(title="Closed"), owner.id)
        assert [p.title for p in await playbook_service.get_public_playbooks()] == ["Open"]


class TestPermissions:
    async def test_owner_holds_owner(self, playbook_service, owner):
        saved = await playbook_service.save_playbook(CreatePlaybookRequest(title="P"), owner.id)
        assert await playbook_service.permission_for(saved, owner.id) == "owner"

    async def test_stranger_forbidden_on_private(self, playbook_service, owner, other_user):
        saved = await playbook_service.save_playbook(CreatePlaybookRequest(title="P"), owner.id)
        with pytest.raises(ForbiddenError):
            await playbook_service.require_permission(str(saved.id), other_user.id, "view")
        with pytest.raises(ForbiddenError):
            await playbook_service.require_permission(str(saved.id), None, "view")

    async def test_public_is_viewable_not_editable(self, playbook_service, owner, other_user):
        saved = await playbook_service.save_playbook(CreatePlaybookRequest(title="P", is_public=True), owner.id)
        assert (await playbook_service.require_permission(str(saved.id), other_user.id, "view")).id == saved.id
        with pytest.raises(ForbiddenError):
            await playbook_service.require_permission(str(saved.id), other_user.id, "edit")

    async def test_accepted_collaborator_level(self, playbook_service, gateway, owner, other_user):
        saved = await playbook_service.save_playbook(CreatePlaybookRequest(title="P"), owner.id)
        gateway.seed(
            "collaborators",
            playbook_id=str(saved.id),
            user_id=other_user.id,
            permission_level="edit",
            invited_by=owner.id,
            status="accepted",
        )
        await playbook_service.require_permission(str(saved.id), other_user.id, "edit")
        with pytest.raises(ForbiddenError):
            await playbook_service.require_permission(str(saved.id), other_user.id, "owner")

    async def test_pending_collaborator_has_nothing(self, playbook_service, gateway, owner, other_user):
        saved = await playbook_service.save_playbook(CreatePlaybookRequest(title="P"), owner.id)
        gateway.seed(
            "collaborators",
            playbook_id=str(saved.id),
            user_id=other_user.id,
            permission_level="edit",
            invited_by=owner.id,
            status="pending",
        )
        assert await playbook_service.permission_for(saved, other_user.id) is None

    async def test_get_collaborators_accepted_only(self, playbook_service, gateway, owner):
        saved = await playbook_service.save_playbook(CreatePlaybookRequest(title="P"), owner.id)
        gateway.seed(
            "collaborators",
            playbook_id=str(saved.id),
            user_id="pending:x@example.com",
            permission_level="view",
            invited_by=owner.id,
        )
        collaborators = await playbook_service.get_collaborators(str(saved.id))
        assert [c.user_id for c in collaborators] == [owner.id]
