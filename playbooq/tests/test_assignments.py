"""
Tests for playbooq/services/assignment_service.py
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest

from playbooq.errors import NotFoundError
from playbooq.models.assignment import (
    AssigneeInput,
    CreateAssignmentRequest,
    UpdateAssignmentRequest,
)

pytestmark = pytest.mark.asyncio(loop_scope="session")

NOW = datetime(2026, 3, 1, 12, tzinfo=UTC)


@pytest.fixture
def playbook_id():
    return str(uuid4())


def request(assigned_to="user_other", due=None, **fields) -> CreateAssignmentRequest:
    return CreateAssignmentRequest(
        assigned_to=assigned_to,
        assigned_to_name="Sam Other",
        due_date=due or NOW + timedelta(days=3),
        **fields,
    )


def notifications(gateway, notification_type=None):
    rows = gateway.rows("assignment_notifications")
    return [
        (r["user_id"], r["notification_type"])
        for r in rows
        if notification_type is None or r["notification_type"] == notification_type
    ]


class TestCreate:
    async def test_create_notifies_assignee(self, assignment_service, gateway, owner, playbook_id):
        assignment = await assignment_service.create_assignment(playbook_id, request(), owner)

        assert assignment.assigned_by == owner.id
        assert assignment.assigned_by_name == "Olive Owner"
        assert assignment.status == "pending"
        assert assignment.assignment_color == "#fef3c7"
        assert notifications(gateway) == [("user_other", "assigned")]

    async def test_manual_assignee_not_notified(self, assignment_service, gateway, owner, playbook_id):
        await assignment_service.create_assignment(playbook_id, request("manual_jamie"), owner)
        assert notifications(gateway) == []

    async def test_extra_assignees(self, assignment_service, gateway, owner, playbook_id):
        data = request(
            assignees=[
                AssigneeInput(user_id="user_a", user_name="A"),
                AssigneeInput(user_id="manual_b", user_name="B"),
            ]
        )
        assignment = await assignment_service.create_assignment(playbook_id, data, owner)

        assignees = await assignment_service.get_assignees(str(assignment.id))
        assert [a.user_id for a in assignees] == ["user_a", "manual_b"]
        assert sorted(notifications(gateway)) == [("user_a", "assigned"), ("user_other", "assigned")]

    async def test_notification_failure_does_not_fail_create(self, assignment_service, gateway, owner, playbook_id):
        gateway.fail("insert", "assignment_notifications")
        assignment = await assignment_service.create_assignment(playbook_id, request(), owner)
        assert (await assignment_service.get_assignment(str(assignment.id))).id == assignment.id


class TestUpdate:
    async def test_complete_notifies_assigner(self, assignment_service, gateway, owner, playbook_id):
        assignment = await assignment_service.create_assignment(playbook_id, request(), owner)
        updated = await assignment_service.update_assignment(
            str(assignment.id), UpdateAssignmentRequest(status="completed")
        )
        assert updated.status == "completed"
        assert notifications(gateway, "completed") == [(owner.id, "completed")]

    async def test_other_status_no_notification(self, assignment_service, gateway, owner, playbook_id):
        assignment = await assignment_service.create_assignment(playbook_id, request(), owner)
        await assignment_service.update_assignment(str(assignment.id), UpdateAssignmentRequest(status="in_progress"))
        assert notifications(gateway, "completed") == []

    async def test_update_missing(self, assignment_service):
        with pytest.raises(NotFoundError):
            await assignment_service.update_assignment(str(uuid4()), UpdateAssignmentRequest(status="completed"))

    async def test_delete(self, assignment_service, owner, playbook_id):
        assignment = await assignment_service.create_assignment(playbook_id, request(), owner)
        await assignment_service.delete_assignment(str(assignment.id))
        with pytest.raises(NotFoundError):
            await assignment_service.get_assignment(str(assignment.id))


class TestQueries:
    async def test_user_assignments_soonest_first(self, assignment_service, owner, playbook_id):
        later = await assignment_service.create_assignment(playbook_id, request(due=NOW + timedelta(days=9)), owner)
        sooner = await assignment_service.create_assignment(playbook_id, request(due=NOW + timedelta(days=1)), owner)
        await assignment_service.create_assignment(playbook_id, request("user_x"), owner)

        result = await assignment_service.get_user_assignments("user_other")
        assert [a.id for a in result] == [sooner.id, later.id]

    async def test_playbook_assignments(self, assignment_service, owner, playbook_id):
        await assignment_service.create_assignment(playbook_id, request(), owner)
        await assignment_service.create_assignment(str(uuid4()), request(), owner)
        assert len(await assignment_service.get_playbook_assignments(playbook_id)) == 1

    async def test_overdue_only_pending_past_due(self, assignment_service, owner, playbook_id):
        past = datetime.now(UTC) - timedelta(days=1)
        overdue = await assignment_service.create_assignment(playbook_id, request(due=past), owner)
        done = await assignment_service.create_assignment(playbook_id, request(due=past), owner)
        await assignment_service.update_assignment(str(done.id), UpdateAssignmentRequest(status="completed"))
        await assignment_service.create_assignment(
            playbook_id, request(due=datetime.now(UTC) + timedelta(days=1)), owner
        )

        result = await assignment_service.get_overdue_assignments("user_other")
        assert [a.id for a in result] == [overdue.id]

    async def test_stats(self, assignment_service, owner, playbook_id):
        past = NOW - timedelta(days=1)
        future = NOW + timedelta(days=1)
        await assignment_service.create_assignment(playbook_id, request(due=past), owner)
        await assignment_service.create_assignment(playbook_id, request(due=future), owner)
        started = await assignment_service.create_assignment(playbook_id, request(due=future), owner)
        finished = await assignment_service.create_assignment(playbook_id, request(due=past), owner)
        await assignment_service.update_assignment(str(started.id), UpdateAssignmentRequest(status="in_progress"))
        await assignment_service.update_assignment(str(finished.id), UpdateAssignmentRequest(status="completed"))

        stats = await assignment_service.get_user_stats("user_other", now=NOW)
        assert stats.total == 4
        assert stats.pending == 2
        assert stats.in_progress == 1
        assert stats.completed == 1
        assert stats.overdue == 1


class TestComments:
    async def test_comment_notifies_others(self, assignment_service, gateway, owner, other_user, playbook_id):
        assignment = await assignment_service.create_assignment(playbook_id, request(other_user.id), owner)
        gateway.rows("assignment_notifications").clear()

        comment = await assignment_service.add_comment(str(assignment.id), "Looks good", other_user)
        assert comment.user_name == "Sam Other"
        assert notifications(gateway) == [(owner.id, "commented")]

        comments = await assignment_service.get_comments(str(assignment.id))
        assert [c.comment for c in comments] == ["Looks good"]

    async def test_comment_skips_manual_assignee(self, assignment_service, gateway, owner, playbook_id):
        assignment = await assignment_service.create_assignment(playbook_id, request("manual_jamie"), owner)
        await assignment_service.add_comment(str(assignment.id), "note to self", owner)
        assert notifications(gateway) == []

    async def test_comment_on_missing_assignment(self, assignment_service, owner):
        with pytest.raises(NotFoundError):
            await assignment_service.add_comment(str(uuid4()), "hello", owner)


class TestAssignees:
    async def test_replace(self, assignment_service, owner, playbook_id):
        assignment = await assignment_service.create_assignment(
            playbook_id, request(assignees=[AssigneeInput(user_id="user_a", user_name="A")]), owner
        )
        await assignment_service.replace_assignees(
            str(assignment.id), [AssigneeInput(user_id="user_b", user_name="B")]
        )
        assert [a.user_id for a in await assignment_service.get_assignees(str(assignment.id))] == ["user_b"]

    async def test_remove(self, assignment_service, owner, playbook_id):
        assignment = await assignment_service.create_assignment(
            playbook_id,
            request(assignees=[AssigneeInput(user_id="user_a", user_name="A"), AssigneeInput(user_id="user_b", user_name="B")]),
            owner,
        )
        await assignment_service.remove_assignee(str(assignment.id), "user_a")
        assert [a.user_id for a in await assignment_service.get_assignees(str(assignment.id))] == ["user_b"]


class TestNotifications:
    async def test_mark_read(self, assignment_service, owner, playbook_id):
        await assignment_service.create_assignment(playbook_id, request(), owner)
        await assignment_service.create_assignment(playbook_id, request(), owner)

        unread = await assignment_service.get_notifications("user_other")
        assert len(unread) == 2
        await assignment_service.mark_notification_read(str(unread[0].id), "user_other")
        assert await assignment_service.mark_all_notifications_read("user_other") == 1
        assert all(n.is_read for n in await assignment_service.get_notifications("user_other"))

    async def test_mark_someone_elses_notification(self, assignment_service, owner, playbook_id):
        await assignment_service.create_assignment(playbook_id, request(), owner)
        notification = (await assignment_service.get_notifications("user_other"))[0]
        with pytest.raises(NotFoundError):
            await assignment_service.mark_notification_read(str(notification.id), owner.id)
