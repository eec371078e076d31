"""
Assignment service.

Notifications are best-effort: a failed notification insert is logged and
never fails the assignment operation that triggered it.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from playbooq.errors import AppError, NotFoundError
from playbooq.gateway import Gateway
from playbooq.models.assignment import (
    MANUAL_ASSIGNEE_PREFIX,
    AssigneeInput,
    Assignment,
    AssignmentAssignee,
    AssignmentComment,
    AssignmentNotification,
    AssignmentStats,
    CreateAssignmentRequest,
    UpdateAssignmentRequest,
)
from playbooq.models.user import SessionUser
from playbooq.repos.assignment_repo import AssignmentRepo
from playbooq.utils.short_id import ensure_uuid

logger = logging.getLogger(__name__)


class AssignmentService:
    def __init__(self, gateway: Gateway):
        self.assignments = AssignmentRepo(gateway)

    async def _notify(self, assignment_id: str, user_id: str, notification_type: str) -> None:
        try:
            await self.assignments.add_notification(assignment_id, user_id, notification_type)
        except AppError as e:
            logger.error("Error creating %s notification for %s: %s", notification_type, user_id, e)

    async def get_playbook_assignments(self, playbook_id: str) -> list[Assignment]:
        return await self.assignments.list_for_playbook(ensure_uuid(playbook_id))

    async def get_user_assignments(self, user_id: str) -> list[Assignment]:
        """Assignments for a user, soonest due first."""
        return await self.assignments.list_for_user(user_id)

    async def get_overdue_assignments(self, user_id: str) -> list[Assignment]:
        return await self.assignments.list_overdue(user_id, datetime.now(UTC))

    async def get_assignment(self, assignment_id: str) -> Assignment:
        assignment = await self.assignments.get(ensure_uuid(assignment_id))
        if not assignment:
            raise NotFoundError("Assignment not found")
        return assignment

    async def create_assignment(
        self,
        playbook_id: str,
        data: CreateAssignmentRequest,
        assigner: SessionUser,
    ) -> Assignment:
        """
        Create an assignment and notify the assignee.

        Extra assignees in `data.assignees` are added after the assignment row.
        """
        assignment = await self.assignments.create(
            {
                "playbook_id": ensure_uuid(playbook_id),
                "assigned_to": data.assigned_to,
                "assigned_to_name": data.assigned_to_name,
                "assigned_by": assigner.id,
                "assigned_by_name": assigner.display_name,
                "due_date": data.due_date,
                "assignment_color": data.assignment_color,
                "content_range": data.content_range,
                "status": "pending",
            }
        )
        logger.info("Assignment %s created on playbook %s", assignment.id, playbook_id)

        if not data.assigned_to.startswith(MANUAL_ASSIGNEE_PREFIX):
            await self._notify(str(assignment.id), data.assigned_to, "assigned")
        if data.assignees:
            await self.add_assignees(str(assignment.id), data.assignees)
        return assignment

    async def update_assignment(self, assignment_id: str, data: UpdateAssignmentRequest) -> Assignment:
        """Partial update. Completing an assignment notifies whoever assigned it."""
        values = data.model_dump(exclude_unset=True)
        assignment = await self.assignments.update(ensure_uuid(assignment_id), values)
        if not assignment:
            raise NotFoundError("Assignment not found")

        if data.status == "completed":
            await self._notify(str(assignment.id), assignment.assigned_by, "completed")
        return assignment

    async def delete_assignment(self, assignment_id: str) -> None:
        if not await self.assignments.delete(ensure_uuid(assignment_id)):
            raise NotFoundError("Assignment not found")

    async def get_comments(self, assignment_id: str) -> list[AssignmentComment]:
        return await self.assignments.list_comments(ensure_uuid(assignment_id))

    async def add_comment(self, assignment_id: str, comment: str, user: SessionUser) -> AssignmentComment:
        """Add a comment and notify the assignee and assigner, except the commenter."""
        assignment = await self.get_assignment(assignment_id)
        added = await self.assignments.add_comment(str(assignment.id), user.id, user.display_name, comment)

        recipients = {assignment.assigned_to, assignment.assigned_by} - {user.id}
        for recipient in sorted(recipients):
            if not recipient.startswith(MANUAL_ASSIGNEE_PREFIX):
                await self._notify(str(assignment.id), recipient, "commented")
        return added

    async def get_notifications(self, user_id: str) -> list[AssignmentNotification]:
        return await self.assignments.list_notifications(user_id)

    async def mark_notification_read(self, notification_id: str, user_id: str) -> None:
        if not await self.assignments.mark_read(ensure_uuid(notification_id), user_id):
            raise NotFoundError("Notification not found")

    async def mark_all_notifications_read(self, user_id: str) -> int:
        return await self.assignments.mark_all_read(user_id)

    async def get_user_stats(self, user_id: str, now: datetime | None = None) -> AssignmentStats:
        """Counts by status. Overdue counts pending assignments past their due date."""
        now = now or datetime.now(UTC)
        stats = AssignmentStats()
        for row in await self.assignments.status_and_due_dates(user_id):
            stats.total += 1
            status = row.get("status")
            if status == "pending":
                stats.pending += 1
                if row["due_date"] < now:
                    stats.overdue += 1
            elif status == "in_progress":
                stats.in_progress += 1
            elif status == "completed":
                stats.completed += 1
        return stats

    async def get_assignees(self, assignment_id: str) -> list[AssignmentAssignee]:
        return await self.assignments.list_assignees(ensure_uuid(assignment_id))

    async def add_assignees(self, assignment_id: str, assignees: list[AssigneeInput]) -> list[AssignmentAssignee]:
        """Add assignees. Only real user ids (not typed-in names) are notified."""
        assignment_id = ensure_uuid(assignment_id)
        added = await self.assignments.add_assignees(
            [
                {
                    "assignment_id": assignment_id,
                    "user_id": a.user_id,
                    "user_name": a.user_name,
                    "user_email": a.user_email,
                }
                for a in assignees
            ]
        )
        for a in assignees:
            if not a.user_id.startswith(MANUAL_ASSIGNEE_PREFIX):
                await self._notify(assignment_id, a.user_id, "assigned")
        return added

    async def remove_assignee(self, assignment_id: str, user_id: str) -> None:
        await self.assignments.remove_assignee(ensure_uuid(assignment_id), user_id)

    async def replace_assignees(self, assignment_id: str, assignees: list[AssigneeInput]) -> list[AssignmentAssignee]:
        """Replace the full assignee list (delete all, then add)."""
        await self.assignments.clear_assignees(ensure_uuid(assignment_id))
        return await self.add_assignees(assignment_id, assignees)
