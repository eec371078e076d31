"""Repository for assignments and their assignees, comments and notifications."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from playbooq.gateway import Gateway, asc, desc, eq, lt
from playbooq.models.assignment import (
    Assignment,
    AssignmentAssignee,
    AssignmentComment,
    AssignmentNotification,
)

ASSIGNMENTS = "assignments"
ASSIGNEES = "assignment_assignees"
COMMENTS = "assignment_comments"
NOTIFICATIONS = "assignment_notifications"


def _row_to_assignment(row: dict[str, Any]) -> Assignment:
    return Assignment(
        id=row["id"],
        playbook_id=row["playbook_id"],
        assigned_to=row["assigned_to"],
        assigned_to_name=row["assigned_to_name"],
        assigned_by=row["assigned_by"],
        assigned_by_name=row["assigned_by_name"],
        due_date=row["due_date"],
        assignment_color=row.get("assignment_color") or "#fef3c7",
        content_range=row.get("content_range"),
        status=row.get("status") or "pending",
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _row_to_assignee(row: dict[str, Any]) -> AssignmentAssignee:
    return AssignmentAssignee(
        id=row["id"],
        assignment_id=row["assignment_id"],
        user_id=row["user_id"],
        user_name=row["user_name"],
        user_email=row.get("user_email"),
        created_at=row["created_at"],
    )


def _row_to_comment(row: dict[str, Any]) -> AssignmentComment:
    return AssignmentComment(
        id=row["id"],
        assignment_id=row["assignment_id"],
        user_id=row["user_id"],
        user_name=row["user_name"],
        comment=row["comment"],
        created_at=row["created_at"],
        updated_at=row.get("updated_at"),
    )


def _row_to_notification(row: dict[str, Any]) -> AssignmentNotification:
    return AssignmentNotification(
        id=row["id"],
        assignment_id=row["assignment_id"],
        user_id=row["user_id"],
        notification_type=row["notification_type"],
        is_read=bool(row.get("is_read")),
        created_at=row["created_at"],
    )


class AssignmentRepo:
    """Reads and writes across the four assignment tables."""

    def __init__(self, gateway: Gateway):
        self.gateway = gateway

    # ── Assignments ──────────────────────────────────────────────────────────

    async def list_for_playbook(self, playbook_id: str) -> list[Assignment]:
        rows = await self.gateway.select(ASSIGNMENTS, eq("playbook_id", playbook_id), order=[desc("created_at")])
        return [_row_to_assignment(r) for r in rows]

    async def list_for_user(self, user_id: str) -> list[Assignment]:
        rows = await self.gateway.select(ASSIGNMENTS, eq("assigned_to", user_id), order=[asc("due_date")])
        return [_row_to_assignment(r) for r in rows]

    async def list_overdue(self, user_id: str, now: datetime | None = None) -> list[Assignment]:
        """Pending assignments whose due date has passed."""
        rows = await self.gateway.select(
            ASSIGNMENTS,
            eq("assigned_to", user_id),
            eq("status", "pending"),
            lt("due_date", now or datetime.now(UTC)),
            order=[asc("due_date")],
        )
        return [_row_to_assignment(r) for r in rows]

    async def get(self, assignment_id: str) -> Assignment | None:
        row = await self.gateway.select_one(ASSIGNMENTS, eq("id", assignment_id))
        return _row_to_assignment(row) if row else None

    async def create(self, values: dict[str, Any]) -> Assignment:
        rows = await self.gateway.insert(ASSIGNMENTS, values)
        return _row_to_assignment(rows[0])

    async def update(self, assignment_id: str, values: dict[str, Any]) -> Assignment | None:
        values = {**values, "updated_at": datetime.now(UTC)}
        rows = await self.gateway.update(ASSIGNMENTS, values, eq("id", assignment_id))
        return _row_to_assignment(rows[0]) if rows else None

    async def delete(self, assignment_id: str) -> bool:
        return await self.gateway.delete(ASSIGNMENTS, eq("id", assignment_id)) == 1

    async def status_and_due_dates(self, user_id: str) -> list[dict[str, Any]]:
        return await self.gateway.select(ASSIGNMENTS, eq("assigned_to", user_id), columns=("status", "due_date"))

    # ── Assignees ────────────────────────────────────────────────────────────

    async def list_assignees(self, assignment_id: str) -> list[AssignmentAssignee]:
        rows = await self.gateway.select(ASSIGNEES, eq("assignment_id", assignment_id), order=[asc("created_at")])
        return [_row_to_assignee(r) for r in rows]

    async def add_assignees(self, rows: list[dict[str, Any]]) -> list[AssignmentAssignee]:
        if not rows:
            return []
        inserted = await self.gateway.insert(ASSIGNEES, rows)
        return [_row_to_assignee(r) for r in inserted]

    async def remove_assignee(self, assignment_id: str, user_id: str) -> int:
        return await self.gateway.delete(ASSIGNEES, eq("assignment_id", assignment_id), eq("user_id", user_id))

    async def clear_assignees(self, assignment_id: str) -> int:
        return await self.gateway.delete(ASSIGNEES, eq("assignment_id", assignment_id))

    # ── Comments ─────────────────────────────────────────────────────────────

    async def list_comments(self, assignment_id: str) -> list[AssignmentComment]:
        rows = await self.gateway.select(COMMENTS, eq("assignment_id", assignment_id), order=[asc("created_at")])
        return [_row_to_comment(r) for r in rows]

    async def add_comment(self, assignment_id: str, user_id: str, user_name: str, comment: str) -> AssignmentComment:
        rows = await self.gateway.insert(
            COMMENTS,
            {"assignment_id": assignment_id, "user_id": user_id, "user_name": user_name, "comment": comment},
        )
        return _row_to_comment(rows[0])

    # ── Notifications ────────────────────────────────────────────────────────

    async def list_notifications(self, user_id: str) -> list[AssignmentNotification]:
        rows = await self.gateway.select(NOTIFICATIONS, eq("user_id", user_id), order=[desc("created_at")])
        return [_row_to_notification(r) for r in rows]

    async def add_notification(self, assignment_id: str, user_id: str, notification_type: str) -> None:
        await self.gateway.insert(
            NOTIFICATIONS,
            {"assignment_id": assignment_id, "user_id": user_id, "notification_type": notification_type},
        )

    async def mark_read(self, notification_id: str, user_id: str) -> bool:
        rows = await self.gateway.update(
            NOTIFICATIONS, {"is_read": True}, eq("id", notification_id), eq("user_id", user_id)
        )
        return bool(rows)

    async def mark_all_read(self, user_id: str) -> int:
        rows = await self.gateway.update(NOTIFICATIONS, {"is_read": True}, eq("user_id", user_id), eq("is_read", False))
        return len(rows)
