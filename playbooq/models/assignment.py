"""Assignment models: assignments, assignees, comments, notifications."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, Field

AssignmentStatus = Literal["pending", "in_progress", "completed", "cancelled"]
NotificationType = Literal["assigned", "due_soon", "overdue", "completed", "commented"]

# Assignees typed in by hand rather than picked from collaborators.
MANUAL_ASSIGNEE_PREFIX = "manual_"


class Assignment(BaseModel):
    """Represents a row in the assignments table."""

    id: UUID
    playbook_id: UUID
    assigned_to: str
    assigned_to_name: str
    assigned_by: str
    assigned_by_name: str
    due_date: datetime
    assignment_color: str = "#fef3c7"
    content_range: Any = None
    status: AssignmentStatus = "pending"
    created_at: datetime
    updated_at: datetime


class AssignmentAssignee(BaseModel):
    id: UUID
    assignment_id: UUID
    user_id: str
    user_name: str
    user_email: str | None = None
    created_at: datetime


class AssignmentComment(BaseModel):
    id: UUID
    assignment_id: UUID
    user_id: str
    user_name: str
    comment: str
    created_at: datetime
    updated_at: datetime | None = None


class AssignmentNotification(BaseModel):
    id: UUID
    assignment_id: UUID
    user_id: str
    notification_type: NotificationType
    is_read: bool = False
    created_at: datetime


class AssigneeInput(BaseModel):
    model_config = {"extra": "forbid"}

    user_id: str = Field(min_length=1)
    user_name: str = Field(min_length=1)
    user_email: str | None = None


class CreateAssignmentRequest(BaseModel):
    """What the client sends to create an assignment."""

    model_config = {"extra": "forbid"}

    assigned_to: str = Field(min_length=1)
    assigned_to_name: str = Field(min_length=1)
    due_date: datetime
    assignment_color: str = Field(default="#fef3c7", pattern=r"^#[0-9a-fA-F]{6}$")
    content_range: Any = None
    assignees: list[AssigneeInput] = Field(default_factory=list)


class UpdateAssignmentRequest(BaseModel):
    model_config = {"extra": "forbid"}

    status: AssignmentStatus | None = None
    due_date: datetime | None = None
    assignment_color: str | None = Field(default=None, pattern=r"^#[0-9a-fA-F]{6}$")
    content_range: Any = None


class AddCommentRequest(BaseModel):
    model_config = {"extra": "forbid"}

    comment: str = Field(min_length=1, max_length=5000)


class ReplaceAssigneesRequest(BaseModel):
    model_config = {"extra": "forbid"}

    assignees: list[AssigneeInput]


class AssignmentStats(BaseModel):
    total: int = 0
    pending: int = 0
    in_progress: int = 0
    completed: int = 0
    overdue: int = 0
