"""Assignment routes: per-playbook assignments, the user's own queue, comments, assignees, notifications."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from playbooq.auth import get_current_user
from playbooq.deps import get_assignment_service, get_playbook_service
from playbooq.models.assignment import (
    AddCommentRequest,
    Assignment,
    AssignmentAssignee,
    AssignmentComment,
    AssignmentNotification,
    AssignmentStats,
    CreateAssignmentRequest,
    ReplaceAssigneesRequest,
    UpdateAssignmentRequest,
)
from playbooq.models.user import SessionUser
from playbooq.services.assignment_service import AssignmentService
from playbooq.services.playbook_service import PlaybookService

router = APIRouter(tags=["assignments"])


async def _checked(
    assignment_id: str,
    user: SessionUser,
    level: str,
    assignments: AssignmentService,
    playbooks: PlaybookService,
) -> Assignment:
    """Fetch an assignment after checking access to its playbook."""
    assignment = await assignments.get_assignment(assignment_id)
    await playbooks.require_permission(str(assignment.playbook_id), user.id, level)
    return assignment


# ── Per-playbook ────────────────────────────────────────────────────────────


@router.get("/api/playbooks/{playbook_id}/assignments", status_code=200)
async def list_playbook_assignments(
    playbook_id: str,
    user: SessionUser = Depends(get_current_user),
    assignments: AssignmentService = Depends(get_assignment_service),
    playbooks: PlaybookService = Depends(get_playbook_service),
) -> list[Assignment]:
    playbook = await playbooks.require_permission(playbook_id, user.id, "view")
    return await assignments.get_playbook_assignments(str(playbook.id))


@router.post("/api/playbooks/{playbook_id}/assignments", status_code=201)
async def create_assignment(
    playbook_id: str,
    req: CreateAssignmentRequest,
    user: SessionUser = Depends(get_current_user),
    assignments: AssignmentService = Depends(get_assignment_service),
    playbooks: PlaybookService = Depends(get_playbook_service),
) -> Assignment:
    """Assign a region of a playbook. Needs edit permission."""
    playbook = await playbooks.require_permission(playbook_id, user.id, "edit")
    return await assignments.create_assignment(str(playbook.id), req, user)


# ── Current user ────────────────────────────────────────────────────────────


@router.get("/api/assignments", status_code=200)
async def my_assignments(
    user: SessionUser = Depends(get_current_user),
    assignments: AssignmentService = Depends(get_assignment_service),
) -> list[Assignment]:
    """Assignments for the current user, soonest due first."""
    return await assignments.get_user_assignments(user.id)


@router.get("/api/assignments/overdue", status_code=200)
async def my_overdue_assignments(
    user: SessionUser = Depends(get_current_user),
    assignments: AssignmentService = Depends(get_assignment_service),
) -> list[Assignment]:
    return await assignments.get_overdue_assignments(user.id)


@router.get("/api/assignments/stats", status_code=200)
async def my_assignment_stats(
    user: SessionUser = Depends(get_current_user),
    assignments: AssignmentService = Depends(get_assignment_service),
) -> AssignmentStats:
    return await assignments.get_user_stats(user.id)


@router.get("/api/assignments/notifications", status_code=200)
async def my_notifications(
    user: SessionUser = Depends(get_current_user),
    assignments: AssignmentService = Depends(get_assignment_service),
) -> list[AssignmentNotification]:
    return await assignments.get_notifications(user.id)


@router.post("/api/assignments/notifications/read-all", status_code=200)
async def mark_all_notifications_read(
    user: SessionUser = Depends(get_current_user),
    assignments: AssignmentService = Depends(get_assignment_service),
) -> dict[str, int]:
    updated = await assignments.mark_all_notifications_read(user.id)
    return {"updated": updated}


@router.post("/api/assignments/notifications/{notification_id}/read", status_code=200)
async def mark_notification_read(
    notification_id: str,
    user: SessionUser = Depends(get_current_user),
    assignments: AssignmentService = Depends(get_assignment_service),
) -> dict[str, bool]:
    await assignments.mark_notification_read(notification_id, user.id)
    return {"success": True}


# ── Single assignment ───────────────────────────────────────────────────────


@router.get("/api/assignments/{assignment_id}", status_code=200)
async def get_assignment(
    assignment_id: str,
    user: SessionUser = Depends(get_current_user),
    assignments: AssignmentService = Depends(get_assignment_service),
    playbooks: PlaybookService = Depends(get_playbook_service),
) -> Assignment:
    return await _checked(assignment_id, user, "view", assignments, playbooks)


@router.patch("/api/assignments/{assignment_id}", status_code=200)
async def update_assignment(
    assignment_id: str,
    req: UpdateAssignmentRequest,
    user: SessionUser = Depends(get_current_user),
    assignments: AssignmentService = Depends(get_assignment_service),
    playbooks: PlaybookService = Depends(get_playbook_service),
) -> Assignment:
    """Update status, due date, color or range. Assignees may update without edit rights."""
    assignment = await assignments.get_assignment(assignment_id)
    if user.id not in (assignment.assigned_to, assignment.assigned_by):
        await playbooks.require_permission(str(assignment.playbook_id), user.id, "edit")
    return await assignments.update_assignment(str(assignment.id), req)


@router.delete("/api/assignments/{assignment_id}", status_code=200)
async def delete_assignment(
    assignment_id: str,
    user: SessionUser = Depends(get_current_user),
    assignments: AssignmentService = Depends(get_assignment_service),
    playbooks: PlaybookService = Depends(get_playbook_service),
) -> dict[str, str]:
    assignment = await _checked(assignment_id, user, "edit", assignments, playbooks)
    await assignments.delete_assignment(str(assignment.id))
    return {"message": "Assignment deleted."}


@router.get("/api/assignments/{assignment_id}/comments", status_code=200)
async def list_comments(
    assignment_id: str,
    user: SessionUser = Depends(get_current_user),
    assignments: AssignmentService = Depends(get_assignment_service),
    playbooks: PlaybookService = Depends(get_playbook_service),
) -> list[AssignmentComment]:
    assignment = await _checked(assignment_id, user, "view", assignments, playbooks)
    return await assignments.get_comments(str(assignment.id))


@router.post("/api/assignments/{assignment_id}/comments", status_code=201)
async def add_comment(
    assignment_id: str,
    req: AddCommentRequest,
    user: SessionUser = Depends(get_current_user),
    assignments: AssignmentService = Depends(get_assignment_service),
    playbooks: PlaybookService = Depends(get_playbook_service),
) -> AssignmentComment:
    assignment = await _checked(assignment_id, user, "view", assignments, playbooks)
    return await assignments.add_comment(str(assignment.id), req.comment, user)


@router.get("/api/assignments/{assignment_id}/assignees", status_code=200)
async def list_assignees(
    assignment_id: str,
    user: SessionUser = Depends(get_current_user),
    assignments: AssignmentService = Depends(get_assignment_service),
    playbooks: PlaybookService = Depends(get_playbook_service),
) -> list[AssignmentAssignee]:
    assignment = await _checked(assignment_id, user, "view", assignments, playbooks)
    return await assignments.get_assignees(str(assignment.id))


@router.post("/api/assignments/{assignment_id}/assignees", status_code=201)
async def add_assignees(
    assignment_id: str,
    req: ReplaceAssigneesRequest,
    user: SessionUser = Depends(get_current_user),
    assignments: AssignmentService = Depends(get_assignment_service),
    playbooks: PlaybookService = Depends(get_playbook_service),
) -> list[AssignmentAssignee]:
    assignment = await _checked(assignment_id, user, "edit", assignments, playbooks)
    return await assignments.add_assignees(str(assignment.id), req.assignees)


@router.put("/api/assignments/{assignment_id}/assignees", status_code=200)
async def replace_assignees(
    assignment_id: str,
    req: ReplaceAssigneesRequest,
    user: SessionUser = Depends(get_current_user),
    assignments: AssignmentService = Depends(get_assignment_service),
    playbooks: PlaybookService = Depends(get_playbook_service),
) -> list[AssignmentAssignee]:
    """Replace the whole assignee list."""
    assignment = await _checked(assignment_id, user, "edit", assignments, playbooks)
    return await assignments.replace_assignees(str(assignment.id), req.assignees)


@router.delete("/api/assignments/{assignment_id}/assignees/{assignee_user_id}", status_code=200)
async def remove_assignee(
    assignment_id: str,
    assignee_user_id: str,
    user: SessionUser = Depends(get_current_user),
    assignments: AssignmentService = Depends(get_assignment_service),
    playbooks: PlaybookService = Depends(get_playbook_service),
) -> dict[str, bool]:
    assignment = await _checked(assignment_id, user, "edit", assignments, playbooks)
    await assignments.remove_assignee(str(assignment.id), assignee_user_id)
    return {"success": True}
