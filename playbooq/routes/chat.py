"""Playbook chat routes. Readers and writers need at least view access."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from playbooq.auth import get_current_user
from playbooq.deps import get_chat_service, get_playbook_service
from playbooq.models.chat import ChatMessage, EditChatMessageRequest, SendChatMessageRequest
from playbooq.models.user import SessionUser
from playbooq.services.chat_service import ChatService
from playbooq.services.playbook_service import PlaybookService
from playbooq.services.temp_playbooks import is_temp_playbook

router = APIRouter(prefix="/api/playbooks/{playbook_id}/messages", tags=["chat"])


@router.get("", status_code=200)
async def list_messages(
    playbook_id: str,
    limit: int | None = Query(default=None, ge=1, le=500),
    user: SessionUser = Depends(get_current_user),
    chat: ChatService = Depends(get_chat_service),
    playbooks: PlaybookService = Depends(get_playbook_service),
) -> list[ChatMessage]:
    """Visible messages, oldest first."""
    if is_temp_playbook(playbook_id):
        return []
    playbook = await playbooks.require_permission(playbook_id, user.id, "view")
    return await chat.list_messages(str(playbook.id), limit)


@router.post("", status_code=201)
async def send_message(
    playbook_id: str,
    req: SendChatMessageRequest,
    user: SessionUser = Depends(get_current_user),
    chat: ChatService = Depends(get_chat_service),
    playbooks: PlaybookService = Depends(get_playbook_service),
) -> ChatMessage:
    if is_temp_playbook(playbook_id):
        # Rejected by the service with the unsaved-playbook message
        return await chat.send_message(playbook_id, user, req.message)
    playbook = await playbooks.require_permission(playbook_id, user.id, "view")
    return await chat.send_message(str(playbook.id), user, req.message)


@router.patch("/{message_id}", status_code=200)
async def edit_message(
    playbook_id: str,
    message_id: str,
    req: EditChatMessageRequest,
    user: SessionUser = Depends(get_current_user),
    chat: ChatService = Depends(get_chat_service),
) -> ChatMessage:
    """Edit one of your own messages."""
    return await chat.edit_message(message_id, user.id, req.message)


@router.delete("/{message_id}", status_code=200)
async def delete_message(
    playbook_id: str,
    message_id: str,
    user: SessionUser = Depends(get_current_user),
    chat: ChatService = Depends(get_chat_service),
) -> dict[str, str]:
    """Soft-delete one of your own messages."""
    await chat.delete_message(message_id, user.id)
    return {"message": "Message deleted."}
