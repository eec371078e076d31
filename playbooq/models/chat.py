"""Chat message models."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field


class MessageState(str, Enum):
    """Lifecycle of a message shown in a chat session."""

    PENDING = "pending"  # temporary client id, not yet acknowledged
    CONFIRMED = "confirmed"  # server id swapped in
    ROLLED_BACK = "rolled_back"  # removed after a failed write


class ChatMessage(BaseModel):
    """Represents a row in the chat_messages table."""

    id: UUID | str  # str while pending (temp-<n>)
    playbook_id: UUID | str
    user_id: str
    user_name: str
    user_avatar: str | None = None
    message: str
    created_at: datetime
    edited_at: datetime | None = None
    deleted: bool = False
    state: MessageState = MessageState.CONFIRMED


class SendChatMessageRequest(BaseModel):
    model_config = {"extra": "forbid"}

    message: str = Field(max_length=10000)


class EditChatMessageRequest(BaseModel):
    model_config = {"extra": "forbid"}

    message: str = Field(max_length=10000)
