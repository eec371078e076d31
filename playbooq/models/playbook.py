"""Playbook models."""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field


class Playbook(BaseModel):
    """Core playbook model. Represents a row in the playbooks table."""

    id: UUID
    title: str = "Untitled Playbook"
    content: Any = Field(default_factory=dict)  # rich text tree, opaque
    description: str | None = None
    tags: list[str] = Field(default_factory=list)
    category: str = "general"
    is_public: bool = False
    owner_id: str | None = None
    is_marketplace: bool = False
    price: float = 0
    preview_content: Any = None
    total_purchases: int = 0
    average_rating: float = 0
    short_id: str | None = None
    created_at: datetime
    updated_at: datetime


class PlaybookListItem(BaseModel):
    """Lightweight projection used by the sidebar list. No content."""

    id: UUID
    title: str
    description: str | None = None
    tags: list[str] = Field(default_factory=list)
    is_public: bool = False
    created_at: datetime
    updated_at: datetime
    owner_id: str | None = None
    is_marketplace: bool = False
    price: float = 0
    total_purchases: int = 0
    average_rating: float = 0

    @classmethod
    def from_model(cls, playbook: Playbook) -> PlaybookListItem:
        return cls(
            id=playbook.id,
            title=playbook.title,
            description=playbook.description,
            tags=playbook.tags,
            is_public=playbook.is_public,
            created_at=playbook.created_at,
            updated_at=playbook.updated_at,
            owner_id=playbook.owner_id,
            is_marketplace=playbook.is_marketplace,
            price=playbook.price,
            total_purchases=playbook.total_purchases,
            average_rating=playbook.average_rating,
        )


LIST_COLUMNS = (
    "id",
    "title",
    "description",
    "tags",
    "is_public",
    "created_at",
    "updated_at",
    "owner_id",
    "is_marketplace",
    "price",
    "total_purchases",
    "average_rating",
)


class CreatePlaybookRequest(BaseModel):
    """What the client sends to save a new playbook."""

    model_config = {"extra": "forbid"}

    title: str = Field(default="Untitled Playbook", max_length=500)
    content: Any = Field(default_factory=dict)
    description: str | None = None
    tags: list[str] = Field(default_factory=list)
    category: str | None = None
    is_public: bool = False
    owner_id: str | None = None
    is_marketplace: bool = False
    price: float = Field(default=0, ge=0)
    preview_content: Any = None
    total_purchases: int = 0
    average_rating: float = 0


class UpdatePlaybookRequest(BaseModel):
    """What the client sends to update a playbook. All fields optional."""

    model_config = {"extra": "forbid"}

    title: str | None = Field(default=None, max_length=500)
    content: Any = None
    description: str | None = None
    tags: list[str] | None = None
    category: str | None = None
    is_public: bool | None = None
    is_marketplace: bool | None = None
    price: float | None = Field(default=None, ge=0)
    preview_content: Any = None


class DuplicatePlaybookRequest(BaseModel):
    model_config = {"extra": "forbid"}

    title: str | None = Field(default=None, max_length=500)


class LocalPlaybook(BaseModel):
    """An unsaved playbook kept in local storage until the user signs in."""

    id: str  # temp-<millis>-<random>
    title: str = "Untitled Playbook"
    content: Any = Field(default_factory=dict)
    description: str | None = None
    tags: list[str] = Field(default_factory=list)
    is_public: bool = False
    is_marketplace: bool = False
    price: float = 0
    created_at: datetime
    updated_at: datetime
    is_temp: bool = True
