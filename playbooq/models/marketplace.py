"""Marketplace models: listings, filters, ratings, stats."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, Field

SortKey = Literal["price", "rating", "purchases", "created_at"]
SortOrder = Literal["asc", "desc"]


class MarketplacePlaybook(BaseModel):
    """A marketplace listing, annotated with creator and per-user status."""

    id: UUID
    title: str
    description: str | None = None
    content: Any = None  # preview content when the playbook has one
    tags: list[str] = Field(default_factory=list)
    category: str = "general"
    price: float = 0
    total_purchases: int = 0
    average_rating: float = 0
    owner_id: str | None = None
    short_id: str | None = None
    created_at: datetime
    updated_at: datetime | None = None
    creator_name: str = "Anonymous"
    creator_avatar: str | None = None
    is_favorited: bool = False
    is_purchased: bool = False
    user_rating: int | None = None


class MarketplaceFilters(BaseModel):
    """Client-side filter state. Every field is optional; unknown fields are rejected."""

    model_config = {"extra": "forbid"}

    category: str | None = None
    min_price: float | None = None
    max_price: float | None = None
    min_rating: float | None = None
    tags: list[str] | None = None
    sort_by: SortKey | None = None
    sort_order: SortOrder | None = None


class MarketplacePage(BaseModel):
    """One page of the derived marketplace listing."""

    items: list[MarketplacePlaybook]
    page: int
    page_size: int
    total: int
    total_pages: int


class CategoryCount(BaseModel):
    category: str
    count: int


class MarketplaceStats(BaseModel):
    total_playbooks: int = 0
    total_purchases: int = 0
    average_rating: float = 0
    categories: list[CategoryCount] = Field(default_factory=list)


class Rating(BaseModel):
    """Represents a row in the marketplace_ratings table."""

    id: UUID
    playbook_id: UUID
    user_id: str
    rating: int
    review: str | None = None
    created_at: datetime
    updated_at: datetime | None = None


class SubmitRatingRequest(BaseModel):
    model_config = {"extra": "forbid"}

    rating: int = Field(ge=1, le=5)
    review: str | None = Field(default=None, max_length=5000)


class FavoriteToggleResponse(BaseModel):
    playbook_id: UUID
    is_favorited: bool
