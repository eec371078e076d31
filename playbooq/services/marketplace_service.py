"""
Marketplace service.

Listings come back as MarketplacePlaybook: preview content substituted for
the full content, and creator name/avatar attached from user_profiles
("Anonymous" when the creator has no profile).
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import Any

from playbooq.errors import NotFoundError, ValidationError
from playbooq.gateway import Gateway
from playbooq.models.marketplace import (
    CategoryCount,
    MarketplaceFilters,
    MarketplacePlaybook,
    MarketplaceStats,
    Rating,
)
from playbooq.models.user import UserProfile
from playbooq.repos.marketplace_repo import MarketplaceRepo
from playbooq.repos.user_profile_repo import UserProfileRepo
from playbooq.utils.short_id import ensure_uuid

logger = logging.getLogger(__name__)


def to_listing(row: dict[str, Any], profile: UserProfile | None) -> MarketplacePlaybook:
    """Build a listing from a playbooks row and its creator's profile."""
    return MarketplacePlaybook(
        id=row["id"],
        title=row.get("title") or "Untitled Playbook",
        description=row.get("description"),
        content=row.get("preview_content") or row.get("content"),
        tags=row.get("tags") or [],
        category=row.get("category") or "general",
        price=row.get("price") or 0,
        total_purchases=row.get("total_purchases") or 0,
        average_rating=row.get("average_rating") or 0,
        owner_id=row.get("owner_id"),
        short_id=row.get("short_id"),
        created_at=row["created_at"],
        updated_at=row.get("updated_at"),
        creator_name=(profile.display_name if profile else None) or "Anonymous",
        creator_avatar=profile.avatar_url if profile else None,
    )


class MarketplaceService:
    def __init__(self, gateway: Gateway):
        self.marketplace = MarketplaceRepo(gateway)
        self.profiles = UserProfileRepo(gateway)

    async def _with_creators(self, rows: list[dict[str, Any]]) -> list[MarketplacePlaybook]:
        profiles = await self.profiles.get_many(r.get("owner_id") for r in rows)
        return [to_listing(r, profiles.get(r.get("owner_id"))) for r in rows]

    async def get_marketplace_playbooks(self) -> list[MarketplacePlaybook]:
        """Every marketplace playbook, newest first."""
        rows = await self.marketplace.list_listings()
        logger.info("Fetched %d marketplace playbooks", len(rows))
        return await self._with_creators(rows)

    async def search_marketplace_playbooks(
        self,
        filters: MarketplaceFilters | None = None,
        query: str | None = None,
    ) -> list[MarketplacePlaybook]:
        """Filter and sort in the database. Tags match by array overlap here."""
        rows = await self.marketplace.list_listings(filters, query)
        return await self._with_creators(rows)

    async def get_featured_playbooks(self, limit: int = 6) -> list[MarketplacePlaybook]:
        """Top listings by purchases, then rating."""
        rows = await self.marketplace.featured(limit)
        return await self._with_creators(rows)

    async def get_playbook(self, playbook_id: str) -> MarketplacePlaybook | None:
        """
        A single listing by UUID or short id.

        Returns:
            The listing, or None when no marketplace playbook has this id
        """
        row = await self.marketplace.get_listing(ensure_uuid(playbook_id))
        if not row:
            return None
        profile = await self.profiles.get(row["owner_id"]) if row.get("owner_id") else None
        return to_listing(row, profile)

    async def get_user_favorites(self, user_id: str) -> set[str]:
        return await self.marketplace.favorite_ids(user_id)

    async def get_user_purchases(self, user_id: str) -> set[str]:
        return await self.marketplace.purchase_ids(user_id)

    async def set_favorite(self, playbook_id: str, user_id: str, favorite: bool) -> None:
        """Insert or delete the favorite row. Callers decide the direction."""
        playbook_id = ensure_uuid(playbook_id)
        if favorite:
            await self.marketplace.add_favorite(playbook_id, user_id)
        else:
            await self.marketplace.remove_favorite(playbook_id, user_id)

    async def toggle_favorite(self, playbook_id: str, user_id: str) -> bool:
        """
        Flip favorite status based on what is stored.

        Returns:
            True if the playbook is now a favorite
        """
        playbook_id = ensure_uuid(playbook_id)
        favorite = not await self.marketplace.is_favorited(playbook_id, user_id)
        await self.set_favorite(playbook_id, user_id, favorite)
        return favorite

    async def annotate(self, listings: list[MarketplacePlaybook], user_id: str | None) -> list[MarketplacePlaybook]:
        """Set is_favorited / is_purchased / user_rating for the current user."""
        if not user_id:
            return listings
        favorites = await self.marketplace.favorite_ids(user_id)
        purchases = await self.marketplace.purchase_ids(user_id)
        ratings = await self.marketplace.user_ratings(user_id)
        return [
            p.model_copy(
                update={
                    "is_favorited": str(p.id) in favorites,
                    "is_purchased": str(p.id) in purchases,
                    "user_rating": ratings.get(str(p.id)),
                }
            )
            for p in listings
        ]

    async def get_marketplace_stats(self) -> MarketplaceStats:
        """
        Aggregate numbers for the marketplace header.

        Average rating is over listings that have one, rounded to 2 places.
        Categories are capitalized and sorted by count, largest first.
        """
        total = await self.marketplace.count_listings()
        purchases = await self.marketplace.count_purchases()
        ratings = await self.marketplace.listing_ratings()
        categories = await self.marketplace.listing_categories()

        average = sum(ratings) / len(ratings) if ratings else 0
        counts = Counter((c or "general") for c in categories)
        return MarketplaceStats(
            total_playbooks=total,
            total_purchases=purchases,
            average_rating=round(average, 2),
            categories=[
                CategoryCount(category=name[:1].upper() + name[1:], count=count)
                for name, count in sorted(counts.items(), key=lambda item: -item[1])
            ],
        )

    async def get_playbook_ratings(self, playbook_id: str) -> list[Rating]:
        return await self.marketplace.ratings_for(ensure_uuid(playbook_id))

    async def submit_rating(self, playbook_id: str, user_id: str, rating: int, review: str | None = None) -> Rating:
        """
        Rate a playbook. A user's later rating replaces their earlier one.

        Raises:
            ValidationError: If rating is outside 1..5
            NotFoundError: If the playbook isn't in the marketplace
        """
        if not 1 <= rating <= 5:
            raise ValidationError("Rating must be between 1 and 5")
        playbook_id = ensure_uuid(playbook_id)
        if not await self.marketplace.get_listing(playbook_id):
            raise NotFoundError("Playbook not found")
        result = await self.marketplace.upsert_rating(playbook_id, user_id, rating, review)
        logger.info("Rating %d submitted for %s by %s", rating, playbook_id, user_id)
        return result
