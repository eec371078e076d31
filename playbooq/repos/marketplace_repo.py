"""Repository for marketplace listings, favorites, purchases and ratings."""

from __future__ import annotations

from typing import Any

from playbooq.gateway import Filter, Gateway, Order, any_of, asc, desc, eq, gte, ilike, lte, not_null, overlaps
from playbooq.models.marketplace import MarketplaceFilters, Rating

PLAYBOOKS = "playbooks"
FAVORITES = "playbook_favorites"
PURCHASES = "playbook_purchases"
RATINGS = "marketplace_ratings"

# Sort keys exposed to clients, mapped to their columns.
SORT_COLUMNS = {
    "price": "price",
    "rating": "average_rating",
    "purchases": "total_purchases",
    "created_at": "created_at",
}


def _row_to_rating(row: dict[str, Any]) -> Rating:
    return Rating(
        id=row["id"],
        playbook_id=row["playbook_id"],
        user_id=row["user_id"],
        rating=row["rating"],
        review=row.get("review"),
        created_at=row["created_at"],
        updated_at=row.get("updated_at"),
    )


def listing_filters(filters: MarketplaceFilters | None, query: str | None = None) -> list[Filter]:
    """Translate client filter state into gateway predicates on playbooks."""
    result = [eq("is_marketplace", True)]
    if query and query.strip():
        q = query.strip()
        result.append(any_of(ilike("title", q), ilike("description", q)))
    if filters is None:
        return result
    if filters.category:
        result.append(eq("category", filters.category.lower()))
    if filters.min_price is not None:
        result.append(gte("price", filters.min_price))
    if filters.max_price is not None:
        result.append(lte("price", filters.max_price))
    if filters.min_rating is not None:
        result.append(gte("average_rating", filters.min_rating))
    if filters.tags:
        result.append(overlaps("tags", filters.tags))
    return result


def listing_order(filters: MarketplaceFilters | None) -> Order:
    sort_by = (filters.sort_by if filters else None) or "created_at"
    sort_order = (filters.sort_order if filters else None) or "desc"
    column = SORT_COLUMNS.get(sort_by, "created_at")
    return asc(column) if sort_order == "asc" else desc(column)


class MarketplaceRepo:
    """Raw rows for the marketplace. Decoration with creator info is the service's job."""

    def __init__(self, gateway: Gateway):
        self.gateway = gateway

    # ── Listings ─────────────────────────────────────────────────────────────

    async def list_listings(
        self,
        filters: MarketplaceFilters | None = None,
        query: str | None = None,
    ) -> list[dict[str, Any]]:
        """All marketplace playbooks matching the filters. Unbounded."""
        return await self.gateway.select(
            PLAYBOOKS,
            *listing_filters(filters, query),
            order=[listing_order(filters)],
        )

    async def featured(self, limit: int) -> list[dict[str, Any]]:
        return await self.gateway.select(
            PLAYBOOKS,
            eq("is_marketplace", True),
            order=[desc("total_purchases"), desc("average_rating")],
            limit=limit,
        )

    async def get_listing(self, playbook_id: str) -> dict[str, Any] | None:
        return await self.gateway.select_one(PLAYBOOKS, eq("id", playbook_id), eq("is_marketplace", True))

    async def count_listings(self) -> int:
        return await self.gateway.count(PLAYBOOKS, eq("is_marketplace", True))

    async def listing_ratings(self) -> list[float]:
        rows = await self.gateway.select(
            PLAYBOOKS,
            eq("is_marketplace", True),
            not_null("average_rating"),
            columns=("average_rating",),
        )
        return [float(r["average_rating"]) for r in rows]

    async def listing_categories(self) -> list[str | None]:
        rows = await self.gateway.select(PLAYBOOKS, eq("is_marketplace", True), columns=("category",))
        return [r.get("category") for r in rows]

    # ── Favorites / purchases ───────────────────────────────────────────────

    async def favorite_ids(self, user_id: str) -> set[str]:
        rows = await self.gateway.select(FAVORITES, eq("user_id", user_id), columns=("playbook_id",), user_id=user_id)
        return {str(r["playbook_id"]) for r in rows}

    async def purchase_ids(self, user_id: str) -> set[str]:
        rows = await self.gateway.select(PURCHASES, eq("user_id", user_id), columns=("playbook_id",), user_id=user_id)
        return {str(r["playbook_id"]) for r in rows}

    async def is_favorited(self, playbook_id: str, user_id: str) -> bool:
        row = await self.gateway.select_one(
            FAVORITES, eq("playbook_id", playbook_id), eq("user_id", user_id), user_id=user_id
        )
        return row is not None

    async def add_favorite(self, playbook_id: str, user_id: str) -> None:
        await self.gateway.insert(FAVORITES, {"playbook_id": playbook_id, "user_id": user_id}, user_id=user_id)

    async def remove_favorite(self, playbook_id: str, user_id: str) -> None:
        await self.gateway.delete(FAVORITES, eq("playbook_id", playbook_id), eq("user_id", user_id), user_id=user_id)

    async def count_purchases(self) -> int:
        return await self.gateway.count(PURCHASES)

    # ── Ratings ──────────────────────────────────────────────────────────────

    async def ratings_for(self, playbook_id: str) -> list[Rating]:
        rows = await self.gateway.select(RATINGS, eq("playbook_id", playbook_id), order=[desc("created_at")])
        return [_row_to_rating(r) for r in rows]

    async def upsert_rating(self, playbook_id: str, user_id: str, rating: int, review: str | None) -> Rating:
        """One rating per (playbook, user); a second submission replaces the first."""
        row = await self.gateway.upsert(
            RATINGS,
            {"playbook_id": playbook_id, "user_id": user_id, "rating": rating, "review": review or None},
            on_conflict=("playbook_id", "user_id"),
            user_id=user_id,
        )
        return _row_to_rating(row)

    async def user_ratings(self, user_id: str) -> dict[str, int]:
        rows = await self.gateway.select(RATINGS, eq("user_id", user_id), columns=("playbook_id", "rating"))
        return {str(r["playbook_id"]): r["rating"] for r in rows}
