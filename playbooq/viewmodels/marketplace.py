"""
Marketplace view-model.

Holds the raw marketplace listing plus the current user's favorite and
purchase sets, and derives the visible listing from them on every read:
search, filter, annotate, sort. The pure pieces at the top are shared with
GET /api/marketplace so both surfaces agree.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from typing import Any

from playbooq import config
from playbooq.errors import AuthError
from playbooq.models.marketplace import (
    MarketplaceFilters,
    MarketplacePage,
    MarketplacePlaybook,
    MarketplaceStats,
)
from playbooq.models.user import SessionUser
from playbooq.services.marketplace_service import MarketplaceService
from playbooq.utils.debounce import Debouncer

logger = logging.getLogger(__name__)

_SORT_KEYS = {
    "price": lambda p: p.price,
    "rating": lambda p: p.average_rating,
    "purchases": lambda p: p.total_purchases,
    "created_at": lambda p: p.created_at.timestamp(),
}


def matches_query(playbook: MarketplacePlaybook, query: str) -> bool:
    """Case-insensitive substring match on title or description."""
    q = query.lower()
    return q in playbook.title.lower() or q in (playbook.description or "").lower()


def filter_playbooks(
    playbooks: Iterable[MarketplacePlaybook],
    query: str = "",
    filters: MarketplaceFilters | None = None,
) -> list[MarketplacePlaybook]:
    """Apply the search text and filter fields. Empty query matches everything."""
    filters = filters or MarketplaceFilters()
    query = query.strip()
    wanted_tags = [t.lower() for t in filters.tags or [] if t]
    result = []
    for p in playbooks:
        if query and not matches_query(p, query):
            continue
        if filters.category and p.category.lower() != filters.category.lower():
            continue
        if filters.min_price is not None and p.price < filters.min_price:
            continue
        if filters.max_price is not None and p.price > filters.max_price:
            continue
        if filters.min_rating is not None and p.average_rating < filters.min_rating:
            continue
        if wanted_tags and not any(w in tag.lower() for w in wanted_tags for tag in p.tags):
            continue
        result.append(p)
    return result


def sort_playbooks(playbooks: Iterable[MarketplacePlaybook], filters: MarketplaceFilters | None = None) -> list[MarketplacePlaybook]:
    """
    Stable sort by the selected key, created_at descending by default.

    Equal keys keep their input order in both directions.
    """
    sort_by = (filters.sort_by if filters else None) or "created_at"
    sort_order = (filters.sort_order if filters else None) or "desc"
    return sorted(playbooks, key=_SORT_KEYS[sort_by], reverse=sort_order == "desc")


def annotate(
    playbooks: Iterable[MarketplacePlaybook],
    favorites: set[str],
    purchases: set[str],
) -> list[MarketplacePlaybook]:
    return [
        p.model_copy(update={"is_favorited": str(p.id) in favorites, "is_purchased": str(p.id) in purchases})
        for p in playbooks
    ]


def apply_filters(
    playbooks: Iterable[MarketplacePlaybook],
    query: str = "",
    filters: MarketplaceFilters | None = None,
    favorites: set[str] | None = None,
    purchases: set[str] | None = None,
) -> list[MarketplacePlaybook]:
    """The full derivation: filter, annotate, sort."""
    filtered = filter_playbooks(playbooks, query, filters)
    annotated = annotate(filtered, favorites or set(), purchases or set())
    return sort_playbooks(annotated, filters)


def paginate(playbooks: list[MarketplacePlaybook], page: int = 1, page_size: int = 24) -> MarketplacePage:
    """Slice one page out of a derived listing. Pages are 1-based."""
    page = max(page, 1)
    page_size = max(page_size, 1)
    start = (page - 1) * page_size
    return MarketplacePage(
        items=playbooks[start : start + page_size],
        page=page,
        page_size=page_size,
        total=len(playbooks),
        total_pages=math.ceil(len(playbooks) / page_size),
    )


class MarketplaceViewModel:
    """
    Marketplace browsing state for one user session.

    Attributes:
        loading: True while fetch_listing() runs
        error: User-visible message from the last failed fetch, or None
        search_query: Raw text as typed
        applied_query: Text the listing is filtered by, updated after the debounce delay
    """

    def __init__(
        self,
        service: MarketplaceService,
        user: SessionUser | None = None,
        filters: MarketplaceFilters | None = None,
        search_delay: float | None = None,
    ):
        self.service = service
        self.user = user
        self.listing: list[MarketplacePlaybook] = []
        self.favorites: set[str] = set()
        self.purchases: set[str] = set()
        self.filters = filters or MarketplaceFilters()
        self.search_query = ""
        self.applied_query = ""
        self.loading = False
        self.error: str | None = None
        self.stats: MarketplaceStats | None = None
        self.featured: list[MarketplacePlaybook] = []
        delay = config.settings.MARKETPLACE_SEARCH_DEBOUNCE_SECONDS if search_delay is None else search_delay
        self._search = Debouncer(delay, self._apply_query, name="marketplace-search")

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    @property
    def playbooks(self) -> list[MarketplacePlaybook]:
        """Derived listing, recomputed from current state on every read."""
        return apply_filters(self.listing, self.applied_query, self.filters, self.favorites, self.purchases)

    def page(self, number: int = 1, size: int | None = None) -> MarketplacePage:
        return paginate(self.playbooks, number, size or config.settings.MARKETPLACE_PAGE_SIZE)

    async def fetch_listing(self) -> None:
        """Load the full listing. A failure keeps the previous listing and sets `error`."""
        self.loading = True
        self.error = None
        try:
            self.listing = await self.service.get_marketplace_playbooks()
        except Exception as e:
            logger.error("Error fetching playbooks: %s", e)
            self.error = str(e) or "Failed to load playbooks"
        finally:
            self.loading = False

    async def fetch_user_favorites(self) -> None:
        if not self.user:
            return
        try:
            self.favorites = await self.service.get_user_favorites(self.user.id)
        except Exception as e:
            logger.error("Error fetching favorites: %s", e)

    async def fetch_user_purchases(self) -> None:
        if not self.user:
            return
        try:
            self.purchases = await self.service.get_user_purchases(self.user.id)
        except Exception as e:
            logger.error("Error fetching purchases: %s", e)

    async def fetch_all(self) -> None:
        await self.fetch_listing()
        await self.fetch_user_favorites()
        await self.fetch_user_purchases()

    async def fetch_stats(self) -> None:
        try:
            self.stats = await self.service.get_marketplace_stats()
        except Exception as e:
            logger.error("Error fetching marketplace stats: %s", e)
            self.error = str(e) or "Failed to load statistics"

    async def fetch_featured(self, limit: int | None = None) -> None:
        try:
            self.featured = await self.service.get_featured_playbooks(limit or config.settings.FEATURED_PLAYBOOKS_LIMIT)
        except Exception as e:
            logger.error("Error fetching featured playbooks: %s", e)
            self.error = str(e) or "Failed to load featured playbooks"

    def set_search_query(self, text: str) -> None:
        """Update the typed text. The listing follows after the debounce delay."""
        self.search_query = text
        self._search.trigger(text)

    def _apply_query(self, text: str) -> None:
        self.applied_query = text

    async def flush_search(self) -> None:
        await self._search.flush()

    def update_filters(self, **changes: Any) -> None:
        """
        Merge partial filter fields, e.g. update_filters(category="sales", sort_by="price").

        Raises:
            pydantic.ValidationError: unknown field or bad value; filters stay unchanged
        """
        self.filters = MarketplaceFilters.model_validate(self.filters.model_dump() | changes)

    def clear_filters(self) -> None:
        self._search.cancel()
        self.filters = MarketplaceFilters()
        self.search_query = ""
        self.applied_query = ""

    async def toggle_favorite(self, playbook_id: str) -> bool:
        """
        Flip a playbook's favorite status.

        The local set changes only after the remote write succeeds; a failure
        propagates and leaves it untouched.

        Returns:
            True if the playbook is now a favorite

        Raises:
            AuthError: If no user is signed in
        """
        if not self.user:
            raise AuthError("User must be signed in to favorite playbooks")

        playbook_id = str(playbook_id)
        favorited = playbook_id in self.favorites
        await self.service.set_favorite(playbook_id, self.user.id, not favorited)
        if favorited:
            self.favorites = self.favorites - {playbook_id}
        else:
            self.favorites = self.favorites | {playbook_id}
        return not favorited

    def close(self) -> None:
        self._search.cancel()
