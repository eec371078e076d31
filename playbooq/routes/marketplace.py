"""Marketplace routes: listing, stats, featured, detail, favorites, ratings."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from playbooq import config
from playbooq.auth import get_current_user, get_optional_user
from playbooq.deps import get_marketplace_service
from playbooq.errors import NotFoundError
from playbooq.models.marketplace import (
    FavoriteToggleResponse,
    MarketplaceFilters,
    MarketplacePage,
    MarketplacePlaybook,
    MarketplaceStats,
    Rating,
    SortKey,
    SortOrder,
    SubmitRatingRequest,
)
from playbooq.models.user import SessionUser
from playbooq.services.marketplace_service import MarketplaceService
from playbooq.viewmodels.marketplace import filter_playbooks, paginate, sort_playbooks

router = APIRouter(prefix="/api/marketplace", tags=["marketplace"])


@router.get("", status_code=200)
async def list_marketplace(
    q: str = Query(default=""),
    category: str | None = None,
    min_price: float | None = None,
    max_price: float | None = None,
    min_rating: float | None = None,
    tags: list[str] | None = Query(default=None),
    sort_by: SortKey | None = None,
    sort_order: SortOrder | None = None,
    page: int = Query(default=1, ge=1),
    page_size: int | None = Query(default=None, ge=1, le=100),
    user: SessionUser | None = Depends(get_optional_user),
    service: MarketplaceService = Depends(get_marketplace_service),
) -> MarketplacePage:
    """
    Search, filter, sort and page the marketplace.

    Filtering runs over the full listing with the same rules the
    marketplace view-model uses.
    """
    filters = MarketplaceFilters(
        category=category,
        min_price=min_price,
        max_price=max_price,
        min_rating=min_rating,
        tags=tags,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    listing = await service.get_marketplace_playbooks()
    listing = await service.annotate(listing, user.id if user else None)
    derived = sort_playbooks(filter_playbooks(listing, q, filters), filters)
    return paginate(derived, page, page_size or config.settings.MARKETPLACE_PAGE_SIZE)


@router.get("/stats", status_code=200)
async def marketplace_stats(
    service: MarketplaceService = Depends(get_marketplace_service),
) -> MarketplaceStats:
    return await service.get_marketplace_stats()


@router.get("/featured", status_code=200)
async def featured_playbooks(
    limit: int | None = Query(default=None, ge=1, le=50),
    user: SessionUser | None = Depends(get_optional_user),
    service: MarketplaceService = Depends(get_marketplace_service),
) -> list[MarketplacePlaybook]:
    featured = await service.get_featured_playbooks(limit or config.settings.FEATURED_PLAYBOOKS_LIMIT)
    return await service.annotate(featured, user.id if user else None)


@router.get("/favorites", status_code=200)
async def my_favorites(
    user: SessionUser = Depends(get_current_user),
    service: MarketplaceService = Depends(get_marketplace_service),
) -> list[str]:
    """Ids of the playbooks the current user has favorited."""
    return sorted(await service.get_user_favorites(user.id))


@router.get("/purchases", status_code=200)
async def my_purchases(
    user: SessionUser = Depends(get_current_user),
    service: MarketplaceService = Depends(get_marketplace_service),
) -> list[str]:
    return sorted(await service.get_user_purchases(user.id))


@router.get("/{playbook_id}", status_code=200)
async def get_marketplace_playbook(
    playbook_id: str,
    user: SessionUser | None = Depends(get_optional_user),
    service: MarketplaceService = Depends(get_marketplace_service),
) -> MarketplacePlaybook:
    """A marketplace listing by UUID or short id."""
    playbook = await service.get_playbook(playbook_id)
    if not playbook:
        raise NotFoundError("Playbook not found")
    annotated = await service.annotate([playbook], user.id if user else None)
    return annotated[0]


@router.post("/{playbook_id}/favorite", status_code=200)
async def toggle_favorite(
    playbook_id: str,
    user: SessionUser = Depends(get_current_user),
    service: MarketplaceService = Depends(get_marketplace_service),
) -> FavoriteToggleResponse:
    """Favorite the playbook if it isn't, unfavorite it if it is."""
    playbook = await service.get_playbook(playbook_id)
    if not playbook:
        raise NotFoundError("Playbook not found")
    is_favorited = await service.toggle_favorite(str(playbook.id), user.id)
    return FavoriteToggleResponse(playbook_id=playbook.id, is_favorited=is_favorited)


@router.get("/{playbook_id}/ratings", status_code=200)
async def list_ratings(
    playbook_id: str,
    service: MarketplaceService = Depends(get_marketplace_service),
) -> list[Rating]:
    return await service.get_playbook_ratings(playbook_id)


@router.post("/{playbook_id}/ratings", status_code=200)
async def submit_rating(
    playbook_id: str,
    req: SubmitRatingRequest,
    user: SessionUser = Depends(get_current_user),
    service: MarketplaceService = Depends(get_marketplace_service),
) -> Rating:
    """Rate a playbook 1-5. Rating again replaces the earlier rating."""
    return await service.submit_rating(playbook_id, user.id, req.rating, req.review)
