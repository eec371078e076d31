"""
Tests for the marketplace service, the listing derivation and the view-model.
"""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest
from pydantic import ValidationError as PydanticValidationError

from playbooq.errors import AuthError, DownstreamError, NotFoundError, ValidationError
from playbooq.models.marketplace import MarketplaceFilters, MarketplacePlaybook
from playbooq.viewmodels.marketplace import (
    MarketplaceViewModel,
    filter_playbooks,
    paginate,
    sort_playbooks,
)

pytestmark = pytest.mark.asyncio(loop_scope="session")

BASE = datetime(2025, 6, 1, tzinfo=UTC)


def listing(title: str, **fields) -> MarketplacePlaybook:
    fields.setdefault("id", uuid4())
    fields.setdefault("created_at", BASE)
    return MarketplacePlaybook(title=title, **fields)


def seed_listing(gateway, title: str, **fields) -> dict:
    fields.setdefault("is_marketplace", True)
    fields.setdefault("owner_id", "user_creator")
    return gateway.seed("playbooks", title=title, **fields)


# ── pure derivation ─────────────────────────────────────────────────────────


class TestFilterPlaybooks:
    def test_query_matches_title_or_description(self):
        items = [listing("Sales Kickoff"), listing("Hiring", description="sales hiring loop"), listing("Ops")]
        assert [p.title for p in filter_playbooks(items, "SALES")] == ["Sales Kickoff", "Hiring"]

    def test_empty_query_matches_all(self):
        items = [listing("A"), listing("B")]
        assert filter_playbooks(items, "  ") == items

    def test_category_is_case_insensitive(self):
        items = [listing("A", category="sales"), listing("B", category="ops")]
        result = filter_playbooks(items, filters=MarketplaceFilters(category="Sales"))
        assert [p.title for p in result] == ["A"]

    def test_price_and_rating_bounds_inclusive(self):
        items = [
            listing("cheap", price=5, average_rating=3),
            listing("mid", price=10, average_rating=4),
            listing("pricey", price=50, average_rating=5),
        ]
        filters = MarketplaceFilters(min_price=5, max_price=10, min_rating=4)
        assert [p.title for p in filter_playbooks(items, filters=filters)] == ["mid"]

    def test_tags_match_by_substring(self):
        items = [listing("A", tags=["Customer-Success"]), listing("B", tags=["finance"])]
        result = filter_playbooks(items, filters=MarketplaceFilters(tags=["success"]))
        assert [p.title for p in result] == ["A"]


class TestSortPlaybooks:
    def test_default_is_newest_first(self):
        old = listing("old", created_at=BASE)
        new = listing("new", created_at=BASE + timedelta(days=1))
        assert [p.title for p in sort_playbooks([old, new])] == ["new", "old"]

    def test_price_ascending(self):
        items = [listing("b", price=20), listing("a", price=10)]
        result = sort_playbooks(items, MarketplaceFilters(sort_by="price", sort_order="asc"))
        assert [p.title for p in result] == ["a", "b"]

    @pytest.mark.parametrize("sort_order", ["asc", "desc"])
    @pytest.mark.parametrize(
        ("sort_by", "field", "tied"),
        [
            ("price", "price", 10),
            ("rating", "average_rating", 4),
            ("purchases", "total_purchases", 3),
            ("created_at", "created_at", BASE),
        ],
    )
    def test_ties_keep_input_order(self, sort_by, field, tied, sort_order):
        # Every other key differs, so only a stable sort on the chosen key keeps this order
        items = []
        for i, title in enumerate(["first", "second", "third"]):
            fields = {
                "price": 30 - i,
                "average_rating": 5 - i,
                "total_purchases": 100 - i,
                "created_at": BASE + timedelta(days=10 - i),
            }
            fields[field] = tied
            items.append(listing(title, **fields))
        result = sort_playbooks(items, MarketplaceFilters(sort_by=sort_by, sort_order=sort_order))
        assert [p.title for p in result] == ["first", "second", "third"]


class TestPaginate:
    def test_pages(self):
        items = [listing(str(i)) for i in range(5)]
        page = paginate(items, page=2, page_size=2)
        assert [p.title for p in page.items] == ["2", "3"]
        assert page.total == 5
        assert page.total_pages == 3

    def test_page_past_end_is_empty(self):
        page = paginate([listing("a")], page=4, page_size=2)
        assert page.items == []
        assert page.total_pages == 1

    def test_empty(self):
        page = paginate([], page=1, page_size=24)
        assert page.total == 0
        assert page.total_pages == 0


# ── service ─────────────────────────────────────────────────────────────────


class TestMarketplaceService:
    async def test_listing_only_marketplace_newest_first(self, marketplace_service, gateway):
        seed_listing(gateway, "Older")
        seed_listing(gateway, "Newer")
        seed_listing(gateway, "Private", is_marketplace=False)

        result = await marketplace_service.get_marketplace_playbooks()
        assert [p.title for p in result] == ["Newer", "Older"]

    async def test_creator_info_and_preview(self, marketplace_service, gateway):
        gateway.seed("user_profiles", id="user_creator", display_name="Casey", avatar_url="https://img/c.png")
        seed_listing(gateway, "With profile", content={"full": True}, preview_content={"preview": True})
        seed_listing(gateway, "No profile", owner_id="user_ghost", content={"full": True})

        by_title = {p.title: p for p in await marketplace_service.get_marketplace_playbooks()}
        assert by_title["With profile"].creator_name == "Casey"
        assert by_title["With profile"].creator_avatar == "https://img/c.png"
        assert by_title["With profile"].content == {"preview": True}
        assert by_title["No profile"].creator_name == "Anonymous"
        assert by_title["No profile"].content == {"full": True}

    async def test_profiles_fetched_in_one_query(self, marketplace_service, gateway):
        for i in range(3):
            seed_listing(gateway, f"P{i}", owner_id=f"user_{i}")
        await marketplace_service.get_marketplace_playbooks()
        assert [c for c in gateway.calls if c[1] == "user_profiles"] == [("select", "user_profiles", None)]

    async def test_search_with_filters(self, marketplace_service, gateway):
        seed_listing(gateway, "Sales A", category="sales", price=10)
        seed_listing(gateway, "Sales B", category="sales", price=30)
        seed_listing(gateway, "Ops", category="ops", price=10)

        result = await marketplace_service.search_marketplace_playbooks(
            MarketplaceFilters(category="Sales", max_price=20), "sales"
        )
        assert [p.title for p in result] == ["Sales A"]

    async def test_featured_by_purchases_then_rating(self, marketplace_service, gateway):
        seed_listing(gateway, "popular", total_purchases=50, average_rating=3)
        seed_listing(gateway, "tied-better", total_purchases=10, average_rating=5)
        seed_listing(gateway, "tied-worse", total_purchases=10, average_rating=4)

        result = await marketplace_service.get_featured_playbooks(limit=2)
        assert [p.title for p in result] == ["popular", "tied-better"]

    async def test_get_playbook(self, marketplace_service, gateway):
        row = seed_listing(gateway, "Listed")
        hidden = seed_listing(gateway, "Hidden", is_marketplace=False)

        assert (await marketplace_service.get_playbook(row["id"])).title == "Listed"
        assert await marketplace_service.get_playbook(hidden["id"]) is None

    async def test_toggle_favorite(self, marketplace_service, gateway, owner):
        row = seed_listing(gateway, "Fav")

        assert await marketplace_service.toggle_favorite(row["id"], owner.id) is True
        assert await marketplace_service.get_user_favorites(owner.id) == {row["id"]}
        assert await marketplace_service.toggle_favorite(row["id"], owner.id) is False
        assert await marketplace_service.get_user_favorites(owner.id) == set()

        favorite_calls = [c for c in gateway.calls if c[1] == "playbook_favorites"]
        assert favorite_calls
        assert all(user_id == owner.id for _, _, user_id in favorite_calls)

    async def test_annotate(self, marketplace_service, gateway, owner):
        fav = seed_listing(gateway, "fav")
        bought = seed_listing(gateway, "bought")
        gateway.seed("playbook_favorites", playbook_id=fav["id"], user_id=owner.id)
        gateway.seed("playbook_purchases", playbook_id=bought["id"], user_id=owner.id)
        gateway.seed("marketplace_ratings", playbook_id=bought["id"], user_id=owner.id, rating=4)

        listings = await marketplace_service.get_marketplace_playbooks()
        annotated = {p.title: p for p in await marketplace_service.annotate(listings, owner.id)}
        assert annotated["fav"].is_favorited and not annotated["fav"].is_purchased
        assert annotated["bought"].is_purchased and annotated["bought"].user_rating == 4

    async def test_annotate_anonymous_is_passthrough(self, marketplace_service, gateway):
        seed_listing(gateway, "x")
        listings = await marketplace_service.get_marketplace_playbooks()
        assert await marketplace_service.annotate(listings, None) == listings

    async def test_stats(self, marketplace_service, gateway):
        seed_listing(gateway, "a", category="sales", average_rating=4)
        seed_listing(gateway, "b", category="sales", average_rating=5)
        seed_listing(gateway, "c", category="ops", average_rating=4)
        seed_listing(gateway, "hidden", is_marketplace=False, average_rating=1)
        gateway.seed("playbook_purchases", playbook_id=str(uuid4()), user_id="u1")

        stats = await marketplace_service.get_marketplace_stats()
        assert stats.total_playbooks == 3
        assert stats.total_purchases == 1
        assert stats.average_rating == 4.33
        assert [(c.category, c.count) for c in stats.categories] == [("Sales", 2), ("Ops", 1)]

    async def test_stats_empty(self, marketplace_service):
        stats = await marketplace_service.get_marketplace_stats()
        assert stats.total_playbooks == 0
        assert stats.average_rating == 0
        assert stats.categories == []

    async def test_rating_replaces_previous(self, marketplace_service, gateway, owner):
        row = seed_listing(gateway, "Rated")
        await marketplace_service.submit_rating(row["id"], owner.id, 3, "ok")
        second = await marketplace_service.submit_rating(row["id"], owner.id, 5, "great")

        ratings = await marketplace_service.get_playbook_ratings(row["id"])
        assert len(ratings) == 1
        assert ratings[0].rating == 5
        assert second.review == "great"

    async def test_rating_out_of_range(self, marketplace_service, gateway, owner):
        row = seed_listing(gateway, "Rated")
        with pytest.raises(ValidationError):
            await marketplace_service.submit_rating(row["id"], owner.id, 6)

    async def test_rating_unknown_playbook(self, marketplace_service, owner):
        with pytest.raises(NotFoundError):
            await marketplace_service.submit_rating(str(uuid4()), owner.id, 4)


# ── view-model ──────────────────────────────────────────────────────────────


class TestMarketplaceViewModel:
    async def test_fetch_all_and_derive(self, marketplace_service, gateway, owner):
        fav = seed_listing(gateway, "Sales Fav", category="sales")
        seed_listing(gateway, "Ops", category="ops")
        gateway.seed("playbook_favorites", playbook_id=fav["id"], user_id=owner.id)

        vm = MarketplaceViewModel(marketplace_service, owner)
        await vm.fetch_all()
        assert vm.loading is False
        assert len(vm.playbooks) == 2

        vm.update_filters(category="Sales")
        assert [p.title for p in vm.playbooks] == ["Sales Fav"]
        assert vm.playbooks[0].is_favorited is True

        vm.clear_filters()
        assert len(vm.playbooks) == 2

    async def test_unknown_filter_field_is_rejected(self, marketplace_service):
        vm = MarketplaceViewModel(marketplace_service)
        vm.update_filters(category="sales")

        with pytest.raises(PydanticValidationError):
            vm.update_filters(sortBy="price")
        assert vm.filters == MarketplaceFilters(category="sales")

        with pytest.raises(PydanticValidationError):
            MarketplaceFilters(sortBy="price")

    async def test_search_is_debounced(self, marketplace_service, gateway):
        seed_listing(gateway, "Alpha")
        seed_listing(gateway, "Beta")
        vm = MarketplaceViewModel(marketplace_service, search_delay=0.02)
        await vm.fetch_listing()

        vm.set_search_query("alp")
        assert vm.search_query == "alp"
        assert len(vm.playbooks) == 2

        await asyncio.sleep(0.06)
        assert [p.title for p in vm.playbooks] == ["Alpha"]
        vm.close()

    async def test_only_last_search_applies(self, marketplace_service, gateway):
        seed_listing(gateway, "Alpha")
        seed_listing(gateway, "Beta")
        vm = MarketplaceViewModel(marketplace_service, search_delay=10)
        await vm.fetch_listing()

        vm.set_search_query("alp")
        vm.set_search_query("bet")
        await vm.flush_search()
        assert vm.applied_query == "bet"
        assert [p.title for p in vm.playbooks] == ["Beta"]

    async def test_fetch_failure_keeps_listing(self, marketplace_service, gateway):
        seed_listing(gateway, "Kept")
        vm = MarketplaceViewModel(marketplace_service)
        await vm.fetch_listing()
        gateway.fail("select", "playbooks")

        await vm.fetch_listing()
        assert [p.title for p in vm.playbooks] == ["Kept"]
        assert vm.error == "connection refused"
        assert vm.loading is False

    async def test_toggle_favorite_requires_user(self, marketplace_service):
        vm = MarketplaceViewModel(marketplace_service)
        with pytest.raises(AuthError) as exc_info:
            await vm.toggle_favorite(str(uuid4()))
        assert exc_info.value.message == "User must be signed in to favorite playbooks"

    async def test_toggle_favorite_updates_after_success(self, marketplace_service, gateway, owner):
        row = seed_listing(gateway, "Fav")
        vm = MarketplaceViewModel(marketplace_service, owner)

        assert await vm.toggle_favorite(row["id"]) is True
        assert vm.favorites == {row["id"]}
        assert await vm.toggle_favorite(row["id"]) is False
        assert vm.favorites == set()

    async def test_toggle_favorite_failure_leaves_state(self, owner):
        service = AsyncMock()
        service.set_favorite.side_effect = DownstreamError("down")
        vm = MarketplaceViewModel(service, owner)
        playbook_id = str(uuid4())

        with pytest.raises(DownstreamError):
            await vm.toggle_favorite(playbook_id)
        assert vm.favorites == set()

    async def test_page(self, marketplace_service, gateway):
        for i in range(5):
            seed_listing(gateway, f"P{i}")
        vm = MarketplaceViewModel(marketplace_service)
        await vm.fetch_listing()
        page = vm.page(2, size=2)
        assert page.total == 5
        assert [p.title for p in page.items] == ["P2", "P1"]

    async def test_stats_and_featured(self, marketplace_service, gateway):
        seed_listing(gateway, "A", total_purchases=3)
        vm = MarketplaceViewModel(marketplace_service)
        await vm.fetch_stats()
        await vm.fetch_featured()
        assert vm.stats.total_playbooks == 1
        assert [p.title for p in vm.featured] == ["A"]
