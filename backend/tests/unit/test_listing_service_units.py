"""
Unit tests for listing, favorite and user service branches.

These tests run DB-free with MagicMock repositories.
"""

from __future__ import annotations

from decimal import Decimal

import pytest

from backend.campusshare.errors import AppError, ErrorCode
from backend.campusshare.models.listing import ListingStatus
from backend.campusshare.repositories.favorites import FavoriteRecord
from backend.campusshare.services import favorite_service, listing_service, user_service

from . import factories


# ═══════════════════════════════════════════════════════════════════════════
# listing_service
# ═══════════════════════════════════════════════════════════════════════════

def test_list_listings_defaults_status_to_active():
    repos = factories.mock_repos()
    page = repos.listings.find_all.return_value
    page.items = [factories.listing()]
    page.current_page = 1
    page.total_pages = 1
    page.total = 1
    repos.users.get.return_value = factories.user("seller", first_name="Sam")

    result = listing_service.list_listings({"category": None}, 1, 12, None, repos)

    args, kwargs = repos.listings.find_all.call_args
    assert args[0]["status"] is ListingStatus.ACTIVE
    assert kwargs["where"] is None
    assert result["listings"][0]["seller"]["first_name"] == "Sam"
    assert result["total"] == 1


def test_list_listings_keeps_explicit_status():
    repos = factories.mock_repos()
    page = repos.listings.find_all.return_value
    page.items = []

    listing_service.list_listings({"status": ListingStatus.SOLD}, 1, 12, None, repos)

    assert repos.listings.find_all.call_args.args[0]["status"] is ListingStatus.SOLD


def test_search_predicate_matches_title_or_description():
    predicate = listing_service._matches_search("LAPTOP")

    assert predicate(factories.listing(title="Gaming laptop"))
    assert predicate(factories.listing(title="Bag", description="Fits a 15in Laptop"))
    assert not predicate(factories.listing(title="Desk", description="Oak"))
    assert listing_service._matches_search("") is None


def test_get_listing_counts_view_and_reports_favorites():
    repos = factories.mock_repos()
    repos.listings.get.return_value = factories.listing()
    repos.listings.increment_views.return_value = factories.listing(views=1)
    repos.favorites.count_for_listing.return_value = 3
    repos.favorites.is_favorited.return_value = True

    result = listing_service.get_listing("l-1", "viewer", repos)

    repos.listings.increment_views.assert_called_once_with("l-1")
    assert result["views"] == 1
    assert result["favorite_count"] == 3
    assert result["is_favorited"] is True


def test_get_listing_anonymous_has_no_is_favorited():
    repos = factories.mock_repos()
    repos.listings.get.return_value = factories.listing()
    repos.listings.increment_views.return_value = factories.listing(views=1)
    repos.favorites.count_for_listing.return_value = 0

    result = listing_service.get_listing("l-1", None, repos)

    assert "is_favorited" not in result
    repos.favorites.is_favorited.assert_not_called()


def test_get_missing_listing_raises_404():
    repos = factories.mock_repos()
    repos.listings.get.return_value = None

    with pytest.raises(AppError) as exc_info:
        listing_service.get_listing("l-1", None, repos)

    assert exc_info.value.code == ErrorCode.LISTING_NOT_FOUND
    repos.listings.increment_views.assert_not_called()


def test_update_by_non_seller_is_forbidden():
    repos = factories.mock_repos()
    repos.listings.get.return_value = factories.listing(seller_id="seller")

    with pytest.raises(AppError) as exc_info:
        listing_service.update_listing("l-1", "other", {"price": Decimal("1")}, repos)

    assert exc_info.value.code == ErrorCode.FORBIDDEN
    assert exc_info.value.http_status == 403
    repos.listings.update.assert_not_called()


def test_delete_by_seller():
    repos = factories.mock_repos()
    repos.listings.get.return_value = factories.listing(seller_id="seller")

    listing_service.delete_listing("l-1", "seller", repos)

    repos.listings.delete.assert_called_once_with("l-1")


def test_my_listings_newest_first():
    repos = factories.mock_repos()
    older = factories.listing("l-old")
    newer = factories.listing(
        "l-new", created_at=factories.TS.replace(year=2027)
    )
    repos.listings.find_by_seller.return_value = [older, newer]

    result = listing_service.list_my_listings("seller", repos)

    assert [item["listing_id"] for item in result] == ["l-new", "l-old"]


# ═══════════════════════════════════════════════════════════════════════════
# favorite_service
# ═══════════════════════════════════════════════════════════════════════════

def test_add_favorite_for_missing_listing_raises_404():
    repos = factories.mock_repos()
    repos.listings.get.return_value = None

    with pytest.raises(AppError) as exc_info:
        favorite_service.add_favorite("u-1", "l-1", repos)

    assert exc_info.value.code == ErrorCode.LISTING_NOT_FOUND
    repos.favorites.add.assert_not_called()


def test_list_favorites_skips_deleted_listings():
    repos = factories.mock_repos()
    repos.favorites.find_by_user.return_value = [
        _favorite("f-1", "l-gone"),
        _favorite("f-2", "l-1"),
    ]
    repos.listings.get.side_effect = lambda listing_id: (
        factories.listing(listing_id) if listing_id == "l-1" else None
    )

    result = favorite_service.list_favorites("u-1", repos)

    assert [item["listing_id"] for item in result] == ["l-1"]
    assert result[0]["favorited_at"] == factories.TS.isoformat()


def _favorite(favorite_id: str, listing_id: str) -> FavoriteRecord:
    return FavoriteRecord(
        favorite_id=favorite_id,
        user_id="u-1",
        listing_id=listing_id,
        created_at=factories.TS,
    )


# ═══════════════════════════════════════════════════════════════════════════
# user_service
# ═══════════════════════════════════════════════════════════════════════════

def test_rate_self_raises_422():
    repos = factories.mock_repos()

    with pytest.raises(AppError) as exc_info:
        user_service.rate_user("u-1", "u-1", 5, repos)

    assert exc_info.value.code == ErrorCode.SELF_RATING
    repos.users.add_rating.assert_not_called()


def test_rate_unknown_user_raises_404():
    repos = factories.mock_repos()

    with pytest.raises(AppError) as exc_info:
        user_service.rate_user("u-1", "u-2", 5, repos)

    assert exc_info.value.code == ErrorCode.USER_NOT_FOUND


def test_user_summaries_looks_each_user_up_once():
    repos = factories.mock_repos()
    repos.users.get.side_effect = lambda user_id: (
        factories.user(user_id) if user_id == "u-1" else None
    )

    result = user_service.user_summaries(["u-1", "u-1", "u-missing"], repos)

    assert result["u-1"]["user_id"] == "u-1"
    assert result["u-missing"] is None
    assert repos.users.get.call_count == 2


def test_public_profile_has_no_email():
    repos = factories.mock_repos()
    repos.users.get.return_value = factories.user("u-1")

    result = user_service.get_public_profile("u-1", repos)

    assert "email" not in result
    assert result["rating"] == Decimal("0.00")
