"""
services/listing_service.py — Marketplace listings: browse, search, CRUD.

Authorization rules:
  - Anyone may browse and read listings.
  - Only the seller may update or delete a listing (FORBIDDEN 403).

Browsing is a repository scan with equality filters; free-text search is a
case-insensitive substring match on title and description, evaluated in
process before the page is sliced.
"""

from __future__ import annotations

import logging

from backend.campusshare.errors import ErrorCode, ForbiddenError, NotFoundError
from backend.campusshare.models.listing import ListingStatus
from backend.campusshare.repositories import Repositories
from backend.campusshare.repositories.listings import ListingRecord
from backend.campusshare.services.user_service import user_summaries

logger = logging.getLogger(__name__)


# ── Private helpers ────────────────────────────────────────────────────────

def _get_listing_or_404(listing_id: str, repos: Repositories) -> ListingRecord:
    listing = repos.listings.get(listing_id)
    if listing is None:
        raise NotFoundError(ErrorCode.LISTING_NOT_FOUND, f"Listing {listing_id} not found.")
    return listing


def _require_seller(listing: ListingRecord, actor_id: str) -> None:
    if listing.seller_id != actor_id:
        raise ForbiddenError("Only the seller may change this listing.")


def _matches_search(search: str | None):
    if not search:
        return None
    needle = search.lower()

    def predicate(listing: ListingRecord) -> bool:
        return needle in listing.title.lower() or needle in listing.description.lower()

    return predicate


def _with_sellers(listings: list[ListingRecord], repos: Repositories) -> list[dict]:
    sellers = user_summaries((listing.seller_id for listing in listings), repos)
    return [
        {**listing.to_dict(), "seller": sellers[listing.seller_id]}
        for listing in listings
    ]


# ── Public service functions ───────────────────────────────────────────────

def list_listings(
        filters: dict,
        page: int,
        limit: int,
        search: str | None,
        repos: Repositories,
) -> dict:
    """
    Paged browse. Status defaults to active when the caller does not filter
    on it. Each listing carries its seller's public summary.
    """
    filters = dict(filters)
    if filters.get("status") is None:
        filters["status"] = ListingStatus.ACTIVE

    result = repos.listings.find_all(filters, page, limit, where=_matches_search(search))
    return {
        "listings": _with_sellers(result.items, repos),
        "current_page": result.current_page,
        "total_pages": result.total_pages,
        "total": result.total,
    }


def get_listing(listing_id: str, viewer_id: str | None, repos: Repositories) -> dict:
    """
    Returns the listing with seller summary and favorite count, and counts
    the view.
    """
    _get_listing_or_404(listing_id, repos)
    listing = repos.listings.increment_views(listing_id)

    detail = _with_sellers([listing], repos)[0]
    detail["favorite_count"] = repos.favorites.count_for_listing(listing_id)
    if viewer_id is not None:
        detail["is_favorited"] = repos.favorites.is_favorited(viewer_id, listing_id)
    return detail


def list_my_listings(seller_id: str, repos: Repositories) -> list[dict]:
    """All of the seller's listings in any status, newest first."""
    listings = repos.listings.find_by_seller(seller_id)
    listings.sort(key=lambda listing: listing.created_at, reverse=True)
    return [listing.to_dict() for listing in listings]


def create_listing(data: dict, seller_id: str, repos: Repositories) -> dict:
    listing = repos.listings.create(data, seller_id)
    logger.info("Listing %s created by %s", listing.listing_id, seller_id)
    return _with_sellers([listing], repos)[0]


def update_listing(listing_id: str, actor_id: str, changes: dict, repos: Repositories) -> dict:
    """
    Raises:
      NotFoundError(LISTING_NOT_FOUND, 404)
      ForbiddenError(403)                      — actor is not the seller
      InvalidOperationError(FREE_LISTING_PRICE, 422)
    """
    listing = _get_listing_or_404(listing_id, repos)
    _require_seller(listing, actor_id)

    updated = repos.listings.update(listing_id, changes)
    return _with_sellers([updated], repos)[0]


def delete_listing(listing_id: str, actor_id: str, repos: Repositories) -> None:
    """
    Proposals and favorites that reference the listing are left in place;
    readers skip or tolerate the dangling reference.
    """
    listing = _get_listing_or_404(listing_id, repos)
    _require_seller(listing, actor_id)

    repos.listings.delete(listing_id)
    logger.info("Listing %s deleted by %s", listing_id, actor_id)
