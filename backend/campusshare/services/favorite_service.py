"""
services/favorite_service.py — A user's saved listings.
"""

from __future__ import annotations

import logging

from backend.campusshare.errors import ErrorCode, NotFoundError
from backend.campusshare.repositories import Repositories

logger = logging.getLogger(__name__)


def add_favorite(user_id: str, listing_id: str, repos: Repositories) -> dict:
    """
    Raises:
      NotFoundError(LISTING_NOT_FOUND, 404)
      ConflictError(ALREADY_FAVORITED, 409)
    """
    if repos.listings.get(listing_id) is None:
        raise NotFoundError(ErrorCode.LISTING_NOT_FOUND, f"Listing {listing_id} not found.")
    return repos.favorites.add(user_id, listing_id).to_dict()


def remove_favorite(user_id: str, listing_id: str, repos: Repositories) -> None:
    """Works for listings that have since been deleted."""
    repos.favorites.remove(user_id, listing_id)


def list_favorites(user_id: str, repos: Repositories) -> list[dict]:
    """
    Favorited listings, most recently favorited first, each with
    `favorited_at`. Favorites whose listing is gone are skipped.
    """
    results = []
    for favorite in repos.favorites.find_by_user(user_id):
        listing = repos.listings.get(favorite.listing_id)
        if listing is None:
            logger.debug("Skipping favorite %s of a deleted listing", favorite.favorite_id)
            continue
        results.append({
            **listing.to_dict(),
            "favorited_at": favorite.to_dict()["created_at"],
        })
    return results


def is_favorited(user_id: str, listing_id: str, repos: Repositories) -> dict:
    return {"is_favorited": repos.favorites.is_favorited(user_id, listing_id)}
