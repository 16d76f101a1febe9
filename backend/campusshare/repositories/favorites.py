"""
repositories/favorites.py — Favorite records over the favorites collection.

(user_id, listing_id) is unique by a read-before-write check on the composite
index; the store has no conditional put for non-key attributes.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from backend.campusshare.errors import ConflictError, ErrorCode, NotFoundError
from backend.campusshare.repositories.base import Record, isoformat, new_id, utcnow
from backend.campusshare.store import FAVORITES, KeyValueStore


@dataclass(frozen=True)
class FavoriteRecord(Record):
    favorite_id: str
    user_id: str
    listing_id: str
    created_at: datetime

    _timestamps = ("created_at",)

    def to_dict(self) -> dict:
        return {
            "favorite_id": self.favorite_id,
            "user_id": self.user_id,
            "listing_id": self.listing_id,
            "created_at": isoformat(self.created_at),
        }


class FavoriteRepository:

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    def add(self, user_id: str, listing_id: str) -> FavoriteRecord:
        """
        Raises:
          ConflictError(ALREADY_FAVORITED)
        """
        if self.find_by_user_and_listing(user_id, listing_id):
            raise ConflictError(
                ErrorCode.ALREADY_FAVORITED,
                "This listing is already in your favorites.",
                field="listing_id",
            )
        item = {
            "favorite_id": new_id(),
            "user_id": user_id,
            "listing_id": listing_id,
            "created_at": utcnow(),
        }
        stored = self._store.put(FAVORITES, item, unique_on=("favorite_id",))
        return FavoriteRecord.from_item(stored)

    def remove(self, user_id: str, listing_id: str) -> int:
        """
        Deletes every favorite row for the pair and returns how many went.

        Raises:
          NotFoundError(FAVORITE_NOT_FOUND)
        """
        favorites = self.find_by_user_and_listing(user_id, listing_id)
        if not favorites:
            raise NotFoundError(
                ErrorCode.FAVORITE_NOT_FOUND,
                "This listing is not in your favorites.",
            )
        for favorite in favorites:
            self._store.delete_by_key(FAVORITES, {"favorite_id": favorite.favorite_id})
        return len(favorites)

    def find_by_user(self, user_id: str) -> list[FavoriteRecord]:
        """Newest first."""
        items = self._store.query_by_index(FAVORITES, "user_id", {"user_id": user_id})
        records = [FavoriteRecord.from_item(item) for item in items]
        records.sort(key=lambda record: record.created_at, reverse=True)
        return records

    def find_by_user_and_listing(self, user_id: str, listing_id: str) -> list[FavoriteRecord]:
        items = self._store.query_by_index(
            FAVORITES,
            "user_id_listing",
            {"user_id": user_id, "listing_id": listing_id},
        )
        return [FavoriteRecord.from_item(item) for item in items]

    def is_favorited(self, user_id: str, listing_id: str) -> bool:
        return bool(self.find_by_user_and_listing(user_id, listing_id))

    def count_for_listing(self, listing_id: str) -> int:
        return len(self._store.query_by_index(FAVORITES, "listing_id", {"listing_id": listing_id}))
