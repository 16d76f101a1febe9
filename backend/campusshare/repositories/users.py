"""
repositories/users.py — User records over the users collection.

Email is lower-cased on the way in, both when storing and when querying the
email index, so uniqueness is case-insensitive by normalisation.
The password hash is carried on the record for credential checks but never
appears in to_dict().
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any

from backend.campusshare.errors import ConflictError, ErrorCode, NotFoundError
from backend.campusshare.repositories.base import (
    Record,
    isoformat,
    new_id,
    to_money,
    utcnow,
)
from backend.campusshare.store import USERS, KeyValueStore

# Profile fields a user may change. Identifier, email and credential are not here.
MUTABLE_PROFILE_FIELDS = (
    "first_name",
    "last_name",
    "university",
    "major",
    "year",
    "profile_image",
)


@dataclass(frozen=True)
class UserRecord(Record):
    user_id: str
    email: str
    password_hash: str = field(repr=False)
    first_name: str
    last_name: str
    university: str
    major: str | None
    year: int | None
    profile_image: str | None
    rating: Decimal
    total_ratings: int
    created_at: datetime
    updated_at: datetime

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "email": self.email,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "university": self.university,
            "major": self.major,
            "year": self.year,
            "profile_image": self.profile_image,
            "rating": self.rating,
            "total_ratings": self.total_ratings,
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }

    def public_summary(self) -> dict:
        """Public fields embedded in listings, proposals and groups."""
        return {
            "user_id": self.user_id,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "university": self.university,
            "major": self.major,
            "year": self.year,
            "rating": self.rating,
            "total_ratings": self.total_ratings,
        }


def normalize_email(email: str) -> str:
    return email.strip().lower()


class UserRepository:

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    def create(
            self,
            *,
            email: str,
            password_hash: str,
            first_name: str,
            last_name: str,
            university: str,
            major: str | None = None,
            year: int | None = None,
            profile_image: str | None = None,
    ) -> UserRecord:
        """
        Stores a new user.

        Raises:
          ConflictError(DUPLICATE_EMAIL) — the lower-cased email is taken.
        """
        email = normalize_email(email)
        if self.find_by_email(email) is not None:
            raise ConflictError(
                ErrorCode.DUPLICATE_EMAIL,
                f"The email address '{email}' is already registered.",
                field="email",
            )

        now = utcnow()
        item = {
            "user_id": new_id(),
            "email": email,
            "password_hash": password_hash,
            "first_name": first_name,
            "last_name": last_name,
            "university": university,
            "major": major,
            "year": year,
            "profile_image": profile_image,
            "rating": Decimal("0.00"),
            "total_ratings": 0,
            "created_at": now,
            "updated_at": now,
        }
        stored = self._store.put(USERS, item, unique_on=("user_id",))
        return UserRecord.from_item(stored)

    def get(self, user_id: str) -> UserRecord | None:
        item = self._store.get_by_key(USERS, {"user_id": user_id})
        return None if item is None else UserRecord.from_item(item)

    def find_by_email(self, email: str) -> UserRecord | None:
        items = self._store.query_by_index(USERS, "email", {"email": normalize_email(email)})
        return UserRecord.from_item(items[0]) if items else None

    def update_profile(self, user_id: str, attributes: dict[str, Any]) -> UserRecord:
        """Applies whitelisted profile changes; everything else is ignored."""
        changes = {
            name: value
            for name, value in attributes.items()
            if name in MUTABLE_PROFILE_FIELDS
        }
        changes["updated_at"] = utcnow()
        try:
            item = self._store.update_by_key(USERS, {"user_id": user_id}, changes)
        except NotFoundError:
            raise NotFoundError(ErrorCode.USER_NOT_FOUND, f"User {user_id} not found.") from None
        return UserRecord.from_item(item)

    def add_rating(self, user_id: str, score: int) -> UserRecord:
        """Folds one 1–5 score into the user's running average."""
        user = self.get(user_id)
        if user is None:
            raise NotFoundError(ErrorCode.USER_NOT_FOUND, f"User {user_id} not found.")

        total = user.total_ratings + 1
        average = (user.rating * user.total_ratings + Decimal(score)) / total
        item = self._store.update_by_key(
            USERS,
            {"user_id": user_id},
            {
                "rating": to_money(average),
                "total_ratings": total,
                "updated_at": utcnow(),
            },
        )
        return UserRecord.from_item(item)
