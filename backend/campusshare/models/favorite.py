"""
models/favorite.py — Favorites collection.

Uniqueness of (user_id, listing_id) is checked by FavoriteRepository before
insert; the composite index is a lookup index, not a unique constraint.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from backend.campusshare.extensions import db


class Favorite(db.Model):
    __tablename__ = "favorites"

    __table_args__ = (
        Index("idx_favorites_user_listing", "user_id", "listing_id"),
    )

    favorite_id: Mapped[str] = mapped_column(String(36), primary_key=True)

    # userId-index
    user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    # listingId-index
    listing_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<Favorite favorite_id={self.favorite_id} "
            f"user_id={self.user_id} "
            f"listing_id={self.listing_id}>"
        )
