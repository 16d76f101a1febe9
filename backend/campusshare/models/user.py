"""
models/user.py — Users collection.

One row per registered account. `email` is stored lower-cased so the unique
index gives case-insensitive uniqueness. No business logic here.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, DateTime, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from backend.campusshare.extensions import db


class User(db.Model):
    __tablename__ = "users"

    __table_args__ = (
        CheckConstraint("email LIKE '%@%'", name="ck_users_email_format"),
        CheckConstraint("rating >= 0 AND rating <= 5", name="ck_users_rating_range"),
    )

    user_id: Mapped[str] = mapped_column(String(36), primary_key=True)

    # email-index
    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        index=True,
    )

    # bcrypt digest. Never serialised.
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    university: Mapped[str] = mapped_column(String(200), nullable=False)
    major: Mapped[str | None] = mapped_column(String(200), nullable=True)
    year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    profile_image: Mapped[str | None] = mapped_column(String(500), nullable=True)

    # Running average of received ratings.
    rating: Mapped[Decimal] = mapped_column(Numeric(3, 2), nullable=False, default=Decimal("0.00"))
    total_ratings: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:  # pragma: no cover
        return f"<User user_id={self.user_id} email={self.email!r}>"
