"""
models/listing.py — Listings collection.

`seller_id` references users.user_id by value only: relationships are resolved
by explicit lookups at read time, there is no foreign-key enforcement.

Key design points:
  - `price` uses Numeric(10, 2) — never Float.
  - CHECK(price_type <> 'free' OR price = 0) backs the repository's
    free-listing rule at the storage level.
  - The enums below are imported by schemas and services; do not repeat
    their values as string literals elsewhere.
"""

from __future__ import annotations

import enum
from datetime import datetime
from decimal import Decimal

from sqlalchemy import JSON, CheckConstraint, DateTime, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from backend.campusshare.extensions import db


class PriceType(str, enum.Enum):
    SALE = "sale"
    RENT = "rent"
    FREE = "free"


class Category(str, enum.Enum):
    TEXTBOOK      = "textbook"
    LAPTOP        = "laptop"
    CLOUD_CREDITS = "cloud-credits"
    EQUIPMENT     = "equipment"
    OTHER         = "other"


class Condition(str, enum.Enum):
    NEW      = "new"
    LIKE_NEW = "like-new"
    GOOD     = "good"
    FAIR     = "fair"
    POOR     = "poor"


class ListingStatus(str, enum.Enum):
    ACTIVE   = "active"
    SOLD     = "sold"
    EXPIRED  = "expired"
    INACTIVE = "inactive"


def enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    """The stored string values of an enum, in declaration order."""
    return [member.value for member in enum_cls]


def _in_check(column: str, enum_cls: type[enum.Enum]) -> str:
    quoted = ", ".join(f"'{value}'" for value in enum_values(enum_cls))
    return f"{column} IN ({quoted})"


class Listing(db.Model):
    __tablename__ = "listings"

    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_listings_price_nonnegative"),
        CheckConstraint(
            "price_type <> 'free' OR price = 0",
            name="ck_listings_free_price_zero",
        ),
        CheckConstraint(_in_check("price_type", PriceType), name="ck_listings_price_type"),
        CheckConstraint(_in_check("category", Category), name="ck_listings_category"),
        CheckConstraint(_in_check("condition", Condition), name="ck_listings_condition"),
        CheckConstraint(_in_check("status", ListingStatus), name="ck_listings_status"),
    )

    listing_id: Mapped[str] = mapped_column(String(36), primary_key=True)

    title: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    price_type: Mapped[str] = mapped_column(String(10), nullable=False)
    category: Mapped[str] = mapped_column(String(20), nullable=False)
    condition: Mapped[str] = mapped_column(String(10), nullable=False)
    location: Mapped[str] = mapped_column(String(200), nullable=False)

    # Opaque object-storage URLs; reachability is never checked.
    images: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    # sellerId-index
    seller_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)

    status: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
        default=ListingStatus.ACTIVE.value,
        index=True,
    )
    views: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<Listing listing_id={self.listing_id} "
            f"title={self.title!r} "
            f"status={self.status}>"
        )
