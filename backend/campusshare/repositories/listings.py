"""
repositories/listings.py — Listing records over the listings collection.

Invariant enforced on every write: price_type == "free" ⇒ price == 0.
On update the rule is checked against the merged (stored + changed) record,
so switching an existing priced listing to "free" without zeroing the price
is rejected.

find_all() is a full scan with equality filters, sorted and sliced in
process. The store offers no server-side sort, pagination or text search.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable

from backend.campusshare.errors import ErrorCode, InvalidOperationError, NotFoundError
from backend.campusshare.models.listing import ListingStatus, PriceType
from backend.campusshare.repositories.base import (
    Page,
    Record,
    enum_value,
    isoformat,
    new_id,
    paginate,
    strip_attributes,
    to_money,
    utcnow,
)
from backend.campusshare.store import LISTINGS, KeyValueStore

IMMUTABLE_FIELDS = ("listing_id", "seller_id", "views", "created_at", "updated_at")
FILTERABLE_FIELDS = ("status", "category", "price_type", "condition")


@dataclass(frozen=True)
class ListingRecord(Record):
    listing_id: str
    title: str
    description: str
    price: Decimal
    price_type: str
    category: str
    condition: str
    location: str
    images: list
    seller_id: str
    status: str
    views: int
    created_at: datetime
    updated_at: datetime

    def to_dict(self) -> dict:
        return {
            "listing_id": self.listing_id,
            "title": self.title,
            "description": self.description,
            "price": self.price,
            "price_type": self.price_type,
            "category": self.category,
            "condition": self.condition,
            "location": self.location,
            "images": list(self.images),
            "seller_id": self.seller_id,
            "status": self.status,
            "views": self.views,
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }


def _check_free_price(item: dict[str, Any]) -> None:
    if item["price_type"] == PriceType.FREE.value and to_money(item["price"]) != 0:
        raise InvalidOperationError(
            ErrorCode.FREE_LISTING_PRICE,
            "A free listing must have a price of 0.",
            field="price",
        )


def _normalize(attributes: dict[str, Any]) -> dict[str, Any]:
    normalized = {name: enum_value(value) for name, value in attributes.items()}
    if "price" in normalized:
        normalized["price"] = to_money(normalized["price"])
    if "images" in normalized:
        normalized["images"] = list(normalized["images"] or [])
    return normalized


class ListingRepository:

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    def create(self, data: dict[str, Any], seller_id: str) -> ListingRecord:
        """
        Stores a new active listing owned by seller_id.

        Any client-supplied identifier, owner, status or counter is ignored.
        """
        data = _normalize(data)
        now = utcnow()
        item = {
            "listing_id": new_id(),
            "title": data["title"],
            "description": data["description"],
            "price": data["price"],
            "price_type": data["price_type"],
            "category": data["category"],
            "condition": data["condition"],
            "location": data["location"],
            "images": data.get("images", []),
            "seller_id": seller_id,
            "status": ListingStatus.ACTIVE.value,
            "views": 0,
            "created_at": now,
            "updated_at": now,
        }
        _check_free_price(item)
        stored = self._store.put(LISTINGS, item, unique_on=("listing_id",))
        return ListingRecord.from_item(stored)

    def get(self, listing_id: str) -> ListingRecord | None:
        item = self._store.get_by_key(LISTINGS, {"listing_id": listing_id})
        return None if item is None else ListingRecord.from_item(item)

    def find_by_seller(self, seller_id: str) -> list[ListingRecord]:
        items = self._store.query_by_index(LISTINGS, "seller_id", {"seller_id": seller_id})
        return [ListingRecord.from_item(item) for item in items]

    def find_all(
            self,
            filters: dict[str, Any] | None = None,
            page: int = 1,
            limit: int = 12,
            where: Callable[[ListingRecord], bool] | None = None,
    ) -> Page[ListingRecord]:
        """
        Scans listings matching the equality `filters`, newest first.

        `where` is an optional in-process predicate supplied by the caller
        (free-text search); it runs before the page is sliced so totals stay
        correct.
        """
        equality = {
            name: enum_value(value)
            for name, value in (filters or {}).items()
            if name in FILTERABLE_FIELDS and value is not None
        }
        records = [ListingRecord.from_item(item) for item in self._store.scan(LISTINGS, equality)]
        return paginate(records, page, limit, where=where)

    def update(self, listing_id: str, attributes: dict[str, Any]) -> ListingRecord:
        """
        Applies changes to a listing. Identifier, owner, view counter and
        timestamps are filtered out of the payload.

        Raises:
          NotFoundError(LISTING_NOT_FOUND)
          InvalidOperationError(FREE_LISTING_PRICE)
        """
        current = self.get(listing_id)
        if current is None:
            raise NotFoundError(ErrorCode.LISTING_NOT_FOUND, f"Listing {listing_id} not found.")

        changes = _normalize(strip_attributes(attributes, IMMUTABLE_FIELDS))
        _check_free_price({**current.as_item(), **changes})
        changes["updated_at"] = utcnow()

        item = self._store.update_by_key(LISTINGS, {"listing_id": listing_id}, changes)
        return ListingRecord.from_item(item)

    def set_status(self, listing_id: str, status: ListingStatus) -> ListingRecord:
        return self.update(listing_id, {"status": status})

    def increment_views(self, listing_id: str) -> ListingRecord:
        """Read-modify-write; concurrent readers can lose increments."""
        current = self.get(listing_id)
        if current is None:
            raise NotFoundError(ErrorCode.LISTING_NOT_FOUND, f"Listing {listing_id} not found.")
        item = self._store.update_by_key(
            LISTINGS,
            {"listing_id": listing_id},
            {"views": current.views + 1},
        )
        return ListingRecord.from_item(item)

    def delete(self, listing_id: str) -> None:
        self._store.delete_by_key(LISTINGS, {"listing_id": listing_id})
