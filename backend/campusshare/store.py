"""
store.py — Key-value persistence adapter.

Exposes single-item operations over named collections:

  get_by_key(collection, key)                  → item | None
  put(collection, item, unique_on=None)        → item        (ConflictError)
  update_by_key(collection, key, attributes)   → item        (NotFoundError)
  delete_by_key(collection, key)               → None
  query_by_index(collection, index, match)     → list[item]  (never raises on no match)
  scan(collection, filters=None)               → list[item]

Items are plain dicts (attribute name → value). ORM instances never leave this
module; repositories turn items into typed records.

Every collection is a SQLAlchemy table and every secondary index an indexed
column set. Nothing above this layer may rely on multi-item atomicity: each
call is one item or one index partition. The adapter flushes but never
commits — commits are the route's responsibility.

Unknown collection, index or attribute names raise KeyError. Those are
programming errors, not client errors.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import inspect as sa_inspect
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from backend.campusshare.errors import ConflictError, ErrorCode, NotFoundError
from backend.campusshare.models.favorite import Favorite
from backend.campusshare.models.group_membership import GroupMembership
from backend.campusshare.models.listing import Listing
from backend.campusshare.models.proposal import Proposal
from backend.campusshare.models.study_group import StudyGroup
from backend.campusshare.models.user import User


@dataclass(frozen=True)
class Collection:
    model: type
    key: tuple[str, ...]
    indexes: dict[str, tuple[str, ...]] = field(default_factory=dict)
    # Attribute used to order index query results (oldest first).
    order_by: str = "created_at"


USERS             = "users"
LISTINGS          = "listings"
PROPOSALS         = "proposals"
STUDY_GROUPS      = "study_groups"
GROUP_MEMBERSHIPS = "group_memberships"
FAVORITES         = "favorites"


COLLECTIONS: dict[str, Collection] = {
    USERS: Collection(
        model=User,
        key=("user_id",),
        indexes={"email": ("email",)},
    ),
    LISTINGS: Collection(
        model=Listing,
        key=("listing_id",),
        indexes={"seller_id": ("seller_id",)},
    ),
    PROPOSALS: Collection(
        model=Proposal,
        key=("proposal_id",),
        indexes={
            "listing_id": ("listing_id",),
            "buyer_id":   ("buyer_id",),
            "seller_id":  ("seller_id",),
        },
    ),
    STUDY_GROUPS: Collection(
        model=StudyGroup,
        key=("group_id",),
        indexes={"creator_id": ("creator_id",)},
    ),
    GROUP_MEMBERSHIPS: Collection(
        model=GroupMembership,
        key=("user_id", "group_id"),
        indexes={
            "user_id":  ("user_id",),
            "group_id": ("group_id",),
        },
        order_by="joined_at",
    ),
    FAVORITES: Collection(
        model=Favorite,
        key=("favorite_id",),
        indexes={
            "user_id":         ("user_id",),
            "listing_id":      ("listing_id",),
            "user_id_listing": ("user_id", "listing_id"),
        },
    ),
}


def _to_item(instance) -> dict[str, Any]:
    """
    Copies every mapped column of an ORM instance into a plain dict.

    JSON values (lists/dicts) are deep-copied so callers can modify an item
    and hand it back without mutating the tracked instance in place, which
    SQLAlchemy would not detect as a change.
    """
    item = {}
    for attr in sa_inspect(instance).mapper.column_attrs:
        value = getattr(instance, attr.key)
        if isinstance(value, (list, dict)):
            value = copy.deepcopy(value)
        item[attr.key] = value
    return item


class KeyValueStore:
    """Single-item persistence operations over a SQLAlchemy session."""

    def __init__(self, session: Session) -> None:
        self._session = session

    # ── Private helpers ────────────────────────────────────────────────────

    @staticmethod
    def _collection(name: str) -> Collection:
        try:
            return COLLECTIONS[name]
        except KeyError:
            raise KeyError(f"Unknown collection {name!r}.") from None

    @staticmethod
    def _identity(coll: Collection, key: dict[str, Any]):
        """Returns the primary-key identity accepted by Session.get()."""
        missing = [name for name in coll.key if name not in key]
        if missing:
            raise KeyError(f"Key for {coll.model.__tablename__} is missing {missing}.")
        if len(coll.key) == 1:
            return key[coll.key[0]]
        return tuple(key[name] for name in coll.key)

    @staticmethod
    def _check_attributes(coll: Collection, names) -> None:
        columns = {attr.key for attr in sa_inspect(coll.model).column_attrs}
        unknown = [name for name in names if name not in columns]
        if unknown:
            raise KeyError(f"Unknown attributes for {coll.model.__tablename__}: {unknown}.")

    def _select(self, coll: Collection, match: dict[str, Any]) -> list:
        self._check_attributes(coll, match)
        model = coll.model
        stmt = select(model).order_by(getattr(model, coll.order_by).asc())
        if match:
            stmt = stmt.where(
                *(getattr(model, name) == value for name, value in match.items())
            )
        return list(self._session.execute(stmt).scalars().all())

    def _flush(self, coll: Collection) -> None:
        try:
            self._session.flush()
        except IntegrityError as exc:
            # A storage-level unique constraint caught a write that raced past
            # the application's precondition check.
            self._session.rollback()
            raise ConflictError(
                ErrorCode.DUPLICATE_ITEM,
                f"The {coll.model.__tablename__} item conflicts with an existing item.",
            ) from exc

    # ── Public operations ──────────────────────────────────────────────────

    def get_by_key(self, collection: str, key: dict[str, Any]) -> dict[str, Any] | None:
        coll = self._collection(collection)
        instance = self._session.get(coll.model, self._identity(coll, key))
        return None if instance is None else _to_item(instance)

    def put(
            self,
            collection: str,
            item: dict[str, Any],
            unique_on: tuple[str, ...] | None = None,
    ) -> dict[str, Any]:
        """
        Writes a whole item.

        Without `unique_on` an existing item with the same key is replaced.
        With `unique_on`, the write fails with ConflictError if any stored item
        already has the same values for those attributes (pass the key
        attributes for an insert-only write).
        """
        coll = self._collection(collection)
        self._check_attributes(coll, item)

        if unique_on:
            if set(unique_on) == set(coll.key):
                exists = self._session.get(coll.model, self._identity(coll, item)) is not None
            else:
                exists = bool(self._select(coll, {name: item[name] for name in unique_on}))
            if exists:
                raise ConflictError(
                    ErrorCode.DUPLICATE_ITEM,
                    f"A {coll.model.__tablename__} item with the same "
                    f"{', '.join(unique_on)} already exists.",
                )
            instance = coll.model(**item)
            self._session.add(instance)
        else:
            instance = self._session.merge(coll.model(**item))

        self._flush(coll)
        return _to_item(instance)

    def update_by_key(
            self,
            collection: str,
            key: dict[str, Any],
            attributes: dict[str, Any],
    ) -> dict[str, Any]:
        """Sets the given attributes on an existing item and returns the full item."""
        coll = self._collection(collection)
        self._check_attributes(coll, attributes)

        key_changes = [name for name in attributes if name in coll.key]
        if key_changes:
            raise KeyError(f"Key attributes cannot be updated: {key_changes}.")

        instance = self._session.get(coll.model, self._identity(coll, key))
        if instance is None:
            raise NotFoundError(
                ErrorCode.ITEM_NOT_FOUND,
                f"No {coll.model.__tablename__} item matches key {key}.",
            )

        for name, value in attributes.items():
            setattr(instance, name, value)
        self._flush(coll)
        return _to_item(instance)

    def delete_by_key(self, collection: str, key: dict[str, Any]) -> None:
        coll = self._collection(collection)
        instance = self._session.get(coll.model, self._identity(coll, key))
        if instance is None:
            return
        self._session.delete(instance)
        self._session.flush()

    def query_by_index(
            self,
            collection: str,
            index_name: str,
            match: dict[str, Any],
    ) -> list[dict[str, Any]]:
        """
        Equality query on a secondary index.

        `match` must name at least the index's first attribute and nothing
        outside the index. Results are ordered oldest first.
        """
        coll = self._collection(collection)
        try:
            attrs = coll.indexes[index_name]
        except KeyError:
            raise KeyError(
                f"Unknown index {index_name!r} on {coll.model.__tablename__}."
            ) from None

        if attrs[0] not in match or any(name not in attrs for name in match):
            raise KeyError(f"Index {index_name!r} cannot be queried with {sorted(match)}.")

        return [_to_item(instance) for instance in self._select(coll, match)]

    def scan(
            self,
            collection: str,
            filters: dict[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        """Full-collection read with optional attribute-equality filters."""
        coll = self._collection(collection)
        return [_to_item(instance) for instance in self._select(coll, filters or {})]
