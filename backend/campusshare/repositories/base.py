"""
repositories/base.py — Shared record and pagination helpers for repositories.

Every repository converts raw store items into a frozen dataclass record via
Record.from_item(). That is the only place a store item is accepted: missing
attributes fail loudly, extra attributes are dropped.
"""

from __future__ import annotations

import dataclasses
import math
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Callable, Generic, Iterable, TypeVar

T = TypeVar("T", bound="Record")

_CENTS = Decimal("0.01")


def new_id() -> str:
    """Server-generated opaque identifier."""
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    """SQLite hands back naive datetimes; every stored timestamp is UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def to_money(value: Any) -> Decimal:
    """Normalises a price to a two-place Decimal."""
    return Decimal(str(value)).quantize(_CENTS, rounding=ROUND_HALF_UP)


def strip_attributes(attributes: dict[str, Any], blocked: Iterable[str]) -> dict[str, Any]:
    """Drops blocked (immutable) attribute names from an update payload."""
    blocked = set(blocked)
    return {name: value for name, value in attributes.items() if name not in blocked}


def enum_value(value: Any) -> Any:
    """Stores the plain string behind a str-Enum member."""
    return getattr(value, "value", value)


class Record:
    """Mixin for frozen dataclass records built from store items."""

    # Datetime attributes normalised to UTC on load.
    _timestamps: tuple[str, ...] = ("created_at", "updated_at")

    @classmethod
    def from_item(cls: type[T], item: dict[str, Any]) -> T:
        names = [f.name for f in dataclasses.fields(cls)]
        missing = [name for name in names if name not in item]
        if missing:
            raise ValueError(f"{cls.__name__} item is missing attributes {missing}.")
        values = {name: item[name] for name in names}
        for name in cls._timestamps:
            if name in values:
                values[name] = as_utc(values[name])
        return cls(**values)

    def as_item(self) -> dict[str, Any]:
        return dataclasses.asdict(self)


@dataclass(frozen=True)
class Page(Generic[T]):
    items: list[T]
    total: int
    current_page: int
    total_pages: int


def paginate(
        records: Iterable[T],
        page: int,
        limit: int,
        where: Callable[[T], bool] | None = None,
) -> Page[T]:
    """
    Sorts newest first by created_at, applies the optional in-process
    predicate, then slices out the requested 1-based page.
    """
    selected = [record for record in records if where is None or where(record)]
    selected.sort(key=lambda record: record.created_at, reverse=True)
    start = (page - 1) * limit
    return Page(
        items=selected[start:start + limit],
        total=len(selected),
        current_page=page,
        total_pages=math.ceil(len(selected) / limit) if limit else 0,
    )


def isoformat(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None
