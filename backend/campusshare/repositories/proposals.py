"""
repositories/proposals.py — Proposal records over the proposals collection.

Status transitions and their side effects live in
services/proposal_service.py; this module only stores what it is told.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from backend.campusshare.errors import ErrorCode, NotFoundError
from backend.campusshare.models.proposal import ProposalStatus
from backend.campusshare.repositories.base import (
    Record,
    enum_value,
    isoformat,
    new_id,
    to_money,
    utcnow,
)
from backend.campusshare.store import PROPOSALS, KeyValueStore


@dataclass(frozen=True)
class ProposalRecord(Record):
    proposal_id: str
    listing_id: str
    buyer_id: str
    seller_id: str
    message: str
    proposed_price: Decimal
    status: str
    created_at: datetime
    updated_at: datetime

    @property
    def is_pending(self) -> bool:
        return self.status == ProposalStatus.PENDING.value

    def to_dict(self) -> dict:
        return {
            "proposal_id": self.proposal_id,
            "listing_id": self.listing_id,
            "buyer_id": self.buyer_id,
            "seller_id": self.seller_id,
            "message": self.message,
            "proposed_price": self.proposed_price,
            "status": self.status,
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }


class ProposalRepository:

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    def create(
            self,
            *,
            listing_id: str,
            buyer_id: str,
            seller_id: str,
            message: str,
            proposed_price: Decimal,
    ) -> ProposalRecord:
        """Stores a new pending proposal."""
        now = utcnow()
        item = {
            "proposal_id": new_id(),
            "listing_id": listing_id,
            "buyer_id": buyer_id,
            "seller_id": seller_id,
            "message": message,
            "proposed_price": to_money(proposed_price),
            "status": ProposalStatus.PENDING.value,
            "created_at": now,
            "updated_at": now,
        }
        stored = self._store.put(PROPOSALS, item, unique_on=("proposal_id",))
        return ProposalRecord.from_item(stored)

    def get(self, proposal_id: str) -> ProposalRecord | None:
        item = self._store.get_by_key(PROPOSALS, {"proposal_id": proposal_id})
        return None if item is None else ProposalRecord.from_item(item)

    def find_by_listing(self, listing_id: str) -> list[ProposalRecord]:
        items = self._store.query_by_index(PROPOSALS, "listing_id", {"listing_id": listing_id})
        return [ProposalRecord.from_item(item) for item in items]

    def find_by_buyer(self, buyer_id: str) -> list[ProposalRecord]:
        items = self._store.query_by_index(PROPOSALS, "buyer_id", {"buyer_id": buyer_id})
        return [ProposalRecord.from_item(item) for item in items]

    def find_by_seller(self, seller_id: str) -> list[ProposalRecord]:
        items = self._store.query_by_index(PROPOSALS, "seller_id", {"seller_id": seller_id})
        return [ProposalRecord.from_item(item) for item in items]

    def set_status(self, proposal_id: str, status: ProposalStatus) -> ProposalRecord:
        try:
            item = self._store.update_by_key(
                PROPOSALS,
                {"proposal_id": proposal_id},
                {"status": enum_value(status), "updated_at": utcnow()},
            )
        except NotFoundError:
            raise NotFoundError(
                ErrorCode.PROPOSAL_NOT_FOUND,
                f"Proposal {proposal_id} not found.",
            ) from None
        return ProposalRecord.from_item(item)

    def delete(self, proposal_id: str) -> None:
        self._store.delete_by_key(PROPOSALS, {"proposal_id": proposal_id})
