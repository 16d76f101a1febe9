"""
models/proposal.py — Proposals collection.

`seller_id` is copied from the listing when the proposal is created so the
seller's inbox can be served from the sellerId-index without a join.

State machine (enforced in services/proposal_service.py, not here):
  pending → accepted | rejected | withdrawn   (all three terminal)
"""

from __future__ import annotations

import enum
from datetime import datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, DateTime, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from backend.campusshare.extensions import db


class ProposalStatus(str, enum.Enum):
    PENDING   = "pending"
    ACCEPTED  = "accepted"
    REJECTED  = "rejected"
    WITHDRAWN = "withdrawn"


class Proposal(db.Model):
    __tablename__ = "proposals"

    __table_args__ = (
        CheckConstraint("buyer_id <> seller_id", name="ck_proposals_not_self"),
        CheckConstraint("proposed_price >= 0", name="ck_proposals_price_nonnegative"),
        CheckConstraint(
            "status IN ('pending', 'accepted', 'rejected', 'withdrawn')",
            name="ck_proposals_status",
        ),
    )

    proposal_id: Mapped[str] = mapped_column(String(36), primary_key=True)

    # listingId-index
    listing_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    # buyerId-index
    buyer_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    # sellerId-index
    seller_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)

    message: Mapped[str] = mapped_column(Text, nullable=False)
    proposed_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)

    status: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
        default=ProposalStatus.PENDING.value,
    )

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<Proposal proposal_id={self.proposal_id} "
            f"listing_id={self.listing_id} "
            f"status={self.status}>"
        )
