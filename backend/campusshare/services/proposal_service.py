"""
services/proposal_service.py — Proposal lifecycle: offers on listings.

State machine:
  pending → accepted | rejected | withdrawn     (all three terminal)

Authorization rules:
  - Only the buyer may withdraw.
  - Only the seller may accept or reject.
  - Any other (actor, target) combination is FORBIDDEN, checked before state.
  - Only the buyer may delete, and never an accepted proposal.

Acceptance sweep:
  Accepting P on listing L marks L sold, then rejects every other pending
  proposal on L one at a time. Each sibling write is independent: one that
  vanishes mid-sweep is logged and skipped, it does not undo the acceptance.
  Everything is flushed into the request's session; the route commits once.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from backend.campusshare.errors import (
    ConflictError,
    ErrorCode,
    ForbiddenError,
    InvalidOperationError,
    NotFoundError,
)
from backend.campusshare.models.listing import ListingStatus
from backend.campusshare.models.proposal import ProposalStatus
from backend.campusshare.repositories import Repositories
from backend.campusshare.repositories.listings import ListingRecord
from backend.campusshare.repositories.proposals import ProposalRecord
from backend.campusshare.services.user_service import user_summaries

logger = logging.getLogger(__name__)

BUYER_TARGETS  = frozenset({ProposalStatus.WITHDRAWN})
SELLER_TARGETS = frozenset({ProposalStatus.ACCEPTED, ProposalStatus.REJECTED})


# ── Private helpers ────────────────────────────────────────────────────────

def _get_proposal_or_404(proposal_id: str, repos: Repositories) -> ProposalRecord:
    proposal = repos.proposals.get(proposal_id)
    if proposal is None:
        raise NotFoundError(ErrorCode.PROPOSAL_NOT_FOUND, f"Proposal {proposal_id} not found.")
    return proposal


def _get_listing_or_404(listing_id: str, repos: Repositories) -> ListingRecord:
    listing = repos.listings.get(listing_id)
    if listing is None:
        raise NotFoundError(ErrorCode.LISTING_NOT_FOUND, f"Listing {listing_id} not found.")
    return listing


def _authorize_transition(
        proposal: ProposalRecord,
        actor_id: str,
        target: ProposalStatus,
) -> None:
    if target in BUYER_TARGETS and actor_id == proposal.buyer_id:
        return
    if target in SELLER_TARGETS and actor_id == proposal.seller_id:
        return
    raise ForbiddenError(f"You may not mark this proposal as {target.value}.")


def _reject_pending_siblings(accepted: ProposalRecord, repos: Repositories) -> int:
    """Returns how many sibling proposals were rejected."""
    rejected = 0
    for sibling in repos.proposals.find_by_listing(accepted.listing_id):
        if sibling.proposal_id == accepted.proposal_id or not sibling.is_pending:
            continue
        try:
            repos.proposals.set_status(sibling.proposal_id, ProposalStatus.REJECTED)
        except NotFoundError:
            logger.warning(
                "Sibling proposal %s vanished during acceptance of %s",
                sibling.proposal_id,
                accepted.proposal_id,
            )
            continue
        rejected += 1
    return rejected


def _listing_summary(listing: ListingRecord | None) -> dict | None:
    if listing is None:
        return None
    return {
        "listing_id": listing.listing_id,
        "title": listing.title,
        "price": listing.price,
        "price_type": listing.price_type,
        "category": listing.category,
        "description": listing.description,
        "images": list(listing.images),
        "status": listing.status,
        "seller_id": listing.seller_id,
    }


# ── Public service functions ───────────────────────────────────────────────

def create_proposal(
        listing_id: str,
        buyer_id: str,
        message: str,
        proposed_price: Decimal | None,
        repos: Repositories,
) -> dict:
    """
    Raises:
      NotFoundError(LISTING_NOT_FOUND, 404)
      InvalidOperationError(OWN_LISTING_PROPOSAL, 422)
      InvalidOperationError(LISTING_NOT_AVAILABLE, 422)   — listing not active
      ConflictError(DUPLICATE_PENDING_PROPOSAL, 409)

    The pending-duplicate check reads then writes; two concurrent requests
    from the same buyer can both pass it.
    """
    listing = _get_listing_or_404(listing_id, repos)

    if listing.seller_id == buyer_id:
        raise InvalidOperationError(
            ErrorCode.OWN_LISTING_PROPOSAL,
            "You cannot send a proposal on your own listing.",
            field="listing_id",
        )

    if listing.status != ListingStatus.ACTIVE.value:
        raise InvalidOperationError(
            ErrorCode.LISTING_NOT_AVAILABLE,
            f"Listing {listing_id} is {listing.status} and no longer takes proposals.",
            field="listing_id",
        )

    existing = repos.proposals.find_by_listing(listing_id)
    if any(p.buyer_id == buyer_id and p.is_pending for p in existing):
        raise ConflictError(
            ErrorCode.DUPLICATE_PENDING_PROPOSAL,
            "You already have a pending proposal for this listing.",
            field="listing_id",
        )

    proposal = repos.proposals.create(
        listing_id=listing_id,
        buyer_id=buyer_id,
        seller_id=listing.seller_id,
        message=message,
        proposed_price=listing.price if proposed_price is None else proposed_price,
    )
    logger.info("Proposal %s sent on listing %s", proposal.proposal_id, listing_id)

    buyer = user_summaries([buyer_id], repos)[buyer_id]
    return {**proposal.to_dict(), "buyer": buyer}


def transition(
        proposal_id: str,
        actor_id: str,
        target_status: ProposalStatus | str,
        repos: Repositories,
) -> dict:
    """
    Moves a pending proposal to a terminal status.

    Raises:
      NotFoundError(PROPOSAL_NOT_FOUND, 404)
      ForbiddenError(403)                          — actor may not set target
      InvalidOperationError(PROPOSAL_NOT_PENDING, 422)
    """
    proposal = _get_proposal_or_404(proposal_id, repos)

    try:
        target = ProposalStatus(target_status)
    except ValueError:
        raise ForbiddenError(f"Proposals cannot be marked as {target_status}.") from None

    _authorize_transition(proposal, actor_id, target)

    if not proposal.is_pending:
        raise InvalidOperationError(
            ErrorCode.PROPOSAL_NOT_PENDING,
            f"Proposal {proposal_id} is already {proposal.status}.",
            field="status",
        )

    updated = repos.proposals.set_status(proposal_id, target)

    if target is ProposalStatus.ACCEPTED:
        try:
            repos.listings.set_status(proposal.listing_id, ListingStatus.SOLD)
        except NotFoundError:
            logger.warning(
                "Accepted proposal %s refers to missing listing %s",
                proposal_id,
                proposal.listing_id,
            )
        rejected = _reject_pending_siblings(updated, repos)
        logger.info(
            "Proposal %s accepted; listing %s sold, %d sibling(s) rejected",
            proposal_id,
            proposal.listing_id,
            rejected,
        )

    return updated.to_dict()


def delete_proposal(proposal_id: str, actor_id: str, repos: Repositories) -> None:
    """
    Raises:
      NotFoundError(PROPOSAL_NOT_FOUND, 404)
      ForbiddenError(403)                           — actor is not the buyer
      InvalidOperationError(PROPOSAL_ACCEPTED, 422)
    """
    proposal = _get_proposal_or_404(proposal_id, repos)

    if proposal.buyer_id != actor_id:
        raise ForbiddenError("Only the buyer may delete this proposal.")

    if proposal.status == ProposalStatus.ACCEPTED.value:
        raise InvalidOperationError(
            ErrorCode.PROPOSAL_ACCEPTED,
            "An accepted proposal cannot be deleted.",
        )

    repos.proposals.delete(proposal_id)


def get_proposal_detail(proposal_id: str, actor_id: str, repos: Repositories) -> dict:
    """Visible to the two parties only; joined with listing, seller and buyer."""
    proposal = _get_proposal_or_404(proposal_id, repos)

    if actor_id not in (proposal.buyer_id, proposal.seller_id):
        raise ForbiddenError("You are not a party to this proposal.")

    listing = _get_listing_or_404(proposal.listing_id, repos)
    people = user_summaries([proposal.seller_id, proposal.buyer_id], repos)
    return {
        **proposal.to_dict(),
        "listing": _listing_summary(listing),
        "seller": people[proposal.seller_id],
        "buyer": people[proposal.buyer_id],
    }


def list_sent(buyer_id: str, repos: Repositories) -> list[dict]:
    proposals = repos.proposals.find_by_buyer(buyer_id)
    sellers = user_summaries((p.seller_id for p in proposals), repos)
    return [
        {
            **p.to_dict(),
            "listing": _listing_summary(repos.listings.get(p.listing_id)),
            "seller": sellers[p.seller_id],
        }
        for p in proposals
    ]


def list_received(seller_id: str, repos: Repositories) -> list[dict]:
    proposals = repos.proposals.find_by_seller(seller_id)
    buyers = user_summaries((p.buyer_id for p in proposals), repos)
    return [
        {
            **p.to_dict(),
            "listing": _listing_summary(repos.listings.get(p.listing_id)),
            "buyer": buyers[p.buyer_id],
        }
        for p in proposals
    ]


def list_for_listing(listing_id: str, actor_id: str, repos: Repositories) -> list[dict]:
    """Seller of the listing only."""
    listing = _get_listing_or_404(listing_id, repos)
    if listing.seller_id != actor_id:
        raise ForbiddenError("Only the seller may view proposals for this listing.")

    proposals = repos.proposals.find_by_listing(listing_id)
    buyers = user_summaries((p.buyer_id for p in proposals), repos)
    return [{**p.to_dict(), "buyer": buyers[p.buyer_id]} for p in proposals]
