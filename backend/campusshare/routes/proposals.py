"""
routes/proposals.py — Proposal handlers.

Endpoints (url_prefix=/api/proposals):
  POST   /proposals                        → 201  buyer sends a proposal
  GET    /proposals/sent                   → 200  caller's proposals as buyer
  GET    /proposals/received               → 200  caller's proposals as seller
  GET    /proposals/listing/:listing_id    → 200  seller only
  GET    /proposals/:id                    → 200  buyer or seller only
  PUT    /proposals/:id/status             → 200  accept / reject / withdraw
  DELETE /proposals/:id                    → 200  buyer only, not once accepted
"""

from __future__ import annotations

from flask import Blueprint, g, jsonify, request

from backend.campusshare.extensions import db
from backend.campusshare.middleware.auth_middleware import require_auth
from backend.campusshare.repositories import Repositories
from backend.campusshare.schemas.proposal_schema import (
    CreateProposalSchema,
    ProposalStatusSchema,
)
from backend.campusshare.services import proposal_service

proposals_bp = Blueprint("proposals", __name__)


@proposals_bp.route("/", methods=["POST"])
@require_auth
def create_proposal():
    data = CreateProposalSchema().load(request.get_json(force=True) or {})
    result = proposal_service.create_proposal(
        listing_id=data["listing_id"],
        buyer_id=g.user_id,
        message=data["message"],
        proposed_price=data["proposed_price"],
        repos=Repositories.from_session(db.session),
    )
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 201


@proposals_bp.route("/sent", methods=["GET"])
@require_auth
def sent_proposals():
    result = proposal_service.list_sent(g.user_id, Repositories.from_session(db.session))
    return jsonify({"data": result, "warnings": []}), 200


@proposals_bp.route("/received", methods=["GET"])
@require_auth
def received_proposals():
    result = proposal_service.list_received(g.user_id, Repositories.from_session(db.session))
    return jsonify({"data": result, "warnings": []}), 200


@proposals_bp.route("/listing/<listing_id>", methods=["GET"])
@require_auth
def listing_proposals(listing_id: str):
    result = proposal_service.list_for_listing(
        listing_id,
        actor_id=g.user_id,
        repos=Repositories.from_session(db.session),
    )
    return jsonify({"data": result, "warnings": []}), 200


@proposals_bp.route("/<proposal_id>", methods=["GET"])
@require_auth
def get_proposal(proposal_id: str):
    result = proposal_service.get_proposal_detail(
        proposal_id,
        actor_id=g.user_id,
        repos=Repositories.from_session(db.session),
    )
    return jsonify({"data": result, "warnings": []}), 200


@proposals_bp.route("/<proposal_id>/status", methods=["PUT"])
@require_auth
def update_status(proposal_id: str):
    """
    PUT /proposals/:id/status — The acceptance sweep (listing sold, siblings
    rejected) commits together with the status change.
    """
    data = ProposalStatusSchema().load(request.get_json(force=True) or {})
    result = proposal_service.transition(
        proposal_id,
        actor_id=g.user_id,
        target_status=data["status"],
        repos=Repositories.from_session(db.session),
    )
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 200


@proposals_bp.route("/<proposal_id>", methods=["DELETE"])
@require_auth
def delete_proposal(proposal_id: str):
    proposal_service.delete_proposal(
        proposal_id,
        actor_id=g.user_id,
        repos=Repositories.from_session(db.session),
    )
    db.session.commit()
    return jsonify({
        "data": {"deleted": True, "proposal_id": proposal_id},
        "warnings": [],
    }), 200
