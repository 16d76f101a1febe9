"""
routes/listings.py — Marketplace listing handlers.

Layer rules:
  - Parse, validate, call ONE service, commit, return envelope.
  - Ownership checks live in listing_service.py.

Endpoints (url_prefix=/api/listings):
  GET    /listings            → 200  browse (public), filters + search + paging
  GET    /listings/mine       → 200  caller's listings, any status
  GET    /listings/:id        → 200  detail; counts a view
  POST   /listings            → 201
  PUT    /listings/:id        → 200  seller only
  DELETE /listings/:id        → 200  seller only
"""

from __future__ import annotations

from flask import Blueprint, g, jsonify, request

from backend.campusshare.extensions import db
from backend.campusshare.middleware.auth_middleware import optional_auth, require_auth
from backend.campusshare.repositories import Repositories
from backend.campusshare.schemas.listing_schema import (
    CreateListingSchema,
    ListingQuerySchema,
    UpdateListingSchema,
)
from backend.campusshare.services import listing_service

listings_bp = Blueprint("listings", __name__)


@listings_bp.route("/", methods=["GET"])
def list_listings():
    query = ListingQuerySchema().load(request.args.to_dict())
    page = query.pop("page")
    limit = query.pop("limit")
    search = query.pop("search")
    result = listing_service.list_listings(
        filters=query,
        page=page,
        limit=limit,
        search=search,
        repos=Repositories.from_session(db.session),
    )
    return jsonify({"data": result, "warnings": []}), 200


@listings_bp.route("/mine", methods=["GET"])
@require_auth
def my_listings():
    result = listing_service.list_my_listings(g.user_id, Repositories.from_session(db.session))
    return jsonify({"data": result, "warnings": []}), 200


@listings_bp.route("/<listing_id>", methods=["GET"])
@optional_auth
def get_listing(listing_id: str):
    """GET /listings/:id — The view counter write is committed here."""
    result = listing_service.get_listing(
        listing_id,
        viewer_id=g.user_id,
        repos=Repositories.from_session(db.session),
    )
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 200


@listings_bp.route("/", methods=["POST"])
@require_auth
def create_listing():
    data = CreateListingSchema().load(request.get_json(force=True) or {})
    result = listing_service.create_listing(data, g.user_id, Repositories.from_session(db.session))
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 201


@listings_bp.route("/<listing_id>", methods=["PUT"])
@require_auth
def update_listing(listing_id: str):
    data = UpdateListingSchema().load(request.get_json(force=True) or {})
    result = listing_service.update_listing(
        listing_id,
        actor_id=g.user_id,
        changes=data,
        repos=Repositories.from_session(db.session),
    )
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 200


@listings_bp.route("/<listing_id>", methods=["DELETE"])
@require_auth
def delete_listing(listing_id: str):
    listing_service.delete_listing(listing_id, g.user_id, Repositories.from_session(db.session))
    db.session.commit()
    return jsonify({
        "data": {"deleted": True, "listing_id": listing_id},
        "warnings": [],
    }), 200
