"""
routes/favorites.py — The caller's saved listings.

Endpoints (url_prefix=/api/favorites):
  GET    /favorites                      → 200
  POST   /favorites                      → 201
  DELETE /favorites/:listing_id          → 200
  GET    /favorites/check/:listing_id    → 200  {"is_favorited": bool}
"""

from __future__ import annotations

from flask import Blueprint, g, jsonify, request

from backend.campusshare.extensions import db
from backend.campusshare.middleware.auth_middleware import require_auth
from backend.campusshare.repositories import Repositories
from backend.campusshare.schemas.favorite_schema import AddFavoriteSchema
from backend.campusshare.services import favorite_service

favorites_bp = Blueprint("favorites", __name__)


@favorites_bp.route("/", methods=["GET"])
@require_auth
def list_favorites():
    result = favorite_service.list_favorites(g.user_id, Repositories.from_session(db.session))
    return jsonify({"data": result, "warnings": []}), 200


@favorites_bp.route("/", methods=["POST"])
@require_auth
def add_favorite():
    data = AddFavoriteSchema().load(request.get_json(force=True) or {})
    result = favorite_service.add_favorite(
        g.user_id,
        data["listing_id"],
        Repositories.from_session(db.session),
    )
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 201


@favorites_bp.route("/<listing_id>", methods=["DELETE"])
@require_auth
def remove_favorite(listing_id: str):
    favorite_service.remove_favorite(g.user_id, listing_id, Repositories.from_session(db.session))
    db.session.commit()
    return jsonify({
        "data": {"removed": True, "listing_id": listing_id},
        "warnings": [],
    }), 200


@favorites_bp.route("/check/<listing_id>", methods=["GET"])
@require_auth
def check_favorite(listing_id: str):
    result = favorite_service.is_favorited(g.user_id, listing_id, Repositories.from_session(db.session))
    return jsonify({"data": result, "warnings": []}), 200
