"""
routes/users.py — Own profile, public profiles and ratings.

Endpoints (url_prefix=/api/users):
  GET    /users/profile          → 200  caller's full profile
  PUT    /users/profile          → 200  update whitelisted fields
  GET    /users/:id              → 200  public profile (no auth)
  POST   /users/:id/ratings      → 200  rate another user
"""

from __future__ import annotations

from flask import Blueprint, g, jsonify, request

from backend.campusshare.extensions import db
from backend.campusshare.middleware.auth_middleware import require_auth
from backend.campusshare.repositories import Repositories
from backend.campusshare.schemas.user_schema import RatingSchema, UpdateProfileSchema
from backend.campusshare.services import auth_service, user_service

users_bp = Blueprint("users", __name__)


@users_bp.route("/profile", methods=["GET"])
@require_auth
def get_profile():
    result = auth_service.get_current_user(g.user_id, Repositories.from_session(db.session))
    return jsonify({"data": result, "warnings": []}), 200


@users_bp.route("/profile", methods=["PUT"])
@require_auth
def update_profile():
    data = UpdateProfileSchema().load(request.get_json(force=True) or {})
    result = user_service.update_profile(g.user_id, data, Repositories.from_session(db.session))
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 200


@users_bp.route("/<user_id>", methods=["GET"])
def get_user(user_id: str):
    result = user_service.get_public_profile(user_id, Repositories.from_session(db.session))
    return jsonify({"data": result, "warnings": []}), 200


@users_bp.route("/<user_id>/ratings", methods=["POST"])
@require_auth
def rate_user(user_id: str):
    """POST /users/:id/ratings — Fold a 1–5 score into the user's average."""
    data = RatingSchema().load(request.get_json(force=True) or {})
    result = user_service.rate_user(
        rater_id=g.user_id,
        user_id=user_id,
        score=data["score"],
        repos=Repositories.from_session(db.session),
    )
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 200
