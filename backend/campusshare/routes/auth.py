"""
routes/auth.py — Registration and login.

Endpoints (url_prefix=/api/auth):
  POST   /auth/register  → 201
  POST   /auth/login     → 200
  GET    /auth/me        → 200
"""

from __future__ import annotations

from flask import Blueprint, g, jsonify, request

from backend.campusshare.extensions import db
from backend.campusshare.middleware.auth_middleware import require_auth
from backend.campusshare.repositories import Repositories
from backend.campusshare.schemas.auth_schema import LoginSchema, RegisterSchema
from backend.campusshare.services import auth_service

auth_bp = Blueprint("auth", __name__)


@auth_bp.route("/register", methods=["POST"])
def register():
    """POST /auth/register — Create account; return user and token."""
    data = RegisterSchema().load(request.get_json(force=True) or {})
    result = auth_service.register_user(data, Repositories.from_session(db.session))
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 201


@auth_bp.route("/login", methods=["POST"])
def login():
    """POST /auth/login — Authenticate by email; return user and token."""
    data = LoginSchema().load(request.get_json(force=True) or {})
    result = auth_service.login_user(
        email=data["email"],
        password=data["password"],
        repos=Repositories.from_session(db.session),
    )
    return jsonify({"data": result, "warnings": []}), 200


@auth_bp.route("/me", methods=["GET"])
@require_auth
def me():
    result = auth_service.get_current_user(g.user_id, Repositories.from_session(db.session))
    return jsonify({"data": result, "warnings": []}), 200
