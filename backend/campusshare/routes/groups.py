"""
routes/groups.py — Study group and membership handlers.

Layer rules:
  - Parse, validate, call ONE service, commit, return envelope.
  - Join/leave/delete write the group row and the reverse index; the single
    commit below makes them land together.

Endpoints (url_prefix=/api/groups):
  GET    /groups                → 200  browse (public)
  GET    /groups/mine           → 200  caller's groups
  POST   /groups                → 201  create; caller becomes admin
  GET    /groups/:id            → 200  detail (public)
  PUT    /groups/:id            → 200  creator only
  DELETE /groups/:id            → 200  creator only
  POST   /groups/:id/join       → 200
  POST   /groups/:id/leave      → 200
"""

from __future__ import annotations

from flask import Blueprint, g, jsonify, request

from backend.campusshare.extensions import db
from backend.campusshare.middleware.auth_middleware import require_auth
from backend.campusshare.repositories import Repositories
from backend.campusshare.schemas.group_schema import (
    CreateGroupSchema,
    GroupQuerySchema,
    UpdateGroupSchema,
)
from backend.campusshare.services import study_group_service

groups_bp = Blueprint("groups", __name__)


@groups_bp.route("/", methods=["GET"])
def list_groups():
    query = GroupQuerySchema().load(request.args.to_dict())
    page = query.pop("page")
    limit = query.pop("limit")
    search = query.pop("search")
    result = study_group_service.list_groups(
        filters=query,
        page=page,
        limit=limit,
        search=search,
        repos=Repositories.from_session(db.session),
    )
    return jsonify({"data": result, "warnings": []}), 200


@groups_bp.route("/mine", methods=["GET"])
@require_auth
def my_groups():
    result = study_group_service.list_my_groups(g.user_id, Repositories.from_session(db.session))
    return jsonify({"data": result, "warnings": []}), 200


@groups_bp.route("/", methods=["POST"])
@require_auth
def create_group():
    data = CreateGroupSchema().load(request.get_json(force=True) or {})
    result = study_group_service.create_group(data, g.user_id, Repositories.from_session(db.session))
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 201


@groups_bp.route("/<group_id>", methods=["GET"])
def get_group(group_id: str):
    result = study_group_service.get_group_detail(group_id, Repositories.from_session(db.session))
    return jsonify({"data": result, "warnings": []}), 200


@groups_bp.route("/<group_id>", methods=["PUT"])
@require_auth
def update_group(group_id: str):
    data = UpdateGroupSchema().load(request.get_json(force=True) or {})
    result = study_group_service.update_group(
        group_id,
        actor_id=g.user_id,
        changes=data,
        repos=Repositories.from_session(db.session),
    )
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 200


@groups_bp.route("/<group_id>", methods=["DELETE"])
@require_auth
def delete_group(group_id: str):
    study_group_service.delete_group(group_id, g.user_id, Repositories.from_session(db.session))
    db.session.commit()
    return jsonify({
        "data": {"deleted": True, "group_id": group_id},
        "warnings": [],
    }), 200


@groups_bp.route("/<group_id>/join", methods=["POST"])
@require_auth
def join_group(group_id: str):
    result = study_group_service.join_group(group_id, g.user_id, Repositories.from_session(db.session))
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 200


@groups_bp.route("/<group_id>/leave", methods=["POST"])
@require_auth
def leave_group(group_id: str):
    result = study_group_service.leave_group(group_id, g.user_id, Repositories.from_session(db.session))
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 200
