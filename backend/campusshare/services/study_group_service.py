"""
services/study_group_service.py — Study groups and their membership.

Membership is stored twice:
  - the ordered `current_members` list embedded in the group row
  - one reverse-index row per (user_id, group_id) for "my groups"

Join and leave write both, reverse index first. They are separate single-item
writes; the request's session makes them commit together on a transactional
store, and reconcile_memberships() repairs any drift the two may still show.

Rules:
  - The creator joins as admin on creation and can never leave; deleting
    the group is the way out.
  - A join that fills the group flips its status to "full"; a leave from a
    full group flips it back to "active".
  - Only the creator may update or delete a group (FORBIDDEN 403).
"""

from __future__ import annotations

import logging
from datetime import datetime

from backend.campusshare.errors import (
    ConflictError,
    ErrorCode,
    ForbiddenError,
    InvalidOperationError,
    NotFoundError,
    ResourceExhaustedError,
)
from backend.campusshare.models.study_group import GroupStatus, MemberRole
from backend.campusshare.repositories import Repositories
from backend.campusshare.repositories.base import utcnow
from backend.campusshare.repositories.study_groups import StudyGroupRecord, member_entry

logger = logging.getLogger(__name__)


# ── Private helpers ────────────────────────────────────────────────────────

def _get_group_or_404(group_id: str, repos: Repositories) -> StudyGroupRecord:
    """Returns the group or raises GROUP_NOT_FOUND (404)."""
    group = repos.groups.get(group_id)
    if group is None:
        raise NotFoundError(ErrorCode.GROUP_NOT_FOUND, f"Study group {group_id} not found.")
    return group


def _require_creator(group: StudyGroupRecord, actor_id: str) -> None:
    if group.creator_id != actor_id:
        raise ForbiddenError("Only the group creator may do this.")


def _matches_search(search: str | None):
    if not search:
        return None
    needle = search.lower()

    def predicate(group: StudyGroupRecord) -> bool:
        return needle in group.name.lower() or needle in group.description.lower()

    return predicate


def _people_summary(user) -> dict | None:
    if user is None:
        return None
    return {
        "user_id": user.user_id,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "university": user.university,
    }


def _build_group_dict(group: StudyGroupRecord, repos: Repositories) -> dict:
    """Group joined with its creator and each member's public summary."""
    people: dict[str, dict | None] = {}
    for user_id in [group.creator_id] + [m["user_id"] for m in group.current_members]:
        if user_id not in people:
            people[user_id] = _people_summary(repos.users.get(user_id))

    payload = group.to_dict()
    payload["creator"] = people[group.creator_id]
    payload["current_members"] = [
        {**member, "user": people[member["user_id"]]}
        for member in payload["current_members"]
    ]
    payload["member_count"] = group.member_count
    return payload


# ── Public service functions ───────────────────────────────────────────────

def create_group(data: dict, creator_id: str, repos: Repositories) -> dict:
    group = repos.groups.create(data, creator_id)
    logger.info("Study group %s created by %s", group.group_id, creator_id)
    return _build_group_dict(group, repos)


def join_group(group_id: str, user_id: str, repos: Repositories) -> dict:
    """
    Raises:
      NotFoundError(GROUP_NOT_FOUND, 404)
      InvalidOperationError(GROUP_NOT_ACCEPTING, 422)  — group is inactive
      ConflictError(ALREADY_MEMBER, 409)
      ResourceExhaustedError(GROUP_FULL, 409)          — nothing is written

    The capacity check reads then writes; two joins racing for the last seat
    can both pass it.
    """
    group = _get_group_or_404(group_id, repos)

    if group.status == GroupStatus.INACTIVE.value:
        raise InvalidOperationError(
            ErrorCode.GROUP_NOT_ACCEPTING,
            f"Study group {group_id} is not accepting new members.",
        )

    if group.is_member(user_id) or repos.groups.get_membership(user_id, group_id) is not None:
        raise ConflictError(
            ErrorCode.ALREADY_MEMBER,
            f"You are already a member of study group {group_id}.",
        )

    if group.is_full:
        raise ResourceExhaustedError(
            ErrorCode.GROUP_FULL,
            f"Study group {group_id} is full ({group.max_members} members).",
        )

    joined_at = utcnow()
    repos.groups.add_membership(user_id, group_id, MemberRole.MEMBER, joined_at=joined_at)

    members = list(group.current_members) + [member_entry(user_id, MemberRole.MEMBER, joined_at)]
    status = GroupStatus.FULL if len(members) >= group.max_members else None
    updated = repos.groups.set_members(group_id, members, status=status)

    logger.info(
        "User %s joined study group %s (%d/%d)",
        user_id,
        group_id,
        updated.member_count,
        updated.max_members,
    )
    return _build_group_dict(updated, repos)


def leave_group(group_id: str, user_id: str, repos: Repositories) -> dict:
    """
    Raises:
      NotFoundError(GROUP_NOT_FOUND, 404)
      InvalidOperationError(NOT_A_MEMBER, 422)
      InvalidOperationError(ADMIN_CANNOT_LEAVE, 422)
    """
    group = _get_group_or_404(group_id, repos)

    member = group.member(user_id)
    if member is None:
        raise InvalidOperationError(
            ErrorCode.NOT_A_MEMBER,
            f"You are not a member of study group {group_id}.",
        )

    if user_id == group.creator_id or member["role"] == MemberRole.ADMIN.value:
        raise InvalidOperationError(
            ErrorCode.ADMIN_CANNOT_LEAVE,
            "The group admin cannot leave. Delete the group instead.",
        )

    repos.groups.remove_membership(user_id, group_id)

    members = [m for m in group.current_members if m["user_id"] != user_id]
    status = GroupStatus.ACTIVE if group.status == GroupStatus.FULL.value else None
    updated = repos.groups.set_members(group_id, members, status=status)

    logger.info("User %s left study group %s", user_id, group_id)
    return _build_group_dict(updated, repos)


def update_group(group_id: str, actor_id: str, changes: dict, repos: Repositories) -> dict:
    """
    Creator only. Members and creator cannot be changed here. The caller may
    set status to active or inactive; an open group is then marked full or
    active from its member count and capacity.

    Raises:
      NotFoundError(GROUP_NOT_FOUND, 404)
      ForbiddenError(403)
      InvalidOperationError(CAPACITY_BELOW_MEMBERS, 422)
    """
    group = _get_group_or_404(group_id, repos)
    _require_creator(group, actor_id)

    changes = dict(changes)
    max_members = changes.get("max_members")
    if max_members is not None and max_members < group.member_count:
        raise InvalidOperationError(
            ErrorCode.CAPACITY_BELOW_MEMBERS,
            f"The group already has {group.member_count} members.",
            field="max_members",
        )

    # Callers may only open or close a group; full/active always follows capacity.
    requested = changes.get("status")
    if requested is not None:
        inactive = GroupStatus(requested) == GroupStatus.INACTIVE
    else:
        inactive = group.status == GroupStatus.INACTIVE.value
    if not inactive:
        capacity = max_members if max_members is not None else group.max_members
        full = group.member_count >= capacity
        changes["status"] = GroupStatus.FULL if full else GroupStatus.ACTIVE

    updated = repos.groups.update(group_id, changes)
    return _build_group_dict(updated, repos)


def delete_group(group_id: str, actor_id: str, repos: Repositories) -> None:
    """
    Creator only. Removes every reverse-index row, then the group.

    Raises:
      NotFoundError(GROUP_NOT_FOUND, 404)
      ForbiddenError(403)
    """
    group = _get_group_or_404(group_id, repos)
    _require_creator(group, actor_id)

    removed = repos.groups.delete(group_id)
    logger.info("Study group %s deleted by %s (%d membership rows)", group_id, actor_id, removed)


def reconcile_memberships(group_id: str, repos: Repositories) -> dict:
    """
    Makes the reverse index match the group's member list.

    Rows missing for listed members are written; rows for users not in the
    list are deleted. The member list is the source of truth.

    Returns: {"added": n, "removed": n}
    """
    group = _get_group_or_404(group_id, repos)

    listed = {m["user_id"]: m for m in group.current_members}
    indexed = {row.user_id for row in repos.groups.memberships_for_group(group_id)}

    added = 0
    for user_id, member in listed.items():
        if user_id in indexed:
            continue
        repos.groups.add_membership(
            user_id,
            group_id,
            MemberRole(member["role"]),
            joined_at=datetime.fromisoformat(member["joined_at"]),
        )
        added += 1

    removed = 0
    for user_id in indexed - listed.keys():
        repos.groups.remove_membership(user_id, group_id)
        removed += 1

    if added or removed:
        logger.warning(
            "Reconciled study group %s: %d row(s) added, %d removed",
            group_id,
            added,
            removed,
        )
    return {"added": added, "removed": removed}


def reconcile_all(repos: Repositories) -> dict:
    """
    Runs reconcile_memberships() over every group, then deletes reverse-index
    rows whose group no longer exists (left behind by an interrupted delete).
    """
    totals = {"groups": 0, "added": 0, "removed": 0}
    group_ids = set(repos.groups.find_all_ids())

    for group_id in sorted(group_ids):
        result = reconcile_memberships(group_id, repos)
        totals["groups"] += 1
        totals["added"] += result["added"]
        totals["removed"] += result["removed"]

    for row in repos.groups.all_memberships():
        if row.group_id not in group_ids:
            repos.groups.remove_membership(row.user_id, row.group_id)
            totals["removed"] += 1
            logger.warning(
                "Removed orphaned membership row (%s, %s)",
                row.user_id,
                row.group_id,
            )

    return totals


def get_group_detail(group_id: str, repos: Repositories) -> dict:
    return _build_group_dict(_get_group_or_404(group_id, repos), repos)


def list_groups(
        filters: dict,
        page: int,
        limit: int,
        search: str | None,
        repos: Repositories,
) -> dict:
    """Paged browse; status defaults to active, search runs before slicing."""
    filters = dict(filters)
    if filters.get("status") is None:
        filters["status"] = GroupStatus.ACTIVE

    result = repos.groups.find_all(filters, page, limit, where=_matches_search(search))
    return {
        "groups": [_build_group_dict(group, repos) for group in result.items],
        "current_page": result.current_page,
        "total_pages": result.total_pages,
        "total": result.total,
    }


def list_my_groups(user_id: str, repos: Repositories) -> list[dict]:
    """Groups the user belongs to, via the reverse index."""
    return [_build_group_dict(group, repos) for group in repos.groups.find_by_user(user_id)]
