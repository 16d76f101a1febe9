"""
Unit tests for study group membership rules and the reverse-index repair.

These tests run DB-free with MagicMock repositories.
"""

from __future__ import annotations

import pytest

from backend.campusshare.errors import AppError, ConflictError, ErrorCode
from backend.campusshare.models.study_group import GroupStatus, MemberRole
from backend.campusshare.services import study_group_service

from . import factories


def _echo_set_members(repos, base):
    """set_members() returns the group rebuilt with the members it was given."""
    def set_members(group_id, members, status=None):
        values = {**base.as_item(), "current_members": members}
        if status is not None:
            values["status"] = GroupStatus(status).value
        return factories.group(**values)

    repos.groups.set_members.side_effect = set_members


# ═══════════════════════════════════════════════════════════════════════════
# join_group
# ═══════════════════════════════════════════════════════════════════════════

def test_join_missing_group_raises_404():
    repos = factories.mock_repos()
    repos.groups.get.return_value = None

    with pytest.raises(AppError) as exc_info:
        study_group_service.join_group("g-1", "u-2", repos)

    assert exc_info.value.code == ErrorCode.GROUP_NOT_FOUND


def test_join_full_group_raises_and_writes_nothing():
    repos = factories.mock_repos()
    repos.groups.get.return_value = factories.group(
        max_members=2,
        members=[factories.member("creator", "admin"), factories.member("u-2")],
        status="full",
    )
    repos.groups.get_membership.return_value = None

    with pytest.raises(AppError) as exc_info:
        study_group_service.join_group("g-1", "u-3", repos)

    assert exc_info.value.code == ErrorCode.GROUP_FULL
    assert exc_info.value.http_status == 409
    repos.groups.add_membership.assert_not_called()
    repos.groups.set_members.assert_not_called()


def test_join_existing_member_raises_409():
    repos = factories.mock_repos()
    repos.groups.get.return_value = factories.group(
        members=[factories.member("creator", "admin"), factories.member("u-2")],
    )

    with pytest.raises(AppError) as exc_info:
        study_group_service.join_group("g-1", "u-2", repos)

    assert exc_info.value.code == ErrorCode.ALREADY_MEMBER


def test_join_with_stale_reverse_index_row_raises_409():
    repos = factories.mock_repos()
    repos.groups.get.return_value = factories.group()
    repos.groups.get_membership.return_value = factories.membership("u-2")

    with pytest.raises(AppError) as exc_info:
        study_group_service.join_group("g-1", "u-2", repos)

    assert exc_info.value.code == ErrorCode.ALREADY_MEMBER


def test_join_inactive_group_raises_422():
    repos = factories.mock_repos()
    repos.groups.get.return_value = factories.group(status="inactive")

    with pytest.raises(AppError) as exc_info:
        study_group_service.join_group("g-1", "u-2", repos)

    assert exc_info.value.code == ErrorCode.GROUP_NOT_ACCEPTING
    assert exc_info.value.http_status == 422


def test_join_writes_reverse_index_then_member_list():
    repos = factories.mock_repos()
    base = factories.group(max_members=3)
    repos.groups.get.return_value = base
    repos.groups.get_membership.return_value = None
    _echo_set_members(repos, base)

    result = study_group_service.join_group("g-1", "u-2", repos)

    add_args = repos.groups.add_membership.call_args
    assert add_args.args == ("u-2", "g-1", MemberRole.MEMBER)
    members, = repos.groups.set_members.call_args.args[1:]
    assert [m["user_id"] for m in members] == ["creator", "u-2"]
    assert members[1]["joined_at"] == add_args.kwargs["joined_at"].isoformat()
    assert repos.groups.set_members.call_args.kwargs["status"] is None
    assert result["member_count"] == 2
    assert result["status"] == "active"


def test_join_filling_last_seat_marks_group_full():
    repos = factories.mock_repos()
    base = factories.group(max_members=2)
    repos.groups.get.return_value = base
    repos.groups.get_membership.return_value = None
    _echo_set_members(repos, base)

    result = study_group_service.join_group("g-1", "u-2", repos)

    assert repos.groups.set_members.call_args.kwargs["status"] is GroupStatus.FULL
    assert result["status"] == "full"


# ═══════════════════════════════════════════════════════════════════════════
# leave_group
# ═══════════════════════════════════════════════════════════════════════════

def test_leave_not_a_member_raises_422():
    repos = factories.mock_repos()
    repos.groups.get.return_value = factories.group()

    with pytest.raises(AppError) as exc_info:
        study_group_service.leave_group("g-1", "u-9", repos)

    assert exc_info.value.code == ErrorCode.NOT_A_MEMBER


def test_admin_cannot_leave():
    repos = factories.mock_repos()
    repos.groups.get.return_value = factories.group()

    with pytest.raises(AppError) as exc_info:
        study_group_service.leave_group("g-1", "creator", repos)

    assert exc_info.value.code == ErrorCode.ADMIN_CANNOT_LEAVE
    repos.groups.remove_membership.assert_not_called()


def test_leave_full_group_reopens_it():
    repos = factories.mock_repos()
    base = factories.group(
        max_members=2,
        members=[factories.member("creator", "admin"), factories.member("u-2")],
        status="full",
    )
    repos.groups.get.return_value = base
    _echo_set_members(repos, base)

    result = study_group_service.leave_group("g-1", "u-2", repos)

    repos.groups.remove_membership.assert_called_once_with("u-2", "g-1")
    assert repos.groups.set_members.call_args.kwargs["status"] is GroupStatus.ACTIVE
    assert [m["user_id"] for m in result["current_members"]] == ["creator"]
    assert result["status"] == "active"


# ═══════════════════════════════════════════════════════════════════════════
# update_group / delete_group
# ═══════════════════════════════════════════════════════════════════════════

def test_update_by_non_creator_is_forbidden():
    repos = factories.mock_repos()
    repos.groups.get.return_value = factories.group()

    with pytest.raises(AppError) as exc_info:
        study_group_service.update_group("g-1", "u-2", {"name": "New"}, repos)

    assert exc_info.value.code == ErrorCode.FORBIDDEN
    repos.groups.update.assert_not_called()


def test_update_capacity_below_members_raises_422():
    repos = factories.mock_repos()
    repos.groups.get.return_value = factories.group(
        members=[factories.member("creator", "admin"), factories.member("u-2"), factories.member("u-3")],
    )

    with pytest.raises(AppError) as exc_info:
        study_group_service.update_group("g-1", "creator", {"max_members": 2}, repos)

    assert exc_info.value.code == ErrorCode.CAPACITY_BELOW_MEMBERS
    assert exc_info.value.field == "max_members"


def test_update_capacity_to_member_count_marks_full():
    repos = factories.mock_repos()
    base = factories.group(members=[factories.member("creator", "admin"), factories.member("u-2")])
    repos.groups.get.return_value = base
    repos.groups.update.return_value = base

    study_group_service.update_group("g-1", "creator", {"max_members": 2}, repos)

    changes = repos.groups.update.call_args.args[1]
    assert changes == {"max_members": 2, "status": GroupStatus.FULL}


def test_update_capacity_leaves_inactive_group_inactive():
    repos = factories.mock_repos()
    base = factories.group(status="inactive")
    repos.groups.get.return_value = base
    repos.groups.update.return_value = base

    study_group_service.update_group("g-1", "creator", {"max_members": 8}, repos)

    assert repos.groups.update.call_args.args[1] == {"max_members": 8}


def test_reactivating_group_at_capacity_comes_back_full():
    repos = factories.mock_repos()
    base = factories.group(
        status="inactive",
        max_members=2,
        members=[factories.member("creator", "admin"), factories.member("u-2")],
    )
    repos.groups.get.return_value = base
    repos.groups.update.return_value = base

    study_group_service.update_group("g-1", "creator", {"status": GroupStatus.ACTIVE}, repos)

    assert repos.groups.update.call_args.args[1] == {"status": GroupStatus.FULL}


def test_plain_update_recomputes_stale_full_status():
    repos = factories.mock_repos()
    base = factories.group(status="full", max_members=5)
    repos.groups.get.return_value = base
    repos.groups.update.return_value = base

    study_group_service.update_group("g-1", "creator", {"name": "Renamed"}, repos)

    assert repos.groups.update.call_args.args[1] == {"name": "Renamed", "status": GroupStatus.ACTIVE}


def test_closing_a_group_keeps_it_inactive():
    repos = factories.mock_repos()
    base = factories.group()
    repos.groups.get.return_value = base
    repos.groups.update.return_value = base

    study_group_service.update_group("g-1", "creator", {"status": GroupStatus.INACTIVE}, repos)

    assert repos.groups.update.call_args.args[1] == {"status": GroupStatus.INACTIVE}


def test_delete_by_non_creator_is_forbidden():
    repos = factories.mock_repos()
    repos.groups.get.return_value = factories.group()

    with pytest.raises(AppError) as exc_info:
        study_group_service.delete_group("g-1", "u-2", repos)

    assert exc_info.value.code == ErrorCode.FORBIDDEN
    repos.groups.delete.assert_not_called()


# ═══════════════════════════════════════════════════════════════════════════
# reconcile_memberships / reconcile_all
# ═══════════════════════════════════════════════════════════════════════════

def test_reconcile_adds_missing_and_removes_stray_rows():
    repos = factories.mock_repos()
    repos.groups.get.return_value = factories.group(
        members=[factories.member("creator", "admin"), factories.member("u-2")],
    )
    repos.groups.memberships_for_group.return_value = [
        factories.membership("creator", role="admin"),
        factories.membership("ghost"),
    ]

    result = study_group_service.reconcile_memberships("g-1", repos)

    assert result == {"added": 1, "removed": 1}
    add_args = repos.groups.add_membership.call_args
    assert add_args.args == ("u-2", "g-1", MemberRole.MEMBER)
    assert add_args.kwargs["joined_at"] == factories.TS
    repos.groups.remove_membership.assert_called_once_with("ghost", "g-1")


def test_reconcile_consistent_group_writes_nothing():
    repos = factories.mock_repos()
    repos.groups.get.return_value = factories.group()
    repos.groups.memberships_for_group.return_value = [factories.membership("creator", role="admin")]

    result = study_group_service.reconcile_memberships("g-1", repos)

    assert result == {"added": 0, "removed": 0}
    repos.groups.add_membership.assert_not_called()
    repos.groups.remove_membership.assert_not_called()


def test_reconcile_all_removes_orphans():
    repos = factories.mock_repos()
    repos.groups.find_all_ids.return_value = ["g-1"]
    repos.groups.get.return_value = factories.group()
    repos.groups.memberships_for_group.return_value = [factories.membership("creator", role="admin")]
    repos.groups.all_memberships.return_value = [
        factories.membership("creator", role="admin"),
        factories.membership("u-7", group_id="g-gone"),
    ]

    result = study_group_service.reconcile_all(repos)

    assert result == {"groups": 1, "added": 0, "removed": 1}
    repos.groups.remove_membership.assert_called_once_with("u-7", "g-gone")


def test_reconcile_propagates_conflict_from_store():
    repos = factories.mock_repos()
    repos.groups.get.return_value = factories.group()
    repos.groups.memberships_for_group.return_value = []
    repos.groups.add_membership.side_effect = ConflictError(ErrorCode.DUPLICATE_ITEM, "dup")

    with pytest.raises(ConflictError):
        study_group_service.reconcile_memberships("g-1", repos)


# ═══════════════════════════════════════════════════════════════════════════
# list_groups
# ═══════════════════════════════════════════════════════════════════════════

def test_list_groups_defaults_to_active_and_passes_search_predicate():
    repos = factories.mock_repos()
    page = repos.groups.find_all.return_value
    page.items = []
    page.current_page = 1
    page.total_pages = 0
    page.total = 0

    study_group_service.list_groups({}, 1, 12, "algebra", repos)

    args, kwargs = repos.groups.find_all.call_args
    assert args[0]["status"] is GroupStatus.ACTIVE
    predicate = kwargs["where"]
    assert predicate(factories.group(name="ALGEBRA night"))
    assert not predicate(factories.group(name="Poetry", description="Verse"))
