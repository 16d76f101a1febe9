"""
repositories/study_groups.py — Study groups and their per-user reverse index.

Two collections:
  study_groups       — the group row, with the embedded ordered member list
  group_memberships  — one row per (user_id, group_id) for "my groups" lookups

Both are written here, one item at a time. Keeping them consistent is the
caller's job (services/study_group_service.py), including the repair pass.
Group deletion cascades explicitly: every reverse-index row first, the group
row last.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable

from backend.campusshare.errors import ErrorCode, NotFoundError
from backend.campusshare.models.study_group import (
    DEFAULT_MAX_MEMBERS,
    GroupStatus,
    MemberRole,
)
from backend.campusshare.repositories.base import (
    Page,
    Record,
    enum_value,
    isoformat,
    new_id,
    paginate,
    strip_attributes,
    utcnow,
)
from backend.campusshare.store import GROUP_MEMBERSHIPS, STUDY_GROUPS, KeyValueStore

logger = logging.getLogger(__name__)

IMMUTABLE_FIELDS = ("group_id", "creator_id", "current_members", "created_at", "updated_at")
FILTERABLE_FIELDS = ("status", "subject", "course")


@dataclass(frozen=True)
class StudyGroupRecord(Record):
    group_id: str
    name: str
    description: str
    course: str
    subject: str
    max_members: int
    current_members: list
    status: str
    creator_id: str
    meeting_schedule: list
    created_at: datetime
    updated_at: datetime

    @property
    def member_count(self) -> int:
        return len(self.current_members)

    @property
    def is_full(self) -> bool:
        return self.member_count >= self.max_members

    def member(self, user_id: str) -> dict | None:
        for entry in self.current_members:
            if entry["user_id"] == user_id:
                return entry
        return None

    def is_member(self, user_id: str) -> bool:
        return self.member(user_id) is not None

    def to_dict(self) -> dict:
        return {
            "group_id": self.group_id,
            "name": self.name,
            "description": self.description,
            "course": self.course,
            "subject": self.subject,
            "max_members": self.max_members,
            "current_members": [dict(entry) for entry in self.current_members],
            "status": self.status,
            "creator_id": self.creator_id,
            "meeting_schedule": [dict(entry) for entry in self.meeting_schedule],
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }


@dataclass(frozen=True)
class MembershipRecord(Record):
    user_id: str
    group_id: str
    role: str
    joined_at: datetime

    _timestamps = ("joined_at",)


def member_entry(user_id: str, role: MemberRole, joined_at: datetime) -> dict:
    """One element of StudyGroup.current_members."""
    return {
        "user_id": user_id,
        "role": enum_value(role),
        "joined_at": joined_at.isoformat(),
    }


class StudyGroupRepository:

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    # ── Groups ─────────────────────────────────────────────────────────────

    def create(self, data: dict[str, Any], creator_id: str) -> StudyGroupRecord:
        """
        Stores a new active group with the creator as its only member (admin),
        then writes the creator's reverse-index row.
        """
        now = utcnow()
        group_id = new_id()
        item = {
            "group_id": group_id,
            "name": data["name"],
            "description": data["description"],
            "course": data["course"],
            "subject": data["subject"],
            "max_members": data.get("max_members") or DEFAULT_MAX_MEMBERS,
            "current_members": [member_entry(creator_id, MemberRole.ADMIN, now)],
            "status": GroupStatus.ACTIVE.value,
            "creator_id": creator_id,
            "meeting_schedule": [dict(entry) for entry in data.get("meeting_schedule") or []],
            "created_at": now,
            "updated_at": now,
        }
        stored = self._store.put(STUDY_GROUPS, item, unique_on=("group_id",))
        self.add_membership(creator_id, group_id, MemberRole.ADMIN, joined_at=now)
        return StudyGroupRecord.from_item(stored)

    def get(self, group_id: str) -> StudyGroupRecord | None:
        item = self._store.get_by_key(STUDY_GROUPS, {"group_id": group_id})
        return None if item is None else StudyGroupRecord.from_item(item)

    def find_all(
            self,
            filters: dict[str, Any] | None = None,
            page: int = 1,
            limit: int = 12,
            where: Callable[[StudyGroupRecord], bool] | None = None,
    ) -> Page[StudyGroupRecord]:
        """Scan with equality filters, newest first, sliced in process."""
        equality = {
            name: enum_value(value)
            for name, value in (filters or {}).items()
            if name in FILTERABLE_FIELDS and value is not None
        }
        records = [
            StudyGroupRecord.from_item(item)
            for item in self._store.scan(STUDY_GROUPS, equality)
        ]
        return paginate(records, page, limit, where=where)

    def find_all_ids(self) -> list[str]:
        return [item["group_id"] for item in self._store.scan(STUDY_GROUPS)]

    def find_by_user(self, user_id: str) -> list[StudyGroupRecord]:
        """
        Groups the user belongs to, via the reverse index. Rows pointing at a
        group that no longer exists are skipped.
        """
        groups = []
        for membership in self.memberships_for_user(user_id):
            group = self.get(membership.group_id)
            if group is None:
                logger.warning(
                    "Reverse-index row (%s, %s) points at a missing group",
                    membership.user_id,
                    membership.group_id,
                )
                continue
            groups.append(group)
        return groups

    def set_members(
            self,
            group_id: str,
            members: list[dict],
            status: GroupStatus | str | None = None,
    ) -> StudyGroupRecord:
        """Replaces the embedded member list (and optionally the status)."""
        changes: dict[str, Any] = {"current_members": members, "updated_at": utcnow()}
        if status is not None:
            changes["status"] = enum_value(status)
        return self._update_item(group_id, changes)

    def update(self, group_id: str, attributes: dict[str, Any]) -> StudyGroupRecord:
        """Applies editable group fields. Members go through set_members()."""
        changes = {
            name: enum_value(value)
            for name, value in strip_attributes(attributes, IMMUTABLE_FIELDS).items()
        }
        if "meeting_schedule" in changes:
            changes["meeting_schedule"] = [dict(entry) for entry in changes["meeting_schedule"]]
        changes["updated_at"] = utcnow()
        return self._update_item(group_id, changes)

    def delete(self, group_id: str) -> int:
        """
        Deletes every reverse-index row for the group, one at a time, then the
        group itself. Returns the number of reverse-index rows removed.
        """
        memberships = self.memberships_for_group(group_id)
        for membership in memberships:
            self.remove_membership(membership.user_id, group_id)
        self._store.delete_by_key(STUDY_GROUPS, {"group_id": group_id})
        return len(memberships)

    def _update_item(self, group_id: str, changes: dict[str, Any]) -> StudyGroupRecord:
        try:
            item = self._store.update_by_key(STUDY_GROUPS, {"group_id": group_id}, changes)
        except NotFoundError:
            raise NotFoundError(
                ErrorCode.GROUP_NOT_FOUND,
                f"Study group {group_id} not found.",
            ) from None
        return StudyGroupRecord.from_item(item)

    # ── Reverse index ──────────────────────────────────────────────────────

    def get_membership(self, user_id: str, group_id: str) -> MembershipRecord | None:
        item = self._store.get_by_key(
            GROUP_MEMBERSHIPS,
            {"user_id": user_id, "group_id": group_id},
        )
        return None if item is None else MembershipRecord.from_item(item)

    def add_membership(
            self,
            user_id: str,
            group_id: str,
            role: MemberRole,
            joined_at: datetime | None = None,
    ) -> MembershipRecord:
        item = {
            "user_id": user_id,
            "group_id": group_id,
            "role": enum_value(role),
            "joined_at": joined_at or utcnow(),
        }
        stored = self._store.put(GROUP_MEMBERSHIPS, item, unique_on=("user_id", "group_id"))
        return MembershipRecord.from_item(stored)

    def remove_membership(self, user_id: str, group_id: str) -> None:
        self._store.delete_by_key(GROUP_MEMBERSHIPS, {"user_id": user_id, "group_id": group_id})

    def memberships_for_user(self, user_id: str) -> list[MembershipRecord]:
        items = self._store.query_by_index(GROUP_MEMBERSHIPS, "user_id", {"user_id": user_id})
        return [MembershipRecord.from_item(item) for item in items]

    def memberships_for_group(self, group_id: str) -> list[MembershipRecord]:
        items = self._store.query_by_index(GROUP_MEMBERSHIPS, "group_id", {"group_id": group_id})
        return [MembershipRecord.from_item(item) for item in items]

    def all_memberships(self) -> list[MembershipRecord]:
        return [MembershipRecord.from_item(item) for item in self._store.scan(GROUP_MEMBERSHIPS)]
