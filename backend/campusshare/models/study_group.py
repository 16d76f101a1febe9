"""
models/study_group.py — Study groups collection.

`current_members` is the ordered member list embedded in the group row:
  [{"user_id": "...", "role": "admin" | "member", "joined_at": "<ISO-8601>"}]

The per-user reverse index lives in models/group_membership.py. The two are
kept in step by services/study_group_service.py, not by the database.
"""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import JSON, CheckConstraint, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from backend.campusshare.extensions import db


class GroupStatus(str, enum.Enum):
    ACTIVE   = "active"
    FULL     = "full"
    INACTIVE = "inactive"


class MemberRole(str, enum.Enum):
    ADMIN  = "admin"
    MEMBER = "member"


DEFAULT_MAX_MEMBERS = 10


class StudyGroup(db.Model):
    __tablename__ = "study_groups"

    __table_args__ = (
        CheckConstraint("max_members >= 2 AND max_members <= 50", name="ck_study_groups_capacity"),
        CheckConstraint(
            "status IN ('active', 'full', 'inactive')",
            name="ck_study_groups_status",
        ),
    )

    group_id: Mapped[str] = mapped_column(String(36), primary_key=True)

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    course: Mapped[str] = mapped_column(String(100), nullable=False)
    subject: Mapped[str] = mapped_column(String(100), nullable=False, index=True)

    max_members: Mapped[int] = mapped_column(Integer, nullable=False, default=DEFAULT_MAX_MEMBERS)
    current_members: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    status: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
        default=GroupStatus.ACTIVE.value,
        index=True,
    )

    creator_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)

    # [{"day": "...", "time": "...", "location": "..."}]
    meeting_schedule: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:  # pragma: no cover
        return f"<StudyGroup group_id={self.group_id} name={self.name!r}>"
