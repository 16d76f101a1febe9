"""
models/group_membership.py — Per-user reverse index of study group membership.

Key: (user_id, group_id). Answers "which groups is this user in?" without
scanning every group's member list. Maintained by the application alongside
StudyGroup.current_members; nothing at the storage level keeps them in sync.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from backend.campusshare.extensions import db


class GroupMembership(db.Model):
    __tablename__ = "group_memberships"

    user_id: Mapped[str] = mapped_column(String(36), primary_key=True)

    # groupId-index, used by group deletion and reconciliation.
    group_id: Mapped[str] = mapped_column(String(36), primary_key=True, index=True)

    role: Mapped[str] = mapped_column(String(10), nullable=False)

    joined_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<GroupMembership user_id={self.user_id} "
            f"group_id={self.group_id} "
            f"role={self.role}>"
        )
