"""
schemas/group_schema.py — Marshmallow schemas for study group endpoints.

Validation responsibility:
  - This file: field types, lengths, capacity range (2–50).
  - services/study_group_service.py:
      - GROUP_NOT_FOUND, ALREADY_MEMBER, GROUP_FULL (need the stored group)
      - CAPACITY_BELOW_MEMBERS (needs the current member count)
      - creator-only update/delete (FORBIDDEN, 403)
"""

from __future__ import annotations

from marshmallow import Schema, fields, validate

from backend.campusshare.models.study_group import DEFAULT_MAX_MEMBERS, GroupStatus
from backend.campusshare.schemas.common import (
    PageQuerySchema,
    TrimmedStr,
    optional_text,
    required_text,
)

_capacity = validate.Range(min=2, max=50, error="max_members must be between 2 and 50.")


class MeetingScheduleSchema(Schema):
    """One {day, time, location} entry; all free text."""

    day = required_text(1, 20, "Day")
    time = required_text(1, 20, "Time")
    location = TrimmedStr(load_default="", validate=validate.Length(max=200))


class CreateGroupSchema(Schema):
    """POST /groups"""

    name = required_text(1, 100, "Group name")
    description = required_text(1, 500, "Description")
    course = required_text(1, 100, "Course")
    subject = required_text(1, 100, "Subject")
    max_members = fields.Int(load_default=DEFAULT_MAX_MEMBERS, strict=True, validate=_capacity)
    meeting_schedule = fields.List(fields.Nested(MeetingScheduleSchema), load_default=list)


class UpdateGroupSchema(Schema):
    """
    PUT /groups/<id>

    Members and creator are not declared; they change only through join,
    leave and delete.
    """

    name = optional_text(1, 100, "Group name")
    description = optional_text(1, 500, "Description")
    course = optional_text(1, 100, "Course")
    subject = optional_text(1, 100, "Subject")
    max_members = fields.Int(strict=True, validate=_capacity)
    meeting_schedule = fields.List(fields.Nested(MeetingScheduleSchema))
    status = fields.Enum(
        GroupStatus,
        by_value=True,
        validate=validate.OneOf(
            [GroupStatus.ACTIVE, GroupStatus.INACTIVE],
            error="status must be 'active' or 'inactive'; 'full' follows capacity.",
        ),
    )


class GroupQuerySchema(PageQuerySchema):
    """GET /groups?subject=&course=&status=&page=&limit=&search="""

    subject = TrimmedStr(load_default=None)
    course = TrimmedStr(load_default=None)
    status = fields.Enum(GroupStatus, by_value=True, load_default=None)
