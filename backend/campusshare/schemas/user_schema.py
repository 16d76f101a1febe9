"""
schemas/user_schema.py — Profile updates and ratings.

Only the whitelisted profile fields are declared; anything else in the
payload (email, password, rating, ids) is rejected as an unknown field.
"""

from __future__ import annotations

from marshmallow import Schema, fields, validate

from backend.campusshare.schemas.common import TrimmedStr, optional_text


class UpdateProfileSchema(Schema):
    """PUT /users/profile — every field optional."""

    first_name = optional_text(1, 100, "First name")
    last_name = optional_text(1, 100, "Last name")
    university = optional_text(1, 200, "University")
    major = TrimmedStr(allow_none=True, validate=validate.Length(max=100))
    year = fields.Int(
        allow_none=True,
        strict=True,
        validate=validate.Range(min=1, max=6, error="year must be between 1 and 6."),
    )
    profile_image = fields.Url(allow_none=True)


class RatingSchema(Schema):
    """POST /users/<id>/ratings"""

    score = fields.Int(
        required=True,
        strict=True,
        validate=validate.Range(min=1, max=5, error="score must be between 1 and 5."),
    )
