"""
schemas/auth_schema.py — Marshmallow schemas for registration and login.

Validation responsibility:
  - This file: field types, lengths, formats.
  - services/auth_service.py / UserRepository: DUPLICATE_EMAIL (needs a
    lookup, so it is not a schema concern).
"""

from __future__ import annotations

from marshmallow import Schema, ValidationError, fields, validate, validates

from backend.campusshare.schemas.common import TrimmedStr, required_text


class RegisterSchema(Schema):
    """
    POST /auth/register

    Field rules:
      email      : valid email format, lower-cased by the repository
      password   : min 8 chars, at least one letter and one digit
      first_name, last_name, university : non-blank, max 100
      major      : optional, max 100
      year       : optional, 1–6
    """

    email = fields.Email(required=True, validate=validate.Length(max=255))

    # Validated in @validates below to produce a clear message per missing rule.
    password = fields.Str(required=True, load_only=True)

    first_name = required_text(1, 100, "First name")
    last_name = required_text(1, 100, "Last name")
    university = required_text(1, 200, "University")
    major = TrimmedStr(load_default=None, allow_none=True, validate=validate.Length(max=100))
    year = fields.Int(
        load_default=None,
        allow_none=True,
        strict=True,
        validate=validate.Range(min=1, max=6, error="year must be between 1 and 6."),
    )
    profile_image = fields.Url(load_default=None, allow_none=True)

    @validates("password")
    def validate_password_strength(self, value: str, **kwargs) -> None:
        if len(value) < 8:
            raise ValidationError("Password must be at least 8 characters long.")
        if not any(c.isalpha() for c in value):
            raise ValidationError("Password must contain at least one letter.")
        if not any(c.isdigit() for c in value):
            raise ValidationError("Password must contain at least one digit.")


class LoginSchema(Schema):
    """
    POST /auth/login

    Credential correctness is checked in auth_service.py
    (INVALID_CREDENTIALS, 401).
    """

    email = fields.Email(required=True)
    password = fields.Str(required=True, load_only=True)
