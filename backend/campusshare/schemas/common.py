"""
schemas/common.py — Field types and validators shared by the request schemas.

IMPORTANT: All schemas inherit from marshmallow.Schema directly so they can
           be loaded without a Flask app context (unit tests do this).
"""

from __future__ import annotations

from marshmallow import EXCLUDE, Schema, ValidationError, fields, validate


def _validate_non_empty_after_trim(value: str) -> None:
    """
    validate.Length(min=1) alone accepts "   ". TrimmedStr strips before
    validators run, so this only trips on input that was all whitespace.
    """
    if not value.strip():
        raise ValidationError("This field must not be blank or contain only whitespace.")


class TrimmedStr(fields.Str):
    """A string field that strips surrounding whitespace on load."""

    def _deserialize(self, value, attr, data, **kwargs):
        result = super()._deserialize(value, attr, data, **kwargs)
        return result.strip()


def required_text(min_len: int, max_len: int, label: str) -> TrimmedStr:
    return TrimmedStr(
        required=True,
        validate=[
            _validate_non_empty_after_trim,
            validate.Length(
                min=min_len,
                max=max_len,
                error=f"{label} must be between {min_len} and {max_len} characters.",
            ),
        ],
    )


def optional_text(min_len: int, max_len: int, label: str) -> TrimmedStr:
    return TrimmedStr(
        validate=[
            _validate_non_empty_after_trim,
            validate.Length(
                min=min_len,
                max=max_len,
                error=f"{label} must be between {min_len} and {max_len} characters.",
            ),
        ],
    )


DEFAULT_PAGE_SIZE = 12
MAX_PAGE_SIZE = 50


class PageQuerySchema(Schema):
    """
    ?page=&limit=&search= on browse endpoints.

    Query strings carry whatever the client appends, so unknown keys are
    dropped rather than rejected.
    """

    class Meta:
        unknown = EXCLUDE

    page = fields.Int(
        load_default=1,
        validate=validate.Range(min=1, error="page must be 1 or greater."),
    )
    limit = fields.Int(
        load_default=DEFAULT_PAGE_SIZE,
        validate=validate.Range(
            min=1,
            max=MAX_PAGE_SIZE,
            error=f"limit must be between 1 and {MAX_PAGE_SIZE}.",
        ),
    )
    search = TrimmedStr(load_default=None, validate=validate.Length(max=100))
