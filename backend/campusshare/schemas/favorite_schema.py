"""
schemas/favorite_schema.py — POST /favorites body.
"""

from __future__ import annotations

from marshmallow import Schema, fields, validate


class AddFavoriteSchema(Schema):
    # Whether the listing exists is checked in favorite_service.py (404).
    listing_id = fields.Str(required=True, validate=validate.Length(min=1, max=36))
