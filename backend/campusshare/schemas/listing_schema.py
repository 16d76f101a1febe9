"""
schemas/listing_schema.py — Marshmallow schemas for listing endpoints.

Validation responsibility:
  - This file: field types, lengths, enum values, price precision, and the
    free-listing rule when price_type and price arrive together
    (FREE_LISTING_PRICE, 400).
  - repositories/listings.py: the same rule against the merged record on
    update, where only one of the two fields may be sent
    (FREE_LISTING_PRICE, 422).
  - services/listing_service.py: seller-only writes (FORBIDDEN, 403).
"""

from __future__ import annotations

from decimal import Decimal

from marshmallow import Schema, ValidationError, fields, validate, validates_schema

from backend.campusshare.errors import ErrorCode
from backend.campusshare.models.listing import Category, Condition, ListingStatus, PriceType
from backend.campusshare.schemas.common import PageQuerySchema, optional_text, required_text


def _validate_price(value: Decimal) -> None:
    """Non-negative, at most 2 decimal places. Never rounded."""
    if value < Decimal("0"):
        raise ValidationError("Price must not be negative.")
    if value.as_tuple().exponent < -2:
        raise ValidationError("Price must have at most 2 decimal places.")


def _check_free_listing(data: dict) -> None:
    if data.get("price_type") is PriceType.FREE and "price" in data and data["price"] != 0:
        raise ValidationError(ErrorCode.FREE_LISTING_PRICE, field_name="price")


def _enum(enum_cls, **kwargs) -> fields.Enum:
    return fields.Enum(enum_cls, by_value=True, **kwargs)


class CreateListingSchema(Schema):
    """POST /listings"""

    title = required_text(1, 100, "Title")
    description = required_text(1, 1000, "Description")
    price = fields.Decimal(required=True, validate=_validate_price)
    price_type = _enum(PriceType, required=True)
    category = _enum(Category, required=True)
    condition = _enum(Condition, required=True)
    location = required_text(1, 200, "Location")
    images = fields.List(fields.Url(), load_default=list)

    @validates_schema
    def validate_free_price(self, data: dict, **kwargs) -> None:
        _check_free_listing(data)


class UpdateListingSchema(Schema):
    """
    PUT /listings/<id>

    Every field optional. seller_id, views and the identifier are not
    declared, so a payload carrying them is rejected.
    """

    title = optional_text(1, 100, "Title")
    description = optional_text(1, 1000, "Description")
    price = fields.Decimal(validate=_validate_price)
    price_type = _enum(PriceType)
    category = _enum(Category)
    condition = _enum(Condition)
    location = optional_text(1, 200, "Location")
    images = fields.List(fields.Url())
    status = _enum(ListingStatus)

    @validates_schema
    def validate_free_price(self, data: dict, **kwargs) -> None:
        _check_free_listing(data)


class ListingQuerySchema(PageQuerySchema):
    """GET /listings?category=&price_type=&condition=&status=&page=&limit=&search="""

    category = _enum(Category, load_default=None)
    price_type = _enum(PriceType, load_default=None)
    condition = _enum(Condition, load_default=None)
    status = _enum(ListingStatus, load_default=None)
