"""
schemas/proposal_schema.py — Marshmallow schemas for proposal endpoints.

The status schema accepts only the three terminal states. Who may set which
one, and from which state, is decided in services/proposal_service.py.
"""

from __future__ import annotations

from decimal import Decimal

from marshmallow import Schema, ValidationError, fields, validate

from backend.campusshare.models.proposal import ProposalStatus
from backend.campusshare.schemas.common import required_text


def _validate_proposed_price(value: Decimal) -> None:
    if value < Decimal("0"):
        raise ValidationError("Proposed price must not be negative.")
    if value.as_tuple().exponent < -2:
        raise ValidationError("Proposed price must have at most 2 decimal places.")


class CreateProposalSchema(Schema):
    """
    POST /proposals

    message        : 10–500 chars after trim
    proposed_price : optional; the listing's price is used when omitted
    """

    listing_id = fields.Str(required=True, validate=validate.Length(min=1, max=36))
    message = required_text(10, 500, "Message")
    proposed_price = fields.Decimal(
        load_default=None,
        allow_none=True,
        validate=_validate_proposed_price,
    )


class ProposalStatusSchema(Schema):
    """PUT /proposals/<id>/status"""

    status = fields.Enum(
        ProposalStatus,
        by_value=True,
        required=True,
        validate=validate.NoneOf(
            [ProposalStatus.PENDING],
            error="A proposal cannot be moved back to pending.",
        ),
    )
