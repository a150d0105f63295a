"""
schemas/payment_schema.py — Marshmallow schema for recording a payment.

Validation responsibility:
  - This file: field types, decimal precision, positive amount, method choice.
  - services/payment_service.py:
      - SELF_PAYMENT (422)              — from == to
      - PAYER_NOT_PARTICIPANT (422)     — needs the roster
      - RECIPIENT_NOT_PARTICIPANT (422) — needs the roster
      - OVERPAYMENT warning (201)       — needs the current balances

Schemas here inherit from marshmallow.Schema and need no app context
(see extensions.py).
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from marshmallow import Schema, ValidationError, fields, validate

from groupsplit.app.errors import ErrorCode
from groupsplit.app.models.transaction import DEFAULT_PAYMENT_METHOD, PAYMENT_METHODS


# ── Shared monetary amount validator ──────────────────────────────────────
#
# Identical logic to the validator in expense_schema.py. Defined here
# rather than imported from expense_schema to keep each schema file
# self-contained.
# ──────────────────────────────────────────────────────────────────────────

def _validate_monetary_amount(value: Decimal) -> None:
    """
    Must be strictly greater than zero with at most 2 decimal places.
    More precision is REJECTED (INVALID_AMOUNT_PRECISION), never rounded.
    """
    if value <= Decimal("0"):
        raise ValidationError("Amount must be greater than zero.")

    if value.as_tuple().exponent < -2:
        raise ValidationError(ErrorCode.INVALID_AMOUNT_PRECISION)


def _validate_non_empty_after_trim(value: str) -> None:
    if not value.strip():
        raise ValidationError("This field must not be blank or contain only whitespace.")


class CreatePaymentSchema(Schema):
    """
    POST /payments

    Records a direct payment from one participant to another.

    Field rules:
      from           : required, participant name (sender)
      to             : required, participant name (recipient)
      amount         : required, positive Decimal, max 2 decimal places
                       Overpayment is allowed — the service issues a warning
                       but does NOT block the request.
      date           : ISO date, defaults to today
      payment_method : Cash | Venmo | Zelle | Other, defaults to Cash
      notes          : optional free text
    """

    # "from" is a Python keyword; the wire names stay from/to.
    sender = fields.Str(
        data_key="from",
        required=True,
        validate=_validate_non_empty_after_trim,
    )
    recipient = fields.Str(
        data_key="to",
        required=True,
        validate=_validate_non_empty_after_trim,
    )

    amount = fields.Decimal(
        required=True,
        validate=_validate_monetary_amount,
    )

    date = fields.Date(load_default=date.today)

    payment_method = fields.Str(
        load_default=DEFAULT_PAYMENT_METHOD,
        validate=validate.OneOf(PAYMENT_METHODS, error=ErrorCode.INVALID_PAYMENT_METHOD),
    )

    notes = fields.Str(
        load_default="",
        validate=validate.Length(max=1000, error="Notes must be at most 1000 characters."),
    )
