"""
schemas/expense_schema.py — Marshmallow schema for expense create/edit.

Validation responsibility:
  - This file:
      - Field types, lengths, enum values, decimal precision
      - base_amount required (and > 0) unless split_method='item'
      - Non-empty-after-trim enforcement for description and paid_by
  - services/expense_service.py:
      - PAYER_NOT_PARTICIPANT / SPLIT_PARTICIPANT_UNKNOWN — need the roster
      - NO_SPLIT_PARTICIPANTS / NO_SPLIT_VALUES — need the filtered split data
      - SPLIT_SUM_MISMATCH / PERCENTAGE_SUM_MISMATCH — need the computed total
      - NON_POSITIVE_TOTAL

The same schema serves POST /expenses and PUT /expenses/:id; an edit
resubmits the whole expense, exactly like the create form.

Schemas here inherit from marshmallow.Schema and need no app context
(see extensions.py).
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from marshmallow import (
    Schema,
    ValidationError,
    fields,
    validate,
    validates_schema,
)

from groupsplit.app.errors import ErrorCode
from groupsplit.app.models.transaction import (
    DEFAULT_EXPENSE_TYPE,
    EXPENSE_TYPES,
    SplitMethod,
)


# ── Shared amount validators ──────────────────────────────────────────────
#
# Currency input with more than 2 decimal places is REJECTED with
# INVALID_AMOUNT_PRECISION, never rounded or truncated.
# Split values are not currency for the percentage method, so they only
# need to be non-negative; values of 0 are dropped by the service.
# ──────────────────────────────────────────────────────────────────────────

def _validate_precision(value: Decimal) -> None:
    # Decimal("10.123").as_tuple().exponent == -3  → 3 dp → REJECT
    # Decimal("10.12").as_tuple().exponent  == -2  → 2 dp → accept
    if value.as_tuple().exponent < -2:
        raise ValidationError(ErrorCode.INVALID_AMOUNT_PRECISION)


def _validate_monetary_amount(value: Decimal) -> None:
    """Strictly positive, at most 2 decimal places."""
    if value <= Decimal("0"):
        raise ValidationError("Amount must be greater than zero.")
    _validate_precision(value)


def _validate_surcharge(value: Decimal) -> None:
    """Zero or positive, at most 2 decimal places."""
    if value < Decimal("0"):
        raise ValidationError("Charges must not be negative.")
    _validate_precision(value)


def _validate_split_value(value: Decimal) -> None:
    if value < Decimal("0"):
        raise ValidationError("Split values must not be negative.")


def _validate_non_empty_after_trim(value: str) -> None:
    """
    Raises ValidationError if the string is blank or contains only whitespace.
    validate.Length(min=1) alone would accept "   ".
    """
    if not value.strip():
        raise ValidationError("This field must not be blank or contain only whitespace.")


class ExpenseInputSchema(Schema):
    """
    POST /expenses, PUT /expenses/:id

    Split method behaviour:
      - evenly     → split_between names the people sharing equally.
      - amount     → split_values maps name → exact amount.
      - percentage → split_values maps name → percentage points.
      - item       → itemized maps name → item subtotal; base_amount is
                     ignored and recomputed from the items.
      For amount/percentage/item, split_between (when sent) restricts which
      entries of split_values/itemized are kept.

    Surcharges (tips, tax, service_charge, other_charges) default to 0 and
    are added on top of the base to produce the expense total.
    """

    description = fields.Str(
        required=True,
        validate=[
            validate.Length(
                min=1,
                max=255,
                error="Description must be between 1 and 255 characters.",
            ),
            _validate_non_empty_after_trim,
        ],
    )

    # Required unless split_method='item' (checked in validate_base_amount).
    base_amount = fields.Decimal(
        load_default=None,
        validate=_validate_monetary_amount,
    )

    tips = fields.Decimal(load_default=Decimal("0"), validate=_validate_surcharge)
    tax = fields.Decimal(load_default=Decimal("0"), validate=_validate_surcharge)
    service_charge = fields.Decimal(load_default=Decimal("0"), validate=_validate_surcharge)
    other_charges = fields.Decimal(load_default=Decimal("0"), validate=_validate_surcharge)

    # Participant name. Roster membership is checked in the service.
    paid_by = fields.Str(
        required=True,
        validate=_validate_non_empty_after_trim,
    )

    date = fields.Date(load_default=date.today)

    notes = fields.Str(
        load_default="",
        validate=validate.Length(max=1000, error="Notes must be at most 1000 characters."),
    )

    split_method = fields.Enum(
        SplitMethod,
        load_default=SplitMethod.EVENLY,
        by_value=True,
        error_messages={"unknown": ErrorCode.INVALID_SPLIT_METHOD},
    )

    expense_type = fields.Str(
        load_default=DEFAULT_EXPENSE_TYPE,
        validate=validate.OneOf(EXPENSE_TYPES, error=ErrorCode.INVALID_EXPENSE_TYPE),
    )

    split_between = fields.List(fields.Str(), load_default=None)

    split_values = fields.Dict(
        keys=fields.Str(),
        values=fields.Decimal(validate=_validate_split_value),
        load_default=None,
    )

    itemized = fields.Dict(
        keys=fields.Str(),
        values=fields.Decimal(validate=_validate_surcharge),
        load_default=None,
    )

    @validates_schema
    def validate_base_amount(self, data: dict, **kwargs) -> None:
        """
        base_amount is the amount the split applies to for every method
        except 'item', where it is the sum of the item costs instead.
        """
        if data.get("split_method") == SplitMethod.ITEM:
            return
        if data.get("base_amount") is None:
            raise ValidationError(
                {
                    "base_amount": [
                        "base_amount is required unless split_method is 'item'."
                    ],
                }
            )
