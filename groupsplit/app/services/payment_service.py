"""
services/payment_service.py — Direct payment business logic.

A payment is a settlement from one participant to another. In the ledger it
is negative debt: it reduces what the sender owes the recipient, and once
that reaches zero it starts building a debt the other way.

Rules enforced here:
  SELF_PAYMENT (422)               — from and to must differ
  PAYER_NOT_PARTICIPANT (422)      — sender must be in the roster
  RECIPIENT_NOT_PARTICIPANT (422)  — recipient must be in the roster
  OVERPAYMENT warning              — recorded anyway, returned with the 201

Notes on overpayment:
  The outstanding amount is the sender's current debt to the recipient as
  compute_debts() reports it. Paying more than that is valid (a prepayment
  or a refund of an earlier overpayment); the request still succeeds and a
  warning is returned in the envelope.

Layer rules:
  - No Flask imports. Operates on a GroupState in memory.
  - Persisting the result is the route's responsibility.
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from groupsplit.app.errors import AppError, ErrorCode, WarningCode
from groupsplit.app.models.group import GroupState
from groupsplit.app.models.transaction import Payment, to_cents
from groupsplit.app.services.balance_service import (
    SETTLEMENT_EPSILON,
    compute_debts,
    outstanding_between,
)


def payment_description(sender: str, recipient: str) -> str:
    return f"Payment from {sender} to {recipient}"


def record_payment(
        state: GroupState,
        data: dict,
        epsilon: Decimal = SETTLEMENT_EPSILON,
) -> tuple[Payment, list[dict]]:
    """
    Appends a payment from data["sender"] to data["recipient"].

    Args:
        state:   The group; its transaction list is extended in place.
        data:    Validated dict from CreatePaymentSchema.
                 Keys: sender, recipient, amount, date, payment_method, notes.
        epsilon: Settlement threshold used when reading the current debt.

    Returns:
        (Payment, warnings). An empty warnings list means no warnings.
    """
    sender: str = data["sender"].strip()
    recipient: str = data["recipient"].strip()
    amount: Decimal = to_cents(data["amount"])

    if sender == recipient:
        raise AppError(
            ErrorCode.SELF_PAYMENT,
            "A payment must go to someone other than the sender.",
            422,
            field="to",
        )

    roster = set(state.participant_names)
    if sender not in roster:
        raise AppError(
            ErrorCode.PAYER_NOT_PARTICIPANT,
            f"{sender!r} is not a participant of this group.",
            422,
            field="from",
        )
    if recipient not in roster:
        raise AppError(
            ErrorCode.RECIPIENT_NOT_PARTICIPANT,
            f"{recipient!r} is not a participant of this group.",
            422,
            field="to",
        )

    warnings: list[dict] = []
    debts = compute_debts(state.participants, state.transactions, epsilon)
    outstanding = outstanding_between(sender, recipient, debts)

    if amount > outstanding:
        warnings.append({
            "code": WarningCode.OVERPAYMENT,
            "message": (
                f"Payment of {amount} exceeds what {sender} currently owes "
                f"{recipient} ({outstanding}). Recording anyway."
            ),
        })

    payment = Payment(
        id=str(uuid.uuid4()),
        amount=amount,
        paid_by=sender,
        recipient=recipient,
        date=data["date"].isoformat(),
        description=payment_description(sender, recipient),
        notes=data.get("notes") or "",
        payment_method=data["payment_method"],
    )
    state.transactions.append(payment)

    return payment, warnings
