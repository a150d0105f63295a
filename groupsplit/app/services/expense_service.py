"""
services/expense_service.py — Expense business logic.

This is where an expense is validated before it is allowed into the
history. The balance engine trusts what it is given; the rules below are
what makes that trust reasonable.

Rules enforced here:
  PAYER_NOT_PARTICIPANT (422)      — paid_by must be in the roster
  SPLIT_PARTICIPANT_UNKNOWN (422)  — every split name must be in the roster
  NO_SPLIT_PARTICIPANTS (422)      — evenly with nobody selected
  NO_SPLIT_VALUES (422)            — amount/percentage/item with no value > 0
  SPLIT_SUM_MISMATCH (422)         — amount split != total (beyond 0.01)
  PERCENTAGE_SUM_MISMATCH (422)    — percentages != 100 (beyond 0.01)
  NON_POSITIVE_TOTAL (422)         — base plus surcharges must be > 0
  PAYMENT_NOT_EDITABLE (422)       — payments are removed, not edited
  TRANSACTION_NOT_FOUND (404)

How the total is built:
  - item method:  base = sum of the kept item costs
  - otherwise:    base = base_amount
  - amount = base + tips + tax + service_charge + other_charges

Which split entries are kept (amount, percentage, item):
  - only values > 0
  - only names in split_between, when split_between was sent

Layer rules:
  - No Flask imports. Operates on a GroupState in memory.
  - Persisting the result is the route's responsibility.
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from groupsplit.app.errors import AppError, ErrorCode
from groupsplit.app.models.group import GroupState
from groupsplit.app.models.participant import Participant
from groupsplit.app.models.transaction import (
    ZERO,
    AmountSplitExpense,
    EvenSplitExpense,
    Expense,
    ItemizedExpense,
    Payment,
    PercentageSplitExpense,
    SplitMethod,
    Transaction,
    to_cents,
)


_RECONCILE_TOLERANCE = Decimal("0.01")
_HUNDRED = Decimal("100")


# ── Private helpers ────────────────────────────────────────────────────────

def _validate_payer(paid_by: str, roster: set[str]) -> None:
    if paid_by not in roster:
        raise AppError(
            ErrorCode.PAYER_NOT_PARTICIPANT,
            f"{paid_by!r} is not a participant of this group.",
            422,
            field="paid_by",
        )


def _validate_split_names(names, roster: set[str], field: str) -> None:
    """Raises SPLIT_PARTICIPANT_UNKNOWN for the first name not in the roster."""
    for name in names:
        if name not in roster:
            raise AppError(
                ErrorCode.SPLIT_PARTICIPANT_UNKNOWN,
                f"{name!r} is not a participant of this group.",
                422,
                field=field,
            )


def _relevant_values(
        values: dict[str, Decimal] | None,
        split_between: list[str] | None,
) -> dict[str, Decimal]:
    """Keeps positive values, restricted to split_between when it was sent."""
    selected = set(split_between) if split_between is not None else None
    return {
        name: value
        for name, value in (values or {}).items()
        if value > 0 and (selected is None or name in selected)
    }


def _require_values(values: dict[str, Decimal], field: str) -> None:
    if not values:
        raise AppError(
            ErrorCode.NO_SPLIT_VALUES,
            "Please enter values for at least one person.",
            422,
            field=field,
        )


def _validate_reconciles(
        method: SplitMethod,
        values: dict[str, Decimal],
        total: Decimal,
) -> None:
    """
    Amount splits must add up to the expense total; percentages to 100.
    Both within 0.01, the same tolerance the balance engine settles at.
    """
    split_total = sum(values.values(), ZERO)

    if method == SplitMethod.AMOUNT and abs(split_total - total) > _RECONCILE_TOLERANCE:
        raise AppError(
            ErrorCode.SPLIT_SUM_MISMATCH,
            f"The split amounts must add up to {total:.2f}. Current total: {split_total:.2f}.",
            422,
            field="split_values",
        )

    if method == SplitMethod.PERCENTAGE and abs(split_total - _HUNDRED) > _RECONCILE_TOLERANCE:
        raise AppError(
            ErrorCode.PERCENTAGE_SUM_MISMATCH,
            f"The percentages must add up to 100%. Current total: {split_total:.2f}%.",
            422,
            field="split_values",
        )


# ── Public service functions ───────────────────────────────────────────────

def build_expense(
        data: dict,
        participants: list[Participant],
        expense_id: str | None = None,
) -> Expense:
    """
    Turns validated input (ExpenseInputSchema) into an expense record.

    Args:
        data:         Validated dict from ExpenseInputSchema.
        participants: The current roster.
        expense_id:   Keep this id (edit); a new one is generated otherwise.

    Returns:
        One of EvenSplitExpense, AmountSplitExpense, PercentageSplitExpense,
        ItemizedExpense.
    """
    roster = {p.name for p in participants}
    method: SplitMethod = data["split_method"]
    paid_by: str = data["paid_by"].strip()
    split_between: list[str] | None = data.get("split_between")

    _validate_payer(paid_by, roster)

    tips: Decimal = data["tips"]
    tax: Decimal = data["tax"]
    service_charge: Decimal = data["service_charge"]
    other_charges: Decimal = data["other_charges"]
    surcharges = tips + tax + service_charge + other_charges

    itemized: dict[str, Decimal] = {}
    split_values: dict[str, Decimal] = {}

    if method == SplitMethod.ITEM:
        itemized = _relevant_values(data.get("itemized"), split_between)
        _require_values(itemized, "itemized")
        _validate_split_names(itemized, roster, "itemized")
        base_amount = sum(itemized.values(), ZERO)
    else:
        base_amount = data["base_amount"]

    amount = base_amount + surcharges
    if amount <= 0:
        raise AppError(
            ErrorCode.NON_POSITIVE_TOTAL,
            "The expense total must be greater than zero.",
            422,
            field="base_amount",
        )

    common = {
        "id": expense_id or str(uuid.uuid4()),
        "amount": to_cents(amount),
        "paid_by": paid_by,
        "date": data["date"].isoformat(),
        "description": data["description"].strip(),
        "notes": data.get("notes") or "",
        "base_amount": to_cents(base_amount),
        "tips": to_cents(tips),
        "tax": to_cents(tax),
        "service_charge": to_cents(service_charge),
        "other_charges": to_cents(other_charges),
        "expense_type": data["expense_type"],
    }

    if method == SplitMethod.ITEM:
        return ItemizedExpense(
            **common, itemized={name: to_cents(value) for name, value in itemized.items()},
        )

    if method == SplitMethod.EVENLY:
        if not split_between:
            raise AppError(
                ErrorCode.NO_SPLIT_PARTICIPANTS,
                "Please select at least one person to split with evenly.",
                422,
                field="split_between",
            )
        _validate_split_names(split_between, roster, "split_between")
        # Keep first occurrence order; a name listed twice still gets one share.
        return EvenSplitExpense(**common, split_between=tuple(dict.fromkeys(split_between)))

    split_values = _relevant_values(data.get("split_values"), split_between)
    _require_values(split_values, "split_values")
    _validate_split_names(split_values, roster, "split_values")
    _validate_reconciles(method, split_values, amount)

    if method == SplitMethod.AMOUNT:
        return AmountSplitExpense(
            **common,
            split_values={name: to_cents(value) for name, value in split_values.items()},
        )
    return PercentageSplitExpense(**common, split_values=split_values)


def get_transaction(state: GroupState, transaction_id: str) -> Transaction:
    """Returns the expense or payment with this id or raises TRANSACTION_NOT_FOUND (404)."""
    for txn in state.transactions:
        if txn.id == transaction_id:
            return txn
    raise AppError(
        ErrorCode.TRANSACTION_NOT_FOUND,
        f"Transaction {transaction_id} does not exist.",
        404,
    )


def add_expense(state: GroupState, data: dict) -> Expense:
    """Validates and appends a new expense to the history."""
    expense = build_expense(data, state.participants)
    state.transactions.append(expense)
    return expense


def update_expense(state: GroupState, expense_id: str, data: dict) -> Expense:
    """
    Replaces an expense with a re-validated version, keeping its id and its
    position in the history.

    Raises:
        AppError(TRANSACTION_NOT_FOUND, 404)
        AppError(PAYMENT_NOT_EDITABLE, 422) -- the id belongs to a payment.
    """
    current = get_transaction(state, expense_id)
    if isinstance(current, Payment):
        raise AppError(
            ErrorCode.PAYMENT_NOT_EDITABLE,
            "Payments cannot be edited. Remove it and record a new payment.",
            422,
        )

    updated = build_expense(data, state.participants, expense_id=expense_id)
    index = state.transactions.index(current)
    state.transactions[index] = updated
    return updated


def remove_transaction(state: GroupState, transaction_id: str) -> Transaction:
    """Removes an expense or payment from the history and returns it."""
    txn = get_transaction(state, transaction_id)
    state.transactions.remove(txn)
    return txn
