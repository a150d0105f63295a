"""
services/share_allocator.py — Per-expense share allocation.

Given ONE expense, returns how much each person named in it owes the payer.
This is the only place split-method semantics are defined; the balance
engine, the debt breakdown and the receipts all go through it.

Rules per method:
  evenly      share = amount / len(split_between)
  amount      share = split_values[name], taken literally
  percentage  share = amount * split_values[name] / 100
  item        base_total = sum(itemized)
              extras     = amount - base_total
              share      = itemized[name] + extras * itemized[name] / base_total
              (proportion is 0 when base_total is 0)

The allocator performs no reconciliation check. Amount and percentage
totals are validated when an expense is created (expense_service.py); by
the time a record reaches here it is trusted. A record with no usable data
(empty split_between, no split_values, no itemized entries, a payment, an
unknown method) allocates nothing rather than raising.

Layer rules:
  - No Flask imports. No I/O. Pure functions over model records.
  - Shares are unrounded Decimals; rounding is a presentation concern.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from groupsplit.app.models.transaction import (
    ZERO,
    AmountSplitExpense,
    EvenSplitExpense,
    ItemizedExpense,
    PercentageSplitExpense,
    Transaction,
)


_HUNDRED = Decimal("100")


# ── Private helpers ────────────────────────────────────────────────────────

def _even_shares(expense: EvenSplitExpense) -> dict[str, Decimal]:
    if not expense.split_between:
        return {}
    share = expense.amount / len(expense.split_between)
    return {name: share for name in expense.split_between}


def _amount_shares(expense: AmountSplitExpense) -> dict[str, Decimal]:
    return dict(expense.split_values)


def _percentage_shares(expense: PercentageSplitExpense) -> dict[str, Decimal]:
    return {
        name: expense.amount * percentage / _HUNDRED
        for name, percentage in expense.split_values.items()
    }


def _itemized_extras(expense: ItemizedExpense) -> tuple[Decimal, Decimal]:
    """Returns (base_total, extras) for an itemized expense."""
    base_total = sum(expense.itemized.values(), ZERO)
    return base_total, expense.amount - base_total


def _itemized_shares(expense: ItemizedExpense) -> dict[str, Decimal]:
    base_total, extras = _itemized_extras(expense)
    shares: dict[str, Decimal] = {}
    for name, item_cost in expense.itemized.items():
        # Multiply before dividing: 3 * 10 / 30 is exactly 1.
        extra = extras * item_cost / base_total if base_total > 0 else ZERO
        shares[name] = item_cost + extra
    return shares


# ── Public API ─────────────────────────────────────────────────────────────

def allocate_shares(transaction: Transaction) -> dict[str, Decimal]:
    """
    Returns {name: share} for one expense.

    The payer's own share is included when the payer is named in the split;
    excluding it is the balance engine's job, not the allocator's.

    Payments and unrecognized expenses return an empty mapping.
    """
    if isinstance(transaction, EvenSplitExpense):
        return _even_shares(transaction)
    if isinstance(transaction, AmountSplitExpense):
        return _amount_shares(transaction)
    if isinstance(transaction, PercentageSplitExpense):
        return _percentage_shares(transaction)
    if isinstance(transaction, ItemizedExpense):
        return _itemized_shares(transaction)
    return {}


@dataclass(frozen=True)
class ShareLine:
    """
    One person's row in an expense breakdown.

    `value` is the raw split input for amount/percentage/item methods
    (dollars, percentage points, item cost); for evenly it equals `share`.
    `extras` is only meaningful for itemized expenses.
    """

    name: str
    share: Decimal
    value: Decimal
    extras: Decimal = ZERO

    def to_dict(self) -> dict:
        return {
            "name":   self.name,
            "share":  self.share,
            "value":  self.value,
            "extras": self.extras,
        }


def share_breakdown(transaction: Transaction) -> list[ShareLine]:
    """
    Per-person breakdown of an expense, in the order the record lists names.

    Used by expense detail views and receipts. Shares come from
    allocate_shares(), so a breakdown always agrees with the balances.
    """
    shares = allocate_shares(transaction)

    if isinstance(transaction, ItemizedExpense):
        return [
            ShareLine(
                name=name,
                share=shares[name],
                value=item_cost,
                extras=shares[name] - item_cost,
            )
            for name, item_cost in transaction.itemized.items()
        ]

    if isinstance(transaction, (AmountSplitExpense, PercentageSplitExpense)):
        return [
            ShareLine(name=name, share=shares[name], value=value)
            for name, value in transaction.split_values.items()
        ]

    return [
        ShareLine(name=name, share=share, value=share)
        for name, share in shares.items()
    ]
