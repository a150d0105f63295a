"""
services/receipt_service.py — Plain-text receipts.

Pure presentation. The layout is kept byte-compatible with the receipts the
browser app used to download, so people who archive them see no change:

    ---------------------------------
            Expense Receipt
    ---------------------------------
    Description: Dinner
    Type: Food
    Total Amount: $33.00
      - Base Amount: $30.00
      - Tips: $3.00
    Date: 2024-05-01
    Paid by: Alice

    Details:
    Split by item:
      - Alice: $10.00
      - Bob: $20.00
    ---------------------------------

Split details list the stored split inputs (amounts, percentages, item
costs); only the evenly method shows a computed share.
"""

from __future__ import annotations

import re
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from groupsplit.app.models.transaction import (
    AmountSplitExpense,
    EvenSplitExpense,
    Expense,
    ItemizedExpense,
    Payment,
    PercentageSplitExpense,
    Transaction,
)
from groupsplit.app.services.share_allocator import allocate_shares


_RULE = "---------------------------------"
_CENT = Decimal("0.01")
_WHITESPACE = re.compile(r"\s+")


def _money(value: Decimal) -> str:
    return f"${value.quantize(_CENT, rounding=ROUND_HALF_UP)}"


def _plain_number(value: Decimal) -> str:
    """50 -> "50", 33.50 -> "33.5"; never scientific notation."""
    return format(value.normalize(), "f")


def _split_detail(txn: Transaction) -> str:
    if isinstance(txn, Payment):
        return f"Payment from {txn.paid_by} to {txn.recipient}"

    if isinstance(txn, EvenSplitExpense):
        shares = allocate_shares(txn)
        lines = [f"  - {name}: {_money(share)}" for name, share in shares.items()]
        return "Split evenly with:\n" + "\n".join(lines)

    if isinstance(txn, AmountSplitExpense):
        lines = [f"  - {name}: {_money(value)}" for name, value in txn.split_values.items()]
        return "Split by amount:\n" + "\n".join(lines)

    if isinstance(txn, PercentageSplitExpense):
        lines = [f"  - {name}: {_plain_number(value)}%" for name, value in txn.split_values.items()]
        return "Split by percentage:\n" + "\n".join(lines)

    if isinstance(txn, ItemizedExpense):
        lines = [f"  - {name}: {_money(value)}" for name, value in txn.itemized.items()]
        return "Split by item:\n" + "\n".join(lines)

    return "Split details unavailable"


# ── Public API ─────────────────────────────────────────────────────────────

def format_receipt(txn: Transaction) -> str:
    """Renders one expense or payment. Always ends with a newline."""
    is_payment = isinstance(txn, Payment)
    lines = [
        _RULE,
        f"        {'Payment' if is_payment else 'Expense'} Receipt",
        _RULE,
        f"Description: {txn.description}",
    ]

    if isinstance(txn, Expense):
        if txn.expense_type:
            lines.append(f"Type: {txn.expense_type}")
        lines.append(f"Total Amount: {_money(txn.amount)}")
        lines.append(f"  - Base Amount: {_money(txn.base_amount or txn.amount)}")
        for label, value in (
                ("Tips", txn.tips),
                ("Tax", txn.tax),
                ("Service Charge", txn.service_charge),
                ("Other", txn.other_charges),
        ):
            if value:
                lines.append(f"  - {label}: {_money(value)}")
    else:
        lines.append(f"Total Amount: {_money(txn.amount)}")

    lines.append(f"Date: {txn.date}")
    if is_payment:
        lines.append(f"Payment Method: {txn.payment_method}")
    else:
        lines.append(f"Paid by: {txn.paid_by}")
    if txn.notes:
        lines.append(f"Notes: {txn.notes}")

    lines.append("")
    lines.append("Details:")
    lines.append(_split_detail(txn))
    lines.append(_RULE)
    return "\n".join(lines) + "\n"


def format_all_receipts(transactions: Iterable[Transaction]) -> str:
    """Every receipt, newest date first, separated by a blank line."""
    ordered = sorted(transactions, key=lambda t: t.date, reverse=True)
    return "\n\n".join(format_receipt(t) for t in ordered)


# ── Download filenames ─────────────────────────────────────────────────────

def receipt_filename(description: str) -> str:
    return f"receipt-{_WHITESPACE.sub('-', description)}.txt"


def receipts_filename(group_name: str) -> str:
    return f"all-receipts-{_WHITESPACE.sub('-', group_name)}.txt"


def export_filename(group_name: str) -> str:
    return f"{_WHITESPACE.sub('_', group_name)}-data.json"
