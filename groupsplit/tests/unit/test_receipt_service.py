"""
tests/unit/test_receipt_service.py — Unit tests for receipt_service.

What this file proves:
  - The receipt layout matches the downloaded text format line for line
  - Surcharge lines only appear when non-zero
  - Each split method renders its own detail block
  - All receipts come out newest first, separated by a blank line
  - Download filenames replace whitespace the same way as before

Unit test constraints:
  - No database. No Flask application context.
"""

from __future__ import annotations

from decimal import Decimal

from groupsplit.app.models.transaction import (
    AmountSplitExpense,
    EvenSplitExpense,
    ItemizedExpense,
    Payment,
    PercentageSplitExpense,
    UnrecognizedExpense,
)
from groupsplit.app.services import receipt_service


RULE = "---------------------------------"


def test_itemized_expense_receipt():
    expense = ItemizedExpense(
        id="i1",
        description="Dinner",
        expense_type="Food",
        amount=Decimal("33.00"),
        base_amount=Decimal("30.00"),
        tips=Decimal("3.00"),
        paid_by="Alice",
        date="2024-05-01",
        itemized={"Alice": Decimal("10.00"), "Bob": Decimal("20.00")},
    )

    assert receipt_service.format_receipt(expense) == (
        f"{RULE}\n"
        "        Expense Receipt\n"
        f"{RULE}\n"
        "Description: Dinner\n"
        "Type: Food\n"
        "Total Amount: $33.00\n"
        "  - Base Amount: $30.00\n"
        "  - Tips: $3.00\n"
        "Date: 2024-05-01\n"
        "Paid by: Alice\n"
        "\n"
        "Details:\n"
        "Split by item:\n"
        "  - Alice: $10.00\n"
        "  - Bob: $20.00\n"
        f"{RULE}\n"
    )


def test_payment_receipt():
    payment = Payment(
        id="p1",
        description="Payment from Bob to Alice",
        amount=Decimal("30"),
        paid_by="Bob",
        recipient="Alice",
        date="2024-05-02",
        payment_method="Venmo",
        notes="thanks!",
    )

    assert receipt_service.format_receipt(payment) == (
        f"{RULE}\n"
        "        Payment Receipt\n"
        f"{RULE}\n"
        "Description: Payment from Bob to Alice\n"
        "Total Amount: $30.00\n"
        "Date: 2024-05-02\n"
        "Payment Method: Venmo\n"
        "Notes: thanks!\n"
        "\n"
        "Details:\n"
        "Payment from Bob to Alice\n"
        f"{RULE}\n"
    )


def test_all_surcharge_lines():
    expense = EvenSplitExpense(
        id="e1",
        description="Hotel",
        amount=Decimal("115.00"),
        base_amount=Decimal("100.00"),
        tips=Decimal("1.00"),
        tax=Decimal("8.00"),
        service_charge=Decimal("5.00"),
        other_charges=Decimal("1.00"),
        paid_by="Alice",
        split_between=("Alice",),
    )
    text = receipt_service.format_receipt(expense)

    assert "  - Tips: $1.00\n  - Tax: $8.00\n  - Service Charge: $5.00\n  - Other: $1.00\n" in text


def test_even_split_shows_per_head_share():
    expense = EvenSplitExpense(
        id="e2", description="Taxi", amount=Decimal("10.00"), paid_by="Alice",
        split_between=("Alice", "Bob", "Carol"),
    )
    text = receipt_service.format_receipt(expense)
    assert "Split evenly with:\n  - Alice: $3.33\n  - Bob: $3.33\n  - Carol: $3.33\n" in text


def test_amount_and_percentage_details():
    by_amount = AmountSplitExpense(
        id="a1", amount=Decimal("20"), paid_by="Alice",
        split_values={"Bob": Decimal("12.5"), "Carol": Decimal("7.5")},
    )
    by_percent = PercentageSplitExpense(
        id="p1", amount=Decimal("20"), paid_by="Alice",
        split_values={"Bob": Decimal("62.50"), "Carol": Decimal("37.5")},
    )

    assert "Split by amount:\n  - Bob: $12.50\n  - Carol: $7.50\n" in (
        receipt_service.format_receipt(by_amount)
    )
    assert "Split by percentage:\n  - Bob: 62.5%\n  - Carol: 37.5%\n" in (
        receipt_service.format_receipt(by_percent)
    )


def test_base_amount_falls_back_to_total():
    expense = EvenSplitExpense(
        id="e3", amount=Decimal("40"), paid_by="Alice", split_between=("Alice", "Bob"),
    )
    assert "  - Base Amount: $40.00\n" in receipt_service.format_receipt(expense)


def test_unknown_method_details_unavailable():
    expense = UnrecognizedExpense(
        id="u1", amount=Decimal("5"), paid_by="Alice", raw_split_method="shares",
    )
    assert "Details:\nSplit details unavailable\n" in receipt_service.format_receipt(expense)


def test_all_receipts_newest_first():
    older = EvenSplitExpense(
        id="old", description="Older", amount=Decimal("1"), paid_by="Alice",
        date="2024-01-01", split_between=("Alice",),
    )
    newer = EvenSplitExpense(
        id="new", description="Newer", amount=Decimal("1"), paid_by="Alice",
        date="2024-02-01", split_between=("Alice",),
    )
    text = receipt_service.format_all_receipts([older, newer])

    assert text.index("Description: Newer") < text.index("Description: Older")
    assert text == (
        receipt_service.format_receipt(newer) + "\n\n" + receipt_service.format_receipt(older)
    )


def test_filenames():
    assert receipt_service.receipts_filename("Weekend  Trip 2024") == "all-receipts-Weekend-Trip-2024.txt"
    assert receipt_service.export_filename("Weekend Trip") == "Weekend_Trip-data.json"
    assert receipt_service.receipt_filename("Late dinner") == "receipt-Late-dinner.txt"
