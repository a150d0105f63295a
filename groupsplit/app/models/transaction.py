"""
models/transaction.py — Expense and payment records.

A group's history is a list of transactions. Each expense variant carries
only the fields its split method needs; the method tag lives on the class,
not in a free-form field, so "is this field present for this method" never
has to be asked at calculation time.

No business logic. No imports from services or routes.

Key design points:
  - Amounts are Decimal, never float.
  - Records are frozen. Editing an expense replaces the record in the
    group's transaction list; nothing mutates a stored record in place.
  - Every field has a permissive default so a partially-entered record
    loaded from a snapshot still constructs. The share allocator turns
    such records into "no effect" rather than failing.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from decimal import Decimal
from typing import ClassVar, Union


ZERO = Decimal("0")
CENT = Decimal("0.01")


def to_cents(value: Decimal) -> Decimal:
    """
    Pads a money value to two decimal places: 90 -> 90.00, 12.5 -> 12.50.
    Values that already carry finer precision are returned unchanged.
    """
    if value.as_tuple().exponent > -2:
        return value.quantize(CENT)
    return value


# ── Enum / choice definitions ──────────────────────────────────────────────
# Defined here so they can be imported by schemas and services without
# repeating string literals.

class SplitMethod(str, enum.Enum):
    EVENLY     = "evenly"
    AMOUNT     = "amount"
    PERCENTAGE = "percentage"
    ITEM       = "item"


EXPENSE_TYPES: tuple[str, ...] = (
    "General",
    "Food",
    "Transport",
    "Groceries",
    "Utilities",
    "Entertainment",
    "Lodging",
    "Airplane",
    "Lending",
)
DEFAULT_EXPENSE_TYPE = "General"

PAYMENT_METHODS: tuple[str, ...] = ("Cash", "Venmo", "Zelle", "Other")
DEFAULT_PAYMENT_METHOD = "Cash"


# ── Records ────────────────────────────────────────────────────────────────

@dataclass(frozen=True, kw_only=True)
class Transaction:
    """Fields shared by every entry in a group's history."""

    id: str
    amount: Decimal = ZERO
    paid_by: str = ""
    date: str = ""          # ISO date, YYYY-MM-DD
    description: str = ""
    notes: str = ""

    is_payment: ClassVar[bool] = False

    @property
    def split_names(self) -> tuple[str, ...]:
        return ()

    @property
    def participants_involved(self) -> frozenset[str]:
        """The payer plus everyone the record names on the other side."""
        names = {self.paid_by, *self.split_names}
        names.discard("")
        return frozenset(names)


@dataclass(frozen=True, kw_only=True)
class Expense(Transaction):
    """A shared cost. `amount` is base plus every surcharge."""

    base_amount: Decimal = ZERO
    tips: Decimal = ZERO
    tax: Decimal = ZERO
    service_charge: Decimal = ZERO
    other_charges: Decimal = ZERO
    expense_type: str = DEFAULT_EXPENSE_TYPE

    # split_method is defined by each variant below.

    @property
    def surcharges(self) -> Decimal:
        return self.tips + self.tax + self.service_charge + self.other_charges


@dataclass(frozen=True, kw_only=True)
class EvenSplitExpense(Expense):
    split_between: tuple[str, ...] = ()

    @property
    def split_method(self) -> str:
        return SplitMethod.EVENLY.value

    @property
    def split_names(self) -> tuple[str, ...]:
        return self.split_between


@dataclass(frozen=True, kw_only=True)
class AmountSplitExpense(Expense):
    # name -> exact currency amount owed
    split_values: dict[str, Decimal] = field(default_factory=dict)

    @property
    def split_method(self) -> str:
        return SplitMethod.AMOUNT.value

    @property
    def split_names(self) -> tuple[str, ...]:
        return tuple(self.split_values)


@dataclass(frozen=True, kw_only=True)
class PercentageSplitExpense(Expense):
    # name -> percentage points of `amount`
    split_values: dict[str, Decimal] = field(default_factory=dict)

    @property
    def split_method(self) -> str:
        return SplitMethod.PERCENTAGE.value

    @property
    def split_names(self) -> tuple[str, ...]:
        return tuple(self.split_values)


@dataclass(frozen=True, kw_only=True)
class ItemizedExpense(Expense):
    # name -> that person's item subtotal before surcharges
    itemized: dict[str, Decimal] = field(default_factory=dict)

    @property
    def split_method(self) -> str:
        return SplitMethod.ITEM.value

    @property
    def split_names(self) -> tuple[str, ...]:
        return tuple(self.itemized)


@dataclass(frozen=True, kw_only=True)
class UnrecognizedExpense(Expense):
    """
    A stored expense whose method tag this version does not know.

    Kept so that importing and re-exporting a file does not lose it. It
    allocates no shares, so it has no effect on balances.
    """

    raw_split_method: str = ""
    split_between: tuple[str, ...] = ()

    @property
    def split_method(self) -> str:
        return self.raw_split_method

    @property
    def split_names(self) -> tuple[str, ...]:
        return self.split_between


@dataclass(frozen=True, kw_only=True)
class Payment(Transaction):
    """A direct settlement from `paid_by` (sender) to `recipient`."""

    recipient: str = ""
    payment_method: str = DEFAULT_PAYMENT_METHOD

    is_payment: ClassVar[bool] = True

    @property
    def split_names(self) -> tuple[str, ...]:
        return (self.recipient,) if self.recipient else ()


AnyExpense = Union[
    EvenSplitExpense,
    AmountSplitExpense,
    PercentageSplitExpense,
    ItemizedExpense,
    UnrecognizedExpense,
]
AnyTransaction = Union[AnyExpense, Payment]
