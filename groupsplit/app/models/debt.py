"""
models/debt.py — Net pairwise debt produced by the balance engine.

Derived and ephemeral: debts are recomputed from the full transaction
history on every read and never stored.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class Debt:
    from_name: str   # debtor
    to_name: str     # creditor
    amount: Decimal  # always > settlement epsilon

    def to_dict(self) -> dict:
        return {
            "from":   self.from_name,
            "to":     self.to_name,
            "amount": self.amount,
        }
