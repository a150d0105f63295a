"""
services/balance_service.py — Balance computation and the views built on it.

This file is the SINGLE SOURCE OF TRUTH for who owes whom. The canonical
computation is compute_debts(); every other function here either calls it
or reads its output. Do not re-derive balances anywhere else.

Layer rules:
  - No Flask imports. No current_app, request, g, or HTTP knowledge.
  - Receives participants and transactions as plain model objects.
  - Returns model objects, plain dicts and lists.
  - Fully unit-testable without a Flask app or database.

compute_debts() guarantees:
  - At most one Debt per unordered pair of participants, never both A→B
    and B→A.
  - No Debt whose unrounded net is within ±epsilon.
  - Output ordered by roster position, independent of transaction order.
  - Never raises on malformed transactions; they contribute nothing.
"""

from __future__ import annotations

from collections import defaultdict
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Sequence

from groupsplit.app.models.debt import Debt
from groupsplit.app.models.group import GroupState
from groupsplit.app.models.participant import Participant
from groupsplit.app.models.transaction import ZERO, Expense, Payment, Transaction
from groupsplit.app.services.share_allocator import allocate_shares


SETTLEMENT_EPSILON = Decimal("0.01")
_CENT = Decimal("0.01")


def _to_cents(value: Decimal) -> Decimal:
    return value.quantize(_CENT, rounding=ROUND_HALF_UP)


def _roster_names(participants: Iterable[Participant | str]) -> list[str]:
    """Accepts Participant objects or bare names; returns names in roster order."""
    return [p if isinstance(p, str) else p.name for p in participants]


# ── Core algorithm ─────────────────────────────────────────────────────────

def _contributes(txn: Transaction) -> bool:
    """True when a record can move a balance: it has an amount and a payer,
    and a payment also has a recipient."""
    if not txn.amount or not txn.paid_by:
        return False
    return not isinstance(txn, Payment) or bool(txn.recipient)


def build_ledger(
        names: Sequence[str],
        transactions: Iterable[Transaction],
) -> dict[tuple[str, str], Decimal]:
    """
    Accumulates the pairwise ledger: ledger[(borrower, creditor)] is the gross
    amount borrower owes creditor before netting.

    Expense:  every non-payer share adds to ledger[(name, paid_by)].
    Payment:  the amount is subtracted from ledger[(sender, recipient)].

    Skipped without error:
      - transactions with a zero/missing amount or no payer
      - payments with no recipient
      - any entry naming someone who is not in the roster
    """
    roster = set(names)
    ledger: dict[tuple[str, str], Decimal] = defaultdict(Decimal)

    for txn in transactions:
        if not _contributes(txn):
            continue

        if isinstance(txn, Payment):
            if txn.paid_by in roster and txn.recipient in roster:
                ledger[(txn.paid_by, txn.recipient)] -= txn.amount
            continue

        if txn.paid_by not in roster:
            continue

        for borrower, share in allocate_shares(txn).items():
            # A person never owes themself.
            if borrower == txn.paid_by or borrower not in roster:
                continue
            ledger[(borrower, txn.paid_by)] += share

    return ledger


def compute_debts(
        participants: Iterable[Participant | str],
        transactions: Iterable[Transaction],
        epsilon: Decimal = SETTLEMENT_EPSILON,
) -> list[Debt]:
    """
    Canonical balance computation: reduces the transaction history to net
    pairwise debts.

    Algorithm:
      1. Fewer than two participants → no pairwise relation, return [].
      2. Build the (borrower, creditor) ledger from every transaction.
      3. For every pair (p1, p2) with p1 before p2 in roster order:
           net = ledger[p1][p2] - ledger[p2][p1]
           net >  epsilon → Debt(p1 → p2, net)
           net < -epsilon → Debt(p2 → p1, -net)
           otherwise      → settled, nothing emitted

    The threshold test uses the unrounded net. Emitted amounts are rounded
    to cents, which keeps the output identical for any ordering of the same
    transactions.
    """
    names = _roster_names(participants)
    if len(names) < 2:
        return []

    ledger = build_ledger(names, transactions)

    debts: list[Debt] = []
    for i, p1 in enumerate(names):
        for p2 in names[i + 1:]:
            net = ledger.get((p1, p2), ZERO) - ledger.get((p2, p1), ZERO)
            if net > epsilon:
                debts.append(Debt(from_name=p1, to_name=p2, amount=_to_cents(net)))
            elif net < -epsilon:
                debts.append(Debt(from_name=p2, to_name=p1, amount=_to_cents(-net)))

    return debts


# ── Derived views ──────────────────────────────────────────────────────────

def debt_breakdown(
        from_name: str,
        to_name: str,
        transactions: Iterable[Transaction],
) -> dict:
    """
    Explains one pairwise debt by listing the history between the two people.

    Entries, in history order:
      - "debt"   +share   expense paid by the creditor that the debtor shares in
      - "credit" -share   expense paid by the debtor that the creditor shares in
      - "credit" -amount  payment from the debtor to the creditor
      - "debt"   +amount  payment from the creditor to the debtor

    Returns {"from", "to", "transactions": [...], "net_owed"}.
    net_owed is unrounded and matches the engine's pairwise net for the pair:
    records build_ledger skips are skipped here too.
    """
    entries: list[dict] = []
    net_owed = ZERO

    for txn in transactions:
        if not _contributes(txn):
            continue

        if isinstance(txn, Payment):
            if txn.paid_by == from_name and txn.recipient == to_name:
                entries.append({
                    "id": txn.id,
                    "description": f"Payment you made to {to_name}",
                    "amount": -txn.amount,
                    "type": "credit",
                    "date": txn.date,
                })
                net_owed -= txn.amount
            elif txn.paid_by == to_name and txn.recipient == from_name:
                entries.append({
                    "id": txn.id,
                    "description": f"Payment from {to_name} to you",
                    "amount": txn.amount,
                    "type": "debt",
                    "date": txn.date,
                })
                net_owed += txn.amount
            continue

        if txn.paid_by not in (from_name, to_name):
            continue

        shares = allocate_shares(txn)

        if txn.paid_by == to_name:
            debtor_share = shares.get(from_name, ZERO)
            if debtor_share > 0:
                entries.append({
                    "id": txn.id,
                    "description": f'For "{txn.description}"',
                    "amount": debtor_share,
                    "type": "debt",
                    "date": txn.date,
                })
                net_owed += debtor_share
        else:
            creditor_share = shares.get(to_name, ZERO)
            if creditor_share > 0:
                entries.append({
                    "id": txn.id,
                    "description": f'"{txn.description}" (You paid for {to_name})',
                    "amount": -creditor_share,
                    "type": "credit",
                    "date": txn.date,
                })
                net_owed -= creditor_share

    return {
        "from": from_name,
        "to": to_name,
        "transactions": entries,
        "net_owed": net_owed,
    }


def group_totals(
        participants: Iterable[Participant | str],
        transactions: Iterable[Transaction],
        debts: Iterable[Debt],
) -> dict:
    """
    Spending overview for the whole group. Payments are not spending and
    are left out of every figure except `net`, which comes from the debts.

    Returns:
      {
        "totals_by_person": {name: {"paid": Decimal, "net": Decimal}},
        "group_total", "number_of_expenses", "average_expense" (to the cent),
        "highest_expense", "lowest_expense": Expense | None,
      }
    """
    names = _roster_names(participants)
    totals = {name: {"paid": ZERO, "net": ZERO} for name in names}

    expenses = [t for t in transactions if isinstance(t, Expense)]
    group_total = ZERO
    highest: Expense | None = None
    lowest: Expense | None = None

    for expense in expenses:
        group_total += expense.amount
        if expense.paid_by in totals:
            totals[expense.paid_by]["paid"] += expense.amount
        if highest is None or expense.amount > highest.amount:
            highest = expense
        if lowest is None or expense.amount < lowest.amount:
            lowest = expense

    for debt in debts:
        if debt.to_name in totals:
            totals[debt.to_name]["net"] += debt.amount
        if debt.from_name in totals:
            totals[debt.from_name]["net"] -= debt.amount

    average = _to_cents(group_total / len(expenses)) if expenses else ZERO

    return {
        "totals_by_person": totals,
        "group_total": group_total,
        "number_of_expenses": len(expenses),
        "highest_expense": highest,
        "lowest_expense": lowest,
        "average_expense": average,
    }


def participant_summary(
        name: str,
        transactions: Iterable[Transaction],
        debts: Iterable[Debt],
) -> dict:
    """Totals for one person: what they fronted, and what is owed each way."""
    debts = list(debts)
    total_paid = sum(
        (t.amount for t in transactions if isinstance(t, Expense) and t.paid_by == name),
        ZERO,
    )
    owed_to = sum((d.amount for d in debts if d.to_name == name), ZERO)
    owed_by = sum((d.amount for d in debts if d.from_name == name), ZERO)

    return {
        "name": name,
        "total_paid": total_paid,
        "total_owed_to_participant": owed_to,
        "total_owed_by_participant": owed_by,
    }


def outstanding_between(
        debtor: str,
        creditor: str,
        debts: Iterable[Debt],
) -> Decimal:
    """Amount debtor currently owes creditor, or 0 when the pair is settled or reversed."""
    for debt in debts:
        if debt.from_name == debtor and debt.to_name == creditor:
            return debt.amount
    return ZERO


def get_balance_response(
        state: GroupState,
        epsilon: Decimal = SETTLEMENT_EPSILON,
) -> dict:
    """
    Builds the payload for GET /balances.

    Debts keep roster order; `by_debtor` groups them for a settle-up view.
    Amounts are serialised as strings by the host's JSON provider.
    """
    debts = compute_debts(state.participants, state.transactions, epsilon)

    by_debtor: dict[str, list[dict]] = {}
    for debt in debts:
        by_debtor.setdefault(debt.from_name, []).append(debt.to_dict())

    return {
        "group": state.name,
        "debts": [d.to_dict() for d in debts],
        "by_debtor": by_debtor,
        "settled": not debts,
    }
