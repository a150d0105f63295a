"""
schemas/snapshot_schema.py — The persisted group document.

This is the one structural contract kept for compatibility: the same JSON
document is written to the local store after every change and handed out
by GET /group/export, and any such file can be loaded back through
POST /group/import.

    {
      "name": "Weekend Trip",
      "participants": [{"id": "...", "name": "Alice"}, ...],
      "expenses": [
        {"id", "description", "amount", "baseAmount", "tips", "tax",
         "serviceCharge", "otherCharges", "paidBy", "date", "notes",
         "splitMethod", "splitBetween", "splitValues", "itemized",
         "expenseType"},
        {"isPayment": true, "id", "description", "amount", "paidBy",
         "splitMethod", "splitBetween": [recipient], "date",
         "paymentMethod", "notes"},
        ...
      ]
    }

Loading is deliberately permissive inside a record: missing numbers become
0, missing names become "", an unknown splitMethod becomes an
UnrecognizedExpense. Such records are kept and simply have no effect on
balances. The top level is strict: name, participants and expenses must
all be present.

Numbers are written as JSON numbers (not strings) so exported files keep
the shape the browser app reads; numeric strings are accepted
on load. Money fields are padded back to cents on load (33 -> 33.00), so a
stored expense reads the same before and after a reload. Percentages are
left as written.

Schemas here inherit from marshmallow.Schema and need no app context
(see extensions.py).
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from marshmallow import EXCLUDE, Schema, fields, post_load, pre_dump, validate

from groupsplit.app.models.group import GroupState
from groupsplit.app.models.participant import Participant
from groupsplit.app.models.transaction import (
    DEFAULT_EXPENSE_TYPE,
    DEFAULT_PAYMENT_METHOD,
    ZERO,
    AmountSplitExpense,
    EvenSplitExpense,
    ItemizedExpense,
    Payment,
    PercentageSplitExpense,
    SplitMethod,
    Transaction,
    UnrecognizedExpense,
    to_cents,
)


class SnapshotNumber(fields.Decimal):
    """Decimal on load; plain JSON number on dump (int when integral)."""

    def _serialize(self, value, attr, obj, **kwargs):
        if value is None:
            return None
        if value == value.to_integral_value():
            return int(value)
        return float(value)


def _new_id() -> str:
    return str(uuid.uuid4())


def _money(value: Decimal | None) -> Decimal:
    return to_cents(ZERO if value is None else value)


def _number_map(value: dict | None) -> dict[str, Decimal]:
    return {name: amount for name, amount in (value or {}).items() if amount is not None}


def _money_map(value: dict | None) -> dict[str, Decimal]:
    return {name: to_cents(amount) for name, amount in _number_map(value).items()}


class ParticipantSchema(Schema):

    class Meta:
        unknown = EXCLUDE

    id = fields.Str(load_default=_new_id)
    name = fields.Str(required=True, validate=validate.Length(min=1))

    @post_load
    def make_participant(self, data: dict, **kwargs) -> Participant:
        return Participant(id=data["id"], name=data["name"])


class TransactionRecordSchema(Schema):
    """One entry of the `expenses` array: an expense or, with isPayment, a payment."""

    class Meta:
        unknown = EXCLUDE

    id = fields.Str(load_default=_new_id)
    is_payment = fields.Bool(data_key="isPayment", load_default=False, allow_none=True)
    description = fields.Str(load_default="", allow_none=True)
    amount = SnapshotNumber(load_default=None, allow_none=True)
    base_amount = SnapshotNumber(data_key="baseAmount", load_default=None, allow_none=True)
    tips = SnapshotNumber(load_default=None, allow_none=True)
    tax = SnapshotNumber(load_default=None, allow_none=True)
    service_charge = SnapshotNumber(data_key="serviceCharge", load_default=None, allow_none=True)
    other_charges = SnapshotNumber(data_key="otherCharges", load_default=None, allow_none=True)
    paid_by = fields.Str(data_key="paidBy", load_default="", allow_none=True)
    date = fields.Str(load_default="", allow_none=True)
    notes = fields.Str(load_default="", allow_none=True)
    split_method = fields.Str(data_key="splitMethod", load_default="", allow_none=True)
    split_between = fields.List(
        fields.Str(), data_key="splitBetween", load_default=None, allow_none=True,
    )
    split_values = fields.Dict(
        keys=fields.Str(),
        values=SnapshotNumber(allow_none=True),
        data_key="splitValues",
        load_default=None,
        allow_none=True,
    )
    itemized = fields.Dict(
        keys=fields.Str(),
        values=SnapshotNumber(allow_none=True),
        load_default=None,
        allow_none=True,
    )
    expense_type = fields.Str(data_key="expenseType", load_default=None, allow_none=True)
    payment_method = fields.Str(data_key="paymentMethod", load_default=None, allow_none=True)

    # ── dump: model → flat record ──────────────────────────────────────────

    @pre_dump
    def flatten(self, txn: Transaction, **kwargs) -> dict:
        record = {
            "id": txn.id,
            "description": txn.description,
            "amount": txn.amount,
            "paid_by": txn.paid_by,
            "date": txn.date,
            "notes": txn.notes,
        }

        if isinstance(txn, Payment):
            record.update({
                "is_payment": True,
                # Browser files tag payments 'evenly' with one recipient.
                "split_method": SplitMethod.EVENLY.value,
                "split_between": [txn.recipient] if txn.recipient else [],
                "payment_method": txn.payment_method,
            })
            return record

        record.update({
            "base_amount": txn.base_amount,
            "tips": txn.tips,
            "tax": txn.tax,
            "service_charge": txn.service_charge,
            "other_charges": txn.other_charges,
            "expense_type": txn.expense_type,
            "split_method": txn.split_method,
            "split_between": list(txn.split_names),
        })
        if isinstance(txn, (AmountSplitExpense, PercentageSplitExpense)):
            record["split_values"] = dict(txn.split_values)
        elif isinstance(txn, ItemizedExpense):
            record["itemized"] = dict(txn.itemized)
        return record

    # ── load: flat record → model ──────────────────────────────────────────

    @post_load
    def make_transaction(self, data: dict, **kwargs) -> Transaction:
        common = {
            "id": data["id"],
            "amount": _money(data.get("amount")),
            "paid_by": data.get("paid_by") or "",
            "date": data.get("date") or "",
            "description": data.get("description") or "",
            "notes": data.get("notes") or "",
        }
        split_between = tuple(data.get("split_between") or ())

        if data.get("is_payment"):
            return Payment(
                **common,
                recipient=split_between[0] if split_between else "",
                payment_method=data.get("payment_method") or DEFAULT_PAYMENT_METHOD,
            )

        expense_fields = {
            **common,
            "base_amount": _money(data.get("base_amount")),
            "tips": _money(data.get("tips")),
            "tax": _money(data.get("tax")),
            "service_charge": _money(data.get("service_charge")),
            "other_charges": _money(data.get("other_charges")),
            "expense_type": data.get("expense_type") or DEFAULT_EXPENSE_TYPE,
        }
        method = data.get("split_method") or ""

        if method == SplitMethod.EVENLY.value:
            return EvenSplitExpense(**expense_fields, split_between=split_between)
        if method == SplitMethod.AMOUNT.value:
            return AmountSplitExpense(
                **expense_fields, split_values=_money_map(data.get("split_values")),
            )
        if method == SplitMethod.PERCENTAGE.value:
            return PercentageSplitExpense(
                **expense_fields, split_values=_number_map(data.get("split_values")),
            )
        if method == SplitMethod.ITEM.value:
            return ItemizedExpense(
                **expense_fields, itemized=_money_map(data.get("itemized")),
            )
        return UnrecognizedExpense(
            **expense_fields, raw_split_method=method, split_between=split_between,
        )


class GroupSnapshotSchema(Schema):
    """Top-level document. All three keys are required."""

    class Meta:
        unknown = EXCLUDE

    name = fields.Str(required=True, validate=validate.Length(min=1))
    participants = fields.List(fields.Nested(ParticipantSchema), required=True)
    expenses = fields.List(fields.Nested(TransactionRecordSchema), required=True)

    @pre_dump
    def from_state(self, state: GroupState, **kwargs) -> dict:
        return {
            "name": state.name,
            "participants": state.participants,
            "expenses": state.transactions,
        }

    @post_load
    def make_state(self, data: dict, **kwargs) -> GroupState:
        return GroupState(
            name=data["name"],
            participants=list(data["participants"]),
            transactions=list(data["expenses"]),
        )
