"""
routes/expenses.py — Expense, history and receipt route handlers.

Layer rules:
  - Parse, validate, call ONE service, save, commit, return envelope.
  - No business logic. No DB queries beyond the snapshot load/save.
  - serialize_transaction() is a pure data-shape helper — not business logic.
    The other route files reuse it so every endpoint shows the same shape.

Endpoints (url_prefix=/api/v1):
  POST   /expenses                → 201  add expense
  GET    /expenses                → 200  history (?member=&kind=&order=)
  GET    /expenses/:id            → 200  expense or payment + share breakdown
  PUT    /expenses/:id            → 200  replace expense (payments: 422)
  DELETE /expenses/:id            → 200  remove expense or payment
  GET    /expenses/:id/receipt    → 200  text/plain receipt
  GET    /receipts                → 200  all receipts as a .txt attachment
  GET    /search                  → 200  transactions between two people
"""

from __future__ import annotations

from flask import Blueprint, Response, current_app, jsonify, request

from groupsplit.app.errors import AppError, ErrorCode
from groupsplit.app.extensions import db
from groupsplit.app.models.group import GroupState
from groupsplit.app.models.transaction import (
    AmountSplitExpense,
    Expense,
    ItemizedExpense,
    Payment,
    PercentageSplitExpense,
    Transaction,
)
from groupsplit.app.schemas.expense_schema import ExpenseInputSchema
from groupsplit.app.schemas.group_schema import HistoryQuerySchema, SearchQuerySchema
from groupsplit.app.services import (
    expense_service,
    group_service,
    receipt_service,
    snapshot_service,
)
from groupsplit.app.services.share_allocator import share_breakdown

expenses_bp = Blueprint("expenses", __name__)


# ── Serialization helper ───────────────────────────────────────────────────
# Pure data-shaping: no DB access, no logic. Decimals become strings in the
# JSON provider.

def serialize_transaction(txn: Transaction) -> dict:
    """Converts an expense or payment record to a plain dict for JSON output."""
    result = {
        "id": txn.id,
        "kind": "payment" if isinstance(txn, Payment) else "expense",
        "description": txn.description,
        "amount": txn.amount,
        "paid_by": txn.paid_by,
        "date": txn.date,
        "notes": txn.notes,
    }

    if isinstance(txn, Payment):
        result["to"] = txn.recipient
        result["payment_method"] = txn.payment_method
        return result

    if isinstance(txn, Expense):
        result.update({
            "expense_type": txn.expense_type,
            "split_method": txn.split_method,
            "base_amount": txn.base_amount,
            "tips": txn.tips,
            "tax": txn.tax,
            "service_charge": txn.service_charge,
            "other_charges": txn.other_charges,
            "split_between": list(txn.split_names),
            "shares": [line.to_dict() for line in share_breakdown(txn)],
        })
        if isinstance(txn, (AmountSplitExpense, PercentageSplitExpense)):
            result["split_values"] = dict(txn.split_values)
        elif isinstance(txn, ItemizedExpense):
            result["itemized"] = dict(txn.itemized)

    return result


# ── Store helpers ──────────────────────────────────────────────────────────

def _load_group() -> GroupState:
    return snapshot_service.require_state(db.session, current_app.config["SNAPSHOT_KEY"])


def _save_group(state: GroupState) -> None:
    snapshot_service.save_state(state, db.session, current_app.config["SNAPSHOT_KEY"])
    db.session.commit()


def _text_attachment(content: str, filename: str) -> Response:
    return Response(
        content,
        mimetype="text/plain",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# ── Expense routes ─────────────────────────────────────────────────────────

@expenses_bp.route("/expenses", methods=["POST"])
def create_expense():
    """
    POST /expenses — Record a new expense.
    Handles every split method; the total is base plus surcharges.
    """
    data = ExpenseInputSchema().load(request.get_json(force=True) or {})
    state = _load_group()
    expense = expense_service.add_expense(state, data)
    _save_group(state)
    current_app.logger.info("Expense %s added to group %r", expense.id, state.name)
    return jsonify({"data": serialize_transaction(expense), "warnings": []}), 201


@expenses_bp.route("/expenses", methods=["GET"])
def list_expenses():
    """GET /expenses — History, newest first by default."""
    query = HistoryQuerySchema().load(request.args.to_dict())
    state = _load_group()
    transactions = group_service.list_transactions(
        state,
        member=query["member"],
        kind=query["kind"],
        order=query["order"],
    )
    return jsonify({
        "data": [serialize_transaction(t) for t in transactions],
        "warnings": [],
    }), 200


@expenses_bp.route("/expenses/<transaction_id>", methods=["GET"])
def get_expense(transaction_id: str):
    """GET /expenses/:id — One expense or payment, with its share breakdown."""
    state = _load_group()
    txn = expense_service.get_transaction(state, transaction_id)
    return jsonify({"data": serialize_transaction(txn), "warnings": []}), 200


@expenses_bp.route("/expenses/<transaction_id>", methods=["PUT"])
def update_expense(transaction_id: str):
    """
    PUT /expenses/:id — Full replacement, validated exactly like a new expense.
    Keeps the id and the position in the history. Payments cannot be edited.
    """
    data = ExpenseInputSchema().load(request.get_json(force=True) or {})
    state = _load_group()
    expense = expense_service.update_expense(state, transaction_id, data)
    _save_group(state)
    current_app.logger.info("Expense %s updated in group %r", expense.id, state.name)
    return jsonify({"data": serialize_transaction(expense), "warnings": []}), 200


@expenses_bp.route("/expenses/<transaction_id>", methods=["DELETE"])
def delete_expense(transaction_id: str):
    """DELETE /expenses/:id — Removes an expense or a payment from the history."""
    state = _load_group()
    removed = expense_service.remove_transaction(state, transaction_id)
    _save_group(state)
    current_app.logger.info("Transaction %s removed from group %r", removed.id, state.name)
    return jsonify({
        "data": {
            "deleted": True,
            "id": removed.id,
        },
        "warnings": [],
    }), 200


# ── Receipts ───────────────────────────────────────────────────────────────

@expenses_bp.route("/expenses/<transaction_id>/receipt", methods=["GET"])
def get_receipt(transaction_id: str):
    """GET /expenses/:id/receipt — Plain-text receipt for one transaction."""
    state = _load_group()
    txn = expense_service.get_transaction(state, transaction_id)
    return _text_attachment(
        receipt_service.format_receipt(txn),
        receipt_service.receipt_filename(txn.description),
    )


@expenses_bp.route("/receipts", methods=["GET"])
def download_receipts():
    """GET /receipts — Every receipt in one file, newest first."""
    state = _load_group()
    if not state.transactions:
        raise AppError(
            ErrorCode.NO_TRANSACTIONS,
            "No expenses to download.",
            422,
        )
    return _text_attachment(
        receipt_service.format_all_receipts(state.transactions),
        receipt_service.receipts_filename(state.name),
    )


# ── Search ─────────────────────────────────────────────────────────────────

@expenses_bp.route("/search", methods=["GET"])
def search_transactions():
    """GET /search?p1=&p2= — Transactions involving both people, newest first."""
    query = SearchQuerySchema().load(request.args.to_dict())
    state = _load_group()
    matches = group_service.search_between(state, query["p1"], query["p2"])
    return jsonify({
        "data": [serialize_transaction(t) for t in matches],
        "warnings": [],
    }), 200
