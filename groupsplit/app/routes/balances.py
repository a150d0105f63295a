"""
routes/balances.py — Balance route handlers.

Layer rules:
  - Parse query params, call ONE service, return envelope.
  - Read-only: nothing here saves. Balances are always recomputed from the
    full history, never stored.

Endpoints (url_prefix=/api/v1):
  GET /balances                        → 200  net pairwise debts
  GET /balances/breakdown?from=&to=    → 200  history behind one debt
  GET /totals                          → 200  spending overview
"""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from groupsplit.app.extensions import db
from groupsplit.app.routes.expenses import serialize_transaction
from groupsplit.app.schemas.group_schema import DebtBreakdownQuerySchema
from groupsplit.app.services import balance_service, group_service, snapshot_service

balances_bp = Blueprint("balances", __name__)


def _load_group():
    return snapshot_service.require_state(db.session, current_app.config["SNAPSHOT_KEY"])


@balances_bp.route("/balances", methods=["GET"])
def get_balances():
    """
    GET /balances

    Debts come out in roster order: for each pair, the person listed first
    in the group appears first. A group with fewer than two participants,
    or whose history nets to zero, returns an empty list and settled=true.
    """
    state = _load_group()
    result = balance_service.get_balance_response(
        state,
        epsilon=current_app.config["SETTLEMENT_EPSILON"],
    )
    return jsonify({"data": result, "warnings": []}), 200


@balances_bp.route("/balances/breakdown", methods=["GET"])
def get_debt_breakdown():
    """GET /balances/breakdown?from=Bob&to=Alice — Why Bob owes Alice this amount."""
    query = DebtBreakdownQuerySchema().load(request.args.to_dict())
    state = _load_group()
    debtor = group_service.get_participant(state, query["debtor"].strip())
    creditor = group_service.get_participant(state, query["creditor"].strip())

    result = balance_service.debt_breakdown(debtor.name, creditor.name, state.transactions)
    return jsonify({"data": result, "warnings": []}), 200


@balances_bp.route("/totals", methods=["GET"])
def get_totals():
    """GET /totals — Group spending overview. Payments are not spending."""
    state = _load_group()
    debts = balance_service.compute_debts(
        state.participants,
        state.transactions,
        current_app.config["SETTLEMENT_EPSILON"],
    )
    totals = balance_service.group_totals(state.participants, state.transactions, debts)

    for key in ("highest_expense", "lowest_expense"):
        if totals[key] is not None:
            totals[key] = serialize_transaction(totals[key])

    return jsonify({"data": totals, "warnings": []}), 200
