"""
routes/payments.py — Payment route handler.

Layer rules:
  - Parse, validate, call ONE service, save, commit, return envelope.
  - Overpayment warnings from the service are passed through as-is.

Endpoints (url_prefix=/api/v1):
  POST /payments → 201  record a payment (may carry an OVERPAYMENT warning)

Payments are listed, fetched and removed through /expenses like any other
history entry; they cannot be edited.
"""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from groupsplit.app.extensions import db
from groupsplit.app.routes.expenses import serialize_transaction
from groupsplit.app.schemas.payment_schema import CreatePaymentSchema
from groupsplit.app.services import payment_service, snapshot_service

payments_bp = Blueprint("payments", __name__)


@payments_bp.route("/payments", methods=["POST"])
def create_payment():
    """
    POST /payments — Record a direct payment from one participant to another.

    Body: {"from": "Bob", "to": "Alice", "amount": "30.00", ...}
    """
    data = CreatePaymentSchema().load(request.get_json(force=True) or {})
    key = current_app.config["SNAPSHOT_KEY"]
    state = snapshot_service.require_state(db.session, key)

    payment, warnings = payment_service.record_payment(
        state,
        data,
        epsilon=current_app.config["SETTLEMENT_EPSILON"],
    )
    snapshot_service.save_state(state, db.session, key)
    db.session.commit()

    current_app.logger.info(
        "Payment %s recorded: %s -> %s (%s)",
        payment.id,
        payment.paid_by,
        payment.recipient,
        payment.amount,
    )
    return jsonify({"data": serialize_transaction(payment), "warnings": warnings}), 201
