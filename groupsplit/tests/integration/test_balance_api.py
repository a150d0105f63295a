"""
tests/integration/test_balance_api.py — Integration tests for payments,
                                        balances and totals.

Endpoints covered:
  POST /payments               → 201 (+ OVERPAYMENT warning) / 422
  GET  /balances               → 200
  GET  /balances/breakdown     → 200 / 400 / 404
  GET  /totals                 → 200

Every balance figure is recomputed from the full history on each request;
these tests go through the HTTP layer only and never look at the store.
"""

from __future__ import annotations

from decimal import Decimal

import pytest

from groupsplit.tests.integration.api_helpers import (
    API,
    make_expense,
    make_payment,
    make_trip,
)


def _balances(client) -> dict:
    resp = client.get(f"{API}/balances")
    assert resp.status_code == 200
    return resp.get_json()["data"]


# ═══════════════════════════════════════════════════════════════════════════
# Balances
# ═══════════════════════════════════════════════════════════════════════════

class TestBalances:

    def test_empty_group_is_settled(self, client):
        make_trip(client)
        data = _balances(client)
        assert data == {"group": "Weekend Trip", "debts": [], "by_debtor": {}, "settled": True}

    def test_even_split(self, client):
        make_trip(client)
        make_expense(client)

        data = _balances(client)
        assert data["debts"] == [
            {"from": "Bob", "to": "Alice", "amount": "30.00"},
            {"from": "Carol", "to": "Alice", "amount": "30.00"},
        ]
        assert data["settled"] is False
        assert list(data["by_debtor"]) == ["Bob", "Carol"]

    def test_cross_debts_are_netted(self, client):
        make_trip(client)
        make_expense(client, paid_by="Alice", base_amount="40.00", split_between=["Alice", "Bob"])
        make_expense(client, paid_by="Bob", base_amount="30.00", split_between=["Alice", "Bob"])

        assert _balances(client)["debts"] == [{"from": "Bob", "to": "Alice", "amount": "5.00"}]

    def test_one_cent_difference_is_settled(self, client):
        make_trip(client, "Alice", "Bob")
        make_expense(client, base_amount="10.02", split_between=["Alice", "Bob"])
        make_expense(client, paid_by="Bob", base_amount="10.00", split_between=["Alice", "Bob"])

        assert _balances(client)["settled"] is True

    def test_payment_settles_debt(self, client):
        make_trip(client)
        make_expense(client)
        make_payment(client, "Bob", "Alice", "30.00")
        make_payment(client, "Carol", "Alice", "30.00")

        data = _balances(client)
        assert data["debts"] == []
        assert data["settled"] is True

    def test_partial_payment(self, client):
        make_trip(client)
        make_expense(client)
        make_payment(client, "Bob", "Alice", "12.50")

        debts = _balances(client)["debts"]
        assert {"from": "Bob", "to": "Alice", "amount": "17.50"} in debts


# ═══════════════════════════════════════════════════════════════════════════
# Payments
# ═══════════════════════════════════════════════════════════════════════════

class TestPayments:

    def test_record_payment(self, client):
        make_trip(client)
        make_expense(client)

        resp = make_payment(client, "Bob", "Alice", "30.00", payment_method="Zelle", notes="thanks")

        assert resp.status_code == 201
        body = resp.get_json()
        assert body["warnings"] == []
        data = body["data"]
        assert data["kind"] == "payment"
        assert data["description"] == "Payment from Bob to Alice"
        assert data["paid_by"] == "Bob"
        assert data["to"] == "Alice"
        assert data["amount"] == "30.00"
        assert data["payment_method"] == "Zelle"
        assert data["notes"] == "thanks"

    def test_overpayment_is_recorded_with_a_warning(self, client):
        make_trip(client)
        make_expense(client)

        resp = make_payment(client, "Bob", "Alice", "50.00")

        assert resp.status_code == 201
        warnings = resp.get_json()["warnings"]
        assert [w["code"] for w in warnings] == ["OVERPAYMENT"]

        # The extra 20 now runs the other way.
        debts = _balances(client)["debts"]
        assert {"from": "Alice", "to": "Bob", "amount": "20.00"} in debts

    def test_payment_with_no_debt_warns(self, client):
        make_trip(client)
        resp = make_payment(client, "Bob", "Alice", "5.00")
        assert resp.status_code == 201
        assert resp.get_json()["warnings"][0]["code"] == "OVERPAYMENT"

    def test_self_payment(self, client):
        make_trip(client)
        resp = make_payment(client, "Bob", "Bob", "5.00")

        assert resp.status_code == 422
        error = resp.get_json()["error"]
        assert error["code"] == "SELF_PAYMENT"
        assert error["field"] == "to"

    @pytest.mark.parametrize(
        "sender, recipient, code",
        [
            ("Mallory", "Alice", "PAYER_NOT_PARTICIPANT"),
            ("Alice", "Mallory", "RECIPIENT_NOT_PARTICIPANT"),
        ],
    )
    def test_unknown_people(self, client, sender, recipient, code):
        make_trip(client)
        resp = make_payment(client, sender, recipient, "5.00")
        assert resp.status_code == 422
        assert resp.get_json()["error"]["code"] == code

    def test_invalid_payment_method(self, client):
        make_trip(client)
        resp = make_payment(client, "Bob", "Alice", "5.00", payment_method="Cheque")
        assert resp.status_code == 400
        assert resp.get_json()["error"]["code"] == "INVALID_PAYMENT_METHOD"

    def test_missing_amount(self, client):
        make_trip(client)
        resp = client.post(f"{API}/payments", json={"from": "Bob", "to": "Alice"})
        assert resp.status_code == 400
        error = resp.get_json()["error"]
        assert error["code"] == "MISSING_FIELD"
        assert error["field"] == "amount"


# ═══════════════════════════════════════════════════════════════════════════
# Debt breakdown
# ═══════════════════════════════════════════════════════════════════════════

class TestDebtBreakdown:

    def test_breakdown_lists_the_history_behind_a_debt(self, client):
        make_trip(client)
        make_expense(client, description="Dinner")
        make_payment(client, "Bob", "Alice", "10.00")

        resp = client.get(f"{API}/balances/breakdown?from=Bob&to=Alice")

        assert resp.status_code == 200
        data = resp.get_json()["data"]
        assert data["from"] == "Bob"
        assert data["to"] == "Alice"
        assert [(e["type"], Decimal(e["amount"])) for e in data["transactions"]] == [
            ("debt", Decimal("30")),
            ("credit", Decimal("-10")),
        ]
        assert data["transactions"][0]["description"] == 'For "Dinner"'
        assert Decimal(data["net_owed"]) == Decimal("20")

    def test_breakdown_agrees_with_balances(self, client):
        make_trip(client)
        make_expense(client, paid_by="Alice", base_amount="40.00", split_between=["Alice", "Bob"])
        make_expense(client, paid_by="Bob", base_amount="30.00", split_between=["Alice", "Bob"])

        data = client.get(f"{API}/balances/breakdown?from=Bob&to=Alice").get_json()["data"]
        debt = _balances(client)["debts"][0]
        assert Decimal(data["net_owed"]) == Decimal(debt["amount"])

    def test_unknown_participant(self, client):
        make_trip(client)
        resp = client.get(f"{API}/balances/breakdown?from=Bob&to=Mallory")
        assert resp.status_code == 404
        assert resp.get_json()["error"]["code"] == "PARTICIPANT_NOT_FOUND"

    def test_missing_param(self, client):
        make_trip(client)
        resp = client.get(f"{API}/balances/breakdown?from=Bob")
        assert resp.status_code == 400
        assert resp.get_json()["error"]["code"] == "MISSING_FIELD"


# ═══════════════════════════════════════════════════════════════════════════
# Totals
# ═══════════════════════════════════════════════════════════════════════════

class TestTotals:

    def test_totals(self, client):
        make_trip(client)
        make_expense(client, description="Dinner")
        make_expense(
            client, description="Taxi", paid_by="Bob", base_amount="30.00",
            split_between=["Alice", "Bob"],
        )
        make_payment(client, "Carol", "Alice", "5.00")

        resp = client.get(f"{API}/totals")
        assert resp.status_code == 200
        data = resp.get_json()["data"]

        # The payment is not spending.
        assert data["number_of_expenses"] == 2
        assert Decimal(data["group_total"]) == Decimal("120")
        assert Decimal(data["average_expense"]) == Decimal("60")
        assert data["highest_expense"]["description"] == "Dinner"
        assert data["lowest_expense"]["description"] == "Taxi"

        people = data["totals_by_person"]
        assert Decimal(people["Alice"]["paid"]) == Decimal("90")
        assert Decimal(people["Bob"]["paid"]) == Decimal("30")
        assert Decimal(people["Carol"]["paid"]) == Decimal("0")
        # Bob owes Alice 15, Carol owes Alice 25.
        assert Decimal(people["Alice"]["net"]) == Decimal("40")
        assert Decimal(people["Bob"]["net"]) == Decimal("-15")
        assert Decimal(people["Carol"]["net"]) == Decimal("-25")

    def test_totals_with_no_expenses(self, client):
        make_trip(client)
        data = client.get(f"{API}/totals").get_json()["data"]
        assert data["number_of_expenses"] == 0
        assert data["highest_expense"] is None
        assert data["lowest_expense"] is None
        assert Decimal(data["average_expense"]) == Decimal("0")
