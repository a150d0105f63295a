"""
tests/unit/test_validation_schemas.py — Unit tests for the request schemas.

What this file proves:
  - Every schema accepts valid input without raising
  - Every schema rejects invalid input with the correct ValidationError
  - Field-level rules (type, length, choice, decimal precision) are enforced here
  - Roster and sum rules are NOT tested here — they belong to the services
  - Error codes raised as messages match the registered constants in errors.py

Unit test constraints:
  - No database. No Flask application context.
    Schemas inherit from marshmallow.Schema directly, which is why they can
    be instantiated without an app.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest
from marshmallow import ValidationError

from groupsplit.app.errors import ErrorCode
from groupsplit.app.models.transaction import SplitMethod
from groupsplit.app.schemas.expense_schema import ExpenseInputSchema
from groupsplit.app.schemas.group_schema import (
    AddParticipantsSchema,
    CreateGroupSchema,
    DebtBreakdownQuerySchema,
    HistoryQuerySchema,
    SearchQuerySchema,
)
from groupsplit.app.schemas.payment_schema import CreatePaymentSchema


# ═══════════════════════════════════════════════════════════════════════════
# ExpenseInputSchema
# ═══════════════════════════════════════════════════════════════════════════

class TestExpenseInputSchema:

    def _load(self, **overrides):
        data = {
            "description": "Dinner",
            "base_amount": "90.00",
            "paid_by": "Alice",
            "split_between": ["Alice", "Bob"],
        }
        data.update(overrides)
        return ExpenseInputSchema().load(data)

    def test_valid_payload_with_defaults(self):
        result = self._load()
        assert result["base_amount"] == Decimal("90.00")
        assert isinstance(result["base_amount"], Decimal)
        assert result["split_method"] is SplitMethod.EVENLY
        assert result["expense_type"] == "General"
        assert result["tips"] == Decimal("0")
        assert result["date"] == date.today()
        assert result["split_values"] is None

    def test_all_fields(self):
        result = self._load(
            date="2024-05-01",
            tips="3.00",
            tax="1.50",
            service_charge="2",
            other_charges="0.25",
            split_method="percentage",
            split_values={"Alice": "60", "Bob": "40"},
            expense_type="Lodging",
            notes="two nights",
        )
        assert result["date"] == date(2024, 5, 1)
        assert result["split_method"] is SplitMethod.PERCENTAGE
        assert result["split_values"] == {"Alice": Decimal("60"), "Bob": Decimal("40")}
        assert result["other_charges"] == Decimal("0.25")

    def test_amount_precision_rejected(self):
        with pytest.raises(ValidationError) as exc:
            self._load(base_amount="10.123")
        assert exc.value.messages["base_amount"] == [ErrorCode.INVALID_AMOUNT_PRECISION]

    @pytest.mark.parametrize("amount", ["0", "-5.00"])
    def test_non_positive_base_rejected(self, amount):
        with pytest.raises(ValidationError) as exc:
            self._load(base_amount=amount)
        assert "base_amount" in exc.value.messages

    def test_negative_surcharge_rejected(self):
        with pytest.raises(ValidationError) as exc:
            self._load(tips="-1.00")
        assert "tips" in exc.value.messages

    def test_base_amount_required_for_evenly(self):
        data = {"description": "Dinner", "paid_by": "Alice", "split_between": ["Alice"]}
        with pytest.raises(ValidationError) as exc:
            ExpenseInputSchema().load(data)
        assert "base_amount" in exc.value.messages

    def test_base_amount_optional_for_item(self):
        result = ExpenseInputSchema().load({
            "description": "Dinner",
            "paid_by": "Alice",
            "split_method": "item",
            "itemized": {"Alice": "10.00", "Bob": "20.00"},
        })
        assert result["base_amount"] is None
        assert result["itemized"]["Bob"] == Decimal("20.00")

    def test_item_cost_precision_rejected(self):
        with pytest.raises(ValidationError):
            self._load(split_method="item", itemized={"Alice": "1.005"})

    def test_unknown_split_method_rejected(self):
        with pytest.raises(ValidationError) as exc:
            self._load(split_method="shares")
        assert exc.value.messages["split_method"] == [ErrorCode.INVALID_SPLIT_METHOD]

    def test_unknown_expense_type_rejected(self):
        with pytest.raises(ValidationError) as exc:
            self._load(expense_type="Yachts")
        assert exc.value.messages["expense_type"] == [ErrorCode.INVALID_EXPENSE_TYPE]

    @pytest.mark.parametrize("field", ["description", "paid_by"])
    def test_blank_strings_rejected(self, field):
        with pytest.raises(ValidationError) as exc:
            self._load(**{field: "   "})
        assert field in exc.value.messages

    def test_missing_required_fields(self):
        with pytest.raises(ValidationError) as exc:
            ExpenseInputSchema().load({"base_amount": "5.00"})
        assert "description" in exc.value.messages
        assert "paid_by" in exc.value.messages

    def test_negative_split_value_rejected(self):
        with pytest.raises(ValidationError) as exc:
            self._load(split_method="amount", split_values={"Alice": "-1"})
        assert "split_values" in exc.value.messages


# ═══════════════════════════════════════════════════════════════════════════
# CreatePaymentSchema
# ═══════════════════════════════════════════════════════════════════════════

class TestCreatePaymentSchema:

    def test_valid_payload_uses_wire_names(self):
        result = CreatePaymentSchema().load({"from": "Bob", "to": "Alice", "amount": "25.00"})
        assert result["sender"] == "Bob"
        assert result["recipient"] == "Alice"
        assert result["amount"] == Decimal("25.00")
        assert result["payment_method"] == "Cash"
        assert result["date"] == date.today()

    def test_payment_method_choice(self):
        result = CreatePaymentSchema().load({
            "from": "Bob", "to": "Alice", "amount": "25.00", "payment_method": "Zelle",
        })
        assert result["payment_method"] == "Zelle"

    def test_unknown_payment_method_rejected(self):
        with pytest.raises(ValidationError) as exc:
            CreatePaymentSchema().load({
                "from": "Bob", "to": "Alice", "amount": "25.00", "payment_method": "Cheque",
            })
        assert exc.value.messages["payment_method"] == [ErrorCode.INVALID_PAYMENT_METHOD]

    def test_amount_precision_rejected(self):
        with pytest.raises(ValidationError) as exc:
            CreatePaymentSchema().load({"from": "Bob", "to": "Alice", "amount": "1.001"})
        assert exc.value.messages["amount"] == [ErrorCode.INVALID_AMOUNT_PRECISION]

    def test_zero_amount_rejected(self):
        with pytest.raises(ValidationError) as exc:
            CreatePaymentSchema().load({"from": "Bob", "to": "Alice", "amount": "0"})
        assert "amount" in exc.value.messages

    def test_missing_recipient(self):
        with pytest.raises(ValidationError) as exc:
            CreatePaymentSchema().load({"from": "Bob", "amount": "5"})
        assert "to" in exc.value.messages


# ═══════════════════════════════════════════════════════════════════════════
# Group schemas
# ═══════════════════════════════════════════════════════════════════════════

class TestGroupSchemas:

    def test_create_group(self):
        assert CreateGroupSchema().load({"name": "Trip"}) == {"name": "Trip"}

    @pytest.mark.parametrize("name", ["", "   ", "x" * 101])
    def test_create_group_bad_name(self, name):
        with pytest.raises(ValidationError) as exc:
            CreateGroupSchema().load({"name": name})
        assert "name" in exc.value.messages

    def test_participants_as_list(self):
        result = AddParticipantsSchema().load({"names": ["Alice", "Bob"]})
        assert result["names"] == ["Alice", "Bob"]

    def test_participants_as_comma_separated_string(self):
        result = AddParticipantsSchema().load({"names": "Alice, Bob,Carol"})
        assert result["names"] == ["Alice", " Bob", "Carol"]

    def test_participants_empty_list_rejected(self):
        with pytest.raises(ValidationError):
            AddParticipantsSchema().load({"names": []})

    def test_history_query_defaults(self):
        assert HistoryQuerySchema().load({}) == {"member": None, "kind": "all", "order": "desc"}

    def test_history_query_ignores_unknown_params(self):
        result = HistoryQuerySchema().load({"kind": "payments", "page": "2"})
        assert result["kind"] == "payments"

    @pytest.mark.parametrize("params", [{"kind": "refunds"}, {"order": "newest"}])
    def test_history_query_bad_filter(self, params):
        with pytest.raises(ValidationError) as exc:
            HistoryQuerySchema().load(params)
        assert list(exc.value.messages.values())[0] == [ErrorCode.INVALID_HISTORY_FILTER]

    def test_breakdown_query_uses_from_and_to(self):
        result = DebtBreakdownQuerySchema().load({"from": "Bob", "to": "Alice"})
        assert result == {"debtor": "Bob", "creditor": "Alice"}

    def test_search_query_defaults_to_blank(self):
        assert SearchQuerySchema().load({}) == {"p1": "", "p2": ""}
