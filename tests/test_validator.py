"""Tests for purchase and payment validation."""

from datetime import date
from decimal import Decimal

import pytest

from supplier_ledger.config.settings import LedgerSettings
from supplier_ledger.ledger import balance_version
from supplier_ledger.models.ledger import (
    DESCRIPTION_MAX_LENGTH,
    PaymentRequest,
    PurchaseRequest,
)
from supplier_ledger.validation import EntryValidator

from tests.conftest import make_transaction


TODAY = date(2024, 6, 30)


@pytest.fixture
def validator(ledger_settings):
    return EntryValidator(ledger_settings)


def _payment(**overrides) -> PaymentRequest:
    values = dict(
        supplier_id="s1",
        project_id="p1",
        amount="400",
        entry_date="2024-06-01",
        payment_mode="Cash",
        description="June part payment",
        supplier_name="Sharma Cement",
    )
    values.update(overrides)
    return PaymentRequest(**values)


class TestPurchaseValidation:

    def test_valid_purchase(self, validator):
        request = PurchaseRequest(
            supplier_id="s1",
            project_id="p1",
            amount="1200",
            entry_date=TODAY,
            description="50 bags cement",
        )
        result = validator.validate_purchase(request, today=TODAY)
        assert result.is_valid
        assert result.issues == []

    def test_every_missing_field_is_reported(self, validator):
        result = validator.validate_purchase(
            PurchaseRequest(supplier_id="s1"), today=TODAY
        )
        assert not result.is_valid
        assert result.field_errors() == {
            "project_id": "Please select a project",
            "amount": "Please enter a valid amount greater than 0",
            "entry_date": "Please select a date",
            "description": "Please enter a description",
        }

    @pytest.mark.parametrize("amount", ["0", "-5", "abc"])
    def test_non_positive_or_malformed_amount(self, validator, amount):
        request = PurchaseRequest(
            supplier_id="s1", project_id="p1", amount=amount,
            entry_date=TODAY, description="x",
        )
        result = validator.validate_purchase(request, today=TODAY)
        assert "amount" in result.field_errors()

    def test_future_date_rejected(self, validator):
        request = PurchaseRequest(
            supplier_id="s1", project_id="p1", amount="1",
            entry_date=date(2024, 7, 1), description="x",
        )
        result = validator.validate_purchase(request, today=TODAY)
        assert result.field_errors() == {"entry_date": "Date cannot be in the future"}

    def test_future_date_tolerance(self):
        validator = EntryValidator(LedgerSettings(future_date_tolerance_days=2))
        request = PurchaseRequest(
            supplier_id="s1", project_id="p1", amount="1",
            entry_date=date(2024, 7, 2), description="x",
        )
        assert validator.validate_purchase(request, today=TODAY).is_valid

    def test_blank_supplier_rejected(self, validator):
        request = PurchaseRequest(
            supplier_id="  ", project_id="p1", amount="1",
            entry_date=TODAY, description="x",
        )
        result = validator.validate_purchase(request, today=TODAY)
        assert result.field_errors() == {"supplier_id": "Please select a supplier"}

    def test_description_over_limit(self, validator):
        request = PurchaseRequest(
            supplier_id="s1", project_id="p1", amount="1",
            entry_date=TODAY, description="y" * (DESCRIPTION_MAX_LENGTH + 1),
        )
        result = validator.validate_purchase(request, today=TODAY)

        assert not result.is_valid
        assert [(i.field, i.issue_type) for i in result.issues] == [
            ("description", "too_long"),
        ]

    def test_description_at_limit(self, validator):
        request = PurchaseRequest(
            supplier_id="s1", project_id="p1", amount="1",
            entry_date=TODAY, description="y" * DESCRIPTION_MAX_LENGTH,
        )
        assert validator.validate_purchase(request, today=TODAY).is_valid


class TestPaymentValidation:

    def test_valid_payment(self, validator, payable_history):
        result = validator.validate_payment(_payment(), payable_history, today=TODAY)

        assert result.is_valid
        assert result.current_balance == Decimal("1000")
        assert result.balance_version == balance_version(payable_history, "s1", "p1")

    def test_amount_over_balance(self, validator, payable_history):
        result = validator.validate_payment(_payment(amount="1500"), payable_history, today=TODAY)

        assert not result.is_valid
        assert result.field_errors()["amount"] == (
            "Payment amount cannot exceed current balance of ₹1,000.00"
        )

    def test_no_balance_for_project(self, validator, payable_history):
        result = validator.validate_payment(
            _payment(project_id="p2"), payable_history, today=TODAY
        )
        assert result.field_errors()["amount"] == "No outstanding balance for this project"

    def test_missing_payment_mode(self, validator, payable_history):
        result = validator.validate_payment(
            _payment(payment_mode=None), payable_history, today=TODAY
        )
        assert result.field_errors() == {"payment_mode": "Please select a payment mode"}

    def test_invalid_amount_reported_once(self, validator, payable_history):
        result = validator.validate_payment(_payment(amount="0"), payable_history, today=TODAY)
        amount_issues = [i for i in result.issues if i.field == "amount"]
        assert len(amount_issues) == 1

    def test_other_suppliers_do_not_count(self, validator):
        transactions = [make_transaction("purchase", 5000, supplier_id="s2")]
        result = validator.validate_payment(_payment(), transactions, today=TODAY)
        assert not result.is_valid

    def test_blank_supplier_rejected(self, validator, payable_history):
        result = validator.validate_payment(
            _payment(supplier_id=""), payable_history, today=TODAY
        )
        assert not result.is_valid
        assert result.field_errors()["supplier_id"] == "Please select a supplier"

    def test_prefixed_description_over_limit(self, validator, payable_history):
        # Fits a purchase, but not once "Payment to Sharma Cement - " is added
        description = "x" * (DESCRIPTION_MAX_LENGTH - 10)
        result = validator.validate_payment(
            _payment(description=description), payable_history, today=TODAY
        )

        assert not result.is_valid
        assert [(i.field, i.issue_type) for i in result.issues] == [
            ("description", "too_long"),
        ]
        assert result.field_errors() == {
            "description": "Description is too long for the Payment Out entry",
        }

    def test_long_supplier_name_overflows_entry_description(self, validator, payable_history):
        result = validator.validate_payment(
            _payment(supplier_name="S" * DESCRIPTION_MAX_LENGTH),
            payable_history,
            today=TODAY,
        )
        assert result.field_errors() == {
            "description": "Description is too long for the Payment Out entry",
        }

    def test_raw_description_over_limit_reported_once(self, validator, payable_history):
        result = validator.validate_payment(
            _payment(description="x" * (DESCRIPTION_MAX_LENGTH + 1)),
            payable_history,
            today=TODAY,
        )
        description_issues = [i for i in result.issues if i.field == "description"]
        assert len(description_issues) == 1
        assert description_issues[0].message == (
            f"Description cannot be longer than {DESCRIPTION_MAX_LENGTH} characters"
        )

    def test_payment_out_description(self, validator):
        assert validator.payment_out_description(_payment()) == (
            "Payment to Sharma Cement - June part payment"
        )
        assert validator.payment_out_description(_payment(supplier_name=None)) == (
            "Payment to Unknown Supplier - June part payment"
        )


class TestSummary:

    def test_summary_for_valid_result(self, validator, payable_history):
        result = validator.validate_payment(_payment(), payable_history, today=TODAY)
        assert validator.get_user_friendly_summary(result) == "✅ All checks passed."

    def test_summary_lists_errors(self, validator):
        result = validator.validate_purchase(PurchaseRequest(supplier_id="s1"), today=TODAY)
        summary = validator.get_user_friendly_summary(result)
        assert "Please select a project" in summary
        assert "Please select a date" in summary
