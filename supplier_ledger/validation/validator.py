"""
Entry Validation

DESIGN DECISION: Purchases and payments are validated before any write.

FIELD CHECKS (both kinds):
- A supplier is given and a project is selected
- Amount is a positive number
- Date is present and not in the future
- Description is not empty and fits the description limit

PAYMENT CHECKS (in addition):
- A payment mode is selected
- The Payment Out description built from it also fits the limit
- Amount does not exceed the current payable balance of the project

IMPORTANT: Validation never fixes input.
It reports every issue so the form can show them inline, and the flows
refuse to write while any error-level issue remains.
"""

from datetime import date, timedelta
from typing import Iterable, Optional

from supplier_ledger.config import get_settings
from supplier_ledger.config.settings import LedgerSettings
from supplier_ledger.ledger.balance import balance_version, validate_payment_amount
from supplier_ledger.models.ledger import (
    DESCRIPTION_MAX_LENGTH,
    PaymentOutEntry,
    PaymentRequest,
    PurchaseRequest,
    Transaction,
    ValidationIssue,
    ValidationResult,
)


class EntryValidator:
    """
    Validates purchase and payment requests.

    Payment validation needs the supplier's transactions to know the
    current balance; the caller passes them in.
    """

    def __init__(self, settings: Optional[LedgerSettings] = None):
        self._settings = settings or get_settings().ledger

    def payment_out_description(self, request: PaymentRequest) -> str:
        """Description the Payment Out entry for this payment will carry."""
        supplier_name = request.supplier_name or self._settings.unknown_supplier_label
        return PaymentOutEntry.describe_payment(supplier_name, request.description)

    def _validate_fields(
        self,
        request: PurchaseRequest,
        today: date,
    ) -> list[ValidationIssue]:
        """Checks shared by purchases and payments."""
        issues = []

        if not request.supplier_id:
            issues.append(ValidationIssue(
                field="supplier_id",
                issue_type="missing",
                message="Please select a supplier",
                severity="error",
            ))

        if not request.project_id:
            issues.append(ValidationIssue(
                field="project_id",
                issue_type="missing",
                message="Please select a project",
                severity="error",
            ))

        if request.amount is None or request.amount <= 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Please enter a valid amount greater than 0",
                severity="error",
                suggested_fix="Enter the amount as a number, e.g. 1500",
            ))

        if request.entry_date is None:
            issues.append(ValidationIssue(
                field="entry_date",
                issue_type="missing",
                message="Please select a date",
                severity="error",
            ))
        else:
            max_date = today + timedelta(days=self._settings.future_date_tolerance_days)
            if request.entry_date > max_date:
                issues.append(ValidationIssue(
                    field="entry_date",
                    issue_type="future_date",
                    message="Date cannot be in the future",
                    severity="error",
                    suggested_fix="Use the date the transaction actually happened",
                ))

        if not request.description:
            issues.append(ValidationIssue(
                field="description",
                issue_type="missing",
                message="Please enter a description",
                severity="error",
            ))
        elif len(request.description) > DESCRIPTION_MAX_LENGTH:
            issues.append(ValidationIssue(
                field="description",
                issue_type="too_long",
                message=f"Description cannot be longer than {DESCRIPTION_MAX_LENGTH} characters",
                severity="error",
            ))

        return issues

    def validate_purchase(
        self,
        request: PurchaseRequest,
        today: Optional[date] = None,
    ) -> ValidationResult:
        """Validate a purchase request."""
        issues = self._validate_fields(request, today or date.today())
        return ValidationResult(
            is_valid=not any(issue.severity == "error" for issue in issues),
            issues=issues,
            warnings=[i.message for i in issues if i.severity == "warning"],
        )

    def validate_payment(
        self,
        request: PaymentRequest,
        transactions: Optional[Iterable[Transaction]],
        today: Optional[date] = None,
    ) -> ValidationResult:
        """
        Validate a payment request against the current balance.

        Args:
            request: The payment to validate
            transactions: The supplier's transactions (any superset is fine)
            today: Reference date for the future-date check

        Returns:
            ValidationResult carrying the project's current balance and the
            balance version it was computed from
        """
        transactions = list(transactions or ())
        issues = self._validate_fields(request, today or date.today())

        if request.payment_mode is None:
            issues.append(ValidationIssue(
                field="payment_mode",
                issue_type="missing",
                message="Please select a payment mode",
                severity="error",
            ))

        # The entry description adds a prefix, so it can overflow on its own
        if (
            request.description
            and len(request.description) <= DESCRIPTION_MAX_LENGTH
            and len(self.payment_out_description(request)) > DESCRIPTION_MAX_LENGTH
        ):
            issues.append(ValidationIssue(
                field="description",
                issue_type="too_long",
                message="Description is too long for the Payment Out entry",
                severity="error",
                suggested_fix="Shorten the description",
            ))

        current_balance = None
        version = None
        if request.project_id:
            version = balance_version(
                transactions, request.supplier_id, request.project_id
            )
            # Amount errors already reported take precedence
            if request.amount is not None and request.amount > 0:
                check = validate_payment_amount(
                    transactions,
                    request.supplier_id,
                    request.project_id,
                    request.amount,
                    currency_symbol=self._settings.currency_symbol,
                )
                current_balance = check.current_balance
                if not check.is_valid:
                    issues.append(ValidationIssue(
                        field="amount",
                        issue_type="exceeds_balance",
                        message=check.message,
                        severity="error",
                        suggested_fix="Check the outstanding balance for this project",
                    ))

        return ValidationResult(
            is_valid=not any(issue.severity == "error" for issue in issues),
            issues=issues,
            warnings=[i.message for i in issues if i.severity == "warning"],
            current_balance=current_balance,
            balance_version=version,
        )

    def get_user_friendly_summary(
        self,
        result: ValidationResult,
    ) -> str:
        """
        Generate a user-friendly summary of validation results.

        This is what we show next to the form.
        """
        if result.is_valid and not result.warnings:
            return "✅ All checks passed."

        lines = []

        if result.has_errors:
            lines.append("❌ Please fix the following before saving:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"   • {issue.message}")
                    if issue.suggested_fix:
                        lines.append(f"     💡 {issue.suggested_fix}")

        if result.warnings:
            lines.append("")
            lines.append("⚠️ Please verify the following:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        return "\n".join(lines)
