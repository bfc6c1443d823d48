"""
Data Models Package

This package contains all Pydantic models used in the Supplier Ledger.
All data flowing through the ledger must conform to these schemas.
"""

from supplier_ledger.models.ledger import (
    ApprovalStatus,
    Balance,
    BalanceType,
    BreakdownEntry,
    DateRange,
    DateRangePreset,
    PaymentAmountCheck,
    PaymentMode,
    PaymentOutEntry,
    PaymentRecordResult,
    PaymentRequest,
    ProjectRef,
    PurchaseRequest,
    ReconciliationStep,
    RunningBalanceEntry,
    StepOutcome,
    SupplierRef,
    SupplierStatement,
    SupplierSummary,
    Transaction,
    TransactionKind,
    ValidationIssue,
    ValidationResult,
    DESCRIPTION_MAX_LENGTH,
    coerce_amount,
)
from supplier_ledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "ApprovalStatus",
    "Balance",
    "BalanceType",
    "BreakdownEntry",
    "DateRange",
    "DateRangePreset",
    "PaymentAmountCheck",
    "PaymentMode",
    "PaymentOutEntry",
    "PaymentRecordResult",
    "PaymentRequest",
    "ProjectRef",
    "PurchaseRequest",
    "ReconciliationStep",
    "RunningBalanceEntry",
    "StepOutcome",
    "SupplierRef",
    "SupplierStatement",
    "SupplierSummary",
    "Transaction",
    "TransactionKind",
    "ValidationIssue",
    "ValidationResult",
    "DESCRIPTION_MAX_LENGTH",
    "coerce_amount",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
