"""
Core Data Models for Supplier Ledger

These models define the schemas for all data flowing through the ledger.
They are designed to:
1. Normalize store records once, at the boundary
2. Stay lenient on reads (dirty historical data must not break balances)
3. Be serializable for storage and logging
4. Support the audit trail

DESIGN DECISION: Transactions are frozen Pydantic models.
The only permitted change after creation is attaching the Payment Out link,
which goes through Transaction.with_link() and happens exactly once.
"""

import math
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Mapping, Optional
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


ZERO = Decimal("0")

# Shared by transactions, Payment Out entries and the entry validator
DESCRIPTION_MAX_LENGTH = 1000


def new_id() -> str:
    """Generate a unique record identifier."""
    return str(uuid4())


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def coerce_amount(value: Any) -> Decimal:
    """
    Coerce a stored amount to Decimal.

    Missing, NaN, infinite and non-numeric values become 0 so that aggregate
    reads survive dirty historical data.
    """
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        return value if value.is_finite() else ZERO
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            return ZERO
        return Decimal(str(value))
    if isinstance(value, str):
        try:
            parsed = Decimal(value.strip())
        except InvalidOperation:
            return ZERO
        return parsed if parsed.is_finite() else ZERO
    return ZERO


def parse_iso_date(value: Any) -> Any:
    """Accept ISO dates and ISO datetimes (the date part is kept)."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, str) and len(value.strip()) > 10:
        return date.fromisoformat(value.strip()[:10])
    return value


def _first_present(record: Mapping[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        if record.get(key) is not None:
            return record[key]
    return None


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionKind(str, Enum):
    """
    Supplier transaction kinds.

    PURCHASE: material bought on credit, increases what we owe.
    PAYMENT: money paid to the supplier, decreases what we owe.

    Older records use 'credit' and 'debit'; parse() maps them here so
    calculators never compare raw strings.
    """
    PURCHASE = "purchase"
    PAYMENT = "payment"

    @classmethod
    def parse(cls, value: Any) -> Optional["TransactionKind"]:
        """Normalize a stored kind. Unrecognized kinds return None."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        normalized = value.strip().lower()
        if normalized in _LEGACY_KINDS:
            return _LEGACY_KINDS[normalized]
        try:
            return cls(normalized)
        except ValueError:
            return None

    @property
    def sign(self) -> int:
        return 1 if self is TransactionKind.PURCHASE else -1


_LEGACY_KINDS = {
    "credit": TransactionKind.PURCHASE,
    "debit": TransactionKind.PAYMENT,
}


class BalanceType(str, Enum):
    """Classification of a signed balance."""
    PAYABLE = "payable"    # We owe the supplier
    OVERPAID = "overpaid"  # Supplier holds an advance from us
    SETTLED = "settled"

    @classmethod
    def from_raw(cls, raw_balance: Decimal) -> "BalanceType":
        if raw_balance > 0:
            return cls.PAYABLE
        if raw_balance < 0:
            return cls.OVERPAID
        return cls.SETTLED


class PaymentMode(str, Enum):
    """Payment modes offered when recording a payment."""
    CASH = "Cash"
    CHEQUE = "Cheque"
    UPI = "UPI"
    BANK_TRANSFER = "Bank Transfer"
    CARD = "Card"
    OTHER = "Other"

    @classmethod
    def parse(cls, value: Any) -> Optional["PaymentMode"]:
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        normalized = value.strip().lower()
        for mode in cls:
            if mode.value.lower() == normalized:
                return mode
        return None


class ApprovalStatus(str, Enum):
    """
    Payment Out approval status.

    The ledger only ever creates entries in PENDING ("pending approval").
    Transitions belong to the approval workflow.
    """
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class DateRangePreset(str, Enum):
    """Report period presets."""
    ALL = "all"
    LAST_30_DAYS = "last30"
    LAST_90_DAYS = "last90"
    LAST_QUARTER = "lastQuarter"
    CUSTOM = "custom"


class ReconciliationStep(str, Enum):
    """Steps of the payment recording protocol, in order."""
    VALIDATE = "validate"
    CREATE_TRANSACTION = "create_transaction"
    CREATE_APPROVAL_ENTRY = "create_approval_entry"
    LINK_TRANSACTION = "link_transaction"


# =============================================================================
# LEDGER RECORDS
# =============================================================================

class Transaction(BaseModel):
    """
    A single supplier ledger transaction.

    Amounts contribute positively to what is owed for purchases and
    negatively for payments. A transaction whose kind could not be
    recognized has kind=None and contributes nothing.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: str = Field(
        default_factory=new_id,
        description="Unique transaction ID"
    )
    supplier_id: str = Field(
        ...,
        description="Owning supplier"
    )
    project_id: str = Field(
        ...,
        description="Project the transaction is attributed to"
    )
    kind: Optional[TransactionKind] = Field(
        ...,
        description="Purchase or payment (None when the stored kind is unrecognized)"
    )
    amount: Decimal = Field(
        default=ZERO,
        description="Amount in the ledger currency"
    )
    transaction_date: date = Field(
        ...,
        description="Business date the transaction is effective"
    )
    description: str = Field(
        default="",
        max_length=DESCRIPTION_MAX_LENGTH,
    )
    payment_mode: Optional[str] = Field(
        default=None,
        description="Only present for payments"
    )
    linked_approval_entry_id: Optional[str] = Field(
        default=None,
        description="Payment Out entry created for this payment"
    )

    # Provenance
    entered_by: str = Field(default="Unknown")
    entered_at: datetime = Field(default_factory=utc_now)

    @field_validator('kind', mode='before')
    @classmethod
    def normalize_kind(cls, v: Any) -> Optional[TransactionKind]:
        return TransactionKind.parse(v)

    @field_validator('amount', mode='before')
    @classmethod
    def normalize_amount(cls, v: Any) -> Decimal:
        return coerce_amount(v)

    @field_validator('transaction_date', mode='before')
    @classmethod
    def normalize_date(cls, v: Any) -> Any:
        return parse_iso_date(v)

    @field_validator('entered_at')
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        """Naive timestamps are stored as UTC."""
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @property
    def is_purchase(self) -> bool:
        return self.kind is TransactionKind.PURCHASE

    @property
    def is_payment(self) -> bool:
        return self.kind is TransactionKind.PAYMENT

    @property
    def signed_amount(self) -> Decimal:
        """+amount for purchases, -amount for payments, 0 otherwise."""
        if self.kind is None:
            return ZERO
        return self.amount * self.kind.sign

    @property
    def sort_key(self) -> tuple:
        """Chronological order: business date, then entry time, then id."""
        return (self.transaction_date, self.entered_at, self.id)

    def with_link(self, approval_entry_id: str) -> "Transaction":
        """
        Return a copy carrying the Payment Out link.

        Raises:
            ValueError: If this is not a payment or it is already linked
        """
        if not self.is_payment:
            raise ValueError(f"Only payments can be linked (transaction {self.id})")
        if self.linked_approval_entry_id:
            raise ValueError(
                f"Transaction {self.id} is already linked to "
                f"{self.linked_approval_entry_id}"
            )
        return self.model_copy(update={"linked_approval_entry_id": approval_entry_id})

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Transaction":
        """
        Build a Transaction from a store record.

        Accepts the current record shape (kind, linkedApprovalEntryId,
        enteredBy, enteredAt) and the legacy one (type, paymentOutId,
        entryBy, entryDateTime).
        """
        values: dict[str, Any] = {}
        for field_name, keys in _TRANSACTION_RECORD_KEYS.items():
            value = _first_present(record, keys)
            if value is not None:
                values[field_name] = value

        for id_field in ("id", "supplier_id", "project_id", "linked_approval_entry_id"):
            if id_field in values:
                values[id_field] = str(values[id_field])
        values.setdefault("supplier_id", "")
        values.setdefault("project_id", "")
        values.setdefault("kind", None)
        return cls(**values)

    def to_record(self) -> dict[str, Any]:
        """Convert to the external record shape."""
        return {
            "id": self.id,
            "supplierId": self.supplier_id,
            "projectId": self.project_id,
            "kind": self.kind.value if self.kind else None,
            "amount": str(self.amount),
            "date": self.transaction_date.isoformat(),
            "description": self.description,
            "paymentMode": self.payment_mode,
            "linkedApprovalEntryId": self.linked_approval_entry_id,
            "enteredBy": self.entered_by,
            "enteredAt": self.entered_at.isoformat(),
        }


_TRANSACTION_RECORD_KEYS: dict[str, tuple[str, ...]] = {
    "id": ("id",),
    "supplier_id": ("supplierId", "supplier_id"),
    "project_id": ("projectId", "project_id"),
    "kind": ("kind", "type"),
    "amount": ("amount",),
    "transaction_date": ("date", "transaction_date"),
    "description": ("description",),
    "payment_mode": ("paymentMode", "payment_mode"),
    "linked_approval_entry_id": (
        "linkedApprovalEntryId",
        "paymentOutId",
        "linked_approval_entry_id",
    ),
    "entered_by": ("enteredBy", "entryBy", "entered_by"),
    "entered_at": ("enteredAt", "entryDateTime", "entered_at"),
}


class RunningBalanceEntry(Transaction):
    """A transaction annotated with the cumulative balance up to and including it."""

    running_balance: Decimal

    def to_record(self) -> dict[str, Any]:
        record = super().to_record()
        record["runningBalance"] = str(self.running_balance)
        return record


class PaymentOutEntry(BaseModel):
    """
    Approval-workflow entry created for every recorded payment.

    Carries the back-reference to the ledger transaction that caused it.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(default_factory=new_id)
    supplier_id: str
    party_id: str = Field(
        ...,
        description="Party the money goes to (the supplier)"
    )
    project_id: str
    supplier_transaction_id: str = Field(
        ...,
        description="Ledger transaction this entry was created for"
    )
    amount: Decimal = Field(..., gt=0)
    entry_date: date
    category: str = Field(default="Materials")
    payment_mode: str
    description: str = Field(..., min_length=1, max_length=DESCRIPTION_MAX_LENGTH)

    status: ApprovalStatus = Field(default=ApprovalStatus.PENDING)
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    rejected_by: Optional[str] = None
    rejected_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None

    created_by: str = Field(default="Unknown")
    created_at: datetime = Field(default_factory=utc_now)

    @field_validator('entry_date', mode='before')
    @classmethod
    def normalize_date(cls, v: Any) -> Any:
        return parse_iso_date(v)

    @staticmethod
    def describe_payment(supplier_name: str, description: str) -> str:
        """Description given to the entry created for a supplier payment."""
        return f"Payment to {supplier_name} - {description}"

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "supplierId": self.supplier_id,
            "partyId": self.party_id,
            "projectId": self.project_id,
            "supplierTransactionId": self.supplier_transaction_id,
            "amount": str(self.amount),
            "date": self.entry_date.isoformat(),
            "category": self.category,
            "paymentMode": self.payment_mode,
            "description": self.description,
            "status": self.status.value,
            "approvedBy": self.approved_by,
            "approvedAt": self.approved_at.isoformat() if self.approved_at else None,
            "rejectedBy": self.rejected_by,
            "rejectedAt": self.rejected_at.isoformat() if self.rejected_at else None,
            "rejectionReason": self.rejection_reason,
            "createdBy": self.created_by,
            "createdAt": self.created_at.isoformat(),
        }


class ProjectRef(BaseModel):
    """The slice of a project the ledger needs for display."""

    id: str
    name: str
    status: str = "active"

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "ProjectRef":
        return cls(
            id=str(record.get("id", "")),
            name=str(record.get("name") or ""),
            status=str(record.get("status") or "active"),
        )


class SupplierRef(BaseModel):
    """The slice of a supplier the ledger needs for display."""

    id: str
    name: str
    phone: Optional[str] = None
    email: Optional[str] = None

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "SupplierRef":
        return cls(
            id=str(record.get("id", "")),
            name=str(record.get("name") or ""),
            phone=record.get("phone") or None,
            email=record.get("email") or None,
        )


# =============================================================================
# DERIVED VIEWS (never persisted)
# =============================================================================

class Balance(BaseModel):
    """
    Totals and signed balance for a set of transactions.

    raw_balance > 0: we owe the supplier
    raw_balance < 0: the supplier was overpaid
    raw_balance == 0: settled
    """
    model_config = ConfigDict(frozen=True)

    total_purchases: Decimal = ZERO
    total_payments: Decimal = ZERO
    raw_balance: Decimal = ZERO
    outstanding_balance: Decimal = ZERO
    balance_type: BalanceType = BalanceType.SETTLED

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalPurchases": float(self.total_purchases),
            "totalPayments": float(self.total_payments),
            "outstandingBalance": float(self.outstanding_balance),
            "balanceType": self.balance_type.value,
            "rawBalance": float(self.raw_balance),
        }


class BreakdownEntry(Balance):
    """Balance of one supplier within one project."""

    project_id: str
    project_name: str
    project_status: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "projectId": self.project_id,
            "projectName": self.project_name,
            "projectStatus": self.project_status,
            **super().to_dict(),
        }


class SupplierSummary(Balance):
    """One row of the all-suppliers report."""

    supplier_id: str
    name: str
    phone: Optional[str] = None
    email: Optional[str] = None
    transaction_count: int = Field(default=0, ge=0)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.supplier_id,
            "name": self.name,
            "phone": self.phone,
            "email": self.email,
            **super().to_dict(),
            "transactionCount": self.transaction_count,
        }


class SupplierStatement(BaseModel):
    """
    Everything a supplier statement shows.

    Rendering (PDF, spreadsheet) is done elsewhere; this is the data.
    """

    supplier: SupplierRef
    project_id: Optional[str] = None
    project_name: Optional[str] = None
    balance: Balance
    breakdown: list[BreakdownEntry] = Field(default_factory=list)
    history: list[RunningBalanceEntry] = Field(
        default_factory=list,
        description="Newest first"
    )
    project_names: dict[str, str] = Field(
        default_factory=dict,
        description="Project name per project id referenced in history"
    )
    generated_at: datetime = Field(default_factory=utc_now)

    @property
    def current_balance(self) -> Optional[Decimal]:
        """Running balance of the most recent entry, None without history."""
        if not self.history:
            return None
        return self.history[0].running_balance


class DateRange(BaseModel):
    """
    Report period.

    Custom ranges are inclusive on both ends; an open end means "to date".
    """

    preset: DateRangePreset = DateRangePreset.ALL
    start: Optional[date] = None
    end: Optional[date] = None

    def start_date(self, today: Optional[date] = None) -> Optional[date]:
        today = today or date.today()
        if self.preset == DateRangePreset.LAST_30_DAYS:
            return today - timedelta(days=30)
        if self.preset == DateRangePreset.LAST_90_DAYS:
            return today - timedelta(days=90)
        if self.preset == DateRangePreset.LAST_QUARTER:
            return _months_before(today, 3)
        if self.preset == DateRangePreset.CUSTOM:
            return self.start
        return None

    def contains(self, value: date, today: Optional[date] = None) -> bool:
        start = self.start_date(today)
        if start is None:
            return True
        if value < start:
            return False
        if self.preset == DateRangePreset.CUSTOM and self.end is not None:
            return value <= self.end
        return True


def _months_before(value: date, months: int) -> date:
    month_index = value.year * 12 + (value.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    # Clamp the day for shorter months (e.g. 31 May -> 28/29 Feb)
    for day in (value.day, 30, 29, 28):
        try:
            return date(year, month, day)
        except ValueError:
            continue
    return date(year, month, 28)


# =============================================================================
# WRITE REQUESTS
# =============================================================================

def _lenient_decimal(value: Any) -> Optional[Decimal]:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        parsed = Decimal(str(value).strip())
    except InvalidOperation:
        return None
    return parsed if parsed.is_finite() else None


class PurchaseRequest(BaseModel):
    """
    A user's request to record a purchase.

    Fields are deliberately lenient: missing or malformed values become
    None and are reported by the validator instead of failing here.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    supplier_id: str
    project_id: Optional[str] = None
    amount: Optional[Decimal] = None
    entry_date: Optional[date] = None
    description: str = ""

    @field_validator('project_id', mode='before')
    @classmethod
    def blank_project_is_missing(cls, v: Any) -> Optional[str]:
        if v is None or str(v).strip() == "":
            return None
        return str(v)

    @field_validator('amount', mode='before')
    @classmethod
    def parse_amount(cls, v: Any) -> Optional[Decimal]:
        return _lenient_decimal(v)

    @field_validator('entry_date', mode='before')
    @classmethod
    def parse_date(cls, v: Any) -> Any:
        if v == "":
            return None
        return parse_iso_date(v)

    @field_validator('description', mode='before')
    @classmethod
    def none_description(cls, v: Any) -> str:
        return "" if v is None else v


class PaymentRequest(PurchaseRequest):
    """A user's request to record a payment to a supplier."""

    payment_mode: Optional[PaymentMode] = None
    supplier_name: Optional[str] = Field(
        default=None,
        description="Used in the Payment Out description"
    )

    @field_validator('payment_mode', mode='before')
    @classmethod
    def parse_payment_mode(cls, v: Any) -> Optional[PaymentMode]:
        return PaymentMode.parse(v)


class PaymentAmountCheck(BaseModel):
    """Whether a payment amount fits the current payable balance."""

    is_valid: bool
    current_balance: Decimal
    message: str


class StepOutcome(BaseModel):
    """Result of one step of the payment recording protocol."""

    step: ReconciliationStep
    succeeded: bool
    entity_id: Optional[str] = None
    error: Optional[str] = None


class PaymentRecordResult(BaseModel):
    """Outcome of a fully recorded payment."""

    transaction: Transaction
    approval_entry: PaymentOutEntry
    steps: list[StepOutcome] = Field(default_factory=list)

    @property
    def transaction_id(self) -> str:
        return self.transaction.id

    @property
    def linked_approval_entry_id(self) -> str:
        return self.approval_entry.id

    def to_dict(self) -> dict[str, str]:
        return {
            "transactionId": self.transaction_id,
            "linkedApprovalEntryId": self.linked_approval_entry_id,
        }


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'future_date')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class ValidationResult(BaseModel):
    """Result of validating a purchase or payment request."""

    validated_at: datetime = Field(default_factory=utc_now)
    is_valid: bool
    issues: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    # Populated for payments
    current_balance: Optional[Decimal] = None
    balance_version: Optional[str] = None

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    def field_errors(self) -> dict[str, str]:
        """First error message per field, for inline display."""
        errors: dict[str, str] = {}
        for issue in self.issues:
            if issue.severity == "error":
                errors.setdefault(issue.field, issue.message)
        return errors
