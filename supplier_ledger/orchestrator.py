"""
Main Orchestrator for Supplier Ledger

This module ties together all the components and defines the
end-to-end write flows for:
1. Purchase (validate → save)
2. Payment (validate → save transaction → create Payment Out entry → link)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Nothing is written unless validation passes
- Every write is bounded by a timeout
- Every step is audited

Payment recording spans two stores without a distributed transaction.
If a later step fails, earlier records stay in place (no rollback) and the
raised StoreWriteError names the failed step and the ids already created,
so the records can be reconciled by hand.
"""

import asyncio
import weakref
from typing import Any, Awaitable, Optional
from uuid import UUID

import structlog

from supplier_ledger.audit import AuditLogger, create_correlation_id
from supplier_ledger.config import get_settings
from supplier_ledger.config.settings import LedgerSettings
from supplier_ledger.errors import (
    ConcurrentModificationError,
    StoreWriteError,
    ValidationError,
    WriteTimeoutError,
)
from supplier_ledger.ledger import balance_version
from supplier_ledger.models.ledger import (
    PaymentOutEntry,
    PaymentRecordResult,
    PaymentRequest,
    PurchaseRequest,
    ReconciliationStep,
    StepOutcome,
    Transaction,
    TransactionKind,
    ValidationResult,
)
from supplier_ledger.queries import LedgerQueries
from supplier_ledger.services.storage import (
    AuditStorageInterface,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsPaymentOutStorage,
    GoogleSheetsTransactionStorage,
    InMemoryPaymentOutStorage,
    InMemoryTransactionStorage,
    PaymentOutStorageInterface,
    StorageError,
    TransactionStorageInterface,
)
from supplier_ledger.validation import EntryValidator


logger = structlog.get_logger(__name__)


class _RecordingFlow:
    """Shared plumbing: bounded writes and failure auditing."""

    def __init__(
        self,
        transaction_storage: TransactionStorageInterface,
        validator: Optional[EntryValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[LedgerSettings] = None,
    ):
        self._settings = settings or get_settings().ledger
        self._transactions = transaction_storage
        self._validator = validator or EntryValidator(self._settings)
        self._audit_logger = audit_logger

    async def _write(
        self,
        step: ReconciliationStep,
        operation: Awaitable[Any],
        created_ids: dict[str, str],
        correlation_id: UUID,
    ) -> Any:
        """
        Await one store write within the configured timeout.

        The operation also builds the record it writes, so a record that
        cannot be built fails its step like a rejected write.

        Raises:
            WriteTimeoutError: If the write did not finish in time
            StoreWriteError: If the store rejected or failed the write
        """
        timeout = self._settings.write_timeout_seconds
        try:
            return await asyncio.wait_for(operation, timeout=timeout)
        except asyncio.TimeoutError as e:
            message = f"write did not complete within {timeout:g}s"
            await self._audit_write_failure(step, message, created_ids, correlation_id, True)
            raise WriteTimeoutError(step, message, created_ids) from e
        except StorageError as e:
            await self._audit_write_failure(step, str(e), created_ids, correlation_id, False)
            raise StoreWriteError(step, str(e), created_ids) from e
        except Exception as e:
            await self._audit_write_failure(step, str(e), created_ids, correlation_id, False)
            if self._audit_logger:
                await self._audit_logger.log_error(
                    error_type=type(e).__name__,
                    error_message=str(e),
                    details={"step": step.value, "created_ids": dict(created_ids)},
                    correlation_id=correlation_id,
                )
            raise StoreWriteError(step, str(e), created_ids) from e

    async def _audit_write_failure(
        self,
        step: ReconciliationStep,
        message: str,
        created_ids: dict[str, str],
        correlation_id: UUID,
        timed_out: bool,
    ) -> None:
        if self._audit_logger:
            await self._audit_logger.log_store_write_failed(
                step=step.value,
                error_message=message,
                created_ids=dict(created_ids),
                correlation_id=correlation_id,
                timed_out=timed_out,
            )

    async def _save_transaction(
        self,
        kind: TransactionKind,
        request: PurchaseRequest,
        entered_by: str,
        payment_mode: Optional[str] = None,
    ) -> Transaction:
        transaction = Transaction(
            supplier_id=request.supplier_id,
            project_id=request.project_id,
            kind=kind,
            amount=request.amount,
            transaction_date=request.entry_date,
            description=request.description,
            payment_mode=payment_mode,
            entered_by=entered_by,
        )
        return await self._transactions.save_transaction(transaction)

    async def _reject(
        self,
        kind: TransactionKind,
        request: PurchaseRequest,
        result: ValidationResult,
        correlation_id: UUID,
    ) -> None:
        """Audit a failed validation and raise it."""
        if self._audit_logger:
            await self._audit_logger.log_validation_failed(
                kind=kind.value,
                supplier_id=request.supplier_id,
                issues=[
                    {"field": i.field, "type": i.issue_type, "message": i.message}
                    for i in result.issues
                ],
                correlation_id=correlation_id,
            )
        raise ValidationError(result.issues)


class PurchaseRecordingFlow(_RecordingFlow):
    """
    Records a purchase.

    Flow:
    1. Validate → field checks only, no balance involved
    2. Save → single write of a PURCHASE transaction

    Purchases never get a Payment Out entry.
    """

    async def record_purchase(
        self,
        request: PurchaseRequest,
        entered_by: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Transaction:
        """
        Validate and save a purchase.

        Raises:
            ValidationError: If the request is invalid (nothing written)
            StoreWriteError: If the write fails or times out
        """
        correlation_id = correlation_id or create_correlation_id()
        entered_by = entered_by or self._settings.default_entered_by

        result = self._validator.validate_purchase(request)
        if not result.is_valid:
            await self._reject(TransactionKind.PURCHASE, request, result, correlation_id)

        saved = await self._write(
            ReconciliationStep.CREATE_TRANSACTION,
            self._save_transaction(TransactionKind.PURCHASE, request, entered_by),
            {},
            correlation_id,
        )

        if self._audit_logger:
            await self._audit_logger.log_purchase_recorded(
                transaction_id=saved.id,
                supplier_id=saved.supplier_id,
                project_id=saved.project_id,
                amount=str(saved.amount),
                actor=entered_by,
                correlation_id=correlation_id,
            )

        return saved


class PaymentReconciliationFlow(_RecordingFlow):
    """
    Records a payment and its Payment Out approval entry.

    Flow:
    1. Validate → fields, payment mode, amount within the project balance
    2. Save transaction → PAYMENT, not yet linked
    3. Create Payment Out entry → pending, pointing back at the transaction
    4. Link → set the transaction's linked_approval_entry_id

    Success is reported only after all three writes complete.

    Payments for the same supplier and project are serialized within this
    process, and the balance version is checked again right before the
    first write (compare-and-set).
    """

    def __init__(
        self,
        transaction_storage: TransactionStorageInterface,
        payment_out_storage: PaymentOutStorageInterface,
        validator: Optional[EntryValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[LedgerSettings] = None,
    ):
        super().__init__(
            transaction_storage,
            validator=validator,
            audit_logger=audit_logger,
            settings=settings,
        )
        self._payment_outs = payment_out_storage
        # Entries go away once no payment holds or waits on the lock
        self._locks: "weakref.WeakValueDictionary[tuple[str, str], asyncio.Lock]" = (
            weakref.WeakValueDictionary()
        )

    def _lock_for(self, supplier_id: str, project_id: str) -> asyncio.Lock:
        key = (supplier_id, project_id)
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    async def _create_approval_entry(
        self,
        request: PaymentRequest,
        transaction: Transaction,
        entered_by: str,
    ) -> PaymentOutEntry:
        entry = PaymentOutEntry(
            supplier_id=request.supplier_id,
            party_id=request.supplier_id,
            project_id=request.project_id,
            supplier_transaction_id=transaction.id,
            amount=request.amount,
            entry_date=request.entry_date,
            category=self._settings.payment_out_category,
            payment_mode=request.payment_mode.value,
            description=self._validator.payment_out_description(request),
            created_by=entered_by,
        )
        return await self._payment_outs.save_entry(entry)

    async def _check_version(
        self,
        request: PaymentRequest,
        validated_version: str,
        expected_version: Optional[str],
        correlation_id: UUID,
    ) -> None:
        """
        Refuse the payment if the balance moved.

        Raises:
            ConcurrentModificationError: If the caller's version or the
                stored version differs from the validated one
        """
        actual = validated_version
        mismatch = expected_version is not None and expected_version != validated_version

        if not mismatch and self._settings.enforce_balance_version:
            latest = await self._transactions.list_transactions(
                supplier_id=request.supplier_id,
            )
            actual = balance_version(latest, request.supplier_id, request.project_id)
            mismatch = actual != validated_version

        if not mismatch:
            return

        expected = expected_version if expected_version is not None else validated_version
        if self._audit_logger:
            await self._audit_logger.log_concurrent_modification(
                supplier_id=request.supplier_id,
                project_id=request.project_id,
                expected_version=expected,
                actual_version=actual,
                correlation_id=correlation_id,
            )
        raise ConcurrentModificationError(
            request.supplier_id,
            request.project_id,
            expected,
            actual,
        )

    async def record_payment(
        self,
        request: PaymentRequest,
        entered_by: Optional[str] = None,
        expected_version: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> PaymentRecordResult:
        """
        Record a payment end to end.

        Args:
            request: The payment to record
            entered_by: User recording the payment
            expected_version: Balance version the user saw, if known
            correlation_id: Ties the audit events of this action together

        Returns:
            PaymentRecordResult with the linked transaction and the entry

        Raises:
            ValidationError: If the request is invalid (nothing written)
            ConcurrentModificationError: If the balance changed (nothing written)
            StoreWriteError: If a write failed; earlier writes are kept
        """
        correlation_id = correlation_id or create_correlation_id()
        entered_by = entered_by or self._settings.default_entered_by

        async with self._lock_for(request.supplier_id, request.project_id or ""):
            transactions = await self._transactions.list_transactions(
                supplier_id=request.supplier_id,
            )
            result = self._validator.validate_payment(request, transactions)
            if not result.is_valid:
                await self._reject(TransactionKind.PAYMENT, request, result, correlation_id)

            await self._check_version(
                request,
                result.balance_version,
                expected_version,
                correlation_id,
            )
            steps = [StepOutcome(step=ReconciliationStep.VALIDATE, succeeded=True)]
            created_ids: dict[str, str] = {}

            # Step 2: ledger transaction, link left empty
            saved = await self._write(
                ReconciliationStep.CREATE_TRANSACTION,
                self._save_transaction(
                    TransactionKind.PAYMENT,
                    request,
                    entered_by,
                    payment_mode=request.payment_mode.value,
                ),
                created_ids,
                correlation_id,
            )
            created_ids["transaction_id"] = saved.id
            steps.append(StepOutcome(
                step=ReconciliationStep.CREATE_TRANSACTION,
                succeeded=True,
                entity_id=saved.id,
            ))
            if self._audit_logger:
                await self._audit_logger.log_payment_recorded(
                    transaction_id=saved.id,
                    supplier_id=saved.supplier_id,
                    project_id=saved.project_id,
                    amount=str(saved.amount),
                    actor=entered_by,
                    correlation_id=correlation_id,
                )

            # Step 3: approval entry with the back-reference
            saved_entry = await self._write(
                ReconciliationStep.CREATE_APPROVAL_ENTRY,
                self._create_approval_entry(request, saved, entered_by),
                created_ids,
                correlation_id,
            )
            created_ids["approval_entry_id"] = saved_entry.id
            steps.append(StepOutcome(
                step=ReconciliationStep.CREATE_APPROVAL_ENTRY,
                succeeded=True,
                entity_id=saved_entry.id,
            ))
            if self._audit_logger:
                await self._audit_logger.log_payment_out_created(
                    entry_id=saved_entry.id,
                    transaction_id=saved.id,
                    correlation_id=correlation_id,
                )

            # Step 4: link back
            linked = await self._write(
                ReconciliationStep.LINK_TRANSACTION,
                self._transactions.link_approval_entry(saved.id, saved_entry.id),
                created_ids,
                correlation_id,
            )
            steps.append(StepOutcome(
                step=ReconciliationStep.LINK_TRANSACTION,
                succeeded=True,
                entity_id=linked.id,
            ))
            if self._audit_logger:
                await self._audit_logger.log_payment_linked(
                    transaction_id=linked.id,
                    entry_id=saved_entry.id,
                    correlation_id=correlation_id,
                )

        return PaymentRecordResult(
            transaction=linked,
            approval_entry=saved_entry,
            steps=steps,
        )


def create_app_components(
    use_storage: bool = True,
) -> tuple[
    PurchaseRecordingFlow,
    PaymentReconciliationFlow,
    LedgerQueries,
    Optional[GoogleSheetsClient],
]:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to initialize Google Sheets storage.
                    Set to False (or leave Sheets unconfigured) to keep
                    everything in memory.

    Returns:
        (purchase_flow, payment_flow, ledger_queries, sheets_client)
    """
    sheets_client = None
    transaction_storage: TransactionStorageInterface
    payment_out_storage: PaymentOutStorageInterface
    audit_storage: Optional[AuditStorageInterface] = None

    if use_storage:
        try:
            sheets_client = GoogleSheetsClient()
            transaction_storage = GoogleSheetsTransactionStorage(sheets_client)
            payment_out_storage = GoogleSheetsPaymentOutStorage(sheets_client)
            audit_storage = GoogleSheetsAuditStorage(sheets_client)
        except Exception as e:
            # Storage not configured - continue in memory
            logger.warning("storage_not_configured", error=str(e))
            sheets_client = None
            audit_storage = None
            transaction_storage = InMemoryTransactionStorage()
            payment_out_storage = InMemoryPaymentOutStorage()
    else:
        transaction_storage = InMemoryTransactionStorage()
        payment_out_storage = InMemoryPaymentOutStorage()

    audit_logger = AuditLogger(audit_storage)
    validator = EntryValidator()

    purchase_flow = PurchaseRecordingFlow(
        transaction_storage,
        validator=validator,
        audit_logger=audit_logger,
    )
    payment_flow = PaymentReconciliationFlow(
        transaction_storage,
        payment_out_storage,
        validator=validator,
        audit_logger=audit_logger,
    )
    ledger_queries = LedgerQueries(transaction_storage)

    return purchase_flow, payment_flow, ledger_queries, sheets_client
