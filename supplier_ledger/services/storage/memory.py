"""
In-Memory Storage Implementation

Keeps records in process memory, in insertion order. Used by the tests and
whenever no persistent backend is configured.
"""

from typing import Optional
from uuid import UUID

from supplier_ledger.models.audit import AuditEvent
from supplier_ledger.models.ledger import PaymentOutEntry, Transaction
from supplier_ledger.services.storage.interface import (
    AuditStorageInterface,
    DuplicateError,
    NotFoundError,
    PaymentOutStorageInterface,
    StorageError,
    TransactionStorageInterface,
)


class InMemoryTransactionStorage(TransactionStorageInterface):
    """Transaction store backed by a dict (insertion ordered)."""

    def __init__(self, transactions: Optional[list[Transaction]] = None):
        self._transactions: dict[str, Transaction] = {}
        for transaction in transactions or ():
            self._transactions[transaction.id] = transaction

    async def save_transaction(self, transaction: Transaction) -> Transaction:
        if transaction.id in self._transactions:
            raise DuplicateError(f"Transaction already exists: {transaction.id}")
        self._transactions[transaction.id] = transaction
        return transaction

    async def get_transaction(self, transaction_id: str) -> Optional[Transaction]:
        return self._transactions.get(transaction_id)

    async def link_approval_entry(
        self,
        transaction_id: str,
        approval_entry_id: str,
    ) -> Transaction:
        transaction = self._transactions.get(transaction_id)
        if transaction is None:
            raise NotFoundError(f"Transaction not found: {transaction_id}")
        try:
            linked = transaction.with_link(approval_entry_id)
        except ValueError as e:
            raise StorageError(str(e)) from e
        self._transactions[transaction_id] = linked
        return linked

    async def list_transactions(
        self,
        supplier_id: Optional[str] = None,
        project_id: Optional[str] = None,
    ) -> list[Transaction]:
        return [
            t for t in self._transactions.values()
            if (supplier_id is None or t.supplier_id == supplier_id)
            and (project_id is None or t.project_id == project_id)
        ]


class InMemoryPaymentOutStorage(PaymentOutStorageInterface):
    """Payment Out store backed by a dict."""

    def __init__(self):
        self._entries: dict[str, PaymentOutEntry] = {}

    async def save_entry(self, entry: PaymentOutEntry) -> PaymentOutEntry:
        if entry.id in self._entries:
            raise DuplicateError(f"Payment Out entry already exists: {entry.id}")
        self._entries[entry.id] = entry
        return entry

    async def get_entry(self, entry_id: str) -> Optional[PaymentOutEntry]:
        return self._entries.get(entry_id)

    async def list_entries(
        self,
        supplier_id: Optional[str] = None,
    ) -> list[PaymentOutEntry]:
        return [
            e for e in self._entries.values()
            if supplier_id is None or e.supplier_id == supplier_id
        ]


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only audit log in a list."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        events = [e for e in self._events if e.correlation_id == correlation_id]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        events = sorted(self._events, key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
