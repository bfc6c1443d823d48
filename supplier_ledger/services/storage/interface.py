"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Keep Google Sheets, an embedded database, or anything else swappable
2. Use in-memory storage for testing
3. Keep ledger calculations decoupled from storage implementation

The interface is intentionally small. Transactions are append-only: the
only update is attaching the Payment Out link, once.
"""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from supplier_ledger.models.audit import AuditEvent
from supplier_ledger.models.ledger import PaymentOutEntry, Transaction


class TransactionStorageInterface(ABC):
    """
    Abstract interface for supplier transaction storage.

    Any storage implementation must implement these methods.
    """

    @abstractmethod
    async def save_transaction(self, transaction: Transaction) -> Transaction:
        """
        Persist a new transaction.

        Args:
            transaction: The transaction to save

        Returns:
            The stored transaction

        Raises:
            DuplicateError: If a transaction with this id already exists
            StorageError: If save fails
        """
        pass

    @abstractmethod
    async def get_transaction(self, transaction_id: str) -> Optional[Transaction]:
        """
        Retrieve a transaction by its ID.

        Returns:
            The transaction if found, None otherwise
        """
        pass

    @abstractmethod
    async def link_approval_entry(
        self,
        transaction_id: str,
        approval_entry_id: str,
    ) -> Transaction:
        """
        Attach the Payment Out link to a payment transaction.

        Returns:
            The updated transaction

        Raises:
            NotFoundError: If the transaction doesn't exist
            StorageError: If it is already linked, not a payment, or the update fails
        """
        pass

    @abstractmethod
    async def list_transactions(
        self,
        supplier_id: Optional[str] = None,
        project_id: Optional[str] = None,
    ) -> list[Transaction]:
        """
        List transactions, optionally for one supplier and/or project.

        Returns:
            Matching transactions in store order
        """
        pass


class PaymentOutStorageInterface(ABC):
    """Abstract interface for Payment Out approval entries."""

    @abstractmethod
    async def save_entry(self, entry: PaymentOutEntry) -> PaymentOutEntry:
        """
        Persist a new Payment Out entry.

        Raises:
            DuplicateError: If an entry with this id already exists
            StorageError: If save fails
        """
        pass

    @abstractmethod
    async def get_entry(self, entry_id: str) -> Optional[PaymentOutEntry]:
        """Retrieve an entry by ID, None if missing."""
        pass

    @abstractmethod
    async def list_entries(
        self,
        supplier_id: Optional[str] = None,
    ) -> list[PaymentOutEntry]:
        """List entries, optionally for one supplier."""
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for a correlation ID (e.g., one payment recording).

        Returns:
            List of related events in chronological order
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
