"""Services package."""

from supplier_ledger.services.storage import (
    AuditStorageInterface,
    ConnectionError,
    DuplicateError,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsPaymentOutStorage,
    GoogleSheetsTransactionStorage,
    InMemoryAuditStorage,
    InMemoryPaymentOutStorage,
    InMemoryTransactionStorage,
    NotFoundError,
    PaymentOutStorageInterface,
    StorageError,
    TransactionStorageInterface,
)

__all__ = [
    "AuditStorageInterface",
    "ConnectionError",
    "DuplicateError",
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsPaymentOutStorage",
    "GoogleSheetsTransactionStorage",
    "InMemoryAuditStorage",
    "InMemoryPaymentOutStorage",
    "InMemoryTransactionStorage",
    "NotFoundError",
    "PaymentOutStorageInterface",
    "StorageError",
    "TransactionStorageInterface",
]
