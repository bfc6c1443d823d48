"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is the persistent backend because:
1. The office can inspect the supplier ledger directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)

TRADEOFFS:
- No transactions (the payment protocol handles ordering and reports
  which step failed)
- Limited query capabilities (we filter in Python)

gspread is synchronous; calls run in a worker thread so the write
timeouts of the recording flows can take effect.
"""

import asyncio
import json
from datetime import datetime
from typing import Any, Optional
from uuid import UUID

import gspread
import structlog
from google.oauth2.service_account import Credentials
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from supplier_ledger.config import get_settings
from supplier_ledger.models.audit import AuditEvent, AuditEventType, AuditSeverity
from supplier_ledger.models.ledger import PaymentOutEntry, Transaction, utc_now
from supplier_ledger.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    DuplicateError,
    NotFoundError,
    PaymentOutStorageInterface,
    StorageError,
    TransactionStorageInterface,
)


logger = structlog.get_logger(__name__)


# Column mappings for the supplier transactions sheet
TRANSACTION_COLUMNS = [
    "id",
    "supplierId",
    "projectId",
    "kind",
    "amount",
    "date",
    "description",
    "paymentMode",
    "linkedApprovalEntryId",
    "enteredBy",
    "enteredAt",
]

# Column mappings for the Payment Out sheet
PAYMENT_OUT_COLUMNS = [
    "id",
    "supplierId",
    "partyId",
    "projectId",
    "supplierTransactionId",
    "amount",
    "date",
    "category",
    "paymentMode",
    "description",
    "status",
    "approvedBy",
    "approvedAt",
    "rejectedBy",
    "rejectedAt",
    "rejectionReason",
    "createdBy",
    "createdAt",
]

# Column mappings for Audit sheet
AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "entity_type",
    "entity_id",
    "correlation_id",
    "description",
    "details_json",
    "error_code",
    "error_message",
    "actor",
]

_API_RETRY = dict(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    retry=retry_if_exception_type(gspread.exceptions.APIError),
    reraise=True,
)


def _record_to_row(record: dict[str, Any], columns: list[str]) -> list[str]:
    return ["" if record.get(column) is None else str(record[column]) for column in columns]


def _row_to_record(row: list[str], columns: list[str]) -> dict[str, Any]:
    """Map a row to a record, treating missing and empty cells as absent."""
    record: dict[str, Any] = {}
    for index, column in enumerate(columns):
        if index < len(row) and row[index] != "":
            record[column] = row[index]
    return record


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication, worksheet creation and retry logic for API calls.
    """

    def __init__(self):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def _get_or_create_sheet(
        self,
        title: str,
        columns: list[str],
        rows: int,
    ) -> gspread.Worksheet:
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            # Create the sheet with headers
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=rows,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet

    def get_transactions_sheet(self) -> gspread.Worksheet:
        """Get or create the supplier transactions worksheet."""
        return self._get_or_create_sheet(
            self._settings.transactions_sheet_name, TRANSACTION_COLUMNS, 1000
        )

    def get_payments_out_sheet(self) -> gspread.Worksheet:
        """Get or create the Payment Out worksheet."""
        return self._get_or_create_sheet(
            self._settings.payments_out_sheet_name, PAYMENT_OUT_COLUMNS, 1000
        )

    def get_audit_sheet(self) -> gspread.Worksheet:
        """Get or create the Audit worksheet."""
        # More rows for audit log
        return self._get_or_create_sheet(
            self._settings.audit_sheet_name, AUDIT_COLUMNS, 5000
        )

    @retry(**_API_RETRY)
    def append_row(self, sheet: gspread.Worksheet, row: list[str]) -> None:
        sheet.append_row(row, value_input_option="RAW")

    @retry(**_API_RETRY)
    def read_rows(self, sheet: gspread.Worksheet) -> list[list[str]]:
        """All data rows (header excluded)."""
        return sheet.get_all_values()[1:]

    @retry(**_API_RETRY)
    def update_cell(self, sheet: gspread.Worksheet, row: int, col: int, value: str) -> None:
        sheet.update_cell(row, col, value)


class GoogleSheetsTransactionStorage(TransactionStorageInterface):
    """
    Google Sheets implementation of transaction storage.

    One transaction per row; rows written by older versions (legacy kinds,
    numeric ids) are normalized by Transaction.from_record().
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _read_all(self) -> list[Transaction]:
        sheet = self._client.get_transactions_sheet()
        transactions = []
        for row_number, row in enumerate(self._client.read_rows(sheet), start=2):
            if not row or not row[0]:  # Skip empty rows
                continue
            try:
                transactions.append(
                    Transaction.from_record(_row_to_record(row, TRANSACTION_COLUMNS))
                )
            except ValueError as e:
                logger.warning(
                    "transaction_row_skipped",
                    row_number=row_number,
                    error=str(e),
                )
        return transactions

    def _save(self, transaction: Transaction) -> Transaction:
        sheet = self._client.get_transactions_sheet()
        for row in self._client.read_rows(sheet):
            if row and row[0] == transaction.id:
                raise DuplicateError(f"Transaction already exists: {transaction.id}")
        self._client.append_row(
            sheet, _record_to_row(transaction.to_record(), TRANSACTION_COLUMNS)
        )
        return transaction

    def _link(self, transaction_id: str, approval_entry_id: str) -> Transaction:
        sheet = self._client.get_transactions_sheet()
        link_column = TRANSACTION_COLUMNS.index("linkedApprovalEntryId") + 1

        # Start from 2 (row 1 is header)
        for row_number, row in enumerate(self._client.read_rows(sheet), start=2):
            if row and row[0] == transaction_id:
                transaction = Transaction.from_record(
                    _row_to_record(row, TRANSACTION_COLUMNS)
                )
                try:
                    linked = transaction.with_link(approval_entry_id)
                except ValueError as e:
                    raise StorageError(str(e)) from e
                self._client.update_cell(sheet, row_number, link_column, approval_entry_id)
                return linked

        raise NotFoundError(f"Transaction not found: {transaction_id}")

    async def save_transaction(self, transaction: Transaction) -> Transaction:
        """Append a transaction row."""
        try:
            return await asyncio.to_thread(self._save, transaction)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save transaction: {e}") from e

    async def get_transaction(self, transaction_id: str) -> Optional[Transaction]:
        """Retrieve a transaction by its ID."""
        try:
            transactions = await asyncio.to_thread(self._read_all)
        except Exception as e:
            raise StorageError(f"Failed to get transaction: {e}") from e
        for transaction in transactions:
            if transaction.id == transaction_id:
                return transaction
        return None

    async def link_approval_entry(
        self,
        transaction_id: str,
        approval_entry_id: str,
    ) -> Transaction:
        """Write the Payment Out id into the transaction's link cell."""
        try:
            return await asyncio.to_thread(self._link, transaction_id, approval_entry_id)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to link transaction: {e}") from e

    async def list_transactions(
        self,
        supplier_id: Optional[str] = None,
        project_id: Optional[str] = None,
    ) -> list[Transaction]:
        """List transactions, filtered in Python."""
        try:
            transactions = await asyncio.to_thread(self._read_all)
        except Exception as e:
            raise StorageError(f"Failed to list transactions: {e}") from e
        return [
            t for t in transactions
            if (supplier_id is None or t.supplier_id == supplier_id)
            and (project_id is None or t.project_id == project_id)
        ]


class GoogleSheetsPaymentOutStorage(PaymentOutStorageInterface):
    """Google Sheets implementation of Payment Out storage."""

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _read_all(self) -> list[PaymentOutEntry]:
        sheet = self._client.get_payments_out_sheet()
        entries = []
        for row in self._client.read_rows(sheet):
            if not row or not row[0]:
                continue
            record = _row_to_record(row, PAYMENT_OUT_COLUMNS)
            try:
                entries.append(_entry_from_record(record))
            except ValueError as e:
                logger.warning("payment_out_row_skipped", entry_id=row[0], error=str(e))
        return entries

    def _save(self, entry: PaymentOutEntry) -> PaymentOutEntry:
        sheet = self._client.get_payments_out_sheet()
        for row in self._client.read_rows(sheet):
            if row and row[0] == entry.id:
                raise DuplicateError(f"Payment Out entry already exists: {entry.id}")
        self._client.append_row(sheet, _record_to_row(entry.to_record(), PAYMENT_OUT_COLUMNS))
        return entry

    async def save_entry(self, entry: PaymentOutEntry) -> PaymentOutEntry:
        try:
            return await asyncio.to_thread(self._save, entry)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save Payment Out entry: {e}") from e

    async def get_entry(self, entry_id: str) -> Optional[PaymentOutEntry]:
        for entry in await self.list_entries():
            if entry.id == entry_id:
                return entry
        return None

    async def list_entries(
        self,
        supplier_id: Optional[str] = None,
    ) -> list[PaymentOutEntry]:
        try:
            entries = await asyncio.to_thread(self._read_all)
        except Exception as e:
            raise StorageError(f"Failed to list Payment Out entries: {e}") from e
        return [e for e in entries if supplier_id is None or e.supplier_id == supplier_id]


def _entry_from_record(record: dict[str, Any]) -> PaymentOutEntry:
    return PaymentOutEntry(
        id=record["id"],
        supplier_id=record.get("supplierId", ""),
        party_id=record.get("partyId", record.get("supplierId", "")),
        project_id=record.get("projectId", ""),
        supplier_transaction_id=record.get("supplierTransactionId", ""),
        amount=record.get("amount"),
        entry_date=record.get("date"),
        category=record.get("category", "Materials"),
        payment_mode=record.get("paymentMode", ""),
        description=record.get("description", ""),
        status=record.get("status", "pending"),
        approved_by=record.get("approvedBy"),
        approved_at=record.get("approvedAt"),
        rejected_by=record.get("rejectedBy"),
        rejected_at=record.get("rejectedAt"),
        rejection_reason=record.get("rejectionReason"),
        created_by=record.get("createdBy", "Unknown"),
        created_at=record.get("createdAt") or utc_now(),
    )


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _row_to_event(self, row: list) -> AuditEvent:
        """Convert a spreadsheet row to an AuditEvent."""
        def safe_get(index: int, default: str = "") -> str:
            try:
                return row[index] if row[index] else default
            except IndexError:
                return default

        return AuditEvent(
            event_id=UUID(safe_get(0)),
            timestamp=datetime.fromisoformat(safe_get(1)),
            event_type=AuditEventType(safe_get(2)),
            severity=AuditSeverity(safe_get(3)),
            entity_type=safe_get(4) or None,
            entity_id=safe_get(5) or None,
            correlation_id=UUID(safe_get(6)) if safe_get(6) else None,
            description=safe_get(7),
            details=json.loads(safe_get(8)) if safe_get(8) else {},
            error_code=safe_get(9) or None,
            error_message=safe_get(10) or None,
            actor=safe_get(11) or None,
        )

    def _read_events(self) -> list[AuditEvent]:
        sheet = self._client.get_audit_sheet()
        events = []
        for row in self._client.read_rows(sheet):
            if not row or not row[0]:
                continue
            try:
                events.append(self._row_to_event(row))
            except ValueError as e:
                logger.warning("audit_row_skipped", event_id=row[0], error=str(e))
        return events

    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            sheet = await asyncio.to_thread(self._client.get_audit_sheet)
            await asyncio.to_thread(self._client.append_row, sheet, event.to_sheets_row())
            return True
        except Exception as e:
            # Audit logging should not break the main flow
            logger.error(
                "audit_event_write_failed",
                event_id=str(event.event_id),
                error=str(e),
            )
            return False

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """Get events by correlation ID."""
        try:
            events = await asyncio.to_thread(self._read_events)
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}") from e

        events = [e for e in events if e.correlation_id == correlation_id]
        # Sort chronologically
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get recent events."""
        try:
            events = await asyncio.to_thread(self._read_events)
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}") from e

        # Sort newest first
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
