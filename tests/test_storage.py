"""Tests for storage backends (Google Sheets with a fake client, no API calls)."""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from supplier_ledger.models.audit import AuditEventBuilder
from supplier_ledger.models.ledger import PaymentOutEntry, TransactionKind
from supplier_ledger.services.storage import (
    DuplicateError,
    GoogleSheetsAuditStorage,
    GoogleSheetsPaymentOutStorage,
    GoogleSheetsTransactionStorage,
    InMemoryTransactionStorage,
    NotFoundError,
    StorageError,
)
from supplier_ledger.services.storage.google_sheets import TRANSACTION_COLUMNS

from tests.conftest import make_transaction


class _FakeSheetsClient:
    """Stands in for GoogleSheetsClient; each worksheet is a list of rows."""

    def __init__(self, transaction_rows=None):
        self.sheets = {
            "transactions": [list(TRANSACTION_COLUMNS)] + list(transaction_rows or []),
            "payments_out": [["id"]],
            "audit": [["event_id"]],
        }

    def get_transactions_sheet(self):
        return "transactions"

    def get_payments_out_sheet(self):
        return "payments_out"

    def get_audit_sheet(self):
        return "audit"

    def append_row(self, sheet, row):
        self.sheets[sheet].append(list(row))

    def read_rows(self, sheet):
        return [list(row) for row in self.sheets[sheet][1:]]

    def update_cell(self, sheet, row, col, value):
        target = self.sheets[sheet][row - 1]
        target.extend([""] * (col - len(target)))
        target[col - 1] = value


class TestInMemoryTransactionStorage:

    @pytest.mark.asyncio
    async def test_duplicate_id_rejected(self):
        transaction = make_transaction("purchase", 1, id="t1")
        storage = InMemoryTransactionStorage([transaction])
        with pytest.raises(DuplicateError):
            await storage.save_transaction(transaction)

    @pytest.mark.asyncio
    async def test_link_only_once(self):
        storage = InMemoryTransactionStorage([make_transaction("payment", 1, id="t1")])
        await storage.link_approval_entry("t1", "po-1")
        with pytest.raises(StorageError):
            await storage.link_approval_entry("t1", "po-2")
        with pytest.raises(NotFoundError):
            await storage.link_approval_entry("missing", "po-1")


class TestGoogleSheetsTransactionStorage:

    @pytest.mark.asyncio
    async def test_legacy_rows_are_normalized(self):
        client = _FakeSheetsClient([
            ["1", "s1", "p1", "credit", "1000", "2024-01-01", "Cement", "", "", "ravi",
             "2024-01-01T10:00:00"],
            ["2", "s1", "p1", "debit", "oops", "2024-01-02", "Cash", "Cash"],
            [""],
        ])
        storage = GoogleSheetsTransactionStorage(client)

        transactions = await storage.list_transactions(supplier_id="s1")

        assert [t.kind for t in transactions] == [TransactionKind.PURCHASE, TransactionKind.PAYMENT]
        assert transactions[1].amount == Decimal("0")

    @pytest.mark.asyncio
    async def test_save_and_link_round_trip(self):
        client = _FakeSheetsClient()
        storage = GoogleSheetsTransactionStorage(client)
        payment = make_transaction("payment", "250.75", id="t9", payment_mode="UPI")

        await storage.save_transaction(payment)
        linked = await storage.link_approval_entry("t9", "po-3")
        stored = await storage.get_transaction("t9")

        assert linked.linked_approval_entry_id == "po-3"
        assert stored.linked_approval_entry_id == "po-3"
        assert stored.amount == Decimal("250.75")
        with pytest.raises(DuplicateError):
            await storage.save_transaction(payment)

    @pytest.mark.asyncio
    async def test_link_missing_transaction(self):
        storage = GoogleSheetsTransactionStorage(_FakeSheetsClient())
        with pytest.raises(NotFoundError):
            await storage.link_approval_entry("nope", "po-1")


class TestGoogleSheetsPaymentOutStorage:

    @pytest.mark.asyncio
    async def test_save_and_read_entry(self):
        storage = GoogleSheetsPaymentOutStorage(_FakeSheetsClient())
        entry = PaymentOutEntry(
            supplier_id="s1",
            party_id="s1",
            project_id="p1",
            supplier_transaction_id="t1",
            amount=Decimal("400"),
            entry_date=date(2024, 2, 1),
            payment_mode="Cash",
            description="Payment to Sharma Cement - Feb",
        )

        await storage.save_entry(entry)
        stored = await storage.get_entry(entry.id)

        assert stored.supplier_transaction_id == "t1"
        assert stored.amount == Decimal("400")
        assert stored.status == entry.status
        assert await storage.list_entries(supplier_id="s2") == []


class TestGoogleSheetsAuditStorage:

    @pytest.mark.asyncio
    async def test_events_round_trip_by_correlation_id(self):
        storage = GoogleSheetsAuditStorage(_FakeSheetsClient())
        correlation_id = uuid4()
        event = AuditEventBuilder.payment_linked(
            transaction_id="t1",
            entry_id="po-1",
            correlation_id=correlation_id,
        )

        assert await storage.append_event(event) is True
        events = await storage.get_events_by_correlation_id(correlation_id)

        assert [e.event_id for e in events] == [event.event_id]
