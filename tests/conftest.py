"""Shared fixtures for the ledger tests."""

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from supplier_ledger.config.settings import LedgerSettings
from supplier_ledger.models.ledger import ProjectRef, SupplierRef, Transaction


def make_transaction(
    kind="purchase",
    amount="0",
    supplier_id="s1",
    project_id="p1",
    transaction_date=date(2024, 1, 10),
    entered_at=None,
    **extra,
) -> Transaction:
    """Build a transaction with sensible defaults."""
    return Transaction(
        supplier_id=supplier_id,
        project_id=project_id,
        kind=kind,
        amount=amount,
        transaction_date=transaction_date,
        entered_at=entered_at or datetime(2024, 1, 10, 9, 0, tzinfo=timezone.utc),
        **extra,
    )


@pytest.fixture
def ledger_settings() -> LedgerSettings:
    return LedgerSettings(
        write_timeout_seconds=0.2,
        enforce_balance_version=True,
        future_date_tolerance_days=0,
    )


@pytest.fixture
def supplier() -> SupplierRef:
    return SupplierRef(id="s1", name="Sharma Cement", phone="9800000000")


@pytest.fixture
def projects() -> list[ProjectRef]:
    return [
        ProjectRef(id="p1", name="Villa Block A", status="active"),
        ProjectRef(id="p2", name="Warehouse", status="completed"),
    ]


@pytest.fixture
def payable_history() -> list[Transaction]:
    """Supplier s1 owes 1000 on project p1."""
    return [
        make_transaction("purchase", "1000", transaction_date=date(2024, 1, 5)),
    ]


@pytest.fixture
def one_thousand() -> Decimal:
    return Decimal("1000")
