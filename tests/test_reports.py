"""Tests for report data: periods, supplier summaries and statements."""

from datetime import date
from decimal import Decimal

import pytest

from supplier_ledger.ledger import filter_by_date_range, supplier_statement, supplier_summaries
from supplier_ledger.models.ledger import (
    BalanceType,
    DateRange,
    DateRangePreset,
    SupplierRef,
)

from tests.conftest import make_transaction


TODAY = date(2024, 6, 30)


class TestDateRange:

    @pytest.mark.parametrize("preset,expected", [
        (DateRangePreset.ALL, None),
        (DateRangePreset.LAST_30_DAYS, date(2024, 5, 31)),
        (DateRangePreset.LAST_90_DAYS, date(2024, 4, 1)),
        (DateRangePreset.LAST_QUARTER, date(2024, 3, 30)),
    ])
    def test_start_dates(self, preset, expected):
        assert DateRange(preset=preset).start_date(TODAY) == expected

    def test_last_quarter_clamps_short_months(self):
        assert DateRange(preset=DateRangePreset.LAST_QUARTER).start_date(date(2024, 5, 31)) \
            == date(2024, 2, 29)

    def test_custom_range_is_inclusive(self):
        period = DateRange(
            preset=DateRangePreset.CUSTOM,
            start=date(2024, 1, 1),
            end=date(2024, 1, 31),
        )
        assert period.contains(date(2024, 1, 1))
        assert period.contains(date(2024, 1, 31))
        assert not period.contains(date(2024, 2, 1))
        assert not period.contains(date(2023, 12, 31))

    def test_custom_range_without_end(self):
        period = DateRange(preset=DateRangePreset.CUSTOM, start=date(2024, 1, 1))
        assert period.contains(date(2030, 1, 1))

    def test_filter_by_date_range(self):
        transactions = [
            make_transaction("purchase", 1, id="old", transaction_date=date(2024, 1, 1)),
            make_transaction("purchase", 1, id="new", transaction_date=date(2024, 6, 15)),
        ]
        recent = filter_by_date_range(
            transactions, DateRange(preset=DateRangePreset.LAST_30_DAYS), TODAY
        )
        assert [t.id for t in recent] == ["new"]
        assert len(filter_by_date_range(transactions, None)) == 2


class TestSupplierSummaries:

    @pytest.fixture
    def suppliers(self):
        return [
            SupplierRef(id="s1", name="Sharma Cement", phone="9800000000"),
            SupplierRef(id="s2", name="Gupta Steel", email="sales@gupta.example"),
            SupplierRef(id="s3", name="New Supplier"),
        ]

    @pytest.fixture
    def transactions(self):
        return [
            make_transaction("purchase", 1000, transaction_date=date(2024, 6, 1)),
            make_transaction("payment", 400, transaction_date=date(2024, 6, 10)),
            make_transaction("purchase", 200, project_id="p2", transaction_date=date(2024, 1, 1)),
            make_transaction("purchase", 50, supplier_id="s2", transaction_date=date(2024, 6, 20)),
            make_transaction("payment", 80, supplier_id="s2", transaction_date=date(2024, 6, 21)),
        ]

    def test_every_supplier_has_a_row(self, transactions, suppliers):
        rows = supplier_summaries(transactions, suppliers)

        assert [r.supplier_id for r in rows] == ["s1", "s2", "s3"]
        s1, s2, s3 = rows
        assert s1.raw_balance == Decimal("800")
        assert s1.transaction_count == 3
        assert s2.balance_type is BalanceType.OVERPAID
        assert s2.outstanding_balance == Decimal("30")
        assert s3.transaction_count == 0
        assert s3.balance_type is BalanceType.SETTLED

    def test_period_filter(self, transactions, suppliers):
        rows = supplier_summaries(
            transactions,
            suppliers,
            date_range=DateRange(preset=DateRangePreset.LAST_30_DAYS),
            today=TODAY,
        )
        assert rows[0].raw_balance == Decimal("600")
        assert rows[0].transaction_count == 2

    def test_supplier_and_project_filters(self, transactions, suppliers):
        rows = supplier_summaries(transactions, suppliers, supplier_id="s1", project_id="p2")

        assert len(rows) == 1
        assert rows[0].raw_balance == Decimal("200")
        assert rows[0].transaction_count == 1

    def test_to_dict(self, transactions, suppliers):
        data = supplier_summaries(transactions, suppliers)[0].to_dict()
        assert data["id"] == "s1"
        assert data["phone"] == "9800000000"
        assert data["transactionCount"] == 3
        assert data["balanceType"] == "payable"


class TestSupplierStatement:

    @pytest.fixture
    def transactions(self):
        return [
            make_transaction("purchase", 1000, id="t1", transaction_date=date(2024, 1, 1)),
            make_transaction("payment", 400, id="t2", transaction_date=date(2024, 1, 15)),
            make_transaction("purchase", 250, id="t3", project_id="p9", transaction_date=date(2024, 2, 1)),
            make_transaction("purchase", 70, id="x", supplier_id="s2"),
        ]

    def test_overall_statement(self, transactions, supplier, projects):
        statement = supplier_statement(transactions, supplier, projects)

        assert statement.balance.raw_balance == Decimal("850")
        assert [e.id for e in statement.history] == ["t3", "t2", "t1"]
        assert statement.current_balance == Decimal("850")
        assert [e.project_id for e in statement.breakdown] == ["p1", "p9"]
        assert statement.project_names == {"p1": "Villa Block A", "p9": "Unknown Project"}
        assert statement.project_name is None

    def test_project_statement(self, transactions, supplier, projects):
        statement = supplier_statement(transactions, supplier, projects, project_id="p1")

        assert statement.project_name == "Villa Block A"
        assert statement.balance.raw_balance == Decimal("600")
        assert [e.id for e in statement.history] == ["t2", "t1"]
        assert statement.breakdown == []

    def test_empty_statement(self, supplier):
        statement = supplier_statement([], supplier)
        assert statement.history == []
        assert statement.current_balance is None
        assert statement.balance.balance_type is BalanceType.SETTLED
