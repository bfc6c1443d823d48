"""Tests for the running balance sequencer."""

import random
from datetime import date, datetime, timezone
from decimal import Decimal

from supplier_ledger.ledger import compute_running_balance, current_balance

from tests.conftest import make_transaction


class TestRunningBalance:

    def test_newest_first_with_cumulative_balance(self):
        transactions = [
            make_transaction("payment", 300, id="t2", transaction_date=date(2024, 2, 1)),
            make_transaction("purchase", 1000, id="t1", transaction_date=date(2024, 1, 1)),
            make_transaction("purchase", 200, id="t3", transaction_date=date(2024, 3, 1)),
        ]
        entries = compute_running_balance(transactions)

        assert [e.id for e in entries] == ["t3", "t2", "t1"]
        assert [e.running_balance for e in entries] == [
            Decimal("900"), Decimal("700"), Decimal("1000"),
        ]

    def test_final_balance_equals_sum_of_deltas(self):
        transactions = [
            make_transaction(
                random.choice(["purchase", "payment", "credit", "debit"]),
                random.randint(1, 5000),
                id=f"t{i}",
                transaction_date=date(2024, 1, 1 + i % 28),
            )
            for i in range(40)
        ]
        expected = sum((t.signed_amount for t in transactions), Decimal("0"))

        shuffled = list(transactions)
        random.shuffle(shuffled)
        assert compute_running_balance(shuffled)[0].running_balance == expected
        assert compute_running_balance(transactions)[0].running_balance == expected

    def test_same_date_ordered_by_entry_time_then_id(self):
        same_day = date(2024, 1, 5)
        early = datetime(2024, 1, 5, 8, 0, tzinfo=timezone.utc)
        late = datetime(2024, 1, 5, 17, 0, tzinfo=timezone.utc)
        transactions = [
            make_transaction("payment", 100, id="b", transaction_date=same_day, entered_at=early),
            make_transaction("purchase", 500, id="c", transaction_date=same_day, entered_at=late),
            make_transaction("purchase", 50, id="a", transaction_date=same_day, entered_at=early),
        ]
        entries = compute_running_balance(transactions)

        assert [e.id for e in entries] == ["c", "b", "a"]
        assert [e.running_balance for e in entries] == [
            Decimal("450"), Decimal("-50"), Decimal("50"),
        ]

    def test_unknown_kind_leaves_balance_unchanged(self):
        transactions = [
            make_transaction("purchase", 100, id="t1", transaction_date=date(2024, 1, 1)),
            make_transaction("refund", 40, id="t2", transaction_date=date(2024, 1, 2)),
        ]
        entries = compute_running_balance(transactions)
        assert entries[0].id == "t2"
        assert entries[0].running_balance == Decimal("100")

    def test_entry_record_carries_running_balance(self):
        entries = compute_running_balance([make_transaction("purchase", 10)])
        assert entries[0].to_record()["runningBalance"] == "10"

    def test_current_balance(self):
        assert current_balance([]) is None
        entries = compute_running_balance([
            make_transaction("purchase", 1000, id="t1", transaction_date=date(2024, 1, 1)),
            make_transaction("payment", 400, id="t2", transaction_date=date(2024, 1, 2)),
        ])
        assert current_balance(entries) == Decimal("600")

    def test_empty_input(self):
        assert compute_running_balance([]) == []
        assert compute_running_balance(None) == []
