"""
Running Balance Sequencer

Orders transactions chronologically and annotates each with the balance
after it, for statements and transaction history.
"""

from decimal import Decimal
from typing import Iterable, Optional

from supplier_ledger.models.ledger import ZERO, RunningBalanceEntry, Transaction


def compute_running_balance(
    transactions: Optional[Iterable[Transaction]],
) -> list[RunningBalanceEntry]:
    """
    Annotate transactions with their running balance.

    Sorted oldest first by (date, entered_at, id) for the computation, then
    returned NEWEST FIRST for display. Purchases add, payments subtract,
    unrecognized kinds leave the balance unchanged.

    The input should already be narrowed to one supplier (and project).
    """
    running = ZERO
    entries = []
    for transaction in sorted(transactions or (), key=lambda t: t.sort_key):
        running += transaction.signed_amount
        entries.append(
            RunningBalanceEntry(
                **transaction.model_dump(),
                running_balance=running,
            )
        )

    entries.reverse()
    return entries


def current_balance(entries: list[RunningBalanceEntry]) -> Optional[Decimal]:
    """
    Balance after the most recent transaction.

    Expects the newest-first output of compute_running_balance().
    Returns None when there is no history.
    """
    if not entries:
        return None
    return entries[0].running_balance
