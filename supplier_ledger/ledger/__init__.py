"""
Ledger calculations.

Pure, side-effect-free functions over transaction snapshots:
balances, running balances, project breakdowns and report data.
"""

from supplier_ledger.ledger.balance import (
    balance_version,
    calculate_balance,
    overall_balance,
    select_transactions,
    summarize,
    validate_payment_amount,
)
from supplier_ledger.ledger.breakdown import (
    project_breakdown,
    project_ids_for_supplier,
    projects_with_balance,
)
from supplier_ledger.ledger.reports import (
    filter_by_date_range,
    supplier_statement,
    supplier_summaries,
)
from supplier_ledger.ledger.running import compute_running_balance, current_balance

__all__ = [
    "balance_version",
    "calculate_balance",
    "compute_running_balance",
    "current_balance",
    "filter_by_date_range",
    "overall_balance",
    "project_breakdown",
    "project_ids_for_supplier",
    "projects_with_balance",
    "select_transactions",
    "summarize",
    "supplier_statement",
    "supplier_summaries",
    "validate_payment_amount",
]
