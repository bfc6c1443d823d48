"""
Supplier Reports

Assembles the data behind the all-suppliers report and the per-supplier
statement. Rendering to PDF or spreadsheets is not done here.
"""

from datetime import date
from typing import Iterable, Optional

from supplier_ledger.config import get_settings
from supplier_ledger.ledger.balance import calculate_balance, select_transactions, summarize
from supplier_ledger.ledger.breakdown import project_breakdown
from supplier_ledger.ledger.running import compute_running_balance
from supplier_ledger.models.ledger import (
    DateRange,
    ProjectRef,
    SupplierRef,
    SupplierStatement,
    SupplierSummary,
    Transaction,
)


def filter_by_date_range(
    transactions: Optional[Iterable[Transaction]],
    date_range: Optional[DateRange],
    today: Optional[date] = None,
) -> list[Transaction]:
    """Transactions whose business date falls inside the report period."""
    if date_range is None:
        return list(transactions or ())
    return [
        transaction
        for transaction in transactions or ()
        if date_range.contains(transaction.transaction_date, today)
    ]


def supplier_summaries(
    transactions: Optional[Iterable[Transaction]],
    suppliers: Iterable[SupplierRef],
    date_range: Optional[DateRange] = None,
    supplier_id: Optional[str] = None,
    project_id: Optional[str] = None,
    today: Optional[date] = None,
) -> list[SupplierSummary]:
    """
    One summary row per supplier.

    Suppliers without transactions in the period are included with a
    settled, all-zero balance.

    Args:
        transactions: All supplier transactions
        suppliers: Suppliers to report on
        date_range: Report period (None means all time)
        supplier_id: Restrict the report to one supplier
        project_id: Restrict every supplier's figures to one project
        today: Reference date for relative periods
    """
    in_period = filter_by_date_range(transactions, date_range, today)

    summaries = []
    for supplier in suppliers:
        if supplier_id and supplier.id != supplier_id:
            continue

        selected = select_transactions(in_period, supplier.id, project_id)
        balance = summarize(selected)
        summaries.append(
            SupplierSummary(
                supplier_id=supplier.id,
                name=supplier.name,
                phone=supplier.phone,
                email=supplier.email,
                transaction_count=len(selected),
                **balance.model_dump(),
            )
        )
    return summaries


def supplier_statement(
    transactions: Optional[Iterable[Transaction]],
    supplier: SupplierRef,
    projects: Optional[Iterable[ProjectRef]] = None,
    project_id: Optional[str] = None,
) -> SupplierStatement:
    """
    Statement data for a supplier, or for one supplier/project pair.

    The breakdown only lists projects with a non-zero balance; the history
    is newest first with running balances.
    """
    transactions = list(transactions or ())
    projects = list(projects or ())
    settings = get_settings().ledger
    names = {project.id: project.name for project in projects if project.name}

    selected = select_transactions(transactions, supplier.id, project_id)
    history = compute_running_balance(selected)

    project_names = {
        entry.project_id: names.get(entry.project_id, settings.unknown_project_label)
        for entry in history
    }

    return SupplierStatement(
        supplier=supplier,
        project_id=project_id,
        project_name=(
            names.get(project_id, settings.unknown_project_label)
            if project_id
            else None
        ),
        balance=calculate_balance(transactions, supplier.id, project_id),
        breakdown=(
            []
            if project_id
            else project_breakdown(transactions, supplier.id, projects)
        ),
        history=history,
        project_names=project_names,
    )
