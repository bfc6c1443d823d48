"""
Project Breakdown Builder

Groups a supplier's transactions by project and balances each group.
"""

from typing import Iterable, Optional

from supplier_ledger.config import get_settings
from supplier_ledger.ledger.balance import calculate_balance, select_transactions
from supplier_ledger.models.ledger import BreakdownEntry, ProjectRef, Transaction


def project_ids_for_supplier(
    transactions: Optional[Iterable[Transaction]],
    supplier_id: str,
) -> list[str]:
    """Distinct project ids in order of first appearance."""
    seen: dict[str, None] = {}
    for transaction in select_transactions(transactions, supplier_id):
        seen.setdefault(transaction.project_id, None)
    return list(seen)


def project_breakdown(
    transactions: Optional[Iterable[Transaction]],
    supplier_id: str,
    projects: Optional[Iterable[ProjectRef]],
    include_settled: bool = False,
) -> list[BreakdownEntry]:
    """
    Balance per project for one supplier.

    Projects that cannot be found (e.g. deleted after the transactions were
    recorded) get a placeholder name and status instead of failing the read.

    Args:
        transactions: Transaction set to read from
        supplier_id: Supplier to break down
        projects: Known projects, used for names and statuses
        include_settled: Keep projects whose balance is exactly zero

    Returns:
        One entry per project, settled projects omitted unless requested
    """
    transactions = list(transactions or ())
    settings = get_settings().ledger
    projects_by_id = {project.id: project for project in projects or ()}

    entries = []
    for project_id in project_ids_for_supplier(transactions, supplier_id):
        balance = calculate_balance(transactions, supplier_id, project_id)
        if balance.raw_balance == 0 and not include_settled:
            continue

        project = projects_by_id.get(project_id)
        entries.append(
            BreakdownEntry(
                project_id=project_id,
                project_name=project.name if project and project.name else settings.unknown_project_label,
                project_status=project.status if project and project.status else settings.unknown_project_status,
                **balance.model_dump(),
            )
        )
    return entries


def projects_with_balance(
    transactions: Optional[Iterable[Transaction]],
    supplier_id: str,
    projects: Optional[Iterable[ProjectRef]],
) -> list[BreakdownEntry]:
    """Projects where the supplier still has to be paid."""
    return [
        entry
        for entry in project_breakdown(transactions, supplier_id, projects)
        if entry.raw_balance > 0
    ]
