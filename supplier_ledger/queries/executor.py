"""
Ledger Read Side

DESIGN DECISION: Reads always recompute from stored transactions.
This executor loads the current snapshot from the transaction store and
hands it to the pure calculators in supplier_ledger.ledger.

Nothing is cached, so two reads never disagree with the store.
"""

from datetime import date
from typing import Iterable, Optional

from supplier_ledger.ledger import (
    balance_version,
    calculate_balance,
    compute_running_balance,
    project_breakdown,
    projects_with_balance,
    supplier_statement,
    supplier_summaries,
)
from supplier_ledger.models.ledger import (
    Balance,
    BreakdownEntry,
    DateRange,
    ProjectRef,
    RunningBalanceEntry,
    SupplierRef,
    SupplierStatement,
    SupplierSummary,
)
from supplier_ledger.services.storage import TransactionStorageInterface


class LedgerQueries:
    """
    Executes ledger reads against transaction storage.

    GUARANTEES:
    - Only reports what is in storage
    - Never raises for malformed stored amounts or kinds
    - Unknown projects are shown with a placeholder label
    """

    def __init__(self, storage: TransactionStorageInterface):
        self._storage = storage

    async def get_balance(
        self,
        supplier_id: str,
        project_id: Optional[str] = None,
    ) -> Balance:
        """Balance of a supplier, overall or for one project."""
        transactions = await self._storage.list_transactions(supplier_id=supplier_id)
        return calculate_balance(transactions, supplier_id, project_id)

    async def get_balance_version(
        self,
        supplier_id: str,
        project_id: Optional[str] = None,
    ) -> str:
        """
        Version of the balance the user is looking at.

        Pass it back as expected_version when recording a payment so the
        payment is refused if the balance moved in the meantime.
        """
        transactions = await self._storage.list_transactions(supplier_id=supplier_id)
        return balance_version(transactions, supplier_id, project_id)

    async def get_history(
        self,
        supplier_id: str,
        project_id: Optional[str] = None,
    ) -> list[RunningBalanceEntry]:
        """Transaction history with running balances, newest first."""
        transactions = await self._storage.list_transactions(
            supplier_id=supplier_id,
            project_id=project_id,
        )
        return compute_running_balance(transactions)

    async def get_project_breakdown(
        self,
        supplier_id: str,
        projects: Iterable[ProjectRef],
        include_settled: bool = False,
    ) -> list[BreakdownEntry]:
        transactions = await self._storage.list_transactions(supplier_id=supplier_id)
        return project_breakdown(
            transactions,
            supplier_id,
            projects,
            include_settled=include_settled,
        )

    async def get_payable_projects(
        self,
        supplier_id: str,
        projects: Iterable[ProjectRef],
    ) -> list[BreakdownEntry]:
        """Projects a payment can currently be recorded against."""
        transactions = await self._storage.list_transactions(supplier_id=supplier_id)
        return projects_with_balance(transactions, supplier_id, projects)

    async def get_statement(
        self,
        supplier: SupplierRef,
        projects: Optional[Iterable[ProjectRef]] = None,
        project_id: Optional[str] = None,
    ) -> SupplierStatement:
        transactions = await self._storage.list_transactions(supplier_id=supplier.id)
        return supplier_statement(transactions, supplier, projects, project_id)

    async def get_supplier_summaries(
        self,
        suppliers: Iterable[SupplierRef],
        date_range: Optional[DateRange] = None,
        supplier_id: Optional[str] = None,
        project_id: Optional[str] = None,
        today: Optional[date] = None,
    ) -> list[SupplierSummary]:
        """Rows of the all-suppliers report."""
        transactions = await self._storage.list_transactions(
            supplier_id=supplier_id,
            project_id=project_id,
        )
        return supplier_summaries(
            transactions,
            suppliers,
            date_range=date_range,
            supplier_id=supplier_id,
            project_id=project_id,
            today=today,
        )
