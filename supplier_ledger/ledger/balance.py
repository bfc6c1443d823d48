"""
Balance Calculator

Reduces supplier transactions to totals and a signed balance.

TERMINOLOGY:
- purchase (legacy 'credit'): material bought on credit, we owe more
- payment (legacy 'debit'): money paid to the supplier, we owe less

BALANCE LOGIC:
- Positive balance = we OWE the supplier (PAYABLE)
- Negative balance = supplier was OVERPAID
- Zero balance = SETTLED

Everything here is a pure function over an immutable snapshot. Nothing is
cached; callers recompute on every read.
"""

import hashlib
from decimal import Decimal
from typing import Iterable, Optional

from supplier_ledger.models.ledger import (
    ZERO,
    Balance,
    BalanceType,
    PaymentAmountCheck,
    Transaction,
    TransactionKind,
)


def select_transactions(
    transactions: Optional[Iterable[Transaction]],
    supplier_id: str,
    project_id: Optional[str] = None,
) -> list[Transaction]:
    """Transactions of one supplier, optionally narrowed to one project."""
    selected = []
    for transaction in transactions or ():
        if transaction.supplier_id != supplier_id:
            continue
        if project_id and transaction.project_id != project_id:
            continue
        selected.append(transaction)
    return selected


def summarize(transactions: Iterable[Transaction]) -> Balance:
    """Totals and balance of an already filtered transaction set."""
    total_purchases = ZERO
    total_payments = ZERO
    for transaction in transactions:
        if transaction.kind is TransactionKind.PURCHASE:
            total_purchases += transaction.amount
        elif transaction.kind is TransactionKind.PAYMENT:
            total_payments += transaction.amount
        # Unrecognized kinds contribute nothing

    raw_balance = total_purchases - total_payments
    return Balance(
        total_purchases=total_purchases,
        total_payments=total_payments,
        raw_balance=raw_balance,
        outstanding_balance=abs(raw_balance),
        balance_type=BalanceType.from_raw(raw_balance),
    )


def calculate_balance(
    transactions: Optional[Iterable[Transaction]],
    supplier_id: str,
    project_id: Optional[str] = None,
) -> Balance:
    """
    Balance for a supplier, for one project or across all of them.

    Args:
        transactions: Any transaction set (None is treated as empty)
        supplier_id: Supplier to calculate for
        project_id: Project to narrow to; None means all projects

    Returns:
        Balance with signed raw_balance and unsigned outstanding_balance
    """
    return summarize(select_transactions(transactions, supplier_id, project_id))


def overall_balance(
    transactions: Optional[Iterable[Transaction]],
    supplier_id: str,
) -> Balance:
    """Balance across all projects of a supplier."""
    return calculate_balance(transactions, supplier_id, None)


def validate_payment_amount(
    transactions: Optional[Iterable[Transaction]],
    supplier_id: str,
    project_id: str,
    amount: Decimal,
    currency_symbol: str = "₹",
) -> PaymentAmountCheck:
    """
    Check a payment amount against the payable balance of one project.

    A payment is only valid while the project has something payable, and
    never for more than that.
    """
    raw_balance = calculate_balance(transactions, supplier_id, project_id).raw_balance

    if raw_balance <= 0:
        return PaymentAmountCheck(
            is_valid=False,
            current_balance=ZERO,
            message="No outstanding balance for this project",
        )

    if amount <= 0:
        return PaymentAmountCheck(
            is_valid=False,
            current_balance=raw_balance,
            message="Payment amount must be greater than zero",
        )

    if amount > raw_balance:
        return PaymentAmountCheck(
            is_valid=False,
            current_balance=raw_balance,
            message=(
                "Payment amount cannot exceed current balance of "
                f"{currency_symbol}{raw_balance:,.2f}"
            ),
        )

    return PaymentAmountCheck(
        is_valid=True,
        current_balance=raw_balance,
        message="Valid payment amount",
    )


def balance_version(
    transactions: Optional[Iterable[Transaction]],
    supplier_id: str,
    project_id: Optional[str] = None,
) -> str:
    """
    Fingerprint of the transaction set behind a supplier/project balance.

    Any added transaction, or any change to a kind, amount or link, changes
    the version. Order of the input does not.
    """
    selected = sorted(
        select_transactions(transactions, supplier_id, project_id),
        key=lambda t: t.id,
    )
    digest = hashlib.sha256()
    for transaction in selected:
        kind = transaction.kind.value if transaction.kind else ""
        digest.update(
            f"{transaction.id}|{kind}|{transaction.amount}|"
            f"{transaction.linked_approval_entry_id or ''}\n".encode("utf-8")
        )
    return f"{len(selected)}:{digest.hexdigest()[:16]}"
