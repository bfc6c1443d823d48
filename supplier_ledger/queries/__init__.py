"""Ledger read package."""

from supplier_ledger.queries.executor import LedgerQueries

__all__ = ["LedgerQueries"]
