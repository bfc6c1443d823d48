"""Entry validation package."""

from supplier_ledger.validation.validator import EntryValidator

__all__ = ["EntryValidator"]
