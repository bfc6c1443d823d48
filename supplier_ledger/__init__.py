"""
Supplier Ledger - Source Package

The bookkeeping core of a construction-business application: turns the
append-only stream of supplier purchases and payments into balances,
running statements and project breakdowns, and records payments together
with their linked Payment Out approval entries.

DESIGN PRINCIPLES:
1. Balances are derived, never stored
2. Reads are lenient, writes are strict
3. Fail visibly, and say which step failed
4. Every write is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Supplier Ledger Team"
