"""
Wallet Ledger - Source Package

A personal finance ledger: income and expense bookkeeping, per-category
budgets, transfers between users, statistics and alerts.

DESIGN PRINCIPLES:
1. Validate everything before touching a ledger
2. Fail early, fail visibly
3. Derived figures (balance, totals) are recomputed, never stored
4. Every mutation must be auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Wallet Ledger Team"
