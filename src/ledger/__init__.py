"""
Ledger Package

The wallet state machine: the per-user ledger, budget evaluation and
the cross-ledger transfer.
"""

from src.ledger import budget_tracker
from src.ledger.transfer import TransferCoordinator, TransferReceipt
from src.ledger.wallet import Ledger

__all__ = [
    "Ledger",
    "TransferCoordinator",
    "TransferReceipt",
    "budget_tracker",
]
