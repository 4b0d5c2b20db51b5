"""
Peer-to-peer transfers.

A transfer is two transactions in two ledgers: an expense for the sender
and an income for the receiver, both in the transfer category.

GUARANTEES:
- Both ledger locks are taken in one global order (by owner name), so
  two opposite transfers cannot deadlock.
- The balance check and both appends happen while both locks are held.
  No reader ever sees the sender debited without the receiver credited.
- If the second append fails, the first one is rolled back before the
  error propagates. Either both ledgers change or neither does.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

import structlog
from pydantic import BaseModel, ConfigDict

from src.exceptions import InsufficientFundsError, ValidationError
from src.ledger.wallet import Ledger
from src.models.ledger import Transaction, TransactionType
from src.validation import require_positive_amount


logger = structlog.get_logger(__name__)


class TransferReceipt(BaseModel):
    """Both legs of a completed transfer."""
    model_config = ConfigDict(frozen=True)

    sender: str
    receiver: str
    amount: Decimal
    sender_transaction: Transaction
    receiver_transaction: Transaction


def _lock_order(first: Ledger, second: Ledger) -> tuple[Ledger, Ledger]:
    if (first.owner, id(first)) <= (second.owner, id(second)):
        return first, second
    return second, first


class TransferCoordinator:
    """Moves money between two ledgers as one all-or-nothing operation."""

    def __init__(self, transfer_category: Optional[str] = None):
        self._transfer_category = transfer_category

    def transfer(
        self,
        sender: Ledger,
        receiver: Optional[Ledger],
        amount,
        description: str = "",
    ) -> TransferReceipt:
        """
        Transfer money from sender to receiver.

        Args:
            sender: The paying ledger
            receiver: The receiving ledger, already resolved by the caller;
                      None means the recipient does not exist
            amount: Positive amount to move
            description: Free text appended to both legs' descriptions

        Raises:
            ValidationError: Unknown recipient, self-transfer, bad amount
            InsufficientFundsError: Sender balance is below the amount
            LockTimeoutError: A ledger lock could not be taken in time
        """
        if receiver is None:
            raise ValidationError("Recipient not found")
        if sender is receiver or sender.owner == receiver.owner:
            raise ValidationError("Cannot transfer money to yourself")
        amount = require_positive_amount(amount, "Transfer amount")
        description = (description or "").strip()
        category = self._transfer_category or sender.settings.transfer_category

        first, second = _lock_order(sender, receiver)
        with first.locked(), second.locked():
            balance = sender.get_balance()
            if balance < amount:
                raise InsufficientFundsError(balance, amount)

            now = datetime.now()
            sender_transaction = Transaction(
                amount=amount,
                type=TransactionType.EXPENSE,
                category=category,
                date=now,
                description=_describe("Transfer to", receiver.owner, description),
            )
            receiver_transaction = Transaction(
                amount=amount,
                type=TransactionType.INCOME,
                category=category,
                date=now,
                description=_describe("Transfer from", sender.owner, description),
            )

            sender._append(sender_transaction)
            try:
                receiver._append(receiver_transaction)
            except Exception:
                sender._rollback(sender_transaction)
                logger.error(
                    "transfer_rolled_back",
                    sender=sender.owner,
                    receiver=receiver.owner,
                    amount=str(amount),
                )
                raise

        logger.info(
            "transfer_completed",
            sender=sender.owner,
            receiver=receiver.owner,
            amount=str(amount),
        )
        return TransferReceipt(
            sender=sender.owner,
            receiver=receiver.owner,
            amount=amount,
            sender_transaction=sender_transaction,
            receiver_transaction=receiver_transaction,
        )


def _describe(prefix: str, counterparty: str, description: str) -> str:
    text = f"{prefix} {counterparty}"
    return f"{text}: {description}" if description else text
