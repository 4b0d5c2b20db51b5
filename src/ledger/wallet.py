"""
Ledger (Wallet)

One ledger per user. It owns:
1. The transaction log (insertion order, append/remove only)
2. The budget table (category -> Budget)
3. The set of known categories

INVARIANTS:
- Every transaction's category and every budget's category is a known
  category.
- A category referenced by a transaction is never removed.
- Balance, income and expense totals are recomputed from the log on
  every call; nothing is cached.

CONCURRENCY: each ledger carries one re-entrant lock. Every public
method runs under it, and every query returns a copy, so callers never
share mutable state with the ledger.
"""

import threading
from contextlib import contextmanager
from datetime import date
from decimal import Decimal
from typing import Iterable, Iterator, Optional

import structlog

from src.config import LedgerSettings, get_settings
from src.exceptions import CategoryNotFoundError, LockTimeoutError
from src.models.ledger import Budget, LedgerSnapshot, Transaction, TransactionType
from src.validation import require_category, require_period, require_positive_amount


logger = structlog.get_logger(__name__)


class Ledger:
    """
    Per-user container of transactions, budgets and categories.

    Mutations only happen through the named methods below. add_transaction
    trusts its input: the Transaction model already guarantees a positive
    amount and a non-blank category, and callers validate anything else.
    """

    def __init__(
        self,
        owner: str,
        settings: Optional[LedgerSettings] = None,
        categories: Optional[Iterable[str]] = None,
    ):
        """
        Create an empty ledger.

        Args:
            owner: Username of the ledger's owner
            settings: Ledger policy; defaults to the cached app settings
            categories: Starting categories; defaults to the configured
                        default categories
        """
        self._owner = owner
        self._settings = settings or get_settings().ledger
        self._lock = threading.RLock()
        self._transactions: list[Transaction] = []
        self._budgets: dict[str, Budget] = {}
        if categories is None:
            categories = self._settings.default_categories
        self._categories: set[str] = set(categories)

    @property
    def owner(self) -> str:
        return self._owner

    @property
    def settings(self) -> LedgerSettings:
        return self._settings

    # -------------------------------------------------------------------------
    # Locking
    # -------------------------------------------------------------------------

    def acquire(self) -> None:
        """
        Take the ledger lock, bounded by lock_timeout_seconds.

        Raises:
            LockTimeoutError: If the lock is not free in time
        """
        timeout = self._settings.lock_timeout_seconds
        if timeout <= 0:
            self._lock.acquire()
            return
        if not self._lock.acquire(timeout=timeout):
            logger.warning("ledger_lock_timeout", owner=self._owner, timeout=timeout)
            raise LockTimeoutError(self._owner, timeout)

    def release(self) -> None:
        self._lock.release()

    @contextmanager
    def locked(self) -> Iterator["Ledger"]:
        self.acquire()
        try:
            yield self
        finally:
            self.release()

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    def add_transaction(self, transaction: Transaction) -> None:
        with self.locked():
            self._append(transaction)

    def remove_transaction(self, transaction_id: str) -> bool:
        """
        Remove a transaction by id.

        Budget spending is only taken back when reconcile_on_remove is on;
        by default the budget keeps what the expense added.

        Returns:
            True if a transaction was removed, False if the id was unknown
        """
        with self.locked():
            for index, transaction in enumerate(self._transactions):
                if transaction.id == transaction_id:
                    del self._transactions[index]
                    if self._settings.reconcile_on_remove and transaction.is_expense:
                        budget = self._budgets.get(transaction.category)
                        if budget is not None:
                            budget.subtract_spending(transaction.amount)
                    return True
            return False

    def _append(self, transaction: Transaction) -> None:
        """Append without locking; the caller holds the lock."""
        self._transactions.append(transaction)
        self._categories.add(transaction.category)

        if transaction.is_expense:
            budget = self._budgets.get(transaction.category)
            if budget is not None:
                budget.add_spending(transaction.amount)

    def _rollback(self, transaction: Transaction) -> None:
        """
        Undo an _append exactly, budget included.

        Only used to back out half of a transfer; the caller holds the lock.
        """
        self._transactions = [t for t in self._transactions if t.id != transaction.id]
        if transaction.is_expense:
            budget = self._budgets.get(transaction.category)
            if budget is not None:
                budget.subtract_spending(transaction.amount)

    # -------------------------------------------------------------------------
    # Categories
    # -------------------------------------------------------------------------

    def add_category(self, name: str) -> None:
        name = require_category(name)
        with self.locked():
            self._categories.add(name)

    def remove_category(self, name: str) -> bool:
        """
        Remove a category and its budget.

        Refused while any transaction still uses the category.

        Returns:
            True if the category was removed
        """
        with self.locked():
            if any(t.category == name for t in self._transactions):
                logger.info("category_removal_refused", owner=self._owner, category=name)
                return False
            if name not in self._categories:
                return False
            self._categories.discard(name)
            self._budgets.pop(name, None)
            return True

    def has_category(self, name: str) -> bool:
        with self.locked():
            return name in self._categories

    # -------------------------------------------------------------------------
    # Budgets
    # -------------------------------------------------------------------------

    def set_budget(self, category: str, limit) -> Budget:
        """
        Install a budget for a category, replacing any existing one.

        With reset_on_set (the default) the new budget starts at zero
        spending, discarding whatever the old one had accumulated.
        Otherwise spending is replayed from the expenses already logged.

        Returns:
            A copy of the installed budget

        Raises:
            ValidationError: If the limit is not positive or the category blank
        """
        category = require_category(category)
        limit = require_positive_amount(limit, "Budget limit")

        with self.locked():
            budget = Budget(
                category=category,
                limit=limit,
                warning_threshold=self._settings.budget_warning_threshold,
            )
            if not self._settings.reset_on_set:
                for transaction in self._transactions:
                    if transaction.is_expense and transaction.category == category:
                        budget.add_spending(transaction.amount)
            self._categories.add(category)
            self._budgets[category] = budget
            return budget.model_copy()

    def edit_budget(self, category: str, new_limit) -> Budget:
        """
        Change a budget's limit; spending is untouched.

        Raises:
            ValidationError: If the new limit is not positive
            CategoryNotFoundError: If the category has no budget
        """
        new_limit = require_positive_amount(new_limit, "Budget limit")

        with self.locked():
            budget = self._budgets.get(category)
            if budget is None:
                raise CategoryNotFoundError(
                    category, f"No budget found for category '{category}'"
                )
            budget.set_limit(new_limit)
            return budget.model_copy()

    def reset_budget(self, category: str) -> Budget:
        with self.locked():
            budget = self._budgets.get(category)
            if budget is None:
                raise CategoryNotFoundError(
                    category, f"No budget found for category '{category}'"
                )
            budget.reset_spending()
            return budget.model_copy()

    def remove_budget(self, category: str) -> bool:
        """Drop a budget. The category itself stays known."""
        with self.locked():
            return self._budgets.pop(category, None) is not None

    def install_budget(self, budget: Budget) -> None:
        """
        Install a budget exactly as given, spending included.

        Used by imports, which carry their own spent figure; nothing is
        reconciled against the log.
        """
        with self.locked():
            self._categories.add(budget.category)
            self._budgets[budget.category] = budget.model_copy()

    # -------------------------------------------------------------------------
    # Queries (always copies)
    # -------------------------------------------------------------------------

    def get_balance(self) -> Decimal:
        with self.locked():
            return self.get_total_income() - self.get_total_expenses()

    def get_total_income(self) -> Decimal:
        with self.locked():
            return sum(
                (t.amount for t in self._transactions if t.is_income),
                Decimal("0.00"),
            )

    def get_total_expenses(self) -> Decimal:
        with self.locked():
            return sum(
                (t.amount for t in self._transactions if t.is_expense),
                Decimal("0.00"),
            )

    def get_transactions(self) -> list[Transaction]:
        with self.locked():
            return list(self._transactions)

    def get_transactions_by_category(self, category: str) -> list[Transaction]:
        with self.locked():
            return [t for t in self._transactions if t.category == category]

    def get_transactions_by_type(self, transaction_type: TransactionType) -> list[Transaction]:
        with self.locked():
            return [t for t in self._transactions if t.type is transaction_type]

    def get_income_transactions(self) -> list[Transaction]:
        return self.get_transactions_by_type(TransactionType.INCOME)

    def get_expense_transactions(self) -> list[Transaction]:
        return self.get_transactions_by_type(TransactionType.EXPENSE)

    def get_transactions_by_date_range(self, start: date, end: date) -> list[Transaction]:
        """Transactions whose calendar day is in [start, end], newest first."""
        require_period(start, end)
        with self.locked():
            matching = [t for t in self._transactions if start <= t.day <= end]
        return sorted(matching, key=lambda t: t.date, reverse=True)

    def get_budgets(self) -> dict[str, Budget]:
        with self.locked():
            return {name: budget.model_copy() for name, budget in self._budgets.items()}

    def get_budget(self, category: str) -> Optional[Budget]:
        with self.locked():
            budget = self._budgets.get(category)
            return budget.model_copy() if budget is not None else None

    def get_categories(self) -> set[str]:
        with self.locked():
            return set(self._categories)

    def snapshot(self) -> LedgerSnapshot:
        """Take a consistent copy of the whole ledger."""
        with self.locked():
            return LedgerSnapshot(
                owner=self._owner,
                transactions=tuple(self._transactions),
                budgets={name: b.model_copy() for name, b in self._budgets.items()},
                categories=frozenset(self._categories),
            )

    @classmethod
    def from_snapshot(
        cls,
        snapshot: LedgerSnapshot,
        settings: Optional[LedgerSettings] = None,
    ) -> "Ledger":
        """
        Rebuild a ledger from a stored snapshot.

        Budgets come back with their stored spending; the log is not
        replayed against them.
        """
        ledger = cls(snapshot.owner, settings=settings, categories=snapshot.categories)
        ledger._transactions = list(snapshot.transactions)
        ledger._budgets = {name: b.model_copy() for name, b in snapshot.budgets.items()}
        for transaction in ledger._transactions:
            ledger._categories.add(transaction.category)
        for name in ledger._budgets:
            ledger._categories.add(name)
        return ledger

    def __len__(self) -> int:
        with self.locked():
            return len(self._transactions)

    def __repr__(self) -> str:
        return "Ledger(owner={!r}, balance={:.2f}, transactions={})".format(
            self._owner, self.get_balance(), len(self)
        )
