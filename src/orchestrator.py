"""
Main Orchestrator for the Wallet Ledger

This module ties together all the components and defines the
end-to-end flows for the signed-in user:
1. Book money (validate → append to ledger → evaluate alerts)
2. Shape budgets and categories
3. Move money to another user (resolve → atomic transfer)
4. Read statistics, reports and alerts
5. Exchange data (CSV export/import, snapshot checkpoint)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Nothing touches a ledger before its inputs are validated
- Nothing touches a ledger while nobody is signed in
- Every mutation is audited

This is the "glue" that ensures the system works correctly
even when individual components might behave unexpectedly.
"""

from datetime import date
from pathlib import Path
from typing import Iterable, Optional

import structlog

from src.audit import AuditLogger
from src.config import LedgerSettings, StorageSettings, get_settings
from src.exceptions import LedgerError
from src.ledger import Ledger, TransferCoordinator, TransferReceipt
from src.models.alerts import Alert
from src.models.audit import AuditEventBuilder
from src.models.ledger import Budget, Transaction, TransactionType
from src.models.reports import CategoryStatsResult, FullReport, StatisticsResult
from src.services.alerts import AlertEvaluator
from src.services.statistics import StatisticsAggregator
from src.services.storage import (
    CsvExchange,
    ImportSummary,
    InMemoryAuditStorage,
    JsonUserStorage,
    UserStorageInterface,
)
from src.services.users import User, UserRepository, UserService
from src.validation import require_category, require_positive_amount


logger = structlog.get_logger(__name__)


class FinanceService:
    """
    Ledger operations on behalf of the signed-in user.

    Every mutating call:
    1. Validates its inputs (ValidationError)
    2. Requires a signed-in user (AuthorizationError)
    3. Mutates the user's ledger
    4. Writes an audit event

    Booking calls return fresh alerts alongside the result; alerts are
    never stored.
    """

    def __init__(
        self,
        user_service: UserService,
        alert_evaluator: Optional[AlertEvaluator] = None,
        transfer_coordinator: Optional[TransferCoordinator] = None,
        statistics: Optional[StatisticsAggregator] = None,
        user_storage: Optional[UserStorageInterface] = None,
        csv_exchange: Optional[CsvExchange] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._user_service = user_service
        self._alerts = alert_evaluator or AlertEvaluator()
        self._transfers = transfer_coordinator or TransferCoordinator()
        self._statistics = statistics or StatisticsAggregator()
        self._user_storage = user_storage
        self._csv = csv_exchange or CsvExchange()
        self._audit_logger = audit_logger

    @property
    def user_service(self) -> UserService:
        return self._user_service

    def _ledger(self) -> tuple[User, Ledger]:
        user = self._user_service.require_user()
        return user, user.wallet

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    def add_income(
        self,
        amount,
        category: str,
        description: str = "",
    ) -> tuple[Transaction, list[Alert]]:
        """
        Book an income.

        Returns:
            (transaction, balance alerts after the booking)
        """
        transaction, ledger = self._book(TransactionType.INCOME, amount, category, description)
        alerts = self._alerts.check_balance_alerts(ledger)
        self._report_alerts(ledger.owner, alerts)
        return transaction, alerts

    def add_expense(
        self,
        amount,
        category: str,
        description: str = "",
    ) -> tuple[Transaction, list[Alert]]:
        """
        Book an expense.

        Returns:
            (transaction, budget alerts followed by balance alerts)
        """
        transaction, ledger = self._book(TransactionType.EXPENSE, amount, category, description)
        alerts = self._alerts.check_all(ledger)
        self._report_alerts(ledger.owner, alerts)
        return transaction, alerts

    def _book(
        self,
        transaction_type: TransactionType,
        amount,
        category: str,
        description: str,
    ) -> tuple[Transaction, Ledger]:
        amount = require_positive_amount(amount)
        category = require_category(category)
        user, ledger = self._ledger()

        transaction = Transaction(
            amount=amount,
            type=transaction_type,
            category=category,
            description=(description or "").strip(),
        )
        ledger.add_transaction(transaction)

        logger.info(
            "transaction_booked",
            owner=user.username,
            type=transaction_type.value,
            category=category,
            amount=str(amount),
        )
        if self._audit_logger:
            self._audit_logger.log_transaction_added(user.username, transaction)
        return transaction, ledger

    def remove_transaction(self, transaction_id: str) -> bool:
        user, ledger = self._ledger()
        removed = ledger.remove_transaction(transaction_id)
        if self._audit_logger:
            self._audit_logger.log_transaction_removed(user.username, transaction_id, removed)
        return removed

    def get_transactions(self) -> list[Transaction]:
        return self._ledger()[1].get_transactions()

    def get_transactions_by_date_range(self, start: date, end: date) -> list[Transaction]:
        """Transactions in [start, end], newest first."""
        return self._ledger()[1].get_transactions_by_date_range(start, end)

    def get_balance(self):
        return self._ledger()[1].get_balance()

    # -------------------------------------------------------------------------
    # Categories and budgets
    # -------------------------------------------------------------------------

    def add_category(self, name: str) -> None:
        name = require_category(name)
        user, ledger = self._ledger()
        ledger.add_category(name)
        if self._audit_logger:
            self._audit_logger.log_category_added(user.username, name)

    def remove_category(self, name: str) -> bool:
        """False (and no change) while a transaction still uses the category."""
        user, ledger = self._ledger()
        removed = ledger.remove_category(name)
        if self._audit_logger:
            self._audit_logger.log_category_removed(user.username, name, removed)
        return removed

    def set_budget(self, category: str, limit) -> Budget:
        category = require_category(category)
        limit = require_positive_amount(limit, "Budget limit")
        user, ledger = self._ledger()
        budget = ledger.set_budget(category, limit)
        if self._audit_logger:
            self._audit_logger.log_budget_set(user.username, category, budget.limit)
        return budget

    def edit_budget(self, category: str, new_limit) -> Budget:
        new_limit = require_positive_amount(new_limit, "Budget limit")
        user, ledger = self._ledger()
        budget = ledger.edit_budget(category, new_limit)
        if self._audit_logger:
            self._audit_logger.log_budget_edited(user.username, category, budget.limit)
        return budget

    def remove_budget(self, category: str) -> bool:
        user, ledger = self._ledger()
        removed = ledger.remove_budget(category)
        if removed and self._audit_logger:
            self._audit_logger.log_budget_removed(user.username, category)
        return removed

    def get_budgets(self) -> dict[str, Budget]:
        return self._ledger()[1].get_budgets()

    def get_categories(self) -> set[str]:
        return self._ledger()[1].get_categories()

    # -------------------------------------------------------------------------
    # Transfers
    # -------------------------------------------------------------------------

    def transfer_money(
        self,
        to_username: str,
        amount,
        description: str = "",
    ) -> tuple[TransferReceipt, list[Alert]]:
        """
        Send money to another registered user.

        Returns:
            (receipt, balance alerts for the sender)

        Raises:
            ValidationError: Unknown recipient, self-transfer, bad amount
            InsufficientFundsError: Balance below the amount
        """
        sender, ledger = self._ledger()
        receiver = self._user_service.repository.get_user((to_username or "").strip())
        receiver_ledger = receiver.wallet if receiver is not None else None

        try:
            receipt = self._transfers.transfer(ledger, receiver_ledger, amount, description)
        except LedgerError as e:
            if self._audit_logger:
                self._audit_logger.log_transfer_rejected(sender.username, to_username, str(e))
            raise

        if self._audit_logger:
            self._audit_logger.log_transfer_completed(
                sender=receipt.sender,
                receiver=receipt.receiver,
                amount=receipt.amount,
                sender_transaction_id=receipt.sender_transaction.id,
                receiver_transaction_id=receipt.receiver_transaction.id,
            )

        alerts = self._alerts.check_balance_alerts(ledger)
        self._report_alerts(sender.username, alerts)
        return receipt, alerts

    # -------------------------------------------------------------------------
    # Reading
    # -------------------------------------------------------------------------

    def get_statistics(self, start: date, end: date) -> StatisticsResult:
        return self._statistics.get_statistics(self._ledger()[1], start, end)

    def get_category_statistics(self, categories: Iterable[str]) -> dict[str, CategoryStatsResult]:
        return self._statistics.get_category_statistics(self._ledger()[1], categories)

    def generate_full_report(self, start: date, end: date) -> FullReport:
        return self._statistics.generate_full_report(self._ledger()[1], start, end)

    def get_alerts(self) -> list[Alert]:
        """Budget and balance alerts for the current ledger state."""
        return self._alerts.check_all(self._ledger()[1])

    def _report_alerts(self, username: str, alerts: list[Alert]) -> None:
        if alerts and self._audit_logger:
            self._audit_logger.log_alerts(username, alerts)

    # -------------------------------------------------------------------------
    # Data exchange
    # -------------------------------------------------------------------------

    def export_csv(self, filename: str) -> Path:
        user, ledger = self._ledger()
        path = self._csv.export_csv(ledger, filename)
        if self._audit_logger:
            self._audit_logger.log(AuditEventBuilder.csv_transferred(
                user.username, str(path), exported=True,
                details={"transactions": len(ledger)},
            ))
        return path

    def import_csv(self, filename: str) -> ImportSummary:
        user, ledger = self._ledger()
        summary = self._csv.import_csv(ledger, filename)
        if self._audit_logger:
            self._audit_logger.log(AuditEventBuilder.csv_transferred(
                user.username, summary.path, exported=False,
                details=summary.model_dump(exclude={"path"}),
            ))
        return summary

    def save(self) -> bool:
        """
        Checkpoint every user to the snapshot store.

        Never raises: a failed save is logged, audited and reported as False.
        """
        if self._user_storage is None:
            return True

        users = self._user_service.repository.as_mapping()
        success = self._user_storage.save_users(users)
        if self._audit_logger:
            self._audit_logger.log(AuditEventBuilder.data_saved(
                len(users),
                success,
                None if success else "Snapshot could not be written",
            ))
        return success


def load_repository(
    user_storage: Optional[UserStorageInterface],
    audit_logger: Optional[AuditLogger] = None,
) -> UserRepository:
    """Build the user repository from the snapshot store (empty if none)."""
    users = user_storage.load_users() if user_storage is not None else {}
    if audit_logger:
        audit_logger.log(AuditEventBuilder.data_loaded(len(users)))
    return UserRepository(users)


def create_app_components(
    use_storage: bool = True,
    ledger_settings: Optional[LedgerSettings] = None,
    storage_settings: Optional[StorageSettings] = None,
) -> tuple[UserService, FinanceService]:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to load and save the JSON snapshot.
                    Set to False for a session that leaves nothing on disk.
        ledger_settings: Ledger policy; defaults to the cached settings
        storage_settings: Storage paths; defaults to the cached settings

    Returns:
        (user_service, finance_service)
    """
    settings = get_settings()
    ledger_settings = ledger_settings or settings.ledger
    storage_settings = storage_settings or settings.storage

    audit_logger = AuditLogger(InMemoryAuditStorage())
    user_storage = None
    if use_storage:
        user_storage = JsonUserStorage(
            settings=storage_settings,
            ledger_settings=ledger_settings,
        )

    repository = load_repository(user_storage, audit_logger)
    user_service = UserService(
        repository,
        ledger_settings=ledger_settings,
        audit_logger=audit_logger,
    )
    finance_service = FinanceService(
        user_service,
        alert_evaluator=AlertEvaluator(ledger_settings),
        transfer_coordinator=TransferCoordinator(ledger_settings.transfer_category),
        statistics=StatisticsAggregator(),
        user_storage=user_storage,
        csv_exchange=CsvExchange(storage_settings),
        audit_logger=audit_logger,
    )
    return user_service, finance_service
