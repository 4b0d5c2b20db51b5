"""
Tests for the Ledger

Covers bookkeeping, budget bookkeeping policies, category rules,
copy-on-read queries and the per-ledger lock.
"""

import threading
from datetime import date, datetime
from decimal import Decimal

import pytest

from src.config import LedgerSettings
from src.exceptions import CategoryNotFoundError, LockTimeoutError, ValidationError
from src.ledger import Ledger
from src.models.ledger import Budget, TransactionType
from tests.factories import expense, income


class TestBookkeeping:
    """Tests for appending and removing transactions."""

    def test_new_ledger_has_default_categories(self, ledger):
        categories = ledger.get_categories()
        assert "Salary" in categories
        assert "Food" in categories
        assert ledger.get_balance() == Decimal("0.00")
        assert len(ledger) == 0

    def test_balance_is_income_minus_expenses(self, ledger):
        """Test that balance is recomputed from the log."""
        ledger.add_transaction(income(50000))
        ledger.add_transaction(expense(300))
        ledger.add_transaction(expense("199.99", category="Taxi"))
        assert ledger.get_total_income() == Decimal("50000.00")
        assert ledger.get_total_expenses() == Decimal("499.99")
        assert ledger.get_balance() == Decimal("49500.01")

    def test_new_category_is_registered(self, ledger):
        """Test that a transaction in an unknown category registers it."""
        ledger.add_transaction(expense(10, category="Pets"))
        assert ledger.has_category("Pets")

    def test_transactions_keep_insertion_order(self, ledger):
        first = income(1)
        ledger.add_transaction(first)
        ledger.add_transaction(expense(1))
        assert ledger.get_transactions()[0] == first
        assert [t.type for t in ledger.get_transactions()] == [
            TransactionType.INCOME,
            TransactionType.EXPENSE,
        ]

    def test_remove_transaction(self, ledger):
        transaction = income(100)
        ledger.add_transaction(transaction)
        assert ledger.remove_transaction(transaction.id) is True
        assert ledger.get_balance() == Decimal("0.00")

    def test_remove_unknown_transaction_is_noop(self, ledger):
        """Test that an unknown id changes nothing."""
        ledger.add_transaction(income(100))
        assert ledger.remove_transaction("missing") is False
        assert len(ledger) == 1

    def test_filters(self, ledger):
        ledger.add_transaction(income(100))
        ledger.add_transaction(expense(10))
        ledger.add_transaction(expense(20, category="Taxi"))
        assert len(ledger.get_income_transactions()) == 1
        assert len(ledger.get_expense_transactions()) == 2
        assert [t.amount for t in ledger.get_transactions_by_category("Taxi")] == [Decimal("20.00")]


class TestBudgets:
    """Tests for budget installation and spending."""

    def test_expense_increments_budget(self, ledger):
        ledger.set_budget("Food", 1000)
        ledger.add_transaction(expense(300))
        assert ledger.get_budget("Food").current_spending == Decimal("300.00")

    def test_income_does_not_touch_budget(self, ledger):
        """Test that income in a budgeted category leaves spending alone."""
        ledger.set_budget("Gift", 1000)
        ledger.add_transaction(income(300, category="Gift"))
        assert ledger.get_budget("Gift").current_spending == Decimal("0.00")

    def test_expense_in_other_category_does_not_touch_budget(self, ledger):
        ledger.set_budget("Food", 1000)
        ledger.add_transaction(expense(300, category="Taxi"))
        assert ledger.get_budget("Food").current_spending == Decimal("0.00")

    def test_set_budget_rejects_non_positive_limit(self, ledger):
        """Test that a bad limit raises and installs nothing."""
        with pytest.raises(ValidationError):
            ledger.set_budget("Food", 0)
        with pytest.raises(ValidationError):
            ledger.set_budget("Food", -5)
        assert ledger.get_budgets() == {}

    def test_set_budget_registers_category(self, ledger):
        ledger.set_budget("Pets", 500)
        assert ledger.has_category("Pets")

    def test_reset_on_set_starts_from_zero(self, ledger):
        """Test that re-setting a budget discards accumulated spending."""
        ledger.set_budget("Food", 1000)
        ledger.add_transaction(expense(300))
        ledger.set_budget("Food", 2000)
        budget = ledger.get_budget("Food")
        assert budget.limit == Decimal("2000.00")
        assert budget.current_spending == Decimal("0.00")

    def test_replay_on_set_when_reset_disabled(self, ledger_settings):
        """Test that spending is recomputed from the log when reset_on_set is off."""
        settings = ledger_settings.model_copy(update={"reset_on_set": False})
        ledger = Ledger("alice", settings=settings)
        ledger.add_transaction(expense(300))
        ledger.add_transaction(expense(200))
        ledger.add_transaction(expense(50, category="Taxi"))
        budget = ledger.set_budget("Food", 1000)
        assert budget.current_spending == Decimal("500.00")

    def test_edit_budget_changes_limit_only(self, ledger):
        ledger.set_budget("Food", 1000)
        ledger.add_transaction(expense(300))
        budget = ledger.edit_budget("Food", 500)
        assert budget.limit == Decimal("500.00")
        assert budget.current_spending == Decimal("300.00")

    def test_edit_missing_budget_raises(self, ledger):
        with pytest.raises(CategoryNotFoundError):
            ledger.edit_budget("Food", 500)

    def test_edit_budget_validates_limit_first(self, ledger):
        """Test that a bad limit is reported before the missing budget."""
        with pytest.raises(ValidationError):
            ledger.edit_budget("Food", 0)

    def test_remove_budget(self, ledger):
        ledger.set_budget("Food", 1000)
        assert ledger.remove_budget("Food") is True
        assert ledger.remove_budget("Food") is False
        assert ledger.has_category("Food")

    def test_reset_budget(self, ledger):
        ledger.set_budget("Food", 1000)
        ledger.add_transaction(expense(300))
        assert ledger.reset_budget("Food").current_spending == Decimal("0.00")
        with pytest.raises(CategoryNotFoundError):
            ledger.reset_budget("Taxi")

    def test_removal_keeps_spending_by_default(self, ledger):
        """Test that removing an expense does not reverse budget spending."""
        ledger.set_budget("Food", 1000)
        transaction = expense(300)
        ledger.add_transaction(transaction)
        ledger.remove_transaction(transaction.id)
        assert ledger.get_budget("Food").current_spending == Decimal("300.00")

    def test_removal_reconciles_when_enabled(self, ledger_settings):
        settings = ledger_settings.model_copy(update={"reconcile_on_remove": True})
        ledger = Ledger("alice", settings=settings)
        ledger.set_budget("Food", 1000)
        transaction = expense(300)
        ledger.add_transaction(transaction)
        ledger.remove_transaction(transaction.id)
        assert ledger.get_budget("Food").current_spending == Decimal("0.00")

    def test_install_budget_is_verbatim(self, ledger):
        """Test that an installed budget keeps its spending as given."""
        ledger.add_transaction(expense(999))
        ledger.install_budget(Budget(category="Food", limit=1000, current_spending=10))
        assert ledger.get_budget("Food").current_spending == Decimal("10.00")


class TestCategories:
    """Tests for category rules."""

    def test_add_category_is_idempotent(self, ledger):
        ledger.add_category("Pets")
        ledger.add_category("Pets")
        assert ledger.has_category("Pets")

    def test_add_blank_category_rejected(self, ledger):
        with pytest.raises(ValidationError):
            ledger.add_category("   ")

    def test_referenced_category_cannot_be_removed(self, ledger):
        """Test that removal is refused while a transaction uses the category."""
        ledger.add_transaction(expense(10))
        assert ledger.remove_category("Food") is False
        assert ledger.has_category("Food")

    def test_remove_category_drops_its_budget(self, ledger):
        ledger.set_budget("Food", 1000)
        assert ledger.remove_category("Food") is True
        assert not ledger.has_category("Food")
        assert ledger.get_budget("Food") is None

    def test_remove_unknown_category(self, ledger):
        assert ledger.remove_category("Nope") is False


class TestQueries:
    """Tests for copy-on-read queries."""

    def test_transaction_list_is_a_copy(self, ledger):
        ledger.add_transaction(income(100))
        ledger.get_transactions().clear()
        assert len(ledger) == 1

    def test_budget_is_a_copy(self, ledger):
        """Test that mutating a returned budget does not touch the ledger."""
        ledger.set_budget("Food", 1000)
        ledger.get_budget("Food").add_spending(Decimal("500"))
        ledger.get_budgets()["Food"].add_spending(Decimal("500"))
        assert ledger.get_budget("Food").current_spending == Decimal("0.00")

    def test_categories_are_a_copy(self, ledger):
        ledger.get_categories().add("Injected")
        assert not ledger.has_category("Injected")

    def test_date_range_is_inclusive_and_newest_first(self, ledger):
        ledger.add_transaction(income(1, when=datetime(2025, 1, 1, 0, 0)))
        ledger.add_transaction(income(2, when=datetime(2025, 1, 31, 23, 59)))
        ledger.add_transaction(income(3, when=datetime(2025, 1, 15, 12, 0)))
        ledger.add_transaction(income(4, when=datetime(2025, 2, 1, 0, 0)))
        result = ledger.get_transactions_by_date_range(date(2025, 1, 1), date(2025, 1, 31))
        assert [t.amount for t in result] == [Decimal("2.00"), Decimal("3.00"), Decimal("1.00")]

    def test_date_range_rejects_inverted_period(self, ledger):
        with pytest.raises(ValidationError):
            ledger.get_transactions_by_date_range(date(2025, 2, 1), date(2025, 1, 1))

    def test_snapshot_round_trip(self, ledger, ledger_settings):
        """Test that from_snapshot restores log, budgets and categories."""
        ledger.add_transaction(income(1000))
        ledger.set_budget("Food", 500)
        ledger.add_transaction(expense(100))
        ledger.add_category("Pets")

        restored = Ledger.from_snapshot(ledger.snapshot(), settings=ledger_settings)
        assert restored.owner == "alice"
        assert restored.get_balance() == Decimal("900.00")
        assert restored.get_budget("Food").current_spending == Decimal("100.00")
        assert restored.has_category("Pets")


class TestLocking:
    """Tests for the per-ledger lock."""

    def test_lock_is_reentrant(self, ledger):
        with ledger.locked():
            ledger.add_transaction(income(10))
        assert len(ledger) == 1

    def test_lock_timeout_raises(self):
        """Test that a held lock makes another thread time out."""
        ledger = Ledger("alice", settings=LedgerSettings(lock_timeout_seconds=0.1))
        held = threading.Event()
        release = threading.Event()

        def hold():
            with ledger.locked():
                held.set()
                release.wait(5)

        worker = threading.Thread(target=hold)
        worker.start()
        assert held.wait(5)
        try:
            with pytest.raises(LockTimeoutError):
                ledger.add_transaction(income(10))
        finally:
            release.set()
            worker.join()
        assert len(ledger) == 0

    def test_concurrent_appends_are_all_kept(self, ledger):
        """Test that parallel writers never lose an entry."""
        ledger.set_budget("Food", 100000)

        def spend():
            for _ in range(100):
                ledger.add_transaction(expense(1))

        workers = [threading.Thread(target=spend) for _ in range(4)]
        for worker in workers:
            worker.start()
        for worker in workers:
            worker.join()

        assert len(ledger) == 400
        assert ledger.get_budget("Food").current_spending == Decimal("400.00")
