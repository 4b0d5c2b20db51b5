"""
Tests for the Wallet Ledger models

Test strategy:
1. Unit tests for value types (money, transactions, budgets, alerts)
2. Unit tests for audit events and their builder
3. No disk or network access
"""

import pytest
from datetime import date, datetime
from decimal import Decimal

from src.models.alerts import Alert, AlertType
from src.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from src.models.ledger import (
    Budget,
    LedgerSnapshot,
    Transaction,
    TransactionType,
    to_money,
)
from src.models.reports import StatisticsResult
from src.exceptions import ValidationError
from src.validation import require_positive_amount


class TestMoney:
    """Tests for amount parsing and rounding."""

    def test_rounds_half_up_to_cents(self):
        """Test that amounts round half-up to 2 places."""
        assert to_money("2.345") == Decimal("2.35")
        assert to_money("2.344") == Decimal("2.34")

    def test_accepts_comma_decimal_separator(self):
        """Test that '10,5' is read as 10.50."""
        assert to_money("10,5") == Decimal("10.50")

    def test_float_keeps_its_printed_value(self):
        """Test that 0.1 becomes 0.10, not a binary approximation."""
        assert to_money(0.1) == Decimal("0.10")

    def test_rejects_garbage(self):
        """Test that non-numeric input is rejected."""
        with pytest.raises(ValueError):
            to_money("abc")

    def test_rejects_booleans(self):
        """Test that True is not silently read as 1."""
        with pytest.raises(ValueError):
            to_money(True)

    def test_rejects_non_finite(self):
        """Test that NaN and infinity are rejected."""
        with pytest.raises(ValueError):
            to_money("NaN")
        with pytest.raises(ValueError):
            to_money(float("inf"))

    def test_rejects_amounts_too_large_to_round(self):
        """Test that an amount with more digits than the context holds is a ValueError."""
        with pytest.raises(ValueError, match="out of range"):
            to_money("1e100")

    def test_validation_reports_huge_amount(self):
        with pytest.raises(ValidationError):
            require_positive_amount("1e100")


class TestTransaction:
    """Tests for the Transaction model."""

    def test_transaction_creation(self):
        """Test Transaction model creation with defaults."""
        transaction = Transaction(
            amount="1500",
            type=TransactionType.INCOME,
            category="Salary",
        )
        assert transaction.amount == Decimal("1500.00")
        assert transaction.is_income
        assert not transaction.is_expense
        assert transaction.description == ""
        assert transaction.id

    def test_ids_are_unique(self):
        """Test that each transaction gets its own id."""
        first = Transaction(amount=1, type=TransactionType.INCOME, category="Gift")
        second = Transaction(amount=1, type=TransactionType.INCOME, category="Gift")
        assert first.id != second.id

    def test_category_is_stripped(self):
        """Test that whitespace is stripped from the category."""
        transaction = Transaction(amount=5, type=TransactionType.EXPENSE, category="  Food  ")
        assert transaction.category == "Food"

    def test_rejects_non_positive_amount(self):
        """Test that zero and negative amounts are rejected."""
        with pytest.raises(ValueError):
            Transaction(amount=0, type=TransactionType.EXPENSE, category="Food")
        with pytest.raises(ValueError):
            Transaction(amount=-10, type=TransactionType.EXPENSE, category="Food")

    def test_rejects_amount_that_rounds_to_zero(self):
        """Test that 0.004 rounds to 0.00 and is rejected."""
        with pytest.raises(ValueError):
            Transaction(amount="0.004", type=TransactionType.EXPENSE, category="Food")

    def test_rejects_blank_category(self):
        """Test that a blank category is rejected."""
        with pytest.raises(ValueError):
            Transaction(amount=5, type=TransactionType.EXPENSE, category="   ")

    def test_transaction_is_frozen(self):
        """Test that a logged transaction cannot be edited in place."""
        transaction = Transaction(amount=5, type=TransactionType.EXPENSE, category="Food")
        with pytest.raises(ValueError):
            transaction.amount = Decimal("50")

    def test_formatted_date_and_day(self):
        """Test the dd.mm.yyyy HH:MM rendering and the calendar day."""
        transaction = Transaction(
            amount=5,
            type=TransactionType.EXPENSE,
            category="Food",
            date=datetime(2025, 3, 7, 9, 5),
        )
        assert transaction.formatted_date == "07.03.2025 09:05"
        assert transaction.day == date(2025, 3, 7)

    def test_str_mentions_description_fallback(self):
        """Test the one-line rendering."""
        transaction = Transaction(
            amount=5,
            type=TransactionType.EXPENSE,
            category="Food",
            date=datetime(2025, 3, 7, 9, 5),
        )
        assert str(transaction) == "[07.03.2025 09:05] Expense: Food - 5.00 (no description)"


class TestTransactionType:
    """Tests for transaction type labels."""

    def test_labels(self):
        assert TransactionType.INCOME.label == "Income"
        assert TransactionType.EXPENSE.label == "Expense"

    def test_from_label_accepts_label_and_value(self):
        """Test parsing both 'Income' and 'expense'."""
        assert TransactionType.from_label("Income") is TransactionType.INCOME
        assert TransactionType.from_label(" expense ") is TransactionType.EXPENSE

    def test_from_label_rejects_unknown(self):
        with pytest.raises(ValueError):
            TransactionType.from_label("Refund")


class TestBudget:
    """Tests for the Budget model."""

    def test_budget_starts_empty(self):
        budget = Budget(category="Food", limit=1000)
        assert budget.current_spending == Decimal("0.00")
        assert budget.warning_threshold == Decimal("0.8")

    def test_add_and_reset_spending(self):
        budget = Budget(category="Food", limit=1000)
        budget.add_spending(Decimal("250"))
        budget.add_spending(Decimal("100.50"))
        assert budget.current_spending == Decimal("350.50")
        budget.reset_spending()
        assert budget.current_spending == Decimal("0.00")

    def test_subtract_spending_floors_at_zero(self):
        """Test that taking back more than was spent leaves zero."""
        budget = Budget(category="Food", limit=1000, current_spending=100)
        budget.subtract_spending(Decimal("300"))
        assert budget.current_spending == Decimal("0.00")

    def test_set_limit_is_validated(self):
        """Test that validate_assignment rejects a non-positive limit."""
        budget = Budget(category="Food", limit=1000)
        with pytest.raises(ValueError):
            budget.set_limit(Decimal("0"))
        assert budget.limit == Decimal("1000.00")

    def test_rejects_non_positive_limit(self):
        with pytest.raises(ValueError):
            Budget(category="Food", limit=0)


class TestLedgerSnapshot:
    """Tests for the read-only ledger snapshot."""

    def test_totals_and_period(self):
        """Test derived totals and the inclusive day filter."""
        snapshot = LedgerSnapshot(
            owner="alice",
            transactions=(
                Transaction(amount=1000, type=TransactionType.INCOME, category="Salary",
                            date=datetime(2025, 1, 1, 8, 0)),
                Transaction(amount=300, type=TransactionType.EXPENSE, category="Food",
                            date=datetime(2025, 1, 31, 23, 59)),
                Transaction(amount=50, type=TransactionType.EXPENSE, category="Taxi",
                            date=datetime(2025, 2, 1, 0, 0)),
            ),
        )
        assert snapshot.total_income == Decimal("1000.00")
        assert snapshot.total_expenses == Decimal("350.00")
        assert snapshot.balance == Decimal("650.00")
        assert len(snapshot.in_period(date(2025, 1, 1), date(2025, 1, 31))) == 2


class TestAlertModel:
    """Tests for the Alert model."""

    def test_budget_alert_flag(self):
        alert = Alert(alert_type=AlertType.BUDGET_WARNING, message="m", category="Food")
        assert alert.is_budget_alert
        assert str(alert) == "m"

    def test_balance_alert_flag(self):
        alert = Alert(alert_type=AlertType.LOW_BALANCE, message="m")
        assert not alert.is_budget_alert


class TestReportModels:
    """Tests for typed statistics results."""

    def test_period_string(self):
        result = StatisticsResult(
            owner="alice",
            start=date(2025, 1, 1),
            end=date(2025, 1, 31),
            total_income=Decimal("0"),
            total_expenses=Decimal("0"),
            balance=Decimal("0"),
            transaction_count=0,
        )
        assert result.period == "2025-01-01 - 2025-01-31"


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.TRANSACTION_ADDED,
            description="Test event",
        )
        assert event.event_type == AuditEventType.TRANSACTION_ADDED
        assert event.severity == AuditSeverity.INFO
        assert event.event_id is not None

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEvent(
            event_type=AuditEventType.BUDGET_SET,
            username="alice",
            entity_id="Food",
            description="Test",
        )
        log_dict = event.to_log_dict()
        assert log_dict["event_type"] == "budget_set"
        assert log_dict["username"] == "alice"
        assert log_dict["entity_id"] == "Food"
        assert "timestamp" in log_dict

    def test_builder_transaction_added(self):
        """Test the transaction-added event carries the amount as text."""
        event = AuditEventBuilder.transaction_added(
            username="alice",
            transaction_id="tx-1",
            transaction_type="expense",
            amount=Decimal("12.50"),
            category="Food",
        )
        assert event.event_type == AuditEventType.TRANSACTION_ADDED
        assert event.entity_id == "tx-1"
        assert event.details["amount"] == "12.50"
        assert "12.50" in event.description

    def test_builder_login_failed_is_warning(self):
        event = AuditEventBuilder.login_failed("mallory")
        assert event.severity == AuditSeverity.WARNING

    def test_builder_data_saved_failure(self):
        """Test that a failed save becomes an error-level event."""
        event = AuditEventBuilder.data_saved(3, success=False, error="disk full")
        assert event.event_type == AuditEventType.SAVE_FAILED
        assert event.severity == AuditSeverity.ERROR
        assert event.error_message == "disk full"
        assert not event.is_user_action

    def test_builder_category_changed(self):
        added = AuditEventBuilder.category_changed("alice", "Pets", added=True)
        removed = AuditEventBuilder.category_changed("alice", "Pets", added=False)
        assert added.event_type == AuditEventType.CATEGORY_ADDED
        assert removed.event_type == AuditEventType.CATEGORY_REMOVED
