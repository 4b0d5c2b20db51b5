"""Tests for budget and balance alerts."""

from decimal import Decimal

import pytest

from src.models.alerts import AlertType
from src.services.alerts import AlertEvaluator
from tests.factories import expense, income


@pytest.fixture
def evaluator(ledger_settings):
    return AlertEvaluator(ledger_settings)


class TestBudgetAlerts:
    """Tests for check_budget_alerts."""

    def test_no_alert_below_threshold(self, evaluator, ledger):
        ledger.set_budget("Food", 1000)
        ledger.add_transaction(expense(500))
        assert evaluator.check_budget_alerts(ledger) == []

    def test_warning_alert(self, evaluator, ledger):
        """Test the warning once 80% of the limit is spent."""
        ledger.set_budget("Food", 1000)
        ledger.add_transaction(expense(850))

        alerts = evaluator.check_budget_alerts(ledger)

        assert len(alerts) == 1
        alert = alerts[0]
        assert alert.alert_type is AlertType.BUDGET_WARNING
        assert alert.category == "Food"
        assert alert.amount == Decimal("150.00")
        assert "85.0%" in alert.message
        assert "remaining: 150.00" in alert.message

    def test_exceeded_alert(self, evaluator, ledger):
        """Test that an exceeded budget reports only the overage alert."""
        ledger.set_budget("Food", 1000)
        ledger.add_transaction(expense(1200))

        alerts = evaluator.check_budget_alerts(ledger)

        assert [a.alert_type for a in alerts] == [AlertType.BUDGET_EXCEEDED]
        assert alerts[0].amount == Decimal("200.00")
        assert "over by: 200.00" in alerts[0].message

    def test_warning_turns_into_exceeded(self, evaluator, ledger):
        """Test that 850 of 1000 warns and a further 200 reports only the overage."""
        ledger.set_budget("Food", 1000)
        ledger.add_transaction(expense(850))
        assert [a.alert_type for a in evaluator.check_budget_alerts(ledger)] == [
            AlertType.BUDGET_WARNING
        ]

        ledger.add_transaction(expense(200))

        assert ledger.get_budget("Food").current_spending == Decimal("1050.00")
        alerts = evaluator.check_budget_alerts(ledger)
        assert [a.alert_type for a in alerts] == [AlertType.BUDGET_EXCEEDED]
        assert alerts[0].amount == Decimal("50.00")

    def test_one_alert_per_budget(self, evaluator, ledger):
        ledger.set_budget("Food", 100)
        ledger.set_budget("Taxi", 100)
        ledger.add_transaction(expense(150, category="Food"))
        ledger.add_transaction(expense(90, category="Taxi"))

        alerts = evaluator.check_budget_alerts(ledger)

        assert {(a.category, a.alert_type) for a in alerts} == {
            ("Food", AlertType.BUDGET_EXCEEDED),
            ("Taxi", AlertType.BUDGET_WARNING),
        }


class TestBalanceAlerts:
    """Tests for check_balance_alerts."""

    def test_healthy_balance(self, evaluator, ledger):
        ledger.add_transaction(income(1000))
        assert evaluator.check_balance_alerts(ledger) == []

    def test_balance_at_threshold_is_not_low(self, evaluator, ledger):
        """Test that exactly 100 does not raise a low-balance alert."""
        ledger.add_transaction(income(100))
        assert evaluator.check_balance_alerts(ledger) == []

    def test_low_balance(self, evaluator, ledger):
        ledger.add_transaction(income(150))
        ledger.add_transaction(expense(100))

        alerts = evaluator.check_balance_alerts(ledger)

        assert [a.alert_type for a in alerts] == [AlertType.LOW_BALANCE]
        assert alerts[0].amount == Decimal("50.00")

    def test_empty_ledger_is_low_balance(self, evaluator, ledger):
        """Test that a zero balance is low but not negative or overspent."""
        alerts = evaluator.check_balance_alerts(ledger)
        assert [a.alert_type for a in alerts] == [AlertType.LOW_BALANCE]

    def test_negative_balance_and_overspending(self, evaluator, ledger):
        ledger.add_transaction(income(100))
        ledger.add_transaction(expense(250))

        alerts = evaluator.check_balance_alerts(ledger)

        assert [a.alert_type for a in alerts] == [
            AlertType.NEGATIVE_BALANCE,
            AlertType.OVERSPENDING,
        ]
        assert alerts[0].amount == Decimal("-150.00")
        assert alerts[1].amount == Decimal("150.00")

    def test_custom_low_balance_threshold(self, ledger_settings, ledger):
        settings = ledger_settings.model_copy(update={"low_balance_threshold": Decimal("10")})
        ledger.add_transaction(income(50))
        assert AlertEvaluator(settings).check_balance_alerts(ledger) == []


class TestAlertLifecycle:
    """Tests that alerts are rebuilt, never accumulated."""

    def test_each_call_returns_a_fresh_list(self, evaluator, ledger):
        ledger.set_budget("Food", 100)
        ledger.add_transaction(expense(150))

        first = evaluator.check_all(ledger)
        second = evaluator.check_all(ledger)

        assert first is not second
        assert len(first) == len(second)

    def test_alerts_disappear_when_state_recovers(self, evaluator, ledger):
        ledger.set_budget("Food", 100)
        ledger.add_transaction(expense(150))
        assert evaluator.check_budget_alerts(ledger)

        ledger.edit_budget("Food", 1000)
        assert evaluator.check_budget_alerts(ledger) == []

    def test_check_all_orders_budget_alerts_first(self, evaluator, ledger):
        ledger.set_budget("Food", 100)
        ledger.add_transaction(expense(150))

        alerts = evaluator.check_all(ledger)

        assert [a.alert_type for a in alerts] == [
            AlertType.BUDGET_EXCEEDED,
            AlertType.NEGATIVE_BALANCE,
            AlertType.OVERSPENDING,
        ]
