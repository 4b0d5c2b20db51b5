"""
Alert Evaluation

DESIGN DECISION: Alert checks are stateless.
Each check takes one consistent snapshot of the ledger and builds a new
list. Nothing is remembered between calls, so two checks never mix
their results; callers that want both kinds call check_all().
"""

from decimal import Decimal
from typing import Optional

from src.config import LedgerSettings, get_settings
from src.ledger import Ledger, budget_tracker
from src.models.alerts import Alert, AlertType
from src.models.ledger import Budget, LedgerSnapshot


class AlertEvaluator:
    """Builds budget and balance alerts for a ledger."""

    def __init__(self, settings: Optional[LedgerSettings] = None):
        self._settings = settings or get_settings().ledger

    @property
    def low_balance_threshold(self) -> Decimal:
        return self._settings.low_balance_threshold

    def check_budget_alerts(self, ledger: Ledger) -> list[Alert]:
        """
        One alert per budget that is exceeded or in its warning zone.

        An exceeded budget reports its overage; a warning budget reports
        how much of the limit is used and what is left.
        """
        return self._budget_alerts(ledger.snapshot())

    def check_balance_alerts(self, ledger: Ledger) -> list[Alert]:
        """
        Balance alerts.

        At most one of negative / low balance, plus an independent
        overspending alert when all-time expenses exceed income.
        """
        return self._balance_alerts(ledger.snapshot())

    def check_all(self, ledger: Ledger) -> list[Alert]:
        """Budget alerts followed by balance alerts, from one snapshot."""
        snapshot = ledger.snapshot()
        return self._budget_alerts(snapshot) + self._balance_alerts(snapshot)

    def _budget_alerts(self, snapshot: LedgerSnapshot) -> list[Alert]:
        alerts = []
        for budget in snapshot.budgets.values():
            alert = self._budget_alert(budget)
            if alert is not None:
                alerts.append(alert)
        return alerts

    def _budget_alert(self, budget: Budget) -> Optional[Alert]:
        if budget_tracker.is_exceeded(budget):
            overage = budget_tracker.overage(budget)
            return Alert(
                alert_type=AlertType.BUDGET_EXCEEDED,
                category=budget.category,
                amount=overage,
                message=(
                    f"{AlertType.BUDGET_EXCEEDED.headline}: category '{budget.category}'. "
                    f"Limit: {budget.limit:.2f}, spent: {budget.current_spending:.2f}, "
                    f"over by: {overage:.2f}"
                ),
            )
        if budget_tracker.is_warning(budget):
            remaining = budget_tracker.remaining(budget)
            return Alert(
                alert_type=AlertType.BUDGET_WARNING,
                category=budget.category,
                amount=remaining,
                message=(
                    f"{AlertType.BUDGET_WARNING.headline}: category '{budget.category}'. "
                    f"Limit: {budget.limit:.2f}, spent: {budget.current_spending:.2f} "
                    f"({budget_tracker.percent_used(budget):.1f}%), "
                    f"remaining: {remaining:.2f}"
                ),
            )
        return None

    def _balance_alerts(self, snapshot: LedgerSnapshot) -> list[Alert]:
        alerts = []
        total_income = snapshot.total_income
        total_expenses = snapshot.total_expenses
        balance = total_income - total_expenses

        if balance < 0:
            alerts.append(Alert(
                alert_type=AlertType.NEGATIVE_BALANCE,
                amount=balance,
                message=f"{AlertType.NEGATIVE_BALANCE.headline}: current balance {balance:.2f}",
            ))
        elif balance < self.low_balance_threshold:
            alerts.append(Alert(
                alert_type=AlertType.LOW_BALANCE,
                amount=balance,
                message=f"{AlertType.LOW_BALANCE.headline}: current balance {balance:.2f}",
            ))

        if total_expenses > total_income:
            alerts.append(Alert(
                alert_type=AlertType.OVERSPENDING,
                amount=total_expenses - total_income,
                message=(
                    f"{AlertType.OVERSPENDING.headline}: spent {total_expenses:.2f} "
                    f"against {total_income:.2f} earned"
                ),
            ))

        return alerts
