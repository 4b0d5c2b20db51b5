"""
Statistics and Reports

DESIGN DECISION: Every query works on one snapshot of the ledger.
The snapshot is taken under the ledger lock and everything else is
computed after the lock is released, so a long report never blocks
writers for more than the copy.

Date windows are inclusive calendar-day ranges: a transaction at
23:59 on the end date is inside the window.
"""

from datetime import date
from decimal import Decimal
from typing import Iterable

from src.exceptions import CategoryNotFoundError
from src.ledger import Ledger, budget_tracker
from src.models.ledger import LedgerSnapshot, Transaction, TransactionType
from src.models.reports import (
    BudgetReportEntry,
    CategoryStatsResult,
    FinancialHealth,
    FullReport,
    ReportAnalysis,
    StatisticsResult,
)
from src.validation import require_period


ZERO = Decimal("0.00")
TOP_CATEGORY_COUNT = 5

# Checked top-down; the first threshold the savings rate is strictly above wins
HEALTH_THRESHOLDS = [
    (Decimal("20"), FinancialHealth.EXCELLENT),
    (Decimal("10"), FinancialHealth.GOOD),
    (Decimal("0"), FinancialHealth.SATISFACTORY),
]


def _sum(transactions: Iterable[Transaction]) -> Decimal:
    return sum((t.amount for t in transactions), ZERO)


def _group_by_category(
    transactions: Iterable[Transaction],
    transaction_type: TransactionType,
) -> dict[str, Decimal]:
    """Sum amounts per category; keys keep first-encountered order."""
    groups: dict[str, Decimal] = {}
    for t in transactions:
        if t.type is transaction_type:
            groups[t.category] = groups.get(t.category, ZERO) + t.amount
    return groups


def savings_rate(total_income: Decimal, total_expenses: Decimal) -> Decimal:
    """(income - expenses) / income * 100, or 0 when there is no income."""
    if total_income <= 0:
        return ZERO
    return (total_income - total_expenses) / total_income * 100


def classify_health(rate: Decimal) -> FinancialHealth:
    for threshold, label in HEALTH_THRESHOLDS:
        if rate > threshold:
            return label
    return FinancialHealth.NEEDS_ATTENTION


def top_categories(
    by_category: dict[str, Decimal],
    count: int = TOP_CATEGORY_COUNT,
) -> dict[str, Decimal]:
    """
    Largest categories first.

    sorted() is stable, so ties keep the order in which the categories
    first appeared.
    """
    ranked = sorted(by_category.items(), key=lambda item: item[1], reverse=True)
    return dict(ranked[:count])


class StatisticsAggregator:
    """Read-only statistics and reports over ledgers."""

    def get_statistics(self, ledger: Ledger, start: date, end: date) -> StatisticsResult:
        """
        Totals for the transactions dated within [start, end].

        Raises:
            ValidationError: If start is after end
        """
        require_period(start, end)
        return self._statistics(ledger.snapshot(), start, end)

    def get_statistics_for_ledgers(
        self,
        ledgers: Iterable[Ledger],
        start: date,
        end: date,
    ) -> dict[str, StatisticsResult]:
        """The same window over several ledgers, keyed by owner."""
        require_period(start, end)
        return {
            ledger.owner: self._statistics(ledger.snapshot(), start, end)
            for ledger in ledgers
        }

    def get_category_statistics(
        self,
        ledger: Ledger,
        categories: Iterable[str],
    ) -> dict[str, CategoryStatsResult]:
        """
        All-time figures per requested category, in request order.

        Raises:
            CategoryNotFoundError: If any category is unknown to the ledger.
                                   Checked for all categories before any
                                   result is built.
        """
        snapshot = ledger.snapshot()
        categories = list(categories)
        for category in categories:
            if category not in snapshot.categories:
                raise CategoryNotFoundError(category, f"Category not found: {category}")

        results = {}
        for category in categories:
            in_category = [t for t in snapshot.transactions if t.category == category]
            income = _sum(t for t in in_category if t.is_income)
            expenses = _sum(t for t in in_category if t.is_expense)

            budget = snapshot.budgets.get(category)
            budget_fields = {}
            if budget is not None:
                budget_fields = {
                    "budget_limit": budget.limit,
                    "budget_spent": budget.current_spending,
                    "budget_remaining": budget_tracker.remaining(budget),
                    "budget_exceeded": budget_tracker.is_exceeded(budget),
                }

            results[category] = CategoryStatsResult(
                category=category,
                income=income,
                expenses=expenses,
                balance=income - expenses,
                **budget_fields,
            )
        return results

    def generate_full_report(self, ledger: Ledger, start: date, end: date) -> FullReport:
        """
        All-time totals, the [start, end] window, budgets and analysis.

        Raises:
            ValidationError: If start is after end
        """
        require_period(start, end)
        snapshot = ledger.snapshot()
        period = snapshot.in_period(start, end)

        total_income = snapshot.total_income
        total_expenses = snapshot.total_expenses

        period_income = _sum(t for t in period if t.is_income)
        period_expenses = _sum(t for t in period if t.is_expense)
        expenses_by_category = _group_by_category(period, TransactionType.EXPENSE)

        budgets = {}
        for category, budget in snapshot.budgets.items():
            budgets[category] = BudgetReportEntry(
                category=category,
                limit=budget.limit,
                spent=budget.current_spending,
                remaining=budget_tracker.remaining(budget),
                exceeded=budget_tracker.is_exceeded(budget),
                warning=budget_tracker.is_warning(budget),
                period_spent=expenses_by_category.get(category, ZERO),
            )

        return FullReport(
            owner=snapshot.owner,
            start=start,
            end=end,
            current_balance=total_income - total_expenses,
            total_income=total_income,
            total_expenses=total_expenses,
            period_income=period_income,
            period_expenses=period_expenses,
            period_balance=period_income - period_expenses,
            income_by_category=_group_by_category(period, TransactionType.INCOME),
            expenses_by_category=expenses_by_category,
            budgets=budgets,
            analysis=self._analyse(period, expenses_by_category, total_income, total_expenses),
        )

    def _statistics(self, snapshot: LedgerSnapshot, start: date, end: date) -> StatisticsResult:
        period = snapshot.in_period(start, end)
        total_income = _sum(t for t in period if t.is_income)
        total_expenses = _sum(t for t in period if t.is_expense)
        return StatisticsResult(
            owner=snapshot.owner,
            start=start,
            end=end,
            total_income=total_income,
            total_expenses=total_expenses,
            balance=total_income - total_expenses,
            income_by_category=_group_by_category(period, TransactionType.INCOME),
            expenses_by_category=_group_by_category(period, TransactionType.EXPENSE),
            transaction_count=len(period),
        )

    def _analyse(
        self,
        period: list[Transaction],
        expenses_by_category: dict[str, Decimal],
        total_income: Decimal,
        total_expenses: Decimal,
    ) -> ReportAnalysis:
        expenses = [t.amount for t in period if t.is_expense]
        average = sum(expenses, ZERO) / len(expenses) if expenses else ZERO
        rate = savings_rate(total_income, total_expenses)
        return ReportAnalysis(
            average_expense_per_transaction=average,
            top_expense_categories=top_categories(expenses_by_category),
            savings_rate=rate,
            financial_health=classify_health(rate),
        )


def format_report(report: FullReport) -> str:
    """Plain-text rendering of a full report."""
    rule = "=" * 60
    lines = [
        rule,
        "FINANCIAL REPORT",
        rule,
        f"Owner: {report.owner}",
        f"Period: {report.period}",
        f"Generated: {report.generated_at:%d.%m.%Y %H:%M}",
        "",
        "--- OVERALL ---",
        f"Current balance: {report.current_balance:,.2f}",
        f"Total income: {report.total_income:,.2f}",
        f"Total expenses: {report.total_expenses:,.2f}",
        "",
        "--- PERIOD ---",
        f"Income: {report.period_income:,.2f}",
        f"Expenses: {report.period_expenses:,.2f}",
        f"Balance: {report.period_balance:,.2f}",
    ]

    for title, groups in (
        ("INCOME BY CATEGORY", report.income_by_category),
        ("EXPENSES BY CATEGORY", report.expenses_by_category),
    ):
        if groups:
            lines += ["", f"--- {title} ---"]
            lines += [f"  {category + ':':<20} {amount:,.2f}" for category, amount in groups.items()]

    if report.budgets:
        lines += [
            "",
            "--- BUDGETS ---",
            f"{'Category':<20} {'Limit':<15} {'Spent':<15} {'Remaining':<15} Status",
            "-" * 80,
        ]
        for entry in report.budgets.values():
            status = "EXCEEDED" if entry.exceeded else "WARNING" if entry.warning else "OK"
            lines.append(
                f"{entry.category:<20} {entry.limit:<15,.2f} {entry.spent:<15,.2f} "
                f"{entry.remaining:<15,.2f} {status}"
            )

    analysis = report.analysis
    lines += [
        "",
        "--- ANALYSIS ---",
        f"Average expense per transaction: {analysis.average_expense_per_transaction:,.2f}",
        f"Savings rate: {analysis.savings_rate:.1f}%",
        f"Financial health: {analysis.financial_health.value}",
    ]
    if analysis.top_expense_categories:
        lines += ["", "Top expense categories:"]
        lines += [
            f"  {category + ':':<20} {amount:,.2f}"
            for category, amount in analysis.top_expense_categories.items()
        ]
    lines.append(rule)
    return "\n".join(lines)
