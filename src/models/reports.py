"""
Report Models

Typed results for the statistics queries. Each query kind has its own
model so callers get named fields instead of a loose key/value bag.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class FinancialHealth(str, Enum):
    """Savings-rate classification, best first."""
    EXCELLENT = "Excellent"
    GOOD = "Good"
    SATISFACTORY = "Satisfactory"
    NEEDS_ATTENTION = "Needs attention"


class StatisticsResult(BaseModel):
    """Totals and per-category sums for one date window."""
    model_config = ConfigDict(frozen=True)

    owner: str
    start: date
    end: date
    total_income: Decimal
    total_expenses: Decimal
    balance: Decimal
    income_by_category: dict[str, Decimal] = Field(default_factory=dict)
    expenses_by_category: dict[str, Decimal] = Field(default_factory=dict)
    transaction_count: int = Field(ge=0)

    @property
    def period(self) -> str:
        return f"{self.start.isoformat()} - {self.end.isoformat()}"


class CategoryStatsResult(BaseModel):
    """
    All-time figures for one category.

    Budget fields are only set when the category has a budget.
    """
    model_config = ConfigDict(frozen=True)

    category: str
    income: Decimal
    expenses: Decimal
    balance: Decimal
    budget_limit: Optional[Decimal] = None
    budget_spent: Optional[Decimal] = None
    budget_remaining: Optional[Decimal] = None
    budget_exceeded: Optional[bool] = None

    @property
    def has_budget(self) -> bool:
        return self.budget_limit is not None


class BudgetReportEntry(BaseModel):
    """One budget as seen by the full report."""
    model_config = ConfigDict(frozen=True)

    category: str
    limit: Decimal
    spent: Decimal
    remaining: Decimal
    exceeded: bool
    warning: bool
    period_spent: Decimal = Field(
        ...,
        description="Expenses in this category inside the report window"
    )


class ReportAnalysis(BaseModel):
    """
    Derived indicators of the full report.

    average_expense_per_transaction is the arithmetic mean of the
    expense amounts in the window, not a per-calendar-day figure.
    """
    model_config = ConfigDict(frozen=True)

    average_expense_per_transaction: Decimal
    top_expense_categories: dict[str, Decimal] = Field(
        default_factory=dict,
        description="Up to five categories, largest first"
    )
    savings_rate: Decimal = Field(
        ...,
        description="All-time (income - expenses) / income * 100, 0 without income"
    )
    financial_health: FinancialHealth


class FullReport(BaseModel):
    """All-time totals plus a detailed look at one date window."""
    model_config = ConfigDict(frozen=True)

    owner: str
    start: date
    end: date
    generated_at: datetime = Field(default_factory=datetime.now)

    # All-time
    current_balance: Decimal
    total_income: Decimal
    total_expenses: Decimal

    # Window
    period_income: Decimal
    period_expenses: Decimal
    period_balance: Decimal
    income_by_category: dict[str, Decimal] = Field(default_factory=dict)
    expenses_by_category: dict[str, Decimal] = Field(default_factory=dict)

    budgets: dict[str, BudgetReportEntry] = Field(default_factory=dict)
    analysis: ReportAnalysis

    @property
    def period(self) -> str:
        return f"{self.start.isoformat()} - {self.end.isoformat()}"
