"""
Core Data Models for the Wallet Ledger

These models define the records a ledger is made of:
1. Transaction - an immutable income or expense event
2. Budget - a spending cap for one category
3. LedgerSnapshot - a frozen copy of one ledger for readers

DESIGN DECISION: Amounts are Decimal, rounded half-up to 2 places on the
way in. Rounding happens before the positivity check, so an amount that
rounds to zero is rejected.
"""

from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator


CENT = Decimal("0.01")
DATE_FORMAT = "%d.%m.%Y %H:%M"


def to_money(value: Any) -> Decimal:
    """
    Convert a number or numeric string to a 2-place Decimal.

    Floats go through str() so that 0.1 stays 0.10 instead of
    0.1000000000000000055511151231257827.
    """
    if isinstance(value, Decimal):
        raw = value
    elif isinstance(value, bool):
        raise ValueError("Amount must be a number")
    elif isinstance(value, (int, float)):
        raw = Decimal(str(value))
    elif isinstance(value, str):
        try:
            raw = Decimal(value.strip().replace(",", "."))
        except InvalidOperation:
            raise ValueError(f"Not a valid amount: {value!r}")
    else:
        raise ValueError(f"Not a valid amount: {value!r}")

    if not raw.is_finite():
        raise ValueError(f"Amount must be finite, got {value!r}")
    try:
        return raw.quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise ValueError(f"Amount out of range: {value!r}")


# =============================================================================
# ENUMS
# =============================================================================

class TransactionType(str, Enum):
    """Direction of a money movement."""
    INCOME = "income"
    EXPENSE = "expense"

    @property
    def label(self) -> str:
        """Human-readable label, also used in CSV files."""
        return "Income" if self is TransactionType.INCOME else "Expense"

    @classmethod
    def from_label(cls, label: str) -> "TransactionType":
        normalized = label.strip().lower()
        for member in cls:
            if normalized in (member.value, member.label.lower()):
                return member
        raise ValueError(f"Unknown transaction type: {label!r}")


# =============================================================================
# TRANSACTION
# =============================================================================

class Transaction(BaseModel):
    """
    A single money movement.

    CRITICAL: Transactions are frozen. The ledger log only ever gains or
    loses whole entries; nothing edits an entry in place.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: str = Field(
        default_factory=lambda: str(uuid4()),
        description="Unique transaction ID"
    )
    amount: Decimal = Field(
        ...,
        gt=0,
        description="Positive amount, 2 decimal places"
    )
    type: TransactionType
    category: str = Field(
        ...,
        min_length=1,
        max_length=100,
    )
    date: datetime = Field(
        default_factory=datetime.now,
        description="When the money moved"
    )
    description: str = Field(
        default="",
        max_length=500,
    )

    @field_validator('amount', mode='before')
    @classmethod
    def round_amount(cls, v: Any) -> Decimal:
        return to_money(v)

    @property
    def is_income(self) -> bool:
        return self.type is TransactionType.INCOME

    @property
    def is_expense(self) -> bool:
        return self.type is TransactionType.EXPENSE

    @property
    def day(self):
        """Calendar day of the transaction, used for period filters."""
        return self.date.date()

    @property
    def formatted_date(self) -> str:
        return self.date.strftime(DATE_FORMAT)

    def __str__(self) -> str:
        return "[{}] {}: {} - {:.2f} ({})".format(
            self.formatted_date,
            self.type.label,
            self.category,
            self.amount,
            self.description or "no description",
        )


# =============================================================================
# BUDGET
# =============================================================================

class Budget(BaseModel):
    """
    Spending cap for one category.

    Evaluation (remaining, exceeded, warning) lives in
    src.ledger.budget_tracker; this model only holds the numbers and
    the three ways they may change.
    """
    model_config = ConfigDict(validate_assignment=True, str_strip_whitespace=True)

    category: str = Field(
        ...,
        min_length=1,
        max_length=100,
    )
    limit: Decimal = Field(
        ...,
        gt=0,
        description="Spending cap"
    )
    current_spending: Decimal = Field(
        default=Decimal("0.00"),
        ge=0,
        description="Expenses booked against this budget"
    )
    warning_threshold: Decimal = Field(
        default=Decimal("0.8"),
        gt=0,
        le=1,
        description="Share of the limit at which the budget starts warning"
    )

    @field_validator('limit', 'current_spending', mode='before')
    @classmethod
    def round_money(cls, v: Any) -> Decimal:
        return to_money(v)

    def add_spending(self, amount: Decimal) -> None:
        self.current_spending = self.current_spending + amount

    def subtract_spending(self, amount: Decimal) -> None:
        """Take an amount back off the budget, never going below zero."""
        self.current_spending = max(Decimal("0.00"), self.current_spending - amount)

    def reset_spending(self) -> None:
        self.current_spending = Decimal("0.00")

    def set_limit(self, limit: Decimal) -> None:
        """Change the cap; accumulated spending is left as is."""
        self.limit = limit


# =============================================================================
# SNAPSHOT
# =============================================================================

class LedgerSnapshot(BaseModel):
    """
    Consistent, read-only copy of a ledger at one instant.

    Readers (statistics, alerts) work on this so they never hold the
    ledger lock longer than the copy takes.
    """
    model_config = ConfigDict(frozen=True)

    owner: str
    transactions: tuple[Transaction, ...] = ()
    budgets: dict[str, Budget] = Field(default_factory=dict)
    categories: frozenset[str] = frozenset()
    taken_at: datetime = Field(default_factory=datetime.now)

    @property
    def total_income(self) -> Decimal:
        return sum(
            (t.amount for t in self.transactions if t.is_income),
            Decimal("0.00"),
        )

    @property
    def total_expenses(self) -> Decimal:
        return sum(
            (t.amount for t in self.transactions if t.is_expense),
            Decimal("0.00"),
        )

    @property
    def balance(self) -> Decimal:
        return self.total_income - self.total_expenses

    def in_period(self, start: date, end: date) -> list[Transaction]:
        """Transactions whose calendar day falls in [start, end]."""
        return [t for t in self.transactions if start <= t.day <= end]
