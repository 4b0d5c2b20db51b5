"""
Alert Models

Alerts are ephemeral diagnostics about budget or balance state.
They are rebuilt from the ledger on every check and never stored.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class AlertType(str, Enum):
    """Kinds of alert, with the headline shown to the user."""
    BUDGET_EXCEEDED = "budget_exceeded"
    BUDGET_WARNING = "budget_warning"
    NEGATIVE_BALANCE = "negative_balance"
    LOW_BALANCE = "low_balance"
    OVERSPENDING = "overspending"

    @property
    def headline(self) -> str:
        return _HEADLINES[self]


_HEADLINES = {
    AlertType.BUDGET_EXCEEDED: "Budget exceeded",
    AlertType.BUDGET_WARNING: "Budget almost used up",
    AlertType.NEGATIVE_BALANCE: "Negative balance",
    AlertType.LOW_BALANCE: "Low balance",
    AlertType.OVERSPENDING: "Expenses exceed income",
}


class Alert(BaseModel):
    """One alert about a ledger."""
    model_config = ConfigDict(frozen=True)

    alert_type: AlertType
    message: str = Field(
        ...,
        min_length=1,
        description="Full human-readable alert text"
    )
    category: Optional[str] = Field(
        default=None,
        description="Budget category, for budget alerts"
    )
    amount: Optional[Decimal] = Field(
        default=None,
        description="The figure the alert is about (overage, remaining, balance)"
    )
    created_at: datetime = Field(default_factory=datetime.now)

    @property
    def is_budget_alert(self) -> bool:
        return self.alert_type in (AlertType.BUDGET_EXCEEDED, AlertType.BUDGET_WARNING)

    def __str__(self) -> str:
        return self.message
