"""
Budget evaluation.

Pure functions over a Budget. Nothing here mutates the budget or keeps
state between calls, so every function can be exercised on a bare model.
"""

from decimal import Decimal

from src.models.ledger import Budget


def remaining(budget: Budget) -> Decimal:
    """Limit minus spending; negative once the budget is blown."""
    return budget.limit - budget.current_spending


def is_exceeded(budget: Budget) -> bool:
    return budget.current_spending > budget.limit


def is_warning(budget: Budget) -> bool:
    """Spending reached the warning share of the limit but not past the limit."""
    if is_exceeded(budget):
        return False
    return budget.current_spending >= budget.limit * budget.warning_threshold


def overage(budget: Budget) -> Decimal:
    """How far spending is past the limit (0 while within it)."""
    return abs(remaining(budget)) if is_exceeded(budget) else Decimal("0.00")


def percent_used(budget: Budget) -> Decimal:
    return budget.current_spending / budget.limit * 100


def status_label(budget: Budget) -> str:
    if is_exceeded(budget):
        return "EXCEEDED"
    if is_warning(budget):
        return "WARNING"
    return "OK"
