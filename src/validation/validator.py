"""
Input Validation

DESIGN DECISION: Every mutating operation validates ALL of its inputs
before it touches any state. These checks are the first step of each
operation, so a raised ValidationError always means nothing changed.

Two groups of checks:

MONEY INPUTS:
- Amounts and limits must parse as numbers and be positive after
  rounding to 2 places
- Categories must be non-blank text

ACCOUNT INPUTS:
- Username: non-blank, at least 3 characters
- Password: non-blank, at least 4 characters, confirmation must match

IMPORTANT: Validation NEVER silently fixes input (beyond trimming
whitespace and rounding to cents). Bad input is reported.
"""

from datetime import date
from decimal import Decimal
from typing import Any, Optional

from src.exceptions import ValidationError
from src.models.ledger import to_money


MIN_USERNAME_LENGTH = 3
MIN_PASSWORD_LENGTH = 4


# =============================================================================
# MONEY INPUTS
# =============================================================================

def require_positive_amount(value: Any, what: str = "Amount") -> Decimal:
    """
    Parse and check an amount.

    Returns the amount rounded to cents.

    Raises:
        ValidationError: If the value is not a number or is not positive
    """
    try:
        amount = to_money(value)
    except ValueError as e:
        raise ValidationError(f"{what} must be a number: {e}")

    if amount <= 0:
        raise ValidationError(f"{what} must be positive")
    return amount


def require_category(category: Optional[str]) -> str:
    """Return the trimmed category name or raise if it is blank."""
    if category is None or not str(category).strip():
        raise ValidationError("Category cannot be empty")
    return str(category).strip()


def require_period(start: date, end: date) -> None:
    if start > end:
        raise ValidationError(
            f"Period start ({start.isoformat()}) is after its end ({end.isoformat()})"
        )


# =============================================================================
# ACCOUNT INPUTS
# =============================================================================

def validate_username(username: Optional[str]) -> str:
    if username is None or not username.strip():
        raise ValidationError("Username cannot be empty")
    username = username.strip()
    if len(username) < MIN_USERNAME_LENGTH:
        raise ValidationError(
            f"Username must be at least {MIN_USERNAME_LENGTH} characters long"
        )
    return username


def validate_password(
    password: Optional[str],
    confirm_password: Optional[str],
    label: str = "Password",
) -> str:
    """
    Check a new password and its confirmation.

    Args:
        password: The password being set
        confirm_password: The same password typed again
        label: Used in messages ("Password", "New password")
    """
    if password is None or not password.strip():
        raise ValidationError(f"{label} cannot be empty")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"{label} must be at least {MIN_PASSWORD_LENGTH} characters long"
        )
    if password != confirm_password:
        raise ValidationError("Passwords do not match")
    return password


def validate_registration(
    username: Optional[str],
    password: Optional[str],
    confirm_password: Optional[str],
) -> str:
    """
    Validate a registration form.

    Returns the trimmed username.
    """
    username = validate_username(username)
    validate_password(password, confirm_password)
    return username
