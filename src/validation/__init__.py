"""Input validation package."""

from src.validation.validator import (
    MIN_PASSWORD_LENGTH,
    MIN_USERNAME_LENGTH,
    require_category,
    require_period,
    require_positive_amount,
    validate_password,
    validate_registration,
    validate_username,
)

__all__ = [
    "MIN_PASSWORD_LENGTH",
    "MIN_USERNAME_LENGTH",
    "require_category",
    "require_period",
    "require_positive_amount",
    "validate_password",
    "validate_registration",
    "validate_username",
]
