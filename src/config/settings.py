"""
Configuration Management for the Wallet Ledger

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All tunable policy lives here.
Thresholds and the two budget bookkeeping policies (reset on re-set,
reconcile on removal) are settings rather than constants so that callers
can see every behavioural switch in one place.
"""

from decimal import Decimal
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_CATEGORIES = [
    # Income
    "Salary",
    "Bonus",
    "Investments",
    "Gift",
    # Expenses
    "Food",
    "Entertainment",
    "Utilities",
    "Transport",
    "Taxi",
    "Clothing",
    "Health",
    "Education",
]


class LedgerSettings(BaseSettings):
    """Ledger, budget and alert policy."""

    model_config = SettingsConfigDict(
        env_prefix="WALLET_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    budget_warning_threshold: Decimal = Field(
        default=Decimal("0.8"),
        gt=0,
        le=1,
        description="Share of the limit at which a budget starts warning"
    )
    low_balance_threshold: Decimal = Field(
        default=Decimal("100"),
        ge=0,
        description="Balance below which a low-balance alert is raised"
    )
    reset_on_set: bool = Field(
        default=True,
        description="Start a re-set budget from zero instead of replaying the log"
    )
    reconcile_on_remove: bool = Field(
        default=False,
        description="Subtract a removed expense from its category budget"
    )
    transfer_category: str = Field(
        default="Transfer",
        min_length=1,
        description="Category used for both legs of a transfer"
    )
    lock_timeout_seconds: float = Field(
        default=5.0,
        description="Max wait for a ledger lock; <= 0 waits forever"
    )
    default_categories: list[str] = Field(
        default_factory=lambda: list(DEFAULT_CATEGORIES),
        description="Categories every new ledger starts with"
    )


class StorageSettings(BaseSettings):
    """Snapshot and CSV storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="WALLET_STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    data_dir: str = Field(
        default="data",
        description="Directory holding the user snapshot"
    )
    users_file: str = Field(
        default="users.json",
        description="Snapshot file name inside data_dir"
    )
    exports_dir: str = Field(
        default="exports",
        description="CSV export directory, relative to data_dir"
    )
    save_retry_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="How many times a snapshot write is attempted"
    )
    save_retry_wait_seconds: float = Field(
        default=0.5,
        ge=0,
        description="Base of the exponential back-off between write attempts"
    )

    @field_validator('users_file')
    @classmethod
    def validate_users_file(cls, v: str) -> str:
        """The snapshot is JSON; refuse anything else."""
        if not v.lower().endswith(".json"):
            raise ValueError(f"Snapshot file must be a .json file, got {v}")
        return v

    @property
    def users_path(self) -> Path:
        return Path(self.data_dir) / self.users_file

    @property
    def exports_path(self) -> Path:
        return Path(self.data_dir) / self.exports_dir


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    app_environment: str = Field(
        default="development",
        description="Application environment"
    )

    @property
    def ledger(self) -> LedgerSettings:
        return LedgerSettings()

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    try:
        _ = settings.ledger
        results["ledger"] = True
    except Exception as e:
        results["ledger"] = False
        results["ledger_error"] = str(e)

    try:
        _ = settings.storage
        results["storage"] = True
    except Exception as e:
        results["storage"] = False
        results["storage_error"] = str(e)

    return results
