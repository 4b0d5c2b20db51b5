"""Services package."""

from src.services.alerts import AlertEvaluator
from src.services.statistics import StatisticsAggregator, format_report
from src.services.users import User, UserRepository, UserService
from src.services.storage import (
    AuditStorageInterface,
    CsvExchange,
    ImportSummary,
    InMemoryAuditStorage,
    InMemoryUserStorage,
    JsonUserStorage,
    NotFoundError,
    StorageError,
    UserStorageInterface,
)

__all__ = [
    # Ledger readers
    "AlertEvaluator",
    "StatisticsAggregator",
    "format_report",
    # Accounts
    "User",
    "UserRepository",
    "UserService",
    # Storage services
    "AuditStorageInterface",
    "CsvExchange",
    "ImportSummary",
    "InMemoryAuditStorage",
    "InMemoryUserStorage",
    "JsonUserStorage",
    "NotFoundError",
    "StorageError",
    "UserStorageInterface",
]
