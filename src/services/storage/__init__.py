"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Currently implements a JSON snapshot file as the backend, plus CSV
exchange of a single ledger, but designed to be swappable.
"""

from src.services.storage.interface import (
    AuditStorageInterface,
    NotFoundError,
    StorageError,
    UserStorageInterface,
)
from src.services.storage.csv_exchange import CsvExchange, ImportSummary
from src.services.storage.json_storage import JsonUserStorage
from src.services.storage.memory import InMemoryAuditStorage, InMemoryUserStorage

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "UserStorageInterface",
    # Exceptions
    "NotFoundError",
    "StorageError",
    # JSON snapshot implementation
    "JsonUserStorage",
    # In-memory implementations
    "InMemoryAuditStorage",
    "InMemoryUserStorage",
    # CSV exchange
    "CsvExchange",
    "ImportSummary",
]
