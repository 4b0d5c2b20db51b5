"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Swap the JSON snapshot for a real database later
2. Use in-memory storage for testing
3. Keep the ledger core free of any disk I/O

The core never reads or writes files itself. It receives a populated
map of users at startup and hands it back at checkpoints.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Mapping

from src.models.audit import AuditEvent

if TYPE_CHECKING:
    from src.services.users import User


class UserStorageInterface(ABC):
    """
    Abstract interface for the user snapshot.

    Implementations must degrade gracefully: a failed load yields an
    empty user set and a failed save is reported, not raised.
    """

    @abstractmethod
    def load_users(self) -> dict[str, "User"]:
        """
        Load every user with a fully populated ledger.

        Returns:
            Mapping username -> User; empty when nothing is stored or
            the stored data cannot be read
        """
        pass

    @abstractmethod
    def save_users(self, users: Mapping[str, "User"]) -> bool:
        """
        Persist every user and ledger.

        Returns:
            True if saved, False if the save failed
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    def get_events_by_user(self, username: str) -> list[AuditEvent]:
        """
        Get all events for one user, in chronological order.
        """
        pass

    @abstractmethod
    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        """
        Get the most recent audit events (newest first).
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """File or entity not found in storage."""
    pass
