"""
In-Memory Storage

Process-local implementations of the storage interfaces. Used in tests
and whenever a session should leave nothing on disk.
"""

import threading
from typing import Mapping, Optional

from src.models.audit import AuditEvent
from src.services.storage.interface import AuditStorageInterface, UserStorageInterface
from src.services.users import User


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only list of audit events."""

    def __init__(self):
        self._lock = threading.Lock()
        self._events: list[AuditEvent] = []

    def append_event(self, event: AuditEvent) -> bool:
        with self._lock:
            self._events.append(event)
        return True

    def get_events_by_user(self, username: str) -> list[AuditEvent]:
        with self._lock:
            events = [e for e in self._events if e.username == username]
        events.sort(key=lambda e: e.timestamp)
        return events

    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        with self._lock:
            events = list(reversed(self._events))
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)


class InMemoryUserStorage(UserStorageInterface):
    """Keeps the last saved user map; ledgers are shared, not copied."""

    def __init__(self, users: Optional[Mapping[str, User]] = None):
        self._users: dict[str, User] = dict(users or {})
        self.save_count = 0

    def load_users(self) -> dict[str, User]:
        return dict(self._users)

    def save_users(self, users: Mapping[str, User]) -> bool:
        self._users = dict(users)
        self.save_count += 1
        return True
