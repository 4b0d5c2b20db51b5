"""
JSON Snapshot Storage

DESIGN DECISION: All users and ledgers are written as one JSON document.
1. Human-readable, so a user can inspect their own data
2. Written to a temporary file and moved into place, so a crash during
   a save never leaves a half-written snapshot behind
3. Parsed back through the same pydantic models, so a tampered file is
   rejected as a whole instead of loading half a ledger

TRADEOFFS:
- The whole snapshot is rewritten at every checkpoint (fine for
  personal use)
- Budgets are stored with their spending and restored verbatim; the log
  is not replayed against them
"""

import os
from datetime import datetime
from pathlib import Path
from typing import Mapping, Optional

import structlog
from pydantic import BaseModel, Field, ValidationError as SchemaError
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from src.config import LedgerSettings, StorageSettings, get_settings
from src.ledger import Ledger
from src.models.ledger import LedgerSnapshot
from src.services.storage.interface import UserStorageInterface
from src.services.users import User


SNAPSHOT_VERSION = 1


class StoredUser(BaseModel):
    username: str = Field(..., min_length=1)
    password_hash: str = Field(..., min_length=1)
    wallet: LedgerSnapshot


class SnapshotDocument(BaseModel):
    """On-disk layout of the user snapshot."""

    version: int = SNAPSHOT_VERSION
    saved_at: datetime = Field(default_factory=datetime.now)
    users: list[StoredUser] = Field(default_factory=list)


class JsonUserStorage(UserStorageInterface):
    """
    User snapshot kept in a single JSON file.

    Load failures yield an empty user set; save failures are retried
    with exponential back-off and then reported as False.
    """

    def __init__(
        self,
        path: Optional[Path] = None,
        settings: Optional[StorageSettings] = None,
        ledger_settings: Optional[LedgerSettings] = None,
    ):
        self._settings = settings or get_settings().storage
        self._ledger_settings = ledger_settings
        self._path = Path(path) if path is not None else self._settings.users_path
        self._logger = structlog.get_logger(__name__)

    @property
    def path(self) -> Path:
        return self._path

    def load_users(self) -> dict[str, User]:
        """Load all users; missing or unreadable snapshots give an empty map."""
        if not self._path.exists():
            return {}

        try:
            document = SnapshotDocument.model_validate_json(
                self._path.read_text(encoding="utf-8")
            )
            users = {}
            for stored in document.users:
                users[stored.username] = User(
                    username=stored.username,
                    password_hash=stored.password_hash,
                    wallet=Ledger.from_snapshot(stored.wallet, settings=self._ledger_settings),
                )
        except (OSError, SchemaError, ValueError) as e:
            self._logger.error("snapshot_load_failed", path=str(self._path), error=str(e))
            return {}

        self._logger.info("snapshot_loaded", path=str(self._path), users=len(users))
        return users

    def save_users(self, users: Mapping[str, User]) -> bool:
        """Write all users; returns False instead of raising on I/O failure."""
        document = SnapshotDocument(
            users=[
                StoredUser(
                    username=user.username,
                    password_hash=user.password_hash,
                    wallet=user.wallet.snapshot(),
                )
                for user in users.values()
            ]
        )
        payload = document.model_dump_json(indent=2)

        retrying = Retrying(
            stop=stop_after_attempt(self._settings.save_retry_attempts),
            wait=wait_exponential(multiplier=self._settings.save_retry_wait_seconds, max=10),
            retry=retry_if_exception_type(OSError),
            reraise=True,
        )
        try:
            for attempt in retrying:
                with attempt:
                    self._write(payload)
        except OSError as e:
            self._logger.error("snapshot_save_failed", path=str(self._path), error=str(e))
            return False

        self._logger.info("snapshot_saved", path=str(self._path), users=len(document.users))
        return True

    def _write(self, payload: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_name(self._path.name + ".tmp")
        tmp_path.write_text(payload, encoding="utf-8")
        os.replace(tmp_path, self._path)
