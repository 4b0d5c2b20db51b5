"""Shared fixtures: explicit settings, so tests never depend on the environment."""

from decimal import Decimal

import pytest

from src.config import LedgerSettings, StorageSettings
from src.ledger import Ledger


@pytest.fixture
def ledger_settings():
    return LedgerSettings(
        budget_warning_threshold=Decimal("0.8"),
        low_balance_threshold=Decimal("100"),
        reset_on_set=True,
        reconcile_on_remove=False,
        transfer_category="Transfer",
        lock_timeout_seconds=2.0,
    )


@pytest.fixture
def storage_settings(tmp_path):
    return StorageSettings(
        data_dir=str(tmp_path),
        users_file="users.json",
        exports_dir="exports",
        save_retry_attempts=2,
        save_retry_wait_seconds=0,
    )


@pytest.fixture
def ledger(ledger_settings):
    return Ledger("alice", settings=ledger_settings)
