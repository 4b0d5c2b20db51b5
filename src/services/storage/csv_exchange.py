"""
CSV Export / Import

One user's transactions and budgets as a semicolon-delimited file:

    Type;Date;Category;Amount;Description
    Income;01.03.2025 09:30;Salary;50000.00;March
    ...

    Budgets:
    Category;Limit;Spent;Remaining
    Food;10000.00;2500.00;7500.00

Imports append transactions under fresh ids and install budgets with
their spent figure taken as written. A broken row never aborts an
import: it is skipped, logged and counted.
"""

import csv
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Optional

import structlog
from pydantic import BaseModel, ValidationError as SchemaError

from src.config import StorageSettings, get_settings
from src.ledger import Ledger
from src.ledger.budget_tracker import remaining
from src.models.ledger import DATE_FORMAT, Budget, Transaction, TransactionType, to_money
from src.services.storage.interface import NotFoundError, StorageError


logger = structlog.get_logger(__name__)

DELIMITER = ";"
TRANSACTION_HEADER = ["Type", "Date", "Category", "Amount", "Description"]
BUDGET_MARKER = "Budgets:"
BUDGET_HEADER = ["Category", "Limit", "Spent", "Remaining"]


class ImportSummary(BaseModel):
    """What an import did to the ledger."""

    path: str
    transactions_imported: int = 0
    budgets_imported: int = 0
    rows_skipped: int = 0

    @property
    def total_imported(self) -> int:
        return self.transactions_imported + self.budgets_imported


def _money(value: Decimal) -> str:
    return f"{value:.2f}"


class CsvExchange:
    """Reads and writes ledger CSV files inside the exports directory."""

    def __init__(self, settings: Optional[StorageSettings] = None):
        self._settings = settings or get_settings().storage

    @property
    def exports_dir(self) -> Path:
        return self._settings.exports_path

    def resolve(self, filename: str) -> Path:
        """Path of an export file; '.csv' is appended when missing."""
        filename = filename.strip()
        if not filename:
            raise StorageError("File name must not be empty")
        if not filename.lower().endswith(".csv"):
            filename += ".csv"
        return self.exports_dir / filename

    def export_csv(self, ledger: Ledger, filename: str) -> Path:
        """
        Write the ledger's transactions and budgets to a CSV file.

        Raises:
            StorageError: If the file cannot be written
        """
        path = self.resolve(filename)
        snapshot = ledger.snapshot()

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with path.open("w", encoding="utf-8", newline="") as handle:
                writer = csv.writer(handle, delimiter=DELIMITER, lineterminator="\n")
                writer.writerow(TRANSACTION_HEADER)
                for transaction in snapshot.transactions:
                    writer.writerow([
                        transaction.type.label,
                        transaction.formatted_date,
                        transaction.category,
                        _money(transaction.amount),
                        transaction.description,
                    ])

                writer.writerow([])
                writer.writerow([BUDGET_MARKER])
                writer.writerow(BUDGET_HEADER)
                for budget in snapshot.budgets.values():
                    writer.writerow([
                        budget.category,
                        _money(budget.limit),
                        _money(budget.current_spending),
                        _money(remaining(budget)),
                    ])
        except OSError as e:
            logger.error("csv_export_failed", path=str(path), error=str(e))
            raise StorageError(f"Could not write {path}: {e}") from e

        logger.info(
            "csv_exported",
            owner=snapshot.owner,
            path=str(path),
            transactions=len(snapshot.transactions),
            budgets=len(snapshot.budgets),
        )
        return path

    def import_csv(self, ledger: Ledger, filename: str) -> ImportSummary:
        """
        Append the file's transactions to the ledger and install its budgets.

        Raises:
            NotFoundError: If the file does not exist
            StorageError: If the file cannot be read
        """
        path = self.resolve(filename)
        if not path.exists():
            raise NotFoundError(f"File not found: {path}")

        summary = ImportSummary(path=str(path))
        try:
            with path.open("r", encoding="utf-8", newline="") as handle:
                rows = list(csv.reader(handle, delimiter=DELIMITER))
        except (OSError, csv.Error, UnicodeDecodeError) as e:
            logger.error("csv_import_failed", path=str(path), error=str(e))
            raise StorageError(f"Could not read {path}: {e}") from e

        reading_budgets = False
        for line_number, row in enumerate(rows, start=1):
            if not row or all(not cell.strip() for cell in row):
                continue
            if row[0].strip() == BUDGET_MARKER:
                reading_budgets = True
                continue
            if row == TRANSACTION_HEADER or row == BUDGET_HEADER:
                continue

            try:
                if reading_budgets:
                    ledger.install_budget(self._parse_budget(row, ledger))
                    summary.budgets_imported += 1
                else:
                    ledger.add_transaction(self._parse_transaction(row))
                    summary.transactions_imported += 1
            except (ValueError, SchemaError) as e:
                summary.rows_skipped += 1
                logger.warning(
                    "csv_row_skipped",
                    path=str(path),
                    line=line_number,
                    error=str(e),
                )

        logger.info("csv_imported", owner=ledger.owner, **summary.model_dump())
        return summary

    @staticmethod
    def _parse_transaction(row: list[str]) -> Transaction:
        if len(row) < 5:
            raise ValueError(f"Expected 5 fields, got {len(row)}")
        return Transaction(
            type=TransactionType.from_label(row[0]),
            date=datetime.strptime(row[1].strip(), DATE_FORMAT),
            category=row[2],
            amount=to_money(row[3]),
            description=row[4],
        )

    @staticmethod
    def _parse_budget(row: list[str], ledger: Ledger) -> Budget:
        if len(row) < 4:
            raise ValueError(f"Expected 4 fields, got {len(row)}")
        return Budget(
            category=row[0],
            limit=to_money(row[1]),
            current_spending=to_money(row[2]),
            warning_threshold=ledger.settings.budget_warning_threshold,
        )
