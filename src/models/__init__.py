"""
Data Models Package

This package contains all Pydantic models used by the wallet ledger.
All data flowing through the system must conform to these schemas.
"""

from src.models.ledger import (
    Budget,
    LedgerSnapshot,
    Transaction,
    TransactionType,
    to_money,
)
from src.models.alerts import Alert, AlertType
from src.models.reports import (
    BudgetReportEntry,
    CategoryStatsResult,
    FinancialHealth,
    FullReport,
    ReportAnalysis,
    StatisticsResult,
)
from src.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "Budget",
    "LedgerSnapshot",
    "Transaction",
    "TransactionType",
    "to_money",
    # Alerts
    "Alert",
    "AlertType",
    # Reports
    "BudgetReportEntry",
    "CategoryStatsResult",
    "FinancialHealth",
    "FullReport",
    "ReportAnalysis",
    "StatisticsResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
