"""
Audit Logger

DESIGN DECISION: Every ledger mutation and account action is logged.
This provides:
1. Complete traceability of balance changes
2. Debugging capability
3. User can see history of their session

The audit logger:
- Is synchronous, like the ledger it records
- Gracefully handles failures (doesn't crash the app if logging fails)
- Never carries ledger state; events are built from values passed in
"""

from decimal import Decimal
from typing import TYPE_CHECKING, Iterable, Optional

import structlog

from src.models.audit import AuditEvent, AuditEventBuilder, AuditEventType

if TYPE_CHECKING:
    from src.models.alerts import Alert
    from src.models.ledger import Transaction
    from src.services.storage.interface import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. An audit store, when one is configured
    """

    def __init__(
        self,
        storage: Optional["AuditStorageInterface"] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("audit")

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage is not None:
            try:
                return self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    def log_transaction_added(self, username: str, transaction: "Transaction") -> None:
        self.log(AuditEventBuilder.transaction_added(
            username=username,
            transaction_id=transaction.id,
            transaction_type=transaction.type.value,
            amount=transaction.amount,
            category=transaction.category,
        ))

    def log_transaction_removed(self, username: str, transaction_id: str, found: bool) -> None:
        self.log(AuditEventBuilder.transaction_removed(username, transaction_id, found))

    def log_category_added(self, username: str, category: str) -> None:
        self.log(AuditEventBuilder.category_changed(username, category, added=True))

    def log_category_removed(self, username: str, category: str, removed: bool) -> None:
        if removed:
            self.log(AuditEventBuilder.category_changed(username, category, added=False))
        else:
            self.log(AuditEventBuilder.category_removal_refused(username, category))

    def log_budget_set(self, username: str, category: str, limit: Decimal) -> None:
        self.log(AuditEventBuilder.budget_changed(
            username, AuditEventType.BUDGET_SET, category, limit
        ))

    def log_budget_edited(self, username: str, category: str, limit: Decimal) -> None:
        self.log(AuditEventBuilder.budget_changed(
            username, AuditEventType.BUDGET_EDITED, category, limit
        ))

    def log_budget_removed(self, username: str, category: str) -> None:
        self.log(AuditEventBuilder.budget_changed(
            username, AuditEventType.BUDGET_REMOVED, category
        ))

    def log_transfer_completed(
        self,
        sender: str,
        receiver: str,
        amount: Decimal,
        sender_transaction_id: str,
        receiver_transaction_id: str,
    ) -> None:
        self.log(AuditEventBuilder.transfer_completed(
            sender=sender,
            receiver=receiver,
            amount=amount,
            sender_transaction_id=sender_transaction_id,
            receiver_transaction_id=receiver_transaction_id,
        ))

    def log_transfer_rejected(self, sender: str, receiver: str, reason: str) -> None:
        self.log(AuditEventBuilder.transfer_rejected(sender, receiver, reason))

    def log_alerts(self, username: str, alerts: Iterable["Alert"]) -> None:
        for alert in alerts:
            self.log(AuditEventBuilder.alert_raised(
                username, alert.alert_type.value, alert.message
            ))

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        username: Optional[str] = None,
    ) -> None:
        """Log an error."""
        self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            username=username,
        ))
