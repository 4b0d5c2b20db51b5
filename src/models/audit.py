"""
Audit Models for the Wallet Ledger

Every ledger mutation and account action is logged for audit purposes.
This provides:
1. Complete traceability of balance changes
2. Debugging information when a transfer or import goes wrong
3. Ability to reconstruct what a user did in a session

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """
    Types of events we audit.

    Every mutating operation has its own event type.
    """
    # Accounts
    USER_REGISTERED = "user_registered"
    USER_LOGGED_IN = "user_logged_in"
    USER_LOGGED_OUT = "user_logged_out"
    LOGIN_FAILED = "login_failed"
    PASSWORD_CHANGED = "password_changed"

    # Ledger
    TRANSACTION_ADDED = "transaction_added"
    TRANSACTION_REMOVED = "transaction_removed"
    CATEGORY_ADDED = "category_added"
    CATEGORY_REMOVED = "category_removed"
    CATEGORY_REMOVAL_REFUSED = "category_removal_refused"
    BUDGET_SET = "budget_set"
    BUDGET_EDITED = "budget_edited"
    BUDGET_REMOVED = "budget_removed"

    # Transfers
    TRANSFER_COMPLETED = "transfer_completed"
    TRANSFER_REJECTED = "transfer_rejected"

    # Alerts
    ALERT_RAISED = "alert_raised"

    # Persistence
    DATA_LOADED = "data_loaded"
    DATA_SAVED = "data_saved"
    SAVE_FAILED = "save_failed"
    CSV_EXPORTED = "csv_exported"
    CSV_IMPORTED = "csv_imported"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.now,
        description="When the event occurred"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Who and what
    username: Optional[str] = Field(
        default=None,
        description="User whose ledger or account is affected"
    )
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transaction', 'budget', 'category')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID or name of the entity this event relates to"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=True,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "username": self.username,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.transaction_added(username, transaction_id, ...)
        event = AuditEventBuilder.transfer_completed(sender, receiver, amount)
    """

    @staticmethod
    def user_registered(username: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_REGISTERED,
            username=username,
            entity_type="user",
            entity_id=username,
            description=f"User registered: {username}",
        )

    @staticmethod
    def user_logged_in(username: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_LOGGED_IN,
            username=username,
            entity_type="user",
            entity_id=username,
            description=f"User logged in: {username}",
        )

    @staticmethod
    def user_logged_out(username: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_LOGGED_OUT,
            username=username,
            entity_type="user",
            entity_id=username,
            description=f"User logged out: {username}",
        )

    @staticmethod
    def login_failed(username: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOGIN_FAILED,
            severity=AuditSeverity.WARNING,
            username=username,
            entity_type="user",
            entity_id=username,
            description=f"Failed login attempt for: {username}",
        )

    @staticmethod
    def password_changed(username: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PASSWORD_CHANGED,
            username=username,
            entity_type="user",
            entity_id=username,
            description="Password changed",
        )

    @staticmethod
    def transaction_added(
        username: str,
        transaction_id: str,
        transaction_type: str,
        amount: Decimal,
        category: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_ADDED,
            username=username,
            entity_type="transaction",
            entity_id=transaction_id,
            description=f"{transaction_type.capitalize()} of {amount:.2f} added to '{category}'",
            details={
                "type": transaction_type,
                "amount": str(amount),
                "category": category,
            },
        )

    @staticmethod
    def transaction_removed(username: str, transaction_id: str, found: bool) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_REMOVED,
            severity=AuditSeverity.INFO if found else AuditSeverity.WARNING,
            username=username,
            entity_type="transaction",
            entity_id=transaction_id,
            description=(
                "Transaction removed" if found else "Transaction to remove was not found"
            ),
            details={"found": found},
        )

    @staticmethod
    def category_changed(username: str, category: str, added: bool) -> AuditEvent:
        event_type = (
            AuditEventType.CATEGORY_ADDED if added else AuditEventType.CATEGORY_REMOVED
        )
        verb = "added" if added else "removed"
        return AuditEvent(
            event_type=event_type,
            username=username,
            entity_type="category",
            entity_id=category,
            description=f"Category {verb}: {category}",
        )

    @staticmethod
    def category_removal_refused(username: str, category: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CATEGORY_REMOVAL_REFUSED,
            severity=AuditSeverity.WARNING,
            username=username,
            entity_type="category",
            entity_id=category,
            description=f"Category '{category}' kept: transactions still use it",
        )

    @staticmethod
    def budget_changed(
        username: str,
        event_type: AuditEventType,
        category: str,
        limit: Optional[Decimal] = None,
    ) -> AuditEvent:
        details = {"limit": str(limit)} if limit is not None else {}
        return AuditEvent(
            event_type=event_type,
            username=username,
            entity_type="budget",
            entity_id=category,
            description=f"{event_type.value.replace('_', ' ').capitalize()}: {category}",
            details=details,
        )

    @staticmethod
    def transfer_completed(
        sender: str,
        receiver: str,
        amount: Decimal,
        sender_transaction_id: str,
        receiver_transaction_id: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSFER_COMPLETED,
            username=sender,
            entity_type="transfer",
            entity_id=sender_transaction_id,
            description=f"Transferred {amount:.2f} to {receiver}",
            details={
                "receiver": receiver,
                "amount": str(amount),
                "receiver_transaction_id": receiver_transaction_id,
            },
        )

    @staticmethod
    def transfer_rejected(sender: str, receiver: str, reason: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSFER_REJECTED,
            severity=AuditSeverity.WARNING,
            username=sender,
            entity_type="transfer",
            description=f"Transfer to {receiver} rejected",
            details={"receiver": receiver},
            error_message=reason,
        )

    @staticmethod
    def alert_raised(username: str, alert_type: str, message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ALERT_RAISED,
            severity=AuditSeverity.WARNING,
            username=username,
            entity_type="alert",
            entity_id=alert_type,
            description=message[:500],
            is_user_action=False,
        )

    @staticmethod
    def data_saved(user_count: int, success: bool, error: Optional[str] = None) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DATA_SAVED if success else AuditEventType.SAVE_FAILED,
            severity=AuditSeverity.INFO if success else AuditSeverity.ERROR,
            description=(
                f"Saved {user_count} users" if success else "Saving users failed"
            ),
            details={"user_count": user_count},
            error_message=error,
            is_user_action=False,
        )

    @staticmethod
    def data_loaded(user_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DATA_LOADED,
            description=f"Loaded {user_count} users",
            details={"user_count": user_count},
            is_user_action=False,
        )

    @staticmethod
    def csv_transferred(
        username: str,
        path: str,
        exported: bool,
        details: Optional[dict] = None,
    ) -> AuditEvent:
        event_type = AuditEventType.CSV_EXPORTED if exported else AuditEventType.CSV_IMPORTED
        verb = "exported to" if exported else "imported from"
        return AuditEvent(
            event_type=event_type,
            username=username,
            entity_type="file",
            entity_id=path,
            description=f"Data {verb} {path}"[:500],
            details=details or {},
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        username: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            username=username,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            is_user_action=False,
        )
