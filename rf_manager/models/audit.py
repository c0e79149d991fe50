"""
Audit Models for RF Manager

Every mutation, rejection, undo and persistence attempt is logged.
This provides:
1. A readable history of what the user did to the ledger
2. Debugging information when a balance looks wrong
3. Visibility of failures that are deliberately not raised (storage writes)

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from rf_manager.models.common import utcnow


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Ledger
    TRANSACTION_ADDED = "transaction_added"
    TRANSACTION_EDITED = "transaction_edited"
    TRANSACTION_DELETED = "transaction_deleted"

    # Goals
    GOAL_ADDED = "goal_added"
    GOAL_UPDATED = "goal_updated"
    GOAL_DELETED = "goal_deleted"
    GOALS_REORDERED = "goals_reordered"
    GOAL_RETARGETED = "goal_retargeted"

    # Rejections
    MUTATION_REJECTED = "mutation_rejected"

    # Undo
    UNDO_APPLIED = "undo_applied"
    UNDO_DISMISSED = "undo_dismissed"

    # Persistence
    SNAPSHOT_SAVED = "snapshot_saved"
    SAVE_FAILED = "save_failed"
    SNAPSHOT_IMPORTED = "snapshot_imported"
    SNAPSHOT_IMPORT_FAILED = "snapshot_import_failed"

    # Settings
    SETTINGS_UPDATED = "settings_updated"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transaction', 'goal', 'snapshot')"
    )
    entity_id: Optional[UUID] = None

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.transaction_added(txn_id, "funded", "profit", "1000")
        event = AuditEventBuilder.mutation_rejected("add_transaction", "InvalidAmountError", msg)
    """

    @staticmethod
    def transaction_added(
        transaction_id: UUID,
        source: str,
        kind: str,
        amount: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_ADDED,
            entity_type="transaction",
            entity_id=transaction_id,
            description=f"Added {source} {kind} of ${amount}",
            details={
                "source": source,
                "kind": kind,
                "amount_usd": amount,
            },
            is_user_action=True,
        )

    @staticmethod
    def transaction_edited(
        transaction_id: UUID,
        fields: list[str],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_EDITED,
            entity_type="transaction",
            entity_id=transaction_id,
            description=f"Edited transaction fields: {', '.join(fields)}",
            details={"fields": fields},
            is_user_action=True,
        )

    @staticmethod
    def transaction_deleted(transaction_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_DELETED,
            entity_type="transaction",
            entity_id=transaction_id,
            description="Deleted transaction",
            is_user_action=True,
        )

    @staticmethod
    def goal_changed(
        event_type: AuditEventType,
        goal_id: Optional[UUID],
        description: str,
        details: Optional[dict] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=event_type,
            entity_type="goal",
            entity_id=goal_id,
            description=description,
            details=details or {},
            is_user_action=True,
        )

    @staticmethod
    def mutation_rejected(
        operation: str,
        error_type: str,
        error_message: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MUTATION_REJECTED,
            severity=AuditSeverity.WARNING,
            description=f"{operation} rejected: {error_type}",
            error_message=error_message,
            details={
                "operation": operation,
                "error_type": error_type,
            },
            is_user_action=True,
        )

    @staticmethod
    def undo_applied(entry_id: UUID, description: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.UNDO_APPLIED,
            entity_type="undo",
            entity_id=entry_id,
            description=f"Undid: {description}",
            is_user_action=True,
        )

    @staticmethod
    def undo_dismissed(entry_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.UNDO_DISMISSED,
            entity_type="undo",
            entity_id=entry_id,
            description="Undo dismissed",
            is_user_action=True,
        )

    @staticmethod
    def snapshot_saved(transaction_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SNAPSHOT_SAVED,
            severity=AuditSeverity.DEBUG,
            entity_type="snapshot",
            description=f"Snapshot saved with {transaction_count} transactions",
            details={"transaction_count": transaction_count},
        )

    @staticmethod
    def save_failed(error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SAVE_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="snapshot",
            description="Snapshot could not be saved",
            error_message=error_message,
        )

    @staticmethod
    def snapshot_imported(transaction_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SNAPSHOT_IMPORTED,
            entity_type="snapshot",
            description=f"Imported snapshot with {transaction_count} transactions",
            details={"transaction_count": transaction_count},
            is_user_action=True,
        )

    @staticmethod
    def snapshot_import_failed(error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SNAPSHOT_IMPORT_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="snapshot",
            description="Snapshot import rejected",
            error_message=error_message,
            is_user_action=True,
        )

    @staticmethod
    def settings_updated(changes: dict[str, str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SETTINGS_UPDATED,
            entity_type="settings",
            description="Settings updated",
            details=changes,
            is_user_action=True,
        )
