"""
Audit Logger

DESIGN DECISION: Every mutation of the ledger or the goals is logged, and so
is every rejected request and every persistence failure.
This provides:
1. Complete traceability of how the balances came to be
2. Debugging capability
3. Visibility of failures that are deliberately not raised

The audit logger:
- Always writes to the structured local log
- Optionally appends to an audit storage backend
- Gracefully handles storage failures (never breaks a mutation)
"""

import logging
from typing import Optional
from uuid import UUID

import structlog

from rf_manager.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from rf_manager.services.storage import AuditStorageInterface


def configure_logging(level: str = "INFO") -> None:
    """Configure structlog for local JSON logging."""
    logging.basicConfig(format="%(message)s", level=getattr(logging, level.upper()))
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


_LEVELS = {
    AuditSeverity.DEBUG: "debug",
    AuditSeverity.INFO: "info",
    AuditSeverity.WARNING: "warning",
    AuditSeverity.ERROR: "error",
}


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage (for history), when configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("rf_manager.audit")

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        getattr(self._logger, _LEVELS[event.severity])("audit_event", **event.to_log_dict())

        if self._storage:
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

    def log_transaction_added(self, transaction_id: UUID, source: str, kind: str, amount: str) -> None:
        self.log(AuditEventBuilder.transaction_added(transaction_id, source, kind, amount))

    def log_transaction_edited(self, transaction_id: UUID, fields: list[str]) -> None:
        self.log(AuditEventBuilder.transaction_edited(transaction_id, fields))

    def log_transaction_deleted(self, transaction_id: UUID) -> None:
        self.log(AuditEventBuilder.transaction_deleted(transaction_id))

    def log_goal_changed(
        self,
        event_type: AuditEventType,
        goal_id: Optional[UUID],
        description: str,
        details: Optional[dict] = None,
    ) -> None:
        self.log(AuditEventBuilder.goal_changed(event_type, goal_id, description, details))

    def log_mutation_rejected(self, operation: str, error: Exception) -> None:
        """Log a request that was refused before anything changed."""
        self.log(AuditEventBuilder.mutation_rejected(
            operation=operation,
            error_type=type(error).__name__,
            error_message=str(error),
        ))

    def log_undo_applied(self, entry_id: UUID, description: str) -> None:
        self.log(AuditEventBuilder.undo_applied(entry_id, description))

    def log_undo_dismissed(self, entry_id: UUID) -> None:
        self.log(AuditEventBuilder.undo_dismissed(entry_id))

    def log_snapshot_saved(self, transaction_count: int) -> None:
        self.log(AuditEventBuilder.snapshot_saved(transaction_count))

    def log_save_failed(self, error: Exception) -> None:
        self.log(AuditEventBuilder.save_failed(str(error)))

    def log_snapshot_imported(self, transaction_count: int) -> None:
        self.log(AuditEventBuilder.snapshot_imported(transaction_count))

    def log_snapshot_import_failed(self, error: Exception) -> None:
        self.log(AuditEventBuilder.snapshot_import_failed(str(error)))

    def log_settings_updated(self, changes: dict[str, str]) -> None:
        self.log(AuditEventBuilder.settings_updated(changes))
