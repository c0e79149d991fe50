"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Swap the JSON file for something else later
2. Use in-memory storage for testing
3. Keep the coordinator decoupled from where snapshots live

The interface is intentionally small: the whole persisted document is read
and written at once.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from rf_manager.models.audit import AuditEvent


class SnapshotStorageInterface(ABC):
    """
    Abstract interface for snapshot persistence.

    Documents are plain JSON-compatible dicts produced by
    `state_to_document`.
    """

    @abstractmethod
    def load(self) -> Optional[dict[str, Any]]:
        """
        Read the stored document.

        Returns:
            The document, or None if nothing has been stored yet

        Raises:
            StorageError: the backend exists but cannot be read
        """
        pass

    @abstractmethod
    def save(self, document: dict[str, Any]) -> bool:
        """
        Replace the stored document.

        Returns:
            True if saved successfully

        Raises:
            StorageError: If save fails
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    def append_event(self, event: AuditEvent) -> bool:
        pass

    @abstractmethod
    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass
