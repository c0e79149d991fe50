"""In-memory storage backends, used by tests and by callers without a disk."""

import copy
from typing import Any, Optional

from rf_manager.models.audit import AuditEvent
from rf_manager.services.storage.interface import (
    AuditStorageInterface,
    SnapshotStorageInterface,
)


class InMemorySnapshotStorage(SnapshotStorageInterface):
    def __init__(self, document: Optional[dict[str, Any]] = None):
        self._document = copy.deepcopy(document)
        self.save_count = 0

    def load(self) -> Optional[dict[str, Any]]:
        return copy.deepcopy(self._document)

    def save(self, document: dict[str, Any]) -> bool:
        self._document = copy.deepcopy(document)
        self.save_count += 1
        return True


class InMemoryAuditStorage(AuditStorageInterface):
    def __init__(self):
        self._events: list[AuditEvent] = []

    def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return list(reversed(self._events))[:limit]
