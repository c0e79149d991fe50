"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Snapshots go to a local JSON file; in-memory backends exist for tests and
for running without a disk.
"""

from rf_manager.services.storage.interface import (
    AuditStorageInterface,
    SnapshotStorageInterface,
    StorageError,
)
from rf_manager.services.storage.document import (
    document_to_state,
    state_to_document,
)
from rf_manager.services.storage.json_file import JsonFileSnapshotStorage
from rf_manager.services.storage.memory import (
    InMemoryAuditStorage,
    InMemorySnapshotStorage,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "SnapshotStorageInterface",
    # Exceptions
    "StorageError",
    # Document codec
    "document_to_state",
    "state_to_document",
    # Implementations
    "InMemoryAuditStorage",
    "InMemorySnapshotStorage",
    "JsonFileSnapshotStorage",
]
