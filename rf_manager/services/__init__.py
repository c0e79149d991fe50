"""
Services Package

External boundaries of RF Manager. Today that is local storage only.
"""

from rf_manager.services.storage import (
    AuditStorageInterface,
    InMemoryAuditStorage,
    InMemorySnapshotStorage,
    JsonFileSnapshotStorage,
    SnapshotStorageInterface,
    StorageError,
)

__all__ = [
    "AuditStorageInterface",
    "InMemoryAuditStorage",
    "InMemorySnapshotStorage",
    "JsonFileSnapshotStorage",
    "SnapshotStorageInterface",
    "StorageError",
]
