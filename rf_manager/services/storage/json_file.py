"""
JSON File Storage Implementation

DESIGN DECISION: A single JSON file is the whole persistence story:
1. The user can read and back up their data directly
2. No database setup required
3. The same document doubles as the export format

Writes go to a temporary file next to the target and are moved into place
with os.replace, so a crash mid-write never leaves a half-written document.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Optional

from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from rf_manager.services.storage.interface import (
    SnapshotStorageInterface,
    StorageError,
)


class JsonFileSnapshotStorage(SnapshotStorageInterface):
    """Stores the persisted document as pretty-printed JSON."""

    def __init__(self, path: Path):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> Optional[dict[str, Any]]:
        """Read the document; a missing file means nothing stored yet."""
        if not self._path.exists():
            return None
        try:
            with self._path.open("r", encoding="utf-8") as fh:
                document = json.load(fh)
        except json.JSONDecodeError as e:
            raise StorageError(f"Snapshot file is not valid JSON: {e}")
        except OSError as e:
            raise StorageError(f"Failed to read snapshot file: {e}")
        if not isinstance(document, dict):
            raise StorageError("Snapshot file does not contain a JSON object")
        return document

    @retry(
        retry=retry_if_exception_type(OSError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.1, min=0.1, max=1),
        reraise=True,
    )
    def _write_atomic(self, payload: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=self._path.parent,
            prefix=f".{self._path.name}.",
            suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload)
            os.replace(tmp_name, self._path)
        except OSError:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    def save(self, document: dict[str, Any]) -> bool:
        try:
            self._write_atomic(json.dumps(document, indent=2))
            return True
        except (OSError, TypeError, ValueError) as e:
            raise StorageError(f"Failed to save snapshot: {e}")
