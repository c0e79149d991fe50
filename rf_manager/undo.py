"""
Undo Buffer

Holds the pre-mutation copy of the application state for a short window
after each mutation.

An entry leaves the buffer in exactly one of three ways:
1. It is invoked (the caller restores its state)
2. It is dismissed
3. Its window runs out

Expiry and dismissal only drop the copy. They never touch the live state.

Expiry is checked against an injectable monotonic clock every time the
buffer is read, so there is no background timer thread to manage.
"""

import time
from typing import Callable, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from rf_manager.errors import UndoExpiredError
from rf_manager.models.state import AppState


class UndoEntry(BaseModel):
    """One rollback point."""

    id: UUID = Field(default_factory=uuid4)
    description: str
    previous_state: AppState
    expires_at: float


class UndoBuffer:
    def __init__(
        self,
        window_seconds: float = 5.0,
        clock: Optional[Callable[[], float]] = None,
    ):
        self._window = window_seconds
        self._clock = clock or time.monotonic
        self._entries: list[UndoEntry] = []

    def _purge_expired(self) -> None:
        now = self._clock()
        self._entries = [e for e in self._entries if e.expires_at > now]

    def register(self, description: str, previous_state: AppState) -> UndoEntry:
        """
        Store `previous_state` under a new entry.

        The caller hands over a private copy; the buffer keeps it as-is.
        """
        self._purge_expired()
        entry = UndoEntry(
            description=description,
            previous_state=previous_state,
            expires_at=self._clock() + self._window,
        )
        self._entries.append(entry)
        return entry

    def pending(self) -> list[UndoEntry]:
        """Entries still available, oldest first."""
        self._purge_expired()
        return list(self._entries)

    def take(self, entry_id: UUID) -> UndoEntry:
        """
        Remove and return an entry so its state can be restored.

        Raises:
            UndoExpiredError: unknown, dismissed, used or expired entry
        """
        self._purge_expired()
        for idx, entry in enumerate(self._entries):
            if entry.id == entry_id:
                return self._entries.pop(idx)
        raise UndoExpiredError(f"Undo entry no longer available: {entry_id}")

    def dismiss(self, entry_id: UUID) -> bool:
        """Drop an entry. Returns False if it was already gone."""
        before = len(self._entries)
        self._entries = [e for e in self._entries if e.id != entry_id]
        return len(self._entries) < before

    def clear(self) -> None:
        self._entries = []
