"""Ledger store package."""

from rf_manager.ledger.store import LedgerStore

__all__ = ["LedgerStore"]
