"""Recalculation engine package."""

from rf_manager.engine.recalculation import (
    MILESTONE_AMOUNT,
    SHORT_TERM_PRIMARY_SHARE,
    recalculate,
)

__all__ = [
    "MILESTONE_AMOUNT",
    "SHORT_TERM_PRIMARY_SHARE",
    "recalculate",
]
