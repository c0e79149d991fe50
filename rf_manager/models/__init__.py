"""
Data Models Package

This package contains all Pydantic models used in RF Manager.
All data flowing through the system must conform to these schemas.
"""

from rf_manager.models.ledger import (
    AllocationBucket,
    AllocationSplit,
    Transaction,
    TransactionKind,
    TransactionSource,
)
from rf_manager.models.goal import (
    Goal,
    LongTermGoal,
    ShortTermGoal,
)
from rf_manager.models.snapshot import (
    AccountAState,
    AccountBState,
    AccountMode,
    AllocationTotals,
    DerivedSnapshot,
    GraphEventType,
    GraphPoint,
)
from rf_manager.models.state import (
    AppState,
    LedgerSettings,
    PersistedDocument,
    TaxBracket,
)
from rf_manager.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "AllocationBucket",
    "AllocationSplit",
    "Transaction",
    "TransactionKind",
    "TransactionSource",
    # Goal models
    "Goal",
    "LongTermGoal",
    "ShortTermGoal",
    # Derived snapshot
    "AccountAState",
    "AccountBState",
    "AccountMode",
    "AllocationTotals",
    "DerivedSnapshot",
    "GraphEventType",
    "GraphPoint",
    # Application state
    "AppState",
    "LedgerSettings",
    "PersistedDocument",
    "TaxBracket",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
