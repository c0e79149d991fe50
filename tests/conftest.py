"""Shared fixtures for RF Manager tests."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from rf_manager.allocation import split_funded_profit
from rf_manager.audit import AuditLogger
from rf_manager.coordinator import StateCoordinator
from rf_manager.models.ledger import Transaction, TransactionKind, TransactionSource
from rf_manager.services.storage import InMemoryAuditStorage, InMemorySnapshotStorage


BASE_TIME = datetime(2025, 1, 1, 9, 0, tzinfo=timezone.utc)


class FakeClock:
    """Monotonic clock the test advances by hand."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def at(minutes: int) -> datetime:
    return BASE_TIME + timedelta(minutes=minutes)


def account_txn(
    source: TransactionSource,
    kind: TransactionKind,
    amount,
    minute: int,
    rate="130",
) -> Transaction:
    return Transaction(
        source=source,
        kind=kind,
        amount_usd=Decimal(str(amount)),
        exchange_rate=Decimal(rate),
        timestamp=at(minute),
    )


def a_txn(kind: TransactionKind, amount, minute: int, rate="130") -> Transaction:
    return account_txn(TransactionSource.ACCOUNT_A, kind, amount, minute, rate)


def b_txn(kind: TransactionKind, amount, minute: int, rate="130") -> Transaction:
    return account_txn(TransactionSource.ACCOUNT_B, kind, amount, minute, rate)


def funded_txn(amount, minute: int, milestone_reached: bool = False, rate="130") -> Transaction:
    amount = Decimal(str(amount))
    return Transaction(
        source=TransactionSource.FUNDED,
        kind=TransactionKind.PROFIT,
        amount_usd=amount,
        exchange_rate=Decimal(rate),
        timestamp=at(minute),
        allocation_split=split_funded_profit(amount, milestone_reached),
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def snapshot_storage() -> InMemorySnapshotStorage:
    return InMemorySnapshotStorage()


@pytest.fixture
def audit_storage() -> InMemoryAuditStorage:
    return InMemoryAuditStorage()


@pytest.fixture
def coordinator(snapshot_storage, audit_storage, clock) -> StateCoordinator:
    return StateCoordinator(
        storage=snapshot_storage,
        audit_logger=AuditLogger(audit_storage),
        undo_window_seconds=5,
        clock=clock,
        default_exchange_rate=Decimal("130"),
    )
