"""
Recalculation Engine

A pure fold over the full transaction history that produces every derived
number in the application: both account balances, Account A's mode, the
graph series, the bucket totals, taxable income and goal progress.

CRITICAL: This function is the only place derived state is computed.
It never reads or writes anything outside its arguments, so calling it twice
with the same input yields equal snapshots.

Fold order is ascending timestamp. `sorted` is stable, so transactions that
share a timestamp keep the order they were given in (insertion order).
"""

from datetime import datetime
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from rf_manager.allocation import split_account_b_withdrawal
from rf_manager.models.common import ZERO
from rf_manager.models.goal import LongTermGoal, ShortTermGoal
from rf_manager.models.ledger import (
    AllocationBucket,
    Transaction,
    TransactionKind,
    TransactionSource,
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


MILESTONE_AMOUNT = Decimal("5000")

# Priority 1 draws on 80% of the short_term bucket; priority 2 gets whatever
# priority 1 leaves of that 80%, plus the other 20%.
SHORT_TERM_PRIMARY_SHARE = Decimal("0.8")
SHORT_TERM_SECONDARY_SHARE = Decimal("0.2")

_KIND_SIGN = {
    TransactionKind.PROFIT: 1,
    TransactionKind.DEPOSIT: 1,
    TransactionKind.LOSS: -1,
    TransactionKind.WITHDRAWAL: -1,
}


class _Fold:
    """
    Accumulator threaded through the fold.

    `mode` is the Account A state machine: it starts at GOAL and
    `_cross_milestone` is the only code that moves it, once, to GROWTH.
    """

    def __init__(self) -> None:
        self.a_balance = ZERO
        self.b_balance = ZERO
        self.mode = AccountMode.GOAL
        self.milestone_date: Optional[datetime] = None
        self.goal_cycle_series: list[GraphPoint] = []
        self.growth_mode_series: list[GraphPoint] = []
        self.b_series: list[GraphPoint] = []
        self.totals = AllocationTotals()
        self.taxable_usd = ZERO
        self.taxable_kes = ZERO

    # -- points ---------------------------------------------------------------

    def _a_point(self, when: datetime, event_type: GraphEventType) -> None:
        point = GraphPoint(timestamp=when, balance=self.a_balance, event_type=event_type)
        if self.mode == AccountMode.GOAL:
            self.goal_cycle_series.append(point)
        else:
            self.growth_mode_series.append(point)

    def _b_point(self, when: datetime, event_type: GraphEventType) -> None:
        self.b_series.append(
            GraphPoint(timestamp=when, balance=self.b_balance, event_type=event_type)
        )

    def _taxable(self, txn: Transaction, amount: Decimal) -> None:
        self.taxable_usd += amount
        self.taxable_kes += amount * txn.exchange_rate

    # -- events ---------------------------------------------------------------

    def apply(self, txn: Transaction) -> None:
        if txn.source == TransactionSource.FUNDED:
            self._apply_funded(txn)
            self._check_milestone(txn, GraphEventType.FUNDED_ALLOCATION)
        elif txn.source == TransactionSource.ACCOUNT_A:
            self._apply_account_a(txn)
            self._check_milestone(txn, GraphEventType(txn.kind.value))
        else:
            self._apply_account_b(txn)

    def _apply_funded(self, txn: Transaction) -> None:
        split = txn.allocation_split
        for bucket, amount in split.parts().items():
            self.totals.add(bucket, amount)

        if split.b_allocation is not None:
            self.b_balance += split.b_allocation
            self._b_point(txn.timestamp, GraphEventType.FUNDED_ALLOCATION)

        self.a_balance += split.a_allocation
        self._a_point(txn.timestamp, GraphEventType.FUNDED_ALLOCATION)

        # Funded profit is always taxable in full
        self._taxable(txn, txn.amount_usd)

    def _apply_account_a(self, txn: Transaction) -> None:
        self.a_balance += _KIND_SIGN[txn.kind] * txn.amount_usd
        self._a_point(txn.timestamp, GraphEventType(txn.kind.value))
        if txn.kind == TransactionKind.WITHDRAWAL:
            self._taxable(txn, txn.amount_usd)

    def _apply_account_b(self, txn: Transaction) -> None:
        if txn.kind != TransactionKind.WITHDRAWAL:
            self.b_balance += _KIND_SIGN[txn.kind] * txn.amount_usd
            self._b_point(txn.timestamp, GraphEventType(txn.kind.value))
            return

        split = split_account_b_withdrawal(txn.amount_usd)
        for bucket, amount in split.distributed.items():
            self.totals.add(bucket, amount)
        self.b_balance -= txn.amount_usd
        self.b_balance += split.retained
        self._b_point(txn.timestamp, GraphEventType.WITHDRAWAL)
        self._taxable(txn, split.taxable_amount(txn.amount_usd))

    def _check_milestone(self, txn: Transaction, trigger: GraphEventType) -> None:
        if self.mode == AccountMode.GOAL and self.a_balance >= MILESTONE_AMOUNT:
            self._cross_milestone(txn.timestamp, trigger)

    def _cross_milestone(self, when: datetime, trigger: GraphEventType) -> None:
        """Switch to growth mode and move the milestone amount to Account B."""
        self.mode = AccountMode.GROWTH
        self.milestone_date = when

        self.a_balance -= MILESTONE_AMOUNT
        self.b_balance += MILESTONE_AMOUNT
        self.totals.add(AllocationBucket.B_ALLOCATION, MILESTONE_AMOUNT)

        self._b_point(when, GraphEventType.A_TRANSFER)
        self._a_point(when, trigger)

    # -- result ---------------------------------------------------------------

    def account_a(self) -> AccountAState:
        return AccountAState(
            balance=self.a_balance,
            mode=self.mode,
            has_reached_milestone=self.mode == AccountMode.GROWTH,
            milestone_transfer_date=self.milestone_date,
            goal_cycle_series=self.goal_cycle_series,
            growth_mode_series=self.growth_mode_series,
        )

    def account_b(self) -> AccountBState:
        return AccountBState(balance=self.b_balance, series=self.b_series)


# =============================================================================
# GOAL PROGRESS
# =============================================================================

def _short_term_progress(
    goals: Sequence[ShortTermGoal],
    bucket_total: Decimal,
) -> list[ShortTermGoal]:
    primary_pool = bucket_total * SHORT_TERM_PRIMARY_SHARE
    priority_one = next((g for g in goals if g.priority == 1), None)
    priority_one_share = min(primary_pool, priority_one.target) if priority_one else ZERO

    updated = []
    for goal in goals:
        if goal.achieved:
            updated.append(goal.model_copy())
            continue
        if goal.priority == 1:
            progress = min(primary_pool, goal.target)
        else:
            leftover = primary_pool - priority_one_share
            progress = min(leftover + bucket_total * SHORT_TERM_SECONDARY_SHARE, goal.target)
        updated.append(goal.model_copy(update={
            "progress": progress,
            "achieved": progress >= goal.target,
        }))
    return updated


def _long_term_progress(
    goals: Sequence[LongTermGoal],
    bucket_total: Decimal,
) -> list[LongTermGoal]:
    updated = []
    for goal in goals:
        if goal.achieved:
            updated.append(goal.model_copy())
            continue
        progress = min(bucket_total, goal.target)
        updated.append(goal.model_copy(update={
            "progress": progress,
            "achieved": progress >= goal.target,
        }))
    return updated


# =============================================================================
# ENTRY POINT
# =============================================================================

def recalculate(
    transactions: Iterable[Transaction],
    short_term_goals: Sequence[ShortTermGoal],
    long_term_goals: Sequence[LongTermGoal],
) -> DerivedSnapshot:
    """
    Derive the full snapshot from the ledger and the goal definitions.

    Args:
        transactions: Every transaction, in insertion order. Order of the
            argument only matters for transactions sharing a timestamp.
        short_term_goals: Short-term goal definitions (achieved ones included).
        long_term_goals: Long-term goal definitions (achieved ones included).

    Returns:
        A fresh DerivedSnapshot. Inputs are not modified.
    """
    fold = _Fold()
    for txn in sorted(transactions, key=lambda t: t.timestamp):
        fold.apply(txn)

    return DerivedSnapshot(
        account_a=fold.account_a(),
        account_b=fold.account_b(),
        allocation_totals=fold.totals,
        short_term_goals=_short_term_progress(
            short_term_goals, fold.totals.short_term
        ),
        long_term_goals=_long_term_progress(
            long_term_goals, fold.totals.long_term
        ),
        taxable_income_usd=fold.taxable_usd,
        taxable_income_kes=fold.taxable_kes,
    )
