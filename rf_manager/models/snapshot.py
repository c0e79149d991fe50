"""
Derived Snapshot Models

Everything in this module is OUTPUT of the recalculation engine.
None of it is ever edited directly; it is replaced wholesale after every
mutation.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import Field

from rf_manager.models.common import LedgerModel, ZERO
from rf_manager.models.goal import LongTermGoal, ShortTermGoal
from rf_manager.models.ledger import AllocationBucket


class AccountMode(str, Enum):
    """
    Account A operating mode.

    GOAL -> GROWTH happens exactly once, when Account A first reaches the
    milestone. There is no transition back.
    """
    GOAL = "goal"
    GROWTH = "growth"


class GraphEventType(str, Enum):
    """What produced a graph point."""
    PROFIT = "profit"
    LOSS = "loss"
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    FUNDED_ALLOCATION = "funded_allocation"
    A_TRANSFER = "a_transfer"


class GraphPoint(LedgerModel):
    """Balance of an account right after one event."""
    timestamp: datetime
    balance: Decimal
    event_type: GraphEventType


class AccountAState(LedgerModel):
    balance: Decimal = ZERO
    mode: AccountMode = AccountMode.GOAL
    has_reached_milestone: bool = False
    milestone_transfer_date: Optional[datetime] = None
    goal_cycle_series: list[GraphPoint] = Field(default_factory=list)
    growth_mode_series: list[GraphPoint] = Field(default_factory=list)


class AccountBState(LedgerModel):
    balance: Decimal = ZERO
    series: list[GraphPoint] = Field(default_factory=list)


class AllocationTotals(LedgerModel):
    """
    Running totals per bucket.

    One field per AllocationBucket member; `get`/`add` are keyed by the enum
    so callers never touch a bucket by string.
    """
    a_allocation: Decimal = ZERO
    b_allocation: Decimal = ZERO
    autosave: Decimal = ZERO
    cash: Decimal = ZERO
    short_term: Decimal = ZERO
    long_term: Decimal = ZERO
    grooming: Decimal = ZERO
    custom_index: Decimal = ZERO
    emergency: Decimal = ZERO
    travel: Decimal = ZERO
    card: Decimal = ZERO
    global_index: Decimal = ZERO
    stock_tracking: Decimal = ZERO
    dividend_etf: Decimal = ZERO

    def get(self, bucket: AllocationBucket) -> Decimal:
        return getattr(self, bucket.value)

    def add(self, bucket: AllocationBucket, amount: Decimal) -> None:
        setattr(self, bucket.value, self.get(bucket) + amount)

    def as_dict(self) -> dict[AllocationBucket, Decimal]:
        return {bucket: self.get(bucket) for bucket in AllocationBucket}


class DerivedSnapshot(LedgerModel):
    """The complete result of one recalculation pass."""
    account_a: AccountAState = Field(default_factory=AccountAState)
    account_b: AccountBState = Field(default_factory=AccountBState)
    allocation_totals: AllocationTotals = Field(default_factory=AllocationTotals)
    short_term_goals: list[ShortTermGoal] = Field(default_factory=list)
    long_term_goals: list[LongTermGoal] = Field(default_factory=list)
    taxable_income_usd: Decimal = ZERO
    taxable_income_kes: Decimal = ZERO
