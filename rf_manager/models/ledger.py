"""
Ledger Models for RF Manager

A Transaction is the only piece of state the user actually enters.
Balances, buckets and goal progress are all derived from the ordered list
of transactions.

DESIGN DECISION: Transactions are frozen pydantic models. An "edit" builds a
new record that replaces the old one in place; nothing mutates a record.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from rf_manager.models.common import LedgerModel, ZERO, ensure_utc, utcnow


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionSource(str, Enum):
    """Where money came from or went to."""
    FUNDED = "funded"
    ACCOUNT_A = "account_a"
    ACCOUNT_B = "account_b"


class TransactionKind(str, Enum):
    """
    What happened.

    The effect on a balance is decided by the kind; amounts are always
    non-negative magnitudes.
    """
    PROFIT = "profit"
    LOSS = "loss"
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"


class AllocationBucket(str, Enum):
    """
    Every savings/spending bucket that allocation totals are kept for.

    Funded-profit splits feed the first ten; Account B withdrawals also feed
    card, global_index, stock_tracking and dividend_etf.
    """
    A_ALLOCATION = "a_allocation"
    B_ALLOCATION = "b_allocation"
    AUTOSAVE = "autosave"
    CASH = "cash"
    SHORT_TERM = "short_term"
    LONG_TERM = "long_term"
    GROOMING = "grooming"
    CUSTOM_INDEX = "custom_index"
    EMERGENCY = "emergency"
    TRAVEL = "travel"
    CARD = "card"
    GLOBAL_INDEX = "global_index"
    STOCK_TRACKING = "stock_tracking"
    DIVIDEND_ETF = "dividend_etf"


# =============================================================================
# ALLOCATION SPLIT
# =============================================================================

class AllocationSplit(LedgerModel):
    """
    How one funded profit was divided across buckets.

    Committed together with the transaction. Once committed it is a
    historical record: later milestone changes do not re-split old profits.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    a_allocation: Decimal = Field(..., ge=0)
    b_allocation: Optional[Decimal] = Field(
        default=None,
        ge=0,
        description="Only present once Account A has reached its milestone"
    )
    autosave: Decimal = Field(..., ge=0)
    cash: Decimal = Field(..., ge=0)
    short_term: Decimal = Field(..., ge=0)
    grooming: Decimal = Field(..., ge=0)
    long_term: Decimal = Field(..., ge=0)
    custom_index: Decimal = Field(..., ge=0)
    emergency: Decimal = Field(..., ge=0)
    travel: Decimal = Field(..., ge=0)

    def parts(self) -> dict[AllocationBucket, Decimal]:
        """Non-empty parts keyed by the bucket they feed."""
        parts = {
            AllocationBucket.A_ALLOCATION: self.a_allocation,
            AllocationBucket.AUTOSAVE: self.autosave,
            AllocationBucket.CASH: self.cash,
            AllocationBucket.SHORT_TERM: self.short_term,
            AllocationBucket.GROOMING: self.grooming,
            AllocationBucket.LONG_TERM: self.long_term,
            AllocationBucket.CUSTOM_INDEX: self.custom_index,
            AllocationBucket.EMERGENCY: self.emergency,
            AllocationBucket.TRAVEL: self.travel,
        }
        if self.b_allocation is not None:
            parts[AllocationBucket.B_ALLOCATION] = self.b_allocation
        return parts

    @property
    def total(self) -> Decimal:
        return sum(self.parts().values(), ZERO)


# =============================================================================
# TRANSACTION
# =============================================================================

ALLOWED_KINDS: dict[TransactionSource, frozenset[TransactionKind]] = {
    TransactionSource.FUNDED: frozenset({TransactionKind.PROFIT}),
    TransactionSource.ACCOUNT_A: frozenset(TransactionKind),
    TransactionSource.ACCOUNT_B: frozenset(TransactionKind),
}


class Transaction(LedgerModel):
    """
    One ledger entry.

    CRITICAL: `exchange_rate` is captured when the entry is made and is never
    rewritten when the user later changes the current rate.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        frozen=True,
    )

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique transaction ID"
    )
    source: TransactionSource
    kind: TransactionKind
    timestamp: datetime = Field(
        default_factory=utcnow,
        description="When the entry was made; decides fold order"
    )
    amount_usd: Decimal = Field(
        ...,
        ge=0,
        alias="amountUSD",
        description="Magnitude in USD; the kind decides the sign"
    )
    exchange_rate: Decimal = Field(
        ...,
        gt=0,
        description="KES per USD at time of entry"
    )
    allocation_split: Optional[AllocationSplit] = None
    notes: Optional[str] = Field(
        default=None,
        max_length=1000,
    )

    @field_validator('timestamp')
    @classmethod
    def normalize_timestamp(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    @model_validator(mode='after')
    def validate_source_rules(self) -> 'Transaction':
        """Kinds per source, and a split exactly when the source is funded."""
        if self.kind not in ALLOWED_KINDS[self.source]:
            raise ValueError(
                f"{self.source.value} transactions cannot be of kind {self.kind.value}"
            )
        if self.source == TransactionSource.FUNDED and self.allocation_split is None:
            raise ValueError("Funded profit requires an allocation split")
        if self.source != TransactionSource.FUNDED and self.allocation_split is not None:
            raise ValueError("Only funded profit carries an allocation split")
        return self

    @property
    def is_taxable(self) -> bool:
        """Funded profit and withdrawals from either account are taxable."""
        return (
            self.source == TransactionSource.FUNDED
            or self.kind == TransactionKind.WITHDRAWAL
        )
