"""
Application State Models

AppState is the live container the coordinator owns: the user's inputs
(transactions, goal definitions, settings) plus the latest derived snapshot.

PersistedDocument is the subset written to storage. Derived state is NOT
persisted; it is recomputed from the inputs on load.
"""

from decimal import Decimal
from typing import Optional

from pydantic import Field, model_validator

from rf_manager.models.common import LedgerModel
from rf_manager.models.goal import LongTermGoal, ShortTermGoal
from rf_manager.models.ledger import Transaction
from rf_manager.models.snapshot import DerivedSnapshot


class TaxBracket(LedgerModel):
    """One monthly income band in KES; `max` of None means unbounded."""
    min: Decimal = Field(..., ge=0)
    max: Optional[Decimal] = None
    rate: Decimal = Field(..., ge=0, le=1)

    @model_validator(mode='after')
    def validate_range(self) -> 'TaxBracket':
        if self.max is not None and self.max < self.min:
            raise ValueError("Bracket max cannot be below min")
        return self


class LedgerSettings(LedgerModel):
    """User settings stored with the ledger."""
    exchange_rate_kes_per_usd: Decimal = Field(
        default=Decimal("130"),
        gt=0,
        description="Rate captured on new transactions"
    )
    custom_tax_brackets: Optional[list[TaxBracket]] = None


class AppState(LedgerModel):
    transactions: list[Transaction] = Field(default_factory=list)
    short_term_goals: list[ShortTermGoal] = Field(default_factory=list)
    long_term_goals: list[LongTermGoal] = Field(default_factory=list)
    settings: LedgerSettings = Field(default_factory=LedgerSettings)
    derived: DerivedSnapshot = Field(default_factory=DerivedSnapshot)


class PersistedDocument(LedgerModel):
    """
    The on-disk document.

    Every top-level field is required: a document that exists but lacks one
    is malformed, not "empty".
    """
    transactions: list[Transaction]
    short_term_goals: list[ShortTermGoal]
    long_term_goals: list[LongTermGoal]
    settings: LedgerSettings
