"""
Goal Models for RF Manager

Goals are user-defined targets tracked against a bucket's running total:
short-term goals against the short_term bucket, long-term goals against the
long_term bucket.

CRITICAL: `achieved` is sticky. Once a recalculation marks a goal achieved,
the goal is frozen and no later recalculation touches it.
"""

from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional, Union
from uuid import UUID, uuid4

from pydantic import Field, field_validator

from rf_manager.models.common import LedgerModel, ZERO, ensure_utc


MAX_ACTIVE_SHORT_TERM_GOALS = 2
MAX_ACTIVE_LONG_TERM_GOALS = 1


class _GoalBase(LedgerModel):
    id: UUID = Field(
        default_factory=uuid4,
        description="Unique goal ID"
    )
    label: str = Field(
        ...,
        min_length=1,
        max_length=200,
    )
    target: Decimal = Field(
        ...,
        gt=0,
        description="Target amount in USD"
    )
    progress: Decimal = Field(
        default=ZERO,
        ge=0,
        description="Derived on every recalculation until achieved"
    )
    achieved: bool = False
    archived_date: Optional[datetime] = None

    @field_validator('archived_date')
    @classmethod
    def normalize_archived_date(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v) if v is not None else None

    @property
    def is_active(self) -> bool:
        return not self.achieved


class ShortTermGoal(_GoalBase):
    """
    A short-term goal.

    Priority decides how the short_term bucket is shared: priority 1 gets
    80% of it (up to its target), priority 2 gets the rest.
    """
    priority: Literal[1, 2] = 1


class LongTermGoal(_GoalBase):
    """A long-term goal. Only one may be active at a time."""


Goal = Union[ShortTermGoal, LongTermGoal]
