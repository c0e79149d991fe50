"""
Withdrawal Distributors

Fixed percentage tables that turn one amount into a per-bucket breakdown.

DESIGN DECISION: All arithmetic is Decimal. The rates are exact decimal
fractions, so every breakdown sums to its input with no rounding residue.
Nothing here is quantized; rounding is a display concern.
"""

from decimal import Decimal
from typing import Mapping, NamedTuple, Optional

from rf_manager.errors import InvalidAllocationError, InvalidAmountError
from rf_manager.models.common import ZERO
from rf_manager.models.ledger import AllocationBucket, AllocationSplit


# =============================================================================
# RATE TABLES
# =============================================================================

PRE_MILESTONE_RATES: dict[AllocationBucket, Decimal] = {
    AllocationBucket.A_ALLOCATION: Decimal("0.15"),
    AllocationBucket.AUTOSAVE: Decimal("0.05"),
    AllocationBucket.CASH: Decimal("0.03"),
    AllocationBucket.SHORT_TERM: Decimal("0.32"),
    AllocationBucket.GROOMING: Decimal("0.08"),
    AllocationBucket.LONG_TERM: Decimal("0.08"),
    AllocationBucket.CUSTOM_INDEX: Decimal("0.18"),
    AllocationBucket.EMERGENCY: Decimal("0.03"),
    AllocationBucket.TRAVEL: Decimal("0.08"),
}

POST_MILESTONE_RATES: dict[AllocationBucket, Decimal] = {
    **PRE_MILESTONE_RATES,
    AllocationBucket.A_ALLOCATION: Decimal("0.05"),
    AllocationBucket.B_ALLOCATION: Decimal("0.10"),
}

# The eight distributed parts of an Account B withdrawal sum to 1.0000.
# The retained 30% is credited back to Account B on top of them.
ACCOUNT_B_WITHDRAWAL_RATES: dict[AllocationBucket, Decimal] = {
    AllocationBucket.TRAVEL: Decimal("0.2429"),
    AllocationBucket.LONG_TERM: Decimal("0.2143"),
    AllocationBucket.CARD: Decimal("0.1429"),
    AllocationBucket.GLOBAL_INDEX: Decimal("0.1351"),
    AllocationBucket.STOCK_TRACKING: Decimal("0.0714"),
    AllocationBucket.CUSTOM_INDEX: Decimal("0.0714"),
    AllocationBucket.DIVIDEND_ETF: Decimal("0.0657"),
    AllocationBucket.AUTOSAVE: Decimal("0.0563"),
}
ACCOUNT_B_RETAINED_RATE = Decimal("0.30")


# =============================================================================
# ACCOUNT B WITHDRAWAL
# =============================================================================

class AccountBWithdrawalSplit(NamedTuple):
    """Breakdown of one Account B withdrawal."""
    distributed: dict[AllocationBucket, Decimal]
    retained: Decimal

    @property
    def distributed_total(self) -> Decimal:
        return sum(self.distributed.values(), ZERO)

    def taxable_amount(self, amount: Decimal) -> Decimal:
        """The retained part never leaves the account, so it is not income."""
        return amount - self.retained


def split_account_b_withdrawal(amount: Decimal) -> AccountBWithdrawalSplit:
    return AccountBWithdrawalSplit(
        distributed={
            bucket: amount * rate
            for bucket, rate in ACCOUNT_B_WITHDRAWAL_RATES.items()
        },
        retained=amount * ACCOUNT_B_RETAINED_RATE,
    )


# =============================================================================
# FUNDED PROFIT
# =============================================================================

def split_funded_profit(amount: Decimal, milestone_reached: bool) -> AllocationSplit:
    """
    Default split for a funded profit.

    Before Account A reaches its milestone, 15% goes to Account A. Afterwards
    Account A gets 5% and Account B 10%.
    """
    rates = POST_MILESTONE_RATES if milestone_reached else PRE_MILESTONE_RATES
    return AllocationSplit(**{
        bucket.value: amount * rate for bucket, rate in rates.items()
    })


def apply_overrides(
    default_split: AllocationSplit,
    overrides: Optional[Mapping[AllocationBucket, Decimal]],
) -> AllocationSplit:
    """
    Apply the user's edits from the staging step.

    Any part lowered below its default sends the difference to long_term as
    surplus. Raising a part adds nothing to surplus, and edits to long_term
    itself are taken as-is before the surplus is added.
    """
    if not overrides:
        return default_split

    defaults = default_split.parts()
    parts = dict(defaults)
    surplus = ZERO

    for bucket, value in overrides.items():
        if bucket not in defaults:
            raise InvalidAllocationError(
                f"Bucket {bucket.value} is not part of this allocation"
            )
        if value < 0:
            raise InvalidAmountError(
                f"Allocation for {bucket.value} cannot be negative"
            )
        parts[bucket] = value
        if bucket != AllocationBucket.LONG_TERM and value < defaults[bucket]:
            surplus += defaults[bucket] - value

    parts[AllocationBucket.LONG_TERM] += surplus
    return AllocationSplit(**{bucket.value: value for bucket, value in parts.items()})
