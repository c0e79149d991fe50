"""Allocation split package."""

from rf_manager.allocation.distributors import (
    ACCOUNT_B_WITHDRAWAL_RATES,
    ACCOUNT_B_RETAINED_RATE,
    POST_MILESTONE_RATES,
    PRE_MILESTONE_RATES,
    AccountBWithdrawalSplit,
    apply_overrides,
    split_account_b_withdrawal,
    split_funded_profit,
)

__all__ = [
    "ACCOUNT_B_WITHDRAWAL_RATES",
    "ACCOUNT_B_RETAINED_RATE",
    "POST_MILESTONE_RATES",
    "PRE_MILESTONE_RATES",
    "AccountBWithdrawalSplit",
    "apply_overrides",
    "split_account_b_withdrawal",
    "split_funded_profit",
]
