"""
Tests for the recalculation engine.

The engine is pure, so every test builds transactions directly and checks
the snapshot it returns.
"""

import random
from decimal import Decimal

import pytest

from rf_manager.engine import MILESTONE_AMOUNT, recalculate
from rf_manager.models.goal import LongTermGoal, ShortTermGoal
from rf_manager.models.ledger import TransactionKind
from rf_manager.models.snapshot import AccountMode, DerivedSnapshot, GraphEventType

from conftest import a_txn, at, b_txn, funded_txn


PROFIT = TransactionKind.PROFIT
LOSS = TransactionKind.LOSS
DEPOSIT = TransactionKind.DEPOSIT
WITHDRAWAL = TransactionKind.WITHDRAWAL


class TestEmptyLedger:
    def test_zero_state(self):
        """Test an empty ledger derives the zero snapshot."""
        snapshot = recalculate([], [], [])

        assert snapshot == DerivedSnapshot()
        assert snapshot.account_a.mode == AccountMode.GOAL
        assert snapshot.account_a.balance == 0
        assert snapshot.account_b.balance == 0
        assert all(v == 0 for v in snapshot.allocation_totals.as_dict().values())


class TestFundedProfit:
    """Funded profit feeds the buckets and Account A."""

    def test_single_funded_profit(self):
        """Test a 1000 funded profit before the milestone."""
        snapshot = recalculate([funded_txn(1000, 1)], [], [])

        assert snapshot.account_a.balance == Decimal("150")
        assert snapshot.account_b.balance == 0
        assert snapshot.allocation_totals.short_term == Decimal("320")
        assert snapshot.allocation_totals.custom_index == Decimal("180")
        assert snapshot.taxable_income_usd == Decimal("1000")
        assert snapshot.taxable_income_kes == Decimal("130000")

    def test_funded_point_on_goal_series(self):
        snapshot = recalculate([funded_txn(1000, 1)], [], [])

        points = snapshot.account_a.goal_cycle_series
        assert len(points) == 1
        assert points[0].event_type == GraphEventType.FUNDED_ALLOCATION
        assert points[0].balance == Decimal("150")
        assert snapshot.account_b.series == []

    def test_post_milestone_split_credits_account_b(self):
        """Test a split carrying b_allocation adds to Account B with a point."""
        snapshot = recalculate([funded_txn(1000, 1, milestone_reached=True)], [], [])

        assert snapshot.account_a.balance == Decimal("50")
        assert snapshot.account_b.balance == Decimal("100")
        assert snapshot.allocation_totals.b_allocation == Decimal("100")
        assert snapshot.account_b.series[0].event_type == GraphEventType.FUNDED_ALLOCATION


class TestMilestone:
    """Account A milestone crossing."""

    def test_milestone_crossed_by_profits(self):
        """Test three profits totalling exactly the milestone."""
        txns = [
            a_txn(PROFIT, 2000, 1),
            a_txn(PROFIT, 2000, 2),
            a_txn(PROFIT, 1000, 3),
        ]
        snapshot = recalculate(txns, [], [])
        account_a = snapshot.account_a

        assert account_a.mode == AccountMode.GROWTH
        assert account_a.has_reached_milestone is True
        assert account_a.balance == 0
        assert account_a.milestone_transfer_date == at(3)
        assert snapshot.account_b.balance == MILESTONE_AMOUNT
        assert snapshot.allocation_totals.b_allocation == MILESTONE_AMOUNT

        assert [p.balance for p in account_a.goal_cycle_series] == [
            Decimal("2000"), Decimal("4000"), Decimal("5000"),
        ]
        assert len(account_a.growth_mode_series) == 1
        assert account_a.growth_mode_series[0].balance == 0
        assert account_a.growth_mode_series[0].event_type == GraphEventType.PROFIT

        assert len(snapshot.account_b.series) == 1
        assert snapshot.account_b.series[0].event_type == GraphEventType.A_TRANSFER
        assert snapshot.account_b.series[0].balance == MILESTONE_AMOUNT

    def test_just_below_milestone(self):
        snapshot = recalculate([a_txn(PROFIT, "4999.99", 1)], [], [])

        assert snapshot.account_a.mode == AccountMode.GOAL
        assert snapshot.account_a.milestone_transfer_date is None
        assert snapshot.account_b.balance == 0

    def test_milestone_crossed_by_funded_profit(self):
        """Test a large funded profit can trigger the transfer."""
        snapshot = recalculate([funded_txn(40000, 1)], [], [])

        assert snapshot.account_a.mode == AccountMode.GROWTH
        assert snapshot.account_a.balance == Decimal("1000")
        assert snapshot.account_b.balance == Decimal("5000")
        growth = snapshot.account_a.growth_mode_series
        assert growth[0].event_type == GraphEventType.FUNDED_ALLOCATION

    def test_funded_after_milestone(self):
        txns = [
            funded_txn(40000, 1),
            funded_txn(1000, 2, milestone_reached=True),
        ]
        snapshot = recalculate(txns, [], [])

        assert snapshot.account_a.balance == Decimal("1050")
        assert snapshot.account_b.balance == Decimal("5100")
        assert snapshot.allocation_totals.b_allocation == Decimal("5100")

    def test_milestone_is_one_way(self):
        """Test losses after the crossing never return to goal mode."""
        txns = [
            a_txn(PROFIT, 6000, 1),
            a_txn(LOSS, 3000, 2),
            a_txn(PROFIT, 9000, 3),
        ]
        snapshot = recalculate(txns, [], [])

        assert snapshot.account_a.mode == AccountMode.GROWTH
        # Only one transfer even though the balance passes 5000 again
        assert snapshot.account_a.balance == Decimal("7000")
        assert snapshot.account_b.balance == Decimal("5000")
        assert snapshot.account_a.milestone_transfer_date == at(1)
        assert len(snapshot.account_a.growth_mode_series) == 3

    def test_account_b_never_triggers_milestone(self):
        snapshot = recalculate([b_txn(DEPOSIT, 10000, 1)], [], [])

        assert snapshot.account_a.mode == AccountMode.GOAL
        assert snapshot.account_b.balance == Decimal("10000")


class TestAccountB:
    """Account B deposits, losses and withdrawals."""

    def test_deposit_then_withdrawal(self):
        """Test the retained 30% is credited back and only 70% is taxable."""
        txns = [b_txn(DEPOSIT, 2000, 1), b_txn(WITHDRAWAL, 1000, 2)]
        snapshot = recalculate(txns, [], [])

        assert snapshot.account_b.balance == Decimal("1300")
        assert snapshot.allocation_totals.travel == Decimal("242.9")
        assert snapshot.allocation_totals.long_term == Decimal("214.3")
        assert snapshot.allocation_totals.card == Decimal("142.9")
        assert snapshot.taxable_income_usd == Decimal("700")
        assert [p.balance for p in snapshot.account_b.series] == [
            Decimal("2000"), Decimal("1300"),
        ]

    def test_profit_and_loss_are_not_taxable(self):
        txns = [b_txn(PROFIT, 500, 1), b_txn(LOSS, 200, 2)]
        snapshot = recalculate(txns, [], [])

        assert snapshot.account_b.balance == Decimal("300")
        assert snapshot.taxable_income_usd == 0


class TestAccountA:
    def test_withdrawal_is_taxable(self):
        txns = [a_txn(DEPOSIT, 1000, 1), a_txn(WITHDRAWAL, 400, 2)]
        snapshot = recalculate(txns, [], [])

        assert snapshot.account_a.balance == Decimal("600")
        assert snapshot.taxable_income_usd == Decimal("400")
        assert snapshot.account_a.goal_cycle_series[-1].event_type == GraphEventType.WITHDRAWAL

    def test_balance_can_go_negative(self):
        snapshot = recalculate([a_txn(LOSS, 100, 1)], [], [])
        assert snapshot.account_a.balance == Decimal("-100")


class TestTaxableIncome:
    def test_kes_uses_rate_captured_on_each_transaction(self):
        """Test later rate changes never rewrite earlier conversions."""
        txns = [
            funded_txn(100, 1, rate="130"),
            a_txn(WITHDRAWAL, 50, 2, rate="140"),
        ]
        snapshot = recalculate(txns, [], [])

        assert snapshot.taxable_income_usd == Decimal("150")
        assert snapshot.taxable_income_kes == Decimal("13000") + Decimal("7000")


class TestOrdering:
    """Fold order is timestamp order, with insertion order breaking ties."""

    def test_input_order_does_not_matter_for_distinct_timestamps(self):
        txns = [
            funded_txn(2000, 1),
            a_txn(PROFIT, 3000, 2),
            b_txn(DEPOSIT, 400, 3),
            a_txn(LOSS, 500, 4),
            b_txn(WITHDRAWAL, 100, 5),
            a_txn(PROFIT, 2500, 6),
        ]
        expected = recalculate(txns, [], [])

        shuffled = list(txns)
        random.Random(7).shuffle(shuffled)

        assert recalculate(shuffled, [], []) == expected
        assert recalculate(list(reversed(txns)), [], []) == expected

    def test_same_timestamp_keeps_insertion_order(self):
        """Test ties resolve by the order transactions were given in."""
        profit = a_txn(PROFIT, 5000, 1)
        loss = a_txn(LOSS, 1000, 1)

        crossed = recalculate([profit, loss], [], [])
        not_crossed = recalculate([loss, profit], [], [])

        assert crossed.account_a.mode == AccountMode.GROWTH
        assert crossed.account_a.balance == Decimal("-1000")
        assert not_crossed.account_a.mode == AccountMode.GOAL
        assert not_crossed.account_a.balance == Decimal("4000")

    def test_moving_a_loss_later_triggers_milestone(self):
        """Test editing a timestamp changes the fold."""
        before = [
            a_txn(PROFIT, 4000, 1),
            a_txn(LOSS, 500, 2),
            a_txn(PROFIT, 1000, 3),
        ]
        after = [
            a_txn(PROFIT, 4000, 1),
            a_txn(LOSS, 500, 4),
            a_txn(PROFIT, 1000, 3),
        ]

        snapshot_before = recalculate(before, [], [])
        snapshot_after = recalculate(after, [], [])

        assert snapshot_before.account_a.balance == Decimal("4500")
        assert snapshot_before.account_a.mode == AccountMode.GOAL
        assert snapshot_after.account_a.mode == AccountMode.GROWTH
        assert snapshot_after.account_a.balance == Decimal("-500")
        assert snapshot_after.account_b.balance == Decimal("5000")

    def test_recalculation_is_idempotent(self):
        txns = [funded_txn(1000, 1), a_txn(PROFIT, 4500, 2)]
        goals = [ShortTermGoal(label="Phone", target=Decimal("100"))]

        assert recalculate(txns, goals, []) == recalculate(txns, goals, [])


class TestShortTermGoals:
    """Short-term progress against the short_term bucket."""

    def test_priority_split(self):
        """Test priority 1 takes up to 80%, priority 2 gets the rest."""
        goals = [
            ShortTermGoal(label="Phone", target=Decimal("200"), priority=1),
            ShortTermGoal(label="Course", target=Decimal("500"), priority=2),
        ]
        snapshot = recalculate([funded_txn(1000, 1)], goals, [])
        first, second = snapshot.short_term_goals

        assert first.progress == Decimal("200")
        assert first.achieved is True
        assert second.progress == Decimal("120")
        assert second.achieved is False

    def test_priority_one_capped_by_pool(self):
        goals = [ShortTermGoal(label="Car", target=Decimal("10000"), priority=1)]
        snapshot = recalculate([funded_txn(1000, 1)], goals, [])

        assert snapshot.short_term_goals[0].progress == Decimal("256")
        assert snapshot.short_term_goals[0].achieved is False

    def test_lone_priority_two_gets_whole_bucket(self):
        goals = [ShortTermGoal(label="Course", target=Decimal("1000"), priority=2)]
        snapshot = recalculate([funded_txn(1000, 1)], goals, [])

        assert snapshot.short_term_goals[0].progress == Decimal("320")

    def test_achieved_goal_is_frozen(self):
        """Test an achieved goal keeps its progress when the bucket shrinks."""
        goal = ShortTermGoal(
            label="Phone",
            target=Decimal("200"),
            progress=Decimal("200"),
            achieved=True,
        )
        snapshot = recalculate([], [goal], [])

        assert snapshot.short_term_goals[0].progress == Decimal("200")
        assert snapshot.short_term_goals[0].achieved is True

    def test_inputs_are_not_modified(self):
        goal = ShortTermGoal(label="Phone", target=Decimal("100"))
        recalculate([funded_txn(1000, 1)], [goal], [])

        assert goal.progress == 0
        assert goal.achieved is False


class TestLongTermGoals:
    def test_long_term_achieved(self):
        goals = [LongTermGoal(label="Land", target=Decimal("50"))]
        snapshot = recalculate([funded_txn(1000, 1)], [], goals)

        assert snapshot.long_term_goals[0].progress == Decimal("50")
        assert snapshot.long_term_goals[0].achieved is True

    def test_long_term_progress_tracks_bucket(self):
        goals = [LongTermGoal(label="Land", target=Decimal("100"))]
        snapshot = recalculate([funded_txn(1000, 1)], [], goals)

        assert snapshot.long_term_goals[0].progress == Decimal("80")
        assert snapshot.long_term_goals[0].achieved is False

    def test_account_b_withdrawal_feeds_long_term(self):
        goals = [LongTermGoal(label="Land", target=Decimal("1000"))]
        txns = [b_txn(DEPOSIT, 2000, 1), b_txn(WITHDRAWAL, 1000, 2)]
        snapshot = recalculate(txns, [], goals)

        assert snapshot.long_term_goals[0].progress == Decimal("214.3")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
