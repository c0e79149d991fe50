"""
Goal Tracker

Owns the goal DEFINITIONS: labels, targets, priorities, achieved/archived
flags. It never computes progress; the recalculation engine does that from
the bucket totals.

CAPS:
- At most 2 active (not achieved) short-term goals
- At most 1 active long-term goal

A new long-term goal can only replace an active one through
`force_new_target`, which archives the current goal first.
"""

from datetime import datetime
from decimal import Decimal
from typing import Iterable, Optional, Sequence, Union
from uuid import UUID

from rf_manager.errors import (
    CapacityExceededError,
    GoalNotFoundError,
    GoalStateError,
)
from rf_manager.models.common import utcnow
from rf_manager.models.goal import (
    MAX_ACTIVE_LONG_TERM_GOALS,
    MAX_ACTIVE_SHORT_TERM_GOALS,
    Goal,
    LongTermGoal,
    ShortTermGoal,
)
from rf_manager.validation import parse_amount


class GoalTracker:
    """Mutable holder for both goal lists."""

    def __init__(
        self,
        short_term_goals: Iterable[ShortTermGoal] = (),
        long_term_goals: Iterable[LongTermGoal] = (),
    ):
        self._short: list[ShortTermGoal] = [g.model_copy() for g in short_term_goals]
        self._long: list[LongTermGoal] = [g.model_copy() for g in long_term_goals]

    @property
    def short_term_goals(self) -> list[ShortTermGoal]:
        return list(self._short)

    @property
    def long_term_goals(self) -> list[LongTermGoal]:
        return list(self._long)

    def active_short_term(self) -> list[ShortTermGoal]:
        return [g for g in self._short if g.is_active]

    def active_long_term(self) -> list[LongTermGoal]:
        return [g for g in self._long if g.is_active]

    @staticmethod
    def _clean_label(label: str) -> str:
        label = (label or "").strip()
        if not label:
            raise GoalStateError("Goal label cannot be empty")
        return label

    def _locate(self, goal_id: UUID) -> tuple[list, int]:
        for goals in (self._short, self._long):
            for idx, goal in enumerate(goals):
                if goal.id == goal_id:
                    return goals, idx
        raise GoalNotFoundError(f"Goal not found: {goal_id}")

    def get(self, goal_id: UUID) -> Goal:
        goals, idx = self._locate(goal_id)
        return goals[idx]

    # -------------------------------------------------------------------------
    # Creation
    # -------------------------------------------------------------------------

    def add_short_term(self, label: str, target: Union[Decimal, int, float, str]) -> ShortTermGoal:
        """
        Add a short-term goal.

        Priority 1 when no short-term goal is active, otherwise 2. Use
        `reorder` to change priorities afterwards.
        """
        label = self._clean_label(label)
        target = parse_amount(target, "target")
        active = self.active_short_term()
        if len(active) >= MAX_ACTIVE_SHORT_TERM_GOALS:
            raise CapacityExceededError(
                f"Maximum {MAX_ACTIVE_SHORT_TERM_GOALS} short-term goals allowed. "
                "Complete or delete an existing goal first."
            )
        priority = 1 if not active else 2
        goal = ShortTermGoal(label=label, target=target, priority=priority)
        self._short.append(goal)
        return goal

    def add_long_term(self, label: str, target: Union[Decimal, int, float, str]) -> LongTermGoal:
        label = self._clean_label(label)
        target = parse_amount(target, "target")
        if len(self.active_long_term()) >= MAX_ACTIVE_LONG_TERM_GOALS:
            raise CapacityExceededError(
                "Only 1 long-term goal allowed at a time. "
                "Complete the existing goal first or set a new target."
            )
        goal = LongTermGoal(label=label, target=target)
        self._long.append(goal)
        return goal

    # -------------------------------------------------------------------------
    # Edits
    # -------------------------------------------------------------------------

    def edit(
        self,
        goal_id: UUID,
        label: Optional[str] = None,
        target: Optional[Union[Decimal, int, float, str]] = None,
    ) -> Goal:
        """
        Change a goal's label and/or target.

        Achieved goals are frozen: their label can change, their target cannot.
        """
        goals, idx = self._locate(goal_id)
        goal = goals[idx]
        update = {}
        if label is not None:
            update["label"] = self._clean_label(label)
        if target is not None:
            if goal.achieved:
                raise GoalStateError("Cannot change the target of an achieved goal")
            update["target"] = parse_amount(target, "target")
        goals[idx] = goal.model_copy(update=update)
        return goals[idx]

    def delete(self, goal_id: UUID) -> Goal:
        goals, idx = self._locate(goal_id)
        return goals.pop(idx)

    def reorder(self, goal_ids: Sequence[UUID]) -> list[ShortTermGoal]:
        """
        Reassign short-term priorities by position: first id gets 1.

        `goal_ids` must name exactly the active short-term goals. Achieved
        goals keep their priority and move after the active ones.
        """
        active = {g.id: g for g in self.active_short_term()}
        if len(goal_ids) != len(set(goal_ids)) or set(goal_ids) != set(active):
            raise GoalStateError("Reorder must list every active short-term goal exactly once")

        reordered = [
            active[goal_id].model_copy(update={"priority": position})
            for position, goal_id in enumerate(goal_ids, start=1)
        ]
        archived = [g for g in self._short if g.achieved]
        self._short = reordered + archived
        return reordered

    def force_new_target(
        self,
        goal_id: UUID,
        new_target: Union[Decimal, int, float, str],
        now: Optional[datetime] = None,
    ) -> LongTermGoal:
        """
        Archive an achieved long-term goal and start a fresh one with the same
        label and a new target.

        The new goal starts at zero progress. The long_term bucket is not
        reset, so the next recalculation may show it partly or fully funded.
        """
        new_target = parse_amount(new_target, "target")
        goals, idx = self._locate(goal_id)
        goal = goals[idx]
        if not isinstance(goal, LongTermGoal):
            raise GoalStateError("Only long-term goals can be given a new target")
        if not goal.achieved:
            raise GoalStateError("A new target can only be set once the goal is achieved")

        if goal.archived_date is None:
            goals[idx] = goal.model_copy(update={"archived_date": now or utcnow()})
        return self.add_long_term(goal.label, new_target)
