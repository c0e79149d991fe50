"""Goal tracking package."""

from rf_manager.goals.tracker import GoalTracker

__all__ = ["GoalTracker"]
