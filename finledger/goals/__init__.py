"""Savings goals and their celebration state."""

from finledger.goals.celebrations import CelebrationRegistry
from finledger.goals.tracker import GoalTracker

__all__ = ["CelebrationRegistry", "GoalTracker"]
