"""
Goal Tracker

Savings goals with an append-only contribution sub-ledger.

Every contribution or withdrawal:
1. Appends exactly one GoalContribution (withdrawals are negative)
2. Moves current_amount by the same amount
3. Marks any milestones it crossed
4. Flips status to COMPLETED the first time current_amount >= target_amount

Lowering target_amount at or below the saved amount through update_goal
completes the goal as well.

The completion signal is separate from the status: it is raised only when
the CelebrationRegistry has never seen the goal, so a goal that is drained
and refilled past its target is celebrated once.
"""

import datetime as dt
from decimal import Decimal
from typing import Any, Callable, Optional
from uuid import UUID

from finledger.errors import InsufficientGoalBalanceError
from finledger.goals.celebrations import CelebrationRegistry
from finledger.models.base import utc_now
from finledger.models.goal import (
    ContributionResult,
    FinancialGoal,
    GoalContribution,
    GoalMilestone,
    GoalStatus,
)
from finledger.state import (
    FinanceState,
    build,
    find_by_id,
    get_or_raise,
    remove_by_id,
    replace_by_id,
    revise,
)
from finledger.validation.rules import require_non_negative_amount, require_positive_amount


PROTECTED_FIELDS = ("id", "created_at", "current_amount", "contributions", "status")


def _mark_milestones(
    milestones: list[GoalMilestone],
    amount: Decimal,
) -> tuple[list[GoalMilestone], list[GoalMilestone]]:
    """Returns (all milestones, newly reached ones)."""
    updated, reached = [], []
    for milestone in milestones:
        if not milestone.reached and amount >= milestone.target_amount:
            milestone = milestone.model_copy(update={"reached": True, "reached_at": utc_now()})
            reached.append(milestone)
        updated.append(milestone)
    return updated, reached


class GoalTracker:

    def __init__(
        self,
        state: FinanceState,
        registry: CelebrationRegistry,
        clock: Callable[[], dt.date] = dt.date.today,
    ):
        self._state = state
        self._registry = registry
        self._clock = clock

    @property
    def registry(self) -> CelebrationRegistry:
        return self._registry

    def get_goal(self, goal_id: UUID) -> Optional[FinancialGoal]:
        return find_by_id(self._state.data.goals, goal_id)

    def add_goal(
        self,
        title: str,
        target_amount: object,
        current_amount: object = 0,
        **fields: Any,
    ) -> FinancialGoal:
        """
        Create a goal.

        A non-zero starting amount is recorded as the first contribution.
        A goal created already at or past its target starts COMPLETED and is
        registered as celebrated without raising a signal.
        """
        target = require_positive_amount(target_amount)
        initial = require_non_negative_amount(current_amount)
        data = self._state.data

        contributions = []
        if initial > 0:
            contributions.append(GoalContribution(
                amount=initial,
                date=self._clock(),
                notes="Initial amount",
            ))

        goal = build(FinancialGoal, "goal", {
            "currency": data.settings.default_currency,
            **fields,
            "title": title,
            "target_amount": target,
            "current_amount": initial,
            "contributions": contributions,
            "status": GoalStatus.COMPLETED if initial >= target else GoalStatus.ACTIVE,
        })
        milestones, _ = _mark_milestones(goal.milestones, initial)
        goal = goal.model_copy(update={"milestones": milestones})

        self._state.data = data.model_copy(update={"goals": [*data.goals, goal]})
        if goal.status == GoalStatus.COMPLETED:
            self._registry.mark(goal.id)
        return goal

    def update_goal(self, goal_id: UUID, **changes: Any) -> FinancialGoal:
        """
        Edit goal details.

        Money only moves through add_contribution / add_withdrawal, so
        current_amount, contributions and status cannot be set here.
        """
        data = self._state.data
        goal = get_or_raise(data.goals, goal_id, "goal")
        if "target_amount" in changes:
            changes["target_amount"] = require_positive_amount(changes["target_amount"])

        updated = revise(goal, changes, "goal", protected=PROTECTED_FIELDS)
        if updated.status != GoalStatus.COMPLETED and updated.current_amount >= updated.target_amount:
            updated = updated.model_copy(update={"status": GoalStatus.COMPLETED})
            self._registry.mark(goal.id)
        self._state.data = data.model_copy(update={"goals": replace_by_id(data.goals, updated)})
        return updated

    def delete_goal(self, goal_id: UUID) -> FinancialGoal:
        data = self._state.data
        goal = get_or_raise(data.goals, goal_id, "goal")
        self._state.data = data.model_copy(update={"goals": remove_by_id(data.goals, goal_id)})
        self._registry.forget(goal_id)
        return goal

    def add_contribution(
        self,
        goal_id: UUID,
        amount: object,
        notes: Optional[str] = None,
        date: Optional[dt.date] = None,
    ) -> ContributionResult:
        value = require_positive_amount(amount)
        goal = get_or_raise(self._state.data.goals, goal_id, "goal")
        return self._apply(goal, value, notes, date)

    def add_withdrawal(
        self,
        goal_id: UUID,
        amount: object,
        reason: Optional[str] = None,
        date: Optional[dt.date] = None,
    ) -> ContributionResult:
        """Take money out of a goal. Cannot take more than it holds."""
        value = require_positive_amount(amount)
        goal = get_or_raise(self._state.data.goals, goal_id, "goal")
        if value > goal.current_amount:
            raise InsufficientGoalBalanceError(goal_id, value, goal.current_amount)
        return self._apply(goal, -value, reason or "Withdrawal", date)

    def _apply(
        self,
        goal: FinancialGoal,
        signed_amount: Decimal,
        notes: Optional[str],
        date: Optional[dt.date],
    ) -> ContributionResult:
        previous = goal.current_amount
        current = previous + signed_amount
        contribution = GoalContribution(
            amount=signed_amount,
            date=date or self._clock(),
            notes=notes,
        )

        completed = goal.status != GoalStatus.COMPLETED and current >= goal.target_amount
        milestones, reached = _mark_milestones(goal.milestones, current)
        updated = goal.model_copy(update={
            "current_amount": current,
            "contributions": [*goal.contributions, contribution],
            "milestones": milestones,
            "status": GoalStatus.COMPLETED if completed else goal.status,
            "updated_at": utc_now(),
        })

        data = self._state.data
        self._state.data = data.model_copy(update={"goals": replace_by_id(data.goals, updated)})

        signal = completed and self._registry.mark(goal.id)
        return ContributionResult(
            goal=updated,
            contribution=contribution,
            completion_signal=signal,
            milestones_reached=reached,
        )

    def progress(self, goal_id: UUID) -> float:
        """Percent of target reached, clamped to 0-100."""
        return get_or_raise(self._state.data.goals, goal_id, "goal").progress_percent

    def active_goals(self) -> list[FinancialGoal]:
        return [g for g in self._state.data.goals if g.status == GoalStatus.ACTIVE]
