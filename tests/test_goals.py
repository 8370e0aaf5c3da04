"""
Tests for savings goals and the one-time completion signal.
"""

from decimal import Decimal
from uuid import uuid4

import pytest

from finledger.errors import (
    EntityNotFoundError,
    InsufficientGoalBalanceError,
    InvalidAmountError,
    ProtectedFieldError,
)
from finledger.models.audit import AuditEventType
from finledger.models.goal import FinancialGoal, GoalStatus
from finledger.models.snapshot import default_finance_data
from finledger.services.storage import InMemoryFinanceStorage


class TestGoalLifecycle:
    """Tests for creating, editing and deleting goals."""

    def test_add_goal(self, engine):
        """Test a new goal starts active with no contributions."""
        goal = engine.add_goal("Laptop", 1000)

        assert goal.status == GoalStatus.ACTIVE
        assert goal.current_amount == Decimal("0")
        assert goal.contributions == []
        assert engine.goal_progress(goal.id) == 0.0

    def test_initial_amount_recorded_as_contribution(self, engine, today):
        """Test a starting amount keeps the sub-ledger in sync."""
        goal = engine.add_goal("Car", 5000, current_amount=1200)

        assert goal.current_amount == Decimal("1200")
        assert len(goal.contributions) == 1
        assert goal.contributions[0].notes == "Initial amount"
        assert goal.contributions[0].date == today
        assert goal.contributions_total == goal.current_amount

    def test_goal_created_at_target_completes_silently(self, engine):
        """Test a goal born complete is registered without a signal."""
        goal = engine.add_goal("Done already", 100, current_amount=150)

        assert goal.status == GoalStatus.COMPLETED
        assert goal.id in engine.celebrations

        result = engine.add_contribution(goal.id, 10)
        assert result.completion_signal is False

    def test_target_must_be_positive(self, engine):
        """Test zero targets are refused."""
        with pytest.raises(InvalidAmountError):
            engine.add_goal("Nothing", 0)

    def test_money_fields_are_protected(self, engine):
        """Test current_amount can only change through contributions."""
        goal = engine.add_goal("Laptop", 1000)

        with pytest.raises(ProtectedFieldError):
            engine.update_goal(goal.id, current_amount=500)
        with pytest.raises(ProtectedFieldError):
            engine.update_goal(goal.id, status=GoalStatus.COMPLETED)

    def test_update_goal_details(self, engine):
        """Test title and target can be edited."""
        goal = engine.add_goal("Laptop", 1000)
        updated = engine.update_goal(goal.id, title="Gaming laptop", target_amount="1500")

        assert updated.title == "Gaming laptop"
        assert updated.target_amount == Decimal("1500")

    def test_delete_goal_forgets_celebration(self, engine):
        """Test a deleted goal's id leaves the registry."""
        goal = engine.add_goal("Trip", 100)
        engine.add_contribution(goal.id, 100)
        assert goal.id in engine.celebrations

        engine.delete_goal(goal.id)

        assert engine.get_goal(goal.id) is None
        assert goal.id not in engine.celebrations


class TestContributions:
    """Tests for contributions, withdrawals and the completion signal."""

    def test_crossing_target_signals_once(self, engine):
        """Test 950 + 100 on a 1000 goal completes it with one signal."""
        goal = engine.add_goal("Laptop", 1000, current_amount=950)

        result = engine.add_contribution(goal.id, 100)

        assert result.completion_signal is True
        assert result.goal.status == GoalStatus.COMPLETED
        assert result.goal.current_amount == Decimal("1050")
        assert engine.goal_progress(goal.id) == 100.0

        again = engine.add_contribution(goal.id, 10)
        assert again.completion_signal is False

    def test_signal_not_repeated_after_dropping_below_target(self, engine):
        """Test withdraw then re-cross does not celebrate twice."""
        goal = engine.add_goal("Laptop", 1000, current_amount=990)
        first = engine.add_contribution(goal.id, 10)
        engine.add_withdrawal(goal.id, 500)

        second = engine.add_contribution(goal.id, 500)

        assert first.completion_signal is True
        assert second.completion_signal is False

    def test_withdrawal_keeps_completed_status(self, engine):
        """Test completion never reverses."""
        goal = engine.add_goal("Laptop", 100)
        engine.add_contribution(goal.id, 100)

        result = engine.add_withdrawal(goal.id, 60, reason="Repairs")

        assert result.goal.status == GoalStatus.COMPLETED
        assert result.goal.current_amount == Decimal("40")
        assert result.contribution.amount == Decimal("-60")
        assert result.contribution.notes == "Repairs"

    def test_contribute_then_withdraw_restores_amount(self, engine):
        """Test a contribution and equal withdrawal cancel out."""
        goal = engine.add_goal("Fund", 1000, current_amount=200)

        engine.add_contribution(goal.id, "75.25")
        result = engine.add_withdrawal(goal.id, "75.25")

        assert result.goal.current_amount == Decimal("200")
        assert result.goal.contributions_total == Decimal("200")
        assert len(result.goal.contributions) == 3

    def test_withdrawal_beyond_balance_rejected(self, engine):
        """Test a goal cannot go negative and is left untouched."""
        goal = engine.add_goal("Fund", 1000, current_amount=50)

        with pytest.raises(InsufficientGoalBalanceError):
            engine.add_withdrawal(goal.id, 51)

        assert engine.get_goal(goal.id) == goal

    def test_default_withdrawal_note(self, engine):
        """Test withdrawals without a reason are labelled."""
        goal = engine.add_goal("Fund", 1000, current_amount=50)
        result = engine.add_withdrawal(goal.id, 5)
        assert result.contribution.notes == "Withdrawal"

    def test_milestones_reached(self, engine):
        """Test crossing a milestone reports it once."""
        goal = engine.add_goal(
            "House", 10000,
            milestones=[
                {"title": "Quarter", "target_amount": 2500},
                {"title": "Half", "target_amount": 5000},
            ],
        )

        result = engine.add_contribution(goal.id, 3000)

        assert [m.title for m in result.milestones_reached] == ["Quarter"]
        again = engine.add_contribution(goal.id, 100)
        assert again.milestones_reached == []

    def test_contribution_to_unknown_goal(self, engine):
        """Test contributing to a missing goal raises EntityNotFoundError."""
        with pytest.raises(EntityNotFoundError):
            engine.add_contribution(uuid4(), 10)

    def test_completion_is_audited(self, engine, audit_storage):
        """Test the first crossing writes a GOAL_COMPLETED event."""
        goal = engine.add_goal("Laptop", 100)
        engine.add_contribution(goal.id, 100)
        engine.add_contribution(goal.id, 100)

        completed = [
            e for e in audit_storage.events
            if e.event_type == AuditEventType.GOAL_COMPLETED
        ]
        assert len(completed) == 1
        assert completed[0].entity_id == goal.id

    def test_lowering_target_below_saved_amount_completes(self, engine, audit_storage):
        """Test a target edited down to the saved amount completes the goal once."""
        goal = engine.add_goal("Bike", 1000, current_amount=500)

        updated = engine.update_goal(goal.id, target_amount=400)
        result = engine.add_contribution(goal.id, 50)

        assert updated.status == GoalStatus.COMPLETED
        assert result.goal.status == GoalStatus.COMPLETED
        assert result.goal.current_amount == Decimal("550")
        assert result.completion_signal is False
        assert goal.id in engine.celebrations
        completed = [
            e for e in audit_storage.events
            if e.event_type == AuditEventType.GOAL_COMPLETED
        ]
        assert len(completed) == 1

    def test_active_goal_past_target_completes_on_next_contribution(self, make_engine):
        """Test an ACTIVE goal already past its target completes on any contribution."""
        goal = FinancialGoal(
            title="Bike",
            target_amount=Decimal("400"),
            current_amount=Decimal("500"),
            status=GoalStatus.ACTIVE,
        )
        engine = make_engine(InMemoryFinanceStorage(
            default_finance_data().model_copy(update={"goals": [goal]})
        ))

        result = engine.add_contribution(goal.id, 50)

        assert result.goal.status == GoalStatus.COMPLETED
        assert result.completion_signal is True

    def test_registry_survives_restart(self, make_engine, storage, celebration_storage):
        """Test a goal celebrated in one session is not celebrated again."""
        first = make_engine(storage)
        goal = first.add_goal("Laptop", 100, current_amount=90)
        first.add_contribution(goal.id, 10)
        first.add_withdrawal(goal.id, 50)

        second = make_engine(storage)
        result = second.add_contribution(goal.id, 50)

        assert goal.id in celebration_storage.load_celebrated()
        assert result.completion_signal is False
