"""
Tests for monthly budgets: virtual overviews, saved plans and month windows.
"""

from datetime import date
from decimal import Decimal

import pytest

from finledger.errors import EntityNotFoundError, InvalidAmountError, InvalidMonthError
from finledger.models.transaction import IncomeStatus


@pytest.fixture
def pets(engine):
    return engine.add_category("Pets", monthly_budget=200)


class TestBudgetOverview:
    """Tests for reading a month's budget."""

    def test_virtual_overview_uses_category_defaults(self, engine, cash, pets):
        """Test a month with no plan is synthesized and not saved."""
        engine.add_expense("Food", 50, pets.id, cash.id, date=date(2024, 3, 3))

        overview = engine.get_budget_overview("2024-03")

        assert overview.is_virtual
        assert overview.id == "virtual_2024-03"
        row = next(cb for cb in overview.category_budgets if cb.category_id == pets.id)
        assert row.planned == Decimal("200")
        assert row.spent == Decimal("50")
        assert overview.total_actual_expenses == Decimal("50")
        assert engine.data.budgets == []

    def test_every_category_is_listed(self, engine):
        """Test the overview covers all expense categories."""
        overview = engine.get_budget_overview("2024-03")
        assert len(overview.category_budgets) == len(engine.data.categories)
        assert overview.visible_category_budgets == []

    def test_only_received_income_counts(self, engine, cash, salary):
        """Test pending income stays out of the month's income."""
        engine.add_income("Salary", 1000, salary.id, cash.id, date=date(2024, 3, 1))
        engine.add_income(
            "Invoice", 400, salary.id, cash.id,
            date=date(2024, 3, 2), status=IncomeStatus.PENDING,
        )

        overview = engine.get_budget_overview("2024-03")

        assert overview.total_actual_income == Decimal("1000")

    def test_entries_outside_month_ignored(self, engine, cash, groceries):
        """Test expenses are bucketed by month."""
        engine.add_expense("Feb", 10, groceries.id, cash.id, date=date(2024, 2, 29))
        engine.add_expense("Apr", 10, groceries.id, cash.id, date=date(2024, 4, 1))

        assert engine.get_budget_overview("2024-03").total_actual_expenses == Decimal("0")

    def test_custom_month_start_day(self, engine, cash, groceries):
        """Test a month starting on the 25th spans into the next month."""
        engine.update_finance_settings(month_start_day=25)
        engine.add_expense("In", 10, groceries.id, cash.id, date=date(2024, 4, 24))
        engine.add_expense("Out", 10, groceries.id, cash.id, date=date(2024, 3, 24))

        overview = engine.get_budget_overview("2024-03")

        assert overview.total_actual_expenses == Decimal("10")

    @pytest.mark.parametrize("month", ["2024-13", "2024-3", "March", ""])
    def test_invalid_month_rejected(self, engine, month):
        """Test month strings must be YYYY-MM."""
        with pytest.raises(InvalidMonthError):
            engine.get_budget_overview(month)


class TestBudgetPlans:
    """Tests for saving, editing and deleting plans."""

    def test_create_budget_seeds_from_overview(self, engine, pets):
        """Test a new plan starts from the virtual planned values."""
        plan = engine.create_budget("2024-03", savings_goal=500)

        assert plan.planned_for(pets.id) == Decimal("200")
        assert plan.savings_goal == Decimal("500")

        overview = engine.get_budget_overview("2024-03")
        assert not overview.is_virtual
        assert overview.id == str(plan.id)

    def test_create_budget_is_idempotent(self, engine):
        """Test creating the same month twice returns the same plan."""
        first = engine.create_budget("2024-03")
        second = engine.create_budget("2024-03")

        assert first.id == second.id
        assert len(engine.data.budgets) == 1

    def test_update_budget_merges_planned_values(self, engine, pets, groceries):
        """Test only the categories named are overwritten."""
        plan = engine.create_budget("2024-03")

        updated = engine.update_budget(plan.id, {groceries.id: "750"}, savings_goal=100)

        assert updated.planned_for(groceries.id) == Decimal("750")
        assert updated.planned_for(pets.id) == Decimal("200")
        assert updated.savings_goal == Decimal("100")

    def test_update_budget_accepts_plan_list(self, engine, pets):
        """Test a list of {category_id, planned} items is accepted."""
        plan = engine.create_budget("2024-03")

        updated = engine.update_budget(plan.id, [{"category_id": str(pets.id), "planned": 50}])

        assert updated.planned_for(pets.id) == Decimal("50")

    def test_negative_planned_rejected(self, engine, pets):
        """Test planned amounts cannot be negative."""
        plan = engine.create_budget("2024-03")

        with pytest.raises(InvalidAmountError):
            engine.update_budget(plan.id, {pets.id: -1})

        assert engine.data.budgets[0].planned_for(pets.id) == Decimal("200")

    def test_delete_budget_returns_to_virtual(self, engine):
        """Test a deleted plan leaves a virtual overview behind."""
        plan = engine.create_budget("2024-03")
        engine.delete_budget(plan.id)

        assert engine.get_budget_overview("2024-03").is_virtual
        with pytest.raises(EntityNotFoundError):
            engine.delete_budget(plan.id)
