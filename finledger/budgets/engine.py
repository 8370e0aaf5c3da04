"""
Budget Engine

Monthly planned-versus-actual per expense category.

DESIGN DECISION: Only planned amounts are persisted (BudgetPlan). Spent
amounts are derived from the journal on every read, so an edited or deleted
expense shows up immediately and a plan can never disagree with the journal.

When no plan exists for a month, a *virtual* overview is synthesized from
each category's monthly_budget. Reading never creates a plan; only
create_budget does.
"""

from collections import defaultdict
from collections.abc import Iterable, Mapping
from decimal import Decimal
from typing import Any, Optional, Union
from uuid import UUID

from finledger.models.base import utc_now
from finledger.models.budget import BudgetOverview, BudgetPlan, CategoryBudget, CategoryPlan
from finledger.models.transaction import IncomeStatus
from finledger.schedule import month_window
from finledger.state import FinanceState, find_by_id, get_or_raise, remove_by_id, replace_by_id
from finledger.validation.rules import require_month, require_non_negative_amount


ZERO = Decimal("0")

PlanInput = Union[
    Mapping[UUID, object],
    Iterable[Union[CategoryPlan, CategoryBudget, Mapping[str, Any]]],
]


def _normalize_plans(category_budgets: PlanInput) -> dict[UUID, Decimal]:
    """Accept {category_id: planned} or a list of plan-like items."""
    if isinstance(category_budgets, Mapping):
        items = [(UUID(str(k)), v) for k, v in category_budgets.items()]
    else:
        items = []
        for item in category_budgets:
            if isinstance(item, Mapping):
                items.append((UUID(str(item["category_id"])), item.get("planned", 0)))
            else:
                items.append((item.category_id, item.planned))
    return {category_id: require_non_negative_amount(planned) for category_id, planned in items}


class BudgetEngine:

    def __init__(self, state: FinanceState):
        self._state = state

    def get_plan(self, month: str) -> Optional[BudgetPlan]:
        require_month(month)
        return next((b for b in self._state.data.budgets if b.month == month), None)

    def get_budget_overview(self, month: str) -> BudgetOverview:
        """
        Planned and spent per category for ``month`` (YYYY-MM).

        Planned comes from the saved plan, falling back to the category's
        monthly_budget, then 0. Income counts only once received.
        """
        require_month(month)
        data = self._state.data
        start, end = month_window(month, data.settings.month_start_day)

        spent_by_category: dict[UUID, Decimal] = defaultdict(lambda: ZERO)
        total_expenses = ZERO
        for expense in data.expenses:
            if start <= expense.date <= end:
                spent_by_category[expense.category_id] += expense.amount
                total_expenses += expense.amount

        total_income = sum(
            (i.amount for i in data.incomes
             if start <= i.date <= end and i.status == IncomeStatus.RECEIVED),
            ZERO,
        )

        plan = self.get_plan(month)
        category_budgets = []
        for category in data.categories:
            planned = plan.planned_for(category.id) if plan else None
            if planned is None:
                planned = category.monthly_budget or ZERO
            category_budgets.append(CategoryBudget(
                category_id=category.id,
                planned=planned,
                spent=spent_by_category.get(category.id, ZERO),
            ))

        return BudgetOverview(
            id=str(plan.id) if plan else f"virtual_{month}",
            month=month,
            total_planned_expenses=sum((cb.planned for cb in category_budgets), ZERO),
            total_actual_expenses=total_expenses,
            total_actual_income=total_income,
            savings_goal=plan.savings_goal if plan else ZERO,
            category_budgets=category_budgets,
            is_virtual=plan is None,
        )

    def create_budget(
        self,
        month: str,
        savings_goal: object = 0,
        notes: Optional[str] = None,
    ) -> BudgetPlan:
        """
        Save a plan for ``month``, seeded from the current overview.

        Idempotent: if the month already has a plan, it is returned as is.
        """
        existing = self.get_plan(month)
        if existing is not None:
            return existing

        goal = require_non_negative_amount(savings_goal)
        overview = self.get_budget_overview(month)
        plan = BudgetPlan(
            month=month,
            category_plans=[
                CategoryPlan(category_id=cb.category_id, planned=cb.planned)
                for cb in overview.category_budgets
            ],
            savings_goal=goal,
            notes=notes,
        )
        data = self._state.data
        self._state.data = data.model_copy(update={"budgets": [*data.budgets, plan]})
        return plan

    def update_budget(
        self,
        budget_id: UUID,
        category_budgets: Optional[PlanInput] = None,
        savings_goal: Optional[object] = None,
        notes: Optional[str] = None,
    ) -> BudgetPlan:
        """
        Overwrite planned amounts.

        Categories not mentioned keep their current planned value.
        """
        data = self._state.data
        plan = get_or_raise(data.budgets, budget_id, "budget")

        changes: dict[str, Any] = {"updated_at": utc_now()}
        if category_budgets is not None:
            new_values = _normalize_plans(category_budgets)
            merged = []
            for existing in plan.category_plans:
                planned = new_values.pop(existing.category_id, existing.planned)
                merged.append(CategoryPlan(category_id=existing.category_id, planned=planned))
            merged.extend(
                CategoryPlan(category_id=category_id, planned=planned)
                for category_id, planned in new_values.items()
            )
            changes["category_plans"] = merged
        if savings_goal is not None:
            changes["savings_goal"] = require_non_negative_amount(savings_goal)
        if notes is not None:
            changes["notes"] = notes

        updated = plan.model_copy(update=changes)
        self._state.data = data.model_copy(update={"budgets": replace_by_id(data.budgets, updated)})
        return updated

    def delete_budget(self, budget_id: UUID) -> BudgetPlan:
        """Drop a saved plan; the month goes back to a virtual overview."""
        data = self._state.data
        plan = get_or_raise(data.budgets, budget_id, "budget")
        self._state.data = data.model_copy(update={"budgets": remove_by_id(data.budgets, budget_id)})
        return plan

    def get_budget(self, budget_id: UUID) -> Optional[BudgetPlan]:
        return find_by_id(self._state.data.budgets, budget_id)
