"""
Budget Models

A BudgetPlan is what gets persisted: the planned amount per category for a
month. A BudgetOverview is what gets read: plan plus live spend.

DESIGN DECISION: spent is never stored. It is always recomputed from the
journal, so an edited or deleted expense is reflected immediately.
"""

import datetime as dt
from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from finledger.models.base import utc_now


MONTH_PATTERN = r"^\d{4}-(0[1-9]|1[0-2])$"


class CategoryPlan(BaseModel):
    """Planned amount for one category. The only persisted budget input."""

    category_id: UUID
    planned: Decimal = Field(default=Decimal("0"), ge=0)


class BudgetPlan(BaseModel):
    """A saved budget for one month."""

    id: UUID = Field(default_factory=uuid4)
    month: str = Field(
        ...,
        pattern=MONTH_PATTERN,
        description="Budget month, YYYY-MM"
    )
    category_plans: list[CategoryPlan] = Field(default_factory=list)
    savings_goal: Decimal = Field(default=Decimal("0"), ge=0)
    notes: Optional[str] = Field(default=None, max_length=1000)
    created_at: dt.datetime = Field(default_factory=utc_now)
    updated_at: dt.datetime = Field(default_factory=utc_now)

    def planned_for(self, category_id: UUID) -> Optional[Decimal]:
        for plan in self.category_plans:
            if plan.category_id == category_id:
                return plan.planned
        return None


class CategoryBudget(BaseModel):
    """Planned versus spent for one category in one month."""

    category_id: UUID
    planned: Decimal = Field(default=Decimal("0"), ge=0)
    spent: Decimal = Field(default=Decimal("0"), ge=0)

    @property
    def remaining(self) -> Decimal:
        return self.planned - self.spent

    @property
    def is_over_budget(self) -> bool:
        return self.planned > 0 and self.spent > self.planned

    @property
    def percent_used(self) -> float:
        if self.planned <= 0:
            return 0.0
        return float(self.spent / self.planned) * 100

    @property
    def is_empty(self) -> bool:
        return self.planned == 0 and self.spent == 0


class BudgetOverview(BaseModel):
    """
    Budget for a month as seen by a reader.

    is_virtual is True when no plan was saved for the month and the overview
    was synthesized from category defaults. Virtual overviews are never
    persisted by reading them.
    """

    id: str = Field(
        ...,
        description="Plan id, or 'virtual_<month>' for synthesized overviews"
    )
    month: str = Field(..., pattern=MONTH_PATTERN)
    total_planned_expenses: Decimal = Decimal("0")
    total_actual_expenses: Decimal = Decimal("0")
    total_actual_income: Decimal = Decimal("0")
    savings_goal: Decimal = Decimal("0")
    category_budgets: list[CategoryBudget] = Field(default_factory=list)
    is_virtual: bool = False

    @property
    def actual_savings(self) -> Decimal:
        return self.total_actual_income - self.total_actual_expenses

    @property
    def visible_category_budgets(self) -> list[CategoryBudget]:
        """Categories worth displaying: anything planned or spent."""
        return [cb for cb in self.category_budgets if not cb.is_empty]

    @property
    def over_budget_categories(self) -> list[CategoryBudget]:
        return [cb for cb in self.category_budgets if cb.is_over_budget]
