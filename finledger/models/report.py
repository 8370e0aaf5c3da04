"""
Report Models

Read-only aggregates for dashboards.
"""

import datetime as dt
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class MonthlyStats(BaseModel):
    """Headline numbers for one month."""

    month: str
    total_income: Decimal = Decimal("0")
    total_expenses: Decimal = Decimal("0")
    net_balance: Decimal = Decimal("0")
    savings_rate: float = Field(
        default=0.0,
        description="Net balance as a percentage of income"
    )
    income_vs_last_month: float = Field(
        default=0.0,
        description="Percent change against the previous month"
    )
    expenses_vs_last_month: float = 0.0

    active_installments: int = 0
    installment_debt: Decimal = Decimal("0")
    average_goal_progress: float = 0.0

    active_alerts: int = 0
    critical_alerts: int = 0

    top_category_id: Optional[UUID] = None
    top_category_name: str = "None"
    top_category_amount: Decimal = Decimal("0")


class CategorySpending(BaseModel):
    category_id: UUID
    category_name: str
    category_icon: str
    category_color: str
    spent: Decimal = Decimal("0")
    budget: Decimal = Decimal("0")
    percentage: float = 0.0
    is_over_budget: bool = False


class DailySpending(BaseModel):
    date: dt.date
    amount: Decimal = Decimal("0")
    transactions: int = 0
