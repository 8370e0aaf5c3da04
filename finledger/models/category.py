"""
Category Models

Expense and income categories. Default categories ship with every fresh
ledger; they can be edited but never deleted.
"""

import datetime as dt
from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field

from finledger.models.base import utc_now


class CategoryBase(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    name: str = Field(..., min_length=1, max_length=100)
    icon: str = Field(default="📦", max_length=10)
    color: str = Field(default="#64748b", max_length=20)
    order: int = Field(default=0, ge=0)
    is_default: bool = Field(
        default=False,
        description="System category: editable, never deletable"
    )
    is_active: bool = Field(
        default=True,
        description="False once archived because transactions still reference it"
    )
    created_at: dt.datetime = Field(default_factory=utc_now)


class ExpenseCategory(CategoryBase):
    """Expense category with an optional legacy monthly cap."""

    is_essential: bool = False
    monthly_budget: Optional[Decimal] = Field(
        default=None,
        ge=0,
        description="Default planned amount for virtual budgets"
    )


class IncomeCategory(CategoryBase):
    """Income category."""


# (name, icon, color, is_essential)
DEFAULT_EXPENSE_CATEGORIES: list[tuple[str, str, str, bool]] = [
    ("Rent/Mortgage", "🏠", "#3b82f6", True),
    ("Utilities", "⚡", "#eab308", True),
    ("Transportation", "🚗", "#8b5cf6", True),
    ("Groceries", "🛒", "#22c55e", True),
    ("Healthcare", "💊", "#ef4444", True),
    ("Insurance", "🛡️", "#0ea5e9", True),
    ("Dining Out", "🍔", "#f97316", False),
    ("Entertainment", "🎮", "#ec4899", False),
    ("Shopping", "🛍️", "#a855f7", False),
    ("Clothing", "👔", "#06b6d4", False),
    ("Education", "📚", "#14b8a6", False),
    ("Gifts", "🎁", "#f43f5e", False),
    ("Sports", "⚽", "#10b981", False),
    ("Travel", "✈️", "#6366f1", False),
    ("Subscriptions", "📱", "#8b5cf6", False),
    ("Personal Care", "💇", "#d946ef", False),
    ("Emergency", "🚨", "#dc2626", True),
    ("Other", "📦", "#64748b", False),
]

# (name, icon, color)
DEFAULT_INCOME_CATEGORIES: list[tuple[str, str, str]] = [
    ("Salary", "💼", "#3b82f6"),
    ("Freelance", "💻", "#8b5cf6"),
    ("Business", "🏢", "#14b8a6"),
    ("Investment", "📈", "#22c55e"),
    ("Bonus", "🎉", "#f59e0b"),
    ("Commission", "💰", "#10b981"),
    ("Gift", "🎁", "#ec4899"),
    ("Refund", "🔄", "#06b6d4"),
    ("Rental Income", "🏠", "#6366f1"),
    ("Other", "📦", "#64748b"),
]


def default_expense_categories() -> list[ExpenseCategory]:
    """Fresh default expense categories with new ids."""
    return [
        ExpenseCategory(
            name=name,
            icon=icon,
            color=color,
            is_essential=essential,
            is_default=True,
            order=position,
        )
        for position, (name, icon, color, essential)
        in enumerate(DEFAULT_EXPENSE_CATEGORIES, start=1)
    ]


def default_income_categories() -> list[IncomeCategory]:
    """Fresh default income categories with new ids."""
    return [
        IncomeCategory(
            name=name,
            icon=icon,
            color=color,
            is_default=True,
            order=position,
        )
        for position, (name, icon, color)
        in enumerate(DEFAULT_INCOME_CATEGORIES, start=1)
    ]
