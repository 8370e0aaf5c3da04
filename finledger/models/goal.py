"""
Savings Goal Models

A goal keeps a running total (current_amount) next to an append-only list of
contributions. Withdrawals are contributions with a negative amount.

DESIGN DECISION: current_amount is maintained incrementally rather than
summed at read time. Every change to it appends exactly one contribution,
so the two always agree and the contribution list is a full audit trail.
"""

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

from finledger.models.base import CURRENCY_PATTERN, DEFAULT_CURRENCY, utc_now


class GoalCategory(str, Enum):
    EMERGENCY_FUND = "emergency-fund"
    SAVINGS = "savings"
    INVESTMENT = "investment"
    PURCHASE = "purchase"
    TRAVEL = "travel"
    EDUCATION = "education"
    OTHER = "other"


class GoalPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class GoalStatus(str, Enum):
    """
    Goal lifecycle.

    ACTIVE -> COMPLETED happens once and never reverses, even if money is
    later withdrawn below the target.
    """
    ACTIVE = "active"
    COMPLETED = "completed"


class GoalContribution(BaseModel):
    """One signed adjustment to a goal. Never modified once appended."""

    id: UUID = Field(default_factory=uuid4)
    amount: Decimal = Field(
        ...,
        description="Positive for deposits, negative for withdrawals"
    )
    date: dt.date
    notes: Optional[str] = Field(default=None, max_length=500)
    created_at: dt.datetime = Field(default_factory=utc_now)

    @field_validator('amount')
    @classmethod
    def validate_non_zero(cls, v: Decimal) -> Decimal:
        if v == 0:
            raise ValueError("Contribution amount cannot be zero")
        return v

    @property
    def is_withdrawal(self) -> bool:
        return self.amount < 0


class GoalMilestone(BaseModel):
    """An intermediate target inside a goal."""

    id: UUID = Field(default_factory=uuid4)
    title: str = Field(..., min_length=1, max_length=200)
    target_amount: Decimal = Field(..., gt=0)
    reached: bool = False
    reached_at: Optional[dt.datetime] = None


class FinancialGoal(BaseModel):
    """A savings target with its contribution sub-ledger."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=1000)
    icon: Optional[str] = Field(default=None, max_length=10)
    color: Optional[str] = Field(default=None, max_length=20)

    target_amount: Decimal = Field(..., gt=0)
    current_amount: Decimal = Field(
        default=Decimal("0"),
        description="Running total of all contributions"
    )
    currency: str = Field(default=DEFAULT_CURRENCY, pattern=CURRENCY_PATTERN)

    category: GoalCategory = GoalCategory.SAVINGS
    priority: GoalPriority = GoalPriority.MEDIUM
    deadline: Optional[dt.date] = None
    monthly_contribution: Decimal = Field(default=Decimal("0"), ge=0)
    status: GoalStatus = GoalStatus.ACTIVE

    milestones: list[GoalMilestone] = Field(default_factory=list)
    contributions: list[GoalContribution] = Field(default_factory=list)

    created_at: dt.datetime = Field(default_factory=utc_now)
    updated_at: dt.datetime = Field(default_factory=utc_now)

    @property
    def progress_percent(self) -> float:
        """Progress toward the target, clamped to 0-100."""
        ratio = float(self.current_amount / self.target_amount) * 100
        return max(0.0, min(100.0, ratio))

    @property
    def remaining_amount(self) -> Decimal:
        return max(self.target_amount - self.current_amount, Decimal("0"))

    @property
    def contributions_total(self) -> Decimal:
        return sum((c.amount for c in self.contributions), Decimal("0"))


class ContributionResult(BaseModel):
    """
    Outcome of a contribution or withdrawal.

    completion_signal is True exactly once per goal: on the first upward
    crossing of the target. UI collaborators use it to celebrate.
    """

    goal: FinancialGoal
    contribution: GoalContribution
    completion_signal: bool = False
    milestones_reached: list[GoalMilestone] = Field(default_factory=list)
