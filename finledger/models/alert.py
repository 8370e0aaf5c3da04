"""
Alert Models

Alerts are short notices stored with the ledger: a category close to its
budget, an installment due in a few days. They are dismissed, not deleted,
so a dismissed alert is not raised again for the same period.
"""

import datetime as dt
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field

from finledger.models.base import utc_now


class AlertType(str, Enum):
    BUDGET_EXCEEDED = "budget-exceeded"
    BUDGET_WARNING = "budget-warning"
    INSTALLMENT_DUE = "installment-due"
    UNUSUAL_SPENDING = "unusual-spending"
    GOAL_PROGRESS = "goal-progress"
    GOAL_REACHED = "goal-reached"
    INCOME_RECEIVED = "income-received"
    BILL_REMINDER = "bill-reminder"
    LOW_BALANCE = "low-balance"


class AlertSeverity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"
    SUCCESS = "success"


class FinancialAlert(BaseModel):
    """One notice for the user."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    type: AlertType
    severity: AlertSeverity = AlertSeverity.INFO
    title: str = Field(..., min_length=1, max_length=200)
    message: str = Field(default="", max_length=1000)

    actionable: bool = False
    action_label: Optional[str] = Field(default=None, max_length=100)
    action_route: Optional[str] = Field(default=None, max_length=200)

    related_id: Optional[UUID] = Field(
        default=None,
        description="Entity the alert is about (category, installment, ...)"
    )
    related_type: Optional[str] = None

    dismissed: bool = False
    dismissed_at: Optional[dt.datetime] = None
    expires_on: Optional[dt.date] = Field(
        default=None,
        description="Last day the alert is relevant; cleared after it"
    )
    created_at: dt.datetime = Field(default_factory=utc_now)

    def is_expired(self, today: dt.date) -> bool:
        return self.expires_on is not None and self.expires_on < today
