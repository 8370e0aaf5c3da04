"""
Finance Document

FinanceData is the complete, serializable state of the ledger. It is what
storage backends persist, what export_data produces and what import_data
accepts. Any transport that round-trips its JSON form is lossless.
"""

import datetime as dt
from typing import Optional

from pydantic import BaseModel, Field

from finledger.models.account import Account, AccountType
from finledger.models.alert import FinancialAlert
from finledger.models.base import CURRENCY_PATTERN, DEFAULT_CURRENCY
from finledger.models.budget import BudgetPlan
from finledger.models.category import (
    ExpenseCategory,
    IncomeCategory,
    default_expense_categories,
    default_income_categories,
)
from finledger.models.goal import FinancialGoal
from finledger.models.installment import Installment
from finledger.models.transaction import AccountTransfer, Expense, Income


SCHEMA_VERSION = "2.0.0"


class FinanceSettings(BaseModel):
    """User-level finance preferences stored with the data."""

    default_currency: str = Field(default=DEFAULT_CURRENCY, pattern=CURRENCY_PATTERN)
    month_start_day: int = Field(
        default=1,
        ge=1,
        le=28,
        description="Day of month on which a budget month starts"
    )
    budget_warning_threshold: int = Field(
        default=80,
        ge=0,
        le=100,
        description="Percent of a category budget that triggers a warning"
    )
    enable_budget_alerts: bool = True
    installment_reminder_days: int = Field(
        default=3,
        ge=0,
        le=60,
        description="Days before a due date that an installment reminder is raised"
    )
    enable_installment_reminders: bool = True


class FinanceData(BaseModel):
    """The whole ledger as one document."""

    accounts: list[Account] = Field(default_factory=list)
    transfers: list[AccountTransfer] = Field(default_factory=list)
    incomes: list[Income] = Field(default_factory=list)
    expenses: list[Expense] = Field(default_factory=list)
    categories: list[ExpenseCategory] = Field(default_factory=list)
    income_categories: list[IncomeCategory] = Field(default_factory=list)
    installments: list[Installment] = Field(default_factory=list)
    budgets: list[BudgetPlan] = Field(default_factory=list)
    goals: list[FinancialGoal] = Field(default_factory=list)
    alerts: list[FinancialAlert] = Field(default_factory=list)
    settings: FinanceSettings = Field(default_factory=FinanceSettings)

    version: str = SCHEMA_VERSION
    exported_at: Optional[dt.datetime] = None


def default_finance_data(
    currency: str = DEFAULT_CURRENCY,
    month_start_day: int = 1,
) -> FinanceData:
    """
    A fresh ledger: default categories and a single default cash account.
    """
    main_cash = Account(
        name="Main Cash",
        type=AccountType.CASH,
        currency=currency,
        is_default=True,
        order=1,
    )
    return FinanceData(
        accounts=[main_cash],
        categories=default_expense_categories(),
        income_categories=default_income_categories(),
        settings=FinanceSettings(
            default_currency=currency,
            month_start_day=month_start_day,
        ),
    )
