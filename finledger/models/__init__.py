"""
Data Models Package

This package contains all Pydantic models used by finledger.
All data flowing through the engine must conform to these schemas.
"""

from finledger.models.account import Account, AccountType
from finledger.models.alert import AlertSeverity, AlertType, FinancialAlert
from finledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from finledger.models.base import Frequency, utc_now
from finledger.models.budget import (
    BudgetOverview,
    BudgetPlan,
    CategoryBudget,
    CategoryPlan,
)
from finledger.models.category import (
    ExpenseCategory,
    IncomeCategory,
    default_expense_categories,
    default_income_categories,
)
from finledger.models.goal import (
    ContributionResult,
    FinancialGoal,
    GoalCategory,
    GoalContribution,
    GoalMilestone,
    GoalPriority,
    GoalStatus,
)
from finledger.models.installment import (
    Installment,
    InstallmentPayment,
    InstallmentPaymentStatus,
    InstallmentStatus,
    PaymentResult,
)
from finledger.models.report import CategorySpending, DailySpending, MonthlyStats
from finledger.models.snapshot import (
    SCHEMA_VERSION,
    FinanceData,
    FinanceSettings,
    default_finance_data,
)
from finledger.models.transaction import (
    AccountTransfer,
    Expense,
    ExpenseFeedItem,
    ExpenseType,
    Income,
    IncomeFeedItem,
    IncomeStatus,
    PaymentMethod,
    TransactionFeedItem,
    TransferFeedItem,
)
from finledger.models.validation import ValidationIssue, ValidationResult

__all__ = [
    # Accounts
    "Account",
    "AccountType",
    # Alerts
    "AlertSeverity",
    "AlertType",
    "FinancialAlert",
    # Audit
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
    # Shared
    "Frequency",
    "utc_now",
    # Budgets
    "BudgetOverview",
    "BudgetPlan",
    "CategoryBudget",
    "CategoryPlan",
    # Categories
    "ExpenseCategory",
    "IncomeCategory",
    "default_expense_categories",
    "default_income_categories",
    # Goals
    "ContributionResult",
    "FinancialGoal",
    "GoalCategory",
    "GoalContribution",
    "GoalMilestone",
    "GoalPriority",
    "GoalStatus",
    # Installments
    "Installment",
    "InstallmentPayment",
    "InstallmentPaymentStatus",
    "InstallmentStatus",
    "PaymentResult",
    # Reports
    "CategorySpending",
    "DailySpending",
    "MonthlyStats",
    # Document
    "SCHEMA_VERSION",
    "FinanceData",
    "FinanceSettings",
    "default_finance_data",
    # Journal
    "AccountTransfer",
    "Expense",
    "ExpenseFeedItem",
    "ExpenseType",
    "Income",
    "IncomeFeedItem",
    "IncomeStatus",
    "PaymentMethod",
    "TransactionFeedItem",
    "TransferFeedItem",
    # Validation
    "ValidationIssue",
    "ValidationResult",
]
