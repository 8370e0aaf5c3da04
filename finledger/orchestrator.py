"""
Main Orchestrator for finledger

This module ties together all the components behind one facade,
FinanceEngine, and defines the bulk flows:
1. Export (ledger -> document)
2. Import (document -> validate -> replace ledger, all or nothing)
3. Reset (ledger -> defaults)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Every mutation is persisted right after it succeeds
- Every mutation is audited, and so is every rejected one
- A rejected operation leaves the ledger untouched

Presentation layers talk only to FinanceEngine.
"""

import datetime as dt
from decimal import Decimal
from typing import Any, Callable, Optional, TypeVar, Union
from uuid import UUID

from finledger.alerts import AlertMonitor
from finledger.audit import AuditLogger, configure_logging, create_correlation_id
from finledger.budgets import BudgetEngine
from finledger.config import Settings, get_settings
from finledger.errors import FinanceError, ImportMalformedError
from finledger.goals import CelebrationRegistry, GoalTracker
from finledger.installments import InstallmentScheduler
from finledger.ledger import AccountLedger, Catalog, RecurrenceProcessor, TransactionJournal
from finledger.models.account import Account, AccountType
from finledger.models.alert import AlertSeverity, AlertType, FinancialAlert
from finledger.models.audit import AuditEventType
from finledger.models.base import Frequency, utc_now
from finledger.models.budget import BudgetOverview, BudgetPlan
from finledger.models.category import ExpenseCategory, IncomeCategory
from finledger.models.goal import ContributionResult, FinancialGoal, GoalStatus
from finledger.models.installment import Installment, PaymentResult
from finledger.models.report import CategorySpending, DailySpending, MonthlyStats
from finledger.models.snapshot import FinanceData, FinanceSettings, default_finance_data
from finledger.models.transaction import (
    AccountTransfer,
    Expense,
    Income,
    PaymentMethod,
    TransactionFeedItem,
)
from finledger.models.validation import ValidationResult
from finledger.queries import ReportBuilder
from finledger.services.storage import (
    AuditStorageInterface,
    CelebrationStorageInterface,
    FinanceStorageInterface,
    InMemoryAuditStorage,
    InMemoryCelebrationStorage,
    InMemoryFinanceStorage,
    JsonCelebrationStorage,
    JsonFinanceStorage,
    JsonLinesAuditStorage,
    StorageError,
)
from finledger.state import FinanceState, revise
from finledger.validation import ImportValidator


T = TypeVar("T")


class FinanceEngine:
    """
    Facade over the ledger components.

    Flow of every command:
    1. Delegate to the owning component (which validates, then swaps state)
    2. On FinanceError: audit the rejection and re-raise
    3. On success: persist the document, then audit the change
    """

    def __init__(
        self,
        storage: Optional[FinanceStorageInterface] = None,
        celebration_storage: Optional[CelebrationStorageInterface] = None,
        audit_logger: Optional[AuditLogger] = None,
        clock: Callable[[], dt.date] = dt.date.today,
        settings: Optional[Settings] = None,
    ):
        self._settings = settings or get_settings()
        self._storage = storage or InMemoryFinanceStorage()
        self._audit = audit_logger or AuditLogger()
        self._clock = clock

        app = self._settings.app
        self._validator = ImportValidator(Decimal(str(app.max_transaction_amount)))

        data = self._storage.load()
        is_new = data is None
        if data is None:
            data = self._fresh_data()
        self._state = FinanceState(data)

        self._registry = CelebrationRegistry(celebration_storage)
        self._ledger = AccountLedger(self._state)
        self._journal = TransactionJournal(self._state, clock)
        self._catalog = Catalog(self._state)
        self._goals = GoalTracker(self._state, self._registry, clock)
        self._installments = InstallmentScheduler(self._state, clock)
        self._budgets = BudgetEngine(self._state)
        self._reports = ReportBuilder(self._state)
        self._recurrence = RecurrenceProcessor(self._state, clock)
        self._alerts = AlertMonitor(self._state, self._budgets, clock)

        if is_new:
            self._persist()

    def _fresh_data(self) -> FinanceData:
        app = self._settings.app
        return default_finance_data(app.default_currency, app.month_start_day)

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------

    @property
    def data(self) -> FinanceData:
        """The current document. Treat as read-only."""
        return self._state.data

    @property
    def celebrations(self) -> CelebrationRegistry:
        return self._registry

    @property
    def audit_logger(self) -> AuditLogger:
        return self._audit

    def _persist(self) -> None:
        try:
            self._storage.save(self._state.data)
        except StorageError as e:
            self._audit.log_save_failed(str(e))
            raise

    def _command(
        self,
        operation: str,
        action: Callable[[], T],
    ) -> T:
        try:
            result = action()
        except FinanceError as e:
            self._audit.log_rejected(operation, e)
            raise
        self._persist()
        return result

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    def balance_of(self, account_id: UUID) -> Decimal:
        return self._ledger.balance_of(account_id)

    def balances(self, active_only: bool = False) -> dict[UUID, Decimal]:
        return self._ledger.balances(active_only)

    def net_worth(self, active_only: bool = True, account_id: Optional[UUID] = None) -> Decimal:
        return self._ledger.net_worth(active_only=active_only, account_id=account_id)

    def add_account(
        self,
        name: str,
        type: AccountType = AccountType.CASH,
        initial_balance: object = 0,
        **fields: Any,
    ) -> Account:
        account = self._command(
            "add_account",
            lambda: self._catalog.add_account(name, type, initial_balance, **fields),
        )
        self._audit.log_entity(
            AuditEventType.ACCOUNT_CREATED, "account", account.id,
            f"Account created: {account.name}",
            {"initial_balance": str(account.initial_balance), "is_default": account.is_default},
        )
        return account

    def update_account(self, account_id: UUID, **changes: Any) -> Account:
        account = self._command(
            "update_account", lambda: self._catalog.update_account(account_id, **changes)
        )
        self._audit.log_entity(
            AuditEventType.ACCOUNT_UPDATED, "account", account.id,
            f"Account updated: {account.name}", {"fields": sorted(changes)},
        )
        return account

    def archive_account(self, account_id: UUID) -> Account:
        account = self._command(
            "archive_account", lambda: self._catalog.archive_account(account_id)
        )
        self._audit.log_entity(
            AuditEventType.ACCOUNT_ARCHIVED, "account", account.id,
            f"Account archived: {account.name}",
        )
        return account

    def set_default_account(self, account_id: UUID) -> Account:
        account = self._command(
            "set_default_account", lambda: self._catalog.set_default_account(account_id)
        )
        self._audit.log_entity(
            AuditEventType.ACCOUNT_UPDATED, "account", account.id,
            f"Default account set: {account.name}", {"fields": ["is_default"]},
        )
        return account

    def delete_account(self, account_id: UUID) -> Account:
        account = self._command(
            "delete_account", lambda: self._catalog.delete_account(account_id)
        )
        self._audit.log_entity(
            AuditEventType.ACCOUNT_DELETED, "account", account.id,
            f"Account deleted: {account.name}",
        )
        return account

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    def add_category(self, name: str, **fields: Any) -> ExpenseCategory:
        category = self._command(
            "add_category", lambda: self._catalog.add_category(name, **fields)
        )
        self._audit.log_entity(
            AuditEventType.CATEGORY_CREATED, "category", category.id,
            f"Expense category created: {category.name}",
        )
        return category

    def update_category(self, category_id: UUID, **changes: Any) -> ExpenseCategory:
        category = self._command(
            "update_category", lambda: self._catalog.update_category(category_id, **changes)
        )
        self._audit.log_entity(
            AuditEventType.CATEGORY_UPDATED, "category", category.id,
            f"Expense category updated: {category.name}", {"fields": sorted(changes)},
        )
        return category

    def archive_category(self, category_id: UUID) -> ExpenseCategory:
        category = self._command(
            "archive_category", lambda: self._catalog.archive_category(category_id)
        )
        self._audit.log_entity(
            AuditEventType.CATEGORY_ARCHIVED, "category", category.id,
            f"Expense category archived: {category.name}",
        )
        return category

    def delete_category(self, category_id: UUID) -> ExpenseCategory:
        category = self._command(
            "delete_category", lambda: self._catalog.delete_category(category_id)
        )
        self._audit.log_entity(
            AuditEventType.CATEGORY_DELETED, "category", category.id,
            f"Expense category deleted: {category.name}",
        )
        return category

    def add_income_category(self, name: str, **fields: Any) -> IncomeCategory:
        category = self._command(
            "add_income_category", lambda: self._catalog.add_income_category(name, **fields)
        )
        self._audit.log_entity(
            AuditEventType.CATEGORY_CREATED, "income_category", category.id,
            f"Income category created: {category.name}",
        )
        return category

    def update_income_category(self, category_id: UUID, **changes: Any) -> IncomeCategory:
        category = self._command(
            "update_income_category",
            lambda: self._catalog.update_income_category(category_id, **changes),
        )
        self._audit.log_entity(
            AuditEventType.CATEGORY_UPDATED, "income_category", category.id,
            f"Income category updated: {category.name}", {"fields": sorted(changes)},
        )
        return category

    def archive_income_category(self, category_id: UUID) -> IncomeCategory:
        category = self._command(
            "archive_income_category",
            lambda: self._catalog.archive_income_category(category_id),
        )
        self._audit.log_entity(
            AuditEventType.CATEGORY_ARCHIVED, "income_category", category.id,
            f"Income category archived: {category.name}",
        )
        return category

    def delete_income_category(self, category_id: UUID) -> IncomeCategory:
        category = self._command(
            "delete_income_category",
            lambda: self._catalog.delete_income_category(category_id),
        )
        self._audit.log_entity(
            AuditEventType.CATEGORY_DELETED, "income_category", category.id,
            f"Income category deleted: {category.name}",
        )
        return category

    # ------------------------------------------------------------------
    # Journal
    # ------------------------------------------------------------------

    def add_income(
        self,
        title: str,
        amount: object,
        category_id: UUID,
        account_id: UUID,
        date: Optional[dt.date] = None,
        **fields: Any,
    ) -> Income:
        income = self._command(
            "add_income",
            lambda: self._journal.add_income(title, amount, category_id, account_id, date, **fields),
        )
        self._audit.log_entity(
            AuditEventType.INCOME_RECORDED, "income", income.id,
            f"Income recorded: {income.title}",
            {"amount": str(income.amount), "account_id": str(income.account_id)},
        )
        return income

    def update_income(self, income_id: UUID, **changes: Any) -> Income:
        income = self._command(
            "update_income", lambda: self._journal.update_income(income_id, **changes)
        )
        self._audit.log_entity(
            AuditEventType.INCOME_UPDATED, "income", income.id,
            f"Income updated: {income.title}", {"fields": sorted(changes)},
        )
        return income

    def delete_income(self, income_id: UUID) -> Income:
        income = self._command(
            "delete_income", lambda: self._journal.delete_income(income_id)
        )
        self._audit.log_entity(
            AuditEventType.INCOME_DELETED, "income", income.id,
            f"Income deleted: {income.title}", {"amount": str(income.amount)},
        )
        return income

    def get_income(self, income_id: UUID) -> Optional[Income]:
        return self._journal.get_income(income_id)

    def add_expense(
        self,
        title: str,
        amount: object,
        category_id: UUID,
        account_id: UUID,
        date: Optional[dt.date] = None,
        **fields: Any,
    ) -> Expense:
        expense = self._command(
            "add_expense",
            lambda: self._journal.add_expense(title, amount, category_id, account_id, date, **fields),
        )
        self._audit.log_entity(
            AuditEventType.EXPENSE_RECORDED, "expense", expense.id,
            f"Expense recorded: {expense.title}",
            {"amount": str(expense.amount), "account_id": str(expense.account_id)},
        )
        return expense

    def update_expense(self, expense_id: UUID, **changes: Any) -> Expense:
        expense = self._command(
            "update_expense", lambda: self._journal.update_expense(expense_id, **changes)
        )
        self._audit.log_entity(
            AuditEventType.EXPENSE_UPDATED, "expense", expense.id,
            f"Expense updated: {expense.title}", {"fields": sorted(changes)},
        )
        return expense

    def delete_expense(self, expense_id: UUID) -> Expense:
        expense = self._command(
            "delete_expense", lambda: self._journal.delete_expense(expense_id)
        )
        self._audit.log_entity(
            AuditEventType.EXPENSE_DELETED, "expense", expense.id,
            f"Expense deleted: {expense.title}", {"amount": str(expense.amount)},
        )
        return expense

    def get_expense(self, expense_id: UUID) -> Optional[Expense]:
        return self._journal.get_expense(expense_id)

    def add_transfer(
        self,
        from_account_id: UUID,
        to_account_id: UUID,
        amount: object,
        date: Optional[dt.date] = None,
        notes: Optional[str] = None,
    ) -> AccountTransfer:
        transfer = self._command(
            "add_transfer",
            lambda: self._journal.add_transfer(from_account_id, to_account_id, amount, date, notes),
        )
        self._audit.log_entity(
            AuditEventType.TRANSFER_RECORDED, "transfer", transfer.id,
            "Transfer recorded",
            {
                "amount": str(transfer.amount),
                "from_account_id": str(transfer.from_account_id),
                "to_account_id": str(transfer.to_account_id),
            },
        )
        return transfer

    def delete_transfer(self, transfer_id: UUID) -> AccountTransfer:
        transfer = self._command(
            "delete_transfer", lambda: self._journal.delete_transfer(transfer_id)
        )
        self._audit.log_entity(
            AuditEventType.TRANSFER_DELETED, "transfer", transfer.id,
            "Transfer deleted", {"amount": str(transfer.amount)},
        )
        return transfer

    def all_transactions(self, limit: Optional[int] = None) -> list[TransactionFeedItem]:
        return self._journal.all_transactions(limit)

    def process_recurring(self, today: Optional[dt.date] = None) -> list[Union[Income, Expense]]:
        """Materialize due recurring incomes/expenses."""
        generated = self._command(
            "process_recurring", lambda: self._recurrence.process(today)
        )
        if generated:
            self._audit.log_entity(
                AuditEventType.RECURRING_GENERATED, "journal", None,
                f"Generated {len(generated)} recurring entries",
                {"ids": [str(r.id) for r in generated]},
            )
        return generated

    # ------------------------------------------------------------------
    # Goals
    # ------------------------------------------------------------------

    def add_goal(
        self,
        title: str,
        target_amount: object,
        current_amount: object = 0,
        **fields: Any,
    ) -> FinancialGoal:
        goal = self._command(
            "add_goal",
            lambda: self._goals.add_goal(title, target_amount, current_amount, **fields),
        )
        self._audit.log_entity(
            AuditEventType.GOAL_CREATED, "goal", goal.id,
            f"Goal created: {goal.title}",
            {"target_amount": str(goal.target_amount), "current_amount": str(goal.current_amount)},
        )
        return goal

    def update_goal(self, goal_id: UUID, **changes: Any) -> FinancialGoal:
        before = self._goals.get_goal(goal_id)
        goal = self._command("update_goal", lambda: self._goals.update_goal(goal_id, **changes))
        self._audit.log_entity(
            AuditEventType.GOAL_UPDATED, "goal", goal.id,
            f"Goal updated: {goal.title}", {"fields": sorted(changes)},
        )
        # lowering the target can complete a goal
        if (
            before is not None
            and before.status != GoalStatus.COMPLETED
            and goal.status == GoalStatus.COMPLETED
        ):
            self._audit.log_goal_completed(
                goal_id=goal.id,
                title=goal.title,
                current_amount=str(goal.current_amount),
                target_amount=str(goal.target_amount),
            )
        return goal

    def delete_goal(self, goal_id: UUID) -> FinancialGoal:
        goal = self._command("delete_goal", lambda: self._goals.delete_goal(goal_id))
        self._audit.log_entity(
            AuditEventType.GOAL_DELETED, "goal", goal.id, f"Goal deleted: {goal.title}",
        )
        return goal

    def get_goal(self, goal_id: UUID) -> Optional[FinancialGoal]:
        return self._goals.get_goal(goal_id)

    def add_contribution(
        self,
        goal_id: UUID,
        amount: object,
        notes: Optional[str] = None,
        date: Optional[dt.date] = None,
    ) -> ContributionResult:
        result = self._command(
            "add_contribution",
            lambda: self._goals.add_contribution(goal_id, amount, notes, date),
        )
        self._log_contribution(AuditEventType.GOAL_CONTRIBUTION, result)
        return result

    def add_withdrawal(
        self,
        goal_id: UUID,
        amount: object,
        reason: Optional[str] = None,
        date: Optional[dt.date] = None,
    ) -> ContributionResult:
        result = self._command(
            "add_withdrawal",
            lambda: self._goals.add_withdrawal(goal_id, amount, reason, date),
        )
        self._log_contribution(AuditEventType.GOAL_WITHDRAWAL, result)
        return result

    def _log_contribution(self, event_type: AuditEventType, result: ContributionResult) -> None:
        goal = result.goal
        self._audit.log_entity(
            event_type, "goal", goal.id,
            f"Goal {'withdrawal' if result.contribution.is_withdrawal else 'contribution'}: {goal.title}",
            {"amount": str(result.contribution.amount), "current_amount": str(goal.current_amount)},
        )
        if result.completion_signal:
            self._audit.log_goal_completed(
                goal_id=goal.id,
                title=goal.title,
                current_amount=str(goal.current_amount),
                target_amount=str(goal.target_amount),
            )

    def goal_progress(self, goal_id: UUID) -> float:
        return self._goals.progress(goal_id)

    # ------------------------------------------------------------------
    # Installments
    # ------------------------------------------------------------------

    def add_installment(
        self,
        title: str,
        total_amount: object,
        installment_amount: object,
        total_installments: int,
        start_date: Optional[dt.date] = None,
        frequency: Frequency = Frequency.MONTHLY,
        **fields: Any,
    ) -> Installment:
        installment = self._command(
            "add_installment",
            lambda: self._installments.add_installment(
                title, total_amount, installment_amount, total_installments,
                start_date, frequency, **fields,
            ),
        )
        self._audit.log_entity(
            AuditEventType.INSTALLMENT_CREATED, "installment", installment.id,
            f"Installment created: {installment.title}",
            {"total_amount": str(installment.total_amount)},
        )
        return installment

    def update_installment(self, installment_id: UUID, **changes: Any) -> Installment:
        installment = self._command(
            "update_installment",
            lambda: self._installments.update_installment(installment_id, **changes),
        )
        self._audit.log_entity(
            AuditEventType.INSTALLMENT_UPDATED, "installment", installment.id,
            f"Installment updated: {installment.title}", {"fields": sorted(changes)},
        )
        return installment

    def delete_installment(self, installment_id: UUID) -> Installment:
        installment = self._command(
            "delete_installment",
            lambda: self._installments.delete_installment(installment_id),
        )
        self._audit.log_entity(
            AuditEventType.INSTALLMENT_DELETED, "installment", installment.id,
            f"Installment deleted: {installment.title}",
        )
        return installment

    def get_installment(self, installment_id: UUID) -> Optional[Installment]:
        return self._installments.get_installment(installment_id)

    def add_payment(
        self,
        installment_id: UUID,
        amount: object,
        date: Optional[dt.date] = None,
        notes: Optional[str] = None,
        account_id: Optional[UUID] = None,
        payment_method: Optional[PaymentMethod] = None,
    ) -> PaymentResult:
        result = self._command(
            "add_payment",
            lambda: self._installments.add_payment(
                installment_id, amount, date, notes, account_id, payment_method
            ),
        )
        self._log_installment_movement(AuditEventType.INSTALLMENT_PAYMENT, result)
        return result

    def add_refund(
        self,
        installment_id: UUID,
        amount: object,
        reason: Optional[str] = None,
        account_id: Optional[UUID] = None,
        date: Optional[dt.date] = None,
    ) -> PaymentResult:
        result = self._command(
            "add_refund",
            lambda: self._installments.add_refund(installment_id, amount, reason, account_id, date),
        )
        self._log_installment_movement(AuditEventType.INSTALLMENT_REFUND, result)
        return result

    def _log_installment_movement(self, event_type: AuditEventType, result: PaymentResult) -> None:
        correlation_id = create_correlation_id()
        installment = result.installment
        self._audit.log_entity(
            event_type, "installment", installment.id,
            f"{event_type.value.replace('_', ' ').capitalize()}: {installment.title}",
            {
                "amount": str(result.payment.amount),
                "paid_amount": str(installment.paid_amount),
                "status": installment.status.value,
            },
            correlation_id=correlation_id,
        )
        if result.expense is not None:
            self._audit.log_entity(
                AuditEventType.EXPENSE_RECORDED, "expense", result.expense.id,
                f"Expense recorded: {result.expense.title}",
                {"amount": str(result.expense.amount)},
                correlation_id=correlation_id,
            )
        if result.income is not None:
            self._audit.log_entity(
                AuditEventType.INCOME_RECORDED, "income", result.income.id,
                f"Income recorded: {result.income.title}",
                {"amount": str(result.income.amount)},
                correlation_id=correlation_id,
            )

    def refresh_installment_statuses(self, today: Optional[dt.date] = None) -> list[Installment]:
        changed = self._command(
            "refresh_installment_statuses",
            lambda: self._installments.refresh_statuses(today),
        )
        for installment in changed:
            self._audit.log_entity(
                AuditEventType.INSTALLMENT_UPDATED, "installment", installment.id,
                f"Installment status: {installment.status.value}",
                {"fields": ["status"]},
            )
        return changed

    def remaining_balance(self, installment_id: UUID) -> Decimal:
        return self._installments.remaining_balance(installment_id)

    def installment_progress(self, installment_id: UUID) -> float:
        return self._installments.progress(installment_id)

    # ------------------------------------------------------------------
    # Budgets
    # ------------------------------------------------------------------

    def get_budget_overview(self, month: str) -> BudgetOverview:
        return self._budgets.get_budget_overview(month)

    def create_budget(
        self,
        month: str,
        savings_goal: object = 0,
        notes: Optional[str] = None,
    ) -> BudgetPlan:
        existed = self._budgets.get_plan(month) is not None
        plan = self._command(
            "create_budget", lambda: self._budgets.create_budget(month, savings_goal, notes)
        )
        if not existed:
            self._audit.log_entity(
                AuditEventType.BUDGET_CREATED, "budget", plan.id,
                f"Budget created for {plan.month}",
            )
        return plan

    def update_budget(
        self,
        budget_id: UUID,
        category_budgets: Any = None,
        savings_goal: Optional[object] = None,
        notes: Optional[str] = None,
    ) -> BudgetPlan:
        plan = self._command(
            "update_budget",
            lambda: self._budgets.update_budget(budget_id, category_budgets, savings_goal, notes),
        )
        self._audit.log_entity(
            AuditEventType.BUDGET_UPDATED, "budget", plan.id,
            f"Budget updated for {plan.month}",
        )
        return plan

    def delete_budget(self, budget_id: UUID) -> BudgetPlan:
        plan = self._command("delete_budget", lambda: self._budgets.delete_budget(budget_id))
        self._audit.log_entity(
            AuditEventType.BUDGET_DELETED, "budget", plan.id,
            f"Budget deleted for {plan.month}",
        )
        return plan

    # ------------------------------------------------------------------
    # Reports
    # ------------------------------------------------------------------

    def monthly_stats(self, month: str) -> MonthlyStats:
        return self._reports.monthly_stats(month)

    def category_spending(self, month: str) -> list[CategorySpending]:
        return self._reports.category_spending(month)

    def daily_spending(self, start: dt.date, end: dt.date) -> list[DailySpending]:
        return self._reports.daily_spending(start, end)

    # ------------------------------------------------------------------
    # Alerts
    # ------------------------------------------------------------------

    def active_alerts(self) -> list[FinancialAlert]:
        return self._alerts.active_alerts()

    def add_alert(
        self,
        alert_type: AlertType,
        title: str,
        severity: AlertSeverity = AlertSeverity.INFO,
        message: str = "",
        **fields: Any,
    ) -> FinancialAlert:
        alert = self._command(
            "add_alert",
            lambda: self._alerts.add_alert(alert_type, title, severity, message, **fields),
        )
        self._audit.log_entity(
            AuditEventType.ALERT_CREATED, "alert", alert.id, f"Alert raised: {alert.title}",
            {"type": alert.type.value, "severity": alert.severity.value},
        )
        return alert

    def dismiss_alert(self, alert_id: UUID) -> FinancialAlert:
        alert = self._command("dismiss_alert", lambda: self._alerts.dismiss_alert(alert_id))
        self._audit.log_entity(
            AuditEventType.ALERT_DISMISSED, "alert", alert.id, f"Alert dismissed: {alert.title}",
        )
        return alert

    def clear_expired_alerts(self, today: Optional[dt.date] = None) -> list[FinancialAlert]:
        cleared = self._command(
            "clear_expired_alerts", lambda: self._alerts.clear_expired(today)
        )
        if cleared:
            self._audit.log_entity(
                AuditEventType.ALERTS_CLEARED, "alert", None,
                f"Cleared {len(cleared)} expired alerts",
                {"ids": [str(a.id) for a in cleared]},
            )
        return cleared

    def check_alerts(self, today: Optional[dt.date] = None) -> list[FinancialAlert]:
        """Raise the budget and installment alerts due as of ``today``."""
        raised = self._command("check_alerts", lambda: self._alerts.check(today))
        for alert in raised:
            self._audit.log_entity(
                AuditEventType.ALERT_CREATED, "alert", alert.id, f"Alert raised: {alert.title}",
                {"type": alert.type.value, "severity": alert.severity.value},
            )
        return raised

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    def update_finance_settings(self, **changes: Any) -> FinanceSettings:
        def apply() -> FinanceSettings:
            data = self._state.data
            updated = revise(data.settings, changes, "settings")
            self._state.data = data.model_copy(update={"settings": updated})
            return updated

        settings = self._command("update_finance_settings", apply)
        self._audit.log_entity(
            AuditEventType.SETTINGS_UPDATED, "settings", None,
            "Finance settings updated", {"fields": sorted(changes)},
        )
        return settings

    # ------------------------------------------------------------------
    # Bulk
    # ------------------------------------------------------------------

    def export_data(self) -> FinanceData:
        """A detached copy of the whole ledger, stamped with exported_at."""
        exported = self._state.data.model_copy(deep=True, update={"exported_at": utc_now()})
        self._audit.log_entity(
            AuditEventType.DATA_EXPORTED, "document", None,
            "Finance data exported", self._counts(exported),
        )
        return exported

    def export_json(self) -> str:
        return self.export_data().model_dump_json(indent=2)

    def import_data(self, document: Union[FinanceData, dict, str, bytes]) -> ValidationResult:
        """
        Replace the whole ledger with ``document``.

        All or nothing: the document is validated first and, if anything is
        wrong, ImportMalformedError is raised and the ledger is untouched.
        The celebration registry is kept, so imported goals that were
        already celebrated are not celebrated again.

        Returns the ValidationResult (which may carry warnings).
        """
        if isinstance(document, FinanceData):
            document = document.model_dump()

        result, data = self._validator.validate(document)
        if data is None:
            self._audit.log_import_rejected(
                [issue.model_dump() for issue in result.issues if issue.severity == "error"]
            )
            raise ImportMalformedError(result)

        self._state.data = data
        self._persist()
        self._audit.log_data_imported(self._counts(data), result.warnings)
        return result

    def reset_data(self) -> FinanceData:
        """Back to defaults: default categories and one "Main Cash" account."""
        self._state.data = self._fresh_data()
        self._persist()
        self._audit.log_entity(
            AuditEventType.DATA_RESET, "document", None, "Finance data reset to defaults",
        )
        return self._state.data

    @staticmethod
    def _counts(data: FinanceData) -> dict[str, int]:
        return {
            "accounts": len(data.accounts),
            "incomes": len(data.incomes),
            "expenses": len(data.expenses),
            "transfers": len(data.transfers),
            "goals": len(data.goals),
            "installments": len(data.installments),
            "budgets": len(data.budgets),
            "alerts": len(data.alerts),
        }


def create_engine(
    settings: Optional[Settings] = None,
    clock: Callable[[], dt.date] = dt.date.today,
    run_startup_tasks: bool = True,
) -> FinanceEngine:
    """
    Build a FinanceEngine from configuration.

    With the ``json`` backend the ledger, celebrations and audit trail live
    in the files named by StorageSettings; with ``memory`` everything is
    kept in process.

    Startup tasks: materialize due recurring entries, refresh installment
    statuses, then drop expired alerts and raise the ones now due.
    """
    settings = settings or get_settings()
    configure_logging(settings.app.log_level)

    storage_settings = settings.storage
    storage: FinanceStorageInterface
    celebration_storage: CelebrationStorageInterface
    audit_storage: AuditStorageInterface
    if storage_settings.backend == "json":
        retries = storage_settings.write_retries
        storage = JsonFinanceStorage(storage_settings.data_path, retries)
        celebration_storage = JsonCelebrationStorage(storage_settings.celebrations_path, retries)
        audit_storage = JsonLinesAuditStorage(storage_settings.audit_path, retries)
    else:
        storage = InMemoryFinanceStorage()
        celebration_storage = InMemoryCelebrationStorage()
        audit_storage = InMemoryAuditStorage()

    engine = FinanceEngine(
        storage=storage,
        celebration_storage=celebration_storage,
        audit_logger=AuditLogger(audit_storage),
        clock=clock,
        settings=settings,
    )
    if run_startup_tasks:
        engine.process_recurring()
        engine.refresh_installment_statuses()
        engine.clear_expired_alerts()
        engine.check_alerts()
    return engine
