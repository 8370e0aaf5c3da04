"""
Report Builder

DESIGN DECISION: Reports are DETERMINISTIC read-only aggregates over the
current ledger. Nothing here writes, caches or estimates: every number is a
sum over stored records, and an empty month reports zeros.

Income in reports counts only once received; expenses count on their date.
"""

import datetime as dt
from collections import defaultdict
from decimal import Decimal
from uuid import UUID

from finledger.models.alert import AlertSeverity
from finledger.models.goal import GoalStatus
from finledger.models.installment import InstallmentStatus
from finledger.models.report import CategorySpending, DailySpending, MonthlyStats
from finledger.models.snapshot import FinanceData
from finledger.models.transaction import IncomeStatus
from finledger.schedule import month_window, previous_month
from finledger.state import FinanceState
from finledger.validation.rules import require_month


ZERO = Decimal("0")


def _percent(part: Decimal, whole: Decimal) -> float:
    if whole <= 0:
        return 0.0
    return float(part / whole * 100)


def _change(current: Decimal, previous: Decimal) -> float:
    if previous <= 0:
        return 0.0
    return float((current - previous) / previous * 100)


class ReportBuilder:

    def __init__(self, state: FinanceState):
        self._state = state

    def _month_totals(self, data: FinanceData, month: str) -> tuple[Decimal, Decimal]:
        start, end = month_window(month, data.settings.month_start_day)
        income = sum(
            (i.amount for i in data.incomes
             if i.status == IncomeStatus.RECEIVED and start <= i.date <= end),
            ZERO,
        )
        expenses = sum(
            (e.amount for e in data.expenses if start <= e.date <= end),
            ZERO,
        )
        return income, expenses

    def monthly_stats(self, month: str) -> MonthlyStats:
        """Headline numbers for ``month`` compared with the month before."""
        require_month(month)
        data = self._state.data
        income, expenses = self._month_totals(data, month)
        last_income, last_expenses = self._month_totals(data, previous_month(month))
        net = income - expenses

        active_installments = [
            i for i in data.installments if i.status == InstallmentStatus.ACTIVE
        ]
        active_goals = [g for g in data.goals if g.status == GoalStatus.ACTIVE]
        average_progress = (
            sum(g.progress_percent for g in active_goals) / len(active_goals)
            if active_goals else 0.0
        )

        active_alerts = [a for a in data.alerts if not a.dismissed]

        start, end = month_window(month, data.settings.month_start_day)
        by_category: dict[UUID, Decimal] = defaultdict(lambda: ZERO)
        for expense in data.expenses:
            if start <= expense.date <= end:
                by_category[expense.category_id] += expense.amount

        stats = MonthlyStats(
            month=month,
            total_income=income,
            total_expenses=expenses,
            net_balance=net,
            savings_rate=_percent(net, income),
            income_vs_last_month=_change(income, last_income),
            expenses_vs_last_month=_change(expenses, last_expenses),
            active_installments=len(active_installments),
            installment_debt=sum((i.remaining_amount for i in active_installments), ZERO),
            average_goal_progress=average_progress,
            active_alerts=len(active_alerts),
            critical_alerts=sum(1 for a in active_alerts if a.severity == AlertSeverity.CRITICAL),
        )

        if by_category:
            top_id, top_amount = max(by_category.items(), key=lambda item: item[1])
            category = next((c for c in data.categories if c.id == top_id), None)
            stats = stats.model_copy(update={
                "top_category_id": top_id,
                "top_category_name": category.name if category else "None",
                "top_category_amount": top_amount,
            })
        return stats

    def category_spending(self, month: str) -> list[CategorySpending]:
        """Spend per expense category against its monthly_budget, largest first."""
        require_month(month)
        data = self._state.data
        start, end = month_window(month, data.settings.month_start_day)

        spent: dict[UUID, Decimal] = defaultdict(lambda: ZERO)
        for expense in data.expenses:
            if start <= expense.date <= end:
                spent[expense.category_id] += expense.amount

        rows = []
        for category in data.categories:
            amount = spent.get(category.id, ZERO)
            budget = category.monthly_budget or ZERO
            rows.append(CategorySpending(
                category_id=category.id,
                category_name=category.name,
                category_icon=category.icon,
                category_color=category.color,
                spent=amount,
                budget=budget,
                percentage=_percent(amount, budget),
                is_over_budget=budget > 0 and amount > budget,
            ))
        rows.sort(key=lambda row: row.spent, reverse=True)
        return rows

    def daily_spending(self, start: dt.date, end: dt.date) -> list[DailySpending]:
        """One row per day from ``start`` to ``end`` inclusive, zeros included."""
        totals: dict[dt.date, Decimal] = defaultdict(lambda: ZERO)
        counts: dict[dt.date, int] = defaultdict(int)
        for expense in self._state.data.expenses:
            if start <= expense.date <= end:
                totals[expense.date] += expense.amount
                counts[expense.date] += 1

        rows = []
        day = start
        while day <= end:
            rows.append(DailySpending(
                date=day,
                amount=totals.get(day, ZERO),
                transactions=counts.get(day, 0),
            ))
            day += dt.timedelta(days=1)
        return rows
