"""
Alert Monitor

Keeps the alert list that lives in the ledger document and raises the
alerts the ledger can derive on its own:

1. Budget alerts: a category whose spending this budget month has reached
   budget_warning_threshold percent of its plan (warning) or gone past the
   plan (critical). They expire at the end of the budget month.
2. Installment reminders: a plan whose next payment falls within
   installment_reminder_days of today. They expire on the due date.

DESIGN DECISION: Derived alerts are keyed by (type, related entity,
expiry). check() never raises the same alert twice for one period, even if
the user dismissed it, so dismissing really means "not this month" or "not
this payment".
"""

import datetime as dt
from typing import Any, Callable, Optional
from uuid import UUID

import structlog

from finledger.budgets.engine import BudgetEngine
from finledger.models.alert import AlertSeverity, AlertType, FinancialAlert
from finledger.models.base import utc_now
from finledger.models.installment import InstallmentStatus
from finledger.schedule import current_month, month_window
from finledger.state import FinanceState, build, get_or_raise, replace_by_id


logger = structlog.get_logger(__name__)

AlertKey = tuple[AlertType, Optional[UUID], Optional[dt.date]]


def _key(alert: FinancialAlert) -> AlertKey:
    return alert.type, alert.related_id, alert.expires_on


class AlertMonitor:

    def __init__(
        self,
        state: FinanceState,
        budgets: BudgetEngine,
        clock: Callable[[], dt.date] = dt.date.today,
    ):
        self._state = state
        self._budgets = budgets
        self._clock = clock

    def active_alerts(self) -> list[FinancialAlert]:
        """Alerts not yet dismissed, newest first."""
        alerts = [a for a in self._state.data.alerts if not a.dismissed]
        return sorted(alerts, key=lambda a: a.created_at, reverse=True)

    def add_alert(
        self,
        alert_type: AlertType,
        title: str,
        severity: AlertSeverity = AlertSeverity.INFO,
        message: str = "",
        **fields: Any,
    ) -> FinancialAlert:
        alert = build(FinancialAlert, "alert", {
            **fields,
            "type": alert_type,
            "severity": severity,
            "title": title,
            "message": message,
        })
        data = self._state.data
        self._state.data = data.model_copy(update={"alerts": [*data.alerts, alert]})
        return alert

    def dismiss_alert(self, alert_id: UUID) -> FinancialAlert:
        data = self._state.data
        alert = get_or_raise(data.alerts, alert_id, "alert")
        if alert.dismissed:
            return alert
        updated = alert.model_copy(update={"dismissed": True, "dismissed_at": utc_now()})
        self._state.data = data.model_copy(update={"alerts": replace_by_id(data.alerts, updated)})
        return updated

    def clear_expired(self, today: Optional[dt.date] = None) -> list[FinancialAlert]:
        """Drop alerts whose expiry day has passed. Returns the dropped ones."""
        today = today or self._clock()
        data = self._state.data
        expired = [a for a in data.alerts if a.is_expired(today)]
        if expired:
            self._state.data = data.model_copy(update={
                "alerts": [a for a in data.alerts if not a.is_expired(today)],
            })
        return expired

    def check(self, today: Optional[dt.date] = None) -> list[FinancialAlert]:
        """Raise budget and installment alerts due as of ``today``."""
        today = today or self._clock()
        data = self._state.data
        seen = {_key(a) for a in data.alerts}

        candidates: list[FinancialAlert] = []
        if data.settings.enable_budget_alerts:
            candidates.extend(self._budget_alerts(today))
        if data.settings.enable_installment_reminders:
            candidates.extend(self._installment_alerts(today))

        raised = []
        for alert in candidates:
            if _key(alert) in seen:
                continue
            seen.add(_key(alert))
            raised.append(alert)

        if raised:
            self._state.data = data.model_copy(update={"alerts": [*data.alerts, *raised]})
            logger.info("alerts_raised", count=len(raised), as_of=today.isoformat())
        return raised

    def _budget_alerts(self, today: dt.date) -> list[FinancialAlert]:
        data = self._state.data
        start_day = data.settings.month_start_day
        month = current_month(today, start_day)
        _, month_end = month_window(month, start_day)
        threshold = data.settings.budget_warning_threshold
        names = {c.id: c.name for c in data.categories}

        alerts = []
        for budget in self._budgets.get_budget_overview(month).category_budgets:
            if budget.planned <= 0:
                continue
            name = names.get(budget.category_id, "Category")
            percent = budget.percent_used
            if budget.is_over_budget:
                alert_type = AlertType.BUDGET_EXCEEDED
                severity = AlertSeverity.CRITICAL
                title = f"{name} budget exceeded"
            elif percent >= threshold:
                alert_type = AlertType.BUDGET_WARNING
                severity = AlertSeverity.WARNING
                title = f"{name} budget at {percent:.0f}%"
            else:
                continue
            alerts.append(FinancialAlert(
                type=alert_type,
                severity=severity,
                title=title,
                message=f"Spent {budget.spent} of {budget.planned} planned for {month}",
                actionable=True,
                action_label="View budget",
                related_id=budget.category_id,
                related_type="category",
                expires_on=month_end,
            ))
        return alerts

    def _installment_alerts(self, today: dt.date) -> list[FinancialAlert]:
        data = self._state.data
        horizon = data.settings.installment_reminder_days

        alerts = []
        for installment in data.installments:
            if installment.status == InstallmentStatus.COMPLETED:
                continue
            due = installment.next_payment_date
            days = (due - today).days
            if not 0 <= days <= horizon:
                continue
            when = "today" if days == 0 else f"in {days} day{'s' if days != 1 else ''}"
            alerts.append(FinancialAlert(
                type=AlertType.INSTALLMENT_DUE,
                severity=AlertSeverity.WARNING,
                title=f"{installment.title} payment due {when}"[:200],
                message=f"{installment.installment_amount} due on {due.isoformat()}",
                actionable=True,
                action_label="Record payment",
                related_id=installment.id,
                related_type="installment",
                expires_on=due,
            ))
        return alerts
