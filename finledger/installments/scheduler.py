"""
Installment Scheduler

Debt repayment plans with an append-only payment sub-ledger.

Payment flow:
1. Append a positive InstallmentPayment
2. paid_amount += amount, paid_installments += 1
3. next_payment_date moves one frequency period
4. Status is recomputed
5. If an account was given, the payment is journaled as an Expense

Refund flow:
1. Append a negative InstallmentPayment (status REFUND)
2. paid_amount -= amount (never below zero: larger refunds are rejected)
3. paid_installments and next_payment_date are left alone
4. If an account was given, the refund is journaled as an Income

Status is evaluated in order: COMPLETED (paid in full), OVERDUE (next
payment date already passed), ACTIVE.
"""

import datetime as dt
from decimal import Decimal
from typing import Any, Callable, Optional
from uuid import UUID

from finledger.errors import InsufficientInstallmentPaidError, InvalidFieldError
from finledger.models.base import Frequency, utc_now
from finledger.models.category import ExpenseCategory, IncomeCategory
from finledger.models.installment import (
    Installment,
    InstallmentPayment,
    InstallmentPaymentStatus,
    InstallmentStatus,
    PaymentResult,
)
from finledger.models.snapshot import FinanceData
from finledger.models.transaction import Expense, ExpenseType, Income, IncomeStatus, PaymentMethod
from finledger.schedule import advance_date
from finledger.state import (
    FinanceState,
    build,
    find_by_id,
    get_or_raise,
    remove_by_id,
    replace_by_id,
    revise,
)
from finledger.validation.rules import require_non_negative_amount, require_positive_amount


PROTECTED_FIELDS = (
    "id", "created_at", "paid_amount", "paid_installments", "payments", "status",
)

FALLBACK_EXPENSE_CATEGORY = "other"
REFUND_INCOME_CATEGORY = "refund"
TITLE_MAX_LENGTH = 200


def compute_status(installment: Installment, today: dt.date) -> InstallmentStatus:
    if installment.paid_amount >= installment.total_amount:
        return InstallmentStatus.COMPLETED
    if installment.next_payment_date < today:
        return InstallmentStatus.OVERDUE
    return InstallmentStatus.ACTIVE


def _pick_category(categories: list, preferred: Optional[UUID], fallback_name: str):
    """Preferred id if it exists, else a category named ``fallback_name``, else the first."""
    if preferred is not None:
        match = find_by_id(categories, preferred)
        if match is not None:
            return match
    for category in categories:
        if category.name.lower() == fallback_name:
            return category
    return categories[0] if categories else None


class InstallmentScheduler:

    def __init__(
        self,
        state: FinanceState,
        clock: Callable[[], dt.date] = dt.date.today,
    ):
        self._state = state
        self._clock = clock

    def get_installment(self, installment_id: UUID) -> Optional[Installment]:
        return find_by_id(self._state.data.installments, installment_id)

    def _check_references(
        self,
        data: FinanceData,
        account_id: Optional[UUID],
        category_id: Optional[UUID],
    ) -> None:
        if account_id is not None:
            get_or_raise(data.accounts, account_id, "account")
        if category_id is not None:
            get_or_raise(data.categories, category_id, "category")

    def add_installment(
        self,
        title: str,
        total_amount: object,
        installment_amount: object,
        total_installments: int,
        start_date: Optional[dt.date] = None,
        frequency: Frequency = Frequency.MONTHLY,
        paid_amount: object = 0,
        paid_installments: int = 0,
        **fields: Any,
    ) -> Installment:
        """
        Create an installment plan.

        Plans already partly paid elsewhere can be entered with
        ``paid_amount`` / ``paid_installments``; the amount is recorded as an
        opening payment so the sub-ledger still sums to paid_amount.

        Defaults: next_payment_date is start_date moved forward by the
        installments already paid; end_date is the due date of the last
        installment.
        """
        total = require_positive_amount(total_amount)
        per_period = require_positive_amount(installment_amount)
        opening = require_non_negative_amount(paid_amount)
        data = self._state.data
        self._check_references(data, fields.get("linked_account_id"), fields.get("category_id"))

        start = start_date or self._clock()
        payments = []
        if opening > 0:
            payments.append(InstallmentPayment(
                amount=opening,
                date=start,
                status=InstallmentPaymentStatus.PAID,
                notes="Opening balance",
            ))

        payload = {
            "next_payment_date": advance_date(start, frequency, paid_installments),
            "end_date": advance_date(start, frequency, max(int(total_installments) - 1, 0)),
            **fields,
            "title": title,
            "total_amount": total,
            "installment_amount": per_period,
            "total_installments": total_installments,
            "paid_amount": opening,
            "paid_installments": paid_installments,
            "frequency": frequency,
            "start_date": start,
            "payments": payments,
        }
        installment = build(Installment, "installment", payload)
        installment = installment.model_copy(
            update={"status": compute_status(installment, self._clock())}
        )
        self._state.data = data.model_copy(
            update={"installments": [*data.installments, installment]}
        )
        return installment

    def update_installment(self, installment_id: UUID, **changes: Any) -> Installment:
        """Edit plan details. Payments only move through add_payment / add_refund."""
        data = self._state.data
        installment = get_or_raise(data.installments, installment_id, "installment")
        for name in ("total_amount", "installment_amount"):
            if name in changes:
                changes[name] = require_positive_amount(changes[name])
        self._check_references(data, changes.get("linked_account_id"), changes.get("category_id"))

        updated = revise(installment, changes, "installment", protected=PROTECTED_FIELDS)
        updated = updated.model_copy(update={"status": compute_status(updated, self._clock())})
        self._state.data = data.model_copy(
            update={"installments": replace_by_id(data.installments, updated)}
        )
        return updated

    def delete_installment(self, installment_id: UUID) -> Installment:
        """
        Remove a plan.

        Expenses and incomes it journaled stay in the journal: they are
        real money movements.
        """
        data = self._state.data
        installment = get_or_raise(data.installments, installment_id, "installment")
        self._state.data = data.model_copy(
            update={"installments": remove_by_id(data.installments, installment_id)}
        )
        return installment

    def add_payment(
        self,
        installment_id: UUID,
        amount: object,
        date: Optional[dt.date] = None,
        notes: Optional[str] = None,
        account_id: Optional[UUID] = None,
        payment_method: Optional[PaymentMethod] = None,
    ) -> PaymentResult:
        value = require_positive_amount(amount)
        data = self._state.data
        installment = get_or_raise(data.installments, installment_id, "installment")
        self._check_references(data, account_id, None)

        paid_on = date or self._clock()
        if paid_on > installment.next_payment_date:
            payment_status = InstallmentPaymentStatus.LATE
        elif value < installment.installment_amount:
            payment_status = InstallmentPaymentStatus.PARTIAL
        else:
            payment_status = InstallmentPaymentStatus.PAID

        payment = InstallmentPayment(
            amount=value,
            date=paid_on,
            status=payment_status,
            notes=notes,
        )
        updated = installment.model_copy(update={
            "payments": [*installment.payments, payment],
            "paid_amount": installment.paid_amount + value,
            "paid_installments": installment.paid_installments + 1,
            "next_payment_date": advance_date(installment.next_payment_date, installment.frequency),
            "updated_at": utc_now(),
        })
        updated = updated.model_copy(update={"status": compute_status(updated, self._clock())})

        expense = None
        if account_id is not None:
            category = _pick_category(
                data.categories, installment.category_id, FALLBACK_EXPENSE_CATEGORY
            )
            expense = self._payment_expense(
                data, updated, category, value, paid_on, account_id, payment_method, notes
            )

        update: dict[str, Any] = {"installments": replace_by_id(data.installments, updated)}
        if expense is not None:
            update["expenses"] = [*data.expenses, expense]
        self._state.data = data.model_copy(update=update)

        return PaymentResult(installment=updated, payment=payment, expense=expense)

    def _payment_expense(
        self,
        data: FinanceData,
        installment: Installment,
        category: Optional[ExpenseCategory],
        amount: Decimal,
        paid_on: dt.date,
        account_id: UUID,
        payment_method: Optional[PaymentMethod],
        notes: Optional[str],
    ) -> Expense:
        if category is None:
            raise InvalidFieldError("expense", "no expense category exists for the payment")
        suffix = f" - Payment {installment.paid_installments}"
        return Expense(
            title=installment.title[:TITLE_MAX_LENGTH - len(suffix)] + suffix,
            amount=amount,
            currency=data.settings.default_currency,
            category_id=category.id,
            account_id=account_id,
            date=paid_on,
            payment_method=payment_method or PaymentMethod.CASH,
            expense_type=ExpenseType.FIXED,
            tags=["installment"],
            notes=notes,
            linked_installment_id=installment.id,
        )

    def add_refund(
        self,
        installment_id: UUID,
        amount: object,
        reason: Optional[str] = None,
        account_id: Optional[UUID] = None,
        date: Optional[dt.date] = None,
    ) -> PaymentResult:
        """
        Record money given back on an installment.

        paid_installments and next_payment_date are intentionally not
        rolled back.
        """
        value = require_positive_amount(amount)
        data = self._state.data
        installment = get_or_raise(data.installments, installment_id, "installment")
        if value > installment.paid_amount:
            raise InsufficientInstallmentPaidError(installment_id, value, installment.paid_amount)
        self._check_references(data, account_id, None)

        refunded_on = date or self._clock()
        payment = InstallmentPayment(
            amount=-value,
            date=refunded_on,
            status=InstallmentPaymentStatus.REFUND,
            notes=reason or "Refund",
        )
        updated = installment.model_copy(update={
            "payments": [*installment.payments, payment],
            "paid_amount": installment.paid_amount - value,
            "updated_at": utc_now(),
        })
        updated = updated.model_copy(update={"status": compute_status(updated, self._clock())})

        income = None
        if account_id is not None:
            income = self._refund_income(data, installment, value, refunded_on, account_id, reason)

        update: dict[str, Any] = {"installments": replace_by_id(data.installments, updated)}
        if income is not None:
            update["incomes"] = [*data.incomes, income]
        self._state.data = data.model_copy(update=update)

        return PaymentResult(installment=updated, payment=payment, income=income)

    def _refund_income(
        self,
        data: FinanceData,
        installment: Installment,
        amount: Decimal,
        refunded_on: dt.date,
        account_id: UUID,
        reason: Optional[str],
    ) -> Income:
        category: Optional[IncomeCategory] = _pick_category(
            data.income_categories, None, REFUND_INCOME_CATEGORY
        )
        if category is None:
            raise InvalidFieldError("income", "no income category exists for the refund")
        title = f"Refund: {installment.title}"
        if reason:
            title += f" - {reason}"
        return Income(
            title=title[:TITLE_MAX_LENGTH],
            amount=amount,
            currency=data.settings.default_currency,
            category_id=category.id,
            account_id=account_id,
            date=refunded_on,
            status=IncomeStatus.RECEIVED,
            tags=["refund"],
            linked_installment_id=installment.id,
        )

    def refresh_statuses(self, today: Optional[dt.date] = None) -> list[Installment]:
        """Recompute every status against ``today``. Returns the ones that changed."""
        today = today or self._clock()
        data = self._state.data
        changed = []
        installments = []
        for installment in data.installments:
            status = compute_status(installment, today)
            if status != installment.status:
                installment = installment.model_copy(
                    update={"status": status, "updated_at": utc_now()}
                )
                changed.append(installment)
            installments.append(installment)

        if changed:
            self._state.data = data.model_copy(update={"installments": installments})
        return changed

    def remaining_balance(self, installment_id: UUID) -> Decimal:
        return get_or_raise(
            self._state.data.installments, installment_id, "installment"
        ).remaining_amount

    def progress(self, installment_id: UUID) -> float:
        return get_or_raise(
            self._state.data.installments, installment_id, "installment"
        ).progress_percent

    def total_debt(self) -> Decimal:
        """Outstanding amount across plans that are not completed."""
        return sum(
            (i.remaining_amount for i in self._state.data.installments
             if i.status != InstallmentStatus.COMPLETED),
            Decimal("0"),
        )
