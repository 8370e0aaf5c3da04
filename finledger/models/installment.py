"""
Installment Models

An installment plan is a debt paid down in periodic payments. Like goals,
it keeps a running total (paid_amount) next to an append-only payment list.
Refunds are payments with a negative amount.
"""

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator

from finledger.models.base import Frequency, utc_now
from finledger.models.transaction import Expense, Income


class InstallmentStatus(str, Enum):
    """
    Installment state, recomputed after every payment or refund.

    Order of evaluation: COMPLETED, then OVERDUE, then ACTIVE.
    """
    ACTIVE = "active"
    COMPLETED = "completed"
    OVERDUE = "overdue"


class InstallmentPaymentStatus(str, Enum):
    PAID = "paid"
    PARTIAL = "partial"      # Less than one installment_amount
    LATE = "late"            # Paid after the due date
    REFUND = "refund"        # Negative adjustment


class InstallmentPayment(BaseModel):
    """One signed adjustment to an installment. Never modified once appended."""

    id: UUID = Field(default_factory=uuid4)
    amount: Decimal = Field(
        ...,
        description="Positive for payments, negative for refunds"
    )
    date: dt.date
    status: InstallmentPaymentStatus = InstallmentPaymentStatus.PAID
    notes: Optional[str] = Field(default=None, max_length=500)
    created_at: dt.datetime = Field(default_factory=utc_now)


class Installment(BaseModel):
    """A debt repayment plan with its payment sub-ledger."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=1000)

    total_amount: Decimal = Field(..., gt=0)
    paid_amount: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        description="Running total of all payments and refunds"
    )
    installment_amount: Decimal = Field(
        ...,
        gt=0,
        description="Expected amount per period"
    )
    total_installments: int = Field(..., ge=1)
    paid_installments: int = Field(
        default=0,
        ge=0,
        description="Count of positive payments"
    )

    frequency: Frequency = Frequency.MONTHLY
    linked_account_id: Optional[UUID] = None
    category_id: Optional[UUID] = Field(
        default=None,
        description="Expense category used for journaled payments"
    )

    start_date: dt.date
    next_payment_date: dt.date
    end_date: Optional[dt.date] = None
    status: InstallmentStatus = InstallmentStatus.ACTIVE

    payments: list[InstallmentPayment] = Field(default_factory=list)
    notes: Optional[str] = Field(default=None, max_length=1000)

    created_at: dt.datetime = Field(default_factory=utc_now)
    updated_at: dt.datetime = Field(default_factory=utc_now)

    @model_validator(mode='after')
    def validate_dates(self) -> 'Installment':
        if self.end_date and self.end_date < self.start_date:
            raise ValueError("Installment end date cannot be before start date")
        return self

    @property
    def remaining_amount(self) -> Decimal:
        return max(self.total_amount - self.paid_amount, Decimal("0"))

    @property
    def remaining_installments(self) -> int:
        return max(self.total_installments - self.paid_installments, 0)

    @property
    def progress_percent(self) -> float:
        ratio = float(self.paid_amount / self.total_amount) * 100
        return max(0.0, min(100.0, ratio))


class PaymentResult(BaseModel):
    """
    Outcome of an installment payment or refund.

    When an account was given, the matching journal entry (an expense for a
    payment, an income for a refund) is returned alongside.
    """

    installment: Installment
    payment: InstallmentPayment
    expense: Optional[Expense] = None
    income: Optional[Income] = None
