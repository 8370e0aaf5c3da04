"""
Journal Models

The journal holds every money movement:
- Income: money entering an account
- Expense: money leaving an account
- AccountTransfer: money moving between two accounts

Feed items are the read-side view of the journal. They are a tagged union
(discriminated on ``type``) with display fields resolved at read time.
"""

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Annotated, Literal, Optional, Union
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator

from finledger.models.base import (
    CURRENCY_PATTERN,
    DEFAULT_CURRENCY,
    Frequency,
    utc_now,
)


# =============================================================================
# ENUMS
# =============================================================================

class IncomeStatus(str, Enum):
    """Whether the money has actually arrived."""
    RECEIVED = "received"
    PENDING = "pending"
    EXPECTED = "expected"


class PaymentMethod(str, Enum):
    """How an expense was paid."""
    CASH = "cash"
    CARD = "card"
    BANK_TRANSFER = "bank-transfer"
    MOBILE_WALLET = "mobile-wallet"
    OTHER = "other"


class ExpenseType(str, Enum):
    FIXED = "fixed"
    VARIABLE = "variable"
    EMERGENCY = "emergency"


# =============================================================================
# JOURNAL ENTRIES
# =============================================================================

class JournalEntry(BaseModel):
    """
    Fields shared by incomes and expenses.

    Amounts are always positive; direction comes from the entry kind.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    title: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Short description of the movement"
    )
    amount: Decimal = Field(
        ...,
        gt=0,
        description="Positive amount in the entry currency"
    )
    currency: str = Field(default=DEFAULT_CURRENCY, pattern=CURRENCY_PATTERN)
    category_id: UUID = Field(
        ...,
        description="Expense or income category"
    )
    account_id: UUID = Field(
        ...,
        description="Account the money moved in or out of"
    )
    date: dt.date = Field(
        ...,
        description="Day the movement happened"
    )

    # Recurrence metadata
    is_recurring: bool = False
    frequency: Optional[Frequency] = None
    recurring_end_date: Optional[dt.date] = None
    next_occurrence: Optional[dt.date] = None

    tags: list[str] = Field(default_factory=list)
    notes: Optional[str] = Field(default=None, max_length=1000)
    linked_installment_id: Optional[UUID] = Field(
        default=None,
        description="Set when the entry was generated by an installment payment/refund"
    )

    created_at: dt.datetime = Field(default_factory=utc_now)
    updated_at: dt.datetime = Field(default_factory=utc_now)


class Income(JournalEntry):
    """Money entering an account."""

    status: IncomeStatus = Field(
        default=IncomeStatus.RECEIVED,
        description="Receipt status"
    )


class Expense(JournalEntry):
    """Money leaving an account."""

    location: Optional[str] = Field(default=None, max_length=200)
    payment_method: PaymentMethod = PaymentMethod.CASH
    expense_type: ExpenseType = ExpenseType.VARIABLE


class AccountTransfer(BaseModel):
    """
    Money moving between two of the user's own accounts.

    A transfer has no category: it is neither income nor expense, so it
    leaves net worth unchanged.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    from_account_id: UUID
    to_account_id: UUID
    amount: Decimal = Field(..., gt=0)
    date: dt.date
    notes: Optional[str] = Field(default=None, max_length=1000)
    created_at: dt.datetime = Field(default_factory=utc_now)

    @model_validator(mode='after')
    def validate_accounts_differ(self) -> 'AccountTransfer':
        if self.from_account_id == self.to_account_id:
            raise ValueError("Transfer source and destination must differ")
        return self


# =============================================================================
# FEED (read side)
# =============================================================================

UNCATEGORIZED_LABEL = "Uncategorized"
UNKNOWN_ACCOUNT_LABEL = "Unknown account"


class IncomeFeedItem(BaseModel):
    type: Literal["income"] = "income"
    id: UUID
    title: str
    amount: Decimal
    date: dt.date
    account_id: UUID
    account_name: str
    category_id: UUID
    category_name: str
    category_icon: Optional[str] = None
    category_color: Optional[str] = None
    created_at: dt.datetime

    @property
    def signed_amount(self) -> Decimal:
        return self.amount


class ExpenseFeedItem(BaseModel):
    type: Literal["expense"] = "expense"
    id: UUID
    title: str
    amount: Decimal
    date: dt.date
    account_id: UUID
    account_name: str
    category_id: UUID
    category_name: str
    category_icon: Optional[str] = None
    category_color: Optional[str] = None
    location: Optional[str] = None
    created_at: dt.datetime

    @property
    def signed_amount(self) -> Decimal:
        return -self.amount


class TransferFeedItem(BaseModel):
    type: Literal["transfer"] = "transfer"
    id: UUID
    amount: Decimal
    date: dt.date
    from_account_id: UUID
    from_account_name: str
    to_account_id: UUID
    to_account_name: str
    notes: Optional[str] = None
    created_at: dt.datetime

    @property
    def title(self) -> str:
        return f"{self.from_account_name} → {self.to_account_name}"

    @property
    def signed_amount(self) -> Decimal:
        # Net zero for the ledger as a whole
        return Decimal("0")


TransactionFeedItem = Annotated[
    Union[IncomeFeedItem, ExpenseFeedItem, TransferFeedItem],
    Field(discriminator="type"),
]
