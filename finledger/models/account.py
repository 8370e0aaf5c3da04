"""
Account Model

An account is a place money lives: a wallet, a bank account, a card.

DESIGN DECISION: Accounts do NOT store a balance. The balance is always
derived from initial_balance plus every journal entry that references the
account (see finledger.ledger.accounts.AccountLedger). A stored balance
would be a second source of truth that can silently disagree with the
journal.
"""

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field

from finledger.models.base import CURRENCY_PATTERN, DEFAULT_CURRENCY, utc_now


class AccountType(str, Enum):
    """Supported account kinds."""
    CASH = "cash"
    BANK = "bank"
    MOBILE_WALLET = "mobile-wallet"
    CREDIT_CARD = "credit-card"
    SAVINGS = "savings"
    INVESTMENT = "investment"


class Account(BaseModel):
    """
    A money container.

    Archived accounts (is_active=False) are hidden from selection but keep
    their history; exactly one account carries is_default=True.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique account ID"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Display name"
    )
    type: AccountType = Field(
        default=AccountType.CASH,
        description="Account kind"
    )
    currency: str = Field(
        default=DEFAULT_CURRENCY,
        pattern=CURRENCY_PATTERN,
        description="ISO 4217 currency code"
    )

    # Display-only
    color: str = Field(default="#10b981", max_length=20)
    icon: str = Field(default="💵", max_length=10)
    order: int = Field(default=0, ge=0)

    initial_balance: Decimal = Field(
        default=Decimal("0"),
        description="Signed opening balance, set at creation"
    )
    is_active: bool = Field(
        default=True,
        description="False once the account is archived"
    )
    is_default: bool = Field(
        default=False,
        description="The account used when none is chosen"
    )
    notes: Optional[str] = Field(default=None, max_length=1000)

    created_at: dt.datetime = Field(default_factory=utc_now)
    updated_at: dt.datetime = Field(default_factory=utc_now)
