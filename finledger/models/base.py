"""
Shared building blocks for finance models.

Money is always Decimal. Floats never enter the ledger: a balance that
drifts by 0.0000001 after a thousand transactions is a balance nobody trusts.
"""

import datetime as dt
from enum import Enum


CURRENCY_PATTERN = r"^[A-Z]{3}$"
DEFAULT_CURRENCY = "EGP"


def utc_now() -> dt.datetime:
    """Timezone-aware current UTC time for created_at/updated_at stamps."""
    return dt.datetime.now(dt.timezone.utc)


class Frequency(str, Enum):
    """
    How often something repeats.

    Used for recurring incomes/expenses and for installment schedules.
    """
    ONE_TIME = "one-time"
    DAILY = "daily"
    WEEKLY = "weekly"
    BI_WEEKLY = "bi-weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"
