"""
Input rules shared by every component.

Amounts arrive as Decimal, int, float or str and leave as Decimal. Anything
that is not a finite number raises InvalidAmountError before any state is
touched.
"""

import re
from decimal import Decimal, InvalidOperation

from finledger.errors import InvalidAmountError, InvalidMonthError
from finledger.models.budget import MONTH_PATTERN


_MONTH_RE = re.compile(MONTH_PATTERN)


def to_decimal(amount: object) -> Decimal:
    """Convert to a finite Decimal or raise InvalidAmountError."""
    if isinstance(amount, bool):
        raise InvalidAmountError(amount)
    if isinstance(amount, Decimal):
        value = amount
    elif isinstance(amount, (int, float, str)):
        try:
            # str() keeps 0.1 as 0.1 instead of its binary expansion
            value = Decimal(str(amount).strip())
        except InvalidOperation:
            raise InvalidAmountError(amount)
    else:
        raise InvalidAmountError(amount)

    if not value.is_finite():
        raise InvalidAmountError(amount)
    return value


def require_positive_amount(amount: object) -> Decimal:
    value = to_decimal(amount)
    if value <= 0:
        raise InvalidAmountError(amount)
    return value


def require_non_negative_amount(amount: object) -> Decimal:
    value = to_decimal(amount)
    if value < 0:
        raise InvalidAmountError(amount, f"Amount cannot be negative, got {amount!r}")
    return value


def require_month(month: object) -> str:
    """Return ``month`` if it is a YYYY-MM string."""
    if not isinstance(month, str) or not _MONTH_RE.match(month):
        raise InvalidMonthError(month)
    return month
