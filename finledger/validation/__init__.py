"""Validation package."""

from finledger.validation.rules import (
    require_month,
    require_non_negative_amount,
    require_positive_amount,
    to_decimal,
)
from finledger.validation.validator import ImportValidator

__all__ = [
    "ImportValidator",
    "require_month",
    "require_non_negative_amount",
    "require_positive_amount",
    "to_decimal",
]
