"""Accounts, journal, catalog and recurrence."""

from finledger.ledger.accounts import AccountLedger, compute_balance
from finledger.ledger.catalog import Catalog
from finledger.ledger.journal import TransactionJournal
from finledger.ledger.recurring import RecurrenceProcessor

__all__ = [
    "AccountLedger",
    "Catalog",
    "RecurrenceProcessor",
    "TransactionJournal",
    "compute_balance",
]
