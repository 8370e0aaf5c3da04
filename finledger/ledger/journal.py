"""
Transaction Journal

Append, edit and delete incomes, expenses and transfers, and read them back
as one merged feed.

IMPORTANT BOUNDARIES:
1. Every amount is checked before anything is written
2. Referenced accounts and categories must exist when a record is written
3. Reads never fail on missing references: the feed falls back to
   "Uncategorized" / "Unknown account" labels
"""

import datetime as dt
from typing import Any, Callable, Optional
from uuid import UUID

from finledger.errors import SameAccountTransferError
from finledger.models.base import Frequency
from finledger.models.snapshot import FinanceData
from finledger.models.transaction import (
    UNCATEGORIZED_LABEL,
    UNKNOWN_ACCOUNT_LABEL,
    AccountTransfer,
    Expense,
    ExpenseFeedItem,
    Income,
    IncomeFeedItem,
    TransactionFeedItem,
    TransferFeedItem,
)
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
from finledger.validation.rules import require_positive_amount


def _with_recurrence(payload: dict[str, Any]) -> dict[str, Any]:
    """Fill next_occurrence for recurring entries that do not set one."""
    frequency = payload.get("frequency")
    if (
        payload.get("is_recurring")
        and frequency is not None
        and Frequency(frequency) != Frequency.ONE_TIME
        and payload.get("next_occurrence") is None
    ):
        payload["next_occurrence"] = advance_date(payload["date"], Frequency(frequency))
    return payload


class TransactionJournal:
    """Write side and feed for the three kinds of money movement."""

    def __init__(
        self,
        state: FinanceState,
        clock: Callable[[], dt.date] = dt.date.today,
    ):
        self._state = state
        self._clock = clock

    # ------------------------------------------------------------------
    # Reference checks
    # ------------------------------------------------------------------

    def _require_account(self, data: FinanceData, account_id: UUID) -> None:
        get_or_raise(data.accounts, account_id, "account")

    def _require_expense_category(self, data: FinanceData, category_id: UUID) -> None:
        get_or_raise(data.categories, category_id, "category")

    def _require_income_category(self, data: FinanceData, category_id: UUID) -> None:
        get_or_raise(data.income_categories, category_id, "income category")

    # ------------------------------------------------------------------
    # Incomes
    # ------------------------------------------------------------------

    def add_income(
        self,
        title: str,
        amount: object,
        category_id: UUID,
        account_id: UUID,
        date: Optional[dt.date] = None,
        **fields: Any,
    ) -> Income:
        """
        Record money entering an account.

        Extra keyword arguments are any other Income fields
        (status, tags, notes, is_recurring, frequency, ...).
        """
        value = require_positive_amount(amount)
        data = self._state.data
        self._require_account(data, account_id)
        self._require_income_category(data, category_id)

        payload = {
            "currency": data.settings.default_currency,
            **fields,
            "title": title,
            "amount": value,
            "category_id": category_id,
            "account_id": account_id,
            "date": date or self._clock(),
        }
        income = build(Income, "income", _with_recurrence(payload))
        self._state.data = data.model_copy(update={"incomes": [*data.incomes, income]})
        return income

    def get_income(self, income_id: UUID) -> Optional[Income]:
        return find_by_id(self._state.data.incomes, income_id)

    def update_income(self, income_id: UUID, **changes: Any) -> Income:
        data = self._state.data
        income = get_or_raise(data.incomes, income_id, "income")
        if "amount" in changes:
            changes["amount"] = require_positive_amount(changes["amount"])
        if "account_id" in changes:
            self._require_account(data, changes["account_id"])
        if "category_id" in changes:
            self._require_income_category(data, changes["category_id"])

        updated = revise(income, changes, "income")
        self._state.data = data.model_copy(
            update={"incomes": replace_by_id(data.incomes, updated)}
        )
        return updated

    def delete_income(self, income_id: UUID) -> Income:
        data = self._state.data
        income = get_or_raise(data.incomes, income_id, "income")
        self._state.data = data.model_copy(
            update={"incomes": remove_by_id(data.incomes, income_id)}
        )
        return income

    # ------------------------------------------------------------------
    # Expenses
    # ------------------------------------------------------------------

    def add_expense(
        self,
        title: str,
        amount: object,
        category_id: UUID,
        account_id: UUID,
        date: Optional[dt.date] = None,
        **fields: Any,
    ) -> Expense:
        """
        Record money leaving an account.

        Extra keyword arguments are any other Expense fields
        (location, payment_method, expense_type, tags, notes, ...).
        """
        value = require_positive_amount(amount)
        data = self._state.data
        self._require_account(data, account_id)
        self._require_expense_category(data, category_id)

        payload = {
            "currency": data.settings.default_currency,
            **fields,
            "title": title,
            "amount": value,
            "category_id": category_id,
            "account_id": account_id,
            "date": date or self._clock(),
        }
        expense = build(Expense, "expense", _with_recurrence(payload))
        self._state.data = data.model_copy(update={"expenses": [*data.expenses, expense]})
        return expense

    def get_expense(self, expense_id: UUID) -> Optional[Expense]:
        return find_by_id(self._state.data.expenses, expense_id)

    def update_expense(self, expense_id: UUID, **changes: Any) -> Expense:
        data = self._state.data
        expense = get_or_raise(data.expenses, expense_id, "expense")
        if "amount" in changes:
            changes["amount"] = require_positive_amount(changes["amount"])
        if "account_id" in changes:
            self._require_account(data, changes["account_id"])
        if "category_id" in changes:
            self._require_expense_category(data, changes["category_id"])

        updated = revise(expense, changes, "expense")
        self._state.data = data.model_copy(
            update={"expenses": replace_by_id(data.expenses, updated)}
        )
        return updated

    def delete_expense(self, expense_id: UUID) -> Expense:
        data = self._state.data
        expense = get_or_raise(data.expenses, expense_id, "expense")
        self._state.data = data.model_copy(
            update={"expenses": remove_by_id(data.expenses, expense_id)}
        )
        return expense

    # ------------------------------------------------------------------
    # Transfers
    # ------------------------------------------------------------------

    def add_transfer(
        self,
        from_account_id: UUID,
        to_account_id: UUID,
        amount: object,
        date: Optional[dt.date] = None,
        notes: Optional[str] = None,
    ) -> AccountTransfer:
        value = require_positive_amount(amount)
        if from_account_id == to_account_id:
            raise SameAccountTransferError(from_account_id)
        data = self._state.data
        self._require_account(data, from_account_id)
        self._require_account(data, to_account_id)

        transfer = build(AccountTransfer, "transfer", {
            "from_account_id": from_account_id,
            "to_account_id": to_account_id,
            "amount": value,
            "date": date or self._clock(),
            "notes": notes,
        })
        self._state.data = data.model_copy(update={"transfers": [*data.transfers, transfer]})
        return transfer

    def delete_transfer(self, transfer_id: UUID) -> AccountTransfer:
        data = self._state.data
        transfer = get_or_raise(data.transfers, transfer_id, "transfer")
        self._state.data = data.model_copy(
            update={"transfers": remove_by_id(data.transfers, transfer_id)}
        )
        return transfer

    # ------------------------------------------------------------------
    # Feed
    # ------------------------------------------------------------------

    def all_transactions(self, limit: Optional[int] = None) -> list[TransactionFeedItem]:
        """
        Every income, expense and transfer, newest first.

        Category and account names are resolved now, against the current
        catalog. Ties on date are broken by creation time.
        """
        data = self._state.data
        accounts = {a.id: a for a in data.accounts}
        expense_categories = {c.id: c for c in data.categories}
        income_categories = {c.id: c for c in data.income_categories}

        def account_name(account_id: UUID) -> str:
            account = accounts.get(account_id)
            return account.name if account else UNKNOWN_ACCOUNT_LABEL

        feed: list[TransactionFeedItem] = []
        for income in data.incomes:
            category = income_categories.get(income.category_id)
            feed.append(IncomeFeedItem(
                id=income.id,
                title=income.title,
                amount=income.amount,
                date=income.date,
                account_id=income.account_id,
                account_name=account_name(income.account_id),
                category_id=income.category_id,
                category_name=category.name if category else UNCATEGORIZED_LABEL,
                category_icon=category.icon if category else None,
                category_color=category.color if category else None,
                created_at=income.created_at,
            ))
        for expense in data.expenses:
            category = expense_categories.get(expense.category_id)
            feed.append(ExpenseFeedItem(
                id=expense.id,
                title=expense.title,
                amount=expense.amount,
                date=expense.date,
                account_id=expense.account_id,
                account_name=account_name(expense.account_id),
                category_id=expense.category_id,
                category_name=category.name if category else UNCATEGORIZED_LABEL,
                category_icon=category.icon if category else None,
                category_color=category.color if category else None,
                location=expense.location,
                created_at=expense.created_at,
            ))
        for transfer in data.transfers:
            feed.append(TransferFeedItem(
                id=transfer.id,
                amount=transfer.amount,
                date=transfer.date,
                from_account_id=transfer.from_account_id,
                from_account_name=account_name(transfer.from_account_id),
                to_account_id=transfer.to_account_id,
                to_account_name=account_name(transfer.to_account_id),
                notes=transfer.notes,
                created_at=transfer.created_at,
            ))

        feed.sort(key=lambda item: (item.date, item.created_at), reverse=True)
        if limit is not None:
            return feed[:limit]
        return feed
