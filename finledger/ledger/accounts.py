"""
Account Ledger

Balances are a pure projection of the journal:

    balance = initial_balance + incomes - expenses - transfers out + transfers in

DESIGN DECISION: Nothing is cached. Every read re-scans the current
document, so an edit or delete anywhere in the journal is reflected on the
next read with no invalidation logic. At personal-finance scale a full scan
is cheap.

Income status (received/pending/expected) does not affect balances: an
income recorded against an account counts toward it as soon as it is
recorded. Budgets and reports answer a different question (money actually
in hand this month) and count only RECEIVED incomes.
Installments are not subtracted directly: a payment affects balances only
through the expense it journals.
"""

from decimal import Decimal
from typing import Optional
from uuid import UUID

from finledger.models.snapshot import FinanceData
from finledger.state import FinanceState


ZERO = Decimal("0")


def compute_balance(data: FinanceData, account_id: UUID) -> Decimal:
    """Balance of one account in ``data``. Unknown accounts are worth 0."""
    account = next((a for a in data.accounts if a.id == account_id), None)
    if account is None:
        return ZERO

    balance = account.initial_balance
    for income in data.incomes:
        if income.account_id == account_id:
            balance += income.amount
    for expense in data.expenses:
        if expense.account_id == account_id:
            balance -= expense.amount
    for transfer in data.transfers:
        if transfer.from_account_id == account_id:
            balance -= transfer.amount
        if transfer.to_account_id == account_id:
            balance += transfer.amount
    return balance


class AccountLedger:
    """Read-only balance queries over the shared state."""

    def __init__(self, state: FinanceState):
        self._state = state

    def balance_of(self, account_id: UUID) -> Decimal:
        return compute_balance(self._state.data, account_id)

    def balances(self, active_only: bool = False) -> dict[UUID, Decimal]:
        """Balance of every account, keyed by account id."""
        data = self._state.data
        return {
            account.id: compute_balance(data, account.id)
            for account in data.accounts
            if account.is_active or not active_only
        }

    def net_worth(
        self,
        active_only: bool = True,
        account_id: Optional[UUID] = None,
    ) -> Decimal:
        """
        Sum of balances.

        Args:
            active_only: Skip archived accounts (ignored when account_id is set)
            account_id: Restrict to a single account

        Transfers between two counted accounts cancel out, so moving money
        around never changes net worth.
        """
        if account_id is not None:
            return self.balance_of(account_id)
        return sum(self.balances(active_only=active_only).values(), ZERO)
