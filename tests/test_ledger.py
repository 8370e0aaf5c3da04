"""
Tests for balances, the journal and transfers.

Balances are never stored, so every test here reads them back through the
engine after a mutation.
"""

from datetime import date, timedelta
from decimal import Decimal
from uuid import uuid4

import pytest

from finledger.errors import (
    EntityNotFoundError,
    InvalidAmountError,
    InvalidFieldError,
    ProtectedFieldError,
    SameAccountTransferError,
)
from finledger.models.account import AccountType
from finledger.models.snapshot import default_finance_data
from finledger.models.transaction import Expense, IncomeStatus
from finledger.services.storage import InMemoryFinanceStorage


class TestBalances:
    """Tests for derived account balances."""

    def test_fresh_ledger_has_one_default_cash_account(self, engine):
        """Test a new engine starts with "Main Cash" at zero."""
        assert len(engine.data.accounts) == 1
        cash = engine.data.accounts[0]
        assert cash.name == "Main Cash"
        assert cash.is_default
        assert engine.balance_of(cash.id) == Decimal("0")

    def test_cash_and_bank_scenario(self, engine, cash, salary, groceries):
        """Test expense, income and transfer against a cash and a bank account."""
        engine.update_account(cash.id, name="Cash", initial_balance=100)
        bank = engine.add_account("Bank", AccountType.BANK)

        engine.add_expense("Vegetables", 30, groceries.id, cash.id)
        assert engine.balance_of(cash.id) == Decimal("70")

        engine.add_income("Pocket money", 50, salary.id, cash.id)
        assert engine.balance_of(cash.id) == Decimal("120")

        engine.add_transfer(cash.id, bank.id, 20)
        assert engine.balance_of(cash.id) == Decimal("100")
        assert engine.balance_of(bank.id) == Decimal("20")
        assert engine.net_worth() == Decimal("120")

    def test_transfer_does_not_change_net_worth(self, engine, cash, bank, salary):
        """Test moving money between accounts leaves net worth alone."""
        engine.add_income("Salary", 500, salary.id, bank.id)
        before = engine.net_worth()

        engine.add_transfer(bank.id, cash.id, Decimal("125.50"))

        assert engine.net_worth() == before
        assert engine.balance_of(cash.id) == Decimal("125.50")
        assert engine.balance_of(bank.id) == Decimal("374.50")

    def test_pending_income_still_counts_toward_balance(self, engine, cash, salary):
        """Test income status does not affect balances."""
        engine.add_income("Invoice", 250, salary.id, cash.id, status=IncomeStatus.PENDING)
        assert engine.balance_of(cash.id) == Decimal("250")

    def test_deleting_an_expense_restores_balance(self, engine, cash, groceries):
        """Test balances follow deletions with no bookkeeping."""
        expense = engine.add_expense("Taxi", 40, groceries.id, cash.id)
        assert engine.balance_of(cash.id) == Decimal("-40")

        engine.delete_expense(expense.id)

        assert engine.balance_of(cash.id) == Decimal("0")

    def test_archived_accounts_excluded_from_net_worth(self, engine, cash, bank, salary):
        """Test net worth skips archived accounts by default."""
        engine.add_income("Gift", 300, salary.id, bank.id)
        engine.archive_account(bank.id)

        assert engine.net_worth() == Decimal("0")
        assert engine.net_worth(active_only=False) == Decimal("300")
        assert engine.net_worth(account_id=bank.id) == Decimal("300")

    def test_balances_keyed_by_account(self, engine, cash, bank, salary):
        """Test balances() covers every account."""
        engine.add_income("Salary", 10, salary.id, cash.id)
        assert engine.balances() == {cash.id: Decimal("10"), bank.id: Decimal("0")}

    def test_unknown_account_balance_is_zero(self, engine):
        """Test reading an unknown account never fails."""
        assert engine.balance_of(uuid4()) == Decimal("0")


class TestJournal:
    """Tests for recording and editing incomes and expenses."""

    @pytest.mark.parametrize("amount", [0, -5, "abc", float("nan"), float("inf"), True])
    def test_invalid_amounts_rejected(self, engine, cash, groceries, amount):
        """Test zero, negative and non-numeric amounts are refused."""
        with pytest.raises(InvalidAmountError):
            engine.add_expense("Bad", amount, groceries.id, cash.id)
        assert engine.data.expenses == []

    def test_float_amount_keeps_decimal_value(self, engine, cash, groceries):
        """Test 0.1 is stored as Decimal('0.1'), not its binary expansion."""
        expense = engine.add_expense("Gum", 0.1, groceries.id, cash.id)
        assert expense.amount == Decimal("0.1")

    def test_expense_requires_existing_account(self, engine, groceries):
        """Test an expense pointing at an unknown account is refused."""
        with pytest.raises(EntityNotFoundError):
            engine.add_expense("Lost", 10, groceries.id, uuid4())

    def test_income_requires_income_category(self, engine, cash, groceries):
        """Test an expense category cannot be used for an income."""
        with pytest.raises(EntityNotFoundError):
            engine.add_income("Wrong", 10, groceries.id, cash.id)

    def test_date_defaults_to_today(self, engine, cash, salary, today):
        """Test entries default to the engine clock."""
        income = engine.add_income("Salary", 10, salary.id, cash.id)
        assert income.date == today
        assert income.currency == engine.data.settings.default_currency

    def test_update_expense(self, engine, cash, groceries):
        """Test editing an expense re-validates it and bumps updated_at."""
        expense = engine.add_expense("Lunch", 20, groceries.id, cash.id)

        updated = engine.update_expense(expense.id, amount="35.5", title="Long lunch")

        assert updated.amount == Decimal("35.5")
        assert updated.title == "Long lunch"
        assert updated.updated_at >= expense.updated_at
        assert engine.balance_of(cash.id) == Decimal("-35.5")

    def test_update_rejects_protected_and_unknown_fields(self, engine, cash, groceries):
        """Test id cannot be overwritten and unknown fields are refused."""
        expense = engine.add_expense("Lunch", 20, groceries.id, cash.id)

        with pytest.raises(ProtectedFieldError):
            engine.update_expense(expense.id, id=uuid4())
        with pytest.raises(InvalidFieldError):
            engine.update_expense(expense.id, colour="red")

        assert engine.get_expense(expense.id) == expense

    def test_update_unknown_expense(self, engine):
        """Test updating a missing record raises EntityNotFoundError."""
        with pytest.raises(EntityNotFoundError):
            engine.update_expense(uuid4(), title="Nothing")

    def test_recurring_entry_gets_next_occurrence(self, engine, cash, salary):
        """Test a recurring template is scheduled one period ahead."""
        income = engine.add_income(
            "Salary", 1000, salary.id, cash.id,
            date=date(2024, 1, 31), is_recurring=True, frequency="monthly",
        )
        assert income.next_occurrence == date(2024, 2, 29)


class TestTransfers:
    """Tests for transfers between accounts."""

    def test_same_account_transfer_rejected(self, engine, cash):
        """Test a transfer to the same account is refused."""
        with pytest.raises(SameAccountTransferError):
            engine.add_transfer(cash.id, cash.id, 10)
        assert engine.data.transfers == []

    def test_transfer_amount_must_be_positive(self, engine, cash, bank):
        """Test transfers follow the same amount rules."""
        with pytest.raises(InvalidAmountError):
            engine.add_transfer(cash.id, bank.id, 0)

    def test_delete_transfer(self, engine, cash, bank):
        """Test deleting a transfer reverses its effect."""
        transfer = engine.add_transfer(cash.id, bank.id, 50)
        engine.delete_transfer(transfer.id)

        assert engine.balance_of(cash.id) == Decimal("0")
        assert engine.balance_of(bank.id) == Decimal("0")

    def test_transfer_allows_overdraft(self, engine, cash, bank):
        """Test balances may go negative."""
        engine.add_transfer(cash.id, bank.id, 75)
        assert engine.balance_of(cash.id) == Decimal("-75")


class TestTransactionFeed:
    """Tests for the merged transaction feed."""

    def test_feed_is_newest_first(self, engine, cash, bank, salary, groceries, today):
        """Test entries of every kind are sorted by date descending."""
        engine.add_income("Old", 10, salary.id, cash.id, date=today - timedelta(days=3))
        engine.add_expense("Mid", 5, groceries.id, cash.id, date=today - timedelta(days=1))
        engine.add_transfer(cash.id, bank.id, 1, date=today)

        feed = engine.all_transactions()

        assert [item.type for item in feed] == ["transfer", "expense", "income"]
        assert feed[0].from_account_name == "Main Cash"
        assert feed[0].to_account_name == "Bank"

    def test_feed_limit(self, engine, cash, groceries):
        """Test the limit keeps only the newest entries."""
        for day in range(1, 6):
            engine.add_expense(f"Day {day}", 1, groceries.id, cash.id, date=date(2024, 3, day))

        feed = engine.all_transactions(limit=2)

        assert [item.title for item in feed] == ["Day 5", "Day 4"]

    def test_feed_falls_back_for_missing_category(self, make_engine, today):
        """Test an expense with an unknown category shows as Uncategorized."""
        data = default_finance_data()
        orphan = Expense(
            title="Orphan",
            amount=Decimal("5"),
            category_id=uuid4(),
            account_id=data.accounts[0].id,
            date=today,
        )
        engine = make_engine(InMemoryFinanceStorage(
            data.model_copy(update={"expenses": [orphan]})
        ))

        feed = engine.all_transactions()

        assert feed[0].category_name == "Uncategorized"
        assert feed[0].account_name == "Main Cash"
