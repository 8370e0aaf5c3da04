"""
Tests for accounts and categories.

Deletion is guarded: defaults, the last account, and anything still
referenced must be archived instead.
"""

from decimal import Decimal
from uuid import uuid4

import pytest

from finledger.errors import (
    DanglingReferenceError,
    DefaultAccountProtectedError,
    DefaultCategoryProtectedError,
    EntityNotFoundError,
    InvalidAmountError,
    ProtectedFieldError,
)
from finledger.models.account import AccountType


class TestAccounts:
    """Tests for account CRUD and the default-account rules."""

    def test_add_account(self, engine):
        """Test a new account is active, not default, and ordered last."""
        account = engine.add_account("Wallet", AccountType.MOBILE_WALLET, "12.5")

        assert account.type == AccountType.MOBILE_WALLET
        assert account.initial_balance == Decimal("12.5")
        assert account.is_active
        assert not account.is_default
        assert account.order == 2
        assert engine.balance_of(account.id) == Decimal("12.5")

    def test_negative_initial_balance_allowed(self, engine):
        """Test a credit card may start in debt."""
        card = engine.add_account("Card", AccountType.CREDIT_CARD, -300)
        assert engine.balance_of(card.id) == Decimal("-300")

    def test_exactly_one_default_after_switch(self, engine, cash, bank):
        """Test set_default_account moves the flag."""
        engine.set_default_account(bank.id)

        defaults = [a for a in engine.data.accounts if a.is_default]
        assert [a.id for a in defaults] == [bank.id]

    def test_set_default_reactivates_archived_account(self, engine, bank):
        """Test an archived account becomes active again when made default."""
        engine.archive_account(bank.id)
        account = engine.set_default_account(bank.id)
        assert account.is_active and account.is_default

    def test_is_default_cannot_be_updated_directly(self, engine, bank):
        """Test is_default only moves through set_default_account."""
        with pytest.raises(ProtectedFieldError):
            engine.update_account(bank.id, is_default=True)

    def test_default_account_cannot_be_archived(self, engine, cash):
        """Test archiving the default account is refused."""
        with pytest.raises(DefaultAccountProtectedError):
            engine.archive_account(cash.id)
        assert engine.data.accounts[0].is_active

    def test_default_account_cannot_be_deleted(self, engine, cash, bank):
        """Test the default account survives delete."""
        with pytest.raises(DefaultAccountProtectedError):
            engine.delete_account(cash.id)
        assert len(engine.data.accounts) == 2

    def test_referenced_account_cannot_be_deleted(self, engine, bank, groceries):
        """Test deleting an account with history reports its references."""
        engine.add_expense("Fees", 3, groceries.id, bank.id)

        with pytest.raises(DanglingReferenceError) as exc_info:
            engine.delete_account(bank.id)

        assert exc_info.value.references == {"expenses": 1}

    def test_delete_unreferenced_account(self, engine, bank):
        """Test an unused account can be deleted."""
        engine.delete_account(bank.id)
        assert [a.name for a in engine.data.accounts] == ["Main Cash"]

    def test_delete_unknown_account(self, engine):
        """Test deleting a missing account raises EntityNotFoundError."""
        with pytest.raises(EntityNotFoundError):
            engine.delete_account(uuid4())


class TestCategories:
    """Tests for expense and income categories."""

    def test_add_category(self, engine):
        """Test custom categories are never default."""
        category = engine.add_category("Pets", icon="🐶", monthly_budget=200)

        assert not category.is_default
        assert category.monthly_budget == Decimal("200")
        assert engine.data.categories[-1].id == category.id

    def test_negative_monthly_budget_rejected(self, engine):
        """Test monthly_budget cannot be negative."""
        with pytest.raises(InvalidAmountError):
            engine.add_category("Pets", monthly_budget=-1)

    def test_default_category_cannot_be_deleted(self, engine, groceries):
        """Test built-in categories are protected."""
        with pytest.raises(DefaultCategoryProtectedError):
            engine.delete_category(groceries.id)

    def test_referenced_category_cannot_be_deleted(self, engine, cash):
        """Test a category still used by an expense is protected."""
        pets = engine.add_category("Pets")
        engine.add_expense("Food", 10, pets.id, cash.id)

        with pytest.raises(DanglingReferenceError):
            engine.delete_category(pets.id)

    def test_category_used_by_installment_cannot_be_deleted(self, engine):
        """Test installments count as category references."""
        loans = engine.add_category("Loans")
        engine.add_installment("Phone", 600, 100, 6, category_id=loans.id)

        with pytest.raises(DanglingReferenceError) as exc_info:
            engine.delete_category(loans.id)

        assert exc_info.value.references == {"installments": 1}

    def test_archive_category(self, engine):
        """Test archiving keeps the category but hides it."""
        pets = engine.add_category("Pets")
        archived = engine.archive_category(pets.id)
        assert not archived.is_active
        assert any(c.id == pets.id for c in engine.data.categories)

    def test_income_category_lifecycle(self, engine, cash):
        """Test income categories follow the same rules."""
        tips = engine.add_income_category("Tips")
        renamed = engine.update_income_category(tips.id, name="Gratuities")
        assert renamed.name == "Gratuities"

        income = engine.add_income("Tip", 5, tips.id, cash.id)
        with pytest.raises(DanglingReferenceError):
            engine.delete_income_category(tips.id)

        engine.delete_income(income.id)
        engine.delete_income_category(tips.id)
        assert all(c.id != tips.id for c in engine.data.income_categories)
