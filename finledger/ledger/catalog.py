"""
Catalog

Accounts and categories: the things journal entries point at.

Rules:
- Exactly one default account exists while any account exists
- The default account and the last remaining account cannot be deleted
- Nothing that is still referenced can be deleted; archive it instead
- Built-in (is_default) categories cannot be deleted
"""

from typing import Any, Optional, Union
from uuid import UUID

from finledger.errors import (
    DanglingReferenceError,
    DefaultAccountProtectedError,
    DefaultCategoryProtectedError,
)
from finledger.models.account import Account, AccountType
from finledger.models.category import ExpenseCategory, IncomeCategory
from finledger.models.snapshot import FinanceData
from finledger.state import (
    FinanceState,
    build,
    get_or_raise,
    remove_by_id,
    replace_by_id,
    revise,
)
from finledger.validation.rules import require_non_negative_amount, to_decimal


AnyCategory = Union[ExpenseCategory, IncomeCategory]

# kind -> (FinanceData field, model, entity name)
_CATEGORY_KINDS = {
    "expense": ("categories", ExpenseCategory, "category"),
    "income": ("income_categories", IncomeCategory, "income category"),
}


class Catalog:
    """CRUD for accounts and income/expense categories."""

    def __init__(self, state: FinanceState):
        self._state = state

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    def account_references(self, account_id: UUID) -> dict[str, int]:
        data = self._state.data
        counts = {
            "incomes": sum(1 for i in data.incomes if i.account_id == account_id),
            "expenses": sum(1 for e in data.expenses if e.account_id == account_id),
            "transfers": sum(
                1 for t in data.transfers
                if account_id in (t.from_account_id, t.to_account_id)
            ),
            "installments": sum(
                1 for i in data.installments if i.linked_account_id == account_id
            ),
        }
        return {kind: count for kind, count in counts.items() if count}

    def add_account(
        self,
        name: str,
        type: AccountType = AccountType.CASH,
        initial_balance: object = 0,
        **fields: Any,
    ) -> Account:
        """
        Create an account.

        The first account becomes the default one. ``initial_balance`` may
        be negative (e.g. a credit card opened with debt).
        """
        data = self._state.data
        is_first = not any(a.is_default for a in data.accounts)
        payload = {
            "currency": data.settings.default_currency,
            "order": max((a.order for a in data.accounts), default=0) + 1,
            **fields,
            "name": name,
            "type": type,
            "initial_balance": to_decimal(initial_balance),
            "is_default": is_first,
            "is_active": True,
        }
        account = build(Account, "account", payload)
        self._state.data = data.model_copy(update={"accounts": [*data.accounts, account]})
        return account

    def update_account(self, account_id: UUID, **changes: Any) -> Account:
        """Edit an account. Use set_default_account to move the default flag."""
        data = self._state.data
        account = get_or_raise(data.accounts, account_id, "account")
        if "initial_balance" in changes:
            changes["initial_balance"] = to_decimal(changes["initial_balance"])
        if changes.get("is_active") is False and account.is_default:
            raise DefaultAccountProtectedError(
                account_id, "The default account cannot be archived"
            )

        updated = revise(account, changes, "account", protected=("id", "created_at", "is_default"))
        self._state.data = data.model_copy(
            update={"accounts": replace_by_id(data.accounts, updated)}
        )
        return updated

    def archive_account(self, account_id: UUID) -> Account:
        """
        Hide an account from active selection.

        Its transactions stay in the journal and keep counting toward its
        balance.
        """
        return self.update_account(account_id, is_active=False)

    def set_default_account(self, account_id: UUID) -> Account:
        """Make ``account_id`` the default (re-activating it if archived)."""
        data = self._state.data
        target = get_or_raise(data.accounts, account_id, "account")

        accounts = []
        for account in data.accounts:
            if account.id == target.id:
                account = account.model_copy(update={"is_default": True, "is_active": True})
                target = account
            elif account.is_default:
                account = account.model_copy(update={"is_default": False})
            accounts.append(account)

        self._state.data = data.model_copy(update={"accounts": accounts})
        return target

    def delete_account(self, account_id: UUID) -> Account:
        data = self._state.data
        account = get_or_raise(data.accounts, account_id, "account")
        if account.is_default:
            raise DefaultAccountProtectedError(account_id)
        if len(data.accounts) == 1:
            raise DefaultAccountProtectedError(
                account_id, "The last remaining account cannot be deleted"
            )
        references = self.account_references(account_id)
        if references:
            raise DanglingReferenceError("account", account_id, references)

        self._state.data = data.model_copy(
            update={"accounts": remove_by_id(data.accounts, account_id)}
        )
        return account

    # ------------------------------------------------------------------
    # Categories (shared by both kinds)
    # ------------------------------------------------------------------

    def _categories(self, data: FinanceData, kind: str) -> list[AnyCategory]:
        field, _, _ = _CATEGORY_KINDS[kind]
        return getattr(data, field)

    def category_references(self, category_id: UUID, kind: str = "expense") -> dict[str, int]:
        data = self._state.data
        if kind == "income":
            counts = {"incomes": sum(1 for i in data.incomes if i.category_id == category_id)}
        else:
            counts = {
                "expenses": sum(1 for e in data.expenses if e.category_id == category_id),
                "installments": sum(
                    1 for i in data.installments if i.category_id == category_id
                ),
            }
        return {k: count for k, count in counts.items() if count}

    def _add_category(self, kind: str, name: str, fields: dict[str, Any]) -> AnyCategory:
        field, model, entity = _CATEGORY_KINDS[kind]
        data = self._state.data
        existing = self._categories(data, kind)
        if fields.get("monthly_budget") is not None:
            fields["monthly_budget"] = require_non_negative_amount(fields["monthly_budget"])
        payload = {
            "order": max((c.order for c in existing), default=0) + 1,
            **fields,
            "name": name,
            "is_default": False,
        }
        category = build(model, entity, payload)
        self._state.data = data.model_copy(update={field: [*existing, category]})
        return category

    def _update_category(self, kind: str, category_id: UUID, changes: dict[str, Any]) -> AnyCategory:
        field, _, entity = _CATEGORY_KINDS[kind]
        data = self._state.data
        existing = self._categories(data, kind)
        category = get_or_raise(existing, category_id, entity)
        if changes.get("monthly_budget") is not None:
            changes["monthly_budget"] = require_non_negative_amount(changes["monthly_budget"])

        updated = revise(category, changes, entity, protected=("id", "created_at", "is_default"))
        self._state.data = data.model_copy(update={field: replace_by_id(existing, updated)})
        return updated

    def _delete_category(self, kind: str, category_id: UUID) -> AnyCategory:
        field, _, entity = _CATEGORY_KINDS[kind]
        data = self._state.data
        existing = self._categories(data, kind)
        category = get_or_raise(existing, category_id, entity)
        if category.is_default:
            raise DefaultCategoryProtectedError(category_id)
        references = self.category_references(category_id, kind)
        if references:
            raise DanglingReferenceError(entity, category_id, references)

        self._state.data = data.model_copy(update={field: remove_by_id(existing, category_id)})
        return category

    # ------------------------------------------------------------------
    # Expense categories
    # ------------------------------------------------------------------

    def add_category(self, name: str, **fields: Any) -> ExpenseCategory:
        return self._add_category("expense", name, fields)

    def update_category(self, category_id: UUID, **changes: Any) -> ExpenseCategory:
        return self._update_category("expense", category_id, changes)

    def archive_category(self, category_id: UUID) -> ExpenseCategory:
        return self._update_category("expense", category_id, {"is_active": False})

    def delete_category(self, category_id: UUID) -> ExpenseCategory:
        return self._delete_category("expense", category_id)

    # ------------------------------------------------------------------
    # Income categories
    # ------------------------------------------------------------------

    def add_income_category(self, name: str, **fields: Any) -> IncomeCategory:
        return self._add_category("income", name, fields)

    def update_income_category(self, category_id: UUID, **changes: Any) -> IncomeCategory:
        return self._update_category("income", category_id, changes)

    def archive_income_category(self, category_id: UUID) -> IncomeCategory:
        return self._update_category("income", category_id, {"is_active": False})

    def delete_income_category(self, category_id: UUID) -> IncomeCategory:
        return self._delete_category("income", category_id)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def default_account(self) -> Optional[Account]:
        return next((a for a in self._state.data.accounts if a.is_default), None)

    def active_accounts(self) -> list[Account]:
        return sorted(
            (a for a in self._state.data.accounts if a.is_active),
            key=lambda a: a.order,
        )
