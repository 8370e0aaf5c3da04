"""
Engine Errors

Every rejected operation raises a FinanceError subclass. A rejected
operation leaves the ledger exactly as it was.

Each error carries a stable ``code`` so callers (and the audit trail) can
tell failures apart without parsing messages.
"""

from decimal import Decimal
from typing import TYPE_CHECKING, Optional
from uuid import UUID

if TYPE_CHECKING:
    from finledger.models.validation import ValidationResult


class FinanceError(Exception):
    """Base exception for ledger operations."""

    code = "finance_error"


class InvalidAmountError(FinanceError):
    """Amount is zero, negative, or not a finite number."""

    code = "invalid_amount"

    def __init__(self, amount: object, message: Optional[str] = None):
        self.amount = amount
        super().__init__(message or f"Amount must be a finite positive number, got {amount!r}")


class SameAccountTransferError(FinanceError):
    """Transfer source and destination are the same account."""

    code = "same_account_transfer"

    def __init__(self, account_id: UUID):
        self.account_id = account_id
        super().__init__(f"Cannot transfer from account {account_id} to itself")


class InsufficientGoalBalanceError(FinanceError):
    """Withdrawal larger than what the goal currently holds."""

    code = "insufficient_goal_balance"

    def __init__(self, goal_id: UUID, requested: Decimal, available: Decimal):
        self.goal_id = goal_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Cannot withdraw {requested} from goal {goal_id}: only {available} saved"
        )


class InsufficientInstallmentPaidError(FinanceError):
    """Refund larger than what has been paid on the installment."""

    code = "insufficient_installment_paid"

    def __init__(self, installment_id: UUID, requested: Decimal, paid: Decimal):
        self.installment_id = installment_id
        self.requested = requested
        self.paid = paid
        super().__init__(
            f"Cannot refund {requested} on installment {installment_id}: only {paid} paid"
        )


class DefaultAccountProtectedError(FinanceError):
    """The default (or last remaining) account cannot be removed."""

    code = "default_account_protected"

    def __init__(self, account_id: UUID, message: Optional[str] = None):
        self.account_id = account_id
        super().__init__(message or f"Account {account_id} is the default account")


class DefaultCategoryProtectedError(FinanceError):
    """Built-in categories cannot be deleted."""

    code = "default_category_protected"

    def __init__(self, category_id: UUID):
        self.category_id = category_id
        super().__init__(f"Category {category_id} is a default category")


class DanglingReferenceError(FinanceError):
    """Deleting the entity would leave records pointing at nothing."""

    code = "dangling_reference"

    def __init__(self, entity_type: str, entity_id: UUID, references: dict[str, int]):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.references = references
        described = ", ".join(f"{count} {kind}" for kind, count in references.items())
        super().__init__(
            f"Cannot delete {entity_type} {entity_id}: still referenced by {described}"
        )


class EntityNotFoundError(FinanceError):
    """No entity of that type with that id."""

    code = "not_found"

    def __init__(self, entity_type: str, entity_id: UUID):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type.capitalize()} not found: {entity_id}")


class ProtectedFieldError(FinanceError):
    """Update tried to overwrite a field owned by the engine."""

    code = "protected_field"

    def __init__(self, entity_type: str, fields: list[str]):
        self.entity_type = entity_type
        self.fields = fields
        super().__init__(
            f"Cannot update {', '.join(sorted(fields))} on {entity_type} directly"
        )


class InvalidFieldError(FinanceError):
    """Payload names unknown fields or values the model rejects."""

    code = "invalid_field"

    def __init__(self, entity_type: str, message: str):
        self.entity_type = entity_type
        super().__init__(f"Invalid {entity_type}: {message}")


class InvalidMonthError(FinanceError):
    """Month string is not YYYY-MM."""

    code = "invalid_month"

    def __init__(self, month: object):
        self.month = month
        super().__init__(f"Month must be formatted YYYY-MM, got {month!r}")


class ImportMalformedError(FinanceError):
    """Imported document failed validation. Nothing was replaced."""

    code = "import_malformed"

    def __init__(self, result: "ValidationResult"):
        self.result = result
        messages = [issue.message for issue in result.issues if issue.severity == "error"]
        summary = "; ".join(messages[:3])
        if len(messages) > 3:
            summary += f" (+{len(messages) - 3} more)"
        super().__init__(f"Import rejected: {summary}")
