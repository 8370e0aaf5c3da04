"""
Two-Stage Import Validation

DESIGN DECISION: Imported documents are validated in two distinct stages:

STAGE 1 - SCHEMA VALIDATION:
- JSON parsing
- Required collections present
- Every record parses into its pydantic model
- This catches truncated files and hand-edited typos

STAGE 2 - SEMANTIC VALIDATION:
- Duplicate ids
- References to accounts that do not exist
- Exactly one default account
- Goal and installment running totals agree with their sub-ledgers
- Suspiciously large amounts
- This catches documents that parse but would corrupt the ledger

WHY TWO STAGES:
1. Stage 2 needs typed models, which only exist after stage 1
2. Better error messages (know exactly what kind of issue)

IMPORTANT: Validation NEVER silently fixes issues.
It reports them and the import is rejected as a whole.
"""

import json
from collections import Counter
from decimal import Decimal
from typing import Any, Iterable, Optional, Union
from uuid import UUID

from pydantic import ValidationError

from finledger.config import get_settings
from finledger.models.snapshot import FinanceData
from finledger.models.validation import ValidationIssue, ValidationResult


REQUIRED_KEYS = ("incomes", "expenses", "categories")


def _error(field: str, issue_type: str, message: str, fix: Optional[str] = None) -> ValidationIssue:
    return ValidationIssue(
        field=field,
        issue_type=issue_type,
        message=message,
        severity="error",
        suggested_fix=fix,
    )


def _warning(field: str, issue_type: str, message: str, fix: Optional[str] = None) -> ValidationIssue:
    return ValidationIssue(
        field=field,
        issue_type=issue_type,
        message=message,
        severity="warning",
        suggested_fix=fix,
    )


class ImportValidator:
    """
    Validates a document before it replaces the ledger.

    Stage 1: Schema validation
    Stage 2: Semantic validation (only if stage 1 passed)
    """

    def __init__(self, max_amount: Optional[Decimal] = None):
        if max_amount is None:
            max_amount = Decimal(str(get_settings().app.max_transaction_amount))
        self._max_amount = max_amount

    def _validate_schema(
        self,
        document: Union[str, bytes, dict],
    ) -> tuple[Optional[FinanceData], list[ValidationIssue]]:
        """
        Stage 1: Schema validation.

        Returns: (parsed_document_or_None, list_of_issues)
        """
        if isinstance(document, (str, bytes)):
            try:
                document = json.loads(document, parse_float=Decimal)
            except json.JSONDecodeError as e:
                return None, [_error(
                    "document", "invalid_json",
                    f"Document is not valid JSON: {e.msg} (line {e.lineno})",
                    "Export the data again from the source",
                )]

        if not isinstance(document, dict):
            return None, [_error(
                "document", "invalid_type",
                f"Document must be a JSON object, got {type(document).__name__}",
            )]

        missing = [key for key in REQUIRED_KEYS if key not in document]
        if missing:
            return None, [
                _error(key, "missing", f"Required collection '{key}' is missing")
                for key in missing
            ]

        try:
            return FinanceData.model_validate(document), []
        except ValidationError as e:
            issues = []
            for err in e.errors():
                location = ".".join(str(part) for part in err["loc"]) or "document"
                issues.append(_error(location, err["type"], f"{location}: {err['msg']}"))
            return None, issues

    def _validate_semantic(self, data: FinanceData) -> list[ValidationIssue]:
        """
        Stage 2: Semantic validation.

        Returns: list_of_issues
        """
        issues: list[ValidationIssue] = []

        # Duplicate ids per collection
        collections: dict[str, Iterable[Any]] = {
            "accounts": data.accounts,
            "transfers": data.transfers,
            "incomes": data.incomes,
            "expenses": data.expenses,
            "categories": data.categories,
            "income_categories": data.income_categories,
            "installments": data.installments,
            "budgets": data.budgets,
            "goals": data.goals,
            "alerts": data.alerts,
        }
        for name, records in collections.items():
            counts = Counter(record.id for record in records)
            for record_id, count in counts.items():
                if count > 1:
                    issues.append(_error(
                        name, "duplicate_id",
                        f"{name}: id {record_id} appears {count} times",
                    ))

        # Accounts
        account_ids = {a.id for a in data.accounts}
        if not data.accounts:
            issues.append(_error(
                "accounts", "missing",
                "Document has no accounts",
                "Every ledger needs at least one account",
            ))
        else:
            defaults = sum(1 for a in data.accounts if a.is_default)
            if defaults != 1:
                issues.append(_error(
                    "accounts", "default_account",
                    f"Exactly one default account is required, found {defaults}",
                ))

        def check_account(field: str, account_id: Optional[UUID]) -> None:
            if account_id is not None and account_id not in account_ids:
                issues.append(_error(
                    field, "dangling_reference",
                    f"{field} refers to unknown account {account_id}",
                ))

        for i, income in enumerate(data.incomes):
            check_account(f"incomes.{i}.account_id", income.account_id)
        for i, expense in enumerate(data.expenses):
            check_account(f"expenses.{i}.account_id", expense.account_id)
        for i, transfer in enumerate(data.transfers):
            check_account(f"transfers.{i}.from_account_id", transfer.from_account_id)
            check_account(f"transfers.{i}.to_account_id", transfer.to_account_id)
        for i, installment in enumerate(data.installments):
            check_account(f"installments.{i}.linked_account_id", installment.linked_account_id)

        # Categories: unknown ones degrade to "Uncategorized" on read
        expense_category_ids = {c.id for c in data.categories}
        income_category_ids = {c.id for c in data.income_categories}
        for i, expense in enumerate(data.expenses):
            if expense.category_id not in expense_category_ids:
                issues.append(_warning(
                    f"expenses.{i}.category_id", "unknown_category",
                    f"Expense '{expense.title}' uses an unknown category",
                ))
        for i, income in enumerate(data.incomes):
            if income.category_id not in income_category_ids:
                issues.append(_warning(
                    f"incomes.{i}.category_id", "unknown_category",
                    f"Income '{income.title}' uses an unknown category",
                ))

        # Running totals must match their sub-ledgers
        for i, goal in enumerate(data.goals):
            if goal.current_amount != goal.contributions_total:
                issues.append(_error(
                    f"goals.{i}.current_amount", "running_total_mismatch",
                    f"Goal '{goal.title}' holds {goal.current_amount} but its "
                    f"contributions sum to {goal.contributions_total}",
                ))
        for i, installment in enumerate(data.installments):
            paid = sum((p.amount for p in installment.payments), Decimal("0"))
            if installment.paid_amount != paid:
                issues.append(_error(
                    f"installments.{i}.paid_amount", "running_total_mismatch",
                    f"Installment '{installment.title}' shows {installment.paid_amount} "
                    f"paid but its payments sum to {paid}",
                ))

        # One budget per month
        month_counts = Counter(b.month for b in data.budgets)
        for month, count in month_counts.items():
            if count > 1:
                issues.append(_error(
                    "budgets", "duplicate_month",
                    f"Month {month} has {count} budgets",
                ))

        # Absurd amounts
        for name, records in (("incomes", data.incomes), ("expenses", data.expenses)):
            for i, record in enumerate(records):
                if record.amount > self._max_amount:
                    issues.append(_warning(
                        f"{name}.{i}.amount", "suspicious_value",
                        f"Amount {record.amount} on '{record.title}' seems unusually high",
                        "Please verify this amount is correct",
                    ))

        return issues

    def validate(
        self,
        document: Union[str, bytes, dict],
    ) -> tuple[ValidationResult, Optional[FinanceData]]:
        """
        Run full two-stage validation pipeline.

        Returns:
            (ValidationResult, parsed document). The document is None
            whenever the result is not valid.
        """
        data, all_issues = self._validate_schema(document)
        schema_valid = data is not None

        semantic_valid = False
        if data is not None:
            all_issues.extend(self._validate_semantic(data))
            semantic_valid = not any(issue.severity == "error" for issue in all_issues)

        warnings = [issue.message for issue in all_issues if issue.severity == "warning"]
        is_valid = schema_valid and semantic_valid

        result = ValidationResult(
            schema_valid=schema_valid,
            semantic_valid=semantic_valid,
            is_valid=is_valid,
            issues=all_issues,
            warnings=warnings,
        )
        return result, (data if is_valid else None)

    def get_user_friendly_summary(self, result: ValidationResult) -> str:
        """Plain-text summary of a validation result."""
        if result.is_valid and not result.warnings:
            return "All checks passed."

        lines = []
        errors = [issue for issue in result.issues if issue.severity == "error"]
        if errors:
            lines.append("The document cannot be imported:")
            for issue in errors:
                lines.append(f"  - {issue.message}")
                if issue.suggested_fix:
                    lines.append(f"    hint: {issue.suggested_fix}")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("Please verify the following:")
            for warning in result.warnings:
                lines.append(f"  - {warning}")

        return "\n".join(lines)
