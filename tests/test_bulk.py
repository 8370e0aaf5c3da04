"""
Tests for export, import and reset.

Import is all or nothing: a rejected document leaves the ledger as it was.
"""

import json
from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from finledger.errors import ImportMalformedError
from finledger.models.audit import AuditEventType


@pytest.fixture
def populated(engine, cash, bank, salary, groceries):
    """An engine with something of every kind in it."""
    engine.add_income("Salary", 1000, salary.id, bank.id, date=date(2024, 3, 1))
    engine.add_expense("Groceries", "82.40", groceries.id, cash.id)
    engine.add_transfer(bank.id, cash.id, 200)
    goal = engine.add_goal("Trip", 2000, current_amount=100)
    engine.add_contribution(goal.id, 50)
    plan = engine.add_installment("Phone", 1200, 100, 12, start_date=date(2024, 1, 1), paid_amount=300, paid_installments=3)
    engine.add_payment(plan.id, 100, account_id=bank.id)
    engine.create_budget("2024-03", savings_goal=250)
    return engine


class TestExport:
    """Tests for export_data."""

    def test_export_is_stamped_copy(self, populated):
        """Test export carries exported_at and is detached from the engine."""
        exported = populated.export_data()

        assert exported.exported_at is not None
        assert exported.version == "2.0.0"
        assert exported.model_dump(exclude={"exported_at"}) == \
            populated.data.model_dump(exclude={"exported_at"})

    def test_export_json_is_valid_json(self, populated):
        """Test the JSON export parses."""
        document = json.loads(populated.export_json())
        assert len(document["accounts"]) == 2
        assert document["expenses"][0]["title"] == "Groceries"


class TestImport:
    """Tests for import_data."""

    def test_round_trip(self, populated):
        """Test export, reset, import gives back the same ledger."""
        exported = populated.export_data()
        populated.reset_data()

        result = populated.import_data(exported)

        assert result.is_valid
        assert populated.data.model_dump(exclude={"exported_at"}) == \
            exported.model_dump(exclude={"exported_at"})

    def test_round_trip_through_json(self, populated, bank):
        """Test a JSON text export imports back with the same balances."""
        balance = populated.balance_of(bank.id)
        text = populated.export_json()
        populated.reset_data()

        populated.import_data(text)

        assert populated.balance_of(bank.id) == balance

    def test_invalid_json_rejected(self, populated):
        """Test unparseable text is refused and nothing changes."""
        before = populated.data

        with pytest.raises(ImportMalformedError) as exc_info:
            populated.import_data("{not json")

        assert populated.data == before
        assert exc_info.value.result.issues[0].issue_type == "invalid_json"

    def test_missing_collection_rejected(self, populated):
        """Test a document without incomes is refused."""
        document = json.loads(populated.export_json())
        del document["incomes"]

        with pytest.raises(ImportMalformedError):
            populated.import_data(document)

    def test_dangling_account_rejected(self, populated):
        """Test an expense pointing at an unknown account is refused."""
        document = json.loads(populated.export_json())
        document["expenses"][0]["account_id"] = str(uuid4())
        before = populated.data

        with pytest.raises(ImportMalformedError) as exc_info:
            populated.import_data(document)

        assert populated.data == before
        types = [issue.issue_type for issue in exc_info.value.result.issues]
        assert "dangling_reference" in types

    def test_running_total_mismatch_rejected(self, populated):
        """Test a goal whose total disagrees with its contributions is refused."""
        document = json.loads(populated.export_json())
        document["goals"][0]["current_amount"] = "9999"

        with pytest.raises(ImportMalformedError):
            populated.import_data(document)

    def test_two_default_accounts_rejected(self, populated):
        """Test exactly one default account is required."""
        document = json.loads(populated.export_json())
        for account in document["accounts"]:
            account["is_default"] = True

        with pytest.raises(ImportMalformedError):
            populated.import_data(document)

    def test_unknown_category_is_only_a_warning(self, populated):
        """Test unknown categories import with a warning."""
        document = json.loads(populated.export_json())
        document["expenses"][0]["category_id"] = str(uuid4())

        result = populated.import_data(document)

        assert result.is_valid
        assert result.warnings

    def test_rejection_is_audited(self, populated, audit_storage):
        """Test a rejected import writes an IMPORT_REJECTED event."""
        with pytest.raises(ImportMalformedError):
            populated.import_data([])

        assert audit_storage.events[-1].event_type == AuditEventType.IMPORT_REJECTED


class TestReset:
    """Tests for reset_data."""

    def test_reset_restores_defaults(self, populated):
        """Test reset leaves one default cash account and default categories."""
        data = populated.reset_data()

        assert [a.name for a in data.accounts] == ["Main Cash"]
        assert data.incomes == data.expenses == data.transfers == []
        assert data.goals == data.installments == data.budgets == []
        assert all(c.is_default for c in data.categories)
        assert populated.net_worth() == Decimal("0")

    def test_reset_keeps_celebrations(self, engine):
        """Test a celebrated goal stays celebrated across a reset."""
        goal = engine.add_goal("Trip", 10)
        engine.add_contribution(goal.id, 10)

        engine.reset_data()

        assert goal.id in engine.celebrations

    def test_reset_is_persisted(self, populated, storage):
        """Test reset is written to storage."""
        populated.reset_data()
        assert storage.load().incomes == []
