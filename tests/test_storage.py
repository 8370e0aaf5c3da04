"""
Tests for storage backends.

JSON backends write under pytest's tmp_path; nothing outside it is touched.
"""

from decimal import Decimal
from uuid import uuid4

import pytest

from finledger.audit import AuditLogger
from finledger.errors import SameAccountTransferError
from finledger.models.audit import AuditEventBuilder, AuditEventType
from finledger.models.snapshot import default_finance_data
from finledger.orchestrator import FinanceEngine
from finledger.services.storage import (
    CorruptDataError,
    InMemoryFinanceStorage,
    JsonCelebrationStorage,
    JsonFinanceStorage,
    JsonLinesAuditStorage,
    StorageError,
    atomic_write_text,
)


class TestInMemoryStorage:
    """Tests for the in-memory backend."""

    def test_empty_storage_loads_none(self):
        """Test nothing stored means None."""
        assert InMemoryFinanceStorage().load() is None

    def test_loaded_copy_is_detached(self):
        """Test callers cannot mutate what is stored."""
        storage = InMemoryFinanceStorage(default_finance_data())
        loaded = storage.load()
        loaded.accounts.clear()

        assert len(storage.load().accounts) == 1

    def test_engine_saves_after_each_mutation(self, engine, storage, cash, groceries):
        """Test every successful command is persisted."""
        saves = storage.save_count
        engine.add_expense("Bread", 2, groceries.id, cash.id)
        assert storage.save_count == saves + 1

    def test_rejected_command_is_not_saved(self, engine, storage, cash):
        """Test a rejected command writes nothing."""
        saves = storage.save_count
        with pytest.raises(SameAccountTransferError):
            engine.add_transfer(cash.id, cash.id, 5)
        assert storage.save_count == saves


class TestJsonFinanceStorage:
    """Tests for the JSON document backend."""

    def test_missing_file_loads_none(self, tmp_path):
        """Test a first run has nothing to load."""
        assert JsonFinanceStorage(tmp_path / "finance.json").load() is None

    def test_save_and_load(self, tmp_path):
        """Test a saved document loads back equal."""
        storage = JsonFinanceStorage(tmp_path / "nested" / "finance.json")
        data = default_finance_data("USD")

        storage.save(data)

        assert storage.load() == data
        assert not list((tmp_path / "nested").glob("*.tmp"))

    def test_corrupt_file_raises(self, tmp_path):
        """Test an invalid document raises CorruptDataError."""
        path = tmp_path / "finance.json"
        path.write_text('{"accounts": "nope"}', encoding="utf-8")

        with pytest.raises(CorruptDataError):
            JsonFinanceStorage(path).load()

    def test_non_utf8_file_raises_corrupt(self, tmp_path):
        """Test undecodable bytes raise CorruptDataError."""
        path = tmp_path / "finance.json"
        path.write_bytes(b"\xff\xfe\x00garbage")

        with pytest.raises(CorruptDataError):
            JsonFinanceStorage(path).load()

    def test_engine_reloads_from_disk(self, tmp_path, clock):
        """Test a second engine sees what the first one wrote."""
        path = tmp_path / "finance.json"
        first = FinanceEngine(storage=JsonFinanceStorage(path), clock=clock)
        account = first.add_account("Bank", initial_balance="99.99")

        second = FinanceEngine(storage=JsonFinanceStorage(path), clock=clock)

        assert second.balance_of(account.id) == Decimal("99.99")

    def test_write_failure_raises_storage_error(self, tmp_path):
        """Test a path that cannot be written raises StorageError."""
        blocker = tmp_path / "file"
        blocker.write_text("x", encoding="utf-8")

        with pytest.raises(StorageError):
            atomic_write_text(blocker / "child.json", "{}", attempts=1)

    def test_save_failure_is_audited_and_raised(self, audit_storage, clock):
        """Test a failed save surfaces to the caller and the audit trail."""

        class BrokenStorage(InMemoryFinanceStorage):
            def save(self, data):
                if self.save_count:
                    raise StorageError("disk full")
                return super().save(data)

        engine = FinanceEngine(
            storage=BrokenStorage(),
            audit_logger=AuditLogger(audit_storage),
            clock=clock,
        )

        with pytest.raises(StorageError):
            engine.add_account("Bank")

        assert audit_storage.events[-1].event_type == AuditEventType.SAVE_FAILED


class TestJsonCelebrationStorage:
    """Tests for the celebrated-goal file."""

    def test_round_trip(self, tmp_path):
        """Test ids survive a save and load."""
        storage = JsonCelebrationStorage(tmp_path / "celebrated.json")
        ids = {uuid4(), uuid4()}

        storage.save_celebrated(ids)

        assert storage.load_celebrated() == ids

    def test_missing_file_is_empty(self, tmp_path):
        """Test a first run has no celebrations."""
        assert JsonCelebrationStorage(tmp_path / "none.json").load_celebrated() == set()

    def test_corrupt_file_raises(self, tmp_path):
        """Test garbage raises CorruptDataError."""
        path = tmp_path / "celebrated.json"
        path.write_text('["not-a-uuid"]', encoding="utf-8")

        with pytest.raises(CorruptDataError):
            JsonCelebrationStorage(path).load_celebrated()


class TestJsonLinesAuditStorage:
    """Tests for the append-only audit file."""

    def test_append_and_query(self, tmp_path):
        """Test events are returned newest first and filterable by entity."""
        storage = JsonLinesAuditStorage(tmp_path / "audit.jsonl")
        goal_id = uuid4()
        storage.append_event(AuditEventBuilder.entity_event(
            AuditEventType.GOAL_CREATED, "goal", goal_id, "Goal created",
        ))
        storage.append_event(AuditEventBuilder.entity_event(
            AuditEventType.GOAL_UPDATED, "goal", goal_id, "Goal updated",
        ))
        storage.append_event(AuditEventBuilder.entity_event(
            AuditEventType.ACCOUNT_CREATED, "account", uuid4(), "Account created",
        ))

        recent = storage.get_recent_events(limit=2)
        by_goal = storage.get_events_by_entity("goal", goal_id)

        assert [e.event_type for e in recent] == [
            AuditEventType.ACCOUNT_CREATED,
            AuditEventType.GOAL_UPDATED,
        ]
        assert len(by_goal) == 2

    def test_bad_lines_are_skipped(self, tmp_path):
        """Test one unreadable line does not hide the others."""
        path = tmp_path / "audit.jsonl"
        storage = JsonLinesAuditStorage(path)
        storage.append_event(AuditEventBuilder.save_failed("boom"))
        with path.open("a", encoding="utf-8") as handle:
            handle.write("not json\n")

        assert len(storage.get_recent_events()) == 1

    def test_unwritable_directory_returns_false(self, tmp_path):
        """Test an audit path under a file fails quietly instead of raising."""
        blocker = tmp_path / "file"
        blocker.write_text("x", encoding="utf-8")
        storage = JsonLinesAuditStorage(blocker / "audit.jsonl", write_retries=1)

        assert storage.append_event(AuditEventBuilder.save_failed("boom")) is False
