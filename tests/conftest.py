"""
Shared fixtures.

Every engine in the tests runs on in-memory storage and a fixed clock, so
nothing touches the filesystem and "today" never moves.
"""

from datetime import date

import pytest

from finledger.audit import AuditLogger
from finledger.orchestrator import FinanceEngine
from finledger.services.storage import (
    InMemoryAuditStorage,
    InMemoryCelebrationStorage,
    InMemoryFinanceStorage,
)


TODAY = date(2024, 3, 15)


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def clock():
    return lambda: TODAY


@pytest.fixture
def storage():
    return InMemoryFinanceStorage()


@pytest.fixture
def celebration_storage():
    return InMemoryCelebrationStorage()


@pytest.fixture
def audit_storage():
    return InMemoryAuditStorage()


@pytest.fixture
def make_engine(celebration_storage, audit_storage, clock):
    """Build an engine over a given finance storage."""
    def factory(storage):
        return FinanceEngine(
            storage=storage,
            celebration_storage=celebration_storage,
            audit_logger=AuditLogger(audit_storage),
            clock=clock,
        )
    return factory


@pytest.fixture
def engine(make_engine, storage):
    return make_engine(storage)


@pytest.fixture
def cash(engine):
    """The default "Main Cash" account every fresh ledger starts with."""
    return engine.data.accounts[0]


@pytest.fixture
def bank(engine):
    return engine.add_account("Bank")


@pytest.fixture
def groceries(engine):
    return next(c for c in engine.data.categories if c.name == "Groceries")


@pytest.fixture
def salary(engine):
    return next(c for c in engine.data.income_categories if c.name == "Salary")
