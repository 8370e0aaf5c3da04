"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Currently implements JSON files on disk and an in-memory backend for tests.
"""

from finledger.services.storage.interface import (
    AuditStorageInterface,
    CelebrationStorageInterface,
    CorruptDataError,
    FinanceStorageInterface,
    NotFoundError,
    StorageError,
)
from finledger.services.storage.json_file import (
    JsonCelebrationStorage,
    JsonFinanceStorage,
    JsonLinesAuditStorage,
    atomic_write_text,
)
from finledger.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryCelebrationStorage,
    InMemoryFinanceStorage,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "CelebrationStorageInterface",
    "FinanceStorageInterface",
    # Exceptions
    "CorruptDataError",
    "NotFoundError",
    "StorageError",
    # JSON implementation
    "JsonCelebrationStorage",
    "JsonFinanceStorage",
    "JsonLinesAuditStorage",
    "atomic_write_text",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryCelebrationStorage",
    "InMemoryFinanceStorage",
]
