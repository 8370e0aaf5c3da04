"""Services package."""

from finledger.services.storage import (
    AuditStorageInterface,
    CelebrationStorageInterface,
    CorruptDataError,
    FinanceStorageInterface,
    InMemoryAuditStorage,
    InMemoryCelebrationStorage,
    InMemoryFinanceStorage,
    JsonCelebrationStorage,
    JsonFinanceStorage,
    JsonLinesAuditStorage,
    NotFoundError,
    StorageError,
)

__all__ = [
    "AuditStorageInterface",
    "CelebrationStorageInterface",
    "CorruptDataError",
    "FinanceStorageInterface",
    "InMemoryAuditStorage",
    "InMemoryCelebrationStorage",
    "InMemoryFinanceStorage",
    "JsonCelebrationStorage",
    "JsonFinanceStorage",
    "JsonLinesAuditStorage",
    "NotFoundError",
    "StorageError",
]
