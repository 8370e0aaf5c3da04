"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Keep the ledger on disk as a JSON document today
2. Use in-memory storage for testing
3. Move to a database later without touching engine logic

The interface is intentionally simple. The ledger is small enough to be
loaded and saved as one document, so there is no per-record API.
"""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from finledger.models.audit import AuditEvent
from finledger.models.snapshot import FinanceData


class FinanceStorageInterface(ABC):
    """
    Abstract interface for the ledger document.

    Any storage implementation must implement these methods.
    """

    @abstractmethod
    def load(self) -> Optional[FinanceData]:
        """
        Load the stored ledger.

        Returns:
            The stored document, or None if nothing was saved yet

        Raises:
            CorruptDataError: If the stored document cannot be parsed
            StorageError: If reading fails
        """
        pass

    @abstractmethod
    def save(self, data: FinanceData) -> bool:
        """
        Replace the stored ledger with ``data``.

        Args:
            data: The complete document to persist

        Returns:
            True if saved successfully

        Raises:
            StorageError: If the write fails
        """
        pass


class CelebrationStorageInterface(ABC):
    """
    Abstract interface for the set of goals whose completion was celebrated.

    Kept apart from the ledger document so that resetting or importing data
    never re-arms a celebration.
    """

    @abstractmethod
    def load_celebrated(self) -> set[UUID]:
        """Load celebrated goal ids. Empty set if nothing was saved yet."""
        pass

    @abstractmethod
    def save_celebrated(self, goal_ids: set[UUID]) -> bool:
        """
        Replace the stored set.

        Raises:
            StorageError: If the write fails
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Args:
            event: The audit event to log

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for a specific entity.

        Args:
            entity_type: Type of entity (e.g., 'goal', 'installment')
            entity_id: The entity's ID

        Returns:
            List of events in chronological order
        """
        pass

    @abstractmethod
    def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Args:
            limit: Maximum number of events to return

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Requested stored item does not exist."""
    pass


class CorruptDataError(StorageError):
    """Stored data exists but cannot be parsed back into models."""
    pass
