"""
In-Memory Storage

Used by tests and by the ``memory`` backend. Documents are deep-copied on
the way in and out so callers can never mutate what is "stored".
"""

from typing import Optional
from uuid import UUID

from finledger.models.audit import AuditEvent
from finledger.models.snapshot import FinanceData
from finledger.services.storage.interface import (
    AuditStorageInterface,
    CelebrationStorageInterface,
    FinanceStorageInterface,
)


class InMemoryFinanceStorage(FinanceStorageInterface):

    def __init__(self, initial: Optional[FinanceData] = None):
        self._data = initial.model_copy(deep=True) if initial else None
        self.save_count = 0

    def load(self) -> Optional[FinanceData]:
        if self._data is None:
            return None
        return self._data.model_copy(deep=True)

    def save(self, data: FinanceData) -> bool:
        self._data = data.model_copy(deep=True)
        self.save_count += 1
        return True


class InMemoryCelebrationStorage(CelebrationStorageInterface):

    def __init__(self, initial: Optional[set[UUID]] = None):
        self._goal_ids: set[UUID] = set(initial or ())

    def load_celebrated(self) -> set[UUID]:
        return set(self._goal_ids)

    def save_celebrated(self, goal_ids: set[UUID]) -> bool:
        self._goal_ids = set(goal_ids)
        return True


class InMemoryAuditStorage(AuditStorageInterface):

    def __init__(self):
        self.events: list[AuditEvent] = []

    def append_event(self, event: AuditEvent) -> bool:
        self.events.append(event)
        return True

    def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: UUID,
    ) -> list[AuditEvent]:
        return [
            e for e in self.events
            if e.entity_type == entity_type and e.entity_id == entity_id
        ]

    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return list(reversed(self.events))[:limit]
