"""
Celebration Registry

The set of goal ids whose completion has already been celebrated.

Lifecycle: loaded from storage at startup, grown when a goal first crosses
its target, persisted after every change. It lives outside the ledger
document, so resetting or importing data never celebrates a goal twice.
"""

from typing import Optional
from uuid import UUID

import structlog

from finledger.services.storage import CelebrationStorageInterface, StorageError


class CelebrationRegistry:

    def __init__(self, storage: Optional[CelebrationStorageInterface] = None):
        self._storage = storage
        self._logger = structlog.get_logger(__name__)
        self._celebrated: set[UUID] = storage.load_celebrated() if storage else set()

    def __contains__(self, goal_id: UUID) -> bool:
        return goal_id in self._celebrated

    def __len__(self) -> int:
        return len(self._celebrated)

    @property
    def celebrated(self) -> frozenset[UUID]:
        return frozenset(self._celebrated)

    def mark(self, goal_id: UUID) -> bool:
        """
        Record ``goal_id`` as celebrated.

        Returns True if it was not celebrated before (i.e. the caller should
        celebrate now), False if it already was.
        """
        if goal_id in self._celebrated:
            return False
        self._celebrated.add(goal_id)
        self._persist()
        return True

    def forget(self, goal_id: UUID) -> None:
        """Drop a deleted goal's id."""
        if goal_id in self._celebrated:
            self._celebrated.discard(goal_id)
            self._persist()

    def _persist(self) -> None:
        if self._storage is None:
            return
        try:
            self._storage.save_celebrated(set(self._celebrated))
        except StorageError as e:
            # In-memory set stays authoritative for this session
            self._logger.error("celebrations_save_failed", error=str(e))
