"""
JSON File Storage Implementation

DESIGN DECISION: The ledger is stored as a single JSON document because:
1. It is small (one person's finances)
2. The export format and the storage format are then the same thing
3. Users can back it up by copying one file

TRADEOFFS:
- Every save rewrites the whole file (fine at this scale)
- No concurrent writers (the engine is single-user)

Writes go to a temporary file first and are moved into place with
os.replace, so a crash mid-write leaves the previous document intact.
Transient OS errors are retried with tenacity.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Optional
from uuid import UUID

import structlog
from pydantic import ValidationError
from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from finledger.models.audit import AuditEvent
from finledger.models.snapshot import FinanceData
from finledger.services.storage.interface import (
    AuditStorageInterface,
    CelebrationStorageInterface,
    CorruptDataError,
    FinanceStorageInterface,
    StorageError,
)


logger = structlog.get_logger(__name__)


def _retrying(attempts: int) -> Retrying:
    return Retrying(
        stop=stop_after_attempt(attempts),
        wait=wait_exponential(multiplier=0.1, min=0.1, max=2),
        retry=retry_if_exception_type(OSError),
        reraise=True,
    )


def atomic_write_text(path: Path, content: str, attempts: int = 3) -> None:
    """
    Replace ``path`` with ``content`` atomically.

    Raises:
        StorageError: If every attempt failed
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        for attempt in _retrying(attempts):
            with attempt:
                fd, tmp_name = tempfile.mkstemp(
                    dir=path.parent, prefix=f".{path.name}.", suffix=".tmp"
                )
                try:
                    with os.fdopen(fd, "w", encoding="utf-8") as handle:
                        handle.write(content)
                    os.replace(tmp_name, path)
                except OSError:
                    if os.path.exists(tmp_name):
                        os.unlink(tmp_name)
                    raise
    except OSError as e:
        raise StorageError(f"Failed to write {path}: {e}") from e


class JsonFinanceStorage(FinanceStorageInterface):
    """Ledger document kept in one JSON file."""

    def __init__(self, path: Path, write_retries: int = 3):
        self._path = Path(path)
        self._write_retries = write_retries

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> Optional[FinanceData]:
        if not self._path.exists():
            return None
        try:
            raw = self._path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise CorruptDataError(f"Stored ledger at {self._path} is not UTF-8: {e}") from e
        except OSError as e:
            raise StorageError(f"Failed to read {self._path}: {e}") from e

        try:
            return FinanceData.model_validate_json(raw)
        except ValidationError as e:
            raise CorruptDataError(
                f"Stored ledger at {self._path} is not valid: {e.error_count()} errors"
            ) from e

    def save(self, data: FinanceData) -> bool:
        atomic_write_text(
            self._path,
            data.model_dump_json(indent=2),
            attempts=self._write_retries,
        )
        logger.debug("ledger_saved", path=str(self._path))
        return True


class JsonCelebrationStorage(CelebrationStorageInterface):
    """Celebrated goal ids kept as a JSON array of strings."""

    def __init__(self, path: Path, write_retries: int = 3):
        self._path = Path(path)
        self._write_retries = write_retries

    def load_celebrated(self) -> set[UUID]:
        if not self._path.exists():
            return set()
        try:
            values = json.loads(self._path.read_text(encoding="utf-8"))
            return {UUID(v) for v in values}
        except OSError as e:
            raise StorageError(f"Failed to read {self._path}: {e}") from e
        except (ValueError, TypeError) as e:
            raise CorruptDataError(f"Celebration file {self._path} is not valid: {e}") from e

    def save_celebrated(self, goal_ids: set[UUID]) -> bool:
        payload = json.dumps(sorted(str(g) for g in goal_ids), indent=2)
        atomic_write_text(self._path, payload, attempts=self._write_retries)
        return True


class JsonLinesAuditStorage(AuditStorageInterface):
    """
    Audit events appended to a JSON Lines file.

    Unreadable lines are skipped on read so one bad line never hides the
    rest of the trail.
    """

    def __init__(self, path: Path, write_retries: int = 3):
        self._path = Path(path)
        self._write_retries = write_retries

    def append_event(self, event: AuditEvent) -> bool:
        line = event.model_dump_json() + "\n"
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            for attempt in _retrying(self._write_retries):
                with attempt:
                    with self._path.open("a", encoding="utf-8") as handle:
                        handle.write(line)
            return True
        except OSError as e:
            # Don't raise - audit logging should not break the main flow
            logger.error("audit_append_failed", error=str(e), path=str(self._path))
            return False

    def _read_all(self) -> list[AuditEvent]:
        if not self._path.exists():
            return []
        events = []
        try:
            with self._path.open(encoding="utf-8", errors="replace") as handle:
                for line in handle:
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        events.append(AuditEvent.model_validate_json(line))
                    except ValidationError:
                        logger.warning("audit_line_skipped", path=str(self._path))
        except OSError as e:
            raise StorageError(f"Failed to read audit log {self._path}: {e}") from e
        return events

    def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: UUID,
    ) -> list[AuditEvent]:
        return [
            e for e in self._read_all()
            if e.entity_type == entity_type and e.entity_id == entity_id
        ]

    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return list(reversed(self._read_all()))[:limit]
