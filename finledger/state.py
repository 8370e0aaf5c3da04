"""
Shared ledger state.

Every component reads ``state.data`` and writes by assigning a new
FinanceData to it. Components never mutate models in place: they build new
instances and swap them in with a single assignment, so a failed operation
cannot leave half an update behind.
"""

from typing import Any, Iterable, Optional, Sequence, TypeVar
from uuid import UUID

from pydantic import BaseModel, ValidationError

from finledger.errors import EntityNotFoundError, InvalidFieldError, ProtectedFieldError
from finledger.models.base import utc_now
from finledger.models.snapshot import FinanceData


T = TypeVar("T", bound=BaseModel)


class FinanceState:
    """Holder for the current ledger document."""

    def __init__(self, data: FinanceData):
        self.data = data


def find_by_id(records: Sequence[T], record_id: UUID) -> Optional[T]:
    for record in records:
        if record.id == record_id:
            return record
    return None


def get_or_raise(records: Sequence[T], record_id: UUID, entity_type: str) -> T:
    record = find_by_id(records, record_id)
    if record is None:
        raise EntityNotFoundError(entity_type, record_id)
    return record


def replace_by_id(records: Sequence[T], updated: T) -> list[T]:
    """New list with the record sharing ``updated.id`` swapped out."""
    return [updated if record.id == updated.id else record for record in records]


def remove_by_id(records: Sequence[T], record_id: UUID) -> list[T]:
    return [record for record in records if record.id != record_id]


def revise(
    record: T,
    changes: dict[str, Any],
    entity_type: str,
    protected: Iterable[str] = ("id", "created_at"),
) -> T:
    """
    Re-validated copy of ``record`` with ``changes`` applied.

    Raises:
        ProtectedFieldError: If a protected field is in ``changes``
        InvalidFieldError: On unknown fields or values the model rejects
    """
    protected = set(protected)
    blocked = [name for name in changes if name in protected]
    if blocked:
        raise ProtectedFieldError(entity_type, blocked)

    fields = type(record).model_fields
    unknown = [name for name in changes if name not in fields]
    if unknown:
        raise InvalidFieldError(entity_type, f"unknown fields {', '.join(sorted(unknown))}")

    payload = {**record.model_dump(), **changes}
    if "updated_at" in fields:
        payload["updated_at"] = utc_now()
    try:
        return type(record).model_validate(payload)
    except ValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first["loc"])
        raise InvalidFieldError(entity_type, f"{location}: {first['msg']}") from e


def build(model: type[T], entity_type: str, payload: dict[str, Any]) -> T:
    """Validate a new record, turning pydantic errors into InvalidFieldError."""
    unknown = [name for name in payload if name not in model.model_fields]
    if unknown:
        raise InvalidFieldError(entity_type, f"unknown fields {', '.join(sorted(unknown))}")
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first["loc"])
        raise InvalidFieldError(entity_type, f"{location}: {first['msg']}") from e
