"""
Recurrence Processor

Recurring incomes and expenses are templates. Each time ``process`` runs,
every period that came due since the last run is materialized as an
ordinary (non-recurring) journal entry, and the template's next_occurrence
moves past today.

Running it twice on the same day generates nothing the second time: an
entry with the same title, amount and date is treated as already there.
"""

import datetime as dt
from typing import Callable, Optional, Union
from uuid import uuid4

import structlog

from finledger.models.base import Frequency, utc_now
from finledger.models.transaction import Expense, Income, IncomeStatus
from finledger.schedule import advance_date
from finledger.state import FinanceState


logger = structlog.get_logger(__name__)

JournalRecord = Union[Income, Expense]


NOTES_MAX_LENGTH = 1000


def _note(notes: Optional[str], kind: str) -> str:
    """Template notes tagged as generated, shortened to fit the notes limit."""
    suffix = f"Auto-generated from recurring {kind}"
    if not notes:
        return suffix
    room = NOTES_MAX_LENGTH - len(suffix) - len(" | ")
    return f"{notes[:room]} | {suffix}"


class RecurrenceProcessor:

    def __init__(
        self,
        state: FinanceState,
        clock: Callable[[], dt.date] = dt.date.today,
    ):
        self._state = state
        self._clock = clock

    def _expand(
        self,
        records: list[JournalRecord],
        today: dt.date,
        kind: str,
    ) -> tuple[list[JournalRecord], list[JournalRecord]]:
        """Returns (records with templates advanced, newly generated records)."""
        existing = {(r.title, r.amount, r.date) for r in records}
        updated: list[JournalRecord] = []
        generated: list[JournalRecord] = []

        for record in records:
            if (
                not record.is_recurring
                or record.frequency is None
                or record.frequency == Frequency.ONE_TIME
                or (record.recurring_end_date and record.recurring_end_date < today)
            ):
                updated.append(record)
                continue

            due = record.next_occurrence or advance_date(record.date, record.frequency)
            while due <= today:
                if record.recurring_end_date and due > record.recurring_end_date:
                    break
                key = (record.title, record.amount, due)
                if key not in existing:
                    now = utc_now()
                    changes = {
                        "id": uuid4(),
                        "date": due,
                        "is_recurring": False,
                        "next_occurrence": None,
                        "recurring_end_date": None,
                        "notes": _note(record.notes, kind),
                        "created_at": now,
                        "updated_at": now,
                    }
                    if isinstance(record, Income):
                        changes["status"] = IncomeStatus.RECEIVED
                    copy = type(record).model_validate({**record.model_dump(), **changes})
                    generated.append(copy)
                    existing.add(key)
                due = advance_date(due, record.frequency)

            if due != record.next_occurrence:
                record = record.model_copy(update={"next_occurrence": due, "updated_at": utc_now()})
            updated.append(record)

        return updated, generated

    def process(self, today: Optional[dt.date] = None) -> list[JournalRecord]:
        """
        Materialize every due occurrence up to and including ``today``.

        Returns the generated records (incomes first, then expenses).
        """
        today = today or self._clock()
        data = self._state.data

        incomes, new_incomes = self._expand(list(data.incomes), today, "income")
        expenses, new_expenses = self._expand(list(data.expenses), today, "expense")

        generated: list[JournalRecord] = [*new_incomes, *new_expenses]
        if generated or incomes != data.incomes or expenses != data.expenses:
            self._state.data = data.model_copy(update={
                "incomes": incomes + new_incomes,
                "expenses": expenses + new_expenses,
            })

        if generated:
            logger.info(
                "recurring_generated",
                incomes=len(new_incomes),
                expenses=len(new_expenses),
                as_of=today.isoformat(),
            )
        return generated
