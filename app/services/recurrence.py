"""Recurring event validation and occurrence expansion.

A recurring event repeats weekly, every two weeks or monthly from its start
instant up to an inclusive end date, and may not run longer than
``settings.RECURRENCE_MAX_MONTHS`` calendar months.

Steps are taken on the local wall clock (``settings.LOCAL_TIMEZONE``), so a
19:00 event stays at 19:00 on both sides of a DST change. A wall time that
falls inside the spring-forward gap does not exist, so it moves forward by
the gap length (02:30 becomes 03:30).

Monthly occurrences are always computed from the start date, and a day that
does not exist in the target month is clamped to that month's last day:
31 Jan -> 28 Feb -> 31 Mar.
"""
from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone

from dateutil.relativedelta import relativedelta

from app.config import settings
from app.schemas.enums import RecurrencePattern
from app.services.local_time import local_date, local_tz, to_local

_STEP_DAYS = {
    RecurrencePattern.WEEKLY: 7,
    RecurrencePattern.BIWEEKLY: 14,
}

# Occurrence ids look like "<parent id>_YYYY-MM-DD"
_OCCURRENCE_ID_RE = re.compile(r"^(.+)_(\d{4}-\d{2}-\d{2})$")


class RecurrenceValidationError(ValueError):
    """Raised when a recurrence rule is incomplete or runs too long."""


def max_end_date(start: datetime, months: int | None = None) -> date:
    """Latest end date allowed for a series starting at *start*."""
    if months is None:
        months = settings.RECURRENCE_MAX_MONTHS
    return local_date(start) + relativedelta(months=months)


def validate_recurrence(
    start: datetime,
    pattern: RecurrencePattern | str | None,
    end_date: date | None,
    *,
    max_months: int | None = None,
) -> tuple[RecurrencePattern, date]:
    """Check a recurrence rule against its event start.

    Returns the normalised ``(pattern, end_date)`` pair.

    Raises:
        RecurrenceValidationError: missing pattern or end date, unknown
            pattern, end date before the start date, or end date past the
            maximum series length.
    """
    if not pattern or end_date is None:
        raise RecurrenceValidationError(
            "Recurring events must have a recurrence type and end date"
        )
    try:
        pattern = RecurrencePattern(pattern)
    except ValueError as e:
        raise RecurrenceValidationError(f"Unknown recurrence type: {pattern}") from e

    start_day = local_date(start)
    if end_date < start_day:
        raise RecurrenceValidationError(
            f"Recurrence end date {end_date} is before the start date {start_day}"
        )

    limit = max_end_date(start, max_months)
    if end_date > limit:
        months = settings.RECURRENCE_MAX_MONTHS if max_months is None else max_months
        raise RecurrenceValidationError(
            f"Recurrence end date {end_date} is more than {months} months "
            f"after the start date (latest allowed: {limit})"
        )
    return pattern, end_date


def _nth_occurrence(wall: datetime, pattern: RecurrencePattern, n: int) -> datetime:
    if pattern is RecurrencePattern.MONTHLY:
        return wall + relativedelta(months=n)
    return wall + timedelta(days=_STEP_DAYS[pattern] * n)


@dataclass(frozen=True)
class OccurrenceSeries:
    """Finite, restartable sequence of occurrence instants.

    Iterating twice yields the same instants. A series without a pattern
    holds only the start instant.
    """

    start: datetime
    pattern: RecurrencePattern | None = None
    end_date: date | None = None

    def __iter__(self) -> Iterator[datetime]:
        if self.pattern is None or self.end_date is None:
            yield self.start
            return

        pattern = RecurrencePattern(self.pattern)
        tz = local_tz()
        wall = to_local(self.start).replace(tzinfo=None)

        yield self.start
        n = 1
        while True:
            candidate = _nth_occurrence(wall, pattern, n)
            if candidate.date() > self.end_date:
                return
            # Round-trip through UTC so a wall time inside a spring-forward
            # gap (02:30 on the last Sunday of March) becomes a real instant
            yield candidate.replace(tzinfo=tz).astimezone(timezone.utc).astimezone(tz)
            n += 1


def expand_occurrences(
    start: datetime,
    pattern: RecurrencePattern | str | None = None,
    end_date: date | None = None,
) -> list[datetime]:
    pattern = RecurrencePattern(pattern) if pattern else None
    return list(OccurrenceSeries(start, pattern, end_date))


def occurrence_id(event_id: str, when: datetime) -> str:
    return f"{event_id}_{local_date(when).isoformat()}"


def parent_event_id(event_id: str) -> str:
    """Strip the occurrence date suffix from a composite id, if present."""
    match = _OCCURRENCE_ID_RE.match(event_id)
    return match.group(1) if match else event_id

