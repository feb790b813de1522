"""Timezone helpers shared by the filter and the recurrence expander.

Calendar-date comparisons (date windows, "today", recurrence end dates) are
made in the configured local zone so an evening event is not pushed onto the
next UTC day.
"""
from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from functools import lru_cache
from zoneinfo import ZoneInfo

from app.config import settings


@lru_cache(maxsize=8)
def _zone(name: str) -> ZoneInfo:
    return ZoneInfo(name)


def local_tz() -> ZoneInfo:
    return _zone(settings.LOCAL_TIMEZONE)


def ensure_aware(dt: datetime) -> datetime:
    """Attach the local zone to naive datetimes; aware ones pass through."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=local_tz())
    return dt


def to_local(dt: datetime) -> datetime:
    return ensure_aware(dt).astimezone(local_tz())


def local_date(dt: datetime) -> date:
    return to_local(dt).date()


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def local_today(now: datetime | None = None) -> date:
    return local_date(now or utc_now())


def window_from_offsets(
    today: date,
    from_days: int | None,
    to_days: int | None,
) -> tuple[date | None, date | None]:
    """Turn day offsets relative to *today* into an inclusive date window.

    Offsets are counted on the local calendar, never as 24h multiples from
    the current instant.
    """
    date_from = today + timedelta(days=from_days) if from_days is not None else None
    date_to = today + timedelta(days=to_days) if to_days is not None else None
    return date_from, date_to
