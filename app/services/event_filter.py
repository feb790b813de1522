"""Visibility predicates for discovery.

All predicates are applied conjunctively. Each one takes an ``EventView``
(an occurrence with its distance already attached) and never mutates it.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date, datetime

from app.config import settings
from app.schemas.discovery import DiscoveryRequest
from app.schemas.enums import CategoryFilter, EventStatus
from app.schemas.event import EventView
from app.services.local_time import ensure_aware, local_date, local_today, utc_now

logger = logging.getLogger(__name__)


def radius_filter_active(request: DiscoveryRequest) -> bool:
    """A radius only restricts results when the requester has a location and
    asked for a radius other than the default one."""
    if not request.has_location or request.radius_km is None:
        return False
    return request.radius_km != settings.DEFAULT_SEARCH_RADIUS_KM


def is_active(event: EventView) -> bool:
    return event.status == EventStatus.ACTIVE


def matches_category(event: EventView, category: CategoryFilter) -> bool:
    if category == CategoryFilter.ALL:
        return True
    return event.category.value == category.value


def matches_search(event: EventView, text: str) -> bool:
    if not text:
        return True
    needle = text.lower()
    return needle in (event.title or "").lower() or needle in (event.description or "").lower()


def in_date_window(event: EventView, date_from: date | None, date_to: date | None) -> bool:
    day = local_date(event.date)
    if date_from and day < date_from:
        return False
    if date_to and day > date_to:
        return False
    return True


def is_upcoming(event: EventView, now: datetime) -> bool:
    return event.date >= now


def within_radius(event: EventView, radius_km: float) -> bool:
    if event.distance_km is None:
        return settings.RADIUS_INCLUDE_UNLOCATED
    return event.distance_km <= radius_km


def visible_to_requester(event: EventView, user_id: str | None) -> bool:
    """Hide the requester's own events and events they already reacted to."""
    if not user_id or not settings.HIDE_OWN_AND_SEEN_EVENTS:
        return True
    if event.organizer_id == user_id:
        return False
    return event.user_interaction is None


def filter_events(
    events: Iterable[EventView],
    request: DiscoveryRequest,
    *,
    now: datetime | None = None,
) -> list[EventView]:
    """Return the events that pass every predicate, in input order."""
    now = ensure_aware(now) if now else utc_now()
    search = request.search_text
    radius = request.radius_km if radius_filter_active(request) else None

    kept: list[EventView] = []
    dropped = 0
    for event in events:
        if (
            is_active(event)
            and matches_category(event, request.category)
            and matches_search(event, search)
            and in_date_window(event, request.date_from, request.date_to)
            and (not request.hide_past or is_upcoming(event, now))
            and (radius is None or within_radius(event, radius))
            and visible_to_requester(event, request.user_id)
        ):
            kept.append(event)
        else:
            dropped += 1

    logger.debug("Filter kept %d events, dropped %d (today=%s)", len(kept), dropped, local_today(now))
    return kept
