"""Ordering of discovered events.

Python's sort is stable, so ties keep their input order.
"""
from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from dataclasses import dataclass

from app.schemas.discovery import DiscoveryRequest
from app.schemas.enums import SortKey
from app.schemas.event import EventView

logger = logging.getLogger(__name__)


@dataclass
class RankResult:
    items: list[EventView]
    sort_by: SortKey
    degraded: bool = False
    reason: str | None = None


def resolve_sort_key(request: DiscoveryRequest) -> tuple[SortKey, str | None]:
    """Map the requested key onto the ordering that can actually be applied.

    Returns the key plus a reason when it differs from what was asked for.
    """
    raw = (request.sort_by or SortKey.DATE.value).strip().lower()
    try:
        key = SortKey(raw)
    except ValueError:
        return SortKey.DATE, f"unknown sort key {request.sort_by!r}, sorted by date"

    if key is SortKey.DISTANCE and not request.has_location:
        return SortKey.DATE, "distance sort requires userLat and userLng, sorted by date"
    return key, None


def _date_key(event: EventView):
    return event.date


def _distance_key(event: EventView):
    # Unknown distances go last
    return (event.distance_km is None, event.distance_km if event.distance_km is not None else math.inf)


def _popularity_key(event: EventView):
    return (-event.interaction_counts.popularity, event.date)


_KEYS = {
    SortKey.DATE: _date_key,
    SortKey.DISTANCE: _distance_key,
    SortKey.POPULARITY: _popularity_key,
}


def rank_events(events: Iterable[EventView], request: DiscoveryRequest) -> RankResult:
    key, reason = resolve_sort_key(request)
    if reason:
        logger.warning("Degraded ranking: %s", reason)
    items = sorted(events, key=_KEYS[key])
    return RankResult(items=items, sort_by=key, degraded=reason is not None, reason=reason)
