"""Event discovery: expand recurrences, attach computed fields, filter, rank.

``discover`` is a pure function over the snapshot it is given. It does not
mutate its inputs and caches nothing between calls, so it is safe to run
from concurrent request handlers.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from app.schemas.discovery import DiscoveryRequest, DiscoveryResponse
from app.schemas.enums import SortKey
from app.schemas.event import EventRecord, EventView
from app.services.event_filter import filter_events
from app.services.event_ranker import rank_events
from app.services.event_store import load_snapshot
from app.services.geo import event_distance_km
from app.services.local_time import utc_now
from app.services.recurrence import OccurrenceSeries, occurrence_id

logger = logging.getLogger(__name__)


@dataclass
class DiscoveryResult:
    items: list[EventView]
    sort_by: SortKey
    degraded: bool = False
    degraded_reason: str | None = None

    def to_response(self) -> DiscoveryResponse:
        return DiscoveryResponse(
            items=self.items,
            total=len(self.items),
            sort_by=self.sort_by,
            degraded=self.degraded,
            degraded_reason=self.degraded_reason,
        )


def occurrence_series(event: EventRecord) -> OccurrenceSeries:
    rule = event.recurrence
    if rule is None:
        return OccurrenceSeries(event.date)
    return OccurrenceSeries(event.date, rule.pattern, rule.end_date)


def expand_event(event: EventRecord, distance_km: float | None = None) -> list[EventView]:
    """One view per occurrence; recurring occurrences get composite ids."""
    base = event.model_dump(by_alias=True)
    views: list[EventView] = []
    for when in occurrence_series(event):
        views.append(
            EventView.model_validate({
                **base,
                "id": occurrence_id(event.id, when) if event.recurrence else event.id,
                "date": when,
                "parent_id": event.id,
                "distance_km": distance_km,
            })
        )
    return views


def discover(
    events: Iterable[EventRecord],
    request: DiscoveryRequest,
    *,
    now: datetime | None = None,
) -> DiscoveryResult:
    """Compute the ordered list of occurrences visible for *request*."""
    now = now or utc_now()

    views: list[EventView] = []
    for event in events:
        # Computed once per stored event and shared by its occurrences
        distance = event_distance_km(event.latitude, event.longitude, request.user_lat, request.user_lng)
        views.extend(expand_event(event, distance))

    visible = filter_events(views, request, now=now)
    ranked = rank_events(visible, request)

    logger.info(
        "Discovery: %d occurrences expanded, %d visible, sort=%s%s",
        len(views),
        len(ranked.items),
        ranked.sort_by.value,
        " (degraded)" if ranked.degraded else "",
    )
    return DiscoveryResult(
        items=ranked.items,
        sort_by=ranked.sort_by,
        degraded=ranked.degraded,
        degraded_reason=ranked.reason,
    )


def list_events(request: DiscoveryRequest, *, now: datetime | None = None) -> DiscoveryResponse:
    """Run discovery against the current store snapshot."""
    snapshot = load_snapshot(user_id=request.user_id)
    return discover(snapshot, request, now=now).to_response()
