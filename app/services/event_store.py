"""Read and update the event snapshot kept in {DATA_DIR}/events.json.

File layout:
    {
      "events": [ {<EventRecord fields without per-request details>}, ... ],
      "organizers": {"<user id>": {"name": "...", "rating": {"average": 4.5, "count": 10}}}
    }

Organizer rating aggregates are maintained elsewhere; this module only reads
them. Interaction counts and the requester's own interaction come from
``interaction_store`` and are attached on every load, so each snapshot
reflects the state at the time of the call.
"""
from __future__ import annotations

import json
import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path
from threading import Lock
from typing import Any

from pydantic import ValidationError

from app.config import settings
from app.schemas.enums import EventStatus, InteractionType
from app.schemas.event import (
    EventCreate,
    EventRecord,
    EventUpdate,
    InteractionCounts,
    Organizer,
    OrganizerRating,
)
from app.services import interaction_store
from app.services.recurrence import parent_event_id

logger = logging.getLogger(__name__)

_lock = Lock()

# Fields attached per request; never written back to the file
_DERIVED_FIELDS = {"organizer", "interaction_counts", "organizer_rating", "user_interaction"}


def _events_file() -> Path:
    return settings.DATA_DIR / "events.json"


def _load_raw() -> dict[str, Any]:
    events_file = _events_file()
    if not events_file.exists():
        return {"events": [], "organizers": {}}
    try:
        with open(events_file, encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        logger.warning("Failed to read %s: %s", events_file, e)
        return {"events": [], "organizers": {}}
    data.setdefault("events", [])
    data.setdefault("organizers", {})
    return data


def _save_raw(data: dict[str, Any]) -> None:
    events_file = _events_file()
    events_file.parent.mkdir(parents=True, exist_ok=True)
    tmp = events_file.with_suffix(".tmp")
    with open(tmp, "w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=2, default=str)
    tmp.replace(events_file)


def _organizer(organizers: dict[str, Any], organizer_id: str) -> tuple[Organizer, OrganizerRating | None]:
    meta = organizers.get(organizer_id, {})
    rating = None
    raw_rating = meta.get("rating")
    if raw_rating and raw_rating.get("count"):
        try:
            rating = OrganizerRating.model_validate(raw_rating)
        except ValidationError as e:
            logger.warning("Ignoring invalid rating for organizer %s: %s", organizer_id, e)
    return Organizer(id=organizer_id, name=meta.get("name", "")), rating


def _to_record(
    raw: dict[str, Any],
    organizers: dict[str, Any],
    counts: dict[str, InteractionCounts],
    user_interactions: dict[str, Any],
) -> EventRecord | None:
    try:
        record = EventRecord.model_validate(
            {k: v for k, v in raw.items() if k not in _DERIVED_FIELDS}
        )
    except ValidationError as e:
        logger.warning("Skipping malformed event %s: %s", raw.get("id"), e)
        return None

    organizer, rating = _organizer(organizers, record.organizer_id)
    return record.model_copy(update={
        "organizer": organizer,
        "organizer_rating": rating,
        "interaction_counts": counts.get(record.id, InteractionCounts()),
        "user_interaction": user_interactions.get(record.id),
    })


def load_snapshot(user_id: str | None = None) -> list[EventRecord]:
    """All stored events (cancelled included) with details attached.

    *user_id* selects whose interaction is attached as ``user_interaction``.
    """
    data = _load_raw()
    counts = interaction_store.get_all_counts()
    user_interactions = interaction_store.get_user_interactions(user_id) if user_id else {}

    records: list[EventRecord] = []
    for raw in data["events"]:
        record = _to_record(raw, data["organizers"], counts, user_interactions)
        if record is not None:
            records.append(record)
    return records


def get_event(event_id: str, user_id: str | None = None) -> EventRecord | None:
    """Look up a stored event by its id or by one of its occurrence ids."""
    parent_id = parent_event_id(event_id)
    for record in load_snapshot(user_id=user_id):
        if record.id in (event_id, parent_id):
            return record
    return None


def count_events() -> int:
    return len(_load_raw()["events"])


def create_event(data: EventCreate) -> EventRecord:
    """Persist a validated event and return it with details attached."""
    now = datetime.now(timezone.utc)
    rule = data.recurrence_rule()
    record = EventRecord(
        id=str(uuid.uuid4()),
        title=data.title,
        description=data.description,
        category=data.category,
        date=data.date,
        address=data.address,
        latitude=data.latitude,
        longitude=data.longitude,
        price=data.price,
        capacity=data.capacity,
        image_url=data.image_url,
        organizer_id=data.organizer_id,
        recurrence=rule,
        created_at=now,
        updated_at=now,
    )

    with _lock:
        raw = _load_raw()
        raw["events"].append(record.model_dump(mode="json", exclude=_DERIVED_FIELDS))
        _save_raw(raw)
        organizers = raw["organizers"]

    logger.info("Created event %s (%s) for organizer %s", record.id, record.title, record.organizer_id)
    organizer, rating = _organizer(organizers, record.organizer_id)
    return record.model_copy(update={"organizer": organizer, "organizer_rating": rating})


_EDITABLE_FIELDS = {
    "title", "description", "category", "date", "address", "latitude", "longitude",
    "price", "capacity", "image_url", "organizer_id",
}


def _find_index(events: list[dict[str, Any]], event_id: str) -> int | None:
    for i, raw in enumerate(events):
        if raw.get("id") == event_id:
            return i
    return None


def _as_create_payload(record: EventRecord) -> dict[str, Any]:
    payload = record.model_dump(include=_EDITABLE_FIELDS)
    rule = record.recurrence
    payload.update(
        is_recurring=rule is not None,
        recurrence_type=rule.pattern if rule else None,
        recurrence_end_date=rule.end_date if rule else None,
    )
    return payload


def update_event(event_id: str, data: EventUpdate) -> EventRecord | None:
    """Apply a partial update to a stored event.

    The stored event and the update are merged and validated together as an
    ``EventCreate``, so a new start date or recurrence rule goes through the
    same checks as at creation time. Returns None when no event has *event_id*.

    Raises:
        ValidationError: the merged event is invalid.
    """
    updates = data.model_dump(exclude_unset=True)
    with _lock:
        raw = _load_raw()
        index = _find_index(raw["events"], event_id)
        if index is None:
            return None
        current = EventRecord.model_validate(
            {k: v for k, v in raw["events"][index].items() if k not in _DERIVED_FIELDS}
        )
        merged = EventCreate.model_validate({**_as_create_payload(current), **updates})

        changes = {field: getattr(merged, field) for field in _EDITABLE_FIELDS}
        changes["recurrence"] = merged.recurrence_rule()
        changes["updated_at"] = datetime.now(timezone.utc)
        record = current.model_copy(update=changes)
        raw["events"][index] = record.model_dump(mode="json", exclude=_DERIVED_FIELDS)
        _save_raw(raw)

    logger.info("Updated event %s (%s)", event_id, ", ".join(sorted(updates)) or "no fields")
    return get_event(event_id)


def cancel_event(event_id: str) -> EventRecord | None:
    """Mark an event cancelled. It stays stored but no longer shows in discovery."""
    with _lock:
        raw = _load_raw()
        index = _find_index(raw["events"], event_id)
        if index is None:
            return None
        raw["events"][index]["status"] = EventStatus.CANCELLED.value
        raw["events"][index]["updated_at"] = datetime.now(timezone.utc).isoformat()
        _save_raw(raw)

    logger.info("Cancelled event %s", event_id)
    return get_event(event_id)


def list_by_organizer(organizer_id: str) -> list[EventRecord]:
    """An organizer's events, cancelled included, newest first."""
    records = [r for r in load_snapshot() if r.organizer_id == organizer_id]
    return sorted(records, key=lambda r: r.created_at or r.date, reverse=True)


def list_by_user_interaction(user_id: str, interaction: InteractionType | str) -> list[EventRecord]:
    """Events *user_id* marked with *interaction*, most recent interaction first."""
    by_id = {r.id: r for r in load_snapshot(user_id=user_id)}
    event_ids = interaction_store.get_user_event_ids(user_id, interaction)
    return [by_id[event_id] for event_id in event_ids if event_id in by_id]


def set_organizer(
    organizer_id: str,
    *,
    name: str | None = None,
    rating: OrganizerRating | None = None,
) -> None:
    """Write organizer display data as delivered by the ratings collaborator."""
    with _lock:
        raw = _load_raw()
        meta = raw["organizers"].setdefault(organizer_id, {})
        if name is not None:
            meta["name"] = name
        if rating is not None:
            meta["rating"] = rating.model_dump()
        _save_raw(raw)


def clear_events() -> None:
    with _lock:
        _save_raw({"events": [], "organizers": {}})
