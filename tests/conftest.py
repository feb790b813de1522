"""Shared fixtures: an isolated data directory and event factories."""
from datetime import datetime, timezone

import pytest

from app.config import settings
from app.schemas.event import EventRecord, EventView, InteractionCounts

# A fixed "current instant" for predicates that look at the clock
NOW = datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Point the stores at a temp directory and pin the local timezone."""
    monkeypatch.setattr(settings, "DATA_DIR", tmp_path / "data")
    monkeypatch.setattr(settings, "LOCAL_TIMEZONE", "Europe/Warsaw")
    monkeypatch.setattr(settings, "DEFAULT_SEARCH_RADIUS_KM", 100)
    monkeypatch.setattr(settings, "MAX_SEARCH_RADIUS_KM", 100)
    monkeypatch.setattr(settings, "RADIUS_INCLUDE_UNLOCATED", False)
    monkeypatch.setattr(settings, "HIDE_OWN_AND_SEEN_EVENTS", True)
    return settings


@pytest.fixture
def now():
    return NOW


def _event_fields(**overrides):
    fields = {
        "id": "evt-1",
        "title": "Pierogi workshop",
        "description": "Hands-on cooking class",
        "category": "workshops",
        "date": datetime(2025, 6, 20, 16, 0, tzinfo=timezone.utc),
        "address": "ul. Grodzka 35, Kraków",
        "latitude": "50.0614",
        "longitude": "19.9366",
        "organizer_id": "org-1",
    }
    counts = overrides.pop("counts", None)
    if counts is not None:
        going, like = counts
        fields["interaction_counts"] = InteractionCounts(going=going, like=like)
    fields.update(overrides)
    return fields


@pytest.fixture
def make_event():
    """Factory for stored ``EventRecord``s."""

    def _make(**overrides) -> EventRecord:
        return EventRecord.model_validate(_event_fields(**overrides))

    return _make


@pytest.fixture
def make_view():
    """Factory for ``EventView``s (occurrences with distance attached)."""

    def _make(**overrides) -> EventView:
        fields = _event_fields(**overrides)
        fields.setdefault("parent_id", fields["id"])
        return EventView.model_validate(fields)

    return _make
