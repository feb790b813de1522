"""End-to-end tests for the /api/v1/events endpoints."""
from datetime import datetime, time, timedelta

import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.services.local_time import local_today, local_tz

KRAKOW = {"userLat": 50.0614, "userLng": 19.9366}


def _at(days_ahead: int, hour: int = 18) -> datetime:
    return datetime.combine(local_today() + timedelta(days=days_ahead), time(hour, 0), tzinfo=local_tz())


def _payload(title: str, days_ahead: int, **overrides):
    payload = {
        "title": title,
        "description": f"{title} description",
        "category": "arts",
        "date": _at(days_ahead).isoformat(),
        "address": "Kraków",
        "latitude": "50.0614",
        "longitude": "19.9366",
        "organizer_id": "org-1",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


def _create(client, title, days_ahead, **overrides):
    resp = client.post("/api/v1/events/", json=_payload(title, days_ahead, **overrides))
    assert resp.status_code == 201, resp.text
    return resp.json()


def test_health(client):
    resp = client.get("/api/v1/health/")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_create_and_list(client):
    later = _create(client, "Later", 5)
    sooner = _create(client, "Sooner", 2)

    resp = client.get("/api/v1/events/")
    assert resp.status_code == 200
    body = resp.json()
    assert [item["id"] for item in body["items"]] == [sooner["id"], later["id"]]
    assert body["total"] == 2
    assert body["sort_by"] == "date"
    assert body["degraded"] is False


def test_create_rejects_long_recurrence(client):
    start = _at(1)
    too_late = (start.date() + timedelta(days=70)).isoformat()
    resp = client.post(
        "/api/v1/events/",
        json=_payload("Too long", 1, is_recurring=True, recurrence_type="weekly", recurrence_end_date=too_late),
    )
    assert resp.status_code == 422
    assert "months" in resp.text


def test_create_rejects_bad_coordinates(client):
    resp = client.post("/api/v1/events/", json=_payload("Nowhere", 1, latitude="north"))
    assert resp.status_code == 422


def test_recurring_event_listed_per_occurrence(client):
    start = _at(1)
    end = (start.date() + timedelta(weeks=2)).isoformat()
    created = _create(client, "Weekly run", 1, is_recurring=True, recurrence_type="weekly", recurrence_end_date=end)

    items = client.get("/api/v1/events/").json()["items"]
    assert len(items) == 3
    assert {item["parent_id"] for item in items} == {created["id"]}
    assert items[1]["id"] == f"{created['id']}_{(start.date() + timedelta(weeks=1)).isoformat()}"

    occurrences = client.get(f"/api/v1/events/{created['id']}/occurrences").json()
    assert occurrences["total"] == 3
    assert occurrences["pattern"] == "weekly"

    detail = client.get(f"/api/v1/events/{items[2]['id']}")
    assert detail.status_code == 200
    assert detail.json()["id"] == items[2]["id"]


def test_category_and_search(client):
    _create(client, "Gallery opening", 1)
    _create(client, "Football match", 1, category="sports", description="Local derby")

    sports = client.get("/api/v1/events/", params={"category": "sports"}).json()
    assert [i["title"] for i in sports["items"]] == ["Football match"]

    derby = client.get("/api/v1/events/", params={"search": "DERBY"}).json()
    assert [i["title"] for i in derby["items"]] == ["Football match"]

    assert client.get("/api/v1/events/", params={"category": "nightlife"}).status_code == 422


def test_radius_and_distance_sort(client):
    _create(client, "Old Town", 1)
    _create(client, "Nowa Huta", 2, latitude="50.0719", longitude="20.0378")
    _create(client, "Warsaw", 3, latitude="52.2297", longitude="21.0122")

    near = client.get("/api/v1/events/", params={**KRAKOW, "userRadius": 10, "sortBy": "distance"}).json()
    assert [i["title"] for i in near["items"]] == ["Old Town", "Nowa Huta"]
    assert near["items"][0]["distance_km"] == pytest.approx(0.0, abs=0.01)

    # The default radius does not restrict results
    wide = client.get("/api/v1/events/", params={**KRAKOW, "userRadius": 100}).json()
    assert wide["total"] == 3

    assert client.get("/api/v1/events/", params={**KRAKOW, "userRadius": 150}).status_code == 422


def test_distance_sort_without_location_degrades(client):
    _create(client, "B", 2)
    _create(client, "A", 1)

    body = client.get("/api/v1/events/", params={"sortBy": "distance"}).json()
    assert body["degraded"] is True
    assert body["sort_by"] == "date"
    assert [i["title"] for i in body["items"]] == ["A", "B"]

    unknown = client.get("/api/v1/events/", params={"sortBy": "random"}).json()
    assert unknown["degraded"] is True


def test_date_window_offsets(client):
    _create(client, "Tomorrow", 1)
    _create(client, "Next week", 7)

    body = client.get("/api/v1/events/", params={"fromDays": 0, "toDays": 3}).json()
    assert [i["title"] for i in body["items"]] == ["Tomorrow"]

    day = (local_today() + timedelta(days=7)).isoformat()
    body = client.get("/api/v1/events/", params={"dateFrom": day, "dateTo": day}).json()
    assert [i["title"] for i in body["items"]] == ["Next week"]

    inverted = client.get("/api/v1/events/", params={"dateFrom": day, "dateTo": local_today().isoformat()})
    assert inverted.status_code == 422


def test_interaction_hides_event_and_counts_for_others(client):
    liked = _create(client, "Liked", 1)
    _create(client, "Other", 2)

    resp = client.post(f"/api/v1/events/{liked['id']}/interact", json={"user_id": "u1", "type": "going"})
    assert resp.status_code == 200
    assert resp.json()["event_id"] == liked["id"]

    mine = client.get("/api/v1/events/", params={"userId": "u1"}).json()
    assert [i["title"] for i in mine["items"]] == ["Other"]

    theirs = client.get("/api/v1/events/", params={"userId": "u2", "sortBy": "popularity"}).json()
    assert [i["title"] for i in theirs["items"]] == ["Liked", "Other"]
    assert theirs["items"][0]["interaction_counts"]["going"] == 1

    assert client.delete(f"/api/v1/events/{liked['id']}/interact", params={"userId": "u1"}).status_code == 204
    assert client.delete(f"/api/v1/events/{liked['id']}/interact", params={"userId": "u1"}).status_code == 404


def test_own_events_hidden_from_organizer(client):
    _create(client, "Mine", 1, organizer_id="org-1")
    body = client.get("/api/v1/events/", params={"userId": "org-1"}).json()
    assert body["items"] == []


def test_unknown_event_returns_404(client):
    assert client.get("/api/v1/events/missing").status_code == 404
    assert client.get("/api/v1/events/missing/occurrences").status_code == 404
    resp = client.post("/api/v1/events/missing/interact", json={"user_id": "u1", "type": "like"})
    assert resp.status_code == 404


def test_inverted_date_window_is_rejected_with_422(client):
    resp = client.get("/api/v1/events/", params={"dateFrom": "2025-06-22", "dateTo": "2025-06-20"})
    assert resp.status_code == 422
    assert "date_from" in resp.text


def test_interact_on_unknown_occurrence_date_returns_404(client):
    start = _at(1)
    end = (start.date() + timedelta(weeks=2)).isoformat()
    created = _create(client, "Weekly run", 1, is_recurring=True, recurrence_type="weekly", recurrence_end_date=end)

    made_up = f"{created['id']}_1999-01-01"
    assert client.get(f"/api/v1/events/{made_up}").status_code == 404
    resp = client.post(f"/api/v1/events/{made_up}/interact", json={"user_id": "u1", "type": "going"})
    assert resp.status_code == 404

    real = f"{created['id']}_{(start.date() + timedelta(weeks=1)).isoformat()}"
    resp = client.post(f"/api/v1/events/{real}/interact", json={"user_id": "u1", "type": "going"})
    assert resp.status_code == 200
    assert resp.json()["event_id"] == created["id"]


def test_edit_event(client):
    created = _create(client, "Draft title", 1)

    resp = client.put(
        f"/api/v1/events/{created['id']}",
        params={"userId": "org-1"},
        json={"title": "Final title", "category": "culture"},
    )
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["title"] == "Final title"
    assert body["category"] == "culture"
    assert body["description"] == created["description"]

    listed = client.get("/api/v1/events/", params={"category": "culture"}).json()
    assert [i["title"] for i in listed["items"]] == ["Final title"]


def test_edit_rejects_recurrence_past_two_months(client):
    start = _at(1)
    end = (start.date() + timedelta(weeks=4)).isoformat()
    created = _create(client, "Weekly run", 1, is_recurring=True, recurrence_type="weekly", recurrence_end_date=end)

    too_late = (start.date() + timedelta(days=70)).isoformat()
    resp = client.put(
        f"/api/v1/events/{created['id']}",
        params={"userId": "org-1"},
        json={"recurrence_end_date": too_late},
    )
    assert resp.status_code == 422
    assert "months" in resp.text

    # Moving the start later keeps the stored end date within range
    resp = client.put(
        f"/api/v1/events/{created['id']}",
        params={"userId": "org-1"},
        json={"date": _at(3).isoformat()},
    )
    assert resp.status_code == 200, resp.text


def test_edit_can_add_recurrence(client):
    created = _create(client, "Once", 1)
    end = (_at(1).date() + timedelta(weeks=1)).isoformat()
    resp = client.put(
        f"/api/v1/events/{created['id']}",
        params={"userId": "org-1"},
        json={"is_recurring": True, "recurrence_type": "weekly", "recurrence_end_date": end},
    )
    assert resp.status_code == 200, resp.text
    assert resp.json()["recurrence"]["pattern"] == "weekly"
    assert client.get(f"/api/v1/events/{created['id']}/occurrences").json()["total"] == 2


def test_edit_and_cancel_require_organizer(client):
    created = _create(client, "Not yours", 1)
    resp = client.put(f"/api/v1/events/{created['id']}", params={"userId": "u9"}, json={"title": "Hijacked"})
    assert resp.status_code == 403
    assert client.post(f"/api/v1/events/{created['id']}/cancel", params={"userId": "u9"}).status_code == 403
    assert client.put("/api/v1/events/missing", params={"userId": "org-1"}, json={}).status_code == 404
    assert client.post("/api/v1/events/missing/cancel", params={"userId": "org-1"}).status_code == 404


def test_cancel_hides_event_but_keeps_it(client):
    created = _create(client, "Rained out", 1)

    resp = client.post(f"/api/v1/events/{created['id']}/cancel", params={"userId": "org-1"})
    assert resp.status_code == 200
    assert resp.json()["status"] == "cancelled"

    assert client.get("/api/v1/events/").json()["items"] == []
    assert client.get(f"/api/v1/events/{created['id']}").json()["status"] == "cancelled"

    again = client.post(f"/api/v1/events/{created['id']}/cancel", params={"userId": "org-1"})
    assert again.status_code == 400


def test_organizer_listing_includes_cancelled(client):
    first = _create(client, "First", 1)
    second = _create(client, "Second", 2)
    _create(client, "Someone else's", 3, organizer_id="org-2")
    client.post(f"/api/v1/events/{first['id']}/cancel", params={"userId": "org-1"})

    items = client.get("/api/v1/events/organizer/org-1").json()
    assert [i["id"] for i in items] == [second["id"], first["id"]]
    assert items[1]["status"] == "cancelled"


def test_user_events_by_interaction(client):
    liked = _create(client, "Liked", 1)
    going = _create(client, "Going", 2)
    client.post(f"/api/v1/events/{liked['id']}/interact", json={"user_id": "u1", "type": "like"})
    client.post(f"/api/v1/events/{going['id']}/interact", json={"user_id": "u1", "type": "going"})

    items = client.get("/api/v1/users/u1/events/going").json()
    assert [i["title"] for i in items] == ["Going"]
    assert items[0]["user_interaction"] == "going"

    assert client.get("/api/v1/users/u1/events/like").json()[0]["title"] == "Liked"
    assert client.get("/api/v1/users/u1/events/maybe").status_code == 422
