"""End-to-end tests for the HTTP routes."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from crewsched import main
from crewsched.common.settings import get_settings
from crewsched.domain.errors import InfrastructureError
from crewsched.main import app, assignment_repo, crew_repo, event_repo


@pytest.fixture(autouse=True)
def _clear_repos():
    """Reset in-memory repos and cached settings before each test."""
    event_repo._store.clear()
    crew_repo._store.clear()
    assignment_repo._store.clear()
    get_settings.cache_clear()
    yield
    event_repo._store.clear()
    crew_repo._store.clear()
    assignment_repo._store.clear()
    get_settings.cache_clear()


@pytest.fixture()
def client():
    return TestClient(app)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _event(client, start, end, title="Shoot", project_id=1, type_="Shoot") -> dict:
    resp = client.post(
        f"/projects/{project_id}/events",
        json={"title": title, "type": type_, "start_time": start, "end_time": end},
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


def _crew(client, name, project_id=1) -> dict:
    resp = client.post(
        f"/projects/{project_id}/crew",
        json={"name": name, "title": "Boom Operator", "department": "Sound"},
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


def _assign(client, crew_id, event_id, project_id=1, **params):
    return client.post(
        f"/projects/{project_id}/crew-assignments",
        json={"crew_id": crew_id, "event_id": event_id},
        params=params,
    )


# ---------------------------------------------------------------------------
# Events and crew
# ---------------------------------------------------------------------------


def test_create_and_get_event(client):
    created = _event(client, "2024-01-10T09:00:00Z", "2024-01-10T17:00:00Z", title="Scout", type_="Scout")

    resp = client.get(f"/projects/1/events/{created['id']}")

    assert resp.status_code == 200
    assert resp.json()["type"] == "Scout"
    assert resp.json()["project_id"] == 1


def test_event_end_before_start_rejected(client):
    resp = client.post(
        "/projects/1/events",
        json={
            "title": "Backwards",
            "type": "Meeting",
            "start_time": "2024-01-10T17:00:00Z",
            "end_time": "2024-01-10T09:00:00Z",
        },
    )
    assert resp.status_code == 422


def test_unknown_event_type_rejected(client):
    resp = client.post(
        "/projects/1/events",
        json={
            "title": "Party",
            "type": "Party",
            "start_time": "2024-01-10T09:00:00Z",
            "end_time": "2024-01-10T17:00:00Z",
        },
    )
    assert resp.status_code == 422


def test_event_from_other_project_is_404(client):
    created = _event(client, "2024-01-10T09:00:00Z", "2024-01-10T17:00:00Z", project_id=2)
    assert client.get(f"/projects/1/events/{created['id']}").status_code == 404


def test_update_event_revalidates_times(client):
    created = _event(client, "2024-01-10T09:00:00Z", "2024-01-10T17:00:00Z")

    ok = client.patch(f"/projects/1/events/{created['id']}", json={"title": "Pickup"})
    bad = client.patch(
        f"/projects/1/events/{created['id']}", json={"end_time": "2024-01-10T08:00:00Z"}
    )

    assert ok.status_code == 200
    assert ok.json()["title"] == "Pickup"
    assert bad.status_code == 422


def test_list_events_filtered_by_days(client):
    _event(client, "2024-01-10T09:00:00Z", "2024-01-10T17:00:00Z", title="In")
    _event(client, "2024-01-20T09:00:00Z", "2024-01-20T17:00:00Z", title="Out")

    resp = client.get("/projects/1/events", params={"start": "2024-01-09", "end": "2024-01-12"})

    assert [e["title"] for e in resp.json()] == ["In"]


def test_delete_event(client):
    created = _event(client, "2024-01-10T09:00:00Z", "2024-01-10T17:00:00Z")

    assert client.delete(f"/projects/1/events/{created['id']}").status_code == 204
    assert client.get(f"/projects/1/events/{created['id']}").status_code == 404


def test_crew_crud(client):
    member = _crew(client, "Ana")

    updated = client.patch(f"/projects/1/crew/{member['id']}", json={"pricing": "500/day"})
    listed = client.get("/projects/1/crew")
    deleted = client.delete(f"/projects/1/crew/{member['id']}")

    assert updated.json()["pricing"] == "500/day"
    assert [c["name"] for c in listed.json()] == ["Ana"]
    assert deleted.status_code == 204
    assert client.get("/projects/1/crew").json() == []


# ---------------------------------------------------------------------------
# Conflict checks and assignments
# ---------------------------------------------------------------------------


def test_check_conflicts_reports_overlap(client):
    member = _crew(client, "C")
    e1 = _event(client, "2024-01-10T09:00:00Z", "2024-01-10T17:00:00Z", title="Day")
    assert _assign(client, member["id"], e1["id"]).status_code == 201
    e2 = _event(client, "2024-01-10T16:00:00Z", "2024-01-10T20:00:00Z")

    resp = client.post(
        "/projects/1/crew-assignments/check-conflicts",
        json={"crew_id": member["id"], "event_id": e2["id"]},
    )

    body = resp.json()
    assert resp.status_code == 200
    assert body["has_conflict"] is True
    assert body["conflicts"][0]["event_id"] == e1["id"]
    assert body["conflicts"][0]["event_title"] == "Day"


def test_check_conflicts_boundary_touch(client):
    member = _crew(client, "C")
    e1 = _event(client, "2024-01-10T09:00:00Z", "2024-01-10T17:00:00Z")
    _assign(client, member["id"], e1["id"])
    e3 = _event(client, "2024-01-10T17:00:00Z", "2024-01-10T20:00:00Z")

    resp = client.post(
        "/projects/1/crew-assignments/check-conflicts",
        json={"crew_id": member["id"], "event_id": e3["id"]},
    )

    assert resp.json() == {"has_conflict": False, "conflicts": []}


def test_check_conflicts_missing_event_fails_open(client):
    member = _crew(client, "C")
    resp = client.post(
        "/projects/1/crew-assignments/check-conflicts",
        json={"crew_id": member["id"], "event_id": 12345},
    )
    assert resp.status_code == 200
    assert resp.json()["has_conflict"] is False


def test_check_conflicts_missing_event_strict_policy(client, monkeypatch):
    monkeypatch.setenv("ON_MISSING_EVENT", "error")
    get_settings.cache_clear()
    member = _crew(client, "C")

    resp = client.post(
        "/projects/1/crew-assignments/check-conflicts",
        json={"crew_id": member["id"], "event_id": 12345},
    )

    assert resp.status_code == 404


def test_check_conflicts_rejects_non_numeric_ids(client):
    resp = client.post(
        "/projects/1/crew-assignments/check-conflicts",
        json={"crew_id": "abc", "event_id": 1},
    )
    assert resp.status_code == 422


def test_check_conflicts_store_down_is_503(client, monkeypatch):
    member = _crew(client, "C")
    event = _event(client, "2024-01-10T09:00:00Z", "2024-01-10T17:00:00Z")

    def _down(crew_id):
        raise InfrastructureError("connection refused")

    monkeypatch.setattr(main.assignment_repo, "list_by_crew", _down)

    resp = client.post(
        "/projects/1/crew-assignments/check-conflicts",
        json={"crew_id": member["id"], "event_id": event["id"]},
    )

    assert resp.status_code == 503


def test_assign_conflict_is_409(client):
    member = _crew(client, "C")
    e1 = _event(client, "2024-01-10T09:00:00Z", "2024-01-10T17:00:00Z")
    _assign(client, member["id"], e1["id"])
    e2 = _event(client, "2024-01-10T16:00:00Z", "2024-01-10T20:00:00Z")

    blocked = _assign(client, member["id"], e2["id"])
    forced = _assign(client, member["id"], e2["id"], check_conflicts="false")

    assert blocked.status_code == 409
    assert blocked.json()["has_conflict"] is True
    assert blocked.json()["conflicts"][0]["event_id"] == e1["id"]
    assert forced.status_code == 201


def test_assign_to_unknown_event_is_404(client):
    member = _crew(client, "C")
    assert _assign(client, member["id"], 999).status_code == 404


def test_event_assignments_and_updates(client):
    member = _crew(client, "C")
    event = _event(client, "2024-01-10T09:00:00Z", "2024-01-10T17:00:00Z")
    created = _assign(client, member["id"], event["id"]).json()
    assert created["status"] == "pending"

    updated = client.patch(
        f"/projects/1/crew-assignments/{created['id']}",
        json={"status": "confirmed", "actual_person": "Sam Lee"},
    )
    by_event = client.get(f"/projects/1/events/{event['id']}/crew-assignments")

    assert updated.json()["status"] == "confirmed"
    assert updated.json()["actual_person"] == "Sam Lee"
    assert [a["id"] for a in by_event.json()] == [created["id"]]

    assert client.delete(f"/projects/1/crew-assignments/{created['id']}").status_code == 204
    assert client.get("/projects/1/crew-assignments").json() == []


# ---------------------------------------------------------------------------
# Availability calendar
# ---------------------------------------------------------------------------


def test_month_availability(client):
    a = _crew(client, "A")
    _crew(client, "B")
    event = _event(client, "2024-03-01T08:00:00Z", "2024-03-03T18:00:00Z")
    _assign(client, a["id"], event["id"])

    resp = client.get("/projects/1/crew-availability", params={"year": 2024, "month": 3})

    body = resp.json()
    assert resp.status_code == 200
    assert body["total_crew"] == 2
    assert len(body["days"]) == 31
    statuses = {d["day"]: d["status"] for d in body["days"]}
    assert statuses["2024-03-02"] == "partially_booked"
    assert statuses["2024-03-04"] == "all_available"
    summary_a = next(c for c in body["crew"] if c["crew_id"] == a["id"])
    assert summary_a["booked_days"] == ["2024-03-01", "2024-03-02", "2024-03-03"]


def test_range_availability_requires_bounds(client):
    assert client.get("/projects/1/crew-availability").status_code == 422
    assert (
        client.get(
            "/projects/1/crew-availability", params={"start": "2024-03-05", "end": "2024-03-01"}
        ).status_code
        == 422
    )


def test_availability_without_crew(client):
    resp = client.get(
        "/projects/1/crew-availability", params={"start": "2024-03-01", "end": "2024-03-02"}
    )
    assert [d["status"] for d in resp.json()["days"]] == ["no_crew", "no_crew"]


def test_availability_degrades_when_store_down(client, monkeypatch):
    def _down(project_id):
        raise InfrastructureError("timeout")

    monkeypatch.setattr(main.crew_repo, "list_for_project", _down)

    resp = client.get(
        "/projects/1/crew-availability", params={"start": "2024-03-01", "end": "2024-03-03"}
    )

    body = resp.json()
    assert resp.status_code == 200
    assert body["degraded"] is True
    assert {d["status"] for d in body["days"]} == {"unknown"}


# ---------------------------------------------------------------------------
# Input normalization and update validation
# ---------------------------------------------------------------------------


def test_times_without_offset_are_read_as_utc(client):
    """A project mixing offset-less and UTC timestamps still compares cleanly."""
    member = _crew(client, "C")
    e1 = _event(client, "2024-01-10T09:00:00", "2024-01-10T17:00:00", title="Naive")
    e2 = _event(client, "2024-01-10T16:00:00Z", "2024-01-10T20:00:00Z", title="Aware")
    assert _assign(client, member["id"], e1["id"]).status_code == 201

    check = client.post(
        "/projects/1/crew-assignments/check-conflicts",
        json={"crew_id": member["id"], "event_id": e2["id"]},
    )
    listed = client.get("/projects/1/events")
    calendar = client.get("/projects/1/crew-availability", params={"year": 2024, "month": 1})

    assert check.status_code == 200
    assert check.json()["has_conflict"] is True
    assert listed.status_code == 200
    assert [e["title"] for e in listed.json()] == ["Naive", "Aware"]
    assert calendar.status_code == 200
    assert e1["start_time"] in ("2024-01-10T09:00:00Z", "2024-01-10T09:00:00+00:00")


def test_null_for_required_crew_field_rejected(client):
    member = _crew(client, "Ana")

    resp = client.patch(f"/projects/1/crew/{member['id']}", json={"name": None})
    calendar = client.get("/projects/1/crew-availability", params={"year": 2024, "month": 1})

    assert resp.status_code == 422
    assert client.get("/projects/1/crew").json()[0]["name"] == "Ana"
    assert calendar.status_code == 200


def test_null_assignment_status_rejected(client):
    member = _crew(client, "C")
    event = _event(client, "2024-01-10T09:00:00Z", "2024-01-10T17:00:00Z")
    created = _assign(client, member["id"], event["id"]).json()

    resp = client.patch(f"/projects/1/crew-assignments/{created['id']}", json={"status": None})

    assert resp.status_code == 422
    assert client.get("/projects/1/crew-assignments").json()[0]["status"] == "pending"


def test_availability_range_is_capped(client, monkeypatch):
    too_long = client.get(
        "/projects/1/crew-availability", params={"start": "0001-01-01", "end": "9999-12-31"}
    )
    full_year = client.get(
        "/projects/1/crew-availability", params={"start": "2024-01-01", "end": "2024-12-31"}
    )
    monkeypatch.setenv("MAX_RANGE_DAYS", "7")
    get_settings.cache_clear()
    eight_days = client.get(
        "/projects/1/crew-availability", params={"start": "2024-01-01", "end": "2024-01-08"}
    )

    assert too_long.status_code == 422
    assert full_year.status_code == 200
    assert len(full_year.json()["days"]) == 366
    assert eight_days.status_code == 422


def test_availability_rejects_bad_month(client):
    resp = client.get("/projects/1/crew-availability", params={"year": 2024, "month": 13})
    assert resp.status_code == 422


def test_deleting_crew_drops_their_lock(client, monkeypatch):
    monkeypatch.setenv("SERIALIZE_CREW_ASSIGNMENTS", "true")
    get_settings.cache_clear()
    member = _crew(client, "C")
    event = _event(client, "2024-01-10T09:00:00Z", "2024-01-10T17:00:00Z")
    assert _assign(client, member["id"], event["id"]).status_code == 201
    assert member["id"] in main.crew_locks._locks

    client.delete(f"/projects/1/crew/{member['id']}")

    assert member["id"] not in main.crew_locks._locks
