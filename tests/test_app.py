"""Tests for ui/app.py — focus JSON API."""

import pytest
from fastapi.testclient import TestClient

from conftest import FakeClock
from focuscore.audio import SilentPlayerFactory
from ui.app import create_app

TASK = {
    "title": "Deep work",
    "startTime": "2026-02-11T09:00:00+00:00",
    "endTime": "2026-02-11T11:00:00+00:00",
}


@pytest.fixture
def api_clock():
    return FakeClock()


@pytest.fixture
def client(workspace, api_clock):
    app = create_app(root=workspace, clock=api_clock, player_factory=SilentPlayerFactory())
    with TestClient(app) as c:
        yield c


def _create_task(client, payload=TASK):
    r = client.post("/api/tasks", json=payload)
    assert r.status_code == 200
    return r.json()["task"]


def test_healthz(client):
    assert client.get("/healthz").json() == {"ok": "true"}


def test_focus_without_task(client):
    data = client.get("/api/focus").json()
    assert data["task"] is None
    assert data["timer"]["state"] == "idle"

    r = client.post("/api/focus/start", json={})
    assert r.status_code == 409
    assert r.json()["detail"]["kind"] == "no_active_task"


def test_focus_lifecycle(client, api_clock):
    task = _create_task(client)
    data = client.get("/api/focus").json()
    assert data["task"]["id"] == task["id"]

    r = client.post("/api/focus/start", json={})
    assert r.status_code == 200
    assert r.json()["timer"]["state"] == "running"

    api_clock.advance(90)
    r = client.post("/api/focus/pause")
    assert r.json()["timer"]["timerDisplay"] == "01:30"
    assert r.json()["timer"]["buttonTitle"] == "Resume"

    client.post("/api/focus/resume")
    api_clock.advance(30)
    r = client.post("/api/focus/stop")
    assert r.status_code == 200
    assert r.json()["session"]["elapsedSeconds"] == 120
    assert r.json()["session"]["status"] == "completed"

    tasks = client.get("/api/tasks").json()["tasks"]
    assert tasks[0]["totalFocusedSeconds"] == 120


def test_polling_keeps_session_on_task_outside_its_slot(client, api_clock):
    later = _create_task(client, {
        "title": "Afternoon review",
        "startTime": "2026-02-11T14:00:00+00:00",
        "endTime": "2026-02-11T15:00:00+00:00",
    })
    r = client.post("/api/focus/start", json={"taskId": later["id"]})
    assert r.status_code == 200

    api_clock.advance(60)
    data = client.get("/api/focus").json()
    assert data["timer"]["state"] == "running"
    assert data["task"]["id"] == later["id"]


def test_refresh_moves_on_after_slot_ends(client, api_clock):
    first = _create_task(client)
    second = _create_task(client, {
        "title": "Writing",
        "startTime": "2026-02-11T10:30:00+00:00",
        "endTime": "2026-02-11T12:00:00+00:00",
    })
    client.post("/api/focus/start", json={})

    api_clock.advance(60 * 60)
    assert client.post("/api/focus/refresh").json()["task"]["id"] == first["id"]

    api_clock.advance(31 * 60)
    data = client.get("/api/focus").json()
    assert data["task"]["id"] == first["id"]

    data = client.post("/api/focus/refresh").json()
    assert data["task"]["id"] == second["id"]
    assert data["timer"]["state"] == "idle"
    tasks = {t["id"]: t for t in client.get("/api/tasks").json()["tasks"]}
    assert tasks[first["id"]]["totalFocusedSeconds"] == 91 * 60


def test_stop_without_session_conflicts(client):
    _create_task(client)
    r = client.post("/api/focus/stop")
    assert r.status_code == 409
    assert r.json()["detail"]["kind"] == "no_active_session"


def test_start_unknown_task(client):
    r = client.post("/api/focus/start", json={"taskId": "missing"})
    assert r.status_code == 404


def test_create_task_validation(client):
    r = client.post("/api/tasks", json={"title": "No slot"})
    assert r.status_code == 400
    bad = dict(TASK, endTime="2026-02-11T08:00:00+00:00")
    assert client.post("/api/tasks", json=bad).status_code == 400


def test_delete_task(client):
    task = _create_task(client)
    client.post("/api/focus/start", json={})
    r = client.delete(f"/api/tasks/{task['id']}")
    assert r.status_code == 200
    assert client.get("/api/tasks").json()["tasks"] == []
    assert client.get("/api/focus").json()["timer"]["state"] == "idle"
    assert client.delete(f"/api/tasks/{task['id']}").status_code == 404


def test_sound_endpoints(client):
    r = client.post("/api/sound", json={"sound": "rain", "volume": 0.5})
    assert r.status_code == 200
    assert r.json()["sound"] == {"selectedSound": "rain", "displayName": "Rain", "isPlaying": True}

    r = client.post("/api/sound/toggle")
    assert r.json()["isPlaying"] is False

    assert client.post("/api/sound", json={"sound": "thunder"}).status_code == 400


def test_stats(client, api_clock):
    _create_task(client)
    client.post("/api/focus/start", json={})
    api_clock.advance(600)
    client.post("/api/focus/stop")
    data = client.get("/api/stats").json()
    assert data["totalFocusSeconds"] == 600
    assert data["weekStart"] == "2026-02-09"
    assert data["daily"][0]["plannedSeconds"] == 7200


def test_auth_required_when_configured(workspace, api_clock, monkeypatch):
    monkeypatch.setenv("FOCUSLEDGER_USERNAME", "me")
    monkeypatch.setenv("FOCUSLEDGER_PASSWORD", "secret")
    app = create_app(root=workspace, clock=api_clock, player_factory=SilentPlayerFactory())
    with TestClient(app) as c:
        assert c.get("/api/focus").status_code == 401
        assert c.get("/api/focus", auth=("me", "wrong")).status_code == 401
        assert c.get("/api/focus", auth=("me", "secret")).status_code == 200
        assert c.get("/healthz").status_code == 200
