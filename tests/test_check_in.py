# tests/test_check_in.py

"""
Tests for guard check-in submission and check-in settings.
"""

import pytest
from fastapi.testclient import TestClient
from sqlmodel import select

from models.check_in import CheckInLog
from models.checkpoint import Checkpoint
from routers.check_in import get_check_in_service
from services.check_in_service import CheckInService, CheckInStatus


MAIN_GATE = (3.1390, 101.6869)


@pytest.fixture
def main_gate(session):
    checkpoint = Checkpoint(
        id="cp-gate",
        name="Main Gate",
        latitude=MAIN_GATE[0],
        longitude=MAIN_GATE[1],
        created_at="2024-01-01T00:00:00.000Z",
        updated_at="2024-01-01T00:00:00.000Z",
    )
    session.add(checkpoint)
    session.commit()
    return checkpoint


@pytest.fixture
def service_clock(app, session, clock):
    app.dependency_overrides[get_check_in_service] = lambda: CheckInService(session, clock=clock)
    return clock


def _submit(client, lat, lon, user="guard-1", headers=None):
    return client.post(
        "/check-in",
        json={"latitude": lat, "longitude": lon, "userId": user},
        headers=headers if headers is not None else {"Authorization": "Bearer anything"},
    )


def test_check_in_requires_a_credential(client: TestClient, main_gate):
    response = _submit(client, 3.1390, 101.68691, headers={})
    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized"}


def test_check_in_requires_location_and_user(client: TestClient, main_gate):
    response = client.post(
        "/check-in",
        json={"latitude": 3.139, "userId": "guard-1"},
        headers={"Authorization": "Bearer anything"},
    )
    assert response.status_code == 400
    assert response.json() == {"error": "Missing location or user ID"}

    response = _submit(client, 3.139, 101.6869, user="")
    assert response.status_code == 400


def test_check_in_within_radius_is_accepted(client: TestClient, session, main_gate, service_clock):
    response = _submit(client, 3.1390, 101.68691)

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["checkpoint"] == "Main Gate"
    assert body["message"] == "Checked in at Main Gate"
    assert body["timestamp"] == "2024-05-01T08:30:00.000Z"

    logs = session.exec(select(CheckInLog)).all()
    assert len(logs) == 1
    assert logs[0].checkpoint_id == "cp-gate"


def test_check_in_too_far_is_rejected(client: TestClient, session, main_gate):
    # 0.0018 degrees of latitude is about 200 m
    response = _submit(client, 3.1390 + 0.0018, 101.6869)

    assert response.status_code == 400
    error = response.json()["error"]
    assert "too far" in error
    assert "Nearest is 200m away (Max 50m)" in error
    assert len(session.exec(select(CheckInLog)).all()) == 0


def test_check_in_without_checkpoints(client: TestClient):
    response = _submit(client, 3.1390, 101.6869)
    assert response.status_code == 400
    assert response.json() == {"error": "No checkpoints defined"}


def test_retry_inside_cooldown_is_rate_limited(client: TestClient, session, main_gate, service_clock):
    assert _submit(client, 3.1390, 101.68691).status_code == 200

    service_clock.advance(minutes=2)
    response = _submit(client, 3.1390, 101.68691)

    assert response.status_code == 429
    assert response.json() == {"error": "You checked in here recently. Please wait 3 minutes."}
    assert len(session.exec(select(CheckInLog)).all()) == 1

    service_clock.advance(minutes=3, seconds=1)
    assert _submit(client, 3.1390, 101.68691).status_code == 200


def test_atomic_guard_gives_same_answers(session, main_gate, clock):
    service = CheckInService(session, clock=clock, atomic=True)

    first = service.submit("guard-1", 3.1390, 101.68691)
    assert first.status == CheckInStatus.CONFIRMED

    clock.advance(minutes=2)
    second = service.submit("guard-1", 3.1390, 101.68691)
    assert second.status == CheckInStatus.REJECTED_RATE_LIMIT
    assert second.wait_minutes == 3
    assert second.status_code == 429


def test_settings_change_radius(client: TestClient, session, main_gate, monkeypatch):
    from core.config import settings

    monkeypatch.setattr(settings, "ALLOW_INSECURE_SENTINEL_TOKEN", True)
    headers = {"Authorization": "Bearer mock-access-token"}

    assert client.get("/settings/check-in").json() == {"radius": 50, "timeWindow": 5}

    response = client.post("/settings/check-in", json={"radius": 250, "timeWindow": 0}, headers=headers)
    assert response.status_code == 200
    assert response.json() == {"radius": 250, "timeWindow": 0}

    # Now inside the radius, and a zero window never rate-limits
    assert _submit(client, 3.1390 + 0.0018, 101.6869).status_code == 200
    assert _submit(client, 3.1390 + 0.0018, 101.6869).status_code == 200


def test_settings_reject_bad_input(client: TestClient, monkeypatch):
    from core.config import settings

    monkeypatch.setattr(settings, "ALLOW_INSECURE_SENTINEL_TOKEN", True)
    headers = {"Authorization": "Bearer mock-access-token"}

    for payload in ({"radius": "wide", "timeWindow": 5}, {"radius": 50}, {"radius": -1, "timeWindow": 5}):
        response = client.post("/settings/check-in", json=payload, headers=headers)
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid input"}


def test_settings_update_is_gated(client: TestClient, auth_headers):
    response = client.post("/settings/check-in", json={"radius": 10, "timeWindow": 1}, headers=auth_headers("guard"))
    assert response.status_code == 403


def test_last_check_in_lookup(client: TestClient, main_gate, service_clock):
    headers = {"Authorization": "Bearer anything"}
    params = {"userId": "guard-1", "checkpointId": "cp-gate"}

    assert client.get("/check-in", params=params, headers=headers).json() == {"lastCheckIn": None}

    _submit(client, 3.1390, 101.68691)
    assert client.get("/check-in", params=params, headers=headers).json() == {
        "lastCheckIn": "2024-05-01T08:30:00.000Z"
    }

    logs = client.get("/check-in", headers=headers).json()
    assert logs[0]["checkpoint_name"] == "Main Gate"
