# tests/test_checkpoints.py

"""
Tests for checkpoint management.
"""

import pytest
from fastapi.testclient import TestClient


@pytest.fixture
def headers(auth_headers):
    return auth_headers("superadmin")


def test_empty_list_is_no_content(client: TestClient, headers):
    assert client.get("/checkpoints", headers=headers).status_code == 204


def test_create_list_update_delete(client: TestClient, headers):
    created = client.post(
        "/checkpoints",
        json={"name": " Main Gate ", "latitude": 3.139, "longitude": 101.6869},
        headers=headers,
    )
    assert created.status_code == 200
    checkpoint = created.json()
    assert checkpoint["name"] == "Main Gate"
    assert checkpoint["createdAt"].endswith("Z")

    client.post("/checkpoints", json={"name": "Back Gate", "latitude": 3.14, "longitude": 101.69}, headers=headers)

    page = client.get("/checkpoints", headers=headers).json()
    assert page["total"] == 2
    assert [c["name"] for c in page["data"]] == ["Back Gate", "Main Gate"]

    filtered = client.get("/checkpoints", params={"name": "Main"}, headers=headers).json()
    assert filtered["total"] == 1

    updated = client.put(
        f"/checkpoints/{checkpoint['id']}",
        json={"name": "Front Gate", "latitude": 3.1391, "longitude": 101.6869},
        headers=headers,
    )
    assert updated.json()["name"] == "Front Gate"
    assert updated.json()["latitude"] == 3.1391

    assert client.delete(f"/checkpoints/{checkpoint['id']}", headers=headers).status_code == 204
    assert client.delete(f"/checkpoints/{checkpoint['id']}", headers=headers).status_code == 404


def test_zero_coordinates_are_valid(client: TestClient, headers):
    response = client.post("/checkpoints", json={"name": "Null Island", "latitude": 0, "longitude": 0}, headers=headers)
    assert response.status_code == 200


def test_invalid_payload(client: TestClient, headers):
    response = client.post("/checkpoints", json={"name": "No coords"}, headers=headers)
    assert response.status_code == 400
    assert response.json() == {"error": "invalid_payload"}

    response = client.post("/checkpoints", json={"name": "Bad", "latitude": "north", "longitude": 1}, headers=headers)
    assert response.status_code == 400


def test_pagination(client: TestClient, headers):
    for i in range(3):
        client.post("/checkpoints", json={"name": f"CP {i}", "latitude": 1, "longitude": 1}, headers=headers)

    page = client.get("/checkpoints", params={"page": 2, "pageSize": 2}, headers=headers).json()
    assert page["page"] == 2
    assert page["total"] == 3
    assert [c["name"] for c in page["data"]] == ["CP 2"]

    assert client.get("/checkpoints", params={"page": 3, "pageSize": 2}, headers=headers).status_code == 204


def test_guard_with_read_only_cannot_create(client: TestClient, grant, auth_headers):
    grant("guard", [{"resource": "/checkpoints", "read": True}])

    response = client.post(
        "/checkpoints",
        json={"name": "Gate", "latitude": 1, "longitude": 1},
        headers=auth_headers("guard"),
    )
    assert response.status_code == 403


def test_name_filter_is_literal(client: TestClient, headers):
    for name in ("Gate_1", "GateX1"):
        client.post("/checkpoints", json={"name": name, "latitude": 1, "longitude": 1}, headers=headers)

    page = client.get("/checkpoints", params={"name": "Gate_1"}, headers=headers).json()
    assert [c["name"] for c in page["data"]] == ["Gate_1"]
