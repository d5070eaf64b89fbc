# tests/test_billing.py

"""
Tests for billing settings and the blob store.
"""

from unittest.mock import Mock

import pytest
from botocore.exceptions import ClientError
from fastapi.testclient import TestClient

from core.s3_client import BlobStore
from routers.blobs import blob_store_dependency


@pytest.fixture
def headers(auth_headers):
    return auth_headers("superadmin", sub="treasurer-1")


def _settings(**overrides):
    payload = {"rate": 85, "frequency": "monthly", "startDate": "2024-01-01", "qrKey": "qr/duitnow.png"}
    payload.update(overrides)
    return payload


def test_no_settings_yet(client: TestClient, headers):
    assert client.get("/billing/settings", headers=headers).status_code == 204
    assert client.get("/billing/settings-history", headers=headers).json() == []


def test_save_appends_settings_and_history(client: TestClient, headers, clock, monkeypatch):
    monkeypatch.setattr("routers.billing.utc_now", clock)

    first = client.post("/billing/settings", json=_settings(), headers=headers)
    assert first.status_code == 200
    assert first.json()["rate"] == 85
    assert first.json()["qrKey"] == "qr/duitnow.png"

    clock.advance(minutes=1)

    second = client.post(
        "/billing/settings",
        json=_settings(rate="90.5", frequency="annual", bgKey="bg/notice.png"),
        headers=headers,
    )
    assert second.status_code == 200

    current = client.get("/billing/settings", headers=headers).json()
    assert current["rate"] == 90.5
    assert current["frequency"] == "annual"
    assert current["bgKey"] == "bg/notice.png"
    assert current["startDate"] == "2024-01-01"

    history = client.get("/billing/settings-history", headers=headers).json()
    assert len(history) == 2
    newest = next(h for h in history if h["newRate"] == 90.5)
    assert newest["prevRate"] == 85
    assert newest["prevFrequency"] == "monthly"
    assert newest["changedBy"] == "treasurer-1"

    oldest = next(h for h in history if h["newRate"] == 85)
    assert oldest["prevRate"] is None


@pytest.mark.parametrize(
    "overrides, error",
    [
        ({"rate": 0}, "Invalid rate"),
        ({"rate": "abc"}, "Invalid rate"),
        ({"rate": None}, "Invalid rate"),
        ({"frequency": "weekly"}, "Invalid frequency"),
        ({"startDate": ""}, "Invalid startDate"),
        ({"startDate": "01/02/2024"}, "Invalid startDate"),
        ({"startDate": "2024-02-30"}, "Invalid startDate"),
    ],
)
def test_save_validation(client: TestClient, headers, overrides, error):
    response = client.post("/billing/settings", json=_settings(**overrides), headers=headers)
    assert response.status_code == 400
    assert response.json() == {"error": error}


def test_non_string_keys_are_dropped(client: TestClient, headers):
    response = client.post("/billing/settings", json=_settings(qrKey=123, bgKey={"x": 1}), headers=headers)
    assert response.json()["qrKey"] is None
    assert response.json()["bgKey"] is None


# -----------------------------------------------------
# Blobs
# -----------------------------------------------------
@pytest.fixture
def s3(app):
    client = Mock()
    app.dependency_overrides[blob_store_dependency] = lambda: BlobStore(client, "test-bucket")
    return client


def test_blob_get(client: TestClient, s3):
    body = Mock()
    body.read.return_value = b"\x89PNG"
    s3.get_object.return_value = {"Body": body, "ContentType": "image/png"}

    response = client.get("/blobs/qr/duitnow.png")

    assert response.status_code == 200
    assert response.content == b"\x89PNG"
    assert response.headers["content-type"] == "image/png"
    s3.get_object.assert_called_once_with(Bucket="test-bucket", Key="qr/duitnow.png")


def test_blob_missing(client: TestClient, s3):
    s3.get_object.side_effect = ClientError({"Error": {"Code": "NoSuchKey"}}, "GetObject")

    response = client.get("/blobs/qr/missing.png")
    assert response.status_code == 404


def test_blob_put_is_gated(client: TestClient, s3, headers, auth_headers):
    assert client.put("/blobs/qr/new.png", content=b"data").status_code == 403
    assert client.put("/blobs/qr/new.png", content=b"data", headers=auth_headers("guard")).status_code == 403

    response = client.put(
        "/blobs/qr/new.png",
        content=b"data",
        headers={**headers, "Content-Type": "image/png"},
    )
    assert response.status_code == 200
    assert response.json() == {"ok": True, "key": "qr/new.png"}
    s3.put_object.assert_called_once_with(
        Bucket="test-bucket", Key="qr/new.png", Body=b"data", ContentType="image/png"
    )


def test_blob_store_defaults_content_type():
    client = Mock()
    body = Mock()
    body.read.return_value = b"raw"
    client.get_object.return_value = {"Body": body}

    store = BlobStore(client, "bucket")
    assert store.get("k")["content_type"] == "application/octet-stream"

    store.put("k", b"raw")
    client.put_object.assert_called_once_with(
        Bucket="bucket", Key="k", Body=b"raw", ContentType="application/octet-stream"
    )
