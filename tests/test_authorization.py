# tests/test_authorization.py

"""
Tests for the authorization gate and its HTTP wiring.
"""

from unittest.mock import patch

from fastapi.testclient import TestClient
from jose import jwt

from core.config import settings
from core.permission_helpers import AuthorizationGate
from core.permission_store import PermissionStore
from core.permissions import HOMESTAY_LIST_POLICY
from models.billing import BillingSettings


def _gate(session, **kwargs):
    return AuthorizationGate(PermissionStore(session), **kwargs)


def test_missing_credential_is_denied(session):
    gate = _gate(session)
    assert gate.authorize(None, "/billing", "read") is False
    assert gate.authorize("", "/billing", "read") is False
    assert gate.authorize("Bearer ", "/billing", "read") is False


def test_malformed_token_is_denied(session):
    gate = _gate(session)
    assert gate.authorize("Bearer not-a-token", "/billing", "read") is False
    assert gate.authorize("Bearer a.%%%.c", "/billing", "read") is False


def test_token_without_role_is_denied(session, make_token):
    assert _gate(session).authorize(make_token(sub="u1"), "/billing", "read") is False


def test_super_role_bypasses_lookup_case_insensitively(session, make_token):
    gate = _gate(session)
    assert gate.authorize(make_token("superadmin"), "/anything", "delete") is True
    assert gate.authorize(f"Bearer {make_token('SuperAdmin')}", "/roles", "update") is True
    assert gate.authorize(make_token(["superadmin", "guard"]), "/roles", "update") is True


def test_sentinel_token_only_when_enabled(session):
    assert _gate(session).authorize("Bearer mock-access-token", "/roles", "update") is False
    assert _gate(session, allow_sentinel=True).authorize("Bearer mock-access-token", "/roles", "update") is True


def test_role_flags_decide(session, grant, make_token):
    grant("owner", [{"resource": "/billing", "read": True, "update": False}])
    gate = _gate(session)

    assert gate.authorize(make_token("owner"), "/billing", "read") is True
    assert gate.authorize(make_token("Owner"), "/billing", "read") is True
    assert gate.authorize(make_token("owner"), "/billing", "update") is False
    assert gate.authorize(make_token("owner"), "/directory", "read") is False
    assert gate.authorize(make_token("owner"), "/billing", "approve") is False


def test_unknown_role_is_denied(session, make_token):
    assert _gate(session).authorize(make_token("nobody"), "/billing", "read") is False


def test_bypass_roles_apply_only_to_their_policy(session, make_token):
    gate = _gate(session)

    assert gate.authorize(make_token("admin"), "/check-in-logs", "read", HOMESTAY_LIST_POLICY) is True
    assert gate.authorize(make_token("Admin"), "/check-in-logs", "read", HOMESTAY_LIST_POLICY) is True
    assert gate.authorize(make_token("owner"), "/check-in-logs", "read", HOMESTAY_LIST_POLICY) is False
    assert gate.authorize(make_token("admin"), "/check-in-logs", "read") is False


def test_fallback_resource_used_when_exact_entry_missing(session, grant, make_token):
    grant("guard", [{"resource": "homestay-checkins", "read": True}])
    gate = _gate(session)

    assert gate.authorize(make_token("guard"), "/check-in-logs", "read", HOMESTAY_LIST_POLICY) is True
    assert gate.authorize(make_token("guard"), "/check-in-logs", "read") is False


def test_exact_entry_wins_over_fallback(session, grant, make_token):
    grant(
        "guard",
        [
            {"resource": "/check-in-logs", "read": False},
            {"resource": "homestay-checkins", "read": True},
        ],
    )

    assert _gate(session).authorize(make_token("guard"), "/check-in-logs", "read", HOMESTAY_LIST_POLICY) is False


def test_store_failure_is_a_deny(session, make_token):
    gate = _gate(session)
    with patch.object(PermissionStore, "get_role", side_effect=RuntimeError("store down")):
        assert gate.authorize(make_token("owner"), "/billing", "read") is False


def test_verified_mode_ignores_unsigned_claims(session, make_token):
    gate = _gate(session, jwt_secret="s3cret")
    signed = jwt.encode({"role": "superadmin"}, "s3cret", algorithm="HS256")

    assert gate.authorize(make_token("superadmin"), "/roles", "update") is False
    assert gate.authorize(signed, "/roles", "update") is True


# -----------------------------------------------------
# Over HTTP
# -----------------------------------------------------
def test_owner_can_read_but_not_update_billing(client: TestClient, session, grant, auth_headers):
    grant("owner", [{"resource": "/billing", "read": True, "update": False}])
    session.add(BillingSettings(id="b1", rate=50, frequency="monthly", start_date="2024-01-01", updated_at="2024-01-01T00:00:00.000Z"))
    session.commit()

    response = client.post(
        "/billing/settings",
        json={"rate": 60, "frequency": "monthly", "startDate": "2024-02-01"},
        headers=auth_headers("owner"),
    )
    assert response.status_code == 403
    assert response.json() == {"error": "forbidden"}

    response = client.get("/billing/settings", headers=auth_headers("owner"))
    assert response.status_code == 200
    assert response.json()["rate"] == 50


def test_missing_credential_on_gated_route_is_forbidden(client: TestClient):
    response = client.get("/billing/settings")
    assert response.status_code == 403


def test_sentinel_over_http_follows_settings(client: TestClient, monkeypatch):
    headers = {"Authorization": "Bearer mock-access-token"}

    assert client.get("/checkpoints", headers=headers).status_code == 403

    monkeypatch.setattr(settings, "ALLOW_INSECURE_SENTINEL_TOKEN", True)
    # No checkpoints yet: authorized, empty page
    assert client.get("/checkpoints", headers=headers).status_code == 204
