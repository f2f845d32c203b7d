"""
Authentication and authorization tests.

Verifies:
- Unauthenticated requests return 401
- Login, logout and token validation
- Role-restricted endpoints return 403 to other roles
- Deactivated users lose access immediately
"""

import pytest

from conftest import PASSWORD, auth_headers, get_auth_token
from trxdesk.models.auth import ROLE_EMPLOYEE


# =============================================================================
# UNAUTHENTICATED ACCESS: 401
# =============================================================================


class TestUnauthenticatedAccess:
    """All protected endpoints return 401 without a token."""

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/transactions"),
            ("POST", "/api/transactions"),
            ("GET", "/api/transactions/1"),
            ("PUT", "/api/transactions/1"),
            ("DELETE", "/api/transactions/1"),
            ("GET", "/api/transactions/stats/summary"),
            ("GET", "/api/handovers"),
            ("POST", "/api/handovers"),
            ("GET", "/api/handovers/1"),
            ("PUT", "/api/handovers/1/accept"),
            ("GET", "/api/handovers/my/pending"),
            ("GET", "/api/users"),
            ("POST", "/api/users"),
            ("GET", "/api/auth/me"),
        ],
    )
    def test_requires_auth(self, client, db_session, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"
        assert resp.json["success"] is False

    def test_garbage_token(self, client, db_session):
        resp = client.get("/api/transactions", headers=auth_headers("not-a-token"))
        assert resp.status_code == 401


# =============================================================================
# LOGIN / LOGOUT
# =============================================================================


class TestLogin:

    def test_login_returns_token_and_user(self, client, db_session, employee_a):
        resp = client.post("/api/auth/login", json={"email": "EMMA@trxdesk.test", "password": PASSWORD})

        assert resp.status_code == 200
        data = resp.json["data"]
        assert len(data["token"]) == 64
        assert data["user"]["id"] == employee_a.id
        assert "password_hash" not in data["user"]

    def test_wrong_password(self, client, db_session, employee_a):
        resp = client.post("/api/auth/login", json={"email": employee_a.email, "password": "Wrong123!"})
        assert resp.status_code == 401

    def test_missing_credentials(self, client, db_session):
        resp = client.post("/api/auth/login", json={"email": ""})
        assert resp.status_code == 400

    def test_inactive_user_cannot_login(self, client, db_session, make_user):
        user = make_user("idle@trxdesk.test", ROLE_EMPLOYEE, is_active=False)
        assert get_auth_token(client, user.email) is None

    def test_me(self, client, db_session, supervisor, supervisor_headers):
        resp = client.get("/api/auth/me", headers=supervisor_headers)

        assert resp.status_code == 200
        assert resp.json["data"]["user"]["role"] == "supervisor"

    def test_logout_revokes_token(self, client, db_session, employee_a):
        token = get_auth_token(client, employee_a.email)

        assert client.post("/api/auth/logout", headers=auth_headers(token)).status_code == 200
        assert client.get("/api/auth/me", headers=auth_headers(token)).status_code == 401
        assert client.post("/api/auth/logout", headers=auth_headers(token)).status_code == 401


# =============================================================================
# ROLE CHECKS: 403
# =============================================================================


class TestEmployeeDenied:
    """Employee role cannot reach supervisor/admin surfaces."""

    def test_cannot_list_users(self, client, db_session, employee_a_headers):
        resp = client.get("/api/users", headers=employee_a_headers)

        assert resp.status_code == 403
        assert resp.json["kind"] == "forbidden"

    def test_cannot_create_user(self, client, db_session, employee_a_headers):
        resp = client.post(
            "/api/users",
            json={"email": "x@x.com", "fullName": "X", "role": "admin", "password": "P@ssw0rd123!"},
            headers=employee_a_headers,
        )
        assert resp.status_code == 403

    def test_cannot_view_stats(self, client, db_session, employee_a_headers):
        resp = client.get("/api/transactions/stats/summary", headers=employee_a_headers)
        assert resp.status_code == 403

    def test_cannot_create_handover(self, client, db_session, employee_a_headers):
        resp = client.post("/api/handovers", json={}, headers=employee_a_headers)
        assert resp.status_code == 403


class TestDeactivation:

    def test_deactivated_user_loses_session(self, client, db_session, admin_headers, employee_a, employee_a_headers):
        assert client.get("/api/auth/me", headers=employee_a_headers).status_code == 200

        resp = client.delete(f"/api/users/{employee_a.id}", headers=admin_headers)

        assert resp.status_code == 200
        assert client.get("/api/auth/me", headers=employee_a_headers).status_code == 401
        assert get_auth_token(client, employee_a.email) is None


def test_health(client, db_session):
    resp = client.get("/health")

    assert resp.status_code == 200
    assert resp.json["status"] == "healthy"
    assert resp.json["checks"]["database"]["status"] == "healthy"
