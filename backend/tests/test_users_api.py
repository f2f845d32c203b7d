"""
User administration tests.
"""

from conftest import get_auth_token


def _new_user(**overrides):
    body = {
        "email": "Nadia@TrxDesk.test",
        "fullName": "Nadia Employee",
        "role": "employee",
        "password": "Str0ng!Pass",
    }
    body.update(overrides)
    return body


class TestListUsers:

    def test_supervisor_lists_active_employees(
        self, client, db_session, make_user, supervisor_headers, employee_a, employee_b
    ):
        make_user("idle@trxdesk.test", "employee", is_active=False)

        resp = client.get("/api/users?role=employee", headers=supervisor_headers)

        assert resp.status_code == 200
        emails = {u["email"] for u in resp.json["data"]["users"]}
        assert emails == {employee_a.email, employee_b.email}

    def test_include_inactive(self, client, db_session, make_user, admin_headers, employee_a):
        make_user("idle@trxdesk.test", "employee", is_active=False)

        resp = client.get("/api/users?role=employee&includeInactive=true", headers=admin_headers)

        assert len(resp.json["data"]["users"]) == 2

    def test_invalid_role_filter(self, client, db_session, admin_headers):
        resp = client.get("/api/users?role=manager", headers=admin_headers)
        assert resp.status_code == 400


class TestCreateUser:

    def test_admin_creates_user(self, client, db_session, admin_headers):
        resp = client.post("/api/users", json=_new_user(phone="+971500000077"), headers=admin_headers)

        assert resp.status_code == 201
        user = resp.json["data"]["user"]
        assert user["email"] == "nadia@trxdesk.test"
        assert user["role"] == "employee"
        assert user["phone"] == "+971500000077"
        assert get_auth_token(client, "nadia@trxdesk.test", "Str0ng!Pass")

    def test_duplicate_email(self, client, db_session, admin_headers, employee_a):
        resp = client.post("/api/users", json=_new_user(email=employee_a.email), headers=admin_headers)

        assert resp.status_code == 409
        assert resp.json["kind"] == "conflict"

    def test_weak_password(self, client, db_session, admin_headers):
        resp = client.post("/api/users", json=_new_user(password="short"), headers=admin_headers)

        assert resp.status_code == 400
        assert resp.json["errors"][0]["field"] == "password"

    def test_every_missing_field_reported(self, client, db_session, admin_headers):
        resp = client.post("/api/users", json={}, headers=admin_headers)

        assert resp.status_code == 400
        assert {e["field"] for e in resp.json["errors"]} == {"email", "fullName", "role", "password"}

    def test_invalid_email_and_role(self, client, db_session, admin_headers):
        resp = client.post(
            "/api/users",
            json=_new_user(email="not-an-email", role="manager"),
            headers=admin_headers,
        )

        assert resp.status_code == 400
        assert {e["field"] for e in resp.json["errors"]} == {"email", "role"}

    def test_supervisor_cannot_create(self, client, db_session, supervisor_headers):
        resp = client.post("/api/users", json=_new_user(), headers=supervisor_headers)
        assert resp.status_code == 403


class TestUpdateUser:

    def test_admin_promotes_employee(self, client, db_session, admin_headers, employee_a):
        resp = client.put(f"/api/users/{employee_a.id}", json={"role": "supervisor"}, headers=admin_headers)

        assert resp.status_code == 200
        assert resp.json["data"]["user"]["role"] == "supervisor"

    def test_password_not_updatable(self, client, db_session, admin_headers, employee_a):
        resp = client.put(
            f"/api/users/{employee_a.id}",
            json={"password": "N3w!Password"},
            headers=admin_headers,
        )
        assert resp.status_code == 400

    def test_admin_cannot_demote_self(self, client, db_session, admin, admin_headers):
        resp = client.put(f"/api/users/{admin.id}", json={"role": "employee"}, headers=admin_headers)
        assert resp.status_code == 400

    def test_missing_user(self, client, db_session, admin_headers):
        resp = client.put("/api/users/9999", json={"fullName": "Ghost"}, headers=admin_headers)
        assert resp.status_code == 404


class TestDeactivateUser:

    def test_cannot_deactivate_self(self, client, db_session, admin, admin_headers):
        resp = client.delete(f"/api/users/{admin.id}", headers=admin_headers)

        assert resp.status_code == 400
        assert client.get("/api/auth/me", headers=admin_headers).status_code == 200

    def test_deactivated_user_kept_for_history(self, client, db_session, admin_headers, employee_a):
        client.delete(f"/api/users/{employee_a.id}", headers=admin_headers)

        resp = client.get("/api/users?includeInactive=true", headers=admin_headers)

        match = [u for u in resp.json["data"]["users"] if u["id"] == employee_a.id]
        assert match and match[0]["is_active"] is False
