"""
API tests for account routes and route gating.
"""

from __future__ import annotations

from fastapi.testclient import TestClient

from blooddrive.api import create_app

from tests.conftest import add_donor, bearer


def _set_cookies(resp) -> str:
    return "\n".join(resp.headers.get_list("set-cookie"))


def test_health(api):
    resp = api.get("/v1/health")
    assert resp.status_code == 200
    assert resp.json()["ok"] is True
    assert resp.headers["X-Request-ID"]
    assert resp.headers["Cache-Control"] == "no-store"


def test_request_id_is_echoed(api):
    resp = api.get("/v1/health", headers={"X-Request-ID": "req-123"})
    assert resp.headers["X-Request-ID"] == "req-123"


class TestRegister:
    def test_creates_account(self, api, fake):
        resp = api.post(
            "/v1/auth/register",
            json={
                "email": "New@Example.org",
                "password": "password123",
                "confirm_password": "password123",
                "accepted_terms": True,
            },
        )
        assert resp.status_code == 201
        body = resp.json()
        assert body["email"] == "new@example.org"
        assert body["confirmation_required"] is True
        assert body["redirect_to"] == "/v1/auth/confirm-email?email=new%40example.org"

        call = fake.auth.sign_up_calls[0]
        assert call["options"]["email_redirect_to"].endswith("/auth/callback")

    def test_password_mismatch(self, api, fake):
        resp = api.post(
            "/v1/auth/register",
            json={"email": "a@b.org", "password": "password123", "confirm_password": "password124", "accepted_terms": True},
        )
        assert resp.status_code == 400
        body = resp.json()
        assert body["error"] == "validation_error"
        assert body["field"] == "confirm_password"
        assert fake.auth.sign_up_calls == []

    def test_terms_required(self, api):
        resp = api.post(
            "/v1/auth/register",
            json={"email": "a@b.org", "password": "password123", "confirm_password": "password123"},
        )
        assert resp.status_code == 400
        assert resp.json()["field"] == "accepted_terms"

    def test_duplicate_email_shows_backend_message(self, api, fake):
        fake.auth.create_user("taken@example.org")
        resp = api.post(
            "/v1/auth/register",
            json={
                "email": "taken@example.org",
                "password": "password123",
                "confirm_password": "password123",
                "accepted_terms": True,
            },
        )
        assert resp.status_code == 400
        assert resp.json() == {
            "error": "auth_error",
            "message": "User already registered",
            "request_id": resp.headers["X-Request-ID"],
        }


def test_confirm_email(api):
    resp = api.get("/v1/auth/confirm-email", params={"email": "new@example.org"})
    assert resp.status_code == 200
    assert "new@example.org" in resp.json()["message"]


class TestLogin:
    def test_member_lands_on_dashboard(self, api, fake, donor):
        resp = api.post("/v1/auth/login", json={"email": "donor@example.org", "password": "password123"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["redirect_to"] == "/dashboard"
        assert body["user"]["name"] == "Ana Rojas"
        assert body["access_token"] in fake.auth.tokens
        cookies = _set_cookies(resp)
        assert "bd-access-token=" in cookies
        assert "bd-refresh-token=" in cookies
        assert "httponly" in cookies.lower()

    def test_admin_lands_on_admin(self, api, admin):
        resp = api.post("/v1/auth/login", json={"email": "admin@example.org", "password": "password123"})
        assert resp.json()["redirect_to"] == "/admin"

    def test_incomplete_profile_lands_on_completion(self, api, fake):
        add_donor(fake, email="new@example.org", complete=False)
        resp = api.post("/v1/auth/login", json={"email": "new@example.org", "password": "password123"})
        assert resp.json()["redirect_to"] == "/register/complete-profile"

    def test_wrong_password(self, api, donor):
        resp = api.post("/v1/auth/login", json={"email": "donor@example.org", "password": "nope-nope"})
        assert resp.status_code == 400
        assert resp.json()["message"] == "Invalid login credentials"

    def test_missing_fields(self, api):
        resp = api.post("/v1/auth/login", json={"email": "donor@example.org"})
        assert resp.status_code == 400
        assert resp.json()["error"] == "validation_error"


class TestSession:
    def test_anonymous(self, api):
        resp = api.get("/v1/auth/session")
        assert resp.status_code == 200
        assert resp.json() == {"authenticated": False, "user": None}

    def test_bearer_token(self, api, donor):
        user_id, token = donor
        resp = api.get("/v1/auth/session", headers=bearer(token))
        body = resp.json()
        assert body["authenticated"] is True
        assert body["user"]["id"] == user_id
        assert body["user"]["is_complete"] is True

    def test_cookie_token(self, backend, donor):
        _, token = donor
        client = TestClient(create_app(backend=backend), cookies={"bd-access-token": token})
        assert client.get("/v1/auth/session").json()["authenticated"] is True

    def test_client_scoped_to_user(self, api, fake, donor):
        _, token = donor
        api.get("/v1/auth/session", headers=bearer(token))
        assert token in fake.postgrest.tokens
        assert token in fake.functions.tokens

    def test_logout(self, api, fake, donor):
        _, token = donor
        resp = api.post("/v1/auth/logout", headers=bearer(token))
        assert resp.status_code == 200
        assert token not in fake.auth.tokens
        assert "bd-access-token=" in _set_cookies(resp)

    def test_logout_without_session(self, api):
        assert api.post("/v1/auth/logout").status_code == 200


class TestCompleteProfile:
    payload = {
        "name": "Carla",
        "last_name": "Mendoza",
        "blood_type": "A-",
        "phone": "71234567",
        "birthday": "1995-04-20",
        "weight": 58,
        "last_donation": "2025-01-10",
    }

    def _new_account(self, fake):
        fake.auth.sign_up({"email": "carla@example.org", "password": "password123"})
        user_id = fake.auth.users["carla@example.org"]["id"]
        return user_id, fake.auth.issue_token(user_id)

    def test_completes_profile(self, api, fake):
        user_id, token = self._new_account(fake)

        resp = api.post("/v1/auth/complete-profile", json=self.payload, headers=bearer(token))

        assert resp.status_code == 200
        assert resp.json()["redirect_to"] == "/dashboard"
        row = fake.row("user_info", user_id)
        assert row["is_complete"] is True
        assert row["role"] == "user"
        assert row["next_date"] == "2025-03-07"
        assert row["email"] == "carla@example.org"

    def test_already_complete(self, api, donor):
        _, token = donor
        resp = api.post("/v1/auth/complete-profile", json=self.payload, headers=bearer(token))
        assert resp.status_code == 409
        assert resp.json()["error"] == "profile_already_complete"

    def test_underweight(self, api, fake):
        _, token = self._new_account(fake)
        resp = api.post("/v1/auth/complete-profile", json={**self.payload, "weight": 45}, headers=bearer(token))
        assert resp.status_code == 400
        assert resp.json()["field"] == "weight"

    def test_requires_session(self, api):
        assert api.post("/v1/auth/complete-profile", json=self.payload).status_code == 401


class TestCallback:
    def test_exchanges_code_and_redirects(self, api, fake):
        user_id = fake.auth.create_user("new@example.org")
        fake.auth.codes["abc123"] = user_id

        resp = api.get("/auth/callback", params={"code": "abc123"}, follow_redirects=False)

        assert resp.status_code == 307
        assert resp.headers["location"].endswith("/register/complete-profile")
        assert "bd-access-token=token-" in _set_cookies(resp)

    def test_invalid_code_still_redirects(self, api):
        resp = api.get("/auth/callback", params={"code": "nope"}, follow_redirects=False)
        assert resp.status_code == 307
        assert "bd-access-token" not in _set_cookies(resp)

    def test_without_code(self, api):
        resp = api.get("/auth/callback", follow_redirects=False)
        assert resp.status_code == 307


class TestGating:
    def test_anonymous_gets_401(self, api):
        resp = api.get("/v1/campaigns")
        assert resp.status_code == 401
        assert resp.json()["error"] == "authentication_required"

    def test_expired_token(self, api):
        resp = api.get("/v1/campaigns", headers=bearer("stale-token"))
        assert resp.status_code == 401
        assert "expired" in resp.json()["message"]

    def test_incomplete_profile_gets_403(self, api, fake):
        _, token = add_donor(fake, email="new@example.org", complete=False)
        for path in ("/v1/dashboard", "/v1/campaigns", "/v1/history", "/v1/profile"):
            resp = api.get(path, headers=bearer(token))
            assert resp.status_code == 403, path
            assert resp.json()["error"] == "profile_incomplete"

    def test_donor_cannot_reach_admin(self, api, donor):
        _, token = donor
        for path in ("/v1/admin/campaigns", "/v1/admin/locations", "/v1/admin/entities"):
            resp = api.get(path, headers=bearer(token))
            assert resp.status_code == 403, path
            assert resp.json()["error"] == "admin_required"


def test_unexpected_error_envelope(backend, donor, monkeypatch):
    from blooddrive.api.routes import campaigns as campaigns_routes

    def boom(*args, **kwargs):
        raise RuntimeError("boom")

    monkeypatch.setattr(campaigns_routes, "filter_campaigns", boom)
    client = TestClient(create_app(backend=backend), raise_server_exceptions=False)

    resp = client.get("/v1/campaigns", headers=bearer(donor[1]))

    assert resp.status_code == 500
    body = resp.json()
    assert body["error"] == "internal_error"
    assert body["message"] == "An unexpected error occurred. Please try again."
