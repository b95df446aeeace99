"""HTTP tests for the /api/v1/auth endpoints."""

import pytest
from sqlalchemy.exc import OperationalError

import api.auth
from models import storage
from models.user import User
from conftest import ALICE, auth_header

BASE = "/api/v1/auth"


def register(client, **overrides):
    body = dict(ALICE, **overrides)
    return client.post(f"{BASE}/register", json=body)


def sign_in(client, username="alice", password="Secret123!"):
    return client.post(f"{BASE}/sign-in", json={"username": username, "password": password})


class TestRegisterEndpoint:

    def test_register_returns_session(self, client):
        response = register(client)

        assert response.status_code == 201
        data = response.get_json()["data"]
        assert set(data) == {"accessToken", "refreshToken", "expiresIn", "role"}
        assert data["role"] == "Member"
        assert data["expiresIn"] == 3600

    def test_duplicate_username(self, client):
        register(client)
        response = register(client, email="someone-else@example.com")

        assert response.status_code == 409
        assert response.get_json()["error"] == "CONFLICT"
        assert storage.count(User) == 1

    @pytest.mark.parametrize(
        "overrides, field",
        [
            ({"username": "al"}, "username"),
            ({"username": "bad name!"}, "username"),
            ({"password": "123"}, "password"),
            ({"email": "not-an-email"}, "email"),
            ({"firstName": "   "}, "firstName"),
        ],
    )
    def test_invalid_input(self, client, overrides, field):
        response = register(client, **overrides)

        assert response.status_code == 422
        body = response.get_json()
        assert body["error"] == "VALIDATION_ERROR"
        assert field in body["details"]

    def test_missing_body(self, client):
        response = client.post(f"{BASE}/register")
        assert response.status_code == 422


class TestSignInEndpoint:

    def test_sign_in(self, client):
        register(client)
        response = sign_in(client)

        assert response.status_code == 200
        assert response.get_json()["data"]["refreshToken"]

    def test_bad_credentials_use_one_message(self, client):
        register(client)
        wrong_password = sign_in(client, password="wrongpass")
        unknown_user = sign_in(client, username="nobody")

        assert wrong_password.status_code == 401
        assert unknown_user.status_code == 401
        assert wrong_password.get_json()["message"] == unknown_user.get_json()["message"]

    def test_missing_password(self, client):
        response = client.post(f"{BASE}/sign-in", json={"username": "alice"})
        assert response.status_code == 422


class TestRefreshEndpoint:

    def test_rotation(self, client):
        register(client)
        old = sign_in(client).get_json()["data"]["refreshToken"]

        response = client.post(f"{BASE}/refresh-token", json={"refreshToken": old})
        assert response.status_code == 200
        new = response.get_json()["data"]["refreshToken"]
        assert new != old

        replay = client.post(f"{BASE}/refresh-token", json={"refreshToken": old})
        assert replay.status_code == 401
        assert replay.get_json()["error"] == "UNAUTHORIZED"

    def test_missing_token(self, client):
        response = client.post(f"{BASE}/refresh-token", json={})
        assert response.status_code == 422

    def test_store_failure_is_internal_error(self, client, monkeypatch):
        class Broken:
            def refresh_token(self, value):
                raise OperationalError("UPDATE refresh_tokens", {}, Exception("connection lost"))

        monkeypatch.setattr(api.auth, "get_session_manager", lambda: Broken())
        response = client.post(f"{BASE}/refresh-token", json={"refreshToken": "abc"})

        assert response.status_code == 500
        assert response.get_json()["error"] == "INTERNAL_ERROR"


class TestSignOutEndpoint:

    def test_sign_out_revokes_refresh_token(self, client):
        session = register(client).get_json()["data"]

        response = client.post(
            f"{BASE}/sign-out",
            json={"refreshToken": session["refreshToken"]},
            headers=auth_header(session["accessToken"]),
        )
        assert response.status_code == 200
        assert response.get_json()["data"] is True

        refresh = client.post(f"{BASE}/refresh-token", json={"refreshToken": session["refreshToken"]})
        assert refresh.status_code == 401

    def test_requires_access_token(self, client):
        session = register(client).get_json()["data"]
        response = client.post(f"{BASE}/sign-out", json={"refreshToken": session["refreshToken"]})
        assert response.status_code == 401

    def test_rejects_refresh_token_as_bearer(self, client):
        session = register(client).get_json()["data"]
        response = client.post(
            f"{BASE}/sign-out",
            json={"refreshToken": session["refreshToken"]},
            headers=auth_header(session["refreshToken"]),
        )
        assert response.status_code == 401

    def test_cannot_sign_out_another_users_session(self, client):
        alice = register(client).get_json()["data"]
        bob = register(client, username="bob", email="bob@example.com").get_json()["data"]

        response = client.post(
            f"{BASE}/sign-out",
            json={"refreshToken": bob["refreshToken"]},
            headers=auth_header(alice["accessToken"]),
        )
        assert response.status_code == 400

        refresh = client.post(f"{BASE}/refresh-token", json={"refreshToken": bob["refreshToken"]})
        assert refresh.status_code == 200


class TestMeEndpoint:

    def test_me(self, client):
        session = register(client).get_json()["data"]
        response = client.get(f"{BASE}/me", headers=auth_header(session["accessToken"]))

        assert response.status_code == 200
        data = response.get_json()["data"]
        assert data["username"] == "alice"
        assert data["email"] == "alice@example.com"
        assert data["firstName"] == "Alice"
        assert data["isAdministrator"] is False

    def test_expired_access_token(self, client, app, alice):
        codec = app.extensions["token_codec"]
        token = codec.issue(alice.id, alice.username, "Member", ttl_seconds=-1)

        response = client.get(f"{BASE}/me", headers=auth_header(token))
        assert response.status_code == 401


class TestPurgeEndpoint:

    def test_requires_administrator(self, client):
        session = register(client).get_json()["data"]
        response = client.post(f"{BASE}/sessions/purge", headers=auth_header(session["accessToken"]))
        assert response.status_code == 403

    def test_admin_can_purge(self, client, admin):
        session = sign_in(client, "root_admin", "AdminPass1!").get_json()["data"]
        client.post(f"{BASE}/refresh-token", json={"refreshToken": session["refreshToken"]})

        admin_token = sign_in(client, "root_admin", "AdminPass1!").get_json()["data"]["accessToken"]
        response = client.post(f"{BASE}/sessions/purge", headers=auth_header(admin_token))

        assert response.status_code == 200
        assert response.get_json()["data"]["purged"] == 1


def test_auth_routes_mounted_under_auth_prefix(app):
    rules = {rule.rule for rule in app.url_map.iter_rules()}

    for path in ("register", "sign-in", "refresh-token", "sign-out", "me", "sessions/purge"):
        assert f"{BASE}/{path}" in rules
        assert f"/api/v1/{path}" not in rules


def test_health(client):
    response = client.get("/api/v1/health")
    assert response.status_code == 200
    assert response.get_json()["status"] == "ok"


def test_alice_scenario_over_http(client):
    registered = register(client)
    assert registered.status_code == 201

    assert sign_in(client, password="wrongpass").status_code == 401

    signed_in = sign_in(client)
    assert signed_in.status_code == 200
    signed_in_refresh = signed_in.get_json()["data"]["refreshToken"]
    assert signed_in_refresh != registered.get_json()["data"]["refreshToken"]

    refreshed = client.post(f"{BASE}/refresh-token", json={"refreshToken": signed_in_refresh})
    assert refreshed.status_code == 200
    assert refreshed.get_json()["data"]["accessToken"]

    stale = client.post(f"{BASE}/refresh-token", json={"refreshToken": signed_in_refresh})
    assert stale.status_code == 401
