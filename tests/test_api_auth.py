"""
tests/test_api_auth.py -- Integration tests for sign-in and the request gate.

These tests exercise the full stack: FastAPI routing -> get_current_user ->
gate -> TokenService/BlogStore -> error envelope. The gate is safety-critical,
so it is checked through ASGI rather than only at the unit level.

Coverage:
  - POST /signin: correct credentials return a bare token string (200)
  - POST /signin: wrong password / unknown email -> 401, no token
  - POST /signin: password over 72 bytes -> 401, not a hashing failure
  - POST /signin: HashingFailure on a corrupt stored hash -> 500
  - Protected route: no header -> 403 "missing token"
  - Protected route: scheme only -> 403 "missing token"
  - Protected route: expired / garbage token -> 401 "unable to decode token"
  - Protected route: token for a vanished user -> 401 "not an authorized user"
  - Protected route: a token from /signin is accepted
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from sqlalchemy import text

from auth.tokens import TokenService


def _bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


class TestSignIn:
    def test_correct_credentials_return_token(self, api_client) -> None:
        resp = api_client.client.post(
            "/signin",
            json={"email": api_client.user.email, "password": api_client.password},
        )
        assert resp.status_code == 200, resp.text
        token = resp.json()
        assert isinstance(token, str) and token
        assert api_client.tokens.validate(token).subject_email == api_client.user.email
        assert resp.headers["cache-control"] == "no-store"

    def test_wrong_password(self, api_client) -> None:
        resp = api_client.client.post(
            "/signin",
            json={"email": api_client.user.email, "password": "not-the-password"},
        )
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "bad_credentials"
        assert resp.headers["cache-control"] == "no-store"

    def test_unknown_email_looks_like_wrong_password(self, api_client) -> None:
        resp = api_client.client.post(
            "/signin",
            json={"email": "stranger@example.com", "password": "whatever"},
        )
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "bad_credentials"

    def test_over_long_password_is_bad_credentials(self, api_client) -> None:
        for email in (api_client.user.email, "nobody@example.com"):
            resp = api_client.client.post("/signin", json={"email": email, "password": "é" * 40})
            assert resp.status_code == 401
            assert resp.json()["error"]["code"] == "bad_credentials"

    def test_missing_fields_rejected(self, api_client) -> None:
        resp = api_client.client.post("/signin", json={"email": api_client.user.email})
        assert resp.status_code == 422

    def test_corrupt_stored_hash_is_server_error(self, api_client) -> None:
        api_client.store.create_user("corrupt@example.com", "whatever-pass")
        with api_client.store.engine.connect() as conn:
            conn.execute(
                text("UPDATE users SET password_hash = 'garbage' WHERE email = 'corrupt@example.com'")
            )
            conn.commit()
        resp = api_client.client.post(
            "/signin",
            json={"email": "corrupt@example.com", "password": "whatever-pass"},
        )
        assert resp.status_code == 500
        assert resp.json()["error"]["code"] == "hashing_failure"


class TestGate:
    def test_no_header_is_forbidden(self, api_client) -> None:
        resp = api_client.client.get("/users/me")
        assert resp.status_code == 403
        assert resp.json()["error"] == {
            "code": "forbidden",
            "message": "missing token",
            "detail": None,
            "existing": None,
        }

    def test_scheme_without_token_is_forbidden(self, api_client) -> None:
        resp = api_client.client.get("/users/me", headers={"Authorization": "Bearer"})
        assert resp.status_code == 403
        assert resp.json()["error"]["message"] == "missing token"

    def test_garbage_token_is_unauthorized(self, api_client) -> None:
        resp = api_client.client.get("/users/me", headers=_bearer("garbage"))
        assert resp.status_code == 401
        assert resp.json()["error"]["message"] == "unable to decode token"

    def test_expired_token_is_unauthorized(self, api_client) -> None:
        issued = datetime.now(timezone.utc) - timedelta(hours=25)
        stale = TokenService(api_client.secret, clock=lambda: issued).issue(api_client.user.email)
        resp = api_client.client.get("/users/me", headers=_bearer(stale))
        assert resp.status_code == 401
        assert resp.json()["error"]["message"] == "unable to decode token"

    def test_token_for_unknown_user_is_unauthorized(self, api_client) -> None:
        token = api_client.tokens.issue("ghost@example.com")
        resp = api_client.client.get("/users/me", headers=_bearer(token))
        assert resp.status_code == 401
        assert resp.json()["error"]["message"] == "not an authorized user"

    def test_signed_in_token_passes_gate(self, api_client) -> None:
        token = api_client.client.post(
            "/signin",
            json={"email": api_client.user.email, "password": api_client.password},
        ).json()
        resp = api_client.client.get("/users/me", headers=_bearer(token))
        assert resp.status_code == 200
        assert resp.json()["email"] == api_client.user.email
        assert "password_hash" not in resp.json()
