"""
tests/test_api_posts.py -- Integration tests for the post CRUD routes.

Coverage:
  - Public reads: GET /posts/all, GET /posts/{id}, 404 for unknown ids
  - Auth failures: 403 on POST/PATCH/DELETE without a token
  - POST /posts/new: 201 echoing id, created_at, and the authenticated poster
  - POST /posts/new duplicate title: 409 with the original post attached
  - PATCH /posts/{id}: full replace; 404 with the id in the message
  - DELETE /posts/{id}: 204, then 404
"""

from __future__ import annotations


def _bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def _create(api_client, title: str, body: str = "body text") -> dict:
    resp = api_client.client.post(
        "/posts/new",
        json={"title": title, "body": body},
        headers=_bearer(api_client.token),
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


class TestPostAuthFailure:
    def test_create_without_token(self, api_client) -> None:
        resp = api_client.client.post("/posts/new", json={"title": "Anon", "body": "b"})
        assert resp.status_code == 403
        assert resp.json()["error"]["message"] == "missing token"

    def test_amend_without_token(self, api_client) -> None:
        resp = api_client.client.patch("/posts/1", json={"title": "Anon", "body": "b"})
        assert resp.status_code == 403

    def test_delete_without_token(self, api_client) -> None:
        resp = api_client.client.delete("/posts/1")
        assert resp.status_code == 403


class TestPostRoutes:
    def test_create_echoes_stored_record(self, api_client) -> None:
        data = _create(api_client, "X", body="b")
        assert isinstance(data["id"], int)
        assert data["title"] == "X"
        assert data["body"] == "b"
        assert data["poster_id"] == api_client.user.id
        assert data["created_at"]

    def test_duplicate_title_conflicts_with_original(self, api_client) -> None:
        original = _create(api_client, "Hello", body="the original")
        resp = api_client.client.post(
            "/posts/new",
            json={"title": "Hello", "body": "a copy"},
            headers=_bearer(api_client.token),
        )
        assert resp.status_code == 409
        error = resp.json()["error"]
        assert error["code"] == "conflict"
        assert error["existing"] == original

    def test_list_is_public(self, api_client) -> None:
        _create(api_client, "Listed")
        resp = api_client.client.get("/posts/all")
        assert resp.status_code == 200
        assert "Listed" in [p["title"] for p in resp.json()]

    def test_get_single_is_public(self, api_client) -> None:
        created = _create(api_client, "Single")
        resp = api_client.client.get(f"/posts/{created['id']}")
        assert resp.status_code == 200
        assert resp.json() == created

    def test_get_unknown(self, api_client) -> None:
        resp = api_client.client.get("/posts/99999")
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "not_found"

    def test_non_integer_id_is_validation_error(self, api_client) -> None:
        resp = api_client.client.get("/posts/not-a-number")
        assert resp.status_code == 422

    def test_amend_replaces_content(self, api_client) -> None:
        created = _create(api_client, "Before", body="old")
        resp = api_client.client.patch(
            f"/posts/{created['id']}",
            json={"title": "After", "body": "new"},
            headers=_bearer(api_client.token),
        )
        assert resp.status_code == 200, resp.text
        data = resp.json()
        assert data["id"] == created["id"]
        assert data["created_at"] == created["created_at"]
        assert (data["title"], data["body"]) == ("After", "new")

    def test_amend_requires_full_record(self, api_client) -> None:
        created = _create(api_client, "Partial")
        resp = api_client.client.patch(
            f"/posts/{created['id']}",
            json={"body": "only the body"},
            headers=_bearer(api_client.token),
        )
        assert resp.status_code == 422

    def test_amend_unknown_names_the_id(self, api_client) -> None:
        resp = api_client.client.patch(
            "/posts/424242",
            json={"title": "Ghost", "body": "b"},
            headers=_bearer(api_client.token),
        )
        assert resp.status_code == 404
        assert "424242" in resp.json()["error"]["message"]

    def test_delete_then_gone(self, api_client) -> None:
        created = _create(api_client, "Doomed")
        resp = api_client.client.delete(f"/posts/{created['id']}", headers=_bearer(api_client.token))
        assert resp.status_code == 204
        assert api_client.client.get(f"/posts/{created['id']}").status_code == 404

    def test_delete_unknown(self, api_client) -> None:
        resp = api_client.client.delete("/posts/31337", headers=_bearer(api_client.token))
        assert resp.status_code == 404
        assert "31337" in resp.json()["error"]["message"]
