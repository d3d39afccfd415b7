"""
tests/test_access_control.py -- End-to-end authorization over HTTP.

These tests exercise the full stack: bearer header -> RequestAuthenticator ->
CapabilityAuthorizer (live row read) -> route handler. Role changes and
deactivations are made through the admin API or the store while a token
issued earlier is still in hand, to prove the live check overrides the
token's role claim.
"""

from __future__ import annotations

from fastapi.testclient import TestClient

from auth.errors import FORBIDDEN_MESSAGE, NOT_AUTHENTICATED_MESSAGE, STALE_ROLE_MESSAGE


def auth_header(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


PRODUCT = {
    "name": {"zh": "产品", "en": "Product"},
    "description": {"zh": "描述", "en": "Description"},
    "category": "widgets",
}


def _create_product(client: TestClient, token: str) -> str:
    resp = client.post("/api/v1/products", json=PRODUCT, headers=auth_header(token))
    assert resp.status_code == 201, resp.text
    return resp.json()["id"]


class TestUnauthenticated:
    def test_missing_header_and_garbage_token_are_identical(self, client):
        missing = client.post("/api/v1/products", json=PRODUCT)
        garbage = client.post("/api/v1/products", json=PRODUCT, headers={"Authorization": "Bearer garbage"})
        assert missing.status_code == garbage.status_code == 401
        assert missing.json() == garbage.json()
        assert missing.json()["error"]["message"] == NOT_AUTHENTICATED_MESSAGE
        assert missing.headers["www-authenticate"] == "Bearer"

    def test_wrong_scheme_rejected(self, client):
        resp = client.get("/api/v1/auth/me", headers={"Authorization": "Basic dXNlcjpwYXNz"})
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "unauthorized"

    def test_rejection_happens_before_lookup(self, client):
        """DELETE of a nonexistent id without a token is 401, not 404."""
        resp = client.delete("/api/v1/products/no-such-id")
        assert resp.status_code == 401

    def test_public_routes_need_no_token(self, client):
        assert client.get("/api/v1/products").status_code == 200
        assert client.get("/api/v1/news").status_code == 200
        assert client.get("/api/v1/settings").status_code == 200


class TestCapabilitySets:
    def test_editor_can_create_but_not_delete(self, client, make_principal, login):
        make_principal("editor1", "editor")
        token = login("editor1@example.com")
        product_id = _create_product(client, token)

        resp = client.delete(f"/api/v1/products/{product_id}", headers=auth_header(token))
        assert resp.status_code == 403
        assert resp.json()["error"] == {"code": "forbidden", "message": FORBIDDEN_MESSAGE}
        assert client.get(f"/api/v1/products/{product_id}").status_code == 200

    def test_admin_can_delete(self, client, make_principal, login):
        make_principal("admin1", "admin")
        token = login("admin1@example.com")
        product_id = _create_product(client, token)
        resp = client.delete(f"/api/v1/products/{product_id}", headers=auth_header(token))
        assert resp.status_code == 200
        assert client.get(f"/api/v1/products/{product_id}").status_code == 404

    def test_viewer_cannot_mutate(self, client, make_principal, login):
        make_principal("viewer1", "viewer")
        token = login("viewer1@example.com")
        resp = client.post("/api/v1/products", json=PRODUCT, headers=auth_header(token))
        assert resp.status_code == 403

    def test_viewer_can_use_self_service(self, client, make_principal, login):
        make_principal("viewer1", "viewer")
        token = login("viewer1@example.com")
        resp = client.get("/api/v1/auth/me", headers=auth_header(token))
        assert resp.status_code == 200
        assert resp.json()["role"] == "viewer"

    def test_editor_cannot_manage_users_or_settings(self, client, make_principal, login):
        make_principal("editor1", "editor")
        token = login("editor1@example.com")
        assert client.get("/api/v1/auth/users", headers=auth_header(token)).status_code == 403
        resp = client.put(
            "/api/v1/settings",
            json={"site_name": {"zh": "站", "en": "Site"}},
            headers=auth_header(token),
        )
        assert resp.status_code == 403


class TestLiveRoleCheck:
    def test_demoted_editor_must_log_in_again(self, client, make_principal, login):
        make_principal("admin1", "admin")
        editor_id = make_principal("editor1", "editor")
        admin_token = login("admin1@example.com")
        editor_token = login("editor1@example.com")

        resp = client.patch(
            f"/api/v1/auth/users/{editor_id}",
            json={"role": "viewer"},
            headers=auth_header(admin_token),
        )
        assert resp.status_code == 200
        assert resp.json()["role"] == "viewer"

        stale = client.post("/api/v1/products", json=PRODUCT, headers=auth_header(editor_token))
        assert stale.status_code == 401
        assert stale.json()["error"] == {"code": "role_changed", "message": STALE_ROLE_MESSAGE}

        fresh_token = login("editor1@example.com")
        denied = client.post("/api/v1/products", json=PRODUCT, headers=auth_header(fresh_token))
        assert denied.status_code == 403

    def test_stale_role_also_applies_to_self_service(self, client, make_principal, login):
        editor_id = make_principal("editor1", "editor")
        token = login("editor1@example.com")
        client.app.state.principal_store.update_principal(editor_id, role="admin")
        resp = client.get("/api/v1/auth/me", headers=auth_header(token))
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "role_changed"

    def test_deactivated_account_is_locked_out(self, client, make_principal, login):
        make_principal("admin1", "admin")
        editor_id = make_principal("editor1", "editor")
        admin_token = login("admin1@example.com")
        editor_token = login("editor1@example.com")

        resp = client.patch(
            f"/api/v1/auth/users/{editor_id}",
            json={"is_active": False},
            headers=auth_header(admin_token),
        )
        assert resp.status_code == 200

        locked = client.post("/api/v1/products", json=PRODUCT, headers=auth_header(editor_token))
        assert locked.status_code == 401
        assert locked.json()["error"]["code"] == "unauthorized"

        relogin = client.post(
            "/api/v1/auth/login",
            json={"email": "editor1@example.com", "password": "correct-horse-battery"},
        )
        assert relogin.status_code == 401

    def test_deleted_account_token_rejected(self, client, make_principal, login, engine):
        from sqlalchemy import text

        editor_id = make_principal("editor1", "editor")
        token = login("editor1@example.com")
        with engine.begin() as conn:
            conn.execute(text("DELETE FROM users WHERE id = :id"), {"id": editor_id})
        resp = client.get("/api/v1/auth/me", headers=auth_header(token))
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "unauthorized"

    def test_token_from_other_key_rejected(self, client, make_principal):
        from auth.tokens import TokenIssuer

        admin_id = make_principal("admin1", "admin")
        forged = TokenIssuer("attacker-chosen-key-that-is-long-enough!!").issue(admin_id, "admin")
        resp = client.get("/api/v1/auth/users", headers=auth_header(forged))
        assert resp.status_code == 401
