"""
tests/test_content_routes.py -- Integration tests for products, news, contacts and settings.

Coverage:
  - Products: create/update/delete happy path, public list hides inactive,
    filters, literal search wildcards, pagination envelope, featured, 404s, 422 on bad body
  - News: published-only listing, view counting, latest
  - Contacts: public submission, inbox listing and status update
  - Settings: default row on first read, admin update incl. homepage_content
  - Rate limit on the public contact form
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from api.limiter import limiter
from api.main import create_app
from core.config import Settings

PASSWORD = "correct-horse-battery"


def auth_header(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def product_body(name_en: str, **overrides) -> dict:
    body = {
        "name": {"zh": f"产品 {name_en}", "en": name_en},
        "description": {"zh": "描述", "en": "Description"},
        "category": "widgets",
    }
    body.update(overrides)
    return body


def news_body(title_en: str, **overrides) -> dict:
    body = {
        "title": {"zh": f"新闻 {title_en}", "en": title_en},
        "content": {"zh": "内容", "en": "Body"},
        "category": "company",
    }
    body.update(overrides)
    return body


@pytest.fixture
def admin_token(make_principal, login) -> str:
    make_principal("admin1", "admin")
    return login("admin1@example.com")


@pytest.fixture
def editor_token(make_principal, login) -> str:
    make_principal("editor1", "editor")
    return login("editor1@example.com")


class TestProducts:
    def test_create_and_get(self, client, editor_token):
        resp = client.post(
            "/api/v1/products",
            json=product_body("Pump", images=["/a.jpg"], specifications=[{"k": "v"}], price=9.5),
            headers=auth_header(editor_token),
        )
        assert resp.status_code == 201
        created = resp.json()
        assert created["name"] == {"zh": "产品 Pump", "en": "Pump"}
        assert created["images"] == ["/a.jpg"]
        assert created["specifications"] == [{"k": "v"}]

        fetched = client.get(f"/api/v1/products/{created['id']}")
        assert fetched.status_code == 200
        assert fetched.json() == created

    def test_update(self, client, editor_token):
        pid = client.post("/api/v1/products", json=product_body("Old"), headers=auth_header(editor_token)).json()["id"]
        resp = client.put(f"/api/v1/products/{pid}", json=product_body("New"), headers=auth_header(editor_token))
        assert resp.status_code == 200
        assert resp.json()["name"]["en"] == "New"

    def test_update_unknown_is_404(self, client, editor_token):
        resp = client.put("/api/v1/products/missing", json=product_body("X"), headers=auth_header(editor_token))
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "not_found"

    def test_missing_language_is_422(self, client, editor_token):
        body = product_body("X", name={"zh": "只有中文"})
        resp = client.post("/api/v1/products", json=body, headers=auth_header(editor_token))
        assert resp.status_code == 422

    def test_public_list_hides_inactive_and_paginates(self, client, editor_token):
        headers = auth_header(editor_token)
        client.post("/api/v1/products", json=product_body("First", order=1), headers=headers)
        client.post("/api/v1/products", json=product_body("Second", order=2), headers=headers)
        client.post("/api/v1/products", json=product_body("Third", order=3), headers=headers)
        client.post("/api/v1/products", json=product_body("Hidden", status="inactive"), headers=headers)

        resp = client.get("/api/v1/products", params={"page": 1, "limit": 2})
        assert resp.status_code == 200
        body = resp.json()
        assert [p["name"]["en"] for p in body["data"]] == ["First", "Second"]
        assert body["pagination"] == {"page": 1, "limit": 2, "total": 3, "pages": 2}

        page2 = client.get("/api/v1/products", params={"page": 2, "limit": 2}).json()
        assert [p["name"]["en"] for p in page2["data"]] == ["Third"]

    def test_limit_capped(self, client):
        assert client.get("/api/v1/products", params={"limit": 51}).status_code == 422

    def test_filters(self, client, editor_token):
        headers = auth_header(editor_token)
        client.post("/api/v1/products", json=product_body("Valve", category="valves"), headers=headers)
        client.post("/api/v1/products", json=product_body("Pump", featured=True), headers=headers)

        by_category = client.get("/api/v1/products", params={"category": "valves"}).json()
        assert [p["name"]["en"] for p in by_category["data"]] == ["Valve"]

        by_search = client.get("/api/v1/products", params={"search": "Pum"}).json()
        assert [p["name"]["en"] for p in by_search["data"]] == ["Pump"]

        featured = client.get("/api/v1/products/featured").json()
        assert [p["name"]["en"] for p in featured] == ["Pump"]

    def test_search_is_parameterized(self, client, editor_token):
        client.post("/api/v1/products", json=product_body("Pump"), headers=auth_header(editor_token))
        resp = client.get("/api/v1/products", params={"search": "' OR 1=1 --"})
        assert resp.status_code == 200
        assert resp.json()["data"] == []

    def test_search_wildcards_match_literally(self, client, editor_token):
        headers = auth_header(editor_token)
        client.post("/api/v1/products", json=product_body("100% Cotton"), headers=headers)
        client.post("/api/v1/products", json=product_body("1000 Cotton"), headers=headers)
        client.post("/api/v1/products", json=product_body("Pipe_Fitting"), headers=headers)
        client.post("/api/v1/products", json=product_body("PipeXFitting"), headers=headers)

        percent = client.get("/api/v1/products", params={"search": "100%"}).json()
        assert [p["name"]["en"] for p in percent["data"]] == ["100% Cotton"]

        underscore = client.get("/api/v1/products", params={"search": "Pipe_"}).json()
        assert [p["name"]["en"] for p in underscore["data"]] == ["Pipe_Fitting"]

    def test_delete_unknown_is_404_for_admin(self, client, admin_token):
        resp = client.delete("/api/v1/products/missing", headers=auth_header(admin_token))
        assert resp.status_code == 404


class TestNews:
    def test_drafts_are_not_public(self, client, editor_token):
        headers = auth_header(editor_token)
        client.post("/api/v1/news", json=news_body("Live"), headers=headers)
        client.post("/api/v1/news", json=news_body("Draft", status="draft"), headers=headers)

        body = client.get("/api/v1/news").json()
        assert [n["title"]["en"] for n in body["data"]] == ["Live"]
        assert body["pagination"]["total"] == 1

    def test_views_are_counted(self, client, editor_token):
        nid = client.post("/api/v1/news", json=news_body("Counted"), headers=auth_header(editor_token)).json()["id"]
        assert client.get(f"/api/v1/news/{nid}").json()["views"] == 0
        assert client.get(f"/api/v1/news/{nid}").json()["views"] == 1

    def test_latest(self, client, editor_token):
        client.post("/api/v1/news", json=news_body("One"), headers=auth_header(editor_token))
        resp = client.get("/api/v1/news/latest", params={"limit": 3})
        assert resp.status_code == 200
        assert len(resp.json()) == 1

    def test_author_defaults(self, client, editor_token):
        resp = client.post("/api/v1/news", json=news_body("Anon"), headers=auth_header(editor_token))
        assert resp.json()["author"] == "Admin"

    def test_editor_cannot_delete(self, client, editor_token):
        nid = client.post("/api/v1/news", json=news_body("Stay"), headers=auth_header(editor_token)).json()["id"]
        assert client.delete(f"/api/v1/news/{nid}", headers=auth_header(editor_token)).status_code == 403

    def test_admin_deletes(self, client, admin_token):
        nid = client.post("/api/v1/news", json=news_body("Go"), headers=auth_header(admin_token)).json()["id"]
        assert client.delete(f"/api/v1/news/{nid}", headers=auth_header(admin_token)).status_code == 200
        assert client.get(f"/api/v1/news/{nid}").status_code == 404


class TestContacts:
    CONTACT = {
        "name": "Visitor",
        "email": "visitor@example.com",
        "phone": "+86 123",
        "subject": "Quote",
        "message": "Please send a quote.",
    }

    def test_public_submission_and_inbox(self, client, editor_token):
        resp = client.post("/api/v1/contacts", json=self.CONTACT)
        assert resp.status_code == 201
        assert resp.json()["status"] == "unread"
        cid = resp.json()["id"]

        assert client.get("/api/v1/contacts").status_code == 401

        inbox = client.get("/api/v1/contacts", headers=auth_header(editor_token)).json()
        assert [c["id"] for c in inbox["data"]] == [cid]

        updated = client.put(
            f"/api/v1/contacts/{cid}",
            json={"status": "replied", "reply": "Sent."},
            headers=auth_header(editor_token),
        )
        assert updated.status_code == 200
        assert updated.json()["status"] == "replied"
        assert updated.json()["reply"] == "Sent."

        unread = client.get("/api/v1/contacts", params={"status": "unread"}, headers=auth_header(editor_token))
        assert unread.json()["pagination"]["total"] == 0

    def test_invalid_email_rejected(self, client):
        resp = client.post("/api/v1/contacts", json={**self.CONTACT, "email": "nope"})
        assert resp.status_code == 422

    def test_delete_requires_admin(self, client, editor_token, admin_token):
        cid = client.post("/api/v1/contacts", json=self.CONTACT).json()["id"]
        assert client.delete(f"/api/v1/contacts/{cid}", headers=auth_header(editor_token)).status_code == 403
        assert client.delete(f"/api/v1/contacts/{cid}", headers=auth_header(admin_token)).status_code == 200


class TestSettings:
    def test_defaults_created_on_first_read(self, client):
        resp = client.get("/api/v1/settings")
        assert resp.status_code == 200
        body = resp.json()
        assert body["site_name"] == {"zh": "公司名称", "en": "Company Name"}
        assert body["homepage_content"] == {}
        assert client.get("/api/v1/settings").json()["id"] == body["id"]

    def test_admin_update(self, client, admin_token):
        resp = client.put(
            "/api/v1/settings",
            json={
                "site_name": {"zh": "新名称", "en": "New Name"},
                "banners": [{"image": "/b.jpg"}],
                "homepage_content": {"hero": {"title": "Hi"}},
            },
            headers=auth_header(admin_token),
        )
        assert resp.status_code == 200
        body = client.get("/api/v1/settings").json()
        assert body["site_name"]["en"] == "New Name"
        assert body["banners"] == [{"image": "/b.jpg"}]
        assert body["homepage_content"] == {"hero": {"title": "Hi"}}


def test_contact_form_rate_limited(tmp_path):
    settings = Settings(
        _env_file=None,
        secret_key="contact-limit-test-secret-key-0123456789",
        database_url=f"sqlite:///{tmp_path / 'contacts.sqlite'}",
        rate_limit_enabled=True,
    )
    limiter.reset()
    try:
        with TestClient(create_app(settings)) as client:
            for _ in range(10):
                assert client.post("/api/v1/contacts", json=TestContacts.CONTACT).status_code == 201
            resp = client.post("/api/v1/contacts", json=TestContacts.CONTACT)
            assert resp.status_code == 429
            assert resp.json()["error"]["code"] == "rate_limited"
            assert "retry-after" in resp.headers
    finally:
        limiter.reset()
        limiter.enabled = False
