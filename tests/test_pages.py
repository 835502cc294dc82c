"""Tests for static pages, navigation links and blogs."""

from datetime import datetime

import pytest

from app.models import Blog, StaticPage
from app.services.navigation import NavigationCache


@pytest.fixture
def make_page(db_session):
    def _make_page(slug, title=None, content="Body", location=None):
        page = StaticPage(slug=slug, title=title or slug.title(), content=content, location=location or [])
        db_session.add(page)
        db_session.commit()
        return page

    return _make_page


class TestStaticPages:
    def test_existing_page(self, client, make_page):
        make_page("privacy-policy", title="Privacy Policy", content="We keep nothing.")

        response = client.get("/pages/privacy-policy")

        assert response.status_code == 200
        assert response.json() == {
            "slug": "privacy-policy", "title": "Privacy Policy", "content": "We keep nothing.", "is_fallback": False,
        }

    def test_missing_page_is_404_with_path(self, client):
        response = client.get("/pages/does-not-exist")

        assert response.status_code == 404
        assert response.json() == {
            "error": 'The page you\'re looking for at "/does-not-exist" could not be found.'
        }

    def test_missing_refund_page_serves_fallback(self, client):
        response = client.get("/pages/refund")

        assert response.status_code == 200
        body = response.json()
        assert body["is_fallback"] is True
        assert body["content"].startswith("# Return and Refund Policy")

    def test_empty_about_page_serves_fallback_body(self, client, make_page):
        make_page("about-us", title="Who We Are", content="")

        body = client.get("/pages/about-us").json()

        assert body["title"] == "Who We Are"
        assert body["is_fallback"] is True
        assert "Study Prometric" in body["content"]

    def test_stored_content_wins_over_fallback(self, client, make_page):
        make_page("refund", content="Custom refund terms.")

        body = client.get("/pages/refund").json()

        assert body["content"] == "Custom refund terms."
        assert body["is_fallback"] is False


class TestPageAdmin:
    def test_create_update_delete(self, client, db_session, admin_headers):
        created = client.post(
            "/pages",
            json={"slug": "terms", "title": "Terms", "content": "T&C", "location": ["footer"]},
            headers=admin_headers,
        )
        assert created.status_code == 201

        page = db_session.query(StaticPage).filter(StaticPage.slug == "terms").one()
        updated = client.put(
            f"/pages/{page.id}",
            json={"slug": "terms", "title": "Terms of Use", "content": "New", "location": ["header"]},
            headers=admin_headers,
        )
        assert updated.json()["title"] == "Terms of Use"

        deleted = client.delete(f"/pages/{page.id}", headers=admin_headers)
        assert deleted.status_code == 204
        assert client.get("/pages/terms").status_code == 404

    def test_duplicate_slug_rejected(self, client, make_page, admin_headers):
        make_page("terms")

        response = client.post("/pages", json={"slug": "terms", "title": "Terms"}, headers=admin_headers)

        assert response.status_code == 400
        assert response.json() == {"error": "Slug 'terms' already exists"}

    def test_rename_onto_existing_slug_rejected(self, client, db_session, make_page, admin_headers):
        make_page("terms", title="Terms")
        privacy = make_page("privacy", title="Privacy")

        response = client.put(
            f"/pages/{privacy.id}", json={"slug": "terms", "title": "Privacy"}, headers=admin_headers
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Slug 'terms' already exists"}
        db_session.expire_all()
        assert privacy.slug == "privacy"

    def test_update_keeping_own_slug(self, client, make_page, admin_headers):
        page = make_page("terms", title="Terms")

        response = client.put(f"/pages/{page.id}", json={"slug": "terms", "title": "Terms v2"}, headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["title"] == "Terms v2"

    def test_writes_require_admin(self, client, user_headers):
        response = client.post("/pages", json={"slug": "terms", "title": "Terms"}, headers=user_headers)

        assert response.status_code == 403


class TestNavigation:
    def test_links_are_split_by_location(self, client, make_page):
        make_page("faq", title="FAQ", location=["header", "footer"])
        make_page("terms", title="Terms", location=["footer"])
        make_page("hidden", title="Hidden")

        body = client.get("/pages/navigation").json()

        assert [link["slug"] for link in body["header_links"]] == ["faq"]
        assert [link["slug"] for link in body["footer_links"]] == ["faq", "terms"]

    def test_page_write_invalidates_cache(self, client, make_page, admin_headers):
        make_page("faq", title="FAQ", location=["header"])
        assert len(client.get("/pages/navigation").json()["header_links"]) == 1

        client.post(
            "/pages", json={"slug": "contact-us", "title": "Contact", "location": ["header"]}, headers=admin_headers
        )

        assert len(client.get("/pages/navigation").json()["header_links"]) == 2

    def test_direct_db_change_waits_for_expiry(self, client, make_page):
        make_page("faq", title="FAQ", location=["header"])
        client.get("/pages/navigation")

        make_page("contact-us", title="Contact", location=["header"])

        assert len(client.get("/pages/navigation").json()["header_links"]) == 1


class TestNavigationCache:
    def test_reloads_after_ttl(self):
        now = [0.0]
        loads = []
        cache = NavigationCache(ttl_seconds=60, clock=lambda: now[0])

        def loader():
            loads.append(now[0])
            return [{"slug": "faq", "title": "FAQ", "location": ["header"]}]

        cache.get(loader)
        now[0] = 59.0
        cache.get(loader)
        assert loads == [0.0]

        now[0] = 60.0
        cache.get(loader)
        assert loads == [0.0, 60.0]

    def test_invalidate_forces_reload(self):
        cache = NavigationCache(ttl_seconds=300, clock=lambda: 0.0)
        calls = []

        cache.get(lambda: calls.append(1) or [])
        cache.invalidate()
        cache.get(lambda: calls.append(2) or [])

        assert calls == [1, 2]


class TestBlogs:
    def test_only_published_posts_are_listed(self, client, db_session):
        db_session.add_all([
            Blog(slug="old", title="Old", status="published", created_at=datetime(2026, 1, 1)),
            Blog(slug="new", title="New", status="published", created_at=datetime(2026, 2, 1)),
            Blog(slug="draft", title="Draft", status="draft"),
        ])
        db_session.commit()

        body = client.get("/blogs").json()

        assert [b["slug"] for b in body] == ["new", "old"]
        assert client.get("/blogs/draft").status_code == 404
        assert client.get("/blogs/new").json()["keywords"] == []
