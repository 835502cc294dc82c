"""Tests for the sitemap and RSS feed."""

import xml.etree.ElementTree as ET
from datetime import datetime, timedelta

from app.models import Blog, StaticPage
from app.services.feeds import CORE_ROUTES, build_rss, build_sitemap


SITE = "https://www.studyprometric.test"
NS = {"sm": "http://www.sitemaps.org/schemas/sitemap/0.9"}


def sitemap_locs(xml_bytes):
    root = ET.fromstring(xml_bytes)
    return [loc.text for loc in root.findall("sm:url/sm:loc", NS)]


class TestSitemap:
    def test_core_routes_pages_and_published_blogs(self, client, db_session):
        db_session.add_all([
            StaticPage(slug="privacy-policy", title="Privacy"),
            StaticPage(slug="terms", title="Terms"),
            Blog(slug="dha-tips", title="DHA Tips", status="published"),
            Blog(slug="unfinished", title="Draft", status="draft"),
        ])
        db_session.commit()

        response = client.get("/functions/v1/generate-sitemap")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/xml")
        assert response.text.startswith('<?xml version="1.0" encoding="UTF-8"?>')
        locs = sitemap_locs(response.content)
        assert len(locs) == len(CORE_ROUTES) + 2 + 1
        assert locs[0] == f"{SITE}/"
        assert f"{SITE}/privacy-policy" in locs
        assert f"{SITE}/blog/dha-tips" in locs
        assert f"{SITE}/blog/unfinished" not in locs

    def test_every_loc_is_unique(self, db_session):
        # a CMS page whose slug shadows a core route
        db_session.add_all([
            StaticPage(slug="faq", title="FAQ"),
            StaticPage(slug="contact", title="Contact"),
        ])
        db_session.commit()

        locs = sitemap_locs(build_sitemap(db_session, SITE + "/").encode("utf-8"))

        assert len(locs) == len(set(locs))
        assert len(locs) == len(CORE_ROUTES)

    def test_lastmod_uses_updated_at(self, db_session):
        db_session.add(StaticPage(slug="terms", title="Terms", updated_at=datetime(2026, 4, 2, 8, 30)))
        db_session.commit()

        root = ET.fromstring(build_sitemap(db_session, SITE).encode("utf-8"))

        entry = [u for u in root.findall("sm:url", NS) if u.find("sm:loc", NS).text == f"{SITE}/terms"][0]
        assert entry.find("sm:lastmod", NS).text == "2026-04-02T08:30:00+00:00"
        assert entry.find("sm:changefreq", NS).text == "monthly"
        assert entry.find("sm:priority", NS).text == "0.5"


class TestRss:
    def test_newest_first_and_capped_at_twenty(self, client, db_session):
        base = datetime(2026, 1, 1)
        for i in range(25):
            db_session.add(Blog(
                slug=f"post-{i}", title=f"Post {i}", status="published",
                meta_description=f"About post {i}", created_at=base + timedelta(days=i),
            ))
        db_session.add(Blog(slug="draft", title="Draft", status="draft", created_at=base + timedelta(days=99)))
        db_session.commit()

        response = client.get("/functions/v1/rss-feed")

        assert response.status_code == 200
        root = ET.fromstring(response.content)
        items = root.findall("channel/item")
        assert len(items) == 20
        assert items[0].find("title").text == "Post 24"
        assert items[-1].find("title").text == "Post 5"
        assert items[0].find("link").text == f"{SITE}/blog/post-24"
        assert items[0].find("guid").text == f"{SITE}/blog/post-24"
        assert items[0].find("pubDate").text == "Sun, 25 Jan 2026 00:00:00 GMT"

    def test_channel_metadata(self, db_session):
        xml = build_rss(db_session, SITE, "http://api.test/functions/v1/rss-feed", now=datetime(2026, 3, 2))

        root = ET.fromstring(xml.encode("utf-8"))
        channel = root.find("channel")
        assert root.get("version") == "2.0"
        assert channel.find("link").text == f"{SITE}/blog"
        assert channel.find("lastBuildDate").text == "Mon, 02 Mar 2026 00:00:00 GMT"
        self_link = channel.find("{http://www.w3.org/2005/Atom}link")
        assert self_link.get("href") == "http://api.test/functions/v1/rss-feed"
        assert channel.findall("item") == []
