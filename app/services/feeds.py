"""Sitemap and RSS document builders."""
import xml.etree.ElementTree as ET
from datetime import datetime, timezone
from email.utils import format_datetime
from typing import Iterable, List, Optional, Tuple

from sqlalchemy.orm import Session

from app.models import Blog, StaticPage

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>'
SITEMAP_NS = "http://www.sitemaps.org/schemas/sitemap/0.9"
ATOM_NS = "http://www.w3.org/2005/Atom"
RSS_ITEM_LIMIT = 20

# (path, changefreq, priority)
CORE_ROUTES: List[Tuple[str, str, str]] = [
    ("/", "daily", "1.0"),
    ("/quiz", "daily", "0.9"),
    ("/quiz-of-the-day", "daily", "0.9"),
    ("/blog", "weekly", "0.8"),
    ("/subscription", "monthly", "0.8"),
    ("/reviews", "weekly", "0.7"),
    ("/contact", "monthly", "0.5"),
    ("/faq", "monthly", "0.6"),
]

ET.register_namespace("atom", ATOM_NS)


def _iso(value: Optional[datetime], fallback: str) -> str:
    if value is None:
        return fallback
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


def _rfc822(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return format_datetime(value, usegmt=True)


def _serialize(root: ET.Element) -> str:
    return XML_DECLARATION + ET.tostring(root, encoding="unicode")


def build_sitemap(db: Session, site_url: str, now: Optional[datetime] = None) -> str:
    """
    Render the sitemap: core routes, then static pages, then published blogs.

    A ``loc`` already emitted is skipped, so every URL appears once even if
    a static page slug collides with a core route.
    """
    site_url = site_url.rstrip("/")
    now_iso = _iso(now or datetime.now(timezone.utc), "")

    entries: List[Tuple[str, str, str, str]] = []
    for path, changefreq, priority in CORE_ROUTES:
        entries.append((f"{site_url}{path}", now_iso, changefreq, priority))

    pages = db.query(StaticPage.slug, StaticPage.updated_at).order_by(StaticPage.slug).all()
    for slug, updated_at in pages:
        entries.append((f"{site_url}/{slug}", _iso(updated_at, now_iso), "monthly", "0.5"))

    blogs = db.query(Blog.slug, Blog.updated_at).filter(Blog.status == "published").order_by(Blog.slug).all()
    for slug, updated_at in blogs:
        entries.append((f"{site_url}/blog/{slug}", _iso(updated_at, now_iso), "monthly", "0.7"))

    urlset = ET.Element("urlset", xmlns=SITEMAP_NS)
    seen = set()
    for loc, lastmod, changefreq, priority in entries:
        if loc in seen:
            continue
        seen.add(loc)
        url = ET.SubElement(urlset, "url")
        ET.SubElement(url, "loc").text = loc
        ET.SubElement(url, "lastmod").text = lastmod
        ET.SubElement(url, "changefreq").text = changefreq
        ET.SubElement(url, "priority").text = priority
    return _serialize(urlset)


def recent_published_blogs(db: Session, limit: int = RSS_ITEM_LIMIT) -> Iterable[Blog]:
    return db.query(Blog).filter(Blog.status == "published").order_by(Blog.created_at.desc()).limit(limit).all()


def build_rss(db: Session, site_url: str, feed_url: str, now: Optional[datetime] = None) -> str:
    """RSS 2.0 feed of the newest published blog posts."""
    site_url = site_url.rstrip("/")
    rss = ET.Element("rss", version="2.0")
    channel = ET.SubElement(rss, "channel")
    ET.SubElement(channel, "title").text = "Study Prometric Medical Blog"
    ET.SubElement(channel, "link").text = f"{site_url}/blog"
    ET.SubElement(channel, "description").text = (
        "Expert insights, study tips, and updates for your Prometric exam journey."
    )
    ET.SubElement(channel, "language").text = "en-us"
    ET.SubElement(channel, "lastBuildDate").text = _rfc822(now or datetime.now(timezone.utc))
    ET.SubElement(channel, f"{{{ATOM_NS}}}link", href=feed_url, rel="self", type="application/rss+xml")

    for blog in recent_published_blogs(db):
        link = f"{site_url}/blog/{blog.slug}"
        item = ET.SubElement(channel, "item")
        ET.SubElement(item, "title").text = blog.title
        ET.SubElement(item, "link").text = link
        ET.SubElement(item, "guid").text = link
        ET.SubElement(item, "pubDate").text = _rfc822(blog.created_at)
        ET.SubElement(item, "description").text = blog.meta_description or ""
    return _serialize(rss)
