"""Header/footer navigation links with a time-bounded cache."""
import logging
import threading
import time
from typing import Callable, Dict, List, Optional

from sqlalchemy.orm import Session

from app.core.config import settings
from app.models import StaticPage

logger = logging.getLogger(__name__)


class NavigationCache:
    """
    Holds the static-page link list for ``ttl_seconds``.

    ``invalidate()`` drops the entry immediately; page writes call it so
    edits show up without waiting for expiry.
    """

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._links: Optional[List[Dict]] = None
        self._loaded_at = 0.0

    def get(self, loader: Callable[[], List[Dict]]) -> List[Dict]:
        with self._lock:
            if self._links is not None and self._clock() - self._loaded_at < self.ttl_seconds:
                return self._links
            self._links = loader()
            self._loaded_at = self._clock()
            logger.debug("Navigation cache refreshed with %d links", len(self._links))
            return self._links

    def invalidate(self) -> None:
        with self._lock:
            self._links = None


navigation_cache = NavigationCache(ttl_seconds=settings.NAV_CACHE_TTL_SECONDS)


def load_navigation_links(db: Session) -> List[Dict]:
    pages = db.query(StaticPage.slug, StaticPage.title, StaticPage.location).order_by(StaticPage.title).all()
    return [{"slug": slug, "title": title, "location": location or []} for slug, title, location in pages]


def get_navigation(db: Session, cache: NavigationCache = navigation_cache) -> Dict[str, List[Dict]]:
    links = cache.get(lambda: load_navigation_links(db))
    return {
        "header_links": [link for link in links if "header" in link["location"]],
        "footer_links": [link for link in links if "footer" in link["location"]],
    }
