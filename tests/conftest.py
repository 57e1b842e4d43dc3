"""Shared pytest fixtures for the RFA archive test suite."""

from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Any

import pytest

from rfa_archive.interfaces.source_provider import ISourceProvider
from rfa_archive.models.article import FeedPage
from rfa_archive.providers.store.sqlite_archive_store import SQLiteArchiveStore
from rfa_archive.services.crawl_service import CrawlService
from rfa_archive.services.image_cache import ImageCache
from rfa_archive.utils.errors import TransientFetchError

# Fixed "today" for crawler tests: 2025 is the in-progress year.
TODAY = date(2025, 10, 19)


# ---------------------------------------------------------------------------
# Article documents
# ---------------------------------------------------------------------------


def make_raw_article(
    path: str = "mandarin/news/story-1",
    display_date: str = "2020-03-05T10:00:00Z",
    site: str = "rfa-mandarin",
    headline: str = "Headline",
    promo_url: str | None = None,
    image_urls: tuple[str, ...] = (),
    section_id: str = "/world/asia/mandarin/news",
) -> dict[str, Any]:
    """Build a source-shaped article document."""
    raw: dict[str, Any] = {
        "_id": path.replace("/", "-"),
        "type": "story",
        "display_date": display_date,
        "headlines": {"basic": headline},
        "description": {"basic": f"About {headline}"},
        "credits": {"by": [{"name": "Staff Reporter", "type": "author"}]},
        "websites": {
            site: {
                "website_url": f"/{path}/",
                "website_section": {"_id": section_id, "name": "News"},
            }
        },
        "content_elements": [{"type": "text", "content": f"Body of {headline}"}],
    }
    if promo_url is not None:
        raw["promo_items"] = {"basic": {"type": "image", "url": promo_url, "caption": "Promo"}}
    for url in image_urls:
        raw["content_elements"].append(
            {"type": "image", "url": url, "caption": {"basic": "Inline"}}
        )
    return raw


@pytest.fixture
def article_factory():
    """Return the :func:`make_raw_article` builder."""
    return make_raw_article


# ---------------------------------------------------------------------------
# In-memory source
# ---------------------------------------------------------------------------


class FakeFeed(ISourceProvider):
    """Serves pre-loaded articles per (site, year, month) and records calls."""

    def __init__(self) -> None:
        self.articles: dict[tuple[str, int, int], list[dict[str, Any]]] = {}
        self.count_override: dict[tuple[str, int, int], int] = {}
        self.failing_months: set[tuple[str, int, int]] = set()
        self.failing_urls: set[str] = set()
        self.calls: list[tuple[str, date, date, int, int]] = []
        self.blob_calls: list[str] = []

    def add(self, site: str, year: int, month: int, articles: list[dict[str, Any]]) -> None:
        self.articles.setdefault((site, year, month), []).extend(articles)

    async def fetch_feed_page(
        self,
        site: str,
        begin: date,
        end: date,
        offset: int = 0,
        size: int = 100,
    ) -> FeedPage:
        self.calls.append((site, begin, end, offset, size))
        unit = (site, begin.year, begin.month)
        if unit in self.failing_months:
            raise TransientFetchError("HTTP 503", provider_name="fake_feed")
        items = self.articles.get(unit, [])
        count = self.count_override.get(unit, len(items))
        return FeedPage(count=count, content_elements=items[offset : offset + size])

    async def fetch_bytes(self, url: str) -> bytes:
        self.blob_calls.append(url)
        if url in self.failing_urls:
            raise TransientFetchError(f"GET {url} failed: HTTP 404", provider_name="fake_feed")
        return f"image:{url}".encode()

    def get_provider_name(self) -> str:
        return "fake_feed"


@pytest.fixture
def fake_feed() -> FakeFeed:
    return FakeFeed()


# ---------------------------------------------------------------------------
# Storage and services
# ---------------------------------------------------------------------------


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    """Temporary data directory laid out like ``rfa_data/``."""
    return tmp_path / "rfa_data"


@pytest.fixture
async def store(data_dir: Path):
    """A writable SQLiteArchiveStore on a temporary file."""
    s = SQLiteArchiveStore(db_path=data_dir / "rfa.db")
    await s.initialize()
    yield s
    await s.close()


@pytest.fixture
def image_cache(fake_feed: FakeFeed, data_dir: Path) -> ImageCache:
    return ImageCache(fake_feed, data_dir / "imgs")


@pytest.fixture
def crawler(store, fake_feed: FakeFeed, image_cache: ImageCache) -> CrawlService:
    return CrawlService(
        store=store,
        source=fake_feed,
        image_cache=image_cache,
        today=lambda: TODAY,
    )
