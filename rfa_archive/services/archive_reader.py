"""Read side of the archive: paginated site and section listings.

# ─── READ PATHS ──────────────────────────────────────────────────────
#
#   list_site("mandarin", page)
#       reverse scan INDEX over [code(mandarin)]  offset page*20, limit 20
#       each key ──▶ "mandarin/" + key[9:] ──▶ ARTICLES point lookup
#
#   get("mandarin/news/story-1")     ARTICLES point lookup ──▶ article
#   get("mandarin/news", page)       miss ──▶ section listing
#       chronological:  reverse scan INDEX over [code], keeping keys whose
#                       bytes after the 9-byte header start with "news"
#       lexicographic:  reverse prefix scan over ARTICLES keys
#
# Both listings are newest first.  Windowing happens on index entries,
# so an orphaned entry shortens its page instead of shifting later ones.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from enum import Enum

import structlog
from pydantic import BaseModel, ConfigDict, Field

from rfa_archive.config.sites import SITE_SEGMENTS
from rfa_archive.interfaces.archive_store import IArchiveStore, Partition
from rfa_archive.models.article import ArticleDetail, ArticleRecord, ArticleSummary
from rfa_archive.utils.errors import MalformedResponseError
from rfa_archive.utils.key_codec import (
    INDEX_HEADER_LEN,
    SITE_CODES,
    index_prefix,
    path_from_index_key,
)

logger = structlog.get_logger(logger_name=__name__)

PAGE_SIZE = 20
_VERIFY_WINDOW = 1000

_SEGMENTS_BY_CODE: dict[int, str] = {code: segment for segment, code in SITE_CODES.items()}


class SectionOrder(str, Enum):
    """How section listings are ordered."""

    CHRONOLOGICAL = "chronological"
    LEXICOGRAPHIC = "lexicographic"


class ArticleLookup(BaseModel):
    """Outcome of :meth:`ArchiveReader.get`.

    Exactly one of three shapes: an article, a section listing, or
    nothing (``found`` is False).
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    article: ArticleRecord | None = None
    section: str | None = None
    listing: list[ArticleRecord] = Field(default_factory=list)

    @property
    def found(self) -> bool:
        return self.article is not None or self.section is not None


class IndexCheck(BaseModel):
    """Result of :meth:`ArchiveReader.verify_index`."""

    model_config = ConfigDict(frozen=True)

    index_entries: int = 0
    articles: int = 0
    orphans: list[str] = Field(default_factory=list, description="Index paths with no record.")
    unknown_site_entries: int = Field(default=0, description="Entries under site code 99.")

    @property
    def ok(self) -> bool:
        return not self.orphans


def site_segment(site: str) -> str:
    """Accept either a URL segment (``mandarin``) or a website id (``rfa-mandarin``)."""
    site = site.strip("/").lower()
    return SITE_SEGMENTS.get(site, site)


class ArchiveReader:
    """Paginated, newest-first views over the archive store.

    Parameters
    ----------
    store:
        Archive store, normally opened read-only.
    page_size:
        Entries per page.
    section_order:
        ``"chronological"`` (index order) or ``"lexicographic"`` (primary
        key order) for section listings.
    """

    def __init__(
        self,
        store: IArchiveStore,
        page_size: int = PAGE_SIZE,
        section_order: SectionOrder | str = SectionOrder.CHRONOLOGICAL,
    ) -> None:
        self._store = store
        self._page_size = page_size
        self._section_order = SectionOrder(section_order)
        self._logger = logger

    @property
    def page_size(self) -> int:
        return self._page_size

    @property
    def section_order(self) -> SectionOrder:
        return self._section_order

    def _window(self, page: int) -> int:
        if page < 0:
            raise ValueError(f"Page number must be >= 0, got {page}")
        return page * self._page_size

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def list_site(self, site: str, page: int = 0) -> list[ArticleRecord]:
        """Return one page of a site's articles, newest first."""
        offset = self._window(page)
        segment = site_segment(site)
        entries = await self._store.scan_prefix(
            Partition.INDEX,
            index_prefix(segment),
            reverse=True,
            offset=offset,
            limit=self._page_size,
        )
        return await self._resolve(segment, [key for key, _ in entries])

    async def get(self, path: str, page: int = 0) -> ArticleLookup:
        """Resolve *path* to an article, a section listing, or nothing."""
        offset = self._window(page)
        key = path.strip("/")
        if not key:
            return ArticleLookup()

        value = await self._store.get(Partition.ARTICLES, key)
        if value is not None:
            # An unreadable stored record is reported as not found.
            return ArticleLookup(article=self._decode(key, value))

        segment, sep, remainder = key.partition("/")
        if not sep:
            self._logger.info("article_not_found", path=key)
            return ArticleLookup()

        if self._section_order is SectionOrder.LEXICOGRAPHIC:
            rows = await self._store.scan_prefix(
                Partition.ARTICLES, key, reverse=True, offset=offset, limit=self._page_size
            )
            decoded = (self._decode(k.decode("utf-8", "replace"), v) for k, v in rows)
            listing = [record for record in decoded if record is not None]
        else:
            entries = await self._store.scan_prefix(
                Partition.INDEX,
                index_prefix(segment),
                reverse=True,
                offset=offset,
                limit=self._page_size,
                match_at=(INDEX_HEADER_LEN, remainder.encode("utf-8")),
            )
            listing = await self._resolve(segment, [k for k, _ in entries])

        return ArticleLookup(section=key, listing=listing)

    def summarize(self, record: ArticleRecord) -> ArticleSummary:
        return ArticleSummary.from_record(record)

    def detail(self, record: ArticleRecord) -> ArticleDetail:
        return ArticleDetail.from_record(record)

    async def verify_index(self) -> IndexCheck:
        """Check that every index entry resolves to a primary record."""
        orphans: list[str] = []
        entries = 0
        unknown = 0
        offset = 0
        while True:
            window = await self._store.scan_prefix(
                Partition.INDEX, b"", offset=offset, limit=_VERIFY_WINDOW
            )
            if not window:
                break
            for key, _ in window:
                entries += 1
                segment = _SEGMENTS_BY_CODE.get(key[0])
                if segment is None:
                    unknown += 1
                    continue
                path = path_from_index_key(segment, key)
                if not await self._store.contains(Partition.ARTICLES, path):
                    orphans.append(path)
            offset += len(window)

        articles = await self._store.count_prefix(Partition.ARTICLES)
        self._logger.info(
            "index_verified",
            index_entries=entries,
            articles=articles,
            orphans=len(orphans),
            unknown_site_entries=unknown,
        )
        return IndexCheck(
            index_entries=entries,
            articles=articles,
            orphans=orphans,
            unknown_site_entries=unknown,
        )

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _resolve(self, segment: str, keys: list[bytes]) -> list[ArticleRecord]:
        records: list[ArticleRecord] = []
        for key in keys:
            path = path_from_index_key(segment, key)
            value = await self._store.get(Partition.ARTICLES, path)
            if value is None:
                self._logger.warning("index_entry_orphaned", path=path)
                continue
            record = self._decode(path, value)
            if record is not None:
                records.append(record)
        return records

    def _decode(self, path: str, value: bytes) -> ArticleRecord | None:
        try:
            return ArticleRecord.from_json(value)
        except MalformedResponseError as exc:
            self._logger.warning("article_unreadable", path=path, error=str(exc))
            return None
