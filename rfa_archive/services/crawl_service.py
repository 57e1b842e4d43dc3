"""Ingests one (site, month) crawl unit into the archive store.

# ─── UNIT LIFECYCLE ──────────────────────────────────────────────────
#
#   marker present?  ──yes──▶  SKIPPED (no fetch)
#         │no
#   fetch offset 0 ──▶ count == 0 ──▶ past year:    marker  ▶ EMPTY
#         │                       └─▶ current year: nothing ▶ EMPTY_PENDING
#         │count > 0
#   page until accumulated == count   (guarded, IncompletePaginationError)
#         │
#   cache images      (failures logged and skipped)
#         │
#   one WriteBatch:  primary puts + index puts + completion marker
#         │
#   commit ──▶ INGESTED
#
# Nothing is written until every page has been fetched and every record
# has produced its keys, so an aborted unit leaves the store untouched
# and the next scheduler pass simply retries it.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import calendar
import math
from datetime import date
from typing import Callable

import structlog

from rfa_archive.interfaces.archive_store import IArchiveStore, Partition, WriteBatch
from rfa_archive.interfaces.source_provider import ISourceProvider
from rfa_archive.models.article import ArticleRecord
from rfa_archive.models.crawl import UnitResult, UnitStatus
from rfa_archive.services.image_cache import ImageCache
from rfa_archive.utils.errors import (
    ImageFetchError,
    IncompletePaginationError,
    MalformedResponseError,
)
from rfa_archive.utils.key_codec import done_key, index_key

logger = structlog.get_logger(logger_name=__name__)

_PAGE_SIZE = 100
_MAX_EXTRA_PAGES = 2


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """First and last calendar day of a month."""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


class CrawlService:
    """Drives the pagination loop for a single crawl unit.

    Parameters
    ----------
    store:
        Archive store receiving records, index entries and markers.
    source:
        Paginated feed provider.
    image_cache:
        Download-once image store.
    page_size:
        Records requested per feed page.
    max_extra_pages:
        Fetches tolerated beyond ``ceil(count / page_size)`` before the
        unit is declared incompletely paginated.
    today:
        Clock used for the empty-month policy; injectable for tests.
    """

    def __init__(
        self,
        store: IArchiveStore,
        source: ISourceProvider,
        image_cache: ImageCache,
        page_size: int = _PAGE_SIZE,
        max_extra_pages: int = _MAX_EXTRA_PAGES,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._store = store
        self._source = source
        self._images = image_cache
        self._page_size = page_size
        self._max_extra_pages = max_extra_pages
        self._today = today
        self._logger = logger

    async def ingest_unit(self, site: str, year: int, month: int) -> UnitResult:
        """Fetch, cache and persist every article of *site* for one month.

        Returns
        -------
        UnitResult
            SKIPPED, EMPTY, EMPTY_PENDING or INGESTED.

        Raises
        ------
        TransientFetchError
            The source stayed unreachable.
        MalformedResponseError
            A page or record could not be interpreted (includes
            :class:`IncompletePaginationError`).
        StorageCommitError
            The batch was rejected; no marker was written.
        """
        log = self._logger.bind(site=site, year=year, month=month)
        marker = done_key(site, year, month)

        if await self._store.contains(Partition.DONE, marker):
            log.info("unit_already_done")
            return UnitResult(site=site, year=year, month=month, status=UnitStatus.SKIPPED)

        begin, end = month_bounds(year, month)
        first_page = await self._source.fetch_feed_page(site, begin, end, 0, self._page_size)
        count = first_page.count
        log.info("unit_count", count=count)

        if count == 0:
            if year < self._today().year:
                await self._store.put(Partition.DONE, marker)
                return UnitResult(site=site, year=year, month=month, status=UnitStatus.EMPTY)
            log.info("unit_empty_pending")
            return UnitResult(site=site, year=year, month=month, status=UnitStatus.EMPTY_PENDING)

        records = first_page.records()
        max_fetches = math.ceil(count / self._page_size) + self._max_extra_pages
        fetches = 1
        while len(records) < count:
            if fetches >= max_fetches:
                raise IncompletePaginationError(
                    f"{site} {year}-{month}: {len(records)}/{count} records after {fetches} fetches",
                    provider_name=self._source.get_provider_name(),
                )
            page = await self._source.fetch_feed_page(
                site, begin, end, len(records), self._page_size
            )
            fetches += 1
            if not page.content_elements:
                raise IncompletePaginationError(
                    f"{site} {year}-{month}: empty page at offset {len(records)} of {count}",
                    provider_name=self._source.get_provider_name(),
                )
            records.extend(page.records())

        log.info("unit_fetched", articles=len(records), fetches=fetches)

        # Keys are derived before any side effect so a bad record aborts cleanly.
        batch = self._build_batch(site, records)

        downloaded, failed = await self._cache_images(site, records)

        batch.put(Partition.DONE, marker)
        await self._store.write_batch(batch)

        log.info(
            "unit_ingested",
            articles=len(records),
            images_downloaded=downloaded,
            images_failed=failed,
        )
        return UnitResult(
            site=site,
            year=year,
            month=month,
            status=UnitStatus.INGESTED,
            articles=len(records),
            images_downloaded=downloaded,
            images_failed=failed,
        )

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _build_batch(self, site: str, records: list[ArticleRecord]) -> WriteBatch:
        batch = WriteBatch()
        for record in records:
            path = record.canonical_path(site)
            try:
                key = index_key(path, record.display_timestamp)
            except ValueError as exc:
                raise MalformedResponseError(
                    f"Article {path} has an unusable key: {exc}",
                    provider_name=self._source.get_provider_name(),
                ) from exc
            batch.put(Partition.ARTICLES, path, record.to_json())
            batch.put(Partition.INDEX, key)
        return batch

    async def _cache_images(self, site: str, records: list[ArticleRecord]) -> tuple[int, int]:
        # dict.fromkeys keeps first-seen order.
        urls = list(dict.fromkeys(url for r in records for url in r.embedded_image_urls()))
        downloaded = 0
        failed = 0
        for url in urls:
            try:
                if await self._images.ensure(url):
                    downloaded += 1
            except ImageFetchError as exc:
                failed += 1
                self._logger.warning("image_download_failed", site=site, url=url, error=str(exc))
        return downloaded, failed
