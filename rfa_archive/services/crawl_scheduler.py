"""Walks every (site, month) unit in order and hands each to the crawler.

Sites are independent of each other: with ``site_concurrency > 1`` several
sites progress at once behind an ``asyncio.Semaphore``, while the months
of one site are always ingested oldest first, one at a time.

A unit that raises is logged, recorded as FAILED and skipped; its marker
is absent, so the next run retries it.
"""

from __future__ import annotations

import asyncio
from typing import Callable, Iterator

import structlog

from rfa_archive.config.sites import resolve_sites
from rfa_archive.interfaces.archive_store import IArchiveStore, Partition
from rfa_archive.models.crawl import CrawlReport, SiteProgress, UnitResult, UnitStatus
from rfa_archive.services.crawl_service import CrawlService
from rfa_archive.utils.errors import ConfigurationError, RFAArchiveError
from rfa_archive.utils.key_codec import done_key
from rfa_archive.utils.logging import crawl_context

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_START = (1998, 1)
_DEFAULT_END = (2025, 9)


def parse_month(value: str) -> tuple[int, int]:
    """Parse ``YYYY-MM`` into ``(year, month)``.

    Raises
    ------
    ConfigurationError
        If the value is not a valid year-month.
    """
    try:
        year_text, month_text = value.strip().split("-", 1)
        year, month = int(year_text), int(month_text)
    except ValueError as exc:
        raise ConfigurationError(f"Expected YYYY-MM, got {value!r}") from exc
    if not 1 <= month <= 12 or year < 1:
        raise ConfigurationError(f"Expected YYYY-MM, got {value!r}")
    return year, month


def iter_months(start: tuple[int, int], end: tuple[int, int]) -> Iterator[tuple[int, int]]:
    """Yield ``(year, month)`` from *start* to *end* inclusive."""
    year, month = start
    while (year, month) <= end:
        yield year, month
        month += 1
        if month > 12:
            year += 1
            month = 1


class CrawlScheduler:
    """Runs the crawl over a month window for a selection of sites.

    Parameters
    ----------
    crawl_service:
        Ingests a single unit.
    start, end:
        Inclusive ``(year, month)`` window.
    site_concurrency:
        Maximum number of sites crawled at the same time.
    on_unit_complete:
        Optional callback receiving every :class:`UnitResult`.
    """

    def __init__(
        self,
        crawl_service: CrawlService,
        start: tuple[int, int] = _DEFAULT_START,
        end: tuple[int, int] = _DEFAULT_END,
        site_concurrency: int = 1,
        on_unit_complete: Callable[[UnitResult], None] | None = None,
    ) -> None:
        if start > end:
            raise ConfigurationError(f"Crawl window starts after it ends: {start} > {end}")
        self._crawler = crawl_service
        self._start = start
        self._end = end
        self._site_concurrency = max(1, site_concurrency)
        self._on_unit_complete = on_unit_complete
        self._logger = logger

    @property
    def months(self) -> list[tuple[int, int]]:
        return list(iter_months(self._start, self._end))

    async def run(self, sites: list[str] | None = None) -> CrawlReport:
        """Crawl every unit of every selected site.

        Unknown site ids raise :class:`ConfigurationError` before any work.
        """
        selected = resolve_sites(sites)
        report = CrawlReport()
        semaphore = asyncio.Semaphore(self._site_concurrency)

        async def _guarded(site: str) -> None:
            async with semaphore:
                await self._run_site(site, report)

        self._logger.info(
            "crawl_started",
            sites=selected,
            start=f"{self._start[0]}-{self._start[1]:02d}",
            end=f"{self._end[0]}-{self._end[1]:02d}",
        )
        await asyncio.gather(*(_guarded(site) for site in selected))

        self._logger.info(
            "crawl_finished",
            units=len(report.results),
            ingested=report.count(UnitStatus.INGESTED),
            skipped=report.count(UnitStatus.SKIPPED),
            failed=len(report.failed),
            articles=report.articles,
        )
        return report

    async def _run_site(self, site: str, report: CrawlReport) -> None:
        with crawl_context(site):
            self._logger.info("site_started")
            for year, month in iter_months(self._start, self._end):
                try:
                    result = await self._crawler.ingest_unit(site, year, month)
                except RFAArchiveError as exc:
                    self._logger.error(
                        "unit_failed",
                        year=year,
                        month=month,
                        error_type=type(exc).__name__,
                        error=str(exc),
                    )
                    result = UnitResult(
                        site=site,
                        year=year,
                        month=month,
                        status=UnitStatus.FAILED,
                        error=str(exc),
                    )
                report.add(result)
                if self._on_unit_complete is not None:
                    self._on_unit_complete(result)
            self._logger.info("site_finished")

    async def status(
        self, store: IArchiveStore, sites: list[str] | None = None
    ) -> list[SiteProgress]:
        """Summarize completion markers per site over the configured window."""
        return await site_progress(store, sites, self._start, self._end)


async def site_progress(
    store: IArchiveStore,
    sites: list[str] | None = None,
    start: tuple[int, int] = _DEFAULT_START,
    end: tuple[int, int] = _DEFAULT_END,
) -> list[SiteProgress]:
    """Count completion markers per site between *start* and *end*."""
    months = list(iter_months(start, end))
    progress: list[SiteProgress] = []
    for site in resolve_sites(sites):
        completed = 0
        last: str | None = None
        for year, month in months:
            if await store.contains(Partition.DONE, done_key(site, year, month)):
                completed += 1
                last = f"{year}-{month:02d}"
        progress.append(
            SiteProgress(
                site=site,
                completed_months=completed,
                total_months=len(months),
                last_completed=last,
            )
        )
    return progress
