"""Crawl and read services.

- **image_cache** -- download-once image store under ``<data_dir>/imgs``.
- **crawl_service** -- ingests one (site, month) unit atomically.
- **crawl_scheduler** -- walks every unit of a month window per site.
- **archive_reader** -- newest-first site and section listings.
"""

from rfa_archive.services.archive_reader import ArchiveReader, ArticleLookup, IndexCheck, SectionOrder
from rfa_archive.services.crawl_scheduler import CrawlScheduler, iter_months, parse_month, site_progress
from rfa_archive.services.crawl_service import CrawlService, month_bounds
from rfa_archive.services.image_cache import ImageCache

__all__ = [
    "ArchiveReader",
    "ArticleLookup",
    "CrawlScheduler",
    "CrawlService",
    "ImageCache",
    "IndexCheck",
    "SectionOrder",
    "iter_months",
    "month_bounds",
    "parse_month",
    "site_progress",
]
