"""RFA archive domain models - re-exports all public model classes.

    - article.py - source records, feed pages and read-side projections
    - crawl.py   - crawl unit outcomes, run reports and site progress
"""

from __future__ import annotations

from rfa_archive.models.article import (
    ArticleDetail,
    ArticleRecord,
    ArticleSummary,
    ContentBlock,
    ContentKind,
    FeedPage,
)
from rfa_archive.models.crawl import CrawlReport, SiteProgress, UnitResult, UnitStatus

__all__ = [
    "ArticleDetail",
    "ArticleRecord",
    "ArticleSummary",
    "ContentBlock",
    "ContentKind",
    "CrawlReport",
    "FeedPage",
    "SiteProgress",
    "UnitResult",
    "UnitStatus",
]
