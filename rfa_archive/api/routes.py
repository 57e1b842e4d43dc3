"""REST API routes for browsing the archive.

# ─── ARCHITECTURE ROLE ───────────────────────────────────────────────
#
# Layer: API (FastAPI route handlers).
# Pattern: Routes access services via ``request.app.state.reader``.
#          No ``Depends()`` for singleton services; direct ``getattr``.
#
# Endpoints:
#   GET /api/v1/health                    - store name and article count
#   GET /api/v1/sites                     - known language services
#   GET /api/v1/sites/{site}?page=N       - newest-first site listing
#   GET /api/v1/articles/{path}?page=N    - article, or section listing
#
# ``page`` is zero-based on input and reported 1-based for display.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, HTTPException, Query, Request

from rfa_archive.api.schemas import (
    ArticleDetailResponse,
    HealthResponse,
    SectionListingResponse,
    SiteInfo,
    SiteListingResponse,
)
from rfa_archive.config.sites import SITE_LIST, SITE_SEGMENTS
from rfa_archive.interfaces.archive_store import Partition
from rfa_archive.services.archive_reader import ArchiveReader, site_segment
from rfa_archive.utils.key_codec import site_code

logger = structlog.get_logger(logger_name=__name__)

router = APIRouter(prefix="/api/v1", tags=["archive"])


# ── Service accessor ──────────────────────────────────────────────────
def _get_reader(request: Request) -> ArchiveReader:
    """Retrieve ArchiveReader from app state; raise 503 if unavailable."""
    reader = getattr(request.app.state, "reader", None)
    if reader is None:
        raise HTTPException(status_code=503, detail="Archive reader unavailable")
    return reader


@router.get("/health", response_model=HealthResponse)
async def health(request: Request) -> HealthResponse:
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise HTTPException(status_code=503, detail="Archive store unavailable")
    articles = await store.count_prefix(Partition.ARTICLES)
    return HealthResponse(store=store.get_provider_name(), articles=articles)


@router.get("/sites", response_model=list[SiteInfo])
async def list_sites() -> list[SiteInfo]:
    return [
        SiteInfo(website_id=site, segment=SITE_SEGMENTS[site], code=site_code(SITE_SEGMENTS[site]))
        for site in SITE_LIST
    ]


@router.get("/sites/{site}", response_model=SiteListingResponse)
async def site_listing(
    request: Request,
    site: str,
    page: int = Query(default=0, ge=0, description="Zero-based page number."),
) -> SiteListingResponse:
    """Newest-first listing of one site."""
    reader = _get_reader(request)
    segment = site_segment(site)
    logger.info("site_listing", site=segment, page=page)

    records = await reader.list_site(segment, page)
    return SiteListingResponse(
        site=segment,
        page=page + 1,
        url_path=f"/{segment}",
        items=[reader.summarize(r) for r in records],
    )


@router.get(
    "/articles/{path:path}",
    response_model=ArticleDetailResponse | SectionListingResponse,
)
async def article_or_section(
    request: Request,
    path: str,
    page: int = Query(default=0, ge=0, description="Zero-based page number."),
) -> ArticleDetailResponse | SectionListingResponse:
    """Return the article stored at *path*, or the section listing under it."""
    reader = _get_reader(request)
    key = path.strip("/")
    lookup = await reader.get(key, page)

    if lookup.article is not None:
        return ArticleDetailResponse(path=key, article=reader.detail(lookup.article))

    if lookup.section is not None:
        return SectionListingResponse(
            site=key.split("/", 1)[0],
            section=lookup.section,
            page=page + 1,
            url_path=f"/{key}",
            items=[reader.summarize(r) for r in lookup.listing],
        )

    raise HTTPException(status_code=404, detail=f"{key} not found")
