"""Response schemas for the archive read API.

# ─── ARCHITECTURE ROLE ───────────────────────────────────────────────
#
# Layer: API (Pydantic v2 schemas for response serialization).
# Pattern: All schemas use ``frozen=True``.
#
# Listing entries and article bodies reuse the read-side projections in
# rfa_archive/models/article.py; these wrappers add paging context.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from rfa_archive.models.article import ArticleDetail, ArticleSummary


class ErrorResponse(BaseModel):
    """Body returned for application errors and 404s."""

    model_config = ConfigDict(frozen=True)

    error: str = Field(description="Error type name.")
    detail: str = Field(default="", description="Human-readable message.")


class HealthResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: str = "ok"
    store: str = Field(description="Storage provider name.")
    articles: int = Field(ge=0, description="Records in the primary partition.")


class SiteInfo(BaseModel):
    """One language service known to the archive."""

    model_config = ConfigDict(frozen=True)

    website_id: str = Field(description="Source API website id, e.g. rfa-mandarin.")
    segment: str = Field(description="URL segment, e.g. mandarin.")
    code: int = Field(description="One-byte index site code.")


class SiteListingResponse(BaseModel):
    """One page of a site's newest-first listing."""

    model_config = ConfigDict(frozen=True)

    site: str
    page: int = Field(ge=1, description="1-based page number for display.")
    url_path: str
    items: list[ArticleSummary] = Field(default_factory=list)


class SectionListingResponse(BaseModel):
    """One page of a section listing, returned when a path is not an article."""

    model_config = ConfigDict(frozen=True)

    kind: str = "section"
    site: str
    section: str
    page: int = Field(ge=1, description="1-based page number for display.")
    url_path: str
    items: list[ArticleSummary] = Field(default_factory=list)


class ArticleDetailResponse(BaseModel):
    """A single archived article."""

    model_config = ConfigDict(frozen=True)

    kind: str = "article"
    path: str
    article: ArticleDetail
