"""Archive read API: routes, schemas, and middleware."""

from rfa_archive.api.middleware import ErrorHandlingMiddleware, RequestLoggingMiddleware
from rfa_archive.api.routes import router
from rfa_archive.api.schemas import (
    ArticleDetailResponse,
    ErrorResponse,
    HealthResponse,
    SectionListingResponse,
    SiteInfo,
    SiteListingResponse,
)

__all__ = [
    "ArticleDetailResponse",
    "ErrorHandlingMiddleware",
    "ErrorResponse",
    "HealthResponse",
    "RequestLoggingMiddleware",
    "SectionListingResponse",
    "SiteInfo",
    "SiteListingResponse",
    "router",
]
