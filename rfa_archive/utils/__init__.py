"""Utility modules for the RFA archive.

- **errors** -- Domain exception hierarchy rooted at RFAArchiveError; each
  crawl stage raises its own subclass so the crawler and scheduler can
  decide what aborts a unit and what is merely logged.
- **key_codec** -- Pure functions building primary, index and
  completion-marker keys, plus image filename extraction.
- **logging** -- structlog setup with a dual-renderer pattern: coloured
  console output in development, structured JSON in production, and
  ``crawl_context`` for binding the site being crawled.
"""

# -- Domain exception hierarchy --------------------------------------------
from rfa_archive.utils.errors import (
    ConfigurationError,
    ImageFetchError,
    IncompletePaginationError,
    MalformedResponseError,
    RFAArchiveError,
    StorageCommitError,
    TransientFetchError,
)

# -- Storage key codec -----------------------------------------------------
from rfa_archive.utils.key_codec import (
    SITE_CODES,
    UNKNOWN_SITE_CODE,
    filename_from_url,
    index_key,
    site_code,
)

# -- Structured logging setup ----------------------------------------------
from rfa_archive.utils.logging import configure_logging, crawl_context, get_logger

__all__ = [
    "ConfigurationError",
    "ImageFetchError",
    "IncompletePaginationError",
    "MalformedResponseError",
    "RFAArchiveError",
    "SITE_CODES",
    "StorageCommitError",
    "TransientFetchError",
    "UNKNOWN_SITE_CODE",
    "configure_logging",
    "crawl_context",
    "filename_from_url",
    "get_logger",
    "index_key",
    "site_code",
]
