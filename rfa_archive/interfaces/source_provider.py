"""Abstract base class for the paginated article source.

# Concrete implementation: RFAFeedProvider (rfa_archive/providers/source/).
# Tests substitute an AsyncMock or a small in-memory fake.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date

from rfa_archive.models.article import FeedPage


class ISourceProvider(ABC):
    """Contract for fetching feed pages and raw blobs from the source site."""

    @abstractmethod
    async def fetch_feed_page(
        self,
        site: str,
        begin: date,
        end: date,
        offset: int = 0,
        size: int = 100,
    ) -> FeedPage:
        """Fetch one page of articles whose display date lies in [begin, end].

        Raises
        ------
        TransientFetchError
            Network failure, timeout, or non-2xx after retries.
        MalformedResponseError
            Unparseable body or missing ``count``.
        """

    @abstractmethod
    async def fetch_bytes(self, url: str) -> bytes:
        """Download a blob.  Site-relative paths are resolved against the origin.

        Raises
        ------
        TransientFetchError
            Network failure, timeout, or non-2xx after retries.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this provider."""
