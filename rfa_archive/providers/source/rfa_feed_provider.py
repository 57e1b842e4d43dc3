"""Radio Free Asia story-feed client.

The RFA site is served by a content platform whose public "story feed"
endpoint answers paginated queries over ``display_date``.  This provider
issues GET requests to ``/pf/api/v3/content/fetch/story-feed-query`` with
a JSON query object and a field-selection filter, and returns typed
:class:`~rfa_archive.models.article.FeedPage` models.

Follows the adapter pattern used for every outbound integration: an
injected ``httpx.AsyncClient``, ``_throttle()`` between requests, and a
bounded retry loop with linear backoff on 429 / 5xx / transport errors.
Exhausted retries surface as :class:`TransientFetchError`; bodies that do
not parse surface as :class:`MalformedResponseError` and are not retried.
"""

from __future__ import annotations

import asyncio
import json
import time
from datetime import date
from urllib.parse import quote

import httpx

from rfa_archive.interfaces.source_provider import ISourceProvider
from rfa_archive.models.article import FeedPage
from rfa_archive.utils.errors import MalformedResponseError, TransientFetchError
from rfa_archive.utils.logging import get_logger

_BASE_URL = "https://www.rfa.org"
_FEED_PATH = "/pf/api/v3/content/fetch/story-feed-query"
_USER_AGENT = "rfa-archive/0.1 (news archive builder)"
_DEFAULT_TIMEOUT = 30.0
_MAX_RETRIES = 10
_RETRY_BACKOFF = 2.0  # seconds, multiplied by the attempt number
_RETRY_STATUSES = frozenset({408, 425, 429, 500, 502, 503, 504})

# Field selection sent as ``filter``.  ``{site}`` is the website id; the
# per-site block carries the canonical URL and section of each article.
_FIELD_FILTER = (
    "{{content_elements{{_id,"
    "credits{{by{{additional_properties{{original{{byline}}}},name,type,url}}}},"
    "description{{basic}},display_date,headlines{{basic}},"
    "label{{basic{{display,text,url}}}},owner{{sponsored}},"
    "promo_items{{basic{{_id,auth{{1}},type,url,caption}},"
    "lead_art{{promo_items{{basic{{_id,auth{{1}},type,url}}}}}},type}},"
    "type,websites{{{site}{{website_section{{_id,name}},website_url}}}},"
    "content_elements{{type,content,url,caption{{basic}}}}}},count,next}}"
)


def build_http_client(
    proxy: str | None = None,
    timeout: float = _DEFAULT_TIMEOUT,
    user_agent: str = _USER_AGENT,
    verify: bool = True,
) -> httpx.AsyncClient:
    """Build the shared client used by the crawler for feed and image requests."""
    return httpx.AsyncClient(
        proxy=proxy or None,
        timeout=httpx.Timeout(timeout),
        headers={"User-Agent": user_agent, "Accept": "application/json, */*"},
        follow_redirects=True,
        verify=verify,
    )


def build_feed_query(offset: int, begin: date, end: date, size: int) -> str:
    """Serialize the feed query object exactly as the site's own client does."""
    return json.dumps(
        {
            "feature": "results-list",
            "offset": offset,
            "query": f"display_date:[{begin.isoformat()} TO {end.isoformat()}]",
            "size": size,
        },
        separators=(",", ":"),
    )


class RFAFeedProvider(ISourceProvider):
    """Fetches story-feed pages and image blobs from rfa.org.

    Parameters
    ----------
    http_client:
        Injected ``httpx.AsyncClient`` for testability and connection pooling.
    base_url:
        Site origin; also used to absolutize site-relative image paths.
    scrape_delay:
        Minimum seconds between requests (default 0, no throttling).
    max_retries:
        Attempts per request before giving up.
    retry_backoff:
        Base backoff in seconds; attempt *n* waits ``n * retry_backoff``.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        base_url: str = _BASE_URL,
        feed_path: str = _FEED_PATH,
        scrape_delay: float = 0.0,
        max_retries: int = _MAX_RETRIES,
        retry_backoff: float = _RETRY_BACKOFF,
    ) -> None:
        self._http = http_client
        self._base_url = base_url.rstrip("/")
        self._feed_path = feed_path
        self._scrape_delay = scrape_delay
        self._max_retries = max(1, max_retries)
        self._retry_backoff = retry_backoff
        self._last_request_time: float = 0.0
        self._logger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _throttle(self) -> None:
        """Enforce minimum delay between requests."""
        now = time.monotonic()
        elapsed = now - self._last_request_time
        if self._last_request_time > 0 and elapsed < self._scrape_delay:
            await asyncio.sleep(self._scrape_delay - elapsed)
        self._last_request_time = time.monotonic()

    async def _get(self, url: str) -> httpx.Response:
        """GET *url* with retries; returns the first 2xx response."""
        await self._throttle()

        last_error = "no attempt made"
        for attempt in range(1, self._max_retries + 1):
            try:
                response = await self._http.get(url)
            except httpx.HTTPError as exc:
                last_error = f"{type(exc).__name__}: {exc}"
                self._logger.warning(
                    "rfa_request_failed", url=url[:160], attempt=attempt, error=last_error
                )
            else:
                if 200 <= response.status_code < 300:
                    return response
                last_error = f"HTTP {response.status_code}"
                if response.status_code not in _RETRY_STATUSES:
                    self._logger.warning(
                        "rfa_unexpected_status", url=url[:160], status=response.status_code
                    )
                    break
                self._logger.warning(
                    "rfa_retryable_status",
                    url=url[:160],
                    status=response.status_code,
                    attempt=attempt,
                )

            if attempt < self._max_retries and self._retry_backoff > 0:
                await asyncio.sleep(self._retry_backoff * attempt)

        raise TransientFetchError(
            f"GET {url[:160]} failed: {last_error}",
            provider_name=self.get_provider_name(),
        )

    def feed_url(self, site: str, begin: date, end: date, offset: int, size: int) -> str:
        """Build the fully encoded feed URL for one page."""
        query = quote(build_feed_query(offset, begin, end, size), safe="")
        field_filter = quote(_FIELD_FILTER.format(site=site), safe="")
        return (
            f"{self._base_url}{self._feed_path}"
            f"?query={query}&filter={field_filter}&d=147&mxId=00000000&_website={site}"
        )

    def absolute_url(self, url: str) -> str:
        """Prefix site-relative paths with the site origin."""
        if url.startswith(("http://", "https://")):
            return url
        if url.startswith("//"):
            return f"https:{url}"
        return f"{self._base_url}/{url.lstrip('/')}"

    # ------------------------------------------------------------------
    # ISourceProvider implementation
    # ------------------------------------------------------------------

    async def fetch_feed_page(
        self,
        site: str,
        begin: date,
        end: date,
        offset: int = 0,
        size: int = 100,
    ) -> FeedPage:
        """Fetch one page of the story feed for *site* within [begin, end]."""
        response = await self._get(self.feed_url(site, begin, end, offset, size))

        try:
            payload = response.json()
        except ValueError as exc:
            raise MalformedResponseError(
                f"Feed response for {site} offset={offset} is not JSON: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        page = FeedPage.from_payload(payload)
        self._logger.debug(
            "rfa_page_fetched",
            site=site,
            begin=begin.isoformat(),
            offset=offset,
            elements=len(page.content_elements),
            count=page.count,
        )
        return page

    async def fetch_bytes(self, url: str) -> bytes:
        """Download an image (or any blob) and return its bytes."""
        absolute = self.absolute_url(url)
        if absolute != url:
            self._logger.info("rfa_relative_url_resolved", url=url, resolved=absolute)
        response = await self._get(absolute)
        return response.content

    def get_provider_name(self) -> str:
        """Return ``'rfa_feed'``."""
        return "rfa_feed"
