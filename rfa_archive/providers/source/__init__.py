"""Source API providers.

RFAFeedProvider pages through the rfa.org story feed and downloads image
blobs.  It shares one httpx.AsyncClient across both kinds of request.
"""

from rfa_archive.providers.source.rfa_feed_provider import (
    RFAFeedProvider,
    build_feed_query,
    build_http_client,
)

__all__ = ["RFAFeedProvider", "build_feed_query", "build_http_client"]
