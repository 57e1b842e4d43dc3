"""Unit tests for RFAFeedProvider (rfa.org story feed adapter)."""

from __future__ import annotations

import json
from datetime import date
from unittest.mock import AsyncMock, MagicMock
from urllib.parse import parse_qs, urlsplit

import httpx
import pytest

from rfa_archive.providers.source.rfa_feed_provider import RFAFeedProvider, build_feed_query
from rfa_archive.utils.errors import MalformedResponseError, TransientFetchError


def _response(status: int = 200, payload=None, content: bytes = b"") -> MagicMock:
    response = MagicMock()
    response.status_code = status
    if isinstance(payload, Exception):
        response.json.side_effect = payload
    else:
        response.json.return_value = payload
    response.content = content
    return response


def _provider(client: AsyncMock, **kwargs) -> RFAFeedProvider:
    kwargs.setdefault("retry_backoff", 0)
    return RFAFeedProvider(http_client=client, **kwargs)


class TestRFAFeedProvider:
    def test_get_provider_name(self) -> None:
        assert _provider(AsyncMock()).get_provider_name() == "rfa_feed"

    def test_feed_query_serialization(self) -> None:
        query = build_feed_query(200, date(2020, 2, 1), date(2020, 2, 29), 100)
        assert query == (
            '{"feature":"results-list","offset":200,'
            '"query":"display_date:[2020-02-01 TO 2020-02-29]","size":100}'
        )

    def test_feed_url_parameters(self) -> None:
        provider = _provider(AsyncMock())
        url = provider.feed_url("rfa-korean", date(2010, 5, 1), date(2010, 5, 31), 0, 100)
        parts = urlsplit(url)
        params = parse_qs(parts.query)

        assert parts.netloc == "www.rfa.org"
        assert parts.path == "/pf/api/v3/content/fetch/story-feed-query"
        assert json.loads(params["query"][0])["query"] == "display_date:[2010-05-01 TO 2010-05-31]"
        assert "websites{rfa-korean{website_section{_id,name},website_url}}" in params["filter"][0]
        assert params["filter"][0].endswith("count,next}")
        assert params["d"] == ["147"]
        assert params["mxId"] == ["00000000"]
        assert params["_website"] == ["rfa-korean"]

    def test_absolute_url(self) -> None:
        provider = _provider(AsyncMock())
        assert provider.absolute_url("https://cdn.example/a.jpg") == "https://cdn.example/a.jpg"
        assert provider.absolute_url("/resizer/a.jpg") == "https://www.rfa.org/resizer/a.jpg"
        assert provider.absolute_url("resizer/a.jpg") == "https://www.rfa.org/resizer/a.jpg"
        assert provider.absolute_url("//cdn.example/a.jpg") == "https://cdn.example/a.jpg"

    @pytest.mark.asyncio
    async def test_fetch_feed_page_success(self) -> None:
        client = AsyncMock()
        client.get = AsyncMock(
            return_value=_response(payload={"count": 1, "content_elements": [{"_id": "a"}]})
        )
        page = await _provider(client).fetch_feed_page(
            "rfa-lao", date(2001, 1, 1), date(2001, 1, 31), 0, 100
        )
        assert page.count == 1
        assert page.content_elements == [{"_id": "a"}]
        client.get.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_retries_on_server_errors(self) -> None:
        client = AsyncMock()
        client.get = AsyncMock(
            side_effect=[
                _response(503),
                httpx.ConnectTimeout("timed out"),
                _response(payload={"count": 0, "content_elements": []}),
            ]
        )
        page = await _provider(client).fetch_feed_page(
            "rfa-lao", date(2001, 1, 1), date(2001, 1, 31)
        )
        assert page.count == 0
        assert client.get.await_count == 3

    @pytest.mark.asyncio
    async def test_gives_up_after_max_retries(self) -> None:
        client = AsyncMock()
        client.get = AsyncMock(return_value=_response(429))
        with pytest.raises(TransientFetchError, match="HTTP 429"):
            await _provider(client, max_retries=3).fetch_feed_page(
                "rfa-lao", date(2001, 1, 1), date(2001, 1, 31)
            )
        assert client.get.await_count == 3

    @pytest.mark.asyncio
    async def test_non_retryable_status_fails_fast(self) -> None:
        client = AsyncMock()
        client.get = AsyncMock(return_value=_response(404))
        with pytest.raises(TransientFetchError, match="HTTP 404"):
            await _provider(client).fetch_feed_page("rfa-lao", date(2001, 1, 1), date(2001, 1, 31))
        assert client.get.await_count == 1

    @pytest.mark.asyncio
    async def test_invalid_json_is_malformed(self) -> None:
        client = AsyncMock()
        client.get = AsyncMock(return_value=_response(payload=json.JSONDecodeError("x", "doc", 0)))
        with pytest.raises(MalformedResponseError):
            await _provider(client).fetch_feed_page("rfa-lao", date(2001, 1, 1), date(2001, 1, 31))
        assert client.get.await_count == 1

    @pytest.mark.asyncio
    async def test_missing_count_is_malformed(self) -> None:
        client = AsyncMock()
        client.get = AsyncMock(return_value=_response(payload={"content_elements": []}))
        with pytest.raises(MalformedResponseError):
            await _provider(client).fetch_feed_page("rfa-lao", date(2001, 1, 1), date(2001, 1, 31))

    @pytest.mark.asyncio
    async def test_fetch_bytes_resolves_relative_urls(self) -> None:
        client = AsyncMock()
        client.get = AsyncMock(return_value=_response(content=b"\x89PNG"))
        data = await _provider(client).fetch_bytes("/resizer/v2/photo.png?auth=1")
        assert data == b"\x89PNG"
        client.get.assert_awaited_once_with("https://www.rfa.org/resizer/v2/photo.png?auth=1")
