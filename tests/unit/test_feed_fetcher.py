"""
Feed fetcher tests: document parsing, HTTP failure mapping and per-feed
isolation in batch fetches.
"""

import asyncio
from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest

from notionfeed.database.models import FeedItem
from notionfeed.processing.feed_fetcher import FeedFetcher, FetchResult
from notionfeed.utils.exceptions import ErrorCode, FeedFetchError


def _session_with(status=200, body=b"", reason="OK", error=None):
    response = MagicMock()
    response.status = status
    response.reason = reason
    response.read = AsyncMock(return_value=body)

    context = MagicMock()
    if error is not None:
        context.__aenter__ = AsyncMock(side_effect=error)
    else:
        context.__aenter__ = AsyncMock(return_value=response)
    context.__aexit__ = AsyncMock(return_value=False)

    session = MagicMock()
    session.get = MagicMock(return_value=context)
    return session


@pytest.fixture
def fetcher():
    return FeedFetcher(timeout=5)


class TestParseFeed:

    def test_rss_items_in_document_order(self, fetcher, sample_rss):
        items = fetcher.parse_feed(sample_rss, "http://example.com/rss")

        assert len(items) == 3
        assert items[0] == FeedItem(
            title="Test Article Title",
            link="http://example.com/article1",
            published_at="Thu, 05 Sep 2024 12:00:00 GMT",
        )
        assert items[1].published_at is None
        assert items[2].link is None
        assert not items[2].is_eligible

    def test_atom_uses_updated_when_not_published(self, fetcher, sample_atom):
        items = fetcher.parse_feed(sample_atom, "http://example.org/atom")

        assert len(items) == 1
        assert items[0].title == "Atom Entry"
        assert items[0].link == "http://example.org/2024/03/01/atom"
        assert items[0].published_at == "2024-03-01T18:30:02Z"

    def test_unparseable_document_raises(self, fetcher):
        with pytest.raises(FeedFetchError) as exc_info:
            fetcher.parse_feed(b"this is not a feed at all", "http://example.com/bad")

        assert exc_info.value.error_code == ErrorCode.FEED_PARSE_ERROR
        assert exc_info.value.context["feed_url"] == "http://example.com/bad"

    def test_blank_title_is_missing(self, fetcher):
        rss = b"""<?xml version="1.0"?>
<rss version="2.0"><channel><title>t</title>
<item><title>   </title><link>http://example.com/x</link></item>
</channel></rss>"""

        items = fetcher.parse_feed(rss, "http://example.com/rss")

        assert items[0].title is None
        assert items[0].link == "http://example.com/x"


class TestFetchFeed:

    @pytest.mark.asyncio
    async def test_success(self, fetcher, sample_rss):
        session = _session_with(body=sample_rss)

        items = await fetcher.fetch_feed("http://example.com/rss", session)

        session.get.assert_called_once_with("http://example.com/rss")
        assert len(items) == 3

    @pytest.mark.asyncio
    async def test_http_error_status(self, fetcher):
        session = _session_with(status=404, reason="Not Found")

        with pytest.raises(FeedFetchError) as exc_info:
            await fetcher.fetch_feed("http://example.com/missing", session)

        assert exc_info.value.error_code == ErrorCode.FEED_HTTP_ERROR
        assert "404" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_timeout(self, fetcher):
        session = _session_with(error=asyncio.TimeoutError())

        with pytest.raises(FeedFetchError) as exc_info:
            await fetcher.fetch_feed("http://example.com/slow", session)

        assert exc_info.value.error_code == ErrorCode.FEED_FETCH_TIMEOUT

    @pytest.mark.asyncio
    async def test_network_error(self, fetcher):
        session = _session_with(error=aiohttp.ClientConnectionError("connection refused"))

        with pytest.raises(FeedFetchError) as exc_info:
            await fetcher.fetch_feed("http://example.com/down", session)

        assert exc_info.value.error_code == ErrorCode.FEED_NETWORK_ERROR
        assert exc_info.value.recoverable is True

    @pytest.mark.asyncio
    async def test_non_http_url_is_rejected(self, fetcher):
        session = _session_with()

        with pytest.raises(FeedFetchError) as exc_info:
            await fetcher.fetch_feed("ftp://example.com/feed.xml", session)

        assert exc_info.value.error_code == ErrorCode.FEED_INVALID_URL
        session.get.assert_not_called()


class TestBatchFetch:

    @pytest.mark.asyncio
    async def test_failure_becomes_failed_result(self, fetcher):
        session = _session_with(status=500, reason="Internal Server Error")

        result = await fetcher.fetch_to_result("http://example.com/broken", session)

        assert isinstance(result, FetchResult)
        assert result.success is False
        assert result.items == []
        assert "500" in result.error

    @pytest.mark.asyncio
    async def test_unexpected_errors_are_contained(self, fetcher):
        fetcher.fetch_feed = AsyncMock(side_effect=RuntimeError("unexpected"))

        result = await fetcher.fetch_to_result("http://example.com/weird", MagicMock())

        assert result.success is False
        assert "unexpected" in result.error

    @pytest.mark.asyncio
    async def test_results_follow_input_order(self, fetcher):
        delays = {"http://a.test/feed": 0.03, "http://b.test/feed": 0.0, "http://c.test/feed": 0.01}

        async def fake_fetch(url, session):
            await asyncio.sleep(delays[url])
            if url == "http://b.test/feed":
                raise FeedFetchError("HTTP 503: Service Unavailable", feed_url=url)
            return [FeedItem(title=f"from {url}", link=f"{url}/1")]

        @asynccontextmanager
        async def fake_session():
            yield MagicMock()

        fetcher.fetch_feed = fake_fetch
        fetcher.get_session = fake_session

        results = await fetcher.fetch_feeds_batch(list(delays))

        assert [r.feed_url for r in results] == list(delays)
        assert [r.success for r in results] == [True, False, True]
        assert results[0].items[0].title == "from http://a.test/feed"

    @pytest.mark.asyncio
    async def test_empty_batch(self, fetcher):
        assert await fetcher.fetch_feeds_batch([]) == []
