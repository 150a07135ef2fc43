"""
RSS Feed Fetcher
===============

Concurrent RSS/Atom feed fetching and parsing. Every feed is dispatched at
once; a failing feed yields a failed FetchResult without affecting the others.
"""

import asyncio
import ssl
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, List, Optional
from urllib.parse import urlparse

import aiohttp
import certifi
import feedparser

from ..database.models import FeedItem
from ..utils.logging import get_logger_for_component
from ..utils.exceptions import FeedFetchError, ErrorCode


@dataclass
class FetchResult:
    """Result of feed fetch operation."""

    feed_url: str
    success: bool
    items: List[FeedItem] = field(default_factory=list)
    error: Optional[str] = None
    fetch_time: Optional[datetime] = None

    def __post_init__(self):
        if not self.fetch_time:
            self.fetch_time = datetime.now(timezone.utc)

    @property
    def item_count(self) -> int:
        return len(self.items)


class FeedFetcher:
    """Concurrent RSS feed fetcher."""

    def __init__(self, timeout: int = 30):
        """Initialize feed fetcher.

        Args:
            timeout: Request timeout in seconds
        """
        self.timeout = timeout
        self.logger = get_logger_for_component("feed_fetcher")

        self.ssl_context = ssl.create_default_context(cafile=certifi.where())

    @asynccontextmanager
    async def get_session(self):
        """Get configured aiohttp session."""
        connector = aiohttp.TCPConnector(
            ssl=self.ssl_context,
            enable_cleanup_closed=True,
        )

        timeout = aiohttp.ClientTimeout(total=self.timeout)

        headers = {
            "User-Agent": "NotionFeed/1.0",
            "Accept": "application/rss+xml, application/atom+xml, application/xml, text/xml, */*",
        }

        async with aiohttp.ClientSession(
            connector=connector, timeout=timeout, headers=headers
        ) as session:
            yield session

    async def fetch_feed(
        self, feed_url: str, session: aiohttp.ClientSession
    ) -> List[FeedItem]:
        """Fetch and parse a single feed.

        Args:
            feed_url: URL of the feed document
            session: aiohttp session for requests

        Returns:
            Parsed items in document order

        Raises:
            FeedFetchError: On a non-HTTP URL, HTTP error status, transport
                failure, timeout, or a document that cannot be parsed into any entries
        """
        parsed_url = urlparse(feed_url)
        if parsed_url.scheme not in ("http", "https") or not parsed_url.netloc:
            raise FeedFetchError(
                "Feed URL must be an absolute http(s) URL",
                feed_url=feed_url,
                error_code=ErrorCode.FEED_INVALID_URL,
                recoverable=False,
            )

        self.logger.debug(f"Fetching feed: {feed_url}")

        try:
            async with session.get(feed_url) as response:
                if response.status != 200:
                    raise FeedFetchError(
                        f"HTTP {response.status}: {response.reason}",
                        feed_url=feed_url,
                        error_code=ErrorCode.FEED_HTTP_ERROR,
                    )
                content = await response.read()

        except asyncio.TimeoutError as e:
            raise FeedFetchError(
                f"Request timeout after {self.timeout}s",
                feed_url=feed_url,
                error_code=ErrorCode.FEED_FETCH_TIMEOUT,
            ) from e

        except aiohttp.ClientError as e:
            raise FeedFetchError(
                f"Network error: {e}",
                feed_url=feed_url,
                error_code=ErrorCode.FEED_NETWORK_ERROR,
            ) from e

        return self.parse_feed(content, feed_url)

    def parse_feed(self, content: Any, feed_url: str) -> List[FeedItem]:
        """Parse a feed document into items.

        Args:
            content: Raw document (bytes or str)
            feed_url: Source URL, for error context

        Raises:
            FeedFetchError: If the document is malformed and yields no entries
        """
        feed_data = feedparser.parse(content)

        if getattr(feed_data, "bozo", False):
            reason = getattr(feed_data, "bozo_exception", None) or "Invalid XML structure"
            if not feed_data.entries:
                raise FeedFetchError(
                    f"Feed parse error: {reason}",
                    feed_url=feed_url,
                    error_code=ErrorCode.FEED_PARSE_ERROR,
                )
            self.logger.info(f"Feed has parse warnings but contains entries: {feed_url}")

        items = [self._entry_to_item(entry) for entry in feed_data.entries]
        self.logger.info(f"Fetched {len(items)} items from {feed_url}")
        return items

    @staticmethod
    def _entry_to_item(entry: Any) -> FeedItem:
        """Convert a feedparser entry, keeping the raw publish timestamp."""
        title = entry.get("title")
        link = entry.get("link")
        published = entry.get("published") or entry.get("updated")

        return FeedItem(
            title=title.strip() if isinstance(title, str) and title.strip() else None,
            link=link.strip() if isinstance(link, str) and link.strip() else None,
            published_at=published if isinstance(published, str) else None,
        )

    async def fetch_to_result(
        self, feed_url: str, session: aiohttp.ClientSession
    ) -> FetchResult:
        """Fetch a feed, turning any failure into a failed FetchResult."""
        start_time = datetime.now(timezone.utc)

        try:
            items = await self.fetch_feed(feed_url, session)
        except FeedFetchError as e:
            self.logger.warning(f"Feed fetch failed for {feed_url}: {e}")
            return FetchResult(
                feed_url=feed_url, success=False, error=str(e), fetch_time=start_time
            )
        except Exception as e:
            self.logger.error(
                f"Feed fetch failed for {feed_url}: {e}", exc_info=True
            )
            return FetchResult(
                feed_url=feed_url,
                success=False,
                error=f"Fetch error: {e}",
                fetch_time=start_time,
            )

        return FetchResult(
            feed_url=feed_url, success=True, items=items, fetch_time=start_time
        )

    async def fetch_feeds_batch(self, feed_urls: List[str]) -> List[FetchResult]:
        """Fetch multiple feeds concurrently.

        Args:
            feed_urls: Feed URLs to fetch

        Returns:
            One FetchResult per URL, in input order
        """
        if not feed_urls:
            return []

        self.logger.info(f"Starting concurrent fetch of {len(feed_urls)} feeds")

        async with self.get_session() as session:
            results = await asyncio.gather(
                *(self.fetch_to_result(url, session) for url in feed_urls)
            )

        successful = sum(1 for r in results if r.success)
        total_items = sum(r.item_count for r in results)

        self.logger.info(
            f"Feed fetch complete: {successful}/{len(results)} feeds successful, "
            f"{total_items} total items"
        )

        return list(results)
