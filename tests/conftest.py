"""
PyTest Configuration and Fixtures
=================================

Shared fixtures and configuration for NotionFeed tests.

The record store is replaced by FakeNotionClient, an in-memory stand-in for
the Notion API that honours filters on the Enabled checkbox, page sizes and
start cursors, so pagination and dedup behave as against the real service.
"""

import os
import sys
import uuid
from pathlib import Path
from typing import Dict, List, Optional

import pytest

# Add project root to Python path
sys.path.insert(0, str(Path(__file__).parent.parent))

# Set test environment variables before any imports
os.environ["NOTIONFEED_NOTION__API_TOKEN"] = "secret_test_token"
os.environ["NOTIONFEED_NOTION__SOURCE_DATABASE_ID"] = "source-db-test"
os.environ["NOTIONFEED_NOTION__FEED_DATABASE_ID"] = "feed-db-test"

from notionfeed.database.models import FeedItem
from notionfeed.notion.models import (
    CompoundFilter,
    DatabaseQuery,
    Page,
    PageList,
    serialize_properties,
)


SOURCE_DB = "source-db-test"
FEED_DB = "feed-db-test"


# ============================================================================
# Page builders
# ============================================================================


def source_page(link: Optional[str], enabled: bool = True, offset: Optional[str] = None) -> Page:
    """Build a source database record as the Notion API returns it."""
    properties = {
        "Enabled": {"id": "a", "type": "checkbox", "checkbox": enabled},
        "Link": {"id": "b", "type": "url", "url": link},
        "Name": {"id": "title", "type": "title", "title": []},
    }
    if offset is not None:
        properties["Offset date"] = {
            "id": "c",
            "type": "rich_text",
            "rich_text": [
                {
                    "type": "text",
                    "text": {"content": offset, "link": None},
                    "plain_text": offset,
                    "href": None,
                }
            ],
        }
    return Page.model_validate({"id": str(uuid.uuid4()), "properties": properties})


def entry_page(link: Optional[str], title: str = "Existing entry") -> Page:
    """Build a feed database record as the Notion API returns it."""
    return Page.model_validate(
        {
            "id": str(uuid.uuid4()),
            "properties": {
                "Title": {
                    "id": "title",
                    "type": "title",
                    "title": [{"type": "text", "text": {"content": title}}],
                },
                "Link": {"id": "b", "type": "url", "url": link},
                "Read": {"id": "c", "type": "checkbox", "checkbox": False},
                "Created": {"id": "d", "type": "created_time", "created_time": "2024-01-01T00:00:00.000Z"},
            },
        }
    )


# ============================================================================
# Fake record store
# ============================================================================


class FakeNotionClient:
    """In-memory record store with the NotionClient query/create interface."""

    DEFAULT_PAGE_SIZE = 100

    def __init__(self, databases: Optional[Dict[str, List[Page]]] = None):
        self.databases: Dict[str, List[Page]] = {
            key: list(pages) for key, pages in (databases or {}).items()
        }
        self.queries: List[tuple] = []
        self.created: List[tuple] = []
        self.fail_query_for: Dict[str, Exception] = {}
        self.fail_create_for_links: Dict[str, Exception] = {}

    async def query_database(self, database_id: str, query: Optional[DatabaseQuery] = None) -> PageList:
        self.queries.append((database_id, query))
        if database_id in self.fail_query_for:
            raise self.fail_query_for[database_id]

        pages = self.databases.get(database_id, [])
        query = query or DatabaseQuery()

        if isinstance(query.filter, CompoundFilter):
            pages = [page for page in pages if self._matches_any(page, query.filter)]

        start = int(query.start_cursor) if query.start_cursor else 0
        size = query.page_size or self.DEFAULT_PAGE_SIZE
        chunk = pages[start:start + size]
        has_more = start + size < len(pages)

        return PageList(
            results=chunk,
            has_more=has_more,
            next_cursor=str(start + size) if has_more else None,
        )

    async def create_page(self, database_id: str, properties) -> Page:
        link = properties["Link"].url
        if link in self.fail_create_for_links:
            raise self.fail_create_for_links[link]

        self.created.append((database_id, properties))
        page = Page.model_validate(
            {"id": str(uuid.uuid4()), "properties": serialize_properties(properties)}
        )
        self.databases.setdefault(database_id, []).append(page)
        return page

    @staticmethod
    def _matches_any(page: Page, compound: CompoundFilter) -> bool:
        for condition in compound.or_:
            if condition.checkbox is not None:
                if page.get_checkbox(condition.property) == condition.checkbox.equals:
                    return True
        return False


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def fake_client():
    """Empty fake record store with both databases present."""
    return FakeNotionClient({SOURCE_DB: [], FEED_DB: []})


@pytest.fixture
def sample_items():
    """Feed items covering the eligibility cases."""
    return [
        FeedItem(title="First post", link="https://example.com/1", published_at="Tue, 20 Feb 2024 10:00:00 GMT"),
        FeedItem(title="Second post", link="https://example.com/2", published_at="2024-02-10T08:30:00Z"),
        FeedItem(title="No link", link=None, published_at="2024-02-21"),
        FeedItem(title=None, link="https://example.com/untitled"),
    ]


SAMPLE_RSS = b"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
    <channel>
        <title>Test RSS Feed</title>
        <link>http://example.com</link>
        <description>Test feed</description>
        <item>
            <title>Test Article Title</title>
            <link>http://example.com/article1</link>
            <pubDate>Thu, 05 Sep 2024 12:00:00 GMT</pubDate>
        </item>
        <item>
            <title>Undated Article</title>
            <link>http://example.com/article2</link>
        </item>
        <item>
            <title>Article Without Link</title>
            <pubDate>Fri, 06 Sep 2024 12:00:00 GMT</pubDate>
        </item>
    </channel>
</rss>"""


SAMPLE_ATOM = b"""<?xml version="1.0" encoding="utf-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
    <title>Atom Feed</title>
    <link href="http://example.org/"/>
    <updated>2024-03-01T18:30:02Z</updated>
    <id>urn:uuid:60a76c80-d399-11d9-b93C-0003939e0af6</id>
    <entry>
        <title>Atom Entry</title>
        <link href="http://example.org/2024/03/01/atom"/>
        <id>urn:uuid:1225c695-cfb8-4ebb-aaaa-80da344efa6a</id>
        <updated>2024-03-01T18:30:02Z</updated>
    </entry>
</feed>"""


@pytest.fixture
def sample_rss():
    return SAMPLE_RSS


@pytest.fixture
def sample_atom():
    return SAMPLE_ATOM


@pytest.fixture
def make_source_page():
    return source_page


@pytest.fixture
def make_entry_page():
    return entry_page


@pytest.fixture
def fake_client_class():
    return FakeNotionClient
