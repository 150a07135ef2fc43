"""
Feed Repository
===============

Access to the Notion feed database: full enumeration of the entries already
recorded there, and creation of new entries.
"""

from datetime import datetime
from typing import AsyncIterator, List, Optional, Set

from ..database.models import FeedItem, SinkEntry
from ..notion.client import NotionClient
from ..notion.models import (
    CheckboxProperty,
    DatabaseQuery,
    DateProperty,
    DateValue,
    Page,
    PageList,
    RichText,
    TitleProperty,
    UrlProperty,
)
from ..utils.logging import get_logger_for_component
from ..utils.exceptions import RecordStoreError, ValidationError, ErrorCode

TITLE_PROPERTY = "Title"
LINK_PROPERTY = "Link"
READ_PROPERTY = "Read"
STARRED_PROPERTY = "Starred"
PUBLISHED_AT_PROPERTY = "Published At"


class FeedRepository:
    """Repository for the entries stored in the Notion feed database."""

    def __init__(self, client: NotionClient, database_id: str, page_size: Optional[int] = None):
        """Initialize feed repository.

        Args:
            client: Open Notion client
            database_id: Feed database ID
            page_size: Results per query page (provider default when None)
        """
        self.client = client
        self.database_id = database_id
        self.page_size = page_size
        self.logger = get_logger_for_component("feed_repository", database_id=database_id)

    async def iter_pages(self) -> AsyncIterator[PageList]:
        """Yield result pages until the store reports none remain.

        Raises:
            RecordStoreError: If any page fails, or the store claims more
                results without supplying a cursor
        """
        cursor: Optional[str] = None

        while True:
            query = DatabaseQuery(start_cursor=cursor, page_size=self.page_size)
            page_list = await self.client.query_database(self.database_id, query)
            yield page_list

            if not page_list.has_more:
                return

            if not page_list.next_cursor:
                raise RecordStoreError(
                    "Query response reports more results but no next cursor",
                    database_id=self.database_id,
                    error_code=ErrorCode.NOTION_INVALID_RESPONSE,
                )
            cursor = page_list.next_cursor

    async def load_existing_entries(self) -> List[SinkEntry]:
        """Enumerate every recorded entry that has a link."""
        entries = []
        page_count = 0

        async for page_list in self.iter_pages():
            page_count += 1
            for page in page_list.results:
                link = page.get_url(LINK_PROPERTY)
                if link:
                    entries.append(SinkEntry(link=link))

        self.logger.info(
            f"Loaded {len(entries)} existing entries from {page_count} result pages"
        )
        return entries

    async def load_existing_links(self) -> Set[str]:
        """Identity set of the entries already recorded."""
        return {entry.link for entry in await self.load_existing_entries()}

    async def create_entry(self, item: FeedItem, published_at: datetime) -> Page:
        """Record a new, unread and unstarred entry.

        Args:
            item: Eligible feed item (title and link present)
            published_at: Value for the Published At column

        Returns:
            The created page

        Raises:
            ValidationError: If the item lacks a title or a link
        """
        if not item.is_eligible:
            missing = "title" if not item.title else "link"
            raise ValidationError(
                f"Cannot record an entry without a {missing}",
                field_name=missing,
                error_code=ErrorCode.VALIDATION_REQUIRED_FIELD,
            )

        properties = {
            TITLE_PROPERTY: TitleProperty(title=[RichText.from_plain(item.title)]),
            LINK_PROPERTY: UrlProperty(url=item.link),
            READ_PROPERTY: CheckboxProperty(checkbox=False),
            STARRED_PROPERTY: CheckboxProperty(checkbox=False),
            PUBLISHED_AT_PROPERTY: DateProperty(date=DateValue(start=published_at)),
        }

        page = await self.client.create_page(self.database_id, properties)
        self.logger.debug(f"Created entry {page.id} for {item.link}")
        return page
