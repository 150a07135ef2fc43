"""
Source Repository
================

Resolves the enabled feed sources, with their recency cutoffs, from the
Notion source database.
"""

from datetime import date
from typing import List, Optional

from ..database.models import Source
from ..notion.client import NotionClient
from ..notion.models import CompoundFilter, DatabaseQuery, Filter, Page
from ..utils.dates import cutoff_from_offset, parse_month_offset
from ..utils.logging import get_logger_for_component

ENABLED_PROPERTY = "Enabled"
LINK_PROPERTY = "Link"
OFFSET_PROPERTY = "Offset date"


class SourceRepository:
    """Repository for the feed sources configured in Notion."""

    def __init__(self, client: NotionClient, database_id: str):
        """Initialize source repository.

        Args:
            client: Open Notion client
            database_id: Source database ID
        """
        self.client = client
        self.database_id = database_id
        self.logger = get_logger_for_component("source_repository", database_id=database_id)

    @staticmethod
    def enabled_filter() -> CompoundFilter:
        """OR group matching enabled sources; further conditions can be appended."""
        return CompoundFilter(or_=[Filter.checkbox_equals(ENABLED_PROPERTY, True)])

    async def resolve_sources(self, today: Optional[date] = None) -> List[Source]:
        """Fetch the enabled sources.

        Records without a link are dropped. Errors from the record store are
        not caught: without sources the run cannot proceed.

        Args:
            today: Reference day for cutoff computation (defaults to the current UTC date)

        Returns:
            Enabled sources in the order the store returned them
        """
        query = DatabaseQuery(filter=self.enabled_filter())
        page_list = await self.client.query_database(self.database_id, query)

        sources = []
        for page in page_list.results:
            source = self.page_to_source(page, today=today)
            if source is None:
                self.logger.debug(f"Skipping source record {page.id} without a link")
                continue
            sources.append(source)

        self.logger.info(f"Resolved {len(sources)} enabled sources")
        return sources

    @staticmethod
    def page_to_source(page: Page, today: Optional[date] = None) -> Optional[Source]:
        """Convert a source record, or return None when it has no link."""
        link = page.get_url(LINK_PROPERTY)
        if not link:
            return None

        offset_months = parse_month_offset(page.get_first_text(OFFSET_PROPERTY))
        return Source(
            link=link,
            offset_months=offset_months,
            cutoff_date=cutoff_from_offset(offset_months, today=today),
        )
