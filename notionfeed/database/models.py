"""
NotionFeed Data Models
=====================

Pydantic models for the records the ingester reads from its two Notion
databases and for the entries parsed out of feed documents.
"""

from datetime import date
from typing import Optional

from pydantic import BaseModel, Field


class Source(BaseModel):
    """A feed to ingest, resolved from a source database record."""
    link: str = Field(..., min_length=1, description="Feed document URL")
    offset_months: int = Field(default=0, ge=0, description="Recency window in calendar months")
    cutoff_date: Optional[date] = Field(default=None, description="Earliest publish date accepted")

    model_config = {"frozen": True}

    def accepts(self, published: Optional[date]) -> bool:
        """Whether an item published on ``published`` passes this source's cutoff.

        Undated items always pass.
        """
        if self.cutoff_date is None or published is None:
            return True
        return published >= self.cutoff_date

    def __str__(self) -> str:
        return f"Source({self.link})"


class SinkEntry(BaseModel):
    """An entry already recorded in the feed database."""
    link: str = Field(..., min_length=1, description="Entry URL, used as identity")

    model_config = {"frozen": True}


class FeedItem(BaseModel):
    """One entry parsed out of a feed document."""
    title: Optional[str] = Field(default=None, description="Entry title")
    link: Optional[str] = Field(default=None, description="Entry URL")
    published_at: Optional[str] = Field(default=None, description="Raw publish timestamp")

    model_config = {"frozen": True}

    @property
    def is_eligible(self) -> bool:
        """Only entries with both a title and a link can be written."""
        return bool(self.title) and bool(self.link)

    def __str__(self) -> str:
        title = self.title or "<untitled>"
        return f"FeedItem({title[:50]})"
