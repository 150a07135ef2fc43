"""
NotionFeed Storage Layer
=======================

Repository pattern implementations over the two Notion databases.

This module provides:
- Source repository resolving the enabled feeds and their cutoffs
- Feed repository enumerating recorded entries and creating new ones
"""

from .feed_repository import FeedRepository
from .source_repository import SourceRepository

__all__ = [
    "FeedRepository",
    "SourceRepository",
]
