"""
NotionFeed - RSS to Notion Feed Reader
=====================================

Appends new entries from a set of RSS/Atom feeds to a Notion database,
skipping entries already recorded there.

Main Components:
- Configuration: environment variables with Pydantic validation
- Notion: async REST client for database queries and page creation
- Storage: source and feed repositories over the two Notion databases
- Processing: concurrent feed fetching and the ingestion pipeline
"""

__version__ = "0.2.0"
__description__ = "RSS/Atom feed ingestion into a Notion database"

from .config.settings import get_settings
from .utils.logging import configure_application_logging, get_logger_for_component
from .utils.exceptions import NotionFeedError

__all__ = [
    "get_settings",
    "configure_application_logging",
    "get_logger_for_component",
    "NotionFeedError",
]
