"""
NotionFeed Notion Layer
======================

Async access to the Notion REST API: the record store the ingester reads
sources and existing entries from, and writes new entries to.
"""

from .client import NotionClient
from .models import (
    CheckboxProperty,
    CompoundFilter,
    DatabaseQuery,
    DateProperty,
    DateValue,
    Filter,
    Page,
    PageList,
    RichText,
    RichTextProperty,
    TitleProperty,
    UrlProperty,
)

__all__ = [
    "NotionClient",
    "CheckboxProperty",
    "CompoundFilter",
    "DatabaseQuery",
    "DateProperty",
    "DateValue",
    "Filter",
    "Page",
    "PageList",
    "RichText",
    "RichTextProperty",
    "TitleProperty",
    "UrlProperty",
]
