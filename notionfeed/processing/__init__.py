"""
NotionFeed Processing Module
===========================

Feed fetching and the ingestion pipeline that writes new feed entries to
Notion.
"""

from .feed_fetcher import FeedFetcher, FetchResult
from .pipeline import IngestionPipeline, PipelineResult, PipelineState

__all__ = [
    'FeedFetcher',
    'FetchResult',
    'IngestionPipeline',
    'PipelineResult',
    'PipelineState',
]
