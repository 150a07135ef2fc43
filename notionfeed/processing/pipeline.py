"""
Ingestion Pipeline Orchestrator
==============================

Runs one ingestion pass: resolve sources and the existing entries, fetch all
feeds, apply per-source cutoffs, deduplicate against the feed database and
write the new entries.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, time, timezone
from enum import Enum
from typing import Iterable, List, Optional, Set, Tuple

from ..database.models import FeedItem, Source
from ..storage.feed_repository import FeedRepository
from ..storage.source_repository import SourceRepository
from ..utils.dates import parse_date
from ..utils.logging import PerformanceLogger, get_logger_for_component

from .feed_fetcher import FeedFetcher, FetchResult


class PipelineState(str, Enum):
    """Stages of a run. FAILED is only reachable from RESOLVING."""
    IDLE = "idle"
    RESOLVING = "resolving"
    FETCHING = "fetching"
    FILTERING = "filtering"
    WRITING = "writing"
    DONE = "done"
    FAILED = "failed"


@dataclass
class PipelineResult:
    """Counters for one ingestion run."""
    sources: int = 0
    existing_entries: int = 0
    failed_feeds: int = 0
    items_fetched: int = 0
    items_older_than_cutoff: int = 0
    new_items: List[FeedItem] = field(default_factory=list)
    entries_written: int = 0
    write_failures: int = 0
    dry_run: bool = False
    processing_time_seconds: float = 0.0
    errors: List[str] = field(default_factory=list)

    @property
    def feed_success_rate(self) -> float:
        if self.sources == 0:
            return 100.0
        return (self.sources - self.failed_feeds) / self.sources * 100


def published_timestamp(item: FeedItem, now: datetime) -> datetime:
    """Published At value: the publish date at midnight UTC, else ``now``."""
    published = parse_date(item.published_at)
    if published is None:
        return now
    return datetime.combine(published, time.min, tzinfo=timezone.utc)


def apply_cutoff(source: Source, items: Iterable[FeedItem]) -> List[FeedItem]:
    """Keep the items this source's cutoff accepts; undated items are kept."""
    return [item for item in items if source.accepts(parse_date(item.published_at))]


def select_new_items(items: Iterable[FeedItem], existing_links: Set[str]) -> List[FeedItem]:
    """Eligible items whose link is not recorded yet.

    Unlike a plain membership test against ``existing_links``, a link repeated
    within the run (two feeds sharing an entry) is kept only at its first
    occurrence, so one run never creates the same entry twice.
    """
    seen = set(existing_links)
    selected = []
    for item in items:
        if not item.is_eligible or item.link in seen:
            continue
        seen.add(item.link)
        selected.append(item)
    return selected


class IngestionPipeline:
    """Single-run feed ingestion orchestrator."""

    def __init__(
        self,
        source_repository: SourceRepository,
        feed_repository: FeedRepository,
        feed_fetcher: Optional[FeedFetcher] = None,
        dry_run: bool = False,
    ):
        """Initialize ingestion pipeline.

        Args:
            source_repository: Resolves the enabled sources
            feed_repository: Enumerates and creates entries in the feed database
            feed_fetcher: Fetches feed documents (a default fetcher when None)
            dry_run: Compute new entries without writing them
        """
        self.source_repository = source_repository
        self.feed_repository = feed_repository
        self.feed_fetcher = feed_fetcher or FeedFetcher()
        self.dry_run = dry_run
        self.state = PipelineState.IDLE
        self.logger = get_logger_for_component("pipeline")

    async def run(self) -> PipelineResult:
        """Execute one ingestion pass.

        Returns:
            Run counters

        Raises:
            RecordStoreError: If the sources or the existing entries cannot be
                loaded; nothing is written in that case
        """
        start_time = datetime.now(timezone.utc)
        result = PipelineResult(dry_run=self.dry_run)

        self.state = PipelineState.RESOLVING
        try:
            with PerformanceLogger(self.logger, "source and index resolution"):
                sources, existing_links = await self._resolve()
        except Exception:
            self.state = PipelineState.FAILED
            raise

        result.sources = len(sources)
        result.existing_entries = len(existing_links)

        self.state = PipelineState.FETCHING
        with PerformanceLogger(self.logger, "feed fetching", feeds=len(sources)):
            fetch_results = await self.feed_fetcher.fetch_feeds_batch(
                [source.link for source in sources]
            )

        self.state = PipelineState.FILTERING
        merged = self._merge(sources, fetch_results, result)
        new_items = select_new_items(merged, existing_links)
        result.new_items = new_items

        self.logger.info(
            f"{len(new_items)} new items out of {result.items_fetched} fetched "
            f"({result.items_older_than_cutoff} older than cutoff, {len(existing_links)} already recorded)"
        )

        self.state = PipelineState.WRITING
        if self.dry_run:
            self.logger.info(f"Dry run: skipping {len(new_items)} writes")
        elif new_items:
            with PerformanceLogger(self.logger, "entry creation", entries=len(new_items)):
                await self._write(new_items, result)

        self.state = PipelineState.DONE
        result.processing_time_seconds = (
            datetime.now(timezone.utc) - start_time
        ).total_seconds()

        self.logger.info(
            f"Ingestion complete: {result.entries_written} written, "
            f"{result.write_failures} failed, {result.failed_feeds}/{result.sources} feeds failed "
            f"in {result.processing_time_seconds:.2f}s"
        )
        return result

    async def _resolve(self) -> Tuple[List[Source], Set[str]]:
        """Load sources and the identity set concurrently; the first failure aborts."""
        sources_task = asyncio.ensure_future(self.source_repository.resolve_sources())
        links_task = asyncio.ensure_future(self.feed_repository.load_existing_links())

        done, pending = await asyncio.wait(
            {sources_task, links_task}, return_when=asyncio.FIRST_EXCEPTION
        )

        # Every finished task's exception is retrieved, not only the first
        errors = [task.exception() for task in done]
        failure = next((error for error in errors if error is not None), None)
        if failure is not None:
            for other in pending:
                other.cancel()
            await asyncio.gather(*pending, return_exceptions=True)
            raise failure

        return sources_task.result(), links_task.result()

    def _merge(
        self,
        sources: List[Source],
        fetch_results: List[FetchResult],
        result: PipelineResult,
    ) -> List[FeedItem]:
        """Apply each source's cutoff to its own items and concatenate in source order."""
        merged = []
        for source, fetched in zip(sources, fetch_results):
            if not fetched.success:
                result.failed_feeds += 1
                result.errors.append(f"Feed fetch failed: {fetched.feed_url} - {fetched.error}")
                continue

            result.items_fetched += fetched.item_count
            kept = apply_cutoff(source, fetched.items)
            dropped = fetched.item_count - len(kept)
            result.items_older_than_cutoff += dropped

            if dropped:
                self.logger.debug(
                    f"Dropped {dropped} items older than {source.cutoff_date} from {source.link}"
                )
            merged.extend(kept)

        return merged

    async def _write(self, items: List[FeedItem], result: PipelineResult) -> None:
        """Create all entries concurrently; individual failures are logged and counted."""
        now = datetime.now(timezone.utc)

        outcomes = await asyncio.gather(
            *(
                self.feed_repository.create_entry(item, published_timestamp(item, now))
                for item in items
            ),
            return_exceptions=True,
        )

        for item, outcome in zip(items, outcomes):
            if isinstance(outcome, BaseException):
                result.write_failures += 1
                result.errors.append(f"Failed to create entry for {item.link}: {outcome}")
                self.logger.warning(f"Failed to create entry for {item.link}: {outcome}")
            else:
                result.entries_written += 1
