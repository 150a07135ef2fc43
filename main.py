#!/usr/bin/env python3
"""
NotionFeed - RSS to Notion Feed Reader
=====================================

Command-line entry point.

Usage:
    python main.py --help                    # Show all commands
    python main.py run                       # Ingest new feed entries into Notion
    python main.py run --dry-run             # Show what would be written
    python main.py check-config              # Validate configuration
    python main.py fetch-feed URL            # Preview a single feed
"""

import sys
import asyncio
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

# Add project root to Python path
sys.path.insert(0, str(Path(__file__).parent))

from notionfeed.config.settings import get_settings
from notionfeed.notion.client import NotionClient
from notionfeed.processing.feed_fetcher import FeedFetcher
from notionfeed.processing.pipeline import IngestionPipeline, PipelineResult
from notionfeed.storage.feed_repository import FeedRepository
from notionfeed.storage.source_repository import SourceRepository
from notionfeed.utils.dates import parse_date
from notionfeed.utils.logging import configure_application_logging, get_logger_for_component
from notionfeed.utils.exceptions import NotionFeedError, handle_exception

console = Console()


def _configure_logging(settings, debug: bool) -> None:
    configure_application_logging(
        log_level="DEBUG" if debug else settings.get_effective_log_level(),
        log_file=settings.logging.file_path,
        enable_console=settings.logging.console_logging,
        structured_logging=settings.logging.structured_logging,
        max_file_size_mb=settings.logging.max_file_size_mb,
        backup_count=settings.logging.backup_count,
    )


@click.group(invoke_without_command=True)
@click.option('--debug', is_flag=True, help='Enable debug mode')
@click.pass_context
def cli(ctx, debug):
    """NotionFeed - append new RSS/Atom entries to a Notion database."""
    ctx.ensure_object(dict)
    ctx.obj['debug'] = debug

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


async def run_ingestion(settings, dry_run: bool = False) -> PipelineResult:
    """Open a Notion session and run one ingestion pass."""
    async with NotionClient.from_settings(settings) as client:
        pipeline = IngestionPipeline(
            source_repository=SourceRepository(client, settings.notion.source_database_id),
            feed_repository=FeedRepository(
                client,
                settings.notion.feed_database_id,
                page_size=settings.notion.page_size,
            ),
            feed_fetcher=FeedFetcher(timeout=settings.limits.request_timeout),
            dry_run=dry_run,
        )
        return await pipeline.run()


@cli.command()
@click.option('--notion-source-database-id', '-s', default=None,
              help='Source database ID (overrides NOTIONFEED_NOTION__SOURCE_DATABASE_ID)')
@click.option('--notion-feed-database-id', '-f', default=None,
              help='Feed database ID (overrides NOTIONFEED_NOTION__FEED_DATABASE_ID)')
@click.option('--dry-run', is_flag=True, help='Show what would be written without writing')
@click.pass_context
def run(ctx, notion_source_database_id, notion_feed_database_id, dry_run):
    """Fetch all enabled feeds and write new entries to Notion."""
    try:
        settings = get_settings(
            reload=True,
            source_database_id=notion_source_database_id,
            feed_database_id=notion_feed_database_id,
        )
    except NotionFeedError as e:
        console.print(f"[bold red]❌ Failed to create application config: {e}[/bold red]")
        sys.exit(1)

    _configure_logging(settings, ctx.obj.get('debug', False))
    run_logger = get_logger_for_component('cli')

    try:
        result = asyncio.run(run_ingestion(settings, dry_run=dry_run))
    except Exception as e:
        error = handle_exception(e, run_logger, "ingestion run")
        console.print(
            f"[bold red]❌ An error has occurred while processing data: {error}[/bold red]"
        )
        sys.exit(1)

    _print_result(result)


def _print_result(result: PipelineResult) -> None:
    table = Table(title="Ingestion Summary" + (" (dry run)" if result.dry_run else ""))
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Enabled sources", str(result.sources))
    table.add_row("Failed feeds", str(result.failed_feeds))
    table.add_row("Existing entries", str(result.existing_entries))
    table.add_row("Items fetched", str(result.items_fetched))
    table.add_row("Older than cutoff", str(result.items_older_than_cutoff))
    table.add_row("New items", str(len(result.new_items)))
    table.add_row("Entries written", str(result.entries_written))
    table.add_row("Write failures", str(result.write_failures))
    table.add_row("Processing time", f"{result.processing_time_seconds:.2f}s")
    console.print(table)

    if result.dry_run and result.new_items:
        console.print("\n[bold blue]📰 Entries that would be written:[/bold blue]")
        for item in result.new_items:
            console.print(f"  • [bold]{item.title}[/bold] - {item.link}")

    for error in result.errors:
        console.print(f"[yellow]⚠️ {error}[/yellow]")


@cli.command()
@click.option('--notion-source-database-id', '-s', default=None, help='Source database ID')
@click.option('--notion-feed-database-id', '-f', default=None, help='Feed database ID')
def check_config(notion_source_database_id, notion_feed_database_id):
    """Validate configuration and environment variables."""
    console.print("[bold blue]🔧 Checking NotionFeed Configuration[/bold blue]")

    try:
        settings = get_settings(
            reload=True,
            source_database_id=notion_source_database_id,
            feed_database_id=notion_feed_database_id,
        )
    except NotionFeedError as e:
        console.print(f"[bold red]❌ Configuration error: {e}[/bold red]")
        sys.exit(1)

    table = Table(title="Configuration Status")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("API token", "✅ set")
    table.add_row("Source database", settings.notion.source_database_id)
    table.add_row("Feed database", settings.notion.feed_database_id)
    table.add_row("API", f"{settings.notion.api_base_url} ({settings.notion.api_version})")
    table.add_row("Page size", str(settings.notion.page_size or "provider default"))
    table.add_row("Request timeout", f"{settings.limits.request_timeout}s")
    table.add_row("Log level", settings.get_effective_log_level())
    table.add_row("Log file", settings.logging.file_path or "none")

    console.print(table)
    console.print("[bold green]✅ All configuration checks passed![/bold green]")


@cli.command()
@click.argument('url')
@click.option('--timeout', default=30, help='Request timeout in seconds (default: 30)')
def fetch_feed(url, timeout):
    """Fetch a single feed and show its items with normalized dates."""
    console.print(f"[bold blue]📡 Fetching RSS Feed: {url}[/bold blue]")

    async def run_fetch():
        fetcher = FeedFetcher(timeout=timeout)
        async with fetcher.get_session() as session:
            return await fetcher.fetch_feed(url, session)

    try:
        items = asyncio.run(run_fetch())
    except NotionFeedError as e:
        console.print(f"[bold red]❌ Feed fetch error: {e}[/bold red]")
        sys.exit(1)

    table = Table(title=f"{len(items)} items")
    table.add_column("Published", style="cyan")
    table.add_column("Title")
    table.add_column("Link", style="green")

    for item in items:
        published = parse_date(item.published_at)
        table.add_row(
            published.isoformat() if published else "-",
            item.title or "[red]missing[/red]",
            item.link or "[red]missing[/red]",
        )

    console.print(table)


if __name__ == "__main__":
    try:
        cli()
    except KeyboardInterrupt:
        console.print("\n[yellow]👋 NotionFeed interrupted by user[/yellow]")
        sys.exit(130)
