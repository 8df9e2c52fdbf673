#!/usr/bin/env python3
"""
BrewNews - Release Note Aggregator
==================================

Main application entry point with CLI interface for management and testing.

Usage:
    python main.py --help                    # Show all commands
    python main.py check-config              # Validate configuration
    python main.py init-db                   # Initialize database
    python main.py show [--refresh]          # Show recent release notes
    python main.py sources list|add|remove   # Manage sources
    python main.py parse FEED_FILE           # Parse a saved feed document
    python main.py logs                      # Show persisted diagnostics
"""

import sys
import asyncio
import logging
from pathlib import Path
from typing import List

import click
from rich.console import Console
from rich.table import Table

from brewnews.ai.providers import create_provider
from brewnews.config.settings import BrewNewsSettings, SummarizationProviderName, load_settings
from brewnews.database.connection import DatabaseConnection
from brewnews.database.document_store import SQLiteDocumentStore
from brewnews.database.models import FeedItem, SourceKind
from brewnews.database.schema import DatabaseSchema
from brewnews.ingestion.feed_parser import RegexFeedParser
from brewnews.processing.pipeline import FeedPipeline
from brewnews.processing.recency import RecencyPolicy, classify
from brewnews.processing.snapshot_cache import SnapshotCache
from brewnews.storage.item_repository import FeedItemRepository
from brewnews.storage.log_repository import LogRepository
from brewnews.storage.source_repository import SourceRepository
from brewnews.utils.exceptions import BrewNewsError, get_user_friendly_message
from brewnews.utils.logging import configure_application_logging, detach_store_handler

console = Console()
logger = logging.getLogger(__name__)


class Services:
    """Components wired from one settings object."""

    def __init__(self, settings: BrewNewsSettings):
        self.settings = settings

        schema = DatabaseSchema(settings.database.path)
        schema.create_tables()

        self.db = DatabaseConnection(settings.database.path, settings.database.pool_size)
        self.store = SQLiteDocumentStore(self.db)
        self.sources = SourceRepository(self.store, settings)
        self.items = FeedItemRepository(self.store, settings)
        self.logs = LogRepository(self.store, settings)

    def configure_logging(self, debug: bool = False) -> None:
        configure_application_logging(
            log_level="DEBUG" if debug else self.settings.get_effective_log_level(),
            log_file=self.settings.logging.file_path,
            enable_console=self.settings.logging.console_logging,
            structured_logging=self.settings.logging.structured_logging,
            log_repository=self.logs if self.settings.logging.persist_diagnostics else None,
        )

    def snapshot_cache(self) -> SnapshotCache:
        try:
            provider = create_provider(self.settings)
        except BrewNewsError as e:
            console.print(f"[yellow]⚠️ Summarization disabled: {e.user_message}[/yellow]")
            provider = None

        pipeline = FeedPipeline(self.settings, provider=provider)
        return SnapshotCache(self.settings, self.sources, self.items, pipeline)

    def close(self) -> None:
        detach_store_handler()
        self.db.close_all_connections()


def _services(ctx) -> Services:
    settings = load_settings(validate=False)
    services = Services(settings)
    services.configure_logging(ctx.obj.get('debug', False))
    ctx.call_on_close(services.close)
    return services


@click.group(invoke_without_command=True)
@click.option('--debug', is_flag=True, help='Enable debug mode')
@click.pass_context
def cli(ctx, debug):
    """BrewNews - release note feed aggregator."""
    ctx.ensure_object(dict)
    ctx.obj['debug'] = debug

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command()
def check_config():
    """Validate configuration and environment variables."""
    console.print("[bold blue]🔧 Checking BrewNews Configuration[/bold blue]")

    try:
        settings = load_settings(validate=False)
    except BrewNewsError as e:
        console.print(f"[bold red]❌ Configuration error: {e}[/bold red]")
        sys.exit(1)

    table = Table(title="Configuration Status")
    table.add_column("Component", style="cyan")
    table.add_column("Status", style="green")
    table.add_column("Details")

    checks = [
        ("Database", _check_database_config),
        ("Logging", _check_logging_config),
        ("Summarization", _check_summarization_config),
        ("Fetching", _check_fetch_config),
    ]

    all_passed = True
    for name, check_func in checks:
        status, details = check_func(settings)
        table.add_row(name, "✅ Valid" if status else "❌ Invalid", details)
        all_passed = all_passed and status

    console.print(table)

    if all_passed:
        console.print("[bold green]✅ All configuration checks passed![/bold green]")
    else:
        console.print("[bold red]❌ Configuration validation failed[/bold red]")
        sys.exit(1)


@cli.command()
def init_db():
    """Initialize database with schema."""
    console.print("[bold blue]🗄️ Initializing BrewNews Database[/bold blue]")

    try:
        settings = load_settings(validate=False)
        schema = DatabaseSchema(settings.database.path)
        schema.create_tables()

        if not schema.verify_schema():
            console.print("[bold red]❌ Database schema verification failed[/bold red]")
            sys.exit(1)

        db = DatabaseConnection(settings.database.path, settings.database.pool_size)
        info = db.get_database_info()
        db.close_all_connections()

        console.print("[bold green]✅ Database initialized successfully![/bold green]")

        info_table = Table(title="Database Information")
        info_table.add_column("Property", style="cyan")
        info_table.add_column("Value", style="green")
        info_table.add_row("Database Path", settings.database.path)
        info_table.add_row("Size", f"{info['database_size_mb']:.2f} MB")
        for collection, count in sorted(info["collection_counts"].items()):
            info_table.add_row(f"Collection {collection}", str(count))

        console.print(info_table)

    except BrewNewsError as e:
        console.print(f"[bold red]❌ Database initialization error: {e}[/bold red]")
        sys.exit(1)


@cli.command()
@click.option('--refresh', is_flag=True, help='Ignore the cached snapshot and fetch again')
@click.option(
    '--policy',
    type=click.Choice([p.value for p in RecencyPolicy]),
    default=RecencyPolicy.WEEKLY.value,
    help='Recency bucketing policy',
)
@click.pass_context
def show(ctx, refresh, policy):
    """Show recent release notes grouped by recency."""
    services = _services(ctx)
    cache = services.snapshot_cache()

    with console.status("Loading release notes..."):
        result = asyncio.run(cache.load(force_refresh=refresh))

    for error in result.errors:
        console.print(f"[red]❌ {error}[/red]")
    if result.storage_error:
        console.print(f"[yellow]⚠️ {result.storage_error}[/yellow]")

    if not result.items:
        console.print("[yellow]No release notes found. Add sources with 'sources add'.[/yellow]")
        return

    origin = "cache" if result.from_cache else "fresh fetch"
    console.print(f"[dim]{len(result.items)} items from {origin}[/dim]")

    buckets = classify(result.items, RecencyPolicy(policy))
    label = "Week" if policy == RecencyPolicy.WEEKLY.value else "Month"
    _print_items(f"This {label}", buckets.current)
    _print_items(f"Last {label}", buckets.previous)


@cli.group()
def sources():
    """Manage the source list."""


@sources.command('list')
@click.pass_context
def sources_list(ctx):
    """List configured sources."""
    services = _services(ctx)
    items = services.sources.get_sources()

    if not items:
        console.print("[yellow]⚠️ No sources configured[/yellow]")
        return

    table = Table(title="Sources")
    table.add_column("#", style="dim")
    table.add_column("Kind", style="green")
    table.add_column("URL", style="blue")
    for index, source in enumerate(items, 1):
        table.add_row(str(index), source.kind.value, source.url)
    console.print(table)


@sources.command('add')
@click.argument('url')
@click.option('--kind', type=click.Choice([k.value for k in SourceKind]), help='Source kind')
@click.pass_context
def sources_add(ctx, url, kind):
    """Add a source URL."""
    services = _services(ctx)
    try:
        source = services.sources.add_source(url, SourceKind(kind) if kind else None)
    except BrewNewsError as e:
        console.print(f"[bold red]❌ {get_user_friendly_message(e)}[/bold red]")
        sys.exit(1)
    console.print(f"[bold green]✅ Added {source.kind.value} source: {source.url}[/bold green]")


@sources.command('remove')
@click.argument('url')
@click.pass_context
def sources_remove(ctx, url):
    """Remove a source URL."""
    services = _services(ctx)
    if services.sources.remove_source(url):
        console.print(f"[bold green]✅ Removed {url}[/bold green]")
    else:
        console.print(f"[yellow]⚠️ {url} is not in the source list[/yellow]")
        sys.exit(1)


@cli.command()
@click.argument('feed_file', type=click.Path(exists=True, dir_okay=False, path_type=Path))
def parse(feed_file):
    """Parse a saved RSS/Atom document without fetching or summarizing."""
    document = feed_file.read_text(encoding='utf-8', errors='replace')
    try:
        items = RegexFeedParser().parse_items(document, str(feed_file))
    except BrewNewsError as e:
        console.print(f"[bold red]❌ {get_user_friendly_message(e)}[/bold red]")
        sys.exit(1)

    table = Table(title=f"{len(items)} entries in {feed_file.name}")
    table.add_column("Title", style="cyan")
    table.add_column("Link", style="blue")
    table.add_column("Published")
    for item in items:
        table.add_row(item.title, item.link, item.pub_date)
    console.print(table)


@cli.command()
@click.option('--limit', default=20, show_default=True, help='Number of entries')
@click.pass_context
def logs(ctx, limit):
    """Show persisted diagnostic log entries, newest first."""
    services = _services(ctx)
    entries = services.logs.recent(limit)

    if not entries:
        console.print("[dim]No diagnostic entries[/dim]")
        return

    table = Table(title="Diagnostics")
    table.add_column("Time", style="dim")
    table.add_column("Level")
    table.add_column("Message")
    for entry in entries:
        level = entry.get("level", "")
        style = "red" if level in ("ERROR", "CRITICAL") else "yellow"
        table.add_row(entry.get("timestamp", ""), f"[{style}]{level}[/{style}]", entry.get("message", ""))
    console.print(table)


def _print_items(heading: str, items: List[FeedItem]) -> None:
    console.print(f"\n[bold blue]📰 {heading} ({len(items)})[/bold blue]")
    for item in items:
        product = " / ".join(p for p in (item.product, item.subcomponent) if p)
        tag = f"[{item.category}] " if item.category else ""
        console.print(f"\n[bold]{tag}{item.title}[/bold]  [dim]{item.pub_date}[/dim]")
        if product:
            console.print(f"   [cyan]{product}[/cyan]")
        for bullet in item.summary or []:
            console.print(f"   • {bullet}")
        console.print(f"   🔗 {item.link}")


# Helper functions for configuration checks
def _check_database_config(settings) -> tuple[bool, str]:
    try:
        Path(settings.database.path).parent.mkdir(parents=True, exist_ok=True)
        return True, f"Path: {settings.database.path}"
    except OSError as e:
        return False, str(e)


def _check_logging_config(settings) -> tuple[bool, str]:
    try:
        if settings.logging.file_path:
            Path(settings.logging.file_path).parent.mkdir(parents=True, exist_ok=True)
        return True, f"Level: {settings.logging.level.value}, Console: {settings.logging.console_logging}"
    except OSError as e:
        return False, str(e)


def _check_summarization_config(settings) -> tuple[bool, str]:
    provider = settings.summarization.provider
    if provider == SummarizationProviderName.NONE:
        return True, "Disabled, fallback summaries only"
    if not settings.summarization.get_api_key(provider):
        return False, f"API key for {provider.value} not set"
    return True, f"Provider: {provider.value}"


def _check_fetch_config(settings) -> tuple[bool, str]:
    fetch = settings.fetch
    return True, (
        f"Timeout: {fetch.request_timeout}s, Parallel: {fetch.parallel_sources}, "
        f"Revalidate: {fetch.revalidate_seconds}s"
    )


if __name__ == "__main__":
    try:
        cli()
    except KeyboardInterrupt:
        console.print("\n[yellow]👋 BrewNews interrupted by user[/yellow]")
        sys.exit(130)
