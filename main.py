#!/usr/bin/env python3
"""
FeedSync - Feed Synchronization Engine
======================================

Management entry point for the local feed catalog.

Usage:
    python main.py --help                    # Show all commands
    python main.py check-config              # Validate configuration
    python main.py init-db                   # Initialize database
    python main.py add URL                   # Subscribe to a feed
    python main.py update [FEED_ID]          # Refresh one feed or all feeds
    python main.py rm FEED_ID                # Remove a feed and its entries
    python main.py feeds                     # List subscribed feeds
"""

import sys
import signal
import asyncio
import logging
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from feedsync.config.settings import get_settings
from feedsync.database.schema import DatabaseSchema
from feedsync.database.connection import get_db_manager
from feedsync.services.feed_service import FeedService
from feedsync.sync.results import CancelledResult, UpdateProgress
from feedsync.utils.cancellation import CancellationToken
from feedsync.utils.logging import configure_application_logging
from feedsync.utils.exceptions import FeedSyncError, get_user_friendly_message

console = Console()
logger = logging.getLogger(__name__)


@click.group(invoke_without_command=True)
@click.option('--debug', is_flag=True, help='Enable debug mode')
@click.pass_context
def cli(ctx, debug):
    """FeedSync - keep a local catalog of RSS/Atom feeds current."""
    ctx.ensure_object(dict)
    ctx.obj['debug'] = debug

    if ctx.invoked_subcommand is None:
        # Show help if no subcommand provided
        click.echo(ctx.get_help())
        return

    settings = get_settings()
    configure_application_logging(
        log_level="DEBUG" if debug else settings.get_effective_log_level(),
        log_file=settings.logging.file_path,
        enable_console=settings.logging.console_logging,
        structured_logging=settings.logging.structured_logging,
        max_file_size_mb=settings.logging.max_file_size_mb,
        backup_count=settings.logging.backup_count,
    )


def _get_service() -> FeedService:
    settings = get_settings()
    DatabaseSchema(settings.database.path).create_tables()
    return FeedService(get_db_manager(settings.database.path))


@cli.command()
def check_config():
    """Validate configuration and environment variables."""
    console.print("[bold blue]🔧 Checking FeedSync Configuration[/bold blue]")

    try:
        settings = get_settings()

        table = Table(title="Configuration Status")
        table.add_column("Component", style="cyan")
        table.add_column("Status", style="green")
        table.add_column("Details")

        checks = [
            ("Database", _check_database_config),
            ("Logging", _check_logging_config),
            ("Fetcher", _check_fetcher_config),
        ]

        all_passed = True
        for name, check_func in checks:
            status, details = check_func(settings)
            table.add_row(name, "✅ Valid" if status else "❌ Invalid", details)
            if not status:
                all_passed = False

        console.print(table)

        if all_passed:
            console.print("[bold green]✅ All configuration checks passed![/bold green]")
        else:
            console.print("[bold red]❌ Configuration validation failed[/bold red]")
            sys.exit(1)

    except FeedSyncError as e:
        console.print(f"[bold red]❌ Configuration error: {e}[/bold red]")
        sys.exit(1)


@cli.command()
def init_db():
    """Initialize database with schema."""
    console.print("[bold blue]🗄️ Initializing FeedSync Database[/bold blue]")

    try:
        settings = get_settings()
        schema = DatabaseSchema(settings.database.path)
        schema.create_tables()

        if not schema.verify_schema():
            console.print("[bold red]❌ Database schema verification failed[/bold red]")
            sys.exit(1)

        console.print("[bold green]✅ Database initialized successfully![/bold green]")

        info = get_db_manager(settings.database.path).get_database_info()

        info_table = Table(title="Database Information")
        info_table.add_column("Property", style="cyan")
        info_table.add_column("Value", style="green")

        info_table.add_row("Database Path", settings.database.path)
        info_table.add_row("Size", f"{info['database_size_mb']:.2f} MB")
        for table_name, count in info['table_counts'].items():
            info_table.add_row(f"Rows in {table_name}", str(count))

        console.print(info_table)

    except FeedSyncError as e:
        console.print(f"[bold red]❌ Database initialization error: {e}[/bold red]")
        sys.exit(1)


@cli.command()
@click.argument('url')
def add(url):
    """Subscribe to a feed and store its entries."""
    console.print(f"[bold blue]📡 Adding feed: {url}[/bold blue]")

    try:
        result = asyncio.run(_get_service().add_feed(url))
    except FeedSyncError as e:
        console.print(f"[bold red]❌ {get_user_friendly_message(e)}[/bold red]")
        sys.exit(1)

    console.print(
        f"[bold green]✅ Added '{result.feed.title}' (ID {result.feed.id}) "
        f"with {result.entries_count} entries[/bold green]"
    )
    for skipped in result.skipped_urls:
        console.print(f"  [yellow]⚠️ Skipped entry stored by another feed: {skipped}[/yellow]")


@cli.command()
@click.argument('feed_id', type=int, required=False)
def update(feed_id):
    """Refresh one feed, or every feed when FEED_ID is omitted."""
    service = _get_service()

    if feed_id is not None:
        try:
            result = asyncio.run(service.update_feed(feed_id))
        except FeedSyncError as e:
            console.print(f"[bold red]❌ {get_user_friendly_message(e)}[/bold red]")
            sys.exit(1)

        console.print(
            f"[bold green]✅ Feed {feed_id}: {result.new_count} new, "
            f"{result.updated_count} updated, {result.total_count} total[/bold green]"
        )
        return

    def on_progress(progress: UpdateProgress):
        console.print(
            f"[cyan][{progress.current_index}/{progress.total_feeds}][/cyan] "
            f"{progress.current_feed_title} [dim]{progress.current_feed_url}[/dim]"
        )

    async def run_update():
        token = CancellationToken()
        loop = asyncio.get_running_loop()
        try:
            loop.add_signal_handler(signal.SIGINT, token.cancel, "interrupted by user")
        except NotImplementedError:
            # Windows event loops do not support signal handlers
            pass
        return await service.update_all_feeds(on_progress=on_progress, cancellation_token=token)

    outcome = asyncio.run(run_update())

    for failure in outcome.failed:
        console.print(f"  [red]❌ {failure.feed_url}: {failure.message}[/red]")

    if isinstance(outcome, CancelledResult):
        console.print(
            f"[yellow]⚠️ Update cancelled after {outcome.processed_feeds} of "
            f"{outcome.total_feeds} feeds[/yellow]"
        )
        sys.exit(130)

    summary = outcome.summary
    console.print(
        f"[bold green]✅ Updated {summary.success_count}/{summary.total_feeds} feeds, "
        f"{outcome.new_entries} new entries[/bold green]"
    )
    if summary.failure_count:
        sys.exit(1)


@cli.command()
@click.argument('feed_id', type=int)
def rm(feed_id):
    """Remove a feed and all of its entries."""
    try:
        _get_service().remove_feed(feed_id)
    except FeedSyncError as e:
        console.print(f"[bold red]❌ {get_user_friendly_message(e)}[/bold red]")
        sys.exit(1)

    console.print(f"[bold green]✅ Removed feed {feed_id}[/bold green]")


@cli.command()
def feeds():
    """Show all feeds with their unread counts."""
    console.print("[bold blue]📊 Feed Status Report[/bold blue]")

    service = _get_service()
    feed_list = service.get_feed_list()

    if not feed_list:
        console.print("[yellow]⚠️ No feeds found in database[/yellow]")
        return

    feeds_table = Table(title="Feeds")
    feeds_table.add_column("ID", style="green")
    feeds_table.add_column("Title", style="cyan")
    feeds_table.add_column("URL", style="blue")
    feeds_table.add_column("Priority", style="yellow")
    feeds_table.add_column("Unread", style="red")
    feeds_table.add_column("Last Updated")

    for feed in feed_list:
        title = feed.title
        url = feed.url
        if len(url) > 40:
            url = url[:37] + "..."

        feeds_table.add_row(
            str(feed.id),
            title[:30] + "..." if len(title) > 30 else title,
            url,
            str(feed.priority),
            str(service.get_unread_count(feed.id)),
            str(feed.last_updated_at) if feed.last_updated_at else "Never",
        )

    console.print(feeds_table)


# Helper functions for configuration checks
def _check_database_config(settings) -> tuple[bool, str]:
    """Check database configuration."""
    if settings.database.path == ":memory:":
        return True, "In-memory database"
    try:
        Path(settings.database.path).parent.mkdir(parents=True, exist_ok=True)
        return True, f"Path: {settings.database.path}"
    except OSError as e:
        return False, str(e)


def _check_logging_config(settings) -> tuple[bool, str]:
    """Check logging configuration."""
    try:
        if settings.logging.file_path:
            Path(settings.logging.file_path).parent.mkdir(parents=True, exist_ok=True)
        return True, f"Level: {settings.logging.level.value}, Console: {settings.logging.console_logging}"
    except OSError as e:
        return False, str(e)


def _check_fetcher_config(settings) -> tuple[bool, str]:
    """Check fetcher configuration."""
    return True, f"Timeout: {settings.fetcher.request_timeout}s, User-Agent: {settings.fetcher.user_agent}"


if __name__ == "__main__":
    try:
        cli()
    except KeyboardInterrupt:
        console.print("\n[yellow]👋 FeedSync interrupted by user[/yellow]")
        sys.exit(130)
