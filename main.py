#!/usr/bin/env python3
"""
qbitgram - Telegram remote control for qBittorrent

Send magnet links or .torrent files to a Telegram bot and watch their
progress in a message that updates itself.
"""
import asyncio
import sys

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from qbitgram import __version__

console = Console()


def _load_settings(require_telegram: bool = True):
    from qbitgram.config import ConfigurationError, Settings

    try:
        return Settings.from_env(require_telegram=require_telegram)
    except ConfigurationError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        sys.exit(1)


def _client(settings):
    from qbitgram.qbittorrent import QBittorrentClient, QBittorrentSession
    return QBittorrentClient(QBittorrentSession(settings.qbittorrent))


@click.group()
@click.version_option(version=__version__)
@click.option("--log-level", default=None, help="Log level (default: QBITGRAM_LOG_LEVEL or INFO)")
@click.option("--json-logs", is_flag=True, default=False, help="Emit JSON log lines (default: QBITGRAM_LOG_JSON)")
def cli(log_level: str, json_logs: bool):
    """qbitgram - Telegram remote control for qBittorrent"""
    from qbitgram.logging_config import setup_logging
    setup_logging(level=log_level, json_format=json_logs or None)


@cli.command()
@click.option("--poll-interval", type=float, default=None, help="Seconds between progress updates")
def run(poll_interval: float):
    """Start the Telegram bot"""
    from qbitgram.telegram.bot import run_bot
    from qbitgram.logging_config import get_logger

    settings = _load_settings()
    if poll_interval is not None:
        if poll_interval <= 0:
            raise click.BadParameter("must be positive", param_hint="--poll-interval")
        settings.poll_interval = poll_interval

    get_logger("qbitgram.cli").debug_with("Loaded settings", **settings.to_safe_dict())

    console.print(Panel.fit(
        "[bold cyan]qbitgram[/bold cyan] - Telegram remote control for qBittorrent\n"
        f"[dim]qBittorrent: {settings.qbittorrent.host}[/dim]",
        border_style="cyan"
    ))
    if not settings.telegram.allowed_user_ids:
        console.print("[yellow]ALLOWED_USER_IDS is empty: anyone can use this bot[/yellow]")
    console.print("[dim]Press Ctrl+C to stop[/dim]\n")

    try:
        asyncio.run(run_bot(settings))
    except KeyboardInterrupt:
        console.print("\n[yellow]Stopped[/yellow]")


@cli.command()
def status():
    """Check the connection to qBittorrent"""
    from qbitgram.qbittorrent import QBittorrentError

    settings = _load_settings(require_telegram=False)

    async def check():
        client = _client(settings)
        try:
            return await client.ping()
        finally:
            await client.close()

    try:
        version = asyncio.run(check())
    except QBittorrentError as e:
        console.print(f"[red]✗[/red] No connection to {settings.qbittorrent.host}: {e}")
        sys.exit(1)

    console.print(Panel.fit(
        f"[green]✓[/green] qBittorrent OK\n"
        f"[dim]Host:[/dim] {settings.qbittorrent.host}\n"
        f"[dim]Version:[/dim] {version}",
        border_style="green"
    ))


@cli.command(name="list")
def list_torrents():
    """List all torrents"""
    from qbitgram.qbittorrent import QBittorrentError

    settings = _load_settings(require_telegram=False)

    async def fetch():
        client = _client(settings)
        try:
            return await client.list_torrents()
        finally:
            await client.close()

    try:
        torrents = asyncio.run(fetch())
    except QBittorrentError as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    if not torrents:
        console.print("[dim]No torrents[/dim]")
        return

    table = Table(title="qBittorrent Torrents")
    table.add_column("Name", style="white")
    table.add_column("Progress", justify="right")
    table.add_column("State", justify="center")
    table.add_column("Hash", style="dim")

    for t in sorted(torrents, key=lambda t: t.added_on, reverse=True):
        progress = f"[green]{t.percent}%[/green]" if t.is_complete else f"{t.percent}%"
        state = f"[yellow]{t.state}[/yellow]" if t.is_paused else t.state
        table.add_row(t.name, progress, state, t.hash[:12])

    console.print(table)


if __name__ == "__main__":
    cli()
