"""
Command definitions and message formatting helpers for the Telegram bot.
"""
from dataclasses import dataclass
from typing import List
import html

from ..notifier import Keyboard
from ..qbittorrent.models import Torrent
from .models import ControlAction


@dataclass
class BotCommand:
    """Telegram bot command definition."""
    command: str
    description: str


COMMANDS: List[BotCommand] = [
    BotCommand("start", "Show help"),
    BotCommand("help", "How to use the bot"),
    BotCommand("status", "Check the qBittorrent connection"),
    BotCommand("list", "List all torrents"),
]


def format_help_text() -> str:
    """Format the help message listing all commands."""
    lines = [
        "Send me:",
        "• a magnet link",
        "• a .torrent file",
        "• a URL to a .torrent file",
        "",
        "Optional settings can follow the link or go in the file caption:",
        "<code>category=movies savepath=/data tags=a,b paused=true</code>",
        "",
        "<b>Commands</b>",
    ]
    for cmd in COMMANDS:
        lines.append(f"/{cmd.command} - {html.escape(cmd.description)}")
    return "\n".join(lines)


def format_torrent_list(torrents: List[Torrent]) -> str:
    if not torrents:
        return "📭 No torrents."
    return "\n".join(
        f"📄 {html.escape(t.name)} — {t.percent}% ({html.escape(t.state)})" for t in torrents
    )


def format_submitted(name: str) -> str:
    """Initial message sent right after a torrent is added."""
    return f"⬇️ <b>{html.escape(name)}</b>\nProgress: 0%"


def format_progress(name: str, torrent: Torrent) -> str:
    return (
        f"⬇️ <b>{html.escape(name)}</b>\n"
        f"Progress: {torrent.percent}%\n"
        f"Status: {html.escape(torrent.state)}"
    )


def format_completed(name: str) -> str:
    return f"✅ Download complete\n📄 <b>{html.escape(name)}</b>"


def format_deleted(with_files: bool) -> str:
    return "❌🗑 Torrent deleted with files" if with_files else "❌ Torrent deleted"


def progress_keyboard(torrent: Torrent) -> Keyboard:
    """Resume/Pause on the first row, the two delete buttons on the second."""
    if torrent.is_paused:
        control = ("▶️ Resume", ControlAction("resume", torrent.hash).to_callback_data())
    else:
        control = ("⏸ Pause", ControlAction("pause", torrent.hash).to_callback_data())
    return [
        [control],
        [
            ("🗑 Delete", ControlAction("delete", torrent.hash).to_callback_data()),
            ("🗑 Delete with files", ControlAction("deletef", torrent.hash).to_callback_data()),
        ],
    ]


CONTROL_CONFIRMATIONS = {
    "pause": "Paused",
    "resume": "Resumed",
    "delete": "Deleted",
    "deletef": "Deleted with files",
}
