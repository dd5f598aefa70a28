"""
Live progress messages for torrents.

Each tracked message gets its own asyncio task that polls the daemon on a
fixed interval and edits the message when the rendered progress changes.
A session ends for good when the torrent completes, disappears from the
daemon, or a poll fails.
"""
import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from .logging_config import get_logger
from .notifier import Keyboard, Notifier
from .qbittorrent.client import QBittorrentClient
from .qbittorrent.models import Torrent
from .telegram.commands import format_completed, format_progress, progress_keyboard

logger = get_logger("qbitgram.tracker")

SessionKey = Tuple[int, int]


class SessionOutcome(Enum):
    """Lifecycle of a tracking session. Everything but ACTIVE is terminal."""
    ACTIVE = "active"
    COMPLETED = "completed"
    VANISHED = "vanished"
    FAULTED = "faulted"
    CANCELLED = "cancelled"


@dataclass
class TrackingSession:
    """Progress tracking for one (chat, message) pair."""
    chat_id: int
    message_id: int
    torrent_hash: str
    name: str
    last_text: str = ""
    last_state: str = ""
    outcome: SessionOutcome = SessionOutcome.ACTIVE
    error: Optional[BaseException] = None
    _task: Optional[asyncio.Task] = field(default=None, repr=False)

    @property
    def key(self) -> SessionKey:
        return (self.chat_id, self.message_id)

    @property
    def is_active(self) -> bool:
        return self.outcome is SessionOutcome.ACTIVE

    @property
    def task(self) -> Optional[asyncio.Task]:
        return self._task

    def stop(self):
        """Cancel the polling task. Safe to call any number of times."""
        if self.outcome is SessionOutcome.ACTIVE:
            self.outcome = SessionOutcome.CANCELLED
        if self._task is not None and not self._task.done():
            self._task.cancel()


def render(name: str, torrent: Torrent) -> Tuple[str, Optional[Keyboard]]:
    """Message text and buttons for the torrent's current state."""
    if torrent.is_complete:
        return format_completed(name), None
    return format_progress(name, torrent), progress_keyboard(torrent)


class ProgressTracker:
    """Registry of tracking sessions, each polled by its own task."""

    POLL_INTERVAL = 5.0

    def __init__(self, client: QBittorrentClient, notifier: Notifier, poll_interval: Optional[float] = None):
        self.client = client
        self.notifier = notifier
        self.poll_interval = self.POLL_INTERVAL if poll_interval is None else poll_interval
        self._sessions: Dict[SessionKey, TrackingSession] = {}

    def start(self, chat_id: int, message_id: int, torrent_hash: str, name: str) -> TrackingSession:
        """Begin tracking; replaces any session already bound to the same message."""
        existing = self._sessions.get((chat_id, message_id))
        if existing is not None:
            existing.stop()

        session = TrackingSession(chat_id=chat_id, message_id=message_id, torrent_hash=torrent_hash, name=name)
        self._sessions[session.key] = session
        session._task = asyncio.create_task(
            self._run(session), name=f"track-{chat_id}-{message_id}"
        )
        logger.info_with("Tracking started", chat_id=chat_id, message_id=message_id, hash=torrent_hash)
        return session

    def get(self, chat_id: int, message_id: int) -> Optional[TrackingSession]:
        return self._sessions.get((chat_id, message_id))

    def active_sessions(self) -> List[TrackingSession]:
        return [s for s in self._sessions.values() if s.is_active]

    def stop(self, chat_id: int, message_id: int) -> bool:
        session = self._sessions.pop((chat_id, message_id), None)
        if session is None:
            return False
        session.stop()
        return True

    async def stop_all(self):
        sessions = list(self._sessions.values())
        self._sessions.clear()
        for session in sessions:
            session.stop()
        tasks = [s.task for s in sessions if s.task is not None]
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def _run(self, session: TrackingSession):
        try:
            while session.is_active:
                await asyncio.sleep(self.poll_interval)
                await self.tick(session)
        finally:
            # A newer session may already own this key
            if self._sessions.get(session.key) is session:
                del self._sessions[session.key]
            logger.info_with(
                "Tracking ended",
                chat_id=session.chat_id,
                message_id=session.message_id,
                hash=session.torrent_hash,
                outcome=session.outcome.value,
            )

    async def tick(self, session: TrackingSession) -> SessionOutcome:
        """Poll once and edit the message if needed. Any error ends the session."""
        if not session.is_active:
            return session.outcome
        try:
            torrent = await self.client.get_torrent(session.torrent_hash)
            if torrent is None:
                # Deleted from the daemon; the message stays as it is
                session.outcome = SessionOutcome.VANISHED
                return session.outcome

            text, keyboard = render(session.name, torrent)
            if torrent.is_complete:
                if text != session.last_text:
                    await self._edit(session, text, keyboard, torrent.state)
                session.outcome = SessionOutcome.COMPLETED
                return session.outcome

            if text != session.last_text or torrent.state != session.last_state:
                await self._edit(session, text, keyboard, torrent.state)
        except Exception as e:
            session.outcome = SessionOutcome.FAULTED
            session.error = e
            logger.warning_with(
                f"Progress polling failed: {e}",
                chat_id=session.chat_id,
                message_id=session.message_id,
                hash=session.torrent_hash,
            )
        return session.outcome

    async def _edit(self, session: TrackingSession, text: str, keyboard: Optional[Keyboard], state: str):
        await self.notifier.edit(session.chat_id, session.message_id, text, keyboard)
        session.last_text = text
        session.last_state = state
