"""
Entry point from the chat layer into the daemon: adds torrents, starts
progress tracking, and applies button actions.
"""
from typing import Optional

from .job_request import JobRequest
from .logging_config import get_logger
from .notifier import Notifier
from .qbittorrent.client import QBittorrentClient
from .qbittorrent.session import QBittorrentNotFoundError
from .telegram.commands import CONTROL_CONFIRMATIONS, format_deleted, format_submitted
from .telegram.models import ControlAction
from .tracker import ProgressTracker, TrackingSession

logger = get_logger("qbitgram.dispatcher")


class RequestDispatcher:
    """Turns classified chat requests into daemon calls."""

    def __init__(self, client: QBittorrentClient, notifier: Notifier, tracker: ProgressTracker):
        self.client = client
        self.notifier = notifier
        self.tracker = tracker

    async def submit(self, request: JobRequest, chat_id: int) -> TrackingSession:
        """
        Add a torrent and start tracking it.

        The daemon does not say which torrent it created, so the newest one is
        assumed to be ours (see ``QBittorrentClient.newest_torrent``). Errors
        propagate to the caller; a torrent that was added before a later step
        failed is left in the daemon.
        """
        if request.is_file:
            await self.client.add_from_file(request.payload, request.filename, request.options)
        else:
            await self.client.add_from_link(request.link, request.options)

        torrent = await self.client.newest_torrent()
        if torrent is None:
            raise QBittorrentNotFoundError("Torrent was added but does not appear in the torrent list")

        message_id = await self.notifier.send(chat_id, format_submitted(torrent.name))
        logger.info_with("Torrent submitted", chat_id=chat_id, hash=torrent.hash, name=torrent.name)
        return self.tracker.start(chat_id, message_id, torrent.hash, torrent.name)

    async def handle_control(
        self,
        action: ControlAction,
        chat_id: int,
        message_id: int,
        callback_id: Optional[str] = None,
    ):
        """
        Apply a button action. Delete actions also replace the message with a
        final notice. Trackers on other messages for the same torrent see it
        vanish on their next poll.
        """
        await self.client.control(action.daemon_verb, action.torrent_hash)
        logger.info_with("Control action applied", verb=action.verb, hash=action.torrent_hash, chat_id=chat_id)

        if callback_id is not None:
            await self.notifier.answer_callback(callback_id, CONTROL_CONFIRMATIONS[action.verb])
        if action.is_delete:
            # Keep an in-flight poll from overwriting the notice
            self.tracker.stop(chat_id, message_id)
            await self.notifier.edit(chat_id, message_id, format_deleted(action.verb == "deletef"))
