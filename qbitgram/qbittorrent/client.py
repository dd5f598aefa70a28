"""
qBittorrent WebUI API client.
Thin typed surface over QBittorrentSession; every call goes through
``session.execute`` so an expired login is recovered transparently.
"""
from typing import List, Optional, Sequence

import aiohttp
from pydantic import ValidationError

from ..logging_config import get_logger
from .models import AddOptions, ControlVerb, Torrent
from .session import QBittorrentProtocolError, QBittorrentSession

logger = get_logger("qbitgram.qbittorrent")


def _check_added(body: str):
    # A rejected add (duplicate, unparsable torrent) still comes back as HTTP 200
    if body.strip() == "Fails.":
        raise QBittorrentProtocolError("Torrent was rejected by qBittorrent")


class QBittorrentClient:
    """
    Job creation, listing and control for a single qBittorrent daemon.
    """

    def __init__(self, session: QBittorrentSession):
        self.session = session

    async def close(self):
        await self.session.close()

    # ==================== Adding ====================

    async def add_from_link(self, link: str, options: Optional[AddOptions] = None):
        """Add a magnet URI or a .torrent URL. The link is not validated here."""
        form = {"urls": link}
        form.update((options or AddOptions()).to_form())

        async def op():
            return await self.session.request("POST", "torrents/add", data=form)

        _check_added(await self.session.execute(op))
        logger.info(f"Added torrent from link ({len(link)} chars)")

    async def add_from_file(self, payload: bytes, filename: str = "", options: Optional[AddOptions] = None):
        """Add an uploaded .torrent file."""
        fields = (options or AddOptions()).to_form()

        # FormData is consumed on send, so build a fresh one per attempt
        async def op():
            form = aiohttp.FormData()
            form.add_field(
                "torrents",
                payload,
                filename=filename or "upload.torrent",
                content_type="application/x-bittorrent",
            )
            for key, value in fields.items():
                form.add_field(key, value)
            return await self.session.request("POST", "torrents/add", data=form)

        _check_added(await self.session.execute(op))
        logger.info(f"Added torrent from file {filename or 'upload.torrent'} ({len(payload)} bytes)")

    # ==================== Listing ====================

    async def list_torrents(self, hashes: Optional[Sequence[str]] = None) -> List[Torrent]:
        """List torrents, optionally restricted to the given hashes."""
        params = {"hashes": "|".join(hashes)} if hashes else None

        async def op():
            return await self.session.request_json("GET", "torrents/info", params=params)

        data = await self.session.execute(op)
        if not isinstance(data, list):
            raise QBittorrentProtocolError(f"torrents/info returned {type(data).__name__}, expected list")
        try:
            return [Torrent.model_validate(item) for item in data]
        except ValidationError as e:
            raise QBittorrentProtocolError(f"Malformed torrent record: {e}") from e

    async def get_torrent(self, torrent_hash: str) -> Optional[Torrent]:
        torrents = await self.list_torrents(hashes=[torrent_hash])
        return torrents[0] if torrents else None

    async def newest_torrent(self) -> Optional[Torrent]:
        """
        Return the most recently added torrent.

        torrents/add does not report the id of the job it created, so callers
        use this right after adding. A job added concurrently with an equal
        or later ``added_on`` will be returned instead; this race is known
        and accepted.
        """
        torrents = await self.list_torrents()
        if not torrents:
            return None
        return max(torrents, key=lambda t: t.added_on)

    # ==================== Control ====================

    async def control(self, verb: ControlVerb, torrent_hash: str):
        """Stop, start or delete a torrent."""
        if verb is ControlVerb.STOP:
            endpoint, form = "torrents/stop", {"hashes": torrent_hash}
        elif verb is ControlVerb.START:
            endpoint, form = "torrents/start", {"hashes": torrent_hash}
        elif verb is ControlVerb.DELETE:
            endpoint, form = "torrents/delete", {"hashes": torrent_hash, "deleteFiles": "false"}
        elif verb is ControlVerb.DELETE_WITH_DATA:
            endpoint, form = "torrents/delete", {"hashes": torrent_hash, "deleteFiles": "true"}
        else:
            raise ValueError(f"Unknown control verb: {verb}")

        async def op():
            await self.session.request("POST", endpoint, data=form)

        await self.session.execute(op)
        logger.info(f"{verb.value} {torrent_hash}")

    # ==================== Diagnostics ====================

    async def ping(self) -> str:
        """Log in and return the daemon version."""
        await self.session.login()

        async def op():
            return await self.session.request("GET", "app/version")

        return (await self.session.execute(op)).strip()
