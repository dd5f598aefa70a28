"""
Data models for the Telegram bot module.
"""
from dataclasses import dataclass, field
from typing import List, Optional

from ..qbittorrent.models import ControlVerb


@dataclass
class TelegramBotConfig:
    """Configuration for the Telegram bot."""
    bot_token: str = ""
    allowed_user_ids: List[int] = field(default_factory=list)

    def is_allowed(self, user_id: Optional[int]) -> bool:
        """An empty allow-list lets everyone in."""
        if not self.allowed_user_ids:
            return True
        return user_id in self.allowed_user_ids

    def to_safe_dict(self) -> dict:
        """Return config with token masked for display."""
        token = self.bot_token
        if token:
            token = token[:4] + "..." + token[-4:] if len(token) > 10 else "***"
        return {"bot_token": token, "allowed_user_ids": self.allowed_user_ids}


# Button verbs carried in callback data, mapped to daemon operations
ACTION_VERBS = {
    "pause": ControlVerb.STOP,
    "resume": ControlVerb.START,
    "delete": ControlVerb.DELETE,
    "deletef": ControlVerb.DELETE_WITH_DATA,
}


@dataclass(frozen=True)
class ControlAction:
    """A button press decoded from ``"<verb>:<hash>"`` callback data."""
    verb: str
    torrent_hash: str

    @property
    def daemon_verb(self) -> ControlVerb:
        return ACTION_VERBS[self.verb]

    @property
    def is_delete(self) -> bool:
        return self.daemon_verb in (ControlVerb.DELETE, ControlVerb.DELETE_WITH_DATA)

    def to_callback_data(self) -> str:
        return f"{self.verb}:{self.torrent_hash}"

    @classmethod
    def parse(cls, data: str) -> "ControlAction":
        verb, sep, torrent_hash = (data or "").partition(":")
        if not sep or verb not in ACTION_VERBS or not torrent_hash:
            raise ValueError(f"Unrecognized callback data: {data!r}")
        return cls(verb=verb, torrent_hash=torrent_hash)
