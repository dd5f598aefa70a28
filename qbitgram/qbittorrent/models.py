"""
Data models for the qBittorrent WebUI API.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, Field


# qBittorrent >= 5 reports a paused download as "stoppedDL"
PAUSED_STATE = "stoppedDL"


def bool_param(value) -> Optional[str]:
    """Normalize a user/env flag to the "true"/"false" form the daemon expects."""
    if value is None or value == "":
        return None
    return "true" if str(value).lower() in ("1", "true") else "false"


class ControlVerb(Enum):
    """Control operations understood by the daemon."""
    STOP = "stop"
    START = "start"
    DELETE = "delete"
    DELETE_WITH_DATA = "delete-with-data"


class Torrent(BaseModel):
    """A torrent as reported by GET torrents/info."""
    hash: str = Field(..., min_length=1)
    name: str = ""
    progress: float = Field(0.0, ge=0.0)
    state: str = ""
    added_on: int = 0

    @property
    def percent(self) -> str:
        return f"{self.progress * 100:.1f}"

    @property
    def is_complete(self) -> bool:
        return self.progress >= 1.0

    @property
    def is_paused(self) -> bool:
        return self.state == PAUSED_STATE


@dataclass
class AddOptions:
    """Optional fields sent with torrents/add. None means "use the daemon default"."""
    category: Optional[str] = None
    savepath: Optional[str] = None
    tags: Optional[str] = None
    paused: Optional[str] = None  # "true" / "false"

    def to_form(self) -> Dict[str, str]:
        form = {}
        if self.category:
            form["category"] = self.category
        if self.savepath:
            form["savepath"] = self.savepath
        if self.tags:
            form["tags"] = self.tags
        if self.paused is not None:
            form["paused"] = self.paused
        return form

    @classmethod
    def merged(cls, parsed: Dict[str, str], defaults: "AddOptions") -> "AddOptions":
        """Inline options from the message win over configured defaults."""
        paused = parsed.get("paused")
        return cls(
            category=parsed.get("category", defaults.category),
            savepath=parsed.get("savepath", defaults.savepath),
            tags=parsed.get("tags", defaults.tags),
            paused=bool_param(paused) if paused is not None else defaults.paused,
        )


@dataclass
class QBittorrentConfig:
    """Connection settings for the daemon."""
    host: str = ""
    username: str = ""
    password: str = ""
    timeout: float = 20.0
    defaults: AddOptions = field(default_factory=AddOptions)

    def __post_init__(self):
        self.host = self.host.rstrip("/")

    @property
    def api_url(self) -> str:
        return f"{self.host}/api/v2/"

    def to_safe_dict(self) -> dict:
        return {
            "host": self.host,
            "username": self.username,
            "password": "***" if self.password else "",
            "timeout": self.timeout,
            "category": self.defaults.category,
            "savepath": self.defaults.savepath,
            "tags": self.defaults.tags,
            "paused": self.defaults.paused,
        }
