"""
Classification of inbound chat input into torrent job requests.
"""
import re
from dataclasses import dataclass, field
from typing import Dict, Optional

from .qbittorrent.models import AddOptions, bool_param

__all__ = [
    "JobRequest",
    "bool_param",
    "classify_text",
    "is_magnet",
    "is_torrent_file_name",
    "is_torrent_url",
    "parse_options",
]

_MAGNET_RE = re.compile(r"^magnet:\?xt=urn:btih:[a-z0-9]{32,}.*$", re.IGNORECASE)
_TORRENT_URL_RE = re.compile(r"^https?://.+\.torrent(\?.*)?$", re.IGNORECASE)
_OPTION_RE = re.compile(r"\b(category|savepath|tags|paused)=(\S+)", re.IGNORECASE)


def is_magnet(text: str) -> bool:
    return bool(_MAGNET_RE.match(text.strip()))


def is_torrent_url(text: str) -> bool:
    return bool(_TORRENT_URL_RE.match(text.strip()))


def is_torrent_file_name(name: Optional[str]) -> bool:
    return bool(name) and name.lower().endswith(".torrent")


def parse_options(text: str) -> Dict[str, str]:
    """Pick ``key=value`` add options out of free text. Later keys win."""
    return {m.group(1).lower(): m.group(2) for m in _OPTION_RE.finditer(text or "")}


@dataclass
class JobRequest:
    """A normalized request to add one torrent."""
    link: Optional[str] = None
    payload: Optional[bytes] = None
    filename: str = ""
    options: AddOptions = field(default_factory=AddOptions)

    @property
    def is_file(self) -> bool:
        return self.payload is not None

    @classmethod
    def for_upload(cls, payload: bytes, filename: str, caption: str, defaults: AddOptions) -> "JobRequest":
        if not is_torrent_file_name(filename):
            raise ValueError(f"Not a .torrent file: {filename}")
        return cls(
            payload=payload,
            filename=filename,
            options=AddOptions.merged(parse_options(caption), defaults),
        )


def classify_text(text: str, defaults: AddOptions) -> Optional[JobRequest]:
    """
    Build a JobRequest from a chat message, or None if it holds no link.

    The whole message is matched as a link, so inline options only apply to
    links that also match with the options attached (the magnet pattern
    accepts any trailing text).
    """
    text = (text or "").strip()
    if not (is_magnet(text) or is_torrent_url(text)):
        return None
    return JobRequest(link=text, options=AddOptions.merged(parse_options(text), defaults))
