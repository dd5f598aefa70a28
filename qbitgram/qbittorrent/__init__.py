"""
qBittorrent WebUI API layer.
"""
from .client import QBittorrentClient
from .models import PAUSED_STATE, AddOptions, ControlVerb, QBittorrentConfig, Torrent
from .session import (
    QBittorrentAuthError,
    QBittorrentError,
    QBittorrentNetworkError,
    QBittorrentNotFoundError,
    QBittorrentProtocolError,
    QBittorrentSession,
    RetryPolicy,
)

__all__ = [
    "PAUSED_STATE",
    "AddOptions",
    "ControlVerb",
    "QBittorrentAuthError",
    "QBittorrentClient",
    "QBittorrentConfig",
    "QBittorrentError",
    "QBittorrentNetworkError",
    "QBittorrentNotFoundError",
    "QBittorrentProtocolError",
    "QBittorrentSession",
    "RetryPolicy",
    "Torrent",
]
