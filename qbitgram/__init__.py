"""
qbitgram - Telegram remote control for qBittorrent.
"""

__version__ = "1.0.0"
