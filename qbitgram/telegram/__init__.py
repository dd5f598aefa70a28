"""
Telegram Bot module for qbitgram.

Provides the chat interface for submitting torrents to qBittorrent and the
inline keyboard used to pause, resume and delete them.
"""
