"""
Outbound messaging interfaces used by the dispatcher and progress tracker.
"""
from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

# Rows of (label, callback_data) buttons
Keyboard = List[List[Tuple[str, str]]]


class Notifier(ABC):
    """Sends and edits chat messages."""

    @abstractmethod
    async def send(self, chat_id: int, text: str, keyboard: Optional[Keyboard] = None) -> int:
        """Send a message and return its message id."""
        pass

    @abstractmethod
    async def edit(self, chat_id: int, message_id: int, text: str, keyboard: Optional[Keyboard] = None):
        """Replace the text (and buttons) of a previously sent message."""
        pass

    @abstractmethod
    async def answer_callback(self, callback_id: str, text: str, show_alert: bool = False):
        """Acknowledge a button press."""
        pass


class FileFetcher(ABC):
    """Downloads files users have uploaded to the chat."""

    @abstractmethod
    async def resolve(self, file_id: str) -> bytes:
        pass
