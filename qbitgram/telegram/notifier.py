"""
Notifier and FileFetcher implementations backed by python-telegram-bot.
"""
from typing import Optional

from telegram import Bot, InlineKeyboardButton, InlineKeyboardMarkup
from telegram.error import BadRequest

from ..logging_config import get_logger
from ..notifier import FileFetcher, Keyboard, Notifier

logger = get_logger("qbitgram.telegram")

MAX_MESSAGE_LENGTH = 4096


def build_keyboard(rows: Optional[Keyboard]) -> Optional[InlineKeyboardMarkup]:
    """Build InlineKeyboardMarkup from rows of (label, callback_data) tuples."""
    if not rows:
        return None
    return InlineKeyboardMarkup([
        [InlineKeyboardButton(label, callback_data=data) for label, data in row]
        for row in rows
    ])


def truncate(text: str) -> str:
    """
    Fit HTML text into one message.

    Cuts at the last line break so no tag or entity is split; every multi-line
    message keeps its markup within single lines.
    """
    if len(text) <= MAX_MESSAGE_LENGTH:
        return text
    cut = text[:MAX_MESSAGE_LENGTH - 4]
    newline = cut.rfind("\n")
    if newline > 0:
        cut = cut[:newline]
    else:
        # One huge line: drop a trailing partial entity or tag
        amp, lt = cut.rfind("&"), cut.rfind("<")
        if amp > cut.rfind(";"):
            cut = cut[:amp]
        if lt > cut.rfind(">"):
            cut = cut[:lt]
    return cut + "\n..."


class TelegramNotifier(Notifier):
    def __init__(self, bot: Bot, parse_mode: str = "HTML"):
        self._bot = bot
        self._parse_mode = parse_mode

    async def send(self, chat_id: int, text: str, keyboard: Optional[Keyboard] = None) -> int:
        message = await self._bot.send_message(
            chat_id=chat_id,
            text=truncate(text),
            parse_mode=self._parse_mode,
            reply_markup=build_keyboard(keyboard),
        )
        return message.message_id

    async def edit(self, chat_id: int, message_id: int, text: str, keyboard: Optional[Keyboard] = None):
        try:
            await self._bot.edit_message_text(
                text=truncate(text),
                chat_id=chat_id,
                message_id=message_id,
                parse_mode=self._parse_mode,
                reply_markup=build_keyboard(keyboard),
            )
        except BadRequest as e:
            # Telegram rejects edits that change nothing
            if "message is not modified" not in str(e).lower():
                raise
            logger.debug(f"Edit of {chat_id}/{message_id} was a no-op")

    async def answer_callback(self, callback_id: str, text: str, show_alert: bool = False):
        await self._bot.answer_callback_query(callback_query_id=callback_id, text=text, show_alert=show_alert)


class TelegramFileFetcher(FileFetcher):
    def __init__(self, bot: Bot):
        self._bot = bot

    async def resolve(self, file_id: str) -> bytes:
        tg_file = await self._bot.get_file(file_id)
        return bytes(await tg_file.download_as_bytearray())
