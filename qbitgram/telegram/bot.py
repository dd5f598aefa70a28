"""
Main Telegram bot for qbitgram.

Accepts magnet links, .torrent URLs and uploaded .torrent files, hands them
to the dispatcher, and routes the inline Pause/Resume/Delete buttons.
"""
import asyncio
import html as html_mod
from typing import Optional

from telegram import BotCommand as TGBotCommand
from telegram import Update
from telegram.error import BadRequest
from telegram.ext import (
    Application,
    CallbackQueryHandler,
    CommandHandler,
    ContextTypes,
    MessageHandler,
    filters,
)

from ..config import Settings
from ..dispatcher import RequestDispatcher
from ..job_request import JobRequest, classify_text, is_torrent_file_name
from ..logging_config import get_logger
from ..notifier import FileFetcher
from ..qbittorrent.client import QBittorrentClient
from ..qbittorrent.models import AddOptions
from ..qbittorrent.session import QBittorrentSession
from ..tracker import ProgressTracker
from .commands import COMMANDS, format_help_text, format_torrent_list
from .models import ControlAction, TelegramBotConfig
from .notifier import TelegramFileFetcher, TelegramNotifier, truncate

logger = get_logger("qbitgram.telegram")


class TelegramBot:
    """Telegram front-end for a qBittorrent daemon."""

    def __init__(
        self,
        config: TelegramBotConfig,
        client: QBittorrentClient,
        dispatcher: RequestDispatcher,
        file_fetcher: FileFetcher,
        defaults: Optional[AddOptions] = None,
    ):
        self._config = config
        self.client = client
        self.dispatcher = dispatcher
        self.file_fetcher = file_fetcher
        self.defaults = defaults or AddOptions()

    # ─── Handler registration ──────────────────────────────────────────

    def register_handlers(self, app: Application):
        """Register all command, message, and callback handlers."""
        commands = [
            ("start", self._cmd_help),
            ("help", self._cmd_help),
            ("status", self._cmd_status),
            ("list", self._cmd_list),
        ]
        for command, handler in commands:
            app.add_handler(CommandHandler(command, handler))

        app.add_handler(CallbackQueryHandler(self._handle_callback))
        app.add_handler(MessageHandler(filters.UpdateType.MESSAGE & filters.Document.ALL, self._handle_document))
        app.add_handler(MessageHandler(filters.UpdateType.MESSAGE & filters.TEXT & ~filters.COMMAND, self._handle_text))
        app.add_error_handler(self._on_error)

    # ─── Auth ──────────────────────────────────────────────────────────

    async def _check_auth(self, update: Update) -> bool:
        user = update.effective_user
        if self._config.is_allowed(user.id if user else None):
            return True
        logger.warning_with("Rejected unauthorized user", user_id=user.id if user else None)
        if update.callback_query is not None:
            await update.callback_query.answer("⛔ Access denied.", show_alert=True)
        else:
            await self._reply(update, "⛔ Access denied.")
        return False

    # ─── Command handlers ──────────────────────────────────────────────

    async def _cmd_help(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        if not await self._check_auth(update):
            return
        await self._reply(update, format_help_text())

    async def _cmd_status(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        if not await self._check_auth(update):
            return
        try:
            version = await self.client.ping()
            await self._reply(update, f"✅ qBittorrent OK. Version: {html_mod.escape(version)}")
        except Exception as e:
            logger.error(f"Status check failed: {e}")
            await self._reply(update, f"❌ No connection: {html_mod.escape(str(e))}")

    async def _cmd_list(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        if not await self._check_auth(update):
            return
        try:
            torrents = await self.client.list_torrents()
            await self._reply(update, format_torrent_list(torrents))
        except Exception as e:
            logger.error(f"Listing torrents failed: {e}")
            await self._reply(update, f"❌ Error: {html_mod.escape(str(e))}")

    # ─── Message handlers ──────────────────────────────────────────────

    async def _handle_text(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Submit a magnet link or .torrent URL; anything else is ignored."""
        if not await self._check_auth(update):
            return
        request = classify_text(update.effective_message.text, self.defaults)
        if request is None:
            return
        await self._submit(update, request)

    async def _handle_document(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Submit an uploaded .torrent file, with options from its caption."""
        if not await self._check_auth(update):
            return
        message = update.effective_message
        document = message.document
        if not is_torrent_file_name(document.file_name):
            await self._reply(update, "Send a .torrent file or a magnet link.")
            return
        try:
            payload = await self.file_fetcher.resolve(document.file_id)
        except Exception as e:
            logger.error(f"Could not download {document.file_name}: {e}")
            await self._reply(update, f"❌ Error: {html_mod.escape(str(e))}")
            return
        request = JobRequest.for_upload(payload, document.file_name, message.caption or "", self.defaults)
        await self._submit(update, request)

    async def _submit(self, update: Update, request: JobRequest):
        try:
            await self.dispatcher.submit(request, update.effective_chat.id)
        except Exception as e:
            logger.error(f"Submitting torrent failed: {e}")
            await self._reply(update, f"❌ Error: {html_mod.escape(str(e))}")

    # ─── Callback handler ──────────────────────────────────────────────

    async def _handle_callback(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Route inline keyboard button presses."""
        query = update.callback_query
        if not await self._check_auth(update):
            return

        try:
            action = ControlAction.parse(query.data)
        except ValueError:
            await query.answer("Unknown action.")
            return

        try:
            await self.dispatcher.handle_control(
                action,
                chat_id=query.message.chat_id,
                message_id=query.message.message_id,
                callback_id=query.id,
            )
        except Exception as e:
            logger.error(f"Callback error: {e}")
            try:
                await query.answer(f"Error: {e}", show_alert=True)
            except BadRequest:
                # The confirmation already used up the answer; report in the chat
                await query.message.reply_text(f"❌ Error: {html_mod.escape(str(e))}", parse_mode="HTML")

    async def _on_error(self, update: object, context: ContextTypes.DEFAULT_TYPE):
        logger.error(f"Telegram error: {context.error}", exc_info=context.error)

    # ─── Helpers ───────────────────────────────────────────────────────

    async def _reply(self, update: Update, text: str, parse_mode: str = "HTML"):
        await update.effective_message.reply_text(truncate(text), parse_mode=parse_mode)


async def run_bot(settings: Settings, stop_event: Optional[asyncio.Event] = None):
    """Wire the components together and long-poll until ``stop_event`` is set."""
    stop_event = stop_event or asyncio.Event()

    app = Application.builder().token(settings.telegram.bot_token).build()
    client = QBittorrentClient(QBittorrentSession(settings.qbittorrent))
    notifier = TelegramNotifier(app.bot)
    tracker = ProgressTracker(client, notifier, poll_interval=settings.poll_interval)
    dispatcher = RequestDispatcher(client, notifier, tracker)
    bot = TelegramBot(
        settings.telegram,
        client,
        dispatcher,
        TelegramFileFetcher(app.bot),
        defaults=settings.qbittorrent.defaults,
    )
    bot.register_handlers(app)

    await app.initialize()
    await app.start()
    try:
        try:
            await app.bot.set_my_commands([TGBotCommand(cmd.command, cmd.description) for cmd in COMMANDS])
            me = await app.bot.get_me()
            logger.info(f"Telegram bot started as @{me.username}")
        except Exception as e:
            logger.error(f"Failed to set bot commands: {e}")

        await app.updater.start_polling(drop_pending_updates=True)
        logger.info("Telegram bot polling started")
        await stop_event.wait()
    finally:
        if app.updater and app.updater.running:
            await app.updater.stop()
        await tracker.stop_all()
        await app.stop()
        await app.shutdown()
        await client.close()
        logger.info("Telegram bot stopped")
