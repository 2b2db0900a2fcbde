"""TelegramChannel - Telegram bot transport for the build relay.

Long-polls with python-telegram-bot, forwards every text message to the
bus and posts MarkdownV2 replies back into the same chat and topic.
"""

import logging
from typing import Optional

from telegram import ReplyParameters, Update
from telegram.constants import ParseMode
from telegram.error import TelegramError
from telegram.ext import ApplicationBuilder, ContextTypes, MessageHandler, filters

from build_relay.bus import MessageBus, OutboundMessage
from build_relay.channels.base import BaseChannel
from build_relay.config import RelayConfig

logger = logging.getLogger(__name__)


class TelegramChannel(BaseChannel):
    """Telegram bot channel implementation.

    Uses ``config.telegram_token``. Replies quote the command message and
    stay in its forum topic when the chat has topics enabled.
    """

    def __init__(self, config: RelayConfig, bus: MessageBus):
        super().__init__(config, bus)
        self.token = config.telegram_token
        self.app = None

    async def _on_text(self, update: Update, ctx: ContextTypes.DEFAULT_TYPE):
        message = update.effective_message
        if message is None or not message.text:
            return

        chat_id = message.chat_id
        logger.info(f"Received {message.text[:80]!r} in chat {chat_id}")

        thread_id: Optional[int] = None
        if message.is_topic_message:
            thread_id = message.message_thread_id

        sender = message.from_user
        await self._handle_message(
            sender_id=str(sender.id) if sender else "",
            chat_id=str(chat_id),
            content=message.text,
            message_id=str(message.message_id),
            thread_id=str(thread_id) if thread_id is not None else None,
        )

    async def _on_error(self, update: object, ctx: ContextTypes.DEFAULT_TYPE):
        if isinstance(ctx.error, TelegramError):
            logger.error(f"Telegram API error: {ctx.error}")
        else:
            logger.error("Error while handling Telegram update", exc_info=ctx.error)

    @staticmethod
    def _on_polling_error(error: TelegramError) -> None:
        logger.error(f"Telegram polling error: {error}")

    def _build_handler(self) -> MessageHandler:
        # New messages only; editing a /build message must not trigger it again.
        return MessageHandler(filters.UpdateType.MESSAGE & filters.TEXT, self._on_text)

    async def start(self) -> None:
        """Start Telegram bot with polling."""
        self.app = ApplicationBuilder().token(self.token).build()
        self.app.add_handler(self._build_handler())
        self.app.add_error_handler(self._on_error)

        # run_polling blocks - use initialize + start + updater for non-blocking
        await self.app.initialize()
        await self.app.start()
        await self.app.updater.start_polling(error_callback=self._on_polling_error)

        me = self.app.bot.username
        logger.info(f"Started listening on Telegram for @{me}")

    async def stop(self) -> None:
        """Stop Telegram bot gracefully."""
        if self.app:
            await self.app.updater.stop()
            await self.app.stop()
            await self.app.shutdown()
            self.app = None
            logger.info("TelegramChannel stopped")

    async def send(self, msg: OutboundMessage) -> None:
        """Send a MarkdownV2 reply to the originating chat/topic."""
        if not self.app:
            logger.warning("TelegramChannel not started, cannot send")
            return

        reply_parameters = None
        if msg.reply_to:
            reply_parameters = ReplyParameters(
                message_id=int(msg.reply_to), allow_sending_without_reply=True
            )

        try:
            await self.app.bot.send_message(
                chat_id=int(msg.chat_id),
                text=msg.content,
                parse_mode=ParseMode.MARKDOWN_V2,
                message_thread_id=int(msg.thread_id) if msg.thread_id else None,
                reply_parameters=reply_parameters,
            )
        except TelegramError as e:
            logger.error(f"Unable to send msg to {msg.chat_id}: {e}")
