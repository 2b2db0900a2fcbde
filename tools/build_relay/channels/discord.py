"""DiscordChannel - Discord gateway transport for the build relay."""

import asyncio
import logging
from typing import Optional

import discord

from build_relay.bus import MessageBus, OutboundMessage
from build_relay.channels.base import BaseChannel
from build_relay.config import RelayConfig

logger = logging.getLogger(__name__)


class DiscordChannel(BaseChannel):
    """Discord bot channel implementation.

    Needs the privileged message-content intent to read commands. Messages
    from bots (itself included) are ignored.
    """

    def __init__(self, config: RelayConfig, bus: MessageBus):
        super().__init__(config, bus)
        self.token = config.discord_token
        self.client: Optional[discord.Client] = None
        self._task: Optional[asyncio.Task] = None

    def _build_client(self) -> discord.Client:
        intents = discord.Intents.default()
        intents.message_content = True
        client = discord.Client(intents=intents)
        client.event(self.on_ready)
        client.event(self.on_message)
        return client

    async def on_ready(self) -> None:
        logger.info(f"Discord connected as {self.client.user}")

    async def on_message(self, message: discord.Message) -> None:
        if message.author.bot:
            return
        if self.client and self.client.user and message.author.id == self.client.user.id:
            return

        logger.info(f"Received {message.content[:80]!r} in Discord channel {message.channel.id}")
        await self._handle_message(
            sender_id=str(message.author.id),
            chat_id=str(message.channel.id),
            content=message.content,
            message_id=str(message.id),
        )

    @staticmethod
    def _on_client_done(task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"Discord client stopped: {exc}", exc_info=exc)

    async def start(self) -> None:
        """Log in, then keep the gateway connection in a background task.

        Raises:
            discord.LoginFailure: The token was rejected.
        """
        self.client = self._build_client()
        try:
            await self.client.login(self.token)
        except discord.DiscordException:
            await self.client.close()
            raise
        self._task = asyncio.create_task(self.client.connect())
        self._task.add_done_callback(self._on_client_done)
        logger.info("Discord bot started")

    async def stop(self) -> None:
        if self.client and not self.client.is_closed():
            await self.client.close()
        if self._task:
            await asyncio.gather(self._task, return_exceptions=True)
            self._task = None
        logger.info("DiscordChannel stopped")

    async def send(self, msg: OutboundMessage) -> None:
        """Reply in the originating channel, referencing the command message."""
        if not self.client:
            logger.warning("DiscordChannel not started, cannot send")
            return

        channel_id = int(msg.chat_id)
        reference = None
        if msg.reply_to:
            reference = discord.MessageReference(
                message_id=int(msg.reply_to),
                channel_id=channel_id,
                fail_if_not_exists=False,
            )

        try:
            channel = self.client.get_channel(channel_id)
            if channel is None:
                channel = await self.client.fetch_channel(channel_id)
            await channel.send(msg.content, reference=reference)
        except discord.DiscordException as e:
            logger.error(f"Unable to send msg to {msg.chat_id}: {e}")
