"""Message bus for routing between chat channels and the build dispatcher.

Messages flow through two async queues:

    Inbound:  Channel → publish_inbound() → Queue → consume_inbound() → Executor
    Outbound: Executor → publish_outbound() → Queue → consume_outbound() → Channel

InboundMessage carries a chat command plus what the channel needs to route a
reply back into the same conversation thread. OutboundMessage carries that
routing back with the reply text.

All queues are in-memory asyncio.Queue instances - no persistence layer.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class InboundMessage:
    """A message received from a chat channel.

    Attributes:
        channel: Source channel identifier (e.g. "telegram", "discord").
        sender_id: Unique identifier for the message sender.
        chat_id: Chat/channel identifier within the platform.
        content: Text content of the message.
        message_id: Platform message id, used to reply to the command.
        thread_id: Forum topic / thread id when the message was posted in one.
        metadata: Arbitrary key-value pairs for channel-specific data.
    """

    channel: str
    sender_id: str
    chat_id: str
    content: str
    message_id: Optional[str] = None
    thread_id: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def reply(self, content: str) -> "OutboundMessage":
        """Build the outbound reply routed to this message's conversation."""
        return OutboundMessage(
            channel=self.channel,
            chat_id=self.chat_id,
            content=content,
            reply_to=self.message_id,
            thread_id=self.thread_id,
        )


@dataclass
class OutboundMessage:
    """A reply destined for a chat channel.

    Attributes:
        channel: Target channel identifier (must match an active channel).
        chat_id: Chat to deliver the reply to.
        content: Reply text, already escaped for the channel's markup.
        reply_to: Message id being replied to, if any.
        thread_id: Thread/topic to post in, if any.
    """

    channel: str
    chat_id: str
    content: str
    reply_to: Optional[str] = None
    thread_id: Optional[str] = None


class MessageBus:
    """Async message routing between channels and the executor.

    * **inbound** - channels publish chat messages; the executor loop consumes them.
    * **outbound** - the executor loop publishes replies; the dispatcher delivers them.

    Usage::

        bus = MessageBus()

        # Channel side
        await bus.publish_inbound(msg)

        # Executor side
        msg = await bus.consume_inbound()
        await bus.publish_outbound(msg.reply("done"))
    """

    def __init__(self) -> None:
        self.inbound: asyncio.Queue[InboundMessage] = asyncio.Queue()
        self.outbound: asyncio.Queue[OutboundMessage] = asyncio.Queue()

    async def publish_inbound(self, msg: InboundMessage) -> None:
        await self.inbound.put(msg)

    async def consume_inbound(self) -> InboundMessage:
        """Consume the next chat message. Blocks until one is available."""
        return await self.inbound.get()

    async def publish_outbound(self, msg: OutboundMessage) -> None:
        await self.outbound.put(msg)

    async def consume_outbound(self) -> OutboundMessage:
        """Consume the next reply. Blocks until one is available."""
        return await self.outbound.get()
