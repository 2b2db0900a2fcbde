"""Base channel interface for the build relay gateway.

All chat transports (Telegram, Discord) inherit from BaseChannel.
"""

from abc import ABC, abstractmethod
from typing import Optional, Dict, Any

from build_relay.bus import MessageBus, InboundMessage, OutboundMessage
from build_relay.config import RelayConfig


class BaseChannel(ABC):
    """Abstract base class for chat transports.

    A channel only converts platform messages into InboundMessage and
    delivers OutboundMessage replies; it never interprets commands.

    Architecture:
        User → Channel.start() → _handle_message() → MessageBus → Executor
        Executor → MessageBus → Channel.send() → User
    """

    def __init__(self, config: RelayConfig, bus: MessageBus):
        self.config = config
        self.bus = bus

    @property
    def name(self) -> str:
        return self.__class__.__name__.replace("Channel", "").lower()

    @abstractmethod
    async def start(self) -> None:
        """Connect to the platform and begin receiving messages."""
        pass

    @abstractmethod
    async def stop(self) -> None:
        """Disconnect and release platform resources. Must be idempotent."""
        pass

    @abstractmethod
    async def send(self, msg: OutboundMessage) -> None:
        """Deliver a reply via the platform API."""
        pass

    async def _handle_message(
        self,
        sender_id: str,
        chat_id: str,
        content: str,
        message_id: Optional[str] = None,
        thread_id: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Wrap a platform message in an InboundMessage and publish it.

        Call this from platform-specific message handlers.
        """
        msg = InboundMessage(
            channel=self.name,
            sender_id=sender_id,
            chat_id=chat_id,
            content=content,
            message_id=message_id,
            thread_id=thread_id,
            metadata=metadata or {},
        )
        await self.bus.publish_inbound(msg)
