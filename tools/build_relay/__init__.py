"""
Build Relay - chat commands in, GitHub Actions image builds out.

Listens for ``/build <github tree url>`` on Telegram and Discord, maps the
repository (or the repository a fork was made from) to its build workflow,
dispatches the workflow and replies with the run link and the Docker image
tag(s) the run will push.

Architecture:
    Channel (frontend) → MessageBus → BuildDispatcher → MessageBus → Channel

Components:
    - BaseChannel: Abstract interface for chat platforms (Telegram, Discord)
    - MessageBus: Async queue-based message routing (inbound/outbound)
    - BuildDispatcher: Parses, resolves and triggers builds
    - GitHubClient: Repository lookup, workflow dispatch, run listing
    - Gateway: Orchestrates channels + dispatcher via asyncio

Usage:
    from build_relay.config import load_config
    from build_relay.gateway import run_gateway

    asyncio.run(run_gateway(load_config()))
"""

__version__ = "0.1.0"

from .bus import MessageBus, InboundMessage, OutboundMessage
from .channels.base import BaseChannel
from .executors.base import Executor

__all__ = [
    "MessageBus",
    "InboundMessage",
    "OutboundMessage",
    "BaseChannel",
    "Executor",
]
