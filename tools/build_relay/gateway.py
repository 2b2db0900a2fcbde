#!/usr/bin/env python3
"""Build relay gateway - unified multi-channel entry point.

Routes chat commands from Telegram and Discord to the BuildDispatcher via
an async MessageBus, and routes its replies back.

Usage:
    build-relay
    build-relay --config relay.json --log-level DEBUG
    build-relay --test-mode

Architecture:
    Channel → MessageBus.inbound → executor_loop → MessageBus.outbound → outbound_dispatcher → Channel
"""

import argparse
import asyncio
import logging
import signal
import sys
from typing import Any, Dict, Optional, Set

from build_relay.bus import InboundMessage, MessageBus
from build_relay.config import RelayConfig, load_config
from build_relay.errors import ConfigError
from build_relay.executors.base import Executor
from build_relay.executors.dispatcher import BuildDispatcher
from build_relay.github import GitHubClient

logger = logging.getLogger("build_relay.gateway")


async def handle_inbound(bus: MessageBus, executor: Executor, msg: InboundMessage):
    """Run one inbound message through the executor and queue any reply."""
    try:
        result = await executor.execute(
            {
                "payload": msg.content,
                "sender_id": msg.sender_id,
                "chat_id": msg.chat_id,
                "channel": msg.channel,
            }
        )
    except Exception as e:
        logger.error(f"Executor error for [{msg.channel}:{msg.chat_id}]: {e}", exc_info=True)
        return

    if result.get("response_text"):
        await bus.publish_outbound(msg.reply(result["response_text"]))
    if result.get("error"):
        logger.debug(f"Execution error [{msg.channel}:{msg.chat_id}]: {result['error']}")


async def executor_loop(bus: MessageBus, executor: Executor, pending: Optional[Set[asyncio.Task]] = None):
    """Consume inbound messages, handling each one in its own task.

    Args:
        bus: MessageBus instance
        executor: Executor that turns messages into replies
        pending: Set that tracks in-flight tasks so shutdown can cancel them
    """
    pending = pending if pending is not None else set()
    while True:
        msg = await bus.consume_inbound()
        logger.debug(f"Processing: [{msg.channel}:{msg.chat_id}] {msg.content[:80]}")

        task = asyncio.create_task(handle_inbound(bus, executor, msg))
        pending.add(task)
        task.add_done_callback(pending.discard)


async def outbound_dispatcher(bus: MessageBus, channels: Dict[str, Any]):
    """Consume outbound messages and route to the originating channel."""
    while True:
        msg = await bus.consume_outbound()

        channel = channels.get(msg.channel)
        if channel:
            try:
                await channel.send(msg)
                logger.debug(f"Dispatched to {msg.channel}: {msg.content[:80]}")
            except Exception as e:
                logger.error(f"Dispatch error [{msg.channel}]: {e}")
        else:
            logger.warning(f"No channel '{msg.channel}' for outbound message")


def build_channels(config: RelayConfig, bus: MessageBus) -> Dict[str, Any]:
    """Instantiate the channels that have a usable token.

    Returns dict of {channel_name: channel_instance}.
    """
    channels = {}

    if config.telegram_enabled:
        from build_relay.channels.telegram import TelegramChannel

        channels["telegram"] = TelegramChannel(config, bus)
        logger.info("Telegram channel enabled")

    if config.discord_enabled:
        from build_relay.channels.discord import DiscordChannel

        channels["discord"] = DiscordChannel(config, bus)
        logger.info("Discord channel enabled")

    return channels


async def run_gateway(config: RelayConfig, test_mode: bool = False):
    """Main gateway coroutine.

    Args:
        config: Relay configuration
        test_mode: If True, validate config and exit without starting
    """
    bus = MessageBus()
    channels = build_channels(config, bus)

    if not channels:
        logger.error("No channels configured. Set TELEGRAM_TOKEN or DISCORD_TOKEN.")
        return

    if test_mode:
        channel_names = ", ".join(channels.keys())
        print("Build relay - test mode")
        print(f"  Channels: {channel_names}")
        print(f"  Build repo: {config.build_org}/{config.build_repo}@{config.build_ref}")
        print(f"  Commands: {' '.join(config.commands)}")
        print("Config valid. Exiting test mode.")
        return

    github = GitHubClient(config)
    executor = BuildDispatcher(config, github)

    # Graceful shutdown
    shutdown_event = asyncio.Event()

    def signal_handler():
        logger.info("Shutdown signal received")
        shutdown_event.set()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, signal_handler)

    channel_names = ", ".join(channels.keys())
    logger.info(f"Build relay starting - channels: {channel_names}")

    tasks = []
    pending: Set[asyncio.Task] = set()
    try:
        for name, channel in channels.items():
            await channel.start()
            logger.info(f"  ✓ {name} channel started")

        tasks.append(asyncio.create_task(executor_loop(bus, executor, pending)))
        tasks.append(asyncio.create_task(outbound_dispatcher(bus, channels)))

        logger.info("Build relay online")

        await shutdown_event.wait()

    finally:
        logger.info("Shutting down...")

        for task in [*tasks, *pending]:
            task.cancel()

        for name, channel in channels.items():
            try:
                await channel.stop()
                logger.info(f"  ✓ {name} channel stopped")
            except Exception as e:
                logger.error(f"  ✗ {name} stop error: {e}")

        await github.close()
        logger.info("Build relay offline")


def main():
    parser = argparse.ArgumentParser(
        prog="build-relay",
        description="Trigger Docker image builds from Telegram and Discord commands",
        usage="%(prog)s [options]",
    )
    parser.add_argument(
        "--config",
        "-c",
        default=None,
        help="Path to a JSON config file (tokens may also come from the environment)",
    )
    parser.add_argument(
        "--test-mode",
        "-t",
        action="store_true",
        help="Validate config and exit without starting",
    )
    parser.add_argument(
        "--log-level",
        "-l",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    try:
        config = load_config(args.config)
    except ConfigError as e:
        print(f"Error: {e}")
        sys.exit(1)

    try:
        asyncio.run(run_gateway(config, test_mode=args.test_mode))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
