#!/usr/bin/env python3
"""Tests for gateway routing and lifecycle helpers."""

import asyncio
import sys
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / "tools"))

from build_relay.bus import InboundMessage, MessageBus, OutboundMessage
from build_relay.config import RelayConfig
from build_relay.executors.base import Executor
from build_relay.gateway import (
    build_channels,
    executor_loop,
    handle_inbound,
    outbound_dispatcher,
    run_gateway,
)


class EchoExecutor(Executor):
    def __init__(self, reply=None, error=None):
        self.reply = reply
        self.error = error
        self.orders = []

    async def execute(self, order):
        self.orders.append(order)
        if self.error:
            raise self.error
        return {"success": self.reply is not None, "response_text": self.reply}


def inbound(content="/build x"):
    return InboundMessage(
        channel="telegram", sender_id="1", chat_id="2", content=content, message_id="3", thread_id="4"
    )


class TestHandleInbound:
    @pytest.mark.asyncio
    async def test_reply_published(self):
        bus = MessageBus()
        executor = EchoExecutor(reply="done")

        await handle_inbound(bus, executor, inbound())

        out = await bus.consume_outbound()
        assert out == OutboundMessage(
            channel="telegram", chat_id="2", content="done", reply_to="3", thread_id="4"
        )
        assert executor.orders[0]["payload"] == "/build x"
        assert executor.orders[0]["channel"] == "telegram"

    @pytest.mark.asyncio
    async def test_no_reply(self):
        bus = MessageBus()
        await handle_inbound(bus, EchoExecutor(reply=None), inbound("hello"))
        assert bus.outbound.empty()

    @pytest.mark.asyncio
    async def test_executor_exception_contained(self):
        bus = MessageBus()
        await handle_inbound(bus, EchoExecutor(error=RuntimeError("boom")), inbound())
        assert bus.outbound.empty()


class TestLoops:
    @pytest.mark.asyncio
    async def test_executor_loop_handles_messages_concurrently(self):
        bus = MessageBus()
        release = asyncio.Event()
        started = []

        class SlowExecutor(Executor):
            async def execute(self, order):
                started.append(order["payload"])
                await release.wait()
                return {"success": True, "response_text": order["payload"]}

        pending = set()
        loop_task = asyncio.create_task(executor_loop(bus, SlowExecutor(), pending))
        await bus.publish_inbound(inbound("one"))
        await bus.publish_inbound(inbound("two"))

        for _ in range(50):
            if len(started) == 2:
                break
            await asyncio.sleep(0.01)
        assert started == ["one", "two"]

        release.set()
        replies = {(await bus.consume_outbound()).content for _ in range(2)}
        assert replies == {"one", "two"}

        loop_task.cancel()
        await asyncio.gather(loop_task, return_exceptions=True)

    @pytest.mark.asyncio
    async def test_outbound_dispatcher_routes_by_channel(self):
        bus = MessageBus()
        telegram = MagicMock()
        telegram.send = AsyncMock(side_effect=[RuntimeError("send failed"), None])
        channels = {"telegram": telegram}

        task = asyncio.create_task(outbound_dispatcher(bus, channels))
        await bus.publish_outbound(OutboundMessage(channel="discord", chat_id="1", content="lost"))
        await bus.publish_outbound(OutboundMessage(channel="telegram", chat_id="1", content="first"))
        await bus.publish_outbound(OutboundMessage(channel="telegram", chat_id="1", content="second"))

        for _ in range(50):
            if telegram.send.await_count == 2:
                break
            await asyncio.sleep(0.01)

        task.cancel()
        await asyncio.gather(task, return_exceptions=True)

        contents = [c.args[0].content for c in telegram.send.await_args_list]
        assert contents == ["first", "second"]


class TestBuildChannels:
    def test_both_channels(self):
        config = RelayConfig(github_token="gh", telegram_token="tg", discord_token="dc")
        channels = build_channels(config, MessageBus())
        assert set(channels) == {"telegram", "discord"}
        assert all(name == ch.name for name, ch in channels.items())

    def test_placeholder_token_skipped(self):
        config = RelayConfig(github_token="gh", telegram_token="CHANGE-ME", discord_token="dc")
        assert set(build_channels(config, MessageBus())) == {"discord"}


class TestRunGateway:
    @pytest.mark.asyncio
    async def test_test_mode(self, capsys):
        config = RelayConfig(github_token="gh", telegram_token="tg")
        await run_gateway(config, test_mode=True)

        out = capsys.readouterr().out
        assert "Channels: telegram" in out
        assert "ethpandaops/eth-client-docker-image-builder@master" in out
        assert "Config valid" in out

    @pytest.mark.asyncio
    async def test_no_channels(self, capsys):
        await run_gateway(RelayConfig(github_token="gh"), test_mode=True)
        assert "Config valid" not in capsys.readouterr().out
