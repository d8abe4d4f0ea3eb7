"""Tests for the single-worker command channel."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from app.domain.classroom import Broadcast, OutboundEvent
from app.realtime.channel import CommandChannel


@pytest.fixture
def deliver() -> AsyncMock:
    return AsyncMock()


class TestSubmit:
    async def test_submit_dispatches_and_delivers(self, deliver: AsyncMock):
        # Arrange
        effects = [Broadcast.to_room(OutboundEvent.CLEAR_CANVAS)]
        dispatch = MagicMock(return_value=effects)
        channel = CommandChannel(dispatch, deliver)

        # Act
        result = await channel.submit("a1", "clear_canvas", None)

        # Assert
        assert result == effects
        dispatch.assert_called_once_with("a1", "clear_canvas", None)
        deliver.assert_awaited_once_with(effects)
        await channel.stop()

    async def test_empty_effects_are_not_delivered(self, deliver: AsyncMock):
        channel = CommandChannel(MagicMock(return_value=[]), deliver)

        assert await channel.submit("s1", "unknown") == []

        deliver.assert_not_awaited()
        await channel.stop()

    async def test_commands_run_one_at_a_time_in_order(self):
        """Delivery of one command finishes before the next command is dispatched."""
        log: list[str] = []

        def dispatch(sender_id, event, payload):
            log.append(f"dispatch:{payload}")
            return [Broadcast.to_room(OutboundEvent.NEW_MESSAGE, {"n": payload})]

        async def deliver(effects):
            await asyncio.sleep(0.01)
            log.append(f"deliver:{effects[0].payload['n']}")

        channel = CommandChannel(dispatch, deliver)

        await asyncio.gather(*(channel.submit("s1", "chat_message", n) for n in range(3)))

        assert log == [
            "dispatch:0",
            "deliver:0",
            "dispatch:1",
            "deliver:1",
            "dispatch:2",
            "deliver:2",
        ]
        await channel.stop()


class TestFailures:
    async def test_dispatch_error_keeps_worker_alive(self, deliver: AsyncMock):
        dispatch = MagicMock(side_effect=[RuntimeError("boom"), []])
        channel = CommandChannel(dispatch, deliver)

        assert await channel.submit("s1", "chat_message", {"message": "x"}) == []
        assert await channel.submit("s1", "chat_message", {"message": "y"}) == []
        assert channel.running is True

        await channel.stop()

    async def test_delivery_error_still_returns_effects(self):
        effects = [Broadcast.direct("s1", OutboundEvent.KICKED, {"reason": "x"})]
        deliver = AsyncMock(side_effect=ConnectionError("gone"))
        channel = CommandChannel(MagicMock(return_value=effects), deliver)

        assert await channel.submit("a1", "kick_user") == effects
        assert channel.running is True

        await channel.stop()


class TestLifecycle:
    async def test_stop_ends_worker(self, deliver: AsyncMock):
        channel = CommandChannel(MagicMock(return_value=[]), deliver)
        channel.start()
        assert channel.running is True

        await channel.stop()

        assert channel.running is False

    async def test_stop_without_start_is_noop(self, deliver: AsyncMock):
        channel = CommandChannel(MagicMock(return_value=[]), deliver)

        await channel.stop()

        assert channel.running is False

    async def test_join_waits_for_queue(self, deliver: AsyncMock):
        dispatch = MagicMock(return_value=[])
        channel = CommandChannel(dispatch, deliver)

        pending = asyncio.ensure_future(channel.submit("s1", "leave_session"))
        await asyncio.sleep(0)
        await channel.join()

        assert dispatch.call_count == 1
        await pending
        await channel.stop()
