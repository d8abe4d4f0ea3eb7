"""Tests for Socket.IO effect delivery and handler registration."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
import socketio

from app.domain.classroom import Broadcast, Disconnect, EnterRoom, InboundEvent, OutboundEvent
from app.realtime.channel import CommandChannel
from app.realtime.socketio import SocketIOTransport, create_sio_server, register_handlers


@pytest.fixture
def server() -> MagicMock:
    server = MagicMock()
    server.emit = AsyncMock()
    server.enter_room = AsyncMock()
    server.disconnect = AsyncMock()
    server.manager.is_connected = MagicMock(return_value=True)
    return server


@pytest.fixture
def transport(server: MagicMock) -> SocketIOTransport:
    return SocketIOTransport(server, room="classroom")


class TestDeliver:
    async def test_direct_broadcast(self, server: MagicMock, transport: SocketIOTransport):
        await transport.deliver([Broadcast.direct("s1", OutboundEvent.KICKED, {"reason": "x"})])

        server.emit.assert_awaited_once_with("kicked", {"reason": "x"}, to="s1", namespace="/")

    async def test_room_except_sender(self, server: MagicMock, transport: SocketIOTransport):
        payload = {"userId": "s1"}

        await transport.deliver([Broadcast.to_others("s1", OutboundEvent.USER_LEFT, payload)])

        server.emit.assert_awaited_once_with(
            "user_left", payload, room="classroom", skip_sid="s1", namespace="/"
        )

    async def test_whole_room(self, server: MagicMock, transport: SocketIOTransport):
        await transport.deliver([Broadcast.to_room(OutboundEvent.CLEAR_CANVAS)])

        server.emit.assert_awaited_once_with("clear_canvas", None, room="classroom", namespace="/")

    async def test_enter_room(self, server: MagicMock, transport: SocketIOTransport):
        await transport.deliver([EnterRoom("s1")])

        server.enter_room.assert_awaited_once_with("s1", "classroom", namespace="/")

    async def test_effects_delivered_in_order(
        self, server: MagicMock, transport: SocketIOTransport
    ):
        order: list[str] = []
        server.enter_room.side_effect = lambda *args, **kwargs: order.append("enter")
        server.emit.side_effect = lambda event, *args, **kwargs: order.append(event)

        await transport.deliver(
            [
                EnterRoom("s1"),
                Broadcast.direct("s1", OutboundEvent.JOIN_SUCCESS, {}),
                Broadcast.to_others("s1", OutboundEvent.USER_JOINED, {}),
            ]
        )

        assert order == ["enter", "join_success", "user_joined"]


class TestDisconnect:
    async def test_disconnect_runs_in_background(
        self, server: MagicMock, transport: SocketIOTransport
    ):
        # Act
        await transport.deliver([Disconnect("s1")])

        # Assert: not awaited inline
        server.disconnect.assert_not_awaited()
        await asyncio.sleep(0.01)
        server.disconnect.assert_awaited_once_with("s1", namespace="/")

    async def test_disconnect_waits_for_grace(
        self, server: MagicMock, transport: SocketIOTransport
    ):
        await transport.deliver([Disconnect("s1", delay=0.05)])

        await asyncio.sleep(0.01)
        server.disconnect.assert_not_awaited()

        await asyncio.sleep(0.1)
        server.disconnect.assert_awaited_once()

    async def test_close_cancels_pending(self, server: MagicMock, transport: SocketIOTransport):
        await transport.deliver([Disconnect("s1", delay=10)])

        await transport.close()

        server.disconnect.assert_not_awaited()

    async def test_disconnect_failure_is_logged(
        self, server: MagicMock, transport: SocketIOTransport
    ):
        server.disconnect.side_effect = RuntimeError("already gone")

        await transport.deliver([Disconnect("s1")])
        await asyncio.sleep(0.01)

        server.disconnect.assert_awaited_once()

    def test_is_connected_asks_manager(self, server: MagicMock, transport: SocketIOTransport):
        server.manager.is_connected.return_value = False

        assert transport.is_connected("s1") is False
        server.manager.is_connected.assert_called_once_with("s1", "/")


class TestRegisterHandlers:
    def test_all_events_registered(self):
        server = create_sio_server(["*"])
        channel = CommandChannel(MagicMock(return_value=[]), AsyncMock())

        register_handlers(server, channel)

        handlers = server.handlers["/"]
        assert "connect" in handlers
        assert "disconnect" in handlers
        for event in InboundEvent.client_events():
            assert event.value in handlers

    async def test_forwarder_submits_to_channel(self):
        server = create_sio_server(["*"])
        channel = MagicMock()
        channel.submit = AsyncMock(return_value=[])
        register_handlers(server, channel)

        await server.handlers["/"]["chat_message"]("s1", {"message": "hi"})
        await server.handlers["/"]["disconnect"]("s1", "client disconnect")

        channel.submit.assert_any_await("s1", "chat_message", {"message": "hi"})
        channel.submit.assert_any_await("s1", "disconnect")

    def test_server_is_asgi(self):
        server = create_sio_server(["http://localhost:3000"])

        assert isinstance(server, socketio.AsyncServer)
        assert server.async_mode == "asgi"
