"""End-to-end flows through the command channel and a mocked Socket.IO server."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from app.domain.classroom import ClassroomService
from app.realtime.channel import CommandChannel
from app.realtime.socketio import RealtimeRuntime, SocketIOTransport
from tests.fixtures.classroom_fixtures import ADMIN_CODE


def emitted(server: MagicMock, event: str) -> list:
    return [c for c in server.emit.await_args_list if c.args[0] == event]


async def join_admin(runtime: RealtimeRuntime, sid: str = "a1"):
    await runtime.channel.submit(sid, "join_room", {"name": "Teacher", "adminCode": ADMIN_CODE})


@pytest.fixture
async def runtime():
    live: set[str] = set()

    server = MagicMock()
    server.emit = AsyncMock()
    server.enter_room = AsyncMock()
    server.manager.is_connected = MagicMock(side_effect=lambda sid, ns: sid in live)

    transport = SocketIOTransport(server, room="classroom")
    classroom = ClassroomService(
        admin_secret=ADMIN_CODE,
        is_connected=transport.is_connected,
        kick_grace_seconds=0.02,
    )
    channel = CommandChannel(classroom.dispatch, transport.deliver)

    async def disconnect(sid: str, namespace: str = "/"):
        # What the Socket.IO server does: drop the socket, then fire the disconnect handler
        live.discard(sid)
        await channel.submit(sid, "disconnect")

    server.disconnect = AsyncMock(side_effect=disconnect)
    server.live = live

    runtime = RealtimeRuntime(
        server=server, transport=transport, classroom=classroom, channel=channel
    )
    channel.start()
    yield runtime
    await runtime.close()


class TestRealtimeFlow:
    async def test_join_enters_room_and_replies(self, runtime: RealtimeRuntime):
        server = runtime.server

        await join_admin(runtime)

        server.enter_room.assert_awaited_once_with("a1", "classroom", namespace="/")
        (reply,) = emitted(server, "join_success")
        assert reply.kwargs["to"] == "a1"
        assert reply.args[1]["role"] == "admin"

    async def test_kick_notifies_then_disconnects(self, runtime: RealtimeRuntime):
        # Arrange
        server = runtime.server
        server.live.update({"a1", "s1"})
        await join_admin(runtime)
        await runtime.channel.submit("s1", "join_room", {"name": "Bob"})

        # Act
        await runtime.channel.submit("a1", "kick_user", {"targetUserId": "s1"})

        # Assert: kicked first, participant still present during the grace period
        (kicked,) = emitted(server, "kicked")
        assert kicked.kwargs["to"] == "s1"
        assert kicked.args[1] == {"reason": "Removed by admin"}
        assert runtime.classroom.store.get("s1") is not None

        await asyncio.sleep(0.1)
        await runtime.channel.join()

        server.disconnect.assert_awaited_once_with("s1", namespace="/")
        assert runtime.classroom.store.get("s1") is None
        (left,) = emitted(server, "user_left")
        assert left.args[1] == {"userId": "s1"}
        assert left.kwargs["skip_sid"] == "s1"

    async def test_leave_session_disconnects_without_deadlock(self, runtime: RealtimeRuntime):
        server = runtime.server
        server.live.add("s1")
        await runtime.channel.submit("s1", "join_room", {"name": "Bob"})

        await runtime.channel.submit("s1", "leave_session")
        await asyncio.sleep(0.01)
        await runtime.channel.join()

        server.disconnect.assert_awaited_once_with("s1", namespace="/")
        assert runtime.classroom.store.participants == {}
        # The transport disconnect after an explicit leave finds nothing left to do
        assert len(emitted(server, "user_left")) == 1

    async def test_admin_disconnect_ends_session(self, runtime: RealtimeRuntime):
        server = runtime.server
        await join_admin(runtime)
        await runtime.channel.submit("s1", "join_room", {"name": "Bob"})
        await runtime.channel.submit("a1", "chat_message", {"message": "hi"})

        await runtime.channel.submit("a1", "disconnect")

        (ended,) = emitted(server, "session_ended")
        assert ended.kwargs["room"] == "classroom"
        assert ended.args[1] == {"reason": "Admin left the session"}
        assert runtime.classroom.state_summary().user_count == 0
