"""Socket.IO server for the classroom.

Current frontend convention:
- URL base: ws://<host>:<API_PORT>
- Socket.IO path: /socket.io
- Every participant sits in one logical room (``CLASSROOM_ROOM``)

Handlers here only forward events to the command channel. Delivery of the
resulting effects goes through ``SocketIOTransport``.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any

import socketio
from loguru import logger

from app.app_config import AppEnvironConfig
from app.domain.classroom import (
    Broadcast,
    BroadcastScope,
    ClassroomService,
    Disconnect,
    Effect,
    EnterRoom,
    InboundEvent,
)

from .channel import CommandChannel

DEFAULT_NAMESPACE = "/"


def create_sio_server(cors_origins: list[str]) -> socketio.AsyncServer:
    allowed: str | list[str] = "*" if "*" in cors_origins else cors_origins
    return socketio.AsyncServer(
        async_mode="asgi",
        cors_allowed_origins=allowed,
        logger=False,
        engineio_logger=False,
    )


class SocketIOTransport:
    """Delivers classroom effects through a Socket.IO server."""

    def __init__(
        self,
        server: socketio.AsyncServer,
        room: str = "classroom",
        namespace: str = DEFAULT_NAMESPACE,
    ) -> None:
        self._server = server
        self._room = room
        self._namespace = namespace
        self._pending: set[asyncio.Task[None]] = set()

    @property
    def room(self) -> str:
        return self._room

    def is_connected(self, sid: str) -> bool:
        return bool(self._server.manager.is_connected(sid, self._namespace))

    async def deliver(self, effects: list[Effect]) -> None:
        for effect in effects:
            if isinstance(effect, Broadcast):
                await self._emit(effect)
            elif isinstance(effect, EnterRoom):
                await self._server.enter_room(
                    effect.participant_id, self._room, namespace=self._namespace
                )
            elif isinstance(effect, Disconnect):
                self._schedule_disconnect(effect.participant_id, effect.delay)
            else:
                logger.warning(f"Unknown effect type: {type(effect).__name__}")

    async def _emit(self, broadcast: Broadcast) -> None:
        event = str(broadcast.event)

        if broadcast.scope == BroadcastScope.DIRECT:
            await self._server.emit(
                event, broadcast.payload, to=broadcast.target, namespace=self._namespace
            )
        elif broadcast.scope == BroadcastScope.ROOM_EXCEPT:
            await self._server.emit(
                event,
                broadcast.payload,
                room=self._room,
                skip_sid=broadcast.target,
                namespace=self._namespace,
            )
        else:
            await self._server.emit(
                event, broadcast.payload, room=self._room, namespace=self._namespace
            )

    def _schedule_disconnect(self, sid: str, delay: float) -> None:
        # Always a separate task: the disconnect handler submits to the command
        # channel, which is busy delivering this very batch.
        task = asyncio.create_task(self._disconnect_later(sid, delay))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _disconnect_later(self, sid: str, delay: float) -> None:
        if delay > 0:
            await asyncio.sleep(delay)
        try:
            await self._server.disconnect(sid, namespace=self._namespace)
            logger.debug(f"Forced disconnect of {sid}")
        except Exception:
            logger.exception(f"Failed to disconnect {sid}")

    async def close(self) -> None:
        for task in list(self._pending):
            task.cancel()
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)


def register_handlers(server: socketio.AsyncServer, channel: CommandChannel) -> None:
    """Forward every classroom event received by ``server`` to ``channel``."""

    async def connect(sid: str, environ: dict[str, Any], auth: Any | None = None):
        logger.info(f"User connected: {sid}")

    async def disconnect(sid: str, *args: Any):
        logger.info(f"User disconnected: {sid}")
        await channel.submit(sid, InboundEvent.DISCONNECT.value)

    server.on("connect", handler=connect)
    server.on("disconnect", handler=disconnect)

    for event in InboundEvent.client_events():
        server.on(event.value, handler=_forwarder(channel, event.value))


def _forwarder(channel: CommandChannel, event: str):
    async def handler(sid: str, data: Any = None):
        await channel.submit(sid, event, data)

    handler.__name__ = f"on_{event}"
    return handler


@dataclass
class RealtimeRuntime:
    server: socketio.AsyncServer
    transport: SocketIOTransport
    classroom: ClassroomService
    channel: CommandChannel

    async def close(self) -> None:
        await self.channel.stop()
        await self.transport.close()
        self.classroom.close()


def build_realtime(cfg: AppEnvironConfig) -> RealtimeRuntime:
    server = create_sio_server(cfg.API_CORS_ORIGINS)
    transport = SocketIOTransport(server, room=cfg.CLASSROOM_ROOM)
    classroom = ClassroomService(
        admin_secret=cfg.CLASSROOM_ADMIN_CODE,
        is_connected=transport.is_connected,
        kick_grace_seconds=cfg.KICK_GRACE_SECONDS,
    )
    channel = CommandChannel(classroom.dispatch, transport.deliver)
    register_handlers(server, channel)

    return RealtimeRuntime(
        server=server,
        transport=transport,
        classroom=classroom,
        channel=channel,
    )
