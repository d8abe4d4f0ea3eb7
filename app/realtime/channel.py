"""Inbound command channel.

Socket.IO callbacks do not touch the classroom directly. They submit a command
and wait for it to be processed; a single worker task drains the queue, runs
the synchronous dispatch to completion and then delivers the resulting effects.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from loguru import logger

from app.domain.classroom import Effect

Dispatch = Callable[[str, str, Any], list[Effect]]
Deliver = Callable[[list[Effect]], Awaitable[None]]


@dataclass
class Command:
    sender_id: str
    event: str
    payload: Any = None
    future: asyncio.Future[list[Effect]] = field(default=None)  # type: ignore[assignment]


class CommandChannel:
    def __init__(self, dispatch: Dispatch, deliver: Deliver) -> None:
        self._dispatch = dispatch
        self._deliver = deliver
        self._queue: asyncio.Queue[Command | None] | None = None
        self._worker: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    def start(self) -> None:
        if self._queue is None:
            self._queue = asyncio.Queue()
        if not self.running:
            self._worker = asyncio.create_task(self._run(), name="classroom-command-worker")
            logger.info("Command channel worker started")

    async def stop(self) -> None:
        if not self.running or self._queue is None:
            return

        await self._queue.put(None)
        await self._worker  # type: ignore[misc]
        logger.info("Command channel worker stopped")

    async def submit(self, sender_id: str, event: str, payload: Any = None) -> list[Effect]:
        """Queue one inbound event and wait until it has been applied and delivered."""
        self.start()
        assert self._queue is not None

        command = Command(
            sender_id=sender_id,
            event=str(event),
            payload=payload,
            future=asyncio.get_running_loop().create_future(),
        )
        await self._queue.put(command)
        return await command.future

    async def join(self) -> None:
        """Wait until every queued command has been processed."""
        if self._queue is not None:
            await self._queue.join()

    async def _run(self) -> None:
        assert self._queue is not None

        while True:
            command = await self._queue.get()
            try:
                if command is None:
                    return
                effects = self._process(command)
                await self._deliver_safely(command, effects)
                if not command.future.done():
                    command.future.set_result(effects)
            finally:
                self._queue.task_done()

    def _process(self, command: Command) -> list[Effect]:
        try:
            return self._dispatch(command.sender_id, command.event, command.payload)
        except Exception:
            logger.exception(
                f"Unhandled error dispatching {command.event} from {command.sender_id}"
            )
            return []

    async def _deliver_safely(self, command: Command, effects: list[Effect]) -> None:
        if not effects:
            return
        try:
            await self._deliver(effects)
        except Exception:
            logger.exception(
                f"Unhandled error delivering effects of {command.event} from {command.sender_id}"
            )
