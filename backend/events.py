"""
In-process event bus.

Stores publish domain events after a successful write; handlers run on a
single background worker, detached from the request that produced the event.
A failing handler is logged and skipped, never retried. Handlers see the
request id that was bound when the event was published.
"""
from __future__ import annotations
import asyncio
import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from logging_config import request_id_var
from schemas import CustomerRequest

logger = logging.getLogger("okna-events")


@dataclass(frozen=True)
class RequestCreated:
    request: CustomerRequest


Handler = Callable[[object], Awaitable[None]]


class EventBus:

    def __init__(self):
        self._queue: asyncio.Queue = asyncio.Queue()
        self._handlers: dict[type, list[Handler]] = defaultdict(list)
        self._worker: Optional[asyncio.Task] = None

    def subscribe(self, event_type: type, handler: Handler) -> None:
        self._handlers[event_type].append(handler)

    def publish(self, event: object) -> None:
        """Queue ``event`` for delivery. Never blocks and never raises."""
        try:
            self._queue.put_nowait((event, request_id_var.get()))
        except Exception:
            logger.exception("Failed to queue %s", type(event).__name__)

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    async def start(self) -> None:
        if not self.running:
            self._worker = asyncio.create_task(self._run(), name="event-bus")

    async def stop(self) -> None:
        """Deliver what is already queued, then stop the worker."""
        if not self.running:
            return
        await self.drain()
        self._worker.cancel()
        try:
            await self._worker
        except asyncio.CancelledError:
            pass
        self._worker = None

    async def drain(self) -> None:
        await self._queue.join()

    async def _run(self) -> None:
        while True:
            event, request_id = await self._queue.get()
            token = request_id_var.set(request_id)
            try:
                await self._dispatch(event)
            finally:
                request_id_var.reset(token)
                self._queue.task_done()

    async def _dispatch(self, event: object) -> None:
        for handler in self._handlers.get(type(event), []):
            try:
                await handler(event)
            except Exception:
                logger.exception(
                    "Handler %s failed for %s",
                    getattr(handler, "__qualname__", repr(handler)),
                    type(event).__name__,
                )
