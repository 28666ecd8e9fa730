"""In-process event bus for workflow SystemEvents.

The workflow engine and FSM publish events; the structured audit log
subscribes at startup. Publishing never waits on subscribers: events go onto
an asyncio queue drained by one background worker.

Usage:
    from src.events import emit

    await emit(SystemEvent(
        event_type=EventType.DEBT_STATUS_CHANGED,
        debt_id=debt.id,
        data={"from": "wachtend", "to": "afbetaald"},
    ))

    from src.events import subscribe

    subscribe(handler)                                   # every event
    subscribe(handler, [EventType.WRITE_FAILED])         # only these types
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable, Coroutine, Iterable
from typing import Any

from src.schemas.events import EventType, SystemEvent

logger = logging.getLogger(__name__)

EventHandler = Callable[[SystemEvent], Coroutine[Any, Any, None]]


class EventBus:
    """Queue-backed pub/sub. One worker task delivers events in publish order."""

    def __init__(self) -> None:
        # None key = subscribed to every event type
        self._handlers: dict[EventType | None, list[EventHandler]] = {}
        self._queue: asyncio.Queue[SystemEvent] | None = None
        self._worker: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    def subscribe(self, handler: EventHandler, event_types: Iterable[EventType] | None = None) -> None:
        keys: list[EventType | None] = [None] if event_types is None else list(event_types)
        for key in keys:
            self._handlers.setdefault(key, []).append(handler)
        logger.info(
            "Subscribed %s to %s",
            handler.__name__,
            "all events" if event_types is None else [k.value for k in keys if k is not None],
        )

    def unsubscribe(self, handler: EventHandler) -> None:
        for handlers in self._handlers.values():
            while handler in handlers:
                handlers.remove(handler)

    def handlers_for(self, event_type: EventType) -> list[EventHandler]:
        return [*self._handlers.get(None, []), *self._handlers.get(event_type, [])]

    async def publish(self, event: SystemEvent) -> None:
        if not self.running:
            self.start()
        assert self._queue is not None
        await self._queue.put(event)
        logger.debug("Event queued: %s (debt=%s)", event.event_type.value, event.debt_id)

    def start(self) -> None:
        if self._queue is None:
            self._queue = asyncio.Queue()
        if not self.running:
            self._worker = asyncio.create_task(self._drain(), name="event-bus")
            logger.info("Event worker started")

    async def stop(self) -> None:
        """Deliver what is queued, then cancel the worker."""
        if self._queue is not None and self.running:
            await self._queue.join()
        if self._worker is not None:
            self._worker.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._worker
        self._worker = None
        self._queue = None

    async def deliver(self, event: SystemEvent) -> int:
        """Run every matching handler in turn. Returns the number that failed."""
        failures = 0
        for handler in self.handlers_for(event.event_type):
            try:
                await handler(event)
            except Exception:
                failures += 1
                logger.exception("Handler %s failed for %s", handler.__name__, event.event_type.value)
        return failures

    async def _drain(self) -> None:
        assert self._queue is not None
        queue = self._queue
        while True:
            event = await queue.get()
            try:
                await self.deliver(event)
            finally:
                queue.task_done()


_bus = EventBus()


def subscribe(handler: EventHandler, event_types: Iterable[EventType] | None = None) -> None:
    """Register an async handler for all events, or only for `event_types`."""
    _bus.subscribe(handler, event_types)


def unsubscribe(handler: EventHandler) -> None:
    _bus.unsubscribe(handler)


async def emit(event: SystemEvent) -> None:
    """Queue an event for asynchronous delivery."""
    await _bus.publish(event)


async def start_event_system() -> None:
    """Start the worker. Called from the FastAPI lifespan."""
    _bus.start()
    logger.info("Event system started")


async def stop_event_system() -> None:
    await _bus.stop()
    logger.info("Event system stopped")
