"""Live-update fan-out to server-sent-event listeners."""

from __future__ import annotations

import asyncio
import itertools
import logging
from collections.abc import Iterable

from price_sentinel.core.exceptions import DeliveryError
from price_sentinel.core.models import Alert, Event, InitEvent

logger = logging.getLogger(__name__)

# Queued after a listener is dropped so a waiting reader wakes up
_CLOSED = object()


class Subscription:
    """Handle for one live listener.

    Events are buffered in a bounded queue. The handle is a context
    manager: leaving the block (normally when the client disconnects)
    unregisters it from the broadcaster.
    """

    def __init__(self, broadcaster: LiveBroadcaster, listener_id: int, queue_size: int) -> None:
        self._broadcaster = broadcaster
        self.listener_id = listener_id
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=queue_size)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def _deliver(self, event: Event) -> None:
        if self._closed:
            raise DeliveryError(
                "listener is closed", context={"target": self.listener_id}
            )
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            raise DeliveryError(
                "listener queue is full", context={"target": self.listener_id}
            ) from None

    def _terminate(self) -> None:
        """Mark closed and wake any reader blocked in get()."""
        self._closed = True
        while not self._queue.empty():
            self._queue.get_nowait()
        self._queue.put_nowait(_CLOSED)

    async def get(self, timeout: float | None = None) -> Event | None:
        """Next event, or None on timeout or once the listener is closed."""
        if self._closed and self._queue.empty():
            return None
        try:
            item = await asyncio.wait_for(self._queue.get(), timeout)
        except TimeoutError:
            return None
        if item is _CLOSED:
            return None
        return item

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._broadcaster._unsubscribe(self.listener_id)

    def __enter__(self) -> Subscription:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def __aiter__(self) -> Subscription:
        return self

    async def __anext__(self) -> Event:
        event = await self.get()
        if event is None:
            raise StopAsyncIteration
        return event


class LiveBroadcaster:
    """Registry of live listeners with explicit add/remove lifecycle."""

    def __init__(self, queue_size: int = 100) -> None:
        self._queue_size = queue_size
        self._listeners: dict[int, Subscription] = {}
        self._ids = itertools.count(1)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def subscribe(self, snapshot: Iterable[Alert]) -> Subscription:
        """Register a listener whose first event is an ``init`` snapshot.

        Must be called without awaiting between taking ``snapshot`` and
        this call so no alert change can fall between the two.
        """
        sub = Subscription(self, next(self._ids), self._queue_size)
        sub._deliver(InitEvent(alerts=list(snapshot)))
        self._listeners[sub.listener_id] = sub
        logger.debug("Live listener %d subscribed (%d total)", sub.listener_id, self.listener_count)
        return sub

    def broadcast(self, event: Event) -> int:
        """Deliver ``event`` to every listener; returns how many received it.

        Listeners that are closed or too slow to drain their queue are
        dropped from the registry.
        """
        delivered = 0
        for listener_id, sub in list(self._listeners.items()):
            try:
                sub._deliver(event)
                delivered += 1
            except DeliveryError as e:
                logger.warning("Dropping live listener %d: %s", listener_id, e)
                self._listeners.pop(listener_id, None)
                sub._terminate()
        return delivered

    def _unsubscribe(self, listener_id: int) -> None:
        if self._listeners.pop(listener_id, None) is not None:
            logger.debug("Live listener %d unsubscribed (%d left)", listener_id, self.listener_count)
