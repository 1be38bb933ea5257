"""Server-sent events framing for the live-update stream."""

from __future__ import annotations

from collections.abc import AsyncIterator

from price_sentinel.alerts.store import AlertStore
from price_sentinel.core.models import Event
from price_sentinel.notify.broadcaster import LiveBroadcaster

KEEPALIVE_FRAME = ": keepalive\n\n"

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",  # Disable nginx buffering
}


def format_sse(event: Event) -> str:
    """One ``data:`` frame; the event type travels inside the JSON."""
    return f"data: {event.to_json()}\n\n"


async def event_stream(
    broadcaster: LiveBroadcaster,
    store: AlertStore,
    keepalive_seconds: float,
) -> AsyncIterator[str]:
    """Yield SSE frames for one client until it disconnects or is dropped.

    The subscription is opened on first iteration and closed when the
    generator is finalized, which Starlette does on client disconnect.
    """
    with broadcaster.subscribe(store.list()) as subscription:
        while True:
            event = await subscription.get(timeout=keepalive_seconds)
            if subscription.closed:
                break
            if event is None:
                yield KEEPALIVE_FRAME
                continue
            yield format_sse(event)
