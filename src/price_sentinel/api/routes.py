"""FastAPI route definitions for the price-sentinel API."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from fastapi.responses import PlainTextResponse, StreamingResponse

import price_sentinel
from price_sentinel.alerts.store import AlertStore
from price_sentinel.api.deps import (
    AppState,
    get_app_state,
    get_broadcaster,
    get_push,
    get_store,
)
from price_sentinel.api.schemas import (
    CreateAlertRequest,
    ErrorResponse,
    HealthResponse,
    SubscribeResponse,
    VapidKeyResponse,
    WebhookAck,
)
from price_sentinel.api.streaming import SSE_HEADERS, event_stream
from price_sentinel.core.models import (
    Alert,
    AlertAddedEvent,
    AlertRemovedEvent,
    PriceQuote,
    PushSubscription,
)
from price_sentinel.notify.broadcaster import LiveBroadcaster
from price_sentinel.notify.push import PushNotifier
from price_sentinel.prices.router import PriceRouter

logger = logging.getLogger(__name__)

# Mounted under /api
router = APIRouter()

# Mounted at the root: health, live stream, webhook
root_router = APIRouter()


# -- Alerts --


@router.get("/alerts", response_model=list[Alert])
async def list_alerts(store: AlertStore = Depends(get_store)):
    """Active alerts, newest first."""
    return store.list()


@router.post("/alerts", response_model=Alert, responses={400: {"model": ErrorResponse}})
async def create_alert(
    request: CreateAlertRequest,
    store: AlertStore = Depends(get_store),
    broadcaster: LiveBroadcaster = Depends(get_broadcaster),
):
    """Create an alert; invalid input raises AlertValidationError (400)."""
    alert = store.add(request.symbol, request.condition, request.price)
    broadcaster.broadcast(AlertAddedEvent(alert=alert))
    return alert


@router.delete("/alerts/{alert_id}", status_code=204, response_class=Response)
async def delete_alert(
    alert_id: str,
    store: AlertStore = Depends(get_store),
    broadcaster: LiveBroadcaster = Depends(get_broadcaster),
):
    """Delete an alert by id."""
    if not store.remove(alert_id):
        raise HTTPException(status_code=404, detail=f"Alert '{alert_id}' not found")
    broadcaster.broadcast(AlertRemovedEvent(id=alert_id))
    return Response(status_code=204)


# -- Prices --


@router.get("/price", response_model=PriceQuote, responses={502: {"model": ErrorResponse}})
async def get_price(
    symbol: str = Query(..., min_length=1, description="e.g. AAPL or BINANCE:BTCUSDT"),
    state: AppState = Depends(get_app_state),
):
    """Current price for one symbol; upstream failures surface as 502."""
    if isinstance(state.prices, PriceRouter):
        return await state.prices.get_quote(symbol)
    normalized = symbol.strip().upper()
    price = await state.prices.fetch_price(normalized)
    return PriceQuote(symbol=normalized, price=price, timestamp=datetime.now(tz=UTC))


# -- Push --


@router.post("/subscribe", response_model=SubscribeResponse, status_code=201)
async def subscribe_push(
    subscription: PushSubscription,
    push: PushNotifier = Depends(get_push),
):
    """Register the push target, replacing any previous one."""
    push.set_subscription(subscription)
    return SubscribeResponse(push_enabled=push.enabled)


@router.get("/vapidPublic", response_model=VapidKeyResponse)
async def vapid_public_key(push: PushNotifier = Depends(get_push)):
    """Public VAPID key the browser needs to create a push subscription."""
    return VapidKeyResponse(publicKey=push.public_key)


# -- Root --


@root_router.get("/", response_class=PlainTextResponse)
async def index():
    return "Trading Alerts Server is Running!"


@root_router.get("/health", response_model=HealthResponse)
async def health_check(state: AppState = Depends(get_app_state)):
    """Liveness plus the number of active alerts."""
    return HealthResponse(
        ok=True,
        alerts=len(state.store),
        version=price_sentinel.__version__,
        listeners=state.broadcaster.listener_count,
        poller_running=state.poller.running,
    )


@root_router.get("/sse")
async def live_events(state: AppState = Depends(get_app_state)):
    """Server-sent events: an ``init`` snapshot, then every fan-out event."""
    return StreamingResponse(
        event_stream(
            state.broadcaster,
            state.store,
            state.config.stream.keepalive_seconds,
        ),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )


@root_router.post("/alert", response_model=WebhookAck)
async def webhook(request: Request):
    """Accept an external signal (e.g. a charting webhook) and log it."""
    raw = await request.body()
    try:
        payload = json.loads(raw) if raw else None
    except ValueError:
        payload = raw.decode("utf-8", errors="replace")
    logger.info("Received webhook alert: %s", payload)
    return WebhookAck()
