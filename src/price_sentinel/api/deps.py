"""Dependency injection for FastAPI routes."""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Request
from fastapi.responses import JSONResponse

from price_sentinel.alerts.poller import AlertPoller
from price_sentinel.alerts.store import AlertStore
from price_sentinel.core.config import SentinelConfig
from price_sentinel.notify.broadcaster import LiveBroadcaster
from price_sentinel.notify.push import PushNotifier
from price_sentinel.prices.provider import PriceSource


@dataclass
class AppState:
    """Shared application state, attached to app.state during lifespan."""

    config: SentinelConfig
    store: AlertStore
    prices: PriceSource
    broadcaster: LiveBroadcaster
    push: PushNotifier
    poller: AlertPoller


def get_app_state(request: Request) -> AppState:
    """Dependency: retrieve AppState from the request."""
    return request.app.state.app_state


def get_store(request: Request) -> AlertStore:
    """Dependency: retrieve the alert store."""
    return request.app.state.app_state.store


def get_broadcaster(request: Request) -> LiveBroadcaster:
    """Dependency: retrieve the live-update broadcaster."""
    return request.app.state.app_state.broadcaster


def get_push(request: Request) -> PushNotifier:
    """Dependency: retrieve the push notifier."""
    return request.app.state.app_state.push


# Browser-facing endpoints that cannot attach custom headers
EXEMPT_PATHS = {"/", "/health", "/sse", "/api/vapidPublic", "/alert"}


async def api_key_middleware(request: Request, call_next):  # type: ignore[no-untyped-def]
    """Middleware: validate X-API-Key header when authentication is enabled."""
    if request.url.path in EXEMPT_PATHS:
        return await call_next(request)

    config = request.app.state.app_state.config
    if config.api.api_key:
        api_key = request.headers.get("X-API-Key")
        if api_key != config.api.api_key:
            return JSONResponse(
                status_code=401,
                content={"error": "Unauthorized", "detail": "Invalid or missing API key"},
            )
    return await call_next(request)
