"""FastAPI application factory."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from price_sentinel.alerts.poller import AlertPoller
from price_sentinel.alerts.store import AlertStore
from price_sentinel.api.deps import AppState, api_key_middleware
from price_sentinel.api.routes import root_router, router
from price_sentinel.core.config import SentinelConfig, load_config
from price_sentinel.core.exceptions import (
    AlertValidationError,
    ConfigError,
    FetchError,
    PriceSentinelError,
)
from price_sentinel.notify.broadcaster import LiveBroadcaster
from price_sentinel.notify.push import PushNotifier
from price_sentinel.prices.provider import PriceSource
from price_sentinel.prices.router import PriceRouter

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup/shutdown lifecycle."""
    config: SentinelConfig = app.state._pending_config
    prices: PriceSource | None = app.state._pending_price_source
    router_: PriceRouter | None = None
    if prices is None:
        router_ = PriceRouter(config.provider)
        prices = router_

    store = AlertStore()
    broadcaster = LiveBroadcaster(queue_size=config.stream.queue_size)
    push = PushNotifier(config.push)
    poller = AlertPoller(
        store=store,
        prices=prices,
        broadcaster=broadcaster,
        push=push,
        interval_seconds=config.poller.interval_seconds,
    )

    app.state.app_state = AppState(
        config=config,
        store=store,
        prices=prices,
        broadcaster=broadcaster,
        push=push,
        poller=poller,
    )

    if config.poller.enabled:
        poller.start()

    try:
        yield
    finally:
        await poller.stop()
        if router_ is not None:
            await router_.close()


def create_app(
    config: SentinelConfig | None = None,
    price_source: PriceSource | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    ``price_source`` replaces the default PriceRouter (used by tests and
    by embedders that bring their own quote feed).
    """
    import price_sentinel

    if config is None:
        config = load_config()

    app = FastAPI(
        title="Price Sentinel API",
        description="Threshold price alerts with live and push notifications",
        version=price_sentinel.__version__,
        lifespan=lifespan,
    )

    # Stash constructor arguments so lifespan can retrieve them
    app.state._pending_config = config
    app.state._pending_price_source = price_source

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Optional API key middleware
    if config.api.api_key:
        app.middleware("http")(api_key_middleware)

    app.include_router(router, prefix="/api")
    app.include_router(root_router)

    # Exception handlers
    @app.exception_handler(PriceSentinelError)
    async def sentinel_exception_handler(request: Request, exc: PriceSentinelError):
        status_map = {
            AlertValidationError: 400,
            FetchError: 502,
            ConfigError: 500,
        }
        status = status_map.get(type(exc), 500)
        if status >= 500:
            logger.error("%s on %s: %s", type(exc).__name__, request.url.path, exc)
        return JSONResponse(
            status_code=status,
            content={"error": type(exc).__name__, "detail": str(exc)},
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"error": "ValidationError", "detail": _first_error(exc)},
        )

    return app


def _first_error(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = first.get("msg", "invalid value")
    return f"{location}: {message}" if location else message
