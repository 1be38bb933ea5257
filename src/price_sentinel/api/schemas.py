"""API-specific request/response schemas (Pydantic v2)."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict


# -- Error --


class ErrorResponse(BaseModel):
    """Standard error envelope."""

    error: str
    detail: str | None = None


# -- Alerts --


class CreateAlertRequest(BaseModel):
    """Request body for POST /api/alerts.

    Every field is optional here so that missing or malformed values reach
    the store's validation and come back as a 400 with a precise message.
    """

    model_config = ConfigDict(extra="ignore")

    symbol: str | None = None
    condition: str | None = None
    price: Any = None


# -- Push --


class SubscribeResponse(BaseModel):
    """Response for POST /api/subscribe."""

    subscribed: bool = True
    push_enabled: bool


class VapidKeyResponse(BaseModel):
    """Response for GET /api/vapidPublic."""

    publicKey: str | None


# -- Webhook --


class WebhookAck(BaseModel):
    """Response for POST /alert."""

    success: bool = True
    message: str = "Alert received"


# -- Health --


class HealthResponse(BaseModel):
    """Response for GET /health."""

    ok: bool = True
    alerts: int
    version: str
    listeners: int
    poller_running: bool
