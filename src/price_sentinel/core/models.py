"""Pydantic data models — the system's type contracts."""

from __future__ import annotations

import math
from datetime import datetime
from enum import StrEnum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

# --- Type Aliases ---

AlertId = str
Symbol = str

EXCHANGE_DELIMITER = ":"

# --- Enumerations ---


class Condition(StrEnum):
    """Direction in which the price must cross the threshold."""

    ABOVE = "above"
    BELOW = "below"


class QuoteProvider(StrEnum):
    """Keyed quote providers that can be configured ahead of the fallback."""

    NONE = "none"
    FINNHUB = "finnhub"


class EventType(StrEnum):
    """Discriminator for live-update events."""

    INIT = "init"
    ALERT_ADDED = "alert_added"
    ALERT_REMOVED = "alert_removed"
    PRICE = "price"
    TRIGGERED = "triggered"
    ERROR = "error"


# --- Symbol helpers ---


def split_symbol(symbol: Symbol) -> tuple[str | None, str]:
    """Split ``"NASDAQ:AAPL"`` into ``("NASDAQ", "AAPL")``.

    Symbols without a prefix return ``(None, symbol)``.
    """
    if EXCHANGE_DELIMITER not in symbol:
        return None, symbol
    exchange, _, rest = symbol.partition(EXCHANGE_DELIMITER)
    return exchange or None, rest


# --- Alert Models ---


class Alert(BaseModel):
    """One monitored price condition. Fires at most once."""

    model_config = ConfigDict(frozen=True)

    id: AlertId
    symbol: Symbol
    condition: Condition
    threshold: float
    created_at: datetime = Field(serialization_alias="createdAt")

    @field_validator("symbol")
    @classmethod
    def symbol_uppercase(cls, v: str) -> str:
        v = v.strip().upper()
        if not v:
            raise ValueError("symbol must not be empty")
        return v

    @field_validator("threshold")
    @classmethod
    def threshold_positive(cls, v: float) -> float:
        if not math.isfinite(v) or v <= 0:
            raise ValueError(f"threshold must be a positive number, got {v}")
        return v

    def is_triggered_by(self, price: float) -> bool:
        """Inclusive comparison: a price equal to the threshold always fires."""
        if self.condition == Condition.ABOVE:
            return price >= self.threshold
        return price <= self.threshold


class PriceQuote(BaseModel):
    """A fetched price. Ephemeral, never stored."""

    model_config = ConfigDict(frozen=True)

    symbol: Symbol
    price: float
    timestamp: datetime
    source: str = "unknown"


class PushSubscription(BaseModel):
    """Web-push endpoint descriptor as produced by the browser.

    Treated as opaque: unknown keys are kept and handed back verbatim to
    the push transport.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    endpoint: str
    keys: dict[str, str] = {}
    expirationTime: float | None = None

    @field_validator("endpoint")
    @classmethod
    def endpoint_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("endpoint must not be empty")
        return v


# --- Live-update Events ---


class Event(BaseModel):
    """Base class for fan-out payloads; ``type`` is the discriminator."""

    model_config = ConfigDict(frozen=True)

    type: EventType

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


class InitEvent(Event):
    type: Literal[EventType.INIT] = EventType.INIT
    alerts: list[Alert]


class AlertAddedEvent(Event):
    type: Literal[EventType.ALERT_ADDED] = EventType.ALERT_ADDED
    alert: Alert


class AlertRemovedEvent(Event):
    type: Literal[EventType.ALERT_REMOVED] = EventType.ALERT_REMOVED
    id: AlertId


class PriceUpdateEvent(Event):
    type: Literal[EventType.PRICE] = EventType.PRICE
    symbol: Symbol
    price: float
    timestamp: datetime


class TriggeredEvent(Event):
    type: Literal[EventType.TRIGGERED] = EventType.TRIGGERED
    alert: Alert
    price: float
    timestamp: datetime


class FetchErrorEvent(Event):
    type: Literal[EventType.ERROR] = EventType.ERROR
    symbol: Symbol
    message: str
