"""price_sentinel.core — Foundation types, config, and exceptions."""

from price_sentinel.core.config import (
    APIConfig,
    PollerConfig,
    ProviderConfig,
    PushConfig,
    SentinelConfig,
    StreamConfig,
    load_config,
)
from price_sentinel.core.exceptions import (
    AlertValidationError,
    ConfigError,
    DeliveryError,
    FetchError,
    PriceSentinelError,
)
from price_sentinel.core.models import (
    Alert,
    AlertAddedEvent,
    AlertId,
    AlertRemovedEvent,
    Condition,
    Event,
    EventType,
    FetchErrorEvent,
    InitEvent,
    PriceQuote,
    PriceUpdateEvent,
    PushSubscription,
    QuoteProvider,
    Symbol,
    TriggeredEvent,
    split_symbol,
)

__all__ = [
    # Type aliases
    "AlertId",
    "Symbol",
    # Enums
    "Condition",
    "QuoteProvider",
    "EventType",
    # Models
    "Alert",
    "PriceQuote",
    "PushSubscription",
    "split_symbol",
    # Events
    "Event",
    "InitEvent",
    "AlertAddedEvent",
    "AlertRemovedEvent",
    "PriceUpdateEvent",
    "TriggeredEvent",
    "FetchErrorEvent",
    # Config
    "SentinelConfig",
    "ProviderConfig",
    "PollerConfig",
    "PushConfig",
    "StreamConfig",
    "APIConfig",
    "load_config",
    # Exceptions
    "PriceSentinelError",
    "ConfigError",
    "AlertValidationError",
    "FetchError",
    "DeliveryError",
]
