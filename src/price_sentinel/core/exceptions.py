"""Custom exception hierarchy for price-sentinel."""

from typing import Any


class PriceSentinelError(Exception):
    """Base exception for all price-sentinel errors.

    All exceptions carry an optional `context` dict for structured error
    metadata that can be logged or serialized without parsing the message.
    """

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message)
        self.context = context or {}


class ConfigError(PriceSentinelError):
    """Invalid or missing configuration.

    Raised by load_config() during startup. Should be treated as fatal.

    Context keys:
        field: str — the config field that failed validation
        value: Any — the invalid value (redacted for secrets)
    """


class AlertValidationError(PriceSentinelError):
    """Malformed alert creation request.

    Policy: reject the request with a 4xx response. Not a system fault,
    so it is never logged as an error.

    Context keys:
        field: str — "symbol", "condition" or "price"
        value: Any — the rejected value
    """


class FetchError(PriceSentinelError):
    """An upstream price provider was unreachable or returned unusable data.

    Policy: log, emit an ``error`` event for the symbol, retry on the next
    poll cycle. Never fatal.

    Context keys:
        symbol: str — the symbol being priced
        reason: str — why no price was obtained
        source: str — "binance", "finnhub", "yahoo" or "router"
    """

    @property
    def symbol(self) -> str | None:
        return self.context.get("symbol")


class DeliveryError(PriceSentinelError):
    """A push notification or live-stream write failed.

    Policy: best-effort. Log and swallow; never propagates to the poll
    cycle or an HTTP response.

    Context keys:
        target: str — push endpoint or listener id
        status_code: int | None — HTTP status from the push service
    """
