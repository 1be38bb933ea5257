"""Shared pytest fixtures for price-sentinel."""

from datetime import UTC, datetime

import pytest

from price_sentinel.core.config import PollerConfig, PushConfig, SentinelConfig
from price_sentinel.core.exceptions import FetchError
from price_sentinel.core.models import Alert, Condition


class StubPriceSource:
    """In-memory PriceSource: fixed prices, scripted failures, recorded calls."""

    def __init__(self, prices: dict[str, float] | None = None) -> None:
        self.prices: dict[str, float] = dict(prices or {})
        self.failing: set[str] = set()
        self.calls: list[str] = []

    async def fetch_price(self, symbol: str) -> float:
        self.calls.append(symbol)
        if symbol in self.failing or symbol not in self.prices:
            raise FetchError(
                f"Could not fetch price for {symbol}",
                context={"symbol": symbol, "source": "stub", "reason": "unavailable"},
            )
        return self.prices[symbol]


@pytest.fixture
def price_source() -> StubPriceSource:
    return StubPriceSource()


@pytest.fixture
def make_alert():
    """Factory for Alert with overridable defaults."""
    counter = iter(range(1, 10_000))

    def _make(**overrides) -> Alert:
        defaults = dict(
            id=f"alert-{next(counter)}",
            symbol="AAPL",
            condition=Condition.ABOVE,
            threshold=100.0,
            created_at=datetime(2024, 1, 15, 10, 30, 0, tzinfo=UTC),
        )
        defaults.update(overrides)
        return Alert(**defaults)

    return _make


@pytest.fixture
def sample_config() -> SentinelConfig:
    """Config with the background poller off so tests drive cycles by hand."""
    return SentinelConfig(
        poller=PollerConfig(enabled=False),
        push=PushConfig(),
    )


@pytest.fixture
def push_config() -> PushConfig:
    return PushConfig(
        vapid_public_key="BPublicKeyForTests",
        vapid_private_key="private-key-for-tests",
        vapid_subject="mailto:test@example.com",
    )
