"""Exchange-prefix routing across the configured price sources."""

from __future__ import annotations

import logging
from datetime import UTC, datetime

import httpx

from price_sentinel.core.config import ProviderConfig
from price_sentinel.core.exceptions import FetchError
from price_sentinel.core.models import PriceQuote, QuoteProvider, split_symbol
from price_sentinel.prices.binance import BinancePriceSource
from price_sentinel.prices.finnhub import FinnhubPriceSource
from price_sentinel.prices.provider import USER_AGENT
from price_sentinel.prices.yahoo import YahooQuotePriceSource

logger = logging.getLogger(__name__)

# Exchange prefixes that are priced directly by their own public API
CRYPTO_EXCHANGES = frozenset({"BINANCE"})


class PriceRouter:
    """Resolves a symbol to a price, trying sources in a fixed order.

    1. ``BINANCE:`` prefix → Binance ticker for the bare pair.
    2. Keyed provider configured (Finnhub + API key) → its quote for the
       bare symbol; a zero price counts as absent.
    3. Yahoo Finance quote for the full symbol, always tried when the
       steps above produced no usable price.

    A FetchError listing every attempted step is raised when nothing
    yields a price. The router owns its ``httpx.AsyncClient`` unless one
    is injected; use it via ``async with PriceRouter(...) as router:``.
    """

    def __init__(
        self,
        config: ProviderConfig,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            headers={"User-Agent": USER_AGENT},
            timeout=httpx.Timeout(config.request_timeout),
            follow_redirects=True,
        )
        self._binance = BinancePriceSource(self._client, config.binance_url)
        self._keyed: FinnhubPriceSource | None = None
        if config.keyed_provider_enabled and config.name == QuoteProvider.FINNHUB:
            self._keyed = FinnhubPriceSource(
                self._client, config.finnhub_url, config.api_key or ""
            )
        self._fallback = YahooQuotePriceSource(self._client, config.yahoo_url)

    async def __aenter__(self) -> PriceRouter:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the underlying HTTP client if this router created it."""
        if self._owns_client:
            await self._client.aclose()

    async def fetch_price(self, symbol: str) -> float:
        price, _ = await self._resolve(symbol)
        return price

    async def get_quote(self, symbol: str) -> PriceQuote:
        """Fetch a price and wrap it with its source and a UTC timestamp."""
        normalized = symbol.strip().upper()
        price, source = await self._resolve(normalized)
        return PriceQuote(
            symbol=normalized,
            price=price,
            timestamp=datetime.now(tz=UTC),
            source=source,
        )

    async def _resolve(self, symbol: str) -> tuple[float, str]:
        if not symbol:
            raise FetchError(
                "symbol required",
                context={"symbol": symbol, "source": "router", "reason": "empty symbol"},
            )

        exchange, base = split_symbol(symbol)
        reasons: list[str] = []

        if exchange in CRYPTO_EXCHANGES:
            try:
                return await self._binance.fetch_price(base), self._binance.name
            except FetchError as e:
                logger.debug("Binance lookup failed for %s: %s", symbol, e)
                reasons.append(f"{self._binance.name}: {e.context.get('reason', e)}")

        elif self._keyed is not None:
            try:
                return await self._keyed.fetch_price(base), self._keyed.name
            except FetchError as e:
                logger.debug("%s lookup failed for %s: %s", self._keyed.name, symbol, e)
                reasons.append(f"{self._keyed.name}: {e.context.get('reason', e)}")

        try:
            return await self._fallback.fetch_price(symbol), self._fallback.name
        except FetchError as e:
            reasons.append(f"{self._fallback.name}: {e.context.get('reason', e)}")
            raise FetchError(
                f"Could not fetch price for {symbol}",
                context={
                    "symbol": symbol,
                    "source": "router",
                    "reason": "; ".join(reasons),
                },
            ) from e
