"""Finnhub quote source (requires an API key)."""

from __future__ import annotations

import httpx

from price_sentinel.core.exceptions import FetchError
from price_sentinel.prices.provider import get_json, parse_price

_QUOTE_PATH = "/api/v1/quote"


class FinnhubPriceSource:
    """Reads the current-price field ``c`` from Finnhub's ``/quote`` endpoint.

    Finnhub answers unknown symbols with ``{"c": 0, ...}`` instead of an
    error, so a zero price is reported as a FetchError and the router moves
    on to its fallback.
    """

    name = "finnhub"

    def __init__(self, client: httpx.AsyncClient, base_url: str, api_key: str) -> None:
        self._client = client
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key

    async def fetch_price(self, symbol: str) -> float:
        data = await get_json(
            self._client,
            f"{self._base_url}{_QUOTE_PATH}",
            params={"symbol": symbol, "token": self._api_key},
            symbol=symbol,
            source=self.name,
        )
        value = data.get("c") if isinstance(data, dict) else None
        price = parse_price(value, symbol=symbol, source=self.name)
        if price == 0:
            raise FetchError(
                f"finnhub returned 0 for {symbol}",
                context={"symbol": symbol, "source": self.name, "reason": "zero price"},
            )
        return price
