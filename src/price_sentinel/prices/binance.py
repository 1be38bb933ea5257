"""Binance public ticker source for ``BINANCE:``-prefixed crypto pairs."""

from __future__ import annotations

import httpx

from price_sentinel.prices.provider import get_json, parse_price

_TICKER_PATH = "/api/v3/ticker/price"


class BinancePriceSource:
    """Reads ``{"symbol": "BTCUSDT", "price": "67012.10"}`` from the ticker endpoint.

    Expects the bare pair (``BTCUSDT``); the router strips the exchange prefix.
    """

    name = "binance"

    def __init__(self, client: httpx.AsyncClient, base_url: str) -> None:
        self._client = client
        self._base_url = base_url.rstrip("/")

    async def fetch_price(self, symbol: str) -> float:
        data = await get_json(
            self._client,
            f"{self._base_url}{_TICKER_PATH}",
            params={"symbol": symbol},
            symbol=symbol,
            source=self.name,
        )
        value = data.get("price") if isinstance(data, dict) else None
        return parse_price(value, symbol=symbol, source=self.name)
