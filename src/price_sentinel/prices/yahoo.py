"""Yahoo Finance quote source, the multi-exchange fallback.

Uses the unauthenticated ``/v7/finance/quote`` endpoint via httpx. Yahoo
addresses exchange-qualified symbols with a slash, so ``NASDAQ:AAPL`` is
requested as ``NASDAQ/AAPL`` (percent-encoded).
"""

from __future__ import annotations

import logging
from urllib.parse import quote

import httpx

from price_sentinel.core.exceptions import FetchError
from price_sentinel.core.models import EXCHANGE_DELIMITER
from price_sentinel.prices.provider import get_json, parse_price

logger = logging.getLogger(__name__)

_QUOTE_PATH = "/v7/finance/quote"


def yahoo_symbol(symbol: str) -> str:
    """``"NASDAQ:AAPL"`` → ``"NASDAQ%2FAAPL"``."""
    return quote(symbol.replace(EXCHANGE_DELIMITER, "/", 1), safe="")


class YahooQuotePriceSource:
    """Reads ``quoteResponse.result[0].regularMarketPrice``."""

    name = "yahoo"

    def __init__(self, client: httpx.AsyncClient, base_url: str) -> None:
        self._client = client
        self._base_url = base_url.rstrip("/")

    async def fetch_price(self, symbol: str) -> float:
        # Built by hand: httpx would leave the slash unescaped.
        url = f"{self._base_url}{_QUOTE_PATH}?symbols={yahoo_symbol(symbol)}"
        data = await get_json(self._client, url, symbol=symbol, source=self.name)

        response = data.get("quoteResponse") if isinstance(data, dict) else None
        results = (response or {}).get("result") or []
        if not results:
            logger.debug("Yahoo Finance returned no results for %s", symbol)
            raise FetchError(
                f"yahoo returned no results for {symbol}",
                context={"symbol": symbol, "source": self.name, "reason": "no results"},
            )

        first = results[0] if isinstance(results[0], dict) else {}
        return parse_price(
            first.get("regularMarketPrice"), symbol=symbol, source=self.name
        )
