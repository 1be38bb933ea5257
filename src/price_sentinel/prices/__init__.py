"""Live price lookup across public and keyed quote APIs.

Architecture
------------
Each upstream API is a small source class over a shared httpx client:

    symbol → PriceRouter → {Binance | Finnhub | Yahoo} → float

- ``PriceSource``: protocol for anything that prices a symbol.
- ``PriceRouter``: applies the exchange-prefix resolution order and
  owns the HTTP client.

Adding a new source:
1. Write a class with ``async fetch_price(symbol) -> float`` that raises
   ``FetchError`` on any failure (``get_json``/``parse_price`` help).
2. Wire it into ``PriceRouter._resolve``.
"""

from price_sentinel.prices.binance import BinancePriceSource
from price_sentinel.prices.finnhub import FinnhubPriceSource
from price_sentinel.prices.provider import PriceSource, get_json, parse_price
from price_sentinel.prices.router import CRYPTO_EXCHANGES, PriceRouter
from price_sentinel.prices.yahoo import YahooQuotePriceSource, yahoo_symbol

__all__ = [
    # Protocol + helpers
    "PriceSource",
    "get_json",
    "parse_price",
    # Sources
    "BinancePriceSource",
    "FinnhubPriceSource",
    "YahooQuotePriceSource",
    "yahoo_symbol",
    # Routing
    "CRYPTO_EXCHANGES",
    "PriceRouter",
]
