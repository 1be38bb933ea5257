"""Price source protocol and the HTTP helpers shared by every source.

Architecture
------------
Each upstream quote API is wrapped in a small source class that knows its
URL layout and response shape:

    symbol → PriceSource.fetch_price → float | FetchError

``PriceRouter`` (see ``router.py``) decides which source answers a given
symbol. Consumers depend only on the ``PriceSource`` protocol, so the
poller can be driven by the router in production and by a stub in tests.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Protocol, runtime_checkable

import httpx

from price_sentinel.core.exceptions import FetchError

logger = logging.getLogger(__name__)

USER_AGENT = "Mozilla/5.0 (compatible; price-sentinel/0.1)"


@runtime_checkable
class PriceSource(Protocol):
    """Anything that can turn a symbol into a current price."""

    async def fetch_price(self, symbol: str) -> float:
        """Return the latest price for ``symbol``.

        Raises
        ------
        FetchError
            The upstream was unreachable, timed out, or returned data
            without a usable price.
        """
        ...


async def get_json(
    client: httpx.AsyncClient,
    url: str,
    *,
    symbol: str,
    source: str,
    params: dict[str, str] | None = None,
) -> Any:
    """GET ``url`` and decode the JSON body, mapping every failure to FetchError."""
    try:
        resp = await client.get(url, params=params)
        resp.raise_for_status()
        return resp.json()
    except httpx.HTTPStatusError as e:
        raise FetchError(
            f"{source} returned HTTP {e.response.status_code} for {symbol}",
            context={
                "symbol": symbol,
                "source": source,
                "reason": f"HTTP {e.response.status_code}",
                "status_code": e.response.status_code,
            },
        ) from e
    except httpx.TimeoutException as e:
        raise FetchError(
            f"{source} timed out for {symbol}",
            context={"symbol": symbol, "source": source, "reason": "timeout"},
        ) from e
    except httpx.RequestError as e:
        raise FetchError(
            f"{source} request failed for {symbol}: {e}",
            context={"symbol": symbol, "source": source, "reason": str(e) or type(e).__name__},
        ) from e
    except ValueError as e:
        raise FetchError(
            f"{source} returned invalid JSON for {symbol}",
            context={"symbol": symbol, "source": source, "reason": "invalid JSON"},
        ) from e


def parse_price(value: Any, *, symbol: str, source: str) -> float:
    """Parse a provider price field (number or decimal string) into a float."""
    if value is None or isinstance(value, bool):
        raise FetchError(
            f"{source} returned no price for {symbol}",
            context={"symbol": symbol, "source": source, "reason": "missing price field"},
        )
    try:
        price = float(value)
    except (TypeError, ValueError) as e:
        raise FetchError(
            f"{source} returned unparsable price {value!r} for {symbol}",
            context={"symbol": symbol, "source": source, "reason": f"unparsable price {value!r}"},
        ) from e
    if not math.isfinite(price) or price < 0:
        raise FetchError(
            f"{source} returned invalid price {price} for {symbol}",
            context={"symbol": symbol, "source": source, "reason": f"invalid price {price}"},
        )
    return price
