"""Integration tests: HTTP API, poller, price router and push together.

Upstream quote APIs are mocked with respx; the application, its lifespan
and the real PriceRouter run in-process.
"""

from __future__ import annotations

from unittest.mock import patch

import httpx
import pytest
import respx
from fastapi.testclient import TestClient

from price_sentinel.api.app import create_app
from price_sentinel.core.config import PollerConfig, ProviderConfig, SentinelConfig
from price_sentinel.core.models import EventType, QuoteProvider

pytestmark = pytest.mark.integration

FINNHUB_PRICES = {"AAPL": 155.0, "MSFT": 0}
YAHOO_PRICES = {"MSFT": 410.2}
BINANCE_PRICES = {"BTCUSDT": "59000.00"}


def _finnhub(request: httpx.Request) -> httpx.Response:
    symbol = request.url.params["symbol"]
    return httpx.Response(200, json={"c": FINNHUB_PRICES.get(symbol, 0)})


def _yahoo(request: httpx.Request) -> httpx.Response:
    symbol = request.url.params["symbols"]
    if symbol not in YAHOO_PRICES:
        return httpx.Response(200, json={"quoteResponse": {"result": []}})
    return httpx.Response(
        200,
        json={"quoteResponse": {"result": [{"regularMarketPrice": YAHOO_PRICES[symbol]}]}},
    )


def _binance(request: httpx.Request) -> httpx.Response:
    symbol = request.url.params["symbol"]
    if symbol not in BINANCE_PRICES:
        return httpx.Response(400, json={"code": -1121, "msg": "Invalid symbol."})
    return httpx.Response(200, json={"symbol": symbol, "price": BINANCE_PRICES[symbol]})


@pytest.fixture
def upstream():
    with respx.mock(assert_all_called=False) as mock:
        mock.get(url__startswith="https://finnhub.io/api/v1/quote").mock(side_effect=_finnhub)
        mock.get(url__startswith="https://query1.finance.yahoo.com/v7/finance/quote").mock(
            side_effect=_yahoo
        )
        mock.get(url__startswith="https://api.binance.com/api/v3/ticker/price").mock(
            side_effect=_binance
        )
        yield mock


@pytest.fixture
def config(push_config) -> SentinelConfig:
    return SentinelConfig(
        provider=ProviderConfig(name=QuoteProvider.FINNHUB, api_key="test-key"),
        poller=PollerConfig(enabled=False),
        push=push_config,
    )


@pytest.fixture
def client(config, upstream):
    with TestClient(create_app(config=config)) as c:
        yield c


@pytest.fixture
def webpush():
    with patch("price_sentinel.notify.push.webpush") as mock:
        yield mock


def _run_cycle(client: TestClient):
    return client.portal.call(client.app.state.app_state.poller.run_cycle)


def _drain(subscription) -> list:
    events = []
    while not subscription._queue.empty():
        events.append(subscription._queue.get_nowait())
    return events


class TestAlertLifecycle:
    def test_cycle_triggers_matching_alerts(self, client, webpush):
        state = client.app.state.app_state
        for body in (
            {"symbol": "AAPL", "condition": "above", "price": 150},
            {"symbol": "BINANCE:BTCUSDT", "condition": "below", "price": 60000},
            {"symbol": "MSFT", "condition": "above", "price": 1000},
        ):
            assert client.post("/api/alerts", json=body).status_code == 200
        assert client.post(
            "/api/subscribe", json={"endpoint": "https://push.example.com/send/abc"}
        ).status_code == 201

        sub = state.broadcaster.subscribe(state.store.list())
        init = _drain(sub)[0]
        assert len(init.alerts) == 3

        result = _run_cycle(client)

        assert result.prices == {"AAPL": 155.0, "BINANCE:BTCUSDT": 59000.0, "MSFT": 410.2}
        assert sorted(a.symbol for a in result.triggered) == ["AAPL", "BINANCE:BTCUSDT"]
        remaining = client.get("/api/alerts").json()
        assert [a["symbol"] for a in remaining] == ["MSFT"]

        events = _drain(sub)
        assert sum(e.type == EventType.PRICE for e in events) == 3
        assert sum(e.type == EventType.TRIGGERED for e in events) == 2
        assert webpush.call_count == 2
        sub.close()

    def test_second_cycle_does_not_refire(self, client, webpush):
        client.post("/api/subscribe", json={"endpoint": "https://push.example.com/send/abc"})
        client.post("/api/alerts", json={"symbol": "AAPL", "condition": "above", "price": 150})

        assert len(_run_cycle(client).triggered) == 1
        assert _run_cycle(client).triggered == []
        assert webpush.call_count == 1

    def test_deleted_alert_never_fires(self, client, webpush):
        alert_id = client.post(
            "/api/alerts", json={"symbol": "AAPL", "condition": "above", "price": 150}
        ).json()["id"]
        assert client.delete(f"/api/alerts/{alert_id}").status_code == 204

        result = _run_cycle(client)

        assert result.triggered == []
        webpush.assert_not_called()

    def test_unavailable_symbol_reports_error(self, client, webpush):
        state = client.app.state.app_state
        client.post("/api/alerts", json={"symbol": "NOPE", "condition": "below", "price": 5})
        sub = state.broadcaster.subscribe([])
        _drain(sub)

        result = _run_cycle(client)

        assert "finnhub: zero price" in result.errors["NOPE"]
        assert "yahoo: no results" in result.errors["NOPE"]
        assert len(client.get("/api/alerts").json()) == 1
        errors = [e for e in _drain(sub) if e.type == EventType.ERROR]
        assert errors[0].symbol == "NOPE"
        sub.close()

    def test_price_endpoint_uses_router(self, client):
        resp = client.get("/api/price", params={"symbol": "msft"})
        assert resp.status_code == 200
        assert resp.json()["price"] == 410.2
        assert resp.json()["source"] == "yahoo"
        assert resp.json()["symbol"] == "MSFT"

    def test_price_endpoint_upstream_failure(self, client):
        resp = client.get("/api/price", params={"symbol": "BINANCE:NOPEUSDT"})
        assert resp.status_code == 502
        assert resp.json()["error"] == "FetchError"


class TestLifespan:
    def test_poller_runs_when_enabled(self, push_config, upstream):
        config = SentinelConfig(
            poller=PollerConfig(enabled=True, interval_seconds=60),
            push=push_config,
        )
        app = create_app(config=config)
        with TestClient(app) as c:
            assert c.get("/health").json()["poller_running"] is True
            poller = app.state.app_state.poller
        assert not poller.running
