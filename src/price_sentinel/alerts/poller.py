"""Periodic fetch → evaluate → notify loop over the active alerts."""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum

from price_sentinel.alerts.store import AlertStore
from price_sentinel.core.exceptions import FetchError
from price_sentinel.core.models import (
    Alert,
    FetchErrorEvent,
    PriceUpdateEvent,
    Symbol,
    TriggeredEvent,
)
from price_sentinel.notify.broadcaster import LiveBroadcaster
from price_sentinel.notify.push import PushNotifier, trigger_payload
from price_sentinel.prices.provider import PriceSource

logger = logging.getLogger(__name__)


class PollerState(StrEnum):
    IDLE = "idle"
    FETCHING = "fetching"
    EVALUATING = "evaluating"


@dataclass
class CycleResult:
    """What one poll cycle did."""

    prices: dict[Symbol, float] = field(default_factory=dict)
    triggered: list[Alert] = field(default_factory=list)
    errors: dict[Symbol, str] = field(default_factory=dict)

    @property
    def symbols_fetched(self) -> int:
        return len(self.prices) + len(self.errors)


def group_by_symbol(alerts: list[Alert]) -> dict[Symbol, list[Alert]]:
    """Partition alerts so each distinct symbol is fetched once per cycle."""
    groups: dict[Symbol, list[Alert]] = defaultdict(list)
    for alert in alerts:
        groups[alert.symbol].append(alert)
    return dict(groups)


class AlertPoller:
    """Drives poll cycles from a single recurring timer.

    A tick that fires while the previous cycle is still running is dropped,
    never queued, so slow upstreams cannot pile up concurrent fetches.
    The store lock is never held across a fetch: the cycle snapshots the
    alerts, fetches, then removes triggered alerts one by one.
    """

    def __init__(
        self,
        store: AlertStore,
        prices: PriceSource,
        broadcaster: LiveBroadcaster,
        push: PushNotifier,
        interval_seconds: float = 10.0,
    ) -> None:
        self._store = store
        self._prices = prices
        self._broadcaster = broadcaster
        self._push = push
        self._interval = interval_seconds
        self._timer: asyncio.Task | None = None
        self._cycle: asyncio.Task | None = None
        self.state = PollerState.IDLE
        self.cycles_run = 0
        self.ticks_skipped = 0

    @property
    def running(self) -> bool:
        """True while the recurring timer is scheduled."""
        return self._timer is not None and not self._timer.done()

    @property
    def cycle_in_progress(self) -> bool:
        return self._cycle is not None and not self._cycle.done()

    def start(self) -> None:
        if self.running:
            return
        self._timer = asyncio.create_task(self._run_timer(), name="alert-poller")
        logger.info("Alert poller started (interval %.1fs)", self._interval)

    async def stop(self) -> None:
        """Cancel the timer and let any in-flight cycle finish."""
        if self._timer is not None:
            self._timer.cancel()
            try:
                await self._timer
            except asyncio.CancelledError:
                pass
            self._timer = None
        if self._cycle is not None:
            await asyncio.gather(self._cycle, return_exceptions=True)
            self._cycle = None
        logger.info("Alert poller stopped")

    async def _run_timer(self) -> None:
        while True:
            self.tick()
            await asyncio.sleep(self._interval)

    def tick(self) -> bool:
        """Start a cycle in the background unless one is already running."""
        if self.cycle_in_progress:
            self.ticks_skipped += 1
            logger.debug("Previous poll cycle still running; skipping tick")
            return False
        self._cycle = asyncio.create_task(self._guarded_cycle(), name="alert-poll-cycle")
        return True

    async def _guarded_cycle(self) -> None:
        try:
            await self.run_cycle()
        except Exception:
            logger.exception("Poll cycle failed")

    async def run_cycle(self) -> CycleResult:
        """Fetch each distinct symbol once, then act on the alerts watching it."""
        result = CycleResult()
        alerts = self._store.list()
        if not alerts:
            return result

        groups = group_by_symbol(alerts)
        self.state = PollerState.FETCHING
        try:
            outcomes = await asyncio.gather(
                *(self._prices.fetch_price(symbol) for symbol in groups),
                return_exceptions=True,
            )

            self.state = PollerState.EVALUATING
            now = datetime.now(tz=UTC)
            for (symbol, group), outcome in zip(groups.items(), outcomes):
                if isinstance(outcome, FetchError):
                    self._record_fetch_error(symbol, outcome, result)
                    continue
                if isinstance(outcome, BaseException):
                    logger.error("Unexpected error processing %s: %s", symbol, outcome)
                    result.errors[symbol] = str(outcome)
                    continue
                result.prices[symbol] = outcome
                self._broadcaster.broadcast(
                    PriceUpdateEvent(symbol=symbol, price=outcome, timestamp=now)
                )
                try:
                    await self._evaluate(group, outcome, now, result)
                except Exception as e:
                    logger.error("Unexpected error processing %s: %s", symbol, e)
                    result.errors[symbol] = str(e)
        finally:
            self.state = PollerState.IDLE
            self.cycles_run += 1

        if result.triggered:
            logger.info(
                "Poll cycle: %d symbols, %d triggered, %d errors",
                result.symbols_fetched, len(result.triggered), len(result.errors),
            )
        return result

    def _record_fetch_error(self, symbol: Symbol, error: FetchError, result: CycleResult) -> None:
        reason = error.context.get("reason") or str(error)
        logger.warning("Price fetch failed for %s: %s", symbol, reason)
        result.errors[symbol] = reason
        self._broadcaster.broadcast(FetchErrorEvent(symbol=symbol, message=str(error)))

    async def _evaluate(
        self, group: list[Alert], price: float, now: datetime, result: CycleResult
    ) -> None:
        for alert in group:
            if not alert.is_triggered_by(price):
                continue
            # Lost the race with an API delete: the alert no longer exists
            if not self._store.remove(alert.id):
                continue
            logger.info(
                "Alert %s triggered: %s %s %s at %s",
                alert.id, alert.symbol, alert.condition, alert.threshold, price,
            )
            result.triggered.append(alert)
            self._broadcaster.broadcast(TriggeredEvent(alert=alert, price=price, timestamp=now))
            await self._push.notify(trigger_payload(alert, price))
