"""price_sentinel.alerts — alert storage and the polling loop."""

from price_sentinel.alerts.poller import AlertPoller, CycleResult, PollerState, group_by_symbol
from price_sentinel.alerts.store import AlertStore

__all__ = [
    "AlertStore",
    "AlertPoller",
    "CycleResult",
    "PollerState",
    "group_by_symbol",
]
