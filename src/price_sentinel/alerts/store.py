"""In-memory alert store shared by the API handlers and the poller."""

from __future__ import annotations

import logging
import math
import threading
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from price_sentinel.core.exceptions import AlertValidationError
from price_sentinel.core.models import Alert, AlertId, Condition

logger = logging.getLogger(__name__)


class AlertStore:
    """Active alerts keyed by id, guarded by a single lock.

    Every add/remove is atomic and ``list()`` returns a copy, so callers
    can iterate while other handlers mutate the store. The lock is only
    ever held for dictionary operations, never across I/O.
    """

    def __init__(self) -> None:
        self._alerts: dict[AlertId, Alert] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._alerts)

    def add(self, symbol: Any, condition: Any, threshold: Any) -> Alert:
        """Validate and store a new alert.

        Raises:
            AlertValidationError: A field is missing, the condition is not
                ``above``/``below``, or the threshold is not a positive number.
        """
        alert = Alert(
            id=uuid4().hex,
            symbol=_validate_symbol(symbol),
            condition=_validate_condition(condition),
            threshold=_validate_threshold(threshold),
            created_at=datetime.now(tz=UTC),
        )
        with self._lock:
            self._alerts[alert.id] = alert
        logger.info(
            "Added alert %s: %s %s %s",
            alert.id, alert.symbol, alert.condition, alert.threshold,
        )
        return alert

    def list(self) -> list[Alert]:
        """Snapshot of active alerts, most recently created first."""
        with self._lock:
            return list(reversed(self._alerts.values()))

    def get(self, alert_id: AlertId) -> Alert | None:
        with self._lock:
            return self._alerts.get(alert_id)

    def remove(self, alert_id: AlertId) -> bool:
        """Remove an alert. Returns False if the id is unknown (already gone)."""
        with self._lock:
            removed = self._alerts.pop(alert_id, None)
        if removed is None:
            return False
        logger.debug("Removed alert %s", alert_id)
        return True


# --- Validation helpers ---


def _validate_symbol(value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise AlertValidationError(
            "symbol is required",
            context={"field": "symbol", "value": value},
        )
    return value.strip().upper()


def _validate_condition(value: Any) -> Condition:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise AlertValidationError(
            "condition is required",
            context={"field": "condition", "value": value},
        )
    try:
        return Condition(str(value).strip().lower())
    except ValueError:
        raise AlertValidationError(
            f"condition must be 'above' or 'below', got {value!r}",
            context={"field": "condition", "value": value},
        ) from None


def _validate_threshold(value: Any) -> float:
    if value is None or isinstance(value, bool) or (isinstance(value, str) and not value.strip()):
        raise AlertValidationError(
            "price is required",
            context={"field": "price", "value": value},
        )
    try:
        threshold = float(value)
    except (TypeError, ValueError):
        raise AlertValidationError(
            f"price must be a number, got {value!r}",
            context={"field": "price", "value": value},
        ) from None
    if not math.isfinite(threshold) or threshold <= 0:
        raise AlertValidationError(
            f"price must be a positive number, got {value!r}",
            context={"field": "price", "value": value},
        )
    return threshold
