"""Best-effort web push delivery to a single registered subscription."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

from pywebpush import WebPushException, webpush

from price_sentinel.core.config import PushConfig
from price_sentinel.core.exceptions import DeliveryError
from price_sentinel.core.models import Alert, PushSubscription

logger = logging.getLogger(__name__)

_PUSH_TIMEOUT = 10
_TTL_SECONDS = 60


def trigger_payload(alert: Alert, price: float) -> dict[str, str]:
    """Notification payload in the shape the browser service worker reads."""
    return {
        "title": f"{alert.symbol} alert",
        "body": f"{alert.symbol} is {alert.condition} {alert.threshold:g} (last {price:g})",
    }


class PushNotifier:
    """Holds at most one push subscription; the last registration wins.

    Push is silently disabled when VAPID credentials are not configured.
    Delivery never raises: failures are logged and reported as ``False``.
    """

    def __init__(self, config: PushConfig) -> None:
        self._config = config
        self._subscription: PushSubscription | None = None
        if not config.enabled:
            logger.warning("VAPID keys not configured; push notifications disabled")

    @property
    def enabled(self) -> bool:
        return self._config.enabled

    @property
    def public_key(self) -> str | None:
        return self._config.vapid_public_key

    @property
    def subscription(self) -> PushSubscription | None:
        return self._subscription

    def set_subscription(self, subscription: PushSubscription) -> None:
        self._subscription = subscription
        logger.info("Push subscription registered: %s", subscription.endpoint)

    async def notify(self, payload: dict[str, Any]) -> bool:
        """Send ``payload`` to the current subscription, if any."""
        subscription = self._subscription
        if subscription is None or not self.enabled:
            return False
        try:
            await asyncio.to_thread(self._send, subscription, payload)
        except DeliveryError as e:
            logger.warning("Push delivery failed: %s (%s)", e, e.context)
            return False
        return True

    def _send(self, subscription: PushSubscription, payload: dict[str, Any]) -> None:
        try:
            webpush(
                subscription_info=subscription.model_dump(exclude_none=True),
                data=json.dumps(payload),
                vapid_private_key=self._config.vapid_private_key,
                vapid_claims={"sub": self._config.vapid_subject},
                ttl=_TTL_SECONDS,
                timeout=_PUSH_TIMEOUT,
            )
        except WebPushException as e:
            status = e.response.status_code if e.response is not None else None
            raise DeliveryError(
                f"push service rejected notification: {e}",
                context={"target": subscription.endpoint, "status_code": status},
            ) from e
        except Exception as e:
            raise DeliveryError(
                f"push delivery error: {e}",
                context={"target": subscription.endpoint, "status_code": None},
            ) from e
