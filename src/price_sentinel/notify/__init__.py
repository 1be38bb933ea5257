"""price_sentinel.notify — live-update fan-out and web push delivery."""

from price_sentinel.notify.broadcaster import LiveBroadcaster, Subscription
from price_sentinel.notify.push import PushNotifier, trigger_payload

__all__ = [
    "LiveBroadcaster",
    "Subscription",
    "PushNotifier",
    "trigger_payload",
]
