"""price-sentinel: threshold price alerts with live and push notifications."""

__version__ = "0.1.0"
