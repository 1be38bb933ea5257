"""price_sentinel.api — FastAPI application."""

from price_sentinel.api.app import create_app

__all__ = ["create_app"]
