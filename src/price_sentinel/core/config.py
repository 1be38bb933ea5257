"""Configuration loading, validation, and access."""

from __future__ import annotations

import os
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, field_validator

from price_sentinel.core.exceptions import ConfigError
from price_sentinel.core.models import QuoteProvider


class ProviderConfig(BaseModel):
    """Upstream price provider configuration."""

    model_config = ConfigDict(frozen=True, coerce_numbers_to_str=True)

    name: QuoteProvider = QuoteProvider.NONE
    api_key: str | None = None
    request_timeout: float = 5.0
    binance_url: str = "https://api.binance.com"
    finnhub_url: str = "https://finnhub.io"
    yahoo_url: str = "https://query1.finance.yahoo.com"

    @field_validator("request_timeout")
    @classmethod
    def timeout_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("request_timeout must be > 0")
        return v

    @property
    def keyed_provider_enabled(self) -> bool:
        """True when a keyed provider is selected and its key is present."""
        return self.name != QuoteProvider.NONE and bool(self.api_key)


class PollerConfig(BaseModel):
    """Alert polling loop configuration."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = True
    interval_seconds: float = 10.0

    @field_validator("interval_seconds")
    @classmethod
    def interval_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("interval_seconds must be > 0")
        return v


class PushConfig(BaseModel):
    """Web push (VAPID) credentials. Push is disabled when they are absent."""

    model_config = ConfigDict(frozen=True, coerce_numbers_to_str=True)

    vapid_public_key: str | None = None
    vapid_private_key: str | None = None
    vapid_subject: str = "mailto:alerts@example.com"

    @field_validator("vapid_subject")
    @classmethod
    def subject_is_contact(cls, v: str) -> str:
        """Push services require a mailto: or https: contact claim."""
        if not v.startswith(("mailto:", "https:")):
            raise ValueError("vapid_subject must start with 'mailto:' or 'https:'")
        return v

    @property
    def enabled(self) -> bool:
        return bool(self.vapid_private_key and self.vapid_public_key)


class StreamConfig(BaseModel):
    """Server-sent events configuration."""

    model_config = ConfigDict(frozen=True)

    queue_size: int = 100
    keepalive_seconds: float = 15.0

    @field_validator("queue_size")
    @classmethod
    def queue_size_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("queue_size must be >= 1")
        return v


class APIConfig(BaseModel):
    """FastAPI server configuration."""

    model_config = ConfigDict(frozen=True, coerce_numbers_to_str=True)

    host: str = "0.0.0.0"
    port: int = 3000
    api_key: str | None = None


class SentinelConfig(BaseModel):
    """Root configuration for the entire price-sentinel system."""

    model_config = ConfigDict(frozen=True)

    provider: ProviderConfig = ProviderConfig()
    poller: PollerConfig = PollerConfig()
    push: PushConfig = PushConfig()
    stream: StreamConfig = StreamConfig()
    api: APIConfig = APIConfig()


def load_config(
    config_path: str | None = None,
    env_prefix: str = "PRICE_SENTINEL_",
) -> SentinelConfig:
    """Load configuration from environment + YAML file + defaults.

    Resolution order (highest priority first):
    1. Environment variables (PRICE_SENTINEL_PROVIDER__API_KEY, etc.)
    2. YAML file at config_path
    3. Built-in defaults

    Nested keys use double-underscore in env vars:
        PRICE_SENTINEL_POLLER__INTERVAL_SECONDS=5  ->  poller.interval_seconds = 5
    """
    try:
        yaml_path = _resolve_config_path(config_path)
        base: dict = {}
        if yaml_path is not None:
            base = _load_yaml(yaml_path)

        merged = _merge_env_vars(base, env_prefix)
        return SentinelConfig.model_validate(merged)
    except Exception as e:
        if isinstance(e, ConfigError):
            raise
        raise ConfigError(str(e), context={"source": "load_config"}) from e


def _resolve_config_path(explicit: str | None) -> Path | None:
    """Determine config file path."""
    if explicit is not None:
        p = Path(explicit)
        if not p.exists():
            raise ConfigError(
                f"Config file not found: {explicit}",
                context={"field": "config_path", "value": explicit},
            )
        return p

    env_path = os.environ.get("PRICE_SENTINEL_CONFIG")
    if env_path:
        p = Path(env_path)
        if not p.exists():
            raise ConfigError(
                f"Config file from PRICE_SENTINEL_CONFIG not found: {env_path}",
                context={"field": "PRICE_SENTINEL_CONFIG", "value": env_path},
            )
        return p

    default = Path("price-sentinel.yml")
    if default.exists():
        return default

    return None


def _load_yaml(path: Path) -> dict:
    """Load and parse YAML file."""
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError(
                f"YAML config must be a mapping, got {type(data).__name__}",
                context={"field": "config_file", "value": str(path)},
            )
        return data
    except yaml.YAMLError as e:
        raise ConfigError(
            f"Failed to parse YAML config: {e}",
            context={"field": "config_file", "value": str(path)},
        ) from e


# Credentials such as "00123" or "1e5" must not round-trip through a number
_VERBATIM_ENV_KEYS = frozenset({"api_key", "vapid_public_key", "vapid_private_key"})


def _merge_env_vars(base: dict, prefix: str) -> dict:
    """Overlay environment variables onto base config dict.

    Double-underscore separates nesting levels.
    Values are auto-cast: "true"/"false" -> bool, numeric strings -> int/float.
    Credential keys are passed through verbatim.
    """
    result = dict(base)

    for key, value in os.environ.items():
        if not key.startswith(prefix):
            continue

        remainder = key[len(prefix) :]
        parts = [p.lower() for p in remainder.split("__")]

        # Skip the CONFIG env var itself
        if parts == ["config"]:
            continue

        cast_value = value if parts[-1] in _VERBATIM_ENV_KEYS else _auto_cast(value)

        target = result
        for part in parts[:-1]:
            if not isinstance(target.get(part), dict):
                target[part] = {}
            else:
                target[part] = dict(target[part])
            target = target[part]
        target[parts[-1]] = cast_value

    return result


def _auto_cast(value: str) -> str | int | float | bool:
    """Auto-cast string values from environment variables."""
    if value.lower() == "true":
        return True
    if value.lower() == "false":
        return False
    try:
        return int(value)
    except ValueError:
        pass
    try:
        return float(value)
    except ValueError:
        pass
    return value
