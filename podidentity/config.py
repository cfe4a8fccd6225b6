"""Configuration loading from environment variables."""

from __future__ import annotations

import os
from urllib.parse import urlparse

from podidentity.models.config import (
    ContainerCredentialsConfig,
    LogConfig,
    PodIdentityConfig,
    WatchConfig,
)


def _env(key: str, default: str = "") -> str:
    return os.environ.get(f"PODIDENTITY_{key}", default)


def _validate_full_uri(value: str) -> str:
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError(f"Invalid container credentials full URI: {value}")
    return value


def _validate_log_level(value: str) -> str:
    valid = {"debug", "info", "warning", "error"}
    if value.lower() not in valid:
        raise ValueError(f"Invalid log level: {value}. Must be one of {valid}")
    return value.lower()


def load_config() -> PodIdentityConfig:
    """Load configuration from PODIDENTITY_* environment variables."""
    defaults = ContainerCredentialsConfig()
    return PodIdentityConfig(
        container_credentials=ContainerCredentialsConfig(
            audience=_env("CONTAINER_CREDENTIALS_AUDIENCE", defaults.audience),
            full_uri=_validate_full_uri(_env("CONTAINER_CREDENTIALS_FULL_URI", defaults.full_uri)),
        ),
        watch=WatchConfig(
            config_file=_env("WATCH_CONFIG_FILE", ""),
        ),
        log=LogConfig(
            level=_validate_log_level(_env("LOG_LEVEL", "info")),
        ),
    )
