"""Configuration data structures."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class ContainerCredentialsConfig:
    """Patch values handed to every matched identity."""

    audience: str = "pods.eks.amazonaws.com"
    full_uri: str = "http://169.254.170.23/v1/credentials"


@dataclass
class WatchConfig:
    """Identity config file watch settings."""

    config_file: str = ""


@dataclass
class LogConfig:
    """Logging configuration."""

    level: str = "info"


@dataclass
class PodIdentityConfig:
    """Top-level podidentity configuration."""

    container_credentials: ContainerCredentialsConfig = field(default_factory=ContainerCredentialsConfig)
    watch: WatchConfig = field(default_factory=WatchConfig)
    log: LogConfig = field(default_factory=LogConfig)
