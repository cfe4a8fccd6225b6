"""Core data structures for podidentity."""

from podidentity.models.config import PodIdentityConfig
from podidentity.models.identity import (
    ContainerCredentialsPatchConfig,
    Identity,
    IdentityConfigObject,
)

__all__ = [
    "ContainerCredentialsPatchConfig",
    "Identity",
    "IdentityConfigObject",
    "PodIdentityConfig",
]
