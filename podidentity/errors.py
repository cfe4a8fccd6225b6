"""Exception taxonomy for podidentity."""

from __future__ import annotations


class PodIdentityError(Exception):
    """Base exception for podidentity errors."""


class ConfigParseError(PodIdentityError):
    """Raised when identity config content cannot be decoded.

    The cache state is left untouched when this is raised.
    """


class WatchError(PodIdentityError):
    """Raised when a file watch subscription cannot be established."""

    def __init__(self, name: str, path: str, reason: str) -> None:
        super().__init__(f"Watch '{name}' on {path} failed: {reason}")
        self.name = name
        self.path = path
        self.reason = reason
