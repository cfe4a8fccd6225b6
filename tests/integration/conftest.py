"""Shared fixtures for podidentity integration tests.

Integration tests drive the real watchdog-backed watcher against files in a
temporary directory; nothing outside ``tmp_path`` is touched.
"""

from __future__ import annotations

import asyncio
import json
import time
from collections.abc import Callable
from pathlib import Path

import pytest

from podidentity.models.identity import Identity, IdentityConfigObject

AUDIENCE = "containerCredentialsAudience"
FULL_URI = "containersCredentialsFullUri"

DEFAULT_TIMEOUT = 10.0
POLL_INTERVAL = 0.05


def default_config_object() -> IdentityConfigObject:
    return IdentityConfigObject(
        identities=(
            Identity(namespace="foo", service_account="ns-foo-sa"),
            Identity(namespace="bar", service_account="ns-bar-sa"),
        )
    )


def config_bytes(config_object: IdentityConfigObject) -> bytes:
    return json.dumps(config_object.to_dict()).encode()


async def eventually(
    condition: Callable[[], bool],
    timeout: float = DEFAULT_TIMEOUT,
    interval: float = POLL_INTERVAL,
) -> None:
    """Poll *condition* on the event loop until it holds or *timeout* expires."""
    deadline = time.monotonic() + timeout
    while not condition():
        if time.monotonic() >= deadline:
            pytest.fail(f"condition not met within {timeout}s")
        await asyncio.sleep(interval)


@pytest.fixture
def identity_file(tmp_path: Path) -> Path:
    """A file holding the default two-identity config."""
    path = tmp_path / "identities.json"
    path.write_bytes(config_bytes(default_config_object()))
    return path
