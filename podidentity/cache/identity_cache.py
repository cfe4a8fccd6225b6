"""Hot-reloadable identity cache backed by a watched JSON file.

``FileConfig`` answers "should this service account be patched?" lookups.
The installed state is a pair (raw config object, identity set) that is only
ever replaced as a whole: ``load`` parses and builds the new set first, then
swaps both references under the write lock, so a lookup sees either the old
pair or the new one and never a mix.

State model:
    uninitialized -- nothing loaded yet; both references are None.
    loaded        -- last successful load had content.
    emptied       -- last successful load was empty; both references are None.

A failed load leaves whichever state was installed. ``get`` returns None in
the uninitialized and emptied states alike.
"""

from __future__ import annotations

import asyncio
import os
from typing import Protocol

import structlog

from podidentity.cache.rwlock import ReadWriteLock
from podidentity.errors import ConfigParseError, WatchError
from podidentity.filesystem import FileWatcher
from podidentity.models.identity import (
    ContainerCredentialsPatchConfig,
    Identity,
    IdentityConfigObject,
)

_log = structlog.get_logger(component="cache.identity")

WATCH_NAME = "local-file-config"


class Config(Protocol):
    """Lookup interface consumed by the pod mutator."""

    def get(self, namespace: str, service_account: str) -> ContainerCredentialsPatchConfig | None: ...


class FileConfig:
    """Identity cache whose contents come from a JSON file.

    Args:
        audience: Token audience injected for every matched identity.
        full_uri: Container credentials endpoint injected for every match.
    """

    def __init__(self, audience: str, full_uri: str) -> None:
        self._patch_config = ContainerCredentialsPatchConfig(audience=audience, full_uri=full_uri)
        self._lock = ReadWriteLock()
        # Guarded by _lock; always replaced together.
        self._identity_config_object: IdentityConfigObject | None = None
        self._cache: frozenset[Identity] | None = None
        self._watcher: FileWatcher | None = None

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    @property
    def identity_config_object(self) -> IdentityConfigObject | None:
        """The raw config object from the last successful load, if any."""
        with self._lock.read_locked():
            return self._identity_config_object

    @property
    def identity_count(self) -> int:
        with self._lock.read_locked():
            return len(self._cache) if self._cache is not None else 0

    # ------------------------------------------------------------------
    # Reload
    # ------------------------------------------------------------------

    def load(self, content: bytes | None) -> None:
        """Replace the cache contents with the identities in *content*.

        Empty or absent content clears the cache; this is a valid state, not
        an error.

        Raises:
            ConfigParseError: content is malformed. The previously installed
                state is kept.
        """
        if not content:
            with self._lock.write_locked():
                self._identity_config_object = None
                self._cache = None
            _log.info("config file is empty, clearing cache")
            return

        try:
            config_object = IdentityConfigObject.from_json(content)
        except ConfigParseError as exc:
            _log.error("error unmarshalling config file", error=str(exc))
            raise

        for identity in config_object.identities:
            _log.debug(
                "adding service account to config cache",
                namespace=identity.namespace,
                service_account=identity.service_account,
            )
        new_cache = frozenset(config_object.identities)

        with self._lock.write_locked():
            self._identity_config_object = config_object
            self._cache = new_cache
        _log.info("successfully loaded config file", identities=len(new_cache))

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get(self, namespace: str, service_account: str) -> ContainerCredentialsPatchConfig | None:
        """Return the patch config if the identity is configured, else None."""
        key = Identity(namespace=namespace, service_account=service_account)
        if self._contains(key):
            return self._patch_config
        return None

    def _contains(self, identity: Identity) -> bool:
        with self._lock.read_locked():
            return self._cache is not None and identity in self._cache

    # ------------------------------------------------------------------
    # Watch integration
    # ------------------------------------------------------------------

    async def start_watcher(
        self,
        file_path: str | os.PathLike[str],
        stop_event: asyncio.Event | None = None,
    ) -> asyncio.Task[None]:
        """Load *file_path* now and reload it whenever it changes.

        The returned task runs until *stop_event* is set or the task is
        cancelled. Stopping the watch leaves the loaded identities in place.

        Raises:
            WatchError: a watch was already started on this cache, or the
                watch could not be established. Errors from individual
                reloads are logged by the watcher instead.
        """
        if self._watcher is not None:
            raise WatchError(WATCH_NAME, str(self._watcher.path), "watch already started")
        self._watcher = FileWatcher(WATCH_NAME, file_path, self.load)
        try:
            return await self._watcher.watch(stop_event)
        except BaseException:
            # A failed or cancelled setup leaves the cache free to watch again.
            self._watcher = None
            raise
