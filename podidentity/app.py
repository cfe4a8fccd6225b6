"""Application bootstrap for podidentity.

Startup order: config → logging → identity cache → file watcher.
Shutdown stops the watch loop; the loaded identities stay in place until the
process exits.
"""

from __future__ import annotations

import asyncio
import signal
from typing import TYPE_CHECKING

from podidentity.cache import FileConfig
from podidentity.config import load_config
from podidentity.models.config import PodIdentityConfig
from podidentity.observability.logging import get_logger, setup_logging

if TYPE_CHECKING:
    import structlog


class _ComponentError(Exception):
    """Raised when a mandatory component fails to start."""

    def __init__(self, component: str, cause: Exception) -> None:
        super().__init__(f"Component '{component}' failed to start: {cause}")
        self.component = component
        self.cause = cause


class PodIdentityApp:
    """Owns the identity cache and its watch loop.

    ``stop()`` is safe to call on an app that was never started or is
    already stopped.
    """

    def __init__(self, config: PodIdentityConfig | None = None) -> None:
        self.config = config
        self.identity_config: FileConfig | None = None

        self._stop_event = asyncio.Event()
        self._watch_task: asyncio.Task[None] | None = None
        self._running = False
        self._log: structlog.stdlib.BoundLogger | None = None

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start all components in dependency order.

        Raises _ComponentError if the watch on the identity file cannot be
        established.
        """
        if self.config is None:
            self.config = load_config()

        setup_logging(self.config.log.level)
        self._log = get_logger("app")
        self._log.info("podidentity starting", version=_podidentity_version())

        creds = self.config.container_credentials
        self.identity_config = FileConfig(creds.audience, creds.full_uri)

        await self._start_watcher()

        self._running = True
        self._log.info("podidentity started")

    async def _start_watcher(self) -> None:
        assert self._log is not None
        assert self.config is not None
        assert self.identity_config is not None
        config_file = self.config.watch.config_file
        if not config_file:
            self._log.info("identity config file not set; no identities will match")
            return
        try:
            self._watch_task = await self.identity_config.start_watcher(config_file, self._stop_event)
        except Exception as exc:
            raise _ComponentError("file_watcher", exc) from exc
        self._log.info(
            "identity file watcher started",
            path=config_file,
            identities=self.identity_config.identity_count,
        )

    async def stop(self) -> None:
        """Stop the watch loop and wait for it to finish."""
        if not self._running and self._log is None:
            return

        log = self._log or get_logger("app")
        log.info("podidentity shutting down")
        self._running = False

        self._stop_event.set()
        if self._watch_task is not None:
            await asyncio.gather(self._watch_task, return_exceptions=True)
            self._watch_task = None

        log.info("podidentity stopped")


def _podidentity_version() -> str:
    from podidentity import __version__

    return __version__


# ---------------------------------------------------------------------------
# Async entrypoint
# ---------------------------------------------------------------------------


async def main() -> None:
    """Create the app, register OS signals, run until shutdown is requested."""
    app = PodIdentityApp()
    loop = asyncio.get_running_loop()
    shutdown = asyncio.Event()

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, shutdown.set)

    try:
        await app.start()
        await shutdown.wait()
    except _ComponentError as exc:
        log = get_logger("app")
        log.critical(
            "fatal startup error",
            component=exc.component,
            error=str(exc.cause),
        )
        raise SystemExit(1) from exc
    finally:
        await app.stop()


def run() -> None:
    """Console-script entry point."""
    asyncio.run(main())
