"""FileWatcher: delivers the full content of a file to a callback on every change.

The watchdog observer runs on its own thread and only signals that something
changed; reading the file and invoking the callback both happen on the asyncio
event loop, one change at a time, in the order the changes were observed.

The parent directory is watched rather than the file itself so that atomic
replacements are picked up: editors that write a temp file and rename it over
the target, and Kubernetes ConfigMap volumes, which swap a ``..data`` symlink.
"""

from __future__ import annotations

import asyncio
import contextlib
import os
from collections.abc import Callable
from pathlib import Path

import structlog
from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer
from watchdog.observers.api import BaseObserver

from podidentity.errors import WatchError

_log = structlog.get_logger(component="filesystem.watcher")

_OBSERVER_JOIN_TIMEOUT = 2.0

# opened/closed events are excluded: our own reads would otherwise re-trigger the watch.
_CHANGE_EVENT_TYPES = frozenset({EVENT_TYPE_CREATED, EVENT_TYPE_MODIFIED, EVENT_TYPE_MOVED})

ContentCallback = Callable[[bytes], None]


class _ChangeHandler(FileSystemEventHandler):
    """Filters directory events down to changes affecting one file."""

    def __init__(self, path: Path, notify: Callable[[], None]) -> None:
        super().__init__()
        self._path = os.fspath(path)
        self._realpath = os.path.realpath(path)
        self._notify = notify

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.event_type not in _CHANGE_EVENT_TYPES:
            return
        touched = {os.fsdecode(event.src_path), os.fsdecode(getattr(event, "dest_path", "") or "")}
        realpath = os.path.realpath(self._path)
        if self._path in touched or realpath != self._realpath:
            self._realpath = realpath
            self._notify()


class FileWatcher:
    """A named, path-scoped watch subscription.

    Args:
        name:      Subscription name, used in logs and the task name.
        file_path: File whose content is delivered to *callback*.
        callback:  Receives the full file content once at start and again
                   after every detected change. Exceptions it raises are
                   logged and do not stop the watch.
    """

    def __init__(self, name: str, file_path: str | os.PathLike[str], callback: ContentCallback) -> None:
        self.name = name
        self._path = Path(file_path).absolute()
        self._callback = callback
        self._observer: BaseObserver | None = None
        self._changes: asyncio.Queue[None] = asyncio.Queue()

    @property
    def path(self) -> Path:
        return self._path

    async def watch(self, stop_event: asyncio.Event | None = None) -> asyncio.Task[None]:
        """Establish the subscription and start the watch loop.

        Delivers the current file content before returning. The returned task
        runs until *stop_event* is set or the task is cancelled.

        Raises:
            WatchError: the path is not a regular file or the observer
                could not be started.
        """
        if self._observer is not None:
            raise WatchError(self.name, str(self._path), "watch already started")
        if not self._path.is_file():
            raise WatchError(self.name, str(self._path), "not a regular file")

        loop = asyncio.get_running_loop()

        def _signal_change() -> None:
            # The loop may already be closed if an event races process shutdown.
            with contextlib.suppress(RuntimeError):
                loop.call_soon_threadsafe(self._changes.put_nowait, None)

        observer = Observer()
        try:
            observer.schedule(_ChangeHandler(self._path, _signal_change), str(self._path.parent), recursive=False)
            observer.start()
        except OSError as exc:
            raise WatchError(self.name, str(self._path), str(exc)) from exc
        self._observer = observer
        _log.info("file watcher started", watch=self.name, path=str(self._path))

        try:
            await self._deliver()
        except asyncio.CancelledError:
            self.stop()
            raise
        task = asyncio.create_task(self._run(stop_event), name=f"file-watcher-{self.name}")
        # Also covers a task cancelled before its first step.
        task.add_done_callback(lambda _: self.stop())
        return task

    def stop(self) -> None:
        """Signal the observer thread to stop. Safe to call more than once.

        Does not wait for the thread to exit; the watch task joins it in a
        worker thread so the event loop never blocks on it.
        """
        observer = self._observer
        if observer is None:
            return
        self._observer = None
        observer.stop()
        _log.info("file watcher stopped", watch=self.name, path=str(self._path))

    async def _run(self, stop_event: asyncio.Event | None) -> None:
        observer = self._observer
        stopped = asyncio.ensure_future(stop_event.wait()) if stop_event is not None else None
        changed: asyncio.Future[None] | None = None
        try:
            while True:
                changed = asyncio.ensure_future(self._changes.get())
                waiters = {changed} if stopped is None else {changed, stopped}
                await asyncio.wait(waiters, return_when=asyncio.FIRST_COMPLETED)
                if stopped is not None and stopped.done():
                    break
                _log.debug("file changed", watch=self.name, path=str(self._path))
                await self._deliver()
        finally:
            for fut in (changed, stopped):
                if fut is not None and not fut.done():
                    fut.cancel()
            self.stop()
            if observer is not None:
                await asyncio.to_thread(observer.join, _OBSERVER_JOIN_TIMEOUT)

    async def _deliver(self) -> None:
        try:
            content = await asyncio.to_thread(self._path.read_bytes)
        except OSError as exc:
            # Transient during atomic swaps; the follow-up event re-reads.
            _log.warning("error reading watched file", watch=self.name, path=str(self._path), error=str(exc))
            return
        try:
            self._callback(content)
        except Exception as exc:
            _log.error("watch callback failed", watch=self.name, path=str(self._path), error=str(exc))
