"""Filesystem watch collaborator for podidentity.

Exposes:
    FileWatcher -- named, path-scoped subscription that re-delivers a file's
                   full content to a callback on every change.
"""

from podidentity.filesystem.watcher import FileWatcher

__all__ = ["FileWatcher"]
