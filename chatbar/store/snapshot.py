"""YAML session snapshots and a watcher that feeds reloads to the UI loop.

The watcher runs on watchdog's observer thread and never touches the store
directly: it only queues reload requests, which the UI loop drains and applies
synchronously.
"""

from __future__ import annotations

import logging
import queue
from pathlib import Path
from typing import Any

import yaml
from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from chatbar.store.memory import InMemorySessionStore

logger = logging.getLogger(__name__)

_IGNORED_SUFFIXES = {".swp", ".tmp", ".bak", "~"}


def load_snapshot(path: Path) -> dict[str, Any]:
    """Read a snapshot file. Raises OSError or yaml.YAMLError on unreadable input."""
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Snapshot {path} must be a mapping, got {type(data).__name__}")
    return data


def load_store(path: Path) -> InMemorySessionStore:
    """Build a store from a snapshot file. Malformed entries raise ValueError."""
    store = InMemorySessionStore()
    store.apply_snapshot(load_snapshot(path))
    return store


class _SnapshotHandler(FileSystemEventHandler):
    """Queues a reload whenever the watched snapshot file changes."""

    def __init__(self, path: Path, pending: queue.Queue[Path]) -> None:
        super().__init__()
        self._path = path.resolve()
        self._pending = pending

    def _handle(self, event: FileSystemEvent) -> None:
        src = event.src_path
        if not isinstance(src, str):
            return
        if any(src.endswith(suffix) for suffix in _IGNORED_SUFFIXES):
            return
        candidates = {Path(src).resolve()}
        dest = getattr(event, "dest_path", None)
        if isinstance(dest, str) and dest:
            candidates.add(Path(dest).resolve())
        if self._path in candidates:
            self._pending.put_nowait(self._path)

    def on_created(self, event: FileSystemEvent) -> None:
        self._handle(event)

    def on_modified(self, event: FileSystemEvent) -> None:
        self._handle(event)

    def on_moved(self, event: FileSystemEvent) -> None:
        self._handle(event)


class SnapshotWatcher:
    """Watches a snapshot file and applies changes to a store on demand."""

    def __init__(self, path: Path, store: InMemorySessionStore) -> None:
        self.path = path
        self.store = store
        self.pending: queue.Queue[Path] = queue.Queue()
        self._observer: Any = None

    def start(self) -> None:
        if self._observer is not None:
            return
        observer = Observer()
        observer.schedule(_SnapshotHandler(self.path, self.pending), str(self.path.resolve().parent), recursive=False)
        observer.daemon = True
        observer.start()
        self._observer = observer
        logger.info("Watching snapshot %s", self.path)

    def stop(self) -> None:
        if self._observer is None:
            return
        self._observer.stop()
        self._observer.join(timeout=2.0)
        self._observer = None

    def drain(self) -> bool:
        """Apply at most one reload for all queued change notifications.

        Returns True if the store was reloaded.
        """
        requested = False
        while True:
            try:
                self.pending.get_nowait()
            except queue.Empty:
                break
            requested = True
        if not requested:
            return False
        try:
            self.store.apply_snapshot(load_snapshot(self.path))
        except (OSError, yaml.YAMLError, ValueError) as e:
            logger.warning("Failed to reload snapshot %s: %s", self.path, e)
            return False
        return True
