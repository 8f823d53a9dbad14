"""Debounced file change detection for automatic sync.

A watchdog observer reports created, modified and moved files below the
sync root. Syncable paths are collected in a PendingBatch whose deadline is
pushed back on every change; once the deadline passes without further
changes the whole batch is drained at once and handed to the sync engine.
"""

import logging
import os
import threading
import time
from pathlib import Path
from typing import Callable, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from ..auth import AuthStateChannel
from ..config import SyncSettings
from ..utils import is_ignored_path, is_syncable_file
from .engine import SyncEngine, SyncResults

logger = logging.getLogger(__name__)

# How often the dispatcher thread checks the batch deadline (seconds)
DEFAULT_POLL_INTERVAL = 0.5


class PendingBatch:
    """Changed paths waiting for the debounce deadline.

    Adding a path resets the deadline; draining returns every pending
    path and empties the batch in one step.
    """

    def __init__(self) -> None:
        self._paths: set[str] = set()
        self._deadline: Optional[float] = None
        self._lock = threading.Lock()

    def add(self, path: str, now: float, interval: float) -> None:
        """Add a path and move the deadline to now + interval."""
        with self._lock:
            self._paths.add(path)
            self._deadline = now + interval

    @property
    def deadline(self) -> Optional[float]:
        with self._lock:
            return self._deadline

    def is_due(self, now: float) -> bool:
        with self._lock:
            if not self._paths or self._deadline is None:
                return False
            return now >= self._deadline

    def drain(self) -> list[str]:
        """Take all pending paths and clear the batch and its deadline."""
        with self._lock:
            paths = sorted(self._paths)
            self._paths.clear()
            self._deadline = None
        return paths

    def clear(self) -> None:
        self.drain()

    def __len__(self) -> int:
        with self._lock:
            return len(self._paths)

    def __contains__(self, path: object) -> bool:
        with self._lock:
            return path in self._paths


class _ChangeHandler(FileSystemEventHandler):
    """Forwards file events from the observer thread to the watcher."""

    def __init__(self, watcher: "FileWatcher"):
        self.watcher = watcher

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self.watcher.on_file_changed(os.fsdecode(event.src_path))

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self.watcher.on_file_changed(os.fsdecode(event.src_path))

    def on_moved(self, event: FileSystemEvent) -> None:
        # Editors that save atomically rename a temp file over the target
        if not event.is_directory:
            self.watcher.on_file_changed(os.fsdecode(event.dest_path))


class FileWatcher:
    """Watches the sync root and syncs changed files in debounced batches."""

    def __init__(
        self,
        engine: SyncEngine,
        settings: SyncSettings,
        clock: Callable[[], float] = time.monotonic,
        on_batch_synced: Optional[Callable[[SyncResults], None]] = None,
        auth_state: Optional[AuthStateChannel] = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
    ):
        """Initialize the file watcher.

        Args:
            engine: Sync engine batches are handed to
            settings: Provides sync root, auto_sync and sync_interval
            clock: Monotonic clock used for debounce deadlines
            on_batch_synced: Called with the results of every synced batch
            auth_state: When given, the watcher starts on sign in and stops
                on sign out
            poll_interval: How often the deadline is checked while running
        """
        self.engine = engine
        self.settings = settings
        self.clock = clock
        self.on_batch_synced = on_batch_synced
        self.poll_interval = poll_interval
        self.pending = PendingBatch()

        self._root: Optional[Path] = None
        self._observer: Optional[Observer] = None
        self._dispatcher: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._unsubscribe: Optional[Callable[[], None]] = None

        if auth_state is not None:
            self._unsubscribe = auth_state.subscribe(self._on_auth_state_changed)

    @property
    def running(self) -> bool:
        return self._observer is not None

    def start(self) -> bool:
        """Start watching the sync root.

        Returns:
            True if watching, False if auto sync is disabled or there is
            no sync directory to watch
        """
        if self.running:
            return True

        if not self.settings.auto_sync:
            logger.debug("Auto sync disabled, not watching")
            return False

        root = self.settings.resolve_root()
        if root is None or not root.is_dir():
            logger.debug(f"No sync directory to watch ({root})")
            return False

        self._root = root
        self._stop_event.clear()

        observer = Observer()
        observer.schedule(_ChangeHandler(self), str(root), recursive=True)
        observer.start()
        self._observer = observer

        self._dispatcher = threading.Thread(
            target=self._dispatch_loop, name="mobilecoder-sync-dispatch", daemon=True
        )
        self._dispatcher.start()

        logger.info(f"Started watching {root} for file changes")
        return True

    def stop(self) -> None:
        """Stop watching and discard pending changes. Safe to call twice."""
        observer, self._observer = self._observer, None
        if observer is not None:
            observer.stop()
            observer.join()

        self._stop_event.set()
        dispatcher, self._dispatcher = self._dispatcher, None
        if dispatcher is not None and dispatcher is not threading.current_thread():
            dispatcher.join()

        self.pending.clear()
        if observer is not None:
            logger.info("Stopped file watching")

    def close(self) -> None:
        """Stop watching and unsubscribe from auth state changes."""
        self.stop()
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _on_auth_state_changed(self, authenticated: bool) -> None:
        if authenticated:
            self.start()
        else:
            self.stop()

    def on_file_changed(self, path: str) -> bool:
        """Handle a created or modified file.

        Args:
            path: Absolute path of the file

        Returns:
            True if the path was queued for sync
        """
        root = self._root or self.settings.resolve_root()
        if root is None:
            return False

        if not is_syncable_file(path) or is_ignored_path(path, root):
            return False

        interval = self.settings.sync_interval
        if interval <= 0:
            logger.debug(f"Change detected but scheduled sync is disabled: {path}")
            return False

        self.pending.add(path, self.clock(), interval)
        logger.debug(f"Queued change: {path}")
        return True

    def flush_due(self, now: Optional[float] = None) -> Optional[SyncResults]:
        """Sync the pending batch if its deadline has passed.

        Args:
            now: Current clock value (default: read the clock)

        Returns:
            Results of the synced batch, None if nothing was due
        """
        if now is None:
            now = self.clock()
        if not self.pending.is_due(now):
            return None
        return self.flush()

    def flush(self) -> Optional[SyncResults]:
        """Sync all pending changes now, regardless of the deadline."""
        paths = self.pending.drain()
        if not paths:
            return None

        logger.info(f"Auto-syncing {len(paths)} changed file(s)")
        results = self.engine.sync_files(paths)

        if results.total:
            message = (
                f"Auto-synced: {results.success} success, {results.failed} failed"
            )
            if results.failed == 0:
                logger.info(message)
            else:
                logger.warning(message)

        if self.on_batch_synced is not None:
            self.on_batch_synced(results)
        return results

    def _dispatch_loop(self) -> None:
        while not self._stop_event.wait(self.poll_interval):
            try:
                self.flush_due()
            except Exception as e:
                # A broken batch must not kill the dispatcher thread
                logger.error(f"Auto-sync batch failed: {e}")
