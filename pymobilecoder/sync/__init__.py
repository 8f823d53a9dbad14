"""Sync engine for PyMobileCoder - metadata, change detection and sync."""

from .comparator import FileComparator, SyncAction, SyncDecision
from .engine import SyncEngine, SyncResults
from .operations import SyncOperations
from .scanner import DirectoryScanner, LocalFile
from .state import SyncMetadata, SyncMetadataStore
from .watcher import FileWatcher, PendingBatch

__all__ = [
    "SyncEngine",
    "SyncResults",
    "SyncOperations",
    "DirectoryScanner",
    "FileComparator",
    "SyncAction",
    "SyncDecision",
    "LocalFile",
    "SyncMetadata",
    "SyncMetadataStore",
    "FileWatcher",
    "PendingBatch",
]
