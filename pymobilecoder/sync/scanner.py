"""Directory scanning utilities for sync operations."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..utils import IGNORED_DIRECTORIES, is_syncable_file

logger = logging.getLogger(__name__)


@dataclass
class LocalFile:
    """Represents a local file with metadata."""

    path: Path
    """Absolute path to the file"""

    relative_path: str
    """Relative path (using forward slashes for cross-platform compatibility)"""

    size: int
    """File size in bytes"""

    mtime_ns: int
    """Last modification time (nanoseconds since the epoch)"""

    @property
    def mtime(self) -> float:
        """Last modification time (Unix timestamp)."""
        return self.mtime_ns / 1_000_000_000

    @property
    def mtime_ms(self) -> int:
        """Last modification time truncated to whole milliseconds."""
        return self.mtime_ns // 1_000_000

    @classmethod
    def from_path(cls, file_path: Path, base_path: Path) -> "LocalFile":
        """Create LocalFile from a path.

        Args:
            file_path: Absolute path to the file
            base_path: Base path for calculating relative paths

        Returns:
            LocalFile instance

        Raises:
            OSError: If the file cannot be stat'ed
        """
        stat = file_path.stat()
        # Use as_posix() to ensure forward slashes on all platforms
        relative_path = file_path.relative_to(base_path).as_posix()

        return cls(
            path=file_path,
            relative_path=relative_path,
            size=stat.st_size,
            mtime_ns=stat.st_mtime_ns,
        )


class DirectoryScanner:
    """Walks a sync root and lists the files to synchronize.

    Hidden entries (names starting with a dot), dependency directories
    and version control metadata are skipped; files must carry one of the
    syncable extensions.

    Examples:
        >>> scanner = DirectoryScanner()
        >>> files = scanner.scan_local(Path("/home/user/project"))
        >>> [f.relative_path for f in files]
        ['main.py', 'src/app.ts']
    """

    def should_skip_directory(self, name: str) -> bool:
        return name.startswith(".") or name in IGNORED_DIRECTORIES

    def scan_local(
        self, directory: Path, base_path: Optional[Path] = None
    ) -> list[LocalFile]:
        """Recursively scan a local directory.

        Directory read errors are not caught: a tree that cannot be walked
        completely is not synced at all.

        Args:
            directory: Directory to scan
            base_path: Base path for calculating relative paths (defaults to directory)

        Returns:
            List of LocalFile objects in walk order

        Raises:
            OSError: If a directory cannot be listed
        """
        if base_path is None:
            base_path = directory

        files: list[LocalFile] = []
        for item in sorted(directory.iterdir()):
            if item.is_dir():
                if self.should_skip_directory(item.name):
                    logger.debug(f"Skipping directory: {item}")
                    continue
                files.extend(self.scan_local(item, base_path))
            elif item.is_file() and is_syncable_file(item.name):
                files.append(LocalFile.from_path(item, base_path))

        return files
