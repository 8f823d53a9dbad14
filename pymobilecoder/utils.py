"""Utility functions for MobileCoder sync."""

import hashlib
from datetime import datetime, timedelta, timezone
from pathlib import Path, PurePath
from typing import Optional, Union

# =============================================================================
# Constants for file operations
# =============================================================================

# Extensions that are synchronized; everything else is ignored
SYNCABLE_EXTENSIONS: frozenset[str] = frozenset(
    {
        ".js",
        ".ts",
        ".jsx",
        ".tsx",
        ".py",
        ".java",
        ".cpp",
        ".c",
        ".h",
        ".css",
        ".html",
        ".md",
        ".json",
        ".xml",
        ".txt",
    }
)

# Directories that are never walked or watched
IGNORED_DIRECTORIES: frozenset[str] = frozenset({"node_modules", ".git"})

# Default auto-sync debounce interval (seconds)
DEFAULT_SYNC_INTERVAL: float = 300.0

# Name of the sync metadata record inside the sync root
SYNC_METADATA_FILE: str = ".mobilecoder-sync.json"

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# Extension to editor language
LANGUAGE_MAP: dict[str, str] = {
    ".py": "python",
    ".js": "javascript",
    ".ts": "typescript",
    ".jsx": "javascript",
    ".tsx": "typescript",
    ".json": "json",
    ".md": "markdown",
    ".css": "css",
    ".html": "html",
    ".txt": "text",
    ".java": "java",
    ".cpp": "cpp",
    ".c": "c",
    ".h": "c",
}

# Extension to icon name used in file listings
ICON_MAP: dict[str, str] = {
    ".js": "javascript",
    ".ts": "typescript",
    ".jsx": "react",
    ".tsx": "react",
    ".py": "python",
    ".java": "java",
    ".cpp": "cpp",
    ".c": "c",
    ".h": "h",
    ".css": "css",
    ".html": "html",
    ".md": "markdown",
    ".json": "json",
    ".xml": "xml",
    ".txt": "text",
}


# =============================================================================
# Checksum utilities
# =============================================================================


def calculate_checksum(content: str) -> str:
    """Calculate the checksum sent along with file content.

    Args:
        content: File content as text

    Returns:
        Hex encoded MD5 digest of the UTF-8 encoded content

    Examples:
        >>> calculate_checksum("hello")
        '5d41402abc4b2a76b9719d911017c592'
    """
    return hashlib.md5(content.encode("utf-8")).hexdigest()


# =============================================================================
# Timestamp utilities
# =============================================================================


def parse_iso_timestamp(timestamp_str: Optional[str]) -> Optional[datetime]:
    """Parse ISO format timestamp from the MobileCoder API.

    Args:
        timestamp_str: ISO format timestamp string (e.g., "2025-01-15T10:30:00.000Z")

    Returns:
        Timezone aware datetime (naive values are taken as UTC) or None if
        parsing fails
    """
    if not timestamp_str:
        return None

    try:
        # The 'Z' suffix indicates UTC time
        if timestamp_str.endswith("Z"):
            timestamp_str = timestamp_str[:-1] + "+00:00"
        dt = datetime.fromisoformat(timestamp_str)
    except (ValueError, TypeError):
        return None

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def to_epoch_ms(dt: datetime) -> int:
    """Reduce an aware datetime to whole epoch milliseconds.

    Integer arithmetic is used so that a value formatted with
    format_iso_timestamp() and parsed back compares equal.
    """
    return (dt - EPOCH) // timedelta(milliseconds=1)


def format_iso_timestamp(epoch_ms: Optional[int] = None) -> str:
    """Format epoch milliseconds (or now) as an ISO-8601 UTC string.

    The format matches what the remote store returns, with millisecond
    precision and a trailing 'Z'.

    Args:
        epoch_ms: Milliseconds since the epoch, defaults to the current time

    Returns:
        ISO timestamp string, e.g. "2025-01-15T10:30:00.000Z"
    """
    if epoch_ms is None:
        dt = datetime.now(timezone.utc)
    else:
        dt = EPOCH + timedelta(milliseconds=epoch_ms)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


# =============================================================================
# Path filtering utilities
# =============================================================================


def is_syncable_file(filename: Union[str, PurePath]) -> bool:
    """Check whether a file name has a syncable extension and is not hidden.

    Args:
        filename: File name or path

    Returns:
        True if the file should be synchronized
    """
    name = PurePath(filename).name
    if name.startswith("."):
        return False
    return PurePath(name).suffix.lower() in SYNCABLE_EXTENSIONS


def is_ignored_path(path: Union[str, Path], root: Union[str, Path]) -> bool:
    """Check whether any component of a path below root is hidden or ignored.

    Args:
        path: Path to check
        root: Sync root the path lives in

    Returns:
        True for dotfiles, paths inside dot-directories, dependency
        directories and version control metadata. Paths outside root
        are always ignored.
    """
    try:
        relative = Path(path).relative_to(Path(root))
    except ValueError:
        return True

    for part in relative.parts:
        if part.startswith(".") or part in IGNORED_DIRECTORIES:
            return True
    return False


def get_language_from_filename(filename: str) -> str:
    """Get the editor language for a file name, falling back to "text"."""
    return LANGUAGE_MAP.get(PurePath(filename).suffix.lower(), "text")


def get_icon_from_filename(filename: str) -> str:
    """Get the icon name for a file name, falling back to "file"."""
    return ICON_MAP.get(PurePath(filename).suffix.lower(), "file")


# =============================================================================
# Formatting utilities
# =============================================================================


def pluralize(count: int, word: str) -> str:
    """Return "1 file" / "2 files" style text."""
    return f"{count} {word}{'' if count == 1 else 's'}"
