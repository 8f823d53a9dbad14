"""Sync metadata persistence.

The metadata record maps the relative path of every file that was
uploaded at least once to its remote key. A path missing from the mapping
is treated as a new file and uploaded unconditionally; a path present in
it goes through timestamp based conflict resolution.

The record is a single JSON document in the sync root::

    {"lastSync": "2025-01-15T10:30:00.000Z", "files": {"src/a.py": "src/a.py"}}

There is no locking. Two processes writing at the same time can lose an
update, which at worst causes a file to be uploaded as new again.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from ..utils import SYNC_METADATA_FILE, format_iso_timestamp

logger = logging.getLogger(__name__)


@dataclass
class SyncMetadata:
    """Mapping of tracked files to remote keys."""

    last_sync: str
    """ISO timestamp of the last recorded sync (informational only)"""

    files: dict[str, str] = field(default_factory=dict)
    """Relative path -> remote key"""

    def to_dict(self) -> dict:
        """Convert metadata to dictionary for JSON serialization."""
        return {"lastSync": self.last_sync, "files": dict(self.files)}

    @classmethod
    def from_dict(cls, data: dict) -> "SyncMetadata":
        """Create SyncMetadata from dictionary.

        Raises:
            ValueError: If the data does not have the expected shape
        """
        if not isinstance(data, dict):
            raise ValueError("metadata must be an object")
        files = data.get("files", {})
        if not isinstance(files, dict) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in files.items()
        ):
            raise ValueError("'files' must map strings to strings")
        last_sync = data.get("lastSync")
        return cls(
            last_sync=(
                last_sync if isinstance(last_sync, str) else format_iso_timestamp()
            ),
            files=files,
        )

    @classmethod
    def empty(cls) -> "SyncMetadata":
        return cls(last_sync=format_iso_timestamp())


class SyncMetadataStore:
    """Reads and writes the sync metadata record of a sync root."""

    def __init__(self, root: Path, filename: str = SYNC_METADATA_FILE):
        """Initialize the metadata store.

        Args:
            root: Sync root directory
            filename: Name of the record inside root
        """
        self.root = root
        self.path = root / filename

    def load(self) -> SyncMetadata:
        """Load the metadata record.

        Never fails: a missing record, or one that cannot be parsed,
        yields an empty mapping so that every file is uploaded as new.

        Returns:
            Current metadata
        """
        if not self.path.exists():
            logger.debug(f"No sync metadata found at {self.path}")
            return SyncMetadata.empty()

        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
            metadata = SyncMetadata.from_dict(data)
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable sync metadata {self.path}: {e}")
            return SyncMetadata.empty()

        logger.debug(
            f"Loaded sync metadata with {len(metadata.files)} tracked files "
            f"from {metadata.last_sync}"
        )
        return metadata

    def save(self, metadata: SyncMetadata) -> None:
        """Write the metadata record.

        Raises:
            OSError: If the record cannot be written
        """
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(metadata.to_dict(), f, indent=2)

    def record_sync(self, relative_path: str, remote_key: str) -> None:
        """Record a successful upload of a file.

        Args:
            relative_path: Path of the file relative to the sync root
            remote_key: Key the file was stored under
        """
        metadata = self.load()
        metadata.files[relative_path] = remote_key
        metadata.last_sync = format_iso_timestamp()

        try:
            self.save(metadata)
            logger.debug(f"Recorded sync of {relative_path} -> {remote_key}")
        except OSError as e:
            logger.warning(f"Failed to save sync metadata: {e}")

    def get_remote_key(self, relative_path: str) -> Optional[str]:
        """Return the remote key of a tracked file, None if untracked."""
        return self.load().files.get(relative_path)

    def clear(self) -> bool:
        """Delete the metadata record.

        Returns:
            True if a record was deleted, False if none existed
        """
        if self.path.exists():
            self.path.unlink()
            logger.debug(f"Cleared sync metadata at {self.path}")
            return True
        return False
