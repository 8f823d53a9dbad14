"""In-memory view of the remote store for opening and saving files in place."""

import logging
from typing import Optional

from .exceptions import (
    MobileCoderNotFoundError,
    MobileCoderPermissionError,
    MobileCoderUploadError,
)
from .models import RemoteFileRecord
from .sync.engine import SyncEngine
from .utils import format_iso_timestamp

logger = logging.getLogger(__name__)


class RemoteFileCache:
    """Caches remote files by key and writes edits straight back.

    The remote store is flat: there are no directories to create, and
    files cannot be renamed or deleted through this interface.
    """

    def __init__(self, engine: SyncEngine):
        self.engine = engine
        self._files: dict[str, RemoteFileRecord] = {}

    def refresh(self) -> int:
        """Reload the cache from the remote store.

        Returns:
            Number of cached files
        """
        files = self.engine.get_remote_files()
        self._files = {f.key: f for f in files}
        logger.debug(f"Cached {len(self._files)} remote file(s)")
        return len(self._files)

    def keys(self) -> list[str]:
        return sorted(self._files)

    def get(self, key: str) -> Optional[RemoteFileRecord]:
        return self._files.get(key)

    def _require(self, key: str) -> RemoteFileRecord:
        remote_file = self._files.get(key)
        if remote_file is None:
            raise MobileCoderNotFoundError(f"Remote file not found: {key}")
        return remote_file

    def stat(self, key: str) -> tuple[Optional[int], int]:
        """Return (last modified in epoch ms, size in bytes) of a cached file."""
        remote_file = self._require(key)
        return remote_file.last_modified_ms, remote_file.size

    def read(self, key: str) -> str:
        return self._require(key).content

    def write(self, key: str, content: str) -> None:
        """Save new content for a key, overwriting the remote file.

        Raises:
            MobileCoderUploadError: If the content could not be saved
        """
        if not self.engine.update_remote_file_content(key, content):
            raise MobileCoderUploadError(f"Failed to save {key} to MobileCoder")

        remote_file = self._files.get(key)
        if remote_file is None:
            logger.debug(f"{key} was not cached, adding it")
            remote_file = RemoteFileRecord(key=key)
            self._files[key] = remote_file
        remote_file.content = content
        remote_file.last_modified = format_iso_timestamp()

    def create_directory(self, key: str) -> None:
        raise MobileCoderPermissionError("Creating directories is not supported")

    def delete(self, key: str) -> None:
        raise MobileCoderPermissionError("Deleting files is not supported")

    def rename(self, old_key: str, new_key: str) -> None:
        raise MobileCoderPermissionError("Renaming files is not supported")
