"""Upload and download mechanics shared by the sync engine."""

import logging
import os
from pathlib import Path

from ..api import MobileCoderClient
from ..exceptions import MobileCoderDownloadError, MobileCoderUploadError
from ..models import RemoteFileRecord
from ..utils import calculate_checksum, format_iso_timestamp
from .scanner import LocalFile

logger = logging.getLogger(__name__)


class SyncOperations:
    """Whole-file transfers between the local tree and the remote store."""

    def __init__(self, client: MobileCoderClient):
        """Initialize sync operations.

        Args:
            client: MobileCoder API client
        """
        self.client = client

    def upload_file(
        self, local_file: LocalFile, remote_key: str, access_token: str
    ) -> None:
        """Upload a local file, creating or replacing the remote key.

        The checksum is computed from the content that is actually sent,
        and the local modification time travels with it.

        Args:
            local_file: Local file to upload
            remote_key: Key to store the file under
            access_token: Bearer token

        Raises:
            MobileCoderUploadError: If the server reports failure
            OSError: If the local file cannot be read
        """
        with open(local_file.path, encoding="utf-8", newline="") as f:
            content = f.read()
        accepted = self.client.put_file(
            key=remote_key,
            content=content,
            checksum=calculate_checksum(content),
            last_modified=format_iso_timestamp(local_file.mtime_ms),
            access_token=access_token,
        )
        if not accepted:
            raise MobileCoderUploadError(f"Server rejected upload of {remote_key}")
        logger.debug(f"Uploaded {local_file.relative_path} -> {remote_key}")

    def upload_content(
        self, remote_key: str, content: str, access_token: str
    ) -> bool:
        """Push content for a key with the current time as modification time.

        Returns:
            True if the server accepted the content
        """
        return self.client.put_file(
            key=remote_key,
            content=content,
            checksum=calculate_checksum(content),
            last_modified=format_iso_timestamp(),
            access_token=access_token,
        )

    def download_file(
        self, remote_key: str, local_path: Path, access_token: str
    ) -> Path:
        """Download a remote file over a local path.

        Args:
            remote_key: Remote key to fetch
            local_path: Local path where file should be saved
            access_token: Bearer token

        Returns:
            Path where file was saved

        Raises:
            MobileCoderNotFoundError: If the key does not exist remotely
            MobileCoderDownloadError: If the file cannot be written
        """
        remote_file = self.client.get_file(remote_key, access_token=access_token)
        return self.write_local(remote_file, local_path)

    def write_local(self, remote_file: RemoteFileRecord, local_path: Path) -> Path:
        """Write the content of an already fetched remote file to disk.

        Content is written byte for byte, without newline translation, and
        the file takes the remote modification time so the next comparison
        sees both sides as equal.
        """
        try:
            # Ensure parent directory exists
            local_path.parent.mkdir(parents=True, exist_ok=True)
            with open(local_path, "w", encoding="utf-8", newline="") as f:
                f.write(remote_file.content)
            remote_ms = remote_file.last_modified_ms
            if remote_ms is not None:
                ns = remote_ms * 1_000_000
                os.utime(local_path, ns=(ns, ns))
        except OSError as e:
            raise MobileCoderDownloadError(
                f"Failed to write {remote_file.key} to {local_path}: {e}"
            ) from e
        logger.debug(f"Wrote {remote_file.key} -> {local_path}")
        return local_path
