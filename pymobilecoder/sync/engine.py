"""Core sync engine for executing sync operations."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Union

from ..api import MobileCoderClient
from ..auth import AuthService
from ..config import SyncSettings
from ..exceptions import MobileCoderAuthenticationError, MobileCoderNotFoundError
from ..models import RemoteFileRecord
from ..utils import is_syncable_file, pluralize
from .comparator import FileComparator, SyncAction, SyncDecision
from .operations import SyncOperations
from .scanner import DirectoryScanner, LocalFile
from .state import SyncMetadataStore

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


@dataclass
class SyncResults:
    """Aggregated outcome of syncing several files."""

    success: int = 0
    failed: int = 0

    @property
    def total(self) -> int:
        return self.success + self.failed

    def add(self, ok: bool) -> None:
        if ok:
            self.success += 1
        else:
            self.failed += 1

    def to_dict(self) -> dict:
        return {"success": self.success, "failed": self.failed}

    def summary(self) -> str:
        """One line summary suitable for a user notification."""
        if self.failed == 0:
            return f"Synced {pluralize(self.success, 'file')}."
        return (
            f"Synced {self.success}/{self.total} files. "
            f"{pluralize(self.failed, 'file')} failed."
        )


class SyncEngine:
    """Decides per file whether to upload or download and carries it out.

    Every operation that talks to the remote store first asks the auth
    service for an access token. Per-file failures of any kind are logged
    and reported as False, they never abort a batch.
    """

    def __init__(
        self,
        auth: AuthService,
        client: MobileCoderClient,
        settings: SyncSettings,
        metadata_store: Optional[SyncMetadataStore] = None,
    ):
        """Initialize sync engine.

        Args:
            auth: Provides the access token
            client: MobileCoder API client
            settings: Sync root and watcher settings
            metadata_store: Sync metadata store (default: record in the sync root)
        """
        self.auth = auth
        self.client = client
        self.settings = settings
        self.operations = SyncOperations(client)
        self.comparator = FileComparator()
        self._metadata_store = metadata_store

    @property
    def root(self) -> Path:
        """Resolved sync root.

        Raises:
            MobileCoderConfigError: If no sync root can be resolved
        """
        return self.settings.require_root()

    @property
    def metadata(self) -> SyncMetadataStore:
        if self._metadata_store is None:
            self._metadata_store = SyncMetadataStore(self.root)
        return self._metadata_store

    def _require_token(self) -> str:
        token = self.auth.get_access_token()
        if not token:
            raise MobileCoderAuthenticationError("Not authenticated")
        return token

    # =========================
    # Single file sync
    # =========================

    def sync_file(
        self, local_path: PathLike, display_name: str, relative_path: str
    ) -> bool:
        """Sync one local file with the remote store.

        Untracked files are uploaded as new. For tracked files the remote
        modification time is compared with the local one: a strictly newer
        remote file is downloaded over the local file, otherwise the local
        file is uploaded (local wins ties).

        Args:
            local_path: Absolute path of the local file
            display_name: Name used in log messages
            relative_path: Path relative to the sync root (the metadata key)

        Returns:
            True if the file was uploaded or downloaded successfully
        """
        try:
            token = self._require_token()
            local_file = self._local_file(Path(local_path), relative_path)
            decision = self._decide(local_file, token)
            logger.debug(
                f"{relative_path}: {decision.action.value} ({decision.reason})"
            )
            self._execute(decision, token)
            return True
        except Exception as e:
            logger.error(f"Failed to sync {display_name}: {e}")
            logger.debug("Sync failure details", exc_info=True)
            return False

    def _local_file(self, path: Path, relative_path: str) -> LocalFile:
        stat = path.stat()
        return LocalFile(
            path=path,
            relative_path=relative_path,
            size=stat.st_size,
            mtime_ns=stat.st_mtime_ns,
        )

    def _decide(self, local_file: LocalFile, token: str) -> SyncDecision:
        remote_key = self.metadata.get_remote_key(local_file.relative_path)
        if remote_key is None:
            return self.comparator.decide_untracked(local_file)

        try:
            remote_file: Optional[RemoteFileRecord] = self.client.get_file(
                remote_key, access_token=token
            )
        except MobileCoderNotFoundError:
            remote_file = None
        return self.comparator.decide_tracked(local_file, remote_key, remote_file)

    def _execute(self, decision: SyncDecision, token: str) -> None:
        local_file = decision.local_file

        if decision.action == SyncAction.DOWNLOAD and decision.remote_file:
            self.operations.write_local(decision.remote_file, local_file.path)
            return

        self.operations.upload_file(local_file, decision.remote_key, token)
        if decision.action == SyncAction.UPLOAD_NEW:
            self.metadata.record_sync(local_file.relative_path, decision.remote_key)

    # =========================
    # Batches and whole tree
    # =========================

    def sync_files(self, paths: Iterable[PathLike]) -> SyncResults:
        """Sync a batch of changed local files.

        Paths without a syncable extension are skipped without being
        counted. Paths outside the sync root count as failures.

        Args:
            paths: Absolute paths of changed files

        Returns:
            Success and failure counts
        """
        results = SyncResults()
        root = self.root

        for raw_path in paths:
            path = Path(raw_path)
            if not is_syncable_file(path.name):
                logger.debug(f"Skipping non-syncable file: {path}")
                continue
            try:
                relative_path = path.relative_to(root).as_posix()
            except ValueError:
                logger.error(f"{path} is outside of sync root {root}")
                results.add(False)
                continue
            results.add(self.sync_file(path, path.name, relative_path))

        return results

    def sync_all_files(
        self,
        progress_callback: Optional[Callable[[int, int, str], None]] = None,
    ) -> SyncResults:
        """Sync every syncable file below the sync root.

        The directory walk is all-or-nothing: if any directory cannot be
        read the error propagates and nothing is synced. The per-file phase
        is best effort.

        Args:
            progress_callback: Optional function(done, total, relative_path)
                called after each file

        Returns:
            Success and failure counts

        Raises:
            MobileCoderConfigError: If no sync root is configured
            OSError: If the directory walk fails
        """
        root = self.root
        results = SyncResults()

        if not root.exists():
            logger.warning(f"Sync directory does not exist: {root}")
            return results

        local_files = DirectoryScanner().scan_local(root)
        logger.info(f"Syncing {pluralize(len(local_files), 'file')} in {root}")

        for index, local_file in enumerate(local_files, start=1):
            results.add(
                self.sync_file(
                    local_file.path, local_file.path.name, local_file.relative_path
                )
            )
            if progress_callback:
                progress_callback(index, len(local_files), local_file.relative_path)

        logger.info(results.summary())
        return results

    # =========================
    # Direct remote operations
    # =========================

    def update_remote_file_content(self, key: str, content: str) -> bool:
        """Push content for a key without any conflict check.

        Used when saving a remote file opened for editing: the caller holds
        the authoritative content and there is no local file to compare.

        Args:
            key: Remote key
            content: New content

        Returns:
            True if the server accepted the content
        """
        try:
            token = self._require_token()
            logger.debug(f"Updating remote content of {key} ({len(content)} chars)")
            accepted = self.operations.upload_content(key, content, token)
        except Exception as e:
            logger.error(f"Failed to update remote file {key}: {e}")
            return False

        if not accepted:
            logger.error(f"Server rejected update of {key}")
        return accepted

    def download_file(self, key: str, local_path: PathLike) -> bool:
        """Download a remote file to a local path, creating parent directories.

        Returns:
            True if the file was written
        """
        try:
            token = self._require_token()
            self.operations.download_file(key, Path(local_path), token)
        except Exception as e:
            logger.error(f"Failed to download {key}: {e}")
            return False
        return True

    def get_remote_files(self) -> list[RemoteFileRecord]:
        """List remote files; empty when signed out or on error."""
        token = self.auth.get_access_token()
        if not token:
            return []
        try:
            return self.client.list_files(access_token=token)
        except Exception as e:
            logger.error(f"Failed to list remote files: {e}")
            return []
