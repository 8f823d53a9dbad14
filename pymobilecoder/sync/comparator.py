"""Conflict resolution for sync operations."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..models import RemoteFileRecord
from .scanner import LocalFile


class SyncAction(str, Enum):
    """Actions that can be taken during sync."""

    UPLOAD_NEW = "upload_new"
    """Upload an untracked local file, overwriting whatever is stored remotely"""

    UPLOAD = "upload"
    """Upload local file to its existing remote key"""

    DOWNLOAD = "download"
    """Download remote file over the local file"""


@dataclass
class SyncDecision:
    """Represents a decision about how to sync a file."""

    action: SyncAction
    """Action to take"""

    reason: str
    """Human-readable reason for this decision"""

    local_file: LocalFile
    """Local file"""

    remote_file: Optional[RemoteFileRecord]
    """Remote file (if it was fetched)"""

    remote_key: str
    """Key to upload to or download from"""


class FileComparator:
    """Decides between upload and download for a single file.

    The policy is last-write-wins at millisecond resolution. Equal
    timestamps resolve to an upload, so the local copy wins ties.
    """

    def decide_untracked(self, local_file: LocalFile) -> SyncDecision:
        """Decide for a file that has never been synced."""
        return SyncDecision(
            action=SyncAction.UPLOAD_NEW,
            reason="New local file",
            local_file=local_file,
            remote_file=None,
            remote_key=local_file.relative_path,
        )

    def decide_tracked(
        self,
        local_file: LocalFile,
        remote_key: str,
        remote_file: Optional[RemoteFileRecord],
    ) -> SyncDecision:
        """Decide for a file that was synced before.

        Args:
            local_file: Local file
            remote_key: Remote key recorded in the sync metadata
            remote_file: Remote record, None if it no longer exists remotely

        Returns:
            SyncDecision for this file
        """
        if remote_file is None:
            return SyncDecision(
                action=SyncAction.UPLOAD,
                reason="Remote file missing, uploading local version",
                local_file=local_file,
                remote_file=None,
                remote_key=remote_key,
            )

        remote_mtime = remote_file.last_modified_ms
        if remote_mtime is None:
            return SyncDecision(
                action=SyncAction.UPLOAD,
                reason="Remote mtime unavailable, uploading local version",
                local_file=local_file,
                remote_file=remote_file,
                remote_key=remote_key,
            )

        if remote_mtime > local_file.mtime_ms:
            return SyncDecision(
                action=SyncAction.DOWNLOAD,
                reason="Remote file is newer",
                local_file=local_file,
                remote_file=remote_file,
                remote_key=remote_key,
            )

        reason = (
            "Local file is newer"
            if local_file.mtime_ms > remote_mtime
            else "Same timestamp, local version wins"
        )
        return SyncDecision(
            action=SyncAction.UPLOAD,
            reason=reason,
            local_file=local_file,
            remote_file=remote_file,
            remote_key=remote_key,
        )
