"""Tests for sync conflict resolution."""

from pathlib import Path

import pytest

from pymobilecoder.models import RemoteFileRecord
from pymobilecoder.sync.comparator import FileComparator, SyncAction
from pymobilecoder.sync.scanner import LocalFile
from pymobilecoder.utils import format_iso_timestamp

BASE_MS = 1736937000000


def local_file(mtime_ms: int = BASE_MS) -> LocalFile:
    return LocalFile(
        path=Path("/work/src/a.py"),
        relative_path="src/a.py",
        size=10,
        mtime_ns=mtime_ms * 1_000_000 + 456_789,
    )


def remote_file(mtime_ms: int = BASE_MS) -> RemoteFileRecord:
    return RemoteFileRecord(
        key="src/a.py", content="remote", last_modified=format_iso_timestamp(mtime_ms)
    )


class TestFileComparator:
    """Tests for FileComparator."""

    @pytest.fixture
    def comparator(self):
        return FileComparator()

    def test_untracked_uploads_new(self, comparator):
        """Test that an untracked file is uploaded under its relative path."""
        decision = comparator.decide_untracked(local_file())
        assert decision.action == SyncAction.UPLOAD_NEW
        assert decision.remote_key == "src/a.py"
        assert decision.remote_file is None

    def test_remote_newer_downloads(self, comparator):
        """Test that a strictly newer remote file is downloaded."""
        remote = remote_file(BASE_MS + 1)
        decision = comparator.decide_tracked(local_file(), "src/a.py", remote)
        assert decision.action == SyncAction.DOWNLOAD
        assert decision.remote_file is remote
        assert decision.reason == "Remote file is newer"

    def test_local_newer_uploads(self, comparator):
        """Test that a newer local file is uploaded."""
        decision = comparator.decide_tracked(
            local_file(BASE_MS + 1000), "src/a.py", remote_file()
        )
        assert decision.action == SyncAction.UPLOAD
        assert decision.reason == "Local file is newer"

    def test_tie_local_wins(self, comparator):
        """Test that equal timestamps resolve to an upload."""
        decision = comparator.decide_tracked(local_file(), "src/a.py", remote_file())
        assert decision.action == SyncAction.UPLOAD
        assert decision.reason == "Same timestamp, local version wins"

    def test_sub_millisecond_difference_is_a_tie(self, comparator):
        """Test that comparison happens at millisecond resolution."""
        local = LocalFile(
            path=Path("/work/a.py"),
            relative_path="a.py",
            size=1,
            mtime_ns=BASE_MS * 1_000_000 + 999_999,
        )
        decision = comparator.decide_tracked(local, "a.py", remote_file())
        assert decision.action == SyncAction.UPLOAD

    def test_remote_missing_uploads(self, comparator):
        """Test that a tracked file missing remotely is uploaded again."""
        decision = comparator.decide_tracked(local_file(), "src/a.py", None)
        assert decision.action == SyncAction.UPLOAD
        assert decision.remote_key == "src/a.py"

    def test_unparsable_remote_time_uploads(self, comparator):
        """Test that an unreadable remote timestamp uploads the local file."""
        remote = RemoteFileRecord(key="src/a.py", last_modified="garbage")
        decision = comparator.decide_tracked(local_file(), "src/a.py", remote)
        assert decision.action == SyncAction.UPLOAD

    def test_uses_recorded_remote_key(self, comparator):
        """Test that the key from the metadata is used, not the path."""
        decision = comparator.decide_tracked(local_file(), "other/key.py", None)
        assert decision.remote_key == "other/key.py"
