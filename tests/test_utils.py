"""Unit tests for utility functions."""

import hashlib
from datetime import datetime, timezone
from pathlib import Path

import pytest

from pymobilecoder.utils import (
    calculate_checksum,
    format_iso_timestamp,
    get_icon_from_filename,
    get_language_from_filename,
    is_ignored_path,
    is_syncable_file,
    parse_iso_timestamp,
    pluralize,
    to_epoch_ms,
)


class TestCalculateChecksum:
    """Tests for calculate_checksum."""

    def test_known_md5(self):
        """Test checksum of a known value."""
        assert calculate_checksum("hello") == "5d41402abc4b2a76b9719d911017c592"

    def test_empty_content(self):
        """Test checksum of empty content."""
        assert calculate_checksum("") == "d41d8cd98f00b204e9800998ecf8427e"

    def test_unicode_uses_utf8(self):
        """Test that non-ASCII content is hashed as UTF-8."""
        expected = hashlib.md5("ä".encode("utf-8")).hexdigest()
        assert calculate_checksum("ä") == expected


class TestParseIsoTimestamp:
    """Tests for parse_iso_timestamp."""

    def test_parse_with_z_suffix(self):
        """Test parsing a UTC timestamp with Z suffix."""
        dt = parse_iso_timestamp("2025-01-15T10:30:00.000Z")
        assert dt == datetime(2025, 1, 15, 10, 30, tzinfo=timezone.utc)

    def test_parse_with_offset(self):
        """Test parsing a timestamp with an explicit offset."""
        dt = parse_iso_timestamp("2025-01-15T12:30:00+02:00")
        assert dt is not None
        assert to_epoch_ms(dt) == to_epoch_ms(
            datetime(2025, 1, 15, 10, 30, tzinfo=timezone.utc)
        )

    def test_naive_is_utc(self):
        """Test that a timestamp without zone is taken as UTC."""
        dt = parse_iso_timestamp("2025-01-15T10:30:00")
        assert dt is not None
        assert dt.tzinfo == timezone.utc

    @pytest.mark.parametrize("value", [None, "", "not a date", "2025-13-45"])
    def test_invalid_returns_none(self, value):
        """Test that unparsable values return None."""
        assert parse_iso_timestamp(value) is None


class TestEpochMilliseconds:
    """Tests for to_epoch_ms and format_iso_timestamp."""

    def test_epoch_is_zero(self):
        """Test the epoch itself."""
        assert to_epoch_ms(datetime(1970, 1, 1, tzinfo=timezone.utc)) == 0

    def test_format_known_value(self):
        """Test formatting epoch milliseconds."""
        assert format_iso_timestamp(1736937000123) == "2025-01-15T10:30:00.123Z"

    def test_format_then_parse_is_exact(self):
        """Test that a formatted value parses back to the same millisecond."""
        ms = 1736937000999
        dt = parse_iso_timestamp(format_iso_timestamp(ms))
        assert dt is not None
        assert to_epoch_ms(dt) == ms

    def test_format_now(self):
        """Test that the default is the current time in Z notation."""
        value = format_iso_timestamp()
        assert value.endswith("Z")
        assert parse_iso_timestamp(value) is not None


class TestIsSyncableFile:
    """Tests for is_syncable_file."""

    @pytest.mark.parametrize(
        "name",
        [
            "a.js",
            "a.ts",
            "a.jsx",
            "a.tsx",
            "a.py",
            "A.java",
            "a.cpp",
            "a.c",
            "a.h",
            "a.css",
            "a.html",
            "README.md",
            "package.json",
            "pom.xml",
            "notes.txt",
        ],
    )
    def test_allowed_extensions(self, name):
        """Test every syncable extension."""
        assert is_syncable_file(name)

    @pytest.mark.parametrize(
        "name", ["image.png", "archive.zip", "Makefile", "a.pyc", "a.yaml"]
    )
    def test_other_extensions(self, name):
        """Test that other files are not synced."""
        assert not is_syncable_file(name)

    def test_extension_case_insensitive(self):
        """Test that extensions match regardless of case."""
        assert is_syncable_file("MAIN.PY")

    def test_hidden_files_rejected(self):
        """Test that dotfiles are never synced."""
        assert not is_syncable_file(".eslintrc.json")

    def test_accepts_paths(self):
        """Test that a full path is checked by its file name."""
        assert is_syncable_file(Path("/work/src/app.ts"))
        assert not is_syncable_file("/work/.config.json")


class TestIsIgnoredPath:
    """Tests for is_ignored_path."""

    def test_regular_path(self):
        """Test a normal nested path."""
        assert not is_ignored_path("/work/src/a.py", "/work")

    @pytest.mark.parametrize(
        "path",
        [
            "/work/node_modules/pkg/index.js",
            "/work/.git/HEAD.txt",
            "/work/.vscode/settings.json",
            "/work/src/.hidden.py",
            "/work/.mobilecoder-sync.json",
        ],
    )
    def test_ignored(self, path):
        """Test dependency, VCS and hidden paths."""
        assert is_ignored_path(path, "/work")

    def test_outside_root(self):
        """Test that paths outside the root are ignored."""
        assert is_ignored_path("/elsewhere/a.py", "/work")


class TestFileNameLookups:
    """Tests for language and icon lookups."""

    def test_language(self):
        """Test language mapping and fallback."""
        assert get_language_from_filename("a.py") == "python"
        assert get_language_from_filename("a.tsx") == "typescript"
        assert get_language_from_filename("a.h") == "c"
        assert get_language_from_filename("a.xml") == "text"

    def test_icon(self):
        """Test icon mapping and fallback."""
        assert get_icon_from_filename("a.jsx") == "react"
        assert get_icon_from_filename("a.h") == "h"
        assert get_icon_from_filename("a.png") == "file"


class TestPluralize:
    """Tests for pluralize."""

    def test_singular_and_plural(self):
        """Test singular and plural forms."""
        assert pluralize(1, "file") == "1 file"
        assert pluralize(0, "file") == "0 files"
        assert pluralize(3, "file") == "3 files"
