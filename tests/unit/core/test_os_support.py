"""Unit tests for operating-system primitives."""

from __future__ import annotations

import errno
import os
from pathlib import Path

import pytest

from core.errors import (
    SnapdiffIOError,
    SnapdiffMetadataLookupError,
    SnapdiffPreconditionError,
)
from core.os_support import LocalFileSystem, diff_page_locator


def test_diff_page_locator_joins_snapdir_on_posix(monkeypatch: pytest.MonkeyPatch) -> None:
    """POSIX locators should name a file inside the snapshot directory."""
    monkeypatch.setattr("core.os_support.is_windows_platform", lambda: False)

    locator = diff_page_locator("/vol/.snap", "s1", "s2", "-513")

    assert locator == os.path.join("/vol/.snap", "s1^s2^-513")


def test_diff_page_locator_uses_stream_name_on_windows(monkeypatch: pytest.MonkeyPatch) -> None:
    """Windows locators should address an alternate data stream."""
    monkeypatch.setattr("core.os_support.is_windows_platform", lambda: True)

    locator = diff_page_locator("D:\\vol", "s1", "s2", "0")

    assert locator == "D:\\vol:snapdiff.s1^s2^0"


def test_is_directory_empty_detects_entries(tmp_path: Path) -> None:
    """Empty check should flip once a directory has an entry."""
    filesystem = LocalFileSystem()
    was_empty = filesystem.is_directory_empty(tmp_path)
    (tmp_path / "entry").write_text("x", encoding="utf-8")

    assert was_empty is True and filesystem.is_directory_empty(tmp_path) is False


def test_create_directory_rejects_existing_path(tmp_path: Path) -> None:
    """Directory creation should fail when the path already exists."""
    filesystem = LocalFileSystem()
    filesystem.create_directory(tmp_path / "raw")

    with pytest.raises(SnapdiffIOError):
        filesystem.create_directory(tmp_path / "raw")


def test_stat_path_splits_nanosecond_timestamps(tmp_path: Path) -> None:
    """Metadata should carry size and split sec/nsec timestamps."""
    file_path = tmp_path / "data.bin"
    file_path.write_bytes(b"12345")
    os.utime(file_path, ns=(1_700_000_000_123_456_789, 1_600_000_000_000_000_042))

    path_stat = LocalFileSystem().stat_path(file_path)

    assert (
        path_stat.size == 5
        and path_stat.mtime.sec == 1_600_000_000
        and path_stat.mtime.nsec == 42
        and 0 <= path_stat.atime.nsec < 1_000_000_000
    )


def test_stat_path_raises_for_missing_path(tmp_path: Path) -> None:
    """Missing paths should raise a metadata lookup error."""
    with pytest.raises(SnapdiffMetadataLookupError):
        LocalFileSystem().stat_path(tmp_path / "missing")


def test_is_directory_empty_raises_for_unlistable_directory(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Listing failures should surface as precondition errors."""

    def _deny_listing(self: Path) -> None:
        raise PermissionError(errno.EACCES, "Permission denied", str(self))

    monkeypatch.setattr(Path, "iterdir", _deny_listing)

    with pytest.raises(SnapdiffPreconditionError):
        LocalFileSystem().is_directory_empty(tmp_path)
