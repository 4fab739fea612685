"""Operating-system primitives used by the diff pipeline.

This module hides platform differences in diff page naming and file
metadata behind one collaborator so pipeline stages never branch on
the host platform.
"""

from __future__ import annotations

import os
from pathlib import Path

from core.errors import (
    SnapdiffIOError,
    SnapdiffMetadataLookupError,
    SnapdiffPreconditionError,
)
from core.types import PathStat, TimeSpec

_NSEC_PER_SEC = 1_000_000_000


def is_windows_platform() -> bool:
    """Return whether the host exposes Windows filesystem semantics."""
    return os.name == "nt"


def diff_page_locator(snapdir: str, snap1: str, snap2: str, cookie: str) -> str:
    """Build the path of the diff page addressed by a continuation cookie.

    Args:
        snapdir: Snapshot container directory.
        snap1: First snapshot identifier.
        snap2: Second snapshot identifier.
        cookie: Continuation cookie of the requested page.

    Returns:
        Platform-specific locator of the diff page stream.
    """
    page_name = f"{snap1}^{snap2}^{cookie}"
    if is_windows_platform():
        return f"{snapdir}:snapdiff.{page_name}"
    return os.path.join(snapdir, page_name)


class LocalFileSystem:
    """Directory and metadata primitives backed by the local filesystem."""

    def is_directory(self, path: Path) -> bool:
        """Return whether path exists and is a directory."""
        return path.is_dir()

    def is_directory_empty(self, path: Path) -> bool:
        """Return whether a directory has no entries.

        Raises:
            SnapdiffPreconditionError: If the directory cannot be listed.
        """
        try:
            return next(path.iterdir(), None) is None
        except OSError as error:
            raise SnapdiffPreconditionError(
                f"Unable to list directory {path}: {error}. "
                "Check directory permissions and retry."
            ) from error

    def create_directory(self, path: Path) -> Path:
        """Create one directory that must not exist yet.

        Raises:
            SnapdiffIOError: If the directory cannot be created.
        """
        try:
            path.mkdir()
        except OSError as error:
            raise SnapdiffIOError(
                f"Unable to create directory {path}: {error}. "
                "Use an empty, writable result directory."
            ) from error
        return path

    def stat_path(self, path: Path) -> PathStat:
        """Read size and timestamps of a path without following symlinks.

        Args:
            path: Filesystem path to inspect.

        Returns:
            Size plus access, change, and modify times.

        Raises:
            SnapdiffMetadataLookupError: If the path cannot be inspected.
        """
        try:
            stat_result = os.lstat(path)
        except OSError as error:
            raise SnapdiffMetadataLookupError(f"Could not stat {path}: {error}.") from error
        return PathStat(
            size=stat_result.st_size,
            atime=_time_spec(stat_result.st_atime_ns),
            ctime=_time_spec(stat_result.st_ctime_ns),
            mtime=_time_spec(stat_result.st_mtime_ns),
        )


def _time_spec(total_nsec: int) -> TimeSpec:
    """Split a nanosecond timestamp into seconds and remainder."""
    sec, nsec = divmod(total_nsec, _NSEC_PER_SEC)
    return TimeSpec(sec=sec, nsec=nsec)
