"""Paginated diff stream sources.

This module addresses the externally exposed diff pages of a snapshot
pair by continuation cookie and opens them as byte streams.
"""

from __future__ import annotations

from typing import BinaryIO, Protocol

from core.os_support import diff_page_locator


class DiffPageSource(Protocol):
    """Byte stream provider for one snapshot pair."""

    def open_page(self, cookie: str) -> BinaryIO: ...

    def describe(self, cookie: str) -> str: ...


class SnapshotDiffPageSource:
    """Diff pages exposed by the snapshot filesystem as special files."""

    def __init__(self, snapdir: str, snap1: str, snap2: str) -> None:
        self._snapdir = snapdir
        self._snap1 = snap1
        self._snap2 = snap2

    def describe(self, cookie: str) -> str:
        """Return the locator of the page addressed by cookie."""
        return diff_page_locator(self._snapdir, self._snap1, self._snap2, cookie)

    def open_page(self, cookie: str) -> BinaryIO:
        """Open the page addressed by cookie.

        Raises:
            FileNotFoundError: If the page is not materialized yet.
            OSError: For any other open failure.
        """
        return open(self.describe(cookie), "rb")
