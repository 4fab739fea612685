"""Filesystem metadata enrichment for JSON diff entries.

Entries that create or modify objects carry size and timestamps read from
the live filesystem the snapshots belong to.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Protocol

from core.os_support import LocalFileSystem
from core.types import PathStat, TimeSpec
from store.json_values import JsonMap, JsonNumber, JsonString


class MetadataLookup(Protocol):
    """Resolves a diff path to its metadata or raises a lookup error."""

    def __call__(self, path: str) -> PathStat: ...


class SnapshotMetadataLookup:
    """Stats diff paths relative to the root two levels above ``snapdir``."""

    def __init__(self, snapdir: str, filesystem: LocalFileSystem | None = None) -> None:
        self._root = os.path.join(snapdir, os.pardir, os.pardir)
        self._filesystem = filesystem or LocalFileSystem()

    def __call__(self, path: str) -> PathStat:
        """Return metadata of a diff path.

        Raises:
            SnapdiffMetadataLookupError: If the path cannot be inspected.
        """
        return self._filesystem.stat_path(Path(self._root, path))


def add_metadata_fields(entry: JsonMap, path: str, path_stat: PathStat) -> None:
    """Append size, timestamp, and path members to a JSON entry."""
    entry.add("size", JsonNumber(path_stat.size))
    entry.add("atime", _time_map(path_stat.atime))
    entry.add("ctime", _time_map(path_stat.ctime))
    entry.add("mtime", _time_map(path_stat.mtime))
    entry.add("path", JsonString(path))


def _time_map(time_spec: TimeSpec) -> JsonMap:
    time_map = JsonMap()
    time_map.add("sec", JsonNumber(time_spec.sec))
    time_map.add("nsec", JsonNumber(time_spec.nsec))
    return time_map
