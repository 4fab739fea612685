"""Shared typed models.

This module defines immutable data models used by the ingest, store,
SDK, and CLI layers to keep interfaces explicit and stable.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from core.constants import OPERATION_SEPARATOR

EntryType = Literal["FILE", "DIR", "SYM"]
SUPPORTED_ENTRY_TYPES: tuple[EntryType, ...] = ("FILE", "DIR", "SYM")


@dataclass(frozen=True)
class DiffOptions:
    """Options for one snapshot diff run.

    Attributes:
        snapdir: Snapshot container directory exposing the diff pages.
        snap1: First (older) snapshot identifier.
        snap2: Second (newer) snapshot identifier.
        result_dir: Existing, empty directory receiving all artifacts.
        generate_json: Whether batched JSON output is produced.
    """

    snapdir: str
    snap1: str
    snap2: str
    result_dir: str
    generate_json: bool = True


@dataclass(frozen=True)
class DiffRecord:
    """One change entry read from a raw diff page.

    Attributes:
        level: Source-assigned signed dependency rank.
        object_id: Opaque internal identifier, dropped after bucketing.
        payload: Operation code followed by path tokens.
    """

    level: int
    object_id: str
    payload: tuple[str, ...]


@dataclass(frozen=True)
class SerializedRecord:
    """One record line of the serialized diff.

    Attributes:
        operation: Composite code such as ``FILE_CMS`` or ``DIR_RENAME``.
        paths: Path tokens following the operation code.
    """

    operation: str
    paths: tuple[str, ...]

    @property
    def entry_type(self) -> str:
        """Entry type part of the operation code."""
        return self.operation.partition(OPERATION_SEPARATOR)[0]

    @property
    def op_type(self) -> str:
        """Operation type part of the operation code."""
        return self.operation.partition(OPERATION_SEPARATOR)[2]


@dataclass(frozen=True)
class TimeSpec:
    """Timestamp split into whole seconds and nanoseconds."""

    sec: int
    nsec: int


@dataclass(frozen=True)
class PathStat:
    """Filesystem metadata used to enrich JSON entries."""

    size: int
    atime: TimeSpec
    ctime: TimeSpec
    mtime: TimeSpec


@dataclass(frozen=True)
class DiffResult:
    """Summary of a completed snapshot diff run.

    Attributes:
        result_dir: Directory holding all run artifacts.
        page_count: Number of raw diff pages captured.
        bucket_levels: Normalized bucket keys in ascending order.
        record_count: Records written to the serialized diff.
        json_batch_count: JSON batch files written.
    """

    result_dir: str
    page_count: int
    bucket_levels: tuple[int, ...]
    record_count: int
    json_batch_count: int
