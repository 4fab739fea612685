"""Level-keyed partitioning of raw diff records.

This module routes every record of the captured pages into a bucket file
named after its normalized level. Pages are processed in index order and
lines in physical order, so each bucket keeps source arrival order.
"""

from __future__ import annotations

from pathlib import Path
from types import TracebackType
from typing import Iterable, Iterator, TextIO

from core.constants import LEVEL_OFFSET, RECORD_SEPARATOR, TEXT_ENCODING, TEXT_ERRORS
from core.errors import SnapdiffIOError
from core.logging_config import get_logger
from core.record_tokens import split_tokens
from core.types import DiffRecord
from ingest.page_framing import page_marker

_LOGGER = get_logger(__name__)


class BucketSet:
    """Owns one open bucket file per normalized level.

    Buckets are created lazily on the first appended record. Iteration
    through ``drain`` is always in ascending level order, and every bucket
    is closed exactly once, either by ``drain`` or by ``close``.
    """

    def __init__(self, buckets_dir: Path) -> None:
        self._buckets_dir = buckets_dir
        self._handles: dict[int, TextIO] = {}
        self._levels: set[int] = set()

    def __enter__(self) -> "BucketSet":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()

    def append(self, level: int, record_line: str) -> None:
        """Append one record line to the bucket of a level.

        Raises:
            SnapdiffIOError: If the bucket file cannot be created or written.
        """
        handle = self._handles.get(level)
        if handle is None:
            handle = self._open_bucket(level)
        try:
            handle.write(record_line + "\n")
        except OSError as error:
            raise SnapdiffIOError(
                f"Could not write bucket file {self.bucket_path(level)}: {error}."
            ) from error

    def bucket_path(self, level: int) -> Path:
        """Return the file path backing a level bucket."""
        return self._buckets_dir / str(level)

    def levels(self) -> tuple[int, ...]:
        """Return every level that received a record, ascending."""
        return tuple(sorted(self._levels))

    def drain(self) -> Iterator[tuple[int, TextIO]]:
        """Yield open buckets rewound to their start, ascending by level.

        Each bucket is closed and released once the consumer moves on. A
        bucket stays owned by the set while it is being consumed, so
        ``close`` also releases it if the consumer fails.
        """
        for level in sorted(self._handles):
            handle = self._handles[level]
            try:
                handle.seek(0)
                yield level, handle
            finally:
                self._handles.pop(level, None)
                handle.close()

    def close(self) -> None:
        """Close any bucket that was not drained."""
        while self._handles:
            _, handle = self._handles.popitem()
            handle.close()

    def _open_bucket(self, level: int) -> TextIO:
        bucket_path = self.bucket_path(level)
        try:
            handle = bucket_path.open(
                "w+", encoding=TEXT_ENCODING, errors=TEXT_ERRORS, newline="\n"
            )
        except OSError as error:
            raise SnapdiffIOError(f"Could not open file {bucket_path}: {error}.") from error
        _LOGGER.info("bucket_file_created", bucket_path=str(bucket_path), level=level)
        self._handles[level] = handle
        self._levels.add(level)
        return handle


def bucketize_pages(raw_dir: Path, page_count: int, buckets: BucketSet) -> int:
    """Route the records of all raw pages into level buckets.

    Args:
        raw_dir: Directory holding page files ``0`` to ``page_count - 1``.
        page_count: Number of captured pages.
        buckets: Destination bucket set.

    Returns:
        Number of records routed into buckets.

    Raises:
        SnapdiffIOError: If a page or bucket file cannot be opened.
    """
    routed_count = 0
    for page_index in range(page_count):
        routed_count += _bucketize_page(raw_dir / str(page_index), buckets)
    return routed_count


def normalize_level(level: int) -> int:
    """Shift a source level onto the non-negative bucket key range."""
    return level + LEVEL_OFFSET


def _bucketize_page(page_path: Path, buckets: BucketSet) -> int:
    """Route one page and tolerate a missing termination marker."""
    _LOGGER.info("raw_page_bucketizing", page_path=str(page_path))
    try:
        with page_path.open(
            "r", encoding=TEXT_ENCODING, errors=TEXT_ERRORS, newline="\n"
        ) as page_file:
            routed_count, terminated = _route_page_lines(page_file, page_path, buckets)
    except OSError as error:
        raise SnapdiffIOError(f"Could not read file {page_path}: {error}.") from error
    if not terminated:
        _LOGGER.error("raw_page_unterminated", page_path=str(page_path))
    return routed_count


def _route_page_lines(
    lines: Iterable[str],
    page_path: Path,
    buckets: BucketSet,
) -> tuple[int, bool]:
    """Route data lines until the page marker.

    Returns:
        Routed record count and whether a marker line was reached.
    """
    routed_count = 0
    for line_number, line in enumerate(lines, 1):
        tokens = split_tokens(line)
        if not tokens:
            continue
        if page_marker(tokens) is not None:
            return routed_count, True
        record = _parse_diff_record(tokens, page_path, line_number)
        if record is None:
            continue
        buckets.append(normalize_level(record.level), RECORD_SEPARATOR.join(record.payload))
        routed_count += 1
    return routed_count, False


def _parse_diff_record(
    tokens: list[str],
    page_path: Path,
    line_number: int,
) -> DiffRecord | None:
    """Parse level, object id, and payload tokens of one data line."""
    if len(tokens) < 3:
        _LOGGER.error(
            "diff_line_malformed",
            page_path=str(page_path),
            line_number=line_number,
            reason="missing operation payload",
        )
        return None
    try:
        level = int(tokens[0])
    except ValueError:
        _LOGGER.error(
            "diff_line_malformed",
            page_path=str(page_path),
            line_number=line_number,
            reason=f"level '{tokens[0]}' is not an integer",
        )
        return None
    return DiffRecord(level=level, object_id=tokens[1], payload=tuple(tokens[2:]))
