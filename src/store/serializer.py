"""Topological serialization of level buckets.

This module concatenates bucket files in ascending level order into the
single ``serialized_diff`` replay log and releases every bucket.
"""

from __future__ import annotations

from contextlib import closing
from pathlib import Path
from typing import TextIO

from core.constants import TEXT_ENCODING, TEXT_ERRORS
from core.errors import SnapdiffIOError
from core.logging_config import get_logger
from ingest.bucketizer import BucketSet

_LOGGER = get_logger(__name__)


def serialize_buckets(buckets: BucketSet, serialized_path: Path) -> int:
    """Write all buckets, lowest level first, into one replay log.

    Args:
        buckets: Bucket set filled by the bucketizer. It is fully released
            when this function returns or raises.
        serialized_path: Destination serialized diff file.

    Returns:
        Number of record lines written.

    Raises:
        SnapdiffIOError: If the serialized diff cannot be written.
    """
    try:
        _LOGGER.info("serialized_diff_writing", serialized_path=str(serialized_path))
        with _open_output(serialized_path) as output:
            record_count = 0
            with closing(buckets.drain()) as drained:
                for level, bucket in drained:
                    copied_count = _copy_bucket(bucket, output, serialized_path)
                    _LOGGER.info("bucket_serialized", level=level, record_count=copied_count)
                    record_count += copied_count
    finally:
        buckets.close()
    return record_count


def _open_output(serialized_path: Path) -> TextIO:
    try:
        return serialized_path.open(
            "w", encoding=TEXT_ENCODING, errors=TEXT_ERRORS, newline="\n"
        )
    except OSError as error:
        raise SnapdiffIOError(f"Could not open file {serialized_path}: {error}.") from error


def _copy_bucket(bucket: TextIO, output: TextIO, serialized_path: Path) -> int:
    """Copy bucket lines verbatim and count them."""
    line_count = 0
    try:
        for line in bucket:
            output.write(line)
            line_count += 1
    except OSError as error:
        raise SnapdiffIOError(
            f"Could not write serialized diff {serialized_path}: {error}."
        ) from error
    return line_count
