"""Check implementations for result directory verification.

Each check reads the artifacts of a finished run and either returns a
short detail string or raises when an invariant does not hold.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Callable

from core.constants import (
    BUCKETS_DIR_NAME,
    END_OF_FILE_MARKER,
    JSON_DIR_NAME,
    JSON_FILE_SUFFIX,
    LOG_FILE_NAME,
    RAW_DIR_NAME,
    SERIALIZED_DIFF_FILE_NAME,
    TEXT_ENCODING,
    TEXT_ERRORS,
)
from core.errors import SnapdiffError, SnapdiffVerificationError
from core.verification_types import VerificationRuntime, VerificationSkipped
from ingest.page_framing import scan_page_framing

CheckFn = Callable[[VerificationRuntime], str]


def build_checks() -> tuple[tuple[str, str, CheckFn], ...]:
    """Return ordered verification checks."""
    return (
        ("V001", "result layout", _check_layout),
        ("V002", "raw page sequence", _check_raw_pages),
        ("V003", "record count preservation", _check_count_preservation),
        ("V004", "ascending level order", _check_level_order),
        ("V005", "json batch sizing", _check_json_batches),
    )


def _check_layout(runtime: VerificationRuntime) -> str:
    result_dir = runtime.result_dir
    missing = [
        name
        for name, is_dir in (
            (RAW_DIR_NAME, True),
            (BUCKETS_DIR_NAME, True),
            (JSON_DIR_NAME, True),
            (SERIALIZED_DIFF_FILE_NAME, False),
            (LOG_FILE_NAME, False),
        )
        if not ((result_dir / name).is_dir() if is_dir else (result_dir / name).is_file())
    ]
    if missing:
        raise SnapdiffVerificationError(f"missing artifacts: {', '.join(missing)}")
    return "all artifacts present"


def _check_raw_pages(runtime: VerificationRuntime) -> str:
    page_indices = _numbered_entries(runtime.result_dir / RAW_DIR_NAME, suffix="")
    if not page_indices:
        raise SnapdiffVerificationError("no raw pages captured")
    _expect_contiguous(page_indices, "raw page")
    last_page = runtime.result_dir / RAW_DIR_NAME / str(page_indices[-1])
    try:
        framing = scan_page_framing(last_page)
    except SnapdiffError as error:
        raise SnapdiffVerificationError(str(error)) from error
    if framing.marker != END_OF_FILE_MARKER:
        raise SnapdiffVerificationError(f"last raw page {last_page.name} is not terminated by EOF")
    return f"pages={len(page_indices)}"


def _check_count_preservation(runtime: VerificationRuntime) -> str:
    bucket_lines = _bucket_lines(runtime.result_dir / BUCKETS_DIR_NAME)
    serialized_lines = _read_lines(runtime.result_dir / SERIALIZED_DIFF_FILE_NAME)
    if len(bucket_lines) != len(serialized_lines):
        raise SnapdiffVerificationError(
            f"bucket records={len(bucket_lines)} but serialized records={len(serialized_lines)}"
        )
    return f"records={len(serialized_lines)}"


def _check_level_order(runtime: VerificationRuntime) -> str:
    bucket_lines = _bucket_lines(runtime.result_dir / BUCKETS_DIR_NAME)
    serialized_lines = _read_lines(runtime.result_dir / SERIALIZED_DIFF_FILE_NAME)
    for line_number, (expected, actual) in enumerate(zip(bucket_lines, serialized_lines), 1):
        if expected != actual:
            raise SnapdiffVerificationError(
                f"serialized diff diverges from bucket order at line {line_number}"
            )
    if len(bucket_lines) != len(serialized_lines):
        raise SnapdiffVerificationError("serialized diff and buckets differ in length")
    bucket_count = len(_numbered_entries(runtime.result_dir / BUCKETS_DIR_NAME, suffix=""))
    return f"buckets={bucket_count}"


def _check_json_batches(runtime: VerificationRuntime) -> str:
    json_dir = runtime.result_dir / JSON_DIR_NAME
    batch_indices = _numbered_entries(json_dir, suffix=JSON_FILE_SUFFIX)
    if not batch_indices:
        raise VerificationSkipped("no json batches written")
    _expect_contiguous(batch_indices, "json batch")
    batch_sizes = [
        _json_batch_length(json_dir / f"{batch_index}{JSON_FILE_SUFFIX}")
        for batch_index in batch_indices
    ]
    # Every batch but the last is full, so the first one reveals the run's limit.
    batch_limit = runtime.json_batch_size
    if batch_limit is None:
        batch_limit = batch_sizes[0] if len(batch_sizes) > 1 else max(batch_sizes[0], 1)
    for batch_index, batch_size in zip(batch_indices, batch_sizes):
        is_last = batch_index == batch_indices[-1]
        if batch_size == 0 or batch_size > batch_limit:
            raise SnapdiffVerificationError(
                f"{batch_index}{JSON_FILE_SUFFIX} holds {batch_size} entries, "
                f"expected 1..{batch_limit}"
            )
        if not is_last and batch_size != batch_limit:
            raise SnapdiffVerificationError(
                f"{batch_index}{JSON_FILE_SUFFIX} holds {batch_size} entries "
                f"but is not the last batch of size {batch_limit}"
            )
    return f"batches={len(batch_sizes)} entries={sum(batch_sizes)} batch_size={batch_limit}"


def _json_batch_length(batch_path: Path) -> int:
    try:
        payload = json.loads(batch_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as error:
        raise SnapdiffVerificationError(f"{batch_path.name} is not valid JSON: {error}") from error
    if not isinstance(payload, list) or not all(isinstance(row, dict) for row in payload):
        raise SnapdiffVerificationError(f"{batch_path.name} is not a JSON array of objects")
    return len(payload)


def _bucket_lines(buckets_dir: Path) -> list[str]:
    """Concatenate bucket lines in ascending level order."""
    lines: list[str] = []
    for level in _numbered_entries(buckets_dir, suffix=""):
        lines.extend(_read_lines(buckets_dir / str(level)))
    return lines


def _numbered_entries(directory: Path, suffix: str) -> list[int]:
    """Return sorted numeric names of entries in a directory."""
    indices: list[int] = []
    for entry in directory.iterdir():
        stem = entry.name[: -len(suffix)] if suffix and entry.name.endswith(suffix) else entry.name
        try:
            indices.append(int(stem))
        except ValueError as error:
            raise SnapdiffVerificationError(
                f"unexpected entry {entry.name} in {directory.name}"
            ) from error
    return sorted(indices)


def _expect_contiguous(indices: list[int], label: str) -> None:
    expected = list(range(len(indices)))
    if indices != expected:
        raise SnapdiffVerificationError(f"{label} numbering is not contiguous from 0: {indices}")


def _read_lines(file_path: Path) -> list[str]:
    try:
        with file_path.open("r", encoding=TEXT_ENCODING, errors=TEXT_ERRORS, newline="\n") as file:
            return [line.rstrip("\n") for line in file]
    except OSError as error:
        raise SnapdiffVerificationError(f"could not read {file_path.name}: {error}") from error
