"""Batched JSON translation of the serialized diff.

This module classifies each serialized record by entry and operation type,
enriches create/modify entries with filesystem metadata, and writes the
entries to numbered JSON batch files.
"""

from __future__ import annotations

from pathlib import Path
from typing import TextIO

from core.constants import JSON_FILE_SUFFIX, TEXT_ENCODING, TEXT_ERRORS
from core.errors import SnapdiffIOError, SnapdiffMetadataLookupError
from core.logging_config import get_logger
from core.record_tokens import split_tokens
from core.types import SerializedRecord
from store.json_values import JsonArray, JsonBool, JsonMap, JsonString, render_json
from store.metadata_lookup import MetadataLookup, add_metadata_fields

_LOGGER = get_logger(__name__)

_OBJECT_TYPES = {"FILE": "file", "DIR": "dir", "SYM": "symlink"}
_DELETE_OP = "DELETE"
_RENAME_OP = "RENAME"


class JsonEmitter:
    """Writes ``<n>.json`` batch files from a serialized diff."""

    def __init__(
        self,
        json_dir: Path,
        batch_size: int,
        metadata_lookup: MetadataLookup | None = None,
    ) -> None:
        """Create an emitter.

        Args:
            json_dir: Existing directory receiving batch files.
            batch_size: Maximum entries per batch file.
            metadata_lookup: Optional metadata source for enrichment.
        """
        self._json_dir = json_dir
        self._batch_size = batch_size
        self._metadata_lookup = metadata_lookup

    def emit(self, serialized_path: Path) -> int:
        """Translate a serialized diff into JSON batch files.

        Args:
            serialized_path: Serialized diff produced by the serializer.

        Returns:
            Number of batch files written.

        Raises:
            SnapdiffIOError: If the serialized diff or a batch file fails.
        """
        _LOGGER.info("json_emission_started", serialized_path=str(serialized_path))
        try:
            with serialized_path.open(
                "r", encoding=TEXT_ENCODING, errors=TEXT_ERRORS, newline="\n"
            ) as serialized_file:
                return self._emit_batches(serialized_file)
        except OSError as error:
            raise SnapdiffIOError(f"Could not read file {serialized_path}: {error}.") from error

    def _emit_batches(self, serialized_file: TextIO) -> int:
        batch = JsonArray()
        batch_index = 0
        written_count = 0
        for line_number, line in enumerate(serialized_file, 1):
            record = parse_serialized_line(line)
            if record is None:
                continue
            entry = self._translate(record, line_number)
            if entry is None:
                continue
            batch.append(entry)
            if len(batch) >= self._batch_size:
                written_count += self._flush(batch, batch_index)
                batch_index += 1
                batch = JsonArray()
        written_count += self._flush(batch, batch_index)
        return written_count

    def _flush(self, batch: JsonArray, batch_index: int) -> int:
        if len(batch) == 0:
            return 0
        batch_path = self._json_dir / f"{batch_index}{JSON_FILE_SUFFIX}"
        _LOGGER.info("json_batch_writing", batch_path=str(batch_path), entry_count=len(batch))
        try:
            batch_path.write_text(render_json(batch) + "\n", encoding="utf-8")
        except OSError as error:
            raise SnapdiffIOError(f"Could not open file {batch_path}: {error}.") from error
        return 1

    def _translate(self, record: SerializedRecord, line_number: int) -> JsonMap | None:
        entry_type = record.entry_type
        if entry_type not in _OBJECT_TYPES:
            _LOGGER.warning(
                "diff_entry_skipped",
                line_number=line_number,
                operation=record.operation,
                reason="unknown entry type",
            )
            return None
        if not _has_required_paths(record):
            _LOGGER.error(
                "diff_entry_skipped",
                line_number=line_number,
                operation=record.operation,
                reason="missing path tokens",
            )
            return None
        if record.op_type == _DELETE_OP:
            return build_delete_entry(record)
        if record.op_type == _RENAME_OP and entry_type != "SYM":
            return build_rename_entry(record)
        if entry_type == "SYM":
            entry = build_symlink_entry(record)
        else:
            entry = build_change_entry(record)
        self._enrich(entry, record.paths[0])
        return entry

    def _enrich(self, entry: JsonMap, path: str) -> None:
        if self._metadata_lookup is None:
            return
        try:
            path_stat = self._metadata_lookup(path)
        except SnapdiffMetadataLookupError as error:
            _LOGGER.error("metadata_lookup_failed", path=path, error=str(error))
            return
        add_metadata_fields(entry, path, path_stat)


def parse_serialized_line(line: str) -> SerializedRecord | None:
    """Split one serialized diff line into operation and path tokens."""
    tokens = split_tokens(line)
    if not tokens:
        return None
    return SerializedRecord(operation=tokens[0], paths=tuple(tokens[1:]))


def build_delete_entry(record: SerializedRecord) -> JsonMap:
    """Build ``{type: delete, object_type, path}``."""
    entry = JsonMap()
    entry.add("type", JsonString("delete"))
    entry.add("object_type", JsonString(_OBJECT_TYPES[record.entry_type]))
    entry.add("path", JsonString(record.paths[0]))
    return entry


def build_rename_entry(record: SerializedRecord) -> JsonMap:
    """Build ``{type: rename, path_old, path_new}``."""
    entry = JsonMap()
    entry.add("type", JsonString("rename"))
    entry.add("path_old", JsonString(record.paths[0]))
    entry.add("path_new", JsonString(record.paths[1]))
    return entry


def build_change_entry(record: SerializedRecord) -> JsonMap:
    """Build a file or directory entry with one boolean per change flag."""
    flags = record.op_type
    entry = JsonMap()
    entry.add("type", JsonString(_OBJECT_TYPES[record.entry_type]))
    entry.add("created", JsonBool("C" in flags))
    entry.add("modified", JsonBool("M" in flags))
    entry.add("stat", JsonBool("S" in flags))
    entry.add("xattr", JsonBool("X" in flags))
    return entry


def build_symlink_entry(record: SerializedRecord) -> JsonMap:
    """Build a symlink entry; created links also carry their target."""
    flags = record.op_type
    entry = JsonMap()
    entry.add("type", JsonString("symlink"))
    entry.add("created", JsonBool("C" in flags))
    if "C" in flags:
        entry.add("target", JsonString(record.paths[1]))
    entry.add("stat", JsonBool("S" in flags))
    return entry


def _has_required_paths(record: SerializedRecord) -> bool:
    """Check that a record carries every path token its shape needs."""
    required_count = 1
    if record.op_type == _RENAME_OP and record.entry_type != "SYM":
        required_count = 2
    elif record.entry_type == "SYM" and record.op_type != _DELETE_OP and "C" in record.op_type:
        required_count = 2
    return len(record.paths) >= required_count
