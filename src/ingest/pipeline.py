"""Snapshot diff orchestration.

This module validates the result location, owns the run log, and runs the
capture, bucketize, serialize, and JSON stages strictly in order. The first
fatal stage failure is logged and stops the run; artifacts already written
are left in place for inspection.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, TypeVar

from core.config import SnapdiffConfig
from core.constants import (
    BUCKETS_DIR_NAME,
    JSON_DIR_NAME,
    LOG_FILE_NAME,
    RAW_DIR_NAME,
    SERIALIZED_DIFF_FILE_NAME,
)
from core.errors import SnapdiffError, SnapdiffPreconditionError
from core.logging_config import get_logger, run_log_file
from core.os_support import LocalFileSystem, is_windows_platform
from core.types import DiffOptions, DiffResult
from ingest.bucketizer import BucketSet, bucketize_pages
from ingest.page_source import DiffPageSource, SnapshotDiffPageSource
from ingest.stream_reader import StreamReader
from store.json_emitter import JsonEmitter
from store.metadata_lookup import MetadataLookup, SnapshotMetadataLookup
from store.serializer import serialize_buckets

_LOGGER = get_logger(__name__)

_StageResult = TypeVar("_StageResult")


class SnapshotDiffRunner:
    """Runs one snapshot diff into an empty result directory."""

    def __init__(
        self,
        options: DiffOptions,
        config: SnapdiffConfig,
        source: DiffPageSource | None = None,
        metadata_lookup: MetadataLookup | None = None,
        filesystem: LocalFileSystem | None = None,
    ) -> None:
        self._options = options
        self._config = config
        self._filesystem = filesystem or LocalFileSystem()
        self._source = source or SnapshotDiffPageSource(
            options.snapdir, options.snap1, options.snap2
        )
        self._metadata_lookup = metadata_lookup or SnapshotMetadataLookup(
            options.snapdir, self._filesystem
        )
        self._result_dir = Path(options.result_dir)

    def run(self) -> DiffResult:
        """Execute all pipeline stages.

        Returns:
            Summary of the produced artifacts.

        Raises:
            SnapdiffPreconditionError: If the result or snapshot directory
                is unusable.
            SnapdiffError: If any pipeline stage fails.
        """
        self._check_result_dir()
        with run_log_file(self._result_dir / LOG_FILE_NAME):
            self._check_snapdir()
            _log_input_parameters(self._options)
            page_count = self._run_stage("reading raw diff", self._read_raw_pages)
            with BucketSet(self._create_dir(BUCKETS_DIR_NAME)) as buckets:
                routed_count = self._run_stage(
                    "bucketizing diff",
                    lambda: bucketize_pages(self._result_dir / RAW_DIR_NAME, page_count, buckets),
                )
                bucket_levels = buckets.levels()
                record_count = self._run_stage(
                    "serializing diff",
                    lambda: serialize_buckets(buckets, self._serialized_path()),
                )
            json_batch_count = self._emit_json()
            _LOGGER.info(
                "snapshot_diff_completed",
                page_count=page_count,
                routed_count=routed_count,
                record_count=record_count,
                bucket_count=len(bucket_levels),
                json_batch_count=json_batch_count,
            )
        return DiffResult(
            result_dir=str(self._result_dir),
            page_count=page_count,
            bucket_levels=bucket_levels,
            record_count=record_count,
            json_batch_count=json_batch_count,
        )

    def _check_result_dir(self) -> None:
        if not self._filesystem.is_directory(self._result_dir):
            raise SnapdiffPreconditionError(
                f"Result directory {self._result_dir} is not a directory. "
                "Create an empty directory and retry."
            )
        if not self._filesystem.is_directory_empty(self._result_dir):
            raise SnapdiffPreconditionError(
                f"Result directory {self._result_dir} is not empty. "
                "Use a new, empty directory for every run."
            )

    def _check_snapdir(self) -> None:
        if is_windows_platform():
            return
        if not self._filesystem.is_directory(Path(self._options.snapdir)):
            _LOGGER.error("snapshot_dir_invalid", snapdir=self._options.snapdir)
            raise SnapdiffPreconditionError(
                f"Snapshot directory {self._options.snapdir} is not a directory."
            )

    def _read_raw_pages(self) -> int:
        reader = StreamReader(
            self._source,
            self._create_dir(RAW_DIR_NAME),
            max_retries=self._config.max_retries,
            retry_delay_seconds=self._config.retry_delay_seconds,
        )
        return reader.read_pages()

    def _emit_json(self) -> int:
        json_dir = self._create_dir(JSON_DIR_NAME)
        if not self._options.generate_json:
            return 0
        emitter = JsonEmitter(json_dir, self._config.json_batch_size, self._metadata_lookup)
        return self._run_stage("generating json", lambda: emitter.emit(self._serialized_path()))

    def _create_dir(self, dir_name: str) -> Path:
        return self._run_stage(
            f"creating {dir_name}",
            lambda: self._filesystem.create_directory(self._result_dir / dir_name),
        )

    def _serialized_path(self) -> Path:
        return self._result_dir / SERIALIZED_DIFF_FILE_NAME

    def _run_stage(self, stage: str, action: Callable[[], _StageResult]) -> _StageResult:
        _LOGGER.info("stage_started", stage=stage)
        try:
            return action()
        except SnapdiffError as error:
            _LOGGER.error("stage_failed", stage=stage, error=str(error))
            raise


def run_snapshot_diff(options: DiffOptions, config: SnapdiffConfig) -> DiffResult:
    """Run the snapshot diff pipeline.

    Args:
        options: Snapshot pair and result location.
        config: Runtime configuration.

    Returns:
        Summary of the produced artifacts.

    Raises:
        SnapdiffPreconditionError: If the result or snapshot directory is
            unusable.
        SnapdiffError: If any pipeline stage fails.
    """
    runner = SnapshotDiffRunner(options, config)
    return runner.run()


def _log_input_parameters(options: DiffOptions) -> None:
    """Log the run parameters at the start of the run log."""
    _LOGGER.info(
        "snapshot_diff_started",
        snapdir=options.snapdir,
        snap1=options.snap1,
        snap2=options.snap2,
        result_dir=options.result_dir,
        generate_json=options.generate_json,
    )
