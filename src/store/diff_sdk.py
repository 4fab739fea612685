"""Python SDK for snapshot diff operations.

This module exposes high-level APIs for running diffs, verifying result
directories, and executing run-spec files with one shared configuration.
"""

from __future__ import annotations

from pathlib import Path

from core.config import SnapdiffConfig
from core.run_spec_execution import execute_run_spec_file
from core.types import DiffOptions, DiffResult
from core.verification import VerificationOptions, VerificationReport, run_verification
from ingest.pipeline import run_snapshot_diff


class SnapdiffClient:
    """Primary SDK entry point for snapshot diff workflows."""

    def __init__(self, config: SnapdiffConfig | None = None) -> None:
        """Create SDK client.

        Args:
            config: Optional runtime configuration.
        """
        self._config = config or SnapdiffConfig.from_env()

    @property
    def config(self) -> SnapdiffConfig:
        """Runtime configuration used by this client."""
        return self._config

    def diff(self, options: DiffOptions) -> DiffResult:
        """Capture, bucketize, serialize, and optionally JSON-encode a diff.

        Args:
            options: Snapshot pair and result location.

        Returns:
            Summary of the produced artifacts.

        Raises:
            SnapdiffPreconditionError: If the result location is unusable.
            SnapdiffError: If any pipeline stage fails.
        """
        return run_snapshot_diff(options, self._config)

    def verify(self, options: VerificationOptions) -> VerificationReport:
        """Check the invariants of a finished result directory.

        Raises:
            SnapdiffVerificationError: If the result directory is missing.
        """
        return run_verification(options)

    def run_spec(self, spec_path: str | Path) -> list[str]:
        """Execute a YAML run-spec and return its output lines."""
        return execute_run_spec_file(self, str(spec_path))
