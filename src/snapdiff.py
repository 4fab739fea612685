"""Public SDK surface for snapdiff.

This module provides a stable import path for library users.
It re-exports the primary client and typed option models.
"""

from __future__ import annotations

from core.config import SnapdiffConfig
from core.errors import SnapdiffError
from core.types import DiffOptions, DiffResult
from core.verification import VerificationOptions, VerificationReport
from ingest.pipeline import SnapshotDiffRunner, run_snapshot_diff
from store.diff_sdk import SnapdiffClient

__all__ = [
    "DiffOptions",
    "DiffResult",
    "SnapdiffClient",
    "SnapdiffConfig",
    "SnapdiffError",
    "SnapshotDiffRunner",
    "VerificationOptions",
    "VerificationReport",
    "run_snapshot_diff",
]
