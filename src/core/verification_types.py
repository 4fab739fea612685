"""Typed models for result directory verification."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

VerificationStatus = Literal["passed", "failed", "skipped"]


@dataclass(frozen=True)
class VerificationOptions:
    """Options controlling one verification run.

    Attributes:
        result_dir: Result directory of a finished diff run.
        fail_fast: Stop after the first failed check.
        json_batch_size: Batch size the run was configured with. When
            unset it is inferred from the first batch file.
    """

    result_dir: str
    fail_fast: bool = False
    json_batch_size: int | None = None


@dataclass(frozen=True)
class VerificationCheckResult:
    """Outcome of one invariant check."""

    check_id: str
    title: str
    status: VerificationStatus
    details: str
    duration_seconds: float


@dataclass(frozen=True)
class VerificationReport:
    """All check outcomes for one result directory."""

    result_dir: str
    checks: tuple[VerificationCheckResult, ...]

    def count(self, status: VerificationStatus) -> int:
        """Count checks that ended with a status."""
        return sum(1 for check in self.checks if check.status == status)

    @property
    def failed_count(self) -> int:
        return self.count("failed")

    @property
    def passed_count(self) -> int:
        return self.count("passed")

    @property
    def skipped_count(self) -> int:
        return self.count("skipped")


@dataclass(frozen=True)
class VerificationRuntime:
    """Result directory and optional batch limit shared by check functions."""

    result_dir: Path
    json_batch_size: int | None = None


class VerificationSkipped(Exception):
    """Raised by a check whose artifacts were not produced by the run."""
