"""Result directory verification and report formatting.

Verification re-reads the artifacts of a finished diff run and reports
one row per invariant check. It never modifies the result directory.
"""

from __future__ import annotations

from dataclasses import asdict
import json
import time
from pathlib import Path
from typing import Iterator

from core.errors import SnapdiffError, SnapdiffVerificationError
from core.verification_checks import CheckFn, build_checks
from core.verification_types import (
    VerificationCheckResult,
    VerificationOptions,
    VerificationReport,
    VerificationRuntime,
    VerificationSkipped,
)

__all__ = [
    "VerificationCheckResult",
    "VerificationOptions",
    "VerificationReport",
    "run_verification",
    "render_verification_report",
    "save_verification_report",
]


def run_verification(options: VerificationOptions) -> VerificationReport:
    """Run verification checks against a finished result directory.

    Args:
        options: Result directory, fail-fast switch, and optional batch size.

    Returns:
        Report with one row per executed check.

    Raises:
        SnapdiffVerificationError: If the result directory does not exist.
    """
    result_dir = Path(options.result_dir).expanduser()
    if not result_dir.is_dir():
        raise SnapdiffVerificationError(
            f"Result directory {result_dir} does not exist or is not a directory. "
            "Pass the result directory of a finished diff run."
        )
    runtime = VerificationRuntime(result_dir=result_dir, json_batch_size=options.json_batch_size)
    rows: list[VerificationCheckResult] = []
    for row in _evaluate(runtime, build_checks()):
        rows.append(row)
        if options.fail_fast and row.status == "failed":
            break
    return VerificationReport(result_dir=str(result_dir), checks=tuple(rows))


def _evaluate(
    runtime: VerificationRuntime,
    checks: tuple[tuple[str, str, CheckFn], ...],
) -> Iterator[VerificationCheckResult]:
    """Run checks lazily so callers can stop early."""
    for check_id, title, check_fn in checks:
        started_at = time.monotonic()
        try:
            status, details = "passed", check_fn(runtime)
        except VerificationSkipped as skipped:
            status, details = "skipped", str(skipped)
        except (SnapdiffError, OSError) as error:
            status, details = "failed", str(error)
        yield VerificationCheckResult(
            check_id=check_id,
            title=title,
            status=status,
            details=details,
            duration_seconds=round(time.monotonic() - started_at, 3),
        )


def render_verification_report(report: VerificationReport) -> str:
    """Render report as one line per check plus status totals."""
    rows = [
        f"[{check.status.upper()}] {check.check_id} {check.title} "
        f"({check.duration_seconds:.3f}s) :: {check.details}"
        for check in report.checks
    ]
    totals = [
        f"passed={report.passed_count}",
        f"failed={report.failed_count}",
        f"skipped={report.skipped_count}",
    ]
    return "\n".join([f"result_dir={report.result_dir}", *rows, *totals])


def save_verification_report(report: VerificationReport, report_path: Path) -> Path:
    """Write the report as JSON, creating parent directories as needed."""
    report_path.parent.mkdir(parents=True, exist_ok=True)
    report_path.write_text(json.dumps(asdict(report), indent=2) + "\n", encoding="utf-8")
    return report_path
