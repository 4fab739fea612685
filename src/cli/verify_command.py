"""Verification command wiring for snapdiff CLI."""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Any

from core.errors import SnapdiffVerificationError
from core.verification import (
    VerificationOptions,
    render_verification_report,
    save_verification_report,
)
from store.diff_sdk import SnapdiffClient


def add_verify_command(subparsers: Any) -> None:
    """Register verify subcommand."""
    parser = subparsers.add_parser(
        "verify",
        help="Check ordering and count invariants of a result directory",
    )
    parser.add_argument("result_dir", help="Result directory of a finished diff")
    parser.add_argument("--report", help="Optional path for a JSON report file")
    parser.add_argument(
        "--fail-fast",
        action="store_true",
        help="Stop after the first failed check",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        help="JSON batch size the run used; inferred from the batch files when omitted",
    )


def run_verify_command(client: SnapdiffClient, args: argparse.Namespace) -> int:
    """Execute verification and print check report."""
    options = VerificationOptions(
        result_dir=args.result_dir,
        fail_fast=args.fail_fast,
        json_batch_size=args.batch_size,
    )
    try:
        report = client.verify(options)
    except SnapdiffVerificationError as error:
        print(f"verification_error={error}")
        return 1
    print(render_verification_report(report))
    if args.report:
        report_path = save_verification_report(report, Path(args.report).expanduser())
        print(f"report_path={report_path}")
    return 0 if report.failed_count == 0 else 1
