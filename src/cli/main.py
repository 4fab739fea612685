"""Snapdiff CLI entry points.
This module exposes the diff, verify, and run-spec commands.
It maps argparse commands onto SDK calls.
"""

from __future__ import annotations

import argparse
from dataclasses import replace
import sys
from typing import Any, Sequence

from cli.verify_command import add_verify_command, run_verify_command
from core.config import SnapdiffConfig
from core.errors import SnapdiffError
from core.run_spec_execution import execute_run_spec_file
from core.types import DiffOptions
from store.diff_sdk import SnapdiffClient


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(
        prog="snapdiff",
        description="Reshape snapshot diff streams into replayable artifacts",
    )
    parser.add_argument(
        "--max-retries",
        type=int,
        help="Override SNAPDIFF_MAX_RETRIES for this command",
    )
    parser.add_argument(
        "--retry-delay",
        type=float,
        help="Override SNAPDIFF_RETRY_DELAY_SECONDS for this command",
    )
    parser.add_argument(
        "--json-batch-size",
        type=int,
        help="Override SNAPDIFF_JSON_BATCH_SIZE for this command",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_diff_command(subparsers)
    add_verify_command(subparsers)
    _add_run_spec_command(subparsers)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the snapdiff CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        client = _build_client(args)
        if args.command == "diff":
            return _run_diff_command(client, args)
        if args.command == "verify":
            return run_verify_command(client, args)
        if args.command == "run-spec":
            return _run_run_spec_command(client, args)
    except SnapdiffError as error:
        print(f"snapdiff: {error}", file=sys.stderr)
        return 1
    parser.error(f"Unsupported command: {args.command}")
    return 2


def _build_client(args: argparse.Namespace) -> SnapdiffClient:
    """Build SDK client with optional command-line overrides.

    Args:
        args: Parsed CLI args.

    Returns:
        Configured SDK client.

    Raises:
        SnapdiffConfigError: If environment configuration is invalid.
    """
    config = SnapdiffConfig.from_env()
    if args.max_retries is not None:
        config = replace(config, max_retries=max(args.max_retries, 0))
    if args.retry_delay is not None:
        config = replace(config, retry_delay_seconds=max(args.retry_delay, 0.0))
    if args.json_batch_size is not None:
        config = replace(config, json_batch_size=max(args.json_batch_size, 1))
    return SnapdiffClient(config)


def _run_diff_command(client: SnapdiffClient, args: argparse.Namespace) -> int:
    """Handle diff command.

    Args:
        client: SDK client.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    options = DiffOptions(
        snapdir=args.snapdir,
        snap1=args.snap1,
        snap2=args.snap2,
        result_dir=args.result_dir,
        generate_json=not args.no_json,
    )
    try:
        result = client.diff(options)
    except SnapdiffError as error:
        print(
            f"Snapshot diff operation failed, please check log file for details: {error}",
            file=sys.stderr,
        )
        return 1
    print(f"result_dir={result.result_dir}")
    print(f"pages={result.page_count}")
    print(f"buckets={len(result.bucket_levels)}")
    print(f"records={result.record_count}")
    print(f"json_batches={result.json_batch_count}")
    return 0


def _add_diff_command(subparsers: Any) -> None:
    """Register diff subcommand."""
    parser = subparsers.add_parser("diff", help="Export the diff between two snapshots")
    parser.add_argument("snapdir", help="Snapshot container directory")
    parser.add_argument("snap1", help="First snapshot identifier")
    parser.add_argument("snap2", help="Second snapshot identifier")
    parser.add_argument("result_dir", help="Existing, empty result directory")
    parser.add_argument(
        "--no-json",
        action="store_true",
        help="Skip the batched JSON output",
    )


def _run_run_spec_command(client: SnapdiffClient, args: argparse.Namespace) -> int:
    """Run every step of a YAML job file and print one block per step."""
    for output_block in execute_run_spec_file(client, args.spec_file):
        print(output_block)
    return 0


def _add_run_spec_command(subparsers: Any) -> None:
    """Register run-spec subcommand."""
    parser = subparsers.add_parser("run-spec", help="Run diff and verify steps from a YAML file")
    parser.add_argument("spec_file", help="Path to YAML run-spec file")
