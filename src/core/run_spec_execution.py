"""Shared run-spec execution engine for CLI and SDK workflows.

This module maps validated run-spec steps to client operations so different
entry points can execute one declarative job file without drift.
"""

from __future__ import annotations

from typing import Protocol

from core.errors import SnapdiffRunSpecError
from core.run_spec import RunSpec, RunSpecStep, load_run_spec
from core.run_spec_fields import (
    optional_bool,
    optional_string,
    required_string,
    validate_fields,
)
from core.types import DiffOptions, DiffResult
from core.verification import VerificationOptions, VerificationReport, render_verification_report

_DIFF_STEP_KEYS = {"snapdir", "snap1", "snap2", "result_dir", "json"}
_VERIFY_STEP_KEYS = {"result_dir", "fail_fast"}


class RunSpecClient(Protocol):
    """Client API contract required by run-spec execution."""

    def diff(self, options: DiffOptions) -> DiffResult: ...

    def verify(self, options: VerificationOptions) -> VerificationReport: ...


def execute_run_spec_file(client: RunSpecClient, spec_path: str) -> list[str]:
    """Load and execute a run-spec file.

    Args:
        client: Client performing diff and verify operations.
        spec_path: Path to YAML run-spec.

    Returns:
        Output lines, one block per executed step.

    Raises:
        SnapdiffRunSpecError: If the run-spec is invalid or a verify step fails.
        SnapdiffError: If a diff step fails.
    """
    return execute_run_spec(client, load_run_spec(spec_path))


def execute_run_spec(client: RunSpecClient, spec: RunSpec) -> list[str]:
    """Execute validated run-spec steps in order."""
    output_lines: list[str] = []
    for step in spec.steps:
        if step.command == "diff":
            output_lines.append(_execute_diff_step(client, spec, step))
        else:
            output_lines.append(_execute_verify_step(client, step))
    return output_lines


def build_diff_options(spec: RunSpec, step: RunSpecStep) -> DiffOptions:
    """Build diff options from step args and spec defaults."""
    validate_fields(step.args, _DIFF_STEP_KEYS, "diff step")
    snapdir = optional_string(step.args, "snapdir") or spec.defaults.snapdir
    if snapdir is None:
        raise SnapdiffRunSpecError(
            "Run-spec 'diff' step needs 'snapdir' or a defaults.snapdir value."
        )
    default_json = True if spec.defaults.generate_json is None else spec.defaults.generate_json
    return DiffOptions(
        snapdir=snapdir,
        snap1=required_string(step.args, "snap1"),
        snap2=required_string(step.args, "snap2"),
        result_dir=required_string(step.args, "result_dir"),
        generate_json=optional_bool(step.args, "json", default_json),
    )


def _execute_diff_step(client: RunSpecClient, spec: RunSpec, step: RunSpecStep) -> str:
    result = client.diff(build_diff_options(spec, step))
    return f"{result.result_dir}\trecords={result.record_count}\tbatches={result.json_batch_count}"


def _execute_verify_step(client: RunSpecClient, step: RunSpecStep) -> str:
    validate_fields(step.args, _VERIFY_STEP_KEYS, "verify step")
    options = VerificationOptions(
        result_dir=required_string(step.args, "result_dir"),
        fail_fast=optional_bool(step.args, "fail_fast", False),
    )
    report = client.verify(options)
    if report.failed_count > 0:
        raise SnapdiffRunSpecError(
            f"Run-spec verify step failed for {options.result_dir}:\n"
            f"{render_verification_report(report)}"
        )
    return render_verification_report(report)
