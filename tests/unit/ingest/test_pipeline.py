"""Unit tests for snapshot diff orchestration."""

from __future__ import annotations

import errno
import json
from pathlib import Path
from typing import BinaryIO

import pytest

from core.config import SnapdiffConfig
from core.errors import SnapdiffIOError, SnapdiffPreconditionError
from core.types import DiffOptions
from ingest.pipeline import SnapshotDiffRunner, run_snapshot_diff
from tests.diff_pages import (
    SCENARIO_PAGES,
    SNAP1,
    SNAP2,
    make_result_dir,
    make_snapdir,
    write_diff_pages,
)


class _MissingPageSource:
    def describe(self, cookie: str) -> str:
        return f"missing://{cookie}"

    def open_page(self, cookie: str) -> BinaryIO:
        raise FileNotFoundError(errno.ENOENT, "No such file or directory", cookie)


def _options(snapdir: Path, result_dir: Path, generate_json: bool = True) -> DiffOptions:
    return DiffOptions(
        snapdir=str(snapdir),
        snap1=SNAP1,
        snap2=SNAP2,
        result_dir=str(result_dir),
        generate_json=generate_json,
    )


def test_run_snapshot_diff_serializes_scenario(tmp_path: Path) -> None:
    """Two pages at one level should serialize in arrival order."""
    snapdir = make_snapdir(tmp_path)
    write_diff_pages(snapdir, SCENARIO_PAGES)
    result_dir = make_result_dir(tmp_path)

    result = run_snapshot_diff(_options(snapdir, result_dir), SnapdiffConfig())

    assert (
        result.page_count == 2
        and result.bucket_levels == (0,)
        and (result_dir / "serialized_diff").read_text(encoding="utf-8")
        == "DIR_C\t.vdfs\nDIR_DELETE\t.vdfs\n"
    )


def test_run_snapshot_diff_writes_result_layout(tmp_path: Path) -> None:
    """A run should leave every artifact in the result directory."""
    snapdir = make_snapdir(tmp_path)
    write_diff_pages(snapdir, SCENARIO_PAGES)
    result_dir = make_result_dir(tmp_path)

    run_snapshot_diff(_options(snapdir, result_dir), SnapdiffConfig())

    assert sorted(path.name for path in result_dir.iterdir()) == [
        "out.log",
        "parallel_diff",
        "raw",
        "serialized_diff",
        "serialized_json",
    ]


def test_run_snapshot_diff_enriches_json_from_volume_root(tmp_path: Path) -> None:
    """Created entries should carry metadata of the path under the volume root."""
    snapdir = make_snapdir(tmp_path)
    write_diff_pages(snapdir, SCENARIO_PAGES)
    (tmp_path / "volume" / ".vdfs").mkdir()
    result_dir = make_result_dir(tmp_path)

    run_snapshot_diff(_options(snapdir, result_dir), SnapdiffConfig())

    entries = json.loads((result_dir / "serialized_json" / "0.json").read_text(encoding="utf-8"))
    assert entries[0]["type"] == "dir" and entries[0]["path"] == ".vdfs" and entries[1] == {
        "type": "delete",
        "object_type": "dir",
        "path": ".vdfs",
    }


def test_run_snapshot_diff_without_json_leaves_json_dir_empty(tmp_path: Path) -> None:
    """Disabling JSON should still create an empty JSON directory."""
    snapdir = make_snapdir(tmp_path)
    write_diff_pages(snapdir, SCENARIO_PAGES)
    result_dir = make_result_dir(tmp_path)

    result = run_snapshot_diff(_options(snapdir, result_dir, generate_json=False), SnapdiffConfig())

    assert result.json_batch_count == 0 and list((result_dir / "serialized_json").iterdir()) == []


def test_run_snapshot_diff_logs_run_to_result_dir(tmp_path: Path) -> None:
    """The run log should record the start and completion of the run."""
    snapdir = make_snapdir(tmp_path)
    write_diff_pages(snapdir, SCENARIO_PAGES)
    result_dir = make_result_dir(tmp_path)

    run_snapshot_diff(_options(snapdir, result_dir), SnapdiffConfig())

    events = [
        json.loads(line)["event"]
        for line in (result_dir / "out.log").read_text(encoding="utf-8").splitlines()
    ]
    assert events[0] == "snapshot_diff_started" and events[-1] == "snapshot_diff_completed"


def test_run_snapshot_diff_rejects_non_empty_result_dir(tmp_path: Path) -> None:
    """A populated result directory should be refused before any write."""
    snapdir = make_snapdir(tmp_path)
    result_dir = make_result_dir(tmp_path)
    (result_dir / "leftover").write_text("x", encoding="utf-8")

    with pytest.raises(SnapdiffPreconditionError):
        run_snapshot_diff(_options(snapdir, result_dir), SnapdiffConfig())

    assert [path.name for path in result_dir.iterdir()] == ["leftover"]


def test_run_snapshot_diff_rejects_missing_result_dir(tmp_path: Path) -> None:
    """A missing result directory should be refused."""
    snapdir = make_snapdir(tmp_path)

    with pytest.raises(SnapdiffPreconditionError):
        run_snapshot_diff(_options(snapdir, tmp_path / "missing"), SnapdiffConfig())


def test_run_snapshot_diff_rejects_missing_snapdir(tmp_path: Path) -> None:
    """A missing snapshot directory should fail after the run log opens."""
    result_dir = make_result_dir(tmp_path)

    with pytest.raises(SnapdiffPreconditionError):
        run_snapshot_diff(_options(tmp_path / "missing", result_dir), SnapdiffConfig())

    assert "snapshot_dir_invalid" in (result_dir / "out.log").read_text(encoding="utf-8")


def test_runner_stops_when_page_never_appears(tmp_path: Path) -> None:
    """Exhausted page retries should stop the run before bucketizing."""
    snapdir = make_snapdir(tmp_path)
    result_dir = make_result_dir(tmp_path)
    runner = SnapshotDiffRunner(
        _options(snapdir, result_dir),
        SnapdiffConfig(max_retries=1),
        source=_MissingPageSource(),
    )

    with pytest.raises(SnapdiffIOError):
        runner.run()

    assert not (result_dir / "parallel_diff").exists()


def test_run_snapshot_diff_keeps_unicode_spaces_in_rename_paths(tmp_path: Path) -> None:
    """Non-ASCII spaces in renamed paths should survive into both outputs."""
    snapdir = make_snapdir(tmp_path)
    write_diff_pages(
        snapdir,
        [("0", ["0 1 DIR_RENAME \u65e7\u3000\u540d new\u00a0name", "0 1 EOF"])],
    )
    result_dir = make_result_dir(tmp_path)

    run_snapshot_diff(_options(snapdir, result_dir), SnapdiffConfig())

    serialized_text = (result_dir / "serialized_diff").read_text(encoding="utf-8")
    batch = json.loads((result_dir / "serialized_json" / "0.json").read_text(encoding="utf-8"))
    assert serialized_text == "DIR_RENAME\t\u65e7\u3000\u540d\tnew\u00a0name\n" and batch == [
        {"type": "rename", "path_old": "\u65e7\u3000\u540d", "path_new": "new\u00a0name"}
    ]
