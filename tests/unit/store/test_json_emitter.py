"""Unit tests for batched JSON emission."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Sequence

from core.errors import SnapdiffMetadataLookupError
from core.types import PathStat, TimeSpec
from store.json_emitter import JsonEmitter, parse_serialized_line

_PATH_STAT = PathStat(
    size=42,
    atime=TimeSpec(sec=10, nsec=1),
    ctime=TimeSpec(sec=20, nsec=2),
    mtime=TimeSpec(sec=30, nsec=3),
)


class _RecordingLookup:
    def __init__(self) -> None:
        self.paths: list[str] = []

    def __call__(self, path: str) -> PathStat:
        self.paths.append(path)
        return _PATH_STAT


def _failing_lookup(path: str) -> PathStat:
    raise SnapdiffMetadataLookupError(f"Could not stat {path}.")


def _emit(
    tmp_path: Path,
    lines: Sequence[str],
    batch_size: int = 1000,
    metadata_lookup: object = None,
) -> tuple[int, list[list[dict[str, object]]]]:
    serialized_path = tmp_path / "serialized_diff"
    serialized_path.write_text("".join(f"{line}\n" for line in lines), encoding="utf-8")
    json_dir = tmp_path / "serialized_json"
    json_dir.mkdir()
    emitter = JsonEmitter(json_dir, batch_size, metadata_lookup)  # type: ignore[arg-type]
    written_count = emitter.emit(serialized_path)
    batches = [
        json.loads((json_dir / f"{index}.json").read_text(encoding="utf-8"))
        for index in range(written_count)
    ]
    return written_count, batches


def test_parse_serialized_line_splits_operation_and_paths() -> None:
    """Serialized lines should split into operation and path tokens."""
    record = parse_serialized_line("FILE_RENAME\told\tnew\n")

    assert (
        record is not None
        and record.entry_type == "FILE"
        and record.op_type == "RENAME"
        and record.paths == ("old", "new")
    )


def test_emit_builds_delete_entry_without_metadata(tmp_path: Path) -> None:
    """Deletes should name the object type and skip metadata lookup."""
    lookup = _RecordingLookup()

    _, batches = _emit(tmp_path, ["SYM_DELETE\tlink"], metadata_lookup=lookup)

    assert batches == [[{"type": "delete", "object_type": "symlink", "path": "link"}]] and (
        lookup.paths == []
    )


def test_emit_builds_rename_entry(tmp_path: Path) -> None:
    """Renames should carry the old and new paths only."""
    _, batches = _emit(tmp_path, ["DIR_RENAME\told\tnew"], metadata_lookup=_RecordingLookup())

    assert batches == [[{"type": "rename", "path_old": "old", "path_new": "new"}]]


def test_emit_builds_change_entry_from_flags(tmp_path: Path) -> None:
    """Change flags should map to booleans followed by metadata."""
    _, batches = _emit(tmp_path, ["FILE_CM\ta.txt"], metadata_lookup=_RecordingLookup())

    assert batches[0][0] == {
        "type": "file",
        "created": True,
        "modified": True,
        "stat": False,
        "xattr": False,
        "size": 42,
        "atime": {"sec": 10, "nsec": 1},
        "ctime": {"sec": 20, "nsec": 2},
        "mtime": {"sec": 30, "nsec": 3},
        "path": "a.txt",
    }


def test_emit_keeps_member_order(tmp_path: Path) -> None:
    """Entry members should keep their construction order."""
    _, batches = _emit(tmp_path, ["DIR_SX\td"], metadata_lookup=_RecordingLookup())

    assert list(batches[0][0])[:5] == ["type", "created", "modified", "stat", "xattr"]


def test_emit_adds_target_for_created_symlink(tmp_path: Path) -> None:
    """Created symlinks should carry their target path."""
    lookup = _RecordingLookup()

    _, batches = _emit(tmp_path, ["SYM_C\tlink\tdest"], metadata_lookup=lookup)

    entry = batches[0][0]
    assert (
        entry["target"] == "dest"
        and entry["created"] is True
        and entry["stat"] is False
        and lookup.paths == ["link"]
    )


def test_emit_omits_target_for_changed_symlink(tmp_path: Path) -> None:
    """Symlinks that were not created should have no target member."""
    _, batches = _emit(tmp_path, ["SYM_S\tlink"], metadata_lookup=_RecordingLookup())

    assert "target" not in batches[0][0] and batches[0][0]["stat"] is True


def test_emit_omits_metadata_when_lookup_fails(tmp_path: Path) -> None:
    """A failed lookup should drop the metadata group, path included."""
    _, batches = _emit(tmp_path, ["FILE_C\tgone.txt"], metadata_lookup=_failing_lookup)

    assert batches == [
        [{"type": "file", "created": True, "modified": False, "stat": False, "xattr": False}]
    ]


def test_emit_skips_unknown_entry_types(tmp_path: Path) -> None:
    """Records with unrecognized entry types should not produce entries."""
    written_count, batches = _emit(tmp_path, ["PIPE_C\tfifo", "FILE_DELETE\ta"])

    assert written_count == 1 and len(batches[0]) == 1


def test_emit_skips_rename_without_new_path(tmp_path: Path) -> None:
    """Renames missing their second path should be skipped."""
    written_count, _ = _emit(tmp_path, ["FILE_RENAME\told"])

    assert written_count == 0


def test_emit_splits_entries_into_batches(tmp_path: Path) -> None:
    """Entries should be split into full batches plus one remainder."""
    lines = [f"FILE_DELETE\tfile-{index}" for index in range(5)]

    written_count, batches = _emit(tmp_path, lines, batch_size=2)

    assert written_count == 3 and [len(batch) for batch in batches] == [2, 2, 1]


def test_emit_writes_no_trailing_empty_batch(tmp_path: Path) -> None:
    """An exact multiple of the batch size should not add an empty file."""
    lines = [f"FILE_DELETE\tfile-{index}" for index in range(4)]

    written_count, _ = _emit(tmp_path, lines, batch_size=2)

    assert written_count == 2 and not (tmp_path / "serialized_json" / "2.json").exists()


def test_emit_writes_nothing_for_empty_diff(tmp_path: Path) -> None:
    """An empty serialized diff should produce zero batch files."""
    written_count, _ = _emit(tmp_path, [])

    assert written_count == 0 and list((tmp_path / "serialized_json").iterdir()) == []


def test_emit_keeps_unicode_spaces_inside_rename_paths(tmp_path: Path) -> None:
    """Rename paths holding non-ASCII spaces should stay whole."""
    line = "DIR_RENAME\t\u65e7\u3000\u540d\tnew\u00a0name"

    _, batches = _emit(tmp_path, [line], metadata_lookup=_RecordingLookup())

    assert batches == [
        [{"type": "rename", "path_old": "\u65e7\u3000\u540d", "path_new": "new\u00a0name"}]
    ]
