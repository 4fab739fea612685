"""Type-safe field parsing helpers for run-spec documents.

Loader and executor both read step arguments through these helpers, so a
bad field produces the same error wherever it is detected.
"""

from __future__ import annotations

from typing import Mapping

from core.errors import SnapdiffRunSpecError


def required_string(args: Mapping[str, object], field_name: str) -> str:
    """Read a required, non-blank string field."""
    value = optional_string(args, field_name)
    if value is None:
        raise SnapdiffRunSpecError(f"Run-spec step is missing required field '{field_name}'.")
    return value


def optional_string(args: Mapping[str, object], field_name: str) -> str | None:
    """Read an optional string field; blank strings count as absent."""
    value = args.get(field_name)
    if value is None:
        return None
    if not isinstance(value, str):
        raise SnapdiffRunSpecError(
            f"Run-spec field '{field_name}' must be a string when provided."
        )
    return value.strip() or None


def optional_bool(args: Mapping[str, object], field_name: str, default_value: bool) -> bool:
    """Read an optional boolean field."""
    value = args.get(field_name)
    if value is None:
        return default_value
    if not isinstance(value, bool):
        raise SnapdiffRunSpecError(f"Run-spec field '{field_name}' must be true/false.")
    return value


def validate_fields(args: Mapping[str, object], allowed_fields: set[str], context: str) -> None:
    """Reject fields that a run-spec section does not understand."""
    unknown_fields = sorted(set(args) - allowed_fields)
    if unknown_fields:
        raise SnapdiffRunSpecError(
            f"Invalid {context}: unknown fields {', '.join(unknown_fields)}."
        )
