"""Marker detection for raw diff pages.

Every page ends with a marker line whose third token is ``EOB`` when more
pages follow or ``EOF`` when the stream is exhausted.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from core.constants import MARKER_TOKEN_INDEX, STREAM_MARKERS, TEXT_ENCODING, TEXT_ERRORS
from core.errors import SnapdiffFramingError, SnapdiffIOError
from core.record_tokens import split_tokens


@dataclass(frozen=True)
class PageFraming:
    """Termination details of one page.

    Attributes:
        marker: ``EOB`` or ``EOF``.
        next_cookie: Continuation cookie for the following page, if any.
    """

    marker: str
    next_cookie: str | None


def page_marker(tokens: Sequence[str]) -> str | None:
    """Return the stream marker carried by a tokenized line, if any."""
    if len(tokens) <= MARKER_TOKEN_INDEX:
        return None
    token = tokens[MARKER_TOKEN_INDEX]
    return token if token in STREAM_MARKERS else None


def scan_page_framing(page_path: Path) -> PageFraming:
    """Find the termination marker and continuation cookie of a page.

    The cookie is the token following the marker on the marker line. When
    the marker line carries none, the second token of the last data line
    is used instead.

    Args:
        page_path: Local page file.

    Returns:
        Marker and continuation cookie.

    Raises:
        SnapdiffFramingError: If the page ends without a marker line.
        SnapdiffIOError: If the page file cannot be read.
    """
    last_cookie: str | None = None
    try:
        with page_path.open(
            "r", encoding=TEXT_ENCODING, errors=TEXT_ERRORS, newline="\n"
        ) as page_file:
            for line in page_file:
                tokens = split_tokens(line)
                marker = page_marker(tokens)
                if marker is not None:
                    trailing = tokens[MARKER_TOKEN_INDEX + 1 :]
                    return PageFraming(
                        marker=marker,
                        next_cookie=trailing[0] if trailing else last_cookie,
                    )
                if len(tokens) > 1:
                    last_cookie = tokens[1]
    except OSError as error:
        raise SnapdiffIOError(f"Error reading file {page_path}: {error}.") from error
    raise SnapdiffFramingError(
        f"Diff page {page_path} ended without an EOB or EOF marker. "
        "The snapshot diff stream is truncated or malformed."
    )
