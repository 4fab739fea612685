"""Whitespace tokenization of diff stream and serialized diff lines.

Only ASCII whitespace separates tokens. Paths may contain any other
character, including Unicode spaces and line separators.
"""

from __future__ import annotations

import re

ASCII_WHITESPACE = " \t\n\r\f\v"

_SEPARATOR_PATTERN = re.compile(f"[{re.escape(ASCII_WHITESPACE)}]+")


def split_tokens(line: str) -> list[str]:
    """Split a line on runs of ASCII whitespace.

    Args:
        line: One line of a raw page or serialized diff.

    Returns:
        Tokens in order; an empty list for a blank line.
    """
    stripped = line.strip(ASCII_WHITESPACE)
    if not stripped:
        return []
    return _SEPARATOR_PATTERN.split(stripped)
