"""Structured JSON values for diff batch files.

JSON output is built from a closed set of value types and rendered by a
single recursive function. Map keys keep insertion order.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import json
from typing import Union


@dataclass(frozen=True)
class JsonNumber:
    """Integer JSON number."""

    value: int


@dataclass(frozen=True)
class JsonBool:
    """JSON boolean."""

    value: bool


@dataclass(frozen=True)
class JsonString:
    """JSON string."""

    value: str


@dataclass
class JsonMap:
    """Ordered JSON object."""

    entries: dict[str, "JsonValue"] = field(default_factory=dict)

    def add(self, key: str, value: "JsonValue") -> None:
        """Set one object member."""
        self.entries[key] = value

    def __contains__(self, key: str) -> bool:
        return key in self.entries


@dataclass
class JsonArray:
    """Ordered JSON array."""

    items: list["JsonValue"] = field(default_factory=list)

    def append(self, value: "JsonValue") -> None:
        """Append one element."""
        self.items.append(value)

    def __len__(self) -> int:
        return len(self.items)


JsonValue = Union[JsonNumber, JsonBool, JsonString, JsonMap, JsonArray]


def render_json(value: JsonValue) -> str:
    """Render a JSON value as text with one member or element per line.

    Args:
        value: Value to render.

    Returns:
        Valid JSON text.
    """
    if isinstance(value, JsonBool):
        return "true" if value.value else "false"
    if isinstance(value, JsonNumber):
        return str(value.value)
    if isinstance(value, JsonString):
        return json.dumps(value.value)
    if isinstance(value, JsonMap):
        members = [
            f"{json.dumps(key)} : {render_json(item)}" for key, item in value.entries.items()
        ]
        return "{\n" + ",\n".join(members) + "\n}"
    if isinstance(value, JsonArray):
        elements = [render_json(item) for item in value.items]
        return "[\n" + ",\n".join(elements) + "\n]"
    raise TypeError(f"Unsupported JSON value type: {type(value).__name__}")
