"""Wire value encoding and decoding shared by the transport and the variable store."""

from __future__ import annotations

import math
from collections.abc import Sequence

from selenese.errors import InvalidArgumentError


def parse_string_array(raw: str) -> list[str]:
    """
    Split a comma-separated wire array.

    ``\\,`` is a literal comma and ``\\\\`` a literal backslash. An empty
    string is an empty array.
    """
    if raw == "":
        return []
    items: list[str] = []
    current: list[str] = []
    i = 0
    while i < len(raw):
        char = raw[i]
        if char == "\\" and i + 1 < len(raw) and raw[i + 1] in ",\\":
            current.append(raw[i + 1])
            i += 2
            continue
        if char == ",":
            items.append("".join(current))
            current = []
        else:
            current.append(char)
        i += 1
    items.append("".join(current))
    return items


def join_string_array(items: Sequence[str]) -> str:
    """Inverse of parse_string_array."""
    return ",".join(item.replace("\\", "\\\\").replace(",", "\\,") for item in items)


def parse_boolean(raw: str) -> bool:
    if raw == "true":
        return True
    if raw == "false":
        return False
    raise InvalidArgumentError(f"Expected 'true' or 'false', got {raw!r}")


def parse_number(raw: str) -> int | float:
    """Decode a decimal string, keeping integral values as int."""
    try:
        number = float(raw)
    except ValueError as e:
        raise InvalidArgumentError(f"Expected a number, got {raw!r}") from e
    if not math.isfinite(number):
        raise InvalidArgumentError(f"Expected a finite number, got {raw!r}")
    if number.is_integer() and "e" not in raw.lower():
        return int(number)
    return number


def stringify(value: object) -> str:
    """Render a stored or returned value the way it travels on the wire."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (list, tuple)):
        return join_string_array([stringify(v) for v in value])
    if value is None:
        return ""
    return str(value)
