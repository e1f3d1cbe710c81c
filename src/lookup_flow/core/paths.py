"""Dotted-path navigation into nested maps and lists.

Paths use dot notation for nesting ("fields.project.code") and may address
list elements by index ("comments[0].author"). When a plain segment meets a
list, the remaining path is resolved against every element and the non-null
results are collected into a list, so "comments.author" yields the author
object of each comment.
"""

from __future__ import annotations

import re
from typing import Any

from .errors import PathError

_SEGMENT = re.compile(r"\[(\d+)\]|([^.\[\]]+)")


def split_path(path: str) -> list[str | int]:
    """
    Parse a path into segments.

    "results[0].field" -> ["results", 0, "field"]
    """
    if not path or not path.strip():
        raise PathError("Path must not be empty", path=path)
    if path.endswith("."):
        raise PathError(f"Invalid path {path!r}: trailing dot", path=path)

    segments: list[str | int] = []
    pos = 0
    while pos < len(path):
        if path[pos] == "." and segments:
            pos += 1
        match = _SEGMENT.match(path, pos)
        if not match:
            raise PathError(f"Invalid path {path!r} at position {pos}", path=path)
        index, name = match.groups()
        segments.append(int(index) if index is not None else name)
        pos = match.end()
    return segments


def extract_value(data: Any, path: str) -> Any:
    """Get the value at a path, or None if any part of it is absent."""
    return _extract(data, split_path(path))


def _extract(value: Any, segments: list[str | int]) -> Any:
    if not segments:
        return value
    if value is None:
        return None

    segment = segments[0]
    if isinstance(segment, int):
        if isinstance(value, (list, tuple)) and segment < len(value):
            return _extract(value[segment], segments[1:])
        return None

    if isinstance(value, dict):
        if segment not in value:
            return None
        return _extract(value[segment], segments[1:])

    if isinstance(value, (list, tuple)):
        collected = []
        for item in value:
            found = _extract(item, segments)
            if found is not None:
                collected.append(found)
        return collected

    return None


def has_path(data: Any, path: str) -> bool:
    """
    Check whether every map key along a path exists (value may be None).

    Lists are traversed like in extract_value(): the path exists if it
    exists in any element.
    """
    return _has(data, split_path(path))


def _has(value: Any, segments: list[str | int]) -> bool:
    if not segments:
        return True

    segment = segments[0]
    if isinstance(segment, int):
        if isinstance(value, (list, tuple)) and segment < len(value):
            return _has(value[segment], segments[1:])
        return False

    if isinstance(value, dict):
        return segment in value and _has(value[segment], segments[1:])

    if isinstance(value, (list, tuple)):
        return any(_has(item, segments) for item in value)

    return False


def put_value(data: dict[str, Any], path: str, value: Any) -> None:
    """
    Set the value at a dotted path, overwriting what is there.

    Intermediate maps are created as needed. Raises PathError if an
    intermediate value exists and is not a map.
    """
    segments = split_path(path)
    if any(isinstance(s, int) for s in segments):
        raise PathError(f"Index segments are not supported in write path {path!r}", path=path)

    current = data
    for segment in segments[:-1]:
        nested = current.get(segment)
        if nested is None:
            nested = {}
            current[segment] = nested
        elif not isinstance(nested, dict):
            raise PathError(
                f"Cannot write {path!r}: '{segment}' holds a {type(nested).__name__}, not an object",
                path=path
            )
        current = nested
    current[segments[-1]] = value
