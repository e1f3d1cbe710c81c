"""Value patterns with {placeholder} substitution.

A placeholder names a dotted path resolved against the data the pattern is
rendered for. The reserved placeholder {__original} is bound to an explicit
original value instead (the lookup key, for default values).
"""

from __future__ import annotations

import re
from typing import Any

from .errors import PathError, PatternError
from .paths import extract_value, split_path

ORIGINAL_VALUE_KEY = "__original"

_PLACEHOLDER = re.compile(r"\{([^{}]*)\}")


def check_pattern(template: str) -> None:
    """Raise PatternError if braces are unbalanced or a placeholder is invalid."""
    if not isinstance(template, str):
        raise PatternError(f"Pattern must be a string, got {type(template).__name__}")

    open_at = None
    for pos, char in enumerate(template):
        if char == "{":
            if open_at is not None:
                raise PatternError(f"Nested '{{' at position {pos} in pattern {template!r}", template)
            open_at = pos
        elif char == "}":
            if open_at is None:
                raise PatternError(f"Unmatched '}}' at position {pos} in pattern {template!r}", template)
            open_at = None
    if open_at is not None:
        raise PatternError(f"Unclosed '{{' at position {open_at} in pattern {template!r}", template)

    for key in placeholders(template):
        if key == ORIGINAL_VALUE_KEY:
            continue
        try:
            split_path(key)
        except PathError as e:
            raise PatternError(f"Invalid placeholder {{{key}}} in pattern {template!r}: {e}", template) from e


def placeholders(template: str) -> list[str]:
    """List placeholder keys in order of appearance."""
    return [m.group(1).strip() for m in _PLACEHOLDER.finditer(template)]


def render(template: str, data: Any, original_value: Any = None) -> str:
    """
    Render a pattern against data.

    Missing values (and a None original value) render as empty strings.
    """
    check_pattern(template)

    def replace(m: re.Match) -> str:
        key = m.group(1).strip()
        if key == ORIGINAL_VALUE_KEY:
            value = original_value
        else:
            value = extract_value(data, key)
        return "" if value is None else str(value)

    return _PLACEHOLDER.sub(replace, template)
