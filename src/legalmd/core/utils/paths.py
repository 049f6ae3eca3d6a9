"""Dotted-path lookup into metadata and the shared truthiness rule"""

import math
import re
from datetime import date, datetime
from typing import Any


class _Missing:
    """Sentinel for a path that does not resolve; distinct from a None value."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "MISSING"


MISSING = _Missing()

_INDEX_RE = re.compile(r'\[(\d+)\]')


def split_path(path: str) -> list[str]:
    """Split 'a.b[0].c' into ['a', 'b', '0', 'c']."""
    path = _INDEX_RE.sub(r'.\1', path.strip())
    return [p for p in path.split('.') if p]


def resolve_path(data: Any, path: str | list[str]) -> Any:
    """Walk data along a dotted path; return MISSING when any step fails."""
    parts = split_path(path) if isinstance(path, str) else path
    current = data
    for part in parts:
        if isinstance(current, dict):
            if part not in current:
                # YAML loads year-style keys such as 2024: as ints
                if not (part.isdigit() and int(part) in current):
                    return MISSING
                part = int(part)
            current = current[part]
        elif isinstance(current, (list, tuple)):
            if part == "length":
                current = len(current)
            elif part.isdigit() and int(part) < len(current):
                current = current[int(part)]
            else:
                return MISSING
        else:
            return MISSING
    return current


def is_truthy(value: Any) -> bool:
    """None, MISSING, False, zero, NaN and "" are false; everything else (even [] and {}) is true."""
    if value is None or value is MISSING or value is False:
        return False
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value != 0 and not (isinstance(value, float) and math.isnan(value))
    if isinstance(value, str):
        return value != ""
    return True


def to_text(value: Any) -> str | None:
    """Render a value for inline substitution; None when it has no inline form."""
    if value is None or value is MISSING or isinstance(value, dict):
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return ", ".join(s for s in (to_text(v) for v in value) if s is not None)
    return str(value)
