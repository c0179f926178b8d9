"""Coercion helpers turning loosely typed API values into local values.

Every helper returns ``None`` when the input cannot be represented; none of
them raise.
"""

from __future__ import annotations

import math
import re
from typing import Any, Mapping, Sequence

_BYTES_PER_GB = 1024 * 1024 * 1024
_KILOBYTES_PER_GB = 1024 * 1024
_MAX_SAFE_INTEGER = 2**53 - 1
_UNSAFE_SEGMENT_CHARS = re.compile(r"[^A-Za-z0-9_-]")


def round2(value: float) -> float | None:
    """Round half up to two decimals, returning None for non-finite input."""
    try:
        rounded = math.floor(value * 100 + 0.5) / 100
    except (OverflowError, ValueError):
        return None
    return rounded if math.isfinite(rounded) else None


def _parse_numeric_text(text: str) -> int | float | None:
    candidate = text.strip()
    if not candidate:
        return None
    try:
        return int(candidate)
    except ValueError:
        pass
    try:
        parsed = float(candidate)
    except ValueError:
        return None
    return parsed if math.isfinite(parsed) else None


def to_number_or_null(value: Any) -> int | float | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, str):
        return _parse_numeric_text(value)
    return None


def big_int_to_number(value: Any) -> int | float | None:
    """Narrow large counters to something a JSON consumer can hold.

    Integers beyond 2**53 lose precision as floats; integers too large for a
    float at all become None.
    """
    numeric = to_number_or_null(value)
    if isinstance(numeric, int) and abs(numeric) > _MAX_SAFE_INTEGER:
        try:
            return float(numeric)
        except OverflowError:
            return None
    return numeric


def _scaled(value: Any, divisor: int) -> float | None:
    numeric = to_number_or_null(value)
    if numeric is None:
        return None
    try:
        scaled = numeric / divisor
    except OverflowError:
        return None
    return round2(scaled)


def bytes_to_gigabytes(value: Any) -> float | None:
    return _scaled(value, _BYTES_PER_GB)


def kilobytes_to_gigabytes(value: Any) -> float | None:
    return _scaled(value, _KILOBYTES_PER_GB)


def calculate_usage_percent(used: Any, total: Any) -> float | None:
    """Return ``used / total * 100`` rounded to two decimals.

    A zero or unknown denominator yields None.
    """
    used_numeric = to_number_or_null(used)
    total_numeric = to_number_or_null(total)
    if used_numeric is None or total_numeric is None or total_numeric == 0:
        return None
    try:
        percent = used_numeric / total_numeric * 100
    except OverflowError:
        return None
    return round2(percent)


def share_usage_percent(used: Any, free: Any) -> float | None:
    used_numeric = to_number_or_null(used)
    free_numeric = to_number_or_null(free)
    if used_numeric is None or free_numeric is None:
        return None
    return calculate_usage_percent(used_numeric, used_numeric + free_numeric)


def to_string_or_null(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            return None
        if value.is_integer():
            return str(int(value))
        return repr(value)
    return None


def to_boolean_or_null(value: Any) -> bool | None:
    return value if isinstance(value, bool) else None


def identity(value: Any) -> Any:
    return value


def resolve_value(source: Any, path: Sequence[str]) -> Any:
    """Walk ``path`` through nested mappings, returning None on any gap."""
    current = source
    for segment in path:
        if not isinstance(current, Mapping):
            return None
        current = current.get(segment)
    return current


def sanitize_resource_name(name: str | None) -> str:
    """Turn a remote resource name into a single safe id segment.

    One leading ``/`` is dropped, then every character outside
    ``[A-Za-z0-9_-]`` becomes ``_``.
    """
    if not name:
        return "unknown"
    stripped = name[1:] if name.startswith("/") else name
    sanitized = _UNSAFE_SEGMENT_CHARS.sub("_", stripped)
    return sanitized or "unknown"
