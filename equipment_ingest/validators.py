"""Null-safe coercion of loosely typed spreadsheet cells.

Every function here takes whatever the spreadsheet automation sent (a string,
a number or nothing) and returns a typed value or ``None``. None of them raise.
"""
from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Any, Optional

_DATE_FORMATS = (
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%d/%m/%Y %H:%M:%S",
    "%d/%m/%Y %H:%M",
    "%d/%m/%Y",
    "%Y/%m/%d",
)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_date(value: Any) -> Optional[datetime]:
    """Parse a timestamp.

    ISO 8601 strings (a trailing ``Z`` is read as UTC) and a handful of
    spreadsheet formats are accepted. Numbers are epoch milliseconds in UTC.
    Offsets are kept as sent; naive inputs stay naive.
    """
    if value is None or value == "":
        return None
    if _is_number(value):
        if not math.isfinite(value):
            return None
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not text:
        return None
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        pass
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def validate_number(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    if _is_number(value):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1


def _in_int64_range(number: int) -> Optional[int]:
    return number if INT64_MIN <= number <= INT64_MAX else None


def validate_integer(value: Any) -> Optional[int]:
    """Integers truncate toward zero, so ``"12.7"`` becomes 12.

    Values outside the signed 64-bit range a SQLite INTEGER holds are null.
    """
    if isinstance(value, str):
        try:
            return _in_int64_range(int(value.strip()))
        except ValueError:
            pass
    number = validate_number(value)
    if number is None:
        return None
    return _in_int64_range(int(number))


def validate_string(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    trimmed = value.strip()
    return trimmed or None


def validate_identifier(value: Any) -> Optional[str]:
    """Like :func:`validate_string`, but numeric ids are kept as text.

    Sheets hand over form ids and equipment numbers as numbers; ``7.0`` is
    rendered as ``"7"``.
    """
    if _is_number(value):
        if not math.isfinite(value):
            return None
        if isinstance(value, float) and value.is_integer():
            return str(int(value))
        return str(value)
    return validate_string(value)
